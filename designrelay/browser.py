# designrelay/browser.py
"""
Browser session lifecycle.

- One Playwright driver + one Chromium process + one context per session.
- Sessions are never shared between jobs; `SessionManager.session()` guarantees release.
- `BrowserSession.close()` is idempotent, so error paths may release freely.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Callable, Dict, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .config import Settings
from .errors import LaunchError

log = logging.getLogger(__name__)

# Flags for running inside containers without a user namespace sandbox
LAUNCH_ARGS = ["--start-maximized", "--no-sandbox", "--disable-setuid-sandbox"]
VIEWPORT = {"width": 1280, "height": 800}


async def _quietly(what: str, job_id: str, awaitable):
    try:
        await awaitable
    except Exception as e:
        log.warning("[%s] %s failed during teardown: %s", job_id, what, e)


class BrowserSession:
    def __init__(self, job_id: str, playwright, browser, context, page, trace_path: Optional[Path] = None):
        self.job_id = job_id
        self.playwright = playwright
        self.browser = browser
        self.context = context
        self.page = page
        self.popup = None
        self.trace_path = trace_path
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self):
        """Close the browser unconditionally. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.popup = None
        if self.trace_path:
            await _quietly("trace export", self.job_id, self._export_trace())
        await _quietly("browser close", self.job_id, self.browser.close())
        await _quietly("playwright stop", self.job_id, self.playwright.stop())
        log.info("[%s] Browser closed.", self.job_id)

    async def _export_trace(self):
        self.trace_path.parent.mkdir(parents=True, exist_ok=True)
        await self.context.tracing.stop(path=str(self.trace_path))


class SessionManager:
    """Launches isolated sessions and tracks the live ones for shutdown cleanup."""

    def __init__(self, settings: Settings, playwright_factory: Callable = async_playwright):
        self.settings = settings
        self._playwright_factory = playwright_factory
        self._live: Dict[str, BrowserSession] = {}

    @property
    def live_count(self) -> int:
        return len(self._live)

    async def acquire(self, job_id: str) -> BrowserSession:
        log.info("[%s] Launching browser...", job_id)
        playwright = browser = None
        try:
            playwright = await self._playwright_factory().start()
            browser = await playwright.chromium.launch(headless=self.settings.headless, args=LAUNCH_ARGS)
            context = await browser.new_context(viewport=VIEWPORT)
            trace_path = None
            if self.settings.trace_dir:
                await context.tracing.start(screenshots=True, snapshots=True)
                trace_path = self.settings.trace_dir / f"{job_id}.trace.zip"
            page = await context.new_page()
        except (PlaywrightError, OSError) as e:
            if browser is not None:
                await _quietly("browser close", job_id, browser.close())
            if playwright is not None:
                await _quietly("playwright stop", job_id, playwright.stop())
            raise LaunchError(str(e).split("\n")[0]) from e

        session = BrowserSession(job_id, playwright, browser, context, page, trace_path)
        self._live[job_id] = session
        return session

    async def release(self, session: BrowserSession):
        try:
            await session.close()
        finally:
            if self._live.get(session.job_id) is session:
                del self._live[session.job_id]

    @asynccontextmanager
    async def session(self, job_id: str):
        session = await self.acquire(job_id)
        try:
            yield session
        finally:
            await self.release(session)

    async def release_all(self):
        for session in list(self._live.values()):
            await self.release(session)


class PageWatch:
    """
    Resolves with the next page opened in `context` whose URL satisfies `predicate`.

    The listener is attached in the constructor: create the watch first, then
    perform the action that opens the page, then `await watch.wait()`.
    Pages that never match are ignored.
    """

    def __init__(self, context, predicate: Callable[[str], bool], timeout_ms: float):
        self._context = context
        self._predicate = predicate
        self._timeout_ms = timeout_ms
        self._found = asyncio.get_running_loop().create_future()
        self._stopped = False
        context.on("page", self._on_page)

    async def _on_page(self, page):
        try:
            await page.wait_for_url(self._predicate, timeout=self._timeout_ms)
        except PlaywrightError:
            return
        if not self._found.done():
            self._found.set_result(page)

    async def wait(self):
        """Return the matching page; raises asyncio.TimeoutError if none shows up in time."""
        try:
            return await asyncio.wait_for(self._found, timeout=self._timeout_ms / 1000)
        finally:
            self.stop()

    def stop(self):
        if self._stopped:
            return
        self._stopped = True
        self._context.remove_listener("page", self._on_page)


def begin_watching(context, predicate: Callable[[str], bool], timeout_ms: float) -> PageWatch:
    return PageWatch(context, predicate, timeout_ms)
