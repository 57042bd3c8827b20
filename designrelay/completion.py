# designrelay/completion.py
"""
Completion detection after a prompt is submitted.

The target app may move to an intermediate URL right after submit and only
later to the final result URL. A result URL counts as final when it differs
from the URL observed right after submit; the one exception is an immediate
jump from the pre-submit URL straight to a result URL.

`advance()` is the pure transition function; `CompletionDetector` drives it
with a clock and a sleep so it can be tested without a browser.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Optional

from .errors import CompletionTimeoutError
from .utils import save_screenshot_blob, timestamped_path

log = logging.getLogger(__name__)

RESULT_PATH_MARKER = "/chat/"


class CompletionState(str, Enum):
    NOT_SUBMITTED = "not_submitted"
    AWAITING_FIRST_TRANSITION = "awaiting_first_transition"
    AWAITING_SECOND_TRANSITION = "awaiting_second_transition"
    COMPLETE = "complete"
    TIMED_OUT = "timed_out"


TERMINAL_STATES = (CompletionState.COMPLETE, CompletionState.TIMED_OUT)


@dataclass(frozen=True)
class NavigationState:
    url_before_submit: str
    url_after_submit: str
    current_url: str
    elapsed: float = 0.0


def is_result_url(url: str, host: str, marker: str = RESULT_PATH_MARKER) -> bool:
    return f"{host}{marker}" in url


def advance(state: CompletionState, nav: NavigationState, host: str, timeout: float,
            marker: str = RESULT_PATH_MARKER) -> CompletionState:
    if state in TERMINAL_STATES:
        return state
    url = nav.current_url
    is_result = is_result_url(url, host, marker)

    if state is CompletionState.NOT_SUBMITTED:
        # First look, taken right after the settle delay
        if is_result and url != nav.url_before_submit:
            return CompletionState.COMPLETE
        if url == nav.url_before_submit:
            return CompletionState.AWAITING_FIRST_TRANSITION
        return CompletionState.AWAITING_SECOND_TRANSITION

    if is_result and url != nav.url_after_submit:
        return CompletionState.COMPLETE
    if nav.elapsed >= timeout:
        return CompletionState.TIMED_OUT
    if state is CompletionState.AWAITING_FIRST_TRANSITION and url != nav.url_before_submit:
        return CompletionState.AWAITING_SECOND_TRANSITION
    return state


class CompletionDetector:
    def __init__(self, host: str, timeout: float = 90.0, interval: float = 2.0, settle_delay: float = 1.5,
                 screenshot_dir: Optional[Path] = None, marker: str = RESULT_PATH_MARKER,
                 sleep: Callable[[float], Awaitable] = asyncio.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.host = host
        self.timeout = timeout
        self.interval = interval
        self.settle_delay = settle_delay
        self.screenshot_dir = screenshot_dir
        self.marker = marker
        self._sleep = sleep
        self._clock = clock

    async def wait_for_result(self, page, url_before_submit: str, job_id: str = "-") -> str:
        """Return the stable result URL, or raise CompletionTimeoutError."""
        await self._sleep(self.settle_delay)
        url_after_submit = page.url
        log.info("[%s] URL immediately after submit: %s", job_id, url_after_submit)

        nav = NavigationState(url_before_submit, url_after_submit, url_after_submit)
        state = advance(CompletionState.NOT_SUBMITTED, nav, self.host, self.timeout, self.marker)
        if state is CompletionState.COMPLETE:
            log.info("[%s] Result URL detected immediately after submit: %s", job_id, url_after_submit)
            return url_after_submit

        log.info("[%s] Polling for a stable result URL (different from %s)...", job_id, url_after_submit)
        start = self._clock()
        last_report = start
        while True:
            now = self._clock()
            nav = replace(nav, current_url=page.url, elapsed=now - start)
            previous, state = state, advance(state, nav, self.host, self.timeout, self.marker)
            if state is not previous:
                log.info("[%s] %s -> %s at %s", job_id, previous.value, state.value, nav.current_url)
            if state in TERMINAL_STATES:
                break
            if now - last_report >= 10:
                log.info("[%s] Still waiting... current URL: %s", job_id, nav.current_url)
                last_report = now
            await self._sleep(self.interval)

        if state is CompletionState.COMPLETE:
            log.info("[%s] Stable result URL detected: %s", job_id, nav.current_url)
            return nav.current_url

        log.error("[%s] Timeout after %.1fs waiting for a stable result URL. Last URL: %s",
                  job_id, nav.elapsed, nav.current_url)
        screenshot = await self.capture_timeout_screenshot(page, job_id)
        raise CompletionTimeoutError(nav.elapsed, nav.current_url, screenshot)

    async def capture_timeout_screenshot(self, page, job_id: str = "-") -> Optional[str]:
        """Best effort full-page screenshot. Failure is logged and returns None."""
        if self.screenshot_dir is None:
            return None
        try:
            data = await page.screenshot(full_page=True)
            path = save_screenshot_blob(data, timestamped_path(self.screenshot_dir, "timeout_snapshot"))
        except Exception as e:
            log.warning("[%s] Failed to capture screenshot on timeout: %s", job_id, e)
            return None
        log.info("[%s] Screenshot captured on timeout: %s", job_id, path)
        return path
