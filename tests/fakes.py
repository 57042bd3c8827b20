"""Fake Playwright objects. Just enough surface for the relay; no real browser."""

import asyncio
import inspect
from contextlib import asynccontextmanager

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


async def _maybe_await(result):
    if inspect.isawaitable(result):
        await result


class FakeKeyboard:
    def __init__(self, page):
        self.page = page
        self.pressed = []
        self.on_press = {}

    async def press(self, key):
        self.pressed.append(key)
        if key in self.on_press:
            await _maybe_await(self.on_press[key]())


class FakePage:
    """
    `url` reads walk through `urls`; the last one sticks. Selectors listed in
    `missing` time out; `on_click` maps selectors to callbacks.
    """

    def __init__(self, urls=("about:blank",), context=None):
        self._urls = list(urls)
        self.context = context
        self.missing = set()
        self.on_click = {}
        self.calls = []
        self.filled = {}
        self.images = []
        self.goto_error = None
        self.screenshot_result = b"\x89PNG fake"
        self.screenshot_calls = 0
        self.keyboard = FakeKeyboard(self)
        self.url_reads = 0

    @property
    def url(self):
        self.url_reads += 1
        if len(self._urls) > 1:
            return self._urls.pop(0)
        return self._urls[0]

    def set_url(self, url):
        self._urls = [url]

    async def goto(self, url, wait_until=None, timeout=None):
        self.calls.append(("goto", url))
        if self.goto_error:
            raise self.goto_error
        self.set_url(url)

    async def wait_for_selector(self, selector, state=None, timeout=None):
        self.calls.append(("wait_for_selector", selector))
        if selector in self.missing:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def click(self, selector):
        self.calls.append(("click", selector))
        if selector in self.on_click:
            await _maybe_await(self.on_click[selector]())

    @asynccontextmanager
    async def expect_navigation(self, wait_until=None, timeout=None):
        yield

    async def wait_for_url(self, url, wait_until=None, timeout=None):
        current = self._urls[0]
        matched = url(current) if callable(url) else url == current
        if not matched:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for URL")

    async def fill(self, selector, value):
        self.calls.append(("fill", selector))
        self.filled.setdefault(selector, []).append(value)

    async def screenshot(self, full_page=False):
        self.screenshot_calls += 1
        if isinstance(self.screenshot_result, Exception):
            raise self.screenshot_result
        return self.screenshot_result

    async def eval_on_selector_all(self, selector, expression):
        return list(self.images)


class FakeTracing:
    def __init__(self):
        self.started = False
        self.stopped_path = None

    async def start(self, **kwargs):
        self.started = True

    async def stop(self, path=None):
        self.stopped_path = path


class FakeContext:
    def __init__(self, page=None):
        self.page = page or FakePage()
        self.page.context = self
        self.listeners = {}
        self.tracing = FakeTracing()
        self.pending = []

    async def new_page(self):
        return self.page

    def on(self, event, handler):
        self.listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event, handler):
        self.listeners[event].remove(handler)

    def emit(self, event, *args):
        for handler in list(self.listeners.get(event, [])):
            result = handler(*args)
            if inspect.isawaitable(result):
                self.pending.append(asyncio.ensure_future(result))


class FakeBrowser:
    def __init__(self, context=None, close_error=None):
        self.context = context or FakeContext()
        self.close_calls = 0
        self.close_error = close_error
        self.new_context_kwargs = None

    async def new_context(self, **kwargs):
        self.new_context_kwargs = kwargs
        return self.context

    async def close(self):
        self.close_calls += 1
        if self.close_error:
            raise self.close_error


class FakeChromium:
    def __init__(self, browser=None, launch_error=None):
        self.browser = browser or FakeBrowser()
        self.launch_error = launch_error
        self.launch_kwargs = None

    async def launch(self, **kwargs):
        self.launch_kwargs = kwargs
        if self.launch_error:
            raise self.launch_error
        return self.browser


class FakePlaywright:
    def __init__(self, chromium=None):
        self.chromium = chromium or FakeChromium()
        self.stop_calls = 0

    async def stop(self):
        self.stop_calls += 1


class FakePlaywrightFactory:
    """Stands in for `async_playwright`; each call hands out the next FakePlaywright."""

    def __init__(self, *instances):
        self.instances = list(instances) or [FakePlaywright()]
        self.started = []

    def __call__(self):
        factory = self

        class _Manager:
            async def start(self):
                pw = factory.instances[min(len(factory.started), len(factory.instances) - 1)]
                factory.started.append(pw)
                return pw

        return _Manager()


def launch_failure(message="Executable doesn't exist at /ms-playwright/chromium"):
    return PlaywrightError(message)
