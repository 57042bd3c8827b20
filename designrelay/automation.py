# designrelay/automation.py
"""
Playwright automation for the design-generation site.

- Signs in through the identity broker's "Continue with GitHub" popup.
- Types the prompt, submits it and waits for the stable result URL.
- Every step logs to the job's JobLogger; the session is always released.
"""

import asyncio
from contextlib import contextmanager

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .browser import BrowserSession, SessionManager, begin_watching
from .completion import CompletionDetector
from .config import Settings
from .errors import LoginTimeoutError
from .logger import JobLogger
from .utils import hostname_matches

SIGN_IN_SELECTOR = 'a[href*="/api/auth/login"]'
GITHUB_BUTTON_SELECTOR = 'button[aria-label="Continue with GitHub"]'
GITHUB_USERNAME_SELECTOR = "#login_field"
GITHUB_PASSWORD_SELECTOR = "#password"
PROMPT_INPUT_SELECTOR = "textarea"
SUBMIT_SELECTOR = '[data-testid="prompt-form-send-button"]'

IDENTITY_POPUP_MARKER = "github.com/login"


def is_identity_popup(url: str) -> bool:
    return IDENTITY_POPUP_MARKER in url


@contextmanager
def login_step(step: str):
    """Turn a Playwright wait timeout inside the block into LoginTimeoutError(step)."""
    try:
        yield
    except PlaywrightTimeoutError as e:
        raise LoginTimeoutError(step, str(e).split("\n")[0]) from e


async def login(session: BrowserSession, settings: Settings, logger: JobLogger):
    page = session.page
    nav_timeout = settings.navigation_timeout_ms

    with login_step("open_site"):
        logger.log("goto", True, f"Navigating to {settings.target_site_url}")
        await page.goto(settings.target_site_url, wait_until="networkidle", timeout=nav_timeout)

    with login_step("sign_in"):
        await page.wait_for_selector(SIGN_IN_SELECTOR, state="visible", timeout=nav_timeout)
        logger.log("sign_in", True, "Clicking Sign In")
        async with page.expect_navigation(wait_until="networkidle", timeout=nav_timeout):
            await page.click(SIGN_IN_SELECTOR)

    with login_step("identity_broker"):
        await page.wait_for_selector(GITHUB_BUTTON_SELECTOR, state="visible", timeout=nav_timeout)

    # Subscribe before clicking: the popup can open before click() returns
    watch = begin_watching(session.context, is_identity_popup, nav_timeout)
    try:
        with login_step("identity_broker"):
            logger.log("github_button", True, "Clicking Continue with GitHub")
            await page.click(GITHUB_BUTTON_SELECTOR)
        popup = await watch.wait()
    except asyncio.TimeoutError as e:
        raise LoginTimeoutError("github_popup", "GitHub login window did not open") from e
    finally:
        watch.stop()
    session.popup = popup
    logger.log("github_popup", True, f"GitHub login window opened: {popup.url}")

    with login_step("github_credentials"):
        await popup.wait_for_selector(GITHUB_USERNAME_SELECTOR, state="visible", timeout=nav_timeout)
        await popup.fill(GITHUB_USERNAME_SELECTOR, settings.github_username)
        await popup.wait_for_selector(GITHUB_PASSWORD_SELECTOR, state="visible", timeout=nav_timeout)
        await popup.fill(GITHUB_PASSWORD_SELECTOR, settings.github_password)
        logger.log("github_submit", True, "Submitting GitHub login form")
        await popup.keyboard.press("Enter")

    host = settings.target_host
    with login_step("auth_callback"):
        await page.wait_for_url(lambda url: hostname_matches(url, host), wait_until="networkidle",
                                timeout=settings.auth_timeout_ms)
    session.popup = None
    logger.log("login_complete", True, f"Back on {host}: {page.url}")


async def submit_prompt(session: BrowserSession, prompt: str, settings: Settings, logger: JobLogger,
                        detector: CompletionDetector = None) -> str:
    """Type and submit the prompt, then return the stable result URL."""
    page = session.page
    nav_timeout = settings.navigation_timeout_ms
    if detector is None:
        detector = CompletionDetector(
            settings.target_host,
            timeout=settings.polling_timeout,
            interval=settings.polling_interval,
            settle_delay=settings.settle_delay,
            screenshot_dir=settings.screenshot_dir,
        )

    await page.wait_for_selector(PROMPT_INPUT_SELECTOR, state="visible", timeout=nav_timeout)
    await page.fill(PROMPT_INPUT_SELECTOR, "")
    await page.fill(PROMPT_INPUT_SELECTOR, prompt)
    logger.log("prompt_typed", True, f"Typed prompt ({len(prompt)} chars)")

    await page.wait_for_selector(SUBMIT_SELECTOR, state="visible", timeout=nav_timeout)
    url_before_submit = page.url
    await page.click(SUBMIT_SELECTOR)
    logger.log("prompt_submitted", True, f"Submitted from {url_before_submit}")

    result_url = await detector.wait_for_result(page, url_before_submit, job_id=logger.job_id)
    logger.log("completed", True, f"Generated design URL: {result_url}")
    return result_url


async def run_generation(job_id: str, prompt: str, settings: Settings, sessions: SessionManager,
                         logger: JobLogger, detector: CompletionDetector = None) -> str:
    """Full pipeline for one job: launch, log in, submit, detect. Returns the result URL."""
    settings.require_credentials()
    logger.log("start", True, "Launching Playwright automation")
    async with sessions.session(job_id) as session:
        await login(session, settings, logger)
        return await submit_prompt(session, prompt, settings, logger, detector)
