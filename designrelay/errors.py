# designrelay/errors.py
"""Error taxonomy for the relay. `str()` of any of these is what the webhook receives."""


class RelayError(Exception):
    """Base exception for all relay errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        return self.message


class ConfigurationError(RelayError):
    """Raised when required configuration is missing. No browser is launched."""

    def __init__(self, missing):
        names = ", ".join(missing)
        super().__init__(f"Missing required configuration: {names}", {"missing": list(missing)})


class LaunchError(RelayError):
    """Raised when the browser process cannot be started."""

    def __init__(self, reason: str = "Unknown error"):
        super().__init__(f"Failed to launch browser: {reason}", {"reason": reason})


class LoginTimeoutError(RelayError):
    """Raised when a login-flow step exceeds its wait bound."""

    def __init__(self, step: str, reason: str = "Timeout"):
        super().__init__(f"Login step '{step}' timed out: {reason}", {"step": step, "reason": reason})
        self.step = step


class CompletionTimeoutError(RelayError):
    def __init__(self, elapsed: float, last_url: str, screenshot_path: str = None):
        super().__init__(
            f"Timeout waiting for stable result URL via polling after {elapsed:.1f}s. Last URL seen: {last_url}",
            {"elapsed": elapsed, "last_url": last_url, "screenshot": screenshot_path},
        )
        self.elapsed = elapsed
        self.last_url = last_url
        self.screenshot_path = screenshot_path


class DeliveryError(RelayError):
    """Raised when the webhook POST fails."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to notify webhook {url}: {reason}", {"url": url, "reason": reason})


class ScrapeError(RelayError):
    """Raised when navigation or the DOM query fails during image extraction."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to extract images from {url}: {reason}", {"url": url, "reason": reason})
