# designrelay/config.py
import os
import tempfile
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

from .errors import ConfigurationError

PACKAGE_DIR = Path(__file__).parent


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


@dataclass(frozen=True)
class Settings:
    github_username: Optional[str] = None
    github_password: Optional[str] = None
    webhook_url: Optional[str] = None
    port: int = 3000
    target_site_url: str = "https://v0.dev"
    headless: bool = True
    storage_dir: Path = PACKAGE_DIR / "storage"
    screenshot_dir: Path = Path(tempfile.gettempdir())
    trace_dir: Optional[Path] = None
    health_timezone: str = "America/Vancouver"
    enrich_prompt_with_images: bool = False
    max_prompt_images: int = 10
    log_level: str = "INFO"

    # Timings (seconds)
    navigation_timeout: float = 60.0
    auth_timeout: float = 90.0
    polling_timeout: float = 90.0
    polling_interval: float = 2.0
    settle_delay: float = 1.5
    http_timeout: float = 30.0

    @property
    def target_host(self) -> str:
        return urlparse(self.target_site_url).hostname or ""

    @property
    def navigation_timeout_ms(self) -> float:
        return self.navigation_timeout * 1000

    @property
    def auth_timeout_ms(self) -> float:
        return self.auth_timeout * 1000

    @property
    def log_dir(self) -> Path:
        return self.storage_dir / "logs"

    @property
    def image_dir(self) -> Path:
        return self.storage_dir / "images"

    def require_credentials(self):
        missing = []
        if not self.github_username:
            missing.append("GITHUB_USERNAME")
        if not self.github_password:
            missing.append("GITHUB_PASSWORD")
        if missing:
            raise ConfigurationError(missing)

    def require_webhook(self) -> str:
        if not self.webhook_url:
            raise ConfigurationError(["CLAY_WEBHOOK_URL"])
        return self.webhook_url


def load_settings() -> Settings:
    """Build settings from the environment, after loading a .env file if present."""
    load_dotenv()
    trace_dir = os.getenv("TRACE_DIR")
    return Settings(
        github_username=os.getenv("GITHUB_USERNAME") or None,
        github_password=os.getenv("GITHUB_PASSWORD") or None,
        webhook_url=os.getenv("CLAY_WEBHOOK_URL") or None,
        port=_env_int("PORT", 3000),
        target_site_url=os.getenv("TARGET_SITE_URL", "https://v0.dev"),
        headless=_env_bool("HEADLESS", True),
        storage_dir=Path(os.getenv("STORAGE_DIR") or PACKAGE_DIR / "storage"),
        screenshot_dir=Path(os.getenv("SCREENSHOT_DIR") or tempfile.gettempdir()),
        trace_dir=Path(trace_dir) if trace_dir else None,
        health_timezone=os.getenv("HEALTH_TIMEZONE", "America/Vancouver"),
        enrich_prompt_with_images=_env_bool("ENRICH_PROMPT_WITH_IMAGES", False),
        max_prompt_images=_env_int("MAX_PROMPT_IMAGES", 10),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        navigation_timeout=_env_float("NAVIGATION_TIMEOUT", 60.0),
        auth_timeout=_env_float("AUTH_TIMEOUT", 90.0),
        polling_timeout=_env_float("POLLING_TIMEOUT", 90.0),
        polling_interval=_env_float("POLLING_INTERVAL", 2.0),
        settle_delay=_env_float("SETTLE_DELAY", 1.5),
        http_timeout=_env_float("HTTP_TIMEOUT", 30.0),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
