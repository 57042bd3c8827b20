"""Shared pytest fixtures. Fake Playwright objects live in fakes.py."""

import sys
from pathlib import Path

import pytest

# Make fakes.py importable from the test modules
sys.path.insert(0, str(Path(__file__).parent))

from designrelay.config import Settings
from designrelay.logger import JobLogger


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        github_username="octocat",
        github_password="hunter2",
        webhook_url="https://hooks.example.com/relay",
        target_site_url="https://v0.dev",
        storage_dir=tmp_path / "storage",
        screenshot_dir=tmp_path / "shots",
        navigation_timeout=1.0,
        auth_timeout=1.0,
        polling_timeout=10.0,
        polling_interval=0.0,
        settle_delay=0.0,
    )


@pytest.fixture
def job_logger(settings) -> JobLogger:
    return JobLogger("job-test", settings.log_dir)
