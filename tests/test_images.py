"""Tests for image scraping and downloading."""

import asyncio
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from designrelay.browser import SessionManager
from designrelay.errors import ScrapeError
from designrelay.images import download_images, extract_image_urls, filter_image_urls
from fakes import FakeBrowser, FakeChromium, FakeContext, FakePage, FakePlaywright, FakePlaywrightFactory

PAGE = "https://example.com/about/"
RAW = [
    "/img/logo.png",
    "hero.jpg",
    "https://cdn.example.com/a.webp#frag",
    "https://cdn.example.com/a.webp",
    "data:image/gif;base64,R0lGODlhAQABAAAAACw=",
    "",
    "  ",
    "/img/logo.png",
]


def _sessions(settings, images):
    pages = []
    instances = []
    for _ in range(3):
        page = FakePage()
        page.images = list(images)
        pages.append(page)
        instances.append(FakePlaywright(FakeChromium(FakeBrowser(FakeContext(page)))))
    return SessionManager(settings, FakePlaywrightFactory(*instances)), pages, instances


def test_filter_image_urls():
    assert filter_image_urls(RAW, PAGE) == [
        "https://example.com/img/logo.png",
        "https://example.com/about/hero.jpg",
        "https://cdn.example.com/a.webp",
    ]


def test_scraping_twice_yields_same_set(settings):
    sessions, _, instances = _sessions(settings, RAW)

    async def scenario():
        first = await extract_image_urls(PAGE, sessions, settings)
        second = await extract_image_urls(PAGE, sessions, settings)
        return first, second

    first, second = asyncio.run(scenario())
    assert set(first) == set(second)
    assert len(first) == len(set(first))
    assert all(pw.chromium.browser.close_calls == 1 for pw in instances[:2])


def test_navigation_failure_raises_scrape_error(settings):
    sessions, pages, instances = _sessions(settings, RAW)
    pages[0].goto_error = PlaywrightTimeoutError("Timeout 60000ms exceeded")

    with pytest.raises(ScrapeError) as exc_info:
        asyncio.run(extract_image_urls(PAGE, sessions, settings))
    assert PAGE in str(exc_info.value)
    assert instances[0].chromium.browser.close_calls == 1


@patch("designrelay.images.requests.get")
def test_download_writes_files_and_skips_failures(mock_get, settings):
    good = MagicMock(content=b"png-bytes")

    def fake_get(url, timeout=None):
        if "hero" in url:
            raise requests.ConnectionError("reset")
        return good

    mock_get.side_effect = fake_get
    sessions, _, _ = _sessions(settings, RAW)

    urls, downloaded = asyncio.run(download_images(PAGE, sessions, settings))

    assert len(urls) == 3
    assert [d.original_url for d in downloaded] == [
        "https://example.com/img/logo.png",
        "https://cdn.example.com/a.webp",
    ]
    for image in downloaded:
        path = Path(image.local_path)
        assert path.exists()
        assert path.read_bytes() == b"png-bytes"
        assert path.parent.parent == settings.image_dir
    assert downloaded[0].local_path.endswith("00_logo.png")
