# designrelay/images.py
"""Scrape <img> URLs from a page and optionally download them."""

import asyncio
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urldefrag, urljoin, urlparse
from uuid import uuid4

import requests
from playwright.async_api import Error as PlaywrightError

from .browser import SessionManager
from .config import Settings
from .errors import ScrapeError
from .models import DownloadedImage
from .utils import image_filename

log = logging.getLogger(__name__)

IMAGE_SOURCES_JS = "els => els.map(el => el.currentSrc || el.getAttribute('src') || '')"


def filter_image_urls(raw: Iterable[str], base_url: str) -> List[str]:
    """Absolute http(s) URLs without fragments, de-duplicated in first-seen order."""
    seen = []
    for src in raw:
        if not src or not src.strip():
            continue
        url, _ = urldefrag(urljoin(base_url, src.strip()))
        if urlparse(url).scheme not in ("http", "https"):
            continue
        if url not in seen:
            seen.append(url)
    return seen


async def extract_image_urls(website_url: str, sessions: SessionManager, settings: Settings) -> List[str]:
    scrape_id = f"scrape-{uuid4().hex[:8]}"
    log.info("[%s] Extracting images from %s", scrape_id, website_url)
    try:
        async with sessions.session(scrape_id) as session:
            page = session.page
            await page.goto(website_url, wait_until="networkidle", timeout=settings.navigation_timeout_ms)
            raw = await page.eval_on_selector_all("img", IMAGE_SOURCES_JS)
            base_url = page.url
    except PlaywrightError as e:
        raise ScrapeError(website_url, str(e).split("\n")[0]) from e
    urls = filter_image_urls(raw, base_url)
    log.info("[%s] Found %d images on %s", scrape_id, len(urls), website_url)
    return urls


def fetch_to_file(url: str, dest: Path, timeout: float = 30.0):
    r = requests.get(url, timeout=timeout)
    r.raise_for_status()
    dest.parent.mkdir(parents=True, exist_ok=True)
    with open(dest, "wb") as f:
        f.write(r.content)


async def _download_one(url: str, dest: Path, timeout: float) -> Optional[DownloadedImage]:
    try:
        await asyncio.to_thread(fetch_to_file, url, dest, timeout)
    except (requests.RequestException, OSError) as e:
        log.warning("Skipping image %s: %s", url, e)
        return None
    return DownloadedImage(original_url=url, local_path=str(dest))


async def download_images(website_url: str, sessions: SessionManager,
                          settings: Settings) -> Tuple[List[str], List[DownloadedImage]]:
    """Scrape then download into a fresh per-request directory. Returns (found urls, downloaded)."""
    urls = await extract_image_urls(website_url, sessions, settings)
    target = settings.image_dir / uuid4().hex
    results = await asyncio.gather(
        *(_download_one(url, target / image_filename(i, url), settings.http_timeout) for i, url in enumerate(urls))
    )
    downloaded = [r for r in results if r is not None]
    log.info("Downloaded %d/%d images from %s into %s", len(downloaded), len(urls), website_url, target)
    return urls, downloaded
