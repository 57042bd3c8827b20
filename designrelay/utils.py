# designrelay/utils.py
import re
import time
from pathlib import Path
from typing import Iterable
from urllib.parse import unquote, urlparse

PROMPT_TEMPLATE = (
    "1. Redesign this website: {url}. "
    "Use the actual images from the original website where appropriate."
)


def build_prompt(website_url: str) -> str:
    return PROMPT_TEMPLATE.format(url=website_url)


def enrich_prompt(prompt: str, image_urls: Iterable[str], limit: int = 10) -> str:
    """Append up to `limit` image URLs to the prompt. Unchanged if there are none."""
    picked = list(image_urls)[:limit]
    if not picked:
        return prompt
    lines = "\n".join(f"- {url}" for url in picked)
    return f"{prompt}\n\nImages from the original website:\n{lines}"


def hostname_matches(url: str, host: str) -> bool:
    """True if `url` is served from `host` or one of its subdomains."""
    hostname = urlparse(url).hostname or ""
    return hostname == host or hostname.endswith("." + host)


def timestamped_path(directory: Path, prefix: str, suffix: str = ".png") -> Path:
    return directory / f"{prefix}_{int(time.time() * 1000)}{suffix}"


def save_screenshot_blob(blob: bytes, out_path: Path):
    """Write screenshot bytes to out_path, creating parent dirs. Returns the str(path)."""
    if not isinstance(blob, bytes):
        raise TypeError("Unsupported blob type for screenshot")
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "wb") as f:
        f.write(blob)
    return str(out_path)


def image_filename(index: int, url: str) -> str:
    """Filesystem-safe, index-prefixed name for a downloaded image."""
    name = unquote(Path(urlparse(url).path).name) or "image"
    name = re.sub(r"[^A-Za-z0-9._-]", "_", name)[:100]
    return f"{index:02d}_{name}"
