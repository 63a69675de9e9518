"""Media URL normalization, inline encoding and original-resolution downloads."""

from __future__ import annotations

import asyncio
import base64
import logging
import re
from pathlib import Path
from urllib.parse import urljoin, urlparse, urlunparse

from socialshot.errors import UpstreamUnavailable
from socialshot.fetcher import Fetcher

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_TYPE = "image/jpeg"
DEFAULT_EXTENSION = "jpg"

_PATH_EXTENSION_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp)", re.IGNORECASE)
_FORMAT_PARAM_RE = re.compile(r"format=(jpg|jpeg|png|gif|webp)", re.IGNORECASE)


def dedupe_preserve(items: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


def upgrade_twitter_media_url(url: str) -> str:
    """Rewrite an X media CDN URL to request the largest available rendition."""

    parsed = urlparse(url)
    if parsed.netloc != "pbs.twimg.com" or not parsed.path.startswith("/media"):
        return url
    return urlunparse((parsed.scheme or "https", parsed.netloc, parsed.path, "", "format=jpg&name=4096x4096", ""))


def image_extension(url: str) -> str:
    """Guess a file extension from the URL path, then a `format=` parameter."""

    match = _PATH_EXTENSION_RE.search(url) or _FORMAT_PARAM_RE.search(url)
    if match:
        return match.group(1).lower()
    return DEFAULT_EXTENSION


def absolute_url(src: str | None, base_url: str) -> str:
    if not src:
        return ""
    src = src.strip()
    if src.startswith("//"):
        return f"https:{src}"
    return urljoin(base_url, src)


class ImageMaterializer:
    """Turns remote image URLs into data URIs or files on disk.

    Neither operation raises: any failure resolves to None so callers can
    render a placeholder or skip the file.
    """

    def __init__(self, fetcher: Fetcher) -> None:
        self._fetcher = fetcher

    async def to_inline(self, url: str | None) -> str | None:
        if not url:
            return None
        try:
            resource = await self._fetcher.fetch_bytes(url)
        except UpstreamUnavailable as exc:
            logger.debug("Inline image unavailable for %s: %s", url, exc)
            return None

        content_type = (resource.content_type or DEFAULT_IMAGE_TYPE).split(";")[0].strip() or DEFAULT_IMAGE_TYPE
        encoded = base64.b64encode(resource.body).decode("ascii")
        return f"data:{content_type};base64,{encoded}"

    async def inline_many(self, urls: list[str], limit: int) -> list[str]:
        """Inline up to `limit` images concurrently, keeping order and dropping failures."""

        results = await asyncio.gather(*(self.to_inline(url) for url in urls[:limit]))
        return [item for item in results if item]

    async def persist_original(self, url: str | None, destination: Path) -> Path | None:
        if not url:
            return None
        try:
            resource = await self._fetcher.fetch_bytes(url)
        except UpstreamUnavailable as exc:
            logger.debug("Original image unavailable for %s: %s", url, exc)
            return None

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(resource.body)
        except OSError as exc:
            logger.debug("Could not write %s: %s", destination, exc)
            return None
        return destination
