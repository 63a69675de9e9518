"""YouTube and TikTok extraction from oEmbed data with page meta tags as fallback."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs, quote, urlparse

from bs4 import BeautifulSoup

from socialshot.context import ExtractionContext
from socialshot.errors import UpstreamUnavailable
from socialshot.html_sources import DESCRIPTION_LIMIT, meta_content
from socialshot.models import Author, Platform, VideoPost, VideoRef

logger = logging.getLogger(__name__)

YOUTUBE_OEMBED = "https://www.youtube.com/oembed?url={url}&format=json"
TIKTOK_OEMBED = "https://www.tiktok.com/oembed?url={url}"
YOUTUBE_THUMBNAIL = "https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"

_PATH_ID_RE = re.compile(r"/(?:shorts|embed)/([^/?#]+)")


@dataclass
class _VideoFields:
    title: str = ""
    author_name: str = ""
    author_url: str = ""
    thumbnail_url: str = ""
    description: str = ""


def extract_youtube_id(url: str) -> str | None:
    try:
        parsed = urlparse(url)
    except ValueError:
        return None

    host = parsed.hostname or ""
    if host.endswith("youtu.be"):
        video_id = parsed.path.strip("/").split("/")[0]
        return video_id or None

    values = parse_qs(parsed.query).get("v")
    if values and values[0]:
        return values[0]

    match = _PATH_ID_RE.search(parsed.path)
    return match.group(1) if match else None


async def _oembed(endpoint: str, url: str, ctx: ExtractionContext) -> dict[str, Any]:
    try:
        data = await ctx.fetcher.fetch_json(endpoint.format(url=quote(url, safe="")))
    except UpstreamUnavailable as exc:
        logger.debug("oEmbed lookup failed for %s: %s", url, exc)
        return {}
    return data if isinstance(data, dict) else {}


async def _gather_fields(endpoint: str, url: str, default_title: str, ctx: ExtractionContext) -> _VideoFields:
    oembed = await _oembed(endpoint, url, ctx)
    fields = _VideoFields(
        title=oembed.get("title") or "",
        author_name=oembed.get("author_name") or "",
        author_url=oembed.get("author_url") or "",
        thumbnail_url=oembed.get("thumbnail_url") or "",
    )

    # oEmbed never carries a description, so the page is always consulted.
    try:
        html = await ctx.fetcher.fetch_text(url)
    except UpstreamUnavailable as exc:
        logger.debug("Page metadata unavailable for %s: %s", url, exc)
        return fields

    soup = BeautifulSoup(html, "html.parser")
    if not fields.title:
        page_title = soup.title.get_text(strip=True) if soup.title is not None else ""
        fields.title = meta_content(soup, prop="og:title") or page_title or default_title
    fields.description = meta_content(soup, name="description") or meta_content(soup, prop="og:description")
    if not fields.thumbnail_url:
        fields.thumbnail_url = meta_content(soup, prop="og:image")
    return fields


async def extract_youtube(url: str, ctx: ExtractionContext) -> VideoPost:
    video_id = extract_youtube_id(url)
    fields = await _gather_fields(YOUTUBE_OEMBED, url, "YouTube", ctx)
    if not fields.thumbnail_url and video_id:
        fields.thumbnail_url = YOUTUBE_THUMBNAIL.format(video_id=video_id)

    return VideoPost(
        platform=Platform.YOUTUBE.value,
        source_url=url,
        author=Author(
            name=fields.author_name or "YouTube",
            handle=re.sub(r"^https?://", "", fields.author_url),
        ),
        title=fields.title or "YouTube Video",
        description=fields.description[:DESCRIPTION_LIMIT],
        thumbnail_inline=await ctx.materializer.to_inline(fields.thumbnail_url),
        thumbnail_url=fields.thumbnail_url,
        video=VideoRef(id=video_id, url=url, author_url=fields.author_url),
        media_source_urls=(fields.thumbnail_url,) if fields.thumbnail_url else (),
    )


async def extract_tiktok(url: str, ctx: ExtractionContext) -> VideoPost:
    fields = await _gather_fields(TIKTOK_OEMBED, url, "TikTok", ctx)
    handle = ""
    if fields.author_name:
        handle = fields.author_name if fields.author_name.startswith("@") else f"@{fields.author_name}"

    return VideoPost(
        platform=Platform.TIKTOK.value,
        source_url=url,
        author=Author(name=fields.author_name or "TikTok", handle=handle),
        title=fields.title or "TikTok Video",
        description=fields.description[:DESCRIPTION_LIMIT],
        thumbnail_inline=await ctx.materializer.to_inline(fields.thumbnail_url),
        thumbnail_url=fields.thumbnail_url,
        video=VideoRef(url=url, author_url=fields.author_url),
        media_source_urls=(fields.thumbnail_url,) if fields.thumbnail_url else (),
    )
