"""Extraction of Bluesky and Mastodon posts through their public JSON APIs."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any
from urllib.parse import quote, urlparse

from bs4 import BeautifulSoup

from socialshot.context import ExtractionContext
from socialshot.errors import ContentNotFound, InvalidUrlShape, UpstreamUnavailable
from socialshot.media import dedupe_preserve
from socialshot.models import MAX_INLINE_MEDIA, Author, Platform, SocialPost

logger = logging.getLogger(__name__)

BLUESKY_API = "https://public.api.bsky.app/xrpc"
BRIDGED_HANDLE_SUFFIX = ".ap.brid.gy"

_BLUESKY_PATH_RE = re.compile(r"profile/([^/]+)/post/([^/?#]+)")
_MASTODON_PATH_RE = re.compile(r"/@[\w.]+/(\d+)")
_WHITESPACE_RE = re.compile(r"\s+")


def parse_bluesky_url(url: str) -> tuple[str, str]:
    match = _BLUESKY_PATH_RE.search(url)
    if not match:
        raise InvalidUrlShape(f"Invalid Bluesky URL, expected 'profile/<handle>/post/<id>': {url}")
    return match.group(1), match.group(2)


def _post_thread_url(at_uri: str) -> str:
    return f"{BLUESKY_API}/app.bsky.feed.getPostThread?uri={quote(at_uri, safe='')}&depth=0"


def bluesky_media_urls(post: dict[str, Any]) -> list[str]:
    embed = post.get("embed") or {}
    images = list(embed.get("images") or [])
    media = embed.get("media") or {}
    images.extend(media.get("images") or [])

    urls = [image.get("fullsize") or image.get("thumb") for image in images]
    external = embed.get("external") or {}
    if external.get("thumb"):
        urls.append(external["thumb"])
    return dedupe_preserve([url for url in urls if url])


async def _fetch_thread_post(at_uri: str, ctx: ExtractionContext) -> dict[str, Any] | None:
    data = await ctx.fetcher.fetch_json(_post_thread_url(at_uri))
    thread = (data or {}).get("thread") or {}
    return thread.get("post")


async def _format_bluesky_post(post: dict[str, Any], url: str, ctx: ExtractionContext) -> SocialPost:
    author = post.get("author") or {}
    record = post.get("record") or {}
    avatar_url = author.get("avatar") or ""
    media_urls = bluesky_media_urls(post)

    avatar_inline, media_inline = await asyncio.gather(
        ctx.materializer.to_inline(avatar_url),
        ctx.materializer.inline_many(media_urls, MAX_INLINE_MEDIA),
    )

    return SocialPost(
        platform=Platform.BLUESKY.value,
        source_url=url,
        author=Author(
            name=author.get("displayName") or author.get("handle") or "Unknown",
            handle=author.get("handle") or "unknown",
            avatar_inline=avatar_inline,
            avatar_url=avatar_url,
        ),
        content=record.get("text") or "",
        media_inline=tuple(media_inline),
        media_source_urls=tuple(media_urls),
        metrics={
            "replies": post.get("replyCount") or 0,
            "reposts": post.get("repostCount") or 0,
            "likes": post.get("likeCount") or 0,
        },
        timestamp=record.get("createdAt") or post.get("indexedAt"),
    )


async def extract_bluesky(url: str, ctx: ExtractionContext) -> SocialPost:
    """Resolve the handle to a DID, then fetch the post by its AT URI."""

    handle, post_id = parse_bluesky_url(url)

    if handle.endswith(BRIDGED_HANDLE_SUFFIX):
        # Bridged accounts often fail handle resolution; try the handle-based URI first.
        try:
            post = await _fetch_thread_post(f"at://{handle}/app.bsky.feed.post/{post_id}", ctx)
        except UpstreamUnavailable as exc:
            logger.debug("Direct lookup for bridged handle %s failed: %s", handle, exc)
            post = None
        if post:
            return await _format_bluesky_post(post, url, ctx)

    resolved = await ctx.fetcher.fetch_json(
        f"{BLUESKY_API}/com.atproto.identity.resolveHandle?handle={quote(handle, safe='')}"
    )
    did = (resolved or {}).get("did")
    if not did:
        raise ContentNotFound(f"Could not resolve Bluesky handle {handle}")

    post = await _fetch_thread_post(f"at://{did}/app.bsky.feed.post/{post_id}", ctx)
    if not post:
        raise ContentNotFound(f"Bluesky post {post_id} not found")
    return await _format_bluesky_post(post, url, ctx)


def parse_mastodon_url(url: str) -> tuple[str, str]:
    parsed = urlparse(url)
    match = _MASTODON_PATH_RE.search(parsed.path)
    if not parsed.hostname or not match:
        raise InvalidUrlShape(f"Invalid Mastodon URL, expected '/@<user>/<id>': {url}")
    return parsed.hostname, match.group(1)


def strip_html(markup: str | None) -> str:
    if not markup:
        return ""
    text = BeautifulSoup(markup, "html.parser").get_text(" ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def mastodon_media_urls(status: dict[str, Any]) -> list[str]:
    urls: list[str] = []
    for media in status.get("media_attachments") or []:
        kind = media.get("type")
        if kind in {"image", "gifv"}:
            urls.append(media.get("url") or media.get("preview_url"))
        elif kind == "video":
            urls.append(media.get("preview_url"))
    return [url for url in urls if url]


async def extract_mastodon(url: str, ctx: ExtractionContext) -> SocialPost:
    instance, status_id = parse_mastodon_url(url)
    status = await ctx.fetcher.fetch_json(f"https://{instance}/api/v1/statuses/{status_id}")
    if not isinstance(status, dict) or "id" not in status:
        raise ContentNotFound(f"Mastodon status {status_id} not found on {instance}")

    account = status.get("account") or {}
    avatar_url = account.get("avatar") or ""
    media_urls = mastodon_media_urls(status)

    avatar_inline, media_inline = await asyncio.gather(
        ctx.materializer.to_inline(avatar_url),
        ctx.materializer.inline_many(media_urls, MAX_INLINE_MEDIA),
    )

    username = account.get("username") or "unknown"
    return SocialPost(
        platform=Platform.MASTODON.value,
        source_url=url,
        instance=instance,
        author=Author(
            name=account.get("display_name") or account.get("username") or "Unknown",
            handle=f"@{username}@{instance}",
            avatar_inline=avatar_inline,
            avatar_url=avatar_url,
        ),
        content=strip_html(status.get("content")),
        media_inline=tuple(media_inline),
        media_source_urls=tuple(media_urls),
        metrics={
            "replies": status.get("replies_count") or 0,
            "boosts": status.get("reblogs_count") or 0,
            "favorites": status.get("favourites_count") or 0,
        },
        timestamp=status.get("created_at"),
    )
