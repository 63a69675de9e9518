"""Extraction from server-rendered HTML: forum posts, Threads and generic articles."""

from __future__ import annotations

import asyncio
import copy
import re
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from socialshot.context import ExtractionContext
from socialshot.errors import ContentNotFound
from socialshot.media import absolute_url, dedupe_preserve
from socialshot.models import MAX_INLINE_MEDIA, ArticlePost, Author, ForumPost, Platform, SocialPost

FORUM_EXCERPT_LIMIT = 500
DESCRIPTION_LIMIT = 300

_FORUM_POST_ID_RE = re.compile(r"post-(\d+)|#post-(\d+)|post=(\d+)")
_THREADS_TITLE_RE = re.compile(r"^(.+?)(?:\s+\(@([\w.]+)\))?\s+on\s+Threads", re.IGNORECASE)


def meta_content(soup: BeautifulSoup, *, prop: str | None = None, name: str | None = None) -> str:
    if prop is not None:
        tag = soup.find("meta", attrs={"property": prop})
    else:
        tag = soup.find("meta", attrs={"name": name})
    if tag is None:
        return ""
    return (tag.get("content") or "").strip()


def _text(node: Tag | None, selector: str) -> str:
    if node is None:
        return ""
    found = node.select_one(selector)
    return found.get_text(strip=True) if found is not None else ""


def parse_forum_post_id(url: str) -> str | None:
    match = _FORUM_POST_ID_RE.search(url)
    if not match:
        return None
    return next(group for group in match.groups() if group)


def find_forum_post(soup: BeautifulSoup, post_id: str | None) -> Tag | None:
    """Locate the post container by id, else the first message on the page."""

    if post_id:
        post = soup.select_one(f'#post-{post_id}, [data-content="post-{post_id}"]')
        if post is not None:
            return post

    body = soup.select_one(".message-body")
    if body is None:
        return None
    return body.find_parent(class_="message")


def forum_excerpt(post: Tag) -> str:
    """Body text with quoted replies removed, capped for the card."""

    wrapper = post.select_one(".message-body .bbWrapper")
    if wrapper is None:
        return ""
    body = copy.copy(wrapper)
    for quoted in body.select("blockquote, .bbCodeBlock"):
        quoted.decompose()
    return body.get_text().strip()[:FORUM_EXCERPT_LIMIT]


def forum_images(post: Tag, base_url: str) -> list[str]:
    wrapper = post.select_one(".message-body .bbWrapper")
    if wrapper is None:
        return []
    urls: list[str] = []
    for img in wrapper.find_all("img"):
        src = img.get("src") or ""
        if not src or "smilies" in src or "emoji" in src:
            continue
        urls.append(absolute_url(src, base_url))
    return dedupe_preserve(urls)


async def extract_macrumors(url: str, ctx: ExtractionContext) -> ForumPost:
    html = await ctx.fetcher.fetch_text(url)
    soup = BeautifulSoup(html, "html.parser")

    post = find_forum_post(soup, parse_forum_post_id(url))
    if post is None:
        raise ContentNotFound(f"No forum post found on {url}")

    time_node = post.select_one(".message-attribution time[datetime]") or post.select_one("time[datetime]")
    timestamp = time_node.get("datetime") if time_node is not None else None
    avatar_node = post.select_one(".message-avatar img")
    avatar_url = absolute_url(avatar_node.get("src") if avatar_node is not None else "", url)
    images = forum_images(post, url)

    avatar_inline, media_inline = await asyncio.gather(
        ctx.materializer.to_inline(avatar_url),
        ctx.materializer.inline_many(images, MAX_INLINE_MEDIA),
    )

    return ForumPost(
        source_url=url,
        author=Author(
            name=_text(post, ".message-name") or _text(post, ".message-userDetails .username") or "Unknown",
            title=_text(post, ".userTitle") or "member",
            avatar_inline=avatar_inline,
            avatar_url=avatar_url,
        ),
        content=forum_excerpt(post) or meta_content(soup, prop="og:description")[:FORUM_EXCERPT_LIMIT],
        media_inline=tuple(media_inline),
        media_source_urls=tuple(images),
        post_number=_text(post, ".message-attribution-opposite").replace("#", "").strip(),
        timestamp=timestamp or meta_content(soup, prop="article:published_time") or None,
        reactions=_text(post, ".reactionsBar-link"),
    )


async def extract_threads(url: str, ctx: ExtractionContext) -> SocialPost:
    """Threads exposes no public API; fall back to Open Graph tags."""

    html = await ctx.fetcher.fetch_text(url)
    soup = BeautifulSoup(html, "html.parser")

    title = meta_content(soup, prop="og:title")
    description = meta_content(soup, prop="og:description")
    image = meta_content(soup, prop="og:image")
    if not title and not description:
        raise ContentNotFound(f"No Threads metadata found on {url}")

    match = _THREADS_TITLE_RE.match(title)
    author_name = match.group(1) if match else "Unknown"
    handle = match.group(2) if match and match.group(2) else re.sub(r"\s", "", author_name.lower())

    return SocialPost(
        platform=Platform.THREADS.value,
        source_url=url,
        author=Author(
            name=author_name,
            handle=handle,
            avatar_inline=await ctx.materializer.to_inline(image),
            avatar_url=image,
        ),
        content=description,
    )


def _favicon_href(soup: BeautifulSoup) -> str:
    for rel in ("icon", "shortcut icon"):
        for link in soup.find_all("link", href=True):
            if " ".join(link.get("rel") or []).lower() == rel:
                return link["href"]
    return ""


async def extract_article(url: str, ctx: ExtractionContext) -> ArticlePost:
    html = await ctx.fetcher.fetch_text(url)
    soup = BeautifulSoup(html, "html.parser")

    page_title = soup.title.get_text(strip=True) if soup.title is not None else ""
    title = meta_content(soup, prop="og:title") or page_title or "Article"
    description = meta_content(soup, prop="og:description") or meta_content(soup, name="description")
    image = absolute_url(meta_content(soup, prop="og:image"), url)
    site_name = meta_content(soup, prop="og:site_name") or urlparse(url).hostname or ""
    favicon_url = absolute_url(_favicon_href(soup), url)

    image_inline, favicon_inline = await asyncio.gather(
        ctx.materializer.to_inline(image),
        ctx.materializer.to_inline(favicon_url),
    )

    return ArticlePost(
        source_url=url,
        site_name=site_name,
        title=title,
        description=description[:DESCRIPTION_LIMIT],
        image_inline=image_inline,
        image_url=image,
        favicon_inline=favicon_inline,
        favicon_url=favicon_url,
        media_source_urls=(image,) if image else (),
    )
