"""Playwright-based extraction of X posts and conversations from the embed widget."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from socialshot.context import ExtractionContext
from socialshot.errors import ContentNotFound, InvalidUrlShape, UpstreamUnavailable
from socialshot.media import dedupe_preserve, upgrade_twitter_media_url
from socialshot.models import MAX_INLINE_MEDIA, Author, Platform, SocialPost, ThreadEntry, ThreadPost

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)

EMBED_URL = "https://platform.twitter.com/embed/Tweet.html?id={tweet_id}&theme=dark"

_STATUS_ID_RE = re.compile(r"status(?:es)?/(\d+)")
_LIKES_RE = re.compile(r"(\d+(?:,\d+)*)\s*likes?\b", re.IGNORECASE)
_RETWEETS_RE = re.compile(r"(\d+(?:,\d+)*)\s*(?:retweets?|reposts?)\b", re.IGNORECASE)
_REPLIES_RE = re.compile(r"(\d+(?:,\d+)*)\s*repl(?:y|ies)\b", re.IGNORECASE)

_SINGLE_POST_JS = """
() => {
  const text = document.querySelector('[data-testid="tweetText"]')?.innerText ||
               document.querySelector('.Tweet-text')?.innerText ||
               document.querySelector('[lang]')?.innerText || '';
  const authorName = document.querySelector('[data-testid="User-Name"] a, .TweetAuthor-name')
                       ?.innerText?.split('\\n')[0] || '';
  const authorHandle = document.querySelector('[data-testid="User-Name"] a[href*="/"], .TweetAuthor-screenName')
                         ?.innerText || '';
  const authorLink = document.querySelector('a[href*="twitter.com/"], a[href*="x.com/"]')?.href || '';
  const avatar = document.querySelector('img[src*="profile_images"]')?.src || '';
  const images = Array.from(document.querySelectorAll('img[src*="pbs.twimg.com/media"]'))
                   .map(img => img.src).filter(Boolean);
  const timeEl = document.querySelector('time');
  return {
    text,
    authorName,
    authorHandle,
    authorLink,
    avatar,
    images,
    verified: !!document.querySelector('[data-testid="icon-verified"], svg[aria-label*="Verified"]'),
    timestamp: timeEl?.getAttribute('datetime') || timeEl?.innerText || '',
    bodyText: document.body?.innerText || '',
  };
}
"""

_THREAD_JS = """
() => Array.from(document.querySelectorAll('article, [data-tweet-id], .timeline-Tweet')).map(el => ({
  text: el.querySelector('[data-testid="tweetText"], .Tweet-text, [lang]')?.innerText || '',
  authorName: el.querySelector('[data-testid="User-Name"] a, .TweetAuthor-name, a[role="link"]')
                ?.innerText?.split('\\n')[0] || '',
  authorLink: el.querySelector('a[href*="/"]')?.href || '',
  avatar: el.querySelector('img[src*="profile_images"]')?.src || '',
  images: Array.from(el.querySelectorAll('img[src*="pbs.twimg.com/media"]')).map(img => img.src).filter(Boolean),
  timestamp: el.querySelector('time')?.getAttribute('datetime') || '',
}))
"""

_HANDLE_FROM_LINK_RE = re.compile(r"(?:twitter|x)\.com/(\w+)")


def parse_tweet_id(url: str) -> str:
    match = _STATUS_ID_RE.search(url)
    if not match:
        raise InvalidUrlShape(f"Invalid Twitter URL, expected '/status/<id>': {url}")
    return match.group(1)


def _count(pattern: re.Pattern[str], text: str) -> int:
    match = pattern.search(text)
    if not match:
        return 0
    return int(match.group(1).replace(",", ""))


def scrape_metrics(body_text: str | None) -> dict[str, int | None]:
    """Best-effort engagement counters from free text; anything unreadable is 0."""

    metrics: dict[str, int | None] = {"replies": 0, "retweets": 0, "likes": 0, "views": None}
    if not body_text:
        return metrics
    try:
        metrics["replies"] = _count(_REPLIES_RE, body_text)
        metrics["retweets"] = _count(_RETWEETS_RE, body_text)
        metrics["likes"] = _count(_LIKES_RE, body_text)
    except (ValueError, TypeError) as exc:
        logger.debug("Metric scraping failed: %s", exc)
        return {"replies": 0, "retweets": 0, "likes": 0, "views": None}
    return metrics


def _clean_handle(raw_handle: str, author_link: str) -> str:
    handle = raw_handle.strip().lstrip("@")
    if handle:
        return handle.split()[0]
    match = _HANDLE_FROM_LINK_RE.search(author_link or "")
    return match.group(1) if match else "unknown"


def select_thread_items(raw_items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep posts that carry text or media, in document order; the first is the main post."""

    selected: list[dict[str, Any]] = []
    for raw in raw_items:
        text = (raw.get("text") or "").strip()
        images = [src for src in raw.get("images") or [] if isinstance(src, str) and src.startswith("http")]
        if not text and not images:
            continue
        selected.append({**raw, "text": text, "images": images, "isMainTweet": not selected})
    return selected


async def _load_embed(page: "Page", embed_url: str, wait_selector: str, settle_s: float, ctx: ExtractionContext) -> None:
    try:
        await page.goto(embed_url, wait_until="networkidle", timeout=ctx.settings.navigation_timeout_ms)
    except PlaywrightTimeoutError as exc:
        raise ContentNotFound(f"Timed out loading {embed_url}") from exc
    except PlaywrightError as exc:
        raise UpstreamUnavailable(f"Could not load {embed_url}: {exc}") from exc

    try:
        await page.wait_for_selector(wait_selector, timeout=ctx.settings.selector_timeout_ms)
    except PlaywrightTimeoutError:
        logger.debug("Selector %r not found on %s, continuing", wait_selector, embed_url)

    # Late-loading media appear after the DOM is ready.
    await asyncio.sleep(settle_s)


async def extract_twitter(url: str, ctx: ExtractionContext) -> SocialPost:
    """Capture one X post from its embeddable representation."""

    tweet_id = parse_tweet_id(url)
    embed_url = EMBED_URL.format(tweet_id=tweet_id)

    async with ctx.browser.isolated_page(user_agent=ctx.settings.user_agent) as page:
        await _load_embed(
            page, embed_url, '[data-testid="tweetText"], .Tweet-text, article', ctx.settings.settle_delay_s, ctx
        )
        try:
            raw = await page.evaluate(_SINGLE_POST_JS)
        except PlaywrightError as exc:
            raise UpstreamUnavailable(f"Could not read tweet {tweet_id}: {exc}") from exc

    images = dedupe_preserve([src for src in raw.get("images") or [] if src.startswith("http")])
    text = (raw.get("text") or "").strip()
    author_name = (raw.get("authorName") or "").strip()
    if not text and not images and not author_name:
        raise ContentNotFound(f"Could not find tweet {tweet_id} in the embed page")

    avatar_url = raw.get("avatar") or ""
    avatar_inline, media_inline = await asyncio.gather(
        ctx.materializer.to_inline(avatar_url),
        ctx.materializer.inline_many(images, MAX_INLINE_MEDIA),
    )

    return SocialPost(
        platform=Platform.TWITTER.value,
        source_url=url,
        author=Author(
            name=author_name or "Unknown",
            handle=_clean_handle(raw.get("authorHandle") or "", raw.get("authorLink") or ""),
            avatar_inline=avatar_inline,
            avatar_url=avatar_url,
            verified=bool(raw.get("verified")),
        ),
        content=text,
        media_inline=tuple(media_inline),
        media_source_urls=tuple(upgrade_twitter_media_url(src) for src in images),
        metrics=scrape_metrics(raw.get("bodyText")),
        timestamp=raw.get("timestamp") or None,
    )


async def _thread_entry(raw: dict[str, Any], ctx: ExtractionContext) -> ThreadEntry:
    images = raw["images"][:MAX_INLINE_MEDIA]
    avatar_url = raw.get("avatar") or ""
    avatar_inline, media_inline = await asyncio.gather(
        ctx.materializer.to_inline(avatar_url),
        ctx.materializer.inline_many(images, MAX_INLINE_MEDIA),
    )
    return ThreadEntry(
        author=Author(
            name=(raw.get("authorName") or "").strip() or "Unknown",
            handle=_clean_handle("", raw.get("authorLink") or ""),
            avatar_inline=avatar_inline,
            avatar_url=avatar_url,
        ),
        content=raw["text"],
        media_inline=tuple(media_inline),
        media_source_urls=tuple(upgrade_twitter_media_url(src) for src in images),
        timestamp=raw.get("timestamp") or None,
        is_main_tweet=raw["isMainTweet"],
    )


async def extract_twitter_thread(url: str, ctx: ExtractionContext) -> ThreadPost:
    """Capture the conversation around an X post, preserving document order."""

    tweet_id = parse_tweet_id(url)
    embed_url = f"{EMBED_URL.format(tweet_id=tweet_id)}&conversation=all"

    async with ctx.browser.isolated_page(user_agent=ctx.settings.user_agent) as page:
        await _load_embed(page, embed_url, 'article, [data-testid="tweet"]', ctx.settings.thread_settle_delay_s, ctx)
        try:
            raw_items = await page.evaluate(_THREAD_JS)
        except PlaywrightError as exc:
            raise UpstreamUnavailable(f"Could not read thread {tweet_id}: {exc}") from exc

    items = select_thread_items(raw_items or [])
    if not items:
        raise ContentNotFound("No tweets found in thread")

    entries = await asyncio.gather(*(_thread_entry(item, ctx) for item in items))
    return ThreadPost(source_url=url, tweets=tuple(entries))
