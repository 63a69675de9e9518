"""Dispatch from platform tag to the extraction strategy for that platform."""

from __future__ import annotations

from typing import Awaitable, Callable

from playwright.async_api import Error as PlaywrightError

from socialshot.context import ExtractionContext
from socialshot.errors import BrowserLaunchError, ClassificationMiss, ExtractionError, UpstreamUnavailable
from socialshot.html_sources import extract_article, extract_macrumors, extract_threads
from socialshot.models import NormalizedPost, Platform
from socialshot.social_api import extract_bluesky, extract_mastodon
from socialshot.twitter import extract_twitter, extract_twitter_thread
from socialshot.video import extract_tiktok, extract_youtube

Strategy = Callable[[str, ExtractionContext], Awaitable[NormalizedPost]]

STRATEGIES: dict[Platform, Strategy] = {
    Platform.TWITTER: extract_twitter,
    Platform.TWITTER_THREAD: extract_twitter_thread,
    Platform.MACRUMORS: extract_macrumors,
    Platform.BLUESKY: extract_bluesky,
    Platform.MASTODON: extract_mastodon,
    Platform.THREADS: extract_threads,
    Platform.YOUTUBE: extract_youtube,
    Platform.TIKTOK: extract_tiktok,
    Platform.ARTICLE: extract_article,
}


async def extract(url: str, platform: Platform, ctx: ExtractionContext) -> NormalizedPost:
    """Run the strategy registered for `platform` and return its normalized post."""

    strategy = STRATEGIES.get(platform)
    if strategy is None:
        raise ClassificationMiss(f"Unknown platform for {url}")

    try:
        return await strategy(url, ctx)
    except (ExtractionError, BrowserLaunchError):
        raise
    except PlaywrightError as exc:
        raise UpstreamUnavailable(f"Browser failure while extracting {url}: {exc}") from exc
    except Exception as exc:
        raise ExtractionError(f"Could not extract {platform.value} post from {url}: {exc}") from exc
