"""HTML card rendering for normalized posts."""

from __future__ import annotations

from datetime import datetime, timezone
from importlib.resources import files
from typing import Any, Callable

from dateutil.parser import isoparse
from jinja2 import Environment, FunctionLoader

from socialshot.config import Variant
from socialshot.models import ArticlePost, ForumPost, NormalizedPost, Platform, SocialPost, ThreadPost, VideoPost

CARD_WIDTH = 550
BODY_PADDING = 20

# (metric key, label) pairs shown under a social post, per platform.
SOCIAL_METRICS: dict[str, list[tuple[str, str]]] = {
    Platform.TWITTER.value: [("replies", "replies"), ("retweets", "reposts"), ("likes", "likes"), ("views", "views")],
    Platform.BLUESKY.value: [("replies", "replies"), ("reposts", "reposts"), ("likes", "likes")],
    Platform.MASTODON.value: [("replies", "replies"), ("boosts", "boosts"), ("favorites", "favorites")],
    Platform.THREADS.value: [],
}
_OPTIONAL_METRICS = {"views"}

VIDEO_ACCENTS = {Platform.YOUTUBE.value: "#ff0033", Platform.TIKTOK.value: "#fe2c55"}
VIDEO_LABELS = {Platform.YOUTUBE.value: "YouTube", Platform.TIKTOK.value: "TikTok"}


def compact_number(value: Any) -> str:
    """Format a counter the way social apps do: 1234 -> 1.2K, 2000000 -> 2M."""

    try:
        number = int(value or 0)
    except (TypeError, ValueError):
        return "0"
    for threshold, suffix in ((1_000_000, "M"), (1_000, "K")):
        if number >= threshold:
            return f"{number / threshold:.1f}".removesuffix(".0") + suffix
    return str(number)


def relative_time(value: str | None, now: datetime | None = None) -> str:
    if not value:
        return ""
    try:
        moment = isoparse(value)
    except (ValueError, OverflowError):
        return ""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    now = now or datetime.now(timezone.utc)
    minutes = int((now - moment).total_seconds() // 60)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m"
    if minutes < 24 * 60:
        return f"{minutes // 60}h"
    if minutes < 7 * 24 * 60:
        return f"{minutes // (24 * 60)}d"
    return f"{moment:%b} {moment.day}, {moment.year}"


def display_handle(handle: str) -> str:
    if not handle:
        return ""
    return handle if handle.startswith("@") else f"@{handle}"


def _load_template(name: str) -> str:
    return files("socialshot").joinpath("templates", name).read_text(encoding="utf-8")


def _environment() -> Environment:
    environment = Environment(
        loader=FunctionLoader(_load_template),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    environment.filters["compact_number"] = compact_number
    environment.filters["relative_time"] = relative_time
    return environment


_ENVIRONMENT = _environment()


def _render_template(name: str, variant: Variant, card_class: str, **context: Any) -> str:
    template = _ENVIRONMENT.get_template(name)
    return template.render(
        variant=variant.value,
        card_class=card_class,
        card_width=CARD_WIDTH,
        padding=BODY_PADDING,
        **context,
    )


def _social_metrics(post: SocialPost) -> list[tuple[str, Any]]:
    shown: list[tuple[str, Any]] = []
    for key, label in SOCIAL_METRICS.get(post.platform, []):
        value = post.metrics.get(key)
        if key in _OPTIONAL_METRICS and not value:
            continue
        shown.append((label, value or 0))
    return shown


def render_social(post: SocialPost, variant: Variant) -> str:
    return _render_template(
        "social.html.j2",
        variant,
        f"social {post.platform}",
        post=post,
        handle=display_handle(post.author.handle),
        metrics=_social_metrics(post),
    )


def render_thread(post: ThreadPost, variant: Variant) -> str:
    entries = [{"post": tweet, "handle": display_handle(tweet.author.handle)} for tweet in post.tweets]
    return _render_template("thread.html.j2", variant, "thread", entries=entries)


def render_forum(post: ForumPost, variant: Variant) -> str:
    return _render_template("forum.html.j2", variant, f"forum {post.platform}", post=post)


def render_article(post: ArticlePost, variant: Variant) -> str:
    return _render_template("article.html.j2", variant, "article", post=post)


def render_video(post: VideoPost, variant: Variant) -> str:
    if post.platform == Platform.TIKTOK.value:
        byline = post.author.handle or post.author.name
    else:
        byline = post.author.name
    return _render_template(
        "video.html.j2",
        variant,
        f"video {post.platform}",
        post=post,
        byline=byline,
        platform_label=VIDEO_LABELS[post.platform],
        accent=VIDEO_ACCENTS[post.platform],
    )


_RENDERERS: dict[type, Callable[[Any, Variant], str]] = {
    SocialPost: render_social,
    ThreadPost: render_thread,
    ForumPost: render_forum,
    ArticlePost: render_article,
    VideoPost: render_video,
}


def render(post: NormalizedPost, variant: Variant = Variant.STANDARD) -> str:
    """Render a self-contained HTML document whose single `.card` element holds the post."""

    renderer = _RENDERERS.get(type(post))
    if renderer is None:
        raise TypeError(f"No card layout for {type(post).__name__}")
    return renderer(post, variant)
