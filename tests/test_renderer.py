import re
from datetime import datetime, timezone

import pytest

from socialshot.config import Variant
from socialshot.models import (
    ArticlePost,
    Author,
    ForumPost,
    SocialPost,
    ThreadEntry,
    ThreadPost,
    VideoPost,
    VideoRef,
)
from socialshot.renderer import compact_number, display_handle, relative_time, render

HOSTILE = '<script>alert("x")</script> & more'
PIXEL = "data:image/png;base64,iVBORw0KGgo="


def _hostile_posts():
    author = Author(name=HOSTILE, handle="alice", title=HOSTILE)
    return [
        SocialPost(platform="twitter", source_url="https://x.com/a/status/1", author=author, content=HOSTILE),
        SocialPost(platform="mastodon", source_url="https://m.example/@a/1", author=author, content=HOSTILE),
        ThreadPost(
            source_url="https://x.com/a/status/1",
            tweets=(ThreadEntry(author=author, content=HOSTILE, is_main_tweet=True),),
        ),
        ForumPost(source_url="https://forums.macrumors.com/t/1", author=author, content=HOSTILE, reactions=HOSTILE),
        ArticlePost(source_url="https://cultofmac.com/x", site_name=HOSTILE, title=HOSTILE, description=HOSTILE),
        VideoPost(
            platform="youtube",
            source_url="https://youtu.be/abc",
            author=author,
            title=HOSTILE,
            video=VideoRef(id="abc", url="https://youtu.be/abc"),
        ),
        VideoPost(
            platform="tiktok",
            source_url="https://www.tiktok.com/@a/video/1",
            author=Author(name=HOSTILE, handle=HOSTILE),
            title=HOSTILE,
            video=VideoRef(url="https://www.tiktok.com/@a/video/1"),
        ),
    ]


@pytest.mark.parametrize("variant", list(Variant))
@pytest.mark.parametrize("post", _hostile_posts(), ids=lambda post: post.platform)
def test_render_escapes_user_text(post, variant: Variant) -> None:
    html = render(post, variant)

    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "& more" not in html
    assert html.count('class="card ') == 1


def test_render_thread_draws_connectors_between_entries_only() -> None:
    post = ThreadPost(
        source_url="https://x.com/a/status/1",
        tweets=(
            ThreadEntry(author=Author(name="A"), content="First entry", is_main_tweet=True),
            ThreadEntry(author=Author(name="B"), content="Second entry"),
            ThreadEntry(author=Author(name="C"), content="Third entry"),
        ),
    )

    html = render(post)
    _, *blocks = re.split(r'<div class="tweet(?: main-tweet)?">', html)

    assert len(blocks) == 3
    assert html.count('class="connector-line"') == 2
    assert ['class="connector-line"' in block for block in blocks] == [True, True, False]
    assert html.index("First entry") < html.index("Second entry") < html.index("Third entry")
    assert html.count('class="tweet main-tweet"') == 1


def test_render_uses_placeholder_without_avatar_and_omits_empty_media() -> None:
    post = SocialPost(platform="bluesky", source_url="https://bsky.app/profile/a/post/1", content="Text only")

    html = render(post)

    assert 'class="avatar placeholder"' in html
    assert '<img class="avatar"' not in html
    assert 'class="media' not in html


def test_render_inlines_avatar_and_media_grid() -> None:
    post = SocialPost(
        platform="bluesky",
        source_url="https://bsky.app/profile/a/post/1",
        author=Author(name="Alice", avatar_inline=PIXEL),
        media_inline=(PIXEL, PIXEL),
    )

    html = render(post)

    assert '<img class="avatar"' in html
    assert 'class="media grid"' in html
    assert "https://" not in html.split("<body>")[1]


def test_render_twitter_metrics_hides_missing_views() -> None:
    metrics = {"replies": 7, "retweets": 1234, "likes": 2_000_000, "views": None}
    post = SocialPost(platform="twitter", source_url="https://x.com/a/status/1", metrics=metrics)

    html = render(post)

    assert "7 replies" in html
    assert "1.2K reposts" in html
    assert "2M likes" in html
    assert "views" not in html

    with_views = post.model_copy(update={"metrics": {**metrics, "views": 1500}})
    assert "1.5K views" in render(with_views)


def test_render_threads_post_has_no_metrics_row() -> None:
    post = SocialPost(platform="threads", source_url="https://www.threads.net/@a/post/1", content="hi")
    assert 'class="metrics"' not in render(post)


def test_render_variants_differ_in_theme() -> None:
    post = ArticlePost(source_url="https://cultofmac.com/x", site_name="Cult of Mac", title="Story")

    standard = render(post, Variant.STANDARD)
    bento = render(post, Variant.BENTO)

    assert "background: transparent" in bento
    assert "background: transparent" not in standard
    assert 'class="card article"' in standard


def test_render_video_labels_platform() -> None:
    post = VideoPost(
        platform="tiktok",
        source_url="https://www.tiktok.com/@a/video/1",
        author=Author(name="creator", handle="@creator"),
        title="Clip",
        video=VideoRef(url="https://www.tiktok.com/@a/video/1"),
    )

    html = render(post)

    assert "TikTok" in html
    assert "@creator" in html
    assert "#fe2c55" in html


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0, "0"), (999, "999"), (1000, "1K"), (1234, "1.2K"), (1_500_000, "1.5M"), (None, "0"), ("abc", "0")],
)
def test_compact_number(value, expected: str) -> None:
    assert compact_number(value) == expected


def test_relative_time_buckets() -> None:
    now = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

    assert relative_time("2024-06-15T11:59:30Z", now) == "just now"
    assert relative_time("2024-06-15T11:15:00Z", now) == "45m"
    assert relative_time("2024-06-15T07:00:00+00:00", now) == "5h"
    assert relative_time("2024-06-12T12:00:00Z", now) == "3d"
    assert relative_time("2024-01-05T12:00:00Z", now) == "Jan 5, 2024"
    assert relative_time("not a date", now) == ""
    assert relative_time(None, now) == ""


def test_display_handle_adds_single_at_sign() -> None:
    assert display_handle("alice") == "@alice"
    assert display_handle("@alice@mastodon.social") == "@alice@mastodon.social"
    assert display_handle("") == ""
