import pytest

from socialshot.errors import InvalidUrlShape
from socialshot.twitter import EMBED_URL, parse_tweet_id, scrape_metrics, select_thread_items


def test_parse_tweet_id_accepts_x_and_twitter_hosts() -> None:
    assert parse_tweet_id("https://x.com/alice/status/12345") == "12345"
    assert parse_tweet_id("https://twitter.com/bob/status/9999?s=20") == "9999"
    assert parse_tweet_id("https://twitter.com/bob/statuses/777") == "777"


def test_parse_tweet_id_rejects_url_without_status() -> None:
    with pytest.raises(InvalidUrlShape):
        parse_tweet_id("https://x.com/alice/post/12345")


def test_embed_url_uses_dark_theme() -> None:
    assert EMBED_URL.format(tweet_id="42") == "https://platform.twitter.com/embed/Tweet.html?id=42&theme=dark"


def test_scrape_metrics_reads_counters() -> None:
    metrics = scrape_metrics("Alice @alice\nhello\n1,234 Likes 56 Retweets 7 replies")
    assert metrics == {"replies": 7, "retweets": 56, "likes": 1234, "views": None}


def test_scrape_metrics_accepts_repost_wording() -> None:
    assert scrape_metrics("12 reposts")["retweets"] == 12


@pytest.mark.parametrize("body", [None, "", "no counters here"])
def test_scrape_metrics_defaults_to_zero(body) -> None:
    assert scrape_metrics(body) == {"replies": 0, "retweets": 0, "likes": 0, "views": None}


def test_select_thread_items_keeps_order_and_flags_first_as_main() -> None:
    raw = [
        {"text": "  ", "images": []},
        {"text": "first", "images": []},
        {"text": "", "images": ["https://pbs.twimg.com/media/a.jpg", "blob:xyz"]},
        {"text": "third", "images": None},
    ]

    items = select_thread_items(raw)

    assert [item["text"] for item in items] == ["first", "", "third"]
    assert [item["isMainTweet"] for item in items] == [True, False, False]
    assert items[1]["images"] == ["https://pbs.twimg.com/media/a.jpg"]


def test_select_thread_items_empty_when_nothing_has_content() -> None:
    assert select_thread_items([{"text": "", "images": []}, {}]) == []
