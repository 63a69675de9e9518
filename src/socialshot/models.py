"""Domain models used by socialshot."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from socialshot.config import Variant

MAX_INLINE_MEDIA = 4


class Platform(str, Enum):
    TWITTER = "twitter"
    TWITTER_THREAD = "twitter-thread"
    MACRUMORS = "macrumors"
    BLUESKY = "bluesky"
    MASTODON = "mastodon"
    THREADS = "threads"
    YOUTUBE = "youtube"
    TIKTOK = "tiktok"
    ARTICLE = "article"
    UNSUPPORTED = "unsupported"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class CaptureRequest(_Frozen):
    """One input URL plus its presentation options."""

    url: str
    thread: bool = False
    variant: Variant = Variant.STANDARD


class Author(_Frozen):
    name: str = "Unknown"
    handle: str = ""
    title: str | None = None
    avatar_inline: str | None = None
    avatar_url: str = ""
    verified: bool = False


class SocialPost(_Frozen):
    """A short-form post from a microblogging platform."""

    platform: Literal["twitter", "threads", "bluesky", "mastodon"]
    source_url: str
    author: Author = Field(default_factory=Author)
    content: str = ""
    media_inline: tuple[str, ...] = Field(default=(), max_length=MAX_INLINE_MEDIA)
    media_source_urls: tuple[str, ...] = ()
    metrics: dict[str, int | None] = Field(default_factory=dict)
    timestamp: str | None = None
    instance: str | None = None

    @property
    def author_label(self) -> str:
        return self.author.name or "Unknown"


class ThreadEntry(_Frozen):
    """One post of a reconstructed conversation."""

    author: Author = Field(default_factory=Author)
    content: str = ""
    media_inline: tuple[str, ...] = Field(default=(), max_length=MAX_INLINE_MEDIA)
    media_source_urls: tuple[str, ...] = ()
    timestamp: str | None = None
    is_main_tweet: bool = False


class ThreadPost(_Frozen):
    """A conversation rendered as a chain of posts, in document order."""

    platform: Literal["twitter-thread"] = "twitter-thread"
    source_url: str
    tweets: tuple[ThreadEntry, ...] = Field(min_length=1)

    @property
    def media_source_urls(self) -> tuple[str, ...]:
        return tuple(url for tweet in self.tweets for url in tweet.media_source_urls)

    @property
    def author_label(self) -> str:
        return self.tweets[0].author.name or "Unknown"


class ForumPost(_Frozen):
    """A single forum reply located inside a server-rendered thread page."""

    platform: Literal["macrumors"] = "macrumors"
    source_url: str
    author: Author = Field(default_factory=Author)
    content: str = ""
    media_inline: tuple[str, ...] = Field(default=(), max_length=MAX_INLINE_MEDIA)
    media_source_urls: tuple[str, ...] = ()
    post_number: str = ""
    timestamp: str | None = None
    reactions: str = ""

    @property
    def author_label(self) -> str:
        return self.author.name or "Unknown"


class ArticlePost(_Frozen):
    """A link preview built from a page's metadata tags."""

    platform: Literal["article"] = "article"
    source_url: str
    site_name: str
    title: str = "Article"
    description: str = ""
    image_inline: str | None = None
    image_url: str = ""
    favicon_inline: str | None = None
    favicon_url: str = ""
    media_source_urls: tuple[str, ...] = ()

    @property
    def author_label(self) -> str:
        return self.site_name or "Unknown"


class VideoRef(_Frozen):
    id: str | None = None
    url: str
    author_url: str = ""


class VideoPost(_Frozen):
    """A video page summarized by its oEmbed data and thumbnail."""

    platform: Literal["youtube", "tiktok"]
    source_url: str
    author: Author = Field(default_factory=Author)
    title: str
    description: str = ""
    thumbnail_inline: str | None = None
    thumbnail_url: str = ""
    video: VideoRef
    media_source_urls: tuple[str, ...] = ()

    @property
    def author_label(self) -> str:
        return self.author.name or "Unknown"


NormalizedPost = Annotated[
    Union[SocialPost, ThreadPost, ForumPost, ArticlePost, VideoPost],
    Field(discriminator="platform"),
]


class _CamelFrozen(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class CaptureResult(_CamelFrozen):
    """Outcome of one URL's capture; success or a human-readable error."""

    success: bool
    source_url: str
    card_file_name: str | None = None
    media_file_names: tuple[str, ...] = ()
    metadata_file_name: str | None = None
    author_label: str | None = None
    error_message: str | None = None

    @classmethod
    def failed(cls, url: str, message: str) -> "CaptureResult":
        return cls(success=False, source_url=url, error_message=message)


class BatchTotals(_CamelFrozen):
    urls: int
    successful: int
    failed: int


class BatchReport(_CamelFrozen):
    """Final batch summary returned by run_capture."""

    elapsed_seconds: float
    output_directory: Path
    totals: BatchTotals
    results: list[CaptureResult] = Field(default_factory=list)

    @property
    def failures(self) -> list[CaptureResult]:
        return [result for result in self.results if not result.success]
