"""Artifact naming and persistence: card image, original media, metadata record."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from socialshot.errors import ArtifactWriteError
from socialshot.media import ImageMaterializer, image_extension
from socialshot.models import (
    ArticlePost,
    Author,
    ForumPost,
    NormalizedPost,
    Platform,
    SocialPost,
    ThreadPost,
    VideoPost,
)

logger = logging.getLogger(__name__)

_FRAGMENT_RE = re.compile(r"[^A-Za-z0-9]+")


def url_fragment(url: str) -> str:
    return _FRAGMENT_RE.sub("", url.rstrip().split("/")[-1])[:20]


def card_name(base: str) -> str:
    return f"{base}-card.png"


def metadata_name(base: str) -> str:
    return f"{base}-metadata.json"


def _author_metadata(author: Author) -> dict[str, Any]:
    return {
        "name": author.name,
        "handle": author.handle,
        "title": author.title,
        "avatarUrl": author.avatar_url,
        "verified": author.verified,
    }


def build_metadata(post: NormalizedPost, card: str, downloaded: list[str]) -> dict[str, Any]:
    """Project a post onto its persisted JSON record; inline data URIs are never included."""

    payload: dict[str, Any] = {"platform": post.platform, "url": post.source_url, "card": card}

    if isinstance(post, ThreadPost):
        payload["tweets"] = [
            {
                "author": _author_metadata(tweet.author),
                "content": tweet.content,
                "timestamp": tweet.timestamp,
                "originalImageUrls": list(tweet.media_source_urls),
                "isMainTweet": tweet.is_main_tweet,
            }
            for tweet in post.tweets
        ]
    elif isinstance(post, SocialPost):
        payload["author"] = _author_metadata(post.author)
        payload["content"] = post.content
        payload["timestamp"] = post.timestamp
        payload["metrics"] = dict(post.metrics)
        if post.instance:
            payload["instance"] = post.instance
    elif isinstance(post, ForumPost):
        payload["author"] = _author_metadata(post.author)
        payload["content"] = post.content
        payload["timestamp"] = post.timestamp
        payload["postNumber"] = post.post_number
        payload["reactions"] = post.reactions
    elif isinstance(post, ArticlePost):
        payload["siteName"] = post.site_name
        payload["title"] = post.title
        payload["description"] = post.description
        payload["imageUrl"] = post.image_url
        payload["faviconUrl"] = post.favicon_url
    elif isinstance(post, VideoPost):
        payload["author"] = _author_metadata(post.author)
        payload["title"] = post.title
        payload["description"] = post.description
        payload["thumbnailUrl"] = post.thumbnail_url
        payload["video"] = {"id": post.video.id, "url": post.video.url, "authorUrl": post.video.author_url}
    else:  # pragma: no cover - exhaustive over NormalizedPost
        raise TypeError(f"Unsupported post type {type(post).__name__}")

    payload = {key: value for key, value in payload.items() if value not in (None, "")}
    payload["media"] = {"originalUrls": list(post.media_source_urls), "downloaded": downloaded}
    return payload


class ArtifactWriter:
    """Writes one artifact set per capture under a shared, collision-free base name."""

    def __init__(self, output_dir: Path, materializer: ImageMaterializer) -> None:
        self.output_dir = output_dir
        self._materializer = materializer
        self._reserved: set[str] = set()

    def reserve_base_name(self, url: str, platform: Platform, now: datetime | None = None) -> str:
        now = now or datetime.now(timezone.utc)
        stem = f"{platform.value}-{url_fragment(url)}-{int(now.timestamp() * 1000)}"

        base = stem
        counter = 2
        while base in self._reserved or (self.output_dir / card_name(base)).exists():
            base = f"{stem}-{counter}"
            counter += 1
        self._reserved.add(base)
        return base

    def _write(self, name: str, data: bytes) -> str:
        path = self.output_dir / name
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise ArtifactWriteError(f"Could not write {path}: {exc}") from exc
        return name

    def write_card(self, base: str, png: bytes) -> str:
        return self._write(card_name(base), png)

    async def download_media(self, base: str, urls: tuple[str, ...] | list[str]) -> list[str]:
        """Persist originals as `<base>-image-<n>.<ext>`; only successful downloads are listed."""

        names = [f"{base}-image-{index}.{image_extension(url)}" for index, url in enumerate(urls, start=1)]
        saved = await asyncio.gather(
            *(self._materializer.persist_original(url, self.output_dir / name) for url, name in zip(urls, names))
        )
        return [name for name, path in zip(names, saved) if path is not None]

    def write_metadata(self, base: str, post: NormalizedPost, card: str, downloaded: list[str]) -> str:
        payload = build_metadata(post, card, downloaded)
        data = json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")
        return self._write(metadata_name(base), data)

    def discard(self, names: list[str]) -> None:
        """Remove files of an abandoned artifact set; a capture is written whole or not at all."""

        for name in names:
            try:
                (self.output_dir / name).unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("Could not remove partial artifact %s: %s", name, exc)
