"""Map input URLs to the platform strategy that can capture them."""

from __future__ import annotations

import re
from urllib.parse import urlparse

from socialshot.models import Platform

_MASTODON_PATH_RE = re.compile(r"/@[\w.]+/\d+")


def _host_matches(host: str, *domains: str) -> bool:
    return any(host == domain or host.endswith(f".{domain}") for domain in domains)


def classify(url: str) -> Platform:
    """Return the platform tag for `url`, or UNSUPPORTED when nothing matches.

    Exact domain checks run before the Mastodon path heuristic, which would
    otherwise claim any `/@user/123` URL.
    """

    try:
        parsed = urlparse(url.strip().lower())
    except ValueError:
        return Platform.UNSUPPORTED

    if parsed.scheme not in {"http", "https"}:
        return Platform.UNSUPPORTED

    host = parsed.hostname or ""
    path = parsed.path

    if _host_matches(host, "x.com", "twitter.com"):
        return Platform.TWITTER
    if host == "forums.macrumors.com":
        return Platform.MACRUMORS
    if _host_matches(host, "threads.net", "threads.com"):
        return Platform.THREADS
    if _host_matches(host, "bsky.app"):
        return Platform.BLUESKY
    if _MASTODON_PATH_RE.search(path):
        return Platform.MASTODON
    if _host_matches(host, "youtube.com", "youtu.be"):
        return Platform.YOUTUBE
    if _host_matches(host, "tiktok.com"):
        return Platform.TIKTOK
    if _host_matches(host, "cultofmac.com") or host.startswith("newsletters."):
        return Platform.ARTICLE

    return Platform.UNSUPPORTED
