"""Bounded HTTP retrieval of HTML, JSON and binary resources."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

import httpx

from socialshot.config import CaptureSettings
from socialshot.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
JSON_ACCEPT = "application/json"
IMAGE_ACCEPT = "image/avif,image/webp,image/*,*/*;q=0.8"

_REDIRECT_STATUSES = {301, 302, 303, 307, 308}


@dataclass(frozen=True)
class FetchedResource:
    url: str
    status_code: int
    content_type: str | None
    body: bytes

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class Fetcher:
    """Thin wrapper around one shared httpx.AsyncClient.

    Redirects are followed manually, one hop at a time, so the hop count can be
    bounded. Every failure surfaces as UpstreamUnavailable.
    """

    def __init__(self, settings: CaptureSettings, *, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=settings.fetch_timeout_s,
            follow_redirects=False,
            headers={"User-Agent": settings.user_agent, "Accept-Language": "en-US,en;q=0.5"},
        )

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch(self, url: str, *, accept: str = HTML_ACCEPT) -> FetchedResource:
        current = url
        for _ in range(self._settings.max_redirects + 1):
            try:
                response = await self._client.get(current, headers={"Accept": accept})
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                raise UpstreamUnavailable(f"Request to {current!r} failed: {exc}") from exc

            location = response.headers.get("location")
            if response.status_code in _REDIRECT_STATUSES and location:
                current = urljoin(current, location)
                logger.debug("Following redirect to %s", current)
                continue

            if not response.is_success:
                raise UpstreamUnavailable(f"{current} responded with HTTP {response.status_code}")

            return FetchedResource(
                url=current,
                status_code=response.status_code,
                content_type=response.headers.get("content-type"),
                body=response.content,
            )

        raise UpstreamUnavailable(
            f"Too many redirects fetching {url} (limit {self._settings.max_redirects})"
        )

    async def fetch_text(self, url: str) -> str:
        resource = await self.fetch(url, accept=HTML_ACCEPT)
        return resource.text

    async def fetch_json(self, url: str) -> Any:
        resource = await self.fetch(url, accept=JSON_ACCEPT)
        try:
            return json.loads(resource.body)
        except ValueError as exc:
            raise UpstreamUnavailable(f"Invalid JSON response from {url}") from exc

    async def fetch_bytes(self, url: str) -> FetchedResource:
        return await self.fetch(url, accept=IMAGE_ACCEPT)
