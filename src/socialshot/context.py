"""Shared collaborators handed to every extraction strategy."""

from __future__ import annotations

from dataclasses import dataclass

from socialshot.browser import BrowserSession
from socialshot.config import CaptureSettings
from socialshot.fetcher import Fetcher
from socialshot.media import ImageMaterializer


@dataclass(frozen=True)
class ExtractionContext:
    settings: CaptureSettings
    fetcher: Fetcher
    materializer: ImageMaterializer
    browser: BrowserSession
