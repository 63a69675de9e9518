"""Batch orchestration: classify, extract, render, rasterize and write each URL."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from socialshot.browser import BrowserSession
from socialshot.classifier import classify
from socialshot.config import CaptureSettings
from socialshot.context import ExtractionContext
from socialshot.errors import BrowserLaunchError, CaptureError, ClassificationMiss
from socialshot.extractor import extract as default_extract
from socialshot.fetcher import Fetcher
from socialshot.media import ImageMaterializer
from socialshot.models import BatchReport, BatchTotals, CaptureRequest, CaptureResult, NormalizedPost, Platform
from socialshot.rasterizer import capture as default_capture
from socialshot.renderer import render
from socialshot.writer import ArtifactWriter, card_name, metadata_name

logger = logging.getLogger(__name__)

ExtractFn = Callable[[str, Platform, ExtractionContext], Awaitable[NormalizedPost]]
RasterizeFn = Callable[[BrowserSession, str, CaptureSettings], Awaitable[bytes]]


def strategy_platform(request: CaptureRequest, platform: Platform) -> Platform:
    if platform == Platform.TWITTER and request.thread:
        return Platform.TWITTER_THREAD
    return platform


class CapturePipeline:
    """Runs captures against shared, externally owned fetcher and browser resources."""

    def __init__(
        self,
        settings: CaptureSettings,
        fetcher: Fetcher,
        browser: BrowserSession,
        *,
        extract: ExtractFn = default_extract,
        rasterize: RasterizeFn = default_capture,
    ) -> None:
        self.settings = settings
        self.browser = browser
        materializer = ImageMaterializer(fetcher)
        self.context = ExtractionContext(
            settings=settings,
            fetcher=fetcher,
            materializer=materializer,
            browser=browser,
        )
        self.writer = ArtifactWriter(settings.output_dir, materializer)
        self._extract = extract
        self._rasterize = rasterize

    def request_for(self, url: str) -> CaptureRequest:
        return CaptureRequest(url=url, thread=self.settings.thread, variant=self.settings.variant)

    async def _capture(self, request: CaptureRequest) -> CaptureResult:
        platform = classify(request.url)
        if platform == Platform.UNSUPPORTED:
            raise ClassificationMiss(f"Unknown platform: {request.url}")

        post = await self._extract(request.url, strategy_platform(request, platform), self.context)
        html = render(post, request.variant)
        png = await self._rasterize(self.browser, html, self.settings)

        base = self.writer.reserve_base_name(request.url, platform)
        written = [card_name(base), metadata_name(base)]
        try:
            card = self.writer.write_card(base, png)
            downloaded = await self.writer.download_media(base, post.media_source_urls)
            written.extend(downloaded)
            metadata = self.writer.write_metadata(base, post, card, downloaded)
        except Exception:
            self.writer.discard(written)
            raise

        return CaptureResult(
            success=True,
            source_url=request.url,
            card_file_name=card,
            media_file_names=tuple(downloaded),
            metadata_file_name=metadata,
            author_label=post.author_label,
        )

    async def capture_one(self, request: CaptureRequest, index: int = 0, total: int = 1) -> CaptureResult:
        """Capture one URL; every per-item failure becomes a failed result."""

        prefix = f"[{index + 1}/{total}] " if total > 1 else ""
        logger.info("%sProcessing: %s", prefix, request.url)

        try:
            result = await self._capture(request)
        except BrowserLaunchError:
            raise
        except CaptureError as exc:
            logger.warning("%sFailed: %s (%s)", prefix, request.url, exc)
            return CaptureResult.failed(request.url, str(exc))
        except Exception as exc:
            logger.exception("%sUnexpected failure for %s", prefix, request.url)
            return CaptureResult.failed(request.url, f"Unexpected failure: {exc}")

        logger.info("%sCaptured %s -> %s", prefix, result.author_label, result.card_file_name)
        for name in result.media_file_names:
            logger.info("%s  Image: %s", prefix, name)
        logger.info("%s  Metadata: %s", prefix, result.metadata_file_name)
        return result

    async def run_batch(self, requests: list[CaptureRequest], concurrency: int) -> list[CaptureResult]:
        """Process requests in sequential waves of at most `concurrency` items."""

        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")

        results: list[CaptureResult] = []
        total = len(requests)
        for start in range(0, total, concurrency):
            wave = requests[start : start + concurrency]
            wave_results = await asyncio.gather(
                *(self.capture_one(request, start + offset, total) for offset, request in enumerate(wave))
            )
            results.extend(wave_results)
        return results


async def run_capture(urls: list[str], settings: CaptureSettings) -> BatchReport:
    """Capture every URL and summarize the batch; owns the run's network and browser resources."""

    output_dir = settings.output_dir.resolve()
    output_dir.mkdir(parents=True, exist_ok=True)
    settings = settings.model_copy(update={"output_dir": output_dir})

    started = time.monotonic()
    async with Fetcher(settings) as fetcher, BrowserSession(settings) as browser:
        pipeline = CapturePipeline(settings, fetcher, browser)
        requests = [pipeline.request_for(url) for url in urls]
        results = await pipeline.run_batch(requests, settings.concurrency)

    successful = sum(1 for result in results if result.success)
    return BatchReport(
        elapsed_seconds=round(time.monotonic() - started, 1),
        output_directory=output_dir,
        totals=BatchTotals(urls=len(urls), successful=successful, failed=len(results) - successful),
        results=results,
    )


def run_capture_sync(urls: list[str], settings: CaptureSettings) -> BatchReport:
    return asyncio.run(run_capture(urls, settings))