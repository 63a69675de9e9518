import asyncio
from contextlib import asynccontextmanager
from pathlib import Path

import pytest

from socialshot.browser import BrowserSession
from socialshot.config import CaptureSettings
from socialshot.context import ExtractionContext
from socialshot.errors import BrowserLaunchError
from socialshot.fetcher import Fetcher
from socialshot.media import ImageMaterializer

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def settings(tmp_path: Path) -> CaptureSettings:
    return CaptureSettings(output_dir=tmp_path / "out", max_redirects=2)


@pytest.fixture
def fixture_html():
    def load(name: str) -> str:
        return (FIXTURES / name).read_text(encoding="utf-8")

    return load


@pytest.fixture
def extraction_context(settings: CaptureSettings):
    """Factory for an ExtractionContext whose HTTP client lives inside the running loop."""

    @asynccontextmanager
    async def build():
        async with Fetcher(settings) as fetcher:
            yield ExtractionContext(
                settings=settings,
                fetcher=fetcher,
                materializer=ImageMaterializer(fetcher),
                browser=BrowserSession(settings),
            )

    return build


@pytest.fixture
def run_in_chromium():
    """Run an async scenario that needs a real Chromium; skip when none is installed."""

    def run(scenario):
        try:
            return asyncio.run(scenario())
        except BrowserLaunchError as exc:
            pytest.skip(f"Chromium is not available: {exc}")

    return run
