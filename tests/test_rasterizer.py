import asyncio
from contextlib import asynccontextmanager

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from socialshot.browser import BrowserSession
from socialshot.config import CaptureSettings
from socialshot.errors import RenderError, RenderTimeout
from socialshot.models import Author, SocialPost
from socialshot.rasterizer import CARD_SELECTOR, capture
from socialshot.renderer import render


class FakeLocator:
    def __init__(self, box) -> None:
        self.first = self
        self._box = box

    async def bounding_box(self):
        return self._box


class FakePage:
    def __init__(self, box=None, settle_error: Exception | None = None, load_error: Exception | None = None) -> None:
        self.box = box
        self.load_error = load_error
        self.settle_error = settle_error
        self.content: str | None = None
        self.selector: str | None = None
        self.screenshot_kwargs: dict | None = None

    async def set_content(self, html, **kwargs) -> None:
        if self.load_error is not None:
            raise self.load_error
        self.content = html

    async def wait_for_function(self, expression, **kwargs) -> None:
        if self.settle_error is not None:
            raise self.settle_error

    def locator(self, selector: str) -> FakeLocator:
        self.selector = selector
        return FakeLocator(self.box)

    async def screenshot(self, **kwargs) -> bytes:
        self.screenshot_kwargs = kwargs
        return b"png"


class FakeSession:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.closed = False

    @asynccontextmanager
    async def isolated_page(self, *, user_agent=None):
        try:
            yield self.page
        finally:
            self.closed = True


def test_capture_clips_card_with_padding() -> None:
    page = FakePage(box={"x": 20, "y": 20, "width": 550, "height": 300})
    session = FakeSession(page)

    png = asyncio.run(capture(session, "<div class='card'></div>", CaptureSettings(capture_padding_px=20)))

    assert png == b"png"
    assert page.selector == CARD_SELECTOR
    assert page.screenshot_kwargs == {
        "clip": {"x": 0, "y": 0, "width": 590, "height": 340},
        "omit_background": True,
        "full_page": True,
    }
    assert session.closed


def test_capture_clamps_clip_at_page_origin() -> None:
    page = FakePage(box={"x": 5, "y": 50, "width": 100, "height": 100})

    asyncio.run(capture(FakeSession(page), "<html></html>", CaptureSettings(capture_padding_px=20)))

    assert page.screenshot_kwargs["clip"] == {"x": 0, "y": 30, "width": 125, "height": 140}


def test_capture_without_card_is_render_error() -> None:
    session = FakeSession(FakePage(box=None))

    with pytest.raises(RenderError):
        asyncio.run(capture(session, "<html></html>", CaptureSettings()))
    assert session.closed


def test_capture_image_settle_timeout() -> None:
    page = FakePage(box={"x": 0, "y": 0, "width": 1, "height": 1}, settle_error=PlaywrightTimeoutError("timeout"))

    with pytest.raises(RenderTimeout):
        asyncio.run(capture(FakeSession(page), "<html></html>", CaptureSettings()))
    assert page.screenshot_kwargs is None


def test_capture_document_load_timeout_is_render_error() -> None:
    page = FakePage(box={"x": 0, "y": 0, "width": 1, "height": 1}, load_error=PlaywrightTimeoutError("timeout"))

    with pytest.raises(RenderError, match="did not finish loading") as excinfo:
        asyncio.run(capture(FakeSession(page), "<html></html>", CaptureSettings()))
    assert not isinstance(excinfo.value, RenderTimeout)
    assert page.screenshot_kwargs is None


def test_capture_card_with_broken_image_in_chromium(tmp_path, run_in_chromium) -> None:
    settings = CaptureSettings(output_dir=tmp_path, image_settle_timeout_ms=5_000)
    post = SocialPost(
        platform="bluesky",
        source_url="https://bsky.app/profile/alice.bsky.social/post/3k",
        author=Author(name="Alice", handle="alice.bsky.social"),
        content="The attached image is corrupt",
        media_inline=("data:image/png;base64,AAAA",),
    )
    html = render(post)

    async def scenario() -> bytes:
        async with BrowserSession(settings) as session:
            return await capture(session, html, settings)

    png = run_in_chromium(scenario)

    assert png.startswith(b"\x89PNG\r\n\x1a\n")
