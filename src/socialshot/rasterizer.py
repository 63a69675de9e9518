"""Rasterize rendered card documents into transparent PNG crops."""

from __future__ import annotations

import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from socialshot.browser import BrowserSession
from socialshot.config import CaptureSettings
from socialshot.errors import RenderError, RenderTimeout

logger = logging.getLogger(__name__)

CARD_SELECTOR = ".card"

# `complete` is true for loaded and for broken images alike.
_IMAGES_SETTLED_JS = "() => Array.from(document.images).every(img => img.complete)"


async def capture(session: BrowserSession, html: str, settings: CaptureSettings) -> bytes:
    """Load `html` in a fresh page and screenshot its card with padding."""

    padding = settings.capture_padding_px

    async with session.isolated_page() as page:
        try:
            await page.set_content(html, wait_until="networkidle", timeout=settings.navigation_timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise RenderError(
                f"Card document did not finish loading within {settings.navigation_timeout_ms} ms"
            ) from exc
        except PlaywrightError as exc:
            raise RenderError(f"Could not load card document: {exc}") from exc

        try:
            await page.wait_for_function(_IMAGES_SETTLED_JS, timeout=settings.image_settle_timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise RenderTimeout(
                f"Card images did not settle within {settings.image_settle_timeout_ms} ms"
            ) from exc
        except PlaywrightError as exc:
            raise RenderError(f"Could not inspect card images: {exc}") from exc

        try:
            box = await page.locator(CARD_SELECTOR).first.bounding_box()
            if box is None:
                raise RenderError("Card element is not visible in the rendered document")

            x = max(box["x"] - padding, 0)
            y = max(box["y"] - padding, 0)
            clip = {
                "x": x,
                "y": y,
                "width": box["x"] + box["width"] + padding - x,
                "height": box["y"] + box["height"] + padding - y,
            }
            logger.debug("Capturing card clip %s", clip)
            return await page.screenshot(clip=clip, omit_background=True, full_page=True)
        except PlaywrightError as exc:
            raise RenderError(f"Could not capture card: {exc}") from exc
