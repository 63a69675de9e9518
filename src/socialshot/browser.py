"""Ownership of the process-wide Playwright browser."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from socialshot.config import CaptureSettings
from socialshot.errors import BrowserLaunchError

if TYPE_CHECKING:
    from playwright.async_api import Browser, Page, Playwright

logger = logging.getLogger(__name__)


class BrowserSession:
    """Lazily launched Chromium shared by every capture of a run.

    Each caller gets its own browser context through `isolated_page`, so
    cookies and storage never leak between concurrent items.
    """

    def __init__(self, settings: CaptureSettings) -> None:
        self._settings = settings
        self._playwright: "Playwright | None" = None
        self._browser: "Browser | None" = None
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> "BrowserSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def started(self) -> bool:
        return self._browser is not None

    async def get_browser(self) -> "Browser":
        async with self._lock:
            if self._browser is not None:
                return self._browser

            logger.debug("Launching Chromium (headless=%s)", self._settings.headless)
            try:
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(headless=self._settings.headless)
            except PlaywrightError as exc:
                await self._stop_playwright()
                raise BrowserLaunchError(f"Could not launch Chromium: {exc}") from exc
            return self._browser

    @asynccontextmanager
    async def isolated_page(self, *, user_agent: str | None = None) -> AsyncIterator["Page"]:
        browser = await self.get_browser()
        if user_agent is not None:
            context = await browser.new_context(user_agent=user_agent)
        else:
            context = await browser.new_context()
        try:
            page = await context.new_page()
            yield page
        finally:
            await context.close()

    async def close(self) -> None:
        async with self._lock:
            if self._browser is not None:
                browser, self._browser = self._browser, None
                try:
                    await browser.close()
                except PlaywrightError as exc:
                    logger.warning("Browser did not close cleanly: %s", exc)
            await self._stop_playwright()

    async def _stop_playwright(self) -> None:
        if self._playwright is not None:
            playwright, self._playwright = self._playwright, None
            await playwright.stop()
