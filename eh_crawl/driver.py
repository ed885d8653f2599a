"""Page drivers: the browser capability the crawler depends on."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from playwright.async_api import Browser, Page, Playwright, async_playwright

logger = logging.getLogger("eh_crawl")


class PageDriver(Protocol):
    """One page/tab, reused serially for the whole crawl."""

    async def goto(self, url: str) -> None:
        """Navigate to ``url`` and wait until the network is idle."""

    async def content(self) -> str:
        """Return the rendered HTML of the current page."""

    async def evaluate(self, script: str) -> Any:
        """Run a JavaScript function expression in the current page."""


class PlaywrightDriver:
    """Headless Chromium page driven through Playwright."""

    def __init__(self, navigation_timeout: float = 30.0) -> None:
        self.navigation_timeout = navigation_timeout
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None

    async def start(self) -> None:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=True)
        self._page = await self._browser.new_page()
        self._page.set_default_timeout(self.navigation_timeout * 1000)

    async def close(self) -> None:
        try:
            if self._browser:
                await self._browser.close()
        finally:
            if self._playwright:
                await self._playwright.stop()
            self._browser = None
            self._page = None
            self._playwright = None

    async def __aenter__(self) -> "PlaywrightDriver":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("PlaywrightDriver has not been started")
        return self._page

    async def goto(self, url: str) -> None:
        logger.debug("Loading %s", url)
        await self.page.goto(url, wait_until="networkidle")

    async def content(self) -> str:
        return await self.page.content()

    async def evaluate(self, script: str) -> Any:
        return await self.page.evaluate(script)
