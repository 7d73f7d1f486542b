from __future__ import annotations

from typing import Any

from domain.models import BookingConfig
from infra.browser.playwright_driver import PlaywrightPageDriver


class PlaywrightBrowserSession:
    """
    Owns the Playwright runtime, one Chromium browser and one context.

    Requires ``playwright`` to be installed and browsers set up via
    ``playwright install chromium``.

    Use as an async context manager, or call ``launch()`` and ``close()``.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        slow_mo_ms: int = 0,
        viewport_width: int = 1280,
        viewport_height: int = 800,
        default_timeout_ms: int = 30_000,
    ) -> None:
        self._headless = headless
        self._slow_mo_ms = slow_mo_ms
        self._viewport = {"width": viewport_width, "height": viewport_height}
        self._default_timeout_ms = default_timeout_ms
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None

    @classmethod
    def from_config(cls, config: BookingConfig) -> PlaywrightBrowserSession:
        return cls(
            headless=config.headless,
            slow_mo_ms=config.slow_mo_ms,
            viewport_width=config.viewport_width,
            viewport_height=config.viewport_height,
            default_timeout_ms=config.navigation_timeout_ms,
        )

    async def launch(self) -> None:
        from playwright.async_api import async_playwright

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self._headless,
            slow_mo=self._slow_mo_ms,
        )
        self._context = await self._browser.new_context(viewport=self._viewport)
        self._context.set_default_timeout(self._default_timeout_ms)

    async def new_driver(self) -> PlaywrightPageDriver:
        if self._context is None:
            raise RuntimeError("Browser not launched. Call launch() first.")
        page = await self._context.new_page()
        return PlaywrightPageDriver(page, self._context)

    async def close(self) -> None:
        if self._context:
            await self._context.close()
            self._context = None
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    async def __aenter__(self) -> PlaywrightBrowserSession:
        await self.launch()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
