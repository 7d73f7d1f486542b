from __future__ import annotations

import asyncio
from typing import Callable

from domain.errors import PopupTimeoutError
from domain.ports import LoggerPort, PageDriverPort

POPUP_CEILING_MS = 10_000


class PendingPopup:
    """
    A one-shot new-window listener armed before the triggering click.

    ``resolve`` yields the popup's driver once it reached ``domcontentloaded``
    or raises ``PopupTimeoutError``; never both.
    """

    def __init__(
        self,
        *,
        driver: PageDriverPort,
        timeout_ms: int,
        logger: LoggerPort,
    ) -> None:
        self._timeout_ms = timeout_ms
        self._logger = logger
        self._future: asyncio.Future[PageDriverPort] = asyncio.get_running_loop().create_future()
        self._unsubscribe: Callable[[], None] | None = driver.subscribe_new_page(self._on_page)

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    def _on_page(self, page: PageDriverPort) -> None:
        if not self._future.done():
            self._logger.info("popup_detected")
            self._future.set_result(page)

    async def resolve(self) -> PageDriverPort:
        async def _ready() -> PageDriverPort:
            page = await self._future
            await page.wait_for_load_state("domcontentloaded")
            return page

        try:
            return await asyncio.wait_for(_ready(), timeout=self._timeout_ms / 1000)
        except asyncio.TimeoutError:
            self._logger.error("popup_timeout", timeout_ms=self._timeout_ms)
            raise PopupTimeoutError(
                f"no new window within {self._timeout_ms} ms"
            ) from None
        finally:
            self.cancel()

    def cancel(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if not self._future.done():
            self._future.cancel()


class PopupResolver:
    """Acquires the secondary window opened by a booking click."""

    def __init__(
        self,
        *,
        logger: LoggerPort,
        navigation_timeout_ms: int = 30_000,
        ceiling_ms: int = POPUP_CEILING_MS,
    ) -> None:
        self._logger = logger
        self._timeout_ms = min(navigation_timeout_ms, ceiling_ms)

    def arm(self, driver: PageDriverPort) -> PendingPopup:
        """Subscribe synchronously; must be called before the click that opens the window."""
        self._logger.debug("popup_listener_armed", timeout_ms=self._timeout_ms)
        return PendingPopup(driver=driver, timeout_ms=self._timeout_ms, logger=self._logger)
