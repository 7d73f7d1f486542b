from __future__ import annotations

from typing import Sequence

from domain.errors import DriverTimeoutError, ElementNotFoundError
from domain.models import ConfirmationResult, ConfirmationStatus
from domain.ports import LoggerPort, PageDriverPort
from domain.selectors import FINAL_SUCCESS_MARKERS, ConfirmationSelectors
from domain.services.heuristics import find_marker
from domain.services.submission_gate import wait_for_navigation_settled


class FinalConfirmation:
    """Clicks the binding-booking control on the review page and inspects the result."""

    def __init__(
        self,
        *,
        logger: LoggerPort,
        selectors: ConfirmationSelectors | None = None,
        network_idle_ms: int = 10_000,
        navigation_seconds: float = 10.0,
        success_markers: Sequence[str] = FINAL_SUCCESS_MARKERS,
    ) -> None:
        self._logger = logger
        self._sel = selectors or ConfirmationSelectors()
        self._network_idle_ms = network_idle_ms
        self._navigation_seconds = navigation_seconds
        self._markers = tuple(success_markers)

    async def confirm(self, driver: PageDriverPort) -> ConfirmationResult:
        self._logger.info("final_confirmation_started")
        try:
            await self._network_idle(driver)
            selector = await self._locate(driver)
            await driver.wait_for_selector(selector, state="visible")
            navigated = driver.arm_navigation()
            try:
                await driver.click(selector)
            except Exception:
                navigated.cancel()
                raise
            self._logger.info("final_control_clicked", selector=selector)

            await wait_for_navigation_settled(
                driver,
                navigated,
                settle_seconds=self._navigation_seconds,
                load_state="networkidle",
            )
            await self._network_idle(driver)

            marker = find_marker(await driver.content(), self._markers)
        except ElementNotFoundError as exc:
            self._logger.error("final_control_not_found", error=str(exc))
            return ConfirmationResult(status=ConfirmationStatus.FAILED)
        except Exception as exc:
            self._logger.error("final_confirmation_failed", error=str(exc))
            return ConfirmationResult(status=ConfirmationStatus.FAILED)

        if marker:
            self._logger.info("booking_confirmed", marker=marker)
            return ConfirmationResult(
                status=ConfirmationStatus.CONFIRMED,
                marker=marker,
                selector=selector,
            )
        self._logger.warning("booking_completed_unconfirmed")
        return ConfirmationResult(status=ConfirmationStatus.UNCERTAIN, selector=selector)

    async def _locate(self, driver: PageDriverPort) -> str:
        primary, *alternatives = self._sel.final_buttons
        if await driver.exists(primary):
            self._logger.info("final_control_found", selector=primary)
            return primary
        self._logger.warning("final_control_primary_missing", selector=primary)
        for selector in alternatives:
            if await driver.exists(selector):
                self._logger.info("final_control_alternative_found", selector=selector)
                return selector
        raise ElementNotFoundError(f"no final booking control among {len(self._sel.final_buttons)} selectors")

    async def _network_idle(self, driver: PageDriverPort) -> None:
        try:
            await driver.wait_for_load_state("networkidle", timeout_ms=self._network_idle_ms)
        except DriverTimeoutError:
            self._logger.debug("final_network_idle_timeout", timeout_ms=self._network_idle_ms)
