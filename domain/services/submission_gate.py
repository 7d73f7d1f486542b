from __future__ import annotations

import asyncio

from domain.errors import DriverTimeoutError
from domain.models import SubmissionResult
from domain.ports import LoggerPort, PageDriverPort
from domain.selectors import SUBMIT_SUCCESS_MARKERS
from domain.services.heuristics import find_marker
from domain.services.retry import RetryPolicy, driver_sleep, poll

DEFAULT_READINESS_POLICY = RetryPolicy(max_attempts=20, interval_seconds=0.5)


async def wait_for_navigation_settled(
    driver: PageDriverPort,
    navigated: asyncio.Future[None],
    *,
    settle_seconds: float,
    load_state: str = "domcontentloaded",
) -> bool:
    """
    Race an armed navigation (plus its load state) against a wall-clock wait.

    Returns ``True`` when the navigation settled first. The armed listener is
    released in every case.
    """

    async def _settled() -> None:
        await navigated
        await driver.wait_for_load_state(load_state, timeout_ms=int(settle_seconds * 1000))

    try:
        await asyncio.wait_for(_settled(), timeout=settle_seconds)
        return True
    except (asyncio.TimeoutError, DriverTimeoutError):
        return False
    finally:
        if not navigated.done():
            navigated.cancel()


class SubmissionGate:
    """Waits for the submit control to become interactive, clicks it, and reads the outcome."""

    def __init__(
        self,
        *,
        logger: LoggerPort,
        submit_selector: str = "#bs_submit",
        readiness_policy: RetryPolicy = DEFAULT_READINESS_POLICY,
        attach_timeout_ms: int = 10_000,
        settle_seconds: float = 3.0,
        success_markers: tuple[str, ...] = SUBMIT_SUCCESS_MARKERS,
    ) -> None:
        self._logger = logger
        self._selector = submit_selector
        self._policy = readiness_policy
        self._attach_timeout_ms = attach_timeout_ms
        self._settle_seconds = settle_seconds
        self._markers = success_markers

    async def submit(self, driver: PageDriverPort) -> SubmissionResult:
        self._logger.info("submit_started", selector=self._selector)
        try:
            await driver.wait_for_selector(
                self._selector,
                state="attached",
                timeout_ms=self._attach_timeout_ms,
            )
        except DriverTimeoutError as exc:
            self._logger.warning("submit_control_not_attached", error=str(exc))

        ready = await self._wait_until_ready(driver)
        if not ready:
            self._logger.warning("submit_control_not_ready", attempts=self._policy.max_attempts)

        navigated = driver.arm_navigation()
        try:
            await driver.click(self._selector)
        except Exception as exc:
            navigated.cancel()
            self._logger.error("submit_click_failed", error=str(exc))
            return SubmissionResult(clicked=False, ready_observed=ready)
        self._logger.info("submit_clicked")

        if not await wait_for_navigation_settled(
            driver, navigated, settle_seconds=self._settle_seconds
        ):
            self._logger.debug("submit_navigation_not_observed", waited_seconds=self._settle_seconds)

        try:
            body = await driver.text_content("body")
        except Exception as exc:
            self._logger.warning("submit_result_unreadable", error=str(exc))
            body = None
        marker = find_marker(body, self._markers)
        if marker:
            self._logger.info("submit_confirmed", marker=marker)
        else:
            self._logger.warning("submit_not_confirmed")
        return SubmissionResult(
            clicked=True,
            ready_observed=ready,
            confirmed=marker is not None,
            marker=marker,
        )

    async def _wait_until_ready(self, driver: PageDriverPort) -> bool:
        async def _check(attempt: int) -> bool | None:
            try:
                state = await driver.snapshot_control(self._selector)
            except Exception as exc:
                self._logger.debug("submit_state_unreadable", error=str(exc))
                return None
            if state.ready:
                self._logger.info("submit_control_ready", attempt=attempt + 1)
                return True
            self._logger.debug(
                "submit_control_waiting",
                attempt=attempt + 1,
                max_attempts=self._policy.max_attempts,
            )
            return None

        return bool(await poll(_check, self._policy, sleep=driver_sleep(driver)))
