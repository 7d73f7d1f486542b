from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from domain.ports import PageDriverPort

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded polling: ``max_attempts`` checks, ``interval_seconds`` apart, optional backoff."""

    max_attempts: int
    interval_seconds: float
    backoff: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must not be negative")

    def delay_for(self, attempt: int) -> float:
        """Delay after the zero-based ``attempt`` before the next one."""
        return self.interval_seconds * (self.backoff ** attempt)

    @property
    def budget_seconds(self) -> float:
        return sum(self.delay_for(i) for i in range(self.max_attempts - 1))


async def poll(
    check: Callable[[int], Awaitable[T | None]],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], Awaitable[None]],
    between: Callable[[int], Awaitable[None]] | None = None,
) -> T | None:
    """
    Run ``check`` until it returns something other than ``None``.

    ``between`` runs before every retry (never before the first attempt).
    Returns ``None`` when the attempt budget is spent.
    """
    for attempt in range(policy.max_attempts):
        if attempt > 0 and between is not None:
            await between(attempt)
        result = await check(attempt)
        if result is not None:
            return result
        if attempt < policy.max_attempts - 1:
            await sleep(policy.delay_for(attempt))
    return None


def driver_sleep(driver: PageDriverPort) -> Callable[[float], Awaitable[None]]:
    """Adapt a page driver's millisecond ``wait_for_timeout`` to a seconds sleep."""

    async def _sleep(seconds: float) -> None:
        await driver.wait_for_timeout(int(seconds * 1000))

    return _sleep
