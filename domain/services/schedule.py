from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Awaitable, Callable

from domain.ports import ClockPort, LoggerPort


def parse_hhmm(value: str) -> tuple[int, int]:
    hours, sep, minutes = value.strip().partition(":")
    if not sep or len(hours) != 2 or len(minutes) != 2 or not (hours + minutes).isdigit():
        raise ValueError(f"expected HH:MM, got {value!r}")
    h, m = int(hours), int(minutes)
    if h > 23 or m > 59:
        raise ValueError(f"expected HH:MM, got {value!r}")
    return h, m


def current_hhmm(now: datetime) -> str:
    return now.strftime("%H:%M")


def is_time_to_book(clock: ClockPort, target: str) -> bool:
    """True while the clock shows exactly the target minute."""
    parse_hhmm(target)
    return current_hhmm(clock.now()) == target.strip()


def _has_passed(clock: ClockPort, target: str) -> bool:
    now = clock.now()
    return (now.hour, now.minute) > parse_hhmm(target)


async def wait_for_booking_time(
    clock: ClockPort,
    target: str,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    poll_seconds: float = 1.0,
    logger: LoggerPort | None = None,
) -> None:
    """
    Block until the clock reaches ``target`` (``HH:MM``, same day).

    Returns immediately when the target minute has already passed today.
    """
    parse_hhmm(target)
    if logger is not None:
        logger.info("booking_time_waiting", target=target, now=current_hhmm(clock.now()))
    while not is_time_to_book(clock, target):
        if _has_passed(clock, target):
            if logger is not None:
                logger.warning("booking_time_already_passed", target=target)
            return
        await sleep(poll_seconds)
    if logger is not None:
        logger.info("booking_time_reached", target=target)
