from __future__ import annotations

import asyncio

import pytest

from domain.errors import DriverTimeoutError, PopupTimeoutError
from domain.services import PopupResolver
from tests.mocks import FakePage, FakePageDriver, InMemoryLogger


def test_popup_opened_by_click_is_resolved_after_load() -> None:
    opener = FakePageDriver(FakePage())
    popup = FakePageDriver(FakePage(title="Kursbuchung"))

    async def _scenario() -> FakePageDriver:
        pending = PopupResolver(logger=InMemoryLogger()).arm(opener)
        assert opener.page_listeners == 1
        opener.open_window(popup)
        resolved = await pending.resolve()
        assert opener.page_listeners == 0
        return resolved  # type: ignore[return-value]

    resolved = asyncio.run(_scenario())

    assert resolved is popup
    assert popup.load_states == ["domcontentloaded"]


def test_only_the_first_window_is_taken() -> None:
    opener = FakePageDriver(FakePage())
    first = FakePageDriver(FakePage())
    second = FakePageDriver(FakePage())

    async def _scenario() -> object:
        pending = PopupResolver(logger=InMemoryLogger()).arm(opener)
        opener.open_window(first)
        opener.open_window(second)
        return await pending.resolve()

    assert asyncio.run(_scenario()) is first


def test_no_window_raises_popup_timeout_and_unsubscribes() -> None:
    opener = FakePageDriver(FakePage())
    logger = InMemoryLogger()

    async def _scenario() -> None:
        pending = PopupResolver(logger=logger, navigation_timeout_ms=50).arm(opener)
        await pending.resolve()

    with pytest.raises(PopupTimeoutError):
        asyncio.run(_scenario())
    assert opener.page_listeners == 0
    assert "popup_timeout" in logger.messages("error")


def test_popup_timeout_is_a_driver_timeout() -> None:
    assert issubclass(PopupTimeoutError, DriverTimeoutError)


def test_wait_is_capped_at_ten_seconds() -> None:
    async def _scenario() -> int:
        pending = PopupResolver(logger=InMemoryLogger(), navigation_timeout_ms=30_000).arm(
            FakePageDriver(FakePage())
        )
        pending.cancel()
        return pending.timeout_ms

    assert asyncio.run(_scenario()) == 10_000
