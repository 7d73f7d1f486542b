"""In-memory PageDriverPort with a virtual clock.

A ``FakePage`` describes what one document shows; a ``FakePageDriver``
plays the role of one browser window that can navigate between fake pages,
open new windows and observe time only through ``wait_for_timeout``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable

from domain import PageDriverPort
from domain.errors import DriverTimeoutError
from domain.models import (
    ButtonDescriptor,
    ControlSnapshot,
    FormSnapshot,
    RowSnapshot,
    VisibleInput,
)
from domain.selectors import ListingSelectors

from .fake_runtime import VirtualClock


@dataclass
class FakeElement:
    visible: bool = True
    appears_at_ms: int = 0
    text: str | None = None
    disabled: bool = False
    fail_clicks: int = 0
    on_click: Callable[[FakePageDriver], None] | None = None
    on_select: Callable[[FakePageDriver, str], None] | None = None
    control: Callable[[int], ControlSnapshot] | None = None


@dataclass
class FakePage:
    title: str = ""
    html: str = "<html><body></body></html>"
    body: str = ""
    elements: dict[str, FakeElement] = field(default_factory=dict)
    rows: list[RowSnapshot] = field(default_factory=list)
    buttons: dict[str, list[ButtonDescriptor]] = field(default_factory=dict)
    forms: list[FormSnapshot] = field(default_factory=list)
    inputs: list[VisibleInput] = field(default_factory=list)


class FakePageDriver:
    def __init__(self, page: FakePage | None = None, *, clock: VirtualClock | None = None) -> None:
        self.page = page or FakePage()
        self.clock = clock or VirtualClock()
        self.visited: list[str] = []
        self.clicks: list[str] = []
        self.filled: dict[str, str] = {}
        self.selected: dict[str, str] = {}
        self.checked: list[str] = []
        self.load_states: list[str] = []
        self.waits: list[int] = []
        self.goto_error: Exception | None = None
        self.snapshot_error: Exception | None = None
        self.load_state_timeouts: set[str] = set()
        self.navigations = 0
        self._nav_waiters: list[asyncio.Future[None]] = []
        self._page_handlers: list[Callable[[PageDriverPort], None]] = []

    @property
    def now_ms(self) -> int:
        return self.clock.now_ms

    # -- scripted behaviour -------------------------------------------------

    def navigate(self, page: FakePage) -> None:
        self.page = page
        self.navigations += 1
        for waiter in self._nav_waiters:
            if not waiter.done():
                waiter.set_result(None)
        self._nav_waiters.clear()

    def open_window(self, driver: FakePageDriver) -> None:
        for handler in list(self._page_handlers):
            handler(driver)

    @property
    def page_listeners(self) -> int:
        return len(self._page_handlers)

    def _element(self, selector: str) -> FakeElement | None:
        element = self.page.elements.get(selector)
        if element is None or self.clock.now_ms < element.appears_at_ms:
            return None
        return element

    def _require(self, action: str, selector: str) -> FakeElement:
        element = self._element(selector)
        if element is None:
            raise DriverTimeoutError(f"{action} {selector} timed out")
        return element

    # -- PageDriverPort -----------------------------------------------------

    async def goto(self, url: str, *, timeout_ms: int | None = None) -> None:
        self.visited.append(url)
        if self.goto_error is not None:
            raise self.goto_error

    async def title(self) -> str:
        return self.page.title

    async def exists(self, selector: str) -> bool:
        return self._element(selector) is not None

    async def is_visible(self, selector: str) -> bool:
        element = self._element(selector)
        return element is not None and element.visible

    async def click(self, selector: str, *, timeout_ms: int | None = None) -> None:
        self.clicks.append(selector)
        element = self._require("click", selector)
        if element.fail_clicks > 0:
            element.fail_clicks -= 1
            raise DriverTimeoutError(f"click {selector} intercepted")
        if element.on_click is not None:
            element.on_click(self)

    async def fill(self, selector: str, value: str) -> None:
        self._require("fill", selector)
        self.filled[selector] = value

    async def select_option(self, selector: str, value: str) -> None:
        element = self._require("select_option", selector)
        self.selected[selector] = value
        if element.on_select is not None:
            element.on_select(self, value)

    async def check(self, selector: str) -> None:
        self._require("check", selector)
        self.checked.append(selector)

    async def text_content(self, selector: str) -> str | None:
        if selector == "body":
            return self.page.body
        return self._require("text_content", selector).text

    async def content(self) -> str:
        return self.page.html

    async def screenshot(self, *, full_page: bool = True) -> bytes:
        return b"\x89PNG-fake"

    async def wait_for_selector(
        self,
        selector: str,
        *,
        state: str = "attached",
        timeout_ms: int | None = None,
    ) -> None:
        element = self.page.elements.get(selector)
        if element is None:
            raise DriverTimeoutError(f"wait for {state} {selector} timed out")
        delay = element.appears_at_ms - self.clock.now_ms
        if delay > 0:
            if timeout_ms is not None and delay > timeout_ms:
                self.clock.advance(timeout_ms)
                raise DriverTimeoutError(f"wait for {state} {selector} timed out")
            self.clock.advance(delay)
        if state == "visible" and not element.visible:
            raise DriverTimeoutError(f"wait for {state} {selector} timed out")

    async def wait_for_load_state(
        self,
        state: str = "domcontentloaded",
        *,
        timeout_ms: int | None = None,
    ) -> None:
        self.load_states.append(state)
        if state in self.load_state_timeouts:
            raise DriverTimeoutError(f"load state {state} timed out")

    async def wait_for_timeout(self, timeout_ms: int) -> None:
        self.waits.append(timeout_ms)
        self.clock.advance(timeout_ms)

    def arm_navigation(self) -> asyncio.Future[None]:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._nav_waiters.append(future)
        return future

    def subscribe_new_page(
        self,
        handler: Callable[[PageDriverPort], None],
    ) -> Callable[[], None]:
        self._page_handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._page_handlers:
                self._page_handlers.remove(handler)

        return _unsubscribe

    async def snapshot_course_rows(self, selectors: ListingSelectors) -> list[RowSnapshot]:
        if self.snapshot_error is not None:
            raise self.snapshot_error
        return list(self.page.rows)

    async def snapshot_buttons(self, selector: str) -> list[ButtonDescriptor]:
        if self.snapshot_error is not None:
            raise self.snapshot_error
        return list(self.page.buttons.get(selector, []))

    async def snapshot_forms(self) -> list[FormSnapshot]:
        if self.snapshot_error is not None:
            raise self.snapshot_error
        return list(self.page.forms)

    async def snapshot_control(self, selector: str) -> ControlSnapshot:
        element = self._element(selector)
        if element is None:
            return ControlSnapshot(attached=False)
        if element.control is not None:
            return element.control(self.clock.now_ms)
        return ControlSnapshot(
            attached=True,
            display="inline-block" if element.visible else "none",
            visibility="visible",
            opacity="1",
            disabled=element.disabled,
        )

    async def visible_inputs(self) -> list[VisibleInput]:
        return list(self.page.inputs)


_driver_check: PageDriverPort = FakePageDriver()
