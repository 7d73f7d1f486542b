"""Unit tests for PlaywrightPageDriver.

Uses lightweight fake page and context objects to avoid requiring a real browser.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from domain.errors import DriverTimeoutError
from domain.models import (
    ButtonDescriptor,
    ControlSnapshot,
    FieldOption,
    LabelCandidates,
    RowIndicator,
    VisibleInput,
)
from domain.selectors import ListingSelectors
from infra.browser import dom_scripts
from infra.browser.playwright_driver import PlaywrightPageDriver


class _FakeLocator:
    def __init__(self, count: int, visible: bool) -> None:
        self._count = count
        self._visible = visible

    async def count(self) -> int:
        return self._count

    @property
    def first(self) -> "_FakeLocator":
        return self

    async def is_visible(self) -> bool:
        return self._visible


class _Emitter:
    def __init__(self) -> None:
        self.listeners: dict[str, list[Callable[..., None]]] = {}

    def on(self, event: str, handler: Callable[..., None]) -> None:
        self.listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Callable[..., None]) -> None:
        self.listeners[event].remove(handler)

    def emit(self, event: str, *args: Any) -> None:
        for handler in list(self.listeners.get(event, [])):
            handler(*args)


@dataclass
class _FakePage(_Emitter):
    evaluations: dict[str, Any] = field(default_factory=dict)
    present: dict[str, bool] = field(default_factory=dict)
    timeout_on: set[str] = field(default_factory=set)
    calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = field(default_factory=list)
    main_frame: object = field(default_factory=object)

    def __post_init__(self) -> None:
        _Emitter.__init__(self)

    def _record(self, name: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append((name, args, kwargs))
        if name in self.timeout_on:
            raise PlaywrightTimeoutError(f"Timeout exceeded in {name}")

    def locator(self, selector: str) -> _FakeLocator:
        visible = self.present.get(selector)
        return _FakeLocator(1 if visible is not None else 0, bool(visible))

    async def goto(self, url: str, **kwargs: Any) -> None:
        self._record("goto", url, **kwargs)

    async def click(self, selector: str, **kwargs: Any) -> None:
        self._record("click", selector, **kwargs)

    async def fill(self, selector: str, value: str) -> None:
        self._record("fill", selector, value)

    async def wait_for_selector(self, selector: str, **kwargs: Any) -> None:
        self._record("wait_for_selector", selector, **kwargs)

    async def wait_for_load_state(self, state: str, **kwargs: Any) -> None:
        self._record("wait_for_load_state", state, **kwargs)

    async def wait_for_timeout(self, timeout: int) -> None:
        self._record("wait_for_timeout", timeout)

    async def text_content(self, selector: str) -> str | None:
        return "Anmeldung erfolgreich"

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.calls.append(("evaluate", (arg,), {}))
        return self.evaluations[script]


def _driver(page: _FakePage | None = None) -> tuple[PlaywrightPageDriver, _FakePage, _Emitter]:
    page = page or _FakePage()
    context = _Emitter()
    return PlaywrightPageDriver(page, context), page, context


def test_goto_waits_for_dom_content_and_passes_timeout() -> None:
    driver, page, _ = _driver()

    asyncio.run(driver.goto("https://example.test", timeout_ms=5000))

    assert page.calls == [
        ("goto", ("https://example.test",), {"wait_until": "domcontentloaded", "timeout": 5000})
    ]


def test_playwright_timeouts_become_driver_timeouts() -> None:
    driver, _, _ = _driver(_FakePage(timeout_on={"click"}))

    with pytest.raises(DriverTimeoutError, match="click #bs_submit"):
        asyncio.run(driver.click("#bs_submit"))


def test_wait_for_selector_omits_timeout_when_not_given() -> None:
    driver, page, _ = _driver()

    asyncio.run(driver.wait_for_selector("#BS_F1100"))

    assert page.calls == [("wait_for_selector", ("#BS_F1100",), {"state": "attached"})]


def test_exists_and_visibility_use_locators() -> None:
    driver, _, _ = _driver(_FakePage(present={"#a": True, "#hidden": False}))

    async def _scenario() -> tuple[bool, bool, bool, bool]:
        return (
            await driver.exists("#a"),
            await driver.exists("#missing"),
            await driver.is_visible("#a"),
            await driver.is_visible("#hidden"),
        )

    assert asyncio.run(_scenario()) == (True, False, True, False)


def test_arm_navigation_resolves_on_main_frame_only_and_detaches() -> None:
    driver, page, _ = _driver()

    async def _scenario() -> bool:
        future = driver.arm_navigation()
        page.emit("framenavigated", object())
        assert not future.done()
        page.emit("framenavigated", page.main_frame)
        await future
        await asyncio.sleep(0)
        return True

    assert asyncio.run(_scenario())
    assert page.listeners["framenavigated"] == []


def test_cancelled_navigation_detaches_listener() -> None:
    driver, page, _ = _driver()

    async def _scenario() -> None:
        future = driver.arm_navigation()
        future.cancel()
        await asyncio.sleep(0)

    asyncio.run(_scenario())
    assert page.listeners["framenavigated"] == []


def test_new_pages_are_wrapped_and_unsubscribe_works() -> None:
    driver, _, context = _driver()
    received: list[object] = []
    popup_page = _FakePage()

    unsubscribe = driver.subscribe_new_page(received.append)
    context.emit("page", popup_page)
    unsubscribe()
    context.emit("page", _FakePage())

    assert len(received) == 1
    assert isinstance(received[0], PlaywrightPageDriver)
    assert received[0].page is popup_page


def test_snapshot_course_rows_passes_selectors_and_maps_rows() -> None:
    page = _FakePage(
        evaluations={
            dom_scripts.COURSE_ROWS: [
                {
                    "position": 2,
                    "row_id": "bs_tr2",
                    "day": "Mo",
                    "time": "10:30-11:55",
                    "has_action_cell": True,
                    "has_booking_control": False,
                    "booking_control_name": None,
                    "indicator": "autostart",
                }
            ]
        }
    )
    driver, _, _ = _driver(page)

    rows = asyncio.run(driver.snapshot_course_rows(ListingSelectors()))

    assert rows[0].row_id == "bs_tr2"
    assert rows[0].indicator is RowIndicator.AUTOSTART
    assert page.calls[0][1][0]["rows"] == "table.bs_kurse tbody tr"


def test_snapshot_buttons_forms_control_and_inputs() -> None:
    page = _FakePage(
        evaluations={
            dom_scripts.BUTTONS: [
                {"index": 0, "text": "buchen", "type": "submit", "name": "", "id": "", "class_name": "sub"}
            ],
            dom_scripts.FORMS: [
                {
                    "form_index": 0,
                    "form_id": "",
                    "action": "/cgi",
                    "method": "POST",
                    "fields": [
                        {
                            "index": 0,
                            "tag": "SELECT",
                            "name": "statusorig",
                            "type": "",
                            "id": "BS_F1600",
                            "labels": {"for_label": "Status", "ancestor_label": "", "sibling_label": ""},
                            "options": [{"value": "S-RWTH", "text": "Student", "selected": True}],
                        }
                    ],
                }
            ],
            dom_scripts.CONTROL_STATE: {
                "attached": True,
                "display": "block",
                "visibility": "visible",
                "opacity": 1,
                "disabled": False,
            },
            dom_scripts.VISIBLE_INPUTS: [{"type": "text", "name": "matrikel", "id": ""}],
        }
    )
    driver, _, _ = _driver(page)

    async def _scenario() -> tuple[Any, ...]:
        return (
            await driver.snapshot_buttons("button"),
            await driver.snapshot_forms(),
            await driver.snapshot_control("#bs_submit"),
            await driver.visible_inputs(),
        )

    buttons, forms, control, inputs = asyncio.run(_scenario())

    assert buttons == [ButtonDescriptor(index=0, text="buchen", type="submit", class_name="sub")]
    field_snapshot = forms[0].fields[0]
    assert field_snapshot.labels == LabelCandidates(for_label="Status")
    assert field_snapshot.options == (FieldOption(value="S-RWTH", text="Student", selected=True),)
    assert control == ControlSnapshot(attached=True, display="block", visibility="visible", opacity="1")
    assert control.ready
    assert inputs == [VisibleInput(type="text", name="matrikel", id="")]


def test_detached_control_is_not_ready() -> None:
    driver, _, _ = _driver(_FakePage(evaluations={dom_scripts.CONTROL_STATE: {"attached": False}}))

    control = asyncio.run(driver.snapshot_control("#bs_submit"))

    assert control == ControlSnapshot(attached=False)
    assert not control.ready
