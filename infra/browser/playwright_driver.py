"""Playwright-backed implementation of PageDriverPort.

One driver wraps one Playwright ``Page`` together with the ``BrowserContext``
it belongs to, so that windows opened from it can be observed.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any, AsyncIterator, Callable

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from domain.errors import DriverTimeoutError
from domain.models import (
    ButtonDescriptor,
    ControlSnapshot,
    FieldOption,
    FieldSnapshot,
    FormSnapshot,
    LabelCandidates,
    RowIndicator,
    RowSnapshot,
    VisibleInput,
)
from domain.ports import PageDriverPort
from domain.selectors import ListingSelectors
from infra.browser import dom_scripts


@asynccontextmanager
async def _translate_timeouts(action: str, selector: str | None = None) -> AsyncIterator[None]:
    try:
        yield
    except PlaywrightTimeoutError as exc:
        target = f" {selector}" if selector else ""
        raise DriverTimeoutError(f"{action}{target} timed out: {exc}") from exc


def _timeout_kwargs(timeout_ms: int | None) -> dict[str, Any]:
    return {} if timeout_ms is None else {"timeout": timeout_ms}


class PlaywrightPageDriver:
    def __init__(self, page: Any, context: Any) -> None:
        self._page = page
        self._context = context

    @property
    def page(self) -> Any:
        return self._page

    # -- navigation ---------------------------------------------------------

    async def goto(self, url: str, *, timeout_ms: int | None = None) -> None:
        async with _translate_timeouts("goto", url):
            await self._page.goto(url, wait_until="domcontentloaded", **_timeout_kwargs(timeout_ms))

    async def title(self) -> str:
        return await self._page.title()

    async def wait_for_load_state(
        self,
        state: str = "domcontentloaded",
        *,
        timeout_ms: int | None = None,
    ) -> None:
        async with _translate_timeouts(f"load state {state}"):
            await self._page.wait_for_load_state(state, **_timeout_kwargs(timeout_ms))

    async def wait_for_timeout(self, timeout_ms: int) -> None:
        await self._page.wait_for_timeout(timeout_ms)

    def arm_navigation(self) -> asyncio.Future[None]:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()

        def _on_navigated(frame: Any) -> None:
            if frame == self._page.main_frame and not future.done():
                future.set_result(None)

        self._page.on("framenavigated", _on_navigated)
        future.add_done_callback(lambda _: self._page.remove_listener("framenavigated", _on_navigated))
        return future

    def subscribe_new_page(
        self,
        handler: Callable[[PageDriverPort], None],
    ) -> Callable[[], None]:
        def _on_page(page: Any) -> None:
            handler(PlaywrightPageDriver(page, self._context))

        self._context.on("page", _on_page)
        return lambda: self._context.remove_listener("page", _on_page)

    # -- element interactions -----------------------------------------------

    async def exists(self, selector: str) -> bool:
        return await self._page.locator(selector).count() > 0

    async def is_visible(self, selector: str) -> bool:
        return await self._page.locator(selector).first.is_visible()

    async def click(self, selector: str, *, timeout_ms: int | None = None) -> None:
        async with _translate_timeouts("click", selector):
            await self._page.click(selector, **_timeout_kwargs(timeout_ms))

    async def fill(self, selector: str, value: str) -> None:
        async with _translate_timeouts("fill", selector):
            await self._page.fill(selector, value)

    async def select_option(self, selector: str, value: str) -> None:
        async with _translate_timeouts("select_option", selector):
            await self._page.select_option(selector, value)

    async def check(self, selector: str) -> None:
        async with _translate_timeouts("check", selector):
            await self._page.check(selector)

    async def text_content(self, selector: str) -> str | None:
        async with _translate_timeouts("text_content", selector):
            return await self._page.text_content(selector)

    async def content(self) -> str:
        return await self._page.content()

    async def screenshot(self, *, full_page: bool = True) -> bytes:
        return await self._page.screenshot(full_page=full_page)

    async def wait_for_selector(
        self,
        selector: str,
        *,
        state: str = "attached",
        timeout_ms: int | None = None,
    ) -> None:
        async with _translate_timeouts(f"wait for {state}", selector):
            await self._page.wait_for_selector(selector, state=state, **_timeout_kwargs(timeout_ms))

    # -- snapshots ----------------------------------------------------------

    async def snapshot_course_rows(self, selectors: ListingSelectors) -> list[RowSnapshot]:
        raw = await self._page.evaluate(dom_scripts.COURSE_ROWS, asdict(selectors))
        return [
            RowSnapshot(
                position=int(row["position"]),
                row_id=row.get("row_id"),
                day=row.get("day"),
                time=row.get("time"),
                has_action_cell=bool(row.get("has_action_cell")),
                has_booking_control=bool(row.get("has_booking_control")),
                booking_control_name=row.get("booking_control_name"),
                indicator=RowIndicator(row["indicator"]) if row.get("indicator") else None,
            )
            for row in raw
        ]

    async def snapshot_buttons(self, selector: str) -> list[ButtonDescriptor]:
        raw = await self._page.evaluate(dom_scripts.BUTTONS, selector)
        return [ButtonDescriptor(**button) for button in raw]

    async def snapshot_forms(self) -> list[FormSnapshot]:
        raw = await self._page.evaluate(dom_scripts.FORMS)
        return [
            FormSnapshot(
                form_index=form["form_index"],
                form_id=form.get("form_id", ""),
                action=form.get("action", ""),
                method=form.get("method", ""),
                fields=tuple(self._field(f) for f in form.get("fields", [])),
            )
            for form in raw
        ]

    async def snapshot_control(self, selector: str) -> ControlSnapshot:
        raw = await self._page.evaluate(dom_scripts.CONTROL_STATE, selector)
        return ControlSnapshot(
            attached=bool(raw.get("attached")),
            display=raw.get("display", ""),
            visibility=raw.get("visibility", ""),
            opacity=str(raw.get("opacity", "1")),
            disabled=bool(raw.get("disabled", False)),
        )

    async def visible_inputs(self) -> list[VisibleInput]:
        raw = await self._page.evaluate(dom_scripts.VISIBLE_INPUTS)
        return [VisibleInput(**item) for item in raw]

    @staticmethod
    def _field(raw: dict[str, Any]) -> FieldSnapshot:
        labels = raw.get("labels") or {}
        return FieldSnapshot(
            index=raw["index"],
            tag=raw.get("tag", ""),
            name=raw.get("name", ""),
            type=raw.get("type", ""),
            value=raw.get("value", ""),
            id=raw.get("id", ""),
            class_name=raw.get("class_name", ""),
            required=bool(raw.get("required")),
            disabled=bool(raw.get("disabled")),
            read_only=bool(raw.get("read_only")),
            placeholder=raw.get("placeholder", ""),
            labels=LabelCandidates(
                for_label=labels.get("for_label", ""),
                ancestor_label=labels.get("ancestor_label", ""),
                sibling_label=labels.get("sibling_label", ""),
            ),
            options=tuple(FieldOption(**option) for option in raw.get("options", [])),
        )
