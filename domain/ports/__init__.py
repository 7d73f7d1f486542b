from __future__ import annotations

import asyncio
from abc import abstractmethod
from datetime import datetime
from typing import Any, Callable, Protocol, Sequence, runtime_checkable

from domain.models import (
    BookingConfig,
    ButtonDescriptor,
    ControlSnapshot,
    CourseSlot,
    FormSnapshot,
    RowSnapshot,
    RunContext,
    UserProfile,
    VisibleInput,
)
from domain.selectors import ListingSelectors


@runtime_checkable
class PageDriverPort(Protocol):
    """
    Page-level browser primitives consumed by the booking workflow.

    The concrete implementation wraps a Playwright page and its browser
    context. Timeouts are in milliseconds; an expired bounded wait raises
    ``DriverTimeoutError``.
    """

    async def goto(self, url: str, *, timeout_ms: int | None = None) -> None:
        ...

    async def title(self) -> str:
        ...

    async def exists(self, selector: str) -> bool:
        ...

    async def is_visible(self, selector: str) -> bool:
        ...

    async def click(self, selector: str, *, timeout_ms: int | None = None) -> None:
        ...

    async def fill(self, selector: str, value: str) -> None:
        ...

    async def select_option(self, selector: str, value: str) -> None:
        ...

    async def check(self, selector: str) -> None:
        ...

    async def text_content(self, selector: str) -> str | None:
        ...

    async def content(self) -> str:
        ...

    async def screenshot(self, *, full_page: bool = True) -> bytes:
        ...

    async def wait_for_selector(
        self,
        selector: str,
        *,
        state: str = "attached",
        timeout_ms: int | None = None,
    ) -> None:
        ...

    async def wait_for_load_state(
        self,
        state: str = "domcontentloaded",
        *,
        timeout_ms: int | None = None,
    ) -> None:
        ...

    async def wait_for_timeout(self, timeout_ms: int) -> None:
        ...

    def arm_navigation(self) -> asyncio.Future[None]:
        """Register a one-shot main-frame navigation listener right now."""
        ...

    def subscribe_new_page(
        self,
        handler: Callable[[PageDriverPort], None],
    ) -> Callable[[], None]:
        """Register a one-shot new-window listener; returns an unsubscribe callable."""
        ...

    async def snapshot_course_rows(self, selectors: ListingSelectors) -> Sequence[RowSnapshot]:
        ...

    async def snapshot_buttons(self, selector: str) -> Sequence[ButtonDescriptor]:
        ...

    async def snapshot_forms(self) -> Sequence[FormSnapshot]:
        ...

    async def snapshot_control(self, selector: str) -> ControlSnapshot:
        ...

    async def visible_inputs(self) -> Sequence[VisibleInput]:
        ...


@runtime_checkable
class DiagnosticSinkPort(Protocol):
    """Persists page snapshots captured on failure paths and debug runs."""

    @abstractmethod
    def ensure_run_directory(self, run_context: RunContext) -> str:
        ...

    @abstractmethod
    def save_html(self, run_context: RunContext, label: str, html: str) -> str:
        ...

    @abstractmethod
    def save_screenshot(
        self,
        run_context: RunContext,
        label: str,
        image_bytes: bytes,
    ) -> str:
        ...

    @abstractmethod
    def save_run_metadata(
        self,
        run_context: RunContext,
        metadata: dict[str, object],
    ) -> str:
        ...


@runtime_checkable
class ProfileSourcePort(Protocol):
    """Read-only configuration: site config, user profile and target slot."""

    @abstractmethod
    def validate(self) -> list[str]:
        ...

    @abstractmethod
    def get_config(self) -> BookingConfig:
        ...

    @abstractmethod
    def get_profile(self) -> UserProfile:
        ...

    @abstractmethod
    def get_target_slot(self) -> CourseSlot:
        ...


@runtime_checkable
class ClockPort(Protocol):
    """Time source for deterministic and easily testable code."""

    def now(self) -> datetime:
        ...


@runtime_checkable
class IdGeneratorPort(Protocol):
    """Generation of identifiers for runs."""

    def new_run_id(self) -> str:
        ...


@runtime_checkable
class LoggerPort(Protocol):
    """Structured, testable logging abstraction."""

    def debug(self, message: str, **fields: Any) -> None:
        ...

    def info(self, message: str, **fields: Any) -> None:
        ...

    def warning(self, message: str, **fields: Any) -> None:
        ...

    def error(self, message: str, **fields: Any) -> None:
        ...


__all__ = [
    "PageDriverPort",
    "DiagnosticSinkPort",
    "ProfileSourcePort",
    "ClockPort",
    "IdGeneratorPort",
    "LoggerPort",
]
