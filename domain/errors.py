from __future__ import annotations


class BookingError(Exception):
    """Base class for failures raised inside the booking workflow."""


class ElementNotFoundError(BookingError):
    """A control or row the current stage needs is not on the page."""


class DriverTimeoutError(BookingError):
    """A bounded wait on the page driver expired."""


class PopupTimeoutError(DriverTimeoutError):
    """No secondary window opened within the popup wait."""


class FormFillError(BookingError):
    """A fixed (non-conditional) registration field could not be set."""

    def __init__(self, role: str, selector: str, cause: str | None = None) -> None:
        message = f"could not set {role} ({selector})"
        if cause:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.role = role
        self.selector = selector


__all__ = [
    "BookingError",
    "ElementNotFoundError",
    "DriverTimeoutError",
    "PopupTimeoutError",
    "FormFillError",
]
