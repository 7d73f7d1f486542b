"""
Domain layer package.

This package contains the booking models, ports and services. Nothing here
imports a browser library; adapters live in ``infra``.
"""

from .errors import (  # noqa: F401
    BookingError,
    DriverTimeoutError,
    ElementNotFoundError,
    FormFillError,
    PopupTimeoutError,
)
from .models import (  # noqa: F401
    BookingConfig,
    CourseMatch,
    CourseSlot,
    FormDescriptor,
    RunContext,
    UserProfile,
    WorkflowOutcome,
    WorkflowResult,
    WorkflowState,
)
from .ports import (  # noqa: F401
    ClockPort,
    DiagnosticSinkPort,
    IdGeneratorPort,
    LoggerPort,
    PageDriverPort,
    ProfileSourcePort,
)

__all__ = [
    # Errors
    "BookingError",
    "ElementNotFoundError",
    "DriverTimeoutError",
    "PopupTimeoutError",
    "FormFillError",
    # Models
    "CourseSlot",
    "UserProfile",
    "BookingConfig",
    "RunContext",
    "CourseMatch",
    "FormDescriptor",
    "WorkflowState",
    "WorkflowOutcome",
    "WorkflowResult",
    # Ports
    "PageDriverPort",
    "DiagnosticSinkPort",
    "ProfileSourcePort",
    "ClockPort",
    "IdGeneratorPort",
    "LoggerPort",
]
