from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence


@dataclass(frozen=True)
class CourseSlot:
    """Target identity of the course offering to book, e.g. ``Mo`` / ``10:30-11:55``."""

    day: str
    time: str


@dataclass(frozen=True)
class UserProfile:
    """
    Registration data entered into the booking form.

    ``student_id`` is only used when ``status`` is one of the configured
    student categories; the form renders that field on demand.
    """

    gender: str
    first_name: str
    last_name: str
    address: str
    zip_city: str
    status: str
    email: str
    phone: str
    student_id: str | None = None
    accept_terms: bool = True


@dataclass(frozen=True)
class BookingConfig:
    """Site and browser configuration loaded from config.json."""

    target_url: str
    course: CourseSlot
    navigation_timeout_ms: int = 30_000
    headless: bool = True
    slow_mo_ms: int = 0
    viewport_width: int = 1280
    viewport_height: int = 800
    debug_mode: bool = False
    log_level: str = "info"
    student_statuses: Sequence[str] = ("S-RWTH",)
    book_at: str | None = None


@dataclass(frozen=True)
class RunContext:
    """
    Per-run context handed explicitly through the workflow.

    The log directory is an abstract path; infra decides how it maps
    to the real filesystem.
    """

    run_id: str
    config: BookingConfig | None = None
    is_debug: bool = False
    log_directory: str | None = None


# -- listing --------------------------------------------------------------


class RowIndicator(str, Enum):
    """What a matched row's action cell shows instead of a booking control."""

    WAITLIST = "waitlist"
    AUTOSTART = "autostart"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RowSnapshot:
    """Raw facts read from one listing row; ``position`` is 1-based within its tbody."""

    position: int
    row_id: str | None
    day: str | None
    time: str | None
    has_action_cell: bool = True
    has_booking_control: bool = False
    booking_control_name: str | None = None
    indicator: RowIndicator | None = None


@dataclass(frozen=True)
class CourseRow:
    day: str
    time: str
    booking_control_ref: str
    booking_control_name: str | None
    row_identity: str


@dataclass(frozen=True)
class CourseMatch:
    """Result of one CourseMatcher scan."""

    found: bool
    button_selector: str | None = None
    button_name: str | None = None
    row: CourseRow | None = None
    reason: str | None = None


# -- controls -------------------------------------------------------------


@dataclass(frozen=True)
class ButtonDescriptor:
    """
    Snapshot of one clickable control.

    ``index`` is only meaningful inside the snapshot it was captured from.
    """

    index: int
    text: str = ""
    type: str = ""
    name: str = ""
    id: str = ""
    class_name: str = ""


class ButtonIntent(str, Enum):
    CONFIRM = "confirm"
    SUBMIT = "submit"
    CONTINUE = "continue"


@dataclass(frozen=True)
class ButtonMatch:
    descriptor: ButtonDescriptor
    tier: int


@dataclass(frozen=True)
class ControlSnapshot:
    """Computed style and state of a single control, as read from the live DOM."""

    attached: bool
    display: str = ""
    visibility: str = ""
    opacity: str = "1"
    disabled: bool = False

    @property
    def ready(self) -> bool:
        return (
            self.attached
            and self.display != "none"
            and self.visibility != "hidden"
            and self.opacity != "0"
            and not self.disabled
        )


@dataclass(frozen=True)
class VisibleInput:
    type: str = ""
    name: str = ""
    id: str = ""


# -- forms ----------------------------------------------------------------


@dataclass(frozen=True)
class FieldOption:
    value: str
    text: str
    selected: bool = False


@dataclass(frozen=True)
class LabelCandidates:
    """Label texts found around a field; resolution order is decided by the discoverer."""

    for_label: str = ""
    ancestor_label: str = ""
    sibling_label: str = ""


@dataclass(frozen=True)
class FieldSnapshot:
    index: int
    tag: str
    name: str = ""
    type: str = ""
    value: str = ""
    id: str = ""
    class_name: str = ""
    required: bool = False
    disabled: bool = False
    read_only: bool = False
    placeholder: str = ""
    labels: LabelCandidates = field(default_factory=LabelCandidates)
    options: Sequence[FieldOption] = field(default_factory=tuple)


@dataclass(frozen=True)
class FormSnapshot:
    form_index: int
    form_id: str = ""
    action: str = ""
    method: str = ""
    fields: Sequence[FieldSnapshot] = field(default_factory=tuple)


@dataclass(frozen=True)
class FormFieldDescriptor:
    index: int
    name: str
    type: str
    label: str
    value: str = ""
    id: str = ""
    class_name: str = ""
    required: bool = False
    disabled: bool = False
    read_only: bool = False
    placeholder: str = ""
    options: Sequence[FieldOption] | None = None


@dataclass(frozen=True)
class FormDescriptor:
    form_index: int
    form_id: str
    action: str
    method: str
    fields: Sequence[FormFieldDescriptor] = field(default_factory=tuple)


# -- workflow -------------------------------------------------------------


class WorkflowState(str, Enum):
    """Booking workflow states, in their only legal order."""

    START = "start"
    NAVIGATED = "navigated"
    COURSE_MATCHED = "course_matched"
    BOOKED = "booked"
    CONFIRM_CLICKED = "confirm_clicked"
    FORM_PAGE_READY = "form_page_ready"
    FORM_FILLED = "form_filled"
    SUBMITTED = "submitted"
    FINAL_CONFIRMED = "final_confirmed"
    FAILED = "failed"


class WorkflowOutcome(str, Enum):
    """Terminal tag of a workflow run."""

    COURSE_NOT_FOUND = "course_not_found"
    POPUP_TIMEOUT = "popup_timeout"
    CONFIRM_CONTROL_NOT_FOUND = "confirm_control_not_found"
    FORM_FILL_FAILED = "form_fill_failed"
    SUBMIT_UNCERTAIN = "submit_uncertain"
    FINAL_CONFIRM_UNCERTAIN = "final_confirm_uncertain"
    SUCCESS = "success"


@dataclass(frozen=True)
class SubmissionResult:
    clicked: bool
    ready_observed: bool = False
    confirmed: bool = False
    marker: str | None = None


class ConfirmationStatus(str, Enum):
    CONFIRMED = "confirmed"
    UNCERTAIN = "uncertain"
    FAILED = "failed"


@dataclass(frozen=True)
class ConfirmationResult:
    status: ConfirmationStatus
    marker: str | None = None
    selector: str | None = None


@dataclass(frozen=True)
class WorkflowResult:
    """Outcome of one booking run; ``state`` is the last state reached."""

    outcome: WorkflowOutcome
    state: WorkflowState
    reason: str | None = None
    course: CourseMatch | None = None
    submission: SubmissionResult | None = None
    confirmation: ConfirmationResult | None = None
    history: Sequence[WorkflowState] = field(default_factory=tuple)

    @property
    def succeeded(self) -> bool:
        return self.outcome is WorkflowOutcome.SUCCESS


__all__ = [
    "CourseSlot",
    "UserProfile",
    "BookingConfig",
    "RunContext",
    "RowIndicator",
    "RowSnapshot",
    "CourseRow",
    "CourseMatch",
    "ButtonDescriptor",
    "ButtonIntent",
    "ButtonMatch",
    "ControlSnapshot",
    "VisibleInput",
    "FieldOption",
    "LabelCandidates",
    "FieldSnapshot",
    "FormSnapshot",
    "FormFieldDescriptor",
    "FormDescriptor",
    "WorkflowState",
    "WorkflowOutcome",
    "SubmissionResult",
    "ConfirmationStatus",
    "ConfirmationResult",
    "WorkflowResult",
]
