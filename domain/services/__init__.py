"""
Domain services.

Each stage of a booking run is a small service that depends only on domain
models and ports; ``BookingWorkflow`` sequences them.
"""

from .booking_workflow import BookingWorkflow, IllegalTransitionError, WorkflowStateMachine
from .button_classifier import ButtonClassifier
from .course_matcher import CourseMatcher
from .diagnostics import DiagnosticRecorder, SnapshotKind
from .final_confirmation import FinalConfirmation
from .form_discovery import FormFieldDiscoverer
from .form_filler import FormFiller
from .popup_resolver import PendingPopup, PopupResolver
from .retry import RetryPolicy, poll
from .schedule import is_time_to_book, wait_for_booking_time
from .submission_gate import SubmissionGate

__all__ = [
    "BookingWorkflow",
    "WorkflowStateMachine",
    "IllegalTransitionError",
    "ButtonClassifier",
    "CourseMatcher",
    "DiagnosticRecorder",
    "SnapshotKind",
    "FinalConfirmation",
    "FormFieldDiscoverer",
    "FormFiller",
    "PopupResolver",
    "PendingPopup",
    "RetryPolicy",
    "poll",
    "is_time_to_book",
    "wait_for_booking_time",
    "SubmissionGate",
]
