"""
Reusable fakes and in-memory implementations for tests.
"""

from .booking_site import (
    FakeBookingSite,
    SiteOptions,
    build_booking_site,
    build_workflow,
    default_profile,
    default_rows,
)
from .fake_page_driver import FakeElement, FakePage, FakePageDriver
from .fake_profile_source import InMemoryProfileSource
from .fake_runtime import (
    FixedClock,
    InMemoryDiagnosticSink,
    InMemoryLogger,
    SequentialIdGenerator,
    VirtualClock,
)

__all__ = [
    "FakeBookingSite",
    "SiteOptions",
    "build_booking_site",
    "build_workflow",
    "default_profile",
    "default_rows",
    "FakeElement",
    "FakePage",
    "FakePageDriver",
    "InMemoryProfileSource",
    "FixedClock",
    "InMemoryDiagnosticSink",
    "InMemoryLogger",
    "SequentialIdGenerator",
    "VirtualClock",
]
