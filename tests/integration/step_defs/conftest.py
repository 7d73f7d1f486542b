"""Shared fixtures and context for BDD step definitions."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest

from domain.models import BookingConfig, CourseSlot, RunContext, UserProfile, WorkflowResult
from tests.mocks import (
    FakeBookingSite,
    InMemoryDiagnosticSink,
    InMemoryLogger,
    InMemoryProfileSource,
    SequentialIdGenerator,
    SiteOptions,
    build_booking_site,
    build_workflow,
)


@dataclass
class BookingContext:
    """Holds mutable state shared across BDD steps."""

    profile: UserProfile = None  # type: ignore[assignment]
    options: SiteOptions = field(default_factory=lambda: SiteOptions(rows=[]))
    sink: InMemoryDiagnosticSink = field(default_factory=InMemoryDiagnosticSink)
    logger: InMemoryLogger = field(default_factory=InMemoryLogger)
    debug_mode: bool = False
    site: FakeBookingSite | None = None
    result: WorkflowResult | None = None


@pytest.fixture()
def ctx() -> BookingContext:
    return BookingContext()


def run_booking(ctx: BookingContext, slot: CourseSlot) -> None:
    """Execute the booking workflow synchronously against the scripted site."""
    source = InMemoryProfileSource(
        BookingConfig(target_url="https://sport.example.test/kurse.html", course=slot, debug_mode=ctx.debug_mode),
        ctx.profile,
    )
    config = source.get_config()
    ids = SequentialIdGenerator()
    ctx.site = build_booking_site(ctx.options)
    workflow = build_workflow(ctx.logger, ctx.sink)
    run_context = RunContext(run_id=ids.new_run_id(), config=config, is_debug=config.debug_mode)

    ctx.result = asyncio.run(
        workflow.run(
            driver=ctx.site.listing,
            target_url=config.target_url,
            slot=source.get_target_slot(),
            profile=source.get_profile(),
            run_context=run_context,
        )
    )
