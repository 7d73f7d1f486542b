"""
Booking workflow orchestrator.

Sequences the stages of one booking run as a strictly forward state machine:

    Start -> Navigated -> CourseMatched -> Booked -> ConfirmClicked
          -> FormPageReady -> FormFilled -> Submitted -> FinalConfirmed

Any stage failure moves straight to Failed with a tagged outcome, captures
diagnostics and halts. No stage is retried by the orchestrator; polling
happens only inside the stage services. No exception leaves ``run``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from domain.errors import DriverTimeoutError
from domain.models import (
    BookingConfig,
    ButtonIntent,
    ConfirmationResult,
    ConfirmationStatus,
    CourseMatch,
    CourseSlot,
    RunContext,
    SubmissionResult,
    UserProfile,
    WorkflowOutcome,
    WorkflowResult,
    WorkflowState,
)
from domain.ports import DiagnosticSinkPort, LoggerPort, PageDriverPort
from domain.selectors import SiteSelectors
from domain.services.button_classifier import ButtonClassifier
from domain.services.course_matcher import CourseMatcher
from domain.services.diagnostics import DiagnosticRecorder, SnapshotKind
from domain.services.final_confirmation import FinalConfirmation
from domain.services.form_discovery import FormFieldDiscoverer
from domain.services.form_filler import FormFiller
from domain.services.popup_resolver import PopupResolver
from domain.services.retry import RetryPolicy, driver_sleep, poll
from domain.services.submission_gate import SubmissionGate, wait_for_navigation_settled

FORWARD_ORDER: tuple[WorkflowState, ...] = (
    WorkflowState.START,
    WorkflowState.NAVIGATED,
    WorkflowState.COURSE_MATCHED,
    WorkflowState.BOOKED,
    WorkflowState.CONFIRM_CLICKED,
    WorkflowState.FORM_PAGE_READY,
    WorkflowState.FORM_FILLED,
    WorkflowState.SUBMITTED,
    WorkflowState.FINAL_CONFIRMED,
)

# Outcome reported when a stage raises unexpectedly, keyed by the last state reached.
STAGE_FAILURES: dict[WorkflowState, WorkflowOutcome] = {
    WorkflowState.START: WorkflowOutcome.COURSE_NOT_FOUND,
    WorkflowState.NAVIGATED: WorkflowOutcome.COURSE_NOT_FOUND,
    WorkflowState.COURSE_MATCHED: WorkflowOutcome.POPUP_TIMEOUT,
    WorkflowState.BOOKED: WorkflowOutcome.CONFIRM_CONTROL_NOT_FOUND,
    WorkflowState.CONFIRM_CLICKED: WorkflowOutcome.FORM_FILL_FAILED,
    WorkflowState.FORM_PAGE_READY: WorkflowOutcome.FORM_FILL_FAILED,
    WorkflowState.FORM_FILLED: WorkflowOutcome.SUBMIT_UNCERTAIN,
    WorkflowState.SUBMITTED: WorkflowOutcome.FINAL_CONFIRM_UNCERTAIN,
}

FAILURE_LABELS: dict[WorkflowOutcome, str] = {
    WorkflowOutcome.COURSE_NOT_FOUND: "error_target_not_found",
    WorkflowOutcome.POPUP_TIMEOUT: "error_no_popup",
    WorkflowOutcome.CONFIRM_CONTROL_NOT_FOUND: "error_no_confirm_button",
    WorkflowOutcome.FORM_FILL_FAILED: "error_form_fill",
    WorkflowOutcome.SUBMIT_UNCERTAIN: "error_form_submit",
    WorkflowOutcome.FINAL_CONFIRM_UNCERTAIN: "error_final_confirmation",
}


class IllegalTransitionError(RuntimeError):
    pass


class WorkflowStateMachine:
    """Tracks the current state; only the next forward state or FAILED are reachable."""

    def __init__(self) -> None:
        self.state = WorkflowState.START
        self.history: list[WorkflowState] = [WorkflowState.START]

    def advance(self, target: WorkflowState) -> None:
        if self.state in (WorkflowState.FAILED, WorkflowState.FINAL_CONFIRMED):
            raise IllegalTransitionError(f"{self.state.value} is terminal")
        if target is not WorkflowState.FAILED:
            expected = FORWARD_ORDER[FORWARD_ORDER.index(self.state) + 1]
            if target is not expected:
                raise IllegalTransitionError(
                    f"cannot move from {self.state.value} to {target.value}"
                )
        self.state = target
        self.history.append(target)


@dataclass
class _Progress:
    page: PageDriverPort
    machine: WorkflowStateMachine = field(default_factory=WorkflowStateMachine)
    course: CourseMatch | None = None
    submission: SubmissionResult | None = None
    confirmation: ConfirmationResult | None = None
    last_completed: WorkflowState = WorkflowState.START


class BookingWorkflow:
    """Runs one booking attempt against a live page and returns a tagged result."""

    def __init__(
        self,
        *,
        logger: LoggerPort,
        diagnostics: DiagnosticRecorder,
        course_matcher: CourseMatcher,
        popup_resolver: PopupResolver,
        button_classifier: ButtonClassifier,
        form_discoverer: FormFieldDiscoverer,
        form_filler: FormFiller,
        submission_gate: SubmissionGate,
        final_confirmation: FinalConfirmation,
        selectors: SiteSelectors | None = None,
        navigation_timeout_ms: int = 30_000,
        click_policy: RetryPolicy = RetryPolicy(max_attempts=3, interval_seconds=1.0),
        confirm_navigation_seconds: float = 30.0,
    ) -> None:
        self._logger = logger
        self._diagnostics = diagnostics
        self._matcher = course_matcher
        self._popups = popup_resolver
        self._buttons = button_classifier
        self._discoverer = form_discoverer
        self._filler = form_filler
        self._gate = submission_gate
        self._final = final_confirmation
        self._sel = selectors or SiteSelectors()
        self._navigation_timeout_ms = navigation_timeout_ms
        self._click_policy = click_policy
        self._confirm_navigation_seconds = confirm_navigation_seconds

    @classmethod
    def from_config(
        cls,
        config: BookingConfig,
        *,
        logger: LoggerPort,
        sink: DiagnosticSinkPort,
        selectors: SiteSelectors | None = None,
    ) -> BookingWorkflow:
        sel = selectors or SiteSelectors()
        return cls(
            logger=logger,
            diagnostics=DiagnosticRecorder(sink, logger),
            course_matcher=CourseMatcher(logger=logger, selectors=sel.listing),
            popup_resolver=PopupResolver(
                logger=logger,
                navigation_timeout_ms=config.navigation_timeout_ms,
            ),
            button_classifier=ButtonClassifier(logger=logger),
            form_discoverer=FormFieldDiscoverer(logger=logger),
            form_filler=FormFiller(
                logger=logger,
                selectors=sel.form,
                student_statuses=config.student_statuses,
                field_timeout_ms=config.navigation_timeout_ms,
            ),
            submission_gate=SubmissionGate(logger=logger, submit_selector=sel.form.submit_button),
            final_confirmation=FinalConfirmation(logger=logger, selectors=sel.confirmation),
            selectors=sel,
            navigation_timeout_ms=config.navigation_timeout_ms,
            confirm_navigation_seconds=config.navigation_timeout_ms / 1000,
        )

    async def run(
        self,
        *,
        driver: PageDriverPort,
        target_url: str,
        slot: CourseSlot,
        profile: UserProfile,
        run_context: RunContext,
    ) -> WorkflowResult:
        progress = _Progress(page=driver)
        try:
            self._diagnostics.start(run_context)
        except Exception as exc:
            self._logger.warning("diagnostic_directory_unavailable", error=str(exc))

        try:
            result = await self._run_stages(progress, target_url, slot, profile, run_context)
        except Exception as exc:
            self._logger.error(
                "workflow_unexpected_error",
                state=progress.machine.state.value,
                error=str(exc),
            )
            outcome = STAGE_FAILURES.get(progress.last_completed, WorkflowOutcome.COURSE_NOT_FOUND)
            if (
                outcome is WorkflowOutcome.FINAL_CONFIRM_UNCERTAIN
                and progress.submission is not None
                and not progress.submission.confirmed
            ):
                outcome = WorkflowOutcome.SUBMIT_UNCERTAIN
            result = await self._fail(
                progress,
                run_context,
                outcome,
                f"unexpected error: {exc}",
                label="error_unexpected",
            )

        self._diagnostics.record_outcome(
            run_context,
            {
                "run_id": run_context.run_id,
                "outcome": result.outcome.value,
                "state": result.state.value,
                "reason": result.reason,
                "day": slot.day,
                "time": slot.time,
                "history": [state.value for state in result.history],
            },
        )
        self._logger.info(
            "workflow_finished",
            outcome=result.outcome.value,
            state=result.state.value,
            reason=result.reason,
        )
        return result

    # -- stages -------------------------------------------------------------

    async def _run_stages(
        self,
        progress: _Progress,
        target_url: str,
        slot: CourseSlot,
        profile: UserProfile,
        run_context: RunContext,
    ) -> WorkflowResult:
        driver = progress.page

        await self._navigate(driver, target_url)
        self._advance(progress, WorkflowState.NAVIGATED)

        match = await self._matcher.find(driver, slot)
        progress.course = match
        if not match.found or match.button_selector is None:
            return await self._fail(
                progress,
                run_context,
                WorkflowOutcome.COURSE_NOT_FOUND,
                match.reason or "course not found",
                label="error_not_found_table" if match.reason == "listing missing" else None,
            )
        self._advance(progress, WorkflowState.COURSE_MATCHED)

        pending = self._popups.arm(driver)
        if not await self._click_with_retry(driver, match.button_selector):
            pending.cancel()
            return await self._fail(
                progress, run_context, WorkflowOutcome.POPUP_TIMEOUT, "booking control could not be clicked"
            )
        self._logger.info("booking_control_clicked", selector=match.button_selector)
        try:
            popup = await pending.resolve()
        except DriverTimeoutError as exc:
            return await self._fail(progress, run_context, WorkflowOutcome.POPUP_TIMEOUT, str(exc))
        progress.page = popup
        self._advance(progress, WorkflowState.BOOKED)
        self._logger.info("popup_ready", title=await popup.title())
        await self._diagnostics.capture_step(run_context, popup, "popup_window")

        buttons = await self._buttons.snapshot(popup, self._sel.popup.buttons)
        confirm = self._buttons.classify(buttons, ButtonIntent.CONFIRM)
        if confirm is None:
            return await self._fail(
                progress, run_context, WorkflowOutcome.CONFIRM_CONTROL_NOT_FOUND, "no confirm control in popup"
            )
        confirm_selector = self._buttons.build_selector(confirm.descriptor, self._sel.popup.buttons)
        navigated = popup.arm_navigation()
        try:
            await popup.click(confirm_selector)
        except Exception as exc:
            navigated.cancel()
            return await self._fail(
                progress,
                run_context,
                WorkflowOutcome.CONFIRM_CONTROL_NOT_FOUND,
                f"confirm control {confirm_selector} not clickable: {exc}",
            )
        self._logger.info("confirm_control_clicked", selector=confirm_selector, tier=confirm.tier)
        if not await wait_for_navigation_settled(
            popup,
            navigated,
            settle_seconds=self._confirm_navigation_seconds,
            load_state="networkidle",
        ):
            self._logger.warning("confirm_navigation_not_settled")
        self._advance(progress, WorkflowState.CONFIRM_CLICKED)

        self._logger.info("form_page_ready", title=await popup.title())
        await self._discoverer.discover(popup)
        self._advance(progress, WorkflowState.FORM_PAGE_READY)

        if not await self._filler.fill(popup, profile):
            return await self._fail(
                progress, run_context, WorkflowOutcome.FORM_FILL_FAILED, "a required form field could not be set"
            )
        self._advance(progress, WorkflowState.FORM_FILLED)

        await self._diagnostics.capture_step(run_context, popup, "before_submit")
        submission = await self._gate.submit(popup)
        progress.submission = submission
        await self._diagnostics.capture_step(run_context, popup, "after_submit")
        if not submission.confirmed:
            self._logger.warning("submission_uncertain_continuing", clicked=submission.clicked)
            await self._diagnostics.persist(run_context, popup, SnapshotKind.SCREENSHOT, "error_form_submit")
        self._advance(progress, WorkflowState.SUBMITTED)

        await self._diagnostics.capture_step(run_context, popup, "final_confirmation_page")
        confirmation = await self._final.confirm(popup)
        progress.confirmation = confirmation
        await self._diagnostics.capture_step(run_context, popup, "booking_complete")

        if confirmation.status is ConfirmationStatus.FAILED:
            outcome = (
                WorkflowOutcome.FINAL_CONFIRM_UNCERTAIN
                if submission.confirmed
                else WorkflowOutcome.SUBMIT_UNCERTAIN
            )
            return await self._fail(progress, run_context, outcome, "final confirmation control not completed")

        self._advance(progress, WorkflowState.FINAL_CONFIRMED)
        if confirmation.status is ConfirmationStatus.CONFIRMED:
            self._logger.info("booking_succeeded", marker=confirmation.marker)
            return self._result(progress, WorkflowOutcome.SUCCESS)

        await self._diagnostics.persist(
            run_context, popup, SnapshotKind.SCREENSHOT, FAILURE_LABELS[WorkflowOutcome.FINAL_CONFIRM_UNCERTAIN]
        )
        return self._result(
            progress,
            WorkflowOutcome.FINAL_CONFIRM_UNCERTAIN,
            "final page shows no success marker",
        )

    async def _navigate(self, driver: PageDriverPort, url: str) -> None:
        self._logger.info("navigation_started", url=url)
        try:
            await driver.goto(url, timeout_ms=self._navigation_timeout_ms)
            await driver.wait_for_load_state("domcontentloaded")
            self._logger.info("navigation_completed", title=await driver.title())
        except Exception as exc:
            self._logger.warning("navigation_failed", url=url, error=str(exc))

    async def _click_with_retry(self, driver: PageDriverPort, selector: str) -> bool:
        async def _attempt(attempt: int) -> bool | None:
            try:
                await driver.wait_for_selector(
                    selector,
                    state="attached",
                    timeout_ms=self._navigation_timeout_ms,
                )
                await driver.click(selector)
                return True
            except Exception as exc:
                self._logger.warning(
                    "click_attempt_failed",
                    selector=selector,
                    attempt=attempt + 1,
                    max_attempts=self._click_policy.max_attempts,
                    error=str(exc),
                )
                return None

        return bool(await poll(_attempt, self._click_policy, sleep=driver_sleep(driver)))

    # -- state helpers ------------------------------------------------------

    @staticmethod
    def _advance(progress: _Progress, target: WorkflowState) -> None:
        progress.machine.advance(target)
        progress.last_completed = target

    async def _fail(
        self,
        progress: _Progress,
        run_context: RunContext,
        outcome: WorkflowOutcome,
        reason: str,
        *,
        label: str | None = None,
    ) -> WorkflowResult:
        self._logger.error(
            "workflow_failed",
            outcome=outcome.value,
            state=progress.machine.state.value,
            reason=reason,
        )
        reached = progress.machine.state
        if reached is not WorkflowState.FAILED:
            progress.machine.advance(WorkflowState.FAILED)
        await self._diagnostics.capture_failure(
            run_context,
            progress.page,
            label or FAILURE_LABELS.get(outcome, "error_page"),
        )
        return self._result(progress, outcome, reason)

    @staticmethod
    def _result(
        progress: _Progress,
        outcome: WorkflowOutcome,
        reason: str | None = None,
    ) -> WorkflowResult:
        return WorkflowResult(
            outcome=outcome,
            state=progress.machine.state,
            reason=reason,
            course=progress.course,
            submission=progress.submission,
            confirmation=progress.confirmation,
            history=tuple(progress.machine.history),
        )
