from __future__ import annotations

from enum import Enum

from domain.models import RunContext
from domain.ports import DiagnosticSinkPort, LoggerPort, PageDriverPort


class SnapshotKind(str, Enum):
    HTML = "html"
    SCREENSHOT = "screenshot"


class DiagnosticRecorder:
    """Captures page snapshots into the diagnostic sink; capture problems never abort a run."""

    def __init__(self, sink: DiagnosticSinkPort, logger: LoggerPort) -> None:
        self._sink = sink
        self._logger = logger

    def start(self, run_context: RunContext) -> str:
        return self._sink.ensure_run_directory(run_context)

    async def persist(
        self,
        run_context: RunContext,
        driver: PageDriverPort,
        kind: SnapshotKind,
        label: str,
    ) -> None:
        try:
            if kind is SnapshotKind.HTML:
                path = self._sink.save_html(run_context, label, await driver.content())
            else:
                image = await driver.screenshot(full_page=True)
                path = self._sink.save_screenshot(run_context, label, image)
        except Exception as exc:
            self._logger.warning("diagnostic_capture_failed", kind=kind.value, label=label, error=str(exc))
            return
        self._logger.info("diagnostic_saved", kind=kind.value, path=path)

    async def capture_failure(
        self,
        run_context: RunContext,
        driver: PageDriverPort,
        label: str,
    ) -> None:
        await self.persist(run_context, driver, SnapshotKind.HTML, label)
        await self.persist(run_context, driver, SnapshotKind.SCREENSHOT, label)

    async def capture_step(
        self,
        run_context: RunContext,
        driver: PageDriverPort,
        label: str,
    ) -> None:
        if not run_context.is_debug:
            return
        await self.persist(run_context, driver, SnapshotKind.HTML, label)

    def record_outcome(self, run_context: RunContext, metadata: dict[str, object]) -> None:
        try:
            self._sink.save_run_metadata(run_context, metadata)
        except Exception as exc:
            self._logger.warning("diagnostic_metadata_failed", error=str(exc))
