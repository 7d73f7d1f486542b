from __future__ import annotations

import json
import re
from pathlib import Path

from domain.models import RunContext


class FileSystemDiagnosticSink:
    """Stores page HTML, screenshots and run metadata under artifacts/run_<id>/.

    HTML and screenshots share one step counter per run, so files sort in
    capture order: ``001_popup_window.html``, ``002_error_no_popup.png``...
    """

    def __init__(self, base_dir: str = "artifacts") -> None:
        self._base_dir = Path(base_dir)
        self._step_counter: dict[str, int] = {}

    def ensure_run_directory(self, run_context: RunContext) -> str:
        run_dir = self._run_dir(run_context)
        run_dir.mkdir(parents=True, exist_ok=True)
        return str(run_dir)

    def save_html(self, run_context: RunContext, label: str, html: str) -> str:
        path = self._next_path(run_context, label, "html")
        path.write_text(html, encoding="utf-8")
        return str(path)

    def save_screenshot(
        self,
        run_context: RunContext,
        label: str,
        image_bytes: bytes,
    ) -> str:
        path = self._next_path(run_context, label, "png")
        path.write_bytes(image_bytes)
        return str(path)

    def save_run_metadata(
        self,
        run_context: RunContext,
        metadata: dict[str, object],
    ) -> str:
        run_dir = self._run_dir(run_context)
        run_dir.mkdir(parents=True, exist_ok=True)
        path = run_dir / "run_meta.json"
        path.write_text(json.dumps(metadata, indent=2, default=str, ensure_ascii=False), encoding="utf-8")
        return str(path)

    def _next_path(self, run_context: RunContext, label: str, extension: str) -> Path:
        run_dir = self._run_dir(run_context)
        run_dir.mkdir(parents=True, exist_ok=True)
        count = self._step_counter.get(run_context.run_id, 0) + 1
        self._step_counter[run_context.run_id] = count
        return run_dir / f"{count:03d}_{self._safe(label)}.{extension}"

    def _run_dir(self, run_context: RunContext) -> Path:
        if run_context.log_directory:
            return Path(run_context.log_directory)
        return self._base_dir / f"run_{run_context.run_id}"

    @staticmethod
    def _safe(label: str) -> str:
        cleaned = re.sub(r"[^A-Za-z0-9_-]+", "_", label).strip("_")
        return cleaned or "step"
