from __future__ import annotations

import json
from pathlib import Path

from domain.models import RunContext
from infra.logs import FileSystemDiagnosticSink


def test_html_and_screenshots_share_one_step_counter(tmp_path: Path) -> None:
    sink = FileSystemDiagnosticSink(base_dir=str(tmp_path / "artifacts"))
    run = RunContext(run_id="run-123", is_debug=True)
    run_dir = sink.ensure_run_directory(run)

    first = sink.save_html(run, "popup_window", "<html>popup</html>")
    second = sink.save_screenshot(run, "error no/popup", b"png")

    assert run_dir.endswith("run_run-123")
    assert first.endswith("001_popup_window.html")
    assert second.endswith("002_error_no_popup.png")
    assert Path(first).read_text(encoding="utf-8") == "<html>popup</html>"
    assert Path(second).read_bytes() == b"png"


def test_counters_are_per_run(tmp_path: Path) -> None:
    sink = FileSystemDiagnosticSink(base_dir=str(tmp_path))

    a = sink.save_html(RunContext(run_id="a"), "x", "")
    b = sink.save_html(RunContext(run_id="b"), "x", "")

    assert a.endswith("001_x.html")
    assert b.endswith("001_x.html")


def test_explicit_log_directory_wins(tmp_path: Path) -> None:
    sink = FileSystemDiagnosticSink(base_dir=str(tmp_path / "unused"))
    run = RunContext(run_id="r", log_directory=str(tmp_path / "custom"))

    path = sink.save_screenshot(run, "!!!", b"")

    assert path == str(tmp_path / "custom" / "001_step.png")


def test_saves_run_metadata_json(tmp_path: Path) -> None:
    sink = FileSystemDiagnosticSink(base_dir=str(tmp_path))
    run = RunContext(run_id="run-meta-1")
    meta = {"run_id": "run-meta-1", "outcome": "success", "day": "Mo"}

    path = sink.save_run_metadata(run, meta)

    assert path.endswith("run_meta.json")
    loaded = json.loads(Path(path).read_text(encoding="utf-8"))
    assert loaded == meta
