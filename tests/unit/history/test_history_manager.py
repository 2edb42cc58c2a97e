"""Unit tests for GenerationHistoryManager."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from pytest import MonkeyPatch

from blueprintx.history import GenerationHistoryManager
from blueprintx.history.manager import backup_filename
from blueprintx.history.models import MANIFEST_FILENAME
from blueprintx.kernel.generation import FileStatus, PipelineEntry
from tests.unit.helpers import (
    make_blueprint,
    overwritten_entry,
    pipeline_result,
    written_entry,
)


def _write_manifest(root: Path, run_id: str, **fields: Any) -> Path:
    run_path = root / run_id
    run_path.mkdir(parents=True)
    manifest = {"id": run_id, "entries": [], **fields}
    (run_path / MANIFEST_FILENAME).write_text(json.dumps(manifest), encoding="utf-8")
    return run_path


@pytest.mark.unit
def test_record_writes_manifest_and_byte_exact_backups(
    tmp_path: Path, output_root: Path
) -> None:
    """Overwritten files should be backed up byte-for-byte next to the manifest."""
    # Arrange
    manager = GenerationHistoryManager(tmp_path / "history")
    previous = b"\x00\xffold contents\r\n"
    result = pipeline_result(
        written_entry(output_root, "src/New.py", b"new"),
        PipelineEntry(
            status=FileStatus.SKIPPED,
            path="src/Same.py",
            full_path=str(output_root / "src/Same.py"),
            message="unchanged",
        ),
        overwritten_entry(output_root, "src/Employee.py", previous, b"current"),
    )

    # Act
    outcome = manager.record_outcome(
        make_blueprint(),
        "hr/employee.yaml",
        result,
        {"execution_id": "exec-1", "filters": {"module": "hr"}, "warnings": ["w"]},
    )

    # Assert
    assert outcome.recorded
    run = manager.get_run(outcome.run_id or "")
    assert run is not None
    manifest = run.manifest
    assert manifest.execution_id == "exec-1"
    assert manifest.blueprint.path == "hr/employee.yaml"
    assert manifest.blueprint.module == "hr"
    assert manifest.filters == {"module": "hr"}
    assert manifest.warnings == ["w"]
    assert [entry.status for entry in manifest.entries] == ["written", "overwritten"]
    assert manifest.entries[0].backup is None
    backup = manifest.entries[1].backup
    assert backup == "002-employee-py.bak"
    assert (run.path / backup).read_bytes() == previous
    raw = json.loads((run.path / MANIFEST_FILENAME).read_text(encoding="utf-8"))
    assert "backup" not in raw["entries"][0]
    assert raw["entries"][1]["previous_bytes"] == len(previous)


@pytest.mark.unit
def test_record_run_id_layout(tmp_path: Path, output_root: Path) -> None:
    """Run ids combine a UTC stamp, module and entity slugs and a uuid."""
    manager = GenerationHistoryManager(tmp_path / "history")
    result = pipeline_result(written_entry(output_root, "a.txt", b"a"))

    nested = manager.record(make_blueprint(module="hr/payroll"), "x.yaml", result)
    top = manager.record(make_blueprint(module=None), "y.yaml", result)

    assert nested is not None and top is not None
    assert nested.split("-")[1:3] == ["hr", "payroll"]
    assert top.split("-")[1:3] == ["global", "employee"]
    assert len(nested.split("-")[0]) == 14


@pytest.mark.unit
def test_record_without_journaled_entries_creates_nothing(
    tmp_path: Path,
) -> None:
    """Preview-only and skipped-only results should not create a run."""
    root = tmp_path / "history"
    manager = GenerationHistoryManager(root)
    result = pipeline_result(
        PipelineEntry(
            status=FileStatus.PREVIEW, path="a.txt", full_path="/x/a.txt", preview="a"
        )
    )

    outcome = manager.record_outcome(make_blueprint(), "hr/employee.yaml", result)

    assert outcome.run_id is None
    assert outcome.reason == "no written or overwritten files"
    assert not root.exists()


@pytest.mark.unit
@pytest.mark.parametrize(
    ("storage", "enabled"), [(None, True), ("   ", True), ("history", False)]
)
def test_disabled_history_records_and_lists_nothing(
    tmp_path: Path, output_root: Path, storage: str | None, enabled: bool
) -> None:
    """A blank root or disabled switch turns history off."""
    manager = GenerationHistoryManager(storage, enabled=enabled)
    result = pipeline_result(written_entry(output_root, "a.txt", b"a"))

    outcome = manager.record_outcome(make_blueprint(), "x.yaml", result)

    assert not manager.is_enabled()
    assert manager.history_root() is None
    assert outcome.reason == "history is disabled"
    assert manager.list_runs() == []
    assert manager.get_latest_run() is None


@pytest.mark.unit
def test_record_failure_removes_partial_run(
    tmp_path: Path, output_root: Path, monkeypatch: MonkeyPatch
) -> None:
    """A failing manifest write should leave no run directory behind."""
    # Arrange
    root = tmp_path / "history"
    manager = GenerationHistoryManager(root)
    result = pipeline_result(
        overwritten_entry(output_root, "a.txt", b"old", b"new"),
    )

    def _fail(*_args: object, **_kwargs: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("blueprintx.history.manager.atomic_write_json", _fail)

    # Act
    outcome = manager.record_outcome(make_blueprint(), "x.yaml", result)

    # Assert
    assert outcome.run_id is None
    assert outcome.reason == "history write failed: disk full"
    assert list(root.iterdir()) == []


@pytest.mark.unit
def test_list_runs_orders_by_sequence_then_timestamp_then_id(tmp_path: Path) -> None:
    """Sequence wins over timestamp; ties fall back to timestamp and id."""
    root = tmp_path / "history"
    stamp = "2026-01-01T10:00:00+00:00"
    _write_manifest(root, "run-a", timestamp=stamp, sequence=10.2)
    _write_manifest(root, "run-b", timestamp=stamp, sequence=10.5)
    _write_manifest(root, "run-c", timestamp="2026-01-02T10:00:00")
    _write_manifest(root, "run-d", timestamp="2026-01-02T10:00:00+00:00")

    runs = GenerationHistoryManager(root).list_runs()

    assert [run.id for run in runs] == ["run-d", "run-c", "run-b", "run-a"]


@pytest.mark.unit
def test_list_runs_ignores_invalid_manifests(tmp_path: Path) -> None:
    """Unreadable, non-object and schema-invalid manifests are skipped."""
    root = tmp_path / "history"
    _write_manifest(root, "good", timestamp="2026-01-01T00:00:00+00:00")
    (root / "no-manifest").mkdir()
    (root / "broken").mkdir()
    (root / "broken" / MANIFEST_FILENAME).write_text("{", encoding="utf-8")
    (root / "array").mkdir()
    (root / "array" / MANIFEST_FILENAME).write_text("[]", encoding="utf-8")
    _write_manifest(root, "bad-sequence", sequence="soon")
    (root / "stray.txt").write_text("x", encoding="utf-8")

    runs = GenerationHistoryManager(root).list_runs()

    assert [run.id for run in runs] == ["good"]


@pytest.mark.unit
def test_load_run_defaults_missing_id_and_entries(tmp_path: Path) -> None:
    """Manifests without id or entries still load."""
    root = tmp_path / "history"
    (root / "legacy").mkdir(parents=True)
    (root / "legacy" / MANIFEST_FILENAME).write_text(
        json.dumps({"entries": "oops"}), encoding="utf-8"
    )

    run = GenerationHistoryManager(root).get_run("legacy")

    assert run is not None
    assert run.id == "legacy"
    assert run.manifest.entries == []


@pytest.mark.unit
@pytest.mark.parametrize("run_id", ["", "  ", ".", "..", "a/b", "a\\b", "missing"])
def test_get_run_rejects_unsafe_or_unknown_ids(tmp_path: Path, run_id: str) -> None:
    """Separators, dot names and unknown ids resolve to nothing."""
    root = tmp_path / "history"
    _write_manifest(root, "a/b")

    assert GenerationHistoryManager(root).get_run(run_id) is None


@pytest.mark.unit
def test_sequences_increase_within_one_manager(
    tmp_path: Path, output_root: Path, monkeypatch: MonkeyPatch
) -> None:
    """Runs recorded in the same instant still get increasing sequences."""
    monkeypatch.setattr("blueprintx.history.manager.time.time", lambda: 100.0)
    manager = GenerationHistoryManager(tmp_path / "history")
    result = pipeline_result(written_entry(output_root, "a.txt", b"a"))

    first = manager.record(make_blueprint(), "x.yaml", result)
    second = manager.record(make_blueprint(), "x.yaml", result)

    latest = manager.get_latest_run()
    assert latest is not None
    assert latest.id == second
    assert first != second


@pytest.mark.unit
def test_backup_filename_slugifies_basename() -> None:
    """Backup names are numbered and slugified."""
    assert backup_filename("app\\Models\\Employee.php", 0) == "001-employee-php.bak"
    assert backup_filename(None, 11) == "012-file.bak"
