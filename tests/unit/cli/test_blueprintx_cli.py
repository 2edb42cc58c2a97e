"""CLI tests for blueprintx commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pytest import MonkeyPatch
from typer.testing import CliRunner

from blueprintx.cli import app
from blueprintx.config.settings import HISTORY_ENABLED_ENV, HISTORY_PATH_ENV
from tests.unit.helpers import write_blueprint

_RUNNER = CliRunner()

_EMPLOYEE = {
    "entity": "Employee",
    "fields": [
        {"name": "id", "type": "uuid"},
        {"name": "email", "type": "string"},
    ],
}
_SNAPSHOT = Path(".blueprintx") / "snapshots" / "hr" / "employee.json"


@pytest.fixture
def project(tmp_path: Path, monkeypatch: MonkeyPatch) -> Path:
    """Project directory with one valid blueprint, used as the working dir."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(HISTORY_ENABLED_ENV, raising=False)
    monkeypatch.delenv(HISTORY_PATH_ENV, raising=False)
    write_blueprint(tmp_path / "blueprints", "hr/employee.yaml", _EMPLOYEE)
    return tmp_path


def _history_runs() -> list[dict[str, object]]:
    result = _RUNNER.invoke(app, ["history", "--json"])
    assert result.exit_code == 0
    return json.loads(result.stdout)


@pytest.mark.unit
def test_validate_json_reports_each_blueprint(project: Path) -> None:
    """Validation rows should cover valid, invalid and unparsable files."""
    # Arrange
    write_blueprint(
        project / "blueprints",
        "hr/team.yaml",
        {**_EMPLOYEE, "entity": "Team", "options": {"versioned": True}},
    )
    (project / "blueprints" / "hr" / "broken.yaml").write_text(
        "entity: [\n", encoding="utf-8"
    )

    # Act
    result = _RUNNER.invoke(app, ["validate", "--json"])

    # Assert
    assert result.exit_code == 1
    rows = {row["file"]: row for row in json.loads(result.stdout)}
    assert rows["hr/employee.yaml"]["status"] == "ok"
    assert rows["hr/employee.yaml"]["module"] == "hr"
    assert [error["code"] for error in rows["hr/team.yaml"]["errors"]] == [
        "options.versioned.missing_field"
    ]
    assert rows["hr/broken.yaml"]["errors"][0]["code"] == "parser.error"


@pytest.mark.unit
def test_validate_clean_module_succeeds(project: Path) -> None:
    """A module with only valid blueprints should exit 0."""
    result = _RUNNER.invoke(app, ["validate", "hr"])

    assert result.exit_code == 0
    assert "1 blueprint(s) checked, 0 error(s)" in result.stdout


@pytest.mark.unit
def test_validate_without_matches_warns_and_succeeds(project: Path) -> None:
    """An empty selection is not a failure."""
    result = _RUNNER.invoke(app, ["validate", "sales"])

    assert result.exit_code == 0
    assert "No blueprints found" in result.stdout


@pytest.mark.unit
def test_validate_missing_blueprints_root_fails(
    tmp_path: Path, monkeypatch: MonkeyPatch
) -> None:
    """A missing blueprints directory should exit 1."""
    monkeypatch.chdir(tmp_path)

    result = _RUNNER.invoke(app, ["validate"])

    assert result.exit_code == 1
    assert "does not exist" in result.stdout


@pytest.mark.unit
def test_list_json_applies_filters(project: Path) -> None:
    """List should filter by module and entity."""
    write_blueprint(
        project / "blueprints", "sales/order.yaml", {**_EMPLOYEE, "entity": "Order"}
    )

    result = _RUNNER.invoke(app, ["list", "--module", "sales", "--json"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == [
        {
            "file": "sales/order.yaml",
            "module": "sales",
            "entity": "Order",
            "architecture": "hexagonal",
            "error": None,
        }
    ]


@pytest.mark.unit
def test_generate_writes_files_and_records_history(project: Path) -> None:
    """Generate should write the snapshot and journal one run."""
    result = _RUNNER.invoke(app, ["generate"])

    assert result.exit_code == 0
    assert "History run:" in result.stdout
    snapshot = json.loads((project / _SNAPSHOT).read_text(encoding="utf-8"))
    assert snapshot["blueprint"]["entity"] == "Employee"
    runs = _history_runs()
    assert len(runs) == 1
    assert runs[0]["blueprint"]["path"] == "hr/employee.yaml"
    assert runs[0]["filters"] == {"module": None, "entity": None}
    assert [entry["status"] for entry in runs[0]["entries"]] == ["written"]


@pytest.mark.unit
def test_generate_dry_run_writes_nothing(project: Path) -> None:
    """Dry runs leave the output tree and history untouched."""
    result = _RUNNER.invoke(app, ["generate", "--dry-run"])

    assert result.exit_code == 0
    assert "Preview mode" in result.stdout
    assert not (project / ".blueprintx").exists()


@pytest.mark.unit
def test_generate_twice_skips_unchanged_files(project: Path) -> None:
    """Re-running without changes records no new history run."""
    _RUNNER.invoke(app, ["generate"])

    result = _RUNNER.invoke(app, ["generate"])

    assert result.exit_code == 0
    assert len(_history_runs()) == 1


@pytest.mark.unit
def test_generate_invalid_blueprint_fails(project: Path) -> None:
    """Blueprints with validation errors are not generated."""
    write_blueprint(
        project / "blueprints",
        "hr/team.yaml",
        {**_EMPLOYEE, "entity": "Team", "options": {"versioned": True}},
    )

    result = _RUNNER.invoke(app, ["generate"])

    assert result.exit_code == 1
    assert "options.versioned.missing_field" in result.stdout
    assert (project / _SNAPSHOT).exists()
    assert not (project / ".blueprintx" / "snapshots" / "hr" / "team.json").exists()


@pytest.mark.unit
def test_generate_unknown_architecture_override_fails(project: Path) -> None:
    """Overriding to an unconfigured architecture fails validation."""
    result = _RUNNER.invoke(app, ["generate", "--architecture", "onion"])

    assert result.exit_code == 1
    assert not (project / _SNAPSHOT).exists()


@pytest.mark.unit
def test_rollback_undoes_latest_execution(project: Path) -> None:
    """Rollback should delete files written by the latest execution."""
    _RUNNER.invoke(app, ["generate"])

    result = _RUNNER.invoke(app, ["rollback", "--force"])

    assert result.exit_code == 0
    assert "deleted=1" in result.stdout
    assert not (project / _SNAPSHOT).exists()


@pytest.mark.unit
def test_rollback_dry_run_keeps_files(project: Path) -> None:
    """Dry-run rollback previews and changes nothing."""
    _RUNNER.invoke(app, ["generate"])

    result = _RUNNER.invoke(app, ["rollback", "--dry-run"])

    assert result.exit_code == 0
    assert "Preview mode: no changes were made." in result.stdout
    assert (project / _SNAPSHOT).exists()


@pytest.mark.unit
def test_rollback_can_be_cancelled(project: Path) -> None:
    """Declining the confirmation keeps files."""
    _RUNNER.invoke(app, ["generate"])

    result = _RUNNER.invoke(app, ["rollback"], input="n\n")

    assert result.exit_code == 0
    assert "Cancelled." in result.stdout
    assert (project / _SNAPSHOT).exists()


@pytest.mark.unit
def test_rollback_without_runs_fails(project: Path) -> None:
    """Rolling back with no history should exit 1."""
    result = _RUNNER.invoke(app, ["rollback", "--force"])

    assert result.exit_code == 1
    assert "No recorded runs" in result.stdout


@pytest.mark.unit
def test_rollback_unknown_run_fails(project: Path) -> None:
    """Unknown run ids should exit 1."""
    result = _RUNNER.invoke(app, ["rollback", "nope", "--force"])

    assert result.exit_code == 1
    assert "nope" in result.stdout


@pytest.mark.unit
def test_history_disabled_by_env_fails(
    project: Path, monkeypatch: MonkeyPatch
) -> None:
    """Disabling history through the environment blocks history commands."""
    monkeypatch.setenv(HISTORY_ENABLED_ENV, "false")

    generate = _RUNNER.invoke(app, ["generate"])
    history = _RUNNER.invoke(app, ["history"])

    assert generate.exit_code == 0
    assert "History run:" not in generate.stdout
    assert history.exit_code == 1
    assert "disabled" in history.stdout


@pytest.mark.unit
def test_invalid_config_exits_with_error(project: Path) -> None:
    """Invalid config files should exit 1 before doing any work."""
    (project / "blueprintx.yaml").write_text("unknown_key: 1\n", encoding="utf-8")

    result = _RUNNER.invoke(app, ["list"])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.stdout


@pytest.mark.unit
def test_explicit_config_relocates_paths(project: Path) -> None:
    """``--config`` should point commands at another blueprints root."""
    write_blueprint(
        project / "definitions", "sales/order.yaml", {**_EMPLOYEE, "entity": "Order"}
    )
    config = project / "custom.yaml"
    config.write_text("paths:\n  blueprints: definitions\n", encoding="utf-8")

    result = _RUNNER.invoke(app, ["list", "--json", "--config", str(config)])

    assert result.exit_code == 0
    assert [row["file"] for row in json.loads(result.stdout)] == ["sales/order.yaml"]
