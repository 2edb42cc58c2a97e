"""Rich renderers for CLI command output."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from blueprintx.history.models import HistoryRun
from blueprintx.history.rollback import (
    RollbackAction,
    RollbackActionKind,
    RollbackReport,
    RollbackStatus,
)
from blueprintx.kernel.generation import FileStatus, PipelineResult

_FILE_STATUS_STYLES = {
    FileStatus.WRITTEN: "green",
    FileStatus.OVERWRITTEN: "yellow",
    FileStatus.PREVIEW: "cyan",
    FileStatus.SKIPPED: "dim",
    FileStatus.ERROR: "bold red",
}


def render_validation_rows(console: Console, rows: Sequence[dict[str, Any]]) -> None:
    """Render per-blueprint validation results with their findings.

    Args:
        console: Rich console.
        rows: Serialized validation rows (``file``, ``status``, ``errors``...).
    """
    table = Table(
        title="Blueprint Validation", show_header=True, header_style="bold cyan"
    )
    table.add_column("Blueprint", style="bold")
    table.add_column("Status", no_wrap=True)
    table.add_column("Findings")
    for row in rows:
        status = str(row["status"])
        style = "green" if status == "ok" else "bold red"
        findings = [
            f"[red]error[/red] {item['code']}: {escape(item['message'])}"
            for item in row["errors"]
        ]
        findings.extend(
            f"[yellow]warning[/yellow] {item['code']}: {escape(item['message'])}"
            for item in row["warnings"]
        )
        table.add_row(
            str(row["file"]),
            f"[{style}]{status}[/{style}]",
            "\n".join(findings) or "-",
        )
    console.print(table)


def render_blueprint_list(console: Console, rows: Sequence[dict[str, Any]]) -> None:
    """Render discovered blueprints.

    Args:
        console: Rich console.
        rows: Serialized list rows.
    """
    table = Table(title="Blueprints", show_header=True, header_style="bold cyan")
    table.add_column("Blueprint", style="bold")
    table.add_column("Module")
    table.add_column("Entity")
    table.add_column("Architecture")
    table.add_column("Status", no_wrap=True)
    for row in rows:
        error = row.get("error")
        status = "ok" if error is None else f"error: {escape(str(error))}"
        table.add_row(
            str(row["file"]),
            str(row.get("module") or "-"),
            str(row.get("entity") or "-"),
            str(row.get("architecture") or "-"),
            status,
        )
    console.print(table)


def render_pipeline_result(
    console: Console, label: str, result: PipelineResult
) -> None:
    """Render writer outcomes of one blueprint.

    Args:
        console: Rich console.
        label: Blueprint label (relative path).
        result: Pipeline outcomes.
    """
    table = Table(title=label, show_header=True, header_style="bold cyan")
    table.add_column("Status", no_wrap=True)
    table.add_column("Layer")
    table.add_column("File", style="bold")
    table.add_column("Detail")
    for entry in result.entries:
        style = _FILE_STATUS_STYLES[entry.status]
        table.add_row(
            f"[{style}]{entry.status}[/{style}]",
            entry.layer or "-",
            entry.path,
            escape(entry.message or ""),
        )
    console.print(table)
    for warning in result.warnings:
        console.print(f"[yellow]warning: {escape(warning)}[/yellow]")


def render_history(console: Console, runs: Sequence[HistoryRun]) -> None:
    """Render recorded runs, newest first.

    Args:
        console: Rich console.
        runs: Runs to show.
    """
    if not runs:
        console.print(
            Panel(
                "No generation runs recorded yet.",
                title="History",
                border_style="yellow",
                expand=True,
            )
        )
        return
    table = Table(
        title="Generation History", show_header=True, header_style="bold cyan"
    )
    table.add_column("Run ID", style="bold")
    table.add_column("Execution")
    table.add_column("Blueprint")
    table.add_column("Files", no_wrap=True)
    table.add_column("Recorded (UTC)")
    for run in runs:
        manifest = run.manifest
        table.add_row(
            run.id,
            manifest.execution_id or "-",
            escape(manifest.blueprint.path or "-"),
            str(len(manifest.entries)),
            manifest.timestamp or "-",
        )
    console.print(table)


def render_rollback_selection(
    console: Console,
    runs: Sequence[HistoryRun],
    *,
    run_id: str | None,
    execution_id: str | None,
) -> None:
    """Render which runs were selected for rollback.

    Args:
        console: Rich console.
        runs: Selected runs, newest first.
        run_id: Explicitly requested run.
        execution_id: Explicitly requested execution.
    """
    first = runs[0]
    timestamp = first.manifest.timestamp or "unknown date"
    execution = execution_id or first.manifest.execution_id
    if run_id is None and execution is not None:
        text = f"Execution: [bold]{execution}[/bold] ({len(runs)} run(s), {timestamp})"
    else:
        blueprint = first.manifest.blueprint.path or "-"
        text = f"Run: [bold]{first.id}[/bold] (blueprint={blueprint}, {timestamp})"
    console.print(Panel(text, title="Rollback", border_style="cyan", expand=True))


def render_rollback_plan(console: Console, actions: Sequence[RollbackAction]) -> None:
    """Render planned rollback actions.

    Args:
        console: Rich console.
        actions: Planned actions in execution order.
    """
    table = Table(title="Rollback Plan", show_header=True, header_style="bold cyan")
    table.add_column("Action", no_wrap=True)
    table.add_column("Blueprint")
    table.add_column("File", style="bold")
    table.add_column("Absolute path")
    for action in actions:
        verb = "Delete" if action.kind is RollbackActionKind.DELETE else "Restore"
        table.add_row(verb, action.label, action.path or "-", action.full_path or "-")
    console.print(table)


def render_rollback_report(console: Console, report: RollbackReport) -> None:
    """Render per-action outcomes and a summary line.

    Args:
        console: Rich console.
        report: Executed rollback report.
    """
    for outcome in report.outcomes:
        style = "red" if outcome.status is RollbackStatus.ERROR else "green"
        tag = escape(f"[{outcome.status}]")
        console.print(
            f"[{style}]{tag}[/{style}] {outcome.action.label}: "
            f"{escape(outcome.detail)}"
        )
    summary = (
        f"Summary ({len(report.run_ids)} run(s)): "
        f"restored={report.count(RollbackStatus.RESTORED)}, "
        f"deleted={report.count(RollbackStatus.DELETED)}, "
        f"skipped={report.count(RollbackStatus.SKIPPED)}, "
        f"errors={report.count(RollbackStatus.ERROR)}"
    )
    border = "red" if report.has_errors else "green"
    console.print(Panel(summary, title="Rollback", border_style=border, expand=True))
