"""Typer CLI entrypoint for blueprintx."""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape

from blueprintx.blueprint.locator import discover_blueprints, relative_blueprint_path
from blueprintx.blueprint.models import Blueprint
from blueprintx.blueprint.parser import ParseOutcome
from blueprintx.cli.bootstrap import Workbench, build_workbench, configure_logging
from blueprintx.cli.rendering import (
    render_blueprint_list,
    render_history,
    render_pipeline_result,
    render_rollback_plan,
    render_rollback_report,
    render_rollback_selection,
    render_validation_rows,
)
from blueprintx.config import ConfigError, load_config
from blueprintx.kernel.drivers import UnknownArchitectureError
from blueprintx.kernel.generators import GeneratorImportError
from blueprintx.kernel.pipeline import GenerationPipeline

app = typer.Typer(help="blueprintx: blueprint-driven code generation")
_CONSOLE = Console()

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        file_okay=True,
        dir_okay=False,
        help="Path to blueprintx config YAML/JSON file.",
    ),
]


def _load_workbench(config_file: Path | None) -> Workbench:
    """Load config and build collaborators, exiting on config errors."""
    configure_logging()
    try:
        config = load_config(config_file)
    except ConfigError as exc:
        _CONSOLE.print(
            f"[bold red]Invalid configuration:[/bold red] {escape(str(exc))}"
        )
        raise typer.Exit(code=1) from exc
    return build_workbench(config)


def _discover(
    workbench: Workbench, module: str | None, entity: str | None = None
) -> tuple[Path, ...] | None:
    """Return matching blueprint files, or ``None`` when the root is missing."""
    root = workbench.config.paths.blueprints
    if not root.is_dir():
        _CONSOLE.print(
            "[bold red]Blueprints directory does not exist:[/bold red] "
            f"{escape(str(root))}"
        )
        return None
    return discover_blueprints(root, module=module, entity=entity)


def _relative(workbench: Workbench, path: Path) -> str:
    return relative_blueprint_path(workbench.config.paths.blueprints, path)


def _emit_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command("validate")
def validate_command(
    module: Annotated[
        str | None,
        typer.Argument(help="Only validate blueprints under this module (e.g. hr)."),
    ] = None,
    json_output: Annotated[
        bool, typer.Option("--json", help="Print results as JSON.")
    ] = False,
    config_file: ConfigOption = None,
) -> None:
    """Parse and validate blueprints.

    Args:
        module: Optional module prefix filter.
        json_output: Whether to print JSON instead of tables.
        config_file: Optional config file override.
    """
    workbench = _load_workbench(config_file)
    paths = _discover(workbench, module)
    if paths is None:
        raise typer.Exit(code=1)
    if not paths:
        scope = f" for module '{module}'" if module else ""
        _CONSOLE.print(f"[yellow]No blueprints found{scope}.[/yellow]")
        return

    rows = [
        _validation_row(workbench, outcome)
        for outcome in workbench.parser.parse_many(paths)
    ]
    if json_output:
        _emit_json(rows)
    else:
        render_validation_rows(_CONSOLE, rows)

    errors = sum(len(row["errors"]) for row in rows)
    warnings = sum(len(row["warnings"]) for row in rows)
    summary = (
        f"{len(rows)} blueprint(s) checked, {errors} error(s), {warnings} warning(s)"
    )
    failed = any(row["status"] == "error" for row in rows)
    if not json_output:
        style = "bold red" if failed else "green"
        _CONSOLE.print(f"[{style}]{summary}[/{style}]")
    if failed:
        raise typer.Exit(code=1)


def _validation_row(workbench: Workbench, outcome: ParseOutcome) -> dict[str, Any]:
    """Serialize one parse-and-validate outcome."""
    file = _relative(workbench, outcome.path)
    if outcome.blueprint is None:
        return {
            "file": file,
            "module": None,
            "entity": None,
            "status": "error",
            "errors": [
                {"code": "parser.error", "message": str(outcome.error), "path": None}
            ],
            "warnings": [],
        }
    result = workbench.validator.validate(outcome.blueprint).to_dict()
    return {
        "file": file,
        "module": outcome.blueprint.module,
        "entity": outcome.blueprint.entity,
        "status": "ok" if result["valid"] else "error",
        "errors": result["errors"],
        "warnings": result["warnings"],
    }


@app.command("list")
def list_command(
    module: Annotated[
        str | None, typer.Option(help="Only list blueprints under this module.")
    ] = None,
    entity: Annotated[
        str | None, typer.Option(help="Only list blueprints of this entity.")
    ] = None,
    json_output: Annotated[
        bool, typer.Option("--json", help="Print results as JSON.")
    ] = False,
    config_file: ConfigOption = None,
) -> None:
    """List discovered blueprints.

    Args:
        module: Optional module prefix filter.
        entity: Optional entity filter.
        json_output: Whether to print JSON instead of a table.
        config_file: Optional config file override.
    """
    workbench = _load_workbench(config_file)
    paths = _discover(workbench, module, entity)
    if paths is None:
        raise typer.Exit(code=1)

    rows = []
    for outcome in workbench.parser.parse_many(paths):
        blueprint = outcome.blueprint
        rows.append(
            {
                "file": _relative(workbench, outcome.path),
                "module": blueprint.module if blueprint else None,
                "entity": blueprint.entity if blueprint else None,
                "architecture": blueprint.architecture if blueprint else None,
                "error": None if outcome.error is None else str(outcome.error),
            }
        )
    if json_output:
        _emit_json(rows)
    elif rows:
        render_blueprint_list(_CONSOLE, rows)
    else:
        _CONSOLE.print("[yellow]No blueprints found.[/yellow]")
    if any(row["error"] is not None for row in rows):
        raise typer.Exit(code=1)


@app.command("generate")
def generate_command(  # noqa: PLR0913
    module: Annotated[
        str | None, typer.Option(help="Only generate blueprints under this module.")
    ] = None,
    entity: Annotated[
        str | None, typer.Option(help="Only generate blueprints of this entity.")
    ] = None,
    only: Annotated[
        str | None,
        typer.Option(help="Comma-separated layers to generate (e.g. domain,api)."),
    ] = None,
    architecture: Annotated[
        str | None, typer.Option(help="Override the blueprint architecture.")
    ] = None,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Preview files without writing.")
    ] = False,
    force: Annotated[
        bool, typer.Option("--force", help="Overwrite existing files.")
    ] = False,
    config_file: ConfigOption = None,
) -> None:
    """Generate files for every matching blueprint and record history.

    Args:
        module: Optional module prefix filter.
        entity: Optional entity filter.
        only: Optional layer filter.
        architecture: Optional architecture override.
        dry_run: Preview only; no files and no history.
        force: Overwrite existing files that differ.
        config_file: Optional config file override.
    """
    workbench = _load_workbench(config_file)
    try:
        pipeline = workbench.build_pipeline()
    except GeneratorImportError as exc:
        _CONSOLE.print(
            "[bold red]Invalid generator configuration:[/bold red] "
            f"{escape(str(exc))}"
        )
        raise typer.Exit(code=1) from exc
    paths = _discover(workbench, module, entity)
    if paths is None:
        raise typer.Exit(code=1)
    if not paths:
        _CONSOLE.print("[yellow]No blueprints found.[/yellow]")
        return

    context = {
        "execution_id": str(uuid.uuid4()),
        "options": {
            "force": force,
            "only": only,
            "architecture_override": architecture,
        },
        "filters": {"module": module, "entity": entity},
    }
    failed = 0
    for outcome in workbench.parser.parse_many(paths):
        label = _relative(workbench, outcome.path)
        if outcome.blueprint is None:
            _CONSOLE.print(
                f"[bold red]{label}:[/bold red] {escape(str(outcome.error))}"
            )
            failed += 1
            continue
        if not _generate_one(
            workbench,
            pipeline,
            outcome.blueprint,
            label,
            context=context,
            architecture=architecture,
            only=only,
            dry_run=dry_run,
            force=force,
        ):
            failed += 1

    if dry_run:
        _CONSOLE.print("[cyan]Preview mode: no files were written.[/cyan]")
    if failed:
        _CONSOLE.print(f"[bold red]{failed} blueprint(s) failed.[/bold red]")
        raise typer.Exit(code=1)


def _generate_one(  # noqa: PLR0913
    workbench: Workbench,
    pipeline: GenerationPipeline,
    blueprint: Blueprint,
    label: str,
    *,
    context: dict[str, Any],
    architecture: str | None,
    only: str | None,
    dry_run: bool,
    force: bool,
) -> bool:
    """Validate, generate and journal one blueprint; return success."""
    if architecture:
        blueprint = blueprint.with_architecture(architecture)

    validation = workbench.validator.validate(blueprint)
    for message in validation.warnings:
        _CONSOLE.print(
            f"[yellow]{label}: warning {message.code}: {escape(message.message)}"
        )
    if not validation.valid:
        for message in validation.errors:
            _CONSOLE.print(
                f"[red]{label}: error {message.code}: {escape(message.message)}"
            )
        return False

    try:
        result = pipeline.generate(blueprint, only=only, dry_run=dry_run, force=force)
    except UnknownArchitectureError as exc:
        _CONSOLE.print(f"[bold red]{label}:[/bold red] {escape(str(exc))}")
        return False
    render_pipeline_result(_CONSOLE, label, result)

    if not dry_run:
        recorded = workbench.history.record_outcome(
            blueprint,
            label,
            result,
            {**context, "warnings": list(result.warnings)},
        )
        if recorded.run_id is not None:
            _CONSOLE.print(f"[green]History run:[/green] {recorded.run_id}")
        elif workbench.history.is_enabled() and result.journaled_entries():
            _CONSOLE.print(
                "[yellow]Could not record generation history: "
                f"{escape(str(recorded.reason))}"
            )
    return not result.has_errors()


@app.command("history")
def history_command(
    limit: Annotated[
        int, typer.Option(min=1, help="Maximum number of runs to show.")
    ] = 20,
    json_output: Annotated[
        bool, typer.Option("--json", help="Print runs as JSON.")
    ] = False,
    config_file: ConfigOption = None,
) -> None:
    """List recorded generation runs, newest first.

    Args:
        limit: Maximum number of runs.
        json_output: Whether to print JSON instead of a table.
        config_file: Optional config file override.
    """
    workbench = _load_workbench(config_file)
    if not workbench.history.is_enabled():
        _CONSOLE.print("[bold red]Generation history is disabled.[/bold red]")
        raise typer.Exit(code=1)
    runs = workbench.history.list_runs()[:limit]
    if json_output:
        _emit_json(
            [
                {"id": run.id, "path": str(run.path), **run.manifest.to_file_dict()}
                for run in runs
            ]
        )
        return
    render_history(_CONSOLE, runs)


@app.command("rollback")
def rollback_command(  # noqa: PLR0913
    run: Annotated[
        str | None,
        typer.Argument(help="Run id to roll back (defaults to the latest execution)."),
    ] = None,
    execution: Annotated[
        str | None,
        typer.Option("--execution", help="Roll back every run of this execution."),
    ] = None,
    latest_only: Annotated[
        bool,
        typer.Option("--latest-only", help="Only roll back the newest run."),
    ] = False,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Show actions without applying them.")
    ] = False,
    force: Annotated[
        bool, typer.Option("--force", help="Skip the confirmation prompt.")
    ] = False,
    config_file: ConfigOption = None,
) -> None:
    """Undo files written by earlier generate runs.

    Args:
        run: Optional explicit run id.
        execution: Optional execution id.
        latest_only: Restrict the default selection to the newest run.
        dry_run: Preview only.
        force: Skip confirmation.
        config_file: Optional config file override.
    """
    workbench = _load_workbench(config_file)
    if not workbench.history.is_enabled():
        _CONSOLE.print(
            "[bold red]Generation history is disabled.[/bold red] "
            "Set history.enabled and history.path in the configuration."
        )
        raise typer.Exit(code=1)

    service = workbench.rollback_service()
    runs = service.resolve_runs(run, execution, latest_only=latest_only)
    if not runs:
        if run:
            _CONSOLE.print(
                f"[bold red]No history run with id '{escape(run)}'.[/bold red]"
            )
        elif execution:
            _CONSOLE.print(
                f"[bold red]No runs for execution '{escape(execution)}'.[/bold red]"
            )
        else:
            _CONSOLE.print("[bold red]No recorded runs to roll back.[/bold red]")
        available = workbench.history.list_runs()
        if available:
            render_history(_CONSOLE, available[:5])
        raise typer.Exit(code=1)

    actions = service.plan(runs)
    if not actions:
        _CONSOLE.print("[yellow]The selected runs have no files to roll back.[/yellow]")
        return
    render_rollback_selection(_CONSOLE, runs, run_id=run, execution_id=execution)
    render_rollback_plan(_CONSOLE, actions)

    if dry_run:
        service.execute(actions, dry_run=True)
        _CONSOLE.print("[cyan]Preview mode: no changes were made.[/cyan]")
        return
    if not force and not typer.confirm("Roll back these changes?", default=True):
        _CONSOLE.print("Cancelled.")
        return

    report = service.execute(actions)
    render_rollback_report(_CONSOLE, report)
    if report.has_errors:
        raise typer.Exit(code=1)
