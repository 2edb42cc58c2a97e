"""Undo recorded generation runs."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from blueprintx.history.manager import (
    GenerationHistoryManager,
    sort_runs_newest_first,
)
from blueprintx.history.models import HistoryRun
from blueprintx.kernel.atomic_write import atomic_write_bytes
from blueprintx.kernel.generation import FileStatus

_LOGGER = logging.getLogger(__name__)


class RollbackActionKind(StrEnum):
    """What rolling back one entry does."""

    DELETE = "delete"
    RESTORE = "restore"


class RollbackStatus(StrEnum):
    """Outcome of one rollback action."""

    DELETED = "deleted"
    RESTORED = "restored"
    SKIPPED = "skipped"
    ERROR = "error"
    PLANNED = "planned"


class RollbackAction(BaseModel):
    """One planned file change derived from a journaled entry."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: RollbackActionKind
    run_id: str
    run_path: Path
    label: str
    path: str | None = None
    full_path: str | None = None
    backup: str | None = None


class RollbackOutcome(BaseModel):
    """Result of executing (or previewing) one action."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    action: RollbackAction
    status: RollbackStatus
    detail: str


class RollbackReport(BaseModel):
    """Ordered outcomes of one rollback."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    outcomes: tuple[RollbackOutcome, ...] = ()
    dry_run: bool = False

    def count(self, status: RollbackStatus) -> int:
        """Return how many outcomes have ``status``."""
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def has_errors(self) -> bool:
        """Return whether any action failed."""
        return self.count(RollbackStatus.ERROR) > 0

    @property
    def run_ids(self) -> tuple[str, ...]:
        """Return distinct run ids touched, in processing order."""
        return tuple(dict.fromkeys(outcome.action.run_id for outcome in self.outcomes))


class RollbackService:
    """Resolve, plan and execute rollbacks over recorded history."""

    def __init__(self, manager: GenerationHistoryManager) -> None:
        """Store history manager.

        Args:
            manager: Source of recorded runs.
        """
        self._manager = manager

    def resolve_runs(
        self,
        run_id: str | None = None,
        execution_id: str | None = None,
        latest_only: bool = False,
    ) -> list[HistoryRun]:
        """Select the runs to roll back, newest first.

        Args:
            run_id: Explicit run; wins over every other selector.
            execution_id: Every run of this execution.
            latest_only: Restrict the default selection to the newest run.

        Returns:
            Target runs; empty when nothing matches.
        """
        run_id = _blank_to_none(run_id)
        execution_id = _blank_to_none(execution_id)
        if run_id is not None:
            run = self._manager.get_run(run_id)
            return [] if run is None else [run]

        runs = self._manager.list_runs()
        if not runs:
            return []
        if execution_id is not None:
            return [run for run in runs if run.manifest.execution_id == execution_id]

        latest = runs[0]
        latest_execution = latest.manifest.execution_id
        if latest_only or latest_execution is None:
            return [latest]
        return [run for run in runs if run.manifest.execution_id == latest_execution]

    def plan(self, runs: Sequence[HistoryRun]) -> list[RollbackAction]:
        """Turn runs into actions in reverse recording order.

        Runs are processed newest first and each run's entries last to first,
        so files touched several times end in their earliest recorded state.

        Args:
            runs: Target runs.

        Returns:
            Delete actions for written files, restore actions for overwritten ones.
        """
        actions = []
        for run in sort_runs_newest_first(runs):
            label = run.manifest.blueprint.path or run.id
            for entry in reversed(run.manifest.entries):
                if entry.status == FileStatus.WRITTEN:
                    kind = RollbackActionKind.DELETE
                elif entry.status == FileStatus.OVERWRITTEN:
                    kind = RollbackActionKind.RESTORE
                else:
                    continue
                actions.append(
                    RollbackAction(
                        kind=kind,
                        run_id=run.id,
                        run_path=run.path,
                        label=label,
                        path=entry.path,
                        full_path=entry.full_path,
                        backup=entry.backup,
                    )
                )
        return actions

    def execute(
        self, actions: Sequence[RollbackAction], dry_run: bool = False
    ) -> RollbackReport:
        """Apply actions best-effort; a failed action never stops the rest.

        Args:
            actions: Planned actions.
            dry_run: Report every action as planned and touch nothing.

        Returns:
            Per-action outcomes.
        """
        if dry_run:
            outcomes = tuple(
                RollbackOutcome(
                    action=action,
                    status=RollbackStatus.PLANNED,
                    detail=f"Would {action.kind} '{action.full_path or action.path}'.",
                )
                for action in actions
            )
            return RollbackReport(outcomes=outcomes, dry_run=True)

        outcomes = []
        for action in actions:
            outcome = self._apply(action)
            if outcome.status is RollbackStatus.ERROR:
                _LOGGER.warning(
                    "Rollback of %s failed: %s", action.run_id, outcome.detail
                )
            outcomes.append(outcome)
        return RollbackReport(outcomes=tuple(outcomes))

    def _apply(self, action: RollbackAction) -> RollbackOutcome:
        if not action.full_path:
            return _outcome(
                action,
                RollbackStatus.ERROR,
                f"No path recorded for '{action.path or 'unknown'}'.",
            )
        target = Path(action.full_path)
        if action.kind is RollbackActionKind.DELETE:
            return _delete(action, target)
        return _restore(action, target)


def _delete(action: RollbackAction, target: Path) -> RollbackOutcome:
    if not target.is_file():
        return _outcome(
            action, RollbackStatus.SKIPPED, f"'{target}' no longer exists."
        )
    try:
        target.unlink()
    except OSError as exc:
        return _outcome(
            action, RollbackStatus.ERROR, f"Could not delete '{target}': {exc}"
        )
    return _outcome(action, RollbackStatus.DELETED, f"Deleted '{target}'.")


def _restore(action: RollbackAction, target: Path) -> RollbackOutcome:
    if not action.backup:
        return _outcome(action, RollbackStatus.ERROR, f"No backup for '{target}'.")
    backup_path = action.run_path / action.backup
    try:
        contents = backup_path.read_bytes()
    except FileNotFoundError:
        return _outcome(
            action, RollbackStatus.ERROR, f"Backup not found '{backup_path}'."
        )
    except OSError as exc:
        return _outcome(
            action,
            RollbackStatus.ERROR,
            f"Could not read backup '{backup_path}': {exc}",
        )
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        atomic_write_bytes(target, contents, "restore")
    except OSError as exc:
        return _outcome(
            action, RollbackStatus.ERROR, f"Could not restore '{target}': {exc}"
        )
    return _outcome(action, RollbackStatus.RESTORED, f"Restored '{target}'.")


def _outcome(
    action: RollbackAction, status: RollbackStatus, detail: str
) -> RollbackOutcome:
    return RollbackOutcome(action=action, status=status, detail=detail)


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None
