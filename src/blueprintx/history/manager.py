"""Journal generation runs so they can be rolled back later."""

from __future__ import annotations

import functools
import json
import logging
import shutil
import time
import uuid
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath
from typing import Any

from pydantic import ValidationError

from blueprintx.blueprint.models import Blueprint
from blueprintx.history.models import (
    MANIFEST_FILENAME,
    BlueprintRef,
    HistoryEntry,
    HistoryRun,
    RecordOutcome,
    RunManifest,
)
from blueprintx.kernel.atomic_write import atomic_write_bytes, atomic_write_json
from blueprintx.kernel.generation import FileStatus, PipelineResult
from blueprintx.text import slugify

_LOGGER = logging.getLogger(__name__)

_SEQUENCE_STEP = 1e-6


class GenerationHistoryManager:
    """Create, list and load run manifests under one history root."""

    def __init__(self, storage_path: str | Path | None, enabled: bool = True) -> None:
        """Store history root and toggle.

        Args:
            storage_path: History root directory; blank disables history.
            enabled: Master switch.
        """
        self._storage_path = str(storage_path) if storage_path is not None else ""
        self._enabled = enabled
        self._last_sequence = 0.0

    def is_enabled(self) -> bool:
        """Return whether history is on and has a non-blank root."""
        return self._enabled and bool(self._storage_path.strip())

    def history_root(self) -> Path | None:
        """Return the history root, or ``None`` when disabled."""
        if not self.is_enabled():
            return None
        return Path(self._storage_path.strip())

    def record(
        self,
        blueprint: Blueprint,
        relative_blueprint_path: str,
        result: PipelineResult,
        context: Mapping[str, Any] | None = None,
    ) -> str | None:
        """Journal one pipeline result.

        Args:
            blueprint: Blueprint that was generated.
            relative_blueprint_path: Blueprint path relative to the blueprints root.
            result: Pipeline outcomes.
            context: Optional ``execution_id``, ``options``, ``filters``, ``warnings``.

        Returns:
            New run id, or ``None`` when nothing was recorded.
        """
        return self.record_outcome(
            blueprint, relative_blueprint_path, result, context
        ).run_id

    def record_outcome(
        self,
        blueprint: Blueprint,
        relative_blueprint_path: str,
        result: PipelineResult,
        context: Mapping[str, Any] | None = None,
    ) -> RecordOutcome:
        """Journal one pipeline result and explain the outcome.

        Only written and overwritten entries are journaled. Previous contents of
        overwritten files are stored as numbered backups next to the manifest.
        Filesystem failures never propagate: the partial run directory is
        removed and the reason is returned.

        Args:
            blueprint: Blueprint that was generated.
            relative_blueprint_path: Blueprint path relative to the blueprints root.
            result: Pipeline outcomes.
            context: Optional ``execution_id``, ``options``, ``filters``, ``warnings``.

        Returns:
            Outcome holding the run id, or the reason no run was created.
        """
        root = self.history_root()
        if root is None:
            return RecordOutcome(run_id=None, reason="history is disabled")
        journaled = result.journaled_entries()
        if not journaled:
            return RecordOutcome(run_id=None, reason="no written or overwritten files")

        context = context or {}
        run_id = self._generate_run_id(blueprint)
        run_path = root / run_id
        try:
            root.mkdir(parents=True, exist_ok=True)
            run_path.mkdir()
            entries = []
            for index, item in enumerate(journaled):
                entry = {
                    "status": str(item.status),
                    "layer": item.layer,
                    "path": item.path,
                    "full_path": item.full_path,
                    "bytes": item.bytes,
                    "checksum": item.checksum,
                }
                if item.status is FileStatus.OVERWRITTEN:
                    entry["previous_bytes"] = item.previous_bytes
                    entry["previous_checksum"] = item.previous_checksum
                    if item.previous_contents is not None:
                        backup = backup_filename(item.path, index)
                        atomic_write_bytes(
                            run_path / backup, item.previous_contents, "backup"
                        )
                        entry["backup"] = backup
                entries.append(HistoryEntry.model_validate(entry))

            manifest = RunManifest(
                id=run_id,
                timestamp=datetime.now(UTC).isoformat(),
                sequence=self._next_sequence(),
                execution_id=context.get("execution_id"),
                blueprint=BlueprintRef(
                    module=blueprint.module,
                    entity=blueprint.entity,
                    architecture=blueprint.architecture,
                    path=relative_blueprint_path,
                ),
                options=dict(context.get("options") or {}),
                filters=dict(context.get("filters") or {}),
                warnings=list(context.get("warnings") or []),
                entries=entries,
            )
            atomic_write_json(
                run_path / MANIFEST_FILENAME, manifest.to_file_dict(), "manifest"
            )
        except (OSError, TypeError, ValueError) as exc:
            _LOGGER.warning("Could not record generation history: %s", exc)
            shutil.rmtree(run_path, ignore_errors=True)
            return RecordOutcome(run_id=None, reason=f"history write failed: {exc}")

        _LOGGER.debug("Recorded run %s with %d entries.", run_id, len(entries))
        return RecordOutcome(run_id=run_id)

    def list_runs(self) -> list[HistoryRun]:
        """Return every loadable run, newest first.

        Ordering: descending sequence (when both present and unequal), then
        descending timestamp, then descending directory mtime, then descending id.
        """
        root = self.history_root()
        if root is None or not root.is_dir():
            return []
        try:
            children = list(root.iterdir())
        except OSError as exc:
            _LOGGER.warning("Could not list history root %s: %s", root, exc)
            return []

        runs = []
        for child in children:
            if not child.is_dir():
                continue
            run = self._load_run(child)
            if run is not None:
                runs.append(run)
        return sort_runs_newest_first(runs)

    def get_latest_run(self) -> HistoryRun | None:
        """Return the newest run, or ``None`` when there is none."""
        runs = self.list_runs()
        return runs[0] if runs else None

    def get_run(self, run_id: str) -> HistoryRun | None:
        """Return one run by id.

        Args:
            run_id: Run directory name.

        Returns:
            Loaded run, or ``None`` when missing, unreadable or invalid.
        """
        run_id = run_id.strip()
        if not run_id or run_id in {".", ".."} or any(sep in run_id for sep in "/\\"):
            return None
        root = self.history_root()
        if root is None:
            return None
        run_path = root / run_id
        if not run_path.is_dir():
            return None
        return self._load_run(run_path)

    def _load_run(self, run_path: Path) -> HistoryRun | None:
        manifest_path = run_path / MANIFEST_FILENAME
        try:
            data = json.loads(manifest_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            return None
        if not isinstance(data, dict):
            return None
        if not isinstance(data.get("entries"), list):
            data["entries"] = []
        data.setdefault("id", run_path.name)
        try:
            manifest = RunManifest.model_validate(data)
        except ValidationError as exc:
            _LOGGER.debug("Ignoring invalid manifest %s: %s", manifest_path, exc)
            return None
        return HistoryRun(id=manifest.id, path=run_path, manifest=manifest)

    def _next_sequence(self) -> float:
        sequence = time.time()
        if sequence <= self._last_sequence:
            sequence = self._last_sequence + _SEQUENCE_STEP
        self._last_sequence = sequence
        return sequence

    def _generate_run_id(self, blueprint: Blueprint) -> str:
        stamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
        module = slugify(blueprint.module or "") or "global"
        entity = slugify(blueprint.entity) or "entity"
        return f"{stamp}-{module}-{entity}-{uuid.uuid4()}"


def backup_filename(path: str | None, index: int) -> str:
    """Return ``NNN-<slug>.bak`` for the entry at zero-based ``index``."""
    basename = PurePosixPath(path.replace("\\", "/")).name if path else ""
    return f"{index + 1:03d}-{slugify(basename) or 'file'}.bak"


def sort_runs_newest_first(runs: Iterable[HistoryRun]) -> list[HistoryRun]:
    """Return ``runs`` in the order used by ``list_runs``."""
    return sorted(runs, key=functools.cmp_to_key(_compare_runs_newest_first))


def _compare_runs_newest_first(left: HistoryRun, right: HistoryRun) -> int:
    left_sequence = left.manifest.sequence
    right_sequence = right.manifest.sequence
    if (
        left_sequence is not None
        and right_sequence is not None
        and left_sequence != right_sequence
    ):
        return _descending(left_sequence, right_sequence)

    left_time = _timestamp_seconds(left.manifest)
    right_time = _timestamp_seconds(right.manifest)
    if left_time is not None and right_time is not None and left_time != right_time:
        return _descending(left_time, right_time)

    left_mtime = _mtime(left.path)
    right_mtime = _mtime(right.path)
    if left_mtime is not None and right_mtime is not None and left_mtime != right_mtime:
        return _descending(left_mtime, right_mtime)

    return _descending(left.id, right.id)


def _descending(left: Any, right: Any) -> int:
    return (right > left) - (right < left)


def _timestamp_seconds(manifest: RunManifest) -> float | None:
    parsed = manifest.parsed_timestamp()
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.timestamp()


def _mtime(path: Path) -> float | None:
    try:
        return path.stat().st_mtime
    except OSError:
        return None
