"""History manifest schema."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

MANIFEST_FILENAME = "manifest.json"


class HistoryEntry(BaseModel):
    """One journaled file change."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    status: str
    layer: str | None = None
    path: str | None = None
    full_path: str | None = None
    bytes: int | None = None
    checksum: str | None = None
    previous_bytes: int | None = None
    previous_checksum: str | None = None
    backup: str | None = None


class BlueprintRef(BaseModel):
    """Blueprint that produced a run."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    module: str | None = None
    entity: str | None = None
    architecture: str | None = None
    path: str | None = None


class RunManifest(BaseModel):
    """Authoritative run record. Written once, atomically, after all backups."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    timestamp: str | None = None  # ISO 8601
    sequence: float | None = None
    execution_id: str | None = None
    blueprint: BlueprintRef = BlueprintRef()
    options: dict[str, Any] = {}
    filters: dict[str, Any] = {}
    warnings: list[str] = []
    entries: list[HistoryEntry] = []

    def parsed_timestamp(self) -> datetime | None:
        """Return ``timestamp`` as datetime, or ``None`` when absent/unparsable."""
        if not self.timestamp:
            return None
        try:
            return datetime.fromisoformat(self.timestamp)
        except ValueError:
            return None

    def to_file_dict(self) -> dict[str, Any]:
        """Serialize for the JSON file, omitting unset optional entry keys."""
        data = self.model_dump(mode="json", exclude={"entries"})
        data["entries"] = [
            entry.model_dump(mode="json", exclude_none=True) for entry in self.entries
        ]
        return data


@dataclass(frozen=True)
class HistoryRun:
    """A loaded run: identifier, run directory and manifest."""

    id: str
    path: Path
    manifest: RunManifest


@dataclass(frozen=True)
class RecordOutcome:
    """Result of a recording attempt; ``reason`` explains a missing run id."""

    run_id: str | None
    reason: str | None = None

    @property
    def recorded(self) -> bool:
        """Return whether a run was created."""
        return self.run_id is not None
