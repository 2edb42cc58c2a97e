"""Test-only helpers for unit tests. Not part of the blueprintx API."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from blueprintx.blueprint.models import Blueprint
from blueprintx.kernel.generation import FileStatus, PipelineEntry, PipelineResult


def blueprint_payload(**overrides: Any) -> dict[str, Any]:
    """Return a valid normalized blueprint dictionary with overrides applied.

    Nested ``api`` overrides replace the whole section.
    """
    payload: dict[str, Any] = {
        "path": "blueprints/hr/employee.yaml",
        "module": "hr",
        "entity": "Employee",
        "table": "employees",
        "architecture": "hexagonal",
        "fields": [
            {"name": "id", "type": "uuid"},
            {"name": "email", "type": "string", "rules": "required|email"},
        ],
        "relations": [],
        "options": {
            "timestamps": True,
            "softDeletes": False,
            "audited": False,
            "versioned": False,
        },
        "api": {
            "base_path": "/employees",
            "middleware": [],
            "resources": {"includes": []},
            "endpoints": [],
        },
        "docs": {},
        "errors": [],
        "metadata": {},
        "tenancy": {},
    }
    payload.update(overrides)
    return payload


def make_blueprint(**overrides: Any) -> Blueprint:
    """Build a Blueprint from ``blueprint_payload`` overrides."""
    return Blueprint.from_dict(blueprint_payload(**overrides))


def write_blueprint(root: Path, relative: str, data: dict[str, Any]) -> Path:
    """Write a YAML blueprint under ``root`` and return its path."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


def written_entry(output_root: Path, relative: str, contents: bytes) -> PipelineEntry:
    """Create ``relative`` under ``output_root`` and describe it as written."""
    target = output_root / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(contents)
    return PipelineEntry(
        status=FileStatus.WRITTEN,
        layer="domain",
        path=relative,
        full_path=str(target),
        bytes=len(contents),
        checksum="0" * 64,
    )


def overwritten_entry(
    output_root: Path, relative: str, previous: bytes, current: bytes
) -> PipelineEntry:
    """Write ``current`` over ``relative`` and describe it as overwritten."""
    target = output_root / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(current)
    return PipelineEntry(
        status=FileStatus.OVERWRITTEN,
        layer="domain",
        path=relative,
        full_path=str(target),
        bytes=len(current),
        checksum="1" * 64,
        previous_bytes=len(previous),
        previous_checksum="2" * 64,
        previous_contents=previous,
    )


def pipeline_result(*entries: PipelineEntry) -> PipelineResult:
    """Wrap entries into a PipelineResult."""
    return PipelineResult(entries=list(entries))
