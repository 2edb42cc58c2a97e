"""Atomic file writes: temp -> fsync -> rename -> fsync dir."""

from __future__ import annotations

import json
import os
import uuid
from pathlib import Path
from typing import Any


def atomic_write_bytes(final_path: Path, data: bytes, temp_prefix: str) -> None:
    """Write bytes to ``final_path`` atomically.

    Temp file is created next to the final path so rename is atomic. On failure,
    temp is removed and the error propagates.

    Args:
        final_path: Destination path; its parent directory must exist.
        data: Raw bytes to persist.
        temp_prefix: Prefix for temp filename, e.g. "manifest" or "backup".
    """
    directory = final_path.parent
    temp_path = directory / f".{temp_prefix}.{os.getpid()}.{uuid.uuid4().hex[:8]}.tmp"
    try:
        fd = os.open(
            str(temp_path),
            os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
            0o644,
        )
        try:
            view = memoryview(data)
            while view:
                written = os.write(fd, view)
                view = view[written:]
            os.fsync(fd)
        finally:
            os.close(fd)
        os.replace(temp_path, final_path)
        try:
            dir_fd = os.open(str(directory), os.O_RDONLY)
            try:
                os.fsync(dir_fd)
            finally:
                os.close(dir_fd)
        except OSError:
            pass  # e.g. Windows: directory fsync best-effort
    finally:
        if temp_path.exists():
            temp_path.unlink(missing_ok=True)


def atomic_write_json(final_path: Path, data: dict[str, Any], temp_prefix: str) -> None:
    """Write an indented JSON document atomically.

    Args:
        final_path: Destination path for the JSON file.
        data: JSON-serializable dict.
        temp_prefix: Prefix for temp filename.
    """
    content = json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")
    atomic_write_bytes(final_path, content, temp_prefix)
