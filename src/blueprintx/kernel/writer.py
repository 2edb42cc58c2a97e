"""Persist generated files under the output root."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from blueprintx.kernel.canonical import sha256_bytes
from blueprintx.kernel.generation import FileStatus, GeneratedFile, PipelineEntry

_LOGGER = logging.getLogger(__name__)


class OutputWriter:
    """Decide and apply the write outcome of each generated file."""

    def __init__(self, base_path: Path) -> None:
        """Store output root.

        Args:
            base_path: Directory generated paths are relative to.
        """
        self._base_path = base_path

    @property
    def base_path(self) -> Path:
        """Return output root."""
        return self._base_path

    def write_files(
        self,
        files: Iterable[GeneratedFile],
        *,
        dry_run: bool = False,
        force: bool = False,
    ) -> list[PipelineEntry]:
        """Write files in order.

        Args:
            files: Generated files.
            dry_run: Report previews without touching disk.
            force: Overwrite existing files that differ.

        Returns:
            One entry per file.
        """
        return [self.write_file(file, dry_run=dry_run, force=force) for file in files]

    def write_file(
        self, file: GeneratedFile, *, dry_run: bool = False, force: bool = False
    ) -> PipelineEntry:
        """Write one file and report what happened.

        Args:
            file: Generated file.
            dry_run: Report a preview only.
            force: Overwrite an existing file that differs.

        Returns:
            Writer outcome; OS failures and paths outside the output root
            become ``error`` entries.
        """
        relative = file.path.replace("\\", "/").lstrip("/")
        target = self._base_path / relative
        common = {"path": relative, "full_path": str(target)}
        if not target.resolve().is_relative_to(self._base_path.resolve()):
            return _error_entry(common, "Path escapes the output directory.")
        contents = file.content_bytes()

        if dry_run:
            return PipelineEntry(
                status=FileStatus.PREVIEW,
                preview=contents.decode("utf-8", errors="replace"),
                **common,
            )

        try:
            previous = target.read_bytes() if target.is_file() else None
        except OSError as exc:
            return _error_entry(common, f"Could not read existing file: {exc}")

        if previous is not None:
            if previous == contents:
                return PipelineEntry(
                    status=FileStatus.SKIPPED, message="unchanged", **common
                )
            if not (force or file.overwrite):
                return PipelineEntry(
                    status=FileStatus.SKIPPED,
                    message="File already exists. Use --force to overwrite.",
                    **common,
                )

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            return _error_entry(
                common, f"Could not create directory '{target.parent}': {exc}"
            )
        try:
            target.write_bytes(contents)
        except OSError as exc:
            return _error_entry(common, f"Could not write file: {exc}")

        if previous is None:
            return PipelineEntry(
                status=FileStatus.WRITTEN,
                bytes=len(contents),
                checksum=sha256_bytes(contents),
                **common,
            )
        return PipelineEntry(
            status=FileStatus.OVERWRITTEN,
            bytes=len(contents),
            checksum=sha256_bytes(contents),
            previous_bytes=len(previous),
            previous_checksum=sha256_bytes(previous),
            previous_contents=previous,
            **common,
        )


def _error_entry(common: dict[str, str], message: str) -> PipelineEntry:
    _LOGGER.warning("%s (%s)", message, common["full_path"])
    return PipelineEntry(status=FileStatus.ERROR, message=message, **common)
