"""Value objects exchanged between generators, writer and history."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class FileStatus(StrEnum):
    """Outcome of writing one generated file."""

    WRITTEN = "written"
    OVERWRITTEN = "overwritten"
    PREVIEW = "preview"
    SKIPPED = "skipped"
    ERROR = "error"


JOURNALED_STATUSES = frozenset({FileStatus.WRITTEN, FileStatus.OVERWRITTEN})

# PipelineEntry has a field named "bytes".
RawContents = bytes


class GeneratedFile(BaseModel):
    """File produced by a layer generator, relative to the output root."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str
    contents: str | bytes
    overwrite: bool = False

    def content_bytes(self) -> bytes:
        """Return contents encoded as UTF-8 when given as text."""
        if isinstance(self.contents, bytes):
            return self.contents
        return self.contents.encode("utf-8")


class GenerationResult(BaseModel):
    """Files and warnings returned by one layer generator."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    files: tuple[GeneratedFile, ...] = ()
    warnings: tuple[str, ...] = ()


class PipelineEntry(BaseModel):
    """Writer outcome for one file, stamped with its layer by the pipeline."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    status: FileStatus
    layer: str | None = None
    path: str
    full_path: str
    bytes: int | None = None
    checksum: str | None = None
    previous_bytes: int | None = None
    previous_checksum: str | None = None
    # Raw bytes of an overwritten file; never serialized.
    previous_contents: RawContents | None = Field(
        default=None, exclude=True, repr=False
    )
    message: str | None = None
    preview: str | None = None

    @property
    def journaled(self) -> bool:
        """Return whether the entry changed the output tree."""
        return self.status in JOURNALED_STATUSES


class PipelineResult(BaseModel):
    """Ordered writer outcomes and warnings of one generation run."""

    model_config = ConfigDict(extra="forbid")

    entries: list[PipelineEntry] = []
    warnings: list[str] = []

    def add_entry(self, entry: PipelineEntry) -> None:
        """Append one writer outcome."""
        self.entries.append(entry)

    def add_warning(self, warning: str) -> None:
        """Append one warning."""
        self.warnings.append(warning)

    def journaled_entries(self) -> list[PipelineEntry]:
        """Return entries that wrote to disk, in recording order."""
        return [entry for entry in self.entries if entry.journaled]

    def has_errors(self) -> bool:
        """Return whether any file could not be written."""
        return any(entry.status is FileStatus.ERROR for entry in self.entries)
