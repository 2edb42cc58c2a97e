"""Deterministic blueprint parse error contracts."""

from __future__ import annotations

from enum import StrEnum


class BlueprintErrorCode(StrEnum):
    """Stable blueprint parse error codes."""

    NOT_FOUND = "blueprint_not_found"
    INVALID_SOURCE = "blueprint_invalid_source"
    INVALID_STRUCTURE = "blueprint_invalid_structure"
    INVALID_MODULE = "blueprint_invalid_module"
    INVALID_RESOURCES = "blueprint_invalid_resources"
    INVALID_ERRORS = "blueprint_invalid_errors"
    INVALID_TENANCY = "blueprint_invalid_tenancy"


class BlueprintParseError(RuntimeError):
    """Blueprint could not be turned into a canonical model."""

    def __init__(
        self,
        code: BlueprintErrorCode,
        message: str,
        *,
        data: dict[str, object] | None = None,
    ) -> None:
        """Create parse failure.

        Args:
            code: Stable parse error code.
            message: Human-readable error message.
            data: Optional structured payload for diagnostics.
        """
        super().__init__(message)
        self.code = code
        self.data = data or {}
