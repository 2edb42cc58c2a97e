"""Validation message and result contracts."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict


class ValidationMessage(BaseModel):
    """One validation finding with a stable machine code."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    code: str
    message: str
    path: str | None = None

    def dedupe_key(self) -> tuple[str, str, str]:
        """Return identity used to drop repeated findings."""
        return (self.code, self.path or "", self.message)


@dataclass
class ValidationResult:
    """Ordered errors and warnings produced by one or more checks."""

    errors: list[ValidationMessage] = field(default_factory=list)
    warnings: list[ValidationMessage] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        """Return whether no error was reported."""
        return not self.errors

    def is_valid(self) -> bool:
        """Return whether no error was reported."""
        return self.valid

    def add_error(self, code: str, message: str, path: str | None = None) -> None:
        """Append one error finding."""
        self.errors.append(ValidationMessage(code=code, message=message, path=path))

    def add_warning(self, code: str, message: str, path: str | None = None) -> None:
        """Append one warning finding."""
        self.warnings.append(ValidationMessage(code=code, message=message, path=path))

    def merge(self, other: ValidationResult) -> None:
        """Append every finding of ``other`` preserving order."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    def deduplicated(self) -> ValidationResult:
        """Return a copy without repeated (code, path, message) findings."""
        return ValidationResult(
            errors=unique_messages(self.errors),
            warnings=unique_messages(self.warnings),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{valid, errors, warnings}``."""
        return {
            "valid": self.valid,
            "errors": [message.model_dump(mode="json") for message in self.errors],
            "warnings": [message.model_dump(mode="json") for message in self.warnings],
        }


def unique_messages(messages: Iterable[ValidationMessage]) -> list[ValidationMessage]:
    """Drop repeated findings while keeping first-seen order."""
    seen: set[tuple[str, str, str]] = set()
    unique = []
    for message in messages:
        key = message.dedupe_key()
        if key in seen:
            continue
        seen.add(key)
        unique.append(message)
    return unique
