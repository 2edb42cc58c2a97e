"""Ordered, short-circuiting blueprint validation."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Protocol

from blueprintx.blueprint.models import Blueprint
from blueprintx.validation.messages import ValidationResult
from blueprintx.validation.schema import SchemaCheck
from blueprintx.validation.semantic import SemanticCheck

_LOGGER = logging.getLogger(__name__)


class BlueprintCheck(Protocol):
    """One validation stage."""

    name: str

    def check(self, blueprint: Blueprint) -> ValidationResult:
        """Return findings for one blueprint."""


class BlueprintValidator:
    """Run checks in order and stop after the first stage that reports errors."""

    def __init__(self, checks: Sequence[BlueprintCheck]) -> None:
        """Store ordered validation stages.

        Args:
            checks: Stages in execution order.
        """
        self._checks = tuple(checks)

    @property
    def checks(self) -> tuple[BlueprintCheck, ...]:
        """Return configured stages."""
        return self._checks

    def validate(self, blueprint: Blueprint) -> ValidationResult:
        """Validate one blueprint.

        Args:
            blueprint: Normalized blueprint.

        Returns:
            Merged findings of every stage that ran.
        """
        result = ValidationResult()
        for check in self._checks:
            stage = check.check(blueprint)
            result.merge(stage)
            if stage.errors:
                _LOGGER.debug(
                    "Validation of %s stopped at stage '%s' with %d error(s).",
                    blueprint.path,
                    check.name,
                    len(stage.errors),
                )
                break
        return result


def build_default_validator(architectures: Iterable[str] = ()) -> BlueprintValidator:
    """Return the schema-then-semantic validator.

    Args:
        architectures: Registered architecture names accepted by the schema stage.

    Returns:
        Configured validator.
    """
    return BlueprintValidator([SchemaCheck(architectures), SemanticCheck()])
