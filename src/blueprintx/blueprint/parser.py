"""YAML blueprint loading."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import yaml

from blueprintx.blueprint.errors import BlueprintErrorCode, BlueprintParseError
from blueprintx.blueprint.models import Blueprint
from blueprintx.blueprint.normalizer import BlueprintNormalizer


@dataclass(frozen=True)
class ParseOutcome:
    """Result of parsing one blueprint file inside a batch."""

    path: Path
    blueprint: Blueprint | None = None
    error: BlueprintParseError | None = None

    @property
    def ok(self) -> bool:
        """Return whether the file produced a blueprint."""
        return self.blueprint is not None


class YamlBlueprintParser:
    """Load blueprint YAML files and normalize them."""

    def __init__(
        self,
        normalizer: BlueprintNormalizer,
        *,
        blueprints_root: Path | None = None,
    ) -> None:
        """Store normalizer and lookup root.

        Args:
            normalizer: Normalizer applied to every decoded document.
            blueprints_root: Root used to resolve relative paths; defaults to the
                normalizer's blueprints root.
        """
        self._normalizer = normalizer
        self._root = blueprints_root or normalizer.settings.blueprints_root

    def parse(self, path: str | Path) -> Blueprint:
        """Parse one blueprint file.

        Args:
            path: Absolute path, or path relative to the blueprints root.

        Returns:
            Canonical blueprint.

        Raises:
            BlueprintParseError: If the file is missing, undecodable or malformed.
        """
        full_path = self._resolve_path(Path(path))
        try:
            data = yaml.safe_load(full_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            raise BlueprintParseError(
                BlueprintErrorCode.INVALID_SOURCE,
                f"Could not read blueprint '{path}': {exc}",
                data={"path": str(full_path)},
            ) from exc
        except yaml.YAMLError as exc:
            raise BlueprintParseError(
                BlueprintErrorCode.INVALID_SOURCE,
                f"Could not parse blueprint '{path}': {exc}",
                data={"path": str(full_path)},
            ) from exc
        if not isinstance(data, dict):
            raise BlueprintParseError(
                BlueprintErrorCode.INVALID_STRUCTURE,
                f"Blueprint '{path}' does not contain a valid structure.",
                data={"path": str(full_path)},
            )
        return self._normalizer.normalize(data, full_path)

    def parse_many(self, paths: Iterable[str | Path]) -> tuple[ParseOutcome, ...]:
        """Parse several files; one failure never stops the batch.

        Args:
            paths: Blueprint paths in processing order.

        Returns:
            One outcome per path, in input order.
        """
        outcomes = []
        for path in paths:
            try:
                blueprint = self.parse(path)
            except BlueprintParseError as exc:
                outcomes.append(ParseOutcome(path=Path(path), error=exc))
            else:
                outcomes.append(ParseOutcome(path=Path(path), blueprint=blueprint))
        return tuple(outcomes)

    def _resolve_path(self, path: Path) -> Path:
        """Resolve ``path`` against the blueprints root and require a file."""
        candidate = path
        if not candidate.is_absolute() and self._root is not None:
            candidate = self._root / candidate
        if not candidate.is_file():
            raise BlueprintParseError(
                BlueprintErrorCode.NOT_FOUND,
                f"Blueprint not found at '{path}'.",
                data={"path": str(path)},
            )
        return candidate.resolve()
