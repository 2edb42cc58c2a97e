"""blueprintx configuration models and loading helpers."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from blueprintx.blueprint.normalizer import DEFAULT_OPTIONS, NormalizerSettings
from blueprintx.kernel.drivers import ArchitectureDriver

DEFAULT_CONFIG_FILENAME = "blueprintx.yaml"
HISTORY_ENABLED_ENV = "BLUEPRINTX_HISTORY_ENABLED"
HISTORY_PATH_ENV = "BLUEPRINTX_HISTORY_PATH"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


class PathSettings(BaseModel):
    """Blueprint source and generated output locations."""

    model_config = ConfigDict(extra="forbid")

    blueprints: Path = Path("blueprints")
    output: Path = Path(".")


class HistorySettings(BaseModel):
    """Generation history journaling."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    path: Path = Path(".blueprintx/history")


class ArchitectureSettings(BaseModel):
    """Ordered layers of one architecture."""

    model_config = ConfigDict(extra="forbid")

    layers: list[str] = Field(min_length=1)
    metadata: dict[str, Any] = {}


def _default_architectures() -> dict[str, ArchitectureSettings]:
    return {"hexagonal": ArchitectureSettings(layers=["snapshot"])}


class BlueprintxConfig(BaseModel):
    """Root blueprintx configuration model."""

    model_config = ConfigDict(extra="forbid")

    paths: PathSettings = PathSettings()
    history: HistorySettings = HistorySettings()
    default_architecture: str = "hexagonal"
    architectures: dict[str, ArchitectureSettings] = Field(
        default_factory=_default_architectures
    )
    generators: dict[str, str] = {}
    default_options: dict[str, Any] = Field(
        default_factory=lambda: dict(DEFAULT_OPTIONS)
    )

    def resolved(self, base_dir: Path) -> BlueprintxConfig:
        """Return a copy whose relative paths are anchored at ``base_dir``."""
        return self.model_copy(
            update={
                "paths": PathSettings(
                    blueprints=_anchor(self.paths.blueprints, base_dir),
                    output=_anchor(self.paths.output, base_dir),
                ),
                "history": HistorySettings(
                    enabled=self.history.enabled,
                    path=_anchor(self.history.path, base_dir),
                ),
            }
        )

    def normalizer_settings(self) -> NormalizerSettings:
        """Return normalization defaults derived from this config."""
        return NormalizerSettings(
            blueprints_root=self.paths.blueprints,
            default_architecture=self.default_architecture,
            default_options={**DEFAULT_OPTIONS, **self.default_options},
        )

    def drivers(self) -> dict[str, ArchitectureDriver]:
        """Return architecture drivers keyed by name."""
        return {
            name: ArchitectureDriver(
                name=name, layers=tuple(settings.layers), metadata=settings.metadata
            )
            for name, settings in self.architectures.items()
        }


class ConfigError(RuntimeError):
    """Raised when blueprintx config cannot be decoded or validated."""


def _anchor(path: Path, base_dir: Path) -> Path:
    expanded = path.expanduser()
    return expanded if expanded.is_absolute() else base_dir / expanded


def _decode_config_payload(path: Path) -> dict[str, object]:
    """Decode config payload from JSON or YAML.

    Args:
        path: Config file path.

    Returns:
        Parsed mapping payload.

    Raises:
        ConfigError: If decode fails or payload is not an object.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not read config {path}: {exc}") from exc
    if path.suffix.lower() == ".json":
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid config JSON: {exc}") from exc
    else:
        try:
            payload = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid config YAML: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigError("Invalid config payload: root must be an object")
    return payload


def _apply_env_overrides(
    payload: dict[str, object], env: Mapping[str, str]
) -> dict[str, object]:
    """Overlay history settings from environment variables.

    Raises:
        ConfigError: If a boolean variable is not recognized.
    """
    history = payload.get("history")
    overrides: dict[str, object] = dict(history) if isinstance(history, dict) else {}
    if HISTORY_ENABLED_ENV in env:
        value = env[HISTORY_ENABLED_ENV].strip().lower()
        if value not in _TRUE_VALUES | _FALSE_VALUES:
            raise ConfigError(
                f"Invalid {HISTORY_ENABLED_ENV} value {env[HISTORY_ENABLED_ENV]!r}"
            )
        overrides["enabled"] = value in _TRUE_VALUES
    if env.get(HISTORY_PATH_ENV, "").strip():
        overrides["path"] = env[HISTORY_PATH_ENV].strip()
    if not overrides:
        return payload
    return {**payload, "history": overrides}


def load_config(
    path: Path | None = None,
    *,
    base_dir: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> BlueprintxConfig:
    """Load blueprintx config, defaulting when the file is missing.

    Args:
        path: Config file path; ``blueprintx.yaml`` under ``base_dir`` when omitted.
            An explicit path must exist.
        base_dir: Directory relative paths resolve against; current directory when
            omitted.
        env: Environment mapping; ``os.environ`` when omitted.

    Returns:
        Validated config with absolute paths.

    Raises:
        ConfigError: If payload decode or validation fails.
    """
    base = base_dir or Path.cwd()
    config_path = path or base / DEFAULT_CONFIG_FILENAME
    runtime_env = env if env is not None else dict(os.environ)
    if path is not None and not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")
    payload = _decode_config_payload(config_path) if config_path.exists() else {}
    payload = _apply_env_overrides(payload, runtime_env)
    try:
        config = BlueprintxConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config payload: {exc}") from exc
    if config.default_architecture not in config.architectures:
        raise ConfigError(
            f"Default architecture '{config.default_architecture}' is not configured."
        )
    return config.resolved(base)
