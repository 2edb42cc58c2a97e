"""Unit tests for blueprintx config loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from blueprintx.config import BlueprintxConfig, ConfigError, load_config
from blueprintx.config.settings import HISTORY_ENABLED_ENV, HISTORY_PATH_ENV


@pytest.mark.unit
def test_load_config_defaults_when_file_missing(tmp_path: Path) -> None:
    """Missing default config should resolve defaults under the base dir."""
    config = load_config(base_dir=tmp_path, env={})

    assert config.paths.blueprints == tmp_path / "blueprints"
    assert config.paths.output == tmp_path / "."
    assert config.history.enabled is True
    assert config.history.path == tmp_path / ".blueprintx" / "history"
    assert config.default_architecture == "hexagonal"
    assert config.architectures["hexagonal"].layers == ["snapshot"]
    assert config.generators == {}


@pytest.mark.unit
def test_load_config_reads_yaml(tmp_path: Path) -> None:
    """YAML config should override paths, architectures and options."""
    # Arrange
    (tmp_path / "blueprintx.yaml").write_text(
        "\n".join(
            [
                "paths:",
                "  blueprints: definitions",
                "  output: build",
                "default_architecture: layered",
                "architectures:",
                "  layered:",
                "    layers: [domain, snapshot]",
                "    metadata: {namespace: App}",
                "default_options:",
                "  softDeletes: true",
            ]
        ),
        encoding="utf-8",
    )

    # Act
    config = load_config(base_dir=tmp_path, env={})

    # Assert
    assert config.paths.blueprints == tmp_path / "definitions"
    assert config.paths.output == tmp_path / "build"
    drivers = config.drivers()
    assert list(drivers) == ["layered"]
    assert drivers["layered"].layers == ("domain", "snapshot")
    assert drivers["layered"].metadata == {"namespace": "App"}
    settings = config.normalizer_settings()
    assert settings.default_architecture == "layered"
    assert settings.blueprints_root == tmp_path / "definitions"
    assert settings.default_options["softDeletes"] is True
    assert settings.default_options["timestamps"] is True


@pytest.mark.unit
def test_load_config_reads_json_and_keeps_absolute_paths(tmp_path: Path) -> None:
    """JSON config is decoded by suffix and absolute paths stay as given."""
    history = tmp_path / "elsewhere"
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"history": {"enabled": False, "path": str(history)}}),
        encoding="utf-8",
    )

    config = load_config(path, base_dir=tmp_path / "project", env={})

    assert config.history.enabled is False
    assert config.history.path == history


@pytest.mark.unit
def test_load_config_env_overrides_history(tmp_path: Path) -> None:
    """Environment variables override history settings."""
    (tmp_path / "blueprintx.yaml").write_text(
        "history:\n  enabled: false\n", encoding="utf-8"
    )

    config = load_config(
        base_dir=tmp_path,
        env={HISTORY_ENABLED_ENV: " Yes ", HISTORY_PATH_ENV: "journal"},
    )

    assert config.history.enabled is True
    assert config.history.path == tmp_path / "journal"


@pytest.mark.unit
def test_load_config_rejects_unknown_env_boolean(tmp_path: Path) -> None:
    """Unrecognized boolean env values fail loudly."""
    with pytest.raises(ConfigError, match=HISTORY_ENABLED_ENV):
        load_config(base_dir=tmp_path, env={HISTORY_ENABLED_ENV: "maybe"})


@pytest.mark.unit
@pytest.mark.parametrize(
    "content",
    [
        "paths: [unclosed\n",
        "- just\n- a list\n",
        "unknown_key: 1\n",
        "architectures:\n  hexagonal:\n    layers: []\n",
    ],
)
def test_load_config_rejects_invalid_payload(tmp_path: Path, content: str) -> None:
    """Undecodable, non-object and schema-invalid configs raise ConfigError."""
    (tmp_path / "blueprintx.yaml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(base_dir=tmp_path, env={})


@pytest.mark.unit
def test_load_config_requires_configured_default_architecture(
    tmp_path: Path,
) -> None:
    """The default architecture must be one of the configured ones."""
    (tmp_path / "blueprintx.yaml").write_text(
        "default_architecture: onion\n", encoding="utf-8"
    )

    with pytest.raises(ConfigError, match="onion"):
        load_config(base_dir=tmp_path, env={})


@pytest.mark.unit
def test_load_config_explicit_missing_file_fails(tmp_path: Path) -> None:
    """An explicitly requested config file must exist."""
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "absent.yaml", base_dir=tmp_path, env={})


@pytest.mark.unit
def test_empty_config_file_uses_defaults(tmp_path: Path) -> None:
    """An empty YAML document behaves like a missing file."""
    (tmp_path / "blueprintx.yaml").write_text("", encoding="utf-8")

    config = load_config(base_dir=tmp_path, env={})

    assert config == BlueprintxConfig().resolved(tmp_path)
