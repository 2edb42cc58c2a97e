"""blueprintx configuration."""

from blueprintx.config.settings import (
    DEFAULT_CONFIG_FILENAME,
    ArchitectureSettings,
    BlueprintxConfig,
    ConfigError,
    HistorySettings,
    PathSettings,
    load_config,
)

__all__ = [
    "DEFAULT_CONFIG_FILENAME",
    "ArchitectureSettings",
    "BlueprintxConfig",
    "ConfigError",
    "HistorySettings",
    "PathSettings",
    "load_config",
]
