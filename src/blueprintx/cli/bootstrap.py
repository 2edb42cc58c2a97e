"""CLI bootstrap helpers: logging and collaborator wiring from config."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rich.logging import RichHandler

from blueprintx.blueprint.normalizer import BlueprintNormalizer
from blueprintx.blueprint.parser import YamlBlueprintParser
from blueprintx.config import BlueprintxConfig
from blueprintx.history.manager import GenerationHistoryManager
from blueprintx.history.rollback import RollbackService
from blueprintx.kernel.drivers import DriverManager
from blueprintx.kernel.generators import SnapshotLayerGenerator, load_generators
from blueprintx.kernel.pipeline import GenerationPipeline
from blueprintx.kernel.writer import OutputWriter
from blueprintx.validation.pipeline import BlueprintValidator, build_default_validator

_LOGGING_CONFIGURED = False


def configure_logging() -> None:
    """Configure Rich-backed logging once for CLI commands."""
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if _LOGGING_CONFIGURED:
        return
    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
    )
    _LOGGING_CONFIGURED = True


@dataclass(frozen=True)
class Workbench:
    """Collaborators built from one configuration."""

    config: BlueprintxConfig
    parser: YamlBlueprintParser
    validator: BlueprintValidator
    drivers: DriverManager
    history: GenerationHistoryManager

    def rollback_service(self) -> RollbackService:
        """Return a rollback service over this workbench's history."""
        return RollbackService(self.history)

    def build_pipeline(self) -> GenerationPipeline:
        """Return a pipeline with the built-in and configured generators.

        Raises:
            GeneratorImportError: If a configured generator cannot be loaded.
        """
        pipeline = GenerationPipeline(
            self.drivers,
            OutputWriter(self.config.paths.output),
            [SnapshotLayerGenerator()],
        )
        for generator in load_generators(self.config.generators):
            pipeline.register_generator(generator)
        return pipeline


def build_workbench(config: BlueprintxConfig) -> Workbench:
    """Wire parser, validator, drivers and history from ``config``.

    Args:
        config: Loaded configuration with absolute paths.

    Returns:
        Ready-to-use collaborators.
    """
    drivers = DriverManager(config.drivers())
    return Workbench(
        config=config,
        parser=YamlBlueprintParser(
            BlueprintNormalizer(config.normalizer_settings()),
            blueprints_root=config.paths.blueprints,
        ),
        validator=build_default_validator(drivers.available()),
        drivers=drivers,
        history=GenerationHistoryManager(
            config.history.path, enabled=config.history.enabled
        ),
    )
