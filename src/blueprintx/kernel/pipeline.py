"""Run layer generators for a blueprint's architecture and write their files."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Protocol

from blueprintx.blueprint.models import Blueprint
from blueprintx.kernel.drivers import ArchitectureDriver, DriverManager
from blueprintx.kernel.generation import GenerationResult, PipelineResult
from blueprintx.kernel.writer import OutputWriter

_LOGGER = logging.getLogger(__name__)


class LayerGenerator(Protocol):
    """Produces the files of one architecture layer."""

    layer: str

    def generate(
        self,
        blueprint: Blueprint,
        driver: ArchitectureDriver,
        options: Mapping[str, Any],
    ) -> GenerationResult:
        """Return generated files for ``blueprint``."""


class GenerationPipeline:
    """Resolve driver layers, run their generators and write the output."""

    def __init__(
        self,
        drivers: DriverManager,
        writer: OutputWriter,
        generators: Iterable[LayerGenerator] = (),
    ) -> None:
        """Store collaborators.

        Args:
            drivers: Architecture registry.
            writer: Output writer for generated files.
            generators: Initial layer generators.
        """
        self._drivers = drivers
        self._writer = writer
        self._generators: dict[str, LayerGenerator] = {}
        for generator in generators:
            self.register_generator(generator)

    def register_generator(self, generator: LayerGenerator) -> None:
        """Register (or replace) the generator of one layer."""
        self._generators[generator.layer.lower()] = generator

    def generate(
        self,
        blueprint: Blueprint,
        *,
        only: str | Sequence[str] | None = None,
        dry_run: bool = False,
        force: bool = False,
        options: Mapping[str, Any] | None = None,
    ) -> PipelineResult:
        """Generate every selected layer of ``blueprint``.

        Args:
            blueprint: Valid blueprint.
            only: Layer filter as comma-separated string or list (case-insensitive).
            dry_run: Preview instead of writing.
            force: Overwrite existing files.
            options: Extra options forwarded to generators.

        Returns:
            Writer outcomes stamped with their layer, plus warnings.

        Raises:
            UnknownArchitectureError: If the blueprint architecture is unknown.
        """
        driver = self._drivers.resolve(blueprint.architecture)
        generator_options = {**(options or {}), "dry_run": dry_run, "force": force}
        result = PipelineResult()

        for layer in select_layers(driver.layers, only):
            generator = self._generators.get(layer.lower())
            if generator is None:
                result.add_warning(f"No generator registered for layer '{layer}'.")
                continue
            generation = generator.generate(blueprint, driver, generator_options)
            for warning in generation.warnings:
                result.add_warning(warning)
            for entry in self._writer.write_files(
                generation.files, dry_run=dry_run, force=force
            ):
                result.add_entry(entry.model_copy(update={"layer": layer}))
            _LOGGER.debug(
                "Layer '%s' of %s produced %d file(s).",
                layer,
                blueprint.entity,
                len(generation.files),
            )
        return result


def select_layers(
    layers: Sequence[str], only: str | Sequence[str] | None
) -> list[str]:
    """Filter ``layers`` by an optional case-insensitive selection.

    Args:
        layers: Driver layers in order.
        only: Comma-separated string, list, or ``None`` for all layers.

    Returns:
        Selected layers, keeping driver order.
    """
    if only is None:
        return list(layers)
    items = only.split(",") if isinstance(only, str) else list(only)
    wanted = {item.strip().lower() for item in items if item.strip()}
    if not wanted:
        return list(layers)
    return [layer for layer in layers if layer.lower() in wanted]
