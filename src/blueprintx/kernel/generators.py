"""Built-in layer generators and import-string generator loading."""

from __future__ import annotations

import importlib
from collections.abc import Mapping
from typing import Any

from blueprintx.blueprint.models import Blueprint
from blueprintx.kernel.canonical import canonical_json_bytes
from blueprintx.kernel.drivers import ArchitectureDriver
from blueprintx.kernel.generation import GeneratedFile, GenerationResult
from blueprintx.kernel.pipeline import LayerGenerator
from blueprintx.text import to_snake_case

SNAPSHOT_DIRECTORY = ".blueprintx/snapshots"


class GeneratorImportError(RuntimeError):
    """Generator import string could not be resolved."""


class SnapshotLayerGenerator:
    """Write the normalized blueprint as canonical JSON."""

    layer = "snapshot"

    def generate(
        self,
        blueprint: Blueprint,
        driver: ArchitectureDriver,
        options: Mapping[str, Any],
    ) -> GenerationResult:
        """Return one snapshot file for ``blueprint``."""
        module = blueprint.module or "global"
        path = f"{SNAPSHOT_DIRECTORY}/{module}/{to_snake_case(blueprint.entity)}.json"
        payload = {
            "architecture": driver.name,
            "blueprint": blueprint.to_dict(),
        }
        contents = canonical_json_bytes(payload, indent=2) + b"\n"
        return GenerationResult(files=(GeneratedFile(path=path, contents=contents),))


def load_generator(import_string: str) -> LayerGenerator:
    """Instantiate a generator from ``package.module:attribute``.

    A class attribute is instantiated without arguments; any other attribute is
    used as the generator itself.

    Args:
        import_string: Module path and attribute separated by ``:``.

    Returns:
        Layer generator.

    Raises:
        GeneratorImportError: If the module or attribute cannot be resolved.
    """
    module_path, _, attribute = import_string.partition(":")
    if not module_path or not attribute:
        raise GeneratorImportError(
            f"Generator {import_string!r} must look like 'package.module:attribute'."
        )
    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise GeneratorImportError(
            f"Failed to import generator module {module_path!r}: {exc}"
        ) from exc
    try:
        target = getattr(module, attribute)
    except AttributeError as exc:
        raise GeneratorImportError(
            f"Generator module {module_path!r} has no attribute {attribute!r}."
        ) from exc

    generator = target() if isinstance(target, type) else target
    if not callable(getattr(generator, "generate", None)) or not isinstance(
        getattr(generator, "layer", None), str
    ):
        raise GeneratorImportError(
            f"Generator {import_string!r} must define 'layer' and 'generate()'."
        )
    return generator


def load_generators(import_strings: Mapping[str, str]) -> list[LayerGenerator]:
    """Load configured generators keyed by layer; fails fast on first error.

    Args:
        import_strings: Layer name -> import string.

    Returns:
        Generators in mapping order.

    Raises:
        GeneratorImportError: If a generator cannot be loaded or its layer differs
            from the configured key.
    """
    generators = []
    for layer, import_string in import_strings.items():
        generator = load_generator(import_string)
        if generator.layer.lower() != layer.lower():
            raise GeneratorImportError(
                f"Generator {import_string!r} serves layer {generator.layer!r}, "
                f"not {layer!r}."
            )
        generators.append(generator)
    return generators
