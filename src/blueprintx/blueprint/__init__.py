"""Blueprint model, normalization and loading."""

from blueprintx.blueprint.errors import BlueprintErrorCode, BlueprintParseError
from blueprintx.blueprint.locator import discover_blueprints, relative_blueprint_path
from blueprintx.blueprint.models import (
    ApiResources,
    ApiSurface,
    Blueprint,
    Endpoint,
    ErrorDefinition,
    Field,
    Relation,
    ResourceInclude,
)
from blueprintx.blueprint.normalizer import (
    DEFAULT_OPTIONS,
    BlueprintNormalizer,
    NormalizerSettings,
)
from blueprintx.blueprint.parser import ParseOutcome, YamlBlueprintParser

__all__ = [
    "DEFAULT_OPTIONS",
    "ApiResources",
    "ApiSurface",
    "Blueprint",
    "BlueprintErrorCode",
    "BlueprintNormalizer",
    "BlueprintParseError",
    "Endpoint",
    "ErrorDefinition",
    "Field",
    "NormalizerSettings",
    "ParseOutcome",
    "Relation",
    "ResourceInclude",
    "YamlBlueprintParser",
    "discover_blueprints",
    "relative_blueprint_path",
]
