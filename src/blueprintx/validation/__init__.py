"""Two-stage blueprint validation."""

from blueprintx.validation.messages import ValidationMessage, ValidationResult
from blueprintx.validation.pipeline import (
    BlueprintCheck,
    BlueprintValidator,
    build_default_validator,
)
from blueprintx.validation.schema import SchemaCheck
from blueprintx.validation.semantic import SemanticCheck, infer_tenancy_mode

__all__ = [
    "BlueprintCheck",
    "BlueprintValidator",
    "SchemaCheck",
    "SemanticCheck",
    "ValidationMessage",
    "ValidationResult",
    "build_default_validator",
    "infer_tenancy_mode",
]
