"""Structural blueprint check backed by strict pydantic schema models."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from blueprintx.blueprint.models import Blueprint
from blueprintx.validation.messages import ValidationResult

SCHEMA_ERROR_CODE = "schema.invalid"

_STUDLY = r"^[A-Z][A-Za-z0-9]*$"
_SNAKE = r"^[a-z][a-z0-9_]*$"
_IDENTIFIER = r"^[A-Za-z][A-Za-z0-9_]*$"


class _Schema(BaseModel):
    model_config = ConfigDict(extra="ignore")


class FieldSchema(_Schema):
    name: StrictStr = Field(pattern=_SNAKE)
    type: StrictStr = Field(pattern=_IDENTIFIER)
    rules: StrictStr | None = None
    precision: StrictInt | None = None
    scale: StrictInt | None = None
    nullable: StrictBool | None = None

    @model_validator(mode="after")
    def _check_decimal(self) -> FieldSchema:
        if self.type.lower() != "decimal":
            return self
        if self.precision is None or not 1 <= self.precision <= 65:
            raise ValueError("decimal fields require a precision between 1 and 65")
        if self.scale is None or not 0 <= self.scale <= self.precision:
            raise ValueError("decimal fields require a scale between 0 and precision")
        return self


class RelationSchema(_Schema):
    type: Literal["belongsTo", "hasOne", "hasMany", "belongsToMany"]
    target: StrictStr = Field(pattern=_STUDLY)
    field: StrictStr = Field(pattern=_SNAKE)
    rules: StrictStr | None = None


class EndpointSchema(_Schema):
    type: StrictStr = Field(pattern=_SNAKE)
    name: StrictStr | None = None
    field: StrictStr | None = None
    fields: list[StrictStr] = []
    by: StrictStr | None = None
    method: Literal["GET", "POST", "PUT", "PATCH", "DELETE"] | None = None
    path: StrictStr | None = None


class ApiSchema(_Schema):
    base_path: StrictStr | None = None
    middleware: list[StrictStr] = []
    endpoints: list[EndpointSchema] = []

    @field_validator("base_path")
    @classmethod
    def _check_base_path(cls, value: str | None) -> str | None:
        if value is not None and not value.startswith("/"):
            raise ValueError("base path must start with '/'")
        return value


class OptionsSchema(_Schema):
    timestamps: StrictBool = True
    soft_deletes: StrictBool = Field(default=False, alias="softDeletes")
    audited: StrictBool = False
    versioned: StrictBool = False


class ErrorSchema(_Schema):
    name: StrictStr = Field(min_length=1)
    code: StrictStr = Field(min_length=1)
    message: StrictStr
    status: StrictInt = Field(ge=100, le=599)


class BlueprintSchema(_Schema):
    entity: StrictStr = Field(pattern=_STUDLY)
    table: StrictStr = Field(pattern=_SNAKE)
    architecture: StrictStr
    fields: list[FieldSchema] = Field(min_length=1)
    relations: list[RelationSchema] = []
    options: OptionsSchema = OptionsSchema()
    api: ApiSchema = ApiSchema()
    errors: list[ErrorSchema] = []
    tenancy: dict[str, StrictStr] = {}

    @field_validator("architecture")
    @classmethod
    def _check_architecture(cls, value: str, info: ValidationInfo) -> str:
        architectures = (info.context or {}).get("architectures")
        if architectures and value not in architectures:
            allowed = ", ".join(sorted(architectures))
            raise ValueError(
                f"unknown architecture '{value}' (expected one of: {allowed})"
            )
        return value


class SchemaCheck:
    """First validation stage: structural rules on the normalized dictionary."""

    name = "schema"

    def __init__(self, architectures: Iterable[str] = ()) -> None:
        """Store the accepted architecture names.

        Args:
            architectures: Registered architecture names; empty accepts any.
        """
        self._architectures = frozenset(architectures)

    def check(self, blueprint: Blueprint) -> ValidationResult:
        """Validate blueprint structure.

        Args:
            blueprint: Normalized blueprint.

        Returns:
            Result holding one ``schema.invalid`` error per violation.
        """
        result = ValidationResult()
        try:
            BlueprintSchema.model_validate(
                blueprint.to_dict(),
                context={"architectures": self._architectures},
            )
        except ValidationError as exc:
            for error in exc.errors():
                path = format_location(error["loc"])
                result.add_error(
                    SCHEMA_ERROR_CODE, f"{path}: {_error_text(error)}", path
                )
        return result.deduplicated()


def format_location(location: Iterable[int | str]) -> str:
    """Render a pydantic error location as ``fields[0].name``."""
    rendered = ""
    for part in location:
        if isinstance(part, int):
            rendered += f"[{part}]"
        else:
            rendered += f".{part}" if rendered else str(part)
    return rendered or "blueprint"


def _error_text(error: Any) -> str:
    """Return the readable part of one pydantic error."""
    if error.get("type") == "value_error":
        cause = (error.get("ctx") or {}).get("error")
        if cause is not None:
            return str(cause)
    return str(error["msg"])
