"""Canonical blueprint value objects."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class Field(BaseModel):
    """One declared entity field."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    type: str
    rules: str | None = None
    default: Any = None
    # Kept as authored; SchemaCheck reports non-integer or non-boolean values.
    precision: Any = None
    scale: Any = None
    nullable: Any = None


class Relation(BaseModel):
    """Relation from the owning entity to a target entity through ``field``."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str
    target: str
    field: str
    rules: str | None = None


class Endpoint(BaseModel):
    """API endpoint declaration. ``type`` selects the endpoint flavour."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str
    name: str | None = None
    field: str | None = None
    fields: tuple[str, ...] = ()
    by: str | None = None
    method: str | None = None
    path: str | None = None


class ResourceInclude(BaseModel):
    """Relation exposed through the API resource representation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    relation: str
    alias: str
    resource: str | None = None


class ApiResources(BaseModel):
    """Resource representation options."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    includes: tuple[ResourceInclude, ...] = ()


class ApiSurface(BaseModel):
    """HTTP surface descriptor for one blueprint."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    base_path: str | None = None
    middleware: tuple[str, ...] = ()
    resources: ApiResources = ApiResources()
    endpoints: tuple[Endpoint, ...] = ()


class ErrorDefinition(BaseModel):
    """Normalized domain error descriptor."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    key: str
    class_name: str
    exception_class: str
    code: str
    message: str
    status: int = 400
    extends: str = "DomainException"
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the external ``class`` key."""
        data = self.model_dump(mode="json")
        data["class"] = data.pop("class_name")
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ErrorDefinition:
        """Deserialize from the external ``class`` key layout."""
        payload = dict(data)
        if "class" in payload:
            payload["class_name"] = payload.pop("class")
        return cls.model_validate(payload)


class Blueprint(BaseModel):
    """Canonical description of one generated entity.

    Construction does not enforce semantic invariants (unique field names,
    relation targets); those are reported by validation.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str
    module: str | None = None
    entity: str
    table: str
    architecture: str
    fields: tuple[Field, ...] = ()
    relations: tuple[Relation, ...] = ()
    options: dict[str, Any] = {}
    api: ApiSurface = ApiSurface()
    docs: dict[str, Any] = {}
    errors: tuple[ErrorDefinition, ...] = ()
    metadata: dict[str, Any] = {}
    tenancy: dict[str, Any] = {}

    def field_names(self) -> tuple[str, ...]:
        """Return declared field names in declaration order."""
        return tuple(field.name for field in self.fields)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the normalized blueprint dictionary layout."""
        data = self.model_dump(mode="json", exclude={"errors"})
        data["errors"] = [error.to_dict() for error in self.errors]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Blueprint:
        """Build a blueprint from the normalized dictionary layout.

        Args:
            data: Normalized blueprint payload.

        Returns:
            Blueprint value object.
        """
        payload = dict(data)
        payload["errors"] = [
            error
            if isinstance(error, ErrorDefinition)
            else ErrorDefinition.from_dict(error)
            for error in payload.get("errors") or ()
        ]
        return cls.model_validate(payload)

    def with_architecture(self, architecture: str) -> Blueprint:
        """Return a copy that targets another architecture."""
        return self.model_copy(update={"architecture": architecture})
