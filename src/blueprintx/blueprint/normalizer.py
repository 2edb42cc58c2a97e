"""Raw blueprint payload -> canonical Blueprint model."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from blueprintx.blueprint.errors import BlueprintErrorCode, BlueprintParseError
from blueprintx.blueprint.models import Blueprint
from blueprintx.text import table_name_for, to_headline, to_snake_case, to_studly_case

DEFAULT_OPTIONS: Mapping[str, bool] = MappingProxyType(
    {
        "timestamps": True,
        "softDeletes": False,
        "audited": False,
        "versioned": False,
    }
)

ERROR_BASE_CLASSES: Mapping[str, str] = MappingProxyType(
    {
        "not_found": "DomainNotFoundException",
        "not_found_exception": "DomainNotFoundException",
        "conflict": "DomainConflictException",
        "conflict_exception": "DomainConflictException",
        "validation": "DomainValidationException",
        "validation_exception": "DomainValidationException",
        "base": "DomainException",
        "domain": "DomainException",
    }
)
DEFAULT_ERROR_BASE_CLASS = "DomainException"
DEFAULT_ERROR_STATUS = 400

TENANCY_SCOPE_KEYS = ("mode", "storage", "routing_scope", "seed_scope")

_MODULE_SEGMENT = re.compile(r"[a-z0-9_]+")


class NormalizerSettings(BaseModel):
    """Explicit inputs that shape normalization besides the raw payload."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    blueprints_root: Path | None = None
    default_architecture: str = "hexagonal"
    default_options: dict[str, Any] = dict(DEFAULT_OPTIONS)


class BlueprintNormalizer:
    """Apply defaults to a raw blueprint mapping and reject malformed input."""

    def __init__(self, settings: NormalizerSettings | None = None) -> None:
        """Store normalization settings.

        Args:
            settings: Defaults and blueprints root; library defaults when omitted.
        """
        self._settings = settings or NormalizerSettings()

    @property
    def settings(self) -> NormalizerSettings:
        """Return active normalization settings."""
        return self._settings

    def normalize(self, raw: Mapping[str, Any], path: str | Path) -> Blueprint:
        """Normalize one raw blueprint payload.

        Args:
            raw: Decoded blueprint mapping (e.g. YAML document root).
            path: Source path of the blueprint; used for module inference.

        Returns:
            Canonical blueprint model.

        Raises:
            BlueprintParseError: If the payload is malformed.
        """
        source = str(path)
        if not isinstance(raw, Mapping):
            raise BlueprintParseError(
                BlueprintErrorCode.INVALID_STRUCTURE,
                f"Blueprint '{source}' does not contain a mapping.",
                data={"path": source},
            )

        entity = raw.get("entity")
        if not isinstance(entity, str) or not entity.strip():
            raise BlueprintParseError(
                BlueprintErrorCode.INVALID_STRUCTURE,
                f"Blueprint '{source}' does not declare a valid entity.",
                data={"path": source},
            )
        entity = entity.strip()

        table = raw.get("table")
        if not isinstance(table, str) or not table.strip():
            table = table_name_for(entity)

        architecture = raw.get("architecture")
        if not isinstance(architecture, str) or not architecture.strip():
            architecture = self._settings.default_architecture

        fields = _list_of_mappings(raw, "fields")
        if not fields:
            raise BlueprintParseError(
                BlueprintErrorCode.INVALID_STRUCTURE,
                f"Blueprint '{source}' must declare at least one field.",
                data={"path": source},
            )

        options = raw.get("options")
        if options is None:
            options = {}
        if not isinstance(options, Mapping):
            raise BlueprintParseError(
                BlueprintErrorCode.INVALID_STRUCTURE,
                "Key 'options' must be a mapping.",
                data={"path": source},
            )

        api = raw.get("api")
        if not isinstance(api, Mapping):
            api = {}
        middleware = api.get("middleware")

        payload = {
            "path": source,
            "module": self._resolve_module(raw, path),
            "entity": entity,
            "table": table.strip(),
            "architecture": architecture.strip(),
            "fields": fields,
            "relations": _list_of_mappings(raw, "relations"),
            "options": {**self._settings.default_options, **options},
            "api": {
                "base_path": normalize_api_base_path(api),
                "middleware": [item for item in middleware if isinstance(item, str)]
                if isinstance(middleware, list)
                else [],
                "resources": normalize_api_resources(api.get("resources")),
                "endpoints": _list_of_mappings(api, "endpoints", prefix="api."),
            },
            "docs": _mapping_or_empty(raw.get("docs")),
            "errors": normalize_errors(raw.get("errors"), entity),
            "metadata": _mapping_or_empty(raw.get("metadata")),
            "tenancy": normalize_tenancy(raw.get("tenancy")),
        }
        try:
            return Blueprint.from_dict(payload)
        except ValidationError as exc:
            raise BlueprintParseError(
                BlueprintErrorCode.INVALID_STRUCTURE,
                f"Blueprint '{source}' has an invalid structure: {exc}",
                data={"path": source, "validation_errors": exc.errors()},
            ) from exc

    def _resolve_module(self, raw: Mapping[str, Any], path: str | Path) -> str | None:
        """Return explicit module or the one implied by the blueprint directory.

        Args:
            raw: Raw blueprint mapping.
            path: Blueprint source path.

        Returns:
            Sanitized module path, or ``None`` when there is none.
        """
        explicit = raw.get("module")
        if explicit is not None:
            if not isinstance(explicit, str):
                raise BlueprintParseError(
                    BlueprintErrorCode.INVALID_MODULE,
                    "Key 'module' must be a string.",
                    data={"path": str(path)},
                )
            return sanitize_module(explicit, str(path))
        return sanitize_module(
            detect_module(Path(path), self._settings.blueprints_root), str(path)
        )


def detect_module(path: Path, blueprints_root: Path | None) -> str | None:
    """Return the directory of ``path`` relative to the blueprints root.

    Args:
        path: Blueprint file path.
        blueprints_root: Configured blueprints root.

    Returns:
        Relative directory (``/``-joined), or ``None`` when outside the root
        or directly at its top level.
    """
    if blueprints_root is None:
        return None
    try:
        relative = path.resolve().relative_to(blueprints_root.resolve())
    except ValueError:
        return None
    segments = relative.parts[:-1]
    return "/".join(segments) if segments else None


def sanitize_module(module: str | None, context: str) -> str | None:
    """Lower-case and validate module segments.

    Args:
        module: Raw module path (``/`` or ``\\`` separated).
        context: Blueprint path used in error messages.

    Returns:
        Normalized module path, or ``None`` for blank input.

    Raises:
        BlueprintParseError: If a segment contains characters outside ``[a-z0-9_]``.
    """
    if module is None:
        return None
    trimmed = module.replace("\\", "/").strip().strip("/")
    segments = [segment.strip().lower() for segment in trimmed.split("/")]
    segments = [segment for segment in segments if segment]
    if not segments:
        return None
    for segment in segments:
        if not _MODULE_SEGMENT.fullmatch(segment):
            raise BlueprintParseError(
                BlueprintErrorCode.INVALID_MODULE,
                (
                    f"Module detected for '{context}' contains an invalid segment "
                    f"'{segment}'; only [a-z0-9_] is allowed."
                ),
                data={"path": context, "segment": segment},
            )
    return "/".join(segments)


def normalize_api_base_path(api: Mapping[str, Any]) -> str | None:
    """Return the first non-blank base path from ``base_path`` / ``basePath``."""
    for key in ("base_path", "basePath"):
        value = api.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def normalize_api_resources(config: object) -> dict[str, list[dict[str, str]]]:
    """Normalize ``api.resources`` into ``{"includes": [...]}``.

    Args:
        config: Raw ``api.resources`` value.

    Returns:
        Normalized resources mapping.

    Raises:
        BlueprintParseError: If the section or one include is malformed.
    """
    if config is None:
        return {"includes": []}
    if not isinstance(config, Mapping):
        raise BlueprintParseError(
            BlueprintErrorCode.INVALID_RESOURCES,
            "Key 'api.resources' must be a mapping.",
        )
    value = config.get("includes", config.get("include"))
    if value is None:
        return {"includes": []}
    if isinstance(value, str):
        value = [value]
    if isinstance(value, Mapping):
        items: list[tuple[str | None, object]] = [
            (key if isinstance(key, str) else None, item) for key, item in value.items()
        ]
    elif isinstance(value, list):
        items = [(None, item) for item in value]
    else:
        raise BlueprintParseError(
            BlueprintErrorCode.INVALID_RESOURCES,
            "Key 'api.resources.includes' must be a list, mapping or string.",
        )
    includes = []
    for key, definition in items:
        include = _normalize_include(definition, key)
        if include is not None:
            includes.append(include)
    return {"includes": includes}


def _normalize_include(definition: object, key: str | None) -> dict[str, str] | None:
    """Normalize one resource include entry."""
    if isinstance(definition, str):
        relation = definition.strip()
        if not relation:
            return None
        return {"relation": relation, "alias": relation}
    if not isinstance(definition, Mapping):
        raise BlueprintParseError(
            BlueprintErrorCode.INVALID_RESOURCES,
            "Each 'api.resources.includes' item must be a string or a mapping.",
        )
    relation = definition.get("relation", definition.get("name", key))
    if not isinstance(relation, str) or not relation.strip():
        raise BlueprintParseError(
            BlueprintErrorCode.INVALID_RESOURCES,
            "Each 'api.resources.includes' item must name its relation.",
        )
    relation = relation.strip()
    alias = definition.get("alias", definition.get("as", relation))
    if not isinstance(alias, str) or not alias.strip():
        alias = relation
    result = {"relation": relation, "alias": alias.strip()}
    if "resource" in definition:
        resource = definition["resource"]
        if not isinstance(resource, str) or not resource.strip().strip("\\"):
            raise BlueprintParseError(
                BlueprintErrorCode.INVALID_RESOURCES,
                "Value 'resource' in 'api.resources.includes' must be a class name.",
                data={"relation": relation},
            )
        result["resource"] = resource.strip().strip("\\")
    return result


def normalize_errors(value: object, entity: str) -> list[dict[str, Any]]:
    """Normalize the ``errors`` section into error descriptors.

    Args:
        value: Raw ``errors`` mapping (key -> definition mapping or message).
        entity: Owning entity name, used for default codes.

    Returns:
        Error descriptor dictionaries in declaration order.

    Raises:
        BlueprintParseError: If the section or one definition is malformed.
    """
    if value is None:
        return []
    if not isinstance(value, Mapping):
        raise BlueprintParseError(
            BlueprintErrorCode.INVALID_ERRORS,
            "Key 'errors' must be a mapping of error definitions.",
        )
    errors = []
    for key, definition in value.items():
        if not isinstance(key, str) or not key.strip():
            raise BlueprintParseError(
                BlueprintErrorCode.INVALID_ERRORS,
                "Each error must have a non-empty key.",
            )
        if isinstance(definition, str):
            definition = {"message": definition}
        elif definition is None:
            definition = {}
        elif not isinstance(definition, Mapping):
            raise BlueprintParseError(
                BlueprintErrorCode.INVALID_ERRORS,
                f"Definition of error '{key}' must be a mapping or a message.",
                data={"key": key},
            )
        errors.append(_normalize_error(key, definition, entity))
    return errors


def _normalize_error(
    key: str, definition: Mapping[str, Any], entity: str
) -> dict[str, Any]:
    """Normalize one error definition."""
    name = to_snake_case(key)
    class_name = to_studly_case(key)
    exception_class = (
        class_name if class_name.endswith("Exception") else f"{class_name}Exception"
    )
    code = definition.get("code")
    if not isinstance(code, str) or not code:
        code = f"domain.{to_snake_case(entity)}.{name}"
    message = definition.get("message")
    if not isinstance(message, str) or not message:
        message = f"{to_headline(key)}."
    extends = definition.get("extends")
    extends_key = extends.strip().lower() if isinstance(extends, str) else ""
    description = definition.get("description")
    return {
        "name": name,
        "key": key,
        "class": class_name,
        "exception_class": exception_class,
        "code": code,
        "message": message,
        "status": _normalize_status(definition.get("status")),
        "extends": ERROR_BASE_CLASSES.get(extends_key, DEFAULT_ERROR_BASE_CLASS),
        "description": description if isinstance(description, str) else None,
    }


def _normalize_status(value: object) -> int:
    """Coerce an HTTP status, falling back to 400 outside [100, 599]."""
    if isinstance(value, bool):
        return DEFAULT_ERROR_STATUS
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return DEFAULT_ERROR_STATUS
    if not isinstance(value, (int, float)):
        return DEFAULT_ERROR_STATUS
    if isinstance(value, float) and not math.isfinite(value):
        return DEFAULT_ERROR_STATUS
    status = int(value)
    if status < 100 or status > 599:
        return DEFAULT_ERROR_STATUS
    return status


def normalize_tenancy(value: object) -> dict[str, str]:
    """Keep recognized tenancy keys with trimmed string values.

    Args:
        value: Raw ``tenancy`` mapping.

    Returns:
        Normalized tenancy mapping with lower-cased values.

    Raises:
        BlueprintParseError: If the section or a recognized value has the
            wrong type.
    """
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise BlueprintParseError(
            BlueprintErrorCode.INVALID_TENANCY,
            "Key 'tenancy' must be a mapping.",
        )
    result: dict[str, str] = {}
    for key in (*TENANCY_SCOPE_KEYS, "connection"):
        raw = value.get(key)
        if raw is None:
            continue
        if not isinstance(raw, str):
            raise BlueprintParseError(
                BlueprintErrorCode.INVALID_TENANCY,
                f"Key 'tenancy.{key}' must be a string.",
                data={"key": key},
            )
        normalized = raw.strip().lower()
        if normalized:
            result[key] = normalized
    return result


def _list_of_mappings(
    data: Mapping[str, Any], key: str, *, prefix: str = ""
) -> list[dict[str, Any]]:
    """Return ``data[key]`` as a list of plain dicts (``None`` -> empty)."""
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise BlueprintParseError(
            BlueprintErrorCode.INVALID_STRUCTURE,
            f"Key '{prefix}{key}' must be a list.",
        )
    items = []
    for index, item in enumerate(value):
        if not isinstance(item, Mapping):
            raise BlueprintParseError(
                BlueprintErrorCode.INVALID_STRUCTURE,
                f"Item '{prefix}{key}[{index}]' must be a mapping.",
            )
        items.append(dict(item))
    return items


def _mapping_or_empty(value: object) -> dict[str, Any]:
    """Return a plain dict copy of a mapping, or an empty dict."""
    return dict(value) if isinstance(value, Mapping) else {}
