"""Cross-field blueprint rules that structural validation cannot express."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from blueprintx.blueprint.models import Blueprint, Endpoint
from blueprintx.text import table_name_for
from blueprintx.validation.messages import ValidationResult

TENANCY_MODES = ("central", "tenant", "shared")
DEFAULT_TENANCY_MODE = "central"

_TENANCY_OVERRIDE_KEYS = ("storage", "connection", "routing_scope", "seed_scope")
_TENANCY_SCOPE_KEYS = ("storage", "routing_scope", "seed_scope")
_TENANCY_SCOPE_VALUES = ("central", "tenant", "both")


class SemanticCheck:
    """Second validation stage: relationships between blueprint parts."""

    name = "semantic"

    def check(self, blueprint: Blueprint) -> ValidationResult:
        """Run every semantic rule in a fixed order.

        Args:
            blueprint: Structurally valid blueprint.

        Returns:
            De-duplicated findings in discovery order.
        """
        result = ValidationResult()
        self._check_tenancy(blueprint, result)

        field_names: set[str] = set()
        for index, field in enumerate(blueprint.fields):
            if field.name in field_names:
                result.add_error(
                    "fields.duplicate",
                    f"Duplicate field: {field.name}",
                    f"fields[{index}].name",
                )
            field_names.add(field.name)

        relation_fields = []
        for index, relation in enumerate(blueprint.relations):
            relation_fields.append(relation.field)
            if relation.field not in field_names:
                result.add_error(
                    "relations.missing_field",
                    f'Relation {relation.target} requires field "{relation.field}" '
                    "in fields.",
                    f"relations[{index}].field",
                )

        suggested_table = table_name_for(blueprint.entity)
        if suggested_table != blueprint.table:
            result.add_warning(
                "naming.mismatch",
                f'Table name "{blueprint.table}" does not match the suggested '
                f'convention "{suggested_table}".',
            )

        seen_endpoints: set[str] = set()
        for index, endpoint in enumerate(blueprint.api.endpoints):
            signature = endpoint_signature(endpoint)
            if signature in seen_endpoints:
                result.add_error(
                    "endpoints.duplicate",
                    f'Duplicate endpoint for "{signature}".',
                    f"api.endpoints[{index}]",
                )
            seen_endpoints.add(signature)
            _check_endpoint(endpoint, index, field_names, relation_fields, result)

        if blueprint.options.get("versioned") is True and "version" not in field_names:
            result.add_error(
                "options.versioned.missing_field",
                'Option versioned requires a "version" field.',
            )

        examples = blueprint.docs.get("examples")
        if isinstance(examples, dict):
            for example, payload in examples.items():
                if not isinstance(payload, dict):
                    continue
                for name in payload:
                    if name not in field_names:
                        result.add_warning(
                            "docs.invalid_example",
                            f'Example "{example}" references unknown field "{name}".',
                            f"docs.examples.{example}.{name}",
                        )

        return result.deduplicated()

    def _check_tenancy(self, blueprint: Blueprint, result: ValidationResult) -> None:
        """Check the tenancy declaration against itself and the module layout."""
        tenancy = blueprint.tenancy
        declared = tenancy.get("mode")
        if declared is None and any(tenancy.get(key) for key in _TENANCY_OVERRIDE_KEYS):
            result.add_error(
                "tenancy.mode.missing",
                'Tenancy requires "mode" when other tenancy options are set.',
                "tenancy.mode",
            )

        inferred = infer_tenancy_mode(blueprint)
        if declared is not None and declared != inferred:
            result.add_warning(
                "tenancy.mode.mismatch",
                f'Tenancy mode "{declared}" does not match the folder convention '
                f'"{inferred}".',
                "tenancy.mode",
            )

        mode = declared or inferred
        for key in _TENANCY_SCOPE_KEYS:
            value = tenancy.get(key)
            if value is None or value == "both":
                continue
            if value not in _TENANCY_SCOPE_VALUES:
                result.add_error(
                    f"tenancy.{key}.invalid",
                    f'Tenancy {key} "{value}" must be one of central, tenant, both.',
                    f"tenancy.{key}",
                )
                continue
            if (mode, value) in (("central", "tenant"), ("tenant", "central")):
                result.add_error(
                    f"tenancy.{key}.invalid",
                    f'Tenancy {key} "{value}" is not compatible with mode "{mode}".',
                    f"tenancy.{key}",
                )


def infer_tenancy_mode(blueprint: Blueprint) -> str:
    """Infer tenancy mode from module segments, then path segments.

    Args:
        blueprint: Blueprint to inspect.

    Returns:
        ``central``, ``tenant`` or ``shared``; ``central`` when nothing matches.
    """
    if blueprint.module:
        mode = _mode_from_segments(blueprint.module.split("/"))
        if mode is not None:
            return mode
    if blueprint.path:
        mode = _mode_from_segments(blueprint.path.replace("\\", "/").split("/"))
        if mode is not None:
            return mode
    return DEFAULT_TENANCY_MODE


def endpoint_signature(endpoint: Endpoint) -> str:
    """Return the identity used to detect duplicate endpoints."""
    if endpoint.name:
        return f"{endpoint.type}:{endpoint.name}"
    if endpoint.type == "stats" and endpoint.by:
        return f"{endpoint.type}:by={endpoint.by}"
    if endpoint.field:
        return f"{endpoint.type}:field={endpoint.field}"
    return endpoint.type


def _mode_from_segments(segments: Iterable[str]) -> str | None:
    for segment in segments:
        lowered = segment.lower()
        if lowered in TENANCY_MODES:
            return lowered
    return None


def _check_endpoint(
    endpoint: Endpoint,
    index: int,
    field_names: set[str],
    relation_fields: Sequence[str],
    result: ValidationResult,
) -> None:
    """Apply type-specific endpoint rules."""
    location = f"api.endpoints[{index}]"
    if endpoint.type == "patch":
        if not endpoint.field:
            result.add_error(
                "endpoints.patch.unknown_field",
                'Patch endpoints must declare a "field".',
                f"{location}.field",
            )
        elif endpoint.field not in field_names:
            result.add_error(
                "endpoints.patch.unknown_field",
                f'Patch endpoint references unknown field "{endpoint.field}".',
                f"{location}.field",
            )

    elif endpoint.type == "search":
        if not endpoint.fields:
            result.add_error(
                "endpoints.search.missing_fields",
                "Search endpoints must declare at least one field.",
                f"{location}.fields",
            )
        for name in endpoint.fields:
            if name not in field_names:
                result.add_warning(
                    "endpoints.search.unknown_field",
                    f'Search endpoint references unknown field "{name}".',
                    f"{location}.fields",
                )

    elif endpoint.type == "stats":
        if not endpoint.by:
            result.add_error(
                "endpoints.stats.missing_by",
                'Stats endpoints must declare "by".',
                f"{location}.by",
            )
        elif endpoint.by not in field_names and endpoint.by not in relation_fields:
            result.add_warning(
                "endpoints.stats.unknown_by",
                f'Stats endpoint "by" references "{endpoint.by}", which matches '
                "neither a field nor a relation.",
                f"{location}.by",
            )
