"""Canonical JSON serialization and hashing (deterministic)."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping, Sequence
from typing import TypeAlias

from pydantic import BaseModel
from pydantic.types import JsonValue

# Read-only JSON type: covariant Mapping/Sequence so list[str], dict[str,str]
# etc. work without cast.
JSONReadOnly: TypeAlias = (
    Mapping[str, "JSONReadOnly"]
    | Sequence["JSONReadOnly"]
    | str
    | int
    | float
    | bool
    | None
)

CanonicalJSONInput = BaseModel | JSONReadOnly


def canonical_json_bytes(
    obj: CanonicalJSONInput, *, indent: int | None = None
) -> bytes:
    """Serialize to canonical JSON bytes. Deterministic; stable across key order.

    Args:
        obj: Model or JSON-like structure to serialize.
        indent: Optional indentation for human-facing files (keys stay sorted).

    Returns:
        UTF-8 encoded canonical JSON bytes.

    Raises:
        TypeError: On unsupported type.
    """
    if obj is None:
        data: JsonValue = None
    elif isinstance(obj, BaseModel):
        data = obj.model_dump(mode="json")
    elif isinstance(obj, (dict, list, str, int, float, bool)):
        data = obj
    else:
        raise TypeError(f"Unsupported type for canonical JSON: {type(obj).__name__}")

    raw = json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":") if indent is None else (",", ": "),
        indent=indent,
        ensure_ascii=False,
        allow_nan=False,
    )
    return raw.encode("utf-8")


def sha256_bytes(data: bytes) -> str:
    """Return hex-encoded SHA-256 hash of data.

    Args:
        data: Raw bytes to hash.

    Returns:
        Hex-encoded digest string.
    """
    return hashlib.sha256(data).hexdigest()
