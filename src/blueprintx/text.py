"""Naming helpers shared by normalization, validation and history."""

from __future__ import annotations

import re
import unicodedata

_IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "tooth": "teeth",
    "foot": "feet",
}
_UNCOUNTABLE = frozenset(
    {"data", "equipment", "information", "metadata", "news", "series", "species"}
)


def to_snake_case(name: str) -> str:
    """Convert PascalCase, camelCase, kebab-case or spaced words to snake_case."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name.strip())
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    s3 = re.sub(r"[\s\-]+", "_", s2)
    return re.sub(r"_{2,}", "_", s3).strip("_").lower()


def to_studly_case(name: str) -> str:
    """Convert any word form to StudlyCase (``email_taken`` -> ``EmailTaken``)."""
    words = re.split(r"[\s_\-]+", to_snake_case(name))
    return "".join(word[:1].upper() + word[1:] for word in words if word)


def to_headline(name: str) -> str:
    """Convert a key to capitalized words (``email_taken`` -> ``Email Taken``)."""
    words = to_snake_case(name).split("_")
    return " ".join(word.capitalize() for word in words if word)


def pluralize(word: str) -> str:
    """Return a simple English plural of a lower-case word."""
    if not word or word in _UNCOUNTABLE:
        return word
    if word in _IRREGULAR_PLURALS:
        return _IRREGULAR_PLURALS[word]
    if word.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    return word + "s"


def table_name_for(entity: str) -> str:
    """Conventional table name for an entity: snake-cased, last word pluralized."""
    snake = to_snake_case(entity)
    head, _, last = snake.rpartition("_")
    plural = pluralize(last)
    return f"{head}_{plural}" if head else plural


def slugify(value: str) -> str:
    """ASCII, lower-case, dash-separated slug. Empty when nothing survives."""
    ascii_value = (
        unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    )
    return re.sub(r"[^a-z0-9]+", "-", ascii_value.lower()).strip("-")
