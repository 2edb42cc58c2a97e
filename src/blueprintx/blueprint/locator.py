"""Blueprint file discovery."""

from __future__ import annotations

from pathlib import Path

BLUEPRINT_SUFFIXES = (".yaml", ".yml")


def discover_blueprints(
    root: Path, *, module: str | None = None, entity: str | None = None
) -> tuple[Path, ...]:
    """Find blueprint files under ``root`` in deterministic order.

    An exact ``<module>/<entity>.yaml`` match short-circuits the directory
    scan. Module filters match a relative path prefix and entity filters match
    the file stem, both case-insensitively.

    Args:
        root: Blueprints root directory.
        module: Optional module filter (``hr`` or ``hr/payroll``).
        entity: Optional entity filter (file stem).

    Returns:
        Sorted blueprint paths.
    """
    if not root.is_dir():
        return ()
    module_filter = _clean(module, strip_slashes=True)
    entity_filter = _clean(entity)

    if entity_filter is not None:
        prefix = f"{module_filter}/" if module_filter else ""
        exact = [
            root / f"{prefix}{entity_filter}{suffix}" for suffix in BLUEPRINT_SUFFIXES
        ]
        found = [path for path in exact if path.is_file()]
        if found:
            return tuple(sorted(found))

    paths = []
    for path in root.rglob("*"):
        if not path.is_file() or path.suffix.lower() not in BLUEPRINT_SUFFIXES:
            continue
        relative = path.relative_to(root).as_posix().lower()
        if module_filter is not None and not relative.startswith(
            f"{module_filter.lower()}/"
        ):
            continue
        if entity_filter is not None and path.stem.lower() != entity_filter.lower():
            continue
        paths.append(path)
    return tuple(sorted(paths))


def relative_blueprint_path(root: Path, path: Path) -> str:
    """Return ``path`` relative to ``root`` with forward slashes when possible."""
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return str(path)


def _clean(value: str | None, *, strip_slashes: bool = False) -> str | None:
    """Trim a filter value; blank -> ``None``."""
    if value is None:
        return None
    cleaned = value.strip()
    if strip_slashes:
        cleaned = cleaned.replace("\\", "/").strip("/")
    return cleaned or None
