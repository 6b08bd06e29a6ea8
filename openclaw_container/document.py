"""Dotted-path helpers for JSON-like configuration documents."""

from __future__ import annotations

from typing import Any

Document = dict[str, Any]

_MISSING = object()


def split_path(dotpath: str) -> list[str]:
    """Split ``"a.b.c"`` into ``["a", "b", "c"]``."""
    return [part for part in dotpath.split(".") if part]


def get_nested(doc: Document, dotpath: str, default: Any = None) -> Any:
    """Get the value at a dotted path, or ``default`` if any segment is missing."""
    current: Any = doc
    for key in split_path(dotpath):
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


def has_nested(doc: Document, dotpath: str) -> bool:
    return get_nested(doc, dotpath, _MISSING) is not _MISSING


def set_nested(doc: Document, dotpath: str, value: Any) -> None:
    """Set a value at a dotted path, creating (or replacing non-dict) parents."""
    keys = split_path(dotpath)
    current = doc
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


def delete_nested(doc: Document, dotpath: str) -> bool:
    """Delete the value at a dotted path and prune parents left empty.

    Returns:
        True if a value was removed
    """
    keys = split_path(dotpath)
    parents: list[tuple[Document, str]] = []
    current: Any = doc
    for key in keys[:-1]:
        if not isinstance(current, dict) or not isinstance(current.get(key), dict):
            return False
        parents.append((current, key))
        current = current[key]

    if not isinstance(current, dict) or keys[-1] not in current:
        return False
    del current[keys[-1]]

    # Drop containers emptied by the removal
    for parent, key in reversed(parents):
        if parent[key]:
            break
        del parent[key]
    return True


def path_within(dotpath: str, prefix: str) -> bool:
    """True if ``dotpath`` equals ``prefix`` or lies underneath it."""
    path_keys = split_path(dotpath)
    prefix_keys = split_path(prefix)
    return path_keys[: len(prefix_keys)] == prefix_keys


__all__ = [
    "Document",
    "split_path",
    "get_nested",
    "has_nested",
    "set_nested",
    "delete_nested",
    "path_within",
]
