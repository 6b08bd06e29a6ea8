"""Merge utilities for configuration documents.

The merge policy shared by every layer:
- Mappings are merged key by key, recursively
- Sequences are atomic: the overlay's list replaces the base's list
- Scalars and mismatched types: the overlay wins
- A key missing from the overlay leaves the base value untouched
"""

from copy import deepcopy
from typing import Any


def deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two documents, overlay wins conflicts.

    Neither input is mutated, and values taken from the overlay are copied so
    the result can be edited without touching the overlay document.

    Args:
        base: Lower-precedence document
        overlay: Higher-precedence document

    Returns:
        Merged document
    """
    result = base.copy()

    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = deepcopy(value)

    return result


def merge_layers(*layers: dict[str, Any] | None) -> dict[str, Any]:
    """Fold layers left to right (later layers win). ``None`` layers are skipped."""
    result: dict[str, Any] = {}
    for layer in layers:
        if layer:
            result = deep_merge(result, layer)
    return deepcopy(result)
