"""Display layout preferences: a flat mapping of scalar toggles."""
from __future__ import annotations

from typing import Any, Mapping

LayoutValue = bool | int | str
LayoutPreferences = dict[str, LayoutValue]


def invalid_layout_keys(partial: Mapping[str, Any]) -> list[str]:
    """Return the keys whose values are not allowed in a layout mapping."""
    return [
        key
        for key, value in partial.items()
        if not isinstance(key, str) or not isinstance(value, (bool, int, str))
    ]


def merge_layout(current: Mapping[str, LayoutValue], partial: Mapping[str, LayoutValue]) -> LayoutPreferences:
    """Shallow-merge ``partial`` over ``current`` without mutating either."""
    merged: LayoutPreferences = dict(current)
    merged.update(partial)
    return merged
