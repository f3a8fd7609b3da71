"""
Structural copy of event metadata.

Stored metadata must never share references with caller objects, in either
direction. ``clone_json`` produces an independent copy made only of dicts,
lists, strings, numbers, booleans and None, following JSON encoding rules:

    - callables and other unsupported members of a dict are dropped
    - unsupported items of a list become None
    - tuples become lists; datetimes become ISO strings
    - NaN and infinities become None
    - non-string dict keys are converted with str()
    - a reference cycle raises SerializationError
"""

from __future__ import annotations

import math
from datetime import date, datetime
from enum import Enum
from typing import Any

from .errors import SerializationError

_SCALARS = (str, int, float, bool, type(None))

# Sentinel for members that JSON encoding would skip
_DROP = object()


def clone_json(value: Any) -> Any:
    """
    Deep-copy a JSON-compatible structure.

    Args:
        value: Structure to copy

    Returns:
        Independent copy

    Raises:
        SerializationError: If the structure contains a reference cycle
    """
    result = _clone(value, set())
    return None if result is _DROP else result


def _clone(value: Any, active: set[int]) -> Any:
    if isinstance(value, Enum):
        return _clone(value.value, active)
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, _SCALARS):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()

    if isinstance(value, dict):
        marker = id(value)
        if marker in active:
            raise SerializationError("Metadata contains a circular reference")
        active.add(marker)
        try:
            copied: dict[str, Any] = {}
            for key, item in value.items():
                item_copy = _clone(item, active)
                if item_copy is not _DROP:
                    copied[key if isinstance(key, str) else str(key)] = item_copy
            return copied
        finally:
            active.discard(marker)

    if isinstance(value, (list, tuple)):
        marker = id(value)
        if marker in active:
            raise SerializationError("Metadata contains a circular reference")
        active.add(marker)
        try:
            items = []
            for item in value:
                item_copy = _clone(item, active)
                items.append(None if item_copy is _DROP else item_copy)
            return items
        finally:
            active.discard(marker)

    # Functions, sets, arbitrary objects
    return _DROP
