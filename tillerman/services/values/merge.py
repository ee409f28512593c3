"""Deep merge of values trees.

Mappings merge key by key, recursively. Any other value (scalar, list,
None) in a later tree replaces the earlier value wholesale; lists are never
concatenated.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping

from tillerman.core.structured import StrDict

__all__ = ["Values", "merge_values"]

Values = StrDict


def merge_values(*layers: Mapping[str, object]) -> Values:
    """Merge `layers` left to right into a new tree.

    Inputs are never mutated and the result shares no containers with them.

    Example:
        merge_values({"a": {"x": 1, "y": 2}}, {"a": {"y": 3}})
        -> {"a": {"x": 1, "y": 3}}
    """
    result: Values = {}
    for layer in layers:
        _merge_into(result, layer)
    return result


def _merge_into(target: Values, source: Mapping[str, object]) -> None:
    for key, value in source.items():
        current = target.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            _merge_into(current, value)  # type: ignore[arg-type]
        elif isinstance(value, Mapping):
            fresh: Values = {}
            _merge_into(fresh, value)  # type: ignore[arg-type]
            target[key] = fresh
        else:
            target[key] = copy.deepcopy(value)
