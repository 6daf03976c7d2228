"""Deep merge of settings dictionaries.

Lists in the override replace the base list, unless their first element is
``"+"`` (append the rest to the base list) or ``"="`` (explicit replace).
"""
from __future__ import annotations

from typing import Any, Dict, List


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into ``base`` without mutating either.

    Example:
        >>> deep_merge({"composer": {"tag": "a", "options": {}}}, {"composer": {"tag": "b"}})
        {'composer': {'tag': 'b', 'options': {}}}
    """
    result: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            result[key] = merge_lists(current, value)
        else:
            result[key] = value
    return result


def merge_lists(base: List[Any], override: List[Any]) -> List[Any]:
    """Merge two lists following the ``+``/``=`` prefix convention.

    Example:
        >>> merge_lists([1, 2], ["+", 3])
        [1, 2, 3]
        >>> merge_lists([1, 2], [3])
        [3]
    """
    if not override:
        return list(override)
    first = override[0]
    if first == "+":
        return [*base, *override[1:]]
    if first == "=":
        return list(override[1:])
    return list(override)


__all__ = ["deep_merge", "merge_lists"]
