"""Common helper functions for the router manager."""

import json
from typing import Any


class _Absent:
    """Marker for a value that could not be resolved."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT: Any = _Absent()


def get_nested_value(data: Any, path: str) -> Any:
    """Get nested value from a JSON object using dot notation.

    Unlike a plain ``dict.get`` walk, a missing segment yields ``ABSENT``
    so that callers can tell "no such field" apart from a JSON ``null``.

    Args:
        data: Value to extract from
        path: Dot-separated path (e.g., "order.customer.tier")

    Returns:
        Value at path, or ABSENT if any segment is missing or a
        non-object is reached before the path is exhausted

    Example:
        >>> get_nested_value({"order": {"id": 42}}, "order.id")
        42
        >>> get_nested_value({"order": None}, "order.id")
        ABSENT
    """
    if not path:
        return ABSENT

    value = data
    for key in path.split("."):
        if not isinstance(value, dict) or key not in value:
            return ABSENT
        value = value[key]
    return value


def stringify(value: Any) -> str:
    """Render a JSON value as text for substring and pattern matching.

    Strings are returned unchanged; everything else is rendered as compact JSON.

    Example:
        >>> stringify("abc"), stringify(True), stringify({"a": 1})
        ('abc', 'true', '{"a":1}')
    """
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    except ValueError:
        # circular structures
        return str(value)
