# domain/values.py
"""
Value helpers shared by placeholder substitution, query strings,
assertion operators and extraction transforms.
"""
from __future__ import annotations

import json
from typing import Any


def to_display_string(value: Any) -> str:
    """
    Render a value the way it appears inside a request or a message.
      "abc" -> abc, True -> true, None -> null, 42.0 -> 42, {"a": 1} -> {"a":1}
    """
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return to_compact_json(value)
    return str(value)


def to_compact_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def strict_equals(actual: Any, expected: Any) -> bool:
    # bool is an int subclass; True must not equal 1
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual is expected
    if is_number(actual) and is_number(expected):
        return actual == expected
    if type(actual) is not type(expected):
        return False
    return actual == expected
