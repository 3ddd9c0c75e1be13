# domain/json_path.py
from __future__ import annotations

import re
from typing import Any, List, Union

from domain.exceptions import JsonPathError


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

Segment = Union[str, int]

_BRACKET = re.compile(r"\[\s*(?:(\d+)|'([^']*)'|\"([^\"]*)\")\s*\]")


def parse_path(path: str) -> List[Segment]:
    """
    Parse the supported JSONPath subset into keys and list indexes.
      $.data.items[0].id   -> ["data", "items", 0, "id"]
      data.items.0.id      -> ["data", "items", "0", "id"]
      $['odd key'][1]      -> ["odd key", 1]
    Wildcards, filters and recursive descent are rejected.
    """
    text = (path or "").strip()
    if text.startswith("$"):
        text = text[1:]
    if text.startswith("."):
        text = text[1:]

    if "*" in text or ".." in text or "?(" in text:
        raise JsonPathError(f"Unsupported JSON path: {path}")

    segments: List[Segment] = []
    i = 0
    token = ""
    while i < len(text):
        ch = text[i]
        if ch == ".":
            if token:
                segments.append(token)
                token = ""
            elif not segments:
                raise JsonPathError(f"Invalid JSON path: {path}")
            i += 1
            continue
        if ch == "[":
            if token:
                segments.append(token)
                token = ""
            m = _BRACKET.match(text, i)
            if m is None:
                raise JsonPathError(f"Invalid JSON path: {path}")
            index, single, double = m.groups()
            if index is not None:
                segments.append(int(index))
            else:
                segments.append(single if single is not None else double)
            i = m.end()
            continue
        if ch == "]":
            raise JsonPathError(f"Invalid JSON path: {path}")
        token += ch
        i += 1

    if token:
        segments.append(token)
    return segments


def lookup(obj: Any, path: str) -> Any:
    """
    Resolve a path against a decoded JSON document.
    Returns MISSING when any segment cannot be followed; an explicit null is
    returned as None.
    """
    current = obj
    for segment in parse_path(path):
        current = _step(current, segment)
        if current is MISSING:
            return MISSING
    return current


def _step(current: Any, segment: Segment) -> Any:
    if isinstance(current, dict):
        key = str(segment)
        return current[key] if key in current else MISSING
    if isinstance(current, list):
        if isinstance(segment, int):
            index = segment
        elif segment.isdigit():
            index = int(segment)
        elif segment == "length":
            return len(current)
        else:
            return MISSING
        if 0 <= index < len(current):
            return current[index]
        return MISSING
    return MISSING
