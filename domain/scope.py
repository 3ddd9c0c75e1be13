from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Optional


class VariableScope(Mapping[str, Any]):
    """
    Immutable variable scope of one execution.
    extend() returns a new scope; the receiver is never modified, so a step
    result can keep a reference to the scope it ran with.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = dict(values or {})

    def extend(self, updates: Optional[Mapping[str, Any]]) -> "VariableScope":
        if not updates:
            return self
        merged = dict(self._values)
        merged.update(updates)
        return VariableScope(merged)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"VariableScope({self._values!r})"
