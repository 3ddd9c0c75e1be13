from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Optional


@dataclass(frozen=True)
class Environment:
    name: str
    base_url: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    variables: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    description: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    defaulted: FrozenSet[str] = field(default=frozenset(), compare=False, repr=False)

    def with_variables(self, overrides: Optional[Dict[str, Any]]) -> "Environment":
        if not overrides:
            return self
        merged = dict(self.variables)
        merged.update(overrides)
        return replace(self, variables=merged, defaulted=self.defaulted - {"variables"})
