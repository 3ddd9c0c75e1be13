# application/services/variable_resolver.py
from __future__ import annotations

import re
from typing import AbstractSet, Any, Dict, List, Mapping, Optional

from application.outcome import CycleDetected, Resolved, ResolveOutcome
from application.services.dynamic_variables import DynamicVariableGenerator
from domain.exceptions import CyclicReferenceError
from domain.values import to_display_string

PLACEHOLDER = re.compile(r"\{\{([^}]+)\}\}")

UNRESOLVED_MARKER = "undefined"


class VariableResolver:
    """
    {{ name }} を scope の値で展開する。
    - 値自体が {{...}} を含む場合は再帰的に展開（解決中の名前を追跡して循環を検出）
    - 同じ名前を横並びで複数回使うのは循環ではない: "{{id}}-{{id}}"
    - scope に無い名前は keep_unresolved に従い残すか "undefined" にする
    - scope に無い $name は dynamic generator があれば生成する
    """

    def __init__(
        self,
        dynamic: Optional[DynamicVariableGenerator] = None,
        keep_unresolved: bool = True,
    ):
        self._dynamic = dynamic
        self._keep_unresolved = keep_unresolved

    def try_resolve(
        self,
        text: str,
        scope: Mapping[str, Any],
        keep_unresolved: Optional[bool] = None,
    ) -> ResolveOutcome:
        keep = self._keep_unresolved if keep_unresolved is None else keep_unresolved
        return self._resolve(text, scope, keep, frozenset())

    def resolve(
        self,
        text: str,
        scope: Mapping[str, Any],
        keep_unresolved: Optional[bool] = None,
    ) -> str:
        outcome = self.try_resolve(text, scope, keep_unresolved)
        if isinstance(outcome, CycleDetected):
            raise CyclicReferenceError(outcome.variable)
        return outcome.value

    def resolve_object(
        self,
        obj: Any,
        scope: Mapping[str, Any],
        keep_unresolved: Optional[bool] = None,
    ) -> Any:
        """
        Deep resolution: strings are resolved, dict/list rebuilt with the same
        shape, other values returned unchanged.
        """
        if isinstance(obj, str):
            return self.resolve(obj, scope, keep_unresolved)
        if isinstance(obj, list):
            return [self.resolve_object(v, scope, keep_unresolved) for v in obj]
        if isinstance(obj, dict):
            return {k: self.resolve_object(v, scope, keep_unresolved) for k, v in obj.items()}
        return obj

    def resolve_headers(
        self,
        headers: Optional[Mapping[str, Any]],
        scope: Mapping[str, Any],
        keep_unresolved: Optional[bool] = None,
    ) -> Dict[str, str]:
        return {
            k: self.resolve(to_display_string(v), scope, keep_unresolved)
            for k, v in (headers or {}).items()
        }

    def find_unresolvable(self, text: str, scope: Mapping[str, Any]) -> List[str]:
        """find_missing, minus the built-in dynamic names this resolver can generate."""
        return [
            name for name in find_missing(text, scope)
            if not (self._dynamic is not None and self._dynamic.is_builtin(name))
        ]

    def _resolve(
        self,
        text: str,
        scope: Mapping[str, Any],
        keep: bool,
        resolving: AbstractSet[str],
    ) -> ResolveOutcome:
        if not isinstance(text, str) or "{{" not in text:
            return Resolved(text)

        parts: List[str] = []
        pos = 0
        for m in PLACEHOLDER.finditer(text):
            parts.append(text[pos:m.start()])
            pos = m.end()
            name = m.group(1).strip()

            if name in resolving:
                return CycleDetected(name)

            if name in scope:
                value = scope[name]
                if isinstance(value, str) and has_placeholders(value):
                    inner = self._resolve(value, scope, keep, resolving | {name})
                    if isinstance(inner, CycleDetected):
                        return inner
                    parts.append(inner.value)
                else:
                    parts.append(to_display_string(value))
                continue

            if name.startswith("$") and self._dynamic is not None:
                generated = self._dynamic.generate(name)
                if generated is not None:
                    parts.append(generated)
                    continue

            parts.append(m.group(0) if keep else UNRESOLVED_MARKER)

        parts.append(text[pos:])
        return Resolved("".join(parts))


def extract_names(text: Any) -> List[str]:
    """
    "{{baseUrl}}/users/{{userId}}" -> ["baseUrl", "userId"]
    Order of first appearance, no duplicates.
    """
    if not isinstance(text, str):
        return []
    names: List[str] = []
    for m in PLACEHOLDER.finditer(text):
        name = m.group(1).strip()
        if name not in names:
            names.append(name)
    return names


def has_placeholders(text: Any) -> bool:
    return isinstance(text, str) and PLACEHOLDER.search(text) is not None


def find_missing(text: Any, scope: Mapping[str, Any]) -> List[str]:
    return [name for name in extract_names(text) if name not in scope]
