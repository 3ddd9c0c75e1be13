# application/services/request_builder.py
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

from application.services.variable_resolver import VariableResolver
from domain.execution import ExecutionRequest
from domain.steps.base import RequestTemplate
from domain.values import to_compact_json, to_display_string

# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_component(value: Any) -> str:
    return quote(to_display_string(value), safe=_URI_COMPONENT_SAFE)


def apply_path_variables(path: str, path_variables: Mapping[str, Any]) -> str:
    # one literal pass, first occurrence of each {key}
    for key, value in (path_variables or {}).items():
        path = path.replace("{" + key + "}", to_display_string(value), 1)
    return path


def build_query_string(params: Mapping[str, Any]) -> str:
    return "&".join(f"{encode_component(k)}={encode_component(v)}" for k, v in params.items())


class RequestBuilder:
    """
    Turns a step / test definition into a fully substituted ExecutionRequest.
    CyclicReferenceError from the resolver propagates to the caller.
    """

    def __init__(self, resolver: Optional[VariableResolver] = None):
        self._resolver = resolver or VariableResolver()

    def build(
        self,
        definition: RequestTemplate,
        scope: Mapping[str, Any],
        base_headers: Optional[Mapping[str, Any]] = None,
    ) -> ExecutionRequest:
        path = apply_path_variables(definition.path, definition.path_variables)
        path = self._resolver.resolve(path, scope)

        query = self._resolver.resolve_object(dict(definition.query_params or {}), scope)
        if query:
            sep = "&" if "?" in path else "?"
            path = f"{path}{sep}{build_query_string(query)}"

        headers = self._resolver.resolve_headers(self.merge_headers(definition, base_headers), scope)
        body = self._resolver.resolve_object(definition.body, scope)

        return ExecutionRequest(
            method=(definition.method or "GET").upper(),
            url=path,
            headers=headers,
            body=body,
        )

    def unresolved_names(
        self,
        definition: RequestTemplate,
        scope: Mapping[str, Any],
        base_headers: Optional[Mapping[str, Any]] = None,
    ) -> List[str]:
        """Placeholder names the scope cannot satisfy, in order of appearance."""
        texts: List[str] = [apply_path_variables(definition.path, definition.path_variables)]
        texts.extend(to_compact_json(v) for v in (definition.query_params or {}).values())
        texts.extend(to_display_string(v) for v in self.merge_headers(definition, base_headers).values())
        if definition.body is not None:
            texts.append(to_display_string(definition.body))

        names: List[str] = []
        for text in texts:
            for name in self._resolver.find_unresolvable(text, scope):
                if name not in names:
                    names.append(name)
        return names

    @staticmethod
    def merge_headers(
        definition: RequestTemplate,
        base_headers: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        # environment headers first, definition headers override
        merged: Dict[str, Any] = dict(base_headers or {})
        merged.update(definition.headers or {})
        return merged
