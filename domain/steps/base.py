from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

from domain.steps.assertion import Assertion
from domain.steps.extraction import VariableExtraction


@dataclass(frozen=True, kw_only=True)
class RequestTemplate:
    """
    Request shape shared by single-step test cases and workflow steps.
    path may hold {param} templates (filled from path_variables) and
    {{variable}} placeholders (filled from the scope).
    """
    method: str = "GET"
    path: str = "/"
    path_variables: Dict[str, Any] = field(default_factory=dict)
    query_params: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    # fields filled in by the loader rather than read from the document
    defaulted: FrozenSet[str] = field(default=frozenset(), compare=False, repr=False)


@dataclass(frozen=True, kw_only=True)
class Step(RequestTemplate):
    id: str
    order: int
    name: str = ""
    description: Optional[str] = None
    assertions: List[Assertion] = field(default_factory=list)
    extract_variables: List[VariableExtraction] = field(default_factory=list)
    delay_before: Optional[int] = None  # ms
    delay_after: Optional[int] = None   # ms
    skip_on_failure: bool = False
    continue_on_failure: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)
