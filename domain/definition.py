# domain/definition.py
"""
Test definition domain model
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from domain.steps.assertion import Assertion
from domain.steps.base import RequestTemplate, Step


@dataclass(frozen=True, kw_only=True)
class TestCase(RequestTemplate):
    """
    A test definition: either a single request with assertions, or a
    workflow when steps is non-empty (the top-level request fields are then
    informational only).
    """
    __test__ = False

    id: Optional[int] = None
    spec_id: Optional[int] = None
    name: str = ""
    description: Optional[str] = None
    assertions: List[Assertion] = field(default_factory=list)
    steps: List[Step] = field(default_factory=list)
    test_type: str = "single"
    category: Optional[str] = None
    priority: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    source_endpoint_id: Optional[int] = None
    current_endpoint_id: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_workflow(self) -> bool:
        return bool(self.steps)

    @property
    def endpoint_id(self) -> int:
        return self.current_endpoint_id or self.source_endpoint_id or 0
