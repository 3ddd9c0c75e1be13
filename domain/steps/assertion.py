# domain/steps/assertion.py
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional


class AssertionKind(str, Enum):
    STATUS_CODE = "status-code"
    RESPONSE_TIME = "response-time"
    JSON_PATH = "json-path"
    HEADER = "header"
    BODY_CONTAINS = "body-contains"
    BODY_MATCHES = "body-matches"
    SCHEMA = "schema"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["AssertionKind"]:
        try:
            return cls(raw)
        except ValueError:
            return None


class AssertionOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not-equals"
    GREATER_THAN = "greater-than"
    LESS_THAN = "less-than"
    GREATER_THAN_OR_EQUAL = "greater-than-or-equal"
    LESS_THAN_OR_EQUAL = "less-than-or-equal"
    CONTAINS = "contains"
    NOT_CONTAINS = "not-contains"
    MATCHES = "matches"
    EXISTS = "exists"
    NOT_EXISTS = "not-exists"
    IS_NULL = "is-null"
    IS_NOT_NULL = "is-not-null"
    IS_ARRAY = "is-array"
    IS_OBJECT = "is-object"
    IS_STRING = "is-string"
    IS_NUMBER = "is-number"
    IS_BOOLEAN = "is-boolean"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["AssertionOperator"]:
        try:
            return cls(raw)
        except ValueError:
            return None


@dataclass(frozen=True)
class Assertion:
    """
    A single typed check against an HTTP response.

    type / operator keep the wire strings so definitions written by newer
    tools survive a load/save cycle; kind / operator_kind give the closed
    enum view used for dispatch (None when the string is unknown).
    """
    id: str
    type: str
    field: Optional[str] = None
    operator: Optional[str] = None
    expected: Any = None
    description: Optional[str] = None
    extra: Dict[str, Any] = dataclasses.field(default_factory=dict)
    # fields filled in by the loader rather than read from the document
    defaulted: FrozenSet[str] = dataclasses.field(default=frozenset(), compare=False, repr=False)

    @property
    def kind(self) -> Optional[AssertionKind]:
        return AssertionKind.parse(self.type)

    @property
    def operator_kind(self) -> Optional[AssertionOperator]:
        if self.operator is None:
            return None
        return AssertionOperator.parse(self.operator)
