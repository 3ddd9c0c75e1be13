# domain/steps/extraction.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional


class ExtractionSource(str, Enum):
    RESPONSE_BODY = "response-body"
    RESPONSE_HEADER = "response-header"
    STATUS_CODE = "status-code"
    RESPONSE_TIME = "response-time"


class ValueTransform(str, Enum):
    TO_STRING = "to-string"
    TO_NUMBER = "to-number"
    TO_BOOLEAN = "to-boolean"
    TO_JSON = "to-json"


@dataclass(frozen=True)
class VariableExtraction:
    name: str
    source: str
    path: Optional[str] = None          # JSON path, response-body only
    header_name: Optional[str] = None   # response-header only
    transform: Optional[str] = None
    default_value: Any = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def source_kind(self) -> Optional[ExtractionSource]:
        try:
            return ExtractionSource(self.source)
        except ValueError:
            return None

    @property
    def transform_kind(self) -> Optional[ValueTransform]:
        if self.transform is None:
            return None
        try:
            return ValueTransform(self.transform)
        except ValueError:
            return None
