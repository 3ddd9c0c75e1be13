# application/http_trace.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

HeaderDict = Dict[str, str]


@dataclass(frozen=True)
class HttpResponseMeta:
    status: int
    reason: str
    url: str
    headers: HeaderDict
    content_type: Optional[str]
    body_len: int
    body_sha256: str


@dataclass(frozen=True)
class HttpTrace:
    execution_id: str
    step_id: str
    method: str
    url: str
    request_headers: HeaderDict = field(default_factory=dict)
    request_body: Any = None
    response: Optional[HttpResponseMeta] = None  # None when the transport failed
    response_time: int = 0  # ms
    error: Optional[str] = None
    text_head: str = ""
    full_text: str = ""
    raw_bytes: Optional[bytes] = None
