# application/ports/http_client.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class HttpResponse:
    status: int
    reason: str
    url: str
    text: str
    headers: Dict[str, str]
    content: Optional[bytes] = None


class HttpTransportError(Exception):
    """
    Raised by transports when no complete response could be obtained.
    partial is set when a status line and headers arrived before the failure.
    """

    def __init__(self, message: str, partial: Optional[HttpResponse] = None):
        super().__init__(message)
        self.partial = partial


class HttpClientPort(ABC):
    @abstractmethod
    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        data: Optional[str] = None,
    ) -> HttpResponse:
        ...

    def close(self) -> None:
        """Release transport resources (sessions, pools)."""
        return None
