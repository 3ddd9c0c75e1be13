# application/exceptions.py
from __future__ import annotations

from typing import Optional

from domain.execution import ExecutionResponse


class ApplicationError(Exception):
    pass


class DispatchError(ApplicationError):
    """
    Network-level failure (DNS, refused connection, timeout).
    response carries whatever the transport received before failing.
    """

    def __init__(self, message: str, response: Optional[ExecutionResponse] = None):
        super().__init__(message)
        self.response = response
