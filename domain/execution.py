from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


class ExecutionStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    PASS = "pass"
    FAIL = "fail"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionStatus.PASS, ExecutionStatus.FAIL, ExecutionStatus.ERROR)


@dataclass(frozen=True)
class ExecutionRequest:
    method: str
    url: str
    headers: Dict[str, str]
    body: Any = None


@dataclass(frozen=True)
class ExecutionResponse:
    status_code: int
    status_text: str
    headers: Dict[str, str]
    body: Any
    response_time: int  # ms

    def header(self, name: str) -> Optional[str]:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


@dataclass(frozen=True)
class AssertionResult:
    assertion_id: str
    passed: bool
    actual: Any = None
    expected: Any = None
    message: Optional[str] = None


@dataclass(frozen=True)
class StepExecutionResult:
    step_id: str
    step_order: int
    step_name: str
    request: Optional[ExecutionRequest]
    started_at: datetime
    response: Optional[ExecutionResponse] = None
    assertion_results: Tuple[AssertionResult, ...] = ()
    extracted_variables: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    completed_at: Optional[datetime] = None
    duration: Optional[int] = None

    @property
    def failed_assertions(self) -> bool:
        return any(not r.passed for r in self.assertion_results)


@dataclass(frozen=True)
class TestExecution:
    """
    Aggregate record of one invocation. Each state change produces a new
    record; once completed_at is set the record is final.
    """
    __test__ = False

    execution_id: str
    test_case_id: Optional[int]
    spec_id: Optional[int]
    endpoint_id: int
    base_url: str
    status: ExecutionStatus
    started_at: datetime
    request: Optional[ExecutionRequest] = None
    response: Optional[ExecutionResponse] = None
    environment: Optional[str] = None
    assertion_results: Tuple[AssertionResult, ...] = ()
    step_results: Optional[Tuple[StepExecutionResult, ...]] = None
    error: Optional[str] = None
    completed_at: Optional[datetime] = None
    duration: Optional[int] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def with_status(self, status: ExecutionStatus) -> "TestExecution":
        self._ensure_open()
        return replace(self, status=status)

    def with_request(self, request: Optional[ExecutionRequest]) -> "TestExecution":
        self._ensure_open()
        return replace(self, request=request)

    def complete(
        self,
        status: ExecutionStatus,
        completed_at: datetime,
        response: Optional[ExecutionResponse] = None,
        assertion_results: Iterable[AssertionResult] = (),
        step_results: Optional[Iterable[StepExecutionResult]] = None,
        error: Optional[str] = None,
    ) -> "TestExecution":
        self._ensure_open()
        return replace(
            self,
            status=status,
            response=response,
            assertion_results=tuple(assertion_results),
            step_results=tuple(step_results) if step_results is not None else None,
            error=error,
            completed_at=completed_at,
            duration=elapsed_ms(self.started_at, completed_at),
        )

    def stored(self, id: int, created_at: datetime) -> "TestExecution":
        return replace(self, id=id, created_at=created_at)

    def _ensure_open(self) -> None:
        if self.completed_at is not None:
            raise ValueError(f"Execution already completed: {self.execution_id}")


def aggregate_status(step_results: Iterable[StepExecutionResult]) -> ExecutionStatus:
    """error > fail > pass, over the steps that were actually recorded."""
    results = list(step_results)
    if any(r.error for r in results):
        return ExecutionStatus.ERROR
    if any(r.failed_assertions for r in results):
        return ExecutionStatus.FAIL
    return ExecutionStatus.PASS


def elapsed_ms(started_at: datetime, completed_at: datetime) -> int:
    return int((completed_at - started_at).total_seconds() * 1000)
