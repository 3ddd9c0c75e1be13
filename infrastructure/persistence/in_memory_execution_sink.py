from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, List, Optional

from application.ports.execution_sink import ExecutionSinkPort
from domain.exceptions import ValidationError
from domain.execution import ExecutionStatus, TestExecution


@dataclass(frozen=True)
class TestCaseStats:
    __test__ = False

    execution_count: int = 0
    last_result: Optional[ExecutionStatus] = None
    last_executed_at: Optional[datetime] = None
    pass_count: int = 0
    fail_count: int = 0
    error_count: int = 0


class InMemoryExecutionSink(ExecutionSinkPort):
    def __init__(self) -> None:
        self._executions: Dict[str, TestExecution] = {}
        self._stats: Dict[int, TestCaseStats] = {}
        self._next_id = 1
        self._lock = Lock()

    def save(self, execution: TestExecution) -> TestExecution:
        if not execution.is_completed:
            raise ValidationError(f"Execution is not completed: {execution.execution_id}")
        with self._lock:
            if execution.execution_id in self._executions:
                raise ValidationError(f"Execution already saved: {execution.execution_id}")
            stored = execution.stored(id=self._next_id, created_at=datetime.now(timezone.utc))
            self._next_id += 1
            self._executions[execution.execution_id] = stored
            return stored

    def update_stats(self, test_case_id: Optional[int], status: ExecutionStatus) -> None:
        if test_case_id is None:
            return
        with self._lock:
            s = self._stats.get(test_case_id, TestCaseStats())
            self._stats[test_case_id] = TestCaseStats(
                execution_count=s.execution_count + 1,
                last_result=status,
                last_executed_at=datetime.now(timezone.utc),
                pass_count=s.pass_count + (status == ExecutionStatus.PASS),
                fail_count=s.fail_count + (status == ExecutionStatus.FAIL),
                error_count=s.error_count + (status == ExecutionStatus.ERROR),
            )

    def get(self, execution_id: str) -> Optional[TestExecution]:
        with self._lock:
            return self._executions.get(execution_id)

    def list_for_test(self, test_case_id: int) -> List[TestExecution]:
        with self._lock:
            return [e for e in self._executions.values() if e.test_case_id == test_case_id]

    def stats(self, test_case_id: int) -> TestCaseStats:
        with self._lock:
            return self._stats.get(test_case_id, TestCaseStats())
