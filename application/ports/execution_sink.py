from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from domain.execution import ExecutionStatus, TestExecution


class ExecutionSinkPort(ABC):
    """
    Append-only destination for finished executions.
    The engine never reads its own record back.
    """

    @abstractmethod
    def save(self, execution: TestExecution) -> TestExecution:
        """
        Persist a completed execution and return the stored copy (with id).
        """
        ...

    @abstractmethod
    def update_stats(self, test_case_id: Optional[int], status: ExecutionStatus) -> None:
        ...
