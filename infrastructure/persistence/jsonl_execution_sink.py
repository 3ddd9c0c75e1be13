from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Iterator, Optional

from application.ports.execution_sink import ExecutionSinkPort
from domain.exceptions import ValidationError
from domain.execution import ExecutionStatus, TestExecution
from infrastructure.definitions.codec import decode_execution, encode_execution


class JsonlExecutionSink(ExecutionSinkPort):
    """
    One JSON document per line, append-only.
    Stats lines ({"type": "stats", ...}) are interleaved with execution lines.
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()
        self._next_id = self._count_executions() + 1

    def save(self, execution: TestExecution) -> TestExecution:
        if not execution.is_completed:
            raise ValidationError(f"Execution is not completed: {execution.execution_id}")
        with self._lock:
            stored = execution.stored(id=self._next_id, created_at=datetime.now(timezone.utc))
            self._next_id += 1
            self._append({"type": "execution", **encode_execution(stored)})
            return stored

    def update_stats(self, test_case_id: Optional[int], status: ExecutionStatus) -> None:
        with self._lock:
            self._append(
                {
                    "type": "stats",
                    "testCaseId": test_case_id,
                    "status": status.value,
                    "at": datetime.now(timezone.utc).isoformat(),
                }
            )

    def read_executions(self) -> Iterator[TestExecution]:
        for doc in self._read_lines():
            if doc.get("type") == "execution":
                yield decode_execution(doc)

    def _append(self, doc: dict) -> None:
        with self._path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(doc, ensure_ascii=False, default=str))
            f.write("\n")

    def _read_lines(self) -> Iterator[dict]:
        if not self._path.exists():
            return
        with self._path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    yield json.loads(line)

    def _count_executions(self) -> int:
        return sum(1 for doc in self._read_lines() if doc.get("type") == "execution")
