# application/services/execution_deps.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, TYPE_CHECKING

from application.ports.http_client import HttpClientPort
from application.ports.logger import LoggerPort, NullLogger
from application.services.cancellation import CancellationToken

if TYPE_CHECKING:
    from application.http_trace_emitter import HttpTraceEmitter


@dataclass(frozen=True)
class ExecutionDeps:
    http_client: HttpClientPort
    logger: LoggerPort = field(default_factory=NullLogger)
    cancellation: CancellationToken = field(default_factory=CancellationToken)
    trace_emitter: Optional["HttpTraceEmitter"] = None
    execution_id: str = ""

    # copy with a replaced logger (e.g. one bound to execution_id)
    def with_logger(self, logger: LoggerPort) -> "ExecutionDeps":
        return replace(self, logger=logger)

    def for_execution(self, execution_id: str) -> "ExecutionDeps":
        return replace(
            self,
            execution_id=execution_id,
            logger=self.logger.bind(execution_id=execution_id),
        )

    def with_cancellation(self, cancellation: CancellationToken) -> "ExecutionDeps":
        return replace(self, cancellation=cancellation)
