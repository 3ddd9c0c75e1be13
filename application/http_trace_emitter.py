# application/http_trace_emitter.py
from __future__ import annotations

from typing import Iterable, TYPE_CHECKING

from application.http_trace import HttpTrace
from application.http_trace_enricher import HttpTraceEnricher

if TYPE_CHECKING:
    from application.services.execution_deps import ExecutionDeps


class HttpTraceEmitter:
    def __init__(self, enrichers: Iterable[HttpTraceEnricher]):
        self._enrichers = list(enrichers)

    def emit(self, trace: HttpTrace, deps: "ExecutionDeps") -> None:
        for e in self._enrichers:
            try:
                e.enrich_and_log(trace, deps)
            except Exception as ex:
                # enrichers are best-effort
                deps.logger.error(
                    "http.trace_enricher_failed",
                    enricher=type(e).__name__,
                    step_id=trace.step_id,
                    error=str(ex),
                )
