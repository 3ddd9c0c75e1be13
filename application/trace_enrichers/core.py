# application/trace_enrichers/core.py
from __future__ import annotations

from typing import TYPE_CHECKING

from application.http_trace import HttpTrace
from application.http_trace_enricher import HttpTraceEnricher
from application.services.redactor import mask_body, mask_dict

if TYPE_CHECKING:
    from application.services.execution_deps import ExecutionDeps


class HttpCoreTraceLogger(HttpTraceEnricher):
    def enrich_and_log(self, trace: HttpTrace, deps: "ExecutionDeps") -> None:
        deps.logger.info(
            "http.request",
            step_id=trace.step_id,
            method=trace.method,
            url=trace.url,
        )

        deps.logger.debug(
            "http.request_detail",
            step_id=trace.step_id,
            headers=mask_dict(trace.request_headers),
            body=mask_body(trace.request_body),
        )

        if trace.response is None:
            deps.logger.error(
                "http.transport_failed",
                step_id=trace.step_id,
                method=trace.method,
                url=trace.url,
                elapsed_ms=trace.response_time,
                error=trace.error,
            )
            return

        deps.logger.info(
            "http.response",
            step_id=trace.step_id,
            status=trace.response.status,
            reason=trace.response.reason,
            final_url=trace.response.url,
            content_type=trace.response.content_type,
            body_len=trace.response.body_len,
            body_sha256=trace.response.body_sha256,
            elapsed_ms=trace.response_time,
        )

        deps.logger.debug(
            "http.response_detail",
            step_id=trace.step_id,
            headers=mask_dict(trace.response.headers),
            text_head=trace.text_head,
        )
