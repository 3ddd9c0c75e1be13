# application/services/http_dispatcher.py
from __future__ import annotations

import hashlib
import json
import time
from typing import Any, Dict, Optional

from application.exceptions import DispatchError
from application.http_trace import HttpResponseMeta, HttpTrace
from application.ports.http_client import HttpResponse, HttpTransportError
from application.services.execution_deps import ExecutionDeps
from domain.execution import ExecutionRequest, ExecutionResponse
from application.services.base_url_resolver import BaseUrlResolver

BODY_METHODS = ("POST", "PUT", "PATCH")


def parse_body(text: str) -> Any:
    """JSON when the payload parses, else the raw text. Empty payload -> ""."""
    if not text:
        return ""
    try:
        return json.loads(text)
    except ValueError:
        return text


def to_execution_response(resp: HttpResponse, elapsed_ms: int) -> ExecutionResponse:
    return ExecutionResponse(
        status_code=resp.status,
        status_text=resp.reason,
        headers={k.lower(): v for k, v in (resp.headers or {}).items()},
        body=parse_body(resp.text),
        response_time=elapsed_ms,
    )


class HttpDispatcher:
    """
    Performs the network call for one ExecutionRequest.
    Every status code is a response; only transport failures raise DispatchError.
    """

    def dispatch(
        self,
        request: ExecutionRequest,
        base_url: str,
        deps: ExecutionDeps,
        step_id: str = "request",
    ) -> ExecutionResponse:
        url = BaseUrlResolver(base_url).resolve_url(request.url)
        json_body, data = self._body_kwargs(request)

        t0 = time.perf_counter()
        try:
            resp = deps.http_client.request(
                method=request.method,
                url=url,
                headers=dict(request.headers),
                json_body=json_body,
                data=data,
            )
        except HttpTransportError as e:
            elapsed = _elapsed_ms(t0)
            partial = to_execution_response(e.partial, elapsed) if e.partial is not None else None
            self._emit(deps, step_id, request, url, elapsed, None, error=str(e))
            raise DispatchError(str(e), response=partial) from e

        elapsed = _elapsed_ms(t0)
        self._emit(deps, step_id, request, url, elapsed, resp)
        return to_execution_response(resp, elapsed)

    def _body_kwargs(self, request: ExecutionRequest):
        body = request.body
        if request.method.upper() not in BODY_METHODS or body is None or body == "":
            return None, None
        if isinstance(body, str):
            return None, body
        return body, None

    def _emit(
        self,
        deps: ExecutionDeps,
        step_id: str,
        request: ExecutionRequest,
        url: str,
        elapsed: int,
        resp: Optional[HttpResponse],
        error: Optional[str] = None,
    ) -> None:
        if deps.trace_emitter is None:
            return

        meta: Optional[HttpResponseMeta] = None
        text = ""
        raw: Optional[bytes] = None
        if resp is not None:
            text = resp.text or ""
            raw = resp.content
            digest_src = raw if raw is not None else text.encode("utf-8", errors="replace")
            headers: Dict[str, str] = resp.headers or {}
            meta = HttpResponseMeta(
                status=resp.status,
                reason=resp.reason,
                url=resp.url,
                headers=headers,
                content_type=headers.get("Content-Type") or headers.get("content-type"),
                body_len=len(digest_src),
                body_sha256=hashlib.sha256(digest_src).hexdigest(),
            )

        trace = HttpTrace(
            execution_id=deps.execution_id,
            step_id=step_id,
            method=request.method,
            url=url,
            request_headers=dict(request.headers),
            request_body=request.body,
            response=meta,
            response_time=elapsed,
            error=error,
            text_head=text[:4000],
            full_text=text,
            raw_bytes=raw,
        )
        deps.trace_emitter.emit(trace, deps)


def _elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)
