# application/ports/requests_client.py
from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from application.ports.http_client import HttpClientPort, HttpResponse, HttpTransportError


class RequestsSessionHttpClient(HttpClientPort):
    def __init__(self, base_headers: Optional[Dict[str, str]] = None, timeout_sec: float = 30):
        self._session = requests.Session()
        self._base_headers = base_headers or {}
        self._timeout = timeout_sec

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        data: Optional[str] = None,
    ) -> HttpResponse:
        merged = dict(self._base_headers)
        if headers:
            merged.update(headers)

        kwargs: Dict[str, Any] = {}
        if json_body is not None:
            kwargs["json"] = json_body
        elif data is not None:
            kwargs["data"] = data.encode("utf-8")

        try:
            resp = self._session.request(
                method=method.upper(),
                url=url,
                headers=merged,
                timeout=self._timeout,
                allow_redirects=True,
                **kwargs,
            )
        except requests.RequestException as e:
            raise HttpTransportError(str(e), partial=self._partial(getattr(e, "response", None))) from e

        return self._to_response(resp)

    def close(self) -> None:
        self._session.close()

    def _to_response(self, resp: requests.Response) -> HttpResponse:
        return HttpResponse(
            status=resp.status_code,
            reason=resp.reason or "",
            url=str(resp.url),
            text=resp.text,
            headers=dict(resp.headers),
            content=resp.content,
        )

    def _partial(self, resp: Optional[requests.Response]) -> Optional[HttpResponse]:
        if resp is None:
            return None
        # body may be unreadable at this point
        return HttpResponse(
            status=resp.status_code,
            reason=resp.reason or "",
            url=str(resp.url),
            text="",
            headers=dict(resp.headers),
        )
