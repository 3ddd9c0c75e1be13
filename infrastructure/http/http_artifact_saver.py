# infrastructure/http/http_artifact_saver.py
from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Dict, TYPE_CHECKING

from application.http_trace import HttpTrace
from application.http_trace_enricher import HttpTraceEnricher
from application.services.redactor import mask_body, mask_dict

if TYPE_CHECKING:
    from application.services.execution_deps import ExecutionDeps


class HttpArtifactSaver(HttpTraceEnricher):
    """
    Writes each exchange of an execution to <root>/<ts>_<execution_id>/:
      NNN_<step>.req   request line, masked headers, masked body
      NNN_<step>.resp  status line and headers
      NNN_<step>.body  raw response body
    """

    def __init__(self, root: str = "tmp/http"):
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()

        # execution_id -> folder timestamp / next file index
        self._dirs: Dict[str, str] = {}
        self._index: Dict[str, int] = {}

    def enrich_and_log(self, trace: HttpTrace, deps: "ExecutionDeps") -> None:
        with self._lock:
            ts = self._dirs.setdefault(
                trace.execution_id, datetime.now().strftime("%Y%m%d_%H%M%S%f")[:-3]
            )
            index = self._index.get(trace.execution_id, 0)
            self._index[trace.execution_id] = index + 1

        base = self._root / f"{ts}_{trace.execution_id}"
        base.mkdir(parents=True, exist_ok=True)
        stem = f"{index:03}_{trace.step_id}"

        with (base / f"{stem}.req").open("w", encoding="utf-8", errors="ignore") as f:
            f.write(f"{trace.method} {trace.url}\n")
            for k, v in mask_dict(trace.request_headers).items():
                f.write(f"{k}: {v}\n")
            f.write("\n")
            if trace.request_body is not None:
                body = mask_body(trace.request_body)
                f.write(body if isinstance(body, str) else json.dumps(body, ensure_ascii=False, indent=2))
                f.write("\n")

        if trace.response is not None:
            with (base / f"{stem}.resp").open("w", encoding="utf-8", errors="ignore") as f:
                f.write(f"HTTP {trace.response.status} {trace.response.reason}\n")
                for k, v in mask_dict(trace.response.headers).items():
                    f.write(f"{k}: {v}\n")

            body_path = base / f"{stem}.body"
            if trace.raw_bytes is not None:
                body_path.write_bytes(trace.raw_bytes)
            else:
                body_path.write_text(trace.full_text or "", encoding="utf-8", errors="ignore")

        deps.logger.info(
            "http.artifacts.saved",
            step_id=trace.step_id,
            dir=str(base),
            sha256=trace.response.body_sha256 if trace.response else None,
        )
