# application/services/variable_extractor.py
from __future__ import annotations

import json
import math
from functools import lru_cache
from typing import Any, Callable, Dict, Iterable, Optional

from jsonpath_ng.ext import parse as parse_json_path

from application.ports.logger import LoggerPort, NullLogger
from domain.execution import ExecutionResponse
from domain.steps.extraction import ExtractionSource, ValueTransform, VariableExtraction
from domain.values import is_number, to_display_string


class VariableExtractor:
    """
    Response -> named variables. Never raises: a failing extraction is
    logged and falls back to its default_value.
    """

    def __init__(self, logger: Optional[LoggerPort] = None):
        self._logger = logger or NullLogger()
        self._sources: Dict[ExtractionSource, Callable[[VariableExtraction, ExecutionResponse], Any]] = {
            ExtractionSource.RESPONSE_BODY: self._from_body,
            ExtractionSource.RESPONSE_HEADER: self._from_header,
            ExtractionSource.STATUS_CODE: lambda _x, r: r.status_code,
            ExtractionSource.RESPONSE_TIME: lambda _x, r: r.response_time,
        }
        self._transforms: Dict[ValueTransform, Callable[[Any], Any]] = {
            ValueTransform.TO_STRING: to_display_string,
            ValueTransform.TO_NUMBER: _to_number,
            ValueTransform.TO_BOOLEAN: _to_boolean,
            ValueTransform.TO_JSON: self._to_json,
        }

    def extract(
        self,
        extractions: Iterable[VariableExtraction],
        response: ExecutionResponse,
    ) -> Dict[str, Any]:
        variables: Dict[str, Any] = {}
        for extraction in extractions:
            try:
                value = self._read(extraction, response)
                if value is not None and extraction.transform:
                    value = self._transform(value, extraction)
                variables[extraction.name] = value
            except Exception as e:
                self._logger.warning(
                    "extract.failed",
                    variable=extraction.name,
                    source=extraction.source,
                    error=str(e),
                )
                variables[extraction.name] = extraction.default_value
        return variables

    def _read(self, extraction: VariableExtraction, response: ExecutionResponse) -> Any:
        kind = extraction.source_kind
        if kind is None:
            self._logger.warning("extract.unknown_source", variable=extraction.name, source=extraction.source)
            return extraction.default_value
        return self._sources[kind](extraction, response)

    def _from_body(self, extraction: VariableExtraction, response: ExecutionResponse) -> Any:
        if not extraction.path:
            return extraction.default_value
        # full JSONPath (wildcards, recursive descent, filters); first match wins
        matches = _compile(extraction.path).find(response.body)
        return matches[0].value if matches else extraction.default_value

    def _from_header(self, extraction: VariableExtraction, response: ExecutionResponse) -> Any:
        if not extraction.header_name:
            return extraction.default_value
        value = response.header(extraction.header_name)
        return extraction.default_value if value is None else value

    def _transform(self, value: Any, extraction: VariableExtraction) -> Any:
        kind = extraction.transform_kind
        if kind is None:
            return value
        return self._transforms[kind](value)

    def _to_json(self, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        try:
            return json.loads(value)
        except ValueError as e:
            self._logger.warning("extract.to_json_failed", error=str(e))
            return value


def extract(
    extractions: Iterable[VariableExtraction],
    response: ExecutionResponse,
    logger: Optional[LoggerPort] = None,
) -> Dict[str, Any]:
    return VariableExtractor(logger).extract(extractions, response)


@lru_cache(maxsize=256)
def _compile(path: str):
    return parse_json_path(path)


def _to_number(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if is_number(value):
        return value
    if not isinstance(value, str):
        return value
    text = value.strip()
    if text == "":
        return 0
    if "_" in text:
        return value
    try:
        num = float(text)
    except ValueError:
        return value
    if not math.isfinite(num):
        return value
    return int(num) if num.is_integer() else num


def _to_boolean(value: Any) -> bool:
    if isinstance(value, str):
        lower = value.lower()
        if lower in ("true", "1", "yes"):
            return True
        if lower in ("false", "0", "no"):
            return False
        return value != ""
    if isinstance(value, (dict, list)):
        return True
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)
