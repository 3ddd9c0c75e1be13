# infrastructure/definitions/codec.py
"""
dict <-> domain conversion for the on-disk / on-wire shape (camelCase).

- None values and empty collections are omitted when encoding
- keys this module does not know are kept in `extra` and written back
- fields the document did not carry (method, path, generated ids, ...) are
  recorded in `defaulted` and left out again on encode
- execution records use ISO-8601 timestamps
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from domain.definition import TestCase
from domain.environment import Environment
from domain.exceptions import ValidationError
from domain.execution import (
    AssertionResult,
    ExecutionRequest,
    ExecutionResponse,
    ExecutionStatus,
    StepExecutionResult,
    TestExecution,
)
from domain.steps import Assertion, Step, VariableExtraction

FieldTable = List[Tuple[str, str]]

_REQUEST_FIELDS: FieldTable = [
    ("method", "method"),
    ("path", "path"),
    ("path_variables", "pathVariables"),
    ("query_params", "queryParams"),
    ("headers", "headers"),
    ("body", "body"),
]

_TEST_CASE_FIELDS: FieldTable = [
    ("id", "id"),
    ("spec_id", "specId"),
    ("name", "name"),
    ("description", "description"),
    *_REQUEST_FIELDS,
    ("test_type", "testType"),
    ("category", "category"),
    ("priority", "priority"),
    ("tags", "tags"),
    ("source_endpoint_id", "sourceEndpointId"),
    ("current_endpoint_id", "currentEndpointId"),
]

_STEP_FIELDS: FieldTable = [
    ("id", "id"),
    ("order", "order"),
    ("name", "name"),
    ("description", "description"),
    *_REQUEST_FIELDS,
    ("delay_before", "delayBefore"),
    ("delay_after", "delayAfter"),
    ("skip_on_failure", "skipOnFailure"),
    ("continue_on_failure", "continueOnFailure"),
]

# flags written only when set
_OMIT_FALSE = {"skip_on_failure", "continue_on_failure"}

_ASSERTION_FIELDS: FieldTable = [
    ("id", "id"),
    ("type", "type"),
    ("field", "field"),
    ("operator", "operator"),
    ("expected", "expected"),
    ("description", "description"),
]

_EXTRACTION_FIELDS: FieldTable = [
    ("name", "name"),
    ("source", "source"),
    ("path", "path"),
    ("header_name", "headerName"),
    ("transform", "transform"),
    ("default_value", "defaultValue"),
]

_ENVIRONMENT_FIELDS: FieldTable = [
    ("id", "id"),
    ("name", "name"),
    ("base_url", "baseUrl"),
    ("headers", "headers"),
    ("variables", "variables"),
    ("description", "description"),
]


# ---------- test definitions ----------

def decode_test_case(data: Mapping[str, Any]) -> TestCase:
    _require_mapping(data, "test case")
    kwargs = _read(data, _TEST_CASE_FIELDS)
    kwargs["assertions"] = [
        decode_assertion(a, i) for i, a in enumerate(_list(data, "assertions"))
    ]
    kwargs["steps"] = [decode_step(s, i) for i, s in enumerate(_list(data, "steps"))]
    kwargs["extra"] = _extra(data, _TEST_CASE_FIELDS, frozenset({"assertions", "steps"}))
    kwargs["defaulted"] = _defaulted(data, _TEST_CASE_FIELDS)
    return TestCase(**kwargs)


def encode_test_case(tc: TestCase) -> Dict[str, Any]:
    out = _write(tc, _TEST_CASE_FIELDS)
    if tc.assertions:
        out["assertions"] = [encode_assertion(a) for a in tc.assertions]
    if tc.steps:
        out["steps"] = [encode_step(s) for s in tc.steps]
    out.update(tc.extra)
    return out


def decode_step(data: Mapping[str, Any], index: int = 0) -> Step:
    _require_mapping(data, f"step #{index + 1}")
    kwargs = _read(data, _STEP_FIELDS)
    kwargs.setdefault("id", f"step-{index + 1}")
    kwargs.setdefault("order", index + 1)
    kwargs["id"] = str(kwargs["id"])
    kwargs["assertions"] = [
        decode_assertion(a, i) for i, a in enumerate(_list(data, "assertions"))
    ]
    kwargs["extract_variables"] = [
        decode_extraction(x) for x in _list(data, "extractVariables")
    ]
    kwargs["extra"] = _extra(data, _STEP_FIELDS, frozenset({"assertions", "extractVariables"}))
    kwargs["defaulted"] = _defaulted(data, _STEP_FIELDS)
    return Step(**kwargs)


def encode_step(step: Step) -> Dict[str, Any]:
    out = _write(step, _STEP_FIELDS)
    if step.assertions:
        out["assertions"] = [encode_assertion(a) for a in step.assertions]
    if step.extract_variables:
        out["extractVariables"] = [encode_extraction(x) for x in step.extract_variables]
    out.update(step.extra)
    return out


def decode_assertion(data: Mapping[str, Any], index: int = 0) -> Assertion:
    _require_mapping(data, f"assertion #{index + 1}")
    kwargs = _read(data, _ASSERTION_FIELDS)
    if "type" not in kwargs:
        raise ValidationError(f"assertion #{index + 1} has no type")
    kwargs["id"] = str(kwargs.get("id", f"assertion-{index + 1}"))
    kwargs["extra"] = _extra(data, _ASSERTION_FIELDS)
    kwargs["defaulted"] = _defaulted(data, _ASSERTION_FIELDS)
    return Assertion(**kwargs)


def encode_assertion(a: Assertion) -> Dict[str, Any]:
    out = _write(a, _ASSERTION_FIELDS)
    out.update(a.extra)
    return out


def decode_extraction(data: Mapping[str, Any]) -> VariableExtraction:
    _require_mapping(data, "variable extraction")
    kwargs = _read(data, _EXTRACTION_FIELDS)
    if "name" not in kwargs or "source" not in kwargs:
        raise ValidationError("variable extraction needs name and source")
    kwargs["extra"] = _extra(data, _EXTRACTION_FIELDS)
    return VariableExtraction(**kwargs)


def encode_extraction(x: VariableExtraction) -> Dict[str, Any]:
    out = _write(x, _EXTRACTION_FIELDS)
    out.update(x.extra)
    return out


def decode_environment(data: Mapping[str, Any]) -> Environment:
    _require_mapping(data, "environment")
    kwargs = _read(data, _ENVIRONMENT_FIELDS)
    if "name" not in kwargs:
        raise ValidationError("environment has no name")
    if "id" in kwargs:
        kwargs["id"] = str(kwargs["id"])
    kwargs["headers"] = {k: str(v) for k, v in (kwargs.get("headers") or {}).items()}
    kwargs["extra"] = _extra(data, _ENVIRONMENT_FIELDS)
    kwargs["defaulted"] = _defaulted(data, _ENVIRONMENT_FIELDS)
    return Environment(**kwargs)


def encode_environment(env: Environment) -> Dict[str, Any]:
    out = _write(env, _ENVIRONMENT_FIELDS)
    out.update(env.extra)
    return out


# ---------- execution records ----------

def encode_execution(ex: TestExecution) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "executionId": ex.execution_id,
        "id": ex.id,
        "testCaseId": ex.test_case_id,
        "specId": ex.spec_id,
        "endpointId": ex.endpoint_id,
        "environment": ex.environment,
        "baseUrl": ex.base_url,
        "status": ex.status.value,
        "request": _request_to_dict(ex.request),
        "response": _response_to_dict(ex.response),
        "assertionResults": [_assertion_result_to_dict(r) for r in ex.assertion_results],
        "stepResults": (
            [_step_result_to_dict(s) for s in ex.step_results]
            if ex.step_results is not None
            else None
        ),
        "error": ex.error,
        "startedAt": _iso(ex.started_at),
        "completedAt": _iso(ex.completed_at),
        "duration": ex.duration,
        "createdAt": _iso(ex.created_at),
    }
    return {k: v for k, v in out.items() if v is not None}


def decode_execution(data: Mapping[str, Any]) -> TestExecution:
    _require_mapping(data, "execution")
    steps = data.get("stepResults")
    return TestExecution(
        execution_id=data["executionId"],
        id=data.get("id"),
        test_case_id=data.get("testCaseId"),
        spec_id=data.get("specId"),
        endpoint_id=data.get("endpointId", 0),
        environment=data.get("environment"),
        base_url=data.get("baseUrl", ""),
        status=ExecutionStatus(data["status"]),
        request=_request_from_dict(data.get("request")),
        response=_response_from_dict(data.get("response")),
        assertion_results=tuple(_assertion_result_from_dict(r) for r in data.get("assertionResults") or []),
        step_results=tuple(_step_result_from_dict(s) for s in steps) if steps is not None else None,
        error=data.get("error"),
        started_at=_parse_iso(data["startedAt"]),
        completed_at=_parse_iso(data.get("completedAt")),
        duration=data.get("duration"),
        created_at=_parse_iso(data.get("createdAt")),
    )


def _request_to_dict(r: Optional[ExecutionRequest]) -> Optional[Dict[str, Any]]:
    if r is None:
        return None
    return {"method": r.method, "url": r.url, "headers": dict(r.headers), "body": r.body}


def _request_from_dict(d: Optional[Mapping[str, Any]]) -> Optional[ExecutionRequest]:
    if d is None:
        return None
    return ExecutionRequest(
        method=d["method"], url=d["url"], headers=dict(d.get("headers") or {}), body=d.get("body")
    )


def _response_to_dict(r: Optional[ExecutionResponse]) -> Optional[Dict[str, Any]]:
    if r is None:
        return None
    return {
        "statusCode": r.status_code,
        "statusText": r.status_text,
        "headers": dict(r.headers),
        "body": r.body,
        "responseTime": r.response_time,
    }


def _response_from_dict(d: Optional[Mapping[str, Any]]) -> Optional[ExecutionResponse]:
    if d is None:
        return None
    return ExecutionResponse(
        status_code=d["statusCode"],
        status_text=d.get("statusText", ""),
        headers=dict(d.get("headers") or {}),
        body=d.get("body"),
        response_time=d.get("responseTime", 0),
    )


def _assertion_result_to_dict(r: AssertionResult) -> Dict[str, Any]:
    out = {
        "assertionId": r.assertion_id,
        "passed": r.passed,
        "actual": r.actual,
        "expected": r.expected,
        "message": r.message,
    }
    return {k: v for k, v in out.items() if v is not None}


def _assertion_result_from_dict(d: Mapping[str, Any]) -> AssertionResult:
    return AssertionResult(
        assertion_id=d["assertionId"],
        passed=bool(d["passed"]),
        actual=d.get("actual"),
        expected=d.get("expected"),
        message=d.get("message"),
    )


def _step_result_to_dict(s: StepExecutionResult) -> Dict[str, Any]:
    out = {
        "stepId": s.step_id,
        "stepOrder": s.step_order,
        "stepName": s.step_name,
        "request": _request_to_dict(s.request),
        "response": _response_to_dict(s.response),
        "assertionResults": [_assertion_result_to_dict(r) for r in s.assertion_results],
        "extractedVariables": s.extracted_variables,
        "error": s.error,
        "startedAt": _iso(s.started_at),
        "completedAt": _iso(s.completed_at),
        "duration": s.duration,
    }
    return {k: v for k, v in out.items() if v is not None}


def _step_result_from_dict(d: Mapping[str, Any]) -> StepExecutionResult:
    return StepExecutionResult(
        step_id=d["stepId"],
        step_order=d["stepOrder"],
        step_name=d.get("stepName", ""),
        request=_request_from_dict(d.get("request")),
        response=_response_from_dict(d.get("response")),
        assertion_results=tuple(_assertion_result_from_dict(r) for r in d.get("assertionResults") or []),
        extracted_variables=d.get("extractedVariables"),
        error=d.get("error"),
        started_at=_parse_iso(d["startedAt"]),
        completed_at=_parse_iso(d.get("completedAt")),
        duration=d.get("duration"),
    )


# ---------- helpers ----------

def _read(data: Mapping[str, Any], table: FieldTable) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {}
    for attr, key in table:
        if key not in data:
            continue
        value = data[key]
        if value is None:
            continue
        kwargs[attr] = value
    return kwargs


def _write(obj: Any, table: FieldTable) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    defaulted = getattr(obj, "defaulted", frozenset())
    for attr, key in table:
        if attr in defaulted:
            continue
        value = getattr(obj, attr)
        if value is None:
            continue
        if isinstance(value, (dict, list)) and not value:
            continue
        if attr in _OMIT_FALSE and value is False:
            continue
        out[key] = value
    return out


def _extra(data: Mapping[str, Any], table: FieldTable, nested: frozenset = frozenset()) -> Dict[str, Any]:
    known = {key for _attr, key in table} | nested
    return {k: v for k, v in data.items() if k not in known}


def _defaulted(data: Mapping[str, Any], table: FieldTable) -> frozenset:
    return frozenset(attr for attr, key in table if data.get(key) is None)


def _list(data: Mapping[str, Any], key: str) -> List[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{key} must be a list")
    return value


def _require_mapping(data: Any, what: str) -> None:
    if not isinstance(data, Mapping):
        raise ValidationError(f"{what} must be an object")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_iso(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
