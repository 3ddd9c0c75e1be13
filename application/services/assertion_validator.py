# application/services/assertion_validator.py
from __future__ import annotations

import re
from typing import Any, Callable, Dict, Iterable, List, Optional

from domain.exceptions import JsonPathError
from domain.execution import AssertionResult, ExecutionResponse
from domain.json_path import MISSING, lookup
from domain.steps.assertion import Assertion, AssertionKind, AssertionOperator
from domain.values import is_number, strict_equals, to_compact_json, to_display_string


class InvalidPatternError(Exception):
    def __init__(self, pattern: str):
        super().__init__(f"Invalid regex pattern: {pattern}")
        self.pattern = pattern


class UnknownOperatorError(Exception):
    def __init__(self, operator: str):
        super().__init__(f"Unknown assertion operator: {operator}")


def body_text(body: Any) -> str:
    if body is None:
        return ""
    if isinstance(body, str):
        return body
    return to_compact_json(body)


def _ordered(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    # numbers with numbers, strings with strings; anything else is false
    def compare(actual: Any, expected: Any) -> bool:
        if is_number(actual) and is_number(expected):
            return op(actual, expected)
        if isinstance(actual, str) and isinstance(expected, str):
            return op(actual, expected)
        return False
    return compare


def _search(actual: Any, expected: Any) -> bool:
    pattern = to_display_string(expected)
    try:
        regex = re.compile(pattern)
    except re.error:
        raise InvalidPatternError(pattern)
    return regex.search(to_display_string(actual)) is not None


OPERATORS: Dict[AssertionOperator, Callable[[Any, Any], bool]] = {
    AssertionOperator.EQUALS: strict_equals,
    AssertionOperator.NOT_EQUALS: lambda a, e: not strict_equals(a, e),
    AssertionOperator.GREATER_THAN: _ordered(lambda a, e: a > e),
    AssertionOperator.LESS_THAN: _ordered(lambda a, e: a < e),
    AssertionOperator.GREATER_THAN_OR_EQUAL: _ordered(lambda a, e: a >= e),
    AssertionOperator.LESS_THAN_OR_EQUAL: _ordered(lambda a, e: a <= e),
    AssertionOperator.CONTAINS: lambda a, e: to_display_string(e) in to_display_string(a),
    AssertionOperator.NOT_CONTAINS: lambda a, e: to_display_string(e) not in to_display_string(a),
    AssertionOperator.MATCHES: _search,
    AssertionOperator.EXISTS: lambda a, _e: a is not None,
    AssertionOperator.NOT_EXISTS: lambda a, _e: a is None,
    AssertionOperator.IS_NULL: lambda a, _e: a is None,
    AssertionOperator.IS_NOT_NULL: lambda a, _e: a is not None,
    AssertionOperator.IS_ARRAY: lambda a, _e: isinstance(a, list),
    AssertionOperator.IS_OBJECT: lambda a, _e: isinstance(a, dict),
    AssertionOperator.IS_STRING: lambda a, _e: isinstance(a, str),
    AssertionOperator.IS_NUMBER: lambda a, _e: is_number(a),
    AssertionOperator.IS_BOOLEAN: lambda a, _e: isinstance(a, bool),
}


def compare_values(actual: Any, expected: Any, operator: str) -> bool:
    op = AssertionOperator.parse(operator)
    if op is None:
        raise UnknownOperatorError(operator)
    return OPERATORS[op](actual, expected)


class AssertionValidator:
    """
    Evaluates one assertion against one response.
    Pure and stateless; every problem is reported in the AssertionResult.
    """

    def __init__(self) -> None:
        self._checks: Dict[AssertionKind, Callable[[Assertion, ExecutionResponse], AssertionResult]] = {
            AssertionKind.STATUS_CODE: self._status_code,
            AssertionKind.RESPONSE_TIME: self._response_time,
            AssertionKind.JSON_PATH: self._json_path,
            AssertionKind.HEADER: self._header,
            AssertionKind.BODY_CONTAINS: self._body_contains,
            AssertionKind.BODY_MATCHES: self._body_matches,
            AssertionKind.SCHEMA: self._schema,
        }

    def validate(self, assertion: Assertion, response: ExecutionResponse) -> AssertionResult:
        try:
            kind = assertion.kind
            if kind is None:
                return AssertionResult(
                    assertion_id=assertion.id,
                    passed=False,
                    message=f"Unknown assertion type: {assertion.type}",
                )
            return self._checks[kind](assertion, response)
        except (InvalidPatternError, UnknownOperatorError) as e:
            return AssertionResult(
                assertion_id=assertion.id,
                passed=False,
                expected=assertion.expected,
                message=str(e),
            )
        except Exception as e:
            return AssertionResult(
                assertion_id=assertion.id,
                passed=False,
                message=f"Assertion error: {e}",
            )

    def validate_all(self, assertions: Iterable[Assertion], response: ExecutionResponse) -> List[AssertionResult]:
        return [self.validate(a, response) for a in assertions]

    def _status_code(self, assertion: Assertion, response: ExecutionResponse) -> AssertionResult:
        actual = response.status_code
        expected = assertion.expected
        passed = compare_values(actual, expected, assertion.operator or AssertionOperator.EQUALS.value)
        return AssertionResult(
            assertion_id=assertion.id,
            passed=passed,
            actual=actual,
            expected=expected,
            message=(
                f"Status code is {actual}"
                if passed
                else f"Expected status code {to_display_string(expected)}, got {actual}"
            ),
        )

    def _response_time(self, assertion: Assertion, response: ExecutionResponse) -> AssertionResult:
        actual = response.response_time
        expected = assertion.expected
        operator = assertion.operator or AssertionOperator.LESS_THAN.value
        passed = compare_values(actual, expected, operator)
        return AssertionResult(
            assertion_id=assertion.id,
            passed=passed,
            actual=actual,
            expected=expected,
            message=(
                f"Response time is {actual}ms"
                if passed
                else f"Expected response time {operator} {to_display_string(expected)}ms, got {actual}ms"
            ),
        )

    def _json_path(self, assertion: Assertion, response: ExecutionResponse) -> AssertionResult:
        path = assertion.field or ""
        expected = assertion.expected

        if not path:
            return self._field_not_found(assertion, path)
        try:
            actual = lookup(response.body, path)
        except JsonPathError:
            return AssertionResult(
                assertion_id=assertion.id,
                passed=False,
                expected=expected,
                message=f"Invalid JSON path: {path}",
            )
        # not-exists included: an unlocatable field is never a pass
        if actual is MISSING:
            return self._field_not_found(assertion, path)

        passed = compare_values(actual, expected, assertion.operator or AssertionOperator.EQUALS.value)
        return AssertionResult(
            assertion_id=assertion.id,
            passed=passed,
            actual=actual,
            expected=expected,
            message=(
                f"Field {path} matches expected value"
                if passed
                else f"Field {path}: expected {to_compact_json(expected)}, got {to_compact_json(actual)}"
            ),
        )

    def _header(self, assertion: Assertion, response: ExecutionResponse) -> AssertionResult:
        name = assertion.field or ""
        expected = assertion.expected
        actual: Optional[str] = response.header(name) if name else None
        if actual is None:
            return self._field_not_found(assertion, name)

        passed = compare_values(actual, expected, assertion.operator or AssertionOperator.EQUALS.value)
        return AssertionResult(
            assertion_id=assertion.id,
            passed=passed,
            actual=actual,
            expected=expected,
            message=(
                f"Header {name} matches"
                if passed
                else f"Header {name}: expected {to_display_string(expected)}, got {actual}"
            ),
        )

    def _body_contains(self, assertion: Assertion, response: ExecutionResponse) -> AssertionResult:
        text = body_text(response.body)
        needle = to_display_string(assertion.expected)
        passed = needle in text
        return AssertionResult(
            assertion_id=assertion.id,
            passed=passed,
            expected=needle,
            message=f'Body contains "{needle}"' if passed else f'Body does not contain "{needle}"',
        )

    def _body_matches(self, assertion: Assertion, response: ExecutionResponse) -> AssertionResult:
        pattern = to_display_string(assertion.expected)
        try:
            regex = re.compile(pattern)
        except re.error:
            return AssertionResult(
                assertion_id=assertion.id,
                passed=False,
                expected=pattern,
                message=f"Invalid regex pattern: {pattern}",
            )
        passed = regex.search(body_text(response.body)) is not None
        return AssertionResult(
            assertion_id=assertion.id,
            passed=passed,
            expected=pattern,
            message=(
                f'Body matches pattern "{pattern}"'
                if passed
                else f'Body does not match pattern "{pattern}"'
            ),
        )

    def _schema(self, assertion: Assertion, response: ExecutionResponse) -> AssertionResult:
        # TODO: validate against assertion.expected once a JSON Schema validator is adopted
        return AssertionResult(
            assertion_id=assertion.id,
            passed=True,
            message="Schema validation not implemented",
        )

    def _field_not_found(self, assertion: Assertion, path: str) -> AssertionResult:
        return AssertionResult(
            assertion_id=assertion.id,
            passed=False,
            expected=assertion.expected,
            message=f"Field not found: {path}",
        )
