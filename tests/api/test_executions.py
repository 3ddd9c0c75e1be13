from __future__ import annotations

import json
from pathlib import Path

import pytest
from fastapi import HTTPException

from api import main
from api.main import ExecuteTestRequest, RunStoredTestRequest, ValidateEnvironmentRequest
from fakes import FakeHttpClient, json_response
from infrastructure.config.settings import Settings
from infrastructure.persistence.in_memory_execution_log_store import InMemoryExecutionLogStore
from infrastructure.persistence.in_memory_execution_sink import InMemoryExecutionSink

GET_USERS = {
    "id": 1,
    "name": "list users",
    "method": "GET",
    "path": "/users",
    "assertions": [{"id": "ok", "type": "status-code", "operator": "equals", "expected": 200}],
}


@pytest.fixture
def http_client(monkeypatch, tmp_path: Path) -> FakeHttpClient:
    """Isolated stores, a temp definitions dir and no real network."""
    (tmp_path / "tests").mkdir()
    (tmp_path / "environments").mkdir()
    (tmp_path / "tests" / "1.json").write_text(json.dumps(GET_USERS), encoding="utf-8")
    (tmp_path / "environments" / "local.json").write_text(
        json.dumps({"name": "local", "baseUrl": "http://{{host}}", "variables": {"host": "api.local"}}),
        encoding="utf-8",
    )

    client = FakeHttpClient().add("GET", "/users", json_response(200, [{"id": 1}]))
    monkeypatch.setattr(main, "SETTINGS", Settings(definitions_dir=tmp_path))
    monkeypatch.setattr(main, "EXECUTION_SINK", InMemoryExecutionSink())
    monkeypatch.setattr(main, "EXECUTION_LOG_STORE", InMemoryExecutionLogStore())
    monkeypatch.setattr(main, "CANCELLATION_TOKENS", {})
    monkeypatch.setattr(main, "RequestsSessionHttpClient", lambda timeout_sec: client)
    return client


def _run_stored(test_id: str = "1", variables=None, environment=None, wait_sec=None):
    request = RunStoredTestRequest(variables=variables or {})
    return main.execute_stored(test_id, request, environment=environment, wait_sec=wait_sec)


def test_root_is_healthy() -> None:
    assert main.read_root()["status"] == "ok"


def test_execute_inline_returns_finished_execution(http_client) -> None:
    # Arrange
    request = ExecuteTestRequest(
        test_case=GET_USERS,
        environment={"name": "inline-env", "baseUrl": "http://{{host}}"},
        variables={"host": "example.test"},
    )

    # Act
    payload = main.execute_inline(request)

    # Assert
    assert payload["status"] == "pass"
    assert payload["environment"] == "inline-env"
    assert payload["baseUrl"] == "http://example.test"
    assert http_client.calls[0]["url"] == "http://example.test/users"
    assert main.EXECUTION_SINK.get(payload["executionId"]) is not None


def test_execute_inline_rejects_invalid_definition(http_client) -> None:
    request = ExecuteTestRequest(test_case={"assertions": [{"id": "no-type"}]})

    with pytest.raises(HTTPException) as exc_info:
        main.execute_inline(request)

    assert exc_info.value.status_code == 400


def test_execute_stored_synchronously(http_client) -> None:
    # Act
    payload = _run_stored(environment="local")

    # Assert
    assert payload["status"] == "pass"
    assert payload["testCaseId"] == 1
    assert payload["baseUrl"] == "http://api.local"
    assert main.EXECUTION_SINK.stats(1).execution_count == 1


def test_execute_stored_variables_override_environment(http_client) -> None:
    payload = _run_stored(environment="local", variables={"host": "override.local"})

    assert payload["baseUrl"] == "http://override.local"
    assert http_client.calls[0]["url"] == "http://override.local/users"


def test_execute_stored_unknown_test_is_404(http_client) -> None:
    with pytest.raises(HTTPException) as exc_info:
        _run_stored(test_id="missing")

    assert exc_info.value.status_code == 404


def test_execute_stored_unknown_environment_is_404(http_client) -> None:
    with pytest.raises(HTTPException) as exc_info:
        _run_stored(environment="nowhere")

    assert exc_info.value.status_code == 404


def test_wait_sec_above_limit_is_400(http_client) -> None:
    with pytest.raises(HTTPException) as exc_info:
        _run_stored(wait_sec=main.MAX_WAIT_SEC + 1)

    assert exc_info.value.status_code == 400


def test_async_execution_returns_accepted(http_client) -> None:
    # Act
    response = _run_stored(wait_sec=0)
    payload = json.loads(response.body.decode())
    execution_id = payload["execution_id"]

    # Assert
    assert response.status_code == 202
    assert payload["status"] == "running"
    assert payload["links"]["self"] == f"/executions/{execution_id}"
    assert main.RUN_SCHEDULER.wait(execution_id, timeout_sec=5) is True
    assert main.get_execution(execution_id)["status"] == "pass"


def test_async_execution_wait_returns_result(http_client) -> None:
    payload = _run_stored(wait_sec=5)

    assert payload["status"] == "pass"


def test_get_unknown_execution_is_404(http_client) -> None:
    with pytest.raises(HTTPException) as exc_info:
        main.get_execution("nope")

    assert exc_info.value.status_code == 404


def test_execution_logs_endpoint_returns_entries(http_client) -> None:
    # Arrange
    execution_id = _run_stored()["executionId"]

    # Act
    logs = main.get_execution_logs(execution_id)

    # Assert
    events = [entry.event for entry in logs]
    assert events[0] == "execution.start"
    assert "http.response" in events
    assert events[-1] == "execution.end"
    assert all(entry.fields["execution_id"] == execution_id for entry in logs)


def test_execution_logs_unknown_is_404(http_client) -> None:
    with pytest.raises(HTTPException) as exc_info:
        main.get_execution_logs("nope")

    assert exc_info.value.status_code == 404


def test_summary_counts_stored_executions(http_client) -> None:
    # Arrange
    _run_stored()
    _run_stored()

    # Act
    summary = main.get_test_summary("1")

    # Assert
    assert summary.test_id == "1"
    assert summary.total == 2
    assert summary.passed == 2
    assert summary.pass_rate == 100.0
    assert summary.trend == "stable"


def test_validate_environment_detects_cycle(http_client) -> None:
    request = ValidateEnvironmentRequest(variables={"a": "{{b}}", "b": "{{a}}", "c": "plain"})

    response = main.validate_environment(request)

    assert response.valid is False
    assert [e.variable for e in response.errors] == ["a", "b"]
    assert response.message.startswith("Cyclic reference detected")


def test_validate_environment_accepts_chain(http_client) -> None:
    request = ValidateEnvironmentRequest(variables={"url": "{{scheme}}://h", "scheme": "https"})

    response = main.validate_environment(request)

    assert response.valid is True
    assert response.message == ""


def test_cancel_running_execution(http_client, tmp_path: Path) -> None:
    # Arrange
    slow_workflow = {
        "id": 2,
        "name": "slow",
        "steps": [
            {"id": "wait", "order": 1, "path": "/users", "delayBefore": 10000},
            {"id": "after", "order": 2, "path": "/users"},
        ],
    }
    (tmp_path / "tests" / "2.json").write_text(json.dumps(slow_workflow), encoding="utf-8")
    response = _run_stored(test_id="2", wait_sec=0)
    execution_id = json.loads(response.body.decode())["execution_id"]

    # Act
    accepted = main.cancel_execution(execution_id)
    finished = main.RUN_SCHEDULER.wait(execution_id, timeout_sec=5)

    # Assert
    assert accepted["status"] == "cancelling"
    assert finished is True
    payload = main.get_execution(execution_id)
    assert payload["status"] == "error"
    assert payload["error"] == "Execution cancelled"
    assert http_client.calls == []


def test_cancel_unknown_execution_is_404(http_client) -> None:
    with pytest.raises(HTTPException) as exc_info:
        main.cancel_execution("nope")

    assert exc_info.value.status_code == 404


def test_cancel_finished_execution_is_409(http_client) -> None:
    execution_id = _run_stored()["executionId"]

    with pytest.raises(HTTPException) as exc_info:
        main.cancel_execution(execution_id)

    assert exc_info.value.status_code == 409


def test_sync_execution_releases_token_and_client(http_client) -> None:
    _run_stored()

    assert main.CANCELLATION_TOKENS == {}
    assert http_client.close_calls == 1


def test_async_execution_releases_token_and_client(http_client) -> None:
    # Arrange
    response = _run_stored(wait_sec=0)
    execution_id = json.loads(response.body.decode())["execution_id"]

    # Act
    finished = main.RUN_SCHEDULER.wait(execution_id, timeout_sec=5)

    # Assert
    assert finished is True
    assert execution_id not in main.CANCELLATION_TOKENS
    assert http_client.close_calls == 1
