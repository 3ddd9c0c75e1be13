"""FastAPI application - test execution REST endpoints"""
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

import sys

# add the project root to sys.path when started as a script
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from infrastructure.config.settings import Settings
from infrastructure.definitions.codec import decode_environment, decode_test_case, encode_execution
from infrastructure.definitions.file_finder import DefinitionFileFinder
from infrastructure.definitions.loader_registry import DefinitionLoaderRegistry
from infrastructure.definitions import DefinitionLoadError
from infrastructure.http.http_artifact_saver import HttpArtifactSaver
from infrastructure.logging.composite_logger import CompositeLogger, LoggerRoute
from infrastructure.logging.console_logger import ConsoleLogger
from infrastructure.logging.execution_log_logger import ExecutionLogLogger
from infrastructure.logging.log_setup import setup_console_logging
from infrastructure.persistence.in_memory_execution_log_store import InMemoryExecutionLogStore
from infrastructure.persistence.in_memory_execution_sink import InMemoryExecutionSink
from infrastructure.run.in_memory_run_scheduler import InMemoryRunScheduler
from application.executor.test_executor import TestExecutor, new_execution_id
from application.http_trace_emitter import HttpTraceEmitter
from application.ports.requests_client import RequestsSessionHttpClient
from application.services.cancellation import CancellationToken
from application.services.dynamic_variables import DynamicVariableGenerator
from application.services.execution_deps import ExecutionDeps
from application.services.execution_summary import summarize
from application.services.variable_resolver import VariableResolver
from application.services.variable_validator import VariableValidator, format_validation_errors
from application.trace_enrichers.core import HttpCoreTraceLogger
from domain.definition import TestCase
from domain.environment import Environment
from domain.exceptions import ValidationError
from domain.execution import TestExecution


# request models
class ExecuteTestRequest(BaseModel):
    """Inline test execution request"""
    test_case: Dict[str, Any] = Field(description="Test definition (camelCase, same shape as definition files)")
    environment: Optional[Dict[str, Any]] = Field(default=None, description="Environment (baseUrl, headers, variables)")
    variables: Dict[str, Any] = Field(default_factory=dict, description="Variables overriding the environment's")


class RunStoredTestRequest(BaseModel):
    """Execution request for a test stored under the definitions directory"""
    variables: Dict[str, Any] = Field(default_factory=dict, description="Variables overriding the environment's")


class ValidateEnvironmentRequest(BaseModel):
    variables: Dict[str, Any] = Field(description="Environment variables to check for cyclic references")


class VariableIssueResponse(BaseModel):
    variable: str = Field(description="Variable name")
    message: str = Field(description="Problem description")


class ValidateEnvironmentResponse(BaseModel):
    valid: bool = Field(description="True when no cyclic reference was found")
    errors: List[VariableIssueResponse] = Field(default_factory=list, description="Offending variables")
    message: str = Field(default="", description="Human readable summary")


class ExecutionAcceptedResponse(BaseModel):
    """Accepted response for async execution"""
    execution_id: str = Field(description="Execution identifier")
    status: str = Field(description="Execution status")
    links: Dict[str, str] = Field(description="Related resources")


class ExecutionLogEntryResponse(BaseModel):
    timestamp: datetime = Field(description="Log timestamp")
    level: str = Field(description="Log level")
    event: str = Field(description="Log event name")
    fields: Dict[str, Any] = Field(description="Log payload")


class ExecutionSummaryResponse(BaseModel):
    test_id: str = Field(description="Definition id")
    total: int
    passed: int
    failed: int
    errors: int
    pass_rate: float = Field(description="Percent of passing executions")
    avg_duration: float = Field(description="Average duration in ms")
    recent_pass_rate: float = Field(description="Percent over the last 10 executions")
    trend: str = Field(description="improving | declining | stable")


# FastAPI application
app = FastAPI(
    title="API Test Executor",
    description="Executes declarative HTTP API tests and workflows",
    version="1.0.0",
)

# settings
SETTINGS = Settings.from_env()
setup_console_logging(SETTINGS.log_level)

EXECUTION_SINK = InMemoryExecutionSink()
EXECUTION_LOG_STORE = InMemoryExecutionLogStore()
RUN_SCHEDULER = InMemoryRunScheduler(max_workers=SETTINGS.max_workers)
MAX_WAIT_SEC = SETTINGS.max_wait_sec

# execution_id -> token of executions started by this process
CANCELLATION_TOKENS: Dict[str, CancellationToken] = {}


@app.get("/")
def read_root():
    """health check"""
    return {"status": "ok", "service": "api-test-executor"}


def _build_logger(execution_id: str) -> CompositeLogger:
    # console filtering is done by loguru; the log endpoint follows the same level
    return CompositeLogger.of(
        ConsoleLogger(),
        LoggerRoute(
            ExecutionLogLogger(execution_id=execution_id, log_store=EXECUTION_LOG_STORE),
            min_level=SETTINGS.log_level,
        ),
    )


def _build_trace_emitter() -> HttpTraceEmitter:
    enrichers = [HttpCoreTraceLogger()]
    if SETTINGS.artifacts_dir is not None:
        enrichers.append(HttpArtifactSaver(root=str(SETTINGS.artifacts_dir)))
    return HttpTraceEmitter(enrichers)


def _build_deps(execution_id: str) -> ExecutionDeps:
    token = CancellationToken()
    CANCELLATION_TOKENS[execution_id] = token
    return ExecutionDeps(
        cancellation=token,
        http_client=RequestsSessionHttpClient(timeout_sec=SETTINGS.request_timeout_sec),
        logger=_build_logger(execution_id),
        trace_emitter=_build_trace_emitter(),
    )


def _release(execution_id: str, deps: ExecutionDeps) -> None:
    CANCELLATION_TOKENS.pop(execution_id, None)
    deps.http_client.close()


def _build_resolver() -> VariableResolver:
    dynamic = DynamicVariableGenerator() if SETTINGS.dynamic_variables else None
    return VariableResolver(dynamic=dynamic, keep_unresolved=SETTINGS.keep_unresolved)


def _build_executor() -> TestExecutor:
    return TestExecutor(
        sink=EXECUTION_SINK,
        resolver=_build_resolver(),
        default_base_url=SETTINGS.default_base_url,
    )


def _load_test_case(test_id: str) -> TestCase:
    finder = DefinitionFileFinder(SETTINGS.definitions_dir)
    path = finder.find_test(test_id)
    if path is None:
        raise HTTPException(status_code=404, detail=f"Test definition not found: {test_id}")
    try:
        return DefinitionLoaderRegistry().get_loader(path).load_test_case(str(path))
    except DefinitionLoadError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _load_environment(name: Optional[str]) -> Optional[Environment]:
    if not name:
        return None
    finder = DefinitionFileFinder(SETTINGS.definitions_dir)
    path = finder.find_environment(name)
    if path is None:
        raise HTTPException(status_code=404, detail=f"Environment not found: {name}")
    try:
        return DefinitionLoaderRegistry().get_loader(path).load_environment(str(path))
    except DefinitionLoadError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _apply_overrides(environment: Optional[Environment], variables: Dict[str, Any]) -> Optional[Environment]:
    if not variables:
        return environment
    if environment is None:
        environment = Environment(name="inline")
    return environment.with_variables(variables)


def _build_links(execution_id: str) -> Dict[str, str]:
    return {
        "self": f"/executions/{execution_id}",
        "logs": f"/executions/{execution_id}/logs",
        "cancel": f"/executions/{execution_id}/cancel",
    }


def _run_sync(test_case: TestCase, environment: Optional[Environment]) -> TestExecution:
    execution_id = new_execution_id()
    deps = _build_deps(execution_id)
    try:
        return _build_executor().execute(test_case, environment, deps=deps, execution_id=execution_id)
    finally:
        _release(execution_id, deps)


@app.post("/executions")
def execute_inline(request: ExecuteTestRequest = Body(...)) -> Dict[str, Any]:
    """Execute an inline test definition and return the finished execution."""
    try:
        test_case = decode_test_case(request.test_case)
        environment = decode_environment(request.environment) if request.environment else None
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    environment = _apply_overrides(environment, request.variables)
    execution = _run_sync(test_case, environment)
    return encode_execution(execution)


@app.post("/tests/{test_id}/executions")
def execute_stored(
    test_id: str,
    request: Optional[RunStoredTestRequest] = Body(default=None),
    environment: Optional[str] = Query(default=None, description="Environment name"),
    wait_sec: Optional[int] = Query(default=None, ge=0),
):
    """
    Execute a stored test definition.

    wait_sec omitted: synchronous, the finished execution is returned.
    wait_sec given: the execution runs in the background; the result is
    returned if it finishes within wait_sec, otherwise 202 with links.
    """
    if wait_sec is not None and wait_sec > MAX_WAIT_SEC:
        raise HTTPException(status_code=400, detail=f"wait_sec must be <= {MAX_WAIT_SEC}")

    test_case = _load_test_case(test_id)
    variables = request.variables if request is not None else {}
    env = _apply_overrides(_load_environment(environment), variables)

    if wait_sec is None:
        return encode_execution(_run_sync(test_case, env))

    execution_id = new_execution_id()
    deps = _build_deps(execution_id)
    _build_executor().execute_async(
        test_case,
        env,
        RUN_SCHEDULER,
        deps=deps,
        execution_id=execution_id,
        on_done=lambda: _release(execution_id, deps),
    )

    if wait_sec and RUN_SCHEDULER.wait(execution_id, wait_sec):
        completed = EXECUTION_SINK.get(execution_id)
        if completed is not None:
            return encode_execution(completed)

    accepted = ExecutionAcceptedResponse(
        execution_id=execution_id,
        status="running",
        links=_build_links(execution_id),
    )
    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content=accepted.model_dump(),
    )


@app.get("/executions/{execution_id}")
def get_execution(execution_id: str) -> Dict[str, Any]:
    execution = EXECUTION_SINK.get(execution_id)
    if execution is not None:
        return encode_execution(execution)

    future = RUN_SCHEDULER.get_future(execution_id)
    if future is not None and not future.done():
        return {"executionId": execution_id, "status": "running"}

    raise HTTPException(status_code=404, detail=f"Execution not found: {execution_id}")


@app.get("/executions/{execution_id}/logs", response_model=List[ExecutionLogEntryResponse])
def get_execution_logs(execution_id: str) -> List[ExecutionLogEntryResponse]:
    entries = EXECUTION_LOG_STORE.list(execution_id)
    if not entries and EXECUTION_SINK.get(execution_id) is None and RUN_SCHEDULER.get_future(execution_id) is None:
        raise HTTPException(status_code=404, detail=f"Execution not found: {execution_id}")
    return [
        ExecutionLogEntryResponse(
            timestamp=entry.timestamp,
            level=entry.level,
            event=entry.event,
            fields=entry.fields,
        )
        for entry in entries
    ]


@app.get("/tests/{test_id}/summary", response_model=ExecutionSummaryResponse)
def get_test_summary(test_id: str) -> ExecutionSummaryResponse:
    test_case = _load_test_case(test_id)
    summary = summarize(EXECUTION_SINK.list_for_test(test_case.id))
    return ExecutionSummaryResponse(
        test_id=test_id,
        total=summary.total,
        passed=summary.passed,
        failed=summary.failed,
        errors=summary.errors,
        pass_rate=summary.pass_rate,
        avg_duration=summary.avg_duration,
        recent_pass_rate=summary.recent_pass_rate,
        trend=summary.trend,
    )


@app.post("/environments/validate", response_model=ValidateEnvironmentResponse)
def validate_environment(request: ValidateEnvironmentRequest = Body(...)) -> ValidateEnvironmentResponse:
    result = VariableValidator(_build_resolver()).validate_variables(request.variables)
    return ValidateEnvironmentResponse(
        valid=result.valid,
        errors=[VariableIssueResponse(variable=e.variable, message=e.message) for e in result.errors],
        message=format_validation_errors(result),
    )


@app.post("/executions/{execution_id}/cancel", status_code=status.HTTP_202_ACCEPTED)
def cancel_execution(execution_id: str) -> Dict[str, Any]:
    """
    Cooperative cancellation of a running execution.
    It stops at the next step boundary or during a step delay and is
    recorded with status error.
    """
    if EXECUTION_SINK.get(execution_id) is not None:
        raise HTTPException(status_code=409, detail=f"Execution already finished: {execution_id}")

    future = RUN_SCHEDULER.get_future(execution_id)
    if future is None:
        raise HTTPException(status_code=404, detail=f"Execution not found: {execution_id}")
    # tokens are released when the run returns
    token = CANCELLATION_TOKENS.get(execution_id)
    if token is None or future.done():
        raise HTTPException(status_code=409, detail=f"Execution already finished: {execution_id}")

    token.cancel()
    return {"executionId": execution_id, "status": "cancelling", "links": _build_links(execution_id)}
