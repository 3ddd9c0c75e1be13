#!/usr/bin/env python3
"""
Test execution script

Usage:
  python scripts/run_test.py run --test-file <path> [--environment-file <path>] [--vars <json>] [--base-url <url>] [--output <path.jsonl>]
  python scripts/run_test.py start --test-id <id> --api-base-url <url> [--environment <name>] [--vars <json>]
  python scripts/run_test.py wait --execution-id <id> --api-base-url <url> [--timeout-sec <sec>]
  python scripts/run_test.py status --execution-id <id> --api-base-url <url>
  python scripts/run_test.py logs --execution-id <id> --api-base-url <url>
  python scripts/run_test.py cancel --execution-id <id> --api-base-url <url>

Examples:
  python scripts/run_test.py definitions/tests/get_users.yaml
  python scripts/run_test.py run --test-file definitions/tests/user_workflow.yaml --environment-file definitions/environments/local.yaml
  python scripts/run_test.py start --test-id get_users --api-base-url http://localhost:8000 --environment local
"""
from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path

import requests
from dotenv import load_dotenv

load_dotenv()

from infrastructure.logging.log_setup import setup_console_logging
setup_console_logging(level="INFO")

from application.executor.test_executor import TestExecutor
from application.http_trace_emitter import HttpTraceEmitter
from application.ports.requests_client import RequestsSessionHttpClient
from application.services.dynamic_variables import DynamicVariableGenerator
from application.services.execution_deps import ExecutionDeps
from application.services.variable_resolver import VariableResolver
from application.trace_enrichers.core import HttpCoreTraceLogger
from domain.environment import Environment
from domain.exceptions import ValidationError
from domain.execution import ExecutionStatus, TestExecution
from infrastructure.config.settings import Settings
from infrastructure.definitions import DefinitionLoadError, DefinitionLoaderRegistry
from infrastructure.logging.console_logger import ConsoleLogger
from infrastructure.persistence.jsonl_execution_sink import JsonlExecutionSink


DEFAULT_API_TIMEOUT_SEC = 30
TERMINAL_STATUSES = {"pass", "fail", "error"}


def _parse_json_payload(raw: str, label: str) -> dict:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON for {label}: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValueError(f"{label} must be a JSON object")
    return parsed


def _load_vars_payload(raw: str | None) -> dict:
    if raw is None:
        return {}
    return _parse_json_payload(raw, "vars")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="API test execution helper")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run a test definition locally")
    run_parser.add_argument("--test-file", type=str, required=True)
    run_parser.add_argument("--environment-file", type=str)
    run_parser.add_argument("--vars", type=str)
    run_parser.add_argument("--base-url", type=str)
    run_parser.add_argument("--output", type=str)

    start_parser = subparsers.add_parser("start", help="Start a stored test via API")
    start_parser.add_argument("--test-id", type=str, required=True)
    start_parser.add_argument("--environment", type=str)
    start_parser.add_argument("--vars", type=str)
    start_parser.add_argument("--api-base-url", type=str, required=True)

    wait_parser = subparsers.add_parser("wait", help="Wait for async execution completion")
    wait_parser.add_argument("--execution-id", type=str, required=True)
    wait_parser.add_argument("--api-base-url", type=str, required=True)
    wait_parser.add_argument("--timeout-sec", type=int, default=DEFAULT_API_TIMEOUT_SEC)
    wait_parser.add_argument("--interval-sec", type=float, default=1.0)

    status_parser = subparsers.add_parser("status", help="Fetch execution status")
    status_parser.add_argument("--execution-id", type=str, required=True)
    status_parser.add_argument("--api-base-url", type=str, required=True)

    logs_parser = subparsers.add_parser("logs", help="Fetch execution logs")
    logs_parser.add_argument("--execution-id", type=str, required=True)
    logs_parser.add_argument("--api-base-url", type=str, required=True)

    cancel_parser = subparsers.add_parser("cancel", help="Cancel a running execution")
    cancel_parser.add_argument("--execution-id", type=str, required=True)
    cancel_parser.add_argument("--api-base-url", type=str, required=True)

    return parser


def _load_environment(args: argparse.Namespace, registry: DefinitionLoaderRegistry) -> Environment | None:
    environment = None
    if args.environment_file:
        path = Path(args.environment_file)
        environment = registry.get_loader(path).load_environment(str(path))
    if args.base_url:
        base = environment or Environment(name="cli")
        environment = Environment(
            name=base.name,
            base_url=args.base_url,
            headers=base.headers,
            variables=base.variables,
            id=base.id,
            description=base.description,
        )
    vars_input = _load_vars_payload(args.vars)
    if vars_input:
        environment = (environment or Environment(name="cli")).with_variables(vars_input)
    return environment


def _print_execution(execution: TestExecution) -> None:
    print("\n=== Result ===")
    print(f"Execution ID: {execution.execution_id}")
    print(f"Status: {execution.status.value}")
    print(f"Duration: {execution.duration} ms")
    if execution.error:
        print(f"Error: {execution.error}")
    for result in execution.assertion_results:
        mark = "PASS" if result.passed else "FAIL"
        line = f"  [{mark}] {result.assertion_id}"
        if result.message:
            line += f": {result.message}"
        print(line)
    if execution.step_results:
        print("Steps:")
        for step in execution.step_results:
            outcome = "error" if step.error else ("fail" if step.failed_assertions else "pass")
            print(f"  {step.step_order}. {step.step_name} -> {outcome}")


def _run_local(args: argparse.Namespace) -> int:
    settings = Settings.from_env()
    registry = DefinitionLoaderRegistry()
    test_path = Path(args.test_file)
    try:
        test_case = registry.get_loader(test_path).load_test_case(str(test_path))
        environment = _load_environment(args, registry)
    except (DefinitionLoadError, ValidationError) as e:
        raise ValueError(f"Failed to load definition: {e}") from e

    print(f"Test: {test_case.name}")
    if test_case.is_workflow:
        print(f"Steps: {len(test_case.steps)}")

    sink = JsonlExecutionSink(Path(args.output)) if args.output else None
    dynamic = DynamicVariableGenerator() if settings.dynamic_variables else None
    executor = TestExecutor(
        sink=sink,
        resolver=VariableResolver(dynamic=dynamic, keep_unresolved=settings.keep_unresolved),
        default_base_url=settings.default_base_url,
    )
    http_client = RequestsSessionHttpClient(timeout_sec=settings.request_timeout_sec)
    deps = ExecutionDeps(
        http_client=http_client,
        logger=ConsoleLogger(),
        trace_emitter=HttpTraceEmitter([HttpCoreTraceLogger()]),
    )

    print("\n=== Executing ===\n")
    try:
        execution = executor.execute(test_case, environment, deps=deps)
    finally:
        http_client.close()

    _print_execution(execution)
    return 0 if execution.status is ExecutionStatus.PASS else 1


def _post_execution_request(
    base_url: str,
    test_id: str,
    payload: dict,
    params: dict,
) -> requests.Response:
    url = f"{base_url.rstrip('/')}/tests/{test_id}/executions"
    return requests.post(url, json=payload, params=params, timeout=DEFAULT_API_TIMEOUT_SEC)


def _start_api(args: argparse.Namespace) -> int:
    params: dict = {"wait_sec": 0}
    if args.environment:
        params["environment"] = args.environment
    payload = {"variables": _load_vars_payload(args.vars)}
    response = _post_execution_request(args.api_base_url, args.test_id, payload, params)
    print(f"Status: {response.status_code}")
    print(json.dumps(response.json(), indent=2, ensure_ascii=False))
    return 0 if response.status_code in (200, 202) else 1


def _get_json(url: str):
    response = requests.get(url, timeout=DEFAULT_API_TIMEOUT_SEC)
    response.raise_for_status()
    return response.json()


def _execution_url(args: argparse.Namespace) -> str:
    return f"{args.api_base_url.rstrip('/')}/executions/{args.execution_id}"


def _wait_api(args: argparse.Namespace) -> int:
    deadline = time.monotonic() + args.timeout_sec
    while True:
        data = _get_json(_execution_url(args))
        status = str(data.get("status", "")).lower()
        if status in TERMINAL_STATUSES:
            print(json.dumps(data, indent=2, ensure_ascii=False))
            return 0 if status == "pass" else 1
        if time.monotonic() >= deadline:
            print(json.dumps(data, indent=2, ensure_ascii=False))
            return 1
        time.sleep(args.interval_sec)


def _status_api(args: argparse.Namespace) -> int:
    data = _get_json(_execution_url(args))
    print(json.dumps(data, indent=2, ensure_ascii=False))
    return 0


def _logs_api(args: argparse.Namespace) -> int:
    data = _get_json(f"{_execution_url(args)}/logs")
    print(json.dumps(data, indent=2, ensure_ascii=False))
    return 0


def _cancel_api(args: argparse.Namespace) -> int:
    response = requests.post(f"{_execution_url(args)}/cancel", timeout=DEFAULT_API_TIMEOUT_SEC)
    print(f"Status: {response.status_code}")
    print(json.dumps(response.json(), indent=2, ensure_ascii=False))
    return 0 if response.status_code == 202 else 1


def main() -> None:
    parser = _build_parser()
    argv = sys.argv[1:]
    if argv and argv[0] not in {"run", "start", "wait", "status", "logs", "cancel"} and not argv[0].startswith("-"):
        argv = ["run", "--test-file", argv[0]] + argv[1:]
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "run":
            exit_code = _run_local(args)
        elif args.command == "start":
            exit_code = _start_api(args)
        elif args.command == "wait":
            exit_code = _wait_api(args)
        elif args.command == "status":
            exit_code = _status_api(args)
        elif args.command == "logs":
            exit_code = _logs_api(args)
        elif args.command == "cancel":
            exit_code = _cancel_api(args)
        else:
            raise ValueError(f"Unknown command: {args.command}")
    except ValueError as exc:
        print(f"ERROR: {exc}")
        sys.exit(1)
    except requests.RequestException as exc:
        print(f"ERROR: API request failed: {exc}")
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
