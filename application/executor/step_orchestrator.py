# application/executor/step_orchestrator.py
from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from application.exceptions import DispatchError
from application.services.assertion_validator import AssertionValidator
from application.services.execution_deps import ExecutionDeps
from application.services.http_dispatcher import HttpDispatcher
from application.services.request_builder import RequestBuilder
from application.services.variable_extractor import VariableExtractor
from domain.exceptions import CyclicReferenceError
from domain.execution import (
    ExecutionRequest,
    ExecutionResponse,
    StepExecutionResult,
    elapsed_ms,
)
from domain.scope import VariableScope
from domain.steps.base import Step


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class WorkflowOutcome:
    step_results: Tuple[StepExecutionResult, ...]
    scope: VariableScope
    cancelled: bool = False


class StepOrchestrator:
    """
    Runs workflow steps in `order`, threading one VariableScope through them.

    Per step: delay_before -> build -> dispatch -> extract -> assert -> delay_after.
    - a build error (cyclic reference) or a dispatch error is recorded on the
      step; the workflow stops there unless continue_on_failure
    - failed assertions stop the workflow only when skip_on_failure
    - extracted variables are visible to later steps only
    """

    def __init__(
        self,
        builder: Optional[RequestBuilder] = None,
        dispatcher: Optional[HttpDispatcher] = None,
        validator: Optional[AssertionValidator] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._builder = builder or RequestBuilder()
        self._dispatcher = dispatcher or HttpDispatcher()
        self._validator = validator or AssertionValidator()
        self._clock = clock

    def run(
        self,
        steps: Sequence[Step],
        scope: VariableScope,
        base_url: str,
        deps: ExecutionDeps,
        base_headers: Optional[Mapping[str, Any]] = None,
    ) -> WorkflowOutcome:
        results: List[StepExecutionResult] = []
        # stable sort: equal orders keep their declared position
        ordered = sorted(steps, key=lambda s: s.order)

        deps.logger.info("workflow.start", step_count=len(ordered), base_url=base_url)

        for step in ordered:
            if deps.cancellation.cancelled:
                return self._cancelled(results, scope, deps, step)

            step_deps = deps.with_logger(deps.logger.bind(step_id=step.id, step_order=step.order))

            if step.delay_before and deps.cancellation.wait(step.delay_before / 1000):
                return self._cancelled(results, scope, deps, step)

            result, scope, stop = self._run_step(step, scope, base_url, step_deps, base_headers)
            results.append(result)

            if stop:
                break

            # a failed dispatch or build skips the step's delay_after
            if result.error is None and step.delay_after and deps.cancellation.wait(step.delay_after / 1000):
                return self._cancelled(results, scope, deps, None)

        deps.logger.info("workflow.end", executed_steps=len(results))
        return WorkflowOutcome(step_results=tuple(results), scope=scope)

    def _run_step(
        self,
        step: Step,
        scope: VariableScope,
        base_url: str,
        deps: ExecutionDeps,
        base_headers: Optional[Mapping[str, Any]],
    ) -> Tuple[StepExecutionResult, VariableScope, bool]:
        started_at = self._clock()
        t0 = time.perf_counter()
        deps.logger.info("step.start", name=step.name, method=step.method, path=step.path)

        def finish(
            request: Optional[ExecutionRequest],
            response: Optional[ExecutionResponse] = None,
            error: Optional[str] = None,
            assertion_results=(),
            extracted=None,
        ) -> StepExecutionResult:
            completed_at = self._clock()
            deps.logger.info(
                "step.end",
                ok=error is None and all(r.passed for r in assertion_results),
                error=error,
                elapsed_ms=int((time.perf_counter() - t0) * 1000),
            )
            return StepExecutionResult(
                step_id=step.id,
                step_order=step.order,
                step_name=step.name,
                request=request,
                response=response,
                assertion_results=tuple(assertion_results),
                extracted_variables=extracted,
                error=error,
                started_at=started_at,
                completed_at=completed_at,
                duration=elapsed_ms(started_at, completed_at),
            )

        missing = self._builder.unresolved_names(step, scope, base_headers)
        if missing:
            deps.logger.warning("request.unresolved_variables", variables=missing)

        try:
            request = self._builder.build(step, scope, base_headers)
        except CyclicReferenceError as e:
            deps.logger.error("step.build_failed", variable=e.variable, error=str(e))
            return finish(None, error=str(e)), scope, not step.continue_on_failure

        try:
            response = self._dispatcher.dispatch(request, base_url, deps, step_id=step.id)
        except DispatchError as e:
            deps.logger.error("step.dispatch_failed", error=str(e))
            return finish(request, e.response, error=str(e)), scope, not step.continue_on_failure

        extracted = None
        if step.extract_variables:
            extracted = VariableExtractor(deps.logger).extract(step.extract_variables, response)
            scope = scope.extend(extracted)
            deps.logger.debug("step.variables_extracted", names=sorted(extracted))

        assertion_results = self._validator.validate_all(step.assertions, response)
        failed = any(not r.passed for r in assertion_results)

        stop = failed and step.skip_on_failure
        if stop:
            deps.logger.info("step.skip_remaining", reason="assertion_failed")

        return finish(request, response, None, assertion_results, extracted), scope, stop

    def _cancelled(
        self,
        results: List[StepExecutionResult],
        scope: VariableScope,
        deps: ExecutionDeps,
        next_step: Optional[Step],
    ) -> WorkflowOutcome:
        deps.logger.info(
            "workflow.cancelled",
            executed_steps=len(results),
            next_step_id=next_step.id if next_step else None,
        )
        return WorkflowOutcome(step_results=tuple(results), scope=scope, cancelled=True)
