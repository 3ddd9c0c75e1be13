# application/services/execution_summary.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from domain.execution import ExecutionStatus, TestExecution

RECENT_WINDOW = 10
TREND_THRESHOLD = 0.1


@dataclass(frozen=True)
class ExecutionSummary:
    total: int
    passed: int
    failed: int
    errors: int
    pass_rate: float             # percent
    avg_duration: float          # ms, completed executions only
    recent_pass_rate: float      # percent over the last RECENT_WINDOW
    trend: str                   # improving | declining | stable


def summarize(executions: Iterable[TestExecution]) -> ExecutionSummary:
    items = list(executions)
    total = len(items)
    passed = _count(items, ExecutionStatus.PASS)

    durations = [e.duration for e in items if e.duration is not None]
    avg = sum(durations) / len(durations) if durations else 0.0

    recent = sorted(items, key=lambda e: e.started_at, reverse=True)[:RECENT_WINDOW]

    return ExecutionSummary(
        total=total,
        passed=passed,
        failed=_count(items, ExecutionStatus.FAIL),
        errors=_count(items, ExecutionStatus.ERROR),
        pass_rate=_rate(passed, total),
        avg_duration=avg,
        recent_pass_rate=_rate(_count(recent, ExecutionStatus.PASS), len(recent)),
        trend=calculate_trend(recent),
    )


def calculate_trend(newest_first: List[TestExecution]) -> str:
    """
    Compares the pass ratio of the newer half against the older half.
    More than 10 points apart -> improving / declining.
    """
    if len(newest_first) < 2:
        return "stable"
    mid = len(newest_first) // 2
    newer, older = newest_first[:mid], newest_first[mid:]
    diff = _ratio(newer) - _ratio(older)
    if diff > TREND_THRESHOLD:
        return "improving"
    if diff < -TREND_THRESHOLD:
        return "declining"
    return "stable"


def _count(items: Iterable[TestExecution], status: ExecutionStatus) -> int:
    return sum(1 for e in items if e.status == status)


def _ratio(items: List[TestExecution]) -> float:
    return _count(items, ExecutionStatus.PASS) / len(items)


def _rate(part: int, whole: int) -> float:
    return (part / whole) * 100 if whole else 0.0
