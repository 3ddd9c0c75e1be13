# tests/application/services/test_execution_summary.py
from datetime import datetime, timedelta, timezone

from application.services.execution_summary import calculate_trend, summarize
from domain.execution import ExecutionStatus, TestExecution

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _executions(statuses, duration=100):
    """statuses oldest first"""
    records = []
    for i, status in enumerate(statuses):
        started = T0 + timedelta(minutes=i)
        record = TestExecution(
            execution_id=f"ex-{i}",
            test_case_id=1,
            spec_id=None,
            endpoint_id=0,
            base_url="",
            status=ExecutionStatus.RUNNING,
            started_at=started,
        )
        records.append(record.complete(status, started + timedelta(milliseconds=duration)))
    return records


class TestSummarize:
    def test_empty(self):
        summary = summarize([])
        assert summary.total == 0
        assert summary.pass_rate == 0.0
        assert summary.avg_duration == 0.0
        assert summary.trend == "stable"

    def test_counts_and_rates(self):
        P, F, E = ExecutionStatus.PASS, ExecutionStatus.FAIL, ExecutionStatus.ERROR
        summary = summarize(_executions([P, P, F, E], duration=200))
        assert (summary.total, summary.passed, summary.failed, summary.errors) == (4, 2, 1, 1)
        assert summary.pass_rate == 50.0
        assert summary.avg_duration == 200.0
        assert summary.recent_pass_rate == 50.0

    def test_recent_window_is_last_ten(self):
        P, F = ExecutionStatus.PASS, ExecutionStatus.FAIL
        summary = summarize(_executions([F] * 5 + [P] * 10))
        assert summary.recent_pass_rate == 100.0
        assert round(summary.pass_rate, 2) == 66.67


class TestCalculateTrend:
    def test_improving(self):
        P, F = ExecutionStatus.PASS, ExecutionStatus.FAIL
        newest_first = list(reversed(_executions([F, F, P, P])))
        assert calculate_trend(newest_first) == "improving"

    def test_declining(self):
        P, F = ExecutionStatus.PASS, ExecutionStatus.FAIL
        newest_first = list(reversed(_executions([P, P, F, F])))
        assert calculate_trend(newest_first) == "declining"

    def test_stable(self):
        P, F = ExecutionStatus.PASS, ExecutionStatus.FAIL
        newest_first = list(reversed(_executions([P, F, P, F])))
        assert calculate_trend(newest_first) == "stable"

    def test_single_execution_is_stable(self):
        assert calculate_trend(_executions([ExecutionStatus.PASS])) == "stable"
