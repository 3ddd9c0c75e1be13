from __future__ import annotations

from fakes import RecordingLogger
from infrastructure.logging.composite_logger import CompositeLogger, LoggerRoute
from infrastructure.logging.execution_log_logger import ExecutionLogLogger
from infrastructure.persistence.in_memory_execution_log_store import InMemoryExecutionLogStore


class TestCompositeLogger:
    def test_fans_out_to_every_logger(self):
        first, second = RecordingLogger(), RecordingLogger()
        logger = CompositeLogger.of(first, second)

        logger.error("step.dispatch_failed", error="boom")

        assert first.events("error") == ["step.dispatch_failed"]
        assert second.find("step.dispatch_failed")[0]["error"] == "boom"

    def test_bind_reaches_children(self):
        child = RecordingLogger()

        CompositeLogger.of(child).bind(execution_id="ex1").info("execution.start")

        assert child.find("execution.start")[0]["execution_id"] == "ex1"

    def test_route_min_level_filters_events(self):
        everything, important = RecordingLogger(), RecordingLogger()
        logger = CompositeLogger.of(everything, LoggerRoute(important, min_level="WARNING"))

        logger.debug("http.request_detail")
        logger.info("step.start")
        logger.warning("request.unresolved_variables")
        logger.bind(step_id="s1").error("step.dispatch_failed")

        assert everything.events() == [
            "http.request_detail",
            "step.start",
            "request.unresolved_variables",
            "step.dispatch_failed",
        ]
        assert important.events() == ["request.unresolved_variables", "step.dispatch_failed"]

    def test_unknown_min_level_passes_everything(self):
        child = RecordingLogger()

        CompositeLogger.of(LoggerRoute(child, min_level="TRACE")).debug("a")

        assert child.events() == ["a"]


class TestExecutionLogLogger:
    def test_appends_entries_per_execution(self):
        store = InMemoryExecutionLogStore()
        logger = ExecutionLogLogger(execution_id="ex1", log_store=store)

        logger.info("execution.start", base_url="http://h")
        logger.bind(step_id="s1").warning("request.unresolved_variables", variables=["x"])

        entries = store.list("ex1")
        assert [e.event for e in entries] == ["execution.start", "request.unresolved_variables"]
        assert entries[0].level == "info"
        assert entries[0].fields == {"base_url": "http://h", "type": "execution.start"}
        assert entries[1].fields["step_id"] == "s1"
        assert store.list("other") == []

    def test_list_returns_a_copy(self):
        store = InMemoryExecutionLogStore()
        ExecutionLogLogger(execution_id="ex1", log_store=store).debug("a")

        store.list("ex1").clear()

        assert len(store.list("ex1")) == 1
