"""Tests for structured logging."""
import io
import json
import logging

import pytest

from flowrun.observability import get_logger, setup_logging, with_run_context


@pytest.fixture
def log_stream():
    """Route root logging into a buffer, restoring handlers afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    stream = io.StringIO()
    setup_logging("DEBUG", stream=stream)
    yield stream
    root.handlers[:] = handlers
    root.setLevel(level)


def _records(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines()]


class TestSetupLogging:
    """Test JSON output and run context fields."""

    def test_json_with_run_context(self, log_stream):
        logger = get_logger("flowrun.test")
        logger.info("Run started", extra=with_run_context("run-1", "wf-1", node_id="n1"))

        record = _records(log_stream)[-1]
        assert record["message"] == "Run started"
        assert record["level"] == "INFO"
        assert record["logger"] == "flowrun.test"
        assert record["run_id"] == "run-1"
        assert record["workflow_id"] == "wf-1"
        assert record["node_id"] == "n1"
        assert "timestamp" in record

    def test_unset_context_fields_omitted(self, log_stream):
        get_logger("flowrun.test").warning("plain")

        record = _records(log_stream)[-1]
        assert "run_id" not in record
        assert "node_type" not in record

    def test_level_from_settings(self, monkeypatch):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        monkeypatch.setenv("FLOWRUN_LOG_LEVEL", "ERROR")
        try:
            setup_logging(stream=io.StringIO())
            assert root.level == logging.ERROR
        finally:
            root.handlers[:] = handlers
            root.setLevel(level)


class TestWithRunContext:
    """Test the extra dict builder."""

    def test_skips_empty_fields(self):
        assert with_run_context(None, "wf", attempt=2) == {"workflow_id": "wf", "attempt": 2}
