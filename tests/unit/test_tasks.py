"""Tests for the Celery run task and dispatch."""
from unittest.mock import Mock, patch

import pytest
import redis
from celery.exceptions import Retry

from flowrun.integrations import dispatch, tasks
from flowrun.storage import WorkflowNotFoundError, WorkflowStore
from workflow_engine.errors import ErrorKind
from workflow_engine.executor import ExecutionResult, RunError, RunStatus
from workflow_engine.models import parse_workflow


def _result(kind=None):
    if kind is None:
        return ExecutionResult(run_id="r", workflow_id="w", status=RunStatus.SUCCEEDED)
    return ExecutionResult(
        run_id="r",
        workflow_id="w",
        status=RunStatus.FAILED,
        error=RunError(kind=kind, message="boom", node_id="n"),
    )


def _store(definition):
    client = Mock()
    client.get.return_value = parse_workflow(definition).model_dump_json()
    return WorkflowStore(redis_client=client)


def _empty_store():
    client = Mock()
    client.get.return_value = None
    return WorkflowStore(redis_client=client)


class TestRetryPolicy:
    """Test which failures are retried, and when."""

    def test_only_transient_failures_retry(self):
        assert tasks.should_retry(_result(ErrorKind.TRANSIENT), retries=0, max_retries=3)
        assert not tasks.should_retry(_result(ErrorKind.CONFIGURATION), 0, 3)
        assert not tasks.should_retry(_result(ErrorKind.STRUCTURAL), 0, 3)
        assert not tasks.should_retry(_result(ErrorKind.CANCELLED), 0, 3)
        assert not tasks.should_retry(_result(), 0, 3)

    def test_retries_exhausted(self):
        assert not tasks.should_retry(_result(ErrorKind.TRANSIENT), retries=3, max_retries=3)

    def test_backoff_doubles(self):
        assert [tasks.retry_countdown(n, 1.5) for n in range(3)] == [1.5, 3.0, 6.0]


class TestRunWorkflowTask:
    """Test the task body with the store and registry patched."""

    def test_success(self, registry, branching_workflow):
        with patch.object(tasks, "get_workflow_store", return_value=_store(branching_workflow)), \
                patch.object(tasks, "get_worker_registry", return_value=registry):
            result = tasks.run_workflow("wf-branch", run_id="run-1")

        assert result["success"] is True
        assert result["runId"] == "run-1"
        assert result["skipped"] == ["A2"]

    def test_workflow_not_found(self):
        with patch.object(tasks, "get_workflow_store", return_value=_empty_store()):
            result = tasks.run_workflow("missing", run_id="run-1")

        assert result == {"error": "Workflow not found", "workflowId": "missing"}

    def test_configuration_failure_not_retried(self, registry):
        definition = {"id": "wf", "nodes": [{"id": "M", "type": "misconfigured"}]}
        with patch.object(tasks, "get_workflow_store", return_value=_store(definition)), \
                patch.object(tasks, "get_worker_registry", return_value=registry), \
                patch.object(tasks.run_workflow, "retry") as mock_retry:
            result = tasks.run_workflow("wf", run_id="run-1")

        mock_retry.assert_not_called()
        assert result["error"]["kind"] == "configuration"

    def test_transient_failure_retried(self, registry, monkeypatch):
        monkeypatch.setenv("FLOWRUN_JOB_RETRY_BACKOFF_S", "2")
        definition = {"id": "wf", "nodes": [{"id": "F", "type": "fail"}]}
        with patch.object(tasks, "get_workflow_store", return_value=_store(definition)), \
                patch.object(tasks, "get_worker_registry", return_value=registry), \
                patch.object(tasks.run_workflow, "retry", side_effect=Retry("retry")) as mock_retry:
            with pytest.raises(Retry):
                tasks.run_workflow("wf", run_id="run-1")

        mock_retry.assert_called_once_with(countdown=2.0, max_retries=3)


class TestDispatch:
    """Test queueing with direct fallback."""

    def test_queue_available(self):
        client = Mock()
        client.ping.return_value = True
        assert dispatch.is_queue_available(client)

        client.ping.side_effect = redis.ConnectionError("down")
        assert not dispatch.is_queue_available(client)

    def test_queued_when_broker_answers(self):
        client = Mock()
        client.ping.return_value = True

        with patch.object(tasks.run_workflow, "apply_async", return_value=Mock(id="task-1")) as mock_apply:
            outcome = dispatch.dispatch_workflow(
                "wf", run_id="run-1", trigger_input={"a": 1}, redis_client=client
            )

        assert outcome.mode == "queued"
        assert outcome.task_id == "task-1"
        mock_apply.assert_called_once_with(
            args=["wf"], kwargs={"run_id": "run-1", "trigger_input": {"a": 1}}
        )

    def test_direct_when_broker_down(self):
        client = Mock()
        client.ping.side_effect = redis.ConnectionError("down")
        definition = {
            "id": "wf",
            "nodes": [
                {"id": "start", "type": "manual"},
                {"id": "save", "type": "set-variable", "config": {"name": "who", "value": "{{$input.user}}"}},
            ],
            "edges": [{"source": "start", "target": "save"}],
        }

        outcome = dispatch.dispatch_workflow(
            "wf",
            trigger_input={"user": "ada"},
            store=_store(definition),
            redis_client=client,
        )

        assert outcome.mode == "direct"
        assert outcome.result["success"] is True
        assert outcome.result["workflowId"] == "wf"
        assert outcome.result["variables"] == {"who": "ada"}

    def test_direct_missing_workflow(self):
        with pytest.raises(WorkflowNotFoundError):
            dispatch.execute_workflow_direct("missing", store=_empty_store())
