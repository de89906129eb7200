"""Tests for the Redis workflow store."""
import json
from unittest.mock import Mock

import pytest

from flowrun.storage import WorkflowNotFoundError, WorkflowStore
from workflow_engine.models import parse_workflow


@pytest.fixture
def redis_client():
    """Mock Redis client backed by a dict."""
    data = {}
    client = Mock()
    client.set.side_effect = lambda key, value: data.__setitem__(key, value)
    client.get.side_effect = data.get
    client.delete.side_effect = lambda key: 1 if data.pop(key, None) is not None else 0
    client.data = data
    return client


class TestWorkflowStore:
    """Test save, load and delete."""

    def test_save_and_get(self, redis_client, branching_workflow):
        store = WorkflowStore(redis_client=redis_client)
        store.save_workflow(parse_workflow(branching_workflow))

        assert "workflow:wf-branch" in redis_client.data
        loaded = store.get_workflow("wf-branch")
        assert [node.id for node in loaded.nodes] == ["T", "C", "A1", "A2"]
        assert loaded.edges[1].source_handle == "true"

    def test_stored_as_json(self, redis_client, branching_workflow):
        store = WorkflowStore(redis_client=redis_client)
        store.save_workflow(parse_workflow(branching_workflow))

        stored = json.loads(redis_client.data["workflow:wf-branch"])
        assert stored["name"] == "Branching"

    def test_missing_workflow(self, redis_client):
        store = WorkflowStore(redis_client=redis_client)
        assert store.get_workflow("nope") is None

        with pytest.raises(WorkflowNotFoundError) as exc_info:
            store.require_workflow("nope")
        assert exc_info.value.workflow_id == "nope"

    def test_save_requires_id(self, redis_client):
        store = WorkflowStore(redis_client=redis_client)
        with pytest.raises(ValueError):
            store.save_workflow(parse_workflow({"nodes": []}))

    def test_delete(self, redis_client, branching_workflow):
        store = WorkflowStore(redis_client=redis_client)
        store.save_workflow(parse_workflow(branching_workflow))

        assert store.delete_workflow("wf-branch") is True
        assert store.delete_workflow("wf-branch") is False
