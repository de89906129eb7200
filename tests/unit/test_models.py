"""Tests for workflow models."""
import pytest
from pydantic import ValidationError

from workflow_engine.models import Edge, Node, parse_workflow


class TestNode:
    """Test Node parsing."""

    def test_flat_shape(self):
        node = Node.model_validate({"id": "n1", "type": "gmail", "config": {"to": "a@b.c"}})
        assert node.type == "gmail"
        assert node.config == {"to": "a@b.c"}
        assert node.timeout_s is None

    def test_editor_shape(self):
        """The editor stores the real node type inside data."""
        node = Node.model_validate({
            "id": "n1",
            "type": "action",
            "position": {"x": 10, "y": 20},
            "data": {"type": "http-request", "label": "Fetch", "config": {"url": "https://x"}},
        })
        assert node.type == "http-request"
        assert node.label == "Fetch"
        assert node.config == {"url": "https://x"}
        assert node.position.x == 10

    def test_timeout_alias(self):
        node = Node.model_validate({"id": "n1", "type": "gpt", "timeoutSeconds": 5})
        assert node.timeout_s == 5

    def test_frozen(self):
        node = Node(id="n1", type="echo")
        with pytest.raises(ValidationError):
            node.type = "other"

    def test_type_required(self):
        with pytest.raises(ValidationError):
            Node.model_validate({"id": "n1"})


class TestEdge:
    """Test Edge parsing."""

    def test_aliases(self):
        edge = Edge.model_validate({
            "sourceNodeId": "a",
            "targetNodeId": "b",
            "sourceHandle": "true",
        })
        assert (edge.source, edge.target, edge.source_handle) == ("a", "b", "true")

    def test_default_id(self):
        assert Edge(source="a", target="b").id == "a->b"
        assert Edge(source="a", target="b", source_handle="false").id == "a->b:false"

    def test_explicit_id_kept(self):
        assert Edge.model_validate({"id": "e1", "source": "a", "target": "b"}).id == "e1"


class TestParseWorkflow:
    """Test WorkflowDefinition parsing."""

    def test_connections_alias(self):
        workflow = parse_workflow({
            "id": "wf",
            "name": "Demo",
            "nodes": [{"id": "a", "type": "manual"}, {"id": "b", "type": "gmail"}],
            "connections": [{"source": "a", "target": "b"}],
        })
        assert workflow.id == "wf"
        assert len(workflow.edges) == 1
        assert [n.id for n in workflow.get_entry_nodes()] == ["a"]
        assert workflow.get_node("b").type == "gmail"
        assert workflow.get_node("zzz") is None

    def test_json_round_trip(self):
        workflow = parse_workflow({
            "id": "wf",
            "nodes": [{"id": "a", "type": "manual", "timeoutSeconds": 2}],
            "edges": [],
        })
        restored = type(workflow).model_validate_json(workflow.model_dump_json())
        assert restored.nodes[0].timeout_s == 2
        assert restored.id == "wf"
