"""Tests for the run context and the handler-facing node context."""
import threading

import pytest

from workflow_engine.context import NodeContext, RunContext
from workflow_engine.graph import NodeOutput, NodeStatus
from workflow_engine.models import Node


def _ok(node_id, value):
    return NodeOutput(node_id=node_id, status=NodeStatus.SUCCESS, value=value)


class TestRunContext:
    """Test RunContext storage."""

    def test_record_and_get_output(self):
        context = RunContext(run_id="r1")
        context.record_output("A", _ok("A", {"x": 1}))

        assert context.has_output("A")
        assert context.get_output("A").value == {"x": 1}
        assert context.get_output("missing") is None

    def test_output_written_once(self):
        context = RunContext()
        context.record_output("A", _ok("A", 1))
        with pytest.raises(RuntimeError):
            context.record_output("A", _ok("A", 2))
        assert context.get_output("A").value == 1

    def test_variables_overwrite(self):
        context = RunContext(variables={"count": 1})
        assert context.get_variable("count") == 1
        context.set_variable("count", 2)
        assert context.get_variable("count") == 2
        assert context.get_variable("nope", "default") == "default"
        assert not context.has_variable("nope")

    def test_views_are_copies(self):
        context = RunContext()
        context.set_variable("a", 1)
        context.variables["a"] = 99
        context.outputs["X"] = _ok("X", 0)
        assert context.get_variable("a") == 1
        assert not context.has_output("X")

    def test_snapshot_is_independent(self):
        context = RunContext()
        context.record_output("A", _ok("A", {"items": [1]}))
        context.set_variable("v", {"n": 1})

        snapshot = context.snapshot()
        context.get_output("A").value["items"].append(2)
        context.set_variable("v", {"n": 2})

        assert snapshot.outputs["A"].value == {"items": [1]}
        assert snapshot.variables == {"v": {"n": 1}}
        assert snapshot.to_dict()["outputs"]["A"]["value"] == {"items": [1]}

    def test_snapshot_tolerates_uncopyable_values(self):
        lock = threading.Lock()
        context = RunContext()
        context.record_output("A", _ok("A", {"lock": lock}))
        context.set_variable("held", lock)

        snapshot = context.snapshot()

        assert snapshot.outputs["A"].value["lock"] is lock
        assert snapshot.outputs["A"] is not context.get_output("A")
        assert snapshot.variables["held"] is lock


class TestNodeContext:
    """Test the per-dispatch accessor."""

    def test_accessors(self):
        run = RunContext(run_id="r1", trigger_input={"user": "ada"})
        run.record_output("T", _ok("T", {"n": 3}))
        node = Node(id="A", type="echo")
        context = NodeContext(run, node, {"T": {"n": 3}})

        assert context.node_id == "A"
        assert context.run_id == "r1"
        assert context.trigger_input == {"user": "ada"}
        assert context.first_input == {"n": 3}
        assert context.get_output("T").value == {"n": 3}

    def test_first_input_none_for_entry(self):
        context = NodeContext(RunContext(), Node(id="T", type="trigger"))
        assert context.first_input is None
        assert context.inputs == {}

    def test_set_variable_writes_run(self):
        run = RunContext()
        NodeContext(run, Node(id="A", type="echo")).set_variable("k", "v")
        assert run.get_variable("k") == "v"

    def test_render_and_resolve(self):
        run = RunContext(trigger_input={"n": 5})
        context = NodeContext(run, Node(id="A", type="echo"))
        assert context.render("n={{$input.n}}") == "n=5"
        assert context.resolve("{{$input.n}}") == 5
