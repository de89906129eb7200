"""Tests for CLI commands."""
import json
from unittest.mock import patch

import pytest

from flowrun.cli import load_workflow, main


WORKFLOW = {
    "id": "wf-cli",
    "name": "Order check",
    "nodes": [
        {"id": "start", "type": "manual"},
        {
            "id": "check",
            "type": "condition",
            "config": {"leftValue": "{{$input.count}}", "operator": "greaterThan", "rightValue": 10},
        },
        {"id": "notify", "type": "gmail", "config": {"to": "ops@example.com"}},
        {"id": "note", "type": "set-variable", "config": {"name": "small", "value": True}},
    ],
    "edges": [
        {"source": "start", "target": "check"},
        {"source": "check", "target": "notify", "sourceHandle": "true"},
        {"source": "check", "target": "note", "sourceHandle": "false"},
    ],
}


@pytest.fixture
def workflow_file(tmp_path):
    path = tmp_path / "workflow.json"
    path.write_text(json.dumps(WORKFLOW))
    return path


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("flowrun.cli.setup_logging") as mock_logging:
        yield mock_logging


class TestLoadWorkflow:
    """Test workflow file loading."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValueError, match="File not found"):
            load_workflow(str(tmp_path / "nope.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{nodes:")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_workflow(str(path))

    def test_loads_definition(self, workflow_file):
        definition = load_workflow(str(workflow_file))
        assert definition.id == "wf-cli"
        assert len(definition.nodes) == 4


class TestCmdRun:
    """Test the run command."""

    def test_progress_and_summary(self, workflow_file, capsys):
        code = main(["run", str(workflow_file), "--input", '{"count": 12}'])
        out = capsys.readouterr().out

        assert code == 0
        assert "▶ start" in out
        assert "✓ notify" in out
        assert "- note (skipped)" in out
        assert "succeeded" in out

    def test_json_output(self, workflow_file, capsys):
        code = main(["run", str(workflow_file), "--input", '{"count": 3}', "--json"])
        data = json.loads(capsys.readouterr().out)

        assert code == 0
        assert data["workflowId"] == "wf-cli"
        assert data["skipped"] == ["notify"]
        assert data["variables"] == {"small": True}

    def test_failed_run(self, workflow_file, capsys):
        code = main(["run", str(workflow_file), "--input", '{"count": "many"}'])
        out = capsys.readouterr().out

        assert code == 1
        assert "✗ check" in out
        assert "failed at node check [configuration]" in out

    def test_bad_input(self, workflow_file, capsys):
        code = main(["run", str(workflow_file), "--input", "not json"])
        assert code == 1
        assert "Error" in capsys.readouterr().err


class TestCmdValidate:
    """Test the validate command."""

    def test_valid(self, workflow_file, capsys):
        code = main(["validate", str(workflow_file)])
        out = capsys.readouterr().out

        assert code == 0
        assert "1. start (manual)" in out
        assert "4. note (set-variable)" in out

    def test_configuration_errors(self, tmp_path, capsys):
        workflow = json.loads(json.dumps(WORKFLOW))
        workflow["nodes"][2]["config"] = {}
        path = tmp_path / "workflow.json"
        path.write_text(json.dumps(workflow))

        code = main(["validate", str(path)])
        out = capsys.readouterr().out

        assert code == 1
        assert "CONFIGURATION ERRORS (1):" in out
        assert "notify" in out

    def test_cycle(self, tmp_path, capsys):
        workflow = json.loads(json.dumps(WORKFLOW))
        workflow["edges"].append({"source": "notify", "target": "start"})
        path = tmp_path / "workflow.json"
        path.write_text(json.dumps(workflow))

        code = main(["validate", str(path)])

        assert code == 1
        assert "Structural error" in capsys.readouterr().out


class TestCmdNodes:
    """Test the nodes command."""

    def test_lists_category(self, capsys):
        code = main(["nodes", "--category", "trigger"])
        lines = capsys.readouterr().out.strip().splitlines()

        assert code == 0
        assert [line.split()[0] for line in lines] == ["manual", "webhook", "schedule"]

    def test_json(self, capsys):
        main(["nodes", "--json"])
        data = json.loads(capsys.readouterr().out)

        by_type = {item["node_type"]: item for item in data}
        assert by_type["condition"]["branching"] is True
        assert by_type["gpt"]["category"] == "ai"


def test_no_command(capsys):
    assert main([]) == 1
