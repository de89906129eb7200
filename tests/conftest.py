"""Pytest configuration and fixtures."""
import os

import pytest

# Set test environment variables
os.environ["FLOWRUN_ENV"] = "test"
os.environ["FLOWRUN_REDIS_URL"] = "redis://localhost:6379/1"  # Test DB
os.environ["FLOWRUN_BROKER_URL"] = "redis://localhost:6379/2"

from flowrun.config import reset_settings  # noqa: E402
from node_registry.registry import NodeRegistry, reset_global_registry  # noqa: E402
from node_sdk.errors import NodeConfigurationError, NodeTransientError  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_settings():
    """Every test sees settings built from its own environment."""
    reset_settings()
    reset_global_registry()
    yield
    reset_settings()
    reset_global_registry()


def _trigger(node, context):
    return {"started": True, **context.trigger_input}


def _echo(node, context):
    return {"inputs": dict(context.inputs), **node.config}


def _condition(node, context):
    return bool(node.config.get("result"))


async def _route(node, context):
    return {"branch": node.config.get("branch")}


def _fail_transient(node, context):
    raise NodeTransientError(node.config.get("message", "provider unavailable"))


def _fail_config(node, context):
    raise NodeConfigurationError(node.config.get("message", "missing field"))


@pytest.fixture
def registry():
    """Registry of small deterministic handlers for engine tests."""
    reg = NodeRegistry()
    reg.register_function("trigger", _trigger, description={"category": "trigger", "inputs": 0})
    reg.register_function("echo", _echo)
    reg.register_function("condition", _condition, branching=True)
    reg.register_function("route", _route, branching=True)
    reg.register_function("fail", _fail_transient)
    reg.register_function("misconfigured", _fail_config)
    return reg


@pytest.fixture
def branching_workflow():
    """Scenario with a condition choosing between two actions."""
    return {
        "id": "wf-branch",
        "name": "Branching",
        "nodes": [
            {"id": "T", "type": "trigger"},
            {"id": "C", "type": "condition", "config": {"result": True}},
            {"id": "A1", "type": "echo", "config": {"tag": "yes"}},
            {"id": "A2", "type": "echo", "config": {"tag": "no"}},
        ],
        "edges": [
            {"source": "T", "target": "C"},
            {"source": "C", "target": "A1", "sourceHandle": "true"},
            {"source": "C", "target": "A2", "sourceHandle": "false"},
        ],
    }
