"""
Run Context - Per-run store of node outputs and named variables.

One RunContext belongs to exactly one run. Nodes execute strictly in
order, so there is a single writer at any time and no locking.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .graph import NodeOutput
from .models import Node
from .templating import render, resolve

logger = logging.getLogger(__name__)


def _detached(value: Any) -> Any:
    """Deep copy of value, degrading to a shallow copy, then the value itself."""
    try:
        return copy.deepcopy(value)
    except (TypeError, copy.Error):
        logger.debug(f"Cannot deep copy {type(value).__name__}, using a shallow copy", exc_info=True)
    try:
        return copy.copy(value)
    except (TypeError, copy.Error):
        return value


@dataclass
class ContextSnapshot:
    """Copy of a RunContext handed back to the caller in ExecutionResult."""
    outputs: Dict[str, NodeOutput] = field(default_factory=dict)
    variables: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outputs": {node_id: out.to_dict() for node_id, out in self.outputs.items()},
            "variables": self.variables,
        }


class RunContext:
    """
    Mutable map from node id to output, plus a flat variable store.

    Variable names are shared by every node in the run; a later write
    overwrites an earlier one.
    """

    def __init__(
        self,
        run_id: Optional[str] = None,
        trigger_input: Optional[Dict[str, Any]] = None,
        variables: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.run_id = run_id
        self.trigger_input: Dict[str, Any] = dict(trigger_input or {})
        self._outputs: Dict[str, NodeOutput] = {}
        self._variables: Dict[str, Any] = dict(variables or {})

    def record_output(self, node_id: str, output: NodeOutput) -> None:
        """
        Record a node's output.

        Raises:
            RuntimeError: If the node already has an output in this run
        """
        if node_id in self._outputs:
            raise RuntimeError(f"Output for node '{node_id}' already recorded")
        self._outputs[node_id] = output

    def get_output(self, node_id: str) -> Optional[NodeOutput]:
        return self._outputs.get(node_id)

    def has_output(self, node_id: str) -> bool:
        return node_id in self._outputs

    def set_variable(self, name: str, value: Any) -> None:
        self._variables[name] = value

    def get_variable(self, name: str, default: Any = None) -> Any:
        return self._variables.get(name, default)

    def has_variable(self, name: str) -> bool:
        return name in self._variables

    @property
    def outputs(self) -> Dict[str, NodeOutput]:
        """Read-only view (shallow copy) of recorded outputs."""
        return dict(self._outputs)

    @property
    def variables(self) -> Dict[str, Any]:
        return dict(self._variables)

    def snapshot(self) -> ContextSnapshot:
        return ContextSnapshot(
            outputs={node_id: _detached(out) for node_id, out in self._outputs.items()},
            variables={name: _detached(value) for name, value in self._variables.items()},
        )


class NodeContext:
    """
    Runtime context provided to a handler during one node execution.

    Provides access to:
    - Outputs of live predecessors (``inputs``), in incoming-edge order
    - Any recorded node output and the run's variable store
    - Template rendering against the run
    """

    def __init__(
        self,
        run: RunContext,
        node: Node,
        inputs: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._run = run
        self._node = node
        self.inputs: Dict[str, Any] = dict(inputs or {})

    @property
    def node_id(self) -> str:
        return self._node.id

    @property
    def run_id(self) -> Optional[str]:
        return self._run.run_id

    @property
    def run(self) -> RunContext:
        return self._run

    @property
    def trigger_input(self) -> Dict[str, Any]:
        return self._run.trigger_input

    @property
    def first_input(self) -> Any:
        """Value of the first live predecessor, or None for entry nodes."""
        return next(iter(self.inputs.values()), None)

    def get_output(self, node_id: str) -> Optional[NodeOutput]:
        return self._run.get_output(node_id)

    def get_variable(self, name: str, default: Any = None) -> Any:
        return self._run.get_variable(name, default)

    def set_variable(self, name: str, value: Any) -> None:
        self._run.set_variable(name, value)

    def render(self, text: str) -> str:
        return render(text, self._run)

    def resolve(self, text: str) -> Any:
        return resolve(text, self._run)


__all__ = ["RunContext", "ContextSnapshot", "NodeContext"]
