"""
Compiled Graph - Validated workflow DAG with a deterministic execution order.

Takes the node and edge lists of a workflow, checks them for structural
problems and computes a topological order with Kahn's algorithm.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from .errors import ErrorKind, GraphValidationError
from .models import Edge, Node


logger = logging.getLogger(__name__)


class NodeStatus(str, Enum):
    """Outcome recorded for an executed node."""
    SUCCESS = "success"
    ERROR = "error"


class NodeState(str, Enum):
    """Lifecycle of a node within one run."""
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class NodeOutput:
    """
    Result of running a single node.
    """
    node_id: str
    status: NodeStatus
    value: Any = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    duration_ms: float = 0

    @property
    def is_success(self) -> bool:
        return self.status == NodeStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status == NodeStatus.ERROR

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "nodeId": self.node_id,
            "status": self.status.value,
            "durationMs": round(self.duration_ms, 3),
        }
        if self.is_success:
            data["value"] = self.value
        else:
            data["error"] = self.error
            data["errorKind"] = self.error_kind.value if self.error_kind else None
        return data


def order_nodes(nodes: Sequence[Node], edges: Sequence[Edge]) -> List[str]:
    """
    Compute a topological execution order.

    Uses Kahn's algorithm. Ready nodes are taken lowest original index
    first, so the order is stable for identical input. Every edge counts
    toward in-degree, duplicates included.

    Args:
        nodes: Workflow nodes in editor order
        edges: Workflow edges

    Returns:
        Node ids in execution order

    Raises:
        GraphValidationError: On duplicate ids, dangling edges or cycles
    """
    index: Dict[str, int] = {}
    for position, node in enumerate(nodes):
        if node.id in index:
            raise GraphValidationError(f"Duplicate node id: {node.id}")
        index[node.id] = position

    in_degree: Dict[str, int] = {node.id: 0 for node in nodes}
    successors: Dict[str, List[str]] = {node.id: [] for node in nodes}

    for edge in edges:
        missing = [ref for ref in (edge.source, edge.target) if ref not in index]
        if missing:
            raise GraphValidationError(
                f"Edge {edge.id} references unknown node(s): {', '.join(missing)}"
            )
        in_degree[edge.target] += 1
        successors[edge.source].append(edge.target)

    ready = [index[node_id] for node_id, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)
    order: List[str] = []

    while ready:
        node_id = nodes[heapq.heappop(ready)].id
        order.append(node_id)

        for successor in successors[node_id]:
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                heapq.heappush(ready, index[successor])

    if len(order) != len(nodes):
        placed = set(order)
        remaining = [node.id for node in nodes if node.id not in placed]
        raise GraphValidationError(
            f"Workflow has cycles involving: {', '.join(remaining)}"
        )

    return order


class CompiledGraph:
    """
    Validated workflow ready for execution.

    Contains:
    - Nodes indexed by id
    - Incoming/outgoing edges per node, in edge-list order
    - Topological order for sequential execution

    Construction raises GraphValidationError; a CompiledGraph that exists
    is always acyclic and closed over its edges.
    """

    def __init__(self, nodes: Sequence[Node], edges: Sequence[Edge]):
        self._execution_order = order_nodes(nodes, edges)
        self._nodes: Dict[str, Node] = {node.id: node for node in nodes}
        self._incoming: Dict[str, List[Edge]] = {node.id: [] for node in nodes}
        self._outgoing: Dict[str, List[Edge]] = {node.id: [] for node in nodes}

        for edge in edges:
            self._outgoing[edge.source].append(edge)
            self._incoming[edge.target].append(edge)

        logger.debug(
            "Compiled graph",
            extra={"nodes": len(self._nodes), "edges": len(edges)},
        )

    @property
    def execution_order(self) -> List[str]:
        """Get node ids in execution order."""
        return self._execution_order.copy()

    @property
    def node_ids(self) -> List[str]:
        return list(self._nodes.keys())

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def incoming(self, node_id: str) -> List[Edge]:
        return list(self._incoming.get(node_id, []))

    def outgoing(self, node_id: str) -> List[Edge]:
        return list(self._outgoing.get(node_id, []))

    def predecessors(self, node_id: str) -> List[str]:
        """Distinct source ids of incoming edges, in edge order."""
        return list(dict.fromkeys(edge.source for edge in self._incoming.get(node_id, [])))

    def successors(self, node_id: str) -> List[str]:
        return list(dict.fromkeys(edge.target for edge in self._outgoing.get(node_id, [])))

    def get_entry_points(self) -> List[str]:
        """Node ids with zero incoming edges, in execution order."""
        return [node_id for node_id in self._execution_order if not self._incoming[node_id]]

    def __len__(self) -> int:
        return len(self._nodes)


__all__ = [
    "CompiledGraph",
    "GraphValidationError",
    "NodeOutput",
    "NodeState",
    "NodeStatus",
    "order_nodes",
]
