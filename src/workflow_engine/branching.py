"""
Branch Resolver - Select live output handles of branching nodes and
prune the edges that were not selected, for the current run only.
"""

from __future__ import annotations

import logging
from typing import AbstractSet, Any, FrozenSet, Iterable, List, Optional, Set

from .errors import NodeConfigurationError

from .graph import CompiledGraph
from .models import Edge, Node


logger = logging.getLogger(__name__)

BRANCH_KEY = "branch"
TRUE_HANDLE = "true"
FALSE_HANDLE = "false"


class BranchResolver:
    """
    Decides which outgoing handles of a branching node are live.

    Accepted output shapes:
    - a bool: "true" or "false" is live
    - a mapping whose ``branch`` key holds a handle label, a bool, or a
      list of labels (multi-way routing, N live handles)
    """

    def __init__(self, branching_types: Optional[Iterable[str]] = None):
        self._branching_types: Set[str] = set(branching_types or ("condition",))

    @property
    def branching_types(self) -> FrozenSet[str]:
        return frozenset(self._branching_types)

    def is_branching(self, node: Node) -> bool:
        return node.type in self._branching_types

    def live_handles(self, node: Node, value: Any) -> FrozenSet[str]:
        """
        Resolve the live handle labels for a branching node's output.

        Raises:
            NodeConfigurationError: If the output has no usable branch selection
        """
        selected = value.get(BRANCH_KEY) if isinstance(value, dict) else value

        if isinstance(selected, bool):
            return frozenset({TRUE_HANDLE if selected else FALSE_HANDLE})
        if isinstance(selected, str) and selected:
            return frozenset({selected})
        if isinstance(selected, (list, tuple, set, frozenset)):
            return frozenset(str(label) for label in selected)

        raise NodeConfigurationError(
            f"Branching node '{node.id}' produced no branch selection "
            f"(got {type(selected).__name__})",
            node_id=node.id,
        )


class BranchTracker:
    """
    Per-run record of pruned edges.

    A node whose incoming edges are all pruned is skipped, and skipping a
    node prunes all of its outgoing edges, so pruning flows through the
    whole unreached subgraph as the run walks the topological order.
    """

    def __init__(self, graph: CompiledGraph):
        self._graph = graph
        self._pruned: Set[Edge] = set()

    def prune_unselected(self, node_id: str, live: AbstractSet[str]) -> List[Edge]:
        """Prune outgoing edges whose handle is not live. Unlabelled edges stay live."""
        pruned = []
        for edge in self._graph.outgoing(node_id):
            if edge.source_handle is not None and edge.source_handle not in live:
                self._pruned.add(edge)
                pruned.append(edge)
        if pruned:
            logger.debug(
                "Pruned branch edges",
                extra={"node_id": node_id, "edges": [edge.id for edge in pruned]},
            )
        return pruned

    def prune_all_outgoing(self, node_id: str) -> None:
        for edge in self._graph.outgoing(node_id):
            self._pruned.add(edge)

    def is_pruned(self, edge: Edge) -> bool:
        return edge in self._pruned

    def should_skip(self, node_id: str) -> bool:
        """True when the node has incoming edges and none of them is live."""
        incoming = self._graph.incoming(node_id)
        return bool(incoming) and all(self.is_pruned(edge) for edge in incoming)

    def live_predecessors(self, node_id: str) -> List[str]:
        """Source ids of non-pruned incoming edges, in edge order."""
        return list(dict.fromkeys(
            edge.source for edge in self._graph.incoming(node_id)
            if not self.is_pruned(edge)
        ))

    @property
    def pruned_edges(self) -> FrozenSet[str]:
        return frozenset(edge.id for edge in self._pruned)


__all__ = [
    "BranchResolver",
    "BranchTracker",
    "BRANCH_KEY",
    "TRUE_HANDLE",
    "FALSE_HANDLE",
]
