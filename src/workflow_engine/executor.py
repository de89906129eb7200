"""
Workflow Executor - Async DAG execution engine.

Executes a workflow graph one node at a time in topological order,
propagating outputs through the run context, pruning unselected branches
and aborting the run on the first node failure.

No retries happen here; a run reports the outcome of a single attempt.
Retry policy belongs to the job transport wrapping the run.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    FrozenSet,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Union,
)

from pydantic import ValidationError

from .branching import BranchResolver, BranchTracker
from .context import ContextSnapshot, NodeContext, RunContext
from .errors import (
    ErrorKind,
    GraphValidationError,
    NodeConfigurationError,
    NodeOperationError,
)
from .graph import CompiledGraph, NodeOutput, NodeStatus
from .models import Edge, Node, WorkflowDefinition
from .observer import ExecutionObserver, NullObserver

if TYPE_CHECKING:
    from node_registry.registry import NodeRegistry


logger = logging.getLogger(__name__)

# Default per-node handler timeout in seconds
DEFAULT_NODE_TIMEOUT_S = 30.0


class CancelSignal(Protocol):
    """threading.Event, asyncio.Event or anything else with is_set()."""

    def is_set(self) -> bool:
        ...


class RunStatus(str, Enum):
    """Overall run status."""
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class RunError:
    """Why a run failed, with the offending node when there is one."""
    kind: ErrorKind
    message: str
    node_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "nodeId": self.node_id,
        }


@dataclass
class ExecutionResult:
    """
    Result of one workflow run.

    ``node_results`` holds an output for every node that ran, in execution
    order; a failed run ends with the failing node's output. Skipped nodes
    have no output and are listed in ``skipped``.
    """
    run_id: str
    workflow_id: Optional[str]
    status: RunStatus
    node_results: List[NodeOutput] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    execution_order: List[str] = field(default_factory=list)
    final_context: ContextSnapshot = field(default_factory=ContextSnapshot)
    error: Optional[RunError] = None
    duration_ms: float = 0

    @property
    def success(self) -> bool:
        return self.status == RunStatus.SUCCEEDED

    @property
    def cancelled(self) -> bool:
        return self.error is not None and self.error.kind == ErrorKind.CANCELLED

    def get_node_result(self, node_id: str) -> Optional[NodeOutput]:
        for output in self.node_results:
            if output.node_id == node_id:
                return output
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "runId": self.run_id,
            "workflowId": self.workflow_id,
            "status": self.status.value,
            "success": self.success,
            "cancelled": self.cancelled,
            "nodeResults": [output.to_dict() for output in self.node_results],
            "skipped": list(self.skipped),
            "executionOrder": list(self.execution_order),
            "variables": self.final_context.variables,
            "error": self.error.to_dict() if self.error else None,
            "durationMs": round(self.duration_ms, 3),
        }


NodeLike = Union[Node, Mapping[str, Any]]
EdgeLike = Union[Edge, Mapping[str, Any]]


def _coerce(nodes: Sequence[NodeLike], edges: Sequence[EdgeLike]) -> Tuple[List[Node], List[Edge]]:
    """Decode raw mappings; a malformed node or edge is a structural error."""
    try:
        return (
            [n if isinstance(n, Node) else Node.model_validate(n) for n in nodes],
            [e if isinstance(e, Edge) else Edge.model_validate(e) for e in edges],
        )
    except ValidationError as e:
        raise GraphValidationError(f"Malformed workflow graph: {e}") from e


class WorkflowExecutor:
    """
    Async workflow executor.

    Executes a workflow DAG sequentially, respecting:
    - Node dependencies (deterministic topological order)
    - Branch selection (pruned edges, transitively skipped nodes)
    - Fail-fast error handling (first node error aborts the run)
    - Cancellation between nodes

    ``execute`` always returns an ExecutionResult; node-level exceptions
    never escape it.

    Usage:
        executor = WorkflowExecutor(registry=my_registry)
        result = await executor.execute(nodes, edges, observer)
    """

    def __init__(
        self,
        registry: Optional[NodeRegistry] = None,
        node_timeout_s: Optional[float] = None,
        resolver: Optional[BranchResolver] = None,
    ):
        """
        Initialize executor.

        Args:
            registry: Handler registry (defaults to the global registry)
            node_timeout_s: Default handler timeout for nodes without their own
            resolver: Branch resolver (defaults to the registry's branching types)
        """
        self._registry = registry
        self._node_timeout_s = node_timeout_s or DEFAULT_NODE_TIMEOUT_S
        self._resolver = resolver

    @property
    def registry(self) -> NodeRegistry:
        if self._registry is None:
            # Import here to avoid circular imports
            from node_registry.registry import get_global_registry
            self._registry = get_global_registry()
        return self._registry

    @property
    def resolver(self) -> BranchResolver:
        """The injected resolver, else one built from the registry as it stands now."""
        if self._resolver is not None:
            return self._resolver
        return BranchResolver(self.registry.branching_types())

    async def execute_definition(
        self,
        definition: WorkflowDefinition,
        observer: Optional[ExecutionObserver] = None,
        **kwargs: Any,
    ) -> ExecutionResult:
        """Execute a parsed workflow definition."""
        kwargs.setdefault("workflow_id", definition.id)
        return await self.execute(definition.nodes, definition.edges, observer, **kwargs)

    async def execute(
        self,
        nodes: Sequence[NodeLike],
        edges: Sequence[EdgeLike],
        observer: Optional[ExecutionObserver] = None,
        *,
        run_id: Optional[str] = None,
        workflow_id: Optional[str] = None,
        cancel_event: Optional[CancelSignal] = None,
        trigger_input: Optional[Dict[str, Any]] = None,
        variables: Optional[Dict[str, Any]] = None,
    ) -> ExecutionResult:
        """
        Execute one run of a workflow graph.

        Args:
            nodes: Workflow nodes (models or raw mappings)
            edges: Workflow edges (models or raw mappings)
            observer: Optional progress callbacks, invoked synchronously
            run_id: Run identifier (generated when omitted)
            workflow_id: Workflow identifier, for logs and the result
            cancel_event: Checked before each node starts
            trigger_input: Payload available to nodes as ``$input``
            variables: Initial contents of the variable store

        Returns:
            ExecutionResult with the run outcome
        """
        start_time = time.perf_counter()
        run_id = run_id or uuid.uuid4().hex
        observer = observer or NullObserver()
        context = RunContext(run_id=run_id, trigger_input=trigger_input, variables=variables)
        log_extra = {"run_id": run_id, "workflow_id": workflow_id}

        result = ExecutionResult(run_id=run_id, workflow_id=workflow_id, status=RunStatus.PENDING)

        try:
            graph = CompiledGraph(*_coerce(nodes, edges))
        except GraphValidationError as e:
            logger.error(f"Workflow rejected: {e}", extra=log_extra)
            result.status = RunStatus.FAILED
            result.error = RunError(kind=ErrorKind.STRUCTURAL, message=str(e))
            result.duration_ms = (time.perf_counter() - start_time) * 1000
            return result

        result.execution_order = graph.execution_order
        result.status = RunStatus.RUNNING
        logger.info(
            f"Run started ({len(graph)} nodes)",
            extra={**log_extra, "execution_order": result.execution_order},
        )

        await self._run_graph(graph, context, observer, cancel_event, result, self.resolver)

        if result.error is None:
            result.status = RunStatus.SUCCEEDED
        else:
            result.status = RunStatus.FAILED
        result.final_context = context.snapshot()
        result.duration_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            f"Run finished: {result.status.value}",
            extra={
                **log_extra,
                "duration_ms": round(result.duration_ms, 3),
                "error_kind": result.error.kind.value if result.error else None,
            },
        )
        return result

    async def _run_graph(
        self,
        graph: CompiledGraph,
        context: RunContext,
        observer: ExecutionObserver,
        cancel_event: Optional[CancelSignal],
        result: ExecutionResult,
        resolver: BranchResolver,
    ) -> None:
        """Walk the execution order, filling in result as nodes finish."""
        tracker = BranchTracker(graph)
        log_extra = {"run_id": context.run_id, "workflow_id": result.workflow_id}

        for node_id in graph.execution_order:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning(
                    f"Run cancelled before node {node_id}",
                    extra={**log_extra, "node_id": node_id},
                )
                result.error = RunError(kind=ErrorKind.CANCELLED, message="Run cancelled")
                return

            node = graph.get_node(node_id)

            if tracker.should_skip(node_id):
                tracker.prune_all_outgoing(node_id)
                result.skipped.append(node_id)
                logger.debug(f"Skipping node {node_id}", extra={**log_extra, "node_id": node_id})
                self._notify(observer.on_node_skipped, node_id)
                continue

            inputs = {
                pred: context.get_output(pred).value
                for pred in tracker.live_predecessors(node_id)
                if context.has_output(pred)
            }

            logger.debug(
                f"Executing node: {node_id} ({node.type})",
                extra={**log_extra, "node_id": node_id, "node_type": node.type},
            )
            self._notify(observer.on_node_start, node_id)

            output, live = await self._execute_node(
                node, NodeContext(context, node, inputs), resolver
            )
            result.node_results.append(output)

            if output.is_error:
                logger.error(
                    f"Node {node_id} failed: {output.error}",
                    extra={
                        **log_extra,
                        "node_id": node_id,
                        "node_type": node.type,
                        "error_kind": output.error_kind.value,
                    },
                )
                self._notify(observer.on_node_error, node_id, output.error)
                result.error = RunError(
                    kind=output.error_kind,
                    message=output.error,
                    node_id=node_id,
                )
                return

            context.record_output(node_id, output)
            if live is not None:
                tracker.prune_unselected(node_id, live)

            logger.debug(
                f"Node {node_id} completed in {output.duration_ms:.1f}ms",
                extra={**log_extra, "node_id": node_id, "node_type": node.type},
            )
            self._notify(observer.on_node_complete, node_id, output)

    async def _execute_node(
        self,
        node: Node,
        context: NodeContext,
        resolver: BranchResolver,
    ) -> Tuple[NodeOutput, Optional[FrozenSet[str]]]:
        """
        Dispatch a single node to its handler.

        Returns:
            The node's output, and the live handles when the node branches
        """
        start_time = time.perf_counter()
        timeout = node.timeout_s or self._node_timeout_s

        def failed(message: str, kind: ErrorKind) -> NodeOutput:
            return NodeOutput(
                node_id=node.id,
                status=NodeStatus.ERROR,
                error=message,
                error_kind=kind,
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )

        try:
            handler = self.registry.resolve(node.type)
            if handler is None:
                raise NodeConfigurationError(f"Unknown node type: {node.type}", node_id=node.id)

            value = await asyncio.wait_for(handler.execute(node, context), timeout=timeout)

            live = None
            if resolver.is_branching(node):
                live = resolver.live_handles(node, value)

        except asyncio.TimeoutError as e:
            # A handler may raise its own TimeoutError well inside the budget
            if time.perf_counter() - start_time < timeout:
                return failed(str(e) or type(e).__name__, ErrorKind.TRANSIENT), None
            return failed(f"Node '{node.id}' timed out after {timeout}s", ErrorKind.TRANSIENT), None

        except NodeOperationError as e:
            return failed(e.message, e.kind), None

        except Exception as e:
            logger.debug(f"Unexpected error in node {node.id}", exc_info=True)
            return failed(str(e) or type(e).__name__, ErrorKind.TRANSIENT), None

        output = NodeOutput(
            node_id=node.id,
            status=NodeStatus.SUCCESS,
            value=value,
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )
        return output, live

    @staticmethod
    def _notify(callback: Callable[..., Any], *args: Any) -> None:
        try:
            callback(*args)
        except Exception:
            logger.exception(f"Observer callback {callback.__name__} failed")


async def execute_workflow(
    nodes: Sequence[NodeLike],
    edges: Sequence[EdgeLike],
    observer: Optional[ExecutionObserver] = None,
    *,
    registry: Optional[NodeRegistry] = None,
    node_timeout_s: Optional[float] = None,
    **kwargs: Any,
) -> ExecutionResult:
    """
    Run a workflow graph once.

    Keyword arguments other than registry and node_timeout_s are passed
    to WorkflowExecutor.execute.
    """
    executor = WorkflowExecutor(registry=registry, node_timeout_s=node_timeout_s)
    return await executor.execute(nodes, edges, observer, **kwargs)


def run_workflow_sync(
    nodes: Sequence[NodeLike],
    edges: Sequence[EdgeLike],
    observer: Optional[ExecutionObserver] = None,
    **kwargs: Any,
) -> ExecutionResult:
    """Run execute_workflow on a fresh event loop, for synchronous callers."""
    return asyncio.run(execute_workflow(nodes, edges, observer, **kwargs))


__all__ = [
    "WorkflowExecutor",
    "ExecutionResult",
    "RunError",
    "RunStatus",
    "CancelSignal",
    "DEFAULT_NODE_TIMEOUT_S",
    "execute_workflow",
    "run_workflow_sync",
]
