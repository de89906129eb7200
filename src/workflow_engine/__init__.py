"""
Workflow Engine - Ordered, branch-aware execution of node graphs.

This package provides:
- Workflow models (Node, Edge, WorkflowDefinition)
- Graph ordering and validation (CompiledGraph, order_nodes)
- Branch resolution and pruning (BranchResolver, BranchTracker)
- Run context and template substitution
- The async executor (WorkflowExecutor, execute_workflow)
"""

from .errors import (
    ErrorKind,
    GraphValidationError,
    NodeConfigurationError,
    NodeOperationError,
    NodeTimeoutError,
    NodeTransientError,
)
from .models import Edge, Node, WorkflowDefinition, parse_workflow
from .graph import CompiledGraph, NodeOutput, NodeState, NodeStatus, order_nodes
from .branching import BranchResolver, BranchTracker
from .context import ContextSnapshot, NodeContext, RunContext
from .templating import TemplateError, render, render_config, resolve
from .observer import CallbackObserver, ExecutionObserver, NullObserver, RecordingObserver
from .executor import (
    ExecutionResult,
    RunError,
    RunStatus,
    WorkflowExecutor,
    execute_workflow,
    run_workflow_sync,
)

__all__ = [
    # Models
    "Node",
    "Edge",
    "WorkflowDefinition",
    "parse_workflow",
    # Graph
    "CompiledGraph",
    "NodeOutput",
    "NodeState",
    "NodeStatus",
    "order_nodes",
    # Branching
    "BranchResolver",
    "BranchTracker",
    # Context
    "RunContext",
    "NodeContext",
    "ContextSnapshot",
    # Templating
    "TemplateError",
    "render",
    "resolve",
    "render_config",
    # Observer
    "ExecutionObserver",
    "NullObserver",
    "CallbackObserver",
    "RecordingObserver",
    # Executor
    "WorkflowExecutor",
    "ExecutionResult",
    "RunError",
    "RunStatus",
    "execute_workflow",
    "run_workflow_sync",
    # Errors
    "ErrorKind",
    "GraphValidationError",
    "NodeOperationError",
    "NodeConfigurationError",
    "NodeTransientError",
    "NodeTimeoutError",
]
