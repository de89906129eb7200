"""Storage package."""
from flowrun.storage.workflow_store import (
    WorkflowNotFoundError,
    WorkflowStore,
    get_workflow_store,
)

__all__ = ["WorkflowNotFoundError", "WorkflowStore", "get_workflow_store"]
