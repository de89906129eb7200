"""Celery tasks for workflow runs."""
from typing import Any

from node_registry.registry import NodeRegistry
from workflow_engine.errors import ErrorKind
from workflow_engine.executor import ExecutionResult, run_workflow_sync

from flowrun.config import get_settings
from flowrun.integrations.celery_app import celery_app
from flowrun.observability import get_logger, setup_logging, with_run_context
from flowrun.runtime import build_registry
from flowrun.storage import get_workflow_store

# Setup logging
setup_logging()
logger = get_logger(__name__)

_registry: NodeRegistry | None = None


def get_worker_registry() -> NodeRegistry:
    """Registry shared by every run in this worker process."""
    global _registry
    if _registry is None:
        _registry = build_registry()
        logger.info("Node handlers registered", extra={"count": len(_registry)})
    return _registry


def should_retry(result: ExecutionResult, retries: int, max_retries: int) -> bool:
    """Only transient failures are retried; configuration errors fail identically."""
    return (
        not result.success
        and result.error is not None
        and result.error.kind == ErrorKind.TRANSIENT
        and retries < max_retries
    )


def retry_countdown(retries: int, backoff_s: float) -> float:
    """Exponential backoff: backoff, 2x backoff, 4x backoff, ..."""
    return backoff_s * (2 ** retries)


@celery_app.task(name="run_workflow", bind=True)
def run_workflow(
    self,
    workflow_id: str,
    run_id: str | None = None,
    trigger_input: dict[str, Any] | None = None,
) -> dict:
    """
    Execute one run of a stored workflow.

    Args:
        workflow_id: ID of the workflow in the store
        run_id: Run ID (the task ID when omitted)
        trigger_input: Payload for trigger nodes

    Returns:
        ExecutionResult as a dict
    """
    settings = get_settings()
    store = get_workflow_store()
    run_id = run_id or self.request.id

    definition = store.get_workflow(workflow_id)
    if definition is None:
        logger.error(f"Workflow not found: {workflow_id}", extra=with_run_context(run_id, workflow_id))
        return {"error": "Workflow not found", "workflowId": workflow_id}

    logger.info(
        "Starting workflow run",
        extra=with_run_context(run_id, workflow_id, attempt=self.request.retries + 1),
    )

    result = run_workflow_sync(
        definition.nodes,
        definition.edges,
        registry=get_worker_registry(),
        node_timeout_s=settings.default_node_timeout_s,
        run_id=run_id,
        workflow_id=workflow_id,
        trigger_input=trigger_input,
    )

    if should_retry(result, self.request.retries, settings.job_max_retries):
        countdown = retry_countdown(self.request.retries, settings.job_retry_backoff_s)
        logger.warning(
            f"Run failed transiently, retrying in {countdown}s: {result.error.message}",
            extra=with_run_context(run_id, workflow_id, node_id=result.error.node_id),
        )
        raise self.retry(countdown=countdown, max_retries=settings.job_max_retries)

    logger.info(
        f"Workflow run {result.status.value}",
        extra=with_run_context(run_id, workflow_id, duration_ms=round(result.duration_ms, 3)),
    )
    return result.to_dict()
