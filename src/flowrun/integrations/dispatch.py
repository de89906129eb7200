"""Send a run to the job queue, or execute it in-process when the queue is down."""
import asyncio
from dataclasses import dataclass, field
from typing import Any

import redis

from flowrun.config import get_settings
from flowrun.observability import get_logger, with_run_context
from flowrun.runtime import build_executor
from flowrun.storage import WorkflowStore, get_workflow_store

logger = get_logger(__name__)


@dataclass
class DispatchResult:
    """How a run was started."""

    mode: str  # "queued" or "direct"
    workflow_id: str
    task_id: str | None = None
    result: dict[str, Any] | None = field(default=None)


def is_queue_available(redis_client: redis.Redis | None = None) -> bool:
    """Ping the Redis broker; any connection problem means unavailable."""
    try:
        if redis_client is None:
            redis_client = redis.from_url(
                get_settings().broker_url,
                socket_connect_timeout=1,
                socket_timeout=1,
            )
        return bool(redis_client.ping())
    except redis.RedisError as e:
        logger.warning(f"Job queue unavailable: {e}")
        return False


def execute_workflow_direct(
    workflow_id: str,
    run_id: str | None = None,
    trigger_input: dict[str, Any] | None = None,
    store: WorkflowStore | None = None,
) -> dict[str, Any]:
    """
    Run a stored workflow in the calling process, without retries.

    Raises:
        WorkflowNotFoundError: If the workflow does not exist
    """
    store = store or get_workflow_store()
    definition = store.require_workflow(workflow_id)
    executor = build_executor()

    logger.info("Executing workflow directly", extra=with_run_context(run_id, workflow_id))
    result = asyncio.run(
        executor.execute_definition(definition, run_id=run_id, trigger_input=trigger_input)
    )
    return result.to_dict()


def dispatch_workflow(
    workflow_id: str,
    run_id: str | None = None,
    trigger_input: dict[str, Any] | None = None,
    store: WorkflowStore | None = None,
    redis_client: redis.Redis | None = None,
) -> DispatchResult:
    """
    Enqueue a run when the broker answers, otherwise execute it directly.

    Returns:
        DispatchResult with the task ID (queued) or the run result (direct)
    """
    if is_queue_available(redis_client):
        from flowrun.integrations.tasks import run_workflow

        async_result = run_workflow.apply_async(
            args=[workflow_id],
            kwargs={"run_id": run_id, "trigger_input": trigger_input},
        )
        logger.info(
            "Workflow run queued",
            extra=with_run_context(run_id, workflow_id, task_id=async_result.id),
        )
        return DispatchResult(mode="queued", workflow_id=workflow_id, task_id=async_result.id)

    result = execute_workflow_direct(workflow_id, run_id, trigger_input, store)
    return DispatchResult(mode="direct", workflow_id=workflow_id, result=result)
