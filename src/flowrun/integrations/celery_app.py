"""Celery application for workflow runs."""
from celery import Celery

from flowrun.config import get_settings

settings = get_settings()

WORKFLOW_QUEUE = "workflows"

celery_app = Celery(
    "flowrun",
    broker=settings.broker_url,
    backend=settings.redis_url,
    include=["flowrun.integrations.tasks"],
)

celery_app.conf.update(
    # One run at a time per worker process, acknowledged once finished
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_time_limit=settings.celery_task_time_limit,
    task_soft_time_limit=settings.celery_task_soft_time_limit,
    task_track_started=True,
    # Routing
    task_default_queue=WORKFLOW_QUEUE,
    task_routes={"run_workflow": {"queue": WORKFLOW_QUEUE}},
    # ExecutionResult.to_dict() is JSON-safe
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    result_expires=3600,
    result_extended=True,
    broker_connection_retry_on_startup=True,
    timezone="UTC",
    enable_utc=True,
)
