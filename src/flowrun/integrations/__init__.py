"""Job transport package: Celery app, tasks and dispatch."""
