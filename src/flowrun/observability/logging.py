"""Structured JSON logging with run context."""
import logging
import sys
from typing import Any, TextIO

from pythonjsonlogger import jsonlogger

from flowrun.config import get_settings

CONTEXT_FIELDS = ("run_id", "workflow_id", "node_id", "node_type")


class RunContextFilter(logging.Filter):
    """Add run context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add default run context fields if not present."""
        for field in CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, None)
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with standardized field names."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        """Add custom fields to the log record."""
        super().add_fields(log_record, record, message_dict)

        # Ensure timestamp is present
        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)

        # Add standard fields
        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        # Run context only when set
        for field in CONTEXT_FIELDS:
            if getattr(record, field, None):
                log_record[field] = getattr(record, field)
            else:
                log_record.pop(field, None)


def setup_logging(level: str | None = None, stream: TextIO | None = None) -> None:
    """Configure structured JSON logging for the application."""
    settings = get_settings()

    # Create handler
    handler = logging.StreamHandler(stream or sys.stdout)

    # Create formatter
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    handler.setFormatter(formatter)

    # Add run context filter
    handler.addFilter(RunContextFilter())

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel((level or settings.log_level).upper())

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("celery").setLevel(logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger that accepts run context in its extra dict
    """
    return logging.getLogger(name)


def with_run_context(
    run_id: str | None = None,
    workflow_id: str | None = None,
    node_id: str | None = None,
    node_type: str | None = None,
    **kwargs: Any,
) -> dict[str, Any]:
    """
    Create an extra dict with run context for logging.

    Args:
        run_id: Run ID
        workflow_id: Workflow ID
        node_id: Node ID
        node_type: Node type
        **kwargs: Additional context fields

    Returns:
        Dict to pass as extra parameter to logger methods
    """
    extra = kwargs.copy()
    if run_id:
        extra["run_id"] = run_id
    if workflow_id:
        extra["workflow_id"] = workflow_id
    if node_id:
        extra["node_id"] = node_id
    if node_type:
        extra["node_type"] = node_type
    return extra
