"""Redis-backed store for workflow definitions."""
import redis

from workflow_engine.models import WorkflowDefinition

from flowrun.config import get_settings
from flowrun.observability import get_logger

logger = get_logger(__name__)


class WorkflowNotFoundError(LookupError):
    """No workflow stored under the requested ID."""

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow not found: {workflow_id}")


class WorkflowStore:
    """Redis-backed store for workflow definitions."""

    def __init__(self, redis_client: redis.Redis | None = None):
        """
        Initialize workflow store.

        Args:
            redis_client: Optional Redis client (will create one if not provided)
        """
        if redis_client is None:
            settings = get_settings()
            self.redis_client = redis.from_url(
                settings.redis_url,
                decode_responses=True,
            )
        else:
            self.redis_client = redis_client

        self._workflow_prefix = "workflow:"

    def _workflow_key(self, workflow_id: str) -> str:
        """Get Redis key for workflow."""
        return f"{self._workflow_prefix}{workflow_id}"

    def save_workflow(self, definition: WorkflowDefinition) -> None:
        """
        Store a workflow definition, replacing any previous version.

        Raises:
            ValueError: If the definition has no ID
        """
        if not definition.id:
            raise ValueError("Cannot store a workflow without an id")

        self.redis_client.set(
            self._workflow_key(definition.id),
            definition.model_dump_json(),
        )

        logger.info(
            "Workflow saved",
            extra={
                "workflow_id": definition.id,
                "nodes": len(definition.nodes),
                "edges": len(definition.edges),
            },
        )

    def get_workflow(self, workflow_id: str) -> WorkflowDefinition | None:
        """
        Get workflow by ID.

        Returns:
            WorkflowDefinition if found, None otherwise
        """
        data = self.redis_client.get(self._workflow_key(workflow_id))
        if data is None:
            return None

        return WorkflowDefinition.model_validate_json(data)

    def require_workflow(self, workflow_id: str) -> WorkflowDefinition:
        """
        Get workflow by ID.

        Raises:
            WorkflowNotFoundError: If no workflow is stored under the ID
        """
        definition = self.get_workflow(workflow_id)
        if definition is None:
            raise WorkflowNotFoundError(workflow_id)
        return definition

    def delete_workflow(self, workflow_id: str) -> bool:
        """Delete a workflow; returns False if there was nothing to delete."""
        deleted = bool(self.redis_client.delete(self._workflow_key(workflow_id)))
        if deleted:
            logger.info("Workflow deleted", extra={"workflow_id": workflow_id})
        return deleted


def get_workflow_store() -> WorkflowStore:
    """Get or create workflow store instance."""
    return WorkflowStore()
