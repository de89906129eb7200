"""Wiring of the engine from settings: handler registry and executor."""
from node_registry.registry import NodeRegistry
from nodepacks.core import register_nodes
from workflow_engine.executor import WorkflowExecutor

from flowrun.config import Settings, get_settings
from flowrun.observability import get_logger

logger = get_logger(__name__)


def build_registry(settings: Settings | None = None, **options) -> NodeRegistry:
    """
    Build a registry holding the core pack plus any installed plugin packs.

    Args:
        settings: Settings to configure the core handlers (global settings by default)
        **options: Overrides passed to the core pack (e.g. google_provider, transport)

    Returns:
        Populated NodeRegistry
    """
    settings = settings or get_settings()
    api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None

    core_options = {
        "http_timeout": settings.http_timeout_s,
        "openai_api_key": api_key,
        "openai_base_url": settings.openai_base_url,
        "openai_default_model": settings.openai_default_model,
        **options,
    }

    registry = NodeRegistry()
    registry.register_pack(*register_nodes(**core_options))
    registry.discover_entry_points()

    logger.debug("Registry built", extra={"node_types": registry.list_node_types()})
    return registry


def build_executor(
    settings: Settings | None = None,
    registry: NodeRegistry | None = None,
    node_timeout_s: float | None = None,
) -> WorkflowExecutor:
    """Create an executor using settings for the default node timeout."""
    settings = settings or get_settings()
    return WorkflowExecutor(
        registry=registry or build_registry(settings),
        node_timeout_s=node_timeout_s or settings.default_node_timeout_s,
    )
