"""
Core Node Pack Manifest - Registration function for entry-points.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

import httpx

from node_registry.models import NodePackManifest
from node_sdk.basenode import BaseNodeHandler
from node_sdk.http import DEFAULT_TIMEOUT

from .ai import DEFAULT_BASE_URL, DEFAULT_MODEL, GptHandler
from .google import (
    GmailHandler,
    GoogleCalendarHandler,
    GoogleDocsHandler,
    GoogleSheetsHandler,
    GoogleWorkspaceProvider,
    SimulatedGoogleProvider,
)
from .nodes import (
    ConditionHandler,
    HttpRequestHandler,
    ManualTriggerHandler,
    ScheduleTriggerHandler,
    SetVariableHandler,
    SwitchHandler,
    WebhookTriggerHandler,
)


MANIFEST = NodePackManifest(
    name="core",
    version="1.0.0",
    description="Triggers, logic, HTTP, AI and Google Workspace nodes",
    nodes=[
        "manual",
        "webhook",
        "schedule",
        "condition",
        "switch",
        "set-variable",
        "http-request",
        "gpt",
        "google-sheets",
        "gmail",
        "google-calendar",
        "google-docs",
    ],
)


def build_handlers(
    http_timeout: float = DEFAULT_TIMEOUT,
    openai_api_key: Optional[str] = None,
    openai_base_url: str = DEFAULT_BASE_URL,
    openai_default_model: str = DEFAULT_MODEL,
    google_provider: Optional[GoogleWorkspaceProvider] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, BaseNodeHandler]:
    """
    Instantiate every core handler.

    Args:
        http_timeout: Default timeout for outbound HTTP calls
        openai_api_key: Key for the gpt node (the node fails without one)
        openai_base_url: OpenAI-compatible API root
        openai_default_model: Model used when a gpt node names none
        google_provider: Backend for the Google nodes (simulated by default)
        transport: httpx transport shared by HTTP-based nodes (tests)

    Returns:
        Map of node_type -> handler, in manifest order
    """
    google_provider = google_provider or SimulatedGoogleProvider()
    handlers = [
        ManualTriggerHandler(),
        WebhookTriggerHandler(),
        ScheduleTriggerHandler(),
        ConditionHandler(),
        SwitchHandler(),
        SetVariableHandler(),
        HttpRequestHandler(timeout=http_timeout, transport=transport),
        GptHandler(
            api_key=openai_api_key,
            base_url=openai_base_url,
            default_model=openai_default_model,
            timeout=http_timeout,
            transport=transport,
        ),
        GoogleSheetsHandler(google_provider),
        GmailHandler(google_provider),
        GoogleCalendarHandler(google_provider),
        GoogleDocsHandler(google_provider),
    ]
    return {handler.type: handler for handler in handlers}


def register_nodes(**options) -> Tuple[NodePackManifest, Dict[str, BaseNodeHandler]]:
    """
    Entry point function for node pack discovery.

    Returns tuple of (manifest, handlers). Keyword options are passed to
    build_handlers.
    """
    return MANIFEST, build_handlers(**options)


__all__ = [
    "MANIFEST",
    "build_handlers",
    "register_nodes",
]
