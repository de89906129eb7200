"""
Core Node Pack - The node types available in the workflow editor.

Triggers: manual, webhook, schedule
Logic: condition, switch
Actions: set-variable, http-request
AI: gpt
Google: google-sheets, gmail, google-calendar, google-docs
"""

from .ai import GptHandler
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
from .manifest import MANIFEST, build_handlers, register_nodes

__all__ = [
    "ManualTriggerHandler",
    "WebhookTriggerHandler",
    "ScheduleTriggerHandler",
    "ConditionHandler",
    "SwitchHandler",
    "SetVariableHandler",
    "HttpRequestHandler",
    "GptHandler",
    "GoogleSheetsHandler",
    "GmailHandler",
    "GoogleCalendarHandler",
    "GoogleDocsHandler",
    "GoogleWorkspaceProvider",
    "SimulatedGoogleProvider",
    "MANIFEST",
    "build_handlers",
    "register_nodes",
]
