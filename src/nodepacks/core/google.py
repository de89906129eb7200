"""
Google Workspace Nodes - Sheets, Gmail, Calendar and Docs.

Handlers validate their configuration and delegate the actual call to a
GoogleWorkspaceProvider. The bundled SimulatedGoogleProvider answers with
canned payloads so workflows can be built and run without credentials.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, model_validator

from node_sdk.basenode import BaseNodeHandler, NodeContext
from workflow_engine.models import Node


class _GoogleConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SheetsConfig(_GoogleConfig):
    operation: Literal["read", "append", "update", "clear"] = "read"
    spreadsheet_id: Optional[str] = Field(None, alias="spreadsheetId")
    range: str = "Sheet1"
    values: List[List[Any]] = Field(default_factory=list)

    @model_validator(mode="after")
    def _values_for_writes(self) -> "SheetsConfig":
        if self.operation in ("append", "update") and not self.values:
            raise ValueError(f"'values' is required for {self.operation}")
        return self


class GmailConfig(_GoogleConfig):
    operation: Literal["send", "draft"] = "send"
    to: str = Field(..., min_length=1)
    subject: str = "Test Email"
    body: str = ""
    cc: Optional[str] = None


class CalendarConfig(_GoogleConfig):
    operation: Literal["create", "list"] = "create"
    title: str = "Meeting"
    start: Optional[str] = None
    end: Optional[str] = None
    attendees: List[str] = Field(default_factory=list)


class DocsConfig(_GoogleConfig):
    operation: Literal["create", "append"] = "create"
    title: str = "Untitled document"
    content: str = ""
    document_id: Optional[str] = Field(None, alias="documentId")


class GoogleWorkspaceProvider(Protocol):
    """Performs Google Workspace calls for the handlers below."""

    async def sheets(self, config: SheetsConfig) -> Dict[str, Any]:
        ...

    async def gmail(self, config: GmailConfig) -> Dict[str, Any]:
        ...

    async def calendar(self, config: CalendarConfig) -> Dict[str, Any]:
        ...

    async def docs(self, config: DocsConfig) -> Dict[str, Any]:
        ...


class SimulatedGoogleProvider:
    """
    Provider returning fixed payloads, optionally after a delay that
    imitates API latency.
    """

    SAMPLE_ROWS = [
        ["Name", "Email", "Status"],
        ["John Doe", "john@example.com", "Active"],
        ["Jane Smith", "jane@example.com", "Active"],
    ]

    def __init__(self, latency_s: float = 0.0):
        self.latency_s = latency_s

    async def _wait(self) -> None:
        if self.latency_s:
            await asyncio.sleep(self.latency_s)

    async def sheets(self, config: SheetsConfig) -> Dict[str, Any]:
        await self._wait()
        rows = [list(row) for row in self.SAMPLE_ROWS]
        if config.operation in ("append", "update"):
            rows = config.values
        elif config.operation == "clear":
            rows = []
        return {"operation": config.operation, "range": config.range, "rows": rows}

    async def gmail(self, config: GmailConfig) -> Dict[str, Any]:
        await self._wait()
        return {
            "operation": config.operation,
            "to": config.to,
            "subject": config.subject,
            "sent": config.operation == "send",
        }

    async def calendar(self, config: CalendarConfig) -> Dict[str, Any]:
        await self._wait()
        return {
            "event": "Meeting scheduled",
            "title": config.title,
            "time": config.start or datetime.now(timezone.utc).isoformat(),
        }

    async def docs(self, config: DocsConfig) -> Dict[str, Any]:
        await self._wait()
        return {
            "document": "Document created",
            "title": config.title,
            "url": "https://docs.google.com/document/d/example",
        }


class _GoogleHandler(BaseNodeHandler):
    """Shared plumbing: holds the provider."""

    def __init__(self, provider: Optional[GoogleWorkspaceProvider] = None) -> None:
        super().__init__()
        self.provider = provider or SimulatedGoogleProvider()


class GoogleSheetsHandler(_GoogleHandler):
    type = "google-sheets"
    config_model = SheetsConfig
    description = {
        "displayName": "Google Sheets",
        "description": "Read or write spreadsheet rows",
        "category": "google",
        "icon": "table",
        "color": "#34A853",
        "inputs": 1,
        "outputs": ["main"],
    }

    async def execute(self, node: Node, context: NodeContext) -> Dict[str, Any]:
        return await self.provider.sheets(self.parse_config(node, context))


class GmailHandler(_GoogleHandler):
    type = "gmail"
    config_model = GmailConfig
    description = {
        "displayName": "Gmail",
        "description": "Send an email",
        "category": "google",
        "icon": "mail",
        "color": "#EA4335",
        "inputs": 1,
        "outputs": ["main"],
    }

    async def execute(self, node: Node, context: NodeContext) -> Dict[str, Any]:
        return await self.provider.gmail(self.parse_config(node, context))


class GoogleCalendarHandler(_GoogleHandler):
    type = "google-calendar"
    config_model = CalendarConfig
    description = {
        "displayName": "Google Calendar",
        "description": "Create calendar events",
        "category": "google",
        "icon": "calendar",
        "color": "#4285F4",
        "inputs": 1,
        "outputs": ["main"],
    }

    async def execute(self, node: Node, context: NodeContext) -> Dict[str, Any]:
        return await self.provider.calendar(self.parse_config(node, context))


class GoogleDocsHandler(_GoogleHandler):
    type = "google-docs"
    config_model = DocsConfig
    description = {
        "displayName": "Google Docs",
        "description": "Create or append to documents",
        "category": "google",
        "icon": "file-text",
        "color": "#4285F4",
        "inputs": 1,
        "outputs": ["main"],
    }

    async def execute(self, node: Node, context: NodeContext) -> Dict[str, Any]:
        return await self.provider.docs(self.parse_config(node, context))


__all__ = [
    "GoogleWorkspaceProvider",
    "SimulatedGoogleProvider",
    "GoogleSheetsHandler",
    "GmailHandler",
    "GoogleCalendarHandler",
    "GoogleDocsHandler",
    "SheetsConfig",
    "GmailConfig",
    "CalendarConfig",
    "DocsConfig",
]
