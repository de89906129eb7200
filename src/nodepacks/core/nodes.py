"""
Core Nodes - Triggers, logic and generic actions.

Triggers are entry points: they have no inputs and expose the run's
trigger payload. Logic nodes branch. Actions do the work.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from node_sdk.basenode import BaseNodeHandler, NodeContext
from node_sdk.errors import NodeConfigurationError
from node_sdk.http import DEFAULT_TIMEOUT, HttpClient
from workflow_engine.branching import FALSE_HANDLE, TRUE_HANDLE
from workflow_engine.models import Node

from .comparison import compare


logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class _Config(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ==============================================================================
# Triggers
# ==============================================================================

class ManualTriggerHandler(BaseNodeHandler):
    """
    Manual Trigger - Start a workflow by hand.

    Passes the run's trigger input through unchanged.
    """

    type = "manual"

    description = {
        "displayName": "Manual",
        "description": "Starts the workflow when triggered manually",
        "category": "trigger",
        "icon": "hand-pointer",
        "color": "#10B981",
        "inputs": 0,
        "outputs": ["main"],
    }

    async def execute(self, node: Node, context: NodeContext) -> Dict[str, Any]:
        return {"triggered": True, "timestamp": _now(), "input": context.trigger_input}


class WebhookConfig(_Config):
    method: Literal["GET", "POST", "PUT", "PATCH", "DELETE"] = "POST"
    path: Optional[str] = None

    @field_validator("method", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class WebhookTriggerHandler(BaseNodeHandler):
    """Webhook Trigger - The request body arrives as the trigger input."""

    type = "webhook"
    config_model = WebhookConfig

    description = {
        "displayName": "Webhook",
        "description": "Starts the workflow when an HTTP request is received",
        "category": "trigger",
        "icon": "link",
        "color": "#10B981",
        "inputs": 0,
        "outputs": ["main"],
    }

    async def execute(self, node: Node, context: NodeContext) -> Dict[str, Any]:
        config: WebhookConfig = self.parse_config(node, context)
        return {"method": config.method, "body": context.trigger_input}


class ScheduleConfig(_Config):
    cron: Optional[str] = None


class ScheduleTriggerHandler(BaseNodeHandler):
    """Schedule Trigger - Fired by an external scheduler."""

    type = "schedule"
    config_model = ScheduleConfig

    description = {
        "displayName": "Schedule",
        "description": "Starts the workflow on a schedule",
        "category": "trigger",
        "icon": "clock",
        "color": "#10B981",
        "inputs": 0,
        "outputs": ["main"],
    }

    async def execute(self, node: Node, context: NodeContext) -> Dict[str, Any]:
        config: ScheduleConfig = self.parse_config(node, context)
        return {"scheduled": True, "time": _now(), "cron": config.cron}


# ==============================================================================
# Logic
# ==============================================================================

class ConditionConfig(_Config):
    left_value: Any = Field(None, alias="leftValue")
    operator: str = "greaterThanOrEqual"
    right_value: Any = Field(None, alias="rightValue")


class ConditionHandler(BaseNodeHandler):
    """
    If/Else - Compare two values and route to the "true" or "false" handle.

    Both operands are usually templates such as ``{{fetch.data.count}}``.
    """

    type = "condition"
    config_model = ConditionConfig
    branching = True

    description = {
        "displayName": "If/Else",
        "description": "Route data based on a comparison",
        "category": "logic",
        "icon": "diamond",
        "color": "#A855F7",
        "inputs": 1,
        "outputs": [TRUE_HANDLE, FALSE_HANDLE],
    }

    async def execute(self, node: Node, context: NodeContext) -> Dict[str, Any]:
        config: ConditionConfig = self.parse_config(node, context)
        result = compare(config.operator, config.left_value, config.right_value)

        self.logger.debug(
            f"Condition {node.id}: {config.left_value!r} {config.operator} "
            f"{config.right_value!r} -> {result}"
        )
        return {
            "result": result,
            "branch": TRUE_HANDLE if result else FALSE_HANDLE,
            "leftValue": config.left_value,
            "operator": config.operator,
            "rightValue": config.right_value,
        }


class SwitchRule(_Config):
    output: Optional[str] = None
    operator: str = "equals"
    value: Any = None


class SwitchConfig(_Config):
    value: Any = None
    rules: List[SwitchRule] = Field(default_factory=list)
    all_matches: bool = Field(False, alias="allMatches")
    fallback_output: Optional[str] = Field(None, alias="fallbackOutput")


class SwitchHandler(BaseNodeHandler):
    """
    Switch - Route to one or more outputs by matching rules in order.

    Each rule's handle label is its ``output`` (its index when unset).
    With ``allMatches`` every matching rule's handle is live, otherwise
    only the first. No match selects ``fallbackOutput``, or nothing.
    """

    type = "switch"
    config_model = SwitchConfig
    branching = True

    description = {
        "displayName": "Switch",
        "description": "Route data to different outputs based on rules",
        "category": "logic",
        "icon": "shuffle",
        "color": "#A855F7",
        "inputs": 1,
        "outputs": [],
    }

    async def execute(self, node: Node, context: NodeContext) -> Dict[str, Any]:
        config: SwitchConfig = self.parse_config(node, context)

        matched: List[str] = []
        for index, rule in enumerate(config.rules):
            if compare(rule.operator, config.value, rule.value):
                matched.append(rule.output or str(index))
                if not config.all_matches:
                    break

        if not matched and config.fallback_output:
            matched.append(config.fallback_output)

        return {"value": config.value, "branch": matched}


# ==============================================================================
# Actions
# ==============================================================================

class SetVariableConfig(_Config):
    name: str = "result"
    value: Any = None

    @field_validator("name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("variable name must not be empty")
        return value


class SetVariableHandler(BaseNodeHandler):
    """
    Set Variable - Write a value into the run's variable store.

    Without a value the outputs of the live inputs are stored, keyed by
    node id. Later nodes read it back as ``{{$vars.<name>}}``.
    """

    type = "set-variable"
    config_model = SetVariableConfig

    description = {
        "displayName": "Set Variable",
        "description": "Store a value for later nodes",
        "category": "action",
        "icon": "pen",
        "color": "#3B82F6",
        "inputs": 1,
        "outputs": ["main"],
    }

    async def execute(self, node: Node, context: NodeContext) -> Dict[str, Any]:
        config: SetVariableConfig = self.parse_config(node, context)
        value = config.value
        if value is None or value == "":
            value = dict(context.inputs)

        context.set_variable(config.name, value)
        return {config.name: value}


class HttpRequestConfig(_Config):
    method: Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"] = "GET"
    url: str
    headers: Union[Dict[str, str], str, None] = None
    body: Any = None
    timeout: Optional[float] = Field(None, gt=0)

    @field_validator("method", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("url")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("URL is required")
        return value.strip()

    def header_map(self) -> Dict[str, str]:
        """Headers as a mapping; the editor may store them as a JSON string."""
        if not self.headers:
            return {}
        if isinstance(self.headers, dict):
            return self.headers
        try:
            parsed = json.loads(self.headers)
        except json.JSONDecodeError as e:
            raise NodeConfigurationError(f"Headers are not valid JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise NodeConfigurationError("Headers must be a JSON object")
        return {str(key): str(value) for key, value in parsed.items()}


class HttpRequestHandler(BaseNodeHandler):
    """
    HTTP Request - Call an external URL.

    Network failures, timeouts and 5xx responses are transient errors;
    other 4xx responses are configuration errors.
    """

    type = "http-request"
    config_model = HttpRequestConfig

    description = {
        "displayName": "HTTP Request",
        "description": "Make an HTTP request",
        "category": "action",
        "icon": "globe",
        "color": "#3B82F6",
        "inputs": 1,
        "outputs": ["main"],
    }

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__()
        self._timeout = timeout
        self._transport = transport

    async def execute(self, node: Node, context: NodeContext) -> Dict[str, Any]:
        config: HttpRequestConfig = self.parse_config(node, context)
        logger.debug(f"{config.method} {config.url}", extra={"node_id": node.id})
        client = HttpClient(timeout=config.timeout or self._timeout, transport=self._transport)

        request: Dict[str, Any] = {"headers": config.header_map()}
        if config.body is not None and config.method not in ("GET", "HEAD"):
            if isinstance(config.body, (dict, list)):
                request["json"] = config.body
            else:
                request["content"] = str(config.body)

        response = await client.request(config.method, config.url, **request)
        response.raise_for_status()

        return {
            "url": config.url,
            "method": config.method,
            "status": response.status_code,
            "data": response.data(),
        }


__all__ = [
    "ManualTriggerHandler",
    "WebhookTriggerHandler",
    "ScheduleTriggerHandler",
    "ConditionHandler",
    "SwitchHandler",
    "SetVariableHandler",
    "HttpRequestHandler",
]
