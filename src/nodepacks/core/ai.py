"""
AI Nodes - Chat completion against an OpenAI-compatible API.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from pydantic import ConfigDict, BaseModel, Field

from node_sdk.basenode import BaseNodeHandler, NodeContext
from node_sdk.errors import NodeConfigurationError, NodeTransientError
from node_sdk.http import DEFAULT_TIMEOUT, HttpClient
from workflow_engine.models import Node


DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


class GptConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    prompt: str = Field(..., min_length=1)
    system_prompt: str = Field(DEFAULT_SYSTEM_PROMPT, alias="systemPrompt")
    model: Optional[str] = None
    temperature: float = Field(0.7, ge=0, le=2)
    max_tokens: int = Field(1000, gt=0, alias="maxTokens")


class GptHandler(BaseNodeHandler):
    """
    GPT - Send the rendered prompt to a chat-completions endpoint.

    ``prompt`` may reference earlier nodes, e.g. ``Summarise {{fetch.data}}``;
    the output keeps both the raw and the rendered prompt.
    """

    type = "gpt"
    config_model = GptConfig

    description = {
        "displayName": "GPT",
        "description": "Generate text with a chat completion model",
        "category": "ai",
        "icon": "sparkles",
        "color": "#F59E0B",
        "inputs": 1,
        "outputs": ["main"],
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        default_model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__()
        self._api_key = api_key
        self._base_url = base_url
        self._default_model = default_model
        self._timeout = timeout
        self._transport = transport

    async def execute(self, node: Node, context: NodeContext) -> Dict[str, Any]:
        config: GptConfig = self.parse_config(node, context)
        if not self._api_key:
            raise NodeConfigurationError(
                "OpenAI API key is not configured (set FLOWRUN_OPENAI_API_KEY)",
                node_id=node.id,
            )

        model = config.model or self._default_model
        client = HttpClient(
            base_url=self._base_url,
            bearer_token=self._api_key,
            timeout=self._timeout,
            transport=self._transport,
        )
        response = await client.post(
            "/chat/completions",
            json={
                "model": model,
                "temperature": config.temperature,
                "max_tokens": config.max_tokens,
                "messages": [
                    {"role": "system", "content": config.system_prompt},
                    {"role": "user", "content": config.prompt},
                ],
            },
        )
        response.raise_for_status()

        return {
            "prompt": node.config.get("prompt"),
            "processedPrompt": config.prompt,
            "response": _completion_text(response.json()),
            "model": model,
        }


def _completion_text(payload: Any) -> str:
    try:
        return payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise NodeTransientError(f"Unexpected chat completion response: {e!r}") from e


__all__ = ["GptHandler", "GptConfig", "DEFAULT_MODEL", "DEFAULT_BASE_URL"]
