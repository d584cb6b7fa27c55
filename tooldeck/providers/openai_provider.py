"""OpenAI-compatible provider for chat completions with tools and embeddings.

Each request opens its own ``httpx.AsyncClient`` so the provider can be
awaited from any event loop, including the per-thread loops of the
THREAD execution strategy.
"""

import json
import logging
from typing import Optional

import httpx

from ..errors import EmbeddingError, ModelClientError
from ..tools.calls import ToolCall
from .base import BaseProvider, ProviderConfig
from .registry import register_provider
from .response import ModelRequest, ModelResponse

_log = logging.getLogger(__name__)


@register_provider("openai")
class OpenAIProvider(BaseProvider):
    """OpenAI API provider - supports custom base_url for Azure/proxies."""

    def __init__(
        self,
        config: ProviderConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config)
        self.base_url = (config.base_url or "https://api.openai.com/v1").rstrip("/")
        self._transport = transport

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.timeout, transport=self._transport,
        )

    async def _post(self, path: str, payload: dict) -> dict:
        async with self._client() as client:
            response = await client.post(
                f"{self.base_url}{path}", json=payload, headers=self._headers(),
            )
            response.raise_for_status()
            return response.json()

    async def complete(self, request: ModelRequest) -> ModelResponse:
        """Chat completion with the request's functions offered as tools."""
        payload = {
            "model": request.model or self.config.model,
            "messages": list(request.messages),
            "temperature": self.config.temperature,
        }
        tools = request.tools_json()
        if tools:
            payload["tools"] = tools
        if request.max_response_tokens:
            payload["max_tokens"] = request.max_response_tokens

        try:
            data = await self._post("/chat/completions", payload)
        except (httpx.HTTPError, ValueError) as e:
            raise ModelClientError(f"Chat completion failed: {e}") from e

        choices = data.get("choices", [])
        if not choices:
            raise ModelClientError("Chat completion returned no choices")

        message = choices[0].get("message", {})
        usage = data.get("usage") or {}
        return ModelResponse(
            text=message.get("content") or None,
            tool_calls=tuple(_parse_tool_calls(message.get("tool_calls") or [])),
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            model=data.get("model", payload["model"]),
        )

    async def embed(self, text: str) -> list[float]:
        model = self.config.embedding_model
        if not model:
            raise EmbeddingError("No embedding model configured")
        try:
            data = await self._post("/embeddings", {"model": model, "input": [text]})
        except (httpx.HTTPError, ValueError) as e:
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        items = data.get("data", [])
        if not items or not items[0].get("embedding"):
            raise EmbeddingError("Didn't get embedding vector back")
        return [float(x) for x in items[0]["embedding"]]


def _parse_tool_calls(raw_calls: list) -> list[ToolCall]:
    calls = []
    for i, tc in enumerate(raw_calls):
        if tc.get("type", "function") != "function":
            continue
        fn = tc.get("function", {})
        arguments = fn.get("arguments", "{}")
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        calls.append(
            ToolCall(
                call_id=tc.get("id") or f"call_{i}",
                function_name=fn.get("name", ""),
                arguments=arguments,
            )
        )
    _log.debug("Model requested %d tool call(s)", len(calls))
    return calls
