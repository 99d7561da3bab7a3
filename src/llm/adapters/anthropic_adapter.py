# src/llm/adapters/anthropic_adapter.py
"""Anthropic Messages API adapter. The SDK is imported on first use."""

from __future__ import annotations

from typing import Any

from cloudbatch.llm.base_client import BaseLLMClient
from cloudbatch.llm.models import CommentRequest, TokenUsage


class AnthropicAdapter(BaseLLMClient):
    provider_name = "anthropic"

    def __init__(
        self, model: str = "claude-sonnet-4-20250514", api_key: str | None = None, **kwargs: Any,
    ) -> None:
        super().__init__(model)
        self._api_key = api_key
        self._sdk: Any = None

    def _client(self) -> Any:
        if self._sdk is None:
            try:
                import anthropic
            except ImportError as e:
                raise ImportError(
                    "anthropic package required: pip install 'cloudbatch[llm]'"
                ) from e
            self._sdk = anthropic.AsyncAnthropic(api_key=self._api_key or None)
        return self._sdk

    async def _call(self, request: CommentRequest) -> tuple[str, TokenUsage]:
        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [{"role": "user", "content": request.prompt}],
        }
        if request.system:
            params["system"] = request.system

        response = await self._client().messages.create(**params)
        text = next(
            (block.text for block in response.content if getattr(block, "type", None) == "text"),
            "",
        )
        return text, TokenUsage(response.usage.input_tokens, response.usage.output_tokens)
