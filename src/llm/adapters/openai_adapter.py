# src/llm/adapters/openai_adapter.py
"""OpenAI chat-completions adapter. The SDK is imported on first use."""

from __future__ import annotations

from typing import Any

from cloudbatch.llm.base_client import BaseLLMClient
from cloudbatch.llm.models import CommentRequest, TokenUsage


class OpenAIAdapter(BaseLLMClient):
    provider_name = "openai"

    def __init__(self, model: str = "gpt-4o-mini", api_key: str | None = None, **kwargs: Any) -> None:
        super().__init__(model)
        self._api_key = api_key
        self._sdk: Any = None

    def _client(self) -> Any:
        if self._sdk is None:
            try:
                import openai
            except ImportError as e:
                raise ImportError("openai package required: pip install 'cloudbatch[llm]'") from e
            self._sdk = openai.AsyncOpenAI(api_key=self._api_key or None)
        return self._sdk

    async def _call(self, request: CommentRequest) -> tuple[str, TokenUsage]:
        messages = [{"role": "user", "content": request.prompt}]
        if request.system:
            messages.insert(0, {"role": "system", "content": request.system})

        response = await self._client().chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
        )
        usage = response.usage
        return (
            response.choices[0].message.content or "",
            TokenUsage(usage.prompt_tokens, usage.completion_tokens) if usage else TokenUsage(),
        )
