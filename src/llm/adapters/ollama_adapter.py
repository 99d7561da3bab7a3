# src/llm/adapters/ollama_adapter.py
"""Ollama adapter for a local or LAN inference server."""

from __future__ import annotations

from typing import Any

from cloudbatch.llm.base_client import BaseLLMClient
from cloudbatch.llm.models import CommentRequest, TokenUsage


class OllamaAdapter(BaseLLMClient):
    provider_name = "ollama"

    def __init__(
        self, model: str = "llama3", base_url: str = "http://localhost:11434", **kwargs: Any,
    ) -> None:
        super().__init__(model)
        self._host = base_url
        self._sdk: Any = None

    def _client(self) -> Any:
        if self._sdk is None:
            try:
                import ollama
            except ImportError as e:
                raise ImportError("ollama package required: pip install 'cloudbatch[llm]'") from e
            self._sdk = ollama.AsyncClient(host=self._host)
        return self._sdk

    async def _call(self, request: CommentRequest) -> tuple[str, TokenUsage]:
        messages = [{"role": "user", "content": request.prompt}]
        if request.system:
            messages.insert(0, {"role": "system", "content": request.system})

        response = await self._client().chat(
            model=self.model,
            messages=messages,
            options={"num_predict": request.max_tokens, "temperature": request.temperature},
        )
        return (
            response["message"]["content"],
            TokenUsage(response.get("prompt_eval_count") or 0, response.get("eval_count") or 0),
        )
