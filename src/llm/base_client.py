# src/llm/base_client.py
"""Abstract LLM client: one prompt in, one Completion out."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod

from cloudbatch.llm.models import CommentRequest, Completion, TokenUsage


class BaseLLMClient(ABC):
    """Provider adapters implement ``_call``; timing and packaging live here."""

    provider_name: str = ""

    def __init__(self, model: str) -> None:
        self.model = model

    async def generate(self, request: CommentRequest) -> Completion:
        started = time.monotonic()
        text, usage = await self._call(request)
        return Completion(
            text=text.strip(),
            provider=self.provider_name,
            model=self.model,
            input_tokens=usage.input,
            output_tokens=usage.output,
            latency_ms=int((time.monotonic() - started) * 1000),
        )

    @abstractmethod
    async def _call(self, request: CommentRequest) -> tuple[str, TokenUsage]:
        """Send the request to the provider; return reply text and token usage."""
