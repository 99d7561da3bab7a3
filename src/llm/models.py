# src/llm/models.py
"""Request and response types for comment generation."""

from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel


class TokenUsage(NamedTuple):
    input: int = 0
    output: int = 0


class CommentRequest(BaseModel):
    """A single-turn prompt with an optional system instruction."""

    prompt: str
    system: str | None = None
    max_tokens: int = 60
    temperature: float = 0.3


class Completion(BaseModel):
    """Provider-independent model reply."""

    text: str
    provider: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: int = 0
