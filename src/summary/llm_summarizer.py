# src/summary/llm_summarizer.py
"""LLM-backed comment generator with rule-based fallback."""

from __future__ import annotations

import logging
import re

from cloudbatch.batch.tally import dominant_category
from cloudbatch.llm.base_client import BaseLLMClient
from cloudbatch.llm.models import CommentRequest
from cloudbatch.llm.retry import with_retry
from cloudbatch.summary.base_summarizer import BaseSummarizer
from cloudbatch.summary.rule_based import build_rule_comment

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are analyzing point cloud data characteristics. Comment on the data "
    "features, surface categories, and point distribution patterns (minimum 10 "
    "words). Focus on data properties, not annotation quality."
)
MIN_WORDS = 10
_PAD_WORDS = ["data", "shows", "surface", "features", "with", "point", "distribution", "patterns"]
_FALLBACK_SENTENCE = (
    "Data shows surface features with point distribution patterns across multiple categories"
)


def build_prompt(categories: dict[str, int], total_points: int) -> str:
    breakdown = ", ".join(
        f"{name}: {count}" for name, count in categories.items() if count > 0
    )
    return (
        f"Data analysis: {total_points} points, categories: {breakdown}, "
        f"dominant: {dominant_category(categories)}. "
        "Comment on data characteristics (minimum 10 words):"
    )


def clean_response(text: str) -> str:
    """Normalize a model reply into a plain one-line comment of >= 10 words."""
    cleaned = re.sub(r"[^\w\s.,!?-]", "", text)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    cleaned = re.sub(r"^(comment|result|answer|response)[:\s]*", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"^(the|a|an)\s+", "", cleaned, flags=re.IGNORECASE)

    words = cleaned.split()
    if len(words) < MIN_WORDS:
        words = words + _PAD_WORDS[: MIN_WORDS - len(words)]
        cleaned = " ".join(words)

    if len(cleaned) < 10:
        return _FALLBACK_SENTENCE
    return cleaned


class LLMSummarizer(BaseSummarizer):
    """Ask an LLM for a short comment; fall back to the rule-based text."""

    def __init__(
        self,
        llm: BaseLLMClient,
        max_tokens: int = 60,
        temperature: float = 0.3,
    ) -> None:
        self._llm = llm
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def summarize(
        self,
        tally: dict[int, int],
        categories: dict[str, int],
        total_points: int,
        name: str,
    ) -> str:
        prompt = build_prompt(categories, total_points)
        logger.info("Generating comment for %s via %s", name, self._llm.provider_name)
        request = CommentRequest(
            prompt=prompt,
            system=SYSTEM_PROMPT,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )
        try:
            completion = await with_retry(self._llm.generate, request, caller="summarizer")
        except Exception as exc:
            logger.warning("LLM comment failed for %s (%s), using rule-based comment", name, exc)
            return build_rule_comment(tally, categories)

        comment = clean_response(completion.text)
        logger.info("Comment generated for %s: %s", name, comment)
        return comment
