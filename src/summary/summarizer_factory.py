# src/summary/summarizer_factory.py
"""Factory: pick the summarizer backend from settings."""

from __future__ import annotations

import logging

from cloudbatch.config.settings import Settings
from cloudbatch.summary.base_summarizer import BaseSummarizer
from cloudbatch.summary.rule_based import RuleBasedSummarizer

logger = logging.getLogger(__name__)


def create_summarizer(settings: Settings) -> BaseSummarizer:
    """Create the summarizer for ``SUMMARY_BACKEND``.

    Raises:
        ValueError: If the backend is not supported.
    """
    if settings.summary_backend == "rule":
        return RuleBasedSummarizer()

    if settings.summary_backend == "llm":
        from cloudbatch.llm.client_factory import create_llm_client
        from cloudbatch.summary.llm_summarizer import LLMSummarizer

        llm = create_llm_client(settings.llm_provider, settings.llm_model, settings)
        logger.info("Summaries via %s:%s", settings.llm_provider, settings.llm_model)
        return LLMSummarizer(
            llm,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        )

    raise ValueError(f"Unsupported summary backend: {settings.summary_backend!r}")
