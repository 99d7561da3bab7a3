# src/summary/base_summarizer.py
"""Abstract summarizer interface and the bounded-wait wrapper used by finalize."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY = "Completed. No problem. Review GOOD"


class BaseSummarizer(ABC):
    """Produce a one-line comment describing a batch's point distribution."""

    @abstractmethod
    async def summarize(
        self,
        tally: dict[int, int],
        categories: dict[str, int],
        total_points: int,
        name: str,
    ) -> str:
        """Return a short comment for the report row."""


async def summarize_with_timeout(
    summarizer: BaseSummarizer | None,
    tally: dict[int, int],
    categories: dict[str, int],
    total_points: int,
    name: str,
    timeout_s: float,
) -> str:
    """Call the summarizer, falling back to DEFAULT_SUMMARY.

    Never raises and never waits longer than ``timeout_s``.
    """
    if summarizer is None:
        return DEFAULT_SUMMARY
    try:
        summary = await asyncio.wait_for(
            summarizer.summarize(tally, categories, total_points, name),
            timeout=timeout_s,
        )
    except asyncio.TimeoutError:
        logger.warning("Summary for %s timed out after %.1fs, using default", name, timeout_s)
        return DEFAULT_SUMMARY
    except Exception:
        logger.warning("Summary for %s failed, using default", name, exc_info=True)
        return DEFAULT_SUMMARY

    if not isinstance(summary, str) or not summary.strip():
        return DEFAULT_SUMMARY
    return summary.strip()
