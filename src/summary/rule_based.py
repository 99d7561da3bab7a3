# src/summary/rule_based.py
"""Deterministic data-characteristics comment, no external calls."""

from __future__ import annotations

import logging
from typing import Literal

from cloudbatch.batch.tally import SF_CATEGORIES
from cloudbatch.summary.base_summarizer import BaseSummarizer

Complexity = Literal["High", "Medium", "Low"]
Quality = Literal["Excellent", "Good", "Fair", "Poor"]

logger = logging.getLogger(__name__)


def assess_complexity(tally: dict[int, int]) -> Complexity:
    """Complexity from the number of categories with at least one point."""
    active = sum(1 for count in tally.values() if count > 0)
    if active >= 6:
        return "High"
    if active >= 4:
        return "Medium"
    return "Low"


def assess_quality(tally: dict[int, int], total_points: int) -> Quality:
    """Share of points carrying a known classification code."""
    if total_points <= 0:
        return "Poor"
    valid = sum(count for code, count in tally.items() if code in SF_CATEGORIES)
    ratio = valid / total_points
    if ratio >= 0.95:
        return "Excellent"
    if ratio >= 0.85:
        return "Good"
    if ratio >= 0.70:
        return "Fair"
    return "Poor"


def build_rule_comment(tally: dict[int, int], categories: dict[str, int]) -> str:
    active = [name for name, count in categories.items() if count > 0]
    names = ", ".join(active)
    complexity = assess_complexity(tally)

    if complexity == "High":
        return (
            f"Data contains {len(active)} surface categories including {names} "
            "with complex feature distribution patterns"
        )
    if complexity == "Low":
        return (
            f"Data shows simple surface structure with {names} categories "
            "and straightforward point distribution patterns"
        )
    return (
        f"Data exhibits mixed surface features with {names} categories "
        "and moderate point density distribution"
    )


class RuleBasedSummarizer(BaseSummarizer):
    """Summarizer that never leaves the process."""

    async def summarize(
        self,
        tally: dict[int, int],
        categories: dict[str, int],
        total_points: int,
        name: str,
    ) -> str:
        logger.debug(
            "%s: complexity=%s quality=%s",
            name, assess_complexity(tally), assess_quality(tally, total_points),
        )
        return build_rule_comment(tally, categories)
