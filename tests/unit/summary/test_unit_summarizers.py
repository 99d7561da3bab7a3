# tests/unit/summary/test_unit_summarizers.py
"""Tests for the summary package: timeout wrapper, rule-based and LLM summarizers."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from cloudbatch.batch.tally import categorize
from cloudbatch.config.settings import Settings
from cloudbatch.llm.models import CommentRequest, Completion
from cloudbatch.summary.base_summarizer import (
    DEFAULT_SUMMARY,
    BaseSummarizer,
    summarize_with_timeout,
)
from cloudbatch.summary.llm_summarizer import (
    LLMSummarizer,
    build_prompt,
    clean_response,
)
from cloudbatch.summary.rule_based import (
    RuleBasedSummarizer,
    assess_complexity,
    assess_quality,
    build_rule_comment,
)
from cloudbatch.summary.summarizer_factory import create_summarizer

TALLY = {1: 4, 2: 2, 3: 2, 4: 1, 5: 1, 6: 1, 7: 1}


class _Slow(BaseSummarizer):
    async def summarize(self, tally, categories, total_points, name):
        await asyncio.sleep(5)
        return "too late"


class _Broken(BaseSummarizer):
    async def summarize(self, tally, categories, total_points, name):
        raise RuntimeError("model offline")


class _Blank(BaseSummarizer):
    async def summarize(self, tally, categories, total_points, name):
        return "   "


# ---------------------------------------------------------------------------
# summarize_with_timeout
# ---------------------------------------------------------------------------

class TestSummarizeWithTimeout:
    @pytest.mark.asyncio
    async def test_none_summarizer(self):
        assert await summarize_with_timeout(None, TALLY, {}, 12, "k", 1.0) == DEFAULT_SUMMARY

    @pytest.mark.asyncio
    async def test_timeout(self):
        result = await summarize_with_timeout(_Slow(), TALLY, {}, 12, "k", timeout_s=0.01)
        assert result == DEFAULT_SUMMARY

    @pytest.mark.asyncio
    async def test_exception(self):
        assert await summarize_with_timeout(_Broken(), TALLY, {}, 12, "k", 1.0) == DEFAULT_SUMMARY

    @pytest.mark.asyncio
    async def test_blank(self):
        assert await summarize_with_timeout(_Blank(), TALLY, {}, 12, "k", 1.0) == DEFAULT_SUMMARY

    @pytest.mark.asyncio
    async def test_passes_through(self):
        result = await summarize_with_timeout(
            RuleBasedSummarizer(), TALLY, categorize(TALLY), 12, "k", 1.0,
        )
        assert result.startswith("Data contains 7 surface categories")


# ---------------------------------------------------------------------------
# Rule-based
# ---------------------------------------------------------------------------

class TestRuleBased:
    @pytest.mark.parametrize("tally,expected", [
        ({1: 1, 2: 1, 3: 1, 4: 1, 5: 1, 6: 1}, "High"),
        ({1: 1, 2: 1, 3: 1, 4: 1}, "Medium"),
        ({1: 10, 2: 0, 3: 1}, "Low"),
    ])
    def test_complexity(self, tally, expected):
        assert assess_complexity(tally) == expected

    def test_quality(self):
        assert assess_quality({1: 100}, 100) == "Excellent"
        assert assess_quality({1: 90, 42: 10}, 100) == "Good"
        assert assess_quality({1: 75, 42: 25}, 100) == "Fair"
        assert assess_quality({42: 10}, 10) == "Poor"
        assert assess_quality({}, 0) == "Poor"

    def test_low_comment_lists_categories(self):
        comment = build_rule_comment({1: 5, 3: 1}, {"Road Surface": 5, "vehicles": 1})
        assert "simple surface structure" in comment
        assert "Road Surface, vehicles" in comment

    def test_medium_comment(self):
        tally = {1: 1, 2: 1, 3: 1, 4: 1}
        assert "mixed surface features" in build_rule_comment(tally, categorize(tally))

    @pytest.mark.asyncio
    async def test_summarizer(self):
        comment = await RuleBasedSummarizer().summarize(TALLY, categorize(TALLY), 12, "k")
        assert "complex feature distribution" in comment


# ---------------------------------------------------------------------------
# LLM-backed
# ---------------------------------------------------------------------------

class TestCleanResponse:
    def test_strips_prefix_and_symbols(self):
        text = "Comment: The **scene** shows dense road surface with curbs and vehicles near barriers"
        assert clean_response(text) == (
            "scene shows dense road surface with curbs and vehicles near barriers"
        )

    def test_pads_short_reply(self):
        cleaned = clean_response("Dense road.")
        assert len(cleaned.split()) == 10
        assert cleaned.startswith("Dense road.")

    def test_collapses_whitespace(self):
        assert "\n" not in clean_response("one\n two\t three four five six seven eight nine ten")


class TestBuildPrompt:
    def test_mentions_totals_and_dominant(self):
        prompt = build_prompt({"Road Surface": 8, "vehicles": 2, "cubs": 0}, 10)
        assert "10 points" in prompt
        assert "Road Surface: 8, vehicles: 2" in prompt
        assert "cubs" not in prompt
        assert "dominant: Road Surface" in prompt


def _llm(content: str | None = None, error: Exception | None = None) -> MagicMock:
    llm = MagicMock()
    llm.provider_name = "mock"
    if error is not None:
        llm.generate = AsyncMock(side_effect=error)
    else:
        llm.generate = AsyncMock(return_value=Completion(
            text=content or "", model="mock-1", provider="mock",
        ))
    return llm


class TestLLMSummarizer:
    @pytest.mark.asyncio
    async def test_uses_model_reply(self):
        llm = _llm("Road surface dominates with scattered vehicles, curbs and roadside furniture present")
        summarizer = LLMSummarizer(llm, max_tokens=60, temperature=0.3)

        comment = await summarizer.summarize(TALLY, categorize(TALLY), 12, "000025_18")

        assert comment.startswith("Road surface dominates")
        (request,) = llm.generate.call_args.args
        assert isinstance(request, CommentRequest)
        assert request.max_tokens == 60
        assert "point cloud" in request.system
        assert "12 points" in request.prompt

    @pytest.mark.asyncio
    async def test_falls_back_to_rule_comment(self):
        llm = _llm(error=ValueError("invalid api key"))
        comment = await LLMSummarizer(llm).summarize(TALLY, categorize(TALLY), 12, "k")
        assert comment == build_rule_comment(TALLY, categorize(TALLY))


class TestCreateSummarizer:
    def test_rule_default(self):
        assert isinstance(create_summarizer(Settings(_env_file=None)), RuleBasedSummarizer)

    def test_llm(self):
        settings = Settings(_env_file=None, summary_backend="llm", llm_provider="ollama", llm_model="llama3")
        summarizer = create_summarizer(settings)
        assert isinstance(summarizer, LLMSummarizer)
        assert summarizer._llm.provider_name == "ollama"
