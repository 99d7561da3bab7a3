# tests/integration/logging/test_int_logging_subsystem.py
"""Integration tests for the logging subsystem during a real finalize.

Covers: logging/logger.py, logging/context.py and the coordinator's use of them.
"""

from __future__ import annotations

import io
import json
import logging

import pytest

from cloudbatch.logging.context import get_context
from cloudbatch.logging.logger import JsonFormatter, TextFormatter, setup_logging


@pytest.fixture
def captured():
    """Attach an in-memory handler to the cloudbatch root logger."""
    setup_logging(level="DEBUG")
    root = logging.getLogger("cloudbatch")
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    root.addHandler(handler)
    yield stream, handler
    root.removeHandler(handler)


class TestFinalizeLogging:
    @pytest.mark.asyncio
    async def test_json_records_carry_batch_and_step(
        self, captured, make_coordinator, sample_batch, failing_reporter,
    ):
        stream, handler = captured
        handler.setFormatter(JsonFormatter())
        coord = make_coordinator(completion_timeout=30, reporter=failing_reporter)
        for path in sample_batch.values():
            await coord.handle_arrival(path)

        await coord.process_now()

        entries = [json.loads(line) for line in stream.getvalue().splitlines()]
        failure = next(e for e in entries if "Step 'report' failed" in e["message"])
        assert failure["level"] == "ERROR"
        assert failure["context"] == {"batch_key": "000025_18", "step": "report"}
        assert "sheet API down" in failure["exception"]

        merged = next(e for e in entries if e["message"].startswith("Merged 3 files"))
        assert merged["context"]["step"] == "merge"

        opened = next(e for e in entries if e["message"].startswith("Started batch"))
        assert "context" not in opened

    @pytest.mark.asyncio
    async def test_context_cleared_after_finalize(self, make_coordinator, sample_batch):
        coord = make_coordinator(completion_timeout=30)
        for path in sample_batch.values():
            await coord.handle_arrival(path)
        await coord.process_now()
        assert get_context().as_dict() == {}

    @pytest.mark.asyncio
    async def test_text_format(self, captured, make_coordinator, sample_batch):
        stream, handler = captured
        handler.setFormatter(TextFormatter())
        coord = make_coordinator(completion_timeout=30)
        for path in sample_batch.values():
            await coord.handle_arrival(path)
        await coord.process_now()

        lines = stream.getvalue().splitlines()
        assert any("[000025_18] (archive)" in line and "Archived" in line for line in lines)
