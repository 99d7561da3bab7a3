# tests/unit/logging/test_unit_logger.py
"""Tests for logging/logger.py: logger factory and formatters."""

from __future__ import annotations

import json
import logging
import sys

from cloudbatch.logging.context import clear_context, set_batch_context, step_context
from cloudbatch.logging.logger import JsonFormatter, TextFormatter, get_logger, setup_logging


def _record(msg: str = "Hello", level: int = logging.INFO, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="cloudbatch.test", level=level, pathname="", lineno=0,
        msg=msg, args=(), exc_info=exc_info,
    )


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert parsed["logger"] == "cloudbatch.test"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        set_batch_context("000025_18")
        with step_context("merge"):
            parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["context"] == {"batch_key": "000025_18", "step": "merge"}

    def test_format_with_data(self):
        record = _record()
        record.data = {"points": 12}
        parsed = json.loads(JsonFormatter().format(record))
        assert parsed["data"] == {"points": 12}

    def test_format_exception(self):
        try:
            raise ValueError("bad line")
        except ValueError:
            record = _record(level=logging.ERROR, exc_info=sys.exc_info())
        parsed = json.loads(JsonFormatter().format(record))
        assert "ValueError: bad line" in parsed["exception"]


class TestTextFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_includes_batch_and_step(self):
        set_batch_context("000025_18")
        with step_context("report"):
            output = TextFormatter().format(_record())
        assert "[000025_18]" in output
        assert "(report)" in output


class TestGetLogger:
    def test_returns_logger(self):
        assert get_logger("watcher").name == "cloudbatch.watcher"


class TestSetupLogging:
    def test_setup_json(self):
        setup_logging(level="DEBUG", log_format="json")
        root = logging.getLogger("cloudbatch")
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_setup_text(self):
        setup_logging(level="INFO", log_format="text")
        root = logging.getLogger("cloudbatch")
        assert root.level == logging.INFO
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_reinit_does_not_stack_handlers(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("cloudbatch").handlers) == 1

    def test_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "watch.log"
        setup_logging(log_file=str(log_file))
        root = logging.getLogger("cloudbatch")
        try:
            assert len(root.handlers) == 2
            root.info("to file")
            for handler in root.handlers:
                handler.flush()
            assert "to file" in log_file.read_text()
        finally:
            for handler in root.handlers[1:]:
                handler.close()
            setup_logging()

    def test_quiets_watchdog(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger("watchdog").level == logging.WARNING
