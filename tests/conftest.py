# tests/conftest.py
"""Shared test fixtures for all unit and integration tests.

Provides temp intake/results/bin directories, point-file writers, a
recording reporter and a coordinator factory. No network access: report
sync and summaries are faked.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import pytest

from cloudbatch.batch.coordinator import BatchCoordinator
from cloudbatch.reporting.base_reporter import BaseReporter
from cloudbatch.reporting.models import ReportOutcome
from cloudbatch.storage.local_store import LocalStore
from cloudbatch.summary.base_summarizer import BaseSummarizer
from cloudbatch.tracking.store import TrackingStore


ANCHOR_NAME = "000025_18_quebec_2022-02-14T11_27_05.918683Z_r30m_fov360deg_margin10.bin"
FIXED_NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def point_lines(*codes: float) -> str:
    """Render one ``x y z sf`` line per code."""
    return "\n".join(
        f"-0.{i}2886816 -27.54355812 -2.18630981 {code:.6f}"
        for i, code in enumerate(codes)
    ) + "\n"


# === FIXTURES: Fakes ===


class RecordingReporter(BaseReporter):
    """Reporter that records every call and returns a fixed outcome."""

    def __init__(self, outcome: ReportOutcome | None = None, error: Exception | None = None):
        self.calls: list[dict] = []
        self._outcome = outcome or ReportOutcome.ok(row=2)
        self._error = error

    async def report(
        self, key, tally, previous_timestamp, current_timestamp, summary, total_points,
    ) -> ReportOutcome:
        self.calls.append({
            "key": key,
            "tally": dict(tally),
            "previous_timestamp": previous_timestamp,
            "current_timestamp": current_timestamp,
            "summary": summary,
            "total_points": total_points,
        })
        if self._error is not None:
            raise self._error
        return self._outcome


class StaticSummarizer(BaseSummarizer):
    def __init__(self, text: str = "Simple scene. Review GOOD"):
        self.text = text
        self.calls = 0

    async def summarize(self, tally, categories, total_points, name) -> str:
        self.calls += 1
        return self.text


# === FIXTURES: Directories and stores ===


@pytest.fixture
def documents_dir(tmp_path: Path) -> Path:
    """Documents root with input/, results/ and bin/ created."""
    for sub in ("input", "results", "bin"):
        (tmp_path / sub).mkdir()
    return tmp_path


@pytest.fixture
def intake_dir(documents_dir: Path) -> Path:
    return documents_dir / "input"


@pytest.fixture
def results_dir(documents_dir: Path) -> Path:
    return documents_dir / "results"


@pytest.fixture
def archive_dir(documents_dir: Path) -> Path:
    return documents_dir / "bin"


@pytest.fixture
def local_store(intake_dir: Path, results_dir: Path, archive_dir: Path) -> LocalStore:
    return LocalStore(intake_dir, results_dir, archive_dir)


@pytest.fixture
def tracking_store(results_dir: Path) -> TrackingStore:
    return TrackingStore(results_dir / "sf_tracking.json")


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def summarizer() -> StaticSummarizer:
    return StaticSummarizer()


@pytest.fixture
def make_coordinator(
    local_store: LocalStore,
    tracking_store: TrackingStore,
    reporter: RecordingReporter,
    summarizer: StaticSummarizer,
) -> Callable[..., BatchCoordinator]:
    """Factory for coordinators wired to the temp directories.

    Defaults to a short completion timeout and a fixed clock.
    """
    def _make(**kwargs) -> BatchCoordinator:
        kwargs.setdefault("completion_timeout", 0.05)
        kwargs.setdefault("clock", lambda: FIXED_NOW)
        return BatchCoordinator(
            kwargs.pop("store", local_store),
            kwargs.pop("tracking", tracking_store),
            kwargs.pop("reporter", reporter),
            kwargs.pop("summarizer", summarizer),
            **kwargs,
        )
    return _make


# === FIXTURES: Sample batch ===


@pytest.fixture
def write_file(intake_dir: Path) -> Callable[[str, str], Path]:
    def _write(name: str, content: str = "") -> Path:
        path = intake_dir / name
        path.write_text(content, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def sample_batch(write_file) -> dict[str, Path]:
    """The 000025_18 batch: one anchor and three members, 12 points."""
    return {
        "anchor": write_file(ANCHOR_NAME, "binary-ish payload"),
        "m1": write_file("000025_18_0001.txt", point_lines(1, 2, 1, 3)),
        "m2": write_file("000025_18_0002.txt", point_lines(4, 5, 6, 7)),
        "m3": write_file("000025_18_0003.txt", point_lines(1, 2, 3, 1)),
    }


@pytest.fixture
def points() -> Callable[..., str]:
    return point_lines


@pytest.fixture
def anchor_name() -> str:
    return ANCHOR_NAME


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def failing_reporter() -> RecordingReporter:
    return RecordingReporter(error=RuntimeError("sheet API down"))
