# src/reporting/base_reporter.py
"""Abstract report-sync interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from cloudbatch.reporting.models import ReportOutcome


class BaseReporter(ABC):
    """Push one finished batch to an external report target.

    Implementations return a failed ReportOutcome instead of raising.
    """

    @abstractmethod
    async def report(
        self,
        key: str,
        tally: dict[int, int],
        previous_timestamp: datetime | None,
        current_timestamp: datetime,
        summary: str,
        total_points: int,
    ) -> ReportOutcome:
        """Report a batch under ``key``."""
