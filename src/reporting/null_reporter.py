# src/reporting/null_reporter.py
"""Reporter used when no report target is configured."""

from __future__ import annotations

import logging
from datetime import datetime

from cloudbatch.reporting.base_reporter import BaseReporter
from cloudbatch.reporting.models import ReportOutcome

logger = logging.getLogger(__name__)


class NullReporter(BaseReporter):
    """Log the report instead of sending it anywhere."""

    async def report(
        self,
        key: str,
        tally: dict[int, int],
        previous_timestamp: datetime | None,
        current_timestamp: datetime,
        summary: str,
        total_points: int,
    ) -> ReportOutcome:
        logger.info(
            "Report sync not configured; skipping %s (%d points)", key, total_points,
        )
        return ReportOutcome.failed("report sync not configured")
