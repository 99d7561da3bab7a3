# src/reporting/models.py
"""Report sync types."""

from __future__ import annotations

from pydantic import BaseModel


class ReportOutcome(BaseModel):
    """Result of one report-sync call. Failures are values, not exceptions."""

    success: bool
    row: int | None = None
    error: str | None = None

    @classmethod
    def ok(cls, row: int | None = None) -> ReportOutcome:
        return cls(success=True, row=row)

    @classmethod
    def failed(cls, error: str) -> ReportOutcome:
        return cls(success=False, error=error)
