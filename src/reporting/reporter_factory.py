# src/reporting/reporter_factory.py
"""Factory: instantiate the report-sync backend from settings."""

from __future__ import annotations

from cloudbatch.config.settings import Settings
from cloudbatch.reporting.base_reporter import BaseReporter
from cloudbatch.reporting.null_reporter import NullReporter


def create_reporter(settings: Settings) -> BaseReporter:
    """Google Sheets when SHEET_ID and SHEET_NAME are set, else a no-op reporter."""
    if not settings.sheets_enabled:
        return NullReporter()

    from cloudbatch.reporting.sheets_reporter import SheetsReporter

    return SheetsReporter(
        spreadsheet_id=settings.sheet_id,
        sheet_name=settings.sheet_name,
        service_account_path=settings.service_account_path or None,
    )
