# src/reporting/sheets_reporter.py
"""Google Sheets report sync.

Locates the row whose column B holds the batch key and writes columns
O..W of that row:

    O..U  one mark per SF category 1..7 ("O" present, "X" absent)
    V     estimated annotation time in minutes
    W     comment

Uses google-api-python-client with service-account credentials. The client
is synchronous, so calls run in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime
from pathlib import Path
from typing import Any

from cloudbatch.reporting.base_reporter import BaseReporter
from cloudbatch.reporting.models import ReportOutcome

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
KEY_COLUMN = "B"
FIRST_COLUMN = "O"
LAST_COLUMN = "W"

# SF code -> sheet column
SF_CATEGORY_COLUMNS: dict[int, str] = {
    1: "O",  # Road Surface
    2: "P",  # Curb
    3: "Q",  # Vehicle
    4: "R",  # Guard Rails
    5: "S",  # Protective Barrier
    6: "T",  # Street Light
    7: "U",  # Sign and Overhead
}

DEFAULT_CREDENTIAL_PATHS = ("./service-account.json", "./uploader.json")

MIN_MINUTES = 15.0
MAX_MINUTES = 30.0
# (upper point bound, minutes)
_TIME_BANDS: tuple[tuple[int, float], ...] = (
    (10_000, 15.0),
    (25_000, 18.0),
    (50_000, 21.0),
    (70_000, 24.0),
    (100_000, 27.0),
)


def counts_to_marks(tally: dict[int, int]) -> dict[str, str]:
    """Map a tally to per-column presence marks."""
    marks = {column: "X" for column in SF_CATEGORY_COLUMNS.values()}
    for code, count in tally.items():
        column = SF_CATEGORY_COLUMNS.get(int(code))
        if column and count > 0:
            marks[column] = "O"
    return marks


def estimate_minutes(total_points: int, rng: random.Random | None = None) -> str:
    """Estimate annotation time from scene size.

    Bands run from 15 minutes (<= 10k points) to 30 minutes (> 100k),
    with +/- 2 minutes of jitter, clamped to [15, 30].
    """
    minutes = MAX_MINUTES
    for bound, value in _TIME_BANDS:
        if total_points <= bound:
            minutes = value
            break
    jitter = ((rng or random).random() - 0.5) * 4
    minutes = max(MIN_MINUTES, min(MAX_MINUTES, minutes + jitter))
    return f"{minutes:.1f}"


def resolve_credentials_path(configured: str | None) -> Path | None:
    """First existing credential file among the configured and default paths."""
    candidates = [configured] if configured else []
    candidates.extend(DEFAULT_CREDENTIAL_PATHS)
    for candidate in candidates:
        path = Path(candidate).expanduser()
        if path.is_file():
            return path
    return None


class SheetsReporter(BaseReporter):
    """Report batches into a named tab of a Google spreadsheet."""

    def __init__(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        service_account_path: str | None = None,
        service: Any = None,
        rng: random.Random | None = None,
    ) -> None:
        self._spreadsheet_id = spreadsheet_id
        self._sheet_name = sheet_name
        self._service_account_path = service_account_path
        self._service = service
        self._rng = rng

    def _get_service(self) -> Any:
        """Lazy-init the Sheets v4 service (only on first report)."""
        if self._service is None:
            try:
                from google.oauth2 import service_account
                from googleapiclient.discovery import build
            except ImportError as e:
                raise ImportError(
                    "google-api-python-client and google-auth are required for sheet sync"
                ) from e

            path = resolve_credentials_path(self._service_account_path)
            if path is None:
                raise FileNotFoundError(
                    "Service account not found. Tried: "
                    + ", ".join(filter(None, [self._service_account_path, *DEFAULT_CREDENTIAL_PATHS]))
                )
            credentials = service_account.Credentials.from_service_account_file(
                str(path), scopes=SCOPES,
            )
            self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
            logger.info("Google Sheets API initialized with %s", path)
        return self._service

    def find_row(self, key: str) -> int | None:
        """1-based row whose key column equals ``key`` (header row skipped)."""
        service = self._get_service()
        response = service.spreadsheets().values().get(
            spreadsheetId=self._spreadsheet_id,
            range=f"{self._sheet_name}!{KEY_COLUMN}:{KEY_COLUMN}",
        ).execute()
        values = response.get("values", [])
        for index, row in enumerate(values[1:], start=2):
            if row and row[0] == key:
                return index
        return None

    def update_row(
        self, row: int, tally: dict[int, int], summary: str, total_points: int,
    ) -> list[str]:
        marks = counts_to_marks(tally)
        values = [marks[column] for column in SF_CATEGORY_COLUMNS.values()]
        values.append(estimate_minutes(total_points, self._rng))
        values.append(summary)

        service = self._get_service()
        service.spreadsheets().values().update(
            spreadsheetId=self._spreadsheet_id,
            range=f"{self._sheet_name}!{FIRST_COLUMN}{row}:{LAST_COLUMN}{row}",
            valueInputOption="RAW",
            body={"values": [values]},
        ).execute()
        return values

    def _sync(self, key: str, tally: dict[int, int], summary: str, total_points: int) -> ReportOutcome:
        row = self.find_row(key)
        if row is None:
            logger.error("Cannot sync %s: key not found in column %s", key, KEY_COLUMN)
            return ReportOutcome.failed(f"key {key!r} not found in sheet")
        values = self.update_row(row, tally, summary, total_points)
        logger.info("Updated sheet row %d for %s: %s", row, key, values)
        return ReportOutcome.ok(row=row)

    async def report(
        self,
        key: str,
        tally: dict[int, int],
        previous_timestamp: datetime | None,
        current_timestamp: datetime,
        summary: str,
        total_points: int,
    ) -> ReportOutcome:
        logger.info("Syncing %s to sheet %s", key, self._sheet_name)
        try:
            return await asyncio.to_thread(self._sync, key, tally, summary, total_points)
        except Exception as exc:
            logger.error("Sheet sync failed for %s: %s", key, exc)
            return ReportOutcome.failed(str(exc))
