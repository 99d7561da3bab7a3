# src/tracking/store.py
"""Whole-file JSON store of tracking records.

The file holds a flat object ``{output_filename: record}``. Every update
reads the full file, modifies it in memory and rewrites it in full; a
single writer process is assumed.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from cloudbatch.errors import TrackingStoreError
from cloudbatch.tracking.models import TrackingRecord, TrackingSummary

logger = logging.getLogger(__name__)


class TrackingStore:
    """Read-modify-write keyed store for TrackingRecord entries."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, TrackingRecord]:
        """Load every record. A missing or unreadable file yields an empty store."""
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Tracking store %s unreadable, starting empty: %s", self._path, e)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Tracking store %s is not a JSON object, starting empty", self._path)
            return {}

        records: dict[str, TrackingRecord] = {}
        for filename, data in raw.items():
            try:
                records[filename] = TrackingRecord.model_validate(data)
            except ValidationError:
                logger.warning("Skipping malformed tracking entry %s", filename)
        return records

    def save(self, records: dict[str, TrackingRecord]) -> None:
        """Rewrite the whole store atomically (temp file + rename).

        Raises:
            TrackingStoreError: If the file cannot be written.
        """
        payload = {
            name: record.model_dump(mode="json", by_alias=True)
            for name, record in records.items()
        }
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            raise TrackingStoreError(f"Cannot write tracking store {self._path}: {e}") from e

    def get(self, filename: str) -> TrackingRecord | None:
        return self.load().get(filename)

    def previous_timestamp(self, filename: str) -> datetime | None:
        record = self.get(filename)
        return record.timestamp if record else None

    def upsert(self, record: TrackingRecord) -> TrackingRecord | None:
        """Insert or replace the record under its filename.

        Returns:
            The record previously stored under that filename, if any.
        """
        records = self.load()
        previous = records.get(record.filename)
        records[record.filename] = record
        self.save(records)
        logger.info(
            "Tracking updated for %s (%d points)", record.filename, record.total_points,
        )
        return previous

    def summarize(self) -> TrackingSummary:
        records = list(self.load().values())
        by_category: dict[str, int] = {}
        for record in records:
            for name, count in record.sf_categories.items():
                by_category[name] = by_category.get(name, 0) + count
        timestamps = sorted(r.timestamp for r in records)
        return TrackingSummary(
            record_count=len(records),
            total_points=sum(r.total_points for r in records),
            by_category=by_category,
            first_timestamp=timestamps[0] if timestamps else None,
            last_timestamp=timestamps[-1] if timestamps else None,
        )
