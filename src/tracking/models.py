# src/tracking/models.py
"""Tracking record: persisted per-batch tally summary.

Field aliases keep the on-disk JSON in the camelCase layout of the
existing ``sf_tracking.json`` files.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from cloudbatch.batch.tally import categorize, total_points


class TrackingRecord(BaseModel):
    """One completed batch, keyed by its output filename."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str
    timestamp: datetime
    total_points: int = Field(alias="totalPoints")
    sf_counts: dict[int, int] = Field(alias="sfCounts")
    sf_categories: dict[str, int] = Field(default_factory=dict, alias="sfCategories")

    @classmethod
    def from_tally(
        cls, filename: str, tally: dict[int, int], timestamp: datetime,
    ) -> TrackingRecord:
        return cls(
            filename=filename,
            timestamp=timestamp,
            total_points=total_points(tally),
            sf_counts=dict(tally),
            sf_categories=categorize(tally),
        )


class TrackingSummary(BaseModel):
    """Aggregate view over the whole store (used by ``cloudbatch stats``)."""

    record_count: int
    total_points: int
    by_category: dict[str, int] = Field(default_factory=dict)
    first_timestamp: datetime | None = None
    last_timestamp: datetime | None = None
