# src/batch/models.py
"""Batch assembly models: batch state variants, arrival outcomes, BatchResult.

The in-flight batch is a tagged union on ``status``. An empty state never
carries a key or members, and a finalizing batch is frozen, so invalid
combinations (a closed batch still holding members) cannot be built.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class ArrivalOutcome(str, Enum):
    """What the coordinator did with one arrival notification."""

    OPENED = "opened"        # anchor started a new batch
    ACCEPTED = "accepted"    # member joined the open batch
    DUPLICATE = "duplicate"  # path already part of the batch
    REJECTED = "rejected"    # valid file that cannot join right now
    IGNORED = "ignored"      # not batch input, no batch, or unusable name


class EmptyBatch(BaseModel):
    """Rest state: nothing in flight."""

    model_config = ConfigDict(frozen=True)

    status: Literal["empty"] = "empty"


class OpenBatch(BaseModel):
    """A batch with an anchor, accepting members."""

    status: Literal["open"] = "open"
    key: str
    anchor_path: str
    member_paths: list[str] = Field(default_factory=list)
    seen: set[str] = Field(default_factory=set)
    opened_at: datetime

    @property
    def is_complete(self) -> bool:
        """An anchor plus at least one member arms the completion timer."""
        return bool(self.member_paths)

    def add_member(self, path: str) -> None:
        self.member_paths.append(path)
        self.seen.add(path)


class FinalizingBatch(BaseModel):
    """A batch whose completion trigger fired; no further members join."""

    model_config = ConfigDict(frozen=True)

    status: Literal["finalizing"] = "finalizing"
    key: str
    anchor_path: str
    member_paths: tuple[str, ...]
    opened_at: datetime

    @classmethod
    def from_open(cls, batch: OpenBatch) -> FinalizingBatch:
        return cls(
            key=batch.key,
            anchor_path=batch.anchor_path,
            member_paths=tuple(batch.member_paths),
            opened_at=batch.opened_at,
        )


BatchState = Annotated[
    Union[EmptyBatch, OpenBatch, FinalizingBatch],
    Field(discriminator="status"),
]


class BatchResult(BaseModel):
    """Summary of one finalized batch."""

    key: str
    anchor_path: str
    archived_path: str | None = None
    member_count: int
    output_path: str | None = None
    merged_lines: int = 0
    files_skipped: list[str] = Field(default_factory=list)
    tally: dict[int, int] = Field(default_factory=dict)
    total_points: int = 0
    previous_timestamp: datetime | None = None
    current_timestamp: datetime | None = None
    summary: str | None = None
    reported: bool = False
    files_cleared: int = 0
    steps_failed: list[str] = Field(default_factory=list)
    steps_skipped: list[str] = Field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.steps_failed


class ReconcileResult(BaseModel):
    """Outcome counts of one reconciliation pass over the intake directory."""

    scan_root: str
    files_found: int = 0
    skipped: bool = False
    outcomes: dict[ArrivalOutcome, int] = Field(default_factory=dict)

    def count(self, outcome: ArrivalOutcome) -> int:
        return self.outcomes.get(outcome, 0)
