# src/batch/scanner.py
"""Reconciliation scan of the intake directory.

Filesystem notifications can be missed, coalesced or reordered, and a
restart drops in-memory batch state. A scan re-derives batch membership
from the files actually present, through the same arrival handling as
live events, so it is safe to run at any time.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from cloudbatch.batch.models import ReconcileResult
from cloudbatch.batch.prefix import FileKind

if TYPE_CHECKING:
    from cloudbatch.batch.coordinator import BatchCoordinator

logger = logging.getLogger(__name__)


class IntakeScanner:
    """Feed files already present in the intake directory to the coordinator.

    Order within one pass:
        1. anchors, sorted by name (the first one opens a batch)
        2. members, sorted by name
    """

    def __init__(self, intake_dir: Path, coordinator: BatchCoordinator) -> None:
        self._intake_dir = Path(intake_dir)
        self._coordinator = coordinator

    def scan(self) -> tuple[list[Path], list[Path]]:
        """Return (anchors, members) currently in the intake directory."""
        if not self._intake_dir.is_dir():
            msg = f"Intake directory is not a directory: {self._intake_dir}"
            raise ValueError(msg)

        anchors: list[Path] = []
        members: list[Path] = []
        for path in sorted(self._intake_dir.iterdir()):
            if not path.is_file():
                continue
            kind = self._coordinator.classify(path.name)
            if kind is FileKind.ANCHOR:
                anchors.append(path)
            elif kind is FileKind.MEMBER:
                members.append(path)
        return anchors, members

    async def reconcile(self) -> ReconcileResult:
        """Replay present files as arrivals. Skipped while a batch is finalizing."""
        result = ReconcileResult(scan_root=str(self._intake_dir))
        if self._coordinator.is_finalizing:
            logger.debug("Batch finalizing, skipping reconcile")
            result.skipped = True
            return result

        anchors, members = self.scan()
        result.files_found = len(anchors) + len(members)
        if result.files_found:
            logger.info(
                "Reconcile found %d anchor and %d member files in %s",
                len(anchors), len(members), self._intake_dir,
            )

        for path in [*anchors, *members]:
            outcome = await self._coordinator.handle_arrival(path)
            result.outcomes[outcome] = result.outcomes.get(outcome, 0) + 1
        return result
