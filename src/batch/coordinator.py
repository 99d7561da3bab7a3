# src/batch/coordinator.py
"""Batch assembly state machine.

Owns the single in-flight batch and turns an unordered stream of arrival
notifications into exactly one finalize per batch:

    Empty --anchor--> Open --member--> Open ... --timer--> Finalizing --> Empty

Member policy (``member_matching``):
    loose   any member file joins the open batch. Only one batch is ever
            open, so files sharing the intake directory belong to it.
            A member with no derivable key (e.g. "0001.txt") is still ignored.
    strict  a member joins only when its own key equals the batch key.

Finalize runs its steps in a fixed order. A failing step is logged and
recorded in BatchResult.steps_failed; later steps still run, and the state
always returns to Empty.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterator, Literal

from cloudbatch.batch.merger import merge_files
from cloudbatch.batch.models import (
    ArrivalOutcome,
    BatchResult,
    BatchState,
    EmptyBatch,
    FinalizingBatch,
    OpenBatch,
)
from cloudbatch.batch.prefix import (
    DEFAULT_ANCHOR_SUFFIX,
    DEFAULT_MEMBER_SUFFIX,
    FileKind,
    classify,
    extract_anchor_key,
    extract_member_key,
    reporting_key,
    result_filename,
)
from cloudbatch.batch.tally import categorize, tally_features, total_points
from cloudbatch.logging.context import clear_context, set_batch_context, step_context
from cloudbatch.summary.base_summarizer import summarize_with_timeout
from cloudbatch.tracking.models import TrackingRecord

if TYPE_CHECKING:
    from cloudbatch.config.settings import Settings
    from cloudbatch.reporting.base_reporter import BaseReporter
    from cloudbatch.storage.local_store import LocalStore
    from cloudbatch.summary.base_summarizer import BaseSummarizer
    from cloudbatch.tracking.store import TrackingStore

logger = logging.getLogger(__name__)

MatchingPolicy = Literal["loose", "strict"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BatchCoordinator:
    """Serial batch assembly over one intake directory."""

    def __init__(
        self,
        store: LocalStore,
        tracking: TrackingStore,
        reporter: BaseReporter | None = None,
        summarizer: BaseSummarizer | None = None,
        *,
        completion_timeout: float = 10.0,
        member_matching: MatchingPolicy = "loose",
        anchor_suffix: str = DEFAULT_ANCHOR_SUFFIX,
        member_suffix: str = DEFAULT_MEMBER_SUFFIX,
        result_suffix: str = "_result",
        summary_timeout: float = 15.0,
        clock: Callable[[], datetime] = _utcnow,
        history_size: int = 50,
    ) -> None:
        if member_matching not in ("loose", "strict"):
            raise ValueError(f"Unknown member matching policy: {member_matching!r}")
        self._store = store
        self._tracking = tracking
        self._reporter = reporter
        self._summarizer = summarizer
        self._completion_timeout = completion_timeout
        self._member_matching: MatchingPolicy = member_matching
        self._anchor_suffix = anchor_suffix
        self._member_suffix = member_suffix
        self._result_suffix = result_suffix
        self._summary_timeout = summary_timeout
        self._clock = clock

        self._state: BatchState = EmptyBatch()
        self._lock = asyncio.Lock()
        self._timer: asyncio.Task[BatchResult | None] | None = None
        self._finalizing: asyncio.Task[BatchResult] | None = None
        self._history: deque[BatchResult] = deque(maxlen=history_size)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: LocalStore,
        tracking: TrackingStore,
        reporter: BaseReporter | None = None,
        summarizer: BaseSummarizer | None = None,
    ) -> BatchCoordinator:
        return cls(
            store,
            tracking,
            reporter,
            summarizer,
            completion_timeout=settings.completion_timeout_seconds,
            member_matching=settings.member_matching,
            anchor_suffix=settings.anchor_suffix,
            member_suffix=settings.member_suffix,
            result_suffix=settings.result_suffix,
            summary_timeout=settings.summary_timeout_seconds,
        )

    # --- Introspection ---

    @property
    def state(self) -> BatchState:
        return self._state

    @property
    def is_idle(self) -> bool:
        return isinstance(self._state, EmptyBatch)

    @property
    def is_finalizing(self) -> bool:
        return isinstance(self._state, FinalizingBatch)

    @property
    def pending_completion(self) -> asyncio.Task[BatchResult | None] | None:
        """The armed completion countdown, if any."""
        if self._timer is not None and not self._timer.done():
            return self._timer
        return None

    @property
    def history(self) -> list[BatchResult]:
        """Recently finalized batches, oldest first."""
        return list(self._history)

    def classify(self, filename: str) -> FileKind:
        return classify(filename, self._anchor_suffix, self._member_suffix)

    # --- Arrival handling ---

    async def handle_arrival(self, path: str | Path) -> ArrivalOutcome:
        """Feed one file-arrival notification into the state machine.

        Safe to call repeatedly for the same path: repeats are no-ops.
        """
        file_path = Path(path)
        name = file_path.name
        kind = self.classify(name)
        if kind is FileKind.OTHER:
            logger.debug("Ignoring non-batch file: %s", name)
            return ArrivalOutcome.IGNORED
        if not file_path.is_file():
            logger.debug("Ignoring stale notification, file gone: %s", name)
            return ArrivalOutcome.IGNORED

        canonical = str(file_path.resolve())
        async with self._lock:
            if kind is FileKind.ANCHOR:
                return self._on_anchor(canonical, name)
            return self._on_member(canonical, name)

    def _on_anchor(self, path: str, name: str) -> ArrivalOutcome:
        state = self._state
        if isinstance(state, (OpenBatch, FinalizingBatch)):
            if path == state.anchor_path:
                logger.debug("Anchor already tracked: %s", name)
                return ArrivalOutcome.DUPLICATE
            logger.warning(
                "Batch %s still %s, not starting a new batch for %s",
                state.key, state.status, name,
            )
            return ArrivalOutcome.REJECTED

        key = extract_anchor_key(name)
        if key is None:
            logger.warning("Could not extract batch key from anchor: %s", name)
            return ArrivalOutcome.IGNORED

        self._state = OpenBatch(
            key=key, anchor_path=path, seen={path}, opened_at=self._clock(),
        )
        logger.info("Started batch %s from %s, waiting for members", key, name)
        return ArrivalOutcome.OPENED

    def _on_member(self, path: str, name: str) -> ArrivalOutcome:
        state = self._state
        if isinstance(state, EmptyBatch):
            logger.warning("No active batch, ignoring member: %s", name)
            return ArrivalOutcome.IGNORED
        if isinstance(state, FinalizingBatch):
            if path in state.member_paths:
                return ArrivalOutcome.DUPLICATE
            logger.warning("Batch %s is finalizing, not accepting %s", state.key, name)
            return ArrivalOutcome.REJECTED

        if path in state.seen:
            logger.debug("Already in batch %s: %s", state.key, name)
            return ArrivalOutcome.DUPLICATE

        member_key = extract_member_key(name, self._member_suffix)
        if member_key is None:
            logger.warning("Could not extract batch key from member: %s", name)
            return ArrivalOutcome.IGNORED

        if self._member_matching == "strict" and member_key != state.key:
            logger.warning(
                "Member %s (key %s) does not match batch %s, rejecting",
                name, member_key, state.key,
            )
            return ArrivalOutcome.REJECTED

        state.add_member(path)
        logger.info(
            "Member %s joined batch %s (%d members)",
            name, state.key, len(state.member_paths),
        )
        if state.is_complete:
            self._schedule_completion(state.key)
        return ArrivalOutcome.ACCEPTED

    # --- Completion timer ---

    def _schedule_completion(self, key: str) -> None:
        """(Re)start the single completion countdown."""
        self._cancel_timer()
        self._timer = asyncio.create_task(
            self._countdown(key), name=f"cloudbatch-complete-{key}",
        )

    def _cancel_timer(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is None or timer.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if timer is not current:
            timer.cancel()

    async def _countdown(self, key: str) -> BatchResult | None:
        await asyncio.sleep(self._completion_timeout)
        # Past this point the countdown is no longer cancelable
        self._timer = None
        logger.debug("No new members for %.1fs, finalizing %s", self._completion_timeout, key)
        return await self.finalize(expected_key=key)

    # --- Finalize ---

    async def process_now(self) -> BatchResult | None:
        """Finalize the open batch immediately, without waiting for the timer."""
        self._cancel_timer()
        return await self.finalize()

    async def finalize(self, expected_key: str | None = None) -> BatchResult | None:
        """Close the open batch and run every finalize step.

        Returns None when there is no open batch (or it is not
        ``expected_key``), so a late timer cannot finalize twice.
        """
        async with self._lock:
            state = self._state
            if not isinstance(state, OpenBatch):
                return None
            if expected_key is not None and state.key != expected_key:
                return None
            batch = FinalizingBatch.from_open(state)
            self._state = batch
            self._cancel_timer()
            task = asyncio.create_task(
                self._finalize_batch(batch), name=f"cloudbatch-finalize-{batch.key}",
            )
            self._finalizing = task

        # Cancelling the caller does not interrupt the steps; drain() awaits them
        return await asyncio.shield(task)

    async def _finalize_batch(self, batch: FinalizingBatch) -> BatchResult:
        set_batch_context(batch.key)
        logger.info("Processing batch %s (%d members)", batch.key, len(batch.member_paths))
        try:
            result = await self._run_steps(batch)
        finally:
            async with self._lock:
                self._state = EmptyBatch()
                self._finalizing = None
            clear_context()

        self._history.append(result)
        if result.ok:
            logger.info("Batch %s completed in %.2fs", result.key, result.duration_seconds)
        else:
            logger.error(
                "Batch %s completed with failed steps: %s",
                result.key, ", ".join(result.steps_failed),
            )
        return result

    def stop(self) -> None:
        """Cancel the pending countdown and abandon any open batch.

        A batch already finalizing is left running; see ``drain``.
        """
        self._cancel_timer()
        if isinstance(self._state, OpenBatch):
            logger.info("Abandoning open batch %s", self._state.key)
            self._state = EmptyBatch()

    async def drain(self) -> BatchResult | None:
        """Wait for an in-progress finalize, if any, to run all its steps."""
        task = self._finalizing
        if task is None or task.done():
            return None
        logger.info("Waiting for %s to finish", task.get_name())
        return await asyncio.shield(task)

    async def shutdown(self) -> None:
        """``stop`` followed by ``drain``: nothing is left half-finalized."""
        self.stop()
        await self.drain()

    @contextmanager
    def _guard(self, step: str, result: BatchResult) -> Iterator[None]:
        with step_context(step):
            try:
                yield
            except Exception:
                logger.exception("Step '%s' failed for batch %s", step, result.key)
                result.steps_failed.append(step)

    async def _run_steps(self, batch: FinalizingBatch) -> BatchResult:
        t0 = time.perf_counter()
        result = BatchResult(
            key=batch.key,
            anchor_path=batch.anchor_path,
            member_count=len(batch.member_paths),
        )

        # 1. anchor out of the intake area
        with self._guard("archive", result):
            archived = await self._store.archive(batch.anchor_path)
            result.archived_path = str(archived)

        output_name = result_filename(batch.key, self._result_suffix, self._member_suffix)
        merged_text = ""

        # 2. merge in lexicographic path order
        if not batch.member_paths:
            logger.warning("No member files to merge for batch %s", batch.key)
            result.steps_skipped.extend(["merge", "tally", "track", "report"])
        else:
            with self._guard("merge", result):
                merged = await merge_files(sorted(batch.member_paths))
                merged_text = merged.text
                result.merged_lines = merged.line_count
                result.files_skipped = merged.files_skipped
                written = await self._store.write_output(output_name, merged_text)
                result.output_path = str(written)
                logger.info(
                    "Merged %d files into %s (%d lines)",
                    len(merged.files_read), output_name, merged.line_count,
                )

            # 3. tally
            tally: dict[int, int] = {}
            with self._guard("tally", result):
                tally = tally_features(merged_text)
                result.tally = tally
                result.total_points = total_points(tally)

            if not tally:
                if "tally" not in result.steps_failed:
                    logger.warning("No SF values found in merged output for %s", batch.key)
                result.steps_skipped.extend(["track", "report"])
            else:
                now = self._clock()
                result.current_timestamp = now

                # 4. tracking record
                with self._guard("track", result):
                    result.previous_timestamp = self._tracking.previous_timestamp(output_name)
                    record = TrackingRecord.from_tally(output_name, tally, now)
                    self._tracking.upsert(record)
                    _log_categories(record.sf_categories, record.total_points)

                # 5. summary + report sync
                with self._guard("report", result):
                    await self._report(result, output_name, tally, now)

        # 6. sweep the intake directory
        with self._guard("clear_intake", result):
            result.files_cleared = await self._store.clear_intake()

        result.duration_seconds = round(time.perf_counter() - t0, 3)
        return result

    async def _report(
        self, result: BatchResult, output_name: str, tally: dict[int, int], now: datetime,
    ) -> None:
        if self._reporter is None:
            logger.debug("No reporter configured, skipping report sync")
            result.steps_skipped.append("report")
            return

        key = reporting_key(output_name, self._result_suffix, self._member_suffix)
        categories = categorize(tally)
        summary = await summarize_with_timeout(
            self._summarizer, tally, categories, result.total_points, key,
            timeout_s=self._summary_timeout,
        )
        result.summary = summary

        outcome = await self._reporter.report(
            key, tally, result.previous_timestamp, now, summary, result.total_points,
        )
        result.reported = outcome.success
        if outcome.success:
            logger.info("Reported batch %s", key)
        else:
            logger.warning("Report sync for %s did not succeed: %s", key, outcome.error)


def _log_categories(categories: dict[str, int], total: int) -> None:
    logger.info("SF analysis: %d points", total)
    for name, count in categories.items():
        if count > 0:
            logger.info("  %s: %d points", name, count)
