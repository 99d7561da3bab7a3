# src/batch/watcher.py
"""Directory watcher: watchdog notifications plus periodic reconciliation.

watchdog delivers events on its own observer thread. The handler only
forwards paths into an asyncio.Queue on the event loop; a single consumer
task feeds them to the coordinator one at a time, so batch state is only
ever touched from the loop.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from cloudbatch.batch.scanner import IntakeScanner

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver

    from cloudbatch.batch.coordinator import BatchCoordinator

logger = logging.getLogger(__name__)


class _ArrivalHandler(FileSystemEventHandler):
    """Forward file creations and renames-into-place to the event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue[str]) -> None:
        super().__init__()
        self._loop = loop
        self._queue = queue

    def _forward(self, path: str | bytes) -> None:
        if isinstance(path, bytes):
            path = path.decode()
        if Path(path).name.startswith("."):
            return
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, path)
        except RuntimeError:
            # Loop already closed during shutdown
            pass

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward(event.dest_path)


class DirectoryWatcher:
    """Long-running intake loop: watch, reconcile, hand arrivals to the coordinator."""

    def __init__(
        self,
        intake_dir: Path,
        coordinator: BatchCoordinator,
        reconcile_interval: float = 30.0,
        use_polling: bool = False,
        observer_factory: Callable[[], BaseObserver] | None = None,
    ) -> None:
        self._intake_dir = Path(intake_dir)
        self._coordinator = coordinator
        self._scanner = IntakeScanner(self._intake_dir, coordinator)
        self._reconcile_interval = reconcile_interval
        if observer_factory is None:
            observer_factory = PollingObserver if use_polling else Observer
        self._observer_factory = observer_factory

        self._observer: BaseObserver | None = None
        self._queue: asyncio.Queue[str] | None = None
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def scanner(self) -> IntakeScanner:
        return self._scanner

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def start(self) -> None:
        """Begin watching, then reconcile once so pre-existing files are seen."""
        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()

        observer = self._observer_factory()
        observer.schedule(_ArrivalHandler(loop, self._queue), str(self._intake_dir), recursive=False)
        observer.start()
        self._observer = observer
        logger.info("Watching %s for new files", self._intake_dir)

        await self._reconcile_once()

        self._tasks = [
            asyncio.create_task(self._consume(), name="cloudbatch-arrivals"),
            asyncio.create_task(self._reconcile_loop(), name="cloudbatch-reconcile"),
        ]

    async def run(self, stop_event: asyncio.Event) -> None:
        """Run until ``stop_event`` is set."""
        await self.start()
        try:
            await stop_event.wait()
        finally:
            await self.stop()

    async def stop(self) -> None:
        """Stop the observer, background tasks and pending completion timer.

        An open batch is abandoned; the next startup reconcile recovers it.
        A batch already finalizing runs to completion first.
        """
        logger.info("Shutting down watcher")
        if self._observer is not None:
            self._observer.stop()
            await asyncio.to_thread(self._observer.join, 5.0)
            self._observer = None

        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        await self._coordinator.shutdown()

    async def _consume(self) -> None:
        assert self._queue is not None
        while True:
            path = await self._queue.get()
            try:
                await self._coordinator.handle_arrival(path)
            except Exception:
                logger.exception("Failed to handle arrival of %s", path)
            finally:
                self._queue.task_done()

    async def _reconcile_loop(self) -> None:
        while True:
            await asyncio.sleep(self._reconcile_interval)
            await self._reconcile_once()

    async def _reconcile_once(self) -> None:
        try:
            await self._scanner.reconcile()
        except Exception:
            logger.exception("Reconcile of %s failed", self._intake_dir)
