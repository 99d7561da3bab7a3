# src/storage/local_store.py
"""Local filesystem operations on the intake, archive and output directories.

The intake directory is assumed to belong to this pipeline alone: only the
finalize step deletes from it.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
from pathlib import Path

from cloudbatch.errors import DirectoryAccessError

logger = logging.getLogger(__name__)


def ensure_directories(*paths: Path) -> None:
    """Create each directory if missing and check it is writable.

    Raises:
        DirectoryAccessError: If any directory cannot be created or written.
    """
    for path in paths:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DirectoryAccessError(path, str(exc)) from exc
        if not path.is_dir():
            raise DirectoryAccessError(path, "not a directory")
        if not os.access(path, os.W_OK | os.X_OK):
            raise DirectoryAccessError(path, "not writable")
        logger.info("Directory ready: %s", path)


class LocalStore:
    """Filesystem side effects of batch finalization."""

    def __init__(self, intake_dir: Path, output_dir: Path, archive_dir: Path) -> None:
        self.intake_dir = Path(intake_dir)
        self.output_dir = Path(output_dir)
        self.archive_dir = Path(archive_dir)

    def ensure(self) -> None:
        ensure_directories(self.intake_dir, self.output_dir, self.archive_dir)

    def list_intake(self) -> list[Path]:
        """Regular files currently in the intake directory, sorted by name."""
        if not self.intake_dir.is_dir():
            return []
        return sorted(p for p in self.intake_dir.iterdir() if p.is_file())

    async def archive(self, path: str | Path) -> Path:
        """Move a file into the archive directory under the same name.

        Uses an atomic rename where source and destination share a
        filesystem. An existing file of the same name is replaced
        (last write wins).
        """
        src = Path(path)
        dst = self.archive_dir / src.name
        self.archive_dir.mkdir(parents=True, exist_ok=True)
        try:
            os.replace(src, dst)
        except OSError as exc:
            # Intake and archive live on different mounts
            if exc.errno != errno.EXDEV:
                raise
            shutil.move(str(src), str(dst))
        logger.info("Archived %s -> %s", src.name, self.archive_dir)
        return dst

    async def write_output(self, filename: str, content: str) -> Path:
        """Write text into the output directory, replacing any previous file."""
        path = self.output_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    async def clear_intake(self) -> int:
        """Delete every regular file left in the intake directory.

        Per-file failures are logged and skipped. Returns the number of
        files deleted.
        """
        files = self.list_intake()
        if not files:
            return 0

        logger.info("Clearing intake directory (%d files remaining)", len(files))
        deleted = 0
        for path in files:
            try:
                path.unlink()
                deleted += 1
                logger.debug("Deleted %s", path.name)
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.warning("Could not delete %s: %s", path.name, exc)
        return deleted
