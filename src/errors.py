# src/errors.py
"""Exception hierarchy shared across cloudbatch subsystems."""

from __future__ import annotations

from pathlib import Path


class CloudBatchError(Exception):
    """Base class for all cloudbatch errors."""


class DirectoryAccessError(CloudBatchError):
    """A working directory cannot be created or accessed.

    Fatal at startup: the watcher cannot run without its directories.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot access directory {path}: {reason}")


class TrackingStoreError(CloudBatchError):
    """The tracking record store could not be written."""
