# src/logging/handlers.py
"""Size-based rotating file handler for the watcher log."""

from __future__ import annotations

import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

_SIZE_RE = re.compile(r"^\s*(\d+)\s*([KMG]?B)\s*$", re.IGNORECASE)
_MULTIPLIERS = {"B": 1, "KB": 1 << 10, "MB": 1 << 20, "GB": 1 << 30}


def _parse_size(size_str: str) -> int:
    """'10MB' -> bytes. Units B, KB, MB, GB, case-insensitive."""
    match = _SIZE_RE.match(size_str)
    if match is None:
        raise ValueError(f"Invalid size format: {size_str!r} (expected e.g. '10MB')")
    count, unit = match.groups()
    return int(count) * _MULTIPLIERS[unit.upper()]


def create_rotating_handler(
    log_file: str,
    rotation: str = "10MB",
    retention: int = 30,
) -> RotatingFileHandler:
    """Rotate ``log_file`` at ``rotation`` bytes, keeping ``retention`` backups."""
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=_parse_size(rotation),
        backupCount=retention,
        encoding="utf-8",
        delay=True,
    )
