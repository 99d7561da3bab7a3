# src/batch/merger.py
"""Merge member files into one newline-joined text of non-blank lines."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class MergeResult(BaseModel):
    """Merged text plus bookkeeping about which inputs contributed."""

    text: str
    line_count: int
    files_read: list[str] = Field(default_factory=list)
    files_skipped: list[str] = Field(default_factory=list)


def split_lines(content: str) -> list[str]:
    """Split content into lines, dropping blank and whitespace-only ones."""
    return [line for line in content.splitlines() if line.strip()]


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


async def merge_files(paths: Iterable[str | Path]) -> MergeResult:
    """Concatenate the non-blank lines of every file, in the order given.

    Files that cannot be read are skipped with a warning; merging continues
    with the rest.
    """
    merged: list[str] = []
    files_read: list[str] = []
    files_skipped: list[str] = []

    for raw in paths:
        path = Path(raw)
        try:
            content = await asyncio.to_thread(_read_text, path)
        except OSError as exc:
            logger.warning("Could not read %s: %s", path.name, exc)
            files_skipped.append(str(path))
            continue
        lines = split_lines(content)
        merged.extend(lines)
        files_read.append(str(path))
        logger.debug("Read %s (%d lines)", path.name, len(lines))

    return MergeResult(
        text="\n".join(merged),
        line_count=len(merged),
        files_read=files_read,
        files_skipped=files_skipped,
    )
