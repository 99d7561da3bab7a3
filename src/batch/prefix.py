# src/batch/prefix.py
"""Batch key extraction from intake filenames.

Single source of truth for grouping. Every function here is pure and works
on bare filenames, so callers pass ``path.name`` rather than full paths.

Anchor files (``.bin``) carry the key as a leading ``digits_digits`` run
followed by location/timestamp metadata::

    000025_18_quebec_2022-02-14T11_27_05.918683Z_r30m_fov360deg_margin10.bin
    -> 000025_18

Member files (``.txt``) carry it as everything before the final sequence
segment::

    000025_18_0001.txt -> 000025_18
"""

from __future__ import annotations

import re
from enum import Enum

DEFAULT_ANCHOR_SUFFIX = ".bin"
DEFAULT_MEMBER_SUFFIX = ".txt"
SEPARATOR = "_"

_ANCHOR_KEY_RE = re.compile(r"^(\d+_\d+)_")


class FileKind(str, Enum):
    """Role of an intake file in batch assembly."""

    ANCHOR = "anchor"
    MEMBER = "member"
    OTHER = "other"


def classify(
    filename: str,
    anchor_suffix: str = DEFAULT_ANCHOR_SUFFIX,
    member_suffix: str = DEFAULT_MEMBER_SUFFIX,
) -> FileKind:
    """Classify a filename by suffix. Hidden files are never batch input."""
    if not filename or filename.startswith("."):
        return FileKind.OTHER
    lowered = filename.lower()
    if lowered.endswith(anchor_suffix.lower()):
        return FileKind.ANCHOR
    if lowered.endswith(member_suffix.lower()):
        return FileKind.MEMBER
    return FileKind.OTHER


def extract_anchor_key(filename: str) -> str | None:
    """Return the ``digits_digits`` key of an anchor filename, or None."""
    match = _ANCHOR_KEY_RE.match(filename)
    if match:
        return match.group(1)
    return None


def extract_member_key(
    filename: str, member_suffix: str = DEFAULT_MEMBER_SUFFIX,
) -> str | None:
    """Return the member filename minus its last ``_segment`` and suffix.

    Returns None when there is no separator or nothing precedes it.
    """
    stem = _strip_suffix(filename, member_suffix)
    idx = stem.rfind(SEPARATOR)
    if idx <= 0:
        return None
    return stem[:idx]


def result_filename(
    key: str, result_suffix: str = "_result", member_suffix: str = DEFAULT_MEMBER_SUFFIX,
) -> str:
    """Name of the merged output file for a batch key."""
    return f"{key}{result_suffix}{member_suffix}"


def reporting_key(
    output_filename: str,
    result_suffix: str = "_result",
    member_suffix: str = DEFAULT_MEMBER_SUFFIX,
) -> str:
    """Strip the result suffix from an output filename (the sheet row key)."""
    return _strip_suffix(output_filename, f"{result_suffix}{member_suffix}")


def _strip_suffix(filename: str, suffix: str) -> str:
    if suffix and filename.lower().endswith(suffix.lower()):
        return filename[: -len(suffix)]
    return filename
