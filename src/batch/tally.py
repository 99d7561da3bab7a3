# src/batch/tally.py
"""SF (classification code) tagging and tallying over merged point text.

Each point line looks like ``x y z sf``::

    -0.62886816 -27.54355812 -2.18630981 1.000000

The last token, rounded to the nearest integer, is the line's code.
"""

from __future__ import annotations

import math
from collections import Counter

MIN_TOKENS = 4
UNKNOWN_CATEGORY = "unknown"

SF_CATEGORIES: dict[int, str] = {
    0: "other",
    1: "Road Surface",
    2: "cubs",
    3: "vehicles",
    4: "guard rails",
    5: "protective barrier",
    6: "streetlight",
    7: "sign and overhead",
}


def tag_line(line: str) -> int | None:
    """Return the classification code of one point line, or None.

    Lines with fewer than four tokens or a non-numeric last token are
    skipped. Halves round up, so 2.5 -> 3 and -2.5 -> -2.
    """
    parts = line.split()
    if len(parts) < MIN_TOKENS:
        return None
    try:
        value = float(parts[-1])
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return math.floor(value + 0.5)


def tally_features(text: str) -> dict[int, int]:
    """Count classification codes across all non-blank lines of text."""
    counts: Counter[int] = Counter()
    for line in text.splitlines():
        if not line.strip():
            continue
        code = tag_line(line)
        if code is not None:
            counts[code] += 1
    return dict(sorted(counts.items()))


def category_name(code: int) -> str:
    return SF_CATEGORIES.get(code, UNKNOWN_CATEGORY)


def categorize(tally: dict[int, int]) -> dict[str, int]:
    """Re-key a tally by human-readable category name.

    Lossy: every unrecognized code collapses into ``"unknown"``.
    """
    categories: dict[str, int] = {}
    for code, count in tally.items():
        name = category_name(code)
        categories[name] = categories.get(name, 0) + count
    return categories


def total_points(tally: dict[int, int]) -> int:
    return sum(tally.values())


def dominant_category(categories: dict[str, int]) -> str:
    """Category with the highest count; first seen wins ties."""
    dominant = UNKNOWN_CATEGORY
    best = 0
    for name, count in categories.items():
        if count > best:
            best = count
            dominant = name
    return dominant
