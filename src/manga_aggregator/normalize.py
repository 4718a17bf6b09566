"""Normalization helpers shared by every source adapter and the fallback set."""

from __future__ import annotations

import math
import re

from .models import NO_SUMMARY, UNKNOWN_AUTHOR, UNKNOWN_TITLE, Status, current_year

YEAR_PATTERN = re.compile(r"\b(\d{4})\b")

_STATUS_VOCABULARY: tuple[tuple[tuple[str, ...], Status], ...] = (
    (("completed", "finished"), Status.COMPLETED),
    (("hiatus",), Status.HIATUS),
    (("cancelled", "canceled", "dropped"), Status.CANCELLED),
)


def normalize_status(raw: object) -> Status:
    """Map a free-form upstream status onto the canonical enum.

    Total: None, unknown words and non-string values all map to ONGOING.
    """

    if raw is None:
        return Status.ONGOING

    lowered = str(raw).strip().lower()
    for needles, status in _STATUS_VOCABULARY:
        if any(needle in lowered for needle in needles):
            return status
    return Status.ONGOING


def normalize_title(raw: object) -> str:
    text = " ".join(str(raw).split()) if raw is not None else ""
    return text or UNKNOWN_TITLE


def normalize_summary(raw: object) -> str:
    text = str(raw).strip() if raw is not None else ""
    return text or NO_SUMMARY


def normalize_rating(raw: object) -> float:
    """Parse a rating into [0, 10]; unparseable or NaN becomes 0."""

    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return max(0.0, min(10.0, value))


def normalize_count(raw: object) -> int:
    """Parse a non-negative integer count; fractional chapter counts are floored."""

    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    if math.isnan(value) or math.isinf(value) or value < 0:
        return 0
    return int(value)


def normalize_chapter_number(raw: object) -> float:
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return value


def normalize_year(raw: object) -> int:
    """Extract a four digit year; falls back to the current calendar year."""

    if isinstance(raw, int) and not isinstance(raw, bool) and raw > 0:
        return raw
    if raw:
        match = YEAR_PATTERN.search(str(raw))
        if match:
            return int(match.group(1))
    return current_year()


def normalize_names(raw: object) -> list[str]:
    """Clean a list of strings, dropping blanks and duplicates, keeping order."""

    if not raw:
        return []
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple)):
        return []

    names: list[str] = []
    for item in raw:
        if item is None:
            continue
        text = " ".join(str(item).split())
        if text and text not in names:
            names.append(text)
    return names


def normalize_authors(raw: object) -> list[str]:
    return normalize_names(raw) or [UNKNOWN_AUTHOR]
