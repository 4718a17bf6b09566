"""Static in-memory catalog served when every live source comes back empty."""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

from .models import PLACEHOLDER_COVER, CanonicalRecord, Query, QueryKind
from .normalize import (
    normalize_authors,
    normalize_count,
    normalize_names,
    normalize_rating,
    normalize_status,
    normalize_summary,
    normalize_title,
    normalize_year,
)

DEFAULT_DATASET_PATH = Path(__file__).resolve().parent / "data" / "fallback_catalog.json"
FALLBACK_SOURCE_NAME = "fallback"


def load_fallback_dataset(path: str | Path | None = None) -> tuple[CanonicalRecord, ...]:
    """Load the fallback catalog from a JSON array.

    Args:
        path: Dataset file. If omitted, uses the bundled catalog.

    Returns:
        Records in file order.

    Raises:
        FileNotFoundError: If the dataset file does not exist.
        ValueError: If the file is not a non-empty JSON array of objects with ids.
    """

    dataset_path = Path(path) if path else DEFAULT_DATASET_PATH
    if not dataset_path.exists():
        raise FileNotFoundError(f"Fallback dataset not found: {dataset_path}")

    data = json.loads(dataset_path.read_text(encoding="utf-8"))
    if not isinstance(data, list) or not data:
        raise ValueError(f"Fallback dataset must be a non-empty JSON array: {dataset_path}")

    records: list[CanonicalRecord] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict) or not item.get("id"):
            raise ValueError(f"Fallback entry #{index} has no id")
        records.append(_entry_to_record(item))
    return tuple(records)


def _entry_to_record(item: dict) -> CanonicalRecord:
    authors = item.get("authors") or item.get("author")
    return CanonicalRecord(
        id=str(item["id"]),
        title=normalize_title(item.get("title")),
        cover_image=item.get("image") or PLACEHOLDER_COVER,
        status=normalize_status(item.get("status")),
        rating_average=normalize_rating(item.get("rating")),
        chapter_count=normalize_count(item.get("chapters")),
        genres=normalize_names(item.get("genres") or item.get("genre")),
        summary=normalize_summary(item.get("summary")),
        authors=normalize_authors(authors),
        year=normalize_year(item.get("year")),
        views=normalize_count(item.get("views")),
        follows=normalize_count(item.get("follows")),
        source=FALLBACK_SOURCE_NAME,
    )


def matches_search(record: CanonicalRecord, search_text: str) -> bool:
    """Case-insensitive substring match on title, author or any genre."""

    needle = search_text.strip().lower()
    if needle in record.title.lower():
        return True
    if any(needle in author.lower() for author in record.authors):
        return True
    return any(needle in genre.lower() for genre in record.genres)


class FallbackProvider:
    """Filter, sort and paginate over a fixed catalog.

    The dataset is read-only after construction, so one provider can serve
    concurrent callers without locking.
    """

    def __init__(self, records: tuple[CanonicalRecord, ...] | list[CanonicalRecord]):
        if not records:
            raise ValueError("Fallback dataset must not be empty")
        self.records = tuple(records)

    @classmethod
    def from_file(cls, path: str | Path | None = None) -> "FallbackProvider":
        return cls(load_fallback_dataset(path))

    def select(self, query: Query) -> list[CanonicalRecord]:
        """Return the full ordered matching set for ``query``, before slicing."""

        if query.kind is QueryKind.POPULAR:
            # sorted() is stable, ties keep dataset order
            ordered = sorted(self.records, key=lambda item: item.views, reverse=True)
        elif query.kind is QueryKind.LATEST:
            ordered = sorted(self.records, key=lambda item: item.year, reverse=True)
        else:
            ordered = [item for item in self.records if matches_search(item, query.search_text or "")]

        return [_stamp(item, query.kind.value) for item in ordered]

    def resolve(self, query: Query) -> list[CanonicalRecord]:
        """Return one page of the matching set; out-of-range pages are empty."""

        return self.select(query)[query.offset : query.offset + query.limit]


def _stamp(record: CanonicalRecord, category: str) -> CanonicalRecord:
    return replace(
        record,
        genres=list(record.genres),
        authors=list(record.authors),
        source_category=category,
    )
