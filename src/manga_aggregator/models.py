"""Core data models shared by sources, fallback and aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_AUTHOR = "Unknown"
UNKNOWN_GROUP = "Unknown Group"
NO_SUMMARY = "No description available"
PLACEHOLDER_COVER = "https://images.unsplash.com/photo-1578662996442-48f60103fc96?w=300&h=400&fit=crop"


class Status(str, Enum):
    ONGOING = "Ongoing"
    COMPLETED = "Completed"
    HIATUS = "Hiatus"
    CANCELLED = "Cancelled"


class QueryKind(str, Enum):
    POPULAR = "popular"
    LATEST = "latest"
    SEARCH = "search"


def current_year() -> int:
    return date.today().year


@dataclass(slots=True)
class CanonicalRecord:
    """One manga series, normalized from an upstream payload or the fallback set."""

    id: str
    title: str = UNKNOWN_TITLE
    cover_image: str = PLACEHOLDER_COVER
    status: Status = Status.ONGOING
    rating_average: float = 0.0
    chapter_count: int = 0
    genres: list[str] = field(default_factory=list)
    summary: str = NO_SUMMARY
    authors: list[str] = field(default_factory=lambda: [UNKNOWN_AUTHOR])
    year: int = field(default_factory=current_year)
    source_category: str = QueryKind.POPULAR.value
    views: int = 0
    follows: int = 0
    source: str = ""

    @property
    def author(self) -> str:
        """Display author: the first listed one."""
        return self.authors[0] if self.authors else UNKNOWN_AUTHOR

    def to_dict(self) -> dict:
        """Outward JSON shape, keyed the way API clients read a manga entry."""
        return {
            "id": self.id,
            "title": self.title,
            "image": self.cover_image,
            "status": self.status.value,
            "rating": self.rating_average,
            "chapters": self.chapter_count,
            "genre": list(self.genres),
            "summary": self.summary,
            "author": self.author,
            "authors": list(self.authors),
            "year": self.year,
            "category": self.source_category,
            "views": self.views,
            "follows": self.follows,
            "source": self.source,
        }


@dataclass(slots=True)
class MangaDetails:
    """Single-title detail view: the listing record plus alternative titles."""

    record: CanonicalRecord
    alternative_titles: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        payload = self.record.to_dict()
        payload["alternativeTitles"] = list(self.alternative_titles)
        return payload


@dataclass(slots=True)
class CanonicalChapter:
    """One chapter of a series; numbers may be fractional (e.g. 10.5)."""

    id: str
    number: float = 0.0
    title: str = ""
    release_date: str = ""
    group_name: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "number": self.number,
            "title": self.title,
            "releaseDate": self.release_date,
            "groupName": self.group_name,
        }


@dataclass(frozen=True, slots=True)
class Query:
    """Canonical listing query.

    ``search_text`` is required and non-empty exactly when ``kind`` is SEARCH.
    """

    kind: QueryKind
    page: int = 1
    limit: int = 20
    search_text: str | None = None

    def __post_init__(self) -> None:
        # frozen, so coercion goes through object.__setattr__
        object.__setattr__(self, "kind", QueryKind(self.kind))
        if self.page < 1:
            raise ValueError(f"page must be a positive integer, got {self.page}")
        if self.limit < 1:
            raise ValueError(f"limit must be a positive integer, got {self.limit}")

        has_text = bool(self.search_text and self.search_text.strip())
        if self.kind is QueryKind.SEARCH and not has_text:
            raise ValueError("search_text is required for search queries")
        if self.kind is not QueryKind.SEARCH and self.search_text is not None:
            raise ValueError(f"search_text is only allowed for search queries, not {self.kind.value}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(slots=True)
class AggregateResult:
    """Listing outcome with echoed pagination metadata."""

    records: list[CanonicalRecord]
    page: int
    limit: int
    total: int
    source: str
    query: str | None = None

    @property
    def used_fallback(self) -> bool:
        return self.source == "fallback"

    def to_dict(self) -> dict:
        payload = {
            "manga": [record.to_dict() for record in self.records],
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
        }
        if self.query is not None:
            payload["query"] = self.query
        return payload


@dataclass(slots=True)
class ChapterListResult:
    """Chapter listing for one series."""

    chapters: list[CanonicalChapter]
    page: int
    limit: int
    source: str

    @property
    def total(self) -> int:
        return len(self.chapters)

    def to_dict(self) -> dict:
        return {
            "chapters": [chapter.to_dict() for chapter in self.chapters],
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
        }
