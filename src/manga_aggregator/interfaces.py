"""Protocol interfaces for aggregator dependency typing."""

from __future__ import annotations

from typing import Protocol

from .models import CanonicalChapter, CanonicalRecord, MangaDetails, Query, QueryKind


class SourceInterface(Protocol):
    """Upstream catalog adapter interface."""

    name: str
    supported_kinds: frozenset[QueryKind]

    def fetch(self, query: Query) -> list[CanonicalRecord]: ...

    def fetch_details(self, manga_id: str) -> MangaDetails | None: ...

    def fetch_chapters(self, manga_id: str, page: int, limit: int) -> list[CanonicalChapter]: ...

    def fetch_pages(self, chapter_id: str) -> list[str]: ...


class FallbackInterface(Protocol):
    """Static catalog used when no live source answers."""

    def select(self, query: Query) -> list[CanonicalRecord]: ...

    def resolve(self, query: Query) -> list[CanonicalRecord]: ...
