"""Comick source adapter using the public Comick API."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from .errors import UpstreamError, UpstreamErrorKind
from .models import (
    PLACEHOLDER_COVER,
    UNKNOWN_GROUP,
    CanonicalChapter,
    CanonicalRecord,
    MangaDetails,
    Query,
    QueryKind,
)
from .normalize import (
    normalize_authors,
    normalize_chapter_number,
    normalize_count,
    normalize_names,
    normalize_rating,
    normalize_status,
    normalize_summary,
    normalize_title,
    normalize_year,
)
from .utils import DEFAULT_TIMEOUT_SECONDS, build_url, fetch_json

COMICK_API_URL = "https://api.comick.fun"
COMICK_COVER_URL = "https://meo.comick.pictures"

# Comick reports status as an integer code.
COMICK_STATUS_CODES = {1: "ongoing", 2: "completed", 3: "cancelled", 4: "hiatus"}

_LISTING_ORDER = {
    QueryKind.POPULAR: "follow_count",
    QueryKind.LATEST: "created_at",
}


class ComickSource:
    """Fetch listings, details, chapters and pages from Comick."""

    name = "comick"
    supported_kinds = frozenset({QueryKind.POPULAR, QueryKind.LATEST, QueryKind.SEARCH})

    def __init__(
        self,
        base_url: str = COMICK_API_URL,
        cover_base_url: str = COMICK_COVER_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url
        self.cover_base_url = cover_base_url
        self.timeout = timeout

    def fetch(self, query: Query) -> list[CanonicalRecord]:
        payload = self._fetch_json("v1.0/search", self._build_listing_params(query))
        return self._parse_listing(payload, category=query.kind.value)

    def fetch_details(self, manga_id: str) -> MangaDetails | None:
        payload = self._fetch_json(f"comic/{quote(manga_id, safe='')}")
        comic = payload.get("comic") if isinstance(payload, dict) else None
        if not isinstance(comic, dict):
            return None

        record = self._comic_to_record(comic, category="details")
        return MangaDetails(record=record, alternative_titles=_parse_alt_titles(comic))

    def fetch_chapters(self, manga_id: str, page: int, limit: int) -> list[CanonicalChapter]:
        params = {"page": page, "limit": limit, "order": "asc"}
        payload = self._fetch_json(f"comic/{quote(manga_id, safe='')}/chapters", params)
        if not isinstance(payload, dict):
            raise UpstreamError(UpstreamErrorKind.PARSE_FAILURE, "chapter payload is not an object", self.name)

        chapters = payload.get("chapters") or []
        return [_parse_chapter(item) for item in chapters if isinstance(item, dict) and item.get("hid")]

    def fetch_pages(self, chapter_id: str) -> list[str]:
        payload = self._fetch_json(f"chapter/{quote(chapter_id, safe='')}")
        chapter = payload.get("chapter") if isinstance(payload, dict) else None
        if not isinstance(chapter, dict):
            return []

        images = chapter.get("md_images") or []
        return [
            f"{self.cover_base_url}/{image['b2key']}"
            for image in images
            if isinstance(image, dict) and image.get("b2key")
        ]

    def _build_listing_params(self, query: Query) -> dict[str, Any]:
        params: dict[str, Any] = {"page": query.page, "limit": query.limit}
        if query.kind is QueryKind.SEARCH:
            params["q"] = query.search_text
        else:
            params["order"] = _LISTING_ORDER[query.kind]
            params["desc"] = "true"
        return params

    def _fetch_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = build_url(self.base_url, path, params)
        return fetch_json(url, timeout=self.timeout, source=self.name)

    def _parse_listing(self, payload: Any, category: str) -> list[CanonicalRecord]:
        if not isinstance(payload, list):
            raise UpstreamError(UpstreamErrorKind.PARSE_FAILURE, "search payload is not a list", self.name)

        records: list[CanonicalRecord] = []
        for comic in payload:
            if not isinstance(comic, dict):
                continue
            if not (comic.get("slug") or comic.get("id")):
                continue
            records.append(self._comic_to_record(comic, category=category))
        return records

    def _comic_to_record(self, comic: dict, category: str) -> CanonicalRecord:
        return CanonicalRecord(
            id=str(comic.get("slug") or comic.get("id")),
            title=normalize_title(comic.get("title")),
            cover_image=self._cover_url(comic),
            status=normalize_status(_status_text(comic.get("status"))),
            rating_average=normalize_rating(comic.get("rating") or comic.get("bayesian_rating")),
            chapter_count=normalize_count(comic.get("last_chapter")),
            genres=_parse_genres(comic),
            summary=normalize_summary(comic.get("desc")),
            authors=normalize_authors(_parse_author_names(comic)),
            year=normalize_year(comic.get("year")),
            source_category=category,
            views=normalize_count(comic.get("view_count")),
            follows=normalize_count(comic.get("follow_count")),
            source=self.name,
        )

    def _cover_url(self, comic: dict) -> str:
        covers = comic.get("md_covers") or []
        if covers and isinstance(covers[0], dict) and covers[0].get("b2key"):
            return f"{self.cover_base_url}/{covers[0]['b2key']}"
        return PLACEHOLDER_COVER


def _status_text(raw: object) -> object:
    if isinstance(raw, int) and not isinstance(raw, bool):
        return COMICK_STATUS_CODES.get(raw)
    return raw


def _parse_genres(comic: dict) -> list[str]:
    entries = comic.get("md_comic_md_genres") or []
    names: list[str] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        genre = entry.get("md_genres")
        if isinstance(genre, dict) and genre.get("name"):
            names.append(genre["name"])
    return normalize_names(names)


def _parse_author_names(comic: dict) -> list[str]:
    authors = comic.get("authors") or []
    return [item.get("name") for item in authors if isinstance(item, dict) and item.get("name")]


def _parse_alt_titles(comic: dict) -> list[str]:
    raw = comic.get("md_titles") or comic.get("alt_titles") or []
    titles: list[str] = []
    for item in raw:
        text = item.get("title") if isinstance(item, dict) else item
        if text:
            titles.append(str(text))
    return normalize_names(titles)


def _parse_chapter(item: dict) -> CanonicalChapter:
    chap = item.get("chap")
    title = (item.get("title") or "").strip() or f"Chapter {chap if chap is not None else '?'}"
    groups = item.get("group_name")
    if isinstance(groups, list):
        group_name = ", ".join(str(name) for name in groups if name) or UNKNOWN_GROUP
    else:
        group_name = str(groups) if groups else UNKNOWN_GROUP

    return CanonicalChapter(
        id=str(item["hid"]),
        number=normalize_chapter_number(chap),
        title=title,
        release_date=str(item.get("created_at") or ""),
        group_name=group_name,
    )
