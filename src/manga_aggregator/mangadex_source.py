"""MangaDex source adapter using the MangaDex REST API."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from .errors import UpstreamError, UpstreamErrorKind
from .models import PLACEHOLDER_COVER, UNKNOWN_GROUP, CanonicalChapter, CanonicalRecord, MangaDetails, Query, QueryKind
from .normalize import (
    normalize_authors,
    normalize_chapter_number,
    normalize_count,
    normalize_names,
    normalize_status,
    normalize_summary,
    normalize_title,
    normalize_year,
)
from .utils import DEFAULT_TIMEOUT_SECONDS, build_url, fetch_json

MANGADEX_API_URL = "https://api.mangadex.org"
MANGADEX_COVER_URL = "https://uploads.mangadex.org/covers"

CONTENT_RATINGS = ["safe", "suggestive"]

_LISTING_ORDER = {
    QueryKind.POPULAR: ("order[followedCount]", "desc"),
    QueryKind.LATEST: ("order[createdAt]", "desc"),
    QueryKind.SEARCH: ("order[relevance]", "desc"),
}


class MangaDexSource:
    """Fetch listings, details, chapters and pages from MangaDex.

    MangaDex paginates by offset and does not expose ratings on the
    listing endpoint, so every record carries a rating of 0.
    """

    name = "mangadex"
    supported_kinds = frozenset({QueryKind.POPULAR, QueryKind.LATEST, QueryKind.SEARCH})

    def __init__(
        self,
        base_url: str = MANGADEX_API_URL,
        cover_base_url: str = MANGADEX_COVER_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        translated_language: str = "en",
    ):
        self.base_url = base_url
        self.cover_base_url = cover_base_url
        self.timeout = timeout
        self.translated_language = translated_language

    def fetch(self, query: Query) -> list[CanonicalRecord]:
        payload = self._fetch_json("manga", self._build_listing_params(query))
        items = _require_data_list(payload, self.name)
        return [
            self._manga_to_record(item, category=query.kind.value)
            for item in items
            if isinstance(item, dict) and item.get("id")
        ]

    def fetch_details(self, manga_id: str) -> MangaDetails | None:
        params = [("includes[]", "cover_art"), ("includes[]", "author")]
        payload = self._fetch_json(f"manga/{quote(manga_id, safe='')}", params)
        item = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(item, dict) or not item.get("id"):
            return None

        attributes = item.get("attributes") or {}
        return MangaDetails(
            record=self._manga_to_record(item, category="details"),
            alternative_titles=_parse_alt_titles(attributes),
        )

    def fetch_chapters(self, manga_id: str, page: int, limit: int) -> list[CanonicalChapter]:
        params = [
            ("limit", limit),
            ("offset", (page - 1) * limit),
            ("translatedLanguage[]", self.translated_language),
            ("order[chapter]", "asc"),
            ("includes[]", "scanlation_group"),
        ]
        payload = self._fetch_json(f"manga/{quote(manga_id, safe='')}/feed", params)
        items = _require_data_list(payload, self.name)
        return [_parse_chapter(item) for item in items if isinstance(item, dict) and item.get("id")]

    def fetch_pages(self, chapter_id: str) -> list[str]:
        payload = self._fetch_json(f"at-home/server/{quote(chapter_id, safe='')}")
        if not isinstance(payload, dict):
            raise UpstreamError(UpstreamErrorKind.PARSE_FAILURE, "at-home payload is not an object", self.name)

        base_url = payload.get("baseUrl")
        chapter = payload.get("chapter") or {}
        chapter_hash = chapter.get("hash") if isinstance(chapter, dict) else None
        if not base_url or not chapter_hash:
            return []

        files = chapter.get("data") or []
        return [f"{base_url}/data/{chapter_hash}/{name}" for name in files if name]

    def _build_listing_params(self, query: Query) -> list[tuple[str, Any]]:
        order_key, order_value = _LISTING_ORDER[query.kind]
        params: list[tuple[str, Any]] = [
            ("limit", query.limit),
            ("offset", query.offset),
            (order_key, order_value),
            ("includes[]", "cover_art"),
            ("includes[]", "author"),
        ]
        params.extend(("contentRating[]", rating) for rating in CONTENT_RATINGS)
        if query.kind is QueryKind.SEARCH:
            params.append(("title", query.search_text))
        return params

    def _fetch_json(self, path: str, params: list[tuple[str, Any]] | None = None) -> Any:
        url = build_url(self.base_url, path, params)
        return fetch_json(url, timeout=self.timeout, source=self.name)

    def _manga_to_record(self, item: dict, category: str) -> CanonicalRecord:
        attributes = item.get("attributes") or {}
        relationships = item.get("relationships") or []
        manga_id = str(item["id"])

        return CanonicalRecord(
            id=manga_id,
            title=normalize_title(_pick_localized(attributes.get("title"))),
            cover_image=self._cover_url(manga_id, relationships),
            status=normalize_status(attributes.get("status")),
            rating_average=0.0,
            chapter_count=normalize_count(attributes.get("lastChapter")),
            genres=_parse_genres(attributes),
            summary=normalize_summary(_pick_localized(attributes.get("description"))),
            authors=normalize_authors(_related_names(relationships, "author")),
            year=normalize_year(attributes.get("year")),
            source_category=category,
            source=self.name,
        )

    def _cover_url(self, manga_id: str, relationships: list) -> str:
        for rel in relationships:
            if not isinstance(rel, dict) or rel.get("type") != "cover_art":
                continue
            file_name = (rel.get("attributes") or {}).get("fileName")
            if file_name:
                return f"{self.cover_base_url}/{manga_id}/{file_name}.256.jpg"
        return PLACEHOLDER_COVER


def _require_data_list(payload: Any, source: str) -> list:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise UpstreamError(UpstreamErrorKind.PARSE_FAILURE, "payload has no data list", source)
    return data


def _pick_localized(value: Any) -> str | None:
    """Prefer English, otherwise the first language present."""

    if isinstance(value, str):
        return value
    if not isinstance(value, dict) or not value:
        return None
    if value.get("en"):
        return value["en"]
    for text in value.values():
        if text:
            return str(text)
    return None


def _parse_genres(attributes: dict) -> list[str]:
    names: list[str] = []
    for tag in attributes.get("tags") or []:
        tag_attrs = tag.get("attributes") if isinstance(tag, dict) else None
        if not isinstance(tag_attrs, dict) or tag_attrs.get("group") != "genre":
            continue
        name = _pick_localized(tag_attrs.get("name"))
        if name:
            names.append(name)
    return normalize_names(names)


def _related_names(relationships: list, rel_type: str) -> list[str]:
    names: list[str] = []
    for rel in relationships:
        if not isinstance(rel, dict) or rel.get("type") != rel_type:
            continue
        name = (rel.get("attributes") or {}).get("name")
        if name:
            names.append(name)
    return names


def _parse_alt_titles(attributes: dict) -> list[str]:
    titles: list[str] = []
    for entry in attributes.get("altTitles") or []:
        if isinstance(entry, dict):
            titles.extend(str(text) for text in entry.values() if text)
    return normalize_names(titles)


def _parse_chapter(item: dict) -> CanonicalChapter:
    attributes = item.get("attributes") or {}
    chap = attributes.get("chapter")
    groups = _related_names(item.get("relationships") or [], "scanlation_group")

    return CanonicalChapter(
        id=str(item["id"]),
        number=normalize_chapter_number(chap),
        title=(attributes.get("title") or "").strip() or f"Chapter {chap if chap is not None else '?'}",
        release_date=str(attributes.get("publishAt") or attributes.get("createdAt") or ""),
        group_name=", ".join(groups) if groups else UNKNOWN_GROUP,
    )
