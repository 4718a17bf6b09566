"""Ordered first-success aggregation over live catalog sources."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from functools import partial
from typing import TypeVar

from .errors import NotFoundError, UpstreamError, UpstreamErrorKind
from .fallback import FALLBACK_SOURCE_NAME
from .interfaces import FallbackInterface, SourceInterface
from .models import AggregateResult, ChapterListResult, MangaDetails, Query, QueryKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CatalogAggregator:
    """Resolve catalog queries against a priority-ordered chain of sources.

    For each query the configured sources are tried in order and the first
    non-empty answer wins. Results from different sources are never merged.
    When every source fails or comes back empty, listings are served from the
    fallback provider and single-id lookups raise ``NotFoundError``.

    Args:
        sources_by_kind: Priority list of sources for each listing kind.
        fallback: Static provider used once the live chain is exhausted.
        detail_sources: Priority list for details, chapters and pages.
        call_timeout: Upper bound in seconds for one source call. ``None``
            leaves timing to the adapters' own socket timeouts.
    """

    def __init__(
        self,
        sources_by_kind: Mapping[QueryKind, Sequence[SourceInterface]],
        fallback: FallbackInterface,
        detail_sources: Sequence[SourceInterface] = (),
        call_timeout: float | None = None,
    ):
        self.sources_by_kind = {kind: tuple(sources) for kind, sources in sources_by_kind.items()}
        self.fallback = fallback
        self.detail_sources = tuple(detail_sources)
        self.call_timeout = call_timeout
        self._executor = ThreadPoolExecutor(thread_name_prefix="source-call") if call_timeout else None

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def resolve(self, query: Query) -> AggregateResult:
        """Resolve one listing query. Never raises for upstream trouble."""

        for source in self._sources_for(query.kind):
            records = self._attempt(source, f"{query.kind.value} page={query.page}", partial(source.fetch, query))
            if records:
                page_records = list(records)[: query.limit]
                return AggregateResult(
                    records=page_records,
                    page=query.page,
                    limit=query.limit,
                    total=len(page_records),
                    source=_source_name(source),
                    query=query.search_text,
                )

        matched = self.fallback.select(query)
        page_records = matched[query.offset : query.offset + query.limit]
        logger.info(
            "No live source answered %s; serving %d of %d fallback records",
            query.kind.value,
            len(page_records),
            len(matched),
        )
        return AggregateResult(
            records=page_records,
            page=query.page,
            limit=query.limit,
            total=len(matched),
            source=FALLBACK_SOURCE_NAME,
            query=query.search_text,
        )

    def details(self, manga_id: str) -> MangaDetails:
        for source in self.detail_sources:
            details = self._attempt(source, f"details {manga_id}", partial(source.fetch_details, manga_id))
            if details is not None:
                return details
        raise NotFoundError("manga", manga_id)

    def chapters(self, manga_id: str, page: int = 1, limit: int = 100) -> ChapterListResult:
        if page < 1 or limit < 1:
            raise ValueError(f"page and limit must be positive, got page={page} limit={limit}")

        for source in self.detail_sources:
            chapters = self._attempt(
                source,
                f"chapters {manga_id} page={page}",
                partial(source.fetch_chapters, manga_id, page, limit),
            )
            if chapters:
                return ChapterListResult(
                    chapters=list(chapters)[:limit],
                    page=page,
                    limit=limit,
                    source=_source_name(source),
                )
        raise NotFoundError("chapters", manga_id)

    def pages(self, chapter_id: str) -> list[str]:
        for source in self.detail_sources:
            pages = self._attempt(source, f"pages {chapter_id}", partial(source.fetch_pages, chapter_id))
            if pages:
                return list(pages)
        raise NotFoundError("chapter pages", chapter_id)

    def _sources_for(self, kind: QueryKind) -> tuple[SourceInterface, ...]:
        sources = self.sources_by_kind.get(kind, ())
        return tuple(source for source in sources if kind in getattr(source, "supported_kinds", (kind,)))

    def _attempt(self, source: SourceInterface, operation: str, call: Callable[[], T]) -> T | None:
        """Run one source call; any failure counts as "no answer"."""

        name = _source_name(source)
        try:
            result = self._run_with_timeout(call, name)
        except UpstreamError as exc:
            logger.warning("Source %s failed for %s: %s", name, operation, exc)
            return None
        except Exception:
            logger.exception("Source %s raised unexpectedly for %s", name, operation)
            return None

        size = len(result) if isinstance(result, (list, tuple)) else int(result is not None)
        logger.debug("Source %s answered %s with %d item(s)", name, operation, size)
        return result

    def _run_with_timeout(self, call: Callable[[], T], name: str) -> T:
        if self._executor is None:
            return call()

        future = self._executor.submit(call)
        try:
            return future.result(timeout=self.call_timeout)
        except FutureTimeoutError as exc:
            # a running call cannot be interrupted; its result is discarded
            future.cancel()
            raise UpstreamError(
                UpstreamErrorKind.TIMEOUT,
                f"no answer within {self.call_timeout}s",
                name,
            ) from exc


def _source_name(source: object) -> str:
    return getattr(source, "name", source.__class__.__name__)
