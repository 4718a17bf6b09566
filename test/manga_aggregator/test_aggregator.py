import threading

import pytest

from manga_aggregator.aggregator import CatalogAggregator
from manga_aggregator.errors import NotFoundError, UpstreamError, UpstreamErrorKind
from manga_aggregator.fallback import FallbackProvider
from manga_aggregator.models import (
    CanonicalChapter,
    CanonicalRecord,
    MangaDetails,
    Query,
    QueryKind,
)

ALL_KINDS = frozenset(QueryKind)


def make_records(prefix: str, count: int) -> list[CanonicalRecord]:
    return [CanonicalRecord(id=f"{prefix}-{index}", title=f"{prefix} {index}", source=prefix) for index in range(count)]


class FakeSource:
    def __init__(self, name, records=None, error=None, kinds=ALL_KINDS, details=None, chapters=None, pages=None):
        self.name = name
        self.supported_kinds = kinds
        self.records = records or []
        self.error = error
        self.details = details
        self.chapters = chapters or []
        self.pages = pages or []
        self.calls = 0

    def _call(self, value):
        self.calls += 1
        if self.error:
            raise self.error
        return value

    def fetch(self, query):
        return self._call(list(self.records))

    def fetch_details(self, manga_id):
        return self._call(self.details)

    def fetch_chapters(self, manga_id, page, limit):
        return self._call(list(self.chapters))

    def fetch_pages(self, chapter_id):
        return self._call(list(self.pages))


def failing(name: str, kind: UpstreamErrorKind = UpstreamErrorKind.TRANSPORT) -> FakeSource:
    return FakeSource(name, error=UpstreamError(kind, "boom", name))


def build(sources, detail_sources=(), fallback=None, call_timeout=None) -> CatalogAggregator:
    return CatalogAggregator(
        sources_by_kind={kind: sources for kind in QueryKind},
        fallback=fallback or FallbackProvider.from_file(),
        detail_sources=detail_sources,
        call_timeout=call_timeout,
    )


def test_first_success_wins_and_lower_priority_is_never_called() -> None:
    source_a = FakeSource("a", records=make_records("a", 3))
    source_b = FakeSource("b", records=make_records("b", 5))
    aggregator = build([source_a, source_b])

    result = aggregator.resolve(Query(kind=QueryKind.POPULAR))

    assert [item.id for item in result.records] == ["a-0", "a-1", "a-2"]
    assert result.source == "a"
    assert result.total == 3
    assert source_b.calls == 0


def test_failed_and_empty_sources_fall_through_in_order() -> None:
    broken = failing("broken", UpstreamErrorKind.TIMEOUT)
    empty = FakeSource("empty")
    good = FakeSource("good", records=make_records("good", 2))
    unused = FakeSource("unused", records=make_records("unused", 2))
    aggregator = build([broken, empty, good, unused])

    result = aggregator.resolve(Query(kind=QueryKind.LATEST))

    assert result.source == "good"
    assert [broken.calls, empty.calls, good.calls, unused.calls] == [1, 1, 1, 0]


def test_unexpected_exception_is_contained() -> None:
    crashing = FakeSource("crashing", error=KeyError("attributes"))
    good = FakeSource("good", records=make_records("good", 1))
    aggregator = build([crashing, good])

    result = aggregator.resolve(Query(kind=QueryKind.POPULAR))

    assert result.source == "good"


def test_fallback_result_equals_fallback_provider_alone() -> None:
    fallback = FallbackProvider.from_file()
    aggregator = build([failing("a"), FakeSource("b")], fallback=fallback)
    query = Query(kind=QueryKind.SEARCH, page=1, limit=3, search_text="action")

    result = aggregator.resolve(query)

    assert result.used_fallback
    assert result.records == fallback.resolve(query)
    assert result.total == len(fallback.select(query))
    assert result.query == "action"


def test_all_sources_failing_returns_whole_static_catalog() -> None:
    aggregator = build([failing("a"), failing("b", UpstreamErrorKind.BAD_STATUS)])

    result = aggregator.resolve(Query(kind=QueryKind.POPULAR, page=1, limit=20))

    assert result.total == 6
    assert len(result.records) == 6
    views = [item.views for item in result.records]
    assert views == sorted(views, reverse=True)


def test_fallback_page_out_of_range_keeps_total() -> None:
    aggregator = build([failing("a")])

    result = aggregator.resolve(Query(kind=QueryKind.POPULAR, page=3, limit=5))

    assert result.records == []
    assert result.total == 6
    assert result.page == 3
    assert result.limit == 5


@pytest.mark.parametrize("limit", [1, 2, 4, 20])
def test_records_never_exceed_limit(limit) -> None:
    live = build([FakeSource("a", records=make_records("a", 10))])
    offline = build([failing("a")])

    for aggregator in (live, offline):
        result = aggregator.resolve(Query(kind=QueryKind.POPULAR, limit=limit))
        assert len(result.records) <= limit


def test_live_total_is_count_of_returned_records() -> None:
    aggregator = build([FakeSource("a", records=make_records("a", 10))])

    result = aggregator.resolve(Query(kind=QueryKind.POPULAR, limit=4))

    assert result.total == 4


def test_resolve_is_idempotent() -> None:
    aggregator = build([failing("a")])
    query = Query(kind=QueryKind.LATEST, page=1, limit=4)

    assert aggregator.resolve(query).records == aggregator.resolve(query).records


def test_sources_not_supporting_kind_are_skipped() -> None:
    listing_only = FakeSource("listing", records=make_records("listing", 2), kinds=frozenset({QueryKind.POPULAR}))
    searcher = FakeSource("searcher", records=make_records("searcher", 1))
    aggregator = build([listing_only, searcher])

    result = aggregator.resolve(Query(kind=QueryKind.SEARCH, search_text="x"))

    assert result.source == "searcher"
    assert listing_only.calls == 0


def test_kind_without_configured_sources_goes_to_fallback() -> None:
    aggregator = CatalogAggregator(sources_by_kind={}, fallback=FallbackProvider.from_file())

    result = aggregator.resolve(Query(kind=QueryKind.POPULAR))

    assert result.used_fallback


def test_slow_source_times_out_and_next_source_answers() -> None:
    release = threading.Event()

    class SlowSource(FakeSource):
        def fetch(self, query):
            release.wait(timeout=5)
            return make_records("slow", 1)

    aggregator = build([SlowSource("slow"), FakeSource("fast", records=make_records("fast", 1))], call_timeout=0.05)
    try:
        result = aggregator.resolve(Query(kind=QueryKind.POPULAR))
    finally:
        release.set()
        aggregator.close()

    assert result.source == "fast"


def test_details_uses_first_source_that_knows_the_id() -> None:
    details = MangaDetails(record=CanonicalRecord(id="one-piece", title="One Piece"), alternative_titles=["OP"])
    missing = FakeSource("missing", details=None)
    known = FakeSource("known", details=details)
    aggregator = build([], detail_sources=[failing("down"), missing, known])

    assert aggregator.details("one-piece") is details


def test_details_not_found_after_every_source() -> None:
    aggregator = build([], detail_sources=[failing("down"), FakeSource("missing")])

    with pytest.raises(NotFoundError) as excinfo:
        aggregator.details("nope")

    assert excinfo.value.identifier == "nope"


def test_chapters_and_pages_follow_the_same_chain() -> None:
    chapters = [CanonicalChapter(id=f"c{index}", number=index + 0.5) for index in range(5)]
    source = FakeSource("a", chapters=chapters, pages=["https://img/1.png", "https://img/2.png"])
    aggregator = build([], detail_sources=[FakeSource("empty"), source])

    listing = aggregator.chapters("manga", page=1, limit=3)
    pages = aggregator.pages("c1")

    assert [item.id for item in listing.chapters] == ["c0", "c1", "c2"]
    assert listing.total == 3
    assert listing.source == "a"
    assert pages == ["https://img/1.png", "https://img/2.png"]


def test_chapters_and_pages_raise_not_found_without_fallback() -> None:
    aggregator = build([], detail_sources=[failing("down")])

    with pytest.raises(NotFoundError):
        aggregator.chapters("manga")
    with pytest.raises(NotFoundError):
        aggregator.pages("chapter")
    with pytest.raises(ValueError):
        aggregator.chapters("manga", page=0)


def test_result_serializes_to_outward_payload() -> None:
    aggregator = build([failing("a")])

    payload = aggregator.resolve(Query(kind=QueryKind.POPULAR, limit=2)).to_dict()

    assert set(payload) == {"manga", "page", "limit", "total"}
    first = payload["manga"][0]
    assert first["title"] == "One Piece"
    assert first["author"] == "Eiichiro Oda"
    assert first["status"] == "Ongoing"
    assert first["category"] == "popular"
    assert first["source"] == "fallback"
