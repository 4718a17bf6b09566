"""Multi-source manga catalog aggregation with a static fallback."""

from .aggregator import CatalogAggregator
from .errors import MangaAggregatorError, NotFoundError, UpstreamError, UpstreamErrorKind
from .fallback import FallbackProvider, load_fallback_dataset
from .models import (
    AggregateResult,
    CanonicalChapter,
    CanonicalRecord,
    ChapterListResult,
    MangaDetails,
    Query,
    QueryKind,
    Status,
)
from .normalize import normalize_status

__all__ = [
    "AggregateResult",
    "CanonicalChapter",
    "CanonicalRecord",
    "CatalogAggregator",
    "ChapterListResult",
    "FallbackProvider",
    "MangaAggregatorError",
    "MangaDetails",
    "NotFoundError",
    "Query",
    "QueryKind",
    "Status",
    "UpstreamError",
    "UpstreamErrorKind",
    "load_fallback_dataset",
    "normalize_status",
]
