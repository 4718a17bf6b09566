"""Exception taxonomy for catalog aggregation."""

from __future__ import annotations

from enum import Enum


class MangaAggregatorError(Exception):
    """Base class for aggregation errors."""


class UpstreamErrorKind(str, Enum):
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    BAD_STATUS = "bad_status"
    PARSE_FAILURE = "parse_failure"


class UpstreamError(MangaAggregatorError):
    """A source adapter could not produce a usable response.

    Always absorbed by the aggregator; callers never see it.
    """

    def __init__(self, kind: UpstreamErrorKind, message: str, source: str = ""):
        super().__init__(message)
        self.kind = kind
        self.source = source

    def __str__(self) -> str:
        prefix = f"{self.source}: " if self.source else ""
        return f"{prefix}[{self.kind.value}] {self.args[0]}"


class NotFoundError(MangaAggregatorError):
    """No source could resolve a single-id lookup."""

    def __init__(self, lookup: str, identifier: str):
        super().__init__(f"{lookup} not found: {identifier}")
        self.lookup = lookup
        self.identifier = identifier
