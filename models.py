"""Shared typed models for the Crossref export."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class SearchRequest:
    """Parameters for one call to the Crossref works endpoint."""

    query: str
    filter: str
    select: str
    rows: int
    cursor: str

    def with_cursor(self, cursor: str) -> SearchRequest:
        return replace(self, cursor=cursor)


@dataclass(frozen=True, slots=True)
class Work:
    """Normalized work record parsed from one API item."""

    doi: str
    titles: tuple[str, ...]
    authors: tuple[str, ...]
    publisher: str
    created_timestamp: int


@dataclass(frozen=True, slots=True)
class ResultPage:
    works: list[Work]
    total_results: int
    next_cursor: str | None
