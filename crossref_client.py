"""Crossref REST API client: request building, cursor paging and item parsing."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from typing import Any

import requests

from config import RunConfig
from errors import ParseError, TransportError
from models import ResultPage, SearchRequest, Work

# '*' asks the API for deep paging; every response then carries a next-cursor
# that continues the same result set.
START_CURSOR = "*"
USER_AGENT = "crossref-works-export/0.1"
_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

LOGGER = logging.getLogger(__name__)


def build_request(query: str, date_filter: str, select: str, rows: int) -> SearchRequest:
    """Return the first request of a paged search, positioned at the start cursor."""
    return SearchRequest(query=query, filter=date_filter, select=select, rows=rows, cursor=START_CURSOR)


def build_request_from_config(config: RunConfig) -> SearchRequest:
    return build_request(
        query=config.query,
        date_filter=config.filter,
        select=config.select,
        rows=config.rows,
    )


def build_params(request: SearchRequest, mailto: str | None = None) -> dict[str, str]:
    """Serialize a request to query parameters, leaving out blank fields."""
    params: dict[str, str] = {}
    if _is_not_blank(request.query):
        params["query"] = request.query
    if _is_not_blank(request.filter):
        params["filter"] = request.filter
    if _is_not_blank(request.select):
        params["select"] = request.select
    if request.rows > 0:
        params["rows"] = str(request.rows)
    if _is_not_blank(request.cursor):
        params["cursor"] = request.cursor
    if mailto and mailto.strip():
        params["mailto"] = mailto
    return params


def fetch_page(request: SearchRequest, *, config: RunConfig) -> ResultPage:
    """Fetch and parse one page of works.

    Raises:
        TransportError: the request failed or returned a non-success status.
        ParseError: the body is not the expected JSON envelope, or an item
            lacks a required field.
    """
    if not _is_not_blank(request.cursor):
        raise ValueError("SearchRequest.cursor must be set before fetching a page")

    params = build_params(request, mailto=config.mailto)
    LOGGER.info("Works query url=%s params=%s", config.base_url, params)

    response = _get_with_backoff(url=config.base_url, params=params, config=config)

    try:
        payload = response.json()
    except ValueError as exc:
        raise ParseError(f"Response body is not valid JSON: {exc}") from exc

    return _parse_works_payload(payload)


def fetch_all(initial_request: SearchRequest, *, config: RunConfig) -> Iterator[Work]:
    """Yield every work of the result set, one page at a time.

    Paging continues only while a page comes back full (as many works as
    ``rows``) and carries a next cursor. A short page is the last page even
    when the API still returns a cursor.
    """
    request = initial_request
    fetched = 0

    while True:
        page = fetch_page(request, config=config)
        fetched += len(page.works)
        LOGGER.info(
            "Crossref fetch: returned=%s total_results=%s fetched=%s next_cursor=%s",
            len(page.works),
            page.total_results,
            fetched,
            page.next_cursor,
        )

        yield from page.works

        if len(page.works) != request.rows or not page.next_cursor:
            break
        request = request.with_cursor(page.next_cursor)


def _get_with_backoff(*, url: str, params: dict[str, str], config: RunConfig) -> requests.Response:
    """GET with optional exponential backoff on transient failures.

    With ``config.max_retries == 0`` the first failure is raised as-is.
    """
    headers = {"User-Agent": _user_agent(config.mailto), "Accept": "application/json"}
    delay_seconds = config.backoff_seconds
    attempts = config.max_retries + 1
    attempt = 1

    while True:
        try:
            response = requests.get(url, params=params, headers=headers, timeout=config.timeout_seconds)
            response.raise_for_status()
            return response
        except requests.RequestException as exc:
            if attempt >= attempts or not _is_transient(exc):
                raise TransportError(f"Crossref request failed: {exc}") from exc
            LOGGER.warning(
                "Crossref request failed on attempt %s/%s, retrying in %.1fs: %s",
                attempt,
                attempts,
                delay_seconds,
                exc,
            )
            time.sleep(delay_seconds)
            delay_seconds *= 2
            attempt += 1


def _is_transient(exc: requests.RequestException) -> bool:
    if isinstance(exc, requests.HTTPError):
        return exc.response is not None and exc.response.status_code in _RETRYABLE_STATUS_CODES
    return isinstance(exc, (requests.ConnectionError, requests.Timeout))


def _user_agent(mailto: str | None) -> str:
    return f"{USER_AGENT} (mailto:{mailto})" if mailto else USER_AGENT


def _parse_works_payload(payload: Any) -> ResultPage:
    """Parse the works response envelope into a ResultPage."""
    if not isinstance(payload, dict) or not isinstance(payload.get("message"), dict):
        raise ParseError("Unexpected works payload shape: expected an object with 'message'")

    message = payload["message"]
    total_results = message.get("total-results")
    items = message.get("items")

    if not isinstance(total_results, int) or isinstance(total_results, bool):
        raise ParseError("Works payload is missing integer 'total-results'")
    if not isinstance(items, list):
        raise ParseError("Works payload is missing 'items' list")

    next_cursor = message.get("next-cursor")
    if next_cursor is not None and not isinstance(next_cursor, str):
        raise ParseError("Works payload 'next-cursor' is not a string")

    return ResultPage(
        works=[parse_work(item) for item in items],
        total_results=total_results,
        next_cursor=next_cursor or None,
    )


def parse_work(item: Any) -> Work:
    """Convert one raw API item into a Work.

    ``DOI`` and ``created.timestamp`` are required. ``publisher``, ``title``
    and ``author`` may be missing; they become empty values and a warning is
    logged.
    """
    if not isinstance(item, dict):
        raise ParseError(f"Work item is not an object: {item!r}")

    doi = item.get("DOI")
    if not isinstance(doi, str):
        raise ParseError("Work item is missing 'DOI'")

    publisher = item.get("publisher")
    if publisher is None:
        LOGGER.warning("Publisher is missing for DOI=%s", doi)
        publisher = ""

    titles = item.get("title")
    if titles is None:
        LOGGER.warning("Title is missing for DOI=%s", doi)
        titles = []
    elif not isinstance(titles, list):
        raise ParseError(f"Work 'title' is not a list for DOI={doi}")

    authors = item.get("author")
    if authors is None:
        LOGGER.warning("Author is missing for DOI=%s", doi)
        authors = []
    elif not isinstance(authors, list):
        raise ParseError(f"Work 'author' is not a list for DOI={doi}")

    return Work(
        doi=doi,
        titles=tuple(str(title) for title in titles),
        authors=tuple(_author_name(author) for author in authors),
        publisher=str(publisher),
        created_timestamp=_created_timestamp(item, doi),
    )


def _author_name(author: Any) -> str:
    block = author if isinstance(author, dict) else {}
    return f"{_as_text(block.get('given'))} {_as_text(block.get('family'))}"


def _created_timestamp(item: dict[str, Any], doi: str) -> int:
    created = item.get("created")
    if not isinstance(created, dict) or "timestamp" not in created:
        raise ParseError(f"Work is missing 'created.timestamp' for DOI={doi}")

    timestamp = created["timestamp"]
    # Infinity and NaN are valid for response.json(); is_integer() rejects both.
    if isinstance(timestamp, bool) or not (
        isinstance(timestamp, int) or (isinstance(timestamp, float) and timestamp.is_integer())
    ):
        raise ParseError(f"Work 'created.timestamp' is not an integer for DOI={doi}")
    return int(timestamp)


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _is_not_blank(value: str | None) -> bool:
    return isinstance(value, str) and bool(value.strip())
