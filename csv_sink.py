"""CSV file sink for exported Crossref works."""

from __future__ import annotations

import csv
import logging
import re
from collections.abc import Iterable
from pathlib import Path

from models import Work

LOGGER = logging.getLogger(__name__)

CSV_COLUMNS = ["DOI", "Title", "Author", "Publisher", "Created"]
FIELD_SEPARATOR = ";"

_LINE_BREAK_RE = re.compile(r"\r\n|[\n\x0b\x0c\r\x85\u2028\u2029]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(value: str) -> str:
    """Replace line breaks with spaces and collapse whitespace runs to one space."""
    return _WHITESPACE_RE.sub(" ", _LINE_BREAK_RE.sub(" ", value))


def join_field(values: Iterable[str]) -> str:
    """Join a multi-valued field with ';' and normalize the result."""
    return normalize_text(FIELD_SEPARATOR.join(values))


def work_to_row(work: Work) -> list[str]:
    """Flatten a Work into CSV_COLUMNS order."""
    return [
        work.doi,
        join_field(work.titles),
        join_field(work.authors),
        work.publisher,
        str(work.created_timestamp),
    ]


def write_works(works: Iterable[Work], output_path: str | Path) -> int:
    """Write a header and one fully quoted row per work; return the row count.

    The file is truncated on open. ``works`` is consumed lazily, so when it
    raises part-way the rows written so far stay in the file and the handle
    is still closed before the error propagates.
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    written = 0

    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh, quoting=csv.QUOTE_ALL)
        writer.writerow(CSV_COLUMNS)
        for work in works:
            writer.writerow(work_to_row(work))
            written += 1
            LOGGER.debug("Wrote CSV row for DOI=%s", work.doi)

    LOGGER.info("Wrote %s CSV rows to %s", written, path)
    return written
