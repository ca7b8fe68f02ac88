"""Run configuration for the Crossref export, read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import UTC, date, datetime

CROSSREF_WORKS_API_URL = "https://api.crossref.org/works"
DEFAULT_QUERY = "animal"
DEFAULT_SELECT = "DOI,title,author,created,publisher"
DEFAULT_ROWS = 100
DEFAULT_OUTPUT_PATH = "/tmp/xref-assignment.csv"
REQUEST_TIMEOUT_SECONDS = 20
_DEFAULT_BACKOFF_SECONDS = 1.0


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Everything one export run needs; built once and passed down explicitly."""

    query: str
    from_date: str
    select: str = DEFAULT_SELECT
    rows: int = DEFAULT_ROWS
    output_path: str = DEFAULT_OUTPUT_PATH
    timeout_seconds: float = REQUEST_TIMEOUT_SECONDS
    max_retries: int = 0
    backoff_seconds: float = _DEFAULT_BACKOFF_SECONDS
    mailto: str | None = None
    base_url: str = CROSSREF_WORKS_API_URL

    def __post_init__(self) -> None:
        if self.rows < 0:
            raise ValueError("rows must be >= 0")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")

    @property
    def filter(self) -> str:
        return f"from-pub-date:{self.from_date}" if self.from_date else ""


def one_year_before(day: date) -> date:
    """Return the same calendar day one year earlier (Feb 29 maps to Feb 28)."""
    try:
        return day.replace(year=day.year - 1)
    except ValueError:
        return day.replace(year=day.year - 1, day=28)


def default_from_date(today: date | None = None) -> str:
    if today is None:
        today = datetime.now(UTC).date()
    return one_year_before(today).isoformat()


def load_config(**overrides: object) -> RunConfig:
    """Build a RunConfig from CROSSREF_* env vars, then apply non-None overrides.

    Overrides use RunConfig field names (e.g. ``rows=10``) and normally come
    from CLI flags, which take precedence over the environment.
    """
    values: dict[str, object] = {
        "query": os.getenv("CROSSREF_QUERY", DEFAULT_QUERY),
        "from_date": os.getenv("CROSSREF_FROM_DATE") or default_from_date(),
        "select": os.getenv("CROSSREF_SELECT", DEFAULT_SELECT),
        "rows": int(os.getenv("CROSSREF_ROWS", str(DEFAULT_ROWS))),
        "output_path": os.getenv("CSV_OUTPUT_PATH", DEFAULT_OUTPUT_PATH),
        "timeout_seconds": float(os.getenv("CROSSREF_TIMEOUT_SECONDS", str(REQUEST_TIMEOUT_SECONDS))),
        "max_retries": int(os.getenv("CROSSREF_MAX_RETRIES", "0")),
        "backoff_seconds": float(os.getenv("CROSSREF_BACKOFF_SECONDS", str(_DEFAULT_BACKOFF_SECONDS))),
        "mailto": os.getenv("CROSSREF_MAILTO") or None,
        "base_url": os.getenv("CROSSREF_API_URL", CROSSREF_WORKS_API_URL),
    }
    values.update({key: value for key, value in overrides.items() if value is not None})

    return RunConfig(**values)  # type: ignore[arg-type]
