from __future__ import annotations

from datetime import date

import pytest

from config import RunConfig, default_from_date, load_config, one_year_before

_ENV_VARS = [
    "CROSSREF_QUERY",
    "CROSSREF_FROM_DATE",
    "CROSSREF_SELECT",
    "CROSSREF_ROWS",
    "CSV_OUTPUT_PATH",
    "CROSSREF_TIMEOUT_SECONDS",
    "CROSSREF_MAX_RETRIES",
    "CROSSREF_BACKOFF_SECONDS",
    "CROSSREF_MAILTO",
    "CROSSREF_API_URL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_one_year_before() -> None:
    assert one_year_before(date(2026, 10, 19)) == date(2025, 10, 19)
    assert one_year_before(date(2024, 2, 29)) == date(2023, 2, 28)


def test_default_from_date_format() -> None:
    assert default_from_date(date(2026, 1, 5)) == "2025-01-05"


def test_load_config_defaults() -> None:
    config = load_config()
    assert config.query == "animal"
    assert config.rows == 100
    assert config.output_path == "/tmp/xref-assignment.csv"
    assert config.timeout_seconds == 20
    assert config.max_retries == 0
    assert config.mailto is None
    assert config.base_url == "https://api.crossref.org/works"
    assert config.filter.startswith("from-pub-date:")


def test_load_config_reads_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CROSSREF_QUERY", "plant")
    monkeypatch.setenv("CROSSREF_FROM_DATE", "2024-06-01")
    monkeypatch.setenv("CROSSREF_ROWS", "25")
    monkeypatch.setenv("CSV_OUTPUT_PATH", "/data/out.csv")
    monkeypatch.setenv("CROSSREF_MAILTO", "ops@example.org")

    config = load_config()

    assert config.query == "plant"
    assert config.filter == "from-pub-date:2024-06-01"
    assert config.rows == 25
    assert config.output_path == "/data/out.csv"
    assert config.mailto == "ops@example.org"


def test_load_config_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CROSSREF_ROWS", "25")
    config = load_config(rows=10, query=None)
    assert config.rows == 10
    assert config.query == "animal"


def test_run_config_rejects_negative_values() -> None:
    with pytest.raises(ValueError):
        RunConfig(query="animal", from_date="2025-01-01", rows=-1)
    with pytest.raises(ValueError):
        RunConfig(query="animal", from_date="2025-01-01", max_retries=-1)


def test_run_config_blank_from_date_has_no_filter() -> None:
    assert RunConfig(query="animal", from_date="").filter == ""
