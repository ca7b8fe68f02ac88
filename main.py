"""CLI entrypoint for the Crossref works CSV export."""

from __future__ import annotations

import argparse
import logging
import os

from dotenv import load_dotenv

from config import RunConfig, load_config
from crossref_client import build_request_from_config, fetch_all
from csv_sink import write_works


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags. Flags left unset fall back to CROSSREF_* env vars."""
    parser = argparse.ArgumentParser(description="Export Crossref works matching a query to a CSV file")
    parser.add_argument("--query", default=None, help="Free-text search term (default: animal)")
    parser.add_argument(
        "--from-date",
        default=None,
        help="Earliest publication date, YYYY-MM-DD (default: one year ago)",
    )
    parser.add_argument("--rows", type=int, default=None, help="Records requested per page (default: 100)")
    parser.add_argument("--output", default=None, help="CSV output path (default: /tmp/xref-assignment.csv)")
    parser.add_argument("--timeout", type=float, default=None, help="Per-request read timeout in seconds")
    parser.add_argument(
        "--max-retries",
        type=int,
        default=None,
        help="Retries on transient HTTP failures (default: 0, fail fast)",
    )
    parser.add_argument("--mailto", default=None, help="Contact email sent to Crossref's polite pool")
    return parser.parse_args(argv)


def run(config: RunConfig) -> int:
    """Fetch every matching work and write it to config.output_path; return rows written."""
    request = build_request_from_config(config)
    logging.info(
        "Starting Crossref export: query=%r filter=%r rows=%s output=%s",
        config.query,
        config.filter,
        config.rows,
        config.output_path,
    )

    written = write_works(fetch_all(request, config=config), config.output_path)

    logging.info("Run complete. rows_written=%s output=%s", written, config.output_path)
    return written


def main(argv: list[str] | None = None) -> None:
    """Initialize config and execute the export."""
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    args = parse_args(argv)

    try:
        config = load_config(
            query=args.query,
            from_date=args.from_date,
            rows=args.rows,
            output_path=args.output,
            timeout_seconds=args.timeout,
            max_retries=args.max_retries,
            mailto=args.mailto,
        )
        run(config)
    except Exception:  # any failure aborts the whole run; partial output is kept
        logging.exception("Crossref export aborted")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
