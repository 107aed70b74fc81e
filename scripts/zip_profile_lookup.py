#!/usr/bin/env python3
from __future__ import annotations

import argparse
import dataclasses
import re
import sys
import threading
from concurrent.futures import Future
from pathlib import Path

import httpx

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from backend.app.aggregate_service import QueryCancelledError, aggregate_area  # noqa: E402
from backend.app.config import Settings, get_settings  # noqa: E402
from backend.app.logging_config import configure_logging  # noqa: E402
from backend.app.query_runner import AreaQueryRunner  # noqa: E402
from backend.app.schemas import UNAVAILABLE, AggregateRecord, CategoryShare  # noqa: E402
from backend.app.stats import build_demographic_summary  # noqa: E402

ZIP_PATTERN = re.compile(r"^\d{5}$")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Look up location, housing, median income, nearby schools and ACS "
            "demographics for a 5-digit ZIP code."
        )
    )
    parser.add_argument("zip_code", nargs="?", help="5-digit ZIP code, e.g. 30336.")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="HTTP timeout in seconds (default: HTTP_TIMEOUT_SECONDS or 10).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the aggregate record as JSON instead of a text summary.",
    )
    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Read ZIP codes from stdin; a new ZIP supersedes the one still running.",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO).")
    return parser


def validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if not args.interactive and args.zip_code is None:
        parser.error("a ZIP code is required unless --interactive is given.")
    if args.zip_code is not None and not ZIP_PATTERN.match(args.zip_code):
        parser.error("ZIP code must be exactly 5 digits.")
    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be > 0.")


def _fmt_currency(value: float | int) -> str:
    if value == UNAVAILABLE:
        return "N/A"
    return f"${int(round(value)):,}"


def _fmt_share(share: CategoryShare) -> str:
    if share.pct is None:
        return f"{share.count:,}"
    return f"{share.count:,} ({share.pct:.1f}%)"


def print_summary(record: AggregateRecord) -> None:
    print("--- Location ---")
    if record.city:
        print(f"{record.city}, {record.state} (ZIP {record.zip_code})")
        print(f"Coordinates: {record.latitude:.6f}, {record.longitude:.6f}")
    else:
        print(f"Location not available for ZIP {record.zip_code}.")

    print("")
    print("--- Housing ---")
    print(f"Average home price: {_fmt_currency(record.housing.avg_home_price)}")
    print(f"Average rent: {_fmt_currency(record.housing.avg_rent)}")

    print("")
    print("--- Median Income ---")
    print(f"Median household income: {_fmt_currency(record.median_income)}")

    print("")
    print("--- Schools ---")
    if record.schools:
        for idx, school in enumerate(record.schools, start=1):
            print(f"{idx}. {school.display_label()}")
    else:
        print("No schools found for this ZIP code.")

    print("")
    print("--- Demographics ---")
    summary = build_demographic_summary(record.demographics)
    print(f"Total population: {summary.total_population:,}")
    if summary.total_population > 0:
        for share in summary.race:
            print(f"- {share.label}: {_fmt_share(share)}")
        print("Age distribution:")
        for share in summary.age:
            print(f"- {share.label}: {_fmt_share(share)}")
    else:
        print("Race and age breakdowns not available.")
    print(f"Bachelor's degrees: {summary.bachelors_degrees:,}")
    print(f"Doctorate degrees: {summary.doctorate_degrees:,}")

    if record.diagnostics:
        print("")
        print("Unavailable sources:")
        for diagnostic in record.diagnostics:
            print(f"- {diagnostic.source}: {diagnostic.kind}: {diagnostic.message}")


def emit(record: AggregateRecord, *, as_json: bool) -> None:
    if as_json:
        print(record.model_dump_json(indent=2))
    else:
        print_summary(record)


def run_interactive(client: httpx.Client, settings: Settings, *, as_json: bool) -> int:
    def run_query(zip_code: str, cancel_event: threading.Event) -> AggregateRecord:
        return aggregate_area(client, zip_code, settings=settings, cancel_event=cancel_event)

    def on_done(future: Future[AggregateRecord]) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if isinstance(exc, QueryCancelledError):
            return
        if exc is not None:
            print(f"Error: {exc}", file=sys.stderr)
            return
        emit(future.result(), as_json=as_json)

    runner = AreaQueryRunner(run_query)
    try:
        for line in sys.stdin:
            zip_code = line.strip()
            if not zip_code:
                continue
            if not ZIP_PATTERN.match(zip_code):
                print(f"Ignoring {zip_code!r}: ZIP code must be exactly 5 digits.", file=sys.stderr)
                continue
            runner.submit(zip_code).add_done_callback(on_done)
    finally:
        runner.shutdown(cancel_pending=False)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    validate_args(parser, args)

    settings = get_settings()
    if args.timeout is not None:
        settings = dataclasses.replace(settings, http_timeout=args.timeout)
    configure_logging(args.log_level or settings.log_level)

    with httpx.Client(follow_redirects=True) as client:
        if args.interactive:
            return run_interactive(client, settings, as_json=args.json)
        record = aggregate_area(client, args.zip_code, settings=settings)

    emit(record, as_json=args.json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
