"""Core data processing for subscriber growth analytics.

Reads the subscriber CSV export and derives the three series the dashboard
plots: cumulative sign-ups, daily new sign-ups, and monthly average daily
sign-ups.  Used by both the CLI (signup_summary.py) and the web dashboard
(app.py).
"""

from __future__ import annotations

import csv
import json
import logging
import os
from datetime import date, datetime
from typing import Any, Iterable

logger = logging.getLogger(__name__)

DATE_COLUMNS = ("subscribed at", "date_joined")
LOAD_ERROR_MESSAGE = "Failed to load user data"


def load_subscriber_records(path: str = "data/data.csv") -> list[dict]:
    """Load subscriber rows from a CSV export.

    The reader is deliberately forgiving: rows with fewer cells than the
    header get ``None`` for the missing columns, extra cells are ignored,
    blank lines are skipped and stray quotes inside fields are kept as text.

    Args:
        path: Filesystem path to the CSV export.  A header row is required.

    Returns:
        List of row dicts keyed by header name.

    Raises:
        OSError: If the file cannot be opened.
        UnicodeDecodeError: If the file is not valid UTF-8.
        csv.Error: If the CSV cannot be tokenised at all.
    """
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f, strict=False)
        return [{k: v for k, v in row.items() if k is not None} for row in reader]


def extract_signup_date(record: dict) -> str | None:
    """Return the raw sign-up timestamp of a record.

    ``subscribed at`` wins over ``date_joined``; the first non-empty value
    is used.
    """
    for column in DATE_COLUMNS:
        value = record.get(column)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def parse_signup_date(value: str) -> date | None:
    """Parse a day-first ``DD/MM/YYYY[ HH:MM[:SS]]`` timestamp.

    Args:
        value: Raw timestamp text.  Anything after the first whitespace
            (the time of day) is discarded.

    Returns:
        The calendar date, or None when the text is not three numeric
        ``/``-separated parts forming a valid date.
    """
    parts = value.split()
    if not parts:
        return None
    pieces = parts[0].split("/")
    if len(pieces) != 3:
        return None
    try:
        day, month, year = (int(p) for p in pieces)
        return date(year, month, day)
    except ValueError:
        return None


def count_signups_by_date(records: Iterable[dict]) -> tuple[dict[str, int], int]:
    """Count records per ``YYYY-MM-DD`` date key.

    Args:
        records: Row dicts as returned by ``load_subscriber_records``.

    Returns:
        A (daily_counts, skipped) tuple.  *skipped* is the number of rows
        with a missing or unparseable date.
    """
    daily_counts: dict[str, int] = {}
    skipped = 0
    for record in records:
        raw = extract_signup_date(record)
        if raw is None:
            logger.debug("Missing date field in row: %r", record)
            skipped += 1
            continue
        parsed = parse_signup_date(raw)
        if parsed is None:
            logger.debug("Invalid date: %r", raw)
            skipped += 1
            continue
        key = parsed.isoformat()
        daily_counts[key] = daily_counts.get(key, 0) + 1
    return daily_counts, skipped


def _round_half_up(value: float) -> int:
    """Round a non-negative number, sending .5 upwards."""
    return int(value + 0.5)


def compute_monthly_growth(growth: list[dict]) -> list[dict]:
    """Average daily sign-ups per calendar month.

    The divisor is the number of days that have an entry in the month,
    not the number of days in the month.

    Args:
        growth: Daily growth series, each point ``{"date", "value"}``.

    Returns:
        One ``{"date": "YYYY-MM-01", "value": int}`` point per month with
        data, sorted by date.
    """
    buckets: dict[tuple[int, int], list[int]] = {}
    for point in growth:
        d = date.fromisoformat(point["date"])
        bucket = buckets.setdefault((d.year, d.month), [0, 0])
        bucket[0] += point["value"]
        bucket[1] += 1

    return [
        {
            "date": date(year, month, 1).isoformat(),
            "value": _round_half_up(total / days),
        }
        for (year, month), (total, days) in sorted(buckets.items())
    ]


def aggregate_signups(
    records: Iterable[dict],
) -> tuple[list[dict], list[dict], list[dict]]:
    """Turn raw subscriber rows into the three dashboard series.

    Args:
        records: Row dicts.  Rows without a usable date are skipped.

    Returns:
        A 3-tuple of (cumulative, growth, monthly) series.  Each is a
        list of ``{"date": "YYYY-MM-DD", "value": int}`` dicts sorted by
        date:
            - cumulative: running total of sign-ups up to each date.
            - growth: new sign-ups on each date.
            - monthly: average daily sign-ups per month, dated to the
              first of the month.
    """
    daily_counts, skipped = count_signups_by_date(records)
    if skipped:
        logger.warning("Skipped %d rows with a missing or invalid date", skipped)

    cumulative: list[dict] = []
    growth: list[dict] = []
    running_total = 0
    for key in sorted(daily_counts):
        count = daily_counts[key]
        running_total += count
        cumulative.append({"date": key, "value": running_total})
        growth.append({"date": key, "value": count})

    return cumulative, growth, compute_monthly_growth(growth)


def compute_summary_stats(cumulative: list[dict], growth: list[dict]) -> dict[str, Any]:
    """Compute headline numbers for the dashboard and CLI report.

    Args:
        cumulative: Cumulative series from ``aggregate_signups``.
        growth: Daily growth series from ``aggregate_signups``.

    Returns:
        Dict with total_subscribers, first_date, last_date, span_days,
        active_days, avg_per_active_day and top_days (up to five
        ``{"date", "value"}`` points, busiest first).
    """
    if not growth:
        return {
            "total_subscribers": 0,
            "first_date": None,
            "last_date": None,
            "span_days": 0,
            "active_days": 0,
            "avg_per_active_day": 0,
            "top_days": [],
        }

    first = date.fromisoformat(growth[0]["date"])
    last = date.fromisoformat(growth[-1]["date"])
    total = cumulative[-1]["value"]
    top_days = sorted(growth, key=lambda p: (-p["value"], p["date"]))[:5]
    return {
        "total_subscribers": total,
        "first_date": first.isoformat(),
        "last_date": last.isoformat(),
        "span_days": (last - first).days + 1,
        "active_days": len(growth),
        "avg_per_active_day": round(total / len(growth), 2),
        "top_days": top_days,
    }


def build_dashboard_payload(path: str = "data/data.csv") -> dict[str, Any]:
    """One-call entry point: load the CSV and compute every series.

    A file that cannot be read does not raise: the series come back
    empty and ``error`` holds a human-readable message.  A readable file
    with no usable rows also gives empty series, but ``error`` is None.

    Args:
        path: Filesystem path to the subscriber CSV export.

    Returns:
        Dict with keys: generated_at (ISO timestamp), cumulativeData,
        growthRateData, monthlyGrowthRateData, summary, error.
    """
    error = None
    try:
        records = load_subscriber_records(path)
    except (OSError, UnicodeDecodeError, csv.Error):
        logger.exception("Error loading data from %s", path)
        records = []
        error = LOAD_ERROR_MESSAGE

    cumulative, growth, monthly = aggregate_signups(records)
    return {
        "generated_at": datetime.now().isoformat(),
        "cumulativeData": cumulative,
        "growthRateData": growth,
        "monthlyGrowthRateData": monthly,
        "summary": compute_summary_stats(cumulative, growth),
        "error": error,
    }


# ---------------------------------------------------------------------------
# CLI helpers (used by signup_summary.py)
# ---------------------------------------------------------------------------

def save_analytics_files(payload: dict[str, Any], output_dir: str = "signup_analytics") -> None:
    """Write the daily and monthly series to CSV/JSON files.

    Creates *output_dir* if needed and writes daily_signups.json/csv
    (date, new_subscribers, total_subscribers) and
    monthly_growth.json/csv (month_start, avg_daily_subscribers).

    Args:
        payload: Dict returned by ``build_dashboard_payload``.
        output_dir: Directory for the output files.
    """
    os.makedirs(output_dir, exist_ok=True)

    daily_rows = [
        {
            "date": g["date"],
            "new_subscribers": g["value"],
            "total_subscribers": c["value"],
        }
        for g, c in zip(payload["growthRateData"], payload["cumulativeData"])
    ]
    monthly_rows = [
        {"month_start": m["date"], "avg_daily_subscribers": m["value"]}
        for m in payload["monthlyGrowthRateData"]
    ]

    with open(f"{output_dir}/daily_signups.json", "w") as f:
        json.dump(daily_rows, f, indent=2)

    with open(f"{output_dir}/monthly_growth.json", "w") as f:
        json.dump(monthly_rows, f, indent=2)

    with open(f"{output_dir}/daily_signups.csv", "w", newline="") as f:
        writer = csv.DictWriter(
            f, fieldnames=["date", "new_subscribers", "total_subscribers"]
        )
        writer.writeheader()
        writer.writerows(daily_rows)

    with open(f"{output_dir}/monthly_growth.csv", "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=["month_start", "avg_daily_subscribers"])
        writer.writeheader()
        writer.writerows(monthly_rows)


def print_summary_report(stats: dict[str, Any], output_dir: str = "signup_analytics") -> None:
    """Print the CLI summary report to stdout.

    Args:
        stats: Summary dict from ``compute_summary_stats``.
        output_dir: Directory the analytics files were written to.
    """
    print(f"\n{'=' * 60}")
    print("Subscriber Growth Summary")
    print(f"{'=' * 60}")
    print(f"Total Subscribers: {stats['total_subscribers']:,}")

    if stats["first_date"] and stats["last_date"]:
        print(f"First Sign-up: {stats['first_date']}")
        print(f"Last Sign-up: {stats['last_date']}")
        print(f"Days Spanned: {stats['span_days']:,}")
        print(f"Days with Sign-ups: {stats['active_days']:,}")
        print(f"Average per Active Day: {stats['avg_per_active_day']:.2f}")

    if stats["top_days"]:
        print("\nTop 5 Days by Sign-ups:")
        for point in stats["top_days"]:
            print(f"  {point['date']}: {point['value']:,} subscribers")

    print(f"{'=' * 60}")
    print(f"\nAnalytics data has been saved to the '{output_dir}' directory:")
    print("1. daily_signups.json/csv - New and total subscribers per day")
    print("2. monthly_growth.json/csv - Average daily sign-ups per month")
