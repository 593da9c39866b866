"""Shared test helpers for the subscriber dashboard tests.

Regular functions (not fixtures) that can be imported by any test module.
"""

from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path


def make_records(dates: list[str], column: str = "subscribed at") -> list[dict]:
    """Build subscriber rows with *dates* in the given date column."""
    return [{"name": f"user-{i}", column: d} for i, d in enumerate(dates)]


def write_csv(path: Path, lines: list[str]) -> str:
    """Write raw CSV *lines* (header first) and return the string path."""
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return str(path)


def make_series(start: str, values: list[int], step_days: int = 1) -> list[dict]:
    """Build a JSON-shaped series of consecutive dates starting at *start*."""
    first = date.fromisoformat(start)
    return [
        {"date": (first + timedelta(days=i * step_days)).isoformat(), "value": v}
        for i, v in enumerate(values)
    ]
