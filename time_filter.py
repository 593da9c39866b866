"""Time-range filtering of dashboard series.

The filter only re-slices an already aggregated series; totals are never
recomputed, so the first point of a sliced cumulative series still shows
the all-time running total on that date.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Literal, Sequence, TypeVar

TimeFilter = Literal["all", "7days", "30days", "3months", "12months"]

TIME_FILTERS: tuple[str, ...] = ("all", "7days", "30days", "3months", "12months")

TIME_FILTER_LABELS: dict[str, str] = {
    "all": "All Time",
    "7days": "Last 7 Days",
    "30days": "Last 30 Days",
    "3months": "Last 3 Months",
    "12months": "Last 12 Months",
}

# Monthly buckets are too coarse for anything shorter than a month.
MONTHLY_MIN_DAYS = 30

P = TypeVar("P")


def _subtract_months(ref: date, months: int) -> date:
    """Step *ref* back by calendar months, clamping the day to the month length."""
    index = ref.year * 12 + (ref.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(ref.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _resolve_reference(reference_date: str | date | None) -> date:
    if reference_date is None:
        return date.today()
    if isinstance(reference_date, str):
        return date.fromisoformat(reference_date)
    return reference_date


def compute_cutoff(
    time_filter: str,
    reference_date: str | date | None = None,
    monthly: bool = False,
) -> date | None:
    """Return the earliest date kept by *time_filter*.

    Args:
        time_filter: One of ``TIME_FILTERS``.
        reference_date: Date (or ISO string) to treat as "today".
            Defaults to the actual current date.
        monthly: If True, ``7days`` and ``30days`` both use a 30-day
            window.

    Returns:
        The cutoff date, or None for ``all``.

    Raises:
        ValueError: If *time_filter* is not a known filter.
    """
    if time_filter not in TIME_FILTERS:
        raise ValueError(f"Unknown time filter: {time_filter!r}")
    if time_filter == "all":
        return None

    ref = _resolve_reference(reference_date)
    if time_filter == "7days":
        days = MONTHLY_MIN_DAYS if monthly else 7
        return ref - timedelta(days=days)
    if time_filter == "30days":
        return ref - timedelta(days=30)
    if time_filter == "3months":
        return _subtract_months(ref, 3)
    return _subtract_months(ref, 12)


def _point_date(point: object) -> date:
    value = point["date"] if isinstance(point, dict) else point.date
    if isinstance(value, str):
        return date.fromisoformat(value)
    if isinstance(value, datetime):
        return value.date()
    return value


def slice_series(
    series: Sequence[P],
    time_filter: str,
    reference_date: str | date | None = None,
    monthly: bool = False,
) -> Sequence[P]:
    """Keep the points of *series* dated on or after the filter's cutoff.

    Points may be ``{"date": ..., "value": ...}`` dicts (ISO date strings
    or dates) or objects with ``date``/``value`` attributes.

    Args:
        series: Points sorted by date.
        time_filter: One of ``TIME_FILTERS``.
        reference_date: Date (or ISO string) to treat as "today".
        monthly: Pass True for the monthly growth series.

    Returns:
        *series* itself for ``all``; otherwise a new list with the kept
        points in their original order.

    Raises:
        ValueError: If *time_filter* is not a known filter.
    """
    cutoff = compute_cutoff(time_filter, reference_date, monthly=monthly)
    if cutoff is None:
        return series
    return [p for p in series if _point_date(p) >= cutoff]
