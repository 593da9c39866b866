"""Chart geometry for the dashboard's SVG charts.

Every chart is drawn in a normalised 100x100 viewport: x runs from 0 (first
date) to 100 (last date) and y from 100 (domain floor) to 0 (domain
ceiling).  This module maps a series into that viewport and produces the
line and area paths, axis ticks and tooltip hit regions.  Nothing here
knows about colours or markup; see charts.py for that.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Sequence

VIEWPORT = 100.0
Y_TICK_COUNT = 8

XLabelRule = Callable[[Sequence["SeriesPoint"], int, str], "str | None"]


@dataclass(frozen=True)
class SeriesPoint:
    date: date
    value: int


def _to_point(p: Any) -> SeriesPoint:
    if isinstance(p, SeriesPoint):
        return p
    return SeriesPoint(
        date=p["date"] if isinstance(p["date"], date) else date.fromisoformat(p["date"]),
        value=p["value"],
    )


def to_points(series: Sequence[Any]) -> list[SeriesPoint]:
    """Convert JSON-shaped ``{"date": "YYYY-MM-DD", "value": n}`` points.

    SeriesPoint items pass through unchanged.
    """
    return [_to_point(p) for p in series]


def _no_x_labels(points: Sequence[SeriesPoint], index: int, time_filter: str) -> str | None:
    return None


def _plain_number(value: int) -> str:
    return f"{value:,}"


@dataclass(frozen=True)
class ChartConfig:
    """Per-chart settings for the shared geometry and rendering code.

    Attributes:
        key: Identifier used in URLs and element ids.
        title: Heading shown above the chart.
        pad_domain: Pad the y domain by 10% of the value range and allow a
            negative floor.  When False the domain is ``[0, max]``.
        x_label_rule: Returns the x-axis label for a point, or None to
            leave it unlabelled.
        y_tick_label: Formats a y tick value.
        skip_first_y_tick: Drop the lowest y tick label.
        show_zero_line: Draw a horizontal line at value 0.
        tooltip_date_format: ``strftime`` format for the tooltip date.
        tooltip_value: Formats a point's value for the tooltip.
        color: Stroke colour of the line.
        fill_color: Top colour of the area gradient.
    """

    key: str
    title: str
    pad_domain: bool = True
    x_label_rule: XLabelRule = _no_x_labels
    y_tick_label: Callable[[int], str] = str
    skip_first_y_tick: bool = False
    show_zero_line: bool = False
    tooltip_date_format: str = "%b %d, %Y"
    tooltip_value: Callable[[int], str] = _plain_number
    color: str = "#3b82f6"
    fill_color: str = "#3b82f6"

    @property
    def gradient_id(self) -> str:
        return f"{self.key}Gradient"


# ---------------------------------------------------------------------------
# Scales
# ---------------------------------------------------------------------------

class LinearScale:
    """Linear map from a numeric domain onto a range.

    A zero-width domain maps every value to the middle of the range.
    """

    def __init__(self, domain: tuple[float, float], range_: tuple[float, float]) -> None:
        self.domain = domain
        self.range = range_

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        t = (value - d0) / (d1 - d0) if d1 != d0 else 0.5
        return r0 + t * (r1 - r0)


class TimeScale(LinearScale):
    """Linear map from calendar dates onto a range."""

    def __init__(self, start: date, end: date, range_: tuple[float, float] = (0.0, VIEWPORT)) -> None:
        super().__init__((float(start.toordinal()), float(end.toordinal())), range_)
        self.start = start
        self.end = end

    def __call__(self, value: date) -> float:  # type: ignore[override]
        return super().__call__(float(value.toordinal()))


def compute_y_domain(values: Sequence[int], pad_domain: bool = True) -> tuple[float, float]:
    """Return the (floor, ceiling) of the y domain for *values*.

    Padded domains add 10% of the value range above the maximum and, only
    when the minimum is negative, below the minimum; otherwise the floor
    is 0.  Unpadded domains are ``[0, max]``.
    """
    max_value = max(values)
    if not pad_domain:
        return 0.0, float(max_value)
    min_value = min(values)
    padding = (max_value - min_value) * 0.1
    floor = min_value - padding if min_value < 0 else 0.0
    return float(floor), float(max_value + padding)


# ---------------------------------------------------------------------------
# Ticks
# ---------------------------------------------------------------------------

_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)


def _js_round(value: float) -> int:
    return math.floor(value + 0.5)


def _tick_spec(start: float, stop: float, count: float) -> tuple[int, int, float]:
    step = (stop - start) / max(0, count)
    power = math.floor(math.log10(step))
    error = step / 10 ** power
    factor = 10 if error >= _E10 else 5 if error >= _E5 else 2 if error >= _E2 else 1
    if power < 0:
        inc = 10 ** -power / factor
        i1 = _js_round(start * inc)
        i2 = _js_round(stop * inc)
        if i1 / inc < start:
            i1 += 1
        if i2 / inc > stop:
            i2 -= 1
        inc = -inc
    else:
        inc = 10 ** power * factor
        i1 = _js_round(start / inc)
        i2 = _js_round(stop / inc)
        if i1 * inc < start:
            i1 += 1
        if i2 * inc > stop:
            i2 -= 1
    if i2 < i1 and 0.5 <= count < 2:
        return _tick_spec(start, stop, count * 2)
    return i1, i2, inc


def nice_ticks(start: float, stop: float, count: int = Y_TICK_COUNT) -> list[float]:
    """Return roughly *count* round tick values between *start* and *stop*.

    Steps are 1, 2 or 5 times a power of ten, and every tick lies inside
    ``[start, stop]``.
    """
    if count <= 0:
        return []
    if start == stop:
        return [start]
    reverse = stop < start
    if reverse:
        start, stop = stop, start
    i1, i2, inc = _tick_spec(start, stop, count)
    if i2 < i1:
        return []
    if inc < 0:
        ticks = [(i1 + i) / -inc for i in range(i2 - i1 + 1)]
    else:
        ticks = [float((i1 + i) * inc) for i in range(i2 - i1 + 1)]
    return ticks[::-1] if reverse else ticks


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

def _fmt(value: float) -> str:
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


class _PathBuilder:
    def __init__(self) -> None:
        self._parts: list[str] = []

    def move_to(self, x: float, y: float) -> None:
        self._parts.append(f"M{_fmt(x)},{_fmt(y)}")

    def line_to(self, x: float, y: float) -> None:
        self._parts.append(f"L{_fmt(x)},{_fmt(y)}")

    def curve_to(self, x1: float, y1: float, x2: float, y2: float, x: float, y: float) -> None:
        self._parts.append(
            f"C{_fmt(x1)},{_fmt(y1)},{_fmt(x2)},{_fmt(y2)},{_fmt(x)},{_fmt(y)}"
        )

    def close(self) -> None:
        self._parts.append("Z")

    def __str__(self) -> str:
        return "".join(self._parts)


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


class _MonotoneX:
    """Monotone cubic interpolation in x (Steffen's method).

    Produces a smooth curve through every point that never overshoots
    between neighbouring points, so flat stretches stay flat.
    """

    def __init__(self, path: _PathBuilder) -> None:
        self.path = path
        self._line = math.nan

    def area_start(self) -> None:
        self._line = 0

    def area_end(self) -> None:
        self._line = math.nan

    def line_start(self) -> None:
        self.x0 = self.x1 = self.y0 = self.y1 = self.t0 = math.nan
        self._point = 0

    def line_end(self) -> None:
        if self._point == 2:
            self.path.line_to(self.x1, self.y1)
        elif self._point == 3:
            self._curve(self.t0, self._slope2(self.t0))
        if self._line == 1 or (self._line != 0 and self._point == 1):
            self.path.close()
        if not math.isnan(self._line):
            self._line = 1 - self._line

    def point(self, x: float, y: float) -> None:
        if x == self.x1 and y == self.y1:
            return
        t1 = math.nan
        if self._point == 0:
            self._point = 1
            if self._line == 1:
                self.path.line_to(x, y)
            else:
                self.path.move_to(x, y)
        elif self._point == 1:
            self._point = 2
        elif self._point == 2:
            self._point = 3
            t1 = self._slope3(x, y)
            self._curve(self._slope2(t1), t1)
        else:
            t1 = self._slope3(x, y)
            self._curve(self.t0, t1)
        self.x0, self.x1 = self.x1, x
        self.y0, self.y1 = self.y1, y
        self.t0 = t1

    def _slope3(self, x2: float, y2: float) -> float:
        h0 = self.x1 - self.x0
        h1 = x2 - self.x1
        s0 = (self.y1 - self.y0) / h0 if h0 else 0.0
        s1 = (y2 - self.y1) / h1 if h1 else 0.0
        p = (s0 * h1 + s1 * h0) / (h0 + h1) if h0 + h1 else 0.0
        return (_sign(s0) + _sign(s1)) * min(abs(s0), abs(s1), 0.5 * abs(p))

    def _slope2(self, t: float) -> float:
        h = self.x1 - self.x0
        return (3 * (self.y1 - self.y0) / h - t) / 2 if h else t

    def _curve(self, t0: float, t1: float) -> None:
        dx = (self.x1 - self.x0) / 3
        self.path.curve_to(
            self.x0 + dx, self.y0 + dx * t0,
            self.x1 - dx, self.y1 - dx * t1,
            self.x1, self.y1,
        )


def monotone_line_path(points: Sequence[tuple[float, float]]) -> str:
    """SVG path data for a monotone curve through *points*."""
    path = _PathBuilder()
    curve = _MonotoneX(path)
    curve.line_start()
    for x, y in points:
        curve.point(x, y)
    curve.line_end()
    return str(path)


def monotone_area_path(points: Sequence[tuple[float, float]], baseline_y: float) -> str:
    """SVG path data for the area between a monotone curve and *baseline_y*.

    The top edge runs left to right through *points*; the bottom edge
    runs back along the baseline and the path is closed.
    """
    path = _PathBuilder()
    curve = _MonotoneX(path)
    curve.area_start()
    curve.line_start()
    for x, y in points:
        curve.point(x, y)
    curve.line_end()
    curve.line_start()
    for x, _ in reversed(points):
        curve.point(x, baseline_y)
    curve.line_end()
    curve.area_end()
    return str(path)


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TickMark:
    label: str
    position: float
    value: float = 0.0


@dataclass(frozen=True)
class HitRegion:
    """Invisible rectangle routing pointer events to one data point."""

    index: int
    x: float
    width: float
    point_x: float
    y: float = 0.0
    height: float = VIEWPORT


def compute_hit_regions(xs: Sequence[float]) -> list[HitRegion]:
    """Split the x axis between points at the midpoints of their neighbours.

    The first and last regions stop at their own point's x.
    """
    regions = []
    for i, x in enumerate(xs):
        prev_x = xs[i - 1] if i > 0 else x
        next_x = xs[i + 1] if i < len(xs) - 1 else x
        left = (prev_x + x) / 2
        right = (x + next_x) / 2
        regions.append(HitRegion(index=i, x=left, width=right - left, point_x=x))
    return regions


def compute_y_ticks(y_scale: LinearScale, config: ChartConfig) -> list[TickMark]:
    floor, ceiling = y_scale.domain
    marks = []
    for i, tick in enumerate(nice_ticks(floor, ceiling, Y_TICK_COUNT)):
        if i == 0 and config.skip_first_y_tick:
            continue
        value = _js_round(tick)
        marks.append(TickMark(label=config.y_tick_label(value), position=y_scale(value), value=value))
    return marks


@dataclass
class ChartGeometry:
    points: list[SeriesPoint]
    x_scale: TimeScale
    y_scale: LinearScale
    line_path: str
    area_path: str
    baseline_y: float
    y_ticks: list[TickMark] = field(default_factory=list)
    x_ticks: list[TickMark] = field(default_factory=list)
    hit_regions: list[HitRegion] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON-serialisable view of the geometry (scales as their domains)."""
        return {
            "x_domain": [self.x_scale.start.isoformat(), self.x_scale.end.isoformat()],
            "y_domain": list(self.y_scale.domain),
            "line_path": self.line_path,
            "area_path": self.area_path,
            "baseline_y": self.baseline_y,
            "y_ticks": [vars(t) for t in self.y_ticks],
            "x_ticks": [vars(t) for t in self.x_ticks],
            "hit_regions": [
                {
                    **vars(r),
                    "date": self.points[r.index].date.isoformat(),
                    "value": self.points[r.index].value,
                }
                for r in self.hit_regions
            ],
        }


def compute_geometry(
    series: Sequence[SeriesPoint | dict],
    config: ChartConfig,
    time_filter: str = "all",
) -> ChartGeometry | None:
    """Map a series into the 100x100 chart viewport.

    Args:
        series: Points sorted by date, as ``SeriesPoint`` or JSON dicts.
        config: Chart settings (domain padding, label rules, formatters).
        time_filter: Active time filter, passed to the x label rule.

    Returns:
        The chart geometry, or None when there are fewer than two points
        and the caller should show its "no data" placeholder.
    """
    points = to_points(series)
    if len(points) < 2:
        return None

    x_scale = TimeScale(points[0].date, points[-1].date)
    y_scale = LinearScale(
        compute_y_domain([p.value for p in points], config.pad_domain),
        (VIEWPORT, 0.0),
    )
    coords = [(x_scale(p.date), y_scale(p.value)) for p in points]
    baseline_y = y_scale(0)

    x_ticks = []
    for i, p in enumerate(points):
        label = config.x_label_rule(points, i, time_filter)
        if label is not None:
            x_ticks.append(TickMark(label=label, position=coords[i][0]))

    return ChartGeometry(
        points=points,
        x_scale=x_scale,
        y_scale=y_scale,
        line_path=monotone_line_path(coords),
        area_path=monotone_area_path(coords, baseline_y),
        baseline_y=baseline_y,
        y_ticks=compute_y_ticks(y_scale, config),
        x_ticks=x_ticks,
        hit_regions=compute_hit_regions([x for x, _ in coords]),
    )
