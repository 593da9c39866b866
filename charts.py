"""The dashboard's three chart variants and their SVG markup.

All three charts share chart_geometry.compute_geometry; they differ only in
the ChartConfig below (domain padding, axis label rules, tooltip text and
colours).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from html import escape
from typing import Any, Sequence

from chart_geometry import ChartConfig, ChartGeometry, SeriesPoint, _fmt, compute_geometry, to_points
from time_filter import slice_series

NO_DATA_MESSAGE = "No data available for the selected period"

# Filters long enough that x labels switch from days to quarter starts.
LONG_RANGE_FILTERS = ("12months", "all")


@dataclass(frozen=True)
class DashboardView:
    """Per-request UI state: the active time filter and colour theme."""

    time_filter: str = "all"
    theme: str = "light"


# ---------------------------------------------------------------------------
# Label and tooltip formatting
# ---------------------------------------------------------------------------

def day_label(d: date) -> str:
    return f"{d:%b} {d.day}"


def month_label(d: date) -> str:
    return f"{d:%b %y}"


def format_signed(value: int) -> str:
    """Thousands-separated with an explicit ``+`` on positive values."""
    return f"+{value:,}" if value > 0 else f"{value:,}"


def _signed_tick(value: int) -> str:
    return f"+{value}" if value > 0 else str(value)


def _is_quarter_start(points: Sequence[SeriesPoint], index: int) -> bool:
    current = points[index].date
    if current.month % 3 != 1:
        return False
    return index == 0 or points[index - 1].date.month != current.month


def cumulative_x_label(points: Sequence[SeriesPoint], index: int, time_filter: str) -> str | None:
    if index == 0 or index >= len(points) - 3:
        return None
    if time_filter in LONG_RANGE_FILTERS:
        return month_label(points[index].date) if _is_quarter_start(points, index) else None
    return day_label(points[index].date) if index % 6 == 0 else None


def growth_x_label(points: Sequence[SeriesPoint], index: int, time_filter: str) -> str | None:
    if index % 6 != 0 or index == 0 or index >= len(points) - 3:
        return None
    return day_label(points[index].date)


def monthly_x_label(points: Sequence[SeriesPoint], index: int, time_filter: str) -> str | None:
    if index == 0 or index >= len(points) - 1:
        return None
    if time_filter in LONG_RANGE_FILTERS:
        show = _is_quarter_start(points, index)
    else:
        show = index % 2 == 0
    return month_label(points[index].date) if show else None


CUMULATIVE_CHART = ChartConfig(
    key="cumulative",
    title="Cumulative Growth",
    pad_domain=False,
    x_label_rule=cumulative_x_label,
    skip_first_y_tick=True,
    color="#facc15",
    fill_color="#eab308",
)

GROWTH_RATE_CHART = ChartConfig(
    key="growthRate",
    title="Daily Growth Rate",
    x_label_rule=growth_x_label,
    y_tick_label=_signed_tick,
    show_zero_line=True,
    tooltip_value=lambda v: f"{format_signed(v)} users",
    color="#22c55e",
    fill_color="#22c55e",
)

MONTHLY_GROWTH_CHART = ChartConfig(
    key="monthlyGrowth",
    title="Monthly Growth Rate",
    x_label_rule=monthly_x_label,
    y_tick_label=_signed_tick,
    show_zero_line=True,
    tooltip_date_format="%B %Y",
    tooltip_value=lambda v: f"{format_signed(v)} avg users/day",
    color="#3b82f6",
    fill_color="#3b82f6",
)

# chart key -> (config, payload key, monthly buckets)
CHARTS: dict[str, tuple[ChartConfig, str, bool]] = {
    CUMULATIVE_CHART.key: (CUMULATIVE_CHART, "cumulativeData", False),
    GROWTH_RATE_CHART.key: (GROWTH_RATE_CHART, "growthRateData", False),
    MONTHLY_GROWTH_CHART.key: (MONTHLY_GROWTH_CHART, "monthlyGrowthRateData", True),
}


def chart_geometry_for(
    payload: dict[str, Any],
    chart_key: str,
    time_filter: str = "all",
    reference_date: str | date | None = None,
) -> ChartGeometry | None:
    """Slice one payload series by *time_filter* and compute its geometry.

    Raises:
        KeyError: If *chart_key* is not one of ``CHARTS``.
        ValueError: If *time_filter* is not a known filter.
    """
    config, series_key, monthly = CHARTS[chart_key]
    series = slice_series(
        to_points(payload.get(series_key) or []),
        time_filter,
        reference_date=reference_date,
        monthly=monthly,
    )
    return compute_geometry(series, config, time_filter)


# ---------------------------------------------------------------------------
# Markup
# ---------------------------------------------------------------------------

def render_chart(geometry: ChartGeometry | None, config: ChartConfig) -> str:
    """Render one chart as an HTML fragment holding an inline SVG.

    Each hit region carries a ``<title>`` so the browser shows the
    point's date and value on hover or touch.  A None *geometry* renders
    the "no data" placeholder.
    """
    if geometry is None:
        return f'<p class="no-data">{NO_DATA_MESSAGE}</p>'

    gid = escape(config.gradient_id)
    svg = [
        '<svg viewBox="0 0 100 100" preserveAspectRatio="none" class="chart-svg">',
        "<defs>",
        f'<linearGradient id="{gid}" x1="0" x2="0" y1="0" y2="1">',
        f'<stop offset="0%" stop-color="{config.fill_color}" stop-opacity="0.2"/>',
        f'<stop offset="100%" stop-color="{config.fill_color}" stop-opacity="0.05"/>',
        "</linearGradient>",
        "</defs>",
    ]
    if config.show_zero_line:
        y0 = _fmt(geometry.baseline_y)
        svg.append(
            f'<line class="zero-line" x1="0" y1="{y0}" x2="100" y2="{y0}" '
            'vector-effect="non-scaling-stroke"/>'
        )
    svg.append(f'<path class="area" d="{geometry.area_path}" fill="url(#{gid})"/>')
    svg.append(
        f'<path class="line" d="{geometry.line_path}" fill="none" stroke="{config.color}" '
        'stroke-width="1.5" vector-effect="non-scaling-stroke"/>'
    )

    for region in geometry.hit_regions:
        point = geometry.points[region.index]
        tooltip = f"{point.date.strftime(config.tooltip_date_format)}\n{config.tooltip_value(point.value)}"
        px = _fmt(region.point_x)
        svg.append(
            '<g class="hit">'
            f'<line class="guide" x1="{px}" y1="0" x2="{px}" y2="100" vector-effect="non-scaling-stroke"/>'
            f'<rect x="{_fmt(region.x)}" y="{_fmt(region.y)}" width="{_fmt(region.width)}" '
            f'height="{_fmt(region.height)}" fill="transparent"/>'
            f"<title>{escape(tooltip)}</title>"
            "</g>"
        )
    svg.append("</svg>")

    x_labels = [
        f'<div class="x-label" style="left: {_fmt(t.position)}%; top: 90%;">{escape(t.label)}</div>'
        for t in geometry.x_ticks
    ]
    y_labels = [
        f'<div class="y-label" style="top: {_fmt(t.position)}%; right: 3%;">{escape(t.label)}</div>'
        for t in geometry.y_ticks
    ]
    return (
        '<div class="chart">'
        '<div class="chart-plot">' + "".join(svg) + "".join(x_labels) + "</div>"
        + "".join(y_labels)
        + "</div>"
    )


def render_dashboard_charts(
    payload: dict[str, Any],
    view: DashboardView,
    reference_date: str | date | None = None,
) -> str:
    """Render every chart card for *payload* under the given view state."""
    cards = []
    for key, (config, _, _) in CHARTS.items():
        geometry = chart_geometry_for(payload, key, view.time_filter, reference_date)
        cards.append(
            f'<section class="card" id="chart-{escape(key)}">'
            f"<h2>{escape(config.title)}</h2>"
            f"{render_chart(geometry, config)}"
            "</section>"
        )
    return "".join(cards)
