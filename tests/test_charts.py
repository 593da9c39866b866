"""Tests for charts.py (chart variants, labels and SVG markup)."""

from __future__ import annotations

from datetime import date

import pytest

from chart_geometry import SeriesPoint, compute_geometry
from charts import (
    CHARTS,
    CUMULATIVE_CHART,
    GROWTH_RATE_CHART,
    MONTHLY_GROWTH_CHART,
    NO_DATA_MESSAGE,
    DashboardView,
    chart_geometry_for,
    cumulative_x_label,
    day_label,
    format_signed,
    growth_x_label,
    month_label,
    monthly_x_label,
    render_chart,
    render_dashboard_charts,
)
from tests.helpers import make_series


def _daily_points(n: int) -> list[SeriesPoint]:
    return [SeriesPoint(date.fromordinal(date(2024, 1, 1).toordinal() + i), i) for i in range(n)]


def _month_points(months: list[tuple[int, int]]) -> list[SeriesPoint]:
    return [SeriesPoint(date(y, m, 1), 1) for y, m in months]


def _labels(rule, points, time_filter):
    return {
        i: label
        for i in range(len(points))
        if (label := rule(points, i, time_filter)) is not None
    }


# ── Formatting ──────────────────────────────


class TestFormatting:
    def test_day_label(self):
        assert day_label(date(2024, 1, 5)) == "Jan 5"

    def test_month_label(self):
        assert month_label(date(2024, 1, 5)) == "Jan 24"

    @pytest.mark.parametrize(
        "value, expected", [(1234, "+1,234"), (0, "0"), (-5, "-5"), (-12000, "-12,000")]
    )
    def test_format_signed(self, value, expected):
        assert format_signed(value) == expected

    def test_tooltip_values(self):
        assert CUMULATIVE_CHART.tooltip_value(12345) == "12,345"
        assert GROWTH_RATE_CHART.tooltip_value(3) == "+3 users"
        assert MONTHLY_GROWTH_CHART.tooltip_value(0) == "0 avg users/day"

    def test_signed_y_ticks(self):
        assert GROWTH_RATE_CHART.y_tick_label(5) == "+5"
        assert GROWTH_RATE_CHART.y_tick_label(-5) == "-5"
        assert CUMULATIVE_CHART.y_tick_label(5) == "5"


# ── X label rules ───────────────────────────


class TestXLabelRules:
    def test_growth_every_sixth(self):
        labels = _labels(growth_x_label, _daily_points(20), "all")
        assert labels == {6: "Jan 7", 12: "Jan 13"}

    def test_growth_skips_last_three(self):
        assert 18 not in _labels(growth_x_label, _daily_points(21), "30days")

    def test_cumulative_short_range(self):
        labels = _labels(cumulative_x_label, _daily_points(20), "30days")
        assert labels == {6: "Jan 7", 12: "Jan 13"}

    def test_cumulative_long_range_quarter_starts(self):
        dates = [
            date(2024, 3, 25), date(2024, 3, 30), date(2024, 4, 2), date(2024, 4, 10),
            date(2024, 5, 1), date(2024, 6, 1), date(2024, 7, 1), date(2024, 7, 5),
            date(2024, 8, 1),
        ]
        points = [SeriesPoint(d, 1) for d in dates]
        assert _labels(cumulative_x_label, points, "all") == {2: "Apr 24"}

    def test_monthly_long_range(self):
        months = [(2023, 11), (2023, 12)] + [(2024, m) for m in range(1, 9)]
        labels = _labels(monthly_x_label, _month_points(months), "12months")
        assert labels == {2: "Jan 24", 5: "Apr 24", 8: "Jul 24"}

    def test_monthly_short_range(self):
        months = [(2023, 11), (2023, 12)] + [(2024, m) for m in range(1, 9)]
        labels = _labels(monthly_x_label, _month_points(months), "3months")
        assert labels == {2: "Jan 24", 4: "Mar 24", 6: "May 24", 8: "Jul 24"}


# ── Chart configs ───────────────────────────


class TestChartConfigs:
    def test_cumulative_is_zero_floored_and_unpadded(self):
        geometry = compute_geometry(make_series("2024-01-01", [5, 10, 40]), CUMULATIVE_CHART)
        assert geometry.y_scale.domain == (0.0, 40.0)

    def test_cumulative_skips_first_y_tick(self):
        geometry = compute_geometry(make_series("2024-01-01", [0, 100]), CUMULATIVE_CHART)
        assert geometry.y_ticks[0].label == "10"

    def test_growth_is_padded(self):
        geometry = compute_geometry(make_series("2024-01-01", [0, 100]), GROWTH_RATE_CHART)
        assert geometry.y_scale.domain == (0.0, pytest.approx(110.0))
        assert geometry.y_ticks[0].label == "0"
        assert geometry.y_ticks[1].label == "+10"

    def test_chart_registry(self):
        assert list(CHARTS) == ["cumulative", "growthRate", "monthlyGrowth"]
        assert CHARTS["monthlyGrowth"][2] is True


# ── Markup ──────────────────────────────────


class TestRenderChart:
    def test_no_data_placeholder(self):
        assert NO_DATA_MESSAGE in render_chart(None, GROWTH_RATE_CHART)

    def test_growth_chart_markup(self):
        geometry = compute_geometry(make_series("2024-01-01", [2, 1, 0, 4]), GROWTH_RATE_CHART)
        html = render_chart(geometry, GROWTH_RATE_CHART)
        assert html.count('<g class="hit">') == 4
        assert "<title>Jan 02, 2024\n+1 users</title>" in html
        assert "<title>Jan 03, 2024\n0 users</title>" in html
        assert 'class="zero-line"' in html
        assert 'id="growthRateGradient"' in html
        assert f'd="{geometry.line_path}"' in html

    def test_cumulative_has_no_zero_line(self):
        geometry = compute_geometry(make_series("2024-01-01", [2, 3, 7]), CUMULATIVE_CHART)
        html = render_chart(geometry, CUMULATIVE_CHART)
        assert 'class="zero-line"' not in html
        assert "<title>Jan 03, 2024\n7</title>" in html

    def test_monthly_tooltip_shows_month(self):
        series = [{"date": "2023-12-01", "value": 3}, {"date": "2024-01-01", "value": 1}]
        geometry = compute_geometry(series, MONTHLY_GROWTH_CHART)
        html = render_chart(geometry, MONTHLY_GROWTH_CHART)
        assert "<title>December 2023\n+3 avg users/day</title>" in html


class TestChartGeometryFor:
    def test_slices_before_geometry(self, mock_payload):
        geometry = chart_geometry_for(
            mock_payload, "growthRate", "7days", reference_date="2024-01-10"
        )
        assert geometry.points[0].date == date(2024, 1, 3)
        assert geometry.x_scale(date(2024, 1, 3)) == 0

    def test_no_data_after_slicing(self, mock_payload):
        assert chart_geometry_for(mock_payload, "cumulative", "7days", "2030-01-01") is None

    def test_missing_series(self):
        assert chart_geometry_for({}, "monthlyGrowth") is None

    def test_unknown_chart(self, mock_payload):
        with pytest.raises(KeyError):
            chart_geometry_for(mock_payload, "weekly")


class TestRenderDashboardCharts:
    def test_all_three_cards(self, mock_payload):
        html = render_dashboard_charts(mock_payload, DashboardView())
        assert html.index("Cumulative Growth") < html.index("Daily Growth Rate")
        assert html.index("Daily Growth Rate") < html.index("Monthly Growth Rate")
        assert NO_DATA_MESSAGE not in html

    def test_placeholders_when_window_is_empty(self, mock_payload):
        html = render_dashboard_charts(
            mock_payload, DashboardView(time_filter="7days"), reference_date="2030-01-01"
        )
        assert html.count(NO_DATA_MESSAGE) == 3
