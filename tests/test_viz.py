"""Tests for signup_viz.py (static PNG export)."""

from __future__ import annotations

import pandas as pd
import pytest

from analytics import build_dashboard_payload, save_analytics_files
from signup_viz import CHART_FILES, filter_frames, load_series_frames, plot_growth_charts
from tests.helpers import write_csv


@pytest.fixture()
def exported_dir(tmp_path):
    """Directory holding daily/monthly series exported from a small CSV."""
    rows = ["subscribed at"] + [f"{d:02d}/0{m}/2024" for m in (1, 2, 3) for d in (1, 5, 5, 20)]
    payload = build_dashboard_payload(write_csv(tmp_path / "data.csv", rows))
    out = tmp_path / "out"
    save_analytics_files(payload, str(out))
    return out


class TestLoadSeriesFrames:
    def test_frames_parsed_and_sorted(self, exported_dir):
        daily, monthly = load_series_frames(str(exported_dir))
        assert list(daily.columns) == ["date", "new_subscribers", "total_subscribers"]
        assert pd.api.types.is_datetime64_any_dtype(daily["date"])
        assert daily["date"].is_monotonic_increasing
        assert daily["total_subscribers"].iloc[-1] == 12
        assert list(monthly["avg_daily_subscribers"]) == [1, 1, 1]


class TestFilterFrames:
    def test_all_keeps_everything(self, exported_dir):
        daily, monthly = load_series_frames(str(exported_dir))
        f_daily, f_monthly = filter_frames(daily, monthly, "all")
        assert len(f_daily) == len(daily)
        assert len(f_monthly) == len(monthly)

    def test_short_range(self, exported_dir):
        daily, monthly = load_series_frames(str(exported_dir))
        f_daily, f_monthly = filter_frames(daily, monthly, "7days", reference_date="2024-03-21")
        assert [d.day for d in f_daily["date"]] == [20]
        assert list(f_monthly["month_start"].dt.month) == [3]


class TestPlotGrowthCharts:
    @pytest.mark.parametrize("theme", ["light", "dark"])
    def test_writes_three_pngs(self, exported_dir, tmp_path, theme):
        daily, monthly = load_series_frames(str(exported_dir))
        paths = plot_growth_charts(daily, monthly, str(tmp_path / theme), theme=theme)
        assert [p.rsplit("/", 1)[-1] for p in paths] == list(CHART_FILES)
        for path in paths:
            with open(path, "rb") as f:
                assert f.read(8) == b"\x89PNG\r\n\x1a\n"
