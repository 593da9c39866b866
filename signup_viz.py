"""Render the dashboard's three growth charts as static PNG images.

Reads the files written by signup_summary.py (daily_signups.csv and
monthly_growth.csv) and saves cumulative_growth.png, daily_growth.png and
monthly_growth.png next to them.
"""

from __future__ import annotations

import argparse
import logging
import os

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402
import seaborn as sns  # noqa: E402

from theme import DARK, LIGHT  # noqa: E402
from time_filter import compute_cutoff  # noqa: E402

logger = logging.getLogger(__name__)

CHART_FILES = ("cumulative_growth.png", "daily_growth.png", "monthly_growth.png")


def load_series_frames(input_dir: str = "signup_analytics") -> tuple[pd.DataFrame, pd.DataFrame]:
    """Read the exported daily and monthly series into date-sorted frames."""
    daily = pd.read_csv(f"{input_dir}/daily_signups.csv")
    daily["date"] = pd.to_datetime(daily["date"])
    monthly = pd.read_csv(f"{input_dir}/monthly_growth.csv")
    monthly["month_start"] = pd.to_datetime(monthly["month_start"])
    return daily.sort_values("date"), monthly.sort_values("month_start")


def filter_frames(
    daily: pd.DataFrame,
    monthly: pd.DataFrame,
    time_filter: str = "all",
    reference_date: str | None = None,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Apply the dashboard's time filter to both frames."""
    cutoff = compute_cutoff(time_filter, reference_date)
    monthly_cutoff = compute_cutoff(time_filter, reference_date, monthly=True)
    if cutoff is not None:
        daily = daily[daily["date"] >= pd.Timestamp(cutoff)]
    if monthly_cutoff is not None:
        monthly = monthly[monthly["month_start"] >= pd.Timestamp(monthly_cutoff)]
    return daily, monthly


def plot_growth_charts(
    daily: pd.DataFrame,
    monthly: pd.DataFrame,
    output_dir: str = "signup_analytics",
    theme: str = LIGHT,
) -> list[str]:
    """Save the three growth charts and return their paths.

    Args:
        daily: Frame with date, new_subscribers, total_subscribers.
        monthly: Frame with month_start, avg_daily_subscribers.
        output_dir: Directory for the PNG files.  Created if missing.
        theme: ``light`` or ``dark`` styling.
    """
    os.makedirs(output_dir, exist_ok=True)
    sns.set_theme(style="darkgrid" if theme == DARK else "whitegrid")
    if theme == DARK:
        plt.style.use("dark_background")

    daily = daily.copy()
    daily["avg_7d"] = daily["new_subscribers"].rolling(window=7, min_periods=1).mean()
    paths = [os.path.join(output_dir, name) for name in CHART_FILES]

    plt.figure(figsize=(15, 8))
    plt.plot(daily["date"], daily["total_subscribers"], color="#eab308", linewidth=2)
    plt.fill_between(daily["date"], daily["total_subscribers"], color="#eab308", alpha=0.15)
    plt.ylim(bottom=0)
    plt.title("Cumulative Growth", fontsize=14, pad=20)
    plt.xlabel("Date", fontsize=12)
    plt.ylabel("Total Subscribers", fontsize=12)
    plt.xticks(rotation=45)
    plt.tight_layout()
    plt.savefig(paths[0], dpi=150, bbox_inches="tight")
    plt.close()

    plt.figure(figsize=(15, 8))
    plt.bar(daily["date"], daily["new_subscribers"], alpha=0.5, color="#22c55e", label="Daily Sign-ups")
    plt.plot(daily["date"], daily["avg_7d"], color="#15803d", linewidth=2, label="7-day Average")
    plt.title("Daily Growth Rate", fontsize=14, pad=20)
    plt.xlabel("Date", fontsize=12)
    plt.ylabel("New Subscribers", fontsize=12)
    plt.legend()
    plt.xticks(rotation=45)
    plt.tight_layout()
    plt.savefig(paths[1], dpi=150, bbox_inches="tight")
    plt.close()

    plt.figure(figsize=(15, 8))
    plt.bar(monthly["month_start"], monthly["avg_daily_subscribers"], width=20, color="#3b82f6")
    plt.title("Monthly Growth Rate", fontsize=14, pad=20)
    plt.xlabel("Month", fontsize=12)
    plt.ylabel("Average Daily Sign-ups", fontsize=12)
    plt.xticks(rotation=45)
    plt.tight_layout()
    plt.savefig(paths[2], dpi=150, bbox_inches="tight")
    plt.close()

    plt.style.use("default")
    return paths


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--input-dir", default="signup_analytics")
    parser.add_argument("--range", dest="time_filter", default="all")
    parser.add_argument("--theme", choices=(LIGHT, DARK), default=LIGHT)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    daily_df, monthly_df = filter_frames(*load_series_frames(args.input_dir), args.time_filter)
    for saved in plot_growth_charts(daily_df, monthly_df, args.input_dir, args.theme):
        logger.info("Saved %s", saved)
