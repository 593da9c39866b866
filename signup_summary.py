"""Print a subscriber growth summary and export the aggregated series.

Usage: python signup_summary.py [data/data.csv] [--output-dir signup_analytics]
"""

from __future__ import annotations

import argparse
import logging
import sys

from analytics import build_dashboard_payload, print_summary_report, save_analytics_files

logger = logging.getLogger(__name__)


def main(path: str = "data/data.csv", output_dir: str = "signup_analytics") -> None:
    """Aggregate *path*, write the series files and print the report.

    Exits with status 1 when the CSV cannot be read.
    """
    payload = build_dashboard_payload(path)
    if payload["error"]:
        print(f"Error: {payload['error']} from {path}", file=sys.stderr)
        sys.exit(1)

    save_analytics_files(payload, output_dir)
    print_summary_report(payload["summary"], output_dir)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("path", nargs="?", default="data/data.csv", help="subscriber CSV export")
    parser.add_argument("--output-dir", default="signup_analytics", help="directory for CSV/JSON output")
    parser.add_argument("-v", "--verbose", action="store_true", help="log skipped rows")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    main(args.path, args.output_dir)
