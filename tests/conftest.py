"""Shared fixtures for the subscriber dashboard tests."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from tests.helpers import make_series


# ── Minimal dashboard payload for app.py tests ──


def _minimal_dashboard_payload() -> dict:
    """Return a payload matching build_dashboard_payload() shape.

    Keys and structure must exactly match the dict returned by
    ``analytics.build_dashboard_payload``.
    """
    growth = make_series("2024-01-01", [2, 1, 0, 4, 3, 5, 1, 2, 6, 1])
    cumulative = []
    total = 0
    for point in growth:
        total += point["value"]
        cumulative.append({"date": point["date"], "value": total})
    return {
        "generated_at": "2024-01-15T12:00:00",
        "cumulativeData": cumulative,
        "growthRateData": growth,
        "monthlyGrowthRateData": [
            {"date": "2023-12-01", "value": 3},
            {"date": "2024-01-01", "value": 3},
        ],
        "summary": {
            "total_subscribers": total,
            "first_date": "2024-01-01",
            "last_date": "2024-01-10",
            "span_days": 10,
            "active_days": 10,
            "avg_per_active_day": 2.5,
            "top_days": [],
        },
        "error": None,
    }


@pytest.fixture()
def mock_payload():
    """Return the minimal dashboard payload dict."""
    return _minimal_dashboard_payload()


@pytest.fixture()
def client(mock_payload):
    """TestClient for app.py with mocked analytics data.

    Patches build_dashboard_payload so no CSV file is needed.
    Resets the module-level cache between tests.
    """
    import app as app_module

    with patch.object(
        app_module, "_cache", {"data": None, "built_at": 0.0}
    ):
        with patch(
            "app.build_dashboard_payload", return_value=mock_payload
        ):
            with TestClient(app_module.app) as tc:
                yield tc
