"""FastAPI service for the subscriber growth dashboard.

Serves the dashboard page with server-rendered SVG charts plus the raw
load result and per-chart geometry as JSON.  The CSV is aggregated once
and cached for an hour; the time filter only re-slices the cached series.

Deployment: uvicorn app:app --host 127.0.0.1 --port 8204
"""

from __future__ import annotations

import os
import threading
import time
from html import escape
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from analytics import build_dashboard_payload
from charts import CHARTS, DashboardView, chart_geometry_for, render_dashboard_charts
from theme import DARK, CookieStore, ThemePreference
from time_filter import TIME_FILTER_LABELS, TimeFilter

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
SIGNUPS_CSV_PATH = Path(
    os.environ.get("SIGNUPS_CSV_PATH", Path(__file__).parent / "data" / "data.csv")
)
TEMPLATE_PATH = Path(__file__).parent / "dashboard_template.html"
CACHE_TTL_SECONDS = 3600  # 1 hour

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(title="Subscriber Growth Dashboard")

# ---------------------------------------------------------------------------
# Thread-safe cache
# ---------------------------------------------------------------------------
_cache_lock = threading.Lock()
_cache: dict[str, Any] = {
    "data": None,
    "built_at": 0.0,
}


def _get_cached_data(force_refresh: bool = False) -> dict[str, Any]:
    """Return cached dashboard data, rebuilding if stale or forced."""
    now = time.monotonic()
    with _cache_lock:
        if (
            not force_refresh
            and _cache["data"] is not None
            and (now - _cache["built_at"]) < CACHE_TTL_SECONDS
        ):
            return _cache["data"]

    data = build_dashboard_payload(str(SIGNUPS_CSV_PATH))

    # Failed loads are not cached so a fixed file is picked up next request.
    if data.get("error") is None:
        with _cache_lock:
            _cache["data"] = data
            _cache["built_at"] = time.monotonic()

    return data


# ---------------------------------------------------------------------------
# Page fragments
# ---------------------------------------------------------------------------
def _filter_options(selected: str) -> str:
    return "".join(
        f'<option value="{value}"{" selected" if value == selected else ""}>{label}</option>'
        for value, label in TIME_FILTER_LABELS.items()
    )


def _summary_html(summary: dict[str, Any]) -> str:
    if not summary.get("total_subscribers"):
        return ""
    return (
        '<p class="summary">'
        f"{summary['total_subscribers']:,} subscribers since {escape(summary['first_date'])}"
        f" (last sign-up {escape(summary['last_date'])})"
        "</p>"
    )


def _render_page(data: dict[str, Any], view: DashboardView) -> str:
    template = TEMPLATE_PATH.read_text(encoding="utf-8")
    error = data.get("error")
    replacements = {
        "__ROOT_CLASS__": DARK if view.theme == DARK else "",
        "__RANGE__": escape(view.time_filter),
        "__FILTER_OPTIONS__": _filter_options(view.time_filter),
        "__THEME_LABEL__": "Light mode" if view.theme == DARK else "Dark mode",
        "__SUMMARY__": _summary_html(data.get("summary") or {}),
        "__ERROR__": f'<p class="error">{escape(error)}</p>' if error else "",
        "__CHARTS__": render_dashboard_charts(data, view),
    }
    for marker, value in replacements.items():
        template = template.replace(marker, value)
    return template


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/health")
@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.get("/", response_class=HTMLResponse)
def dashboard_html(request: Request, time_filter: TimeFilter = Query("all", alias="range")):
    """Serve the dashboard page for the selected time range."""
    if not TEMPLATE_PATH.exists():
        raise HTTPException(status_code=500, detail="Template not found")

    data = _get_cached_data()
    theme = ThemePreference(CookieStore(request.cookies)).read()
    view = DashboardView(time_filter=time_filter, theme=theme)
    return HTMLResponse(content=_render_page(data, view))


@app.get("/api/data")
def api_data():
    """Return the full load result: three series, summary and error."""
    return _get_cached_data()


@app.get("/api/charts/{chart_key}")
def api_chart(chart_key: str, time_filter: TimeFilter = Query("all", alias="range")):
    """Return one chart's geometry for the selected time range."""
    if chart_key not in CHARTS:
        raise HTTPException(status_code=404, detail=f"Unknown chart: {chart_key}")

    geometry = chart_geometry_for(_get_cached_data(), chart_key, time_filter)
    if geometry is None:
        return {"chart": chart_key, "range": time_filter, "no_data": True}
    return {"chart": chart_key, "range": time_filter, "no_data": False, **geometry.to_dict()}


@app.get("/api/refresh")
def api_refresh():
    """Force a cache rebuild and return fresh data."""
    data = _get_cached_data(force_refresh=True)
    return {
        "status": "refreshed",
        "generated_at": data["generated_at"],
        "error": data["error"],
    }


@app.post("/theme")
def toggle_theme(request: Request, time_filter: TimeFilter = Query("all", alias="range")):
    """Flip the saved theme and send the browser back to the dashboard."""
    target = request.url_for("dashboard_html").include_query_params(range=time_filter)
    response = RedirectResponse(url=str(target), status_code=303)
    ThemePreference(CookieStore(request.cookies, response)).toggle()
    return response
