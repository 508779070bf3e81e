"""Flask JSON API over a categorised record set."""

from __future__ import annotations

import dataclasses
import json
from datetime import datetime
from typing import Any, List, Optional

from flask import Flask, Response, request

from . import analysis, export, utils
from .metrics import METRIC_EXPLANATIONS, calculate_all_metrics
from .models import CategorizationStats, Record
from .rules_config import ClassifierConfig, default_classifier_config


def json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return utils.iso_utc_millis(value)
    if dataclasses.is_dataclass(value):
        return dataclasses.asdict(value)
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def json_response(payload: Any, status: int = 200) -> Response:
    return Response(
        json.dumps(payload, indent=2, default=json_default, ensure_ascii=False),
        status=status,
        mimetype="application/json",
    )


def create_app(records: List[Record], stats: Optional[CategorizationStats] = None,
               app_title: str = "Watch Mirror", config: Optional[ClassifierConfig] = None) -> Flask:
    """Create and configure the Flask application.

    The record set is read-only from here on; every request recomputes its
    view for the requested period.
    """
    app = Flask(__name__)
    app.config["APP_TITLE"] = app_title
    stats = stats or CategorizationStats(total=len(records))
    config = config or default_classifier_config()

    def selected_records() -> Optional[List[Record]]:
        period = request.args.get("period", "all")
        if period not in analysis.PERIODS:
            return None
        return analysis.filter_by_time_period(records, period)

    def bad_period() -> Response:
        return json_response(
            {"error": f"Unknown period: {request.args.get('period')}", "options": list(analysis.PERIODS)},
            status=400,
        )

    @app.route("/healthz")
    def healthz() -> Response:
        if not records:
            return Response("Unhealthy: no records loaded", status=503, mimetype="text/plain")
        return Response("OK", status=200, mimetype="text/plain")

    @app.route("/api/periods")
    def periods() -> Response:
        return json_response(analysis.available_time_periods(records))

    @app.route("/api/summary")
    def summary() -> Response:
        window = selected_records()
        if window is None:
            return bad_period()
        return json_response(analysis.aggregate(window))

    @app.route("/api/metrics")
    def metrics() -> Response:
        window = selected_records()
        if window is None:
            return bad_period()
        return json_response(calculate_all_metrics(analysis.aggregate(window), window))

    @app.route("/api/categories")
    def categories() -> Response:
        window = selected_records()
        if window is None:
            return bad_period()
        return json_response(analysis.category_statistics(window))

    @app.route("/api/years")
    def years() -> Response:
        return json_response(analysis.yearly_comparison(records))

    @app.route("/api/colors")
    def colors() -> Response:
        return json_response(dict(config.category_colors))

    @app.route("/api/explanations")
    def explanations() -> Response:
        return json_response(METRIC_EXPLANATIONS)

    @app.route("/export.json")
    def export_json() -> Response:
        return Response(
            export.to_json(records, stats),
            status=200,
            mimetype="application/json",
            headers={"Content-Disposition": "attachment; filename=youtube-categorized.json"},
        )

    @app.route("/export.csv")
    def export_csv() -> Response:
        return Response(
            export.to_csv(records),
            status=200,
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=youtube-categorized.csv"},
        )

    return app
