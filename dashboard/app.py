"""
This module contains the Flask application for the operator dashboard, the
public collections pages and the schedule JSON API.
"""

import logging
from datetime import date, datetime

from flask import Flask, Response, abort, current_app, jsonify, render_template, request

from collection_schedule.exceptions import (
    ParsingError,
    ScheduleNotFoundError,
    ScheduleValidationError,
)
from collection_schedule.i18n import localize, normalize_locale, translate
from collection_schedule.labels import SHORT_DATE, display_label
from collection_schedule.models import (
    CollectionType,
    RecurrenceRule,
    ScheduleData,
    SpecialCollection,
    Zone,
)
from collection_schedule.special_collections import FILTER_MODES, UPCOMING

logger = logging.getLogger(__name__)

app = Flask(__name__)


def get_facade():
    return current_app.config["FACADE"]


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ParsingError("Request body must be a JSON object.")
    return data


def _saved(schedule: ScheduleData):
    return jsonify(schedule.to_dict())


@app.errorhandler(ScheduleValidationError)
def handle_validation_error(error: ScheduleValidationError):
    logger.warning(f"Rejected schedule edit: {error}")
    return jsonify({"error": "validation failed", "problems": error.problems}), 400


@app.errorhandler(ParsingError)
def handle_parsing_error(error: ParsingError):
    return jsonify({"error": str(error)}), 400


@app.errorhandler(ScheduleNotFoundError)
def handle_missing(error: ScheduleNotFoundError):
    return jsonify({"error": str(error)}), 404


# --- Operator dashboard ---


def _compute_kpis(data: dict) -> dict:
    stats = data.get("notification_stats") or {}
    sent = stats.get("success", 0) + stats.get("failure", 0)
    kpis = {
        "active_subscriptions": len(data.get("subscriptions") or []),
        "municipalities": len(data.get("municipalities") or []),
        "bot_uptime_hours": "N/A",
        "delivery_rate_percent": 0,
        "failure_rate_percent": 0,
    }
    if sent:
        kpis["delivery_rate_percent"] = round(stats.get("success", 0) / sent * 100, 2)
        kpis["failure_rate_percent"] = round(stats.get("failure", 0) / sent * 100, 2)

    start_time = data.get("bot_start_time")
    if start_time:
        try:
            uptime = datetime.now() - datetime.fromisoformat(start_time)
            kpis["bot_uptime_hours"] = round(uptime.total_seconds() / 3600, 2)
        except ValueError:
            logger.warning(f"Unreadable bot start time {start_time!r}.")
    return kpis


@app.route("/")
def index():
    """Renders the operator page with KPIs, subscriptions and logs."""
    data = get_facade().get_dashboard_data()
    return render_template(
        "index.html",
        kpis=_compute_kpis(data),
        subscriptions=data.get("subscriptions") or [],
        logs=data.get("logs") or [],
        error=data.get("error"),
    )


# --- Public pages ---


@app.route("/<municipality_id>/<locale>/collections")
def collections_page(municipality_id: str, locale: str):
    """The localized schedule of one zone: cards plus the upcoming list."""
    facade = get_facade()
    locale = normalize_locale(locale)
    schedule = facade.get_schedule(municipality_id)
    if schedule is None or not schedule.zones:
        abort(404)

    zone_id = request.args.get("zone") or schedule.zones[0].id
    zone = schedule.find_zone(zone_id)
    if zone is None:
        abort(404)

    today = date.today()
    upcoming = [
        {
            "name": localize(item.name, locale, item.collection_type_id or ""),
            "color": item.color,
            "label": display_label(item.date, today, locale, SHORT_DATE),
            "special": item.kind == "special",
        }
        for item in facade.get_upcoming_collections(municipality_id, zone_id, today)
    ]
    return render_template(
        "collections.html",
        municipality_id=municipality_id,
        locale=locale,
        zone=zone,
        zone_name=localize(zone.name, locale, zone.id),
        zones=[(z.id, localize(z.name, locale, z.id)) for z in schedule.zones],
        cards=facade.get_schedule_cards(municipality_id, zone_id, locale, today),
        upcoming=upcoming,
        no_schedule=translate("no_schedule", locale),
    )


@app.route("/<municipality_id>/<locale>/collections.ics")
def collections_calendar(municipality_id: str, locale: str):
    zone_id = request.args.get("zone")
    if not zone_id:
        abort(400)
    body = get_facade().export_zone_calendar(municipality_id, zone_id, normalize_locale(locale))
    if body is None:
        abort(404)
    return Response(
        body,
        mimetype="text/calendar",
        headers={"Content-Disposition": f"attachment; filename={municipality_id}-{zone_id}.ics"},
    )


# --- Schedule API ---


@app.route("/api/<municipality_id>/schedule", methods=["GET"])
def get_schedule_document(municipality_id: str):
    return jsonify(get_facade().editor_service.load(municipality_id).to_dict())


@app.route("/api/<municipality_id>/schedule", methods=["PUT"])
def put_schedule_document(municipality_id: str):
    schedule = ScheduleData.from_dict(_json_body())
    changed = get_facade().editor_service.save(municipality_id, schedule)
    return jsonify({"changed": changed})


@app.route("/api/<municipality_id>/provision", methods=["POST"])
def provision(municipality_id: str):
    schedule = get_facade().editor_service.provision_municipality(municipality_id)
    return _saved(schedule), 201


@app.route("/api/<municipality_id>/zones/<zone_id>/upcoming")
def zone_upcoming(municipality_id: str, zone_id: str):
    limit = request.args.get("limit", type=int)
    facade = get_facade()
    if limit is None:
        items = facade.get_upcoming_collections(municipality_id, zone_id)
    else:
        items = facade.get_upcoming_collections(municipality_id, zone_id, limit=limit)
    return jsonify([item.to_dict() for item in items])


@app.route("/api/<municipality_id>/special-collections")
def special_collections(municipality_id: str):
    mode = request.args.get("mode", UPCOMING)
    if mode not in FILTER_MODES:
        return jsonify({"error": f"mode must be one of {', '.join(FILTER_MODES)}"}), 400
    return jsonify(get_facade().get_special_collections(municipality_id, mode))


@app.route("/api/<municipality_id>/special-collections/<special_id>", methods=["PUT"])
def put_special_collection(municipality_id: str, special_id: str):
    data = _json_body()
    data["id"] = special_id
    item = SpecialCollection.from_dict(data)
    return _saved(get_facade().editor_service.save_special_collection(municipality_id, item))


@app.route("/api/<municipality_id>/special-collections/<special_id>", methods=["DELETE"])
def delete_special_collection(municipality_id: str, special_id: str):
    return _saved(get_facade().editor_service.delete_special_collection(municipality_id, special_id))


@app.route("/api/<municipality_id>/collection-types/<type_id>", methods=["PUT"])
def put_collection_type(municipality_id: str, type_id: str):
    data = _json_body()
    data["id"] = type_id
    collection_type = CollectionType.from_dict(data)
    return _saved(get_facade().editor_service.save_collection_type(municipality_id, collection_type))


@app.route("/api/<municipality_id>/collection-types/<type_id>", methods=["DELETE"])
def delete_collection_type(municipality_id: str, type_id: str):
    return _saved(get_facade().editor_service.delete_collection_type(municipality_id, type_id))


@app.route("/api/<municipality_id>/zones/<zone_id>", methods=["PUT"])
def put_zone(municipality_id: str, zone_id: str):
    data = _json_body()
    data["id"] = zone_id
    return _saved(get_facade().editor_service.save_zone(municipality_id, Zone.from_dict(data)))


@app.route("/api/<municipality_id>/zones/<zone_id>", methods=["DELETE"])
def delete_zone(municipality_id: str, zone_id: str):
    return _saved(get_facade().editor_service.delete_zone(municipality_id, zone_id))


@app.route("/api/<municipality_id>/zones/<zone_id>/rules/<type_id>", methods=["POST"])
def enable_rule(municipality_id: str, zone_id: str, type_id: str):
    """Enables a collection type for a zone with the default weekly rule."""
    editor = get_facade().editor_service
    return _saved(editor.toggle_type_for_zone(municipality_id, zone_id, type_id, True))


@app.route("/api/<municipality_id>/zones/<zone_id>/rules/<type_id>", methods=["PUT"])
def put_rule(municipality_id: str, zone_id: str, type_id: str):
    data = _json_body()
    day_of_week = data.get("dayOfWeek")
    if isinstance(day_of_week, bool) or not isinstance(day_of_week, int):
        raise ScheduleValidationError([f"dayOfWeek must be an integer 0-6, got {day_of_week!r}."])
    rule = RecurrenceRule.from_dict(data)
    return _saved(get_facade().editor_service.set_rule(municipality_id, zone_id, type_id, rule))


@app.route("/api/<municipality_id>/zones/<zone_id>/rules/<type_id>", methods=["DELETE"])
def delete_rule(municipality_id: str, zone_id: str, type_id: str):
    editor = get_facade().editor_service
    return _saved(editor.toggle_type_for_zone(municipality_id, zone_id, type_id, False))


def run_dashboard(facade, host: str = "0.0.0.0", port: int = 8080) -> None:
    """Starts the dashboard with the given facade."""
    app.config["FACADE"] = facade
    app.run(host=host, port=port)
