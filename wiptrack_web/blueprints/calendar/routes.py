"""Holiday list maintenance and working-day lookups."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ...services import wip_service
from ...store import get_store

bp = Blueprint("calendar", __name__)


def _holiday_payload(store):
    return {"holidays": [day.isoformat() for day in store.holidays]}


@bp.route("/api/holidays", methods=["GET"])
def list_holidays():
    return jsonify(_holiday_payload(get_store()))


@bp.route("/api/holidays", methods=["PUT"])
def replace_holidays():
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        payload = payload.get("holidays")
    if not isinstance(payload, list):
        return jsonify({"error": "Expected a list of holiday dates"}), 400

    store = get_store()
    count = store.replace_holidays(payload)
    skipped = len(payload) - count
    if skipped:
        current_app.logger.debug("Ignored %d unparseable or duplicate holidays", skipped)
    return jsonify({"ok": True, **_holiday_payload(store)})


@bp.route("/api/holidays", methods=["POST"])
def add_holiday():
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return jsonify({"error": "Expected an object with a 'date' field"}), 400
    value = payload.get("date")
    if not value:
        return jsonify({"error": "Missing holiday date"}), 400

    store = get_store()
    if not store.add_holiday(value):
        return jsonify({"error": f"Not a date: {value!r}"}), 400
    return jsonify(_holiday_payload(store)), 201


@bp.route("/api/holidays", methods=["DELETE"])
def clear_holidays():
    get_store().clear_holidays()
    return jsonify({"ok": True, "holidays": []})


@bp.route("/api/calendar/working-days", methods=["GET"])
def working_days():
    try:
        start = wip_service.parse_date(request.args.get("from"), name="from")
        end = wip_service.parse_date(request.args.get("to"), name="to")
    except wip_service.InvalidDateError as exc:
        return jsonify({"error": str(exc)}), 400
    if start is None:
        return jsonify({"error": "Missing 'from' date"}), 400

    store = get_store()
    calendar = store.calendar()
    end = end or calendar.today()
    return jsonify(
        {
            "from": start.isoformat(),
            "to": end.isoformat(),
            "working_days": calendar.working_days_between(start, end),
            "calendar_days": calendar.calendar_days_between(start, end),
        }
    )
