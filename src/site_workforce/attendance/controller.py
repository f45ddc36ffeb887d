from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local
from ..common.validators import require_positive_int
from ..common.web import api_action, current_user_id, json_body, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    machine = container.attendance

    def _location_args() -> dict:
        data = json_body()
        return {
            "worker_id": current_user_id(),
            "project_id": require_positive_int(data.get("project_id"), "project_id"),
            "lat": data.get("latitude"),
            "lon": data.get("longitude"),
            "accuracy": data.get("accuracy"),
        }

    @app.route("/api/attendance/validate-location", methods=["POST"], endpoint="attendance_validate_location")
    @login_required
    @api_action
    def validate_location():
        result = machine.validate_location(**_location_args())
        return jsonify({"success": True, **result.to_dict()}), 200

    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="attendance_clock_in")
    @login_required
    @api_action
    def clock_in():
        session = machine.clock_in(**_location_args())
        return jsonify({"success": True, "session": session.to_dict()}), 201

    @app.route("/api/attendance/lunch-start", methods=["POST"], endpoint="attendance_lunch_start")
    @login_required
    @api_action
    def lunch_start():
        session = machine.lunch_start(**_location_args())
        return jsonify({"success": True, "session": session.to_dict()}), 200

    @app.route("/api/attendance/lunch-end", methods=["POST"], endpoint="attendance_lunch_end")
    @login_required
    @api_action
    def lunch_end():
        session = machine.lunch_end(**_location_args())
        return jsonify({"success": True, "session": session.to_dict()}), 200

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="attendance_clock_out")
    @login_required
    @api_action
    def clock_out():
        session = machine.clock_out(**_location_args())
        return jsonify({"success": True, "session": session.to_dict()}), 200

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    @api_action
    def today():
        worker_id = current_user_id()
        project_id = require_positive_int(request.args.get("project_id"), "project_id")
        now = now_local()
        session = machine.resolve_session(worker_id, project_id, now.date())
        forgotten = machine.check_forgotten_checkout(worker_id, project_id, now=now)
        return jsonify({"success": True, "session": session.to_dict(), "forgotten_checkout": forgotten.to_dict()}), 200
