from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.validators import require_bool, require_positive_int
from ..common.web import api_action, current_role, current_user_id, json_body, login_required
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, InvalidInput


def register(app: Flask, container: Container) -> None:
    resolver = container.task_resolver
    tracker = container.progress_tracker

    def _work_date():
        raw = request.args.get("date")
        if not raw:
            return now_local().date()
        try:
            return parse_iso_date(raw)
        except ValueError:
            raise InvalidInput("date must be YYYY-MM-DD")

    @app.route("/api/tasks/today", methods=["GET"], endpoint="tasks_today")
    @login_required
    @api_action
    def today():
        worker_id = current_user_id()
        work_date = _work_date()
        tasks = resolver.list_tasks(worker_id, work_date)
        suggested = resolver.suggest_next_task(worker_id, work_date)
        return jsonify(
            {
                "success": True,
                "date": work_date.isoformat(),
                "tasks": [t.to_dict() for t in tasks],
                "summary": [u.to_dict() for u in tracker.summarize_by_unit(worker_id, work_date)],
                "suggested_next_task_id": suggested.assignment_id if suggested else None,
            }
        ), 200

    @app.route("/api/tasks/<int:assignment_id>/start", methods=["POST"], endpoint="tasks_start")
    @login_required
    @api_action
    def start(assignment_id: int):
        assignment = resolver.start_task(assignment_id, current_user_id())
        return jsonify({"success": True, "assignment": assignment.to_dict()}), 200

    @app.route("/api/tasks/<int:assignment_id>/pause", methods=["POST"], endpoint="tasks_pause")
    @login_required
    @api_action
    def pause(assignment_id: int):
        assignment = resolver.pause_task(assignment_id, current_user_id())
        return jsonify({"success": True, "assignment": assignment.to_dict()}), 200

    @app.route("/api/tasks/<int:assignment_id>/complete", methods=["POST"], endpoint="tasks_complete")
    @login_required
    @api_action
    def complete(assignment_id: int):
        data = json_body()
        force = require_bool(data.get("force_complete", False), "force_complete")
        worker_id = current_user_id()
        if force:
            # Completing under target is a supervisor escalation on the worker's behalf.
            if current_role() != Role.SUPERVISOR:
                raise AuthorizationError("Only supervisors can force-complete a task")
            worker_id = require_positive_int(data.get("worker_id", worker_id), "worker_id")
        assignment = resolver.complete_task(assignment_id, worker_id, force_complete=force)
        return jsonify({"success": True, "assignment": assignment.to_dict()}), 200

    @app.route("/api/tasks/<int:assignment_id>/progress", methods=["POST"], endpoint="tasks_progress")
    @login_required
    @api_action
    def progress(assignment_id: int):
        data = json_body()
        assignment = tracker.record_progress(assignment_id, data.get("delta"), worker_id=current_user_id())
        return jsonify({"success": True, "assignment": assignment.to_dict()}), 200
