from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local
from ..common.validators import require_positive_int
from ..common.web import api_action, current_role, current_user_id, json_body, login_required, supervisor_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    manager = container.overtime_manager

    @app.route("/api/overtime/requests", methods=["POST"], endpoint="overtime_request")
    @login_required
    @api_action
    def request_overtime():
        data = json_body()
        request_id = manager.request_approval(
            worker_id=current_user_id(),
            project_id=require_positive_int(data.get("project_id"), "project_id"),
            reason=data.get("reason", ""),
        )
        return jsonify({"success": True, "request_id": request_id}), 201

    @app.route("/api/overtime/requests/<int:request_id>/decision", methods=["POST"], endpoint="overtime_decide")
    @supervisor_required
    @api_action
    def decide(request_id: int):
        data = json_body()
        decided = manager.decide(
            request_id=request_id,
            decision=data.get("decision"),
            approver_id=current_user_id(),
            current_role=current_role(),
        )
        return jsonify({"success": True, "request_id": decided.request_id, "status": decided.status.value}), 200

    @app.route("/api/overtime/status", methods=["GET"], endpoint="overtime_status")
    @login_required
    @api_action
    def status():
        project_id = require_positive_int(request.args.get("project_id"), "project_id")
        approval = manager.check_status(current_user_id(), project_id, now_local().date())
        return jsonify({"success": True, **approval.to_dict()}), 200

    @app.route("/api/overtime/pending", methods=["GET"], endpoint="overtime_pending")
    @supervisor_required
    @api_action
    def pending():
        rows = manager.list_pending(current_role=current_role())
        return jsonify(
            {
                "success": True,
                "requests": [
                    {
                        "request_id": r.request_id,
                        "worker_id": r.worker_id,
                        "project_id": r.project_id,
                        "work_date": r.work_date.isoformat(),
                        "reason": r.reason,
                        "requested_at": r.requested_at.isoformat(timespec="seconds"),
                    }
                    for r in rows
                ],
            }
        ), 200
