"""Helpers shared by the Flask controllers."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    ActiveTaskConflict,
    AuthorizationError,
    ConcurrentUpdateError,
    DomainError,
    DuplicatePendingRequest,
    InvalidInput,
    InvalidStateTransition,
    NotFound,
    NotPending,
)
from .validators import parse_enum

logger = logging.getLogger(__name__)

_CONFLICTS = (ConcurrentUpdateError, ActiveTaskConflict, DuplicatePendingRequest, NotPending, InvalidStateTransition)


def status_for(error: DomainError) -> int:
    if isinstance(error, NotFound):
        return 404
    if isinstance(error, AuthorizationError):
        return 403
    if isinstance(error, _CONFLICTS):
        return 409
    return 400


def error_response(error: DomainError):
    return jsonify({"success": False, "message": error.message, "error": error.to_dict()}), status_for(error)


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    return parse_enum(Role, session.get("role", Role.WORKER.value), "role")


def json_body() -> dict[str, Any]:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise InvalidInput("Request body must be a JSON object")
    return body


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Please sign in to continue"}), 401
        return view(*args, **kwargs)

    return wrapper


def supervisor_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Please sign in to continue"}), 401
        if session.get("role") != Role.SUPERVISOR.value:
            return error_response(AuthorizationError("Supervisor access required"))
        return view(*args, **kwargs)

    return wrapper


def api_action(view):
    """Run a core operation; retry once after a lost compare-and-swap, map domain errors to JSON."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            try:
                return view(*args, **kwargs)
            except ConcurrentUpdateError as e:
                logger.info("retrying %s after concurrent update: %s", request.path, e.message)
                return view(*args, **kwargs)
        except DomainError as e:
            logger.info("%s rejected: %s %s", request.path, e.code, e.message)
            return error_response(e)

    return wrapper
