from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "DOMAIN_ERROR"

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "FORBIDDEN"


class ConcurrentUpdateError(DomainError):
    """A conditional write matched no row: another request changed the record first."""

    code = "CONCURRENT_UPDATE"


class PreconditionFailed(ValidationError):
    """Client-recoverable rejection. State is left unchanged."""

    code = "PRECONDITION_FAILED"


class InvalidInput(PreconditionFailed):
    code = "INVALID_INPUT"


class InvalidCoordinate(InvalidInput):
    code = "INVALID_COORDINATE"


class NotFound(PreconditionFailed):
    code = "NOT_FOUND"


class OutsideGeofence(PreconditionFailed):
    code = "OUTSIDE_GEOFENCE"


class OutsideLoginWindow(PreconditionFailed):
    code = "OUTSIDE_LOGIN_WINDOW"


class OutsideLunchWindow(PreconditionFailed):
    code = "OUTSIDE_LUNCH_WINDOW"


class InvalidStateTransition(PreconditionFailed):
    code = "INVALID_STATE_TRANSITION"


class DuplicatePendingRequest(PreconditionFailed):
    code = "DUPLICATE_PENDING_REQUEST"


class NotPending(PreconditionFailed):
    code = "NOT_PENDING"


class NoActiveAttendanceSession(PreconditionFailed):
    code = "NO_ACTIVE_ATTENDANCE_SESSION"


class DependencyNotMet(PreconditionFailed):
    code = "DEPENDENCY_NOT_MET"


class ActiveTaskConflict(PreconditionFailed):
    code = "ACTIVE_TASK_CONFLICT"


class IncompleteOutput(PreconditionFailed):
    code = "INCOMPLETE_OUTPUT"


class InvalidDelta(PreconditionFailed):
    code = "INVALID_DELTA"
