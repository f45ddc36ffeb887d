from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles as issued by the identity service."""

    WORKER = "worker"
    SUPERVISOR = "supervisor"


class SessionState(str, Enum):
    """Attendance session lifecycle for one worker/project/day."""

    NOT_CLOCKED_IN = "NOT_CLOCKED_IN"
    CLOCKED_IN = "CLOCKED_IN"
    ON_LUNCH = "ON_LUNCH"
    CLOCKED_OUT = "CLOCKED_OUT"


class AttendanceAction(str, Enum):
    """Named actions checked against the time windows."""

    LOGIN = "login"
    LUNCH_START = "lunch_start"
    LUNCH_END = "lunch_end"
    LOGOUT = "logout"


class LocationLogType(str, Enum):
    VALIDATE = "VALIDATE"
    CLOCK_IN = "CLOCK_IN"
    LUNCH_START = "LUNCH_START"
    LUNCH_END = "LUNCH_END"
    CLOCK_OUT = "CLOCK_OUT"


class OvertimeStatus(str, Enum):
    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class OvertimeDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class TaskStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
