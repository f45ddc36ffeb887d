from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ..core.enums import SessionState
from .model import AttendanceSession, LocationLogEntry


class AttendanceRepository(Protocol):
    def get_session(self, *, worker_id: int, project_id: int, work_date: date) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def get_open_session(self, *, worker_id: int, project_id: int) -> Optional[AttendanceSession]:
        """Latest session for the worker and project that is CLOCKED_IN or ON_LUNCH, whatever its date."""

        raise NotImplementedError

    def create_session(self, session: AttendanceSession) -> int:
        """Insert a new session. Raises ConcurrentUpdateError if the key already exists."""

        raise NotImplementedError

    def save_transition(self, session: AttendanceSession, *, expected_state: SessionState) -> bool:
        """Persist `session` only if the stored row is still in `expected_state`."""

        raise NotImplementedError


class LocationLogRepository(Protocol):
    def record(self, entry: LocationLogEntry) -> None:
        raise NotImplementedError
