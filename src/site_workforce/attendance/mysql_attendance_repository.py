from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from mysql.connector.errors import IntegrityError

from ..core.enums import SessionState
from ..core.exceptions import ConcurrentUpdateError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, first_row, is_duplicate_key
from .model import AttendanceSession, LocationLogEntry
from .repository import AttendanceRepository, LocationLogRepository

_COLUMNS = """
    session_id, worker_id, project_id, work_date, state,
    clock_in_at, lunch_start_at, lunch_end_at, clock_out_at,
    is_late, minutes_late, regular_hours, ot_hours, unapproved_ot_hours,
    unapproved_overtime, is_early_departure, geofence_violation_at_checkout,
    last_lat, last_lon, last_inside_geofence
"""


def _opt_float(value) -> Optional[float]:
    return float(value) if value is not None else None


def _row_to_session(r: dict) -> AttendanceSession:
    inside = r.get("last_inside_geofence")
    return AttendanceSession(
        session_id=int(r["session_id"]),
        worker_id=int(r["worker_id"]),
        project_id=int(r["project_id"]),
        work_date=r["work_date"],
        state=SessionState(r["state"]),
        clock_in_at=r.get("clock_in_at"),
        lunch_start_at=r.get("lunch_start_at"),
        lunch_end_at=r.get("lunch_end_at"),
        clock_out_at=r.get("clock_out_at"),
        is_late=bool(r["is_late"]),
        minutes_late=int(r["minutes_late"] or 0),
        regular_hours=Decimal(r["regular_hours"]),
        ot_hours=Decimal(r["ot_hours"]),
        unapproved_ot_hours=Decimal(r["unapproved_ot_hours"]),
        unapproved_overtime=bool(r["unapproved_overtime"]),
        is_early_departure=bool(r["is_early_departure"]),
        geofence_violation_at_checkout=bool(r["geofence_violation_at_checkout"]),
        last_lat=_opt_float(r.get("last_lat")),
        last_lon=_opt_float(r.get("last_lon")),
        last_inside_geofence=bool(inside) if inside is not None else None,
    )


def _mutable_values(s: AttendanceSession) -> tuple:
    return (
        s.state.value,
        s.clock_in_at,
        s.lunch_start_at,
        s.lunch_end_at,
        s.clock_out_at,
        int(s.is_late),
        int(s.minutes_late),
        s.regular_hours,
        s.ot_hours,
        s.unapproved_ot_hours,
        int(s.unapproved_overtime),
        int(s.is_early_departure),
        int(s.geofence_violation_at_checkout),
        s.last_lat,
        s.last_lon,
        None if s.last_inside_geofence is None else int(s.last_inside_geofence),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_session(self, *, worker_id: int, project_id: int, work_date: date) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE worker_id=%s AND project_id=%s AND work_date=%s
                """,
                (int(worker_id), int(project_id), work_date),
            )
            r = first_row(cur)
            return _row_to_session(r) if r else None

    def get_open_session(self, *, worker_id: int, project_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_sessions
                WHERE worker_id=%s AND project_id=%s AND state IN (%s, %s)
                ORDER BY work_date DESC, session_id DESC
                LIMIT 1
                """,
                (int(worker_id), int(project_id), SessionState.CLOCKED_IN.value, SessionState.ON_LUNCH.value),
            )
            r = first_row(cur)
            return _row_to_session(r) if r else None

    def create_session(self, session: AttendanceSession) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_sessions(
                        worker_id, project_id, work_date, state,
                        clock_in_at, lunch_start_at, lunch_end_at, clock_out_at,
                        is_late, minutes_late, regular_hours, ot_hours, unapproved_ot_hours,
                        unapproved_overtime, is_early_departure, geofence_violation_at_checkout,
                        last_lat, last_lon, last_inside_geofence
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (session.worker_id, session.project_id, session.work_date) + _mutable_values(session),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise ConcurrentUpdateError("Attendance session was created by a concurrent request")
            raise

    def save_transition(self, session: AttendanceSession, *, expected_state: SessionState) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET state=%s,
                    clock_in_at=%s, lunch_start_at=%s, lunch_end_at=%s, clock_out_at=%s,
                    is_late=%s, minutes_late=%s,
                    regular_hours=%s, ot_hours=%s, unapproved_ot_hours=%s,
                    unapproved_overtime=%s, is_early_departure=%s, geofence_violation_at_checkout=%s,
                    last_lat=%s, last_lon=%s, last_inside_geofence=%s
                WHERE session_id=%s AND state=%s
                """,
                _mutable_values(session) + (int(session.session_id), expected_state.value),
            )
            return cur.rowcount > 0


class MySQLLocationLogRepository(LocationLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(self, entry: LocationLogEntry) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO location_logs(
                    worker_id, project_id, lat, lon, accuracy,
                    inside_geofence, distance_m, log_type, logged_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(entry.worker_id),
                    int(entry.project_id),
                    entry.lat,
                    entry.lon,
                    entry.accuracy,
                    int(entry.inside_geofence),
                    round(entry.distance_meters, 2),
                    entry.log_type.value,
                    entry.logged_at,
                ),
            )
