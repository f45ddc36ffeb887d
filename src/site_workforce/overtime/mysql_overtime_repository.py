from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import OvertimeStatus
from ..core.exceptions import ConcurrentUpdateError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import all_rows, db_cursor, first_row, is_duplicate_key
from .model import OvertimeRequest
from .repository import OvertimeRepository

_COLUMNS = """
    request_id, worker_id, project_id, work_date, status, reason,
    requested_at, decided_by, decided_at
"""


def _row_to_request(r: dict) -> OvertimeRequest:
    return OvertimeRequest(
        request_id=int(r["request_id"]),
        worker_id=int(r["worker_id"]),
        project_id=int(r["project_id"]),
        work_date=r["work_date"],
        status=OvertimeStatus(r["status"]),
        reason=r["reason"],
        requested_at=r["requested_at"],
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
    )


class MySQLOvertimeRepository(OvertimeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, request_id: int) -> Optional[OvertimeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM overtime_requests WHERE request_id=%s", (int(request_id),))
            r = first_row(cur)
            return _row_to_request(r) if r else None

    def get_for_session(self, *, worker_id: int, project_id: int, work_date: date) -> Optional[OvertimeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM overtime_requests
                WHERE worker_id=%s AND project_id=%s AND work_date=%s
                """,
                (int(worker_id), int(project_id), work_date),
            )
            r = first_row(cur)
            return _row_to_request(r) if r else None

    def create_pending(
        self,
        *,
        worker_id: int,
        project_id: int,
        work_date: date,
        reason: str,
        requested_at: datetime,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO overtime_requests(worker_id, project_id, work_date, status, reason, requested_at)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (int(worker_id), int(project_id), work_date, OvertimeStatus.PENDING.value, reason, requested_at),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise ConcurrentUpdateError("An overtime request was created concurrently")
            raise

    def reopen(
        self,
        *,
        request_id: int,
        expected_status: OvertimeStatus,
        reason: str,
        requested_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE overtime_requests
                SET status=%s, reason=%s, requested_at=%s, decided_by=NULL, decided_at=NULL
                WHERE request_id=%s AND status=%s
                """,
                (OvertimeStatus.PENDING.value, reason, requested_at, int(request_id), expected_status.value),
            )
            return cur.rowcount > 0

    def decide(
        self,
        *,
        request_id: int,
        status: OvertimeStatus,
        decided_by: int,
        decided_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE overtime_requests
                SET status=%s, decided_by=%s, decided_at=%s
                WHERE request_id=%s AND status=%s
                """,
                (status.value, int(decided_by), decided_at, int(request_id), OvertimeStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def list_pending(self, *, limit: int = 200) -> Sequence[OvertimeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM overtime_requests
                WHERE status=%s
                ORDER BY requested_at ASC
                LIMIT %s
                """,
                (OvertimeStatus.PENDING.value, int(limit)),
            )
            return [_row_to_request(r) for r in all_rows(cur)]
