from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import TaskStatus
from ..core.exceptions import ConcurrentUpdateError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import all_rows, db_cursor, is_duplicate_key
from .model import DailyTarget, WorkerTaskAssignment
from .repository import TaskRepository

_SELECT = """
    SELECT assignment_id, employee_id, project_id, name, work_date, sequence, status,
           target_quantity, target_unit, actual_output, started_at, completed_at, force_completed
    FROM worker_task_assignments
"""


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, cur, where: str, params: tuple) -> list[WorkerTaskAssignment]:
        cur.execute(f"{_SELECT} WHERE {where} ORDER BY sequence ASC, assignment_id ASC", params)
        rows = all_rows(cur)
        if not rows:
            return []

        ids = [int(r["assignment_id"]) for r in rows]
        placeholders = ",".join(["%s"] * len(ids))
        cur.execute(
            f"SELECT assignment_id, depends_on_id FROM task_dependencies WHERE assignment_id IN ({placeholders})",
            tuple(ids),
        )
        deps: dict[int, set[int]] = defaultdict(set)
        for d in all_rows(cur):
            deps[int(d["assignment_id"])].add(int(d["depends_on_id"]))

        return [
            WorkerTaskAssignment(
                assignment_id=int(r["assignment_id"]),
                employee_id=int(r["employee_id"]),
                project_id=int(r["project_id"]),
                name=r["name"],
                work_date=r["work_date"],
                sequence=int(r["sequence"]),
                status=TaskStatus(r["status"]),
                daily_target=DailyTarget(quantity=Decimal(r["target_quantity"]), unit=r["target_unit"]),
                dependencies=frozenset(deps.get(int(r["assignment_id"]), ())),
                actual_output=Decimal(r["actual_output"]),
                started_at=r.get("started_at"),
                completed_at=r.get("completed_at"),
                force_completed=bool(r["force_completed"]),
            )
            for r in rows
        ]

    def get(self, assignment_id: int) -> Optional[WorkerTaskAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            found = self._load(cur, "assignment_id=%s", (int(assignment_id),))
            return found[0] if found else None

    def get_many(self, assignment_ids: Iterable[int]) -> Sequence[WorkerTaskAssignment]:
        ids = sorted({int(i) for i in assignment_ids})
        if not ids:
            return []
        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            return self._load(cur, f"assignment_id IN ({placeholders})", tuple(ids))

    def list_for_worker_and_date(self, employee_id: int, work_date: date) -> Sequence[WorkerTaskAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._load(cur, "employee_id=%s AND work_date=%s", (int(employee_id), work_date))

    def save_status(self, assignment: WorkerTaskAssignment, *, expected_status: TaskStatus) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE worker_task_assignments
                    SET status=%s, started_at=%s, completed_at=%s, force_completed=%s
                    WHERE assignment_id=%s AND status=%s
                    """,
                    (
                        assignment.status.value,
                        assignment.started_at,
                        assignment.completed_at,
                        int(assignment.force_completed),
                        int(assignment.assignment_id),
                        expected_status.value,
                    ),
                )
                return cur.rowcount > 0
        except IntegrityError as e:
            # uq_one_active_task: another task of this worker/day went in_progress first.
            if is_duplicate_key(e):
                raise ConcurrentUpdateError("Another task was started concurrently")
            raise

    def save_output(self, *, assignment_id: int, expected_output: Decimal, new_output: Decimal) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE worker_task_assignments
                SET actual_output=%s
                WHERE assignment_id=%s AND status=%s AND actual_output=%s
                """,
                (new_output, int(assignment_id), TaskStatus.IN_PROGRESS.value, expected_output),
            )
            return cur.rowcount > 0
