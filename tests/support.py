from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from site_workforce.attendance.model import AttendanceSession, LocationLogEntry
from site_workforce.core.enums import OvertimeStatus, SessionState, TaskStatus
from site_workforce.core.exceptions import ConcurrentUpdateError
from site_workforce.geofence.model import GeofenceDefinition
from site_workforce.overtime.model import OvertimeRequest
from site_workforce.tasks.model import DailyTarget, WorkerTaskAssignment

SITE_LAT = 10.7769
SITE_LON = 106.7009
# ~1.1 km north of the site
FAR_LAT = 10.7869

WORK_DAY = date(2026, 3, 2)


def on_day(hour: int, minute: int = 0) -> datetime:
    return datetime(WORK_DAY.year, WORK_DAY.month, WORK_DAY.day, hour, minute)


class InMemoryProjects:
    def __init__(self, fences: Optional[dict[int, GeofenceDefinition]] = None):
        self.fences = dict(fences or {})

    def get_geofence(self, project_id: int) -> Optional[GeofenceDefinition]:
        return self.fences.get(int(project_id))


class InMemorySessions:
    def __init__(self):
        self._rows: dict[tuple[int, int, date], AttendanceSession] = {}
        self._id = 0
        self.fail_next_save = False

    def get_session(self, *, worker_id, project_id, work_date):
        return self._rows.get((int(worker_id), int(project_id), work_date))

    def get_open_session(self, *, worker_id, project_id):
        open_rows = [
            s
            for s in self._rows.values()
            if (s.worker_id, s.project_id) == (int(worker_id), int(project_id))
            and s.state in (SessionState.CLOCKED_IN, SessionState.ON_LUNCH)
        ]
        return max(open_rows, key=lambda s: (s.work_date, s.session_id), default=None)

    def create_session(self, session: AttendanceSession) -> int:
        key = (session.worker_id, session.project_id, session.work_date)
        if key in self._rows:
            raise ConcurrentUpdateError("Attendance session already exists")
        self._id += 1
        self._rows[key] = replace(session, session_id=self._id)
        return self._id

    def save_transition(self, session: AttendanceSession, *, expected_state: SessionState) -> bool:
        if self.fail_next_save:
            self.fail_next_save = False
            return False
        key = (session.worker_id, session.project_id, session.work_date)
        current = self._rows.get(key)
        if current is None or current.state is not expected_state:
            return False
        self._rows[key] = session
        return True


class InMemoryLocationLog:
    def __init__(self):
        self.entries: list[LocationLogEntry] = []

    def record(self, entry: LocationLogEntry) -> None:
        self.entries.append(entry)


class InMemoryOvertime:
    def __init__(self):
        self._rows: dict[int, OvertimeRequest] = {}
        self._id = 0
        self.lose_next_decision = False

    def get(self, request_id):
        return self._rows.get(int(request_id))

    def get_for_session(self, *, worker_id, project_id, work_date):
        for r in self._rows.values():
            if (r.worker_id, r.project_id, r.work_date) == (int(worker_id), int(project_id), work_date):
                return r
        return None

    def create_pending(self, *, worker_id, project_id, work_date, reason, requested_at):
        if self.get_for_session(worker_id=worker_id, project_id=project_id, work_date=work_date):
            raise ConcurrentUpdateError("Overtime request already exists")
        self._id += 1
        self._rows[self._id] = OvertimeRequest(
            request_id=self._id,
            worker_id=int(worker_id),
            project_id=int(project_id),
            work_date=work_date,
            status=OvertimeStatus.PENDING,
            reason=reason,
            requested_at=requested_at,
        )
        return self._id

    def reopen(self, *, request_id, expected_status, reason, requested_at):
        req = self._rows.get(int(request_id))
        if req is None or req.status is not expected_status:
            return False
        self._rows[req.request_id] = replace(
            req, status=OvertimeStatus.PENDING, reason=reason, requested_at=requested_at, decided_by=None, decided_at=None
        )
        return True

    def decide(self, *, request_id, status, decided_by, decided_at):
        if self.lose_next_decision:
            self.lose_next_decision = False
            return False
        req = self._rows.get(int(request_id))
        if req is None or req.status is not OvertimeStatus.PENDING:
            return False
        self._rows[req.request_id] = replace(req, status=status, decided_by=decided_by, decided_at=decided_at)
        return True

    def list_pending(self, *, limit=200):
        rows = [r for r in self._rows.values() if r.status is OvertimeStatus.PENDING]
        rows.sort(key=lambda r: (r.requested_at, r.request_id))
        return rows[:limit]


class InMemoryTasks:
    def __init__(self):
        self._rows: dict[int, WorkerTaskAssignment] = {}
        self._id = 0

    def add(
        self,
        name: str,
        *,
        employee_id: int = 7,
        project_id: int = 1,
        work_date: date = WORK_DAY,
        sequence: int = 1,
        quantity: str = "10",
        unit: str = "m3",
        depends_on: tuple[int, ...] = (),
        status: TaskStatus = TaskStatus.QUEUED,
        actual_output: str = "0",
    ) -> WorkerTaskAssignment:
        self._id += 1
        task = WorkerTaskAssignment(
            assignment_id=self._id,
            employee_id=employee_id,
            project_id=project_id,
            name=name,
            work_date=work_date,
            sequence=sequence,
            status=status,
            daily_target=DailyTarget(quantity=Decimal(quantity), unit=unit),
            dependencies=frozenset(depends_on),
            actual_output=Decimal(actual_output),
        )
        self._rows[task.assignment_id] = task
        return task

    def get(self, assignment_id):
        return self._rows.get(int(assignment_id))

    def get_many(self, assignment_ids):
        return [self._rows[i] for i in sorted(set(assignment_ids)) if i in self._rows]

    def list_for_worker_and_date(self, employee_id, work_date):
        rows = [t for t in self._rows.values() if t.employee_id == int(employee_id) and t.work_date == work_date]
        return sorted(rows, key=lambda t: (t.sequence, t.assignment_id))

    def save_status(self, assignment, *, expected_status):
        current = self._rows.get(assignment.assignment_id)
        if current is None or current.status is not expected_status:
            return False
        if assignment.status is TaskStatus.IN_PROGRESS:
            for other in self.list_for_worker_and_date(assignment.employee_id, assignment.work_date):
                if other.assignment_id != assignment.assignment_id and other.status is TaskStatus.IN_PROGRESS:
                    raise ConcurrentUpdateError("Another task is already in progress")
        self._rows[assignment.assignment_id] = replace(current, **_status_fields(assignment))
        return True

    def save_output(self, *, assignment_id, expected_output, new_output):
        current = self._rows.get(int(assignment_id))
        if current is None or current.status is not TaskStatus.IN_PROGRESS or current.actual_output != expected_output:
            return False
        self._rows[current.assignment_id] = replace(current, actual_output=new_output)
        return True


def _status_fields(a: WorkerTaskAssignment) -> dict:
    return {
        "status": a.status,
        "started_at": a.started_at,
        "completed_at": a.completed_at,
        "force_completed": a.force_completed,
    }


class RecordingNotifier:
    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    def notify(self, event, payload):
        self.events.append((event, payload))

    def names(self) -> list[str]:
        return [e for e, _ in self.events]
