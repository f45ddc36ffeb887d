from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

from ..attendance.service import AttendanceStateMachine
from ..common.datetime_utils import now_local
from ..common.notifications import NotificationSink, notify_safely
from ..core.enums import SessionState, TaskStatus
from ..core.exceptions import (
    ActiveTaskConflict,
    ConcurrentUpdateError,
    DependencyNotMet,
    IncompleteOutput,
    InvalidStateTransition,
    NoActiveAttendanceSession,
    NotFound,
)
from .model import WorkerTaskAssignment
from .repository import TaskRepository

logger = logging.getLogger(__name__)

_STARTABLE = (TaskStatus.QUEUED, TaskStatus.PAUSED)


class TaskDependencyResolver:
    """Start/pause/complete a worker's daily tasks.

    A task may start only while its worker is clocked in, once every
    dependency is completed, and while no other task of the same worker and
    day is in progress. Switching tasks is an explicit pause + start; the
    resolver never pauses or starts anything on its own.
    """

    def __init__(
        self,
        tasks: TaskRepository,
        attendance: AttendanceStateMachine,
        *,
        notifier: NotificationSink | None = None,
    ):
        self._tasks = tasks
        self._attendance = attendance
        self._notifier = notifier

    def list_tasks(self, worker_id: int, work_date: date) -> Sequence[WorkerTaskAssignment]:
        return self._tasks.list_for_worker_and_date(int(worker_id), work_date)

    def start_task(self, assignment_id: int, worker_id: int, *, now: datetime | None = None) -> WorkerTaskAssignment:
        now = now or now_local()
        target = self._load_owned(assignment_id, worker_id)
        day_tasks = self._tasks.list_for_worker_and_date(target.employee_id, target.work_date)

        state = self._attendance.current_state(target.employee_id, target.project_id, target.work_date)
        if state is not SessionState.CLOCKED_IN:
            raise NoActiveAttendanceSession(
                "Clock in before starting work",
                details={"attendance_state": state.value},
            )

        if target.status not in _STARTABLE:
            raise InvalidStateTransition(
                f"Task '{target.name}' is already {target.status.value}",
                details={"status": target.status.value},
            )

        unmet = self._unmet_dependencies(target)
        if unmet:
            names = ", ".join(name for _, name in unmet)
            ids = [dep_id for dep_id, _ in unmet]
            logger.info("start rejected task=%s unmet=%s", target.assignment_id, ids)
            notify_safely(
                self._notifier,
                "task.dependency_rejected",
                {"assignment_id": target.assignment_id, "worker_id": target.employee_id, "unmet_dependency_ids": ids},
            )
            raise DependencyNotMet(
                f"Complete these tasks first: {names}",
                details={"unmet_dependency_ids": ids, "unmet_dependency_names": [name for _, name in unmet]},
            )

        active = next(
            (t for t in day_tasks if t.status is TaskStatus.IN_PROGRESS and t.assignment_id != target.assignment_id),
            None,
        )
        if active is not None:
            raise ActiveTaskConflict(
                f"'{active.name}' is still in progress. Pause it before starting '{target.name}'.",
                details={"active_task_id": active.assignment_id, "active_task_name": active.name},
            )

        started = replace(target, status=TaskStatus.IN_PROGRESS, started_at=target.started_at or now)
        return self._commit(target, started, "start")

    def pause_task(self, assignment_id: int, worker_id: int) -> WorkerTaskAssignment:
        target = self._load_owned(assignment_id, worker_id)
        self._require_in_progress(target, "pause")
        return self._commit(target, replace(target, status=TaskStatus.PAUSED), "pause")

    def complete_task(
        self,
        assignment_id: int,
        worker_id: int,
        *,
        force_complete: bool = False,
        now: datetime | None = None,
    ) -> WorkerTaskAssignment:
        now = now or now_local()
        target = self._load_owned(assignment_id, worker_id)
        self._require_in_progress(target, "complete")

        short = target.actual_output < target.daily_target.quantity
        if short and not force_complete:
            raise IncompleteOutput(
                f"Daily target not reached: {target.actual_output} of {target.daily_target.quantity} "
                f"{target.daily_target.unit}",
                details={
                    "actual_output": str(target.actual_output),
                    "target_quantity": str(target.daily_target.quantity),
                    "unit": target.daily_target.unit,
                },
            )
        if short:
            logger.warning(
                "force_complete task=%s worker=%s output=%s target=%s",
                target.assignment_id,
                target.employee_id,
                target.actual_output,
                target.daily_target.quantity,
            )

        completed = replace(target, status=TaskStatus.COMPLETED, completed_at=now, force_completed=short)
        return self._commit(target, completed, "complete")

    def suggest_next_task(self, worker_id: int, work_date: date) -> Optional[WorkerTaskAssignment]:
        """Lowest-sequence task that could start now. Advisory only."""
        candidates = [
            t
            for t in self._tasks.list_for_worker_and_date(int(worker_id), work_date)
            if t.status in _STARTABLE and not self._unmet_dependencies(t)
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda t: (t.sequence, t.assignment_id))

    # ---- helpers ----

    def _load_owned(self, assignment_id: int, worker_id: int) -> WorkerTaskAssignment:
        assignment = self._tasks.get(int(assignment_id))
        if assignment is None or assignment.employee_id != int(worker_id):
            raise NotFound("Task assignment not found", details={"assignment_id": assignment_id})
        return assignment

    def _unmet_dependencies(self, task: WorkerTaskAssignment) -> list[tuple[int, str]]:
        if not task.dependencies:
            return []
        found = {d.assignment_id: d for d in self._tasks.get_many(task.dependencies)}
        unmet: list[tuple[int, str]] = []
        for dep_id in sorted(task.dependencies):
            dep = found.get(dep_id)
            if dep is None:
                unmet.append((dep_id, f"#{dep_id}"))
            elif dep.status is not TaskStatus.COMPLETED:
                unmet.append((dep_id, dep.name))
        return unmet

    @staticmethod
    def _require_in_progress(task: WorkerTaskAssignment, action: str) -> None:
        if task.status is not TaskStatus.IN_PROGRESS:
            raise InvalidStateTransition(
                f"Cannot {action} '{task.name}' while it is {task.status.value}",
                details={"status": task.status.value},
            )

    def _commit(self, before: WorkerTaskAssignment, after: WorkerTaskAssignment, action: str) -> WorkerTaskAssignment:
        if not self._tasks.save_status(after, expected_status=before.status):
            raise ConcurrentUpdateError(f"Task changed during {action}")
        logger.info(
            "task %s id=%s worker=%s %s->%s",
            action,
            after.assignment_id,
            after.employee_id,
            before.status.value,
            after.status.value,
        )
        notify_safely(
            self._notifier,
            "task.status_changed",
            {
                "assignment_id": after.assignment_id,
                "worker_id": after.employee_id,
                "from": before.status.value,
                "to": after.status.value,
            },
        )
        return after
