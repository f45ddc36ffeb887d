from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import TaskStatus
from .model import WorkerTaskAssignment


class TaskRepository(Protocol):
    def get(self, assignment_id: int) -> Optional[WorkerTaskAssignment]:
        raise NotImplementedError

    def get_many(self, assignment_ids: Iterable[int]) -> Sequence[WorkerTaskAssignment]:
        raise NotImplementedError

    def list_for_worker_and_date(self, employee_id: int, work_date: date) -> Sequence[WorkerTaskAssignment]:
        """Assignments ordered by (sequence, id)."""

        raise NotImplementedError

    def save_status(self, assignment: WorkerTaskAssignment, *, expected_status: TaskStatus) -> bool:
        """Persist status/timestamps only if the stored row is still in `expected_status`.

        Raises ConcurrentUpdateError when the single-active-task index rejects the write.
        """

        raise NotImplementedError

    def save_output(self, *, assignment_id: int, expected_output: Decimal, new_output: Decimal) -> bool:
        """Set actual_output only if the task is in progress and the output is unchanged."""

        raise NotImplementedError
