from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any

from ..common.validators import require_decimal
from ..core.constants import MAX_OUTPUT, OUTPUT_PRECISION
from ..core.enums import TaskStatus
from ..core.exceptions import ConcurrentUpdateError, InvalidDelta, InvalidInput, InvalidStateTransition, NotFound
from .model import UnitProgress, WorkerTaskAssignment
from .repository import TaskRepository

logger = logging.getLogger(__name__)


def _stored_scale(delta: Decimal) -> Decimal:
    """Bring a delta to the stored two-decimal scale; finer or out-of-range values are rejected."""
    if abs(delta) > MAX_OUTPUT:
        raise InvalidDelta(f"Quantity must be between -{MAX_OUTPUT} and {MAX_OUTPUT}")
    scaled = delta.quantize(OUTPUT_PRECISION)
    if scaled != delta:
        raise InvalidDelta("Quantity supports at most 2 decimal places", details={"delta": str(delta)})
    return scaled


class DailyTargetProgressTracker:
    def __init__(self, tasks: TaskRepository):
        self._tasks = tasks

    def record_progress(
        self,
        assignment_id: int,
        delta: Any,
        *,
        worker_id: int | None = None,
    ) -> WorkerTaskAssignment:
        """Add `delta` to the task's output. Negative deltas are corrections and may not go below zero."""
        try:
            delta = require_decimal(delta, "Quantity")
        except InvalidInput as e:
            raise InvalidDelta(e.message)
        delta = _stored_scale(delta)

        task = self._tasks.get(int(assignment_id))
        if task is None or (worker_id is not None and task.employee_id != int(worker_id)):
            raise NotFound("Task assignment not found", details={"assignment_id": assignment_id})
        if task.status is not TaskStatus.IN_PROGRESS:
            raise InvalidStateTransition(
                f"Progress can only be recorded on a task in progress (currently {task.status.value})",
                details={"status": task.status.value},
            )

        new_output = task.actual_output + delta
        if new_output < 0:
            raise InvalidDelta(
                "Output cannot go below zero",
                details={"actual_output": str(task.actual_output), "delta": str(delta)},
            )
        if new_output > MAX_OUTPUT:
            raise InvalidDelta(
                f"Output cannot exceed {MAX_OUTPUT}",
                details={"actual_output": str(task.actual_output), "delta": str(delta)},
            )
        if delta == 0:
            return task

        if not self._tasks.save_output(
            assignment_id=task.assignment_id,
            expected_output=task.actual_output,
            new_output=new_output,
        ):
            raise ConcurrentUpdateError("Task output changed while recording progress")

        updated = replace(task, actual_output=new_output)
        logger.info(
            "progress task=%s output=%s/%s (%s%%)",
            task.assignment_id,
            new_output,
            task.daily_target.quantity,
            updated.progress_percent,
        )
        return updated

    def summarize_by_unit(self, worker_id: int, work_date: date) -> list[UnitProgress]:
        targets: dict[str, Decimal] = defaultdict(Decimal)
        actuals: dict[str, Decimal] = defaultdict(Decimal)
        for task in self._tasks.list_for_worker_and_date(int(worker_id), work_date):
            unit = task.daily_target.unit
            targets[unit] += task.daily_target.quantity
            actuals[unit] += task.actual_output

        return [
            UnitProgress(unit=unit, target_quantity=targets[unit], actual_output=actuals[unit])
            for unit in sorted(targets)
        ]
