from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..common.datetime_utils import isoformat_or_none
from ..core.enums import TaskStatus


def progress_percent(actual_output: Decimal, quantity: Decimal) -> int:
    """Completion percentage rounded half-up and clamped to [0, 100]."""
    if quantity <= 0:
        return 100 if actual_output > 0 else 0
    pct = (Decimal(actual_output) / Decimal(quantity) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return max(0, min(100, int(pct)))


@dataclass(frozen=True)
class DailyTarget:
    quantity: Decimal
    unit: str


@dataclass(frozen=True)
class WorkerTaskAssignment:
    """Domain entity: one task assigned to one worker for one day."""

    assignment_id: int
    employee_id: int
    project_id: int
    name: str
    work_date: date
    sequence: int
    status: TaskStatus
    daily_target: DailyTarget
    dependencies: frozenset[int] = field(default_factory=frozenset)
    actual_output: Decimal = Decimal("0")
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    force_completed: bool = False

    @property
    def progress_percent(self) -> int:
        return progress_percent(self.actual_output, self.daily_target.quantity)

    def to_dict(self) -> dict:
        return {
            "id": self.assignment_id,
            "employee_id": self.employee_id,
            "project_id": self.project_id,
            "name": self.name,
            "date": self.work_date.isoformat(),
            "sequence": self.sequence,
            "status": self.status.value,
            "dependencies": sorted(self.dependencies),
            "daily_target": {"quantity": str(self.daily_target.quantity), "unit": self.daily_target.unit},
            "actual_output": str(self.actual_output),
            "progress_percent": self.progress_percent,
            "started_at": isoformat_or_none(self.started_at),
            "completed_at": isoformat_or_none(self.completed_at),
            "force_completed": self.force_completed,
        }


@dataclass(frozen=True)
class UnitProgress:
    """Header-level totals for one output unit across a worker's day."""

    unit: str
    target_quantity: Decimal
    actual_output: Decimal

    @property
    def progress_percent(self) -> int:
        return progress_percent(self.actual_output, self.target_quantity)

    def to_dict(self) -> dict:
        return {
            "unit": self.unit,
            "target_quantity": str(self.target_quantity),
            "actual_output": str(self.actual_output),
            "progress_percent": self.progress_percent,
        }
