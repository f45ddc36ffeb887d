from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import at, to_hours
from ..core.constants import LOGOUT_GRACE_UNTIL, STANDARD_SHIFT_END


@dataclass(frozen=True)
class HoursBreakdown:
    regular_hours: Decimal
    ot_hours: Decimal
    unapproved_ot_hours: Decimal

    @property
    def unapproved_overtime(self) -> bool:
        return self.unapproved_ot_hours > 0


def lunch_duration(lunch_start_at: Optional[datetime], lunch_end_at: Optional[datetime]) -> timedelta:
    if lunch_start_at and lunch_end_at:
        return max(timedelta(0), lunch_end_at - lunch_start_at)
    return timedelta(0)


def compute_hours(
    *,
    clock_in_at: datetime,
    clock_out_at: datetime,
    lunch_start_at: Optional[datetime],
    lunch_end_at: Optional[datetime],
    overtime_approved: bool,
    work_date: Optional[date] = None,
) -> HoursBreakdown:
    """Split a closed session into regular and overtime hours.

    Time after the standard shift end only becomes overtime when the worker
    stays past the logout grace window; without an approval it is kept aside
    as unapproved overtime and paid as neither. Shift boundaries are taken on
    `work_date` (the session's day), which may be before the clock-out day.
    """
    worked = max(timedelta(0), clock_out_at - clock_in_at - lunch_duration(lunch_start_at, lunch_end_at))

    day = work_date or clock_in_at.date()
    excess = timedelta(0)
    if clock_out_at > at(day, LOGOUT_GRACE_UNTIL):
        excess = min(worked, clock_out_at - max(at(day, STANDARD_SHIFT_END), clock_in_at))

    regular = to_hours(worked - excess)
    extra = to_hours(excess)
    if overtime_approved:
        return HoursBreakdown(regular_hours=regular, ot_hours=extra, unapproved_ot_hours=Decimal("0.00"))
    return HoursBreakdown(regular_hours=regular, ot_hours=Decimal("0.00"), unapproved_ot_hours=extra)
