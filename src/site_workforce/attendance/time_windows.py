"""Classify a point in time against an attendance action's allowed windows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..common.datetime_utils import at, whole_minutes
from ..common.validators import parse_enum
from ..core import constants as C
from ..core.enums import AttendanceAction


@dataclass(frozen=True)
class TimeWindow:
    label: str
    opens_at: time
    closes_at: time
    grace_until: Optional[time] = None


@dataclass(frozen=True)
class WindowCheck:
    can_proceed: bool
    is_grace_period: bool
    message: str
    requires_overtime_approval: bool = False

    def to_dict(self) -> dict:
        return {
            "can_proceed": self.can_proceed,
            "is_grace_period": self.is_grace_period,
            "message": self.message,
            "requires_overtime_approval": self.requires_overtime_approval,
        }


# Fixed site policy; not user-editable.
WINDOWS: dict[AttendanceAction, TimeWindow] = {
    AttendanceAction.LOGIN: TimeWindow("login", C.LOGIN_OPENS_AT, C.LOGIN_CUTOFF, C.LOGIN_GRACE_UNTIL),
    AttendanceAction.LUNCH_START: TimeWindow("lunch start", C.LUNCH_WINDOW_START, C.LUNCH_WINDOW_END),
    AttendanceAction.LUNCH_END: TimeWindow("lunch end", C.LUNCH_WINDOW_START, C.LUNCH_WINDOW_END),
    AttendanceAction.LOGOUT: TimeWindow("logout", C.STANDARD_SHIFT_END, C.STANDARD_SHIFT_END, C.LOGOUT_GRACE_UNTIL),
}


class TimeWindowValidator:
    def __init__(self, windows: dict[AttendanceAction, TimeWindow] | None = None):
        self._windows = dict(windows or WINDOWS)

    def window_for(self, action: AttendanceAction | str) -> TimeWindow:
        return self._windows[parse_enum(AttendanceAction, action, "action")]

    def validate(
        self,
        action: AttendanceAction | str,
        now: datetime,
        *,
        overtime_approved: bool = False,
        work_date: Optional[date] = None,
    ) -> WindowCheck:
        """Classify `now` against the action's window on `work_date` (default: the day of `now`)."""
        action = parse_enum(AttendanceAction, action, "action")
        window = self._windows[action]
        day = work_date or now.date()
        opens = at(day, window.opens_at)
        closes = at(day, window.closes_at)

        if now < opens:
            return WindowCheck(False, False, f"Too early for {window.label}. Window opens at {window.opens_at:%H:%M}")

        if now <= closes:
            return WindowCheck(True, False, f"On time for {window.label}")

        late_by = whole_minutes(now - closes)
        if window.grace_until is not None and now <= at(day, window.grace_until):
            return WindowCheck(
                True,
                True,
                f"Late {window.label} ({late_by} minutes past {window.closes_at:%H:%M})",
            )

        if action is AttendanceAction.LOGOUT:
            if overtime_approved:
                return WindowCheck(True, False, "Logout after extended hours (overtime approved)")
            return WindowCheck(
                False,
                False,
                f"Logout after {window.grace_until:%H:%M} requires overtime approval",
                requires_overtime_approval=True,
            )

        last = window.grace_until or window.closes_at
        return WindowCheck(False, False, f"The {window.label} window closed at {last:%H:%M}")

    def minutes_late(self, action: AttendanceAction | str, now: datetime) -> int:
        """Whole minutes past the primary window's close (0 when on time)."""
        window = self.window_for(action)
        return whole_minutes(now - at(now.date(), window.closes_at))
