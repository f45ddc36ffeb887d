from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import isoformat_or_none
from ..core.enums import LocationLogType, SessionState

ZERO_HOURS = Decimal("0.00")


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: one worker's attendance on one project for one day."""

    session_id: Optional[int]
    worker_id: int
    project_id: int
    work_date: date
    state: SessionState
    clock_in_at: Optional[datetime] = None
    lunch_start_at: Optional[datetime] = None
    lunch_end_at: Optional[datetime] = None
    clock_out_at: Optional[datetime] = None
    is_late: bool = False
    minutes_late: int = 0
    regular_hours: Decimal = ZERO_HOURS
    ot_hours: Decimal = ZERO_HOURS
    unapproved_ot_hours: Decimal = ZERO_HOURS
    unapproved_overtime: bool = False
    is_early_departure: bool = False
    geofence_violation_at_checkout: bool = False
    last_lat: Optional[float] = None
    last_lon: Optional[float] = None
    last_inside_geofence: Optional[bool] = None

    @classmethod
    def not_started(cls, worker_id: int, project_id: int, work_date: date) -> "AttendanceSession":
        return cls(
            session_id=None,
            worker_id=int(worker_id),
            project_id=int(project_id),
            work_date=work_date,
            state=SessionState.NOT_CLOCKED_IN,
        )

    @property
    def latest_timestamp(self) -> Optional[datetime]:
        stamps = [t for t in (self.clock_in_at, self.lunch_start_at, self.lunch_end_at, self.clock_out_at) if t]
        return max(stamps) if stamps else None

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "worker_id": self.worker_id,
            "project_id": self.project_id,
            "work_date": self.work_date.isoformat(),
            "state": self.state.value,
            "clock_in_at": isoformat_or_none(self.clock_in_at),
            "lunch_start_at": isoformat_or_none(self.lunch_start_at),
            "lunch_end_at": isoformat_or_none(self.lunch_end_at),
            "clock_out_at": isoformat_or_none(self.clock_out_at),
            "is_late": self.is_late,
            "minutes_late": self.minutes_late,
            "regular_hours": str(self.regular_hours),
            "ot_hours": str(self.ot_hours),
            "unapproved_ot_hours": str(self.unapproved_ot_hours),
            "unapproved_overtime": self.unapproved_overtime,
            "is_early_departure": self.is_early_departure,
            "geofence_violation_at_checkout": self.geofence_violation_at_checkout,
            "last_known_location": {
                "lat": self.last_lat,
                "lon": self.last_lon,
                "inside_geofence": self.last_inside_geofence,
            },
        }


@dataclass(frozen=True)
class LocationLogEntry:
    worker_id: int
    project_id: int
    lat: float
    lon: float
    accuracy: Optional[float]
    inside_geofence: bool
    distance_meters: float
    log_type: LocationLogType
    logged_at: datetime


@dataclass(frozen=True)
class ForgottenCheckout:
    hours_checked_in: float
    is_forgotten: bool
    requires_regularization: bool
    message: str

    def to_dict(self) -> dict:
        return {
            "hours_checked_in": round(self.hours_checked_in, 2),
            "is_forgotten": self.is_forgotten,
            "requires_regularization": self.requires_regularization,
            "message": self.message,
        }
