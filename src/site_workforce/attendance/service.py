from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import at, now_local
from ..common.notifications import NotificationSink, notify_safely
from ..core.constants import FORGOTTEN_AFTER_HOURS, REGULARIZATION_AFTER_HOURS, STANDARD_SHIFT_END
from ..core.enums import AttendanceAction, LocationLogType, SessionState
from ..core.exceptions import (
    ConcurrentUpdateError,
    InvalidInput,
    InvalidStateTransition,
    NotFound,
    OutsideGeofence,
    OutsideLoginWindow,
    OutsideLunchWindow,
)
from ..geofence.model import GeofenceResult, WorkerLocation
from ..geofence.repository import ProjectRepository
from ..geofence.validator import parse_location, validate_geofence
from ..overtime.service import OvertimeApprovalManager
from .hours import compute_hours
from .model import AttendanceSession, ForgottenCheckout, LocationLogEntry
from .repository import AttendanceRepository, LocationLogRepository
from .time_windows import TimeWindowValidator

logger = logging.getLogger(__name__)

_OPEN_STATES = (SessionState.CLOCKED_IN, SessionState.ON_LUNCH)


class AttendanceStateMachine:
    """Clock-in / lunch / clock-out lifecycle for a (worker, project, date) session.

    NOT_CLOCKED_IN -> CLOCKED_IN -> ON_LUNCH -> CLOCKED_IN -> CLOCKED_OUT

    Lunch and clock-out events act on the worker's open session, even when it
    was started on an earlier calendar day, so a shift that runs past midnight
    can still be closed. Every precondition is evaluated before anything is
    written, so a rejected event leaves the stored session exactly as it was.
    Writes are conditional on the state the decision was based on; losing that
    race raises ConcurrentUpdateError and records nothing.
    """

    def __init__(
        self,
        sessions: AttendanceRepository,
        projects: ProjectRepository,
        overtime: OvertimeApprovalManager,
        location_log: LocationLogRepository,
        *,
        windows: TimeWindowValidator | None = None,
        notifier: NotificationSink | None = None,
    ):
        self._sessions = sessions
        self._projects = projects
        self._overtime = overtime
        self._location_log = location_log
        self._windows = windows or TimeWindowValidator()
        self._notifier = notifier

    # ---- read projections ----

    def get_session(self, worker_id: int, project_id: int, work_date: date) -> AttendanceSession:
        session = self._sessions.get_session(worker_id=worker_id, project_id=project_id, work_date=work_date)
        return session or AttendanceSession.not_started(worker_id, project_id, work_date)

    def resolve_session(self, worker_id: int, project_id: int, work_date: date) -> AttendanceSession:
        """The worker's open session if there is one (whatever its date), else the session of `work_date`."""
        open_session = self._sessions.get_open_session(worker_id=worker_id, project_id=project_id)
        return open_session or self.get_session(worker_id, project_id, work_date)

    def current_state(self, worker_id: int, project_id: int, work_date: date) -> SessionState:
        return self.get_session(worker_id, project_id, work_date).state

    def validate_location(
        self,
        worker_id: int,
        project_id: int,
        lat: Any,
        lon: Any,
        accuracy: Any = None,
        *,
        now: datetime | None = None,
    ) -> GeofenceResult:
        now = now or now_local()
        location = parse_location(lat, lon, accuracy)
        geo = self._locate(project_id, location)
        self._record_location(worker_id, project_id, location, geo, LocationLogType.VALIDATE, now)
        return geo

    def check_forgotten_checkout(
        self,
        worker_id: int,
        project_id: int,
        *,
        now: datetime | None = None,
    ) -> ForgottenCheckout:
        now = now or now_local()
        session = self.resolve_session(worker_id, project_id, now.date())
        if session.state not in _OPEN_STATES or not session.clock_in_at:
            return ForgottenCheckout(0.0, False, False, "No active session")

        hours = max(0.0, (now - session.clock_in_at).total_seconds() / 3600)
        if hours > FORGOTTEN_AFTER_HOURS:
            message = (
                f"Checked in for {int(hours)} hours. "
                "Please contact supervisor for checkout regularization."
            )
        elif hours > REGULARIZATION_AFTER_HOURS:
            message = f"Long work session ({int(hours)} hours). Consider checking out or contact supervisor."
        else:
            message = f"Active session: {int(hours)} hours"
        return ForgottenCheckout(
            hours_checked_in=hours,
            is_forgotten=hours > FORGOTTEN_AFTER_HOURS,
            requires_regularization=hours > REGULARIZATION_AFTER_HOURS,
            message=message,
        )

    # ---- events ----

    def clock_in(
        self,
        worker_id: int,
        project_id: int,
        lat: Any,
        lon: Any,
        accuracy: Any = None,
        *,
        now: datetime | None = None,
    ) -> AttendanceSession:
        now = now or now_local()
        location = parse_location(lat, lon, accuracy)
        # An unclosed session from an earlier day blocks a new clock-in until it is closed.
        session = self.resolve_session(worker_id, project_id, now.date())
        self._require_state(session, SessionState.NOT_CLOCKED_IN, "clock in")

        geo = self._locate(project_id, location)
        if not geo.inside_geofence:
            self._record_location(worker_id, project_id, location, geo, LocationLogType.CLOCK_IN, now)
            self._report_violation(session, geo, "clock_in")
            raise OutsideGeofence(
                f"You are {geo.distance_meters:.0f} m from the site. Move inside the project area to clock in.",
                details=geo.to_dict(),
            )

        window = self._windows.validate(AttendanceAction.LOGIN, now)
        if not window.can_proceed:
            self._record_location(worker_id, project_id, location, geo, LocationLogType.CLOCK_IN, now)
            raise OutsideLoginWindow(window.message, details=window.to_dict())

        minutes_late = self._windows.minutes_late(AttendanceAction.LOGIN, now) if window.is_grace_period else 0
        updated = replace(
            self._with_location(session, location, geo),
            state=SessionState.CLOCKED_IN,
            clock_in_at=now,
            is_late=window.is_grace_period,
            minutes_late=minutes_late,
        )
        session_id = self._sessions.create_session(updated)
        updated = replace(updated, session_id=session_id)
        self._record_location(worker_id, project_id, location, geo, LocationLogType.CLOCK_IN, now)

        logger.info("clock_in worker=%s project=%s late=%s", worker_id, project_id, updated.is_late)
        if updated.is_late:
            notify_safely(
                self._notifier,
                "attendance.late_arrival",
                {"worker_id": worker_id, "project_id": project_id, "minutes_late": minutes_late},
            )
        return updated

    def lunch_start(
        self,
        worker_id: int,
        project_id: int,
        lat: Any,
        lon: Any,
        accuracy: Any = None,
        *,
        now: datetime | None = None,
    ) -> AttendanceSession:
        now = now or now_local()
        location = parse_location(lat, lon, accuracy)
        session = self.resolve_session(worker_id, project_id, now.date())
        self._require_state(session, SessionState.CLOCKED_IN, "start lunch")
        self._require_monotonic(session, now)

        geo = self._locate(project_id, location)
        if not geo.inside_geofence:
            self._record_location(worker_id, project_id, location, geo, LocationLogType.LUNCH_START, now)
            self._report_violation(session, geo, "lunch_start")
            raise OutsideGeofence(
                f"You are {geo.distance_meters:.0f} m from the site. Move inside the project area to start lunch.",
                details=geo.to_dict(),
            )

        window = self._windows.validate(AttendanceAction.LUNCH_START, now)
        if not window.can_proceed:
            self._record_location(worker_id, project_id, location, geo, LocationLogType.LUNCH_START, now)
            raise OutsideLunchWindow(window.message, details=window.to_dict())

        updated = replace(self._with_location(session, location, geo), state=SessionState.ON_LUNCH, lunch_start_at=now)
        self._commit(session, updated, "lunch_start")
        self._record_location(worker_id, project_id, location, geo, LocationLogType.LUNCH_START, now)
        return updated

    def lunch_end(
        self,
        worker_id: int,
        project_id: int,
        lat: Any,
        lon: Any,
        accuracy: Any = None,
        *,
        now: datetime | None = None,
    ) -> AttendanceSession:
        now = now or now_local()
        location = parse_location(lat, lon, accuracy)
        session = self.resolve_session(worker_id, project_id, now.date())
        self._require_state(session, SessionState.ON_LUNCH, "end lunch")
        self._require_monotonic(session, now)

        geo = self._locate(project_id, location)
        window = self._windows.validate(AttendanceAction.LUNCH_END, now, work_date=session.work_date)
        if not window.can_proceed:
            logger.info("lunch_end outside window worker=%s: %s", worker_id, window.message)

        updated = replace(self._with_location(session, location, geo), state=SessionState.CLOCKED_IN, lunch_end_at=now)
        self._commit(session, updated, "lunch_end")
        self._record_location(worker_id, project_id, location, geo, LocationLogType.LUNCH_END, now)
        return updated

    def clock_out(
        self,
        worker_id: int,
        project_id: int,
        lat: Any,
        lon: Any,
        accuracy: Any = None,
        *,
        now: datetime | None = None,
    ) -> AttendanceSession:
        """Close the open session. Location and time are flagged but never block clock-out."""
        now = now or now_local()
        location = parse_location(lat, lon, accuracy)
        session = self.resolve_session(worker_id, project_id, now.date())
        self._require_state(session, SessionState.CLOCKED_IN, "clock out")
        self._require_monotonic(session, now)

        geo = self._locate(project_id, location)
        approval = self._overtime.check_status(worker_id, project_id, session.work_date)
        window = self._windows.validate(
            AttendanceAction.LOGOUT,
            now,
            overtime_approved=approval.is_approved,
            work_date=session.work_date,
        )
        hours = compute_hours(
            clock_in_at=session.clock_in_at,
            clock_out_at=now,
            lunch_start_at=session.lunch_start_at,
            lunch_end_at=session.lunch_end_at,
            overtime_approved=approval.is_approved,
            work_date=session.work_date,
        )

        updated = replace(
            self._with_location(session, location, geo),
            state=SessionState.CLOCKED_OUT,
            clock_out_at=now,
            regular_hours=hours.regular_hours,
            ot_hours=hours.ot_hours,
            unapproved_ot_hours=hours.unapproved_ot_hours,
            unapproved_overtime=hours.unapproved_overtime,
            is_early_departure=now < at(session.work_date, STANDARD_SHIFT_END),
            geofence_violation_at_checkout=not geo.inside_geofence,
        )
        self._commit(session, updated, "clock_out")
        self._record_location(worker_id, project_id, location, geo, LocationLogType.CLOCK_OUT, now)

        if not geo.inside_geofence:
            self._report_violation(session, geo, "clock_out")
        if hours.unapproved_overtime:
            logger.warning(
                "unapproved overtime worker=%s project=%s hours=%s (%s)",
                worker_id,
                project_id,
                hours.unapproved_ot_hours,
                window.message,
            )
        return updated

    # ---- helpers ----

    def _locate(self, project_id: int, location: WorkerLocation) -> GeofenceResult:
        fence = self._projects.get_geofence(int(project_id))
        if fence is None:
            raise NotFound("Project geofence is not configured", details={"project_id": project_id})
        return validate_geofence(location, fence)

    def _record_location(
        self,
        worker_id: int,
        project_id: int,
        location: WorkerLocation,
        geo: GeofenceResult,
        log_type: LocationLogType,
        now: datetime,
    ) -> None:
        """Append the position once the event's outcome is known (never for a lost race)."""
        self._location_log.record(
            LocationLogEntry(
                worker_id=int(worker_id),
                project_id=int(project_id),
                lat=location.lat,
                lon=location.lon,
                accuracy=location.accuracy,
                inside_geofence=geo.inside_geofence,
                distance_meters=geo.distance_meters,
                log_type=log_type,
                logged_at=now,
            )
        )

    def _report_violation(self, session: AttendanceSession, geo: GeofenceResult, action: str) -> None:
        logger.info(
            "geofence violation worker=%s project=%s action=%s distance=%.1f",
            session.worker_id,
            session.project_id,
            action,
            geo.distance_meters,
        )
        notify_safely(
            self._notifier,
            "attendance.geofence_violation",
            {
                "worker_id": session.worker_id,
                "project_id": session.project_id,
                "action": action,
                "distance_meters": round(geo.distance_meters, 2),
            },
        )

    @staticmethod
    def _with_location(session: AttendanceSession, location: WorkerLocation, geo: GeofenceResult) -> AttendanceSession:
        return replace(session, last_lat=location.lat, last_lon=location.lon, last_inside_geofence=geo.inside_geofence)

    @staticmethod
    def _require_state(session: AttendanceSession, expected: SessionState, action: str) -> None:
        if session.state is not expected:
            raise InvalidStateTransition(
                f"Cannot {action} while {session.state.value}",
                details={"state": session.state.value, "expected": expected.value},
            )

    @staticmethod
    def _require_monotonic(session: AttendanceSession, now: datetime) -> None:
        latest: Optional[datetime] = session.latest_timestamp
        if latest and now < latest:
            raise InvalidInput("Event time is earlier than the last recorded attendance event")

    def _commit(self, before: AttendanceSession, after: AttendanceSession, event: str) -> None:
        if not self._sessions.save_transition(after, expected_state=before.state):
            raise ConcurrentUpdateError(f"Attendance session changed during {event}")
        logger.info(
            "%s worker=%s project=%s %s->%s",
            event,
            after.worker_id,
            after.project_id,
            before.state.value,
            after.state.value,
        )
