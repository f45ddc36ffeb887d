from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository, MySQLLocationLogRepository
from .attendance.repository import AttendanceRepository, LocationLogRepository
from .attendance.service import AttendanceStateMachine
from .common.notifications import LoggingNotificationSink, NotificationSink
from .database.connection import DBConfig, DatabaseConnection
from .geofence.mysql_project_repository import MySQLProjectRepository
from .geofence.repository import ProjectRepository
from .overtime.mysql_overtime_repository import MySQLOvertimeRepository
from .overtime.repository import OvertimeRepository
from .overtime.service import OvertimeApprovalManager
from .tasks.mysql_task_repository import MySQLTaskRepository
from .tasks.progress import DailyTargetProgressTracker
from .tasks.repository import TaskRepository
from .tasks.service import TaskDependencyResolver


@dataclass(frozen=True)
class Container:
    overtime_manager: OvertimeApprovalManager
    attendance: AttendanceStateMachine
    task_resolver: TaskDependencyResolver
    progress_tracker: DailyTargetProgressTracker
    conn: Optional[DatabaseConnection] = None


def assemble(
    *,
    projects: ProjectRepository,
    sessions: AttendanceRepository,
    location_log: LocationLogRepository,
    overtime_requests: OvertimeRepository,
    tasks: TaskRepository,
    notifier: NotificationSink | None = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    overtime_manager = OvertimeApprovalManager(overtime_requests, notifier=notifier)
    attendance = AttendanceStateMachine(sessions, projects, overtime_manager, location_log, notifier=notifier)
    return Container(
        overtime_manager=overtime_manager,
        attendance=attendance,
        task_resolver=TaskDependencyResolver(tasks, attendance, notifier=notifier),
        progress_tracker=DailyTargetProgressTracker(tasks),
        conn=conn,
    )


def build_container(*, db_config: dict, notifier: NotificationSink | None = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return assemble(
        projects=MySQLProjectRepository(conn),
        sessions=MySQLAttendanceRepository(conn),
        location_log=MySQLLocationLogRepository(conn),
        overtime_requests=MySQLOvertimeRepository(conn),
        tasks=MySQLTaskRepository(conn),
        notifier=notifier or LoggingNotificationSink(),
        conn=conn,
    )
