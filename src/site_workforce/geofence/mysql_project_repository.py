from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, first_row
from .model import GeofenceDefinition
from .repository import ProjectRepository


class MySQLProjectRepository(ProjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_geofence(self, project_id: int) -> Optional[GeofenceDefinition]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT center_lat, center_lon, radius_m, allowed_variance_m
                FROM project_geofences
                WHERE project_id=%s
                """,
                (int(project_id),),
            )
            r = first_row(cur)
            if not r:
                return None
            return GeofenceDefinition(
                center_lat=float(r["center_lat"]),
                center_lon=float(r["center_lon"]),
                radius=float(r["radius_m"]),
                allowed_variance=float(r.get("allowed_variance_m") or 0),
            )
