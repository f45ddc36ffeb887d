from __future__ import annotations

from typing import Optional, Protocol

from .model import GeofenceDefinition


class ProjectRepository(Protocol):
    """Read-only view of project geofences."""

    def get_geofence(self, project_id: int) -> Optional[GeofenceDefinition]:
        raise NotImplementedError
