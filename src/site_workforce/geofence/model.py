from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GeofenceDefinition:
    """Circular fence around a project site. Owned by the project service."""

    center_lat: float
    center_lon: float
    radius: float
    allowed_variance: float = 0.0


@dataclass(frozen=True)
class WorkerLocation:
    lat: float
    lon: float
    accuracy: Optional[float] = None


@dataclass(frozen=True)
class GeofenceResult:
    inside_geofence: bool
    distance_meters: float

    def to_dict(self) -> dict:
        return {"inside_geofence": self.inside_geofence, "distance_meters": round(self.distance_meters, 2)}
