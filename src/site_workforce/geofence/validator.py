"""Point-in-radius test against a project's fence (haversine distance)."""

from __future__ import annotations

import math
from typing import Any, Optional

from ..common.validators import require_float
from ..core.constants import EARTH_RADIUS_METERS
from ..core.exceptions import InvalidCoordinate, InvalidInput
from .model import GeofenceDefinition, GeofenceResult, WorkerLocation


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(a)))


def _coordinate(value: Any, field_name: str, limit: float) -> float:
    try:
        number = require_float(value, field_name)
    except InvalidInput as e:
        raise InvalidCoordinate(e.message, details={"field": field_name})
    if not -limit <= number <= limit:
        raise InvalidCoordinate(f"{field_name} must be between -{limit:g} and {limit:g}", details={"field": field_name})
    return number


def parse_location(lat: Any, lon: Any, accuracy: Any = None) -> WorkerLocation:
    """Validate raw client input into a WorkerLocation."""
    acc: Optional[float] = None
    if accuracy is not None:
        try:
            acc = require_float(accuracy, "accuracy")
        except InvalidInput as e:
            raise InvalidCoordinate(e.message, details={"field": "accuracy"})
        if acc < 0:
            raise InvalidCoordinate("accuracy must not be negative", details={"field": "accuracy"})

    return WorkerLocation(lat=_coordinate(lat, "latitude", 90), lon=_coordinate(lon, "longitude", 180), accuracy=acc)


def validate_geofence(location: WorkerLocation, fence: GeofenceDefinition) -> GeofenceResult:
    if fence.radius < 0 or fence.allowed_variance < 0:
        raise InvalidCoordinate("geofence radius and variance must not be negative")
    _coordinate(fence.center_lat, "geofence latitude", 90)
    _coordinate(fence.center_lon, "geofence longitude", 180)

    distance = haversine_distance(location.lat, location.lon, fence.center_lat, fence.center_lon)
    return GeofenceResult(
        inside_geofence=distance <= fence.radius + fence.allowed_variance,
        distance_meters=distance,
    )
