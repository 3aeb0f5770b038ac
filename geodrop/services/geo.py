"""Great-circle distance and geofence checks."""

import math

from pydantic import BaseModel

from geodrop.models.drop import Coordinates

EARTH_RADIUS_M = 6_371_000


class GeofenceCheck(BaseModel):
    within_fence: bool
    distance_m: float


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Distance in meters between two points using the haversine formula.

    Args:
        lat1: Latitude of first point
        lng1: Longitude of first point
        lat2: Latitude of second point
        lng2: Longitude of second point

    Returns:
        Distance in meters on a spherical Earth
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    # Rounding can push ``a`` a hair outside [0, 1] for antipodal points.
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def is_within_geofence(user: Coordinates, drop: Coordinates, radius_m: float) -> GeofenceCheck:
    """Whether ``user`` is within ``radius_m`` meters of ``drop`` (boundary inclusive)."""
    distance = calculate_distance(user.lat, user.lng, drop.lat, drop.lng)
    return GeofenceCheck(within_fence=distance <= radius_m, distance_m=distance)
