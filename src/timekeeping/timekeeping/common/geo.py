from __future__ import annotations

import math

from ..core.constants import EARTH_RADIUS_M


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two WGS84 points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def is_within_radius(
    lat: float,
    lon: float,
    *,
    center_lat: float,
    center_lon: float,
    radius_m: float,
) -> tuple[bool, float]:
    distance = haversine(lat, lon, center_lat, center_lon)
    return distance <= radius_m, distance
