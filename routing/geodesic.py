#Purpose: Straight-line (great-circle) distance math.
#Used by the volunteer ranker when no road network is involved.
#Pure numeric functions: no HTTP, no state.

from __future__ import annotations

import math
from typing import Any, Optional, Tuple

#internal coordinate type :(lat,lng) in decimal degrees
LatLon = Tuple[float, float]

EARTH_RADIUS_KM = 6371.0


def coerce_location(lat: Any, lng: Any) -> Optional[LatLon]:
    """
    Build a (lat, lng) pair only when both halves are usable numbers.
    0 is a valid coordinate (equator / prime meridian); None, text, nan and inf are not.
    """
    if lat is None or lng is None:
        return None
    try:
        pair = (float(lat), float(lng))
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(pair[0]) and math.isfinite(pair[1])):
        return None
    return pair


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two points in kilometers.

        a = sin²(Δlat/2) + cos(lat1)·cos(lat2)·sin²(Δlng/2)
        d = 2·R·atan2(√a, √(1−a))
    """
    delta_lat = math.radians(lat2 - lat1)
    delta_lng = math.radians(lng2 - lng1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(delta_lng / 2) ** 2
    )
    a = min(1.0, a)  # float drift near antipodes
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_between(origin: LatLon, destination: LatLon) -> float:
    """Convenience wrapper over haversine_km for (lat, lng) tuples."""
    return haversine_km(origin[0], origin[1], destination[0], destination[1])
