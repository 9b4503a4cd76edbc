"""
Great-circle distances on fixed-point (degrees x 1e7) coordinates.
"""
from __future__ import annotations

import hashlib
import math

from drone_agent.models import E7, Coordinate

EARTH_RADIUS_KM = 6371.0
KM_TO_MILES = 0.621371

# Downtown Boston; fallback homes are scattered around it.
DEFAULT_CENTER = (42.3601, -71.0589)
FALLBACK_RADIUS_KM = 10.0


def distance(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance in kilometres."""
    lat1, lon1 = a[0] / E7, a[1] / E7
    lat2, lon2 = b[0] / E7, b[1] / E7
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    h = math.sin(d_lat / 2) ** 2 + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    # rounding can push h just outside [0, 1] for antipodal points
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def trip_distance(start: Coordinate, pickup: Coordinate, drop: Coordinate) -> float:
    """Full job cycle: start -> pickup -> drop -> back to start."""
    return distance(start, pickup) + distance(pickup, drop) + distance(drop, start)


def km_to_miles(km: float) -> float:
    return km * KM_TO_MILES


def _seeded_unit(seed: str) -> float:
    h = hashlib.sha256(seed.encode("utf-8")).hexdigest()
    return int(h[:8], 16) / 0xFFFFFFFF


def fallback_home(agent_id: str) -> Coordinate:
    """
    Deterministic home for an agent with nothing configured: a point inside a
    ~10 km disc around the default center, stable for a given agent id.
    """
    r1 = _seeded_unit(agent_id)
    r2 = _seeded_unit(agent_id + "lon")
    radius_deg = FALLBACK_RADIUS_KM / 111.0
    angle = r1 * 2 * math.pi
    dist = math.sqrt(r2) * radius_deg
    c_lat, c_lon = DEFAULT_CENTER
    lat = c_lat + dist * math.cos(angle)
    lon = c_lon + dist * math.sin(angle) / math.cos(math.radians(c_lat))
    return Coordinate(round(lat * E7), round(lon * E7))
