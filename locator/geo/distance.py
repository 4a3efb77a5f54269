"""Great-circle distance helpers."""

import math

from locator.models import GeoPoint

EARTH_RADIUS_MILES = 3959.0


def distance_miles(a: GeoPoint, b: GeoPoint) -> float:
    """Haversine distance between two points in statute miles.

    Inputs are assumed to be range-checked already; identical points return
    exactly 0.
    """
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    # Rounding can push h just past 1 for near-antipodal points.
    h = min(1.0, max(0.0, h))
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_MILES * c
