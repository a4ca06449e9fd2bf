"""
app/core/geo.py

Straight-line distance helpers used for pricing, dispatch and tracking.
"""

import math

EARTH_RADIUS_KM = 6371.0


def haversine_km(
    lat1: float | None, lng1: float | None, lat2: float | None, lng2: float | None
) -> float | None:
    """Great-circle distance in kilometres, or None if any coordinate is missing."""
    if lat1 is None or lng1 is None or lat2 is None or lng2 is None:
        return None
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def round_km(value: float) -> float:
    return round(value, 2)


def is_unset_location(lat: float | None, lng: float | None) -> bool:
    """Riders report (0, 0) before their device has a fix."""
    if lat is None or lng is None:
        return True
    return lat == 0 and lng == 0
