"""
Distance calculation using the Haversine formula.

Every distance in the system (fare quotes, driver matching, the figures
stored on a ride) goes through ``distance_km`` so quotes and matches can
never disagree about how far apart two points are.

Input domain
------------
Latitudes are expected in [-90, 90] and longitudes in [-180, 180].
Values outside those ranges are *undefined input*: the formula still
returns a number, but it is not meaningful and is not corrected here.
Range checks belong to the caller (the API schemas enforce them).

Complexity: O(1) per call.
"""

from __future__ import annotations

import math

from .entities import GeoPoint

EARTH_RADIUS_KM = 6_371.0


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(a.latitude), math.radians(b.latitude)
    dlat = math.radians(b.latitude - a.latitude)
    dlng = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    # sin(0) == 0.0 exactly, so identical points give exactly 0.0
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))
