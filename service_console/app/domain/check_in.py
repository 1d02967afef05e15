"""
Location rules for employee self check-in.
"""

import math
from typing import Optional

EARTH_RADIUS_METERS = 6371e3


def distance_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle (haversine) distance between two coordinates."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def within_check_in_radius(
    latitude: float,
    longitude: float,
    site_lat: Optional[float],
    site_lng: Optional[float],
    radius: float,
) -> bool:
    """Whether a position is close enough to the check-in site.

    An unconfigured site admits nobody.
    """
    if site_lat is None or site_lng is None:
        return False
    return distance_meters(latitude, longitude, site_lat, site_lng) <= radius
