"""
Great-circle distance helpers.

All distances are in nautical miles, the unit used by pilots and by the
flight board display.
"""

import math

EARTH_RADIUS_NM = 3440.065


def haversine_distance(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate great-circle distance between two points in nautical miles.

    Uses the Haversine formula for accuracy over short to medium distances.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) *
        math.sin(delta_lon / 2) ** 2
    )
    # Rounding can push a marginally above 1 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_NM * c


def format_distance(distance_nm: float) -> str:
    """Format a distance for display (e.g. '< 1 nm', '4.2 nm', '57 nm')."""
    if distance_nm < 1:
        return '< 1 nm'
    if distance_nm < 10:
        return f'{distance_nm:.1f} nm'
    return f'{round(distance_nm)} nm'
