"""Great-circle distance between two GPS readings."""
import math
from typing import Tuple

from attendance.services.errors import InvalidCoordinates

EARTH_RADIUS_METERS = 6371000.0


def validate_coordinates(lat, lng) -> Tuple[float, float]:
    """Return (lat, lng) as floats or raise InvalidCoordinates.

    Accepts anything float() understands; rejects booleans, NaN/inf and values
    outside ±90 latitude / ±180 longitude.
    """
    if isinstance(lat, bool) or isinstance(lng, bool):
        raise InvalidCoordinates()
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        raise InvalidCoordinates()
    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        raise InvalidCoordinates()
    if not (-90.0 <= lat_f <= 90.0) or not (-180.0 <= lng_f <= 180.0):
        raise InvalidCoordinates()
    return lat_f, lng_f


def haversine(lat1, lng1, lat2, lng2) -> float:
    """Distance in meters between two points given in decimal degrees."""
    lat1, lng1 = validate_coordinates(lat1, lng1)
    lat2, lng2 = validate_coordinates(lat2, lng2)

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    # rounding can push `a` a hair past 1 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_METERS * c
