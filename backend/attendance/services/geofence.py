from dataclasses import dataclass

from attendance.services import geo

# stored distances carry centimeter precision
DISTANCE_DECIMALS = 2


@dataclass(frozen=True)
class GeofenceReading:
    distance_meters: float
    radius_meters: float
    within: bool


def is_within_geofence(distance_meters: float, radius_meters: float) -> bool:
    # the boundary itself counts as inside
    return distance_meters <= radius_meters


def evaluate(lat, lng, location) -> GeofenceReading:
    """Classify a reading against a location's circular geofence.

    The distance is rounded before classification, so the stored distance
    and `within` always agree.
    """
    distance = round(geo.haversine(lat, lng, location.latitude, location.longitude), DISTANCE_DECIMALS)
    radius = float(location.geofence_radius_meters)
    return GeofenceReading(
        distance_meters=distance,
        radius_meters=radius,
        within=is_within_geofence(distance, radius),
    )
