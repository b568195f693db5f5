"""
Geodesic utilities: great-circle distance and initial bearing.

Uses the haversine formula on a spherical Earth. Adequate for the
sub-kilometre offsets measured inside a survey plot.
"""
import math

from app.domain.errors import InvalidArgumentError
from app.domain.models import DistanceBearing

EARTH_RADIUS_M = 6371000.0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _require_finite(**coordinates: float) -> None:
    for name, value in coordinates.items():
        if not math.isfinite(value):
            raise InvalidArgumentError(f"{name} must be a finite number, got {value}")


def haversine_distance_m(
    origin_lat: float,
    origin_lon: float,
    dest_lat: float,
    dest_lon: float,
) -> float:
    """
    Compute the great-circle distance between two points.

    Args:
        origin_lat: Origin latitude in degrees
        origin_lon: Origin longitude in degrees
        dest_lat: Destination latitude in degrees
        dest_lon: Destination longitude in degrees

    Returns:
        Distance in meters (unrounded)
    """
    phi1 = math.radians(origin_lat)
    phi2 = math.radians(dest_lat)
    dphi = math.radians(dest_lat - origin_lat)
    dlambda = math.radians(dest_lon - origin_lon)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Clamp against rounding drift just above 1 for antipodal points
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def initial_bearing_deg(
    origin_lat: float,
    origin_lon: float,
    dest_lat: float,
    dest_lon: float,
) -> float:
    """
    Compute the initial compass bearing from origin to destination.

    Returns:
        Bearing in degrees normalized into [0, 360)
    """
    phi1 = math.radians(origin_lat)
    phi2 = math.radians(dest_lat)
    dlambda = math.radians(dest_lon - origin_lon)

    y = math.sin(dlambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlambda)
    return (math.degrees(math.atan2(y, x)) + 360) % 360


def distance_and_bearing(
    origin_lat: float,
    origin_lon: float,
    dest_lat: float,
    dest_lon: float,
) -> DistanceBearing:
    """
    Distance (integer meters) and bearing (integer degrees) between two points.

    Both values are rounded half-up. A bearing that rounds to 360 wraps to 0,
    and coincident points report a bearing of 0.

    Raises:
        InvalidArgumentError: If any coordinate is NaN or infinite
    """
    _require_finite(
        origin_lat=origin_lat,
        origin_lon=origin_lon,
        dest_lat=dest_lat,
        dest_lon=dest_lon,
    )

    if origin_lat == dest_lat and origin_lon == dest_lon:
        return DistanceBearing(distance=0, bearing=0)

    distance = haversine_distance_m(origin_lat, origin_lon, dest_lat, dest_lon)
    bearing = initial_bearing_deg(origin_lat, origin_lon, dest_lat, dest_lon)

    return DistanceBearing(
        distance=_round_half_up(distance),
        bearing=_round_half_up(bearing) % 360,
    )
