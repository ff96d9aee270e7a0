"""
Haversine distance and exact-radius filtering for nearby gig queries.
"""
import logging
import math
from typing import Iterable, Protocol, TypeVar

from jovi.exceptions import InvalidCoordinate, InvalidRadius
from jovi.geo.models import Coordinate, ScoredResult, validate_lat_lng

logger = logging.getLogger(__name__)

# Mean spherical Earth radius
EARTH_RADIUS_MILES = 3959.0
KM_PER_MILE = 1.60934
EARTH_RADIUS_KM = EARTH_RADIUS_MILES * KM_PER_MILE


class HasCoordinate(Protocol):
    @property
    def coordinate(self) -> Coordinate | None: ...


T = TypeVar("T", bound=HasCoordinate)


def _central_angle(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    validate_lat_lng(lat1, lng1)
    validate_lat_lng(lat2, lng2)
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlng / 2) ** 2
    # Rounding can push h just outside [0, 1] for antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def haversine_distance_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Return great-circle distance between two points in miles.
    Arguments in degrees.
    """
    return EARTH_RADIUS_MILES * _central_angle(lat1, lng1, lat2, lng2)


def haversine_distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Return great-circle distance in kilometers. Arguments in degrees."""
    return haversine_distance_miles(lat1, lng1, lat2, lng2) * KM_PER_MILE


def distance_miles(a: Coordinate, b: Coordinate) -> float:
    return haversine_distance_miles(a.lat, a.lng, b.lat, b.lng)


def filter_by_distance(
    candidates: Iterable[T],
    center: Coordinate,
    radius_miles: float,
    limit: int | None = None,
) -> list[ScoredResult[T]]:
    """
    Keep candidates within radius_miles of center, nearest first.

    Candidates with no coordinate are dropped. A stored coordinate that is out
    of range is dropped with a warning instead of failing the whole search.
    Ties keep their input order.
    """
    if not radius_miles > 0:
        raise InvalidRadius(radius_miles)
    validate_lat_lng(center.lat, center.lng)

    scored: list[ScoredResult[T]] = []
    for candidate in candidates:
        coord = getattr(candidate, "coordinate", None)
        if coord is None:
            continue
        try:
            d = distance_miles(center, coord)
        except InvalidCoordinate as e:
            logger.warning("telemetry distance_bad_coordinate error=%s", str(e))
            continue
        if d <= radius_miles:
            scored.append(ScoredResult(record=candidate, distance_miles=d))
    scored.sort(key=lambda r: r.distance_miles)
    if limit is not None:
        return scored[: max(0, limit)]
    return scored
