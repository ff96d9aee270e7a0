"""Coordinate value type and distance-scored results."""
from dataclasses import dataclass
from typing import Generic, NamedTuple, TypeVar

from jovi.exceptions import InvalidCoordinate

LAT_MIN, LAT_MAX = -90.0, 90.0
LNG_MIN, LNG_MAX = -180.0, 180.0

T = TypeVar("T")


class Coordinate(NamedTuple):
    lat: float
    lng: float


@dataclass(frozen=True)
class ScoredResult(Generic[T]):
    """A record paired with its great-circle distance from the search center."""

    record: T
    distance_miles: float


def validate_lat_lng(lat: float, lng: float) -> None:
    # NaN fails both comparisons, so it is rejected too
    if not (LAT_MIN <= lat <= LAT_MAX) or not (LNG_MIN <= lng <= LNG_MAX):
        raise InvalidCoordinate(lat, lng)


def make_coordinate(lat: float, lng: float) -> Coordinate:
    """Build a Coordinate, raising InvalidCoordinate if out of range."""
    validate_lat_lng(lat, lng)
    return Coordinate(float(lat), float(lng))
