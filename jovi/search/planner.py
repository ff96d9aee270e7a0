"""
Query planning for proximity search: pick a geohash precision from the radius,
then cover the center cell and its neighbours with prefix range scans.

The 3x3 block is a heuristic superset of the search disc. For radii larger
than one cell it can under-cover; results must always be exact-filtered.
"""
import logging
import math
from dataclasses import dataclass

from jovi.exceptions import InvalidRadius
from jovi.geo import geohash
from jovi.geo.distance import EARTH_RADIUS_MILES, KM_PER_MILE
from jovi.geo.models import Coordinate, validate_lat_lng

logger = logging.getLogger(__name__)

# Sorts after every base-32 geohash character
RANGE_SENTINEL = "~"

FINE_RADIUS_KM = 10.0
MEDIUM_RADIUS_KM = 50.0


@dataclass(frozen=True)
class CellRange:
    """Lexicographic range [start, end] matching every geohash under one cell prefix."""

    cell: str
    start: str
    end: str

    @classmethod
    def for_cell(cls, cell: str) -> "CellRange":
        return cls(cell=cell, start=cell, end=cell + RANGE_SENTINEL)


@dataclass(frozen=True)
class QueryPlan:
    precision: int
    center_hash: str
    cell_hashes: frozenset[str]
    covered_radius_miles: float
    radius_miles: float

    @property
    def may_undercover(self) -> bool:
        return self.radius_miles > self.covered_radius_miles

    def ranges(self) -> list[CellRange]:
        """One range predicate per cell, in sorted cell order."""
        return [CellRange.for_cell(c) for c in sorted(self.cell_hashes)]


def precision_for_radius(radius_miles: float) -> int:
    """<10 km -> 6, <50 km -> 5, otherwise 4."""
    if not radius_miles > 0:
        raise InvalidRadius(radius_miles)
    radius_km = radius_miles * KM_PER_MILE
    if radius_km < FINE_RADIUS_KM:
        return 6
    if radius_km < MEDIUM_RADIUS_KM:
        return 5
    return 4


def covered_radius_miles(center_hash: str) -> float:
    """
    Approximate radius the 3x3 block around center_hash is guaranteed to contain,
    for any point inside the center cell: one cell height or one cell width,
    whichever is smaller, with width measured at the block's poleward edge.
    """
    lat_lo, lat_hi, _, _ = geohash.decode_bbox(center_hash)
    height_deg, width_deg = geohash.cell_size_degrees(len(center_hash))
    worst_lat = min(90.0, max(abs(lat_lo - height_deg), abs(lat_hi + height_deg)))
    miles_per_deg = math.pi / 180.0 * EARTH_RADIUS_MILES
    height_miles = height_deg * miles_per_deg
    width_miles = width_deg * miles_per_deg * max(0.0, math.cos(math.radians(worst_lat)))
    return min(height_miles, width_miles)


def _build_plan(center: Coordinate, radius_miles: float, precision: int) -> QueryPlan:
    center_hash = geohash.encode(center.lat, center.lng, precision)
    cells = {center_hash, *geohash.neighbors(center_hash).values()}
    return QueryPlan(
        precision=precision,
        center_hash=center_hash,
        cell_hashes=frozenset(cells),
        covered_radius_miles=covered_radius_miles(center_hash),
        radius_miles=radius_miles,
    )


def plan(center: Coordinate, radius_miles: float, *, ensure_coverage: bool = False) -> QueryPlan:
    """
    Build the cell set for a search around center.

    With ensure_coverage, precision is lowered one step at a time (down to 1)
    until the block covers radius_miles.
    """
    validate_lat_lng(center.lat, center.lng)
    precision = precision_for_radius(radius_miles)
    query_plan = _build_plan(center, radius_miles, precision)
    if ensure_coverage:
        while query_plan.may_undercover and query_plan.precision > 1:
            query_plan = _build_plan(center, radius_miles, query_plan.precision - 1)

    if query_plan.may_undercover:
        logger.info(
            "telemetry plan_may_undercover precision=%s radius_miles=%.1f covered_miles=%.1f",
            query_plan.precision,
            radius_miles,
            query_plan.covered_radius_miles,
        )
    return query_plan
