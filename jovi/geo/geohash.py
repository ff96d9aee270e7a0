"""
Geohash encode/decode and neighbour cells.

Encoding and decoding use pygeohash; this module adds input validation,
per-direction neighbour stepping, longitude wrap across ±180° and the pole
cutoff (steps that would cross a pole have no neighbour).
"""
import pygeohash as pgh

from jovi.exceptions import InvalidGeohash
from jovi.geo.models import Coordinate, validate_lat_lng

BASE32 = "0123456789bcdefghjkmnpqrstuvwxyz"
_BASE32_CHARS = frozenset(BASE32)

# Precision used when a gig's geohash is written at creation time.
# Must be >= every precision the planner can choose.
RECORD_GEOHASH_PRECISION = 9

# direction -> (lat steps, lng steps)
DIRECTIONS: dict[str, tuple[int, int]] = {
    "n": (1, 0),
    "ne": (1, 1),
    "e": (0, 1),
    "se": (-1, 1),
    "s": (-1, 0),
    "sw": (-1, -1),
    "w": (0, -1),
    "nw": (1, -1),
}

OPPOSITE = {"n": "s", "ne": "sw", "e": "w", "se": "nw", "s": "n", "sw": "ne", "w": "e", "nw": "se"}


def encode(lat: float, lng: float, precision: int) -> str:
    """
    Encode (lat, lng) to a geohash of `precision` characters.
    Raises InvalidCoordinate for out-of-range input (never clamps).
    """
    if isinstance(precision, bool) or not isinstance(precision, int) or precision < 1:
        raise ValueError(f"precision must be a positive integer, got {precision!r}")
    validate_lat_lng(lat, lng)
    return pgh.encode(lat, lng, precision=precision)


def _decode_exactly(geohash: str) -> tuple[float, float, float, float]:
    """(lat, lng, lat_half_height, lng_half_width) of the cell."""
    if not geohash:
        raise InvalidGeohash(geohash, "empty")
    normalized = geohash.lower()
    bad = set(normalized) - _BASE32_CHARS
    if bad:
        raise InvalidGeohash(geohash, f"bad character {min(bad)!r}")
    try:
        lat, lng, lat_err, lng_err = pgh.decode_exactly(normalized)
    except (KeyError, ValueError) as e:
        raise InvalidGeohash(geohash, str(e)) from e
    return float(lat), float(lng), float(lat_err), float(lng_err)


def decode_bbox(geohash: str) -> tuple[float, float, float, float]:
    """Return (lat_min, lat_max, lng_min, lng_max) of the cell. Case-insensitive."""
    lat, lng, lat_err, lng_err = _decode_exactly(geohash)
    return lat - lat_err, lat + lat_err, lng - lng_err, lng + lng_err


def decode(geohash: str) -> Coordinate:
    """Return the centroid of the cell."""
    lat, lng, _, _ = _decode_exactly(geohash)
    return Coordinate(lat, lng)


def cell_size_degrees(precision: int) -> tuple[float, float]:
    """Return (lat_height, lng_width) in degrees of a cell at `precision`."""
    bits = 5 * precision
    lng_bits = (bits + 1) // 2
    lat_bits = bits // 2
    return 180.0 / (2 ** lat_bits), 360.0 / (2 ** lng_bits)


def adjacent(geohash: str, direction: str) -> str | None:
    """
    Return the same-precision cell one step in `direction` (n, ne, e, ...).
    Longitude wraps; returns None when the step would cross a pole.
    """
    try:
        d_lat, d_lng = DIRECTIONS[direction]
    except KeyError:
        raise ValueError(f"Unknown direction {direction!r}") from None
    lat_lo, lat_hi, lng_lo, lng_hi = decode_bbox(geohash)
    lat = (lat_lo + lat_hi) / 2 + d_lat * (lat_hi - lat_lo)
    lng = (lng_lo + lng_hi) / 2 + d_lng * (lng_hi - lng_lo)
    if lat > 90.0 or lat < -90.0:
        return None
    if lng > 180.0:
        lng -= 360.0
    elif lng < -180.0:
        lng += 360.0
    return encode(lat, lng, len(geohash))


def neighbors(geohash: str) -> dict[str, str]:
    """
    Map direction -> neighbouring cell for all 8 directions.
    Cells in the polar rows have only 5 entries.
    """
    result: dict[str, str] = {}
    for direction in DIRECTIONS:
        cell = adjacent(geohash, direction)
        if cell is not None:
            result[direction] = cell
    return result
