"""Tests for geohash encode/decode and neighbour cells."""
import itertools

import pygeohash as pgh
import pytest

from jovi.exceptions import InvalidCoordinate, InvalidGeohash
from jovi.geo import geohash
from jovi.geo.geohash import OPPOSITE, adjacent, cell_size_degrees, decode, decode_bbox, encode, neighbors

POINTS = [
    (37.7749, -122.4194),
    (34.0522, -118.2437),
    (51.5034, -0.1276),
    (-33.8688, 151.2093),
    (0.0, 0.0),
    (-89.9, 179.9),
    (89.9, -179.9),
]


def test_known_hash():
    # Reference example for the geohash algorithm
    assert encode(57.64911, 10.40744, 11) == "u4pruydqqvj"


def test_san_francisco_is_deterministic():
    first = encode(37.7749, -122.4194, 6)
    second = encode(37.7749, -122.4194, 6)
    assert first == second
    assert len(first) == 6
    assert first.startswith("9q8y")


def test_encode_matches_pygeohash():
    for lat, lng in POINTS:
        for precision in (1, 5, 9):
            assert encode(lat, lng, precision) == pgh.encode(lat, lng, precision=precision)
    assert encode(37.7749, -122.4194, 6) == "9q8yyk"


def test_bbox_matches_pygeohash_cell():
    lat, lng, lat_err, lng_err = pgh.decode_exactly("9q8yyk")
    assert decode_bbox("9q8yyk") == pytest.approx((lat - lat_err, lat + lat_err, lng - lng_err, lng + lng_err))
    assert decode("9q8yyk") == pytest.approx((lat, lng))


def test_hash_uses_base32_alphabet():
    h = encode(-33.8688, 151.2093, 12)
    assert all(c in geohash.BASE32 for c in h)
    assert not set("ailo") & set(h)


def test_prefix_of_longer_precision():
    assert encode(34.0522, -118.2437, 9).startswith(encode(34.0522, -118.2437, 5))


def test_decode_known_hash():
    c = decode("ezs42")
    assert c.lat == pytest.approx(42.605, abs=0.03)
    assert c.lng == pytest.approx(-5.603, abs=0.03)


def test_decode_is_case_insensitive():
    assert decode("EZS42") == decode("ezs42")


@pytest.mark.parametrize("precision", [1, 4, 5, 6, 9])
def test_round_trip_within_one_cell(precision):
    height, width = cell_size_degrees(precision)
    for lat, lng in POINTS:
        c = decode(encode(lat, lng, precision))
        assert abs(c.lat - lat) <= height / 2
        assert abs(c.lng - lng) <= width / 2


@pytest.mark.parametrize("precision", [4, 5, 6])
def test_encode_of_decode_is_identity(precision):
    for lat, lng in POINTS:
        h = encode(lat, lng, precision)
        c = decode(h)
        assert encode(c.lat, c.lng, precision) == h


def test_extreme_corners_encode():
    assert encode(90.0, 180.0, 4) == "zzzz"
    assert encode(-90.0, -180.0, 4) == "0000"


def test_cell_size_degrees():
    # 30 bits at precision 6: 15 lat bits, 15 lng bits
    height, width = cell_size_degrees(6)
    assert height == pytest.approx(180 / 2**15)
    assert width == pytest.approx(360 / 2**15)
    # 25 bits at precision 5: 12 lat bits, 13 lng bits
    height, width = cell_size_degrees(5)
    assert height == pytest.approx(180 / 2**12)
    assert width == pytest.approx(360 / 2**13)


def test_bbox_matches_cell_size():
    lat_lo, lat_hi, lng_lo, lng_hi = decode_bbox(encode(34.0522, -118.2437, 6))
    height, width = cell_size_degrees(6)
    assert lat_hi - lat_lo == pytest.approx(height)
    assert lng_hi - lng_lo == pytest.approx(width)
    assert lat_lo <= 34.0522 <= lat_hi
    assert lng_lo <= -118.2437 <= lng_hi


@pytest.mark.parametrize("lat,lng", [(90.5, 0), (-91, 0), (0, 180.1), (0, -181), (float("nan"), 0)])
def test_encode_rejects_out_of_range(lat, lng):
    with pytest.raises(InvalidCoordinate):
        encode(lat, lng, 6)


@pytest.mark.parametrize("precision", [0, -1, 2.5, True])
def test_encode_rejects_bad_precision(precision):
    with pytest.raises(ValueError):
        encode(34.0, -118.0, precision)


@pytest.mark.parametrize("bad", ["", "abc", "9q8yi", "9q8-y"])
def test_decode_rejects_invalid(bad):
    with pytest.raises(InvalidGeohash):
        decode(bad)


# --- Neighbours ---


def test_neighbors_mid_latitude_has_eight_distinct_cells():
    h = encode(34.0522, -118.2437, 6)
    n = neighbors(h)
    assert set(n) == set(geohash.DIRECTIONS)
    assert len(set(n.values())) == 8
    assert h not in n.values()
    assert all(len(cell) == 6 for cell in n.values())


def test_neighbor_offsets_are_one_cell():
    h = encode(34.0522, -118.2437, 5)
    height, width = cell_size_degrees(5)
    center = decode(h)
    for direction, (d_lat, d_lng) in geohash.DIRECTIONS.items():
        c = decode(neighbors(h)[direction])
        assert c.lat - center.lat == pytest.approx(d_lat * height)
        assert c.lng - center.lng == pytest.approx(d_lng * width)


@pytest.mark.parametrize("lat,lng", POINTS[:5])
def test_neighbor_symmetry(lat, lng):
    for precision in (4, 5, 6):
        a = encode(lat, lng, precision)
        for direction, b in neighbors(a).items():
            assert adjacent(b, OPPOSITE[direction]) == a


def test_antimeridian_wraps_east():
    h = encode(10.0, 179.99, 4)
    east = adjacent(h, "e")
    assert east is not None
    c = decode(east)
    assert c.lng < -179.0
    assert adjacent(east, "w") == h


def test_antimeridian_wraps_west():
    h = encode(-10.0, -179.99, 5)
    west = adjacent(h, "w")
    assert decode(west).lng > 179.0
    assert adjacent(west, "e") == h


def test_north_pole_row_has_no_northern_neighbours():
    h = encode(89.99, 10.0, 4)
    n = neighbors(h)
    assert set(n) == {"e", "w", "s", "se", "sw"}
    assert adjacent(h, "n") is None


def test_south_pole_row_has_no_southern_neighbours():
    h = encode(-89.99, -45.0, 3)
    n = neighbors(h)
    assert set(n) == {"e", "w", "n", "ne", "nw"}


def test_polar_neighbours_are_symmetric():
    a = encode(89.99, 179.99, 4)
    for direction, b in neighbors(a).items():
        assert adjacent(b, OPPOSITE[direction]) == a


def test_adjacent_unknown_direction():
    with pytest.raises(ValueError):
        adjacent("9q8yy", "up")


def test_neighbors_of_neighbors_stay_same_precision():
    h = encode(51.5034, -0.1276, 6)
    for a, b in itertools.combinations(neighbors(h).values(), 2):
        assert len(a) == len(b) == 6
