import math

import pytest

from zonegeo.core.errors import InvalidCoordinate, InvalidGeometry, InvalidUnit
from zonegeo.core.geo import (
    EARTH_RADIUS_M,
    as_point,
    distance,
    point_in_polygon,
    point_in_ring,
    point_to_line_distance,
    point_to_segment_distance,
)

SQUARE = ((0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0))
HOLE = ((4.0, 4.0), (4.0, 6.0), (6.0, 6.0), (6.0, 4.0))


def test_distance_identity_is_exactly_zero():
    for p in [(0.0, 0.0), (121.5, 25.04), (-179.9, -89.0)]:
        assert distance(p, p) == 0.0
        assert distance(p, p, "metres") == 0.0


def test_distance_is_symmetric():
    pairs = [((0.0, 0.0), (10.0, 10.0)), ((121.5, 25.0), (-73.9, 40.7)), ((179.0, 0.0), (-179.0, 0.0))]
    for a, b in pairs:
        assert distance(a, b) == pytest.approx(distance(b, a), rel=1e-12)


def test_distance_one_degree_of_latitude():
    expected_km = EARTH_RADIUS_M / 1000 * math.pi / 180
    assert distance((0.0, 0.0), (0.0, 1.0)) == pytest.approx(expected_km, rel=1e-9)
    assert distance((0.0, 0.0), (0.0, 1.0), "metres") == pytest.approx(expected_km * 1000, rel=1e-9)


def test_distance_in_degrees_at_half_circumference():
    d = distance((0.0, 0.0), (180.0, 0.0), "degrees")
    assert d == pytest.approx(EARTH_RADIUS_M / 111325 * math.pi, rel=1e-12)


def test_distance_rejects_unknown_unit():
    with pytest.raises(InvalidUnit, match="miles"):
        distance((0.0, 0.0), (1.0, 1.0), "miles")


def test_point_in_square_ring():
    assert point_in_polygon((5.0, 5.0), (SQUARE,)) is True
    assert point_in_polygon((15.0, 15.0), (SQUARE,)) is False
    assert point_in_ring((5.0, 5.0), SQUARE) is True


def test_point_in_polygon_excludes_holes():
    polygon = (SQUARE, HOLE)
    assert point_in_polygon((5.0, 5.0), polygon) is False
    assert point_in_polygon((2.0, 2.0), polygon) is True
    assert point_in_polygon((12.0, 5.0), polygon) is False


def test_point_in_polygon_rejects_short_rings():
    with pytest.raises(InvalidGeometry):
        point_in_polygon((0.5, 0.5), (((0.0, 0.0), (1.0, 1.0)),))
    with pytest.raises(InvalidGeometry):
        point_in_polygon((0.5, 0.5), ())


def test_point_to_segment_clamps_to_endpoints():
    a, b = (0.0, 0.0), (1.0, 0.0)
    assert point_to_segment_distance((-1.0, 0.0), a, b) == pytest.approx(distance((-1.0, 0.0), a))
    assert point_to_segment_distance((3.0, 0.0), a, b) == pytest.approx(distance((3.0, 0.0), b))
    assert point_to_segment_distance((0.5, 1.0), a, b) == pytest.approx(distance((0.5, 1.0), (0.5, 0.0)))


def test_point_to_segment_degenerate_segment():
    p, a = (1.0, 1.0), (0.0, 0.0)
    assert point_to_segment_distance(p, a, a) == pytest.approx(distance(p, a))


def test_point_to_line_distance_is_zero_on_segment_and_non_negative_elsewhere():
    line = ((0.0, 0.0), (10.0, 0.0), (10.0, 10.0))
    assert point_to_line_distance((5.0, 0.0), line) == 0.0
    assert point_to_line_distance((10.0, 3.0), line) == 0.0
    for p in [(5.0, 5.0), (-3.0, -3.0), (20.0, 20.0)]:
        assert point_to_line_distance(p, line) >= 0.0


def test_point_to_line_distance_takes_the_minimum_segment():
    line = ((0.0, 0.0), (0.0, 1.0), (5.0, 1.0))
    assert point_to_line_distance((2.0, 1.5), line) == pytest.approx(distance((2.0, 1.5), (2.0, 1.0)))


def test_point_to_line_distance_requires_two_points():
    with pytest.raises(InvalidGeometry):
        point_to_line_distance((0.0, 0.0), ((1.0, 1.0),))


@pytest.mark.parametrize(
    "bad",
    [None, "1,2", [1.0], ["a", 2.0], ["5", "5"], ("5", 5.0), [float("nan"), 1.0], [1.0, float("inf")], [True, 1.0]],
)
def test_as_point_rejects_invalid_coordinates(bad):
    with pytest.raises(InvalidCoordinate):
        as_point(bad)


def test_as_point_ignores_altitude():
    assert as_point([121.5, 25.0, 12.0]) == (121.5, 25.0)
