"""Tests for the spherical geometry helpers."""

import math

import pytest

from roofmap.core.errors import InvalidGeometry
from roofmap.core.geometry import geomath
from roofmap.core.geometry.geomath import Position

# 0.001° square at the equator: ~111.2 m per side.
SQUARE = [(0, 0), (0, 0.001), (0.001, 0.001), (0.001, 0), (0, 0)]
ONE_DEGREE_M = geomath.EARTH_RADIUS_M * math.pi / 180


class TestDistance:
    def test_one_degree_of_latitude(self):
        assert geomath.distance((0, 0), (0, 1)) == pytest.approx(111195.08, rel=1e-6)

    def test_symmetric(self):
        a, b = (7.0, 51.0), (7.001, 51.002)
        assert geomath.distance(a, b) == pytest.approx(geomath.distance(b, a))

    def test_zero_for_same_point(self):
        assert geomath.distance((7.0, 51.0), (7.0, 51.0)) == 0.0


class TestBearing:
    def test_cardinal_directions(self):
        assert geomath.bearing((0, 0), (0, 1)) == pytest.approx(0.0)
        assert geomath.bearing((0, 0), (1, 0)) == pytest.approx(90.0)
        assert geomath.bearing((0, 0), (-1, 0)) == pytest.approx(-90.0)

    def test_due_south_is_positive_180(self):
        assert geomath.bearing((0, 0), (0, -1)) == pytest.approx(180.0)

    def test_range(self):
        for target in [(1, 1), (-1, 1), (1, -1), (-1, -1), (0, -1)]:
            b = geomath.bearing((0, 0), target)
            assert -180.0 < b <= 180.0


class TestMidpoint:
    def test_arithmetic_mean(self):
        assert geomath.midpoint((0, 0), (2, 4)) == Position(1, 2)


class TestCloseRing:
    def test_appends_first_point(self):
        ring = geomath.close_ring([(0, 0), (1, 0), (1, 1)])
        assert ring == [(0, 0), (1, 0), (1, 1), (0, 0)]
        assert ring[0] == ring[-1]

    def test_idempotent(self):
        once = geomath.close_ring([(0, 0), (1, 0), (1, 1)])
        twice = geomath.close_ring(once)
        assert twice == once

    def test_does_not_mutate_input(self):
        points = [(0, 0), (1, 0), (1, 1)]
        geomath.close_ring(points)
        assert len(points) == 3

    def test_returns_positions(self):
        ring = geomath.close_ring([(0, 0), (1, 0), (1, 1)])
        assert all(isinstance(p, Position) for p in ring)
        assert ring[1].lng == 1

    def test_too_few_points(self):
        with pytest.raises(InvalidGeometry):
            geomath.close_ring([(0, 0), (1, 0)])


class TestArea:
    def test_small_square_near_equator(self):
        expected = (ONE_DEGREE_M * 0.001) ** 2  # ~12,364 m²
        assert geomath.area(SQUARE) == pytest.approx(expected, rel=1e-3)

    def test_winding_does_not_matter(self):
        assert geomath.area(list(reversed(SQUARE))) == pytest.approx(geomath.area(SQUARE))

    def test_deterministic(self):
        assert geomath.area(SQUARE) == geomath.area(SQUARE)
        assert geomath.perimeter(SQUARE) == geomath.perimeter(SQUARE)

    def test_open_ring_rejected(self):
        with pytest.raises(InvalidGeometry):
            geomath.area(SQUARE[:-1])

    def test_too_few_distinct_vertices(self):
        with pytest.raises(InvalidGeometry):
            geomath.area([(0, 0), (1, 0), (1, 0), (0, 0)])


class TestPerimeter:
    def test_small_square_near_equator(self):
        assert geomath.perimeter(SQUARE) == pytest.approx(4 * ONE_DEGREE_M * 0.001, rel=1e-3)

    def test_open_ring_rejected(self):
        with pytest.raises(InvalidGeometry):
            geomath.perimeter(SQUARE[:-1])


class TestMeasure:
    def test_auto_closes_open_ring(self):
        area, perimeter = geomath.measure(SQUARE[:-1])
        assert area == pytest.approx(geomath.area(SQUARE))
        assert perimeter == pytest.approx(geomath.perimeter(SQUARE))


class TestCentroid:
    def test_square_center(self):
        c = geomath.centroid(SQUARE)
        assert c.lng == pytest.approx(0.0005)
        assert c.lat == pytest.approx(0.0005)


class TestDistinctVertexCount:
    def test_ignores_closing_point(self):
        assert geomath.distinct_vertex_count(SQUARE) == 4

    def test_counts_duplicates_once(self):
        assert geomath.distinct_vertex_count([(0, 0), (0, 0), (1, 1)]) == 2
