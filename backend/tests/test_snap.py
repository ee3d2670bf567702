"""Tests for screen-space vertex snapping."""

import pytest

from roofmap.core.drawing.snap import ScreenPoint, resolve
from roofmap.core.errors import ProjectionUnavailable
from roofmap.core.geometry.geomath import Position


def identity(p):
    """Treat lng/lat as pixel coordinates."""
    return ScreenPoint(p[0], p[1])


class TestResolve:
    def test_closest_within_threshold_wins(self):
        candidates = [Position(50, 0), Position(5, 0), Position(30, 0)]
        result = resolve(ScreenPoint(0, 0), candidates, identity, threshold_px=15)
        assert result.snapped
        assert result.index == 1
        assert result.position == Position(5, 0)
        assert result.distance_px == pytest.approx(5)

    def test_closest_not_first_inside_threshold(self):
        candidates = [Position(12, 0), Position(3, 0)]
        result = resolve(ScreenPoint(0, 0), candidates, identity, threshold_px=15)
        assert result.index == 1

    def test_tie_keeps_first(self):
        candidates = [Position(0, 5), Position(5, 0)]
        result = resolve(ScreenPoint(0, 0), candidates, identity, threshold_px=15)
        assert result.index == 0

    def test_nothing_within_threshold(self):
        result = resolve(ScreenPoint(0, 0), [Position(50, 0)], identity, threshold_px=15)
        assert not result.snapped
        assert result.position is None
        assert result.index is None

    def test_threshold_is_inclusive(self):
        result = resolve(ScreenPoint(0, 0), [Position(15, 0)], identity, threshold_px=15)
        assert result.snapped

    def test_empty_candidates(self):
        assert not resolve(ScreenPoint(0, 0), [], identity).snapped

    def test_exclude_last(self):
        candidates = [Position(40, 0), Position(1, 0)]
        result = resolve(ScreenPoint(0, 0), candidates, identity, threshold_px=15, exclude_last=True)
        assert not result.snapped

    def test_exclude_last_single_candidate(self):
        result = resolve(ScreenPoint(0, 0), [Position(0, 0)], identity, exclude_last=True)
        assert not result.snapped

    def test_projection_error_propagates(self):
        def not_ready(p):
            raise ProjectionUnavailable()

        with pytest.raises(ProjectionUnavailable):
            resolve(ScreenPoint(0, 0), [Position(0, 0)], not_ready)
