"""Tests for the measurement store and its reconciliation."""

import pytest

from roofmap.core.geometry import geomath
from roofmap.core.geometry.geomath import Position
from roofmap.core.geometry.roof import RoofPolygon
from roofmap.core.measurement.store import MeasurementStore

SQUARE = [(7.0, 51.0), (7.0001, 51.0), (7.0001, 51.0001), (7.0, 51.0001)]
TRIANGLE = [(7.0, 51.0), (7.0002, 51.0), (7.0, 51.0002)]


def roof(pid, points):
    return RoofPolygon.from_ring(pid, points)


def degenerate(pid):
    # Bypasses from_ring, which would refuse to measure it
    ring = [Position(7.0, 51.0), Position(7.0001, 51.0), Position(7.0001, 51.0), Position(7.0, 51.0)]
    return RoofPolygon(id=pid, ring=ring)


class TestReconcile:
    def test_inserts_missing(self):
        store = MeasurementStore()
        result = store.reconcile([roof("a", SQUARE), roof("b", TRIANGLE)])
        assert [m.id for m in result] == ["a", "b"]
        assert store.get("a").area == pytest.approx(geomath.measure(SQUARE)[0])

    def test_drops_orphans(self):
        store = MeasurementStore()
        store.reconcile([roof("a", SQUARE), roof("b", TRIANGLE)])
        store.reconcile([roof("b", TRIANGLE)])
        assert store.ids() == {"b"}

    def test_ids_match_valid_polygons(self):
        store = MeasurementStore()
        polygons = [roof("a", SQUARE), degenerate("flat"), roof("b", TRIANGLE)]
        store.reconcile(polygons)
        assert store.ids() == {"a", "b"}

    def test_polygon_becoming_degenerate_loses_entry(self):
        store = MeasurementStore()
        store.reconcile([roof("a", SQUARE)])
        store.reconcile([degenerate("a")])
        assert "a" not in store

    def test_updates_changed_values(self):
        store = MeasurementStore()
        store.reconcile([roof("a", SQUARE)])
        store.reconcile([roof("a", TRIANGLE)])
        assert store.get("a").area == pytest.approx(geomath.measure(TRIANGLE)[0])

    def test_idempotent(self):
        store = MeasurementStore()
        polygons = [roof("a", SQUARE), roof("b", TRIANGLE)]
        first = [m.to_dict() for m in store.reconcile(polygons)]
        second = [m.to_dict() for m in store.reconcile(polygons)]
        assert first == second

    def test_uses_ring_not_cached_properties(self):
        store = MeasurementStore()
        polygon = roof("a", SQUARE)
        polygon.ring = geomath.close_ring(TRIANGLE)
        store.reconcile([polygon])
        assert store.get("a").area == pytest.approx(geomath.measure(TRIANGLE)[0])

    def test_empty_collection_clears(self):
        store = MeasurementStore()
        store.reconcile([roof("a", SQUARE)])
        assert store.reconcile([]) == []
        assert len(store) == 0


class TestRecord:
    def test_change_within_epsilon_ignored(self):
        store = MeasurementStore(epsilon=0.001)
        store.record("a", 100.0, 40.0)
        assert store.record("a", 100.0005, 40.0) is False
        assert store.get("a").area == 100.0

    def test_change_beyond_epsilon_written(self):
        store = MeasurementStore(epsilon=0.001)
        store.record("a", 100.0, 40.0)
        assert store.record("a", 100.01, 40.0) is True
        assert store.get("a").area == 100.01

    def test_discard(self):
        store = MeasurementStore()
        store.record("a", 1.0, 1.0)
        store.discard("a")
        store.discard("a")
        assert "a" not in store
