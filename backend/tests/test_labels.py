"""Tests for edge, area and preview labels."""

import pytest

from roofmap.core.errors import InvalidGeometry
from roofmap.core.geometry.geomath import Position
from roofmap.core.measurement.labels import (
    Label,
    LabelGenerator,
    to_feature_collection,
    upright_bearing,
)

SQUARE = [(0, 0), (0, 0.001), (0.001, 0.001), (0.001, 0)]


class TestUprightBearing:
    @pytest.mark.parametrize(
        "raw, expected",
        [(0, 0), (45, 45), (90, 90), (135, -45), (180, 0), (-45, -45), (-90, 90), (-135, 45)],
    )
    def test_folds_into_readable_range(self, raw, expected):
        assert upright_bearing(raw) == pytest.approx(expected)


class TestEdgeLabels:
    def test_one_label_per_edge(self):
        labels = LabelGenerator().edge_labels(SQUARE)
        assert len(labels) == 4
        assert all(label.kind == "edge" for label in labels)

    def test_text_and_position(self):
        labels = LabelGenerator().edge_labels(SQUARE)
        assert labels[0].text == "111.2 m"
        assert labels[0].position == Position(0, 0.0005)

    def test_bearings_upright(self):
        for label in LabelGenerator().edge_labels(SQUARE):
            assert -90 < label.bearing <= 90

    def test_short_edges_omitted(self):
        ring = [(0, 0), (0.001, 0), (0.001, 0.0000001), (0, 0.001)]  # ~1 cm edge
        assert len(LabelGenerator().edge_labels(ring)) == 3

    def test_open_polyline(self):
        labels = LabelGenerator().edge_labels([(0, 0), (0, 0.001)], closed=False)
        assert len(labels) == 1

    def test_unrotated(self):
        labels = LabelGenerator(rotate=False).edge_labels(SQUARE)
        assert all(label.bearing is None for label in labels)

    def test_feet(self):
        labels = LabelGenerator(unit="ft").edge_labels(SQUARE)
        assert labels[0].text == "364.8 ft"


class TestAreaLabel:
    def test_centroid_and_text(self):
        label = LabelGenerator().area_label(SQUARE)
        assert label.kind == "area"
        assert label.position.lng == pytest.approx(0.0005)
        assert label.position.lat == pytest.approx(0.0005)
        assert label.text.startswith("1236")
        assert label.text.endswith(" m²")

    def test_degenerate_ring(self):
        with pytest.raises(InvalidGeometry):
            LabelGenerator().area_label([(0, 0), (0.001, 0), (0.001, 0)])


class TestDraftPreviewLabel:
    def test_segment_to_pointer(self):
        label = LabelGenerator().draft_preview_label([(0, 0)], (0, 0.001))
        assert label.kind == "preview"
        assert label.text == "111.2 m"

    def test_no_points(self):
        assert LabelGenerator().draft_preview_label([], (0, 0.001)) is None

    def test_too_short(self):
        assert LabelGenerator().draft_preview_label([(0, 0)], (0, 0.0000001)) is None


class TestFeatureCollection:
    def test_geojson_shape(self):
        fc = to_feature_collection([Label(Position(1, 2), "5.0 m", 10.0)])
        assert fc["type"] == "FeatureCollection"
        feature = fc["features"][0]
        assert feature["geometry"] == {"type": "Point", "coordinates": [1, 2]}
        assert feature["properties"]["bearing"] == 10.0
