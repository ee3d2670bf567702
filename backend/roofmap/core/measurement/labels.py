"""Edge-length and area labels for committed polygons and the live draft.

Labels are recomputed wholesale on every change; there are only tens of
them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from roofmap.core.geometry import geomath
from roofmap.core.geometry.geomath import Position
from roofmap.utils.units import format_area, format_length

DEFAULT_MIN_LABEL_LENGTH_M = 0.1


@dataclass(frozen=True)
class Label:
    position: Position
    text: str
    bearing: Optional[float] = None
    kind: str = "edge"  # edge | area | preview

    def to_feature(self) -> dict:
        properties: dict = {"text": self.text, "kind": self.kind}
        if self.bearing is not None:
            properties["bearing"] = self.bearing
        return {
            "type": "Feature",
            "properties": properties,
            "geometry": {"type": "Point", "coordinates": list(self.position)},
        }


def upright_bearing(bearing: float) -> float:
    """Fold a bearing into (-90, 90] so rotated text never reads upside down."""
    if bearing > 90.0:
        return bearing - 180.0
    if bearing <= -90.0:
        return bearing + 180.0
    return bearing


def to_feature_collection(labels: Sequence[Label]) -> dict:
    return {"type": "FeatureCollection", "features": [label.to_feature() for label in labels]}


class LabelGenerator:
    def __init__(
        self,
        min_length_m: float = DEFAULT_MIN_LABEL_LENGTH_M,
        unit: str = "m",
        rotate: bool = True,
    ) -> None:
        self.min_length_m = min_length_m
        self.unit = unit
        self.rotate = rotate

    def _segment_label(self, a: Position, b: Position, kind: str) -> Optional[Label]:
        length = geomath.distance(a, b)
        if length < self.min_length_m:
            return None
        return Label(
            position=geomath.midpoint(a, b),
            text=format_length(length, self.unit),
            bearing=upright_bearing(geomath.bearing(a, b)) if self.rotate else None,
            kind=kind,
        )

    def edge_labels(self, ring: Sequence[Sequence[float]], closed: bool = True) -> list[Label]:
        """One label per edge at its midpoint.

        With ``closed`` the ring is auto-closed first (when it has 3+
        points); otherwise the positions are labelled as an open polyline.
        """
        points = [Position(*p) for p in ring]
        if closed and len(points) >= 3:
            points = geomath.close_ring(points)
        labels = []
        for a, b in zip(points, points[1:]):
            label = self._segment_label(a, b, "edge")
            if label is not None:
                labels.append(label)
        return labels

    def area_label(self, ring: Sequence[Sequence[float]]) -> Label:
        """Area text at the planar centroid. Raises InvalidGeometry for degenerate rings."""
        closed = geomath.close_ring(ring)
        return Label(
            position=geomath.centroid(closed),
            text=format_area(geomath.area(closed), self.unit),
            kind="area",
        )

    def draft_preview_label(
        self,
        points: Sequence[Sequence[float]],
        pointer_or_snap: Optional[Sequence[float]],
    ) -> Optional[Label]:
        """Label for the rubber-band segment from the last draft point to the pointer."""
        if not points or pointer_or_snap is None:
            return None
        return self._segment_label(Position(*points[-1]), Position(*pointer_or_snap), "preview")
