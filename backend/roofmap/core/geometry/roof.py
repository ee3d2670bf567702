"""Committed roof polygon and its measured properties."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from shapely.geometry import Polygon, mapping

from roofmap.core.geometry import geomath
from roofmap.core.geometry.geomath import Position


@dataclass(frozen=True)
class PolygonProperties:
    area: float = 0.0       # m²
    perimeter: float = 0.0  # m


@dataclass
class RoofPolygon:
    """A closed roof outline. Ring and properties are only ever replaced together."""

    id: str
    ring: list[Position]
    properties: PolygonProperties = field(default_factory=PolygonProperties)

    @classmethod
    def from_ring(cls, polygon_id: str, points: Sequence[Sequence[float]]) -> RoofPolygon:
        """Close ``points`` and measure it in one step."""
        ring = geomath.close_ring(points)
        area, perimeter = geomath.measure(ring)
        return cls(
            id=polygon_id,
            ring=ring,
            properties=PolygonProperties(area=area, perimeter=perimeter),
        )

    @property
    def vertices(self) -> list[Position]:
        """Ring positions without the closing duplicate."""
        if geomath.is_closed(self.ring):
            return list(self.ring[:-1])
        return list(self.ring)

    def to_feature(self) -> dict:
        """GeoJSON Feature for the rendering sink."""
        return {
            "type": "Feature",
            "id": self.id,
            "properties": {
                "id": self.id,
                "area": self.properties.area,
                "perimeter": self.properties.perimeter,
            },
            "geometry": mapping(Polygon(self.ring)),
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ring": [list(p) for p in self.ring],
            "area": round(self.properties.area, 2),
            "perimeter": round(self.properties.perimeter, 2),
        }
