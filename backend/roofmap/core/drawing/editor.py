"""Vertex editing for committed roof polygons."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Sequence

from roofmap.core.geometry import geomath
from roofmap.core.geometry.geomath import Position
from roofmap.core.geometry.roof import PolygonProperties, RoofPolygon
from roofmap.core.measurement.store import MeasurementStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VertexHandle:
    """A draggable marker for one ring vertex."""

    handle_id: str
    vertex_index: int
    position: Position

    def to_feature(self) -> dict:
        return {
            "type": "Feature",
            "properties": {"handle_id": self.handle_id, "vertex_index": self.vertex_index},
            "geometry": {"type": "Point", "coordinates": list(self.position)},
        }


class PolygonEditor:
    """Moves vertices of a polygon it is handed and keeps its measurement current.

    The editor never owns the polygon collection: it returns an updated copy
    and the caller puts it back.
    """

    def __init__(self, store: MeasurementStore) -> None:
        self.store = store
        self.polygon_id: str | None = None
        self._handles: dict[str, int] = {}

    def begin_edit(self, polygon: RoofPolygon) -> list[VertexHandle]:
        """One handle per vertex, the closing duplicate excluded."""
        self.polygon_id = polygon.id
        self._handles = {}
        handles = []
        for index, position in enumerate(polygon.vertices):
            handle_id = f"{polygon.id}:v{index}"
            self._handles[handle_id] = index
            handles.append(VertexHandle(handle_id, index, position))
        return handles

    def end_edit(self) -> None:
        self.polygon_id = None
        self._handles = {}

    def vertex_index_for(self, handle_id: str) -> int:
        try:
            return self._handles[handle_id]
        except KeyError:
            raise KeyError(f"Unknown vertex handle '{handle_id}'") from None

    def on_handle_drag(
        self,
        polygon: RoofPolygon,
        handle_id: str,
        new_position: Sequence[float],
    ) -> RoofPolygon:
        return self.on_vertex_drag(polygon, self.vertex_index_for(handle_id), new_position)

    def on_vertex_drag(
        self,
        polygon: RoofPolygon,
        vertex_index: int,
        new_position: Sequence[float],
    ) -> RoofPolygon:
        """Move one vertex and return the re-measured polygon.

        Moving vertex 0 moves the closing point with it. A move that would
        leave fewer than 3 distinct vertices raises InvalidGeometry and
        changes nothing.
        """
        ring = geomath.close_ring(polygon.ring)
        last = len(ring) - 1
        if not 0 <= vertex_index < last:
            raise IndexError(
                f"Vertex index {vertex_index} out of range for polygon {polygon.id} "
                f"with {last} vertices"
            )

        position = Position(*new_position)
        ring[vertex_index] = position
        if vertex_index == 0:
            ring[last] = position

        area, perimeter = geomath.area(ring), geomath.perimeter(ring)

        updated = replace(
            polygon,
            ring=ring,
            properties=PolygonProperties(area=area, perimeter=perimeter),
        )
        self.store.record(polygon.id, area, perimeter)
        logger.debug(
            "Moved vertex %d of %s: area=%.2f perimeter=%.2f",
            vertex_index, polygon.id, area, perimeter,
        )
        return updated
