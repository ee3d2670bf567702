"""Drawing session: owns the polygon collection, its measurements and the draft.

All mutations run one at a time from pointer callbacks or explicit user
actions. Every operation that changes the collection reconciles the
measurement store before it returns.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from shapely.geometry import Point, Polygon

from roofmap.config import Settings, settings as default_settings
from roofmap.core.drawing.draft import DraftPhase, DraftPolygonBuilder, DraftPreview
from roofmap.core.drawing.editor import PolygonEditor, VertexHandle
from roofmap.core.drawing.snap import PointerEvent, ScreenPoint
from roofmap.core.errors import (
    EditNotAllowed,
    InsufficientVertices,
    InvalidGeometry,
    ProjectionUnavailable,
)
from roofmap.core.geometry import geomath
from roofmap.core.geometry.geomath import Position
from roofmap.core.geometry.roof import RoofPolygon
from roofmap.core.geometry.validation import validate_ring
from roofmap.core.measurement.labels import Label, LabelGenerator, to_feature_collection
from roofmap.core.measurement.store import MeasurementStore
from roofmap.core.session.visibility import (
    ImageryVisibility,
    RegionBounds,
    VisibilityDecision,
)
from roofmap.models.viewport import MercatorViewport
from roofmap.utils.units import format_area, format_length

logger = logging.getLogger(__name__)


class DrawMode(str, Enum):
    DRAW = "draw"
    EDIT = "edit"
    DELETE = "delete"
    MEASURE = "measure"


@dataclass(frozen=True)
class Notice:
    """Non-blocking message for the user (toast)."""

    level: str  # success | warning | error
    message: str

    def to_dict(self) -> dict:
        return {"level": self.level, "message": self.message}


def _time_based_id() -> str:
    return f"polygon-{int(time.time() * 1000)}"


class RoofSession:
    def __init__(
        self,
        snap_threshold_px: float = 15.0,
        min_label_length_m: float = 0.1,
        min_edge_m: float = 0.1,
        measurement_epsilon: float = 0.001,
        length_unit: str = "m",
        rotate_labels: bool = True,
        visibility: Optional[ImageryVisibility] = None,
        id_factory: Callable[[], str] = _time_based_id,
    ) -> None:
        self.viewport: Optional[MercatorViewport] = None
        self.store = MeasurementStore(epsilon=measurement_epsilon)
        self.builder = DraftPolygonBuilder(project=self.project, snap_threshold_px=snap_threshold_px)
        self.editor = PolygonEditor(self.store)
        self.labels = LabelGenerator(
            min_length_m=min_label_length_m,
            unit=length_unit,
            rotate=rotate_labels,
        )
        self.visibility = visibility
        self.length_unit = length_unit
        self.min_edge_m = min_edge_m

        self.polygons: list[RoofPolygon] = []
        self.mode: Optional[DrawMode] = None
        self.selected_id: Optional[str] = None
        self.handles: list[VertexHandle] = []

        self._preview: Optional[DraftPreview] = None
        self._notices: list[Notice] = []
        self._id_factory = id_factory

    @classmethod
    def from_settings(cls, s: Settings = default_settings) -> RoofSession:
        region = RegionBounds(
            north=s.region_north,
            south=s.region_south,
            east=s.region_east,
            west=s.region_west,
        )
        return cls(
            snap_threshold_px=s.snap_threshold_px,
            min_label_length_m=s.min_label_length_m,
            min_edge_m=s.min_edge_m,
            measurement_epsilon=s.measurement_epsilon,
            length_unit=s.length_unit,
            rotate_labels=s.rotate_labels,
            visibility=ImageryVisibility(region, s.region_name, s.imagery_min_zoom),
        )

    # ── Map collaborators ───────────────────────────────────────────────

    def project(self, position: Position) -> ScreenPoint:
        if self.viewport is None:
            raise ProjectionUnavailable()
        return self.viewport.project(position)

    def set_viewport(self, viewport: Optional[MercatorViewport]) -> Optional[VisibilityDecision]:
        """Pan/zoom notification. Never touches geometry."""
        self.viewport = viewport
        if viewport is None:
            return None
        return self.viewport_changed(viewport.center, viewport.zoom)

    def viewport_changed(self, center: Sequence[float], zoom: float) -> Optional[VisibilityDecision]:
        if self.visibility is None:
            return None
        decision = self.visibility.evaluate(center[0], center[1], zoom)
        if decision.warn:
            self._notify("warning", decision.message)
        return decision

    # ── Notices ─────────────────────────────────────────────────────────

    def _notify(self, level: str, message: str) -> None:
        self._notices.append(Notice(level, message))

    def pop_notices(self) -> list[Notice]:
        notices, self._notices = self._notices, []
        return notices

    # ── Modes & selection ───────────────────────────────────────────────

    def set_mode(self, mode: Optional[str]) -> Optional[DrawMode]:
        """Switch mode; choosing the active mode again turns it off.

        Any switch discards the draft.
        """
        requested = DrawMode(mode) if mode else None
        new_mode = None if requested == self.mode else requested

        self.builder.cancel()
        self._preview = None
        self.editor.end_edit()
        self.handles = []

        self.mode = new_mode
        if new_mode is DrawMode.DRAW:
            self.builder.start()
        elif new_mode is DrawMode.EDIT and self.selected_id is not None:
            self.handles = self.editor.begin_edit(self.get(self.selected_id))
        logger.debug("Mode changed to %s", new_mode.value if new_mode else None)
        return new_mode

    def get(self, polygon_id: str) -> RoofPolygon:
        for polygon in self.polygons:
            if polygon.id == polygon_id:
                return polygon
        raise KeyError(f"Unknown polygon '{polygon_id}'")

    def select(self, polygon_id: Optional[str]) -> list[VertexHandle]:
        """Select one polygon (or none). In edit mode returns its vertex handles."""
        if polygon_id is not None:
            self.get(polygon_id)
        self.selected_id = polygon_id
        self.editor.end_edit()
        self.handles = []
        if polygon_id is not None and self.mode is DrawMode.EDIT:
            self.handles = self.editor.begin_edit(self.get(polygon_id))
        return list(self.handles)

    def polygon_at(self, position: Sequence[float]) -> Optional[RoofPolygon]:
        """Topmost polygon covering ``position``."""
        pt = Point(position[0], position[1])
        for polygon in reversed(self.polygons):
            if Polygon(polygon.ring).covers(pt):
                return polygon
        return None

    # ── Pointer events ──────────────────────────────────────────────────

    def click(self, event: PointerEvent) -> Optional[RoofPolygon]:
        """Primary click. Returns the committed polygon when the click closed a draft."""
        if self.mode is DrawMode.DRAW:
            if self.viewport is None:
                logger.debug("Dropping click before the map is ready")
                return None
            ring = self.builder.add_point(
                event.position,
                screen=event.screen,
                candidates=self._committed_vertices(),
            )
            self._preview = None
            if ring is not None:
                return self.commit(ring)
            return None

        hit = self.polygon_at(event.position)
        if self.mode is DrawMode.DELETE:
            if hit is not None:
                self.delete(hit.id)
            return None
        self.select(hit.id if hit is not None else None)
        return None

    def secondary_click(self, event: Optional[PointerEvent] = None) -> Optional[RoofPolygon]:
        """Explicit finish. Too few points is reported, the draft is kept."""
        if self.mode is not DrawMode.DRAW:
            return None
        try:
            ring = self.builder.close()
        except InsufficientVertices as e:
            self._notify("warning", str(e))
            return None
        self._preview = None
        return self.commit(ring)

    def move(self, event: PointerEvent) -> Optional[DraftPreview]:
        if self.mode is not DrawMode.DRAW or not self.builder.points:
            self._preview = None
            return None
        snap = self.builder.snap_pointer(event.screen, self._committed_vertices())
        self._preview = self.builder.preview_to(event.position, snap)
        return self._preview

    def cancel_draft(self) -> None:
        self.builder.cancel()
        self._preview = None
        if self.mode is DrawMode.DRAW:
            self.builder.start()

    # ── Collection changes ──────────────────────────────────────────────

    def _next_id(self) -> str:
        base = self._id_factory()
        existing = {p.id for p in self.polygons}
        candidate, n = base, 1
        while candidate in existing:
            n += 1
            candidate = f"{base}-{n}"
        return candidate

    def _reconcile(self) -> None:
        self.store.reconcile(self.polygons)

    def commit(self, ring: Sequence[Sequence[float]]) -> Optional[RoofPolygon]:
        """Add a finished ring to the collection, measured and selected."""
        result = validate_ring(list(ring), self.min_edge_m)
        if not result.valid:
            self._notify("error", f"Polygon not created: {result.errors[0].message}")
            if self.mode is DrawMode.DRAW and self.builder.phase is DraftPhase.IDLE:
                self.builder.resume(ring)
            return None
        for issue in result.warnings:
            self._notify("warning", issue.message)

        polygon = RoofPolygon.from_ring(self._next_id(), list(ring))
        self.polygons.append(polygon)
        self._reconcile()
        self.select(polygon.id)
        logger.info(
            "Committed %s: area=%.2f m² perimeter=%.2f m",
            polygon.id, polygon.properties.area, polygon.properties.perimeter,
        )
        self._notify(
            "success",
            f"Polygon created: {format_area(polygon.properties.area, self.length_unit)}, "
            f"perimeter {format_length(polygon.properties.perimeter, self.length_unit)}",
        )
        return polygon

    def drag_vertex(
        self,
        vertex_index: int,
        position: Sequence[float],
        polygon_id: Optional[str] = None,
    ) -> RoofPolygon:
        """Move a vertex of ``polygon_id`` (default: the selected polygon).

        Only the selected polygon is editable, and only in edit mode;
        anything else raises EditNotAllowed.
        """
        polygon_id = polygon_id or self.selected_id
        if polygon_id is None:
            raise KeyError("No polygon selected")
        polygon = self.get(polygon_id)
        if self.mode is not DrawMode.EDIT:
            raise EditNotAllowed("Vertices can only be moved in edit mode")
        if polygon_id != self.selected_id:
            raise EditNotAllowed(f"Polygon '{polygon_id}' is not selected")
        try:
            updated = self.editor.on_vertex_drag(polygon, vertex_index, position)
        except InvalidGeometry as e:
            self._notify("warning", f"Vertex move rejected: {e}")
            return polygon
        self._replace(updated)
        return updated

    def drag_handle(self, handle_id: str, position: Sequence[float]) -> RoofPolygon:
        if self.editor.polygon_id is None:
            raise KeyError("No polygon is being edited")
        index = self.editor.vertex_index_for(handle_id)
        return self.drag_vertex(index, position, self.editor.polygon_id)

    def _replace(self, updated: RoofPolygon) -> None:
        self.polygons = [updated if p.id == updated.id else p for p in self.polygons]
        self._reconcile()
        if self.editor.polygon_id == updated.id:
            self.handles = self.editor.begin_edit(updated)

    def delete(self, polygon_id: Optional[str] = None) -> list[str]:
        """Delete one polygon; with no id, the selected one or, failing that, all."""
        if polygon_id is None:
            polygon_id = self.selected_id
        if polygon_id is None:
            removed = [p.id for p in self.polygons]
            self.polygons = []
        else:
            self.get(polygon_id)
            removed = [polygon_id]
            self.polygons = [p for p in self.polygons if p.id != polygon_id]

        if self.selected_id in removed:
            self.select(None)
        self._reconcile()
        logger.info("Deleted %d polygon(s)", len(removed))
        return removed

    def reset(self) -> None:
        """Clear all drawing state. The viewport belongs to the map and is kept."""
        self.polygons = []
        self.selected_id = None
        self.mode = None
        self.handles = []
        self.editor.end_edit()
        self.builder.cancel()
        self._preview = None
        self._notices = []
        self._reconcile()

    # ── Derived views ───────────────────────────────────────────────────

    def _committed_vertices(self) -> list[Position]:
        return [v for polygon in self.polygons for v in polygon.vertices]

    def measurement_results(self) -> dict:
        """Figures for the live draft once it has 3+ points, else the selected polygon."""
        live = self.builder.live_measurement()
        if live is not None:
            return {"area": live[0], "perimeter": live[1]}
        if self.selected_id is not None:
            m = self.store.get(self.selected_id)
            if m is not None:
                return {"area": m.area, "perimeter": m.perimeter}
        return {"area": None, "perimeter": None}

    def _draft_labels(self) -> list[Label]:
        points = self.builder.points
        if len(points) < 2:
            labels = []
        else:
            labels = self.labels.edge_labels(points, closed=len(points) >= 3)
        if self._preview is not None:
            preview = self.labels.draft_preview_label(points, self._preview.target)
            if preview is not None:
                labels.append(preview)
        return labels

    def render(self) -> dict:
        """Plain GeoJSON feature collections for the rendering sink."""
        edge_labels: list[Label] = []
        area_labels: list[Label] = []
        for polygon in self.polygons:
            edge_labels.extend(self.labels.edge_labels(polygon.ring))
            if polygon.id not in self.store:
                continue
            try:
                area_labels.append(self.labels.area_label(polygon.ring))
            except InvalidGeometry as e:
                logger.warning("No area label for %s: %s", polygon.id, e)
        edge_labels.extend(self._draft_labels())

        points = self.builder.points
        line = self._preview.line if self._preview is not None else points
        draft_polygon = None
        if self._preview is not None and self._preview.polygon is not None:
            draft_polygon = self._preview.polygon
        elif len(points) >= 3:
            draft_polygon = geomath.close_ring(points)

        return {
            "polygons": {
                "type": "FeatureCollection",
                "features": [p.to_feature() for p in self.polygons],
            },
            "draft_line": {
                "type": "Feature",
                "properties": {},
                "geometry": {"type": "LineString", "coordinates": [list(p) for p in line]},
            },
            "draft_polygon": {
                "type": "Feature",
                "properties": {},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [[list(p) for p in draft_polygon]] if draft_polygon else [[]],
                },
            },
            "edge_labels": to_feature_collection(edge_labels),
            "area_labels": to_feature_collection(area_labels),
            "vertices": {
                "type": "FeatureCollection",
                "features": [h.to_feature() for h in self.handles],
            },
        }

    def snapshot(self) -> dict:
        """Full state for the HTTP layer; drains pending notices."""
        return {
            "mode": self.mode.value if self.mode else None,
            "selected_id": self.selected_id,
            "draft_points": [list(p) for p in self.builder.points],
            "polygons": [p.to_dict() for p in self.polygons],
            "measurements": [m.to_dict() for m in self.store],
            "measurement_results": self.measurement_results(),
            "render": self.render(),
            "notices": [n.to_dict() for n in self.pop_notices()],
        }
