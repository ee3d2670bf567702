"""In-progress polygon drawing: the draft state machine.

Idle ──start()/add_point()──▶ Drawing ──close()──▶ Idle (ring produced)
                                   └──cancel()──▶ Idle (nothing produced)

Closing happens either by clicking near the first vertex or by an explicit
finish action; both go through ``close()``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Sequence

from roofmap.core.drawing.snap import (
    DEFAULT_SNAP_THRESHOLD_PX,
    NO_SNAP,
    Projector,
    ScreenPoint,
    SnapResult,
    resolve,
)
from roofmap.core.errors import InsufficientVertices, InvalidGeometry, ProjectionUnavailable
from roofmap.core.geometry import geomath
from roofmap.core.geometry.geomath import Position

logger = logging.getLogger(__name__)


class DraftPhase(Enum):
    IDLE = auto()
    DRAWING = auto()


@dataclass
class DraftState:
    points: list[Position] = field(default_factory=list)  # open, never closed here
    active: bool = False


@dataclass(frozen=True)
class DraftPreview:
    """Rubber-band geometry for rendering; never fed back into the draft."""

    line: list[Position]
    polygon: Optional[list[Position]] = None
    target: Optional[Position] = None
    snap: SnapResult = NO_SNAP


class DraftPolygonBuilder:
    def __init__(
        self,
        project: Optional[Projector] = None,
        snap_threshold_px: float = DEFAULT_SNAP_THRESHOLD_PX,
    ) -> None:
        self.project = project
        self.snap_threshold_px = snap_threshold_px
        self.state = DraftState()

    @property
    def phase(self) -> DraftPhase:
        return DraftPhase.DRAWING if self.state.active else DraftPhase.IDLE

    @property
    def points(self) -> list[Position]:
        return list(self.state.points)

    def start(self) -> None:
        """Enter drawing, discarding any stale points."""
        self.state = DraftState(points=[], active=True)

    def resume(self, points: Sequence[Sequence[float]]) -> None:
        """Re-enter drawing with ``points`` (open) after a rejected commit."""
        body = list(points)
        if geomath.is_closed(body):
            body = body[:-1]
        self.state = DraftState(points=[Position(*p) for p in body], active=True)

    def cancel(self) -> None:
        if self.state.active or self.state.points:
            logger.debug("Draft cancelled with %d points", len(self.state.points))
        self.state = DraftState()

    def add_point(
        self,
        position: Sequence[float],
        screen: Optional[ScreenPoint] = None,
        candidates: Sequence[Position] = (),
    ) -> Optional[list[Position]]:
        """Append a vertex, or close the draft if the click lands on the first one.

        Returns the closed ring when the click closed the polygon, else None.
        ``candidates`` are vertices of already committed polygons the new
        point may snap onto. A click arriving while the projection is
        unavailable is dropped.
        """
        if not self.state.active:
            self.start()

        points = self.state.points
        target = Position(*position)

        if screen is not None and self.project is not None:
            try:
                self.project(target)  # raises while the map is not ready
                if len(points) >= 3:
                    first = resolve(screen, points[:1], self.project, self.snap_threshold_px)
                    if first.snapped:
                        return self.close()
                snap = resolve(screen, list(candidates), self.project, self.snap_threshold_px)
            except ProjectionUnavailable:
                logger.debug("Dropping click at %s: projection unavailable", screen)
                return None
            if snap.snapped:
                target = snap.position
        elif len(points) >= 3 and target == points[0]:
            return self.close()

        points.append(target)
        return None

    def snap_pointer(
        self,
        screen: ScreenPoint,
        candidates: Sequence[Position] = (),
    ) -> SnapResult:
        """Snap the pointer to any draft vertex (except the last) or candidate.

        Index in the result refers to ``list(candidates) + draft points``.
        """
        if self.project is None:
            return NO_SNAP
        pool = list(candidates) + self.state.points
        try:
            return resolve(
                screen,
                pool,
                self.project,
                self.snap_threshold_px,
                exclude_last=bool(self.state.points),
            )
        except ProjectionUnavailable:
            return NO_SNAP

    def preview_to(
        self,
        position: Sequence[float],
        snap: Optional[SnapResult] = None,
    ) -> DraftPreview:
        """Geometry as if ``position`` (or the snapped vertex) were the next point."""
        points = self.state.points
        if not points:
            return DraftPreview(line=[])
        snap = snap or NO_SNAP
        target = snap.position if snap.snapped else Position(*position)
        line = points + [target]
        polygon = geomath.close_ring(line) if len(points) >= 3 else None
        return DraftPreview(line=line, polygon=polygon, target=target, snap=snap)

    def close(self) -> list[Position]:
        """Close the draft into a ring and return to Idle.

        Raises InsufficientVertices (draft left untouched) with fewer than 3 points.
        """
        count = len(self.state.points)
        if count < 3:
            raise InsufficientVertices(count)
        ring = geomath.close_ring(self.state.points)
        self.state = DraftState()
        logger.debug("Draft closed with %d vertices", count)
        return ring

    def live_measurement(self) -> Optional[tuple[float, float]]:
        """(area, perimeter) of the auto-closed draft, if it has 3+ points."""
        if len(self.state.points) < 3:
            return None
        try:
            return geomath.measure(self.state.points)
        except InvalidGeometry:
            return None
