"""Screen-space vertex snapping."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional, Sequence

from roofmap.core.geometry.geomath import Position

DEFAULT_SNAP_THRESHOLD_PX = 15.0


class ScreenPoint(NamedTuple):
    """Pixel position inside the map canvas."""

    x: float
    y: float


Projector = Callable[[Position], ScreenPoint]


@dataclass(frozen=True)
class PointerEvent:
    """A pointer event as delivered by the map: both screen and geo forms."""

    screen: ScreenPoint
    position: Position


@dataclass(frozen=True)
class SnapResult:
    snapped: bool
    position: Optional[Position] = None
    index: Optional[int] = None
    distance_px: Optional[float] = None


NO_SNAP = SnapResult(snapped=False)


def resolve(
    pointer: ScreenPoint,
    candidates: Sequence[Position],
    project: Projector,
    threshold_px: float = DEFAULT_SNAP_THRESHOLD_PX,
    exclude_last: bool = False,
) -> SnapResult:
    """Find the candidate closest to ``pointer`` within ``threshold_px``.

    The closest candidate wins, not the first one inside the threshold; on
    equal distances the earlier candidate is kept. ``exclude_last`` skips
    the final candidate so a point cannot snap onto itself. ``project`` may
    raise ProjectionUnavailable, which is left to the caller.
    """
    count = len(candidates) - 1 if exclude_last else len(candidates)
    best_index = -1
    best_dist = math.inf
    for i in range(max(count, 0)):
        sx, sy = project(candidates[i])
        d = math.hypot(sx - pointer[0], sy - pointer[1])
        if d < best_dist:
            best_index, best_dist = i, d

    if best_index < 0 or best_dist > threshold_px:
        return NO_SNAP
    return SnapResult(
        snapped=True,
        position=Position(*candidates[best_index]),
        index=best_index,
        distance_px=best_dist,
    )
