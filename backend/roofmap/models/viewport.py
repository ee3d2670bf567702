"""Web Mercator viewport: the map projection service as seen by the engine."""

from __future__ import annotations

import math
from dataclasses import dataclass

from roofmap.core.drawing.snap import ScreenPoint
from roofmap.core.geometry.geomath import Position

TILE_SIZE = 512.0
MAX_LATITUDE = 85.051129


@dataclass(frozen=True)
class MercatorViewport:
    """North-up viewport of ``width`` × ``height`` pixels centred on ``center``."""

    center: Position
    zoom: float
    width: float
    height: float

    @property
    def world_size(self) -> float:
        return TILE_SIZE * 2 ** self.zoom

    def _world(self, lng: float, lat: float) -> tuple[float, float]:
        lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
        x = (lng + 180.0) / 360.0 * self.world_size
        s = math.sin(math.radians(lat))
        y = (0.5 - math.log((1 + s) / (1 - s)) / (4 * math.pi)) * self.world_size
        return x, y

    def project(self, position: Position) -> ScreenPoint:
        cx, cy = self._world(*self.center)
        x, y = self._world(position[0], position[1])
        return ScreenPoint(x - cx + self.width / 2, y - cy + self.height / 2)

    def unproject(self, point: ScreenPoint) -> Position:
        cx, cy = self._world(*self.center)
        wx = point[0] - self.width / 2 + cx
        wy = point[1] - self.height / 2 + cy
        lng = wx / self.world_size * 360.0 - 180.0
        n = math.pi - 2 * math.pi * wy / self.world_size
        lat = math.degrees(math.atan(math.sinh(n)))
        return Position(lng, lat)
