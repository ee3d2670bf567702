"""Measurement cache reconciled against the committed polygon collection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from roofmap.core.errors import InvalidGeometry
from roofmap.core.geometry import geomath
from roofmap.core.geometry.roof import RoofPolygon

logger = logging.getLogger(__name__)

DEFAULT_EPSILON = 0.001


@dataclass
class Measurement:
    id: str
    area: float       # m²
    perimeter: float  # m

    def to_dict(self) -> dict:
        return {"id": self.id, "area": self.area, "perimeter": self.perimeter}


class MeasurementStore:
    """Derived view of {area, perimeter} per polygon id.

    The polygon collection is the source of truth; call ``reconcile`` after
    every change to it. Values within ``epsilon`` of the cached ones are not
    rewritten.
    """

    def __init__(self, epsilon: float = DEFAULT_EPSILON) -> None:
        self.epsilon = epsilon
        self._entries: dict[str, Measurement] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, polygon_id: object) -> bool:
        return polygon_id in self._entries

    def __iter__(self) -> Iterator[Measurement]:
        return iter(list(self._entries.values()))

    def get(self, polygon_id: str) -> Optional[Measurement]:
        return self._entries.get(polygon_id)

    def ids(self) -> set[str]:
        return set(self._entries)

    def record(self, polygon_id: str, area: float, perimeter: float) -> bool:
        """Insert or update one entry. Returns True if anything changed."""
        existing = self._entries.get(polygon_id)
        if existing is None:
            self._entries[polygon_id] = Measurement(polygon_id, area, perimeter)
            return True
        if (
            abs(existing.area - area) > self.epsilon
            or abs(existing.perimeter - perimeter) > self.epsilon
        ):
            existing.area = area
            existing.perimeter = perimeter
            return True
        return False

    def discard(self, polygon_id: str) -> None:
        self._entries.pop(polygon_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def reconcile(self, polygons: Iterable[RoofPolygon]) -> list[Measurement]:
        """Bring the cache in line with ``polygons`` and return it in collection order.

        Polygons whose ring has fewer than 3 distinct vertices are skipped
        and lose any cached entry.
        """
        measured: dict[str, tuple[float, float]] = {}
        order: list[str] = []
        for polygon in polygons:
            if geomath.distinct_vertex_count(polygon.ring) < 3:
                continue
            try:
                measured[polygon.id] = geomath.measure(polygon.ring)
            except InvalidGeometry as e:
                logger.warning("Skipping polygon %s: %s", polygon.id, e)
                continue
            if polygon.id not in order:
                order.append(polygon.id)

        orphans = [pid for pid in self._entries if pid not in measured]
        for pid in orphans:
            del self._entries[pid]

        changed = 0
        for pid, (area, perimeter) in measured.items():
            if self.record(pid, area, perimeter):
                changed += 1

        if orphans or changed:
            logger.debug(
                "Reconciled measurements: %d dropped, %d written, %d total",
                len(orphans), changed, len(self._entries),
            )
        return [self._entries[pid] for pid in order]
