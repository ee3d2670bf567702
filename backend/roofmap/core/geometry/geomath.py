"""Spherical geometry helpers for roof outlines in WGS84 (lng, lat) degrees.

Distances use the haversine formula and areas the spherical-excess ring
formula, both on a sphere of radius ``EARTH_RADIUS_M``. At roof scale (tens
of metres) the difference to an ellipsoidal solution is well below a
percent.

``midpoint`` is the arithmetic mean of the two coordinates, not the
geodesic midpoint. That is sufficient for placing labels at the zoom levels
roofs are drawn at.
"""

from __future__ import annotations

import math
from typing import NamedTuple, Sequence

from shapely.geometry import Polygon

from roofmap.core.errors import InvalidGeometry

EARTH_RADIUS_M = 6371008.8


class Position(NamedTuple):
    """A WGS84 coordinate in degrees."""

    lng: float
    lat: float


# Closed when ring[0] == ring[-1].
Ring = list[Position]


def distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Great-circle distance between two positions in metres."""
    lat1 = math.radians(a[1])
    lat2 = math.radians(b[1])
    dlat = lat2 - lat1
    dlng = math.radians(b[0] - a[0])
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def bearing(a: Sequence[float], b: Sequence[float]) -> float:
    """Initial bearing from a to b in degrees, in the range (-180, 180]."""
    lng1, lat1 = math.radians(a[0]), math.radians(a[1])
    lng2, lat2 = math.radians(b[0]), math.radians(b[1])
    y = math.sin(lng2 - lng1) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(lng2 - lng1)
    deg = math.degrees(math.atan2(y, x))
    if deg <= -180.0:
        deg += 360.0
    return deg


def midpoint(a: Sequence[float], b: Sequence[float]) -> Position:
    return Position((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)


def is_closed(points: Sequence[Sequence[float]]) -> bool:
    return len(points) > 1 and tuple(points[0]) == tuple(points[-1])


def close_ring(points: Sequence[Sequence[float]]) -> list[Position]:
    """Return a closed copy of ``points``; the input is never modified.

    Already-closed input comes back unchanged (as a new list), so calling
    this twice is a no-op.
    """
    if len(points) < 3:
        raise InvalidGeometry(f"Need at least 3 points to close a ring, got {len(points)}")
    ring = [Position(*p) for p in points]
    if not is_closed(ring):
        ring.append(ring[0])
    return ring


def distinct_vertex_count(points: Sequence[Sequence[float]]) -> int:
    """Number of distinct positions, ignoring the closing duplicate."""
    body = points[:-1] if is_closed(points) else points
    return len({tuple(p) for p in body})


def _require_ring(ring: Sequence[Sequence[float]]) -> None:
    if len(ring) < 4 or not is_closed(ring):
        raise InvalidGeometry(
            f"Expected a closed ring with at least 4 positions, got {len(ring)}"
        )
    if distinct_vertex_count(ring) < 3:
        raise InvalidGeometry("Ring has fewer than 3 distinct vertices")


def area(ring: Sequence[Sequence[float]]) -> float:
    """Area enclosed by a closed ring in square metres.

    Spherical excess summed per vertex:
    A = R² / 2 · Σ (λ[i+1] − λ[i−1]) · sin φ[i]
    The sign depends on winding, so the absolute value is returned.
    """
    _require_ring(ring)
    pts = ring[:-1]
    n = len(pts)
    total = 0.0
    for i in range(n):
        lower = pts[i]
        middle = pts[(i + 1) % n]
        upper = pts[(i + 2) % n]
        total += (math.radians(upper[0]) - math.radians(lower[0])) * math.sin(math.radians(middle[1]))
    return abs(total * EARTH_RADIUS_M * EARTH_RADIUS_M / 2)


def perimeter(ring: Sequence[Sequence[float]]) -> float:
    """Sum of the segment lengths around a closed ring, in metres."""
    _require_ring(ring)
    return sum(distance(ring[i], ring[i + 1]) for i in range(len(ring) - 1))


def centroid(ring: Sequence[Sequence[float]]) -> Position:
    """Planar centroid of the ring in degree space, used for label placement."""
    _require_ring(ring)
    poly = Polygon(ring)
    c = poly.centroid
    if c.is_empty:
        raise InvalidGeometry("Ring encloses no area; centroid is undefined")
    return Position(c.x, c.y)


def measure(ring: Sequence[Sequence[float]]) -> tuple[float, float]:
    """Return (area m², perimeter m) for an open or closed ring."""
    closed = close_ring(ring)
    return area(closed), perimeter(closed)
