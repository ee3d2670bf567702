"""Roof outline validation before a draft is committed.

Catches bad rings (too few points, NaN, collapsed or self-crossing
outlines) and reports them as issues instead of letting them reach the
measurement store.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, auto

from shapely.geometry import Polygon
from shapely.validation import explain_validity

from roofmap.core.geometry.geomath import distance, is_closed


class ValidationSeverity(Enum):
    ERROR = auto()    # blocks commit
    WARNING = auto()  # commit proceeds, user is told
    INFO = auto()


@dataclass
class GeometryIssue:
    severity: ValidationSeverity
    code: str
    message: str
    location: tuple[float, float] | None = None


@dataclass
class ValidationResult:
    issues: list[GeometryIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not any(i.severity == ValidationSeverity.ERROR for i in self.issues)

    @property
    def errors(self) -> list[GeometryIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    @property
    def warnings(self) -> list[GeometryIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]


def validate_ring(
    points: list[tuple[float, float]],
    min_edge_m: float = 0.1,
) -> ValidationResult:
    """Check an open or closed ring of (lng, lat) positions."""
    result = ValidationResult()
    issues = result.issues

    body = list(points[:-1]) if is_closed(points) else list(points)

    if len(body) < 3:
        issues.append(GeometryIssue(
            ValidationSeverity.ERROR,
            "TOO_FEW_POINTS",
            f"Need at least 3 points for a polygon, got {len(body)}",
        ))
        return result

    for i, (lng, lat) in enumerate(body):
        if not (math.isfinite(lng) and math.isfinite(lat)):
            issues.append(GeometryIssue(
                ValidationSeverity.ERROR,
                "NON_FINITE_COORD",
                f"Point {i} has non-finite coordinate ({lng}, {lat})",
            ))
    if not result.valid:
        return result

    closed = body + [body[0]]
    for i in range(len(closed) - 1):
        if tuple(closed[i]) == tuple(closed[i + 1]):
            issues.append(GeometryIssue(
                ValidationSeverity.WARNING,
                "CONSECUTIVE_DUPLICATE",
                f"Points {i} and {(i + 1) % len(body)} are identical",
                location=tuple(closed[i]),
            ))

    unique = _deduplicate_consecutive(body)
    if len(unique) < 3:
        issues.append(GeometryIssue(
            ValidationSeverity.ERROR,
            "DEGENERATE_AFTER_DEDUP",
            f"Only {len(unique)} distinct consecutive points, cannot form a polygon",
        ))
        return result

    if _all_collinear(unique):
        issues.append(GeometryIssue(
            ValidationSeverity.ERROR,
            "ALL_COLLINEAR",
            "All points are collinear, the outline would have zero area",
        ))
        return result

    for i in range(len(closed) - 1):
        d = distance(closed[i], closed[i + 1])
        if 0 < d < min_edge_m:
            issues.append(GeometryIssue(
                ValidationSeverity.WARNING,
                "MICRO_EDGE",
                f"Edge {i} is only {d:.3f} m long",
                location=tuple(closed[i]),
            ))

    poly = Polygon(unique)
    if not poly.is_valid:
        issues.append(GeometryIssue(
            ValidationSeverity.WARNING,
            "SELF_INTERSECTION",
            f"Outline is not simple: {explain_validity(poly)}",
        ))

    return result


# ── Helpers ─────────────────────────────────────────────────────────────

def _deduplicate_consecutive(coords: list[tuple[float, float]]) -> list[tuple[float, float]]:
    if not coords:
        return []
    result = [tuple(coords[0])]
    for c in coords[1:]:
        if tuple(c) != result[-1]:
            result.append(tuple(c))
    if len(result) > 1 and result[0] == result[-1]:
        result.pop()
    return result


def _all_collinear(points: list[tuple[float, float]]) -> bool:
    """Check if all points lie on a single line using the cross product."""
    x0, y0 = points[0]
    x1, y1 = points[1]
    for x2, y2 in points[2:]:
        cross = (x1 - x0) * (y2 - y0) - (y1 - y0) * (x2 - x0)
        if abs(cross) > 1e-14:
            return False
    return True
