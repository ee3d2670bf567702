"""Error kinds raised by the drawing and measurement engine.

None of these are fatal: callers either absorb them (skip a polygon, drop a
pointer event) or turn them into a non-blocking notice for the user.
"""

from __future__ import annotations


class RoofMapError(Exception):
    """Base class for all engine errors."""


class InsufficientVertices(RoofMapError):
    """Raised when a draft is closed with fewer than 3 points."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"A polygon needs at least 3 points, got {count}")


class InvalidGeometry(RoofMapError, ValueError):
    """Raised when a ring is malformed (not closed, too few distinct points)."""


class ProjectionUnavailable(RoofMapError):
    """Raised by a projector when the map is not ready to project yet."""

    def __str__(self) -> str:
        return "Map projection is not available yet (no viewport)."


class EditNotAllowed(RoofMapError):
    """Raised when a vertex move targets a polygon that is not open for editing."""
