"""Which satellite imagery layer to show for the current viewport."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RegionBounds:
    north: float
    south: float
    east: float
    west: float

    def contains(self, lng: float, lat: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lng <= self.east


@dataclass(frozen=True)
class VisibilityDecision:
    regional_visible: bool
    fallback_visible: bool
    message: str = ""
    warn: bool = False  # True only the first time the viewport leaves the region

    def to_dict(self) -> dict:
        return {
            "regional_visible": self.regional_visible,
            "fallback_visible": self.fallback_visible,
            "message": self.message,
            "warn": self.warn,
        }


class ImageryVisibility:
    """Regional imagery inside the region, fallback imagery elsewhere, none when zoomed out."""

    def __init__(self, region: RegionBounds, region_name: str, min_zoom: float = 15.0) -> None:
        self.region = region
        self.region_name = region_name
        self.min_zoom = min_zoom
        self._warned_outside = False

    def evaluate(self, lng: float, lat: float, zoom: float) -> VisibilityDecision:
        if zoom < self.min_zoom:
            return VisibilityDecision(False, False, "Zoom in to see satellite imagery.")
        if self.region.contains(lng, lat):
            return VisibilityDecision(True, False)

        warn = not self._warned_outside
        self._warned_outside = True
        return VisibilityDecision(
            False,
            True,
            f"Outside {self.region_name}: showing fallback satellite imagery.",
            warn=warn,
        )
