"""Pydantic schemas for API request/response validation."""

from __future__ import annotations

import math
from typing import Optional

from pydantic import BaseModel, field_validator


def _finite_pair(v: list[float]) -> list[float]:
    if len(v) != 2:
        raise ValueError("Coordinate must be [x, y]")
    if not all(math.isfinite(c) for c in v):
        raise ValueError("Coordinate must be a finite number")
    return v


class PolygonInput(BaseModel):
    id: str
    ring: list[list[float]]  # [[lng, lat], ...], open or closed

    @field_validator("ring")
    @classmethod
    def ring_coords_valid(cls, v: list[list[float]]) -> list[list[float]]:
        return [_finite_pair(p) for p in v]


class MeasureRequest(BaseModel):
    polygons: list[PolygonInput]
    unit: str = "m"
    rotate_labels: bool = True


class MeasureResponse(BaseModel):
    measurements: list[dict]
    skipped: list[str] = []
    edge_labels: dict
    area_labels: dict


class ViewportInput(BaseModel):
    center: list[float]  # [lng, lat]
    zoom: float
    width: float
    height: float

    @field_validator("center")
    @classmethod
    def center_valid(cls, v: list[float]) -> list[float]:
        return _finite_pair(v)

    @field_validator("width", "height")
    @classmethod
    def positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Viewport size must be positive")
        return v


class PointerInput(BaseModel):
    screen: list[float]  # [x, y] pixels
    lng_lat: list[float]

    @field_validator("screen", "lng_lat")
    @classmethod
    def pair_valid(cls, v: list[float]) -> list[float]:
        return _finite_pair(v)


class ModeRequest(BaseModel):
    mode: Optional[str] = None

    @field_validator("mode")
    @classmethod
    def known_mode(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in {"draw", "edit", "delete", "measure"}:
            raise ValueError(f"Unknown mode '{v}'")
        return v


class SelectRequest(BaseModel):
    polygon_id: Optional[str] = None


class VertexDragRequest(BaseModel):
    lng_lat: list[float]
    vertex_index: Optional[int] = None
    handle_id: Optional[str] = None
    polygon_id: Optional[str] = None

    @field_validator("lng_lat")
    @classmethod
    def pair_valid(cls, v: list[float]) -> list[float]:
        return _finite_pair(v)
