"""Drawing session API endpoints — desktop single-session."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from roofmap.config import settings
from roofmap.core.drawing.snap import PointerEvent, ScreenPoint
from roofmap.core.errors import EditNotAllowed
from roofmap.core.geometry.geomath import Position
from roofmap.core.session.session import RoofSession
from roofmap.models.schemas import (
    ModeRequest,
    PointerInput,
    SelectRequest,
    VertexDragRequest,
    ViewportInput,
)
from roofmap.models.viewport import MercatorViewport

router = APIRouter(prefix="/session", tags=["session"])

# Desktop-only: one drawing session per process.
_session = RoofSession.from_settings(settings)


def _event(req: PointerInput) -> PointerEvent:
    return PointerEvent(screen=ScreenPoint(*req.screen), position=Position(*req.lng_lat))


@router.get("/state")
async def session_state():
    return _session.snapshot()


@router.post("/viewport")
async def set_viewport(req: ViewportInput):
    """Map pan/zoom: updates the projection and imagery visibility."""
    decision = _session.set_viewport(MercatorViewport(
        center=Position(*req.center),
        zoom=req.zoom,
        width=req.width,
        height=req.height,
    ))
    state = _session.snapshot()
    state["visibility"] = decision.to_dict() if decision is not None else None
    return state


@router.post("/mode")
async def set_mode(req: ModeRequest):
    _session.set_mode(req.mode)
    return _session.snapshot()


@router.post("/click")
async def click(req: PointerInput):
    _session.click(_event(req))
    return _session.snapshot()


@router.post("/contextmenu")
async def contextmenu(req: PointerInput):
    _session.secondary_click(_event(req))
    return _session.snapshot()


@router.post("/move")
async def move(req: PointerInput):
    _session.move(_event(req))
    return _session.snapshot()


@router.post("/cancel")
async def cancel():
    _session.cancel_draft()
    return _session.snapshot()


@router.post("/select")
async def select(req: SelectRequest):
    try:
        _session.select(req.polygon_id)
    except KeyError as e:
        raise HTTPException(404, detail=str(e))
    return _session.snapshot()


@router.post("/vertex")
async def drag_vertex(req: VertexDragRequest):
    """Apply a finished vertex drag, by handle id or by vertex index."""
    try:
        if req.handle_id is not None:
            _session.drag_handle(req.handle_id, req.lng_lat)
        elif req.vertex_index is not None:
            _session.drag_vertex(req.vertex_index, req.lng_lat, req.polygon_id)
        else:
            raise HTTPException(422, detail="Either handle_id or vertex_index is required")
    except KeyError as e:
        raise HTTPException(404, detail=str(e))
    except IndexError as e:
        raise HTTPException(422, detail=str(e))
    except EditNotAllowed as e:
        raise HTTPException(409, detail=str(e))
    return _session.snapshot()


@router.delete("/polygons/{polygon_id}")
async def delete_polygon(polygon_id: str):
    try:
        _session.delete(polygon_id)
    except KeyError as e:
        raise HTTPException(404, detail=str(e))
    return _session.snapshot()


@router.delete("/polygons")
async def delete_selected_or_all():
    """Delete the selected polygon, or every polygon when nothing is selected."""
    _session.delete()
    return _session.snapshot()


@router.post("/reset")
async def reset():
    _session.reset()
    return _session.snapshot()
