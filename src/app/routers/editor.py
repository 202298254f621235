"""Draw/edit session endpoints.

The map front end calls these as the user taps: start drawing, add
vertices, finish with a name and color; or select a territory, move its
vertices, and apply or delete.
"""

from typing import Optional, Union

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from app.routers.territories import PointModel, get_store
from territories.editor import EditSession
from territories.errors import EditorError
from territories.models import DEFAULT_COLOR, LatLng

router = APIRouter(prefix="/api/editor", tags=["editor"])

_session: Optional[EditSession] = None


def get_session() -> EditSession:
    """Get or create the edit session singleton."""
    global _session
    if _session is None:
        _session = EditSession(get_store())
    return _session


class FinishRequest(BaseModel):
    """Name and color for the polygon being drawn."""
    name: str
    color: Union[int, str] = DEFAULT_COLOR


def _editor_error(e: EditorError) -> HTTPException:
    return HTTPException(status_code=409, detail=str(e))


@router.get("/")
async def get_editor_state():
    """Current mode, draft vertices and selection."""
    return get_session().snapshot()


@router.post("/draw")
async def start_drawing():
    session = get_session()
    session.start_drawing()
    return session.snapshot()


@router.post("/point")
async def add_point(point: PointModel):
    """Append a tapped vertex to the draft."""
    session = get_session()
    try:
        session.add_point(LatLng(point.lat, point.lng))
    except EditorError as e:
        raise _editor_error(e)
    return session.snapshot()


@router.post("/cancel")
async def cancel():
    session = get_session()
    session.cancel()
    return session.snapshot()


@router.post("/finish")
async def finish(request: FinishRequest):
    """Save the draft as a new territory."""
    try:
        territory = get_session().finish(request.name, request.color)
    except EditorError as e:
        raise _editor_error(e)
    return territory.to_dict()


@router.post("/select/{territory_id}")
async def select_for_edit(territory_id: str):
    session = get_session()
    if not session.select_for_edit(territory_id):
        raise HTTPException(status_code=404, detail="Territory not found")
    return session.snapshot()


@router.post("/vertex/{index}")
async def move_vertex(index: int, point: PointModel):
    """Move one vertex of the territory being edited."""
    session = get_session()
    try:
        session.move_vertex(index, LatLng(point.lat, point.lng))
    except EditorError as e:
        raise _editor_error(e)
    return session.snapshot()


@router.post("/apply")
async def apply_edit():
    try:
        territory = get_session().apply_edit()
    except EditorError as e:
        raise _editor_error(e)
    return territory.to_dict()


@router.post("/delete")
async def delete_selected():
    try:
        territory_id = get_session().delete_selected()
    except EditorError as e:
        raise _editor_error(e)
    return {"status": "deleted", "id": territory_id}
