"""Territory API endpoints — CRUD, palette, and geodata import/export."""

from pathlib import Path
from typing import Optional, Union

from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from loguru import logger
from pydantic import BaseModel, Field

from app.config import settings
from territories import view
from territories.colors import PALETTE, argb_to_hex
from territories.errors import FormatError
from territories.formats import default_filename, detect_format, export_as, get_format, parse_as
from territories.models import DEFAULT_COLOR, LatLng, Territory
from territories.store import TerritoryStore

router = APIRouter(prefix="/api/territories", tags=["territories"])

_store: Optional[TerritoryStore] = None


def get_store() -> TerritoryStore:
    """Get or create the territory store singleton."""
    global _store
    if _store is None:
        _store = TerritoryStore(Path(settings.data_dir))
    return _store


# ==================
# Request/Response Models
# ==================

class PointModel(BaseModel):
    """A vertex in decimal degrees."""
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class CreateTerritoryRequest(BaseModel):
    """Request to create a territory."""
    name: str
    color: Union[int, str] = DEFAULT_COLOR  # ARGB int or "#RRGGBB"
    points: list[PointModel]


class UpdateTerritoryRequest(BaseModel):
    """Request to update a territory."""
    name: Optional[str] = None
    color: Optional[Union[int, str]] = None
    points: Optional[list[PointModel]] = None


class TerritoryResponse(BaseModel):
    """Territory response model."""
    id: str
    name: str
    color: int
    color_hex: str
    points: list[PointModel]
    centroid: Optional[PointModel]


def _to_points(points: list[PointModel]) -> list[LatLng]:
    return [LatLng(p.lat, p.lng) for p in points]


def _territory_to_response(territory: Territory) -> TerritoryResponse:
    centroid = territory.centroid() if territory.points else None
    return TerritoryResponse(
        id=territory.territory_id,
        name=territory.name,
        color=territory.color,
        color_hex=argb_to_hex(territory.color),
        points=[PointModel(lat=p.lat, lng=p.lng) for p in territory.points],
        centroid=PointModel(lat=centroid.lat, lng=centroid.lng) if centroid else None,
    )


# ==================
# Palette + Import/Export
# ==================

@router.get("/palette")
async def get_palette():
    """Colors offered when naming a new territory."""
    return [{"color": c, "hex": argb_to_hex(c)} for c in PALETTE]


@router.get("/export/{fmt}")
async def export_territories(fmt: str):
    """Download all territories as GeoJSON, KML, KMZ, WKT or GPX."""
    try:
        geo_format = get_format(fmt)
    except FormatError as e:
        raise HTTPException(status_code=400, detail=str(e))

    territories = get_store().list()
    payload = export_as(territories, geo_format.name)
    filename = default_filename(geo_format.name)
    logger.info(f"Exported {len(territories)} territories as {geo_format.name}")
    return Response(
        content=payload,
        media_type=geo_format.media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import")
async def import_territories(
    file: UploadFile = File(...),
    format: Optional[str] = Query(None, description="Override format detection"),
):
    """Import territories from an uploaded file and append them."""
    try:
        fmt = format or detect_format(file.filename or "")
        imported = parse_as(await file.read(), fmt)
    except FormatError as e:
        raise HTTPException(status_code=400, detail=str(e))

    count = get_store().extend(imported)
    logger.info(f"Imported {count} territories from {file.filename} ({fmt})")
    return {"imported": count, "format": fmt}


# ==================
# Territory CRUD Endpoints
# ==================

@router.get("/", response_model=list[TerritoryResponse])
async def list_territories():
    """List all territories."""
    return [_territory_to_response(t) for t in get_store().list()]


@router.post("/", response_model=TerritoryResponse, status_code=201)
async def create_territory(request: CreateTerritoryRequest):
    """Create a territory from a name, a color and at least 3 points."""
    try:
        territory = get_store().create(
            name=request.name,
            color=request.color,
            points=_to_points(request.points),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _territory_to_response(territory)


@router.get("/{territory_id}", response_model=TerritoryResponse)
async def get_territory(territory_id: str):
    """Get a specific territory."""
    territory = get_store().get(territory_id)
    if territory is None:
        raise HTTPException(status_code=404, detail="Territory not found")
    return _territory_to_response(territory)


@router.patch("/{territory_id}", response_model=TerritoryResponse)
async def update_territory(territory_id: str, request: UpdateTerritoryRequest):
    """Rename, recolor, or reshape a territory."""
    try:
        territory = get_store().update(
            territory_id,
            name=request.name,
            color=request.color,
            points=_to_points(request.points) if request.points is not None else None,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if territory is None:
        raise HTTPException(status_code=404, detail="Territory not found")
    return _territory_to_response(territory)


@router.delete("/{territory_id}")
async def delete_territory(territory_id: str):
    """Delete a territory."""
    if not get_store().delete(territory_id):
        raise HTTPException(status_code=404, detail="Territory not found")
    return {"status": "deleted", "id": territory_id}


@router.get("/{territory_id}/centroid", response_model=PointModel)
async def get_centroid(territory_id: str):
    """Label anchor for a territory."""
    territory = get_store().get(territory_id)
    if territory is None:
        raise HTTPException(status_code=404, detail="Territory not found")
    c = territory.centroid()
    return PointModel(lat=c.lat, lng=c.lng)


@router.post("/{territory_id}/zoom")
async def zoom_to_territory(territory_id: str):
    """Move the map view onto a territory."""
    territory = get_store().get(territory_id)
    if territory is None:
        raise HTTPException(status_code=404, detail="Territory not found")
    return view.zoom_to(territory).to_dict()
