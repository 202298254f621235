"""Geo endpoints — city search, map viewport, and the offline OSM tile cache.

Data sources are free and need no API keys:
- Nominatim (OpenStreetMap) for geocoding
- tile.openstreetmap.org for base map tiles
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from loguru import logger
from pydantic import BaseModel, Field, model_validator

from app.config import settings
from territories import view
from territories.errors import GeocodingError, TileUnavailable
from territories.geocoder import Geocoder
from territories.tiles import MAX_ZOOM, MIN_ZOOM, TileCache

router = APIRouter(prefix="/api/geo", tags=["geo"])

_geocoder: Optional[Geocoder] = None
_tile_cache: Optional[TileCache] = None


def get_geocoder() -> Geocoder:
    """Get or create the geocoder singleton."""
    global _geocoder
    if _geocoder is None:
        _geocoder = Geocoder(
            base_url=settings.nominatim_url,
            user_agent=settings.user_agent,
            cache_dir=settings.geocode_cache_dir,
            timeout=settings.geocode_timeout,
        )
    return _geocoder


def get_tile_cache() -> TileCache:
    """Get or create the tile cache singleton."""
    global _tile_cache
    if _tile_cache is None:
        _tile_cache = TileCache(
            cache_dir=settings.tile_cache_dir,
            url_template=settings.tile_url_template,
            subdomains=settings.tile_subdomains,
            user_agent=settings.user_agent,
            store_name=settings.tile_store,
            offline=settings.tile_offline,
            max_seed_tiles=settings.max_seed_tiles,
        )
    return _tile_cache


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------

class SearchRequest(BaseModel):
    """Search for a city or neighborhood."""
    query: str


class SearchResponse(BaseModel):
    """Geocoding result plus the viewport the map moved to."""
    lat: float
    lng: float
    display_name: str
    bbox: list[float]
    view: dict


class ViewRequest(BaseModel):
    """Move the map viewport."""
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)
    zoom: Optional[float] = Field(None, ge=MIN_ZOOM, le=MAX_ZOOM)


class SeedRequest(BaseModel):
    """Download the tiles of an area for offline use."""
    south: float = Field(..., ge=-90.0, le=90.0)
    west: float = Field(..., ge=-180.0, le=180.0)
    north: float = Field(..., ge=-90.0, le=90.0)
    east: float = Field(..., ge=-180.0, le=180.0)
    min_zoom: int = Field(12, ge=MIN_ZOOM, le=MAX_ZOOM)
    max_zoom: int = Field(16, ge=MIN_ZOOM, le=MAX_ZOOM)

    @model_validator(mode="after")
    def _check_order(self):
        if self.south > self.north or self.west > self.east:
            raise ValueError("Bounds must satisfy south <= north and west <= east")
        if self.min_zoom > self.max_zoom:
            raise ValueError("min_zoom must not exceed max_zoom")
        return self


# ---------------------------------------------------------------------------
# City search
# ---------------------------------------------------------------------------

@router.post("/search", response_model=SearchResponse)
async def search(request: SearchRequest):
    """Geocode a place name and move the map there at city zoom."""
    query = request.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Query is required")

    try:
        result = await get_geocoder().search(query)
    except GeocodingError:
        raise HTTPException(status_code=502, detail="Geocoding service unavailable")
    if result is None:
        raise HTTPException(status_code=404, detail="Place not found")

    moved = view.set_view(result.lat, result.lng, view.SEARCH_ZOOM)
    logger.info(f"Map moved to '{result.display_name}'")
    return SearchResponse(
        lat=result.lat,
        lng=result.lng,
        display_name=result.display_name,
        bbox=result.bbox,
        view=moved.to_dict(),
    )


# ---------------------------------------------------------------------------
# Viewport
# ---------------------------------------------------------------------------

@router.get("/view")
async def get_view():
    """Current map center and zoom."""
    return view.get_view().to_dict()


@router.post("/view")
async def set_view(request: ViewRequest):
    return view.set_view(request.lat, request.lng, request.zoom).to_dict()


@router.post("/view/recenter")
async def recenter():
    """Return to the configured home viewport."""
    return view.recenter().to_dict()


# ---------------------------------------------------------------------------
# OSM tiles (offline-capable)
# ---------------------------------------------------------------------------

@router.get("/tile/{z}/{x}/{y}.png")
async def get_tile(z: int, x: int, y: int):
    """Serve an OSM tile from the offline cache, fetching it on a miss."""
    cache = get_tile_cache()
    try:
        data = await cache.get_tile(z, x, y)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TileUnavailable:
        if cache.offline:
            raise HTTPException(status_code=404, detail="Tile not cached (offline mode)")
        raise HTTPException(status_code=502, detail="Tile service unavailable")

    return Response(
        content=data,
        media_type="image/png",
        headers={"Cache-Control": "public, max-age=604800"},  # 7 days
    )


@router.post("/offline/seed")
async def seed_tiles(request: SeedRequest):
    """Download this area of the map for offline use."""
    cache = get_tile_cache()
    try:
        report = await cache.seed(
            (request.south, request.west, request.north, request.east),
            request.min_zoom,
            request.max_zoom,
            concurrency=settings.seed_concurrency,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TileUnavailable as e:
        raise HTTPException(status_code=409, detail=str(e))
    return report.to_dict()


@router.get("/offline/stats")
async def offline_stats():
    """Number and size of cached tiles."""
    return get_tile_cache().stats()


@router.delete("/offline")
async def clear_offline():
    """Delete every cached tile."""
    return {"cleared": get_tile_cache().clear()}
