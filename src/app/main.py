"""Territory Mapper — draw, name, color, and export territories on OSM maps.

Main FastAPI application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.config import settings
from app.routers.editor import router as editor_router
from app.routers.geo import get_tile_cache, router as geo_router
from app.routers.territories import get_store, router as territories_router
from territories import view

VERSION = "1.0.0"


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("=" * 60)
    logger.info(f"  {settings.app_name.upper()} v{VERSION} - INITIALIZING")
    logger.info("=" * 60)

    store = get_store()
    logger.info(f"Territories: {len(store)} loaded from {store.territories_file}")

    ref = view.init_view(settings.map_center_lat, settings.map_center_lng, settings.map_zoom)
    logger.info(f"Home view: {ref.center.lat:.5f}, {ref.center.lng:.5f} @ z{ref.zoom:g}")

    tiles = get_tile_cache()
    mode = "offline" if tiles.offline else "online"
    logger.info(f"Tile store '{settings.tile_store}' at {tiles.root} ({mode})")

    logger.info("=" * 60)
    logger.info(f"  {settings.app_name.upper()} ONLINE")
    logger.info("=" * 60)

    yield

    logger.info(f"{settings.app_name} shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Territory Mapper",
    description="Draw, name, color, edit and export territory polygons over OpenStreetMap",
    version=VERSION,
    lifespan=lifespan,
)

# CORS middleware (the map front end may be served from another origin)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(territories_router)
app.include_router(editor_router)
app.include_router(geo_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "operational",
        "version": VERSION,
        "system": settings.app_name,
    }


@app.get("/api/status")
async def status():
    """System status endpoint."""
    tiles = get_tile_cache()
    return {
        "name": settings.app_name,
        "version": VERSION,
        "territories": len(get_store()),
        "data_dir": str(settings.data_dir),
        "tile_store": settings.tile_store,
        "offline": tiles.offline,
    }
