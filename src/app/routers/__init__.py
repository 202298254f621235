"""API routers for Territory Mapper."""

from app.routers.editor import router as editor_router
from app.routers.geo import router as geo_router
from app.routers.territories import router as territories_router

__all__ = ["editor_router", "geo_router", "territories_router"]
