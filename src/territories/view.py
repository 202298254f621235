"""Map viewport — the center and zoom the map screen is showing.

The home viewport comes from config at startup; city search and "zoom to
territory" move the current viewport without touching the home.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from territories.models import LatLng, Territory

MIN_ZOOM = 0
MAX_ZOOM = 19

SEARCH_ZOOM = 12.0
TERRITORY_ZOOM = 16.0


@dataclass
class MapView:
    """A map center and zoom level."""

    center: LatLng
    zoom: float

    def to_dict(self) -> dict:
        return {"lat": self.center.lat, "lng": self.center.lng, "zoom": self.zoom}


# Module-level singletons, set once at startup and read from any thread.
_home = MapView(LatLng(-2.5589, -44.0609), 13.0)
_view = MapView(_home.center, _home.zoom)
_lock = threading.Lock()


def _clamp_zoom(zoom: float) -> float:
    return max(float(MIN_ZOOM), min(float(MAX_ZOOM), float(zoom)))


def init_view(lat: float, lng: float, zoom: float) -> MapView:
    """Set the home viewport and jump to it."""
    global _home, _view
    with _lock:
        _home = MapView(LatLng(lat, lng), _clamp_zoom(zoom))
        _view = MapView(_home.center, _home.zoom)
    return _view


def get_view() -> MapView:
    """Return the current viewport."""
    return _view


def set_view(lat: float, lng: float, zoom: float | None = None) -> MapView:
    """Move the viewport. Zoom is kept if not given."""
    global _view
    if not -90.0 <= lat <= 90.0 or not -180.0 <= lng <= 180.0:
        raise ValueError(f"Invalid coordinates: {lat}, {lng}")
    with _lock:
        _view = MapView(LatLng(lat, lng), _clamp_zoom(_view.zoom if zoom is None else zoom))
    return _view


def recenter() -> MapView:
    """Return to the home viewport."""
    global _view
    with _lock:
        _view = MapView(_home.center, _home.zoom)
    return _view


def zoom_to(territory: Territory) -> MapView:
    """Center the viewport on a territory."""
    c = territory.centroid()
    return set_view(c.lat, c.lng, TERRITORY_ZOOM)
