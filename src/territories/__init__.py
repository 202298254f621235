"""Territory polygons: model, persistence, editing, and geodata exchange.

Territories are named, colored polygons drawn over an OpenStreetMap base map.
Coordinates are WGS84 degrees; every format module converts to and from
its own axis order.
"""

from territories.models import LatLng, Territory
from territories.store import TerritoryStore

__all__ = ["LatLng", "Territory", "TerritoryStore"]
