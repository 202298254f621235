"""Territory and LatLng dataclasses.

Points are stored open: the first vertex is not repeated at the end.
Exporters close the ring with Territory.ring() when their format needs it.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

DEFAULT_COLOR = 0xFF1E88E5
DEFAULT_NAME = "Unnamed"
MIN_POINTS = 3


@dataclass(frozen=True)
class LatLng:
    """A WGS84 position in decimal degrees."""

    lat: float
    lng: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: dict) -> "LatLng":
        return cls(lat=float(data["lat"]), lng=float(data["lng"]))


def new_territory_id() -> str:
    """Return a fresh territory id (UUID4)."""
    return str(uuid.uuid4())


@dataclass
class Territory:
    """A named, colored polygon.

    Attributes:
        territory_id: Unique identifier (UUID4 string for territories drawn here,
            whatever the source carried for imported ones).
        name: Display name.
        color: 32-bit ARGB color value.
        points: Polygon vertices in drawing order, ring left open.
    """

    territory_id: str
    name: str
    color: int = DEFAULT_COLOR
    points: list[LatLng] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """True if the polygon has enough vertices to be exported."""
        return len(self.points) >= MIN_POINTS

    def ring(self) -> list[LatLng]:
        """Return the vertices as a closed ring."""
        return close_ring(self.points)

    def centroid(self) -> LatLng:
        """Mean of the vertices; used to place labels and zoom to the polygon."""
        if not self.points:
            raise ValueError(f"Territory {self.territory_id} has no points")
        n = len(self.points)
        return LatLng(
            lat=sum(p.lat for p in self.points) / n,
            lng=sum(p.lng for p in self.points) / n,
        )

    def bounds(self) -> tuple[float, float, float, float]:
        """Return (south, west, north, east)."""
        if not self.points:
            raise ValueError(f"Territory {self.territory_id} has no points")
        lats = [p.lat for p in self.points]
        lngs = [p.lng for p in self.points]
        return (min(lats), min(lngs), max(lats), max(lngs))

    def to_dict(self) -> dict:
        return {
            "id": self.territory_id,
            "name": self.name,
            "color": self.color,
            "points": [p.to_dict() for p in self.points],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Territory":
        return cls(
            territory_id=str(data["id"]),
            name=data["name"],
            color=int(data["color"]),
            points=[LatLng.from_dict(p) for p in data.get("points", [])],
        )


def close_ring(points: list[LatLng]) -> list[LatLng]:
    """Return a copy of points with the first vertex appended if it isn't already last."""
    ring = list(points)
    if ring and ring[0] != ring[-1]:
        ring.append(ring[0])
    return ring


def open_ring(points: list[LatLng]) -> list[LatLng]:
    """Drop the closing vertex that most formats repeat at the end of a ring."""
    ring = list(points)
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring.pop()
    return ring
