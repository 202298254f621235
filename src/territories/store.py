"""Territory store: CRUD over a JSON file on disk."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from territories.colors import parse_color
from territories.models import MIN_POINTS, LatLng, Territory, new_territory_id


class TerritoryStore:
    """Keeps the territory list in memory and mirrors it to territories.json."""

    def __init__(self, storage_path: Path):
        """Initialize the store.

        Args:
            storage_path: Directory holding territories.json
        """
        self.storage_path = Path(storage_path)
        self.storage_path.mkdir(parents=True, exist_ok=True)

        self.territories_file = self.storage_path / "territories.json"

        # dicts keep insertion order, which is also the drawing order
        self._territories: dict[str, Territory] = {}
        self._load()

    def _load(self):
        """Load territories from disk."""
        if not self.territories_file.exists():
            return
        try:
            with open(self.territories_file, encoding="utf-8") as f:
                data = json.load(f)
            self._territories = {}
            for item in data:
                territory = Territory.from_dict(item)
                self._territories[territory.territory_id] = territory
            logger.info(f"Loaded {len(self._territories)} territories")
        except Exception as e:
            logger.error(f"Failed to load territories: {e}")
            self._territories = {}

    def _save(self):
        """Save territories to disk."""
        with open(self.territories_file, "w", encoding="utf-8") as f:
            json.dump([t.to_dict() for t in self._territories.values()], f, indent=2)

    # ==================
    # Queries
    # ==================

    def list(self) -> list[Territory]:
        """Get all territories in insertion order."""
        return list(self._territories.values())

    def get(self, territory_id: str) -> Optional[Territory]:
        """Get a territory by ID."""
        return self._territories.get(territory_id)

    def __len__(self) -> int:
        return len(self._territories)

    # ==================
    # Mutations
    # ==================

    def create(self, name: str, color, points: list[LatLng]) -> Territory:
        """Create a new territory.

        Args:
            name: Display name (must not be blank)
            color: ARGB int or any color accepted by parse_color
            points: At least three vertices

        Returns:
            Created Territory
        """
        name = _validate_name(name)
        _validate_points(points)

        territory = Territory(
            territory_id=new_territory_id(),
            name=name,
            color=parse_color(color),
            points=list(points),
        )
        self._territories[territory.territory_id] = territory
        self._save()

        logger.info(f"Created territory '{name}' with {len(points)} points")
        return territory

    def update(
        self,
        territory_id: str,
        name: Optional[str] = None,
        color=None,
        points: Optional[list[LatLng]] = None,
    ) -> Optional[Territory]:
        """Update a territory in place. Returns None if the ID is unknown."""
        territory = self._territories.get(territory_id)
        if territory is None:
            return None

        # Validate everything before touching the territory
        new_name = _validate_name(name) if name is not None else territory.name
        new_color = parse_color(color, territory.color) if color is not None else territory.color
        if points is not None:
            _validate_points(points)
            new_points = list(points)
        else:
            new_points = territory.points

        territory.name = new_name
        territory.color = new_color
        territory.points = new_points

        self._save()
        logger.info(f"Updated territory '{territory.name}' ({territory_id})")
        return territory

    def delete(self, territory_id: str) -> bool:
        """Delete a territory. Returns False if it didn't exist."""
        territory = self._territories.pop(territory_id, None)
        if territory is None:
            return False
        self._save()
        logger.info(f"Deleted territory '{territory.name}' ({territory_id})")
        return True

    def extend(self, territories: Iterable[Territory]) -> int:
        """Append imported territories. An existing ID is replaced in place.

        Returns:
            Number of territories added or replaced
        """
        count = 0
        for territory in territories:
            self._territories[territory.territory_id] = territory
            count += 1
        if count:
            self._save()
            logger.info(f"Imported {count} territories")
        return count

    def clear(self):
        """Remove every territory."""
        self._territories.clear()
        self._save()
        logger.info("Cleared all territories")


def _validate_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError("Territory name is required")
    if any(ord(ch) < 32 or ord(ch) == 127 for ch in name):
        raise ValueError("Territory name must be a single line without control characters")
    return name


def _validate_points(points: list[LatLng]):
    if len(points) < MIN_POINTS:
        raise ValueError(f"Minimum of {MIN_POINTS} points.")
