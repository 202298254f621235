"""Draw/edit session for the map screen.

The session moves between three modes:

    none ──start_drawing──▶ drawing ──finish──▶ none
      │                        └────cancel────▶ none
      └──select_for_edit──▶ editing ──apply_edit / delete_selected / cancel──▶ none

While drawing, map taps append vertices to the draft. While editing, the
draft is a copy of the selected territory's vertices that can be moved one
at a time; nothing is written to the store until apply_edit().
"""

from __future__ import annotations

from enum import Enum

from loguru import logger

from territories.errors import EditorError
from territories.models import MIN_POINTS, LatLng, Territory
from territories.store import TerritoryStore


class EditMode(str, Enum):
    """Current interaction mode of the map screen."""
    NONE = "none"
    DRAWING = "drawing"
    EDITING = "editing"


class EditSession:
    """Holds the draft polygon and the territory selected for editing."""

    def __init__(self, store: TerritoryStore) -> None:
        self.store = store
        self.mode = EditMode.NONE
        self.draft: list[LatLng] = []
        self.selected_id: str | None = None

    def _reset(self) -> None:
        self.mode = EditMode.NONE
        self.draft = []
        self.selected_id = None

    def start_drawing(self) -> None:
        """Begin a new polygon, discarding any draft or selection."""
        self.mode = EditMode.DRAWING
        self.draft = []
        self.selected_id = None

    def add_point(self, point: LatLng) -> int:
        """Append a vertex to the draft. Returns the new vertex count."""
        if self.mode is not EditMode.DRAWING:
            raise EditorError("Not drawing; start a new territory first.")
        self.draft.append(point)
        return len(self.draft)

    def cancel(self) -> None:
        """Drop the draft and leave drawing/editing mode."""
        self._reset()

    def finish(self, name: str, color) -> Territory:
        """Save the draft as a new territory and return it."""
        if self.mode is not EditMode.DRAWING:
            raise EditorError("Not drawing; nothing to finish.")
        if len(self.draft) < MIN_POINTS:
            raise EditorError(f"Minimum of {MIN_POINTS} points.")
        if not (name or "").strip():
            raise EditorError("A name is required.")

        try:
            territory = self.store.create(name, color, self.draft)
        except ValueError as e:
            raise EditorError(str(e)) from e
        self._reset()
        return territory

    def select_for_edit(self, territory_id: str) -> bool:
        """Load a territory's vertices into the draft. False if the ID is unknown."""
        territory = self.store.get(territory_id)
        if territory is None:
            return False
        self.selected_id = territory_id
        self.mode = EditMode.EDITING
        self.draft = list(territory.points)
        return True

    def move_vertex(self, index: int, point: LatLng) -> None:
        """Replace one vertex of the draft being edited."""
        if self.mode is not EditMode.EDITING:
            raise EditorError("No territory selected for editing.")
        if not 0 <= index < len(self.draft):
            raise EditorError(f"Vertex index {index} out of range (0-{len(self.draft) - 1}).")
        self.draft[index] = point

    def apply_edit(self) -> Territory:
        """Write the edited vertices back, keeping name and color."""
        if self.mode is not EditMode.EDITING or self.selected_id is None:
            raise EditorError("No territory selected for editing.")
        if len(self.draft) < MIN_POINTS:
            raise EditorError(f"Minimum of {MIN_POINTS} points.")

        territory = self.store.update(self.selected_id, points=self.draft)
        if territory is None:
            self._reset()
            raise EditorError("The selected territory no longer exists.")
        self._reset()
        return territory

    def delete_selected(self) -> str:
        """Delete the territory being edited. Returns its ID."""
        if self.selected_id is None:
            raise EditorError("No territory selected.")
        territory_id = self.selected_id
        self.store.delete(territory_id)
        logger.info(f"Editor deleted territory {territory_id}")
        self._reset()
        return territory_id

    def snapshot(self) -> dict:
        """Serializable view of the session."""
        return {
            "mode": self.mode.value,
            "selected_id": self.selected_id,
            "draft": [p.to_dict() for p in self.draft],
            "can_finish": self.mode is not EditMode.NONE and len(self.draft) >= MIN_POINTS,
        }
