"""Shared fixtures for territory tests."""

from __future__ import annotations

import pytest

from territories.models import LatLng, Territory
from territories.store import TerritoryStore


@pytest.fixture
def square() -> Territory:
    """A small square near São Luís, drawn counter-clockwise, ring left open."""
    return Territory(
        territory_id="t-square",
        name="Centro",
        color=0xFF1E88E5,
        points=[
            LatLng(-2.53, -44.30),
            LatLng(-2.53, -44.29),
            LatLng(-2.52, -44.29),
            LatLng(-2.52, -44.30),
        ],
    )


@pytest.fixture
def triangle() -> Territory:
    return Territory(
        territory_id="t-triangle",
        name="Renascença & Calhau",
        color=0xFFF44336,
        points=[
            LatLng(-2.50, -44.28),
            LatLng(-2.49, -44.27),
            LatLng(-2.50, -44.26),
        ],
    )


@pytest.fixture
def sample_territories(square, triangle) -> list[Territory]:
    return [square, triangle]


@pytest.fixture
def store(tmp_path) -> TerritoryStore:
    return TerritoryStore(tmp_path / "data")
