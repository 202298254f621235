"""Unit tests for the geo router — city search, viewport, offline tiles.

Geocoder and tile cache singletons are patched; no external API calls.
"""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import ValidationError

from app.routers.geo import SeedRequest, ViewRequest, router
from territories import view
from territories.errors import GeocodingError
from territories.geocoder import GeocodeResult
from territories.tiles import TileCache


PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def _make_app():
    app = FastAPI()
    app.include_router(router)
    return app


@pytest.fixture(autouse=True)
def _reset_view():
    view.init_view(-2.5589, -44.0609, 13)
    yield
    view.init_view(-2.5589, -44.0609, 13)


@pytest.fixture
def client():
    return TestClient(_make_app())


def _geocoder(result=None, side_effect=None):
    geocoder = MagicMock()
    geocoder.search = AsyncMock(return_value=result, side_effect=side_effect)
    return geocoder


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

@pytest.mark.unit
class TestGeoModels:

    def test_view_request_zoom_optional(self):
        assert ViewRequest(lat=1.0, lng=2.0).zoom is None

    def test_view_request_bounds(self):
        with pytest.raises(ValidationError):
            ViewRequest(lat=100.0, lng=0.0)

    def test_seed_request_defaults(self):
        r = SeedRequest(south=-2.6, west=-44.4, north=-2.5, east=-44.2)
        assert (r.min_zoom, r.max_zoom) == (12, 16)

    def test_seed_request_order(self):
        with pytest.raises(ValidationError):
            SeedRequest(south=1.0, west=0.0, north=0.0, east=1.0)
        with pytest.raises(ValidationError):
            SeedRequest(south=0.0, west=0.0, north=1.0, east=1.0, min_zoom=10, max_zoom=5)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

@pytest.mark.unit
class TestSearchEndpoint:
    """POST /api/geo/search — city/neighborhood lookup."""

    def test_blank_query(self, client):
        resp = client.post("/api/geo/search", json={"query": "   "})
        assert resp.status_code == 400

    def test_found_moves_view(self, client):
        result = GeocodeResult(-2.53, -44.30, "São Luís, Maranhão", [-2.8, -2.4, -44.4, -44.0])
        with patch("app.routers.geo._geocoder", _geocoder(result)):
            resp = client.post("/api/geo/search", json={"query": "São Luís"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["display_name"] == "São Luís, Maranhão"
        assert data["view"] == {"lat": -2.53, "lng": -44.30, "zoom": view.SEARCH_ZOOM}
        assert view.get_view().zoom == view.SEARCH_ZOOM

    def test_not_found(self, client):
        with patch("app.routers.geo._geocoder", _geocoder(None)):
            resp = client.post("/api/geo/search", json={"query": "ZZZZZZZ"})
        assert resp.status_code == 404
        assert view.get_view().zoom == 13.0

    def test_service_down(self, client):
        with patch("app.routers.geo._geocoder", _geocoder(side_effect=GeocodingError("down"))):
            resp = client.post("/api/geo/search", json={"query": "Centro"})
        assert resp.status_code == 502


# ---------------------------------------------------------------------------
# Viewport
# ---------------------------------------------------------------------------

@pytest.mark.unit
class TestViewEndpoint:

    def test_get_view(self, client):
        assert client.get("/api/geo/view").json() == {"lat": -2.5589, "lng": -44.0609, "zoom": 13.0}

    def test_set_and_recenter(self, client):
        resp = client.post("/api/geo/view", json={"lat": 10.0, "lng": 20.0, "zoom": 5})
        assert resp.json() == {"lat": 10.0, "lng": 20.0, "zoom": 5.0}
        assert client.post("/api/geo/view/recenter").json()["lat"] == -2.5589

    def test_set_view_invalid(self, client):
        assert client.post("/api/geo/view", json={"lat": 0.0, "lng": 200.0}).status_code == 422


# ---------------------------------------------------------------------------
# Tiles + offline cache
# ---------------------------------------------------------------------------

@pytest.mark.unit
class TestTileEndpoints:

    def test_invalid_zoom(self, client, tmp_path):
        with patch("app.routers.geo._tile_cache", TileCache(tmp_path)):
            resp = client.get("/api/geo/tile/20/0/0.png")
        assert resp.status_code == 400
        assert "Zoom" in resp.json()["detail"]

    def test_cached_tile_served(self, client, tmp_path):
        cache = TileCache(tmp_path, offline=True)
        path = cache.tile_path(10, 371, 510)
        path.parent.mkdir(parents=True)
        path.write_bytes(PNG)
        with patch("app.routers.geo._tile_cache", cache):
            resp = client.get("/api/geo/tile/10/371/510.png")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/png"
        assert resp.content == PNG

    def test_offline_miss(self, client, tmp_path):
        with patch("app.routers.geo._tile_cache", TileCache(tmp_path, offline=True)):
            resp = client.get("/api/geo/tile/10/371/510.png")
        assert resp.status_code == 404

    def test_fetch_failure(self, client, tmp_path):
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(side_effect=httpx.ConnectError("down"))
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=False)
        with patch("app.routers.geo._tile_cache", TileCache(tmp_path)), \
             patch("territories.tiles.httpx.AsyncClient", return_value=mock_client):
            resp = client.get("/api/geo/tile/10/371/510.png")
        assert resp.status_code == 502

    def test_seed_offline_conflict(self, client, tmp_path):
        with patch("app.routers.geo._tile_cache", TileCache(tmp_path, offline=True)):
            resp = client.post("/api/geo/offline/seed", json={
                "south": -2.535, "west": -44.305, "north": -2.525, "east": -44.295,
                "min_zoom": 12, "max_zoom": 12,
            })
        assert resp.status_code == 409

    def test_seed_too_large(self, client, tmp_path):
        with patch("app.routers.geo._tile_cache", TileCache(tmp_path, max_seed_tiles=1)):
            resp = client.post("/api/geo/offline/seed", json={
                "south": -10.0, "west": -50.0, "north": 0.0, "east": -40.0,
                "min_zoom": 8, "max_zoom": 10,
            })
        assert resp.status_code == 400

    def test_seed_report(self, client, tmp_path):
        cache = TileCache(tmp_path)
        report = MagicMock()
        report.to_dict.return_value = {"total": 2, "downloaded": 2, "cached": 0, "failed": 0}
        with patch("app.routers.geo._tile_cache", cache), \
             patch.object(cache, "seed", AsyncMock(return_value=report)) as seed:
            resp = client.post("/api/geo/offline/seed", json={
                "south": -2.535, "west": -44.305, "north": -2.525, "east": -44.295,
            })
        assert resp.status_code == 200
        assert resp.json()["downloaded"] == 2
        args, _ = seed.call_args
        assert args[1:] == (12, 16)

    def test_stats_and_clear(self, client, tmp_path):
        cache = TileCache(tmp_path)
        path = cache.tile_path(1, 0, 0)
        path.parent.mkdir(parents=True)
        path.write_bytes(PNG)
        with patch("app.routers.geo._tile_cache", cache):
            stats = client.get("/api/geo/offline/stats").json()
            assert stats["tiles"] == 1
            assert client.delete("/api/geo/offline").json() == {"cleared": 1}
            assert client.get("/api/geo/offline/stats").json()["tiles"] == 0
