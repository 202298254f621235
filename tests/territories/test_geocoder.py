"""Nominatim geocoder tests with mocked HTTP responses (no external API calls)."""

from __future__ import annotations

import asyncio
import hashlib
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from territories.errors import GeocodingError
from territories.geocoder import GeocodeResult, Geocoder


pytestmark = pytest.mark.unit

NOMINATIM = "https://nominatim.openstreetmap.org/search"

SAO_LUIS = {
    "lat": "-2.5295265",
    "lon": "-44.2963942",
    "display_name": "São Luís, Maranhão, Brasil",
    "boundingbox": ["-2.8", "-2.4", "-44.4", "-44.0"],
}


def _mock_client(json_data=None, side_effect=None):
    mock_resp = MagicMock()
    mock_resp.raise_for_status = MagicMock()
    mock_resp.json = MagicMock(return_value=json_data)

    mock_client = AsyncMock()
    if side_effect is not None:
        mock_client.get = AsyncMock(side_effect=side_effect)
    else:
        mock_client.get = AsyncMock(return_value=mock_resp)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


class TestGeocoderSearch:

    def test_first_hit(self, tmp_path):
        geocoder = Geocoder(NOMINATIM, "test-agent", cache_dir=tmp_path)
        mock_client = _mock_client([SAO_LUIS])
        with patch("territories.geocoder.httpx.AsyncClient", return_value=mock_client):
            result = asyncio.run(geocoder.search("São Luís"))

        assert result.lat == pytest.approx(-2.5295265)
        assert result.lng == pytest.approx(-44.2963942)
        assert result.display_name.startswith("São Luís")
        assert result.bbox == [-2.8, -2.4, -44.4, -44.0]

        _, kwargs = mock_client.get.call_args
        assert kwargs["params"] == {"q": "São Luís", "format": "json", "limit": 1}
        assert kwargs["headers"]["User-Agent"] == "test-agent"

    def test_result_is_cached(self, tmp_path):
        geocoder = Geocoder(NOMINATIM, "test-agent", cache_dir=tmp_path)
        mock_client = _mock_client([SAO_LUIS])
        with patch("territories.geocoder.httpx.AsyncClient", return_value=mock_client):
            asyncio.run(geocoder.search("São Luís"))
            again = asyncio.run(geocoder.search("  SÃO LUÍS "))
        assert mock_client.get.call_count == 1
        assert again.lat == pytest.approx(-2.5295265)

    def test_served_from_disk_cache(self, tmp_path):
        key = hashlib.sha256("centro".encode()).hexdigest()
        (tmp_path / f"{key}.json").write_text(json.dumps(
            {"lat": 1.0, "lng": 2.0, "display_name": "Centro", "bbox": []}
        ))
        geocoder = Geocoder(NOMINATIM, "test-agent", cache_dir=tmp_path)
        with patch("territories.geocoder.httpx.AsyncClient") as client_cls:
            result = asyncio.run(geocoder.search("Centro"))
        client_cls.assert_not_called()
        assert result == GeocodeResult(1.0, 2.0, "Centro", [])

    def test_corrupt_cache_refetches(self, tmp_path):
        key = hashlib.sha256("centro".encode()).hexdigest()
        (tmp_path / f"{key}.json").write_text("{broken")
        geocoder = Geocoder(NOMINATIM, "test-agent", cache_dir=tmp_path)
        mock_client = _mock_client([SAO_LUIS])
        with patch("territories.geocoder.httpx.AsyncClient", return_value=mock_client):
            result = asyncio.run(geocoder.search("Centro"))
        assert result.display_name.startswith("São Luís")

    def test_no_results(self, tmp_path):
        geocoder = Geocoder(NOMINATIM, "test-agent", cache_dir=tmp_path)
        with patch("territories.geocoder.httpx.AsyncClient", return_value=_mock_client([])):
            assert asyncio.run(geocoder.search("ZZZZZZZ Nonexistent")) is None
        assert list(tmp_path.iterdir()) == []

    def test_blank_query(self):
        geocoder = Geocoder(NOMINATIM, "test-agent")
        with pytest.raises(ValueError):
            asyncio.run(geocoder.search("   "))

    def test_service_down(self):
        geocoder = Geocoder(NOMINATIM, "test-agent")
        mock_client = _mock_client(side_effect=httpx.ConnectError("refused"))
        with patch("territories.geocoder.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(GeocodingError):
                asyncio.run(geocoder.search("Centro"))

    def test_unexpected_payload(self):
        geocoder = Geocoder(NOMINATIM, "test-agent")
        with patch("territories.geocoder.httpx.AsyncClient",
                   return_value=_mock_client([{"display_name": "no coords"}])):
            with pytest.raises(GeocodingError):
                asyncio.run(geocoder.search("Centro"))
