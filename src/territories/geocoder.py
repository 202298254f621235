"""City/neighborhood search through Nominatim (OpenStreetMap).

Nominatim requires a User-Agent header and allows 1 request/second, so
results are cached on disk keyed by the normalized query.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, dataclass
from pathlib import Path

import httpx
from loguru import logger

from territories.errors import GeocodingError


@dataclass
class GeocodeResult:
    """First Nominatim hit for a query."""

    lat: float
    lng: float
    display_name: str
    bbox: list[float]


class Geocoder:
    """Async Nominatim client with a disk cache."""

    def __init__(
        self,
        base_url: str,
        user_agent: str,
        cache_dir: Path | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url
        self.user_agent = user_agent
        self.cache_dir = Path(cache_dir).expanduser() if cache_dir else None
        self.timeout = timeout

    def _cache_path(self, query: str) -> Path | None:
        if self.cache_dir is None:
            return None
        key = hashlib.sha256(query.lower().encode()).hexdigest()
        return self.cache_dir / f"{key}.json"

    def _read_cache(self, query: str) -> GeocodeResult | None:
        path = self._cache_path(query)
        if path is None or not path.exists():
            return None
        try:
            return GeocodeResult(**json.loads(path.read_text()))
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Ignoring corrupt geocode cache entry {path.name}: {e}")
            return None

    def _write_cache(self, query: str, result: GeocodeResult) -> None:
        path = self._cache_path(query)
        if path is None:
            return
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(asdict(result)))
        except OSError as e:
            logger.warning(f"Could not write geocode cache: {e}")

    async def search(self, query: str) -> GeocodeResult | None:
        """Geocode a free-form place name.

        Returns:
            The first hit, or None if Nominatim found nothing.

        Raises:
            ValueError: If the query is blank.
            GeocodingError: If Nominatim is unreachable or errors.
        """
        query = (query or "").strip()
        if not query:
            raise ValueError("Search query is required")

        cached = self._read_cache(query)
        if cached is not None:
            return cached

        async with httpx.AsyncClient() as client:
            try:
                resp = await client.get(
                    self.base_url,
                    params={"q": query, "format": "json", "limit": 1},
                    headers={"User-Agent": self.user_agent},
                    timeout=self.timeout,
                )
                resp.raise_for_status()
            except httpx.HTTPError as e:
                logger.warning(f"Nominatim request failed: {e}")
                raise GeocodingError(f"Geocoding service unavailable: {e}") from e

        try:
            results = resp.json()
        except ValueError as e:
            raise GeocodingError(f"Geocoding service returned invalid JSON: {e}") from e
        if not results:
            logger.info(f"No geocoding results for '{query}'")
            return None

        hit = results[0]
        try:
            result = GeocodeResult(
                lat=float(hit["lat"]),
                lng=float(hit["lon"]),
                display_name=hit.get("display_name", query),
                bbox=[float(x) for x in hit.get("boundingbox", [])],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodingError(f"Unexpected geocoding response: {e}") from e

        self._write_cache(query, result)
        logger.info(f"Geocoded '{query}' -> {result.lat:.5f}, {result.lng:.5f}")
        return result
