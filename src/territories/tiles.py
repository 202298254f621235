"""Offline OpenStreetMap tile cache.

Tiles live on disk at <cache_dir>/<store_name>/{z}/{x}/{y}.png. A request
is served from disk when the tile is there; otherwise it is fetched from
the tile server, stored, and returned. In offline mode nothing is fetched.

seed() pre-downloads every tile of a viewport for a zoom range so the area
can be browsed without a connection. OSM's tile usage policy forbids heavy
bulk downloads, so seeding is capped at max_seed_tiles per call.
"""

from __future__ import annotations

import asyncio
import itertools
import shutil
from dataclasses import asdict, dataclass
from pathlib import Path

import httpx
import mercantile
from loguru import logger

from territories.errors import TileUnavailable

MIN_ZOOM = 0
MAX_ZOOM = 19


@dataclass
class SeedReport:
    """Outcome of a seed run."""

    total: int = 0
    downloaded: int = 0
    cached: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def validate_tile(z: int, x: int, y: int) -> None:
    """Raise ValueError if z/x/y is not a valid slippy-map tile."""
    if z < MIN_ZOOM or z > MAX_ZOOM:
        raise ValueError(f"Zoom level must be {MIN_ZOOM}-{MAX_ZOOM}")
    n = 2**z
    if not (0 <= x < n and 0 <= y < n):
        raise ValueError(f"Tile {z}/{x}/{y} out of range")


def tiles_for_bounds(
    bounds: tuple[float, float, float, float],
    min_zoom: int,
    max_zoom: int,
    limit: int | None = None,
) -> list[mercantile.Tile]:
    """List the tiles covering (south, west, north, east) for a zoom range.

    With ``limit``, enumeration stops after that many tiles, so callers can
    cap large areas without listing every tile.
    """
    south, west, north, east = bounds
    if south > north or west > east:
        raise ValueError(f"Invalid bounds: {bounds}")
    if min_zoom > max_zoom:
        raise ValueError(f"min_zoom {min_zoom} is greater than max_zoom {max_zoom}")
    if min_zoom < MIN_ZOOM or max_zoom > MAX_ZOOM:
        raise ValueError(f"Zoom levels must be {MIN_ZOOM}-{MAX_ZOOM}")
    tiles = mercantile.tiles(west, south, east, north, list(range(min_zoom, max_zoom + 1)))
    return list(itertools.islice(tiles, limit))


class TileCache:
    """Disk-backed cache in front of an OSM-style tile server."""

    def __init__(
        self,
        cache_dir: Path,
        url_template: str = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
        subdomains: list[str] | None = None,
        user_agent: str = "territory-mapper",
        store_name: str = "defaultStore",
        offline: bool = False,
        timeout: float = 15.0,
        max_seed_tiles: int = 5000,
    ) -> None:
        self.root = Path(cache_dir).expanduser() / store_name
        self.url_template = url_template
        self.subdomains = list(subdomains) if subdomains else ["a", "b", "c"]
        self.user_agent = user_agent
        self.offline = offline
        self.timeout = timeout
        self.max_seed_tiles = max_seed_tiles

    def tile_path(self, z: int, x: int, y: int) -> Path:
        return self.root / str(z) / str(x) / f"{y}.png"

    def tile_url(self, z: int, x: int, y: int) -> str:
        subdomain = self.subdomains[(x + y) % len(self.subdomains)]
        return self.url_template.format(s=subdomain, z=z, x=x, y=y)

    def is_cached(self, z: int, x: int, y: int) -> bool:
        return self.tile_path(z, x, y).exists()

    async def _fetch(self, client: httpx.AsyncClient, z: int, x: int, y: int) -> bytes:
        url = self.tile_url(z, x, y)
        try:
            resp = await client.get(
                url, headers={"User-Agent": self.user_agent}, timeout=self.timeout
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Tile fetch failed: {z}/{x}/{y}: {e}")
            raise TileUnavailable(f"Tile {z}/{x}/{y} unavailable: {e}") from e

        data = resp.content
        path = self.tile_path(z, x, y)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.warning(f"Could not cache tile {z}/{x}/{y}: {e}")
        return data

    async def get_tile(self, z: int, x: int, y: int) -> bytes:
        """Return PNG bytes for a tile, fetching and caching it if needed.

        Raises:
            ValueError: If z/x/y is out of range.
            TileUnavailable: If the tile is not cached and cannot be fetched.
        """
        validate_tile(z, x, y)

        path = self.tile_path(z, x, y)
        if path.exists():
            return path.read_bytes()

        if self.offline:
            raise TileUnavailable(f"Tile {z}/{x}/{y} is not cached (offline mode)")

        async with httpx.AsyncClient() as client:
            return await self._fetch(client, z, x, y)

    async def seed(
        self,
        bounds: tuple[float, float, float, float],
        min_zoom: int,
        max_zoom: int,
        concurrency: int = 4,
    ) -> SeedReport:
        """Download every missing tile covering bounds for min_zoom..max_zoom.

        Raises:
            ValueError: On invalid bounds/zooms, or if the area needs more
                than max_seed_tiles tiles.
            TileUnavailable: If the cache is in offline mode.
        """
        # One past the limit is enough to know the area is too large
        tiles = tiles_for_bounds(bounds, min_zoom, max_zoom, limit=self.max_seed_tiles + 1)
        if len(tiles) > self.max_seed_tiles:
            raise ValueError(
                f"Area needs more than {self.max_seed_tiles} tiles, the seeding "
                "limit; zoom in or lower max_zoom"
            )
        if self.offline:
            raise TileUnavailable("Cannot download tiles in offline mode")

        report = SeedReport(total=len(tiles))
        missing = []
        for tile in tiles:
            if self.is_cached(tile.z, tile.x, tile.y):
                report.cached += 1
            else:
                missing.append(tile)

        logger.info(
            f"Seeding {len(missing)} tiles ({report.cached} already cached) "
            f"for zoom {min_zoom}-{max_zoom}"
        )

        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def fetch_one(client: httpx.AsyncClient, tile: mercantile.Tile) -> bool:
            async with semaphore:
                try:
                    await self._fetch(client, tile.z, tile.x, tile.y)
                    return True
                except TileUnavailable:
                    return False

        async with httpx.AsyncClient() as client:
            results = await asyncio.gather(*(fetch_one(client, t) for t in missing))

        report.downloaded = sum(1 for ok in results if ok)
        report.failed = len(results) - report.downloaded
        logger.info(
            f"Seed finished: {report.downloaded} downloaded, "
            f"{report.cached} cached, {report.failed} failed"
        )
        return report

    def stats(self) -> dict:
        """Count cached tiles and their total size."""
        count = 0
        size = 0
        if self.root.exists():
            for path in self.root.rglob("*.png"):
                count += 1
                size += path.stat().st_size
        return {"store": self.root.name, "tiles": count, "bytes": size}

    def clear(self) -> int:
        """Delete every cached tile. Returns how many were removed."""
        count = self.stats()["tiles"]
        if self.root.exists():
            shutil.rmtree(self.root)
        logger.info(f"Cleared tile store '{self.root.name}' ({count} tiles)")
        return count
