"""Command line for Territory Mapper.

Usage:
    territories serve [--host HOST] [--port PORT]
    territories list
    territories export FORMAT [-o PATH]
    territories import PATH [--format FORMAT]
    territories search QUERY
    territories seed --bounds SOUTH WEST NORTH EAST [--min-zoom N] [--max-zoom N]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger

from app.config import settings
from territories.colors import argb_to_hex
from territories.errors import FormatError, GeocodingError, TileUnavailable
from territories.formats import FORMATS, default_filename, detect_format, export_as, parse_as
from territories.geocoder import Geocoder
from territories.store import TerritoryStore
from territories.tiles import TileCache


def _store() -> TerritoryStore:
    return TerritoryStore(Path(settings.data_dir))


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("app.main:app", host=args.host, port=args.port, reload=settings.debug)
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    territories = _store().list()
    if not territories:
        print("No territories.")
        return 0
    for t in territories:
        print(f"{t.territory_id}  {argb_to_hex(t.color)}  {len(t.points):>3} pts  {t.name}")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    territories = _store().list()
    payload = export_as(territories, args.format)
    out = Path(args.output) if args.output else Path(settings.export_dir) / default_filename(args.format)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(payload)
    logger.info(f"Exported {len(territories)} territories as {args.format}")
    print(out)
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    path = Path(args.path)
    fmt = args.format or detect_format(path.name)
    imported = parse_as(path.read_bytes(), fmt)
    count = _store().extend(imported)
    print(f"Imported {count} territories from {path}")
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    geocoder = Geocoder(
        base_url=settings.nominatim_url,
        user_agent=settings.user_agent,
        cache_dir=settings.geocode_cache_dir,
        timeout=settings.geocode_timeout,
    )
    result = asyncio.run(geocoder.search(args.query))
    if result is None:
        print(f"No results for '{args.query}'", file=sys.stderr)
        return 1
    print(f"{result.lat:.6f} {result.lng:.6f}  {result.display_name}")
    return 0


def cmd_seed(args: argparse.Namespace) -> int:
    cache = TileCache(
        cache_dir=settings.tile_cache_dir,
        url_template=settings.tile_url_template,
        subdomains=settings.tile_subdomains,
        user_agent=settings.user_agent,
        store_name=settings.tile_store,
        offline=settings.tile_offline,
        max_seed_tiles=settings.max_seed_tiles,
    )
    report = asyncio.run(
        cache.seed(tuple(args.bounds), args.min_zoom, args.max_zoom, concurrency=settings.seed_concurrency)
    )
    print(
        f"{report.total} tiles: {report.downloaded} downloaded, "
        f"{report.cached} already cached, {report.failed} failed"
    )
    return 0 if report.failed == 0 else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="territories",
        description="Draw, store and export territory polygons.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default=settings.host)
    p.add_argument("--port", type=int, default=settings.port)
    p.set_defaults(func=cmd_serve)

    p = sub.add_parser("list", help="List stored territories")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("export", help="Export all territories")
    p.add_argument("format", choices=sorted(FORMATS))
    p.add_argument("-o", "--output", help="Output file (default: export dir)")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("import", help="Import territories from a file")
    p.add_argument("path")
    p.add_argument("--format", choices=sorted(FORMATS), help="Override detection by extension")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("search", help="Geocode a city or neighborhood")
    p.add_argument("query")
    p.set_defaults(func=cmd_search)

    p = sub.add_parser("seed", help="Download map tiles of an area for offline use")
    p.add_argument("--bounds", nargs=4, type=float, required=True,
                   metavar=("SOUTH", "WEST", "NORTH", "EAST"))
    p.add_argument("--min-zoom", type=int, default=12)
    p.add_argument("--max-zoom", type=int, default=16)
    p.set_defaults(func=cmd_seed)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "WARNING")

    try:
        return args.func(args)
    except (FormatError, GeocodingError, TileUnavailable, ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
