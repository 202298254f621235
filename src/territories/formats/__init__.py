"""Geodata exchange formats for territories.

Supports GeoJSON (RFC 7946), KML 2.2, KMZ (zipped KML), WKT and GPX 1.1.
All codecs use only the Python stdlib (json, xml.etree.ElementTree,
zipfile, re).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable

from territories.errors import FormatError
from territories.formats.geojson import dumps_geojson, parse_geojson
from territories.formats.gpx import export_gpx, parse_gpx
from territories.formats.kml import export_kml, parse_kml
from territories.formats.kmz import export_kmz, parse_kmz
from territories.formats.wkt import export_wkt, parse_wkt
from territories.models import Territory


@dataclass(frozen=True)
class GeoFormat:
    """A registered exchange format.

    Attributes:
        name: Registry key ("geojson", "kml", ...).
        extension: File extension used for exports, without the dot.
        media_type: MIME type for HTTP downloads.
        binary: True if the payload is bytes rather than UTF-8 text.
        exporter: territories -> str (text formats) or bytes (binary formats).
        parser: str (text formats) or bytes (binary formats) -> territories.
    """

    name: str
    extension: str
    media_type: str
    binary: bool
    exporter: Callable
    parser: Callable


FORMATS: dict[str, GeoFormat] = {
    "geojson": GeoFormat("geojson", "geojson", "application/geo+json", False, dumps_geojson, parse_geojson),
    "kml": GeoFormat("kml", "kml", "application/vnd.google-earth.kml+xml", False, export_kml, parse_kml),
    "kmz": GeoFormat("kmz", "kmz", "application/vnd.google-earth.kmz", True, export_kmz, parse_kmz),
    "wkt": GeoFormat("wkt", "wkt", "text/plain", False, export_wkt, parse_wkt),
    "gpx": GeoFormat("gpx", "gpx", "application/gpx+xml", False, export_gpx, parse_gpx),
}

_EXTENSIONS = {
    ".geojson": "geojson",
    ".json": "geojson",
    ".kml": "kml",
    ".kmz": "kmz",
    ".wkt": "wkt",
    ".txt": "wkt",
    ".gpx": "gpx",
}


def get_format(fmt: str) -> GeoFormat:
    """Look up a format by name (case-insensitive).

    Raises:
        FormatError: If the format is not registered.
    """
    geo_format = FORMATS.get((fmt or "").lower())
    if geo_format is None:
        raise FormatError(f"Unsupported format: {fmt!r} (expected one of {', '.join(FORMATS)})")
    return geo_format


def detect_format(filename: str) -> str:
    """Map a filename to a format name by extension.

    Raises:
        FormatError: If the extension is not recognized.
    """
    ext = os.path.splitext(filename or "")[1].lower()
    fmt = _EXTENSIONS.get(ext)
    if fmt is None:
        raise FormatError(f"Cannot detect format from file name: {filename!r}")
    return fmt


def default_filename(fmt: str) -> str:
    """Return the default export file name for a format."""
    return f"territories.{get_format(fmt).extension}"


def export_as(territories: list[Territory], fmt: str) -> bytes:
    """Export territories in the given format, encoded for writing to a file."""
    geo_format = get_format(fmt)
    payload = geo_format.exporter(territories)
    if geo_format.binary:
        return payload
    return payload.encode("utf-8")


def parse_as(data: bytes | str, fmt: str) -> list[Territory]:
    """Parse file content in the given format into territories.

    Raises:
        FormatError: On unknown format or unparseable content.
    """
    geo_format = get_format(fmt)
    if geo_format.binary:
        if isinstance(data, str):
            raise FormatError(f"{geo_format.name} content must be bytes")
        return geo_format.parser(data)
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise FormatError(f"{geo_format.name} content is not UTF-8: {e}") from e
    return geo_format.parser(data)


__all__ = [
    "FORMATS",
    "FormatError",
    "GeoFormat",
    "default_filename",
    "detect_format",
    "export_as",
    "get_format",
    "parse_as",
]
