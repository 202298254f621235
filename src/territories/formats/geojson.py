"""GeoJSON (RFC 7946) export/import using stdlib json.

Each territory is a Feature with a single-ring Polygon and properties
{id, name, color}. GeoJSON positions are [lng, lat]; rings are closed.
"""

from __future__ import annotations

import json

from territories.colors import parse_color
from territories.errors import FormatError
from territories.models import (
    DEFAULT_COLOR,
    DEFAULT_NAME,
    MIN_POINTS,
    LatLng,
    Territory,
    new_territory_id,
    open_ring,
)


def export_geojson(territories: list[Territory]) -> dict:
    """Export territories to a GeoJSON FeatureCollection dict."""
    return {
        "type": "FeatureCollection",
        "features": [_territory_to_feature(t) for t in territories],
    }


def dumps_geojson(territories: list[Territory]) -> str:
    """Export territories to GeoJSON text."""
    return json.dumps(export_geojson(territories), ensure_ascii=False, indent=2)


def _territory_to_feature(territory: Territory) -> dict:
    ring = [[p.lng, p.lat] for p in territory.ring()]
    return {
        "type": "Feature",
        "id": territory.territory_id,
        "geometry": {
            "type": "Polygon",
            "coordinates": [ring],
        },
        "properties": {
            "id": territory.territory_id,
            "name": territory.name,
            "color": territory.color,
        },
    }


def parse_geojson(geojson_string: str) -> list[Territory]:
    """Parse GeoJSON text into territories.

    Accepts a FeatureCollection or a single Feature. Polygon features yield
    one territory from the outer ring; each MultiPolygon part yields its own.
    Other geometries are skipped.

    Raises:
        FormatError: If the text is not JSON or not a GeoJSON object.
    """
    try:
        data = json.loads(geojson_string)
    except (json.JSONDecodeError, TypeError) as e:
        raise FormatError(f"Invalid GeoJSON: {e}") from e

    if not isinstance(data, dict):
        raise FormatError("Invalid GeoJSON: top level must be an object")

    if data.get("type") == "FeatureCollection":
        raw_features = data.get("features") or []
    elif data.get("type") == "Feature":
        raw_features = [data]
    else:
        raise FormatError(f"Unsupported GeoJSON type: {data.get('type')!r}")

    territories: list[Territory] = []
    for raw in raw_features:
        territories.extend(_parse_feature(raw))
    return territories


def _parse_feature(raw) -> list[Territory]:
    """Parse one Feature dict. Returns zero or more territories."""
    if not isinstance(raw, dict):
        return []
    geometry = raw.get("geometry")
    if not isinstance(geometry, dict):
        return []

    geom_type = geometry.get("type")
    coordinates = geometry.get("coordinates") or []
    if geom_type == "Polygon":
        outer_rings = coordinates[:1]
    elif geom_type == "MultiPolygon":
        outer_rings = [poly[0] for poly in coordinates if poly]
    else:
        return []

    properties = raw.get("properties") or {}
    if not isinstance(properties, dict):
        properties = {}

    base_id = properties.get("id", raw.get("id"))
    name = str(properties.get("name") or "").strip() or DEFAULT_NAME
    color = parse_color(properties.get("color"), DEFAULT_COLOR)

    territories = []
    for part, ring in enumerate(outer_rings):
        points = _ring_to_points(ring)
        if len(points) < MIN_POINTS:
            continue
        if base_id is None:
            territory_id = new_territory_id()
        elif len(outer_rings) > 1:
            territory_id = f"{base_id}-{part + 1}"
        else:
            territory_id = str(base_id)
        territories.append(Territory(territory_id, name, color, points))
    return territories


def _ring_to_points(ring) -> list[LatLng]:
    points = []
    for position in ring or []:
        try:
            points.append(LatLng(lat=float(position[1]), lng=float(position[0])))
        except (TypeError, ValueError, IndexError):
            continue
    return open_ring(points)
