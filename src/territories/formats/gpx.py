"""GPX 1.1 export/import using xml.etree.ElementTree.

GPX has no polygon type, so each territory is written as a track whose
single segment walks the closed ring. GPX uses lat/lon attributes
(latitude first).
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

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

GPX_NS = "http://www.topografix.com/GPX/1/1"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def export_gpx(territories: list[Territory], creator: str = "territory-mapper") -> str:
    """Export territories to a GPX 1.1 XML string, one <trk> per territory."""
    gpx = ET.Element("gpx")
    gpx.set("version", "1.1")
    gpx.set("creator", creator)
    gpx.set("xmlns", GPX_NS)

    for territory in territories:
        trk = ET.SubElement(gpx, "trk")
        ET.SubElement(trk, "name").text = territory.name
        trkseg = ET.SubElement(trk, "trkseg")
        for p in territory.ring():
            trkpt = ET.SubElement(trkseg, "trkpt")
            trkpt.set("lat", str(p.lat))
            trkpt.set("lon", str(p.lng))

    ET.indent(gpx)
    return XML_DECLARATION + ET.tostring(gpx, encoding="unicode")


def parse_gpx(gpx_string: str) -> list[Territory]:
    """Parse a GPX XML string into territories.

    Each <trk> (all segments concatenated) and each <rte> with at least
    three points (after dropping a closing point) becomes a territory.
    Waypoints are ignored.

    Raises:
        FormatError: If the text is not well-formed XML.
    """
    try:
        root = ET.fromstring(gpx_string)
    except ET.ParseError as e:
        raise FormatError(f"Invalid GPX: {e}") from e

    ns = _detect_namespace(root)
    territories: list[Territory] = []

    for trk in root.findall(f"{ns}trk"):
        points = [
            pt
            for seg in trk.findall(f"{ns}trkseg")
            for pt in _parse_points(seg.findall(f"{ns}trkpt"))
        ]
        territory = _make_territory(_get_child_text(trk, "name", ns), points)
        if territory is not None:
            territories.append(territory)

    for rte in root.findall(f"{ns}rte"):
        points = _parse_points(rte.findall(f"{ns}rtept"))
        territory = _make_territory(_get_child_text(rte, "name", ns), points)
        if territory is not None:
            territories.append(territory)

    return territories


def _detect_namespace(root: ET.Element) -> str:
    """Detect GPX namespace from root tag."""
    tag = root.tag
    if "{" in tag:
        return tag.split("}")[0] + "}"
    return ""


def _get_child_text(parent: ET.Element, tag: str, ns: str) -> str:
    """Get text of a direct child element."""
    elem = parent.find(f"{ns}{tag}")
    if elem is not None and elem.text:
        return elem.text.strip()
    return ""


def _parse_points(elements: list[ET.Element]) -> list[LatLng]:
    points = []
    for elem in elements:
        try:
            points.append(LatLng(lat=float(elem.get("lat")), lng=float(elem.get("lon"))))
        except (TypeError, ValueError):
            continue
    return points


def _make_territory(name: str, points: list[LatLng]) -> Territory | None:
    points = open_ring(points)
    if len(points) < MIN_POINTS:
        return None
    return Territory(
        territory_id=new_territory_id(),
        name=name or DEFAULT_NAME,
        color=DEFAULT_COLOR,
        points=points,
    )
