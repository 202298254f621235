"""KML 2.2 export/import using xml.etree.ElementTree.

Export writes one shared Style per territory (outline in the territory
color, fill in the same color at FILL_ALPHA) and one Placemark per
territory that points at it through styleUrl.
The fill is the territory color with its alpha byte replaced by
FILL_ALPHA, so opaque colors also get a translucent fill.
KML coordinate format: "lng,lat,alt lng,lat,alt" (longitude first).
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from territories.colors import FILL_ALPHA, argb_to_kml, kml_to_argb, with_alpha
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

KML_NS = "http://www.opengis.net/kml/2.2"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def export_kml(territories: list[Territory], name: str = "Territories") -> str:
    """Export territories to a KML document string."""
    kml = ET.Element("kml")
    kml.set("xmlns", KML_NS)

    doc = ET.SubElement(kml, "Document")
    ET.SubElement(doc, "name").text = name

    for territory in territories:
        _write_style(doc, territory)
    for territory in territories:
        _write_placemark(doc, territory)

    ET.indent(kml)
    return XML_DECLARATION + ET.tostring(kml, encoding="unicode")


def _style_id(territory: Territory) -> str:
    return f"s_{territory.territory_id}"


def _write_style(doc: ET.Element, territory: Territory) -> None:
    """Write a shared Style element for one territory."""
    style = ET.SubElement(doc, "Style")
    style.set("id", _style_id(territory))

    line_style = ET.SubElement(style, "LineStyle")
    ET.SubElement(line_style, "color").text = argb_to_kml(territory.color)
    ET.SubElement(line_style, "width").text = "2"

    poly_style = ET.SubElement(style, "PolyStyle")
    ET.SubElement(poly_style, "color").text = argb_to_kml(with_alpha(territory.color, FILL_ALPHA))
    ET.SubElement(poly_style, "fill").text = "1"
    ET.SubElement(poly_style, "outline").text = "1"


def _write_placemark(doc: ET.Element, territory: Territory) -> None:
    """Write a territory as a Placemark with a Polygon."""
    pm = ET.SubElement(doc, "Placemark")
    ET.SubElement(pm, "name").text = territory.name
    ET.SubElement(pm, "styleUrl").text = f"#{_style_id(territory)}"

    polygon = ET.SubElement(pm, "Polygon")
    outer = ET.SubElement(polygon, "outerBoundaryIs")
    ring = ET.SubElement(outer, "LinearRing")
    coords = ET.SubElement(ring, "coordinates")
    coords.text = " ".join(f"{p.lng},{p.lat},0" for p in territory.ring())


def parse_kml(kml_string: str) -> list[Territory]:
    """Parse a KML string into territories.

    Every Placemark with a Polygon becomes a territory; the outer boundary
    is used and holes are ignored. Color comes from the referenced shared
    Style (LineStyle, then PolyStyle) or an inline Style.

    Raises:
        FormatError: If the text is not well-formed XML.
    """
    try:
        root = ET.fromstring(kml_string)
    except ET.ParseError as e:
        raise FormatError(f"Invalid KML: {e}") from e

    ns = _detect_namespace(root)
    styles = _collect_styles(root, ns)

    territories: list[Territory] = []
    for pm in root.iter(f"{ns}Placemark"):
        territory = _parse_placemark(pm, ns, styles)
        if territory is not None:
            territories.append(territory)
    return territories


def _detect_namespace(root: ET.Element) -> str:
    """Detect KML namespace from root element tag."""
    tag = root.tag
    if "{" in tag:
        return tag.split("}")[0] + "}"
    return ""


def _find(parent: ET.Element, tag: str, ns: str) -> ET.Element | None:
    """Find a direct or nested child element by tag."""
    return parent.find(f".//{ns}{tag}")


def _get_text(parent: ET.Element, tag: str, ns: str) -> str:
    elem = _find(parent, tag, ns)
    if elem is not None and elem.text:
        return elem.text.strip()
    return ""


def _style_color(style: ET.Element, ns: str) -> int | None:
    """Pick the outline color, falling back to the fill color (alpha restored)."""
    line_style = _find(style, "LineStyle", ns)
    if line_style is not None:
        color = kml_to_argb(_get_text(line_style, "color", ns))
        if color is not None:
            return color
    poly_style = _find(style, "PolyStyle", ns)
    if poly_style is not None:
        color = kml_to_argb(_get_text(poly_style, "color", ns))
        if color is not None:
            return with_alpha(color, 0xFF)
    return None


def _collect_styles(root: ET.Element, ns: str) -> dict[str, int]:
    """Map shared Style ids to colors."""
    styles = {}
    for style in root.iter(f"{ns}Style"):
        style_id = style.get("id")
        if not style_id:
            continue
        color = _style_color(style, ns)
        if color is not None:
            styles[style_id] = color
    return styles


def _parse_placemark(
    pm: ET.Element, ns: str, styles: dict[str, int]
) -> Territory | None:
    polygon = _find(pm, "Polygon", ns)
    if polygon is None:
        return None
    outer = _find(polygon, "outerBoundaryIs", ns)
    if outer is None:
        return None
    points = open_ring(_parse_coordinate_string(_get_text(outer, "coordinates", ns)))
    if len(points) < MIN_POINTS:
        return None

    color = None
    inline = pm.find(f"{ns}Style")
    if inline is not None:
        color = _style_color(inline, ns)
    if color is None:
        style_url = _get_text(pm, "styleUrl", ns)
        color = styles.get(style_url.lstrip("#"))

    name_elem = pm.find(f"{ns}name")
    name = (name_elem.text or "").strip() if name_elem is not None else ""
    return Territory(
        territory_id=pm.get("id") or new_territory_id(),
        name=name or DEFAULT_NAME,
        color=color if color is not None else DEFAULT_COLOR,
        points=points,
    )


def _parse_coordinate_string(coord_str: str) -> list[LatLng]:
    """Parse 'lng,lat[,alt] lng,lat[,alt] ...' into LatLng points."""
    points = []
    for token in coord_str.split():
        parts = token.split(",")
        if len(parts) < 2:
            continue
        try:
            points.append(LatLng(lat=float(parts[1]), lng=float(parts[0])))
        except ValueError:
            continue
    return points
