"""KML export/import tests."""

import xml.etree.ElementTree as ET

import pytest

from territories.errors import FormatError
from territories.formats.kml import KML_NS, export_kml, parse_kml
from territories.models import DEFAULT_COLOR, DEFAULT_NAME, LatLng


pytestmark = pytest.mark.unit

NS = {"k": KML_NS}


class TestKmlExport:

    def test_declaration_and_namespace(self, square):
        text = export_kml([square])
        assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        root = ET.fromstring(text)
        assert root.tag == f"{{{KML_NS}}}kml"

    def test_document_name(self, square):
        root = ET.fromstring(export_kml([square], name="Congregação"))
        assert root.find("k:Document/k:name", NS).text == "Congregação"

    def test_shared_style(self, square):
        root = ET.fromstring(export_kml([square]))
        style = root.find("k:Document/k:Style", NS)
        assert style.get("id") == "s_t-square"
        assert style.find("k:LineStyle/k:color", NS).text == "ffe5881e"
        assert style.find("k:LineStyle/k:width", NS).text == "2"
        assert style.find("k:PolyStyle/k:color", NS).text == "55e5881e"
        assert style.find("k:PolyStyle/k:fill", NS).text == "1"
        assert style.find("k:PolyStyle/k:outline", NS).text == "1"

    def test_styles_before_placemarks(self, sample_territories):
        root = ET.fromstring(export_kml(sample_territories))
        tags = [child.tag.split("}")[1] for child in root.find("k:Document", NS)]
        assert tags == ["name", "Style", "Style", "Placemark", "Placemark"]

    def test_placemark(self, square):
        root = ET.fromstring(export_kml([square]))
        pm = root.find(".//k:Placemark", NS)
        assert pm.find("k:name", NS).text == "Centro"
        assert pm.find("k:styleUrl", NS).text == "#s_t-square"
        coords = pm.find(".//k:outerBoundaryIs/k:LinearRing/k:coordinates", NS).text.split()
        assert coords[0] == "-44.3,-2.53,0"
        assert coords[0] == coords[-1]
        assert len(coords) == 5


class TestKmlImport:

    def test_roundtrip_keeps_name_color_points(self, sample_territories):
        parsed = parse_kml(export_kml(sample_territories))
        assert [t.name for t in parsed] == [t.name for t in sample_territories]
        assert [t.color for t in parsed] == [t.color for t in sample_territories]
        assert [t.points for t in parsed] == [t.points for t in sample_territories]

    def test_no_namespace_inline_style(self):
        text = """<kml><Document><Placemark>
            <name> Bairro </name>
            <Style><LineStyle><color>ff0000ff</color></LineStyle></Style>
            <Polygon><outerBoundaryIs><LinearRing><coordinates>
                0,0 1,0 1,1 0,0
            </coordinates></LinearRing></outerBoundaryIs></Polygon>
        </Placemark></Document></kml>"""
        [t] = parse_kml(text)
        assert t.name == "Bairro"
        assert t.color == 0xFFFF0000
        assert t.points == [LatLng(0, 0), LatLng(0, 1), LatLng(1, 1)]

    def test_poly_style_alpha_restored(self):
        text = f"""<kml xmlns="{KML_NS}"><Document>
            <Style id="fill"><PolyStyle><color>5500ff00</color></PolyStyle></Style>
            <Placemark><styleUrl>#fill</styleUrl>
            <Polygon><outerBoundaryIs><LinearRing><coordinates>0,0 1,0 1,1</coordinates>
            </LinearRing></outerBoundaryIs></Polygon></Placemark>
        </Document></kml>"""
        [t] = parse_kml(text)
        assert t.color == 0xFF00FF00
        assert t.name == DEFAULT_NAME

    def test_ignores_holes_and_points(self):
        text = f"""<kml xmlns="{KML_NS}"><Document>
            <Placemark><Point><coordinates>0,0</coordinates></Point></Placemark>
            <Placemark><Polygon>
              <outerBoundaryIs><LinearRing><coordinates>0,0 4,0 4,4 0,4 0,0</coordinates></LinearRing></outerBoundaryIs>
              <innerBoundaryIs><LinearRing><coordinates>1,1 2,1 2,2 1,1</coordinates></LinearRing></innerBoundaryIs>
            </Polygon></Placemark>
        </Document></kml>"""
        [t] = parse_kml(text)
        assert len(t.points) == 4
        assert t.color == DEFAULT_COLOR

    def test_malformed(self):
        with pytest.raises(FormatError):
            parse_kml("<kml><Document>")
