"""KMZ export/import: a KML document inside a ZIP archive.

Export stores the document as doc.kml, the entry name Google Earth looks for
first. Import reads doc.kml if present, otherwise the first .kml entry.
"""

from __future__ import annotations

import io
import zipfile

from territories.errors import FormatError
from territories.formats.kml import export_kml, parse_kml
from territories.models import Territory

KMZ_ENTRY = "doc.kml"


def export_kmz(territories: list[Territory], name: str = "Territories") -> bytes:
    """Export territories to KMZ bytes."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(KMZ_ENTRY, export_kml(territories, name=name).encode("utf-8"))
    return buffer.getvalue()


def parse_kmz(data: bytes) -> list[Territory]:
    """Parse KMZ bytes into territories.

    Raises:
        FormatError: If the archive is unreadable or holds no KML document.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            kml_names = [n for n in zf.namelist() if n.lower().endswith(".kml")]
            if not kml_names:
                raise FormatError("KMZ archive contains no .kml document")
            entry = KMZ_ENTRY if KMZ_ENTRY in kml_names else kml_names[0]
            kml_text = zf.read(entry).decode("utf-8")
    except zipfile.BadZipFile as e:
        raise FormatError(f"Invalid KMZ: {e}") from e
    except UnicodeDecodeError as e:
        raise FormatError(f"KMZ document is not UTF-8: {e}") from e
    return parse_kml(kml_text)
