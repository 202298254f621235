"""WKT export/import.

The export is a plain text file with one record per territory:

    -- <name>
    POLYGON((lng lat, lng lat, ..., lng lat))
    <blank line>

The "--" line is an SQL-style comment, so the file can be pasted into most
spatial SQL consoles. Import reads the same layout back; the comment is
optional and names the POLYGON that follows it.
"""

from __future__ import annotations

import re

from territories.models import (
    DEFAULT_COLOR,
    DEFAULT_NAME,
    MIN_POINTS,
    LatLng,
    Territory,
    new_territory_id,
    open_ring,
)

_POLYGON_RE = re.compile(r"POLYGON\s*(?:ZM|Z|M)?\s*\(\s*\(([^()]*)\)", re.IGNORECASE)
_COMMENT_PREFIX = "--"
_COMMENT_RE = re.compile(r"^[ \t]*--(.*)$", re.MULTILINE)


def polygon_wkt(territory: Territory) -> str:
    """Return the POLYGON((...)) text for one territory."""
    coords = ", ".join(f"{p.lng} {p.lat}" for p in territory.ring())
    return f"POLYGON(({coords}))"


def export_wkt(territories: list[Territory]) -> str:
    """Export territories to commented WKT text."""
    lines = []
    for territory in territories:
        # A line break in the name would end the comment early
        name = " ".join(territory.name.splitlines())
        lines.append(f"{_COMMENT_PREFIX} {name}")
        lines.append(polygon_wkt(territory))
        lines.append("")
    return "\n".join(lines) + ("\n" if lines else "")


def parse_wkt(wkt_string: str) -> list[Territory]:
    """Parse WKT text into territories.

    A POLYGON may span several lines. Only its outer ring is read, and
    polygons with fewer than three vertices (closing vertex excluded) are
    skipped. A "--" comment names the next POLYGON after it.
    """
    comments = [(m.start(), m.group(1).strip()) for m in _COMMENT_RE.finditer(wkt_string)]
    # Blank out comments in place so offsets still line up
    body = _COMMENT_RE.sub(lambda m: " " * len(m.group(0)), wkt_string)

    territories: list[Territory] = []
    pending_name = ""
    next_comment = 0
    for match in _POLYGON_RE.finditer(body):
        while next_comment < len(comments) and comments[next_comment][0] < match.start():
            pending_name = comments[next_comment][1]
            next_comment += 1

        points = open_ring(_parse_ring(match.group(1)))
        name, pending_name = pending_name, ""
        if len(points) < MIN_POINTS:
            continue
        territories.append(
            Territory(
                territory_id=new_territory_id(),
                name=name or DEFAULT_NAME,
                color=DEFAULT_COLOR,
                points=points,
            )
        )
    return territories


def _parse_ring(text: str) -> list[LatLng]:
    """Parse 'lng lat[ z], lng lat[ z], ...' into points."""
    points = []
    for pair in text.split(","):
        parts = pair.split()
        if len(parts) < 2:
            continue
        try:
            points.append(LatLng(lat=float(parts[1]), lng=float(parts[0])))
        except ValueError:
            continue
    return points
