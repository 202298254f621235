"""ARGB color helpers.

Territory colors are stored as 32-bit ARGB integers (0xAARRGGBB).
KML wants the channels as aabbggrr hex; web clients want #RRGGBB.
"""

from __future__ import annotations

from territories.models import DEFAULT_COLOR

# Polygon fill alpha used by the KML exporter and map renderers (~33%).
FILL_ALPHA = 0x55

# Color picker palette offered when naming a new territory (Material 500 tones).
PALETTE: list[int] = [
    0xFFF44336,  # red
    0xFFE91E63,  # pink
    0xFF9C27B0,  # purple
    0xFF673AB7,  # deep purple
    0xFF3F51B5,  # indigo
    0xFF2196F3,  # blue
    0xFF03A9F4,  # light blue
    0xFF00BCD4,  # cyan
    0xFF009688,  # teal
    0xFF4CAF50,  # green
    0xFF8BC34A,  # light green
    0xFFCDDC39,  # lime
    0xFFFFEB3B,  # yellow
    0xFFFFC107,  # amber
    0xFFFF9800,  # orange
    0xFFFF5722,  # deep orange
    0xFF795548,  # brown
    0xFF9E9E9E,  # grey
    0xFF607D8B,  # blue grey
    0xFF000000,  # black
]


def _channels(argb: int) -> tuple[int, int, int, int]:
    return (argb >> 24) & 0xFF, (argb >> 16) & 0xFF, (argb >> 8) & 0xFF, argb & 0xFF


def argb_to_kml(argb: int) -> str:
    """Convert 0xAARRGGBB to KML's aabbggrr hex string."""
    a, r, g, b = _channels(argb)
    return f"{a:02x}{b:02x}{g:02x}{r:02x}"


def kml_to_argb(text: str) -> int | None:
    """Convert a KML aabbggrr hex string back to ARGB. None if malformed."""
    text = (text or "").strip().lstrip("#")
    if len(text) != 8:
        return None
    try:
        value = int(text, 16)
    except ValueError:
        return None
    a, b, g, r = _channels(value)
    return (a << 24) | (r << 16) | (g << 8) | b


def argb_to_hex(argb: int) -> str:
    """Return the #RRGGBB form of an ARGB color (alpha dropped)."""
    return f"#{argb & 0xFFFFFF:06X}"


def with_alpha(argb: int, alpha: int) -> int:
    """Replace the alpha channel of an ARGB color."""
    return ((alpha & 0xFF) << 24) | (argb & 0xFFFFFF)


def parse_color(value, default: int = DEFAULT_COLOR) -> int:
    """Best-effort conversion of an imported color property to ARGB.

    Accepts ints, decimal strings, "#RRGGBB" (opaque), "#AARRGGBB" and
    "0xAARRGGBB". Anything else yields ``default``.
    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        return value & 0xFFFFFFFF
    if isinstance(value, float) and value.is_integer():
        return int(value) & 0xFFFFFFFF

    text = str(value).strip()
    if not text:
        return default
    if text.startswith("#") or text.lower().startswith("0x"):
        digits = text[1:] if text.startswith("#") else text[2:]
        try:
            parsed = int(digits, 16)
        except ValueError:
            return default
        if len(digits) == 6:
            return 0xFF000000 | parsed
        if len(digits) == 8:
            return parsed
        return default
    try:
        return int(text) & 0xFFFFFFFF
    except ValueError:
        return default
