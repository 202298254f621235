"""Exceptions raised by the territories core."""


class FormatError(ValueError):
    """Geodata content could not be parsed, or the format is unknown."""


class EditorError(RuntimeError):
    """An editor action is not valid in the current edit mode."""


class GeocodingError(RuntimeError):
    """The geocoding service could not be reached or answered with an error."""


class TileUnavailable(RuntimeError):
    """A map tile is neither cached nor fetchable."""
