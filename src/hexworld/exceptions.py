"""Custom exceptions for the hex world.

Generation itself never raises for shortfalls; these only mark failures at
the file and configuration boundaries.
"""


class HexWorldError(Exception):
    """Base exception for hex world errors."""

    pass


class MapFormatError(HexWorldError, ValueError):
    """Raised when a serialized map document is malformed."""

    pass


class ConfigNotFoundError(HexWorldError, FileNotFoundError):
    """Raised when a named configuration cannot be located."""

    pass
