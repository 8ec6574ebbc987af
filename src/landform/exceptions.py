"""Custom exceptions for terrain synthesis."""


class TerrainError(Exception):
    """Base exception for terrain errors."""

    pass


class InvalidParameterError(TerrainError):
    """Raised when a parameter value fails validation."""

    pass


class UnknownParameterError(TerrainError, KeyError):
    """Raised when setting a parameter that does not exist."""

    pass


class ErosionCancelledError(TerrainError):
    """Raised when stepping an erosion run that was cancelled."""

    pass


class TerrainNotGeneratedError(TerrainError):
    """Raised when terrain is used before it has been generated."""

    pass
