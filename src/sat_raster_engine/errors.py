"""Exceptions raised by the grid transform engine."""


class EngineError(Exception):
    """Base class for every error raised by sat_raster_engine."""


class ConfigurationError(EngineError, ValueError):
    """
    Invalid engine arguments: unknown encoding/method/projection, bad
    dimensions or tile placement. Raised before any file is opened.
    """


class MappedBufferError(EngineError, OSError):
    """A file could not be opened or memory-mapped in the requested mode."""


class GeometryError(EngineError, ValueError):
    """Declared grid geometry needs more elements than the buffer holds."""


class GridIndexError(EngineError, IndexError):
    """Out-of-range coordinate under the strict addressing policy."""


class NoModeError(EngineError, ValueError):
    """The mode of an empty collection was requested."""
