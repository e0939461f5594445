"""Configuration constants for grid transforms."""

from .constants import (
    GRAIN_SIZE,
    INTERRUPT_CHECK_EVERY,
    MAX_WORKERS,
    MAX_WINDOW_SIZE_GB,
    CHUNK_HEIGHT,
    MAX_MODE_WINDOW_CELLS,
    WORLD_BOUNDS,
    CRS,
)
from .encodings import PixelEncoding, resolve_encoding, encoding_from_dtype

__all__ = [
    "GRAIN_SIZE",
    "INTERRUPT_CHECK_EVERY",
    "MAX_WORKERS",
    "MAX_WINDOW_SIZE_GB",
    "CHUNK_HEIGHT",
    "MAX_MODE_WINDOW_CELLS",
    "WORLD_BOUNDS",
    "CRS",
    "PixelEncoding",
    "resolve_encoding",
    "encoding_from_dtype",
]
