"""Grid addressing, memory-mapped buffers and interpolation."""

from .utils import get_memory_mb, round_half_away, cast_to_dtype
from .grid import Grid, AddressingPolicy
from .mmfile import MappedBuffer
from .stats import mode
from .interpolators import (
    Interpolator,
    NearestNeighbor,
    Bilinear,
    NeighborMode,
    get_interpolator,
)

__all__ = [
    "get_memory_mb",
    "round_half_away",
    "cast_to_dtype",
    "Grid",
    "AddressingPolicy",
    "MappedBuffer",
    "mode",
    "Interpolator",
    "NearestNeighbor",
    "Bilinear",
    "NeighborMode",
    "get_interpolator",
]
