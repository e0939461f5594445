"""Projection math and raster staging utilities."""

from .projection import (
    WebMercator,
    get_projection,
    tile_to_source,
)
from .raster import (
    RasterGeometry,
    allocate_flat,
    describe_raster,
    raster_lnglat_bounds,
    write_band_to_flat,
)

__all__ = [
    "WebMercator",
    "get_projection",
    "tile_to_source",
    "RasterGeometry",
    "allocate_flat",
    "describe_raster",
    "raster_lnglat_bounds",
    "write_band_to_flat",
]
