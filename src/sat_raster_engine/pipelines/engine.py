"""
Engine entry points: resample or reproject one flat raster file into another.

Both entry points take pre-existing, pre-sized flat files of fixed-size cells
addressed by path. All arguments are validated before any file is opened.
"""
from __future__ import annotations
import logging
import math
import numbers
import threading
from pathlib import Path
from typing import Optional, Sequence, Union

from sat_raster_engine.configs.encodings import PixelEncoding, resolve_encoding
from sat_raster_engine.core.grid import Grid
from sat_raster_engine.core.interpolators import Interpolator, get_interpolator
from sat_raster_engine.core.mmfile import MappedBuffer
from sat_raster_engine.core.utils import get_grid_memory
from sat_raster_engine.errors import ConfigurationError
from sat_raster_engine.geo.projection import WebMercator, get_projection
from sat_raster_engine.pipelines.config import TransformConfig
from sat_raster_engine.pipelines.transform import (
    ParallelGridTransform,
    TransformReport,
    reprojection_coordinates,
    resample_coordinates,
)

PathLike = Union[str, Path]

def _check_geometry(label: str, stride: int, rows: int, cols: int) -> None:
    for name, value in (("stride", stride), ("rows", rows), ("cols", cols)):
        if (
            isinstance(value, bool)
            or not isinstance(value, numbers.Real)
            or not math.isfinite(value)
            or int(value) != value
            or value <= 0
        ):
            raise ConfigurationError(f"{label} {name} must be a positive integer, got {value}")
    if stride < cols:
        raise ConfigurationError(f"{label} stride {stride} is smaller than column count {cols}")

def _log_mapped_size(encoding: PixelEncoding, src_rows, src_stride, dst_rows, dst_stride) -> None:
    src_mb = get_grid_memory(src_rows, src_stride, encoding.dtype)
    dst_mb = get_grid_memory(dst_rows, dst_stride, encoding.dtype)
    logging.info(f"Mapping {src_mb:.2f} MB source and {dst_mb:.2f} MB destination")

def _check_tile(tile_x: int, tile_y: int, total_width: int, total_height: int) -> None:
    if total_width <= 0 or total_height <= 0:
        raise ConfigurationError(
            f"Mosaic size must be positive, got {total_width}x{total_height}"
        )
    if tile_x < 0 or tile_y < 0:
        raise ConfigurationError(f"Tile offset must be non-negative, got ({tile_x}, {tile_y})")

def _check_bounds(bounds: Sequence[float]) -> None:
    lng1, lng2, lat1, lat2 = bounds
    if not all(math.isfinite(v) for v in bounds):
        raise ConfigurationError(f"Source bounds must be finite, got {tuple(bounds)}")
    if lng1 >= lng2 or lat1 >= lat2:
        raise ConfigurationError(
            f"Source bounds must satisfy lng1 < lng2 and lat1 < lat2, got {tuple(bounds)}"
        )

def resample_grid(
    src: Grid,
    dst: Grid,
    method: Union[str, Interpolator] = "nearest-neighbor",
    config: Optional[TransformConfig] = None,
    cancel_event: Optional[threading.Event] = None,
) -> TransformReport:
    """
    Resize `src` into `dst` (same coordinate space) by ratio scaling.
    """
    interpolator = get_interpolator(method)
    coordinates = resample_coordinates(src, dst)
    return ParallelGridTransform(src, dst, interpolator, coordinates, config).run(cancel_event)

def reproject_grid(
    src: Grid,
    bounds: Sequence[float],
    dst: Grid,
    tile_x: int,
    tile_y: int,
    total_width: int,
    total_height: int,
    method: Union[str, Interpolator] = "nearest-neighbor",
    projection: Union[str, int, WebMercator] = "web-mercator",
    config: Optional[TransformConfig] = None,
    cancel_event: Optional[threading.Event] = None,
) -> TransformReport:
    """
    Project the lng/lat raster `src` covering bounds = (lng1, lng2, lat1, lat2)
    into `dst`, a tile at (tile_x, tile_y) of a total_width x total_height
    Web Mercator mosaic of the whole world.
    """
    interpolator = get_interpolator(method)
    projection = get_projection(projection)
    _check_tile(tile_x, tile_y, total_width, total_height)
    _check_bounds(bounds)
    coordinates = reprojection_coordinates(
        src, projection, bounds, tile_x, tile_y, total_width, total_height,
        with_ratios=interpolator.needs_ratios,
    )
    return ParallelGridTransform(src, dst, interpolator, coordinates, config).run(cancel_event)

def resample(
    from_path: PathLike, from_stride: int, from_rows: int, from_cols: int,
    to_path: PathLike, to_stride: int, to_rows: int, to_cols: int,
    pixel_encoding: Union[str, PixelEncoding],
    method: str,
    *,
    config: Optional[TransformConfig] = None,
    cancel_event: Optional[threading.Event] = None,
) -> TransformReport:
    """
    Resample the flat raster at `from_path` into the flat raster at `to_path`.

    Args:
        from_path, from_stride, from_rows, from_cols: source file and geometry
        to_path, to_stride, to_rows, to_cols: destination file (must exist) and geometry
        pixel_encoding: cell type of both files, e.g. "float32" or "FLT4S"
        method: "nearest-neighbor" ("ngb"), "bilinear" or "mode"
        config: chunking/worker/seed settings
        cancel_event: set to stop early, leaving the destination partially written

    Returns:
        TransformReport: completed is False if cancel_event stopped the run

    Raises:
        ConfigurationError: bad encoding, method or geometry (nothing opened yet)
        MappedBufferError: a file cannot be opened or mapped
        GeometryError: a file is too small for its declared geometry
    """
    encoding = resolve_encoding(pixel_encoding)
    interpolator = get_interpolator(method)
    _check_geometry("source", from_stride, from_rows, from_cols)
    _check_geometry("destination", to_stride, to_rows, to_cols)
    config = config if config is not None else TransformConfig()

    logging.info(
        f"Resampling {from_path} ({from_rows}x{from_cols}) -> {to_path} ({to_rows}x{to_cols}), "
        f"{encoding.value}, {interpolator.name}"
    )
    _log_mapped_size(encoding, from_rows, from_stride, to_rows, to_stride)
    with MappedBuffer(from_path, encoding, mode="r") as src_buf, \
            MappedBuffer(to_path, encoding, mode="r+") as dst_buf:
        src = Grid(src_buf.array, from_stride, from_rows, from_cols, config.addressing)
        dst = Grid(dst_buf.array, to_stride, to_rows, to_cols)
        report = resample_grid(src, dst, interpolator, config, cancel_event)
        dst_buf.flush()
    return report

def reproject(
    from_path: PathLike, from_stride: int, from_rows: int, from_cols: int,
    lng1: float, lng2: float, lat1: float, lat2: float,
    to_path: PathLike, to_stride: int, to_rows: int, to_cols: int,
    tile_x: int, tile_y: int, total_width: int, total_height: int,
    pixel_encoding: Union[str, PixelEncoding],
    method: str,
    *,
    projection: Union[str, int, WebMercator] = "web-mercator",
    config: Optional[TransformConfig] = None,
    cancel_event: Optional[threading.Event] = None,
) -> TransformReport:
    """
    Reproject the lng/lat flat raster at `from_path`, covering
    [lng1, lng2] x [lat1, lat2], into the Web Mercator tile at `to_path`.

    The destination is the to_rows x to_cols tile whose top-left pixel sits at
    (tile_x, tile_y) of a total_width x total_height mosaic of the whole world,
    so a map tile can be rendered without projecting the full mosaic.

    Raises:
        ConfigurationError: bad encoding, method, projection, geometry, tile or bounds
        MappedBufferError: a file cannot be opened or mapped
        GeometryError: a file is too small for its declared geometry
    """
    encoding = resolve_encoding(pixel_encoding)
    interpolator = get_interpolator(method)
    projection = get_projection(projection)
    _check_geometry("source", from_stride, from_rows, from_cols)
    _check_geometry("destination", to_stride, to_rows, to_cols)
    _check_tile(tile_x, tile_y, total_width, total_height)
    bounds = (float(lng1), float(lng2), float(lat1), float(lat2))
    _check_bounds(bounds)
    config = config if config is not None else TransformConfig()

    logging.info(
        f"Reprojecting {from_path} ({from_rows}x{from_cols}, bounds {bounds}) -> {to_path} "
        f"tile ({tile_x}, {tile_y}) {to_cols}x{to_rows} of {total_width}x{total_height}, "
        f"{encoding.value}, {interpolator.name}"
    )
    _log_mapped_size(encoding, from_rows, from_stride, to_rows, to_stride)
    with MappedBuffer(from_path, encoding, mode="r") as src_buf, \
            MappedBuffer(to_path, encoding, mode="r+") as dst_buf:
        src = Grid(src_buf.array, from_stride, from_rows, from_cols, config.addressing)
        dst = Grid(dst_buf.array, to_stride, to_rows, to_cols)
        report = reproject_grid(
            src, bounds, dst, tile_x, tile_y, total_width, total_height,
            interpolator, projection, config, cancel_event,
        )
        dst_buf.flush()
    return report
