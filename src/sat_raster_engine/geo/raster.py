"""Staging raster bands into flat strided files for the grid engine."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import numpy as np
import rasterio
from pyproj import Transformer
from rasterio.windows import Window

from sat_raster_engine.configs import constants
from sat_raster_engine.configs.encodings import PixelEncoding, encoding_from_dtype, resolve_encoding
from sat_raster_engine.core import get_memory_mb

@dataclass(frozen=True)
class RasterGeometry:
    """
    Everything the engine entry points need to address a flat raster file.
    bounds is (lng1, lng2, lat1, lat2) in WGS84 degrees.
    """
    encoding: PixelEncoding
    nrow: int
    ncol: int
    stride: int
    bounds: Tuple[float, float, float, float]

def estimate_window_size_gb(window: Window, dtype_bytes: int = 2) -> float:
    """
    Estimate the memory size of a raster window in gigabytes.

    Args:
        window: Rasterio window object
        dtype_bytes: Number of bytes per pixel (default: 2 for uint16)

    Returns:
        float: Estimated size in GB
    """
    return (window.width * window.height * dtype_bytes) / (1024 * 1024 * 1024)

def raster_lnglat_bounds(ds: rasterio.io.DatasetReader) -> Tuple[float, float, float, float]:
    """
    Returns (lng1, lng2, lat1, lat2) of the dataset extent. Datasets without a
    CRS are assumed to be WGS84 already.
    """
    left, bottom, right, top = ds.bounds
    out_epsg = int(constants.CRS.WGS84)
    if ds.crs is None or ds.crs.to_epsg() == out_epsg:
        return float(left), float(right), float(bottom), float(top)

    transformer = Transformer.from_crs(ds.crs, f"EPSG:{out_epsg}", always_xy=True)
    lng1, lat1, lng2, lat2 = transformer.transform_bounds(left, bottom, right, top)
    return float(lng1), float(lng2), float(lat1), float(lat2)

def describe_raster(ds: rasterio.io.DatasetReader, band: int = 1) -> RasterGeometry:
    """
    Flat-file geometry of one band of `ds` as written by write_band_to_flat
    (rows packed back to back, stride == width).
    """
    encoding = encoding_from_dtype(ds.dtypes[band - 1])
    return RasterGeometry(
        encoding=encoding,
        nrow=ds.height,
        ncol=ds.width,
        stride=ds.width,
        bounds=raster_lnglat_bounds(ds),
    )

def write_band_to_flat(
    ds: rasterio.io.DatasetReader,
    path: Union[str, Path],
    band: int = 1,
    max_size_gb: float = None,
    chunk_height: int = None,
) -> RasterGeometry:
    """
    Write one band of a raster to a flat file of packed rows, reading in
    chunks of rows when the band is too large to hold in memory at once.

    Args:
        ds: Open rasterio dataset reader
        path: Output flat file (overwritten)
        band: Band number to write (default: 1)
        max_size_gb: Maximum window size in GB before chunking (default: from constants)
        chunk_height: Height of each chunk in rows (default: from constants)

    Returns:
        RasterGeometry: geometry to pass to the engine for this file
    """
    if max_size_gb is None:
        max_size_gb = constants.MAX_WINDOW_SIZE_GB
    if chunk_height is None:
        chunk_height = constants.CHUNK_HEIGHT

    geometry = describe_raster(ds, band)
    dtype = geometry.encoding.dtype
    window = Window(0, 0, ds.width, ds.height)
    window_size_gb = estimate_window_size_gb(window, dtype.itemsize)
    logging.info(f"Estimated band size: {window_size_gb:.2f}GB")

    step = ds.height if window_size_gb <= max_size_gb else chunk_height
    if step < ds.height:
        logging.info("Large band detected - writing in chunks")

    with open(path, "wb") as out:
        for row_start in range(0, ds.height, step):
            chunk_window = Window(0, row_start, ds.width, min(step, ds.height - row_start))
            chunk = ds.read(band, window=chunk_window)
            np.ascontiguousarray(chunk, dtype=dtype).tofile(out)
            if step < ds.height:
                logging.info(
                    f"Wrote rows {row_start}/{ds.height} - "
                    f"Memory: {get_memory_mb():.0f}MB"
                )

    logging.info(f"Wrote band {band} to {path}: {geometry.nrow}x{geometry.ncol} {geometry.encoding.value}")
    return geometry

def allocate_flat(
    path: Union[str, Path],
    encoding: Union[str, PixelEncoding],
    nrow: int,
    stride: int,
    fill=0,
) -> Path:
    """
    Create (or truncate) a flat file sized for nrow rows of `stride` cells,
    every cell set to `fill`.
    """
    encoding = resolve_encoding(encoding)
    path = Path(path)
    mm = np.memmap(path, dtype=encoding.dtype, mode="w+", shape=(int(nrow) * int(stride),))
    if fill:
        mm[:] = fill
    mm.flush()
    del mm
    return path
