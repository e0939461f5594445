import numpy as np
import pytest
import rasterio
from pyproj import Transformer
from rasterio.transform import from_bounds

from sat_raster_engine.configs.encodings import PixelEncoding
from sat_raster_engine.geo.raster import (
    allocate_flat,
    describe_raster,
    raster_lnglat_bounds,
    write_band_to_flat,
)


def make_tif(path, data, crs, bounds):
    height, width = data.shape
    with rasterio.open(
        path, "w",
        driver="GTiff",
        height=height,
        width=width,
        count=1,
        dtype=data.dtype,
        crs=crs,
        transform=from_bounds(*bounds, width, height),
    ) as dst:
        dst.write(data, 1)
    return path


def test_write_band_to_flat(tmp_path):
    data = np.arange(7 * 5, dtype=np.uint16).reshape(7, 5)
    tif = make_tif(tmp_path / "band.tif", data, "EPSG:4326", (10.0, 40.0, 15.0, 47.0))
    flat = tmp_path / "band.bin"
    with rasterio.open(tif) as ds:
        geometry = write_band_to_flat(ds, flat)
    assert geometry.encoding is PixelEncoding.UINT16
    assert (geometry.nrow, geometry.ncol, geometry.stride) == (7, 5, 5)
    assert geometry.bounds == pytest.approx((10.0, 15.0, 40.0, 47.0))
    np.testing.assert_array_equal(np.fromfile(flat, dtype=np.uint16), data.ravel())


def test_write_band_to_flat_in_chunks(tmp_path):
    data = np.linspace(-1, 1, 11 * 4, dtype=np.float32).reshape(11, 4)
    tif = make_tif(tmp_path / "band.tif", data, "EPSG:4326", (0.0, 0.0, 4.0, 11.0))
    flat = tmp_path / "band.bin"
    with rasterio.open(tif) as ds:
        write_band_to_flat(ds, flat, max_size_gb=0.0, chunk_height=3)
    np.testing.assert_array_equal(np.fromfile(flat, dtype=np.float32), data.ravel())


def test_lnglat_bounds_from_web_mercator(tmp_path):
    data = np.zeros((4, 4), dtype=np.uint8)
    bounds = (-10018754.171394622, 0.0, 10018754.171394622, 5000000.0)
    tif = make_tif(tmp_path / "merc.tif", data, "EPSG:3857", bounds)
    _, top_lat = Transformer.from_crs("EPSG:3857", "EPSG:4326", always_xy=True).transform(0.0, 5000000.0)
    with rasterio.open(tif) as ds:
        lng1, lng2, lat1, lat2 = raster_lnglat_bounds(ds)
        geometry = describe_raster(ds)
    assert lng1 == pytest.approx(-90.0)
    assert lng2 == pytest.approx(90.0)
    assert lat1 == pytest.approx(0.0, abs=1e-9)
    assert lat2 == pytest.approx(top_lat)
    assert geometry.encoding is PixelEncoding.UINT8


def test_allocate_flat(tmp_path):
    path = allocate_flat(tmp_path / "dst.bin", "int16", nrow=3, stride=5, fill=-7)
    out = np.fromfile(path, dtype=np.int16)
    assert out.shape == (15,)
    assert np.all(out == -7)
    path = allocate_flat(tmp_path / "zeros.bin", "FLT8S", nrow=2, stride=2)
    assert np.fromfile(path, dtype=np.float64).tolist() == [0.0, 0.0, 0.0, 0.0]
