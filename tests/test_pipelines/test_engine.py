import logging

import numpy as np
import pytest

from sat_raster_engine import reproject, resample
from sat_raster_engine.configs.constants import WORLD_BOUNDS
from sat_raster_engine.errors import ConfigurationError, GeometryError, MappedBufferError
from sat_raster_engine.geo.raster import allocate_flat
from sat_raster_engine.pipelines import engine
from sat_raster_engine.pipelines.config import TransformConfig


def test_resample_files_nearest(write_flat, tmp_path, quadrant_source):
    src = write_flat("src.bin", quadrant_source)
    dst = allocate_flat(tmp_path / "dst.bin", "float64", 2, 2)
    report = resample(src, 4, 4, 4, dst, 2, 2, 2, "float64", "nearest-neighbor")
    assert report.completed
    assert np.fromfile(dst, dtype=np.float64).tolist() == [5.0, 7.0, 13.0, 15.0]


def test_resample_files_bilinear_raster_code(write_flat, tmp_path, quadrant_source):
    src = write_flat("src.bin", quadrant_source)
    dst = allocate_flat(tmp_path / "dst.bin", "FLT8S", 2, 2)
    resample(src, 4, 4, 4, dst, 2, 2, 2, "FLT8S", "bilinear")
    assert np.fromfile(dst, dtype=np.float64).tolist() == [2.5, 4.5, 10.5, 12.5]


@pytest.mark.parametrize("encoding, dtype", [
    ("float64", np.float64),
    ("float32", np.float32),
    ("uint32", np.uint32),
    ("int32", np.int32),
    ("uint16", np.uint16),
    ("int16", np.int16),
    ("uint8", np.uint8),
    ("int8", np.int8),
    ("bool1", np.bool_),
])
def test_resample_every_encoding(write_flat, tmp_path, encoding, dtype):
    values = (np.arange(6 * 5) % (2 if dtype is np.bool_ else 50)).astype(dtype)
    src = write_flat("src.bin", values)
    dst = allocate_flat(tmp_path / "dst.bin", encoding, 6, 5)
    resample(src, 5, 6, 5, dst, 5, 6, 5, encoding, "ngb", config=TransformConfig(grain_size=7))
    np.testing.assert_array_equal(np.fromfile(dst, dtype=dtype), values)


def test_resample_padded_source(write_flat, tmp_path):
    # stride 5 with 3 live columns; padding cells hold -99
    padded = np.full((2, 5), -99.0)
    padded[:, :3] = [[1, 2, 3], [4, 5, 6]]
    src = write_flat("src.bin", padded)
    dst = allocate_flat(tmp_path / "dst.bin", "float64", 2, 3)
    resample(src, 5, 2, 3, dst, 3, 2, 3, "float64", "bilinear")
    assert np.fromfile(dst, dtype=np.float64).tolist() == [1, 2, 3, 4, 5, 6]


def test_resample_mode_files(write_flat, tmp_path):
    classes = np.repeat(np.repeat(np.array([[1, 2], [3, 4]], dtype=np.uint8), 3, axis=0), 3, axis=1)
    src = write_flat("landcover.bin", classes)
    dst = allocate_flat(tmp_path / "dst.bin", "uint8", 2, 2)
    resample(src, 6, 6, 6, dst, 2, 2, 2, "INT1U", "mode", config=TransformConfig(seed=1))
    assert np.fromfile(dst, dtype=np.uint8).tolist() == [1, 2, 3, 4]


def test_unsupported_encoding_fails_before_io(tmp_path, monkeypatch):
    def no_io(*args, **kwargs):
        raise AssertionError("file opened")

    monkeypatch.setattr(engine, "MappedBuffer", no_io)
    missing = tmp_path / "missing.bin"
    with pytest.raises(ConfigurationError):
        resample(missing, 4, 4, 4, missing, 2, 2, 2, "INT9", "bilinear")
    with pytest.raises(ConfigurationError):
        reproject(missing, 4, 4, 4, -180, 180, -90, 90, missing, 2, 2, 2, 0, 0, 2, 2, "INT9", "bilinear")


@pytest.mark.parametrize("kwargs", [
    dict(method="cubic"),
    dict(from_rows=0),
    dict(to_cols=0),
    dict(from_stride=3),
    dict(from_rows=float("inf")),
    dict(to_cols=float("nan")),
    dict(to_stride=2.5),
])
def test_configuration_errors_before_io(tmp_path, kwargs):
    args = dict(
        from_path=tmp_path / "missing.bin", from_stride=4, from_rows=4, from_cols=4,
        to_path=tmp_path / "missing.bin", to_stride=2, to_rows=2, to_cols=2,
        pixel_encoding="float64", method="bilinear",
    )
    args.update(kwargs)
    with pytest.raises(ConfigurationError):
        resample(**args)


def test_missing_source_is_io_error(tmp_path):
    dst = allocate_flat(tmp_path / "dst.bin", "float64", 2, 2)
    with pytest.raises(MappedBufferError):
        resample(tmp_path / "missing.bin", 4, 4, 4, dst, 2, 2, 2, "float64", "bilinear")


def test_geometry_mismatch_is_hard_failure(write_flat, tmp_path, quadrant_source):
    src = write_flat("src.bin", quadrant_source)
    dst = allocate_flat(tmp_path / "dst.bin", "float64", 2, 2, fill=-1)
    with pytest.raises(GeometryError):
        resample(src, 4, 5, 4, dst, 2, 2, 2, "float64", "nearest-neighbor")
    # destination is untouched
    assert np.fromfile(dst, dtype=np.float64).tolist() == [-1.0] * 4


def world_source(write_flat, nrow=90, ncol=180):
    rng = np.random.default_rng(7)
    values = rng.normal(size=nrow * ncol)
    return write_flat("world.bin", values), values


@pytest.mark.parametrize("method", ["nearest-neighbor", "bilinear"])
def test_tiles_reconstruct_full_mosaic(write_flat, tmp_path, method):
    src, _ = world_source(write_flat)
    total = 64
    config = TransformConfig(max_workers=2, grain_size=100)
    full = allocate_flat(tmp_path / "full.bin", "float64", total, total)
    left = allocate_flat(tmp_path / "left.bin", "float64", total, total // 2)
    right = allocate_flat(tmp_path / "right.bin", "float64", total, total // 2)

    reproject(src, 180, 90, 180, *WORLD_BOUNDS, full, total, total, total,
              0, 0, total, total, "float64", method, config=config)
    reproject(src, 180, 90, 180, *WORLD_BOUNDS, left, total // 2, total, total // 2,
              0, 0, total, total, "float64", method, config=config)
    reproject(src, 180, 90, 180, *WORLD_BOUNDS, right, total // 2, total, total // 2,
              total // 2, 0, total, total, "float64", method, config=config)

    full_arr = np.fromfile(full, dtype=np.float64).reshape(total, total)
    left_arr = np.fromfile(left, dtype=np.float64).reshape(total, total // 2)
    right_arr = np.fromfile(right, dtype=np.float64).reshape(total, total // 2)
    np.testing.assert_array_equal(full_arr[:, : total // 2], left_arr)
    np.testing.assert_array_equal(full_arr[:, total // 2:], right_arr)


def test_reproject_mode_keeps_categories(write_flat, tmp_path):
    nrow, ncol = 90, 180
    # four longitude bands of 90 degrees each
    classes = np.tile((np.arange(ncol) // 45).astype(np.uint8), nrow)
    src = write_flat("bands.bin", classes)
    total = 64
    dst = allocate_flat(tmp_path / "dst.bin", "uint8", total, total)
    report = reproject(src, ncol, nrow, ncol, *WORLD_BOUNDS, dst, total, total, total,
                       0, 0, total, total, "INT1U", "mode", config=TransformConfig(seed=4))
    assert report.completed
    out = np.fromfile(dst, dtype=np.uint8).reshape(total, total)
    assert set(np.unique(out)) <= {0, 1, 2, 3}
    assert np.all(out[:, 0] == 0)
    assert np.all(out[:, -1] == 3)
    assert np.all(out[:, 8:14] == 0)


def test_reproject_latitude_placement(write_flat, tmp_path):
    nrow, ncol = 90, 180
    rows = np.repeat(np.arange(nrow, dtype=np.float64), ncol)
    src = write_flat("rows.bin", rows)
    total = 64
    dst = allocate_flat(tmp_path / "dst.bin", "float64", total, total)
    reproject(src, ncol, nrow, ncol, *WORLD_BOUNDS, dst, total, total, total,
              0, 0, total, total, "float64", "nearest-neighbor")
    out = np.fromfile(dst, dtype=np.float64).reshape(total, total)
    # the middle row of the mosaic is the equator, i.e. the middle source row
    assert np.all(out[total // 2] == nrow // 2)
    # the top row is ~85.05N: srcY = (1 - 175.05/180) * 90 = 2.47
    assert np.all(out[0] == 2)
    # rows only depend on latitude
    assert np.all(out == out[:, :1])


def test_reproject_partial_bounds_sample_edges(write_flat, tmp_path):
    # a 2x2 source covering only the north-east quarter of the world
    src = write_flat("ne.bin", np.array([1.0, 2.0, 3.0, 4.0]))
    dst = allocate_flat(tmp_path / "dst.bin", "float64", 4, 4)
    reproject(src, 2, 2, 2, 0, 180, 0, 90, dst, 4, 4, 4, 0, 0, 4, 4, "float64", "nearest-neighbor")
    out = np.fromfile(dst, dtype=np.float64).reshape(4, 4)
    # west of the source replicates its western column, south replicates its southern row
    assert out[3, 0] == 3.0
    assert out[0, 3] == 2.0


@pytest.mark.parametrize("bounds, tile", [
    ((10, -10, -90, 90), (0, 0, 4, 4)),
    ((-180, 180, 90, -90), (0, 0, 4, 4)),
    ((-180, 180, -90, float("nan")), (0, 0, 4, 4)),
    (WORLD_BOUNDS, (0, 0, 0, 4)),
    (WORLD_BOUNDS, (-1, 0, 4, 4)),
])
def test_reproject_configuration_errors(tmp_path, bounds, tile):
    missing = tmp_path / "missing.bin"
    with pytest.raises(ConfigurationError):
        reproject(missing, 4, 4, 4, *bounds, missing, 2, 2, 2, *tile, "float64", "bilinear")


def test_reproject_unknown_projection(tmp_path):
    missing = tmp_path / "missing.bin"
    with pytest.raises(ConfigurationError):
        reproject(missing, 4, 4, 4, *WORLD_BOUNDS, missing, 2, 2, 2, 0, 0, 2, 2,
                  "float64", "bilinear", projection="EPSG:4326")


def test_resample_logs_mapped_size(write_flat, tmp_path, quadrant_source, caplog):
    src = write_flat("src.bin", quadrant_source)
    dst = allocate_flat(tmp_path / "dst.bin", "float64", 2, 2)
    with caplog.at_level(logging.INFO):
        resample(src, 4, 4, 4, dst, 2, 2, 2, "float64", "nearest-neighbor")
    # 16 and 4 float64 cells
    expected = f"Mapping {16 * 8 / 1024**2:.2f} MB source and {4 * 8 / 1024**2:.2f} MB destination"
    assert expected in caplog.text
