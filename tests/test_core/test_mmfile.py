import numpy as np
import pytest

from sat_raster_engine.configs.encodings import PixelEncoding
from sat_raster_engine.core.mmfile import MappedBuffer
from sat_raster_engine.errors import MappedBufferError


def test_read_only_mapping(write_flat):
    path = write_flat("src.bin", np.arange(6), dtype=np.float32)
    with MappedBuffer(path, "float32") as buf:
        assert len(buf) == 6
        assert buf.encoding is PixelEncoding.FLOAT32
        assert not buf.writable
        assert buf.array.tolist() == [0, 1, 2, 3, 4, 5]
        with pytest.raises(ValueError):
            buf.array[0] = 1
    assert buf.closed


def test_read_write_flush_reaches_disk(write_flat):
    path = write_flat("dst.bin", np.zeros(4), dtype=np.int16)
    buf = MappedBuffer(path, "INT2S", mode="r+")
    buf.array[:] = [1, -2, 3, -4]
    buf.flush()
    assert np.fromfile(path, dtype=np.int16).tolist() == [1, -2, 3, -4]
    buf.close()
    buf.close()
    with pytest.raises(MappedBufferError):
        buf.array


def test_trailing_partial_cell_is_ignored(write_flat):
    path = write_flat("odd.bin", np.arange(10), dtype=np.uint8)
    with MappedBuffer(path, "float64") as buf:
        assert len(buf) == 1
        assert len(buf) * 8 <= buf.nbytes


def test_missing_file(tmp_path):
    with pytest.raises(MappedBufferError) as err:
        MappedBuffer(tmp_path / "missing.bin", "uint8")
    assert isinstance(err.value, OSError)


def test_empty_file(tmp_path):
    path = tmp_path / "empty.bin"
    path.write_bytes(b"")
    with pytest.raises(MappedBufferError):
        MappedBuffer(path, "uint8", mode="r+")


def test_unknown_mode(write_flat):
    path = write_flat("a.bin", np.zeros(2), dtype=np.uint8)
    with pytest.raises(MappedBufferError):
        MappedBuffer(path, "uint8", mode="w")


def test_bool_cells_are_one_byte(write_flat):
    path = write_flat("mask.bin", [1, 0, 0, 1], dtype=np.uint8)
    with MappedBuffer(path, "LOG1S") as buf:
        assert buf.array.dtype == np.bool_
        assert buf.array.tolist() == [True, False, False, True]
