import numpy as np
import pytest


@pytest.fixture
def write_flat(tmp_path):
    """
    Write an array to a flat file of packed cells under tmp_path and return its path.
    """
    def _write(name, values, dtype=None):
        arr = np.ascontiguousarray(values, dtype=dtype)
        path = tmp_path / name
        arr.tofile(path)
        return path
    return _write


@pytest.fixture
def quadrant_source():
    """4x4 float64 grid holding 0..15 row-major."""
    return np.arange(16, dtype=np.float64)
