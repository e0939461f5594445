"""Core utility functions for numeric conversion and diagnostics."""
import numpy as np
import psutil
import os

def get_grid_memory(nrow, stride, dtype: np.dtype, pow = 2) -> float:
    """
    Estimate the memory size of a strided grid buffer.

    Args:
        nrow: Number of rows in the grid
        stride: Elements per row in the underlying buffer
        dtype: Data type of the cells (e.g., np.uint16)
        pow: Power of 1024 to convert bytes to desired unit (default: 2 for MB)
    Returns:
        float: Estimated size in the requested unit
    """
    return (nrow * stride * np.dtype(dtype).itemsize) / (1024 ** pow)

def get_memory_mb() -> float:
    """
    Get the current memory usage of the process in megabytes.

    Returns:
        float: Memory usage in MB
    """
    process = psutil.Process(os.getpid())
    return process.memory_info().rss / (1024 * 1024)

def round_half_away(values):
    """
    Round to the nearest integer, ties away from zero (np.round rounds ties to even).
    """
    values = np.asarray(values, dtype=np.float64)
    return np.copysign(np.floor(np.abs(values) + 0.5), values)

def cast_to_dtype(values: np.ndarray, dtype: np.dtype) -> np.ndarray:
    """
    Convert sampled values to a destination cell type.

    Floats pass through. Integers are rounded half away from zero and clipped
    to the type's range; NaN becomes 0. Booleans are rounded, then non-zero is True.
    """
    dtype = np.dtype(dtype)
    values = np.asarray(values)
    if values.dtype == dtype:
        return values
    if np.issubdtype(dtype, np.floating):
        return values.astype(dtype)
    rounded = round_half_away(values)
    if dtype == np.bool_:
        return rounded != 0
    info = np.iinfo(dtype)
    rounded = np.nan_to_num(rounded, nan=0.0)
    return np.clip(rounded, info.min, info.max).astype(dtype)
