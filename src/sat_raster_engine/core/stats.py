from typing import Optional
import numpy as np

from sat_raster_engine.errors import NoModeError

def mode(values, rng: Optional[np.random.Generator] = None):
    """
    Most frequent value of `values`, ties broken uniformly at random.

    Walks the sorted values run by run. A strictly longer run wins outright and
    resets the tie count; a run as long as the current best is the (ties+1)-th
    contender and takes over with probability 1/(ties+1), which leaves every
    tied value equally likely without counting the ties up front.

    Args:
        values: Non-empty 1-D collection of numbers
        rng: Random generator used for tie breaks (default: fresh default_rng())

    Returns:
        The winning value, as the element type of `values`

    Raises:
        NoModeError: `values` is empty
    """
    arr = np.sort(np.asarray(values).ravel())
    if arr.size == 0:
        raise NoModeError("Can't take the mode of zero values")
    if rng is None:
        rng = np.random.default_rng()

    # Start index of each run of equal values
    starts = np.flatnonzero(np.concatenate(([True], arr[1:] != arr[:-1])))
    counts = np.diff(np.append(starts, arr.size))

    winner = arr[starts[0]]
    max_count = 0
    ties = 0
    for start, count in zip(starts, counts):
        if count > max_count:
            max_count = count
            winner = arr[start]
            ties = 0
        elif count == max_count:
            ties += 1
            if rng.integers(ties + 1) == 0:
                winner = arr[start]
    return winner

def mode_rows(values: np.ndarray, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Row-wise mode of a 2-D array, without a Python loop over rows.

    Each row is sorted and split into runs of equal values. Every run gets a
    uniform random key, and among the longest runs of a row the one with the
    largest key wins, so each tied value is equally likely (the same
    distribution as mode()).

    Args:
        values: 2-D array, one sample window per row
        rng: Random generator used for tie breaks (default: fresh default_rng())

    Returns:
        np.ndarray: One value per row, as the element type of `values`

    Raises:
        NoModeError: rows are empty
    """
    values = np.atleast_2d(values)
    n, m = values.shape
    if n == 0:
        return np.empty(0, dtype=values.dtype)
    if m == 0:
        raise NoModeError("Can't take the mode of zero values")
    if rng is None:
        rng = np.random.default_rng()

    arr = np.sort(values, axis=1)
    run_start = np.ones((n, m), dtype=bool)
    run_start[:, 1:] = arr[:, 1:] != arr[:, :-1]
    # Run number of every element within its row; a row has at most m runs
    run_id = np.cumsum(run_start, axis=1) - 1
    row_base = np.arange(n)[:, None] * m
    counts = np.bincount((run_id + row_base).ravel(), minlength=n * m).reshape(n, m)

    longest = counts == counts.max(axis=1, keepdims=True)
    keys = rng.random((n, m))
    keys[~longest] = -1.0
    winner = keys.argmax(axis=1)

    # Sorted position where each run begins
    start_pos = np.zeros((n, m), dtype=np.int64)
    start_rows, start_cols = np.nonzero(run_start)
    start_pos[start_rows, run_id[start_rows, start_cols]] = start_cols
    rows = np.arange(n)
    return arr[rows, start_pos[rows, winner]]
