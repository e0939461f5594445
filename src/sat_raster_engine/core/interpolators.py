"""
Interpolation of grid values at fractional (x, y) = (col, row) coordinates.

Every interpolator is vectorised over a chunk of sample positions and reads
the grid only through Grid.take, so positions slightly outside the grid are
handled by the grid's addressing policy (edge replication under clamp).
"""
from typing import Optional

import numpy as np

from sat_raster_engine.configs import constants
from sat_raster_engine.core.grid import Grid
from sat_raster_engine.core.stats import mode_rows
from sat_raster_engine.core.utils import round_half_away
from sat_raster_engine.errors import ConfigurationError


def linear_interp(pos, pos_a, pos_b, value_a, value_b):
    """
    Given value_a at pos_a and value_b at pos_b, interpolate the value at pos
    with linear weighting. Zero distance returns value_a.
    """
    dist = np.asarray(pos_b - pos_a, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        result = value_b * (pos - pos_a) / dist + value_a * (pos_b - pos) / dist
    return np.where(dist == 0, value_a, result)


class Interpolator:
    name = ""
    # Area-based variants need the local source-cells-per-destination-cell ratios.
    needs_ratios = False

    def sample(
        self,
        grid: Grid,
        x: np.ndarray,
        y: np.ndarray,
        x_ratio=None,
        y_ratio=None,
        rng: Optional[np.random.Generator] = None,
    ) -> np.ndarray:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class NearestNeighbor(Interpolator):
    name = "nearest-neighbor"

    def sample(self, grid, x, y, x_ratio=None, y_ratio=None, rng=None):
        return grid.take(round_half_away(y), round_half_away(x))


class Bilinear(Interpolator):
    name = "bilinear"

    def sample(self, grid, x, y, x_ratio=None, y_ratio=None, rng=None):
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        x1, x2 = np.floor(x), np.ceil(x)
        y1, y2 = np.floor(y), np.ceil(y)

        # Values at the four pixels surrounding x/y.
        nw = grid.take(y1, x1).astype(np.float64)
        ne = grid.take(y1, x2).astype(np.float64)
        sw = grid.take(y2, x1).astype(np.float64)
        se = grid.take(y2, x2).astype(np.float64)

        n = linear_interp(x, x1, x2, nw, ne)
        s = linear_interp(x, x1, x2, sw, se)
        return linear_interp(y, y1, y2, n, s)


class NeighborMode(Interpolator):
    """
    Most frequent source value in the floor(x_ratio) x floor(y_ratio) block
    around each sample position. For categorical rasters (land cover classes),
    where averaging codes would invent classes.
    """
    name = "mode"
    needs_ratios = True

    def __init__(self, max_window_cells: int = constants.MAX_MODE_WINDOW_CELLS):
        if max_window_cells <= 0:
            raise ConfigurationError(f"max_window_cells must be positive, got {max_window_cells}")
        self.max_window_cells = max_window_cells

    def sample(self, grid, x, y, x_ratio=None, y_ratio=None, rng=None):
        if x_ratio is None or y_ratio is None:
            raise ConfigurationError("Mode interpolation needs x_ratio and y_ratio")
        x = np.asarray(x, dtype=np.float64).ravel()
        y = np.asarray(y, dtype=np.float64).ravel()
        if rng is None:
            rng = np.random.default_rng()

        cx = round_half_away(x).astype(np.int64)
        cy = round_half_away(y).astype(np.int64)
        widths = np.maximum(1, np.floor(np.broadcast_to(x_ratio, x.shape))).astype(np.int64)
        heights = np.maximum(1, np.floor(np.broadcast_to(y_ratio, y.shape))).astype(np.int64)

        out = np.empty(x.shape, dtype=grid.dtype)
        if x.size == 0:
            return out
        for w, h in np.unique(np.stack([widths, heights], axis=1), axis=0):
            sel = np.flatnonzero((widths == w) & (heights == h))
            # Gather at most max_window_cells source cells at a time
            batch = max(1, self.max_window_cells // int(w * h))
            for start in range(0, sel.size, batch):
                part = sel[start:start + batch]
                left = cx[part] - w // 2
                top = cy[part] - h // 2
                rows = top[:, None, None] + np.arange(h)[None, :, None]
                cols = left[:, None, None] + np.arange(w)[None, None, :]
                window = grid.take(rows, cols).reshape(part.size, w * h)
                out[part] = mode_rows(window, rng)
        return out

    def __repr__(self) -> str:
        return f"NeighborMode(max_window_cells={self.max_window_cells})"


INTERPOLATORS = {
    "nearest-neighbor": NearestNeighbor,
    "nearest": NearestNeighbor,
    "ngb": NearestNeighbor,
    "bilinear": Bilinear,
    "mode": NeighborMode,
}

def get_interpolator(method) -> Interpolator:
    """
    Interpolator instance for a method name ("nearest-neighbor"/"ngb",
    "bilinear", "mode") or an existing Interpolator.
    """
    if isinstance(method, Interpolator):
        return method
    key = str(method).strip().lower()
    if key not in INTERPOLATORS:
        raise ConfigurationError(
            f"Unknown interpolation method {method!r}; expected one of {sorted(INTERPOLATORS)}"
        )
    return INTERPOLATORS[key]()
