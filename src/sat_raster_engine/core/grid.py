"""Strided 2-D view over a flat cell buffer."""
from __future__ import annotations

import logging
import numbers
from enum import Enum
from typing import Iterator, Optional, Tuple, Union

import numpy as np

from sat_raster_engine.errors import ConfigurationError, GeometryError, GridIndexError


class AddressingPolicy(Enum):
    """
    What Grid.offset does with a coordinate outside the grid.

    CLAMP maps it to the nearest edge cell (edge replication). Interpolators
    rely on this near tile boundaries, where sample positions fall half a cell
    outside the raster.
    STRICT raises GridIndexError instead, for diagnosing caller bugs.
    """
    CLAMP = "clamp"
    STRICT = "strict"


def resolve_policy(policy: Union[str, AddressingPolicy]) -> AddressingPolicy:
    if isinstance(policy, AddressingPolicy):
        return policy
    try:
        return AddressingPolicy(str(policy).lower())
    except ValueError:
        raise ConfigurationError(
            f"Unknown addressing policy {policy!r}; expected 'clamp' or 'strict'"
        ) from None


class Grid:
    """
    Interpret a 1-D buffer as an nrow x ncol matrix whose rows start every
    `stride` elements. The grid never owns, copies or allocates the buffer:
    writes through `set`/`put` land directly in it (e.g. in a memory-mapped
    file), so the buffer must outlive the grid.

    Every address goes through `offset`, which keeps it inside the buffer
    extent under both policies.
    """

    def __init__(
        self,
        buffer: np.ndarray,
        stride: int,
        nrow: int,
        ncol: int,
        policy: Union[str, AddressingPolicy] = AddressingPolicy.CLAMP,
    ):
        stride, nrow, ncol = int(stride), int(nrow), int(ncol)
        if nrow <= 0 or ncol <= 0:
            raise ConfigurationError(f"Grid can't be created with 0 cells ({nrow}x{ncol})")
        if stride < ncol:
            raise ConfigurationError(f"Grid stride {stride} is smaller than column count {ncol}")

        if not isinstance(buffer, np.ndarray):
            raise ConfigurationError(f"Grid buffer must be a numpy array, got {type(buffer)}")
        if buffer.ndim != 1:
            if not buffer.flags.c_contiguous:
                raise ConfigurationError("Grid buffer must be 1-D or C-contiguous")
            buffer = buffer.reshape(-1)

        # The last row does not need padding out to a full stride.
        required = (nrow - 1) * stride + ncol
        if buffer.size < required:
            raise GeometryError(
                f"Grid of {nrow} rows x {ncol} cols with stride {stride} needs "
                f"{required} elements, buffer holds {buffer.size}"
            )
        if buffer.size > nrow * stride:
            logging.debug(
                f"Buffer holds {buffer.size} elements, grid addresses {nrow * stride}"
            )

        self._buffer = buffer
        self._stride = stride
        self._nrow = nrow
        self._ncol = ncol
        self._policy = resolve_policy(policy)

    @property
    def stride(self) -> int:
        return self._stride

    @property
    def nrow(self) -> int:
        return self._nrow

    @property
    def ncol(self) -> int:
        return self._ncol

    @property
    def shape(self) -> Tuple[int, int]:
        return self._nrow, self._ncol

    @property
    def size(self) -> int:
        return self._nrow * self._ncol

    @property
    def dtype(self) -> np.dtype:
        return self._buffer.dtype

    @property
    def policy(self) -> AddressingPolicy:
        return self._policy

    @property
    def buffer(self) -> np.ndarray:
        return self._buffer

    def _index(self, values, limit: int, axis: str) -> np.ndarray:
        idx = np.asarray(values)
        if idx.dtype.kind == "O":
            return self._index_objects(idx, limit, axis)
        if idx.dtype.kind not in "iufb":
            raise GridIndexError(f"{axis} index must be numeric, got {idx.dtype}")

        if self._policy is AddressingPolicy.STRICT:
            bad = (idx < 0) | (idx >= limit)
            if idx.dtype.kind == "f":
                bad |= np.isnan(idx)
            if np.any(bad):
                first = np.asarray(idx)[bad].flat[0]
                raise GridIndexError(f"{axis} {first} outside [0, {limit})")
            return idx.astype(np.int64)

        if idx.dtype.kind == "f":
            idx = np.nan_to_num(idx, nan=0.0)
        return np.clip(idx, 0, limit - 1).astype(np.int64)

    def _index_objects(self, idx: np.ndarray, limit: int, axis: str) -> np.ndarray:
        # Python ints beyond the int64 range arrive as an object array
        flat = idx.ravel()
        if not all(isinstance(v, numbers.Integral) for v in flat):
            raise GridIndexError(f"{axis} index must be numeric, got {idx.dtype}")
        if self._policy is AddressingPolicy.STRICT:
            for v in flat:
                if v < 0 or v >= limit:
                    raise GridIndexError(f"{axis} {v} outside [0, {limit})")
        clamped = [min(max(int(v), 0), limit - 1) for v in flat]
        return np.array(clamped, dtype=np.int64).reshape(idx.shape)

    def offset(self, row, col):
        """
        Flat buffer offset of (row, col). Accepts scalars or broadcastable
        arrays; always lands in [0, nrow * stride).
        """
        rows = self._index(row, self._nrow, "row")
        cols = self._index(col, self._ncol, "col")
        result = rows * self._stride + cols
        if result.ndim == 0:
            return int(result)
        return result

    # The address of a single cell.
    at = offset

    def get(self, row: int, col: int):
        return self._buffer[self.offset(row, col)]

    def set(self, row: int, col: int, value) -> None:
        self._buffer[self.offset(row, col)] = value

    def take(self, rows, cols) -> np.ndarray:
        return self._buffer[self.offset(rows, cols)]

    def put(self, rows, cols, values) -> None:
        self._buffer[self.offset(rows, cols)] = values

    def subgrid(self, row_off: int, col_off: int, nrow: int, ncol: int) -> "Grid":
        """
        View of the rectangle starting at (row_off, col_off). Shares the parent
        buffer and stride; writes are visible in the parent.
        """
        row_off, col_off = int(row_off), int(col_off)
        if (
            row_off < 0 or col_off < 0
            or row_off + int(nrow) > self._nrow
            or col_off + int(ncol) > self._ncol
        ):
            raise GridIndexError(
                f"Sub-grid {nrow}x{ncol} at ({row_off}, {col_off}) does not fit "
                f"in {self._nrow}x{self._ncol}"
            )
        start = row_off * self._stride + col_off
        return Grid(self._buffer[start:], self._stride, nrow, ncol, self._policy)

    def cells(
        self,
        row_start: int = 0,
        row_end: Optional[int] = None,
        col_start: int = 0,
        col_end: Optional[int] = None,
    ) -> Iterator[Tuple[int, int]]:
        """
        Row-major (row, col) pairs of a rectangular region, end bounds exclusive.
        """
        row_end = self._nrow if row_end is None else row_end
        col_end = self._ncol if col_end is None else col_end
        for row in range(row_start, row_end):
            for col in range(col_start, col_end):
                yield row, col

    def to_array(self) -> np.ndarray:
        """(nrow, ncol) strided view of the buffer; no copy."""
        step = self._buffer.strides[0]
        return np.lib.stride_tricks.as_strided(
            self._buffer,
            shape=(self._nrow, self._ncol),
            strides=(self._stride * step, step),
        )

    def __repr__(self) -> str:
        return (
            f"Grid(nrow={self._nrow}, ncol={self._ncol}, stride={self._stride}, "
            f"dtype={self.dtype}, policy={self._policy.value})"
        )
