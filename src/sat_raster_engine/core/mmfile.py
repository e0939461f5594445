"""Memory-mapped flat files of fixed-size cells."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Union

import numpy as np

from sat_raster_engine.configs.encodings import PixelEncoding, resolve_encoding
from sat_raster_engine.errors import MappedBufferError

# Access modes understood by MappedBuffer -> numpy.memmap mode
ACCESS_MODES = {
    "r": "r",
    "read_only": "r",
    "r+": "r+",
    "read_write": "r+",
}


class MappedBuffer:
    """
    A flat file mapped into memory as a 1-D typed array.

    The buffer owns the mapping; Grids built over `array` only view it, so
    keep the MappedBuffer alive (or use it as a context manager) for as long
    as any Grid over it is in use.

    Usage:
      with MappedBuffer(path, "float32", mode="r+") as buf:
          grid = Grid(buf.array, stride, nrow, ncol)
          ...
          buf.flush()
    """

    def __init__(
        self,
        path: Union[str, Path],
        encoding: Union[str, PixelEncoding],
        mode: str = "r",
    ):
        self.path = Path(path)
        self.encoding = resolve_encoding(encoding)
        if mode not in ACCESS_MODES:
            raise MappedBufferError(
                f"Unknown access mode {mode!r}; expected one of {sorted(ACCESS_MODES)}"
            )
        self.mode = ACCESS_MODES[mode]

        try:
            nbytes = os.path.getsize(self.path)
        except OSError as e:
            raise MappedBufferError(f"Cannot read file {self.path}: {e}") from e

        itemsize = self.encoding.itemsize
        count = nbytes // itemsize
        if count == 0:
            raise MappedBufferError(
                f"Cannot map file {self.path}: {nbytes} bytes holds no {self.encoding.value} cells"
            )
        if nbytes % itemsize:
            logging.debug(
                f"{self.path}: ignoring {nbytes % itemsize} trailing bytes "
                f"after {count} {self.encoding.value} cells"
            )

        try:
            self._mm = np.memmap(
                self.path, dtype=self.encoding.dtype, mode=self.mode, shape=(count,)
            )
        except (OSError, ValueError) as e:
            raise MappedBufferError(f"Cannot map file {self.path} (mode {self.mode}): {e}") from e

        self.nbytes = nbytes
        logging.debug(f"Mapped {self.path} ({count} x {self.encoding.value}, mode {self.mode})")

    @property
    def array(self) -> np.ndarray:
        if self._mm is None:
            raise MappedBufferError(f"{self.path} has been closed")
        return self._mm

    @property
    def writable(self) -> bool:
        return self.mode == "r+"

    def __len__(self) -> int:
        return 0 if self._mm is None else self._mm.shape[0]

    def flush(self) -> None:
        """Force dirty pages to disk. No-op for read-only mappings."""
        if self._mm is not None and self.writable:
            self._mm.flush()

    def close(self) -> None:
        """Flush and release the mapping; views taken from `array` must not be used afterwards."""
        if self._mm is None:
            return
        self.flush()
        # numpy unmaps once the last reference to the mmap goes away
        self._mm = None

    @property
    def closed(self) -> bool:
        return self._mm is None

    def __enter__(self) -> "MappedBuffer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"MappedBuffer({str(self.path)!r}, {self.encoding.value}, mode={self.mode!r}, cells={len(self)})"
