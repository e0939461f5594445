from __future__ import annotations
import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from sat_raster_engine.core.grid import Grid
from sat_raster_engine.core.interpolators import Interpolator
from sat_raster_engine.core.utils import cast_to_dtype, get_memory_mb
from sat_raster_engine.geo.projection import WebMercator, tile_local_ratios, tile_to_source
from sat_raster_engine.pipelines.config import TransformConfig

# (xs, ys) of destination cells -> (src_x, src_y, x_ratio, y_ratio); ratios may be None
CoordinateFn = Callable[
    [np.ndarray, np.ndarray],
    Tuple[np.ndarray, np.ndarray, Optional[np.ndarray], Optional[np.ndarray]],
]

@dataclass(frozen=True)
class TransformReport:
    cells_total: int
    cells_written: int
    chunks: int
    workers: int
    elapsed_s: float
    completed: bool

def resample_coordinates(src: Grid, dst: Grid) -> CoordinateFn:
    """
    Ratio scaling with a half-pixel offset, so each destination cell samples
    the centre of the source area it covers.
    """
    x_ratio = src.ncol / dst.ncol
    y_ratio = src.nrow / dst.nrow

    def coordinates(xs, ys):
        src_x = (xs + 0.5) * x_ratio - 0.5
        src_y = (ys + 0.5) * y_ratio - 0.5
        return src_x, src_y, x_ratio, y_ratio

    return coordinates

def reprojection_coordinates(
    src: Grid,
    projection: WebMercator,
    bounds: Sequence[float],
    tile_x: int,
    tile_y: int,
    total_width: int,
    total_height: int,
    with_ratios: bool = False,
) -> CoordinateFn:
    """
    Destination tile pixel -> normalized mosaic position -> (lng, lat) ->
    source pixel. Local ratios are only computed when the interpolator needs them.
    """
    args = (tile_x, tile_y, total_width, total_height, bounds, src.nrow, src.ncol)

    def coordinates(xs, ys):
        src_x, src_y = tile_to_source(projection, xs, ys, *args)
        if not with_ratios:
            return src_x, src_y, None, None
        x_ratio, y_ratio = tile_local_ratios(projection, xs, ys, *args)
        return src_x, src_y, x_ratio, y_ratio

    return coordinates

class ParallelGridTransform:
    """
    Fill every cell of `dst` with interpolator.sample(src, ...) at the source
    position given by `coordinates`.

    The flat destination index space [0, nrow*ncol) is cut into chunks of
    config.grain_size cells. Cells are independent, so chunks run on a thread
    pool in any order (the numpy kernels release the GIL) and each chunk writes
    a disjoint set of destination cells. Chunk i always draws its random
    numbers from SeedSequence(seed, spawn_key=(i,)), so the output does not
    depend on the schedule.
    """

    def __init__(
        self,
        src: Grid,
        dst: Grid,
        interpolator: Interpolator,
        coordinates: CoordinateFn,
        config: Optional[TransformConfig] = None,
    ):
        self.src = src
        self.dst = dst
        self.interpolator = interpolator
        self.coordinates = coordinates
        self.config = config if config is not None else TransformConfig()

    @property
    def n_chunks(self) -> int:
        return -(-self.dst.size // self.config.grain_size)

    def _workers(self) -> int:
        if not self.config.parallel:
            return 1
        workers = self.config.max_workers or os.cpu_count() or 1
        return max(1, min(workers, self.n_chunks))

    def _chunk_rng(self, entropy: int, chunk: int) -> Optional[np.random.Generator]:
        if not self.interpolator.needs_ratios:
            return None
        return np.random.default_rng(np.random.SeedSequence(entropy, spawn_key=(chunk,)))

    def process_span(self, start: int, stop: int, rng: Optional[np.random.Generator] = None) -> int:
        """Compute and write destination cells [start, stop) of the flat index space."""
        idx = np.arange(start, stop, dtype=np.int64)
        ys, xs = np.divmod(idx, self.dst.ncol)
        src_x, src_y, x_ratio, y_ratio = self.coordinates(xs, ys)
        values = self.interpolator.sample(self.src, src_x, src_y, x_ratio, y_ratio, rng)
        self.dst.put(ys, xs, cast_to_dtype(values, self.dst.dtype))
        return stop - start

    def _run_chunk(self, chunk: int, entropy: int, stop_event: threading.Event) -> int:
        start = chunk * self.config.grain_size
        stop = min(start + self.config.grain_size, self.dst.size)
        rng = self._chunk_rng(entropy, chunk)
        step = self.config.interrupt_check_every
        written = 0
        for span_start in range(start, stop, step):
            if stop_event.is_set():
                break
            written += self.process_span(span_start, min(span_start + step, stop), rng)
        return written

    def run(self, cancel_event: Optional[threading.Event] = None) -> TransformReport:
        """
        Transform the whole destination grid.

        Args:
            cancel_event: set it from another thread to stop early; cells already
                written stay written and the report has completed=False.
        """
        stop_event = cancel_event if cancel_event is not None else threading.Event()
        seed = self.config.seed
        entropy = seed if seed is not None else np.random.SeedSequence().entropy
        n_chunks = self.n_chunks
        workers = self._workers()

        logging.info(
            f"Transforming {self.src.nrow}x{self.src.ncol} -> {self.dst.nrow}x{self.dst.ncol} "
            f"with {self.interpolator.name}: {n_chunks} chunks, {workers} workers"
        )
        start = time.time()
        written = 0
        if workers == 1:
            for chunk in range(n_chunks):
                if stop_event.is_set():
                    break
                written += self._run_chunk(chunk, entropy, stop_event)
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(self._run_chunk, chunk, entropy, stop_event)
                    for chunk in range(n_chunks)
                ]
                try:
                    for future in as_completed(futures):
                        written += future.result()
                except BaseException:
                    for future in futures:
                        future.cancel()
                    raise

        elapsed = time.time() - start
        completed = written == self.dst.size
        if completed:
            logging.info(
                f"Wrote {written} cells in {elapsed:.2f} seconds - Memory: {get_memory_mb():.0f}MB"
            )
        else:
            logging.warning(
                f"Transform interrupted after {written}/{self.dst.size} cells; "
                f"destination is partially written"
            )
        return TransformReport(
            cells_total=self.dst.size,
            cells_written=written,
            chunks=n_chunks,
            workers=workers,
            elapsed_s=elapsed,
            completed=completed,
        )
