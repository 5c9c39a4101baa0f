from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

import numpy as np

from mandelview.color import ColorMode, colorize_column
from mandelview.errors import AllocationError, ConfigError
from mandelview.escape import EscapeTimeEvaluator
from mandelview.mapping import (
    DEFAULT_CENTER,
    DEFAULT_UNIT,
    DEFAULT_ZOOM,
    DerivedMapping,
    View,
    derive_mapping,
    precision_exhausted,
    strict_int,
    validate_size,
)
from mandelview.util.logging_setup import get_logger

DEFAULT_ITER_MAX = 250
ITER_STEP = 50
DEFAULT_WORKERS = 4

logger = get_logger("rasterizer")


def _positive_int(name: str, value) -> int:
    n = strict_int(name, value)
    if n < 1:
        raise ConfigError(f"{name} must be >= 1, got {n}")
    return n


@dataclass(frozen=True)
class RasterConfig:
    width: int
    height: int
    iter_max: int
    color_mode: ColorMode = ColorMode.GRAYSCALE
    worker_count: int = DEFAULT_WORKERS

    def validated(self) -> "RasterConfig":
        width, height = validate_size(self.width, self.height)
        return RasterConfig(
            width=width,
            height=height,
            iter_max=_positive_int("iter_max", self.iter_max),
            color_mode=ColorMode.parse(self.color_mode),
            worker_count=_positive_int("worker_count", self.worker_count),
        )


def partition_columns(width: int, worker_count: int) -> List[Tuple[int, int]]:
    """Split [0, width) into worker_count contiguous ranges, possibly empty."""
    return [(n * width // worker_count, (n + 1) * width // worker_count) for n in range(worker_count)]


def _allocate(width: int, height: int) -> np.ndarray:
    try:
        return np.zeros((height, width, 3), dtype=np.uint8)
    except (MemoryError, ValueError) as e:
        raise AllocationError(f"cannot allocate {width}x{height} RGB buffer: {e}") from e


def _read_only(arr: np.ndarray) -> np.ndarray:
    # backed by a read-only buffer so the flag cannot be switched back on
    return np.frombuffer(memoryview(arr.reshape(-1)).toreadonly(), dtype=arr.dtype).reshape(arr.shape)


class Rasterizer:
    """Mandelbrot rasterizer with a dirty-flag cache.

    All parameters, the dirty flag and the pixel buffer sit behind one lock.
    Setters mark the cached frame dirty; :meth:`compute` redraws it on
    ``worker_count`` threads, each owning a contiguous range of columns, and
    returns a read-only view that stays valid until the next mutation.
    """

    def __init__(
        self,
        iter_max: int,
        width: int,
        height: int,
        center_x: float = DEFAULT_CENTER[0],
        center_y: float = DEFAULT_CENTER[1],
        unit: float = DEFAULT_UNIT,
        zoom: float = DEFAULT_ZOOM,
        worker_count: int = DEFAULT_WORKERS,
        color_mode: ColorMode = ColorMode.GRAYSCALE,
        evaluator: Optional[EscapeTimeEvaluator] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._view = View(center_x=center_x, center_y=center_y, zoom=zoom, unit=unit).validated()
        self._config = RasterConfig(width, height, iter_max, color_mode, worker_count).validated()
        self._pixels = _allocate(self._config.width, self._config.height)
        self._evaluator = evaluator if evaluator is not None else EscapeTimeEvaluator()
        self._mapping: Optional[DerivedMapping] = None
        self._dirty = True
        self._generation = 0

    # -- setters ---------------------------------------------------------

    def set_size(self, width: int, height: int) -> None:
        with self._lock:
            config = replace(self._config, width=width, height=height).validated()
            pixels = _allocate(config.width, config.height)
            self._config = config
            self._pixels = pixels
            self._dirty = True

    def set_view(self, center_x: float, center_y: float, zoom: float) -> None:
        with self._lock:
            self._set_view_locked(center_x, center_y, zoom)

    def set_iter_max(self, iter_max: int) -> None:
        with self._lock:
            self._config = replace(self._config, iter_max=_positive_int("iter_max", iter_max))
            self._dirty = True

    def set_color_mode(self, mode) -> None:
        with self._lock:
            self._config = replace(self._config, color_mode=ColorMode.parse(mode))
            self._dirty = True

    def set_worker_count(self, worker_count: int) -> None:
        # parallelism only; rendered pixels stay valid
        with self._lock:
            self._config = replace(self._config, worker_count=_positive_int("worker_count", worker_count))

    def _set_view_locked(self, center_x, center_y, zoom) -> None:
        self._view = replace(self._view, center_x=center_x, center_y=center_y, zoom=zoom).validated()
        self._dirty = True

    # -- navigation ------------------------------------------------------

    def pan_pixels(self, dx: float, dy: float) -> None:
        """Move the centre by a screen-space offset given in pixels."""
        with self._lock:
            view, config = self._view, self._config
            fac = derive_mapping(view, config.width, config.height).x_step
            self._set_view_locked(view.center_x + dx * fac, view.center_y + dy * fac, view.zoom)

    def zoom_by(self, factor: float) -> None:
        if not factor > 0:
            raise ConfigError(f"zoom factor must be > 0, got {factor!r}")
        with self._lock:
            view = self._view
            self._set_view_locked(view.center_x, view.center_y, view.zoom * factor)

    def reset_view(self, iter_max: int = DEFAULT_ITER_MAX) -> None:
        with self._lock:
            iter_max = _positive_int("iter_max", iter_max)
            self._set_view_locked(DEFAULT_CENTER[0], DEFAULT_CENTER[1], DEFAULT_ZOOM)
            self._config = replace(self._config, iter_max=iter_max)

    def step_iter_max(self, steps: int = 1) -> bool:
        """Add ``steps * ITER_STEP`` iterations; returns False if the change was refused.

        Lowering is only allowed while iter_max is above ITER_STEP.
        """
        steps = strict_int("steps", steps)
        with self._lock:
            current = self._config.iter_max
            if steps < 0 and current <= ITER_STEP:
                return False
            self._config = replace(self._config, iter_max=max(1, current + steps * ITER_STEP))
            self._dirty = True
            return True

    def cycle_color_mode(self) -> ColorMode:
        with self._lock:
            mode = self._config.color_mode.next()
            self._config = replace(self._config, color_mode=mode)
            self._dirty = True
            return mode

    # -- rendering -------------------------------------------------------

    def compute(self) -> np.ndarray:
        """Return the frame as a flat read-only uint8 array of width*height*3 bytes."""
        with self._lock:
            if self._dirty:
                self._recompute()
            return _read_only(self._pixels.reshape(-1))

    def frame(self) -> np.ndarray:
        """Like :meth:`compute` but shaped (height, width, 3)."""
        with self._lock:
            if self._dirty:
                self._recompute()
            return _read_only(self._pixels)

    def _recompute(self) -> None:
        view, config = self._view, self._config
        started = time.perf_counter()

        mapping = derive_mapping(view, config.width, config.height)
        if precision_exhausted(mapping):
            logger.warning(
                "zoom=%s exceeds %s resolution at centre (%s, %s); pixels will alias",
                view.zoom, np.dtype(type(mapping.x_step)).name, view.center_x, view.center_y,
            )

        rows = mapping.row_coordinates()
        ranges = partition_columns(config.width, config.worker_count)

        def work(bounds: Tuple[int, int]) -> int:
            return self._render_columns(mapping, rows, config, bounds)

        with ThreadPoolExecutor(max_workers=config.worker_count, thread_name_prefix="mandelview-worker") as pool:
            done = sum(pool.map(work, ranges))

        self._mapping = mapping
        self._dirty = False
        self._generation += 1
        logger.debug(
            "Recomputed generation=%s size=%sx%s iter_max=%s workers=%s columns=%s in %.3fs",
            self._generation, config.width, config.height, config.iter_max,
            config.worker_count, done, time.perf_counter() - started,
        )

    def _render_columns(self, mapping: DerivedMapping, rows: np.ndarray, config: RasterConfig,
                        bounds: Tuple[int, int]) -> int:
        ix_min, ix_max = bounds
        pixels = self._pixels
        for ix in range(ix_min, ix_max):
            iterations = self._evaluator.evaluate_column(mapping.column_coordinate(ix), rows, config.iter_max)
            pixels[:, ix, :] = colorize_column(iterations, config.iter_max, config.color_mode)
        return ix_max - ix_min

    # -- accessors -------------------------------------------------------

    def snapshot(self) -> Tuple[View, RasterConfig]:
        with self._lock:
            return self._view, self._config

    @property
    def view(self) -> View:
        return self._view

    @property
    def config(self) -> RasterConfig:
        return self._config

    @property
    def evaluator(self) -> EscapeTimeEvaluator:
        return self._evaluator

    @property
    def iter_max(self) -> int:
        return self._config.iter_max

    @property
    def width(self) -> int:
        return self._config.width

    @property
    def height(self) -> int:
        return self._config.height

    @property
    def color_mode(self) -> ColorMode:
        return self._config.color_mode

    @property
    def worker_count(self) -> int:
        return self._config.worker_count

    @property
    def center_x(self) -> float:
        return self._view.center_x

    @property
    def center_y(self) -> float:
        return self._view.center_y

    @property
    def zoom(self) -> float:
        return self._view.zoom

    @property
    def unit(self) -> float:
        return self._view.unit

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def coord_fac(self):
        """Complex-plane distance between neighbouring pixels (current x_step)."""
        view, config = self.snapshot()
        return derive_mapping(view, config.width, config.height).x_step

    @property
    def last_mapping(self) -> Optional[DerivedMapping]:
        return self._mapping
