from __future__ import annotations

import threading
from typing import NamedTuple

import numpy as np

from mandelview.mapping import PRECISION_DTYPE

ESCAPE_RADIUS_SQ = 4


class EscapeResult(NamedTuple):
    escaped: bool
    iterations: int


def evaluate(c_re, c_im, iter_max: int) -> EscapeResult:
    """Iterate z <- z**2 + c from z = 0 until |z|**2 > 4 or iter_max steps.

    Returns the index of the escaping iteration, or ``iter_max`` with
    ``escaped=False`` for points that stay bounded.
    """
    c_re = PRECISION_DTYPE(c_re)
    c_im = PRECISION_DTYPE(c_im)
    z_re = PRECISION_DTYPE(0)
    z_im = PRECISION_DTYPE(0)
    radius_sq = PRECISION_DTYPE(ESCAPE_RADIUS_SQ)

    with np.errstate(over="ignore", invalid="ignore"):
        for i in range(iter_max):
            buf = z_re
            z_re = z_re * z_re - z_im * z_im + c_re
            z_im = 2 * buf * z_im + c_im
            if z_re * z_re + z_im * z_im > radius_sq:
                return EscapeResult(True, i)
    return EscapeResult(False, iter_max)


def evaluate_column(c_re, c_im, iter_max: int) -> np.ndarray:
    """Vector form of :func:`evaluate`, same arithmetic per element.

    ``c_re`` may be a scalar (one image column) or an array broadcastable
    against ``c_im``. Points still inside after ``iter_max`` steps report
    ``iter_max``.
    """
    c_im = np.asarray(c_im, dtype=PRECISION_DTYPE)
    shape = c_im.shape
    c_re = np.broadcast_to(np.asarray(c_re, dtype=PRECISION_DTYPE), shape)

    out = np.full(c_im.size, iter_max, dtype=np.int64)
    live = np.arange(c_im.size)
    cr = c_re.ravel().copy()
    ci = c_im.ravel().copy()
    zr = np.zeros_like(cr)
    zi = np.zeros_like(ci)
    radius_sq = PRECISION_DTYPE(ESCAPE_RADIUS_SQ)

    with np.errstate(over="ignore", invalid="ignore"):
        for i in range(iter_max):
            if live.size == 0:
                break
            buf = zr
            zr = zr * zr - zi * zi + cr
            zi = 2 * buf * zi + ci
            escaped = zr * zr + zi * zi > radius_sq
            if escaped.any():
                out[live[escaped]] = i
                keep = ~escaped
                live, zr, zi, cr, ci = live[keep], zr[keep], zi[keep], cr[keep], ci[keep]

    return out.reshape(shape)


class EscapeTimeEvaluator:
    """Column evaluator with counters, shared by all rasterizer workers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.pixels_evaluated = 0
        self.columns_evaluated = 0

    def evaluate(self, c_re, c_im, iter_max: int) -> EscapeResult:
        result = evaluate(c_re, c_im, iter_max)
        with self._lock:
            self.pixels_evaluated += 1
        return result

    def evaluate_column(self, c_re, c_im, iter_max: int) -> np.ndarray:
        iterations = evaluate_column(c_re, c_im, iter_max)
        with self._lock:
            self.pixels_evaluated += iterations.size
            self.columns_evaluated += 1
        return iterations

    def reset_counters(self) -> None:
        with self._lock:
            self.pixels_evaluated = 0
            self.columns_evaluated = 0
