from __future__ import annotations

import enum

import numpy as np

from mandelview.errors import ConfigError
from mandelview.escape import EscapeResult
from mandelview.mapping import PRECISION_DTYPE

_RGB_SPAN = 16777216  # 2**24, one byte per channel


class ColorMode(enum.IntEnum):
    GRAYSCALE = 0
    INVERTED_GRAYSCALE = 1
    RGB = 2

    @classmethod
    def parse(cls, value) -> "ColorMode":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper().replace("-", "_")
            if key in cls.__members__:
                return cls[key]
            if key.isdigit():
                value = int(key)
            else:
                raise ConfigError(f"unknown color mode {value!r}; expected one of {', '.join(m.name.lower() for m in cls)}")
        try:
            return cls(value)
        except ValueError:
            raise ConfigError(f"unknown color mode {value!r}") from None

    def next(self) -> "ColorMode":
        members = list(type(self))
        return members[(members.index(self) + 1) % len(members)]


def colorize(result: EscapeResult, iter_max: int, mode: ColorMode) -> tuple:
    """
    Returns an (R, G, B) tuple for an escape result.

    t = iterations / iter_max is 0 for instant escape and 1 for points that
    never escaped. RGB packs floor(t * 2**24) into the three channels, low
    byte first, so the channels wrap and band.
    """
    mode = ColorMode.parse(mode)
    t = PRECISION_DTYPE(result.iterations) / PRECISION_DTYPE(iter_max)

    if mode is ColorMode.GRAYSCALE:
        v = 255 - int(np.rint(t * 255))
        return (v, v, v)
    if mode is ColorMode.INVERTED_GRAYSCALE:
        v = int(np.rint(t * 255))
        return (v, v, v)

    packed = int(np.floor(t * _RGB_SPAN))
    return (packed & 0xFF, (packed >> 8) & 0xFF, (packed >> 16) & 0xFF)


def colorize_column(iterations: np.ndarray, iter_max: int, mode: ColorMode) -> np.ndarray:
    """Vector form of :func:`colorize`; returns an (n, 3) uint8 array."""
    mode = ColorMode.parse(mode)
    iterations = np.asarray(iterations).ravel()
    t = iterations.astype(PRECISION_DTYPE) / PRECISION_DTYPE(iter_max)
    out = np.empty((iterations.size, 3), dtype=np.uint8)

    if mode is ColorMode.RGB:
        packed = np.floor(t * _RGB_SPAN).astype(np.int64)
        out[:, 0] = packed & 0xFF
        out[:, 1] = (packed >> 8) & 0xFF
        out[:, 2] = (packed >> 16) & 0xFF
        return out

    v = np.rint(t * 255).astype(np.int64)
    if mode is ColorMode.GRAYSCALE:
        v = 255 - v
    out[:] = v[:, None]
    return out
