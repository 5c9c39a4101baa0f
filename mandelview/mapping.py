from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from mandelview.errors import ConfigError

# long double on x86-64 Linux; plain float64 where the platform has nothing wider
PRECISION_DTYPE = np.longdouble

DEFAULT_CENTER = (-0.75, 0.0)
DEFAULT_UNIT = 1.0
DEFAULT_ZOOM = 1.0


@dataclass(frozen=True)
class View:
    center_x: float = DEFAULT_CENTER[0]
    center_y: float = DEFAULT_CENTER[1]
    zoom: float = DEFAULT_ZOOM
    unit: float = DEFAULT_UNIT

    def validated(self) -> "View":
        for name in ("center_x", "center_y", "zoom", "unit"):
            value = getattr(self, name)
            try:
                ok = math.isfinite(value)
            except TypeError:
                raise ConfigError(f"{name} must be a real number, got {value!r}") from None
            if not ok:
                raise ConfigError(f"{name} must be finite, got {value!r}")
        if not self.zoom > 0:
            raise ConfigError(f"zoom must be > 0, got {self.zoom!r}")
        if not self.unit > 0:
            raise ConfigError(f"unit must be > 0, got {self.unit!r}")
        return self


@dataclass(frozen=True)
class DerivedMapping:
    """Sampling grid for one compute pass."""

    width: int
    height: int
    x_unit: np.longdouble
    y_unit: np.longdouble
    x_min: np.longdouble
    y_min: np.longdouble
    x_step: np.longdouble
    y_step: np.longdouble

    def column_coordinate(self, ix: int) -> np.longdouble:
        # sampling starts one step inside the nominal left edge
        return self.x_min + PRECISION_DTYPE(ix + 1) * self.x_step

    def row_coordinates(self) -> np.ndarray:
        iy = np.arange(1, self.height + 1, dtype=PRECISION_DTYPE)
        return self.y_min + iy * self.y_step

    def pixel_to_plane(self, ix: int, iy: int) -> Tuple[np.longdouble, np.longdouble]:
        c_im = self.y_min + PRECISION_DTYPE(iy + 1) * self.y_step
        return self.column_coordinate(ix), c_im


def strict_int(name: str, value) -> int:
    """int(value) for integral numbers only; bools and fractions are rejected."""
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    try:
        n = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None
    if n != value:
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    return n


def validate_size(width: int, height: int) -> Tuple[int, int]:
    w, h = strict_int("width", width), strict_int("height", height)
    if w < 2 or h < 2:
        raise ConfigError(f"image size must be at least 2x2, got {w}x{h}")
    return w, h


def derive_mapping(view: View, width: int, height: int) -> DerivedMapping:
    width, height = validate_size(width, height)
    view.validated()

    unit = PRECISION_DTYPE(view.unit)
    zoom = PRECISION_DTYPE(view.zoom)
    x_unit = unit / zoom
    # equal aspect ratio
    y_unit = PRECISION_DTYPE(height) / PRECISION_DTYPE(width) * x_unit

    x_min = PRECISION_DTYPE(view.center_x) - x_unit
    y_min = PRECISION_DTYPE(view.center_y) - y_unit

    x_step = 2 * x_unit / PRECISION_DTYPE(width - 1)
    y_step = 2 * y_unit / PRECISION_DTYPE(height - 1)

    return DerivedMapping(
        width=width,
        height=height,
        x_unit=x_unit,
        y_unit=y_unit,
        x_min=x_min,
        y_min=y_min,
        x_step=x_step,
        y_step=y_step,
    )


def precision_exhausted(mapping: DerivedMapping) -> bool:
    """True once neighbouring pixels can no longer be told apart.

    This is the zoom ceiling of the fixed-width float type; deeper views are
    still rendered, they just alias into blocks.
    """
    eps = np.finfo(PRECISION_DTYPE).eps
    x_mag = max(abs(mapping.x_min), abs(mapping.x_min + 2 * mapping.x_unit))
    y_mag = max(abs(mapping.y_min), abs(mapping.y_min + 2 * mapping.y_unit))
    return bool(mapping.x_step <= x_mag * eps or mapping.y_step <= y_mag * eps)
