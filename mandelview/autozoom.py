from __future__ import annotations

import time
from typing import Callable, Optional

from mandelview.errors import ConfigError
from mandelview.mapping import DEFAULT_ZOOM
from mandelview.rasterizer import Rasterizer

DEFAULT_FACTOR = 1.05
FACTOR_STEP = 0.1


class AutoZoom:
    """Timed zoom: ``zoom = start_zoom * factor ** elapsed_seconds``.

    Changing the factor restarts the clock from the current zoom so the
    animation continues without a jump.
    """

    def __init__(self, factor: float = DEFAULT_FACTOR, clock: Optional[Callable[[], float]] = None) -> None:
        if not factor > 0:
            raise ConfigError(f"auto zoom factor must be > 0, got {factor!r}")
        self.factor = factor
        self.enabled = False
        self.start_zoom = DEFAULT_ZOOM
        self._clock = clock or time.monotonic
        self._started_at = self._clock()

    def _restart(self, mb: Rasterizer) -> None:
        self.start_zoom = mb.zoom
        self._started_at = self._clock()

    def toggle(self, mb: Rasterizer) -> bool:
        self.enabled = not self.enabled
        self._restart(mb)
        return self.enabled

    def speed_up(self, mb: Rasterizer) -> None:
        self.factor += FACTOR_STEP
        self._restart(mb)

    def slow_down(self, mb: Rasterizer) -> bool:
        if self.factor <= FACTOR_STEP:
            return False
        self.factor -= FACTOR_STEP
        self._restart(mb)
        return True

    def reset(self) -> None:
        self.enabled = False
        self.factor = DEFAULT_FACTOR
        self.start_zoom = DEFAULT_ZOOM
        self._started_at = self._clock()

    def zoom_after(self, elapsed: float) -> float:
        return self.start_zoom * self.factor ** elapsed

    def apply(self, mb: Rasterizer) -> bool:
        """Move ``mb`` to the zoom for the current time; no-op while disabled."""
        if not self.enabled:
            return False
        self.apply_at(mb, self._clock() - self._started_at)
        return True

    def apply_at(self, mb: Rasterizer, elapsed: float) -> None:
        view = mb.view
        mb.set_view(view.center_x, view.center_y, self.zoom_after(elapsed))
