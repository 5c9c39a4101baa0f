import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from mandelview.color import ColorMode
from mandelview.errors import ConfigError
from mandelview.mapping import strict_int
from mandelview.rasterizer import Rasterizer

THREADS_ENV = "MANDELVIEW_THREADS"

DEFAULTS: Dict[str, Any] = {
    "width": 800,
    "height": 600,
    "iter_max": 250,
    "center": [-0.75, 0.0],
    "unit": 1.0,
    "zoom": 1.0,
    "worker_count": 4,
    "color_mode": "grayscale",
}

@dataclass(frozen=True)
class ViewerSettings:
    width: int
    height: int
    iter_max: int
    center_x: float
    center_y: float
    unit: float
    zoom: float
    worker_count: int
    color_mode: ColorMode

    def build_rasterizer(self) -> Rasterizer:
        return Rasterizer(
            iter_max=self.iter_max,
            width=self.width,
            height=self.height,
            center_x=self.center_x,
            center_y=self.center_y,
            unit=self.unit,
            zoom=self.zoom,
            worker_count=self.worker_count,
            color_mode=self.color_mode,
        )

def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    if not config_path:
        return dict(DEFAULTS)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read config {config_path}: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigError("Config JSON must be an object.")
    out = dict(DEFAULTS)
    out.update(cfg)
    return out

def _as_int(value: Any, key: str) -> int:
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise ConfigError(f"{key} must be an integer, got {value!r}") from None
    return strict_int(key, value)

def _as_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number, got {value!r}") from None

def normalise_config(cfg: Dict[str, Any], env: Optional[Mapping[str, str]] = None) -> ViewerSettings:
    env = os.environ if env is None else env
    for r in DEFAULTS:
        if r not in cfg:
            raise ConfigError(f"Missing config field: {r}")

    center = cfg["center"]
    if not (isinstance(center, (list, tuple)) and len(center) == 2):
        raise ConfigError("center must be [re, im].")

    worker_count = _as_int(cfg["worker_count"], "worker_count")
    override = env.get(THREADS_ENV)
    if override:
        worker_count = _as_int(override, THREADS_ENV)

    settings = ViewerSettings(
        width=_as_int(cfg["width"], "width"),
        height=_as_int(cfg["height"], "height"),
        iter_max=_as_int(cfg["iter_max"], "iter_max"),
        center_x=_as_float(center[0], "center[0]"),
        center_y=_as_float(center[1], "center[1]"),
        unit=_as_float(cfg["unit"], "unit"),
        zoom=_as_float(cfg["zoom"], "zoom"),
        worker_count=worker_count,
        color_mode=ColorMode.parse(cfg["color_mode"]),
    )
    if settings.width < 2 or settings.height < 2:
        raise ConfigError("width/height must be at least 2.")
    if settings.iter_max < 1 or settings.worker_count < 1:
        raise ConfigError("iter_max/worker_count must be positive.")
    if settings.unit <= 0 or settings.zoom <= 0:
        raise ConfigError("unit/zoom must be positive.")
    return settings
