from __future__ import annotations

from typing import List, Optional

from mandelview.autozoom import AutoZoom
from mandelview.rasterizer import Rasterizer


def status_lines(mb: Rasterizer, autozoom: Optional[AutoZoom] = None) -> List[str]:
    """Human-readable readout of the current parameters, one entry per line."""
    view, config = mb.snapshot()
    fac = mb.coord_fac
    lines = [
        f"Iterations: {config.iter_max}",
        f"Pos center: {view.center_x}, {view.center_y}",
        f"Width: {fac * config.width}",
        f"Height: {fac * config.height}",
        f"Zoom: {view.zoom}",
        f"Color: {config.color_mode.name.lower()}",
    ]
    if autozoom is not None:
        lines.append(f"Auto zoom: {int(autozoom.enabled)}")
        lines.append(f"Auto zoom fac: {autozoom.factor}")
    lines.append(f"Threads: {config.worker_count}")
    return lines
