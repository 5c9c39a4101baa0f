from __future__ import annotations

import numpy as np
from PIL import Image


def frame_to_image(buffer, width: int, height: int) -> Image.Image:
    """Wrap a computed RGB buffer (flat or (h, w, 3)) in a Pillow image."""
    arr = np.asarray(buffer, dtype=np.uint8)
    if arr.size != width * height * 3:
        raise ValueError(f"buffer holds {arr.size} bytes, expected {width * height * 3} for {width}x{height}")
    # Pillow needs its own copy; the rasterizer reuses the buffer in place
    return Image.fromarray(arr.reshape(height, width, 3).copy())
