"""Pixel protocol shared by the decoder and encoder.

Each glyph in an atlas has an invisible edge of frame pixels along its right
and bottom. A single baseline pixel may replace one frame pixel on the right
edge to mark where the glyph's baseline sits:

    ........p
    ........p
    ........c
    ........p
    ppppppppp

    . = visible glyph pixel, p = frame pixel, c = baseline pixel
"""

from __future__ import annotations

import numpy as np

Pixel = tuple[int, int, int, int]

FRAME: Pixel = (255, 0, 255, 0)  # hot pink
BASELINE: Pixel = (0, 255, 255, 0)  # teal
FRAME_WIDTH = 1


def is_frameish(pixel: Pixel) -> bool:
    """True for either sentinel color.

    The baseline pixel lives inside the right frame column, so edge scans
    treat it as frame too.
    """
    return pixel == FRAME or pixel == BASELINE


def pixel_at(buf: np.ndarray, x: int, y: int) -> Pixel | None:
    """Return the RGBA pixel at (x, y), or None outside the buffer."""
    height, width = buf.shape[:2]
    if not (0 <= x < width and 0 <= y < height):
        return None
    return tuple(buf[y, x].tolist())


def new_canvas(width: int, height: int) -> np.ndarray:
    """Allocate a (height, width, 4) RGBA canvas filled with frame color."""
    canvas = np.empty((height, width, 4), dtype=np.uint8)
    canvas[...] = FRAME
    return canvas
