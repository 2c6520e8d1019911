"""Synthetic atlas builders shared by the tests."""

from __future__ import annotations

import numpy as np
import pytest

from atlast.frame import BASELINE, FRAME

GlyphSpec = tuple[int, int, int]  # (width, height, descent)


def glyph_color(index: int) -> tuple[int, int, int, int]:
    """Opaque color for the index-th glyph, never a sentinel color."""
    return ((index * 37) % 256, (index * 11 + 40) % 256, 90, 255)


def make_atlas(rows: list[list[GlyphSpec]], width: int = 0, height: int = 0) -> np.ndarray:
    """Draw an atlas by hand: glyphs of solid color separated by frames.

    Glyphs are laid out row by row; every glyph gets a frame column on its
    right and each row a frame row below its tallest glyph. A descent > 0
    puts a baseline pixel on the right frame column.
    """
    auto_w = max(sum(w + 1 for w, _, _ in row) for row in rows)
    auto_h = sum(max(h + 1 for _, h, _ in row) for row in rows)
    canvas = np.empty((height or auto_h, width or auto_w, 4), dtype=np.uint8)
    canvas[...] = FRAME

    index = 0
    y = 0
    for row in rows:
        x = 0
        for w, h, descent in row:
            canvas[y : y + h, x : x + w] = glyph_color(index)
            if descent:
                canvas[y + h - descent, x + w] = BASELINE
            x += w + 1
            index += 1
        y += max(h + 1 for _, h, _ in row)

    return canvas


def literal_atlas() -> np.ndarray:
    """9x5 atlas: one 8x4 glyph, right frame at x=8 with a baseline at y=2."""
    return make_atlas([[(8, 4, 2)]])


@pytest.fixture
def grid_rows() -> list[list[GlyphSpec]]:
    return [
        [(3, 5, 2), (4, 5, 0), (2, 5, 1)],
        [(5, 3, 0), (1, 3, 2)],
        [(2, 2, 1), (2, 2, 0), (2, 2, 0), (3, 2, 1)],
    ]


@pytest.fixture
def grid_atlas(grid_rows) -> np.ndarray:
    return make_atlas(grid_rows)
