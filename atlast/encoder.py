"""Atlas encoder: packs glyph images back into a framed atlas.

Encoding algorithm:
1. Size the atlas. A requested dimension of 0 means "auto": the width of the
   widest row, or the sum of the row heights, frames included.
2. Refuse a zero-sized atlas.
3. Fill the canvas with frame color.
4. Place glyphs row by row, left to right. Each glyph's right and bottom
   neighbours stay frame colored, and a baseline pixel is stamped on the
   right frame column ``descent`` rows above the bottom frame row.

Glyphs that do not fit an explicitly sized canvas are clipped silently, and
placement stops if a coordinate would overflow. The result decodes to the
same glyph rectangles and descents as the images it was packed from.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import structlog

from .frame import BASELINE, FRAME_WIDTH, new_canvas
from .manifest import ManifestEntry
from .point import Point, checked_add

logger = structlog.get_logger(__name__)


class SizeError(ValueError):
    """Raised when the atlas would have a zero width or height."""


@dataclass
class LoadedGlyph:
    """A manifest entry together with its glyph pixels.

    Attributes:
        entry: Identifier and descent.
        image: RGBA pixels, shape (height, width, 4).
    """

    entry: ManifestEntry
    image: np.ndarray

    @property
    def width(self) -> int:
        return self.image.shape[1]

    @property
    def height(self) -> int:
        return self.image.shape[0]

    @property
    def descent(self) -> int:
        return self.entry.descent


def widest_row_width(rows: list[list[LoadedGlyph]]) -> int:
    """Width of the widest row, one frame column per glyph included."""
    return max((sum(glyph.width + FRAME_WIDTH for glyph in row) for row in rows), default=0)


def row_heights(rows: list[list[LoadedGlyph]]) -> list[int]:
    """Height of each row: its tallest glyph plus the bottom frame row."""
    return [max((glyph.height + FRAME_WIDTH for glyph in row), default=0) for row in rows]


def parse_size(text: str) -> tuple[int, int]:
    """Parse ``WIDTHxHEIGHT``; an empty side means 0 (auto).

    Raises:
        ValueError: If either side is not a non-negative integer.
    """
    width, sep, height = text.partition("x")
    if not sep:
        raise ValueError(f"expected [WIDTH]x[HEIGHT], found: {text}")
    return _parse_dim(width), _parse_dim(height)


def _parse_dim(text: str) -> int:
    if text == "":
        return 0
    if not (text.isascii() and text.isdigit()):
        raise ValueError(f"expected non-negative integer, found: {text}")
    return int(text)


def compose(rows: list[list[LoadedGlyph]], size: tuple[int, int] = (0, 0)) -> np.ndarray:
    """Pack rows of glyph images into an atlas.

    Args:
        rows: Glyph rows, top to bottom, each left to right.
        size: Requested (width, height); 0 on either side sizes it to fit.

    Returns:
        RGBA atlas pixels, shape (height, width, 4).

    Raises:
        SizeError: If the resulting width or height is 0.
    """
    width, height = size
    heights = row_heights(rows)
    if width == 0:
        width = widest_row_width(rows)
    if height == 0:
        height = sum(heights)

    if width == 0 or height == 0:
        raise SizeError(f"cowardly refusing to make an image with dimensions {width}x{height}")

    atlas = new_canvas(width, height)

    origin: Point | None = Point(0, 0)
    for index, (row_height, row) in enumerate(zip(heights, rows)):
        if origin is None:
            logger.warning("compose_overflow", placed_rows=index)
            break
        _place_row(atlas, origin, row)
        origin = origin.checked_add(Point(0, row_height))

    logger.debug("atlas_composed", width=width, height=height, rows=len(rows))
    return atlas


def _place_row(atlas: np.ndarray, origin: Point, row: list[LoadedGlyph]) -> None:
    point: Point | None = origin
    for glyph in row:
        if point is None:
            return
        copy_glyph_to_atlas(atlas, point, glyph.image, glyph.descent)
        dx = checked_add(glyph.width, FRAME_WIDTH)
        point = None if dx is None else point.checked_add(Point(dx, 0))


def copy_glyph_to_atlas(atlas: np.ndarray, topleft: Point, image: np.ndarray, descent: int) -> None:
    """Copy ``image`` into ``atlas`` at ``topleft`` and stamp its baseline.

    Parts of the image outside the atlas are skipped, as is a baseline pixel
    that falls outside it.
    """
    atlas_h, atlas_w = atlas.shape[:2]
    glyph_h, glyph_w = image.shape[:2]

    visible_w = min(glyph_w, max(atlas_w - topleft.x, 0))
    visible_h = min(glyph_h, max(atlas_h - topleft.y, 0))
    if visible_w and visible_h:
        atlas[topleft.y : topleft.y + visible_h, topleft.x : topleft.x + visible_w] = image[
            :visible_h, :visible_w
        ]

    if descent > 0:
        marker = topleft.checked_add(Point(glyph_w, max(glyph_h - descent, 0)))
        if marker is not None and marker.x < atlas_w and marker.y < atlas_h:
            atlas[marker.y, marker.x] = BASELINE
