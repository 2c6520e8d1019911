"""Atlas decoder: finds framed glyphs in a packed atlas image.

Decoding walks the atlas row by row:
1. Start at the top-left pixel (0, 0).
2. Detect a glyph at the cursor:
   a. Scan down from the cursor for the first frame pixel -- the glyph's
      bottom frame row. A frame pixel right at the cursor means there is no
      glyph here, only frame.
   b. Scan right from the pixel after the cursor for the first frame
      pixel -- the glyph's right frame column.
   c. Scan down the right frame column, above the bottom frame row, for a
      baseline pixel; its distance from the bottom frame row is the descent.
3. On a glyph, move the cursor past its right frame and repeat. Otherwise the
   row is complete: move to the left edge below the row's bottom frame.
4. A row with no glyphs ends the decode, even if pixels remain below it.

Only the two scan lines through the cursor are inspected; the rest of the
frame is assumed consistent with them.
"""

from __future__ import annotations

import enum
import io
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np
import structlog
from PIL import Image

from .frame import BASELINE, FRAME_WIDTH, is_frameish
from .manifest import Manifest, ManifestEntry
from .point import Point

logger = structlog.get_logger(__name__)

# Minimum digits in generated glyph identifiers ("000", "001", ...)
IDENTIFIER_WIDTH = 3


@dataclass(frozen=True)
class Glyph:
    """A glyph found in the atlas.

    Attributes:
        tl: Top-left visible pixel within the atlas.
        br: Bottom-right visible pixel (inclusive, not the frame pixel).
        descent: Distance from the bottom frame row up to the baseline
            pixel, 0 if the glyph has none.
    """

    tl: Point
    br: Point
    descent: int = 0

    @property
    def x(self) -> int:
        return self.tl.x

    @property
    def y(self) -> int:
        return self.tl.y

    @property
    def width(self) -> int:
        return max(self.br.x - self.tl.x, 0) + 1

    @property
    def height(self) -> int:
        return max(self.br.y - self.tl.y, 0) + 1


class NoGlyph(enum.Enum):
    """Why no glyph was detected at a point."""

    JUST_FRAME = "no visible glyph, just frame"
    END = "reached image edge"


def detect_glyph(buf: np.ndarray, tl: Point) -> Glyph | NoGlyph:
    """Detect the glyph whose top-left visible pixel is ``tl``.

    Args:
        buf: RGBA atlas pixels, shape (height, width, 4).
        tl: Candidate top-left pixel.

    Returns:
        The Glyph, or NoGlyph.JUST_FRAME if ``tl`` itself is a frame pixel,
        or NoGlyph.END if a frame edge runs off the image.
    """
    frame_bl = next((at for pixel, at in tl.scan_y(buf) if is_frameish(pixel)), None)
    if frame_bl is None:
        return NoGlyph.END

    if frame_bl == tl:
        return NoGlyph.JUST_FRAME

    after_tl = tl.next_x()
    if after_tl is None:
        return NoGlyph.END

    frame_tr = next((at for pixel, at in after_tl.scan_x(buf) if is_frameish(pixel)), None)
    if frame_tr is None:
        return NoGlyph.END

    descent = 0
    for pixel, at in Point(frame_tr.x, tl.y).scan_y(buf):
        if at.y >= frame_bl.y:
            break
        if pixel == BASELINE:
            descent = frame_bl.y - at.y
            break

    br = Point(frame_tr.x - FRAME_WIDTH, frame_bl.y - FRAME_WIDTH)
    return Glyph(tl=tl, br=br, descent=descent)


def glyph_identifier(index: int) -> str:
    """Sequential, zero-padded identifier for the ``index``-th glyph."""
    return f"{index:0{IDENTIFIER_WIDTH}d}"


class Atlas:
    """Glyphs decoded from an atlas image, in rows top to bottom.

    Built once from an immutable pixel buffer; the rows are never modified.
    """

    def __init__(self, buf: np.ndarray, rows: tuple[tuple[Glyph, ...], ...]) -> None:
        self.buf = buf
        self.rows = rows

    def __len__(self) -> int:
        return sum(len(row) for row in self.rows)

    def __iter__(self) -> Iterator[Glyph]:
        for row in self.rows:
            yield from row

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @classmethod
    def from_image(cls, buf: np.ndarray) -> Atlas:
        """Decode every glyph row in ``buf``."""
        width = buf.shape[1]
        point = Point(0, 0)
        rows: list[tuple[Glyph, ...]] = []

        while True:
            row: list[Glyph] = []

            while point.x < width:
                found = detect_glyph(buf, point)
                if isinstance(found, NoGlyph):
                    logger.debug("row_ended", row=len(rows), reason=found.name, x=point.x, y=point.y)
                    break
                row.append(found)
                point = Point(found.br.x + FRAME_WIDTH + 1, point.y)

            if not row:
                break

            rows.append(tuple(row))
            point = Point(0, row[0].br.y + FRAME_WIDTH + 1)

        atlas = cls(buf, tuple(rows))
        logger.info("atlas_decoded", glyphs=len(atlas), rows=atlas.row_count)
        return atlas

    def crop(self, glyph: Glyph) -> np.ndarray:
        """Copy out the glyph's visible pixels as a standalone image."""
        return self.buf[glyph.y : glyph.y + glyph.height, glyph.x : glyph.x + glyph.width].copy()

    def export(self) -> list[tuple[ManifestEntry, np.ndarray]]:
        """Crop every glyph in row-major order with its manifest entry."""
        return [
            (ManifestEntry(glyph_identifier(index), glyph.descent), self.crop(glyph))
            for index, glyph in enumerate(self)
        ]

    def to_manifest(self) -> Manifest:
        """Manifest rows mirroring the atlas rows, with sequential identifiers."""
        rows: list[list[ManifestEntry]] = []
        index = 0
        for row in self.rows:
            entries = []
            for glyph in row:
                entries.append(ManifestEntry(glyph_identifier(index), glyph.descent))
                index += 1
            rows.append(entries)
        return Manifest(rows=rows)


@dataclass
class DecodeResult:
    """Result of decoding atlas image bytes.

    Attributes:
        atlas: The decoded atlas, or None if the image could not be read.
        error: Error message if decoding failed.
    """

    atlas: Atlas | None
    error: str | None = None


def decode_image(image_bytes: bytes) -> DecodeResult:
    """Decode an atlas from encoded image bytes (PNG, TGA, ...).

    Args:
        image_bytes: Raw image file contents in any format Pillow reads.

    Returns:
        DecodeResult with the atlas, or with an error if the bytes are not
        a readable image.
    """
    try:
        img = Image.open(io.BytesIO(image_bytes)).convert("RGBA")
    except Exception as e:
        logger.warning("decode_image_open_failed", error=str(e))
        return DecodeResult(atlas=None, error=f"Cannot open image: {e}")

    buf = np.array(img, dtype=np.uint8)
    return DecodeResult(atlas=Atlas.from_image(buf))
