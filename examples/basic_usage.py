#!/usr/bin/env python3
"""Basic usage example for atlast.

Draws a small framed atlas, unpacks it, edits a baseline, and packs it back.

Usage:
    python examples/basic_usage.py
"""

import sys
import os

# Add parent directory to path for direct script execution
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np

from atlast.decoder import Atlas
from atlast.encoder import LoadedGlyph, compose
from atlast.frame import BASELINE, FRAME
from atlast.manifest import ManifestEntry


def build_atlas() -> np.ndarray:
    """Two rows of solid glyphs, framed the way a game font atlas is."""
    atlas = np.empty((9, 12, 4), dtype=np.uint8)
    atlas[...] = FRAME
    atlas[0:5, 0:4] = (255, 255, 255, 255)  # 4x5 glyph
    atlas[0:5, 5:8] = (200, 200, 200, 255)  # 3x5 glyph
    atlas[3, 4] = BASELINE  # first glyph's baseline, 2 rows above its bottom frame
    atlas[6:8, 0:11] = (120, 120, 120, 255)  # 11x2 glyph
    return atlas


def example_unpack():
    """Decode an atlas into glyph rectangles and manifest entries."""
    print("=" * 60)
    print("Example 1: Unpack")
    print("=" * 60)

    atlas = Atlas.from_image(build_atlas())
    print(f"  Glyphs:  {len(atlas)} over {atlas.row_count} rows")
    for glyph in atlas:
        print(f"  at ({glyph.x},{glyph.y})  {glyph.width}x{glyph.height}  descent={glyph.descent}")

    print(atlas.to_manifest().to_html().split("<div data-atlas>")[1])


def example_repack():
    """Change a descent and pack the glyphs back into an atlas."""
    print("=" * 60)
    print("Example 2: Edit and Repack")
    print("=" * 60)

    original = build_atlas()
    atlas = Atlas.from_image(original)

    exported = iter(atlas.export())
    rows = []
    for row in atlas.rows:
        loaded = []
        for _glyph in row:
            entry, image = next(exported)
            if entry.identifier == "001":
                entry = ManifestEntry(entry.identifier, descent=1)
            loaded.append(LoadedGlyph(entry=entry, image=image))
        rows.append(loaded)

    packed = compose(rows)
    print(f"  Packed:        {packed.shape[1]}x{packed.shape[0]}")
    print(f"  Descents:      {[glyph.descent for glyph in Atlas.from_image(packed)]}")
    print()


if __name__ == "__main__":
    example_unpack()
    example_repack()
    print("All examples completed successfully.")
