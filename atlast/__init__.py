"""atlast -- glyph atlas decomposer and composer.

Splits a packed font atlas, where each glyph is bordered on its right and
bottom by a one-pixel frame of a reserved sentinel color, into standalone
glyph images plus an HTML manifest, and packs those images back into an
atlas that decodes to the same glyphs.

Frame color:    RGBA(255, 0, 255, 0)  (hot pink)
Baseline color: RGBA(0, 255, 255, 0)  (teal), optional, on the right frame
"""

__version__ = "0.3.0"
