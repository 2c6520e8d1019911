"""HTML manifest describing the glyphs unpacked from an atlas.

The manifest doubles as a preview: opened in a browser it lays out every
glyph image in its atlas row. Each glyph is one ``<img>`` tag whose ``src``
is the glyph's image file and whose optional ``data-descent`` attribute holds
the baseline offset:

    <div data-atlas>
      <div data-atlas=row>
        <img src='000.png'>
        <img src='001.png' data-descent=2>
      </div>
    </div>

Rows are any element carrying ``data-atlas=row``; everything else in the
document is ignored when reading and left untouched when patching.
"""

from __future__ import annotations

import html
from collections.abc import Iterator
from dataclasses import dataclass, field
from html.parser import HTMLParser

import structlog

logger = structlog.get_logger(__name__)

IMAGE_SUFFIX = ".png"

# Elements that never have a closing tag
_VOID_ELEMENTS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "wbr"}
)

HTML_HEADER = """
<!DOCTYPE html>
<head>
<meta name="viewport" content="width=device-width,initial-scale=1">
<script>
/* Browsers scale images up by the display's pixel ratio.
 * Undo that so glyphs show at their real size. */
document.querySelector(':root')
\t.style
\t.setProperty('--ppiUnscale', 1.0 / window.devicePixelRatio)
</script>
<style>
body
  { background: #282828 }
[data-atlas]
  { display: flex; grid-gap: 1px }
[data-atlas='']
  { flex-direction: column;
    transform-origin: top left;
    scale: var(--ppiUnscale) }
</style>
</head>
"""


class ManifestError(ValueError):
    """Raised for a manifest entry that cannot be read."""


@dataclass(frozen=True)
class ManifestEntry:
    """One glyph's metadata, independent of its pixels.

    Attributes:
        identifier: Stable name of the glyph, e.g. "000".
        descent: Distance from the bottom frame row up to the baseline
            marker, 0 when the glyph has no marker.
        path: Image file relative to the manifest, when it is not
            ``<identifier>.png``.
    """

    identifier: str
    descent: int = 0
    path: str | None = None

    @property
    def filename(self) -> str:
        return self.path or self.identifier + IMAGE_SUFFIX

    def to_img_tag(self) -> str:
        src = html.escape(self.filename, quote=True)
        if self.descent > 0:
            return f"<img src='{src}' data-descent={self.descent}>"
        return f"<img src='{src}'>"

    @classmethod
    def from_src(cls, src: str | None, descent: str | None) -> ManifestEntry:
        if not src:
            raise ManifestError("img missing src attribute")
        identifier = src.removesuffix(IMAGE_SUFFIX)
        path = None if identifier + IMAGE_SUFFIX == src else src
        return cls(identifier=identifier, descent=parse_descent(descent), path=path)


def parse_descent(value: str | None) -> int:
    """Parse a ``data-descent`` attribute; absent means 0.

    Raises:
        ManifestError: If the value is not a non-negative integer.
    """
    if value is None:
        return 0
    literal = value.strip()
    if not (literal.isascii() and literal.isdigit()):
        raise ManifestError(f"expected non-negative integer, found: {value}")
    return int(literal)


@dataclass
class Manifest:
    """Ordered rows of manifest entries, top to bottom, left to right."""

    rows: list[list[ManifestEntry]] = field(default_factory=list)

    def __len__(self) -> int:
        return sum(len(row) for row in self.rows)

    def entries(self) -> Iterator[ManifestEntry]:
        for row in self.rows:
            yield from row

    def to_html(self) -> str:
        lines = [HTML_HEADER + "<div data-atlas>"]
        for row in self.rows:
            lines.append("  <div data-atlas=row>")
            lines.extend(f"    {entry.to_img_tag()}" for entry in row)
            lines.append("  </div>")
        lines.append("</div>")
        return "\n".join(lines) + "\n"

    @classmethod
    def from_html(cls, text: str) -> Manifest:
        """Read rows of ``<img>`` entries out of a manifest document.

        Raises:
            ManifestError: If an image lacks ``src`` or has a bad descent.
        """
        reader = _ManifestReader()
        reader.feed(text)
        reader.close()
        if reader.error is not None:
            raise reader.error
        return cls(rows=reader.rows)

    def patch_html(self, text: str) -> tuple[int, str]:
        """Update matching ``<img>`` tags of an existing manifest in place.

        An image matches when its ``src`` equals an entry's filename; its tag
        is rewritten from the entry (which may carry a new descent). All other
        markup, including unmatched images, is kept as is.

        Returns:
            (number of tags replaced, patched document)
        """
        by_src = {entry.filename: entry for entry in self.entries()}

        locator = _ImgLocator()
        locator.feed(text)
        locator.close()

        patched: list[str] = []
        cursor = 0
        matched = 0
        for start, end, src in locator.images:
            entry = by_src.get(src)
            if entry is None:
                continue
            patched.append(text[cursor:start])
            patched.append(entry.to_img_tag())
            cursor = end
            matched += 1
        patched.append(text[cursor:])

        logger.debug("manifest_patched", matched=matched, entries=len(by_src))
        return matched, "".join(patched)


class _ManifestReader(HTMLParser):
    """Collects ``<img>`` entries grouped by their enclosing row element."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.rows: list[list[ManifestEntry]] = []
        self.error: ManifestError | None = None
        self._depth = 0
        self._row_depth: int | None = None

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        attributes = dict(attrs)

        if tag == "img":
            if self._row_depth is not None and "src" in attributes and self.error is None:
                try:
                    entry = ManifestEntry.from_src(attributes["src"], attributes.get("data-descent"))
                except ManifestError as e:
                    self.error = e
                else:
                    self.rows[-1].append(entry)
            return

        if tag in _VOID_ELEMENTS:
            return

        self._depth += 1
        if self._row_depth is None and attributes.get("data-atlas") == "row":
            self._row_depth = self._depth
            self.rows.append([])

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "img":
            self.handle_starttag(tag, attrs)

    def handle_endtag(self, tag: str) -> None:
        if tag in _VOID_ELEMENTS:
            return
        if self._row_depth is not None and self._depth == self._row_depth:
            self._row_depth = None
        self._depth = max(self._depth - 1, 0)


class _ImgLocator(HTMLParser):
    """Records the source span and ``src`` of every ``<img>`` tag."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.images: list[tuple[int, int, str]] = []
        self._line_offsets: list[int] = [0]

    def feed(self, data: str) -> None:
        # getpos() counts lines by "\n" only
        offset = 0
        for line in data.split("\n")[:-1]:
            offset += len(line) + 1
            self._line_offsets.append(offset)
        super().feed(data)

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag != "img":
            return
        src = dict(attrs).get("src")
        raw = self.get_starttag_text()
        if not src or raw is None:
            return
        line, column = self.getpos()
        start = self._line_offsets[line - 1] + column
        self.images.append((start, start + len(raw), src))

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self.handle_starttag(tag, attrs)
