"""Reading and writing atlases, glyph images and manifests on disk.

Every failed read or write raises AtlasIOError naming the operation and the
path. Files written before a failure are left in place.
"""

from __future__ import annotations

import enum
import io
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TypeVar

import numpy as np
import structlog
from PIL import Image

from .decoder import Atlas
from .encoder import LoadedGlyph
from .manifest import Manifest, ManifestEntry

logger = structlog.get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")

INDEX_FILENAME = "index.html"


class AtlasIOError(OSError):
    """A file operation failed.

    Attributes:
        operation: What was being done, e.g. "open" or "save".
        path: The file involved.
    """

    def __init__(self, operation: str, path: Path | str, cause: Exception) -> None:
        super().__init__(f"{operation} {path}: {cause}")
        self.operation = operation
        self.path = Path(path)
        self.cause = cause


class IndexMode(enum.Enum):
    """How ``unpack`` treats an existing manifest."""

    OVERWRITE = "overwrite"
    SKIP = "skip"
    PATCH = "patch"


# --------------------------------------------------------------------------
# Image codec
# --------------------------------------------------------------------------


def load_rgba(path: Path) -> np.ndarray:
    """Load an image file as an RGBA uint8 array (H, W, 4)."""
    try:
        with Image.open(path) as img:
            return np.array(img.convert("RGBA"), dtype=np.uint8)
    except (OSError, ValueError) as e:
        raise AtlasIOError("open", path, e) from e


def save_rgba(arr: np.ndarray, path: Path) -> None:
    """Save an RGBA array; the format follows the file extension."""
    try:
        Image.fromarray(arr).save(path)
    except (OSError, ValueError) as e:
        raise AtlasIOError("save", path, e) from e


def encode_png(arr: np.ndarray) -> bytes:
    """Encode an RGBA array as PNG bytes."""
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format="PNG")
    return buf.getvalue()


def decode_rgba(image_bytes: bytes) -> np.ndarray:
    """Decode image bytes into an RGBA uint8 array.

    Raises:
        ValueError: If the bytes are not a readable image.
    """
    try:
        img = Image.open(io.BytesIO(image_bytes)).convert("RGBA")
    except OSError as e:
        raise ValueError(f"Cannot open image: {e}") from e
    return np.array(img, dtype=np.uint8)


# --------------------------------------------------------------------------
# Glyph images
# --------------------------------------------------------------------------


def save_glyph_images(atlas: Atlas, outdir: Path, jobs: int = 1) -> Manifest:
    """Write each glyph of ``atlas`` to ``outdir`` as ``<identifier>.png``.

    Args:
        atlas: Decoded atlas.
        outdir: Existing destination directory.
        jobs: Number of writer threads.

    Returns:
        The manifest, in row-major order regardless of ``jobs``.
    """
    exported = atlas.export()

    def write(item: tuple[ManifestEntry, np.ndarray]) -> None:
        entry, image = item
        save_rgba(image, outdir / entry.filename)

    _run(write, exported, jobs)
    logger.debug("glyph_images_saved", count=len(exported), outdir=str(outdir))
    return atlas.to_manifest()


def load_glyph_images(manifest: Manifest, root: Path, jobs: int = 1) -> list[list[LoadedGlyph]]:
    """Load the image of every manifest entry from ``root``, keeping rows."""

    def load(entry: ManifestEntry) -> LoadedGlyph:
        return LoadedGlyph(entry=entry, image=load_rgba(root / entry.filename))

    loaded = iter(_run(load, list(manifest.entries()), jobs))
    rows = [[next(loaded) for _ in row] for row in manifest.rows]
    logger.debug("glyph_images_loaded", count=len(manifest), root=str(root))
    return rows


def _run(fn: Callable[[T], R], items: list[T], jobs: int) -> list[R]:
    """Apply ``fn`` to ``items``; results keep input order."""
    if jobs <= 1 or len(items) <= 1:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=jobs) as pool:
        return list(pool.map(fn, items))


# --------------------------------------------------------------------------
# Manifest files
# --------------------------------------------------------------------------


def read_manifest(path: Path) -> Manifest:
    """Read and parse a manifest file.

    Raises:
        AtlasIOError: If the file cannot be read.
        ManifestError: If an entry is malformed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise AtlasIOError("read", path, e) from e
    return Manifest.from_html(text)


def write_manifest(manifest: Manifest, path: Path, mode: IndexMode = IndexMode.OVERWRITE) -> int:
    """Write ``manifest`` to ``path`` according to ``mode``.

    Returns:
        Number of entries written or, for PATCH, number of existing images
        that were updated.
    """
    if mode is IndexMode.SKIP:
        return 0

    if mode is IndexMode.PATCH:
        try:
            existing = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise AtlasIOError("read", path, e) from e
        count, text = manifest.patch_html(existing)
    else:
        count, text = len(manifest), manifest.to_html()

    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise AtlasIOError("write", path, e) from e
    return count
