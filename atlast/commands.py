"""The unpack and pack commands, independent of any front end."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import structlog

from .decoder import Atlas
from .encoder import compose
from .storage import (
    INDEX_FILENAME,
    AtlasIOError,
    IndexMode,
    load_glyph_images,
    load_rgba,
    read_manifest,
    save_glyph_images,
    save_rgba,
    write_manifest,
)

logger = structlog.get_logger(__name__)

DEFAULT_ATLAS = "GameFont.tga"
DEFAULT_DIRECTORY = "GameFont"
ATLAS_SUFFIX = ".tga"


@dataclass
class UnpackReport:
    glyphs: int
    rows: int
    written: bool


@dataclass
class PackReport:
    width: int
    height: int
    glyphs: int
    written: bool


def default_unpack_destination(atlas_path: Path) -> Path:
    """``GameFont_75.tga`` unpacks into ``GameFont_75``."""
    return Path(atlas_path.stem or Path(DEFAULT_ATLAS).stem)


def default_pack_destination(source_dir: Path) -> Path:
    """Directory ``GameFont`` packs into ``GameFont.tga``."""
    name = source_dir.resolve().name
    return Path(f"{name}{ATLAS_SUFFIX}" if name else DEFAULT_ATLAS)


def unpack(
    atlas_path: Path,
    destination: Path,
    dry_run: bool = False,
    index_mode: IndexMode = IndexMode.OVERWRITE,
    jobs: int = 1,
) -> UnpackReport:
    """Split the atlas at ``atlas_path`` into glyph images under ``destination``.

    Args:
        atlas_path: Atlas image file.
        destination: Output directory, created if missing.
        dry_run: Decode only; write nothing.
        index_mode: What to do with ``destination/index.html``.
        jobs: Number of threads writing glyph images.

    Raises:
        AtlasIOError: If reading the atlas or writing any output fails.
        ManifestError: If patching an existing manifest that is malformed.
    """
    logger.info("unpack_started", atlas=str(atlas_path), destination=str(destination))
    atlas = Atlas.from_image(load_rgba(atlas_path))
    logger.info("glyphs_found", glyphs=len(atlas), rows=atlas.row_count)

    if dry_run:
        logger.info("dry_run_skip_write", destination=str(destination))
        return UnpackReport(glyphs=len(atlas), rows=atlas.row_count, written=False)

    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise AtlasIOError("create", destination, e) from e

    manifest = save_glyph_images(atlas, destination, jobs=jobs)

    index_path = destination / INDEX_FILENAME
    if index_mode is IndexMode.SKIP:
        logger.info("index_skipped", index=str(index_path))
    else:
        count = write_manifest(manifest, index_path, index_mode)
        logger.info("index_written", index=str(index_path), mode=index_mode.value, entries=count)

    logger.info("unpack_done", destination=str(destination))
    return UnpackReport(glyphs=len(atlas), rows=atlas.row_count, written=True)


def pack(
    source_dir: Path,
    destination: Path,
    dry_run: bool = False,
    size: tuple[int, int] = (0, 0),
    jobs: int = 1,
) -> PackReport:
    """Pack the glyphs listed in ``source_dir/index.html`` into an atlas.

    Args:
        source_dir: Directory holding the manifest and glyph images.
        destination: Atlas file to write; its extension picks the format.
        dry_run: Compose only; write nothing.
        size: Atlas (width, height), 0 meaning fit to content.
        jobs: Number of threads loading glyph images.

    Raises:
        AtlasIOError: If any read or the final write fails.
        ManifestError: If the manifest is malformed.
        SizeError: If the atlas would be empty.
    """
    logger.info("pack_started", source=str(source_dir), destination=str(destination))
    manifest = read_manifest(source_dir / INDEX_FILENAME)

    logger.info("loading_images", count=len(manifest))
    rows = load_glyph_images(manifest, source_dir, jobs=jobs)

    atlas = compose(rows, size)
    height, width = atlas.shape[:2]
    logger.info("atlas_packed", width=width, height=height)

    if dry_run:
        logger.info("dry_run_skip_write", destination=str(destination))
        return PackReport(width=width, height=height, glyphs=len(manifest), written=False)

    save_rgba(atlas, destination)
    logger.info("pack_done", destination=str(destination))
    return PackReport(width=width, height=height, glyphs=len(manifest), written=True)
