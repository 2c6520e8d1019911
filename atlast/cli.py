"""Command-line interface (using click).

    atlast unpack [GameFont.tga]   write each glyph and an index.html to GameFont/
    atlast pack [GameFont]         write GameFont.tga from GameFont/index.html
"""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

import click
import structlog

from . import __version__
from .commands import (
    DEFAULT_ATLAS,
    DEFAULT_DIRECTORY,
    default_pack_destination,
    default_unpack_destination,
    pack,
    unpack,
)
from .encoder import SizeError, parse_size
from .manifest import ManifestError
from .storage import AtlasIOError, IndexMode


def _stderr_logger(*args):
    # resolved per logger so a swapped sys.stderr is honoured
    return structlog.PrintLogger(sys.stderr)


def configure_logging(verbose: bool = False) -> None:
    """Log to stderr, stamping each event with seconds since startup."""
    started = time.monotonic()

    def add_elapsed(logger, method_name, event_dict):
        event_dict["elapsed"] = f"{time.monotonic() - started:.3f}s"
        return event_dict

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            add_elapsed,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.INFO
        ),
        logger_factory=_stderr_logger,
    )


def _size_option(ctx, param, value):
    if value is None:
        return (0, 0)
    try:
        return parse_size(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


@click.group()
@click.version_option(version=__version__, prog_name="atlast")
@click.option("-v", "--verbose", is_flag=True, help="Log debug detail")
def cli(verbose: bool):
    """
    Glyph atlas unpacker and packer.

    Unpacking reads an atlas whose glyphs are framed in hot pink on their
    right and bottom edges and writes each glyph as a .png file, plus an
    index.html manifest holding each glyph's baseline (descent). Packing
    reads that manifest and writes the atlas back.

    \b
    Examples:

      # Unpack GameFont.tga into GameFont/
      atlast unpack

      # Unpack only updating matching <img> tags in an existing index.html
      atlast unpack SpecialGameFont.tga -o GameFont_75 --patch-index

      # Pack GameFont/ into SexyLettuce.tga
      atlast pack -o SexyLettuce.tga

      # Pack into a fixed 512 pixel wide atlas
      atlast pack --size 512x
    """
    configure_logging(verbose)


@cli.command("unpack")
@click.argument("atlas", default=DEFAULT_ATLAS, type=click.Path(dir_okay=False, path_type=Path))
@click.option("-o", "--output", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Output directory (default: the atlas name without extension)")
@click.option("-n", "--dry-run", is_flag=True, help="Read but don't write files")
@click.option("--skip-index", "index_mode", flag_value=IndexMode.SKIP.value,
              help="Do not write index.html")
@click.option("--patch-index", "index_mode", flag_value=IndexMode.PATCH.value,
              help="Only update <img> tags in index.html whose paths match unpacked images")
@click.option("-j", "--jobs", type=click.IntRange(min=1), default=1,
              help="Number of threads writing glyph images (default: 1)")
def unpack_command(atlas: Path, output: Path | None, dry_run: bool, index_mode: str | None,
                   jobs: int):
    """Unpack ATLAS (default: GameFont.tga) to a directory of glyph images."""
    destination = output or default_unpack_destination(atlas)
    mode = IndexMode(index_mode) if index_mode else IndexMode.OVERWRITE
    _run(lambda: unpack(atlas, destination, dry_run=dry_run, index_mode=mode, jobs=jobs))


@cli.command("pack")
@click.argument("directory", default=DEFAULT_DIRECTORY,
                type=click.Path(file_okay=False, path_type=Path))
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Output atlas file (default: the directory name + .tga)")
@click.option("-n", "--dry-run", is_flag=True, help="Read but don't write files")
@click.option("--size", callback=_size_option, metavar="[WIDTH]x[HEIGHT]", default=None,
              help="Atlas dimensions; an omitted side fits the glyphs")
@click.option("-j", "--jobs", type=click.IntRange(min=1), default=1,
              help="Number of threads loading glyph images (default: 1)")
def pack_command(directory: Path, output: Path | None, dry_run: bool, size: tuple[int, int],
                 jobs: int):
    """Pack DIRECTORY (default: GameFont) into an atlas using its index.html."""
    destination = output or default_pack_destination(directory)
    _run(lambda: pack(directory, destination, dry_run=dry_run, size=size, jobs=jobs))


def _run(command) -> None:
    try:
        command()
    except (AtlasIOError, ManifestError, SizeError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
