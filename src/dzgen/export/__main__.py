"""CLI entry point for writing Deep Zoom pyramids."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from tqdm import tqdm

from dzgen.config import (
    DEFAULT_FORMAT,
    DEFAULT_LIMIT_BOUNDS,
    DEFAULT_OVERLAP,
    DEFAULT_TILE_SIZE,
    DEFAULT_WORKERS,
    JPEG_QUALITY,
    SLIDE_EXTENSIONS,
    TILE_FORMATS,
)
from dzgen.core import DeepZoomError, DeepZoomGenerator
from dzgen.slide import open_slide

from .backends import is_vips_available
from .writer import DeepZoomExporter

logger = logging.getLogger(__name__)


def is_slide_file(path: Path) -> bool:
    """Check if a file has a supported whole-slide image extension."""
    return path.suffix.lower() in SLIDE_EXTENSIONS


def _check_prerequisites() -> None:
    """Check that pyvips is available for tile encoding.

    Exits the process with an error message if not.
    """
    if not is_vips_available():
        click.echo(click.style(
            "Error: dzgen requires pyvips to encode tiles. "
            "Install libvips and pyvips: pip install pyvips",
            fg="red"
        ), err=True)
        sys.exit(1)


def _print_header(
    slide_path: Path, base_path: Path, generator: DeepZoomGenerator, format: str
) -> None:
    """Print the CLI banner with pyramid parameters."""
    width, height = generator.dimensions
    click.echo(click.style("dzgen Deep Zoom export", fg="cyan", bold=True))
    click.echo(click.style("=" * 40, fg="cyan"))
    click.echo(f"Slide: {slide_path.name} ({width} x {height} px)")
    click.echo(f"Output: {base_path}.dzi")
    click.echo(
        f"Tile size: {generator.tile_size}px | Overlap: {generator.overlap}px | "
        f"Format: {format} | Levels: {generator.level_count} | Tiles: {generator.tile_count}"
    )
    click.echo()


def _print_info(generator: DeepZoomGenerator, format: str) -> None:
    """Print per-level geometry and the descriptor."""
    click.echo(click.style("Level  Downsample  Size            Tiles     Native", bold=True))
    for info in generator.levels:
        click.echo(
            f"{info.level:>5}  {info.downsample:>10}  "
            f"{info.width:>6} x {info.height:<6}  "
            f"{info.cols:>3} x {info.rows:<3}  {info.native_level:>6}"
        )
    if generator.mpp is not None:
        click.echo(f"MPP: {generator.mpp:.4f}")
    if generator.background_color is not None:
        click.echo(f"Background: {generator.background_color}")
    click.echo()
    click.echo(generator.get_dzi(format))


@click.command()
@click.argument("slide_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False),
    default="./output",
    help="Output directory for the .dzi file and tile folders",
)
@click.option(
    "-n",
    "--name",
    default=None,
    help="Base name of the output (default: slide file name without extension)",
)
@click.option(
    "--tile-size",
    "-t",
    type=click.IntRange(1, 4096),
    default=DEFAULT_TILE_SIZE,
    help=f"Tile size in pixels, overlap excluded (default: {DEFAULT_TILE_SIZE})",
)
@click.option(
    "--overlap",
    "-e",
    type=click.IntRange(0, 256),
    default=DEFAULT_OVERLAP,
    help=f"Overlap in pixels on interior tile edges (default: {DEFAULT_OVERLAP})",
)
@click.option(
    "--format",
    "-f",
    "tile_format",
    type=click.Choice(sorted(TILE_FORMATS)),
    default=DEFAULT_FORMAT,
    help=f"Tile image format (default: {DEFAULT_FORMAT})",
)
@click.option(
    "--quality",
    "-q",
    type=click.IntRange(1, 100),
    default=JPEG_QUALITY,
    help=f"JPEG quality (default: {JPEG_QUALITY})",
)
@click.option(
    "--limit-bounds/--no-limit-bounds",
    default=DEFAULT_LIMIT_BOUNDS,
    help="Render only the non-empty slide region",
)
@click.option(
    "--workers",
    "-j",
    type=click.IntRange(1, 64),
    default=DEFAULT_WORKERS,
    help=f"Tile rendering threads (default: {DEFAULT_WORKERS})",
)
@click.option(
    "--info",
    is_flag=True,
    help="Print the pyramid geometry and descriptor without writing tiles",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(
    slide_path: str,
    output: str,
    name: str | None,
    tile_size: int,
    overlap: int,
    tile_format: str,
    quality: int,
    limit_bounds: bool,
    workers: int,
    info: bool,
    verbose: bool,
) -> None:
    """Write a whole-slide image as a Deep Zoom pyramid.

    SLIDE_PATH is a whole-slide image readable by OpenSlide.
    Supported formats: SVS, NDPI, TIF, TIFF, MRXS, VMS, VMU, SCN, BIF, SVSLIDE, DCM.

    Examples:

        # Export a slide with the default 254px tiles and 1px overlap
        python -m dzgen slide.svs -o ./output/

        # PNG tiles cropped to the slide bounds
        python -m dzgen slide.svs -o ./output/ -f png --limit-bounds

        # Show the pyramid levels only
        python -m dzgen slide.svs --info
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    slide_path = Path(slide_path)
    if not is_slide_file(slide_path):
        click.echo(f"Not a supported slide file: {slide_path}", err=True)
        sys.exit(1)

    try:
        source = open_slide(slide_path)
    except Exception as e:
        logger.error("Failed to open %s: %s", slide_path, e)
        click.echo(click.style(f"Error opening {slide_path.name}: {e}", fg="red"), err=True)
        sys.exit(1)

    try:
        generator = DeepZoomGenerator(
            source, tile_size=tile_size, overlap=overlap, limit_bounds=limit_bounds
        )
        if info:
            _print_info(generator, tile_format)
            return

        _check_prerequisites()
        base_path = Path(output) / (name or slide_path.stem)
        _print_header(slide_path, base_path, generator, tile_format)

        exporter = DeepZoomExporter(
            generator, format=tile_format, quality=quality, workers=workers
        )
        with tqdm(total=generator.tile_count, desc="Writing tiles", unit="tile") as pbar:
            result = exporter.export(base_path, lambda _level, _done, _total: pbar.update(1))
    except (DeepZoomError, OSError, RuntimeError, ValueError) as e:
        logger.error("Export of %s failed: %s", slide_path, e)
        click.echo(click.style(f"\nError exporting {slide_path.name}: {e}", fg="red"), err=True)
        sys.exit(1)
    finally:
        source.close()

    click.echo()
    click.echo(click.style("=" * 40, fg="cyan"))
    click.echo(
        click.style("Completed: ", bold=True)
        + click.style(f"{result.tile_count} tiles", fg="green")
        + f" -> {result.dzi_path}"
    )


if __name__ == "__main__":
    main()
