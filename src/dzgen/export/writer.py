"""Write a Deep Zoom pyramid to disk as a .dzi file plus tile directories."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from dzgen.config import DEFAULT_BACKGROUND_COLOR, DEFAULT_WORKERS, JPEG_QUALITY, TILE_FORMATS
from dzgen.core import DeepZoomGenerator, TileCoord

from .backends import get_backend, parse_color

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """Locations and size of a written pyramid."""

    dzi_path: Path
    tiles_dir: Path
    tile_count: int


def render_tile(
    generator: DeepZoomGenerator,
    coord: TileCoord,
    format: str = "jpeg",
    quality: int = JPEG_QUALITY,
    bg_color: tuple[int, int, int] = (255, 255, 255),
) -> bytes:
    """Render one tile to encoded image bytes.

    The source region is flattened over ``bg_color`` and, when the read size
    differs from the tile's Deep Zoom size, resampled to it.

    Args:
        generator: Pyramid to render from
        coord: Tile address
        format: 'jpeg' or 'png'
        quality: JPEG quality (1-100)
        bg_color: Background color as RGB tuple

    Returns:
        Encoded tile image
    """
    backend = get_backend()
    geometry = generator.get_tile_geometry(*coord)
    img = backend.flatten(backend.from_bgra(generator.read_tile(*coord)), bg_color)
    if (img.width, img.height) != geometry.output_size:
        img = backend.resize(img, geometry.output_size)
    return backend.encode(img, format, quality)


class DeepZoomExporter:
    """Writes every tile of a Deep Zoom pyramid using a thread pool.

    Output layout for ``export(Path("out/slide"))``:
        out/slide.dzi
        out/slide_files/<level>/<col>_<row>.<format>

    Args:
        generator: Pyramid to export
        format: Tile format, 'jpeg' or 'png'
        quality: JPEG quality (1-100)
        workers: Number of tile rendering threads
        background: ``#rrggbb`` color to flatten transparent pixels onto;
            defaults to the slide's background color, then white
    """

    def __init__(
        self,
        generator: DeepZoomGenerator,
        format: str = "jpeg",
        quality: int = JPEG_QUALITY,
        workers: int = DEFAULT_WORKERS,
        background: str | None = None,
    ) -> None:
        if format not in TILE_FORMATS:
            raise ValueError(
                f"Unsupported tile format {format!r}, expected one of {sorted(TILE_FORMATS)}"
            )
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")

        self.generator = generator
        self.format = format
        self.quality = quality
        self.workers = workers
        self.bg_color = parse_color(
            background or generator.background_color or DEFAULT_BACKGROUND_COLOR
        )

    def tile_path(self, tiles_dir: Path, coord: TileCoord) -> Path:
        """Path of a tile file below ``<base>_files``."""
        return tiles_dir / str(coord.level) / f"{coord.col}_{coord.row}.{TILE_FORMATS[self.format]}"

    def _write_tile(self, tiles_dir: Path, coord: TileCoord) -> None:
        data = render_tile(self.generator, coord, self.format, self.quality, self.bg_color)
        self.tile_path(tiles_dir, coord).write_bytes(data)

    def export(
        self,
        base_path: Path,
        progress_callback: Callable[[int, int, int], None] | None = None,
    ) -> ExportResult:
        """Write the descriptor and all tiles.

        Args:
            base_path: Output path without extension
            progress_callback: Optional callback(level, done, total) invoked
                after each tile; ``done``/``total`` count tiles of the whole
                pyramid

        Returns:
            ExportResult describing the written files

        Raises:
            Exception: The first tile rendering failure; tiles not yet started
                are cancelled
        """
        base_path = Path(base_path)
        base_path.parent.mkdir(parents=True, exist_ok=True)
        tiles_dir = base_path.parent / f"{base_path.name}_files"
        dzi_path = base_path.parent / f"{base_path.name}.dzi"

        total = self.generator.tile_count
        done = 0
        logger.info(
            "Exporting %d tiles in %d levels to %s",
            total, self.generator.level_count, tiles_dir,
        )

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            for info in self.generator.levels:
                (tiles_dir / str(info.level)).mkdir(parents=True, exist_ok=True)
                futures = [
                    executor.submit(self._write_tile, tiles_dir, TileCoord(info.level, col, row))
                    for row in range(info.rows)
                    for col in range(info.cols)
                ]
                try:
                    for future in as_completed(futures):
                        future.result()
                        done += 1
                        if progress_callback:
                            progress_callback(info.level, done, total)
                except BaseException:
                    for future in futures:
                        future.cancel()
                    raise
                logger.debug(
                    "Level %d: %dx%d tiles from native level %d",
                    info.level, info.cols, info.rows, info.native_level,
                )

        dzi_path.write_text(self.generator.get_dzi(self.format), encoding="utf-8")
        logger.info("Wrote %s", dzi_path)
        return ExportResult(dzi_path=dzi_path, tiles_dir=tiles_dir, tile_count=done)
