"""Virtual Deep Zoom pyramid over a multi-resolution slide."""

from __future__ import annotations

import logging
import math

import numpy as np

from .dzi import render_dzi
from .errors import ConfigurationError, DeepZoomError, InvalidTileAddress
from .levels import (
    bind_native_levels,
    build_pyramid_dimensions,
    resolve_level_dimensions,
    tile_grid_dimensions,
)
from .pixels import unpack_argb
from .source import (
    PROPERTY_NAME_BACKGROUND_COLOR,
    PROPERTY_NAME_MPP_X,
    PROPERTY_NAME_MPP_Y,
    SlideSource,
)
from .types import (
    LevelInfo,
    Point,
    PyramidMetadata,
    Size,
    TileCoord,
    TileGeometry,
    TilePixels,
)

logger = logging.getLogger(__name__)


def _read_mpp(source: SlideSource) -> float | None:
    """Average of the x/y microns-per-pixel, or None unless both are present."""
    mpp_x = source.property(PROPERTY_NAME_MPP_X)
    mpp_y = source.property(PROPERTY_NAME_MPP_Y)
    if mpp_x is None or mpp_y is None:
        return None
    try:
        return (float(mpp_x) + float(mpp_y)) / 2
    except ValueError:
        logger.warning("Ignoring non-numeric MPP properties: %r, %r", mpp_x, mpp_y)
        return None


class DeepZoomGenerator:
    """Maps Deep Zoom tile addresses onto regions of a multi-resolution slide.

    All level tables are computed in the constructor and never modified, so
    geometry queries, tile reads and descriptor rendering can be called from
    several threads at once (tile reads additionally need a source that
    supports concurrent reads).

    Args:
        source: Slide exposing the ``SlideSource`` capability
        tile_size: Width and height of a tile, overlap excluded. For best
            viewer performance ``tile_size + 2 * overlap`` should be a power
            of two.
        overlap: Extra pixels added to each interior edge of a tile
        limit_bounds: Render only the non-empty slide region declared by the
            slide's bounds properties

    Raises:
        ConfigurationError: If the source is missing, the tile size is not a
            positive integer, or the overlap is negative
    """

    def __init__(
        self,
        source: SlideSource,
        tile_size: int = 254,
        overlap: int = 1,
        limit_bounds: bool = False,
    ) -> None:
        if source is None:
            raise ConfigurationError("A slide source is required")
        if isinstance(tile_size, bool) or not isinstance(tile_size, int) or tile_size < 1:
            raise ConfigurationError(f"Tile size must be a positive integer, got {tile_size!r}")
        if isinstance(overlap, bool) or not isinstance(overlap, int) or overlap < 0:
            raise ConfigurationError(f"Overlap must be a non-negative integer, got {overlap!r}")

        self._tile_size = tile_size
        self._overlap = overlap
        self._limit_bounds = limit_bounds

        self._l_dimensions, self._l0_offset = resolve_level_dimensions(source, limit_bounds)
        self._z_dimensions = build_pyramid_dimensions(self._l_dimensions[0])
        self._t_dimensions = tile_grid_dimensions(self._z_dimensions, tile_size)
        self._bindings, self._l0_l_downsamples = bind_native_levels(
            source, len(self._z_dimensions)
        )

        background = source.property(PROPERTY_NAME_BACKGROUND_COLOR)
        self._metadata = PyramidMetadata(
            tile_size=tile_size,
            overlap=overlap,
            background_color=f"#{background}" if background else None,
            mpp=_read_mpp(source),
        )
        self._source = source

        logger.debug(
            "Deep Zoom pyramid: %d levels, %d tiles, full size %s, native levels %s",
            self.level_count,
            self.tile_count,
            self._l_dimensions[0],
            [b.native_level for b in self._bindings],
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self._source!r}, tile_size={self._tile_size!r}, "
            f"overlap={self._overlap!r}, limit_bounds={self._limit_bounds!r})"
        )

    @property
    def tile_size(self) -> int:
        return self._tile_size

    @property
    def overlap(self) -> int:
        return self._overlap

    @property
    def level_count(self) -> int:
        """The number of Deep Zoom levels in the image."""
        return len(self._z_dimensions)

    @property
    def level_dimensions(self) -> tuple[Size, ...]:
        """(width, height) of each Deep Zoom level, smallest first."""
        return self._z_dimensions

    @property
    def level_tiles(self) -> tuple[Size, ...]:
        """(cols, rows) tile grid of each Deep Zoom level."""
        return self._t_dimensions

    @property
    def tile_count(self) -> int:
        """The total number of Deep Zoom tiles in the image."""
        return sum(cols * rows for cols, rows in self._t_dimensions)

    @property
    def dimensions(self) -> Size:
        """Full resolution of the pyramid (bounded native level 0)."""
        return self._l_dimensions[0]

    @property
    def levels(self) -> tuple[LevelInfo, ...]:
        """Per-level summary of the pyramid, smallest level first."""
        last = self.level_count - 1
        return tuple(
            LevelInfo(
                level=level,
                downsample=2 ** (last - level),
                width=width,
                height=height,
                cols=cols,
                rows=rows,
                native_level=binding.native_level,
            )
            for level, ((width, height), (cols, rows), binding) in enumerate(
                zip(self._z_dimensions, self._t_dimensions, self._bindings)
            )
        )

    @property
    def metadata(self) -> PyramidMetadata:
        return self._metadata

    @property
    def mpp(self) -> float | None:
        """Average microns per pixel at full resolution, if the slide declares it."""
        return self._metadata.mpp

    @property
    def background_color(self) -> str | None:
        """Slide background color as ``#rrggbb``, if the slide declares it."""
        return self._metadata.background_color

    def _check_address(self, level: int, col: int, row: int) -> None:
        if not 0 <= level < self.level_count:
            raise InvalidTileAddress(
                f"Invalid level {level}: pyramid has {self.level_count} levels",
                level, col, row,
            )
        cols, rows = self._t_dimensions[level]
        if not (0 <= col < cols and 0 <= row < rows):
            raise InvalidTileAddress(
                f"Invalid address ({col}, {row}) at level {level}: grid is {cols}x{rows}",
                level, col, row,
            )

    def get_tile_geometry(self, level: int, col: int, row: int) -> TileGeometry:
        """Resolve the slide read request and output size of a tile.

        Overlap is only added on sides facing another tile. The read origin is
        returned in level-0 pixels (bounds offset included) and the read size
        in pixels of the chosen native level, clipped so the read stays inside
        that level's raster.

        Raises:
            InvalidTileAddress: If the address is outside the pyramid
        """
        self._check_address(level, col, row)

        native_level, dz_downsample = self._bindings[level]
        cols, rows = self._t_dimensions[level]
        z_width, z_height = self._z_dimensions[level]

        # Overlap on interior-facing sides only
        overlap_left = self._overlap if col != 0 else 0
        overlap_top = self._overlap if row != 0 else 0
        overlap_right = self._overlap if col != cols - 1 else 0
        overlap_bottom = self._overlap if row != rows - 1 else 0

        # Tile origin and clipped size in Deep Zoom level pixels
        z_x = self._tile_size * col
        z_y = self._tile_size * row
        output_size = Size(
            min(self._tile_size, z_width - z_x) + overlap_left + overlap_right,
            min(self._tile_size, z_height - z_y) + overlap_top + overlap_bottom,
        )

        # Origin in native level pixels
        l_x = dz_downsample * (z_x - overlap_left)
        l_y = dz_downsample * (z_y - overlap_top)

        l_downsample = self._l0_l_downsamples[native_level]
        location = Point(
            math.floor(l_downsample * l_x) + self._l0_offset.x,
            math.floor(l_downsample * l_y) + self._l0_offset.y,
        )

        l_width, l_height = self._l_dimensions[native_level]
        size = Size(
            min(math.ceil(dz_downsample * output_size.width), l_width - math.ceil(l_x)),
            min(math.ceil(dz_downsample * output_size.height), l_height - math.ceil(l_y)),
        )
        return TileGeometry(
            native_level=native_level,
            location=location,
            size=size,
            output_size=output_size,
        )

    def get_tile_coordinates(self, level: int, col: int, row: int) -> tuple[Point, int, Size]:
        """Return the ``(location, native_level, size)`` read request of a tile."""
        geometry = self.get_tile_geometry(level, col, row)
        return geometry.location, geometry.native_level, geometry.size

    def get_tile_dimensions(self, level: int, col: int, row: int) -> Size:
        """Return the final (width, height) of a tile, overlap included."""
        return self.get_tile_geometry(level, col, row).output_size

    def read_tile(self, level: int, col: int, row: int) -> np.ndarray:
        """Read a tile's source region as a B, G, R, A array.

        The array has the size of the source read (``TileGeometry.size``),
        which can differ from the tile's output size when the native level
        does not match the Deep Zoom level exactly. Alpha stays premultiplied.

        Returns:
            numpy array (height, width, 4) uint8

        Raises:
            InvalidTileAddress: If the address is outside the pyramid
            DeepZoomError: If the source returns a buffer of the wrong length
        """
        geometry = self.get_tile_geometry(level, col, row)
        width, height = geometry.size
        words = self._source.read_region(
            geometry.native_level, geometry.location.x, geometry.location.y, width, height
        )
        words = np.asarray(words, dtype=np.uint32)
        if words.size != width * height:
            raise DeepZoomError(
                f"Slide returned {words.size} samples for a {width}x{height} region"
            )
        return unpack_argb(words, width, height)

    def get_tile(self, level: int, col: int, row: int) -> TilePixels:
        """Return a tile's source region as B, G, R, A bytes (premultiplied)."""
        pixels = self.read_tile(level, col, row)
        height, width = pixels.shape[:2]
        return TilePixels(width, height, pixels.tobytes())

    def get_dzi(self, format: str) -> str:
        """Return the XML text of the .dzi descriptor for this pyramid.

        Args:
            format: Tile image format ('jpeg' or 'png')
        """
        return render_dzi(format, self._overlap, self._tile_size, self._l_dimensions[0])

    def iter_tiles(self):
        """Yield every tile address, level by level, row-major within a level."""
        for level, (cols, rows) in enumerate(self._t_dimensions):
            for row in range(rows):
                for col in range(cols):
                    yield TileCoord(level, col, row)
