"""Shared type definitions for the dzgen core module."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


class Point(NamedTuple):
    """Integer pixel location."""

    x: int
    y: int


class Size(NamedTuple):
    """Integer pixel extent."""

    width: int
    height: int


class TileCoord(NamedTuple):
    """Coordinate of a tile in the Deep Zoom pyramid.

    Attributes:
        level: Pyramid level (0 = lowest resolution)
        col: Column index (0-based)
        row: Row index (0-based)
    """

    level: int
    col: int
    row: int


class LevelBinding(NamedTuple):
    """Native slide level chosen to serve one pyramid level.

    Attributes:
        native_level: Index of the native slide level to read from
        dz_downsample: Native-level pixels per pyramid-level pixel
    """

    native_level: int
    dz_downsample: float


@dataclass(frozen=True)
class LevelInfo:
    """Information about a Deep Zoom pyramid level.

    Attributes:
        level: Level index (0 = lowest resolution)
        downsample: Downsample factor relative to full resolution (1 = full res)
        width: Level width in pixels
        height: Level height in pixels
        cols: Number of tile columns at this level
        rows: Number of tile rows at this level
        native_level: Native slide level the tiles are read from
    """

    level: int
    downsample: int
    width: int
    height: int
    cols: int
    rows: int
    native_level: int


@dataclass(frozen=True)
class TileGeometry:
    """Resolved read request and output size of a single tile.

    Attributes:
        native_level: Native slide level to read from
        location: Top-left of the read in level-0 pixels, bounds offset included
        size: Read size in native-level pixels
        output_size: Final Deep Zoom tile size in pixels, overlap included
    """

    native_level: int
    location: Point
    size: Size
    output_size: Size


class TilePixels(NamedTuple):
    """Raw tile pixels as B, G, R, A bytes with premultiplied alpha."""

    width: int
    height: int
    data: bytes


@dataclass(frozen=True)
class PyramidMetadata:
    """Geometry and slide metadata advertised alongside the pyramid."""

    tile_size: int
    overlap: int
    background_color: str | None = None
    mpp: float | None = None

    def to_dict(self) -> dict:
        return {
            "tile_size": self.tile_size,
            "overlap": self.overlap,
            "background_color": self.background_color,
            "mpp": self.mpp,
        }
