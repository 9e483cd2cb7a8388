"""Deep Zoom pyramid geometry over multi-resolution slides."""

from .dzi import DziDescriptor, parse_dzi, render_dzi
from .errors import ConfigurationError, DeepZoomError, InvalidTileAddress
from .generator import DeepZoomGenerator
from .source import SlideSource
from .types import (
    LevelBinding,
    LevelInfo,
    Point,
    PyramidMetadata,
    Size,
    TileCoord,
    TileGeometry,
    TilePixels,
)

__all__ = [
    "DeepZoomGenerator",
    "SlideSource",
    "DeepZoomError",
    "ConfigurationError",
    "InvalidTileAddress",
    "DziDescriptor",
    "parse_dzi",
    "render_dzi",
    "LevelBinding",
    "LevelInfo",
    "Point",
    "PyramidMetadata",
    "Size",
    "TileCoord",
    "TileGeometry",
    "TilePixels",
]
