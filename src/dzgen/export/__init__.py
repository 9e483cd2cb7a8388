"""Encoding and on-disk export of Deep Zoom pyramids."""

from .backends import (
    VIPSBackend,
    get_backend,
    is_vips_available,
    parse_color,
)
from .writer import DeepZoomExporter, ExportResult, render_tile

__all__ = [
    "DeepZoomExporter",
    "ExportResult",
    "render_tile",
    "VIPSBackend",
    "get_backend",
    "is_vips_available",
    "parse_color",
]
