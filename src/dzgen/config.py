"""Centralized configuration for dzgen.

All tunable parameters are defined here with sensible defaults.
Values can be overridden via environment variables.

Environment Variables:
    DZGEN_TILE_SIZE: Deep Zoom tile size in pixels (default: 254)
    DZGEN_OVERLAP: Extra pixels on each interior tile edge (default: 1)
    DZGEN_LIMIT_BOUNDS: Render only the non-empty slide region (default: 0)
    DZGEN_FORMAT: Tile image format, jpeg or png (default: jpeg)
    DZGEN_JPEG_QUALITY: JPEG quality for exported tiles (default: 75)
    DZGEN_WORKERS: Tile rendering threads for export (default: 4)
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


def _get_env_int(name: str, default: int) -> int:
    """Get an integer from environment variable with fallback."""
    value = os.environ.get(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            logger.warning(
                "Invalid integer for %s: %r, using default %d", name, value, default
            )
    return default


def _get_env_str(name: str, default: str) -> str:
    """Get a string from environment variable with fallback."""
    return os.environ.get(name, default)


def _get_env_bool(name: str, default: bool) -> bool:
    """Get a boolean from environment variable with fallback."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


# =============================================================================
# Deep Zoom Geometry Defaults
# =============================================================================

#: Default tile size in pixels (tile_size + 2 * overlap is a power of two)
DEFAULT_TILE_SIZE: int = _get_env_int("DZGEN_TILE_SIZE", 254)

#: Default overlap in pixels added to each interior tile edge
DEFAULT_OVERLAP: int = _get_env_int("DZGEN_OVERLAP", 1)

#: Whether to crop the pyramid to the slide's declared bounds by default
DEFAULT_LIMIT_BOUNDS: bool = _get_env_bool("DZGEN_LIMIT_BOUNDS", False)

#: XML namespace of the .dzi descriptor
DZI_NAMESPACE: str = "http://schemas.microsoft.com/deepzoom/2008"


# =============================================================================
# Export Configuration
# =============================================================================

#: Supported tile formats mapped to file extensions
TILE_FORMATS: dict[str, str] = {"jpeg": "jpeg", "png": "png"}

#: Default tile format
DEFAULT_FORMAT: str = _get_env_str("DZGEN_FORMAT", "jpeg")

#: JPEG quality for exported tiles
JPEG_QUALITY: int = _get_env_int("DZGEN_JPEG_QUALITY", 75)

#: Default number of tile rendering threads
DEFAULT_WORKERS: int = _get_env_int("DZGEN_WORKERS", 4)

#: Background color used when the slide does not declare one (white)
DEFAULT_BACKGROUND_COLOR: str = "#ffffff"

#: Supported slide file extensions
SLIDE_EXTENSIONS: frozenset[str] = frozenset({
    ".svs", ".ndpi", ".tif", ".tiff", ".mrxs", ".vms", ".vmu", ".scn",
    ".bif", ".svslide", ".dcm",
})


# =============================================================================
# Validation
# =============================================================================


def _validate_config() -> None:
    """Validate configuration values and log warnings for out-of-range settings."""
    global DEFAULT_TILE_SIZE, DEFAULT_OVERLAP, DEFAULT_FORMAT, JPEG_QUALITY, DEFAULT_WORKERS

    if DEFAULT_TILE_SIZE < 1:
        logger.warning(
            "DEFAULT_TILE_SIZE=%d is too low, clamping to 1", DEFAULT_TILE_SIZE
        )
        DEFAULT_TILE_SIZE = 1

    if DEFAULT_OVERLAP < 0:
        logger.warning("DEFAULT_OVERLAP=%d is negative, clamping to 0", DEFAULT_OVERLAP)
        DEFAULT_OVERLAP = 0

    if DEFAULT_FORMAT not in TILE_FORMATS:
        logger.warning("DEFAULT_FORMAT=%r is not supported, using 'jpeg'", DEFAULT_FORMAT)
        DEFAULT_FORMAT = "jpeg"

    if not 1 <= JPEG_QUALITY <= 100:
        clamped = min(max(JPEG_QUALITY, 1), 100)
        logger.warning("JPEG_QUALITY=%d is out of range, clamping to %d", JPEG_QUALITY, clamped)
        JPEG_QUALITY = clamped

    if DEFAULT_WORKERS < 1:
        logger.warning("DEFAULT_WORKERS=%d is too low, clamping to 1", DEFAULT_WORKERS)
        DEFAULT_WORKERS = 1


_validate_config()
