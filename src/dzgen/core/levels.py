"""Level tables derived once when a Deep Zoom generator is constructed.

The functions here are pure apart from the metadata reads against the
source, and build the tuples the generator caches:

- bounded native level dimensions and the level-0 bounds offset
- the synthetic Deep Zoom level sizes (successive halving)
- the tile grid of each Deep Zoom level
- the native level and fractional downsample serving each Deep Zoom level
"""

from __future__ import annotations

import logging
import math

from .source import (
    PROPERTY_NAME_BOUNDS_HEIGHT,
    PROPERTY_NAME_BOUNDS_WIDTH,
    PROPERTY_NAME_BOUNDS_X,
    PROPERTY_NAME_BOUNDS_Y,
    SlideSource,
)
from .types import LevelBinding, Point, Size

logger = logging.getLogger(__name__)


def _int_property(source: SlideSource, name: str) -> int | None:
    value = source.property(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer slide property %s=%r", name, value)
        return None


def resolve_level_dimensions(
    source: SlideSource, limit_bounds: bool
) -> tuple[tuple[Size, ...], Point]:
    """Read native level sizes, optionally cropped to the slide bounds.

    With ``limit_bounds`` the bounds width/height are turned into a per-axis
    scale against native level 0 and applied (rounded up) to every level, and
    the bounds x/y become the level-0 offset of every read. Missing bounds
    properties leave the corresponding axis untouched.

    Args:
        source: Slide to read level geometry and properties from
        limit_bounds: Whether to crop to the declared non-empty region

    Returns:
        Tuple of (bounded level dimensions, level-0 offset)
    """
    dimensions = tuple(
        Size(*source.level_dimensions(level)) for level in range(source.level_count())
    )
    if not limit_bounds:
        return dimensions, Point(0, 0)

    offset = Point(
        _int_property(source, PROPERTY_NAME_BOUNDS_X) or 0,
        _int_property(source, PROPERTY_NAME_BOUNDS_Y) or 0,
    )

    l0_width, l0_height = dimensions[0]
    scale_x = scale_y = 1.0
    bounds_width = _int_property(source, PROPERTY_NAME_BOUNDS_WIDTH)
    if bounds_width is not None:
        scale_x = bounds_width / l0_width
    bounds_height = _int_property(source, PROPERTY_NAME_BOUNDS_HEIGHT)
    if bounds_height is not None:
        scale_y = bounds_height / l0_height

    bounded = tuple(
        Size(math.ceil(width * scale_x), math.ceil(height * scale_y))
        for width, height in dimensions
    )
    logger.debug(
        "Limiting to bounds: offset %s, scale (%.6f, %.6f), level 0 %s",
        offset, scale_x, scale_y, bounded[0],
    )
    return bounded, offset


def build_pyramid_dimensions(base: Size) -> tuple[Size, ...]:
    """Halve ``base`` (rounding up, floored at 1) until it collapses to 1x1.

    Returns:
        Level sizes with index 0 the smallest and the last equal to ``base``
    """
    width, height = base
    dims = [Size(width, height)]
    while width > 1 or height > 1:
        width = max(1, (width + 1) // 2)
        height = max(1, (height + 1) // 2)
        dims.append(Size(width, height))
    dims.reverse()  # level 0 = smallest
    return tuple(dims)


def tile_grid_dimensions(
    level_dimensions: tuple[Size, ...], tile_size: int
) -> tuple[Size, ...]:
    """Number of (cols, rows) tiles needed to cover each level."""
    return tuple(
        Size(
            (width + tile_size - 1) // tile_size,
            (height + tile_size - 1) // tile_size,
        )
        for width, height in level_dimensions
    )


def bind_native_levels(
    source: SlideSource, dz_levels: int
) -> tuple[tuple[LevelBinding, ...], tuple[float, ...]]:
    """Pick the native level serving each Deep Zoom level.

    Level ``j`` of ``dz_levels`` has a downsample of ``2 ** (dz_levels - 1 - j)``
    against full resolution. The source chooses the native level for it; the
    remaining factor between that native level and the Deep Zoom level is kept
    as ``dz_downsample`` (usually in ``[1, 2)``).

    Returns:
        Tuple of (binding per Deep Zoom level, downsample per native level)
    """
    native_downsamples = tuple(
        float(source.level_downsample(level)) for level in range(source.level_count())
    )
    bindings = []
    for dz_level in range(dz_levels):
        downsample = 2 ** (dz_levels - dz_level - 1)
        native_level = source.best_level_for_downsample(downsample)
        bindings.append(
            LevelBinding(native_level, downsample / native_downsamples[native_level])
        )
    return tuple(bindings), native_downsamples
