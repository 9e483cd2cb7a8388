"""Capability a multi-resolution image must expose to the Deep Zoom core."""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

import numpy as np

PROPERTY_NAME_MPP_X = "openslide.mpp-x"
PROPERTY_NAME_MPP_Y = "openslide.mpp-y"
PROPERTY_NAME_BOUNDS_X = "openslide.bounds-x"
PROPERTY_NAME_BOUNDS_Y = "openslide.bounds-y"
PROPERTY_NAME_BOUNDS_WIDTH = "openslide.bounds-width"
PROPERTY_NAME_BOUNDS_HEIGHT = "openslide.bounds-height"
PROPERTY_NAME_BACKGROUND_COLOR = "openslide.background-color"


@runtime_checkable
class SlideSource(Protocol):
    """Multi-resolution raster the generator reads geometry and pixels from.

    Level 0 is the native full resolution; downsamples are relative to it and
    non-decreasing with the level index. ``read_region`` takes its x/y in
    level-0 pixels and its width/height in pixels of the requested level, and
    returns ``width * height`` 32-bit premultiplied ARGB words in row-major
    order (alpha in the most significant byte). It must tolerate concurrent
    calls if tiles are rendered from several threads.
    """

    def level_count(self) -> int: ...

    def level_dimensions(self, level: int) -> tuple[int, int]: ...

    def level_downsample(self, level: int) -> float: ...

    def best_level_for_downsample(self, downsample: float) -> int: ...

    def read_region(
        self, level: int, x: int, y: int, width: int, height: int
    ) -> np.ndarray | Sequence[int]: ...

    def property(self, name: str) -> str | None: ...
