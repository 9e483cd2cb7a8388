"""Test fixtures for dzgen tests."""

from __future__ import annotations

import tempfile
import threading
from pathlib import Path
from typing import Generator

import numpy as np
import pytest

#: Opaque pixel: alpha 0xFF, red 0x33, green 0x66, blue 0x99
OPAQUE_PIXEL = 0xFF336699


class FakeSlide:
    """In-memory multi-resolution slide implementing the SlideSource protocol.

    Every pixel has the same packed ARGB value. Region reads are recorded as
    ``(level, x, y, width, height)`` tuples.
    """

    def __init__(
        self,
        levels: list[tuple[int, int]],
        downsamples: list[float] | None = None,
        properties: dict[str, str] | None = None,
        pixel: int = OPAQUE_PIXEL,
    ) -> None:
        self._levels = [tuple(d) for d in levels]
        if downsamples is None:
            l0_width = levels[0][0]
            downsamples = [l0_width / width for width, _ in levels]
        self._downsamples = list(downsamples)
        self._properties = dict(properties or {})
        self.pixel = pixel
        self.reads: list[tuple[int, int, int, int, int]] = []
        self._lock = threading.Lock()
        self.closed = False

    def level_count(self) -> int:
        return len(self._levels)

    def level_dimensions(self, level: int) -> tuple[int, int]:
        return self._levels[level]

    def level_downsample(self, level: int) -> float:
        return self._downsamples[level]

    def best_level_for_downsample(self, downsample: float) -> int:
        # Largest level whose downsample does not exceed the request
        if downsample < self._downsamples[0]:
            return 0
        for level in range(1, len(self._downsamples)):
            if downsample < self._downsamples[level]:
                return level - 1
        return len(self._downsamples) - 1

    def read_region(self, level: int, x: int, y: int, width: int, height: int) -> np.ndarray:
        with self._lock:
            self.reads.append((level, x, y, width, height))
        return np.full(width * height, self.pixel, dtype=np.uint32)

    def property(self, name: str) -> str | None:
        return self._properties.get(name)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def single_level_slide() -> FakeSlide:
    """1000x800 slide with a single native level."""
    return FakeSlide([(1000, 800)])


@pytest.fixture
def multi_level_slide() -> FakeSlide:
    """1000x800 slide with native levels at downsample 1, 2 and 4."""
    return FakeSlide([(1000, 800), (500, 400), (250, 200)], downsamples=[1.0, 2.0, 4.0])


@pytest.fixture
def bounded_slide() -> FakeSlide:
    """1000x800 slide whose non-empty region is 600x400 at (100, 50)."""
    return FakeSlide(
        [(1000, 800), (500, 400)],
        downsamples=[1.0, 2.0],
        properties={
            "openslide.bounds-x": "100",
            "openslide.bounds-y": "50",
            "openslide.bounds-width": "600",
            "openslide.bounds-height": "400",
            "openslide.mpp-x": "0.25",
            "openslide.mpp-y": "0.27",
            "openslide.background-color": "F0E0D0",
        },
    )
