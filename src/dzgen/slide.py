"""Slide source backed by OpenSlide.

Adapts ``openslide.OpenSlide`` to the ``SlideSource`` capability used by the
Deep Zoom generator. OpenSlide hands regions back as RGBA images with
straight alpha; they are repacked here into premultiplied ARGB words.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from dzgen.core.pixels import pack_argb

logger = logging.getLogger(__name__)

try:
    import openslide
except ImportError:
    openslide = None


class OpenSlideSource:
    """Whole-slide image opened with OpenSlide.

    OpenSlide handles are safe to read from several threads at once.

    Args:
        slide_path: Path to the WSI file (SVS, NDPI, MRXS, etc.)
    """

    def __init__(self, slide_path: Path | str) -> None:
        if openslide is None:
            raise ImportError(
                "openslide-python is required. Install with: pip install openslide-python"
            )

        self.slide_path = Path(slide_path)
        self._slide = openslide.OpenSlide(str(self.slide_path))
        logger.debug(
            "Opened %s: %d levels, level 0 %s",
            self.slide_path.name, self._slide.level_count, self._slide.dimensions,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self.slide_path)!r})"

    def level_count(self) -> int:
        return self._slide.level_count

    def level_dimensions(self, level: int) -> tuple[int, int]:
        return self._slide.level_dimensions[level]

    def level_downsample(self, level: int) -> float:
        return self._slide.level_downsamples[level]

    def best_level_for_downsample(self, downsample: float) -> int:
        return self._slide.get_best_level_for_downsample(downsample)

    def read_region(self, level: int, x: int, y: int, width: int, height: int) -> np.ndarray:
        """Read a region as premultiplied ARGB words.

        Args:
            level: Native level to read from
            x: Left edge in level-0 pixels
            y: Top edge in level-0 pixels
            width: Region width in pixels of ``level``
            height: Region height in pixels of ``level``

        Returns:
            numpy array (width * height,) uint32
        """
        region = self._slide.read_region((x, y), level, (width, height))
        return pack_argb(np.asarray(region.convert("RGBA")))

    def property(self, name: str) -> str | None:
        return self._slide.properties.get(name)

    def close(self) -> None:
        """Close the slide file."""
        self._slide.close()

    def __enter__(self) -> OpenSlideSource:
        return self

    def __exit__(self, *args) -> None:
        self.close()


def open_slide(slide_path: Path | str) -> OpenSlideSource:
    """Open a whole-slide image as a ``SlideSource``."""
    return OpenSlideSource(slide_path)
