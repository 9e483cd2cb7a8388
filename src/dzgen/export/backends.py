"""Tile encoding backend using PyVIPS.

Turns the raw B, G, R, A (premultiplied) tile pixels produced by the Deep
Zoom generator into viewer-ready images: flattened over the slide background,
resampled to the Deep Zoom tile size, and encoded as JPEG or PNG.

Usage:
    from dzgen.export.backends import VIPSBackend

    img = VIPSBackend.from_bgra(generator.read_tile(level, col, row))
    img = VIPSBackend.flatten(img, (255, 255, 255))
    data = VIPSBackend.encode(img, "jpeg", quality=75)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np

_HAS_VIPS = False
_vips_import_error: str | None = None
pyvips: Any = None

try:
    import pyvips
    _HAS_VIPS = True
except (ImportError, OSError) as e:
    _vips_import_error = str(e)

# B, G, R, A -> R, G, B, A
_BGRA_TO_RGBA = [2, 1, 0, 3]


def is_vips_available() -> bool:
    """Check if PyVIPS is available.

    Returns:
        True if pyvips is installed and working
    """
    return _HAS_VIPS


def get_vips_import_error() -> str | None:
    """Get the error message if PyVIPS failed to import.

    Returns:
        Error message string, or None if pyvips is available
    """
    return _vips_import_error


def parse_color(value: str) -> tuple[int, int, int]:
    """Parse a ``#rrggbb`` (or ``rrggbb``) color into an RGB tuple.

    Raises:
        ValueError: If the value is not a 6-digit hex color
    """
    text = value.strip().lstrip("#")
    if len(text) != 6:
        raise ValueError(f"Expected a #rrggbb color, got {value!r}")
    return tuple(int(text[i : i + 2], 16) for i in (0, 2, 4))


class VIPSBackend:
    """PyVIPS-based tile encoding backend.

    Requires pyvips to be installed: pip install pyvips
    """

    @staticmethod
    def from_bgra(arr: np.ndarray) -> "pyvips.Image":
        """Convert a B, G, R, A tile array to a 4-band pyvips image.

        Args:
            arr: numpy array (H, W, 4) uint8, channels B, G, R, A

        Returns:
            pyvips.Image in RGBA band order (alpha still premultiplied)
        """
        if not _HAS_VIPS:
            raise RuntimeError(f"PyVIPS is not available: {_vips_import_error}")

        height, width = arr.shape[:2]
        rgba = np.ascontiguousarray(arr[..., _BGRA_TO_RGBA])
        return pyvips.Image.new_from_memory(rgba.tobytes(), width, height, 4, "uchar")

    @staticmethod
    def to_numpy(img: "pyvips.Image") -> np.ndarray:
        """Convert a pyvips image to a numpy array.

        Args:
            img: pyvips.Image

        Returns:
            numpy array (H, W, bands) uint8
        """
        data = img.write_to_memory()
        return np.ndarray(
            buffer=data,
            dtype=np.uint8,
            shape=(img.height, img.width, img.bands),
        )

    @staticmethod
    def flatten(img: "pyvips.Image", bg_color: tuple[int, int, int]) -> "pyvips.Image":
        """Composite a premultiplied RGBA image over a solid background.

        Args:
            img: 4-band pyvips.Image with premultiplied alpha
            bg_color: Background color as RGB tuple

        Returns:
            3-band RGB pyvips.Image
        """
        return img.unpremultiply().flatten(background=list(bg_color)).cast("uchar")

    @staticmethod
    def resize(img: "pyvips.Image", size: tuple[int, int]) -> "pyvips.Image":
        """Resize an image using Lanczos3 resampling.

        Args:
            img: pyvips.Image to resize
            size: Target size as (width, height)

        Returns:
            Resized pyvips.Image
        """
        target_width, target_height = size
        h_scale = target_width / img.width
        v_scale = target_height / img.height

        resized = img.resize(h_scale, vscale=v_scale, kernel="lanczos3")
        # Rounding inside vips can leave the result one pixel off
        if resized.width != target_width or resized.height != target_height:
            resized = resized.gravity("north-west", target_width, target_height, extend="copy")
        return resized

    @staticmethod
    def encode(img: "pyvips.Image", format: str, quality: int = 75) -> bytes:
        """Encode an image to JPEG or PNG bytes.

        Args:
            img: pyvips.Image to encode
            format: 'jpeg' or 'png'
            quality: JPEG quality (1-100), ignored for PNG
        """
        if format == "jpeg":
            return img.write_to_buffer(".jpg", Q=quality)
        if format == "png":
            return img.write_to_buffer(".png")
        raise ValueError(f"Unsupported tile format: {format!r}")

    @staticmethod
    def save(img: "pyvips.Image", path: Path, format: str, quality: int = 75) -> None:
        """Save an image as JPEG or PNG.

        Args:
            img: pyvips.Image to save
            path: Output path
            format: 'jpeg' or 'png'
            quality: JPEG quality (1-100), ignored for PNG
        """
        Path(path).write_bytes(VIPSBackend.encode(img, format, quality))


def get_backend() -> type[VIPSBackend]:
    """Get the tile encoding backend.

    Returns:
        VIPSBackend class

    Raises:
        RuntimeError: If PyVIPS is not available
    """
    if not _HAS_VIPS:
        raise RuntimeError(
            f"PyVIPS is required but not available: {_vips_import_error}\n"
            "Install pyvips and libvips: pip install pyvips"
        )
    return VIPSBackend


def get_backend_name() -> str:
    """Get the name of the backend.

    Returns:
        "PyVIPS"
    """
    return "PyVIPS"
