"""Conversions between packed ARGB words and per-channel byte arrays.

Slides deliver pixels as 32-bit words with premultiplied alpha, alpha in the
most significant byte and blue in the least significant one. Channels are
extracted arithmetically so the result does not depend on host byte order.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

BYTES_PER_PIXEL: int = 4


def unpack_argb(words: np.ndarray | Sequence[int], width: int, height: int) -> np.ndarray:
    """Unpack ARGB words into a (height, width, 4) B, G, R, A uint8 array.

    Premultiplied alpha is preserved.

    Args:
        words: ``width * height`` packed samples in row-major order
        width: Region width in pixels
        height: Region height in pixels

    Returns:
        numpy array (height, width, 4) uint8, channels B, G, R, A
    """
    words = np.asarray(words, dtype=np.uint32).reshape(height, width)
    out = np.empty((height, width, BYTES_PER_PIXEL), dtype=np.uint8)
    for channel in range(BYTES_PER_PIXEL):
        out[..., channel] = ((words >> np.uint32(8 * channel)) & np.uint32(0xFF)).astype(np.uint8)
    return out


def pack_argb(rgba: np.ndarray) -> np.ndarray:
    """Pack straight-alpha RGBA pixels into premultiplied ARGB words.

    Args:
        rgba: numpy array (H, W, 4) uint8 with non-premultiplied alpha

    Returns:
        numpy array (H * W,) uint32
    """
    rgba = np.asarray(rgba, dtype=np.uint32)
    alpha = rgba[..., 3]
    # Round to nearest when scaling by alpha / 255
    red, green, blue = ((rgba[..., c] * alpha + 127) // 255 for c in range(3))
    words = (alpha << 24) | (red << 16) | (green << 8) | blue
    return words.astype(np.uint32).reshape(-1)
