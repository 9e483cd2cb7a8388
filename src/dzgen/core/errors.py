"""Exceptions raised by the Deep Zoom core."""

from __future__ import annotations


class DeepZoomError(Exception):
    """Base class for Deep Zoom generator errors."""


class ConfigurationError(DeepZoomError, ValueError):
    """Invalid generator construction arguments."""


class InvalidTileAddress(DeepZoomError, ValueError):
    """Tile address outside the pyramid or its level's tile grid."""

    def __init__(self, message: str, level: int, col: int, row: int) -> None:
        super().__init__(message)
        self.level = level
        self.col = col
        self.row = row
