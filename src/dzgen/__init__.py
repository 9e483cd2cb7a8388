"""dzgen - Virtual Deep Zoom pyramids over whole-slide images."""

__version__ = "0.1.0"

from dzgen.core import DeepZoomGenerator, InvalidTileAddress, SlideSource

__all__ = ["DeepZoomGenerator", "InvalidTileAddress", "SlideSource", "__version__"]
