"""Image module: aspect ratios and the rendered pixel buffer."""

from .buffer import AspectRatio, PixelBuffer

__all__ = ["AspectRatio", "PixelBuffer"]
