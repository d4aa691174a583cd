"""Aspect ratios and the rendered pixel buffer.

``PixelBuffer`` stores colours as a ``(height, width, 3)`` array in the
renderer's own orientation: row 0 is the bottom of the image (``v = 0``).
Serializers ask for ``to_image_array()``, which flips it top-row-first.

Example:
    >>> from pathtracer.image.buffer import AspectRatio, PixelBuffer
    >>> AspectRatio(2560, 1440).as_tuple()
    (16, 9)
    >>> buf = PixelBuffer.from_vertical_ratio(240, AspectRatio())
    >>> buf.width, buf.height
    (426, 240)
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from pathtracer.scalar import scale_to_u8


@dataclass(frozen=True)
class AspectRatio:
    """Width-to-height ratio kept in lowest terms.

    Attributes:
        horizontal: Width units.
        vertical: Height units.
    """

    horizontal: int = 16
    vertical: int = 9

    def __post_init__(self) -> None:
        if self.horizontal <= 0 or self.vertical <= 0:
            raise ValueError(
                f"Aspect ratio terms must be positive, got {self.horizontal}:{self.vertical}"
            )
        divisor = math.gcd(int(self.horizontal), int(self.vertical))
        object.__setattr__(self, "horizontal", int(self.horizontal) // divisor)
        object.__setattr__(self, "vertical", int(self.vertical) // divisor)

    @classmethod
    def parse(cls, text: str) -> AspectRatio:
        """Parse ``"W:H"`` (e.g. ``"16:9"``)."""
        try:
            horizontal, vertical = (int(part) for part in text.split(":"))
        except ValueError:
            raise ValueError(f"Invalid aspect ratio {text!r}, expected 'W:H'") from None
        return cls(horizontal, vertical)

    def as_tuple(self) -> tuple[int, int]:
        return (self.horizontal, self.vertical)

    def as_float(self) -> float:
        return self.horizontal / self.vertical

    def width_from_height(self, height: int) -> int:
        """Width for a given height, truncated."""
        return int(height * self.as_float())

    def height_from_width(self, width: int) -> int:
        """Height for a given width, truncated."""
        return int(width / self.as_float())

    def __str__(self) -> str:
        return f"{self.horizontal}:{self.vertical}"


class PixelBuffer:
    """A rendered image.

    Attributes:
        pixels: ``(height, width, 3)`` float array, row 0 at the bottom.
    """

    def __init__(self, width: int, height: int, pixels: npt.ArrayLike | None = None) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
        if pixels is None:
            self.pixels = np.zeros((height, width, 3), dtype=np.float64)
        else:
            self.pixels = np.array(pixels, dtype=np.float64).reshape(height, width, 3)
        self._width = width
        self._height = height

    @classmethod
    def from_vertical_ratio(cls, height: int, aspect: AspectRatio | None = None) -> PixelBuffer:
        """Empty buffer of the given height, width following the aspect ratio."""
        aspect = aspect or AspectRatio()
        return cls(aspect.width_from_height(height), height)

    @classmethod
    def from_horizontal_ratio(cls, width: int, aspect: AspectRatio | None = None) -> PixelBuffer:
        """Empty buffer of the given width, height following the aspect ratio."""
        aspect = aspect or AspectRatio()
        return cls(width, aspect.height_from_width(width))

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def aspect_ratio(self) -> AspectRatio:
        return AspectRatio(self._width, self._height)

    # Flat row-major indexing: index = row * width + col

    def __len__(self) -> int:
        return self._width * self._height

    def _row_col(self, index: int) -> tuple[int, int]:
        if index < 0 or index >= len(self):
            raise IndexError(f"Pixel index {index} out of range for {len(self)} pixels")
        return divmod(index, self._width)

    def __getitem__(self, index: int) -> npt.NDArray[np.float64]:
        row, col = self._row_col(index)
        return self.pixels[row, col]

    def __setitem__(self, index: int, colour) -> None:
        row, col = self._row_col(index)
        self.pixels[row, col] = colour

    def apply_gamma(self, gamma: float) -> PixelBuffer:
        """Return a new buffer with every channel raised to ``gamma``.

        Negative channels are clamped to 0 first. A gamma of 0.5 is the
        usual square-root encoding for display.
        """
        if gamma <= 0.0:
            raise ValueError(f"Gamma must be positive, got {gamma}")
        return PixelBuffer(self._width, self._height, np.power(np.maximum(self.pixels, 0.0), gamma))

    def to_uint8(self) -> npt.NDArray[np.uint8]:
        """8-bit channels in buffer orientation (row 0 at the bottom)."""
        return scale_to_u8(self.pixels)

    def to_image_array(self) -> npt.NDArray[np.float64]:
        """Pixels ordered top row first, as image files expect."""
        return np.flipud(self.pixels).copy()

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self._width}, height={self._height}, aspect={self.aspect_ratio})"
