"""Image export for rendered pixel buffers.

Supported formats:
    - PNG (8-bit via Pillow)
    - PPM (plain-text P3)

Both writers emit the top row of the image first and create missing parent
directories. Colours are converted with ``scale_to_u8`` (clamp to [0, 1],
scale by 255, truncate); apply gamma on the buffer beforehand.

Example:
    >>> from pathtracer.preview.export import save_png, write_ppm
    >>> buffer = renderer.render().apply_gamma(0.5)
    >>> save_png(buffer, "out/spheres.png")
    >>> write_ppm(buffer, "out/spheres.ppm")
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from pathtracer.preview.display import ToneMapMethod, process_image_for_display
from pathtracer.scalar import scale_to_u8

if TYPE_CHECKING:
    from pathtracer.image.buffer import PixelBuffer


def _prepare_path(filepath: str | Path) -> Path:
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def image_to_uint8(
    image: npt.NDArray[np.floating],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    exposure: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a float image to 8-bit after optional tone mapping and gamma."""
    processed = process_image_for_display(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    return scale_to_u8(processed)


def save_png(
    buffer: PixelBuffer,
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    exposure: float = 1.0,
) -> Path:
    """Save a rendered image as an 8-bit RGB PNG.

    Args:
        buffer: The rendered image.
        filepath: Output file path.
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma exponent applied before quantization.
        exposure: Exposure value for exposure tone mapping.

    Returns:
        The path written.
    """
    path = _prepare_path(filepath)
    image_uint8 = image_to_uint8(
        buffer.to_image_array(), tone_map=tone_map, gamma=gamma, exposure=exposure
    )
    PILImage.fromarray(image_uint8).save(path)
    return path


def ppm_string(buffer: PixelBuffer) -> str:
    """Render a buffer as plain-text PPM (P3), top row first."""
    pixels = scale_to_u8(buffer.to_image_array()).reshape(-1, 3)
    lines = [f"P3\n{buffer.width} {buffer.height}\n255"]
    lines.extend(f"{r} {g} {b}" for r, g, b in pixels)
    return "\n".join(lines) + "\n"


def write_ppm(buffer: PixelBuffer, filepath: str | Path) -> Path:
    """Write a buffer as a plain-text PPM file.

    Returns:
        The path written.
    """
    path = _prepare_path(filepath)
    path.write_text(ppm_string(buffer))
    return path


def save_image(buffer: PixelBuffer, filepath: str | Path) -> Path:
    """Save a buffer, choosing PPM for ``.ppm`` paths and PNG otherwise."""
    if Path(filepath).suffix.lower() == ".ppm":
        return write_ppm(buffer, filepath)
    return save_png(buffer, filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
