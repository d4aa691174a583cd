"""Matplotlib-based preview of rendered images.

Images arrive as ``PixelBuffer`` objects (row 0 at the bottom) and are
flipped top-row-first before display. Tone mapping is optional: the path
tracer's output already lies in [0, 1] for albedos and backgrounds in that
range, but the operators help when inspecting scenes with a custom palette.

Example:
    >>> from pathtracer.preview.display import show_preview
    >>> buffer = renderer.render()
    >>> show_preview(buffer.apply_gamma(0.5), title="ten spheres")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from pathtracer.image.buffer import PixelBuffer


# Type alias for tone mapping options
ToneMapMethod = Literal["none", "reinhard", "exposure"]


def tone_map_reinhard(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float32]:
    """Reinhard tone mapping, ``c / (1 + c)`` per channel."""
    image = np.maximum(image, 0.0)
    return (image / (1.0 + image)).astype(np.float32)


def tone_map_exposure(
    image: npt.NDArray[np.floating],
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Exposure tone mapping, ``1 - exp(-c * exposure)`` per channel."""
    image = np.maximum(image, 0.0)
    return (1.0 - np.exp(-image * exposure)).astype(np.float32)


def encode_gamma(
    image: npt.NDArray[np.floating],
    gamma: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Raise clamped channels to the power ``gamma``.

    Uses the same convention as ``PixelBuffer.apply_gamma``: 0.5 is the
    square-root encoding, 1.0 leaves the image linear.
    """
    if gamma <= 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")
    image = np.clip(image, 0.0, 1.0)
    if gamma == 1.0:
        return image.astype(np.float32)
    return np.power(image, gamma).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.floating],
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Apply tone mapping and gamma, then clamp to [0, 1].

    Args:
        image: Linear image array of shape (H, W, 3).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma exponent (see ``encode_gamma``).
        exposure: Exposure value for exposure tone mapping.

    Returns:
        Processed float32 image.
    """
    result = np.asarray(image, dtype=np.float32).copy()

    if tone_map == "reinhard":
        result = tone_map_reinhard(result)
    elif tone_map == "exposure":
        result = tone_map_exposure(result, exposure)
    elif tone_map != "none":
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    return np.clip(encode_gamma(result, gamma), 0.0, 1.0)


def show_preview(
    buffer: PixelBuffer,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    exposure: float = 1.0,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 4.5),
    block: bool = True,
) -> None:
    """Display a rendered image in a Matplotlib window.

    Args:
        buffer: The rendered image.
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma exponent applied before display.
        exposure: Exposure value for exposure tone mapping.
        title: Custom title (default shows the resolution).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until the figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = process_image_for_display(
        buffer.to_image_array(),
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
    )

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")
    if title is None:
        title = f"Render Preview - {buffer.width}x{buffer.height}"
        if tone_map != "none":
            title += f" ({tone_map})"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
