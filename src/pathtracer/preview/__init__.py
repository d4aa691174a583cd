"""Preview module for output and visualization.

Components:
    display: Matplotlib-based preview and tone mapping
    export: PNG (Pillow) and PPM writers

Example:
    >>> from pathtracer.preview import save_png, show_preview
    >>> buffer = renderer.render().apply_gamma(0.5)
    >>> save_png(buffer, "output.png")
    >>> show_preview(buffer)
"""

from pathtracer.preview.display import (
    ToneMapMethod,
    encode_gamma,
    process_image_for_display,
    show_preview,
    tone_map_exposure,
    tone_map_reinhard,
)
from pathtracer.preview.export import (
    compute_rmse,
    image_to_uint8,
    ppm_string,
    save_image,
    save_png,
    write_ppm,
)

__all__ = [
    # Display functions
    "show_preview",
    # Tone mapping
    "tone_map_reinhard",
    "tone_map_exposure",
    "encode_gamma",
    "process_image_for_display",
    "ToneMapMethod",
    # Export functions
    "save_png",
    "write_ppm",
    "ppm_string",
    "save_image",
    "image_to_uint8",
    "compute_rmse",
]
