"""Render driver: settings, row batching, progress and invariant checks.

``Renderer`` wraps the integrator kernels. It uploads the camera, sizes the
render target from the settings, renders the image in row batches so a
progress callback can run between kernels, and checks the integrator's
invariant counters after every batch.

Example:
    >>> from pathtracer.scalar import init_taichi
    >>> init_taichi()
    >>> from pathtracer.camera import Camera
    >>> from pathtracer.core.renderer import Renderer, RenderSettings
    >>> from pathtracer.scene.presets import ten_sphere_scene
    >>>
    >>> scene = ten_sphere_scene()
    >>> settings = RenderSettings(height=90, samples=16)
    >>> camera = Camera.look_at((0.5, -0.3, 0.0), (0.1, -0.1, -1.0), 80.0)
    >>> buffer = Renderer(camera, scene, settings).render()
"""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from pathtracer.camera.camera import Camera, setup_camera
from pathtracer.core.integrator import (
    MAX_BOUNCES,
    MAX_DEPTH,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    MIN_DEPTH,
    get_image_numpy,
    get_invariant_violations,
    render_rows,
    setup_render_target,
)
from pathtracer.image.buffer import AspectRatio, PixelBuffer
from pathtracer.scene.manager import Scene

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (pixels_completed, total_pixels)
ProgressCallback = Callable[[int, int], None]


class RenderInvariantError(RuntimeError):
    """The renderer produced data that should be impossible.

    Raised instead of returning an image when a camera ray was requested
    outside the viewport or a pixel came out non-finite.
    """


@dataclass(frozen=True)
class RenderSettings:
    """Quality and resolution settings for a render.

    Attributes:
        samples: Samples per pixel.
        max_bounces: Bounce budget per path.
        height: Vertical resolution in pixels.
        aspect_ratio: Width-to-height ratio; the width is derived from it.
        min_depth: Near clip of every intersection query.
        max_depth: Far clip of every intersection query.
        rows_per_batch: Rows rendered per kernel launch (progress granularity).
    """

    samples: int = 100
    max_bounces: int = MAX_BOUNCES
    height: int = 240
    aspect_ratio: AspectRatio = field(default_factory=AspectRatio)
    min_depth: float = MIN_DEPTH
    max_depth: float = MAX_DEPTH
    rows_per_batch: int = 32

    def __post_init__(self) -> None:
        for name in ("samples", "max_bounces", "height", "rows_per_batch"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if math.isnan(self.min_depth) or math.isnan(self.max_depth):
            raise ValueError("Depth range must not be NaN")
        if not 0.0 <= self.min_depth < self.max_depth:
            raise ValueError(
                f"Depth range must satisfy 0 <= min_depth < max_depth, "
                f"got [{self.min_depth}, {self.max_depth}]"
            )
        if self.width <= 0:
            raise ValueError(f"Height {self.height} with aspect {self.aspect_ratio} gives no columns")
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )

    @property
    def width(self) -> int:
        """Horizontal resolution derived from height and aspect ratio."""
        return self.aspect_ratio.width_from_height(self.height)

    @property
    def total_pixels(self) -> int:
        return self.width * self.height


class Renderer:
    """Renders a scene through a camera into a PixelBuffer.

    Attributes:
        camera: The camera used for primary rays.
        scene: The scene to render; it must be the live scene.
        settings: Resolution and quality settings.
    """

    def __init__(self, camera: Camera, scene: Scene, settings: RenderSettings | None = None) -> None:
        self.camera = camera
        self.scene = scene
        self.settings = settings or RenderSettings()

        image_aspect = self.settings.width / self.settings.height
        if abs(image_aspect - camera.aspect_ratio) > 0.01 * camera.aspect_ratio:
            logger.warning(
                "Camera aspect %.4f differs from image aspect %.4f; the image will look stretched",
                camera.aspect_ratio,
                image_aspect,
            )

    def render(self, callback: ProgressCallback | None = None) -> PixelBuffer:
        """Render the full image.

        Args:
            callback: Optional function called after each row batch with
                (pixels_completed, total_pixels).

        Returns:
            The averaged image, row 0 at the bottom.

        Raises:
            RuntimeError: If the scene is no longer the live scene.
            RenderInvariantError: If the integrator reports invalid camera
                rays or non-finite pixels.
        """
        if not self.scene.is_live:
            raise RuntimeError("Scene is not loaded; another Scene has replaced its data")

        settings = self.settings
        width, height = settings.width, settings.height
        total = settings.total_pixels

        setup_camera(self.camera)
        setup_render_target(width, height)

        logger.info(
            "Rendering %dx%d, %d spp, %d bounces, %d primitives",
            width,
            height,
            settings.samples,
            settings.max_bounces,
            len(self.scene),
        )
        start = time.perf_counter()

        for row_start in range(0, height, settings.rows_per_batch):
            row_end = min(row_start + settings.rows_per_batch, height)
            render_rows(
                row_start,
                row_end,
                settings.samples,
                settings.max_bounces,
                settings.min_depth,
                settings.max_depth,
            )
            self._check_invariants()
            logger.debug("Rendered rows %d-%d", row_start, row_end - 1)
            if callback is not None:
                callback(row_end * width, total)

        elapsed = time.perf_counter() - start
        logger.info("Render finished in %.2fs", elapsed)
        return PixelBuffer(width, height, get_image_numpy())

    @staticmethod
    def _check_invariants() -> None:
        invalid_rays, corrupt_pixels = get_invariant_violations()
        if invalid_rays:
            raise RenderInvariantError(
                f"{invalid_rays} camera rays were requested outside the viewport"
            )
        if corrupt_pixels:
            raise RenderInvariantError(f"{corrupt_pixels} pixels are not finite")

    def __repr__(self) -> str:
        return f"Renderer(camera={self.camera}, settings={self.settings})"


def render_scene(
    camera: Camera,
    scene: Scene,
    height: int = 240,
    samples: int = 100,
    max_bounces: int = MAX_BOUNCES,
    aspect_ratio: AspectRatio | None = None,
    callback: ProgressCallback | None = None,
) -> PixelBuffer:
    """Render a scene with the given quality in one call."""
    settings = RenderSettings(
        samples=samples,
        max_bounces=max_bounces,
        height=height,
        aspect_ratio=aspect_ratio or AspectRatio(),
    )
    return Renderer(camera, scene, settings).render(callback)
