"""Monte Carlo path integrator.

Each pixel averages ``samples`` jittered camera rays. A ray bounces through
the scene for at most ``max_bounces`` steps: a hit scatters it, a miss adds
the background colour weighted by the remaining gain and ends the path. A
path that runs out of bounces contributes nothing.

Rows are rendered in batches by ``render_rows``; within a batch Taichi
parallelizes the outermost loop over pixels. Two counters record invariant
violations (camera coordinates outside the viewport, non-finite pixels) so
the Python driver can refuse to return a corrupt image.

Example:
    >>> from pathtracer.scalar import init_taichi
    >>> init_taichi()
    >>> from pathtracer.core.integrator import setup_render_target, render_rows, get_image_numpy
    >>> setup_render_target(64, 36)
    >>> render_rows(0, 36, samples=4, max_bounces=8)
    >>> image = get_image_numpy()  # (36, 64, 3), row 0 at the bottom
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.camera.camera import get_ray, viewport_contains
from pathtracer.core.ray import AIR, BLACK, Ray, make_ray, ray_colour, vec3
from pathtracer.materials.scatter import scatter
from pathtracer.scene.intersection import intersect_scene

# Defaults for the bounce loop
MAX_BOUNCES = 50
MIN_DEPTH = 1e-5
MAX_DEPTH = float("inf")

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Averaged colour per pixel, indexed [row, col] with row 0 at the bottom
_pixels = ti.Vector.field(3, dtype=float, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Invariant violation counters
_invalid_rays = ti.field(dtype=ti.i32, shape=())
_corrupt_pixels = ti.field(dtype=ti.i32, shape=())

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target.

    Sets the active image dimensions and clears the buffer and counters.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Zero the pixel buffer and the invariant counters."""
    _pixels.fill(0.0)
    _invalid_rays[None] = 0
    _corrupt_pixels[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_invariant_violations() -> tuple[int, int]:
    """Return (invalid camera rays, non-finite pixels) counted so far."""
    return int(_invalid_rays[None]), int(_corrupt_pixels[None])


# =============================================================================
# Path Tracing
# =============================================================================


@ti.func
def trace_ray(ray: Ray, max_bounces: ti.i32, min_depth: float, max_depth: float) -> vec3:
    """Follow one light path and return its colour contribution.

    Args:
        ray: The camera ray.
        max_bounces: Bounce budget; exhausting it yields black.
        min_depth: Near clip for every intersection query.
        max_depth: Far clip for every intersection query.

    Returns:
        The background colour seen at the end of the path, scaled by the
        path gain, or black if the path never escaped.
    """
    colour = vec3(0.0, 0.0, 0.0)
    current = ray

    # Active flag for path continuation (no break in ti.func loops)
    active = 1
    for _ in range(max_bounces):
        if active == 1:
            isect = intersect_scene(current, min_depth, max_depth)
            if isect.hit == 1:
                current = scatter(isect)
            else:
                colour = ray_colour(current)
                active = 0

    return colour


@ti.func
def render_pixel(
    row: ti.i32,
    col: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_bounces: ti.i32,
    min_depth: float,
    max_depth: float,
) -> vec3:
    """Average ``samples`` jittered paths through pixel (row, col)."""
    colour = vec3(0.0, 0.0, 0.0)
    for _ in range(samples):
        u = (ti.cast(col, float) + ti.random(float)) / ti.cast(width, float)
        v = (ti.cast(row, float) + ti.random(float)) / ti.cast(height, float)
        if viewport_contains(u, v):
            colour += trace_ray(get_ray(u, v), max_bounces, min_depth, max_depth)
        else:
            ti.atomic_add(_invalid_rays[None], 1)
    return colour / ti.cast(samples, float)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_bounces: ti.i32,
    min_depth: float,
    max_depth: float,
):
    for row, col in ti.ndrange((row_start, row_end), width):
        colour = render_pixel(row, col, width, height, samples, max_bounces, min_depth, max_depth)

        finite = 1
        for c in ti.static(range(3)):
            if tm.isnan(colour[c]) or tm.isinf(colour[c]):
                finite = 0
        if finite == 0:
            ti.atomic_add(_corrupt_pixels[None], 1)

        _pixels[row, col] = colour


_trace_result = ti.Vector.field(3, dtype=float, shape=())


@ti.kernel
def _trace_kernel(origin: vec3, direction: vec3, max_bounces: ti.i32, min_depth: float, max_depth: float):
    ray = make_ray(origin, direction, BLACK, AIR)
    _trace_result[None] = trace_ray(ray, max_bounces, min_depth, max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(
    row_start: int,
    row_end: int,
    samples: int,
    max_bounces: int = MAX_BOUNCES,
    min_depth: float = MIN_DEPTH,
    max_depth: float = MAX_DEPTH,
) -> None:
    """Render rows ``[row_start, row_end)`` of the render target.

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If the row range is outside the image.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Row range [{row_start}, {row_end}) outside image height {height}")
    _render_rows(row_start, row_end, width, height, samples, max_bounces, min_depth, max_depth)


def trace_single_ray(
    origin,
    direction,
    max_bounces: int = MAX_BOUNCES,
    min_depth: float = MIN_DEPTH,
    max_depth: float = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Trace one path from Python and return its colour.

    The ray starts in air with no attenuation. Useful for probing a scene
    without setting up a camera or render target.
    """
    if not np.any(np.asarray(direction, dtype=np.float64)):
        raise ValueError("Ray direction must be non-zero")
    _trace_kernel(
        vec3(*[float(c) for c in origin]),
        vec3(*[float(c) for c in direction]),
        max_bounces,
        min_depth,
        max_depth,
    )
    colour = _trace_result[None]
    return (float(colour[0]), float(colour[1]), float(colour[2]))


def get_image_numpy() -> np.ndarray:
    """Get the active region of the pixel buffer.

    Returns:
        Array of shape (height, width, 3), row 0 at the bottom, in the
        active precision's dtype.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return _pixels.to_numpy()[:height, :width, :]
