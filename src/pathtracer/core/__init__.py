"""Core rendering module.

Components:
    ray: Ray structure, background gradient and vector utilities
    integrator: Bounce loop, per-pixel sampling and rendering kernels
    renderer: Render settings, row-batched driver and invariant checks

All compute-intensive operations use Taichi kernels; Taichi parallelizes
the outermost loop over pixels.
"""

from .ray import (
    AIR,
    BLACK,
    WHITE,
    Ray,
    background_colour,
    get_background_palette,
    length_squared,
    make_ray,
    near_zero,
    random_on_unit_sphere,
    ray_at,
    ray_colour,
    ray_gain,
    reflect,
    set_background_palette,
    vec3,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from pathtracer.core.integrator or pathtracer.core.renderer.

__all__ = [
    "Ray",
    "vec3",
    "AIR",
    "WHITE",
    "BLACK",
    "make_ray",
    "ray_at",
    "ray_gain",
    "ray_colour",
    "background_colour",
    "set_background_palette",
    "get_background_palette",
    "length_squared",
    "near_zero",
    "reflect",
    "random_on_unit_sphere",
]
