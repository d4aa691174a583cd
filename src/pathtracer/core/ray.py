"""Ray data structure and vector utilities for Monte Carlo path tracing.

A ray carries more than a position and a direction: it also remembers how
much light has already been absorbed along the path (``attenuation``) and
the refractive index of the volume it is travelling through (``medium``).
Rays are never mutated; every scatter event builds a new one with
``make_ray``, which is the only place a direction is normalized.

All scalars use the generic ``float`` type, so this module must be imported
after ``pathtracer.scalar.init_taichi`` has picked the precision.

Example:
    >>> from pathtracer.scalar import init_taichi
    >>> init_taichi()
    >>> from pathtracer.core.ray import make_ray, ray_at, vec3
    >>> # Inside a Taichi kernel:
    >>> # ray = make_ray(vec3(0.0), vec3(0.0, 0.0, -2.0), vec3(0.0), 1.0)
    >>> # point = ray_at(ray, 5.0)
"""

import taichi as ti
import taichi.math as tm

# Vector types resolved against the active default_fp
vec3 = ti.types.vector(3, float)

# Refractive index of the medium a camera ray starts in
AIR = 1.0

WHITE = vec3(1.0, 1.0, 1.0)
BLACK = vec3(0.0, 0.0, 0.0)

# Default background palette (bottom of the sky, top of the sky)
DEFAULT_BACKGROUND_BOTTOM = (1.0, 1.0, 1.0)
DEFAULT_BACKGROUND_TOP = (0.5, 0.7, 1.0)

_background_bottom = ti.Vector.field(3, dtype=float, shape=())
_background_top = ti.Vector.field(3, dtype=float, shape=())


@ti.dataclass
class Ray:
    """A ray segment of a light path.

    Attributes:
        origin: The starting point of the ray.
        direction: Unit direction of travel.
        attenuation: Fraction of light absorbed along the path so far, per
            colour channel. ``WHITE - attenuation`` is the remaining gain.
        medium: Refractive index of the volume the ray travels through.
    """

    origin: vec3
    direction: vec3
    attenuation: vec3
    medium: float


def set_background_palette(
    bottom: tuple[float, float, float] = DEFAULT_BACKGROUND_BOTTOM,
    top: tuple[float, float, float] = DEFAULT_BACKGROUND_TOP,
) -> None:
    """Set the two colours blended by the background gradient.

    Args:
        bottom: Colour seen by rays pointing straight down.
        top: Colour seen by rays pointing straight up.
    """
    _background_bottom[None] = [bottom[0], bottom[1], bottom[2]]
    _background_top[None] = [top[0], top[1], top[2]]


def get_background_palette() -> tuple[tuple[float, ...], tuple[float, ...]]:
    """Return the active (bottom, top) background colours."""
    bottom = _background_bottom[None]
    top = _background_top[None]
    return (
        (float(bottom[0]), float(bottom[1]), float(bottom[2])),
        (float(top[0]), float(top[1]), float(top[2])),
    )


set_background_palette()


@ti.func
def make_ray(origin: vec3, direction: vec3, attenuation: vec3, medium: float) -> Ray:
    """Create a ray, normalizing the supplied direction.

    Args:
        origin: The starting point of the ray.
        direction: Any non-zero direction vector.
        attenuation: Light absorbed along the path so far.
        medium: Refractive index of the current volume.

    Returns:
        A new Ray with a unit-length direction.
    """
    return Ray(
        origin=origin,
        direction=tm.normalize(direction),
        attenuation=attenuation,
        medium=medium,
    )


@ti.func
def ray_at(ray: Ray, depth: float) -> vec3:
    """Return the point ``depth`` units along the ray."""
    return ray.origin + depth * ray.direction


@ti.func
def ray_gain(ray: Ray) -> vec3:
    """Remaining throughput of the path, ``white - attenuation``."""
    return WHITE - ray.attenuation


@ti.func
def background_colour(ray: Ray) -> vec3:
    """Vertical sky gradient seen along the ray direction.

    Blends the palette by ``t = 0.5 * (direction.y + 1)``: straight down
    gives the bottom colour, straight up gives the top colour.
    """
    t = 0.5 * (ray.direction.y + 1.0)
    return _background_bottom[None] * (1.0 - t) + _background_top[None] * t


@ti.func
def ray_colour(ray: Ray) -> vec3:
    """Background colour modulated by the gain accumulated along the path."""
    return background_colour(ray) * ray_gain(ray)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length_squared(v: vec3) -> float:
    """Squared Euclidean length of a vector."""
    return tm.dot(v, v)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = 1e-8
    result = 0
    if ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s:
        result = 1
    return result


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Mirror an incident direction about a unit normal.

    Computes ``d - 2 (d . n) n``. The result has the same length as the
    incident vector and is independent of the sign of the normal.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_on_unit_sphere() -> vec3:
    """Uniformly distributed point on the unit sphere.

    Three independent standard normal samples form an isotropic Gaussian
    vector; normalizing it projects the distribution onto the sphere surface
    without rejection sampling.
    """
    p = vec3(ti.randn(), ti.randn(), ti.randn())
    # The Gaussian vector is zero with probability zero, but guard the division
    if near_zero(p):
        p = vec3(0.0, 1.0, 0.0)
    return tm.normalize(p)
