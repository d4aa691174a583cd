"""Sphere primitive with robust ray-sphere intersection.

This module provides a Sphere dataclass and intersection function using the
robust quadratic formula from Ray Tracing Gems to avoid floating-point
artifacts. Ray directions are unit length, so the quadratic coefficient
``a`` is always one and the half-b form reduces to::

    t^2 + 2*h*t + c = 0,  h = dot(direction, origin - center),
                          c = |origin - center|^2 - radius^2

Example:
    >>> from pathtracer.scalar import init_taichi
    >>> init_taichi()
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, ray_at, vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: float


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: Whether the ray intersected the primitive (1 if hit, 0 if miss).
        t: Depth along the ray where the intersection occurred. Directions
            are unit length, so this is also the distance to the hit point.
        point: The 3D point where the ray intersected the surface.
        normal: The outward (geometric) surface normal at the hit point, unit
            length. It is not flipped toward the ray; face classification
            happens at scene level.
    """

    hit: ti.i32
    t: float
    point: vec3
    normal: vec3


@ti.func
def miss_record() -> HitRecord:
    """A HitRecord indicating no intersection."""
    return HitRecord(hit=0, t=0.0, point=vec3(0.0, 0.0, 0.0), normal=vec3(0.0, 0.0, 0.0))


@ti.func
def _solve_quadratic_robust(h: float, c: float, sqrt_d: float):
    """Solve ``t^2 + 2*h*t + c = 0`` using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        c: Constant term.
        sqrt_d: Square root of the discriminant (h^2 - c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant)) avoids catastrophic cancellation
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Tangent ray through the center plane, both roots coincide at -h
        t0 = -h - sqrt_d
        t1 = -h + sqrt_d
    else:
        t0 = q
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, min_depth: float, max_depth: float) -> HitRecord:
    """Test for ray-sphere intersection within a depth interval.

    A negative discriminant means the ray misses; a zero discriminant is a
    tangent hit. The nearer root is used when it lies at or beyond
    ``min_depth``; otherwise the farther root is tried, which covers rays
    starting inside the sphere and rays leaving a surface they sit on. The
    chosen depth must lie in ``[min_depth, max_depth]``.

    Args:
        ray: The ray to test (unit direction).
        sphere: The sphere to test against.
        min_depth: Near clip, rejects self-intersections.
        max_depth: Far clip.

    Returns:
        A HitRecord; check the ``hit`` field.
    """
    oc = ray.origin - sphere.center
    h = tm.dot(ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - c

    result = miss_record()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, c, sqrt_d)

        depth = t0
        if depth < min_depth:
            depth = t1

        if depth >= min_depth and depth <= max_depth:
            point = ray_at(ray, depth)
            result = HitRecord(
                hit=1,
                t=depth,
                point=point,
                normal=tm.normalize(point - sphere.center),
            )

    return result
