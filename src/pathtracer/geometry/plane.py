"""Infinite plane primitive.

A plane is defined by any point on it and a unit normal. Intersection uses
the parametric form::

    t = dot(origin - ray.origin, normal) / dot(ray.direction, normal)

A ray exactly parallel to the plane (zero denominator) never hits it, even
when it lies inside the plane.

Example:
    >>> from pathtracer.scalar import init_taichi
    >>> init_taichi()
    >>> from pathtracer.geometry.plane import Plane, hit_plane
    >>> # Floor at y = -0.5:
    >>> # plane = Plane(origin=vec3(0.0, -0.5, 0.0), normal=vec3(0.0, 1.0, 0.0))
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, ray_at, vec3
from pathtracer.geometry.sphere import HitRecord, miss_record


@ti.dataclass
class Plane:
    """An infinite plane.

    Attributes:
        origin: Any point on the plane.
        normal: Unit normal of the plane.
    """

    origin: vec3
    normal: vec3


@ti.func
def hit_plane(ray: Ray, plane: Plane, min_depth: float, max_depth: float) -> HitRecord:
    """Test for ray-plane intersection within a depth interval.

    Args:
        ray: The ray to test (unit direction).
        plane: The plane to test against.
        min_depth: Near clip.
        max_depth: Far clip.

    Returns:
        A HitRecord whose normal is the plane normal as stored.
    """
    result = miss_record()
    denom = tm.dot(ray.direction, plane.normal)

    if denom != 0.0:
        depth = tm.dot(plane.origin - ray.origin, plane.normal) / denom
        if depth >= min_depth and depth <= max_depth:
            result = HitRecord(hit=1, t=depth, point=ray_at(ray, depth), normal=plane.normal)

    return result
