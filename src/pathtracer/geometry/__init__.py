"""Geometry module for shape primitives.

This module provides geometric primitives and intersection algorithms:

Components:
    sphere: Sphere primitive with robust ray-sphere intersection
    plane: Infinite plane primitive

All intersection routines are Taichi functions (@ti.func) sharing one
contract::

    record = hit_shape(ray, shape, min_depth, max_depth)

where ``record.hit`` is 1 only when the hit depth lies inside
``[min_depth, max_depth]`` and ``record.normal`` is the outward normal.
"""

from .plane import Plane, hit_plane
from .sphere import HitRecord, Sphere, hit_sphere, miss_record

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "miss_record",
    "Plane",
    "hit_plane",
]
