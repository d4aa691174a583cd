"""Scene-level primitive intersection testing.

The scene is a closed set of primitive kinds (spheres and infinite planes)
stored in one insertion-ordered table. Each row carries a kind tag plus the
union of the per-kind parameters, and the query dispatches on the tag:

    SPHERE: position = center, radius
    PLANE:  position = origin, normal

``intersect_scene`` returns the nearest hit together with everything the
scattering model needs: hit point, outward normal, material id, the incident
ray and the face classification.

Example:
    >>> from pathtracer.scalar import init_taichi
    >>> init_taichi()
    >>> from pathtracer.scene.intersection import add_sphere, clear_scene, query_intersection
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
    >>> info = query_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
    >>> info.t
    0.5
"""

import logging
from dataclasses import dataclass
from enum import IntEnum

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import AIR, BLACK, Ray, make_ray, vec3
from pathtracer.geometry.plane import Plane, hit_plane
from pathtracer.geometry.sphere import Sphere, hit_sphere, miss_record
from pathtracer.materials.material import num_materials

logger = logging.getLogger(__name__)


class PrimitiveKind(IntEnum):
    """Tag of a row in the primitive table."""

    SPHERE = 0
    PLANE = 1


# Plain ints for use inside Taichi functions
_SPHERE = int(PrimitiveKind.SPHERE)
_PLANE = int(PrimitiveKind.PLANE)


@ti.dataclass
class Intersection:
    """Record of a ray-scene intersection.

    Attributes:
        hit: 1 if the ray hit any primitive, 0 on a miss.
        t: Depth of the hit along the incident ray (distance, since
            directions are unit length). Only valid if hit == 1.
        point: The hit point.
        normal: Outward unit surface normal at the hit point.
        material_id: Material of the hit primitive, -1 on a miss.
        front_face: 1 (Front) when the normal opposes the incident direction,
            0 (Back) otherwise.
        incident: The ray that produced this hit.
    """

    hit: ti.i32
    t: float
    point: vec3
    normal: vec3
    material_id: ti.i32
    front_face: ti.i32
    incident: Ray


# Maximum number of primitives supported in the scene
MAX_PRIMITIVES = 1024

# Primitive storage: Structure of Arrays layout for GPU efficiency
primitive_kinds = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
primitive_positions = ti.Vector.field(3, dtype=float, shape=MAX_PRIMITIVES)
primitive_normals = ti.Vector.field(3, dtype=float, shape=MAX_PRIMITIVES)
primitive_radii = ti.field(dtype=float, shape=MAX_PRIMITIVES)
primitive_material_ids = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
num_primitives = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive count to zero. The actual field data is not
    cleared but will be overwritten when new primitives are added.
    """
    num_primitives[None] = 0


def _check_material_id(material_id: int) -> None:
    count = int(num_materials[None])
    if material_id < 0 or material_id >= count:
        raise ValueError(f"Unknown material id {material_id} ({count} materials registered)")


def _next_index() -> int:
    idx = num_primitives[None]
    if idx >= MAX_PRIMITIVES:
        raise RuntimeError(f"Maximum number of primitives ({MAX_PRIMITIVES}) exceeded")
    return idx


def add_sphere(center, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere (any 3-sequence).
        radius: The radius of the sphere, must be positive.
        material_id: A registered material id.

    Returns:
        The index of the added primitive.

    Raises:
        ValueError: If the radius is not positive or the material is unknown.
        RuntimeError: If the maximum number of primitives is exceeded.
    """
    if not radius > 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")
    _check_material_id(material_id)
    idx = _next_index()

    primitive_kinds[idx] = int(PrimitiveKind.SPHERE)
    primitive_positions[idx] = [float(c) for c in center]
    primitive_normals[idx] = [0.0, 0.0, 0.0]
    primitive_radii[idx] = radius
    primitive_material_ids[idx] = material_id
    num_primitives[None] = idx + 1
    logger.debug("Added sphere %d: center=%s radius=%s material=%d", idx, tuple(center), radius, material_id)
    return idx


def add_plane(origin, normal, material_id: int = 0) -> int:
    """Add an infinite plane to the scene.

    Args:
        origin: Any point on the plane.
        normal: Plane normal; normalized before storage.
        material_id: A registered material id.

    Returns:
        The index of the added primitive.

    Raises:
        ValueError: If the normal is zero or the material is unknown.
        RuntimeError: If the maximum number of primitives is exceeded.
    """
    n = np.asarray(normal, dtype=np.float64)
    length = float(np.linalg.norm(n))
    if not length > 0.0 or not np.isfinite(length):
        raise ValueError(f"Plane normal must be a non-zero finite vector, got {tuple(normal)}")
    _check_material_id(material_id)
    idx = _next_index()

    n = n / length
    primitive_kinds[idx] = int(PrimitiveKind.PLANE)
    primitive_positions[idx] = [float(c) for c in origin]
    primitive_normals[idx] = [float(n[0]), float(n[1]), float(n[2])]
    primitive_radii[idx] = 0.0
    primitive_material_ids[idx] = material_id
    num_primitives[None] = idx + 1
    logger.debug("Added plane %d: origin=%s normal=%s material=%d", idx, tuple(origin), tuple(n), material_id)
    return idx


def get_primitive_count() -> int:
    """Get the number of primitives in the scene."""
    return int(num_primitives[None])


@ti.func
def miss_intersection(ray: Ray) -> Intersection:
    """An Intersection indicating no hit."""
    return Intersection(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
        front_face=0,
        incident=ray,
    )


@ti.func
def intersect_scene(ray: Ray, min_depth: float, max_depth: float) -> Intersection:
    """Find the nearest primitive hit by a ray.

    Every primitive is tested; the hit with the smallest depth wins and on
    exact ties the earliest inserted primitive is kept.

    Args:
        ray: The ray to trace (unit direction).
        min_depth: Near clip.
        max_depth: Far clip.

    Returns:
        The closest Intersection, or a miss record (``hit == 0``).
    """
    result = miss_intersection(ray)
    closest = max_depth

    for i in range(num_primitives[None]):
        rec = miss_record()
        kind = primitive_kinds[i]
        if kind == _SPHERE:
            sphere = Sphere(center=primitive_positions[i], radius=primitive_radii[i])
            rec = hit_sphere(ray, sphere, min_depth, max_depth)
        elif kind == _PLANE:
            plane = Plane(origin=primitive_positions[i], normal=primitive_normals[i])
            rec = hit_plane(ray, plane, min_depth, max_depth)

        if rec.hit == 1 and (result.hit == 0 or rec.t < closest):
            closest = rec.t
            front = 0
            if tm.dot(rec.normal, ray.direction) < 0.0:
                front = 1
            result = Intersection(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                material_id=primitive_material_ids[i],
                front_face=front,
                incident=ray,
            )

    return result


# =============================================================================
# Python-side queries
# =============================================================================


@dataclass(frozen=True)
class IntersectionInfo:
    """Python view of a scene hit returned by ``query_intersection``."""

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    material_id: int
    front_face: bool


_query_result = Intersection.field(shape=())


@ti.kernel
def _query_kernel(origin: vec3, direction: vec3, min_depth: float, max_depth: float):
    ray = make_ray(origin, direction, BLACK, AIR)
    _query_result[None] = intersect_scene(ray, min_depth, max_depth)


def query_intersection(
    origin,
    direction,
    min_depth: float = 1e-5,
    max_depth: float = float("inf"),
) -> IntersectionInfo | None:
    """Trace a single ray against the current scene from Python.

    Args:
        origin: Ray origin.
        direction: Ray direction; normalized before tracing.
        min_depth: Near clip.
        max_depth: Far clip.

    Returns:
        The nearest hit, or None if the ray escapes the scene.

    Raises:
        ValueError: If the direction is zero.
    """
    d = np.asarray(direction, dtype=np.float64)
    if not np.any(d):
        raise ValueError("Ray direction must be non-zero")

    _query_kernel(
        vec3(*[float(c) for c in origin]),
        vec3(*[float(c) for c in d]),
        min_depth,
        max_depth,
    )
    rec = _query_result[None]
    if rec.hit == 0:
        return None

    return IntersectionInfo(
        t=float(rec.t),
        point=(float(rec.point[0]), float(rec.point[1]), float(rec.point[2])),
        normal=(float(rec.normal[0]), float(rec.normal[1]), float(rec.normal[2])),
        material_id=int(rec.material_id),
        front_face=bool(rec.front_face),
    )
