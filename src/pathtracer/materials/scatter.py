"""Probabilistic scattering of a ray at a surface hit.

Every scatter event makes at most two uniform draws:

1. ``draw1 < transmissibility``: attempt a refraction (which may still turn
   into a reflection under total internal reflection).
2. Otherwise ``draw2 < coherency``: specular reflection, else a diffuse
   bounce.

The outgoing ray starts at the hit point and carries the updated
attenuation ``white - gain * albedo``, so the path throughput only ever
shrinks for albedos inside [0, 1].

Example:
    >>> from pathtracer.scalar import init_taichi
    >>> init_taichi()
    >>> from pathtracer.materials.scatter import scatter
    >>> # Inside a Taichi kernel, after a scene query:
    >>> # isect = intersect_scene(ray, min_depth, max_depth)
    >>> # if isect.hit == 1:
    >>> #     ray = scatter(isect)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import (
    AIR,
    WHITE,
    Ray,
    make_ray,
    near_zero,
    random_on_unit_sphere,
    ray_gain,
    reflect,
    vec3,
)
from pathtracer.materials.material import (
    CHECKERBOARD_DARKENING,
    material_albedos,
    material_checkerboards,
    material_coherencies,
    material_refractive_indices,
    material_transmissibilities,
)
from pathtracer.scene.intersection import Intersection


@ti.func
def diffuse_direction(normal: vec3) -> vec3:
    """Diffuse bounce direction, ``normal + random point on the unit sphere``.

    The sum is left unnormalized; ``make_ray`` normalizes it. When the random
    point lands (numerically) on ``-normal`` the normal itself is used.
    """
    direction = normal + random_on_unit_sphere()
    if near_zero(direction):
        direction = normal
    return direction


@ti.func
def refracted_orientation(
    direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    medium: float,
    refractive_index: float,
):
    """Direction and medium of a ray after a refraction attempt.

    On a front face light passes from the ray's current medium into the
    material; on a back face it leaves the material into air and the normal
    is flipped to face the incident ray.

    Args:
        direction: Unit incident direction.
        normal: Outward unit surface normal.
        front_face: 1 if the ray hit the outside of the surface.
        medium: Refractive index the ray currently travels through.
        refractive_index: Refractive index of the material.

    Returns:
        Tuple of (new_direction, new_medium). Under total internal
        reflection the direction is the mirror reflection and the medium is
        the incoming one.
    """
    eta_in = medium
    eta_out = refractive_index
    n = normal
    if front_face == 0:
        eta_in = refractive_index
        eta_out = AIR
        n = -normal

    ratio = eta_in / eta_out
    cos_theta = tm.dot(direction, n)
    sin_theta = ti.sqrt(ti.max(0.0, 1.0 - cos_theta * cos_theta))

    new_direction = vec3(0.0, 0.0, 0.0)
    new_medium = eta_in
    if ratio * sin_theta > 1.0:
        new_direction = reflect(direction, n)
    else:
        r_perp = ratio * (-tm.dot(direction, n) * n + direction)
        r_par = -ti.sqrt(ti.max(0.0, 1.0 - tm.dot(r_perp, r_perp))) * n
        new_direction = r_perp + r_par
        new_medium = eta_out

    return new_direction, new_medium


@ti.func
def checker_tile(point: vec3) -> ti.i32:
    """1 on the dark tiles of the unit x/z checkerboard, 0 elsewhere.

    Uses a floored modulo so tiles keep alternating across negative
    coordinates.
    """
    x_tile = ti.cast(ti.floor(point.x - 2.0 * ti.floor(point.x / 2.0)), ti.i32)
    z_tile = ti.cast(ti.floor(point.z - 2.0 * ti.floor(point.z / 2.0)), ti.i32)
    return (x_tile ^ z_tile) & 1


@ti.func
def surface_albedo(material_id: ti.i32, point: vec3) -> vec3:
    """Albedo of a material at a surface point, including the checkerboard."""
    albedo = material_albedos[material_id]
    if material_checkerboards[material_id] == 1 and checker_tile(point) == 1:
        albedo = albedo * CHECKERBOARD_DARKENING
    return albedo


@ti.func
def scatter(isect: Intersection) -> Ray:
    """Produce the next ray of a path from a surface hit.

    Args:
        isect: A hit (``isect.hit == 1``) returned by the scene query.

    Returns:
        The scattered ray, starting at the hit point.
    """
    incident = isect.incident
    material_id = isect.material_id

    direction = incident.direction
    medium = incident.medium
    if ti.random(float) < material_transmissibilities[material_id]:
        direction, medium = refracted_orientation(
            incident.direction,
            isect.normal,
            isect.front_face,
            incident.medium,
            material_refractive_indices[material_id],
        )
    elif ti.random(float) < material_coherencies[material_id]:
        direction = reflect(incident.direction, isect.normal)
    else:
        direction = diffuse_direction(isect.normal)

    attenuation = WHITE - ray_gain(incident) * surface_albedo(material_id, isect.point)
    return make_ray(isect.point, direction, attenuation, medium)
