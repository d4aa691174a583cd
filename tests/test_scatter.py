"""Tests for surface scattering.

Tests cover:
- Refraction direction and medium bookkeeping
- Total internal reflection
- The specular, diffuse and refractive branches of scatter()
- Attenuation growth along a path
- The checkerboard pattern
"""

import math

import numpy as np
import pytest
import taichi as ti


def _refract(direction, normal, front_face, medium, refractive_index):
    from pathtracer.core.ray import vec3
    from pathtracer.materials.scatter import refracted_orientation

    out_dir = ti.Vector.field(3, dtype=float, shape=())
    out_medium = ti.field(dtype=float, shape=())

    @ti.kernel
    def test_kernel(d: vec3, n: vec3, front: ti.i32, medium: float, ior: float):
        new_dir, new_medium = refracted_orientation(d.normalized(), n.normalized(), front, medium, ior)
        out_dir[None] = new_dir
        out_medium[None] = new_medium

    test_kernel(vec3(*direction), vec3(*normal), front_face, medium, refractive_index)
    return np.array([float(c) for c in out_dir[None]]), float(out_medium[None])


def _scatter_many(material, n, direction=(0.0, -1.0, 0.0), point=(0.0, 0.0, 0.0), attenuation=(0.0, 0.0, 0.0)):
    """Scatter n copies of one ray off a floor with the given material.

    Returns (directions, attenuations, media, origins) as numpy arrays.
    """
    from pathtracer.core.ray import make_ray, vec3
    from pathtracer.materials.material import register_material
    from pathtracer.materials.scatter import scatter
    from pathtracer.scene.intersection import Intersection

    material_id = register_material(material)
    directions = ti.Vector.field(3, dtype=float, shape=n)
    attenuations = ti.Vector.field(3, dtype=float, shape=n)
    origins = ti.Vector.field(3, dtype=float, shape=n)
    media = ti.field(dtype=float, shape=n)

    @ti.kernel
    def test_kernel(d: vec3, p: vec3, att: vec3, mid: ti.i32):
        for i in range(n):
            incident = make_ray(p - d, d, att, 1.0)
            isect = Intersection(
                hit=1,
                t=1.0,
                point=p,
                normal=vec3(0.0, 1.0, 0.0),
                material_id=mid,
                front_face=1,
                incident=incident,
            )
            out = scatter(isect)
            directions[i] = out.direction
            attenuations[i] = out.attenuation
            origins[i] = out.origin
            media[i] = out.medium

    test_kernel(vec3(*direction), vec3(*point), vec3(*attenuation), material_id)
    return directions.to_numpy(), attenuations.to_numpy(), media.to_numpy(), origins.to_numpy()


class TestRefraction:
    """Tests for refracted_orientation."""

    def test_normal_incidence_passes_straight(self):
        """Light hitting head-on is not bent and enters the material."""
        direction, medium = _refract((0.0, 0.0, -1.0), (0.0, 0.0, 1.0), 1, 1.0, 1.5)
        assert direction == pytest.approx([0.0, 0.0, -1.0], abs=1e-5)
        assert medium == pytest.approx(1.5)

    def test_snell_law_entering(self):
        """Entering glass at 45 degrees obeys Snell's law."""
        s = math.sqrt(0.5)
        direction, medium = _refract((s, -s, 0.0), (0.0, 1.0, 0.0), 1, 1.0, 1.5)
        assert np.linalg.norm(direction) == pytest.approx(1.0, abs=1e-5)
        # sin(theta_t) = sin(theta_i) / 1.5
        assert direction[0] == pytest.approx(s / 1.5, abs=1e-5)
        assert direction[1] < 0.0
        assert medium == pytest.approx(1.5)

    def test_leaving_into_air(self):
        """On a back face the ray exits into air."""
        direction, medium = _refract((0.1, 1.0, 0.0), (0.0, 1.0, 0.0), 0, 1.5, 1.5)
        assert np.linalg.norm(direction) == pytest.approx(1.0, abs=1e-5)
        assert direction[1] > 0.0
        assert medium == pytest.approx(1.0)

    def test_total_internal_reflection(self):
        """A grazing ray inside glass reflects and stays in the glass."""
        s = math.sqrt(0.5)
        direction, medium = _refract((s, s, 0.0), (0.0, 1.0, 0.0), 0, 1.5, 1.5)
        # 1.5 * sin(45 deg) > 1, so the ray mirrors back down
        assert direction == pytest.approx([s, -s, 0.0], abs=1e-5)
        assert medium == pytest.approx(1.5)

    def test_matching_media_is_straight(self):
        """Equal refractive indices leave the direction unchanged."""
        d = np.array([0.3, -0.8, 0.2])
        d = d / np.linalg.norm(d)
        direction, medium = _refract(tuple(d), (0.0, 1.0, 0.0), 1, 1.0, 1.0)
        assert direction == pytest.approx(d, abs=1e-5)
        assert medium == pytest.approx(1.0)


class TestScatterBranches:
    """Tests for the probabilistic branch selection of scatter()."""

    def test_perfect_mirror_reflects(self):
        """Coherency 1 always gives the mirror direction."""
        from pathtracer.materials.material import Material

        material = Material(colour=(1.0, 1.0, 1.0), absorptivity=0.0, specularity=1.0, diffusivity=0.0)
        s = math.sqrt(0.5)
        directions, _, media, _ = _scatter_many(material, 64, direction=(s, -s, 0.0))
        assert np.abs(directions - np.array([s, s, 0.0])).max() < 1e-5
        assert np.all(media == pytest.approx(1.0))

    def test_diffuse_stays_above_surface(self):
        """Diffuse bounces leave on the normal's side with unit directions."""
        from pathtracer.materials.material import Material

        directions, _, _, _ = _scatter_many(Material(), 2000)
        assert np.abs(np.linalg.norm(directions, axis=1) - 1.0).max() < 1e-4
        assert np.all(directions[:, 1] >= -1e-5)
        # Not all in one direction
        assert directions[:, 0].std() > 0.2

    def test_always_refracts(self):
        """Transmissibility 1 always refracts into the material."""
        from pathtracer.materials.material import Material

        material = Material(colour=(1.0, 1.0, 1.0), transmissibility=1.0, refractive_index=1.5)
        directions, _, media, _ = _scatter_many(material, 64)
        assert np.abs(directions - np.array([0.0, -1.0, 0.0])).max() < 1e-5
        assert np.all(np.abs(media - 1.5) < 1e-5)

    def test_never_refracts(self):
        """Transmissibility 0 never changes the medium."""
        from pathtracer.materials.material import Material

        material = Material(transmissibility=0.0, refractive_index=1.5)
        _, _, media, _ = _scatter_many(material, 256)
        assert np.all(np.abs(media - 1.0) < 1e-6)

    def test_scattered_ray_starts_at_hit_point(self):
        from pathtracer.materials.material import Material

        _, _, _, origins = _scatter_many(Material(), 16, point=(1.0, 2.0, 3.0))
        assert np.abs(origins - np.array([1.0, 2.0, 3.0])).max() < 1e-6


class TestAttenuation:
    """Tests for attenuation bookkeeping."""

    def test_first_bounce_attenuation(self):
        """From a fresh ray the new attenuation is white minus albedo."""
        from pathtracer.materials.material import Material

        _, attenuations, _, _ = _scatter_many(Material(), 8)
        assert np.abs(attenuations - np.array([0.2, 1.0, 1.0])).max() < 1e-6

    def test_attenuation_is_monotone(self):
        """Scattering never reduces the absorbed fraction."""
        from pathtracer.materials.material import Material

        before = np.array([0.3, 0.1, 0.6])
        material = Material(colour=(0.9, 0.5, 0.2), absorptivity=0.1)
        _, attenuations, _, _ = _scatter_many(material, 8, attenuation=tuple(before))
        gain = 1.0 - before
        expected = 1.0 - gain * np.array(material.albedo)
        assert np.abs(attenuations - expected).max() < 1e-6
        assert np.all(attenuations >= before - 1e-6)
        assert np.all(attenuations <= 1.0 + 1e-6)


class TestCheckerboard:
    """Tests for the procedural checkerboard."""

    @pytest.mark.parametrize(
        "point, expected",
        [
            ((0.5, 0.0, 0.5), 0),
            ((1.5, 0.0, 0.5), 1),
            ((0.5, 0.0, 1.5), 1),
            ((1.5, 0.0, 1.5), 0),
            ((-0.5, 0.0, 0.5), 1),
            ((-0.5, 0.0, -0.5), 0),
            ((2.5, 7.0, 0.5), 0),
        ],
    )
    def test_checker_tile(self, point, expected):
        from pathtracer.core.ray import vec3
        from pathtracer.materials.scatter import checker_tile

        result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(p: vec3):
            result[None] = checker_tile(p)

        test_kernel(vec3(*point))
        assert result[None] == expected

    def test_dark_tiles_are_darkened(self):
        from pathtracer.core.ray import vec3
        from pathtracer.materials.material import CHECKERBOARD_DARKENING, Material, register_material
        from pathtracer.materials.scatter import surface_albedo

        mid = register_material(Material.checkerboard_pattern())
        result = ti.Vector.field(3, dtype=float, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = surface_albedo(mid, vec3(0.5, 0.0, 0.5))
            result[1] = surface_albedo(mid, vec3(1.5, 0.0, 0.5))

        test_kernel()
        light = Material.checkerboard_pattern().albedo[0]
        assert abs(result[0][0] - light) < 1e-6
        assert abs(result[1][0] - light * CHECKERBOARD_DARKENING) < 1e-6
