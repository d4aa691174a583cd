"""Tests for scene-level intersection.

Tests cover:
- Nearest-hit selection across spheres and planes
- Tie breaking by insertion order
- Front/back face classification
- Primitive table validation
"""

import pytest
import taichi as ti


def _register_materials(count):
    from pathtracer.materials.material import Material, register_material

    return [register_material(Material()) for _ in range(count)]


class TestNearestHit:
    """Tests for selecting the closest primitive."""

    def test_empty_scene_misses(self):
        from pathtracer.scene.intersection import query_intersection

        assert query_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) is None

    def test_single_sphere(self):
        from pathtracer.scene.intersection import add_sphere, query_intersection

        _register_materials(1)
        add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
        info = query_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert info is not None
        assert info.t == pytest.approx(0.5, abs=1e-5)
        assert info.point == pytest.approx((0.0, 0.0, -0.5), abs=1e-5)
        assert info.normal == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)
        assert info.material_id == 0
        assert info.front_face is True

    def test_nearest_sphere_wins(self):
        """The closer sphere is reported regardless of insertion order."""
        from pathtracer.scene.intersection import add_sphere, query_intersection

        _register_materials(2)
        add_sphere((0.0, 0.0, -5.0), 0.5, material_id=0)
        add_sphere((0.0, 0.0, -2.0), 0.5, material_id=1)
        info = query_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert info.material_id == 1
        assert info.t == pytest.approx(1.5, abs=1e-5)

    def test_sphere_in_front_of_plane(self):
        from pathtracer.scene.intersection import add_plane, add_sphere, query_intersection

        _register_materials(2)
        add_plane((0.0, -0.5, 0.0), (0.0, 1.0, 0.0), material_id=0)
        add_sphere((0.0, 0.0, -1.0), 0.5, material_id=1)

        # Straight ahead hits the sphere
        info = query_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert info.material_id == 1

        # Straight down hits the floor
        info = query_intersection((0.0, 0.0, 0.0), (0.0, -1.0, 0.0))
        assert info.material_id == 0
        assert info.t == pytest.approx(0.5, abs=1e-5)
        assert info.normal == pytest.approx((0.0, 1.0, 0.0), abs=1e-5)

    def test_escaping_ray_misses(self):
        from pathtracer.scene.intersection import add_plane, add_sphere, query_intersection

        _register_materials(1)
        add_plane((0.0, -0.5, 0.0), (0.0, 1.0, 0.0))
        add_sphere((0.0, 0.0, -1.0), 0.5)
        assert query_intersection((0.0, 0.0, 0.0), (0.0, 1.0, 0.0)) is None

    def test_tie_keeps_first_inserted(self):
        """Coincident primitives report the earliest one."""
        from pathtracer.scene.intersection import add_sphere, query_intersection

        _register_materials(2)
        add_sphere((0.0, 0.0, -3.0), 1.0, material_id=1)
        add_sphere((0.0, 0.0, -3.0), 1.0, material_id=0)
        info = query_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert info.material_id == 1

    def test_depth_interval(self):
        from pathtracer.scene.intersection import add_sphere, query_intersection

        _register_materials(1)
        add_sphere((0.0, 0.0, -5.0), 1.0)
        assert query_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=3.0) is None
        info = query_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), min_depth=4.5)
        assert info.t == pytest.approx(6.0, abs=1e-4)


class TestFaceClassification:
    """Tests for front/back face classification."""

    def test_inside_sphere_is_back_face(self):
        from pathtracer.scene.intersection import add_sphere, query_intersection

        _register_materials(1)
        add_sphere((0.0, 0.0, 0.0), 1.0)
        info = query_intersection((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        assert info.front_face is False
        # Normal stays outward
        assert info.normal == pytest.approx((1.0, 0.0, 0.0), abs=1e-5)

    def test_plane_from_below_is_back_face(self):
        from pathtracer.scene.intersection import add_plane, query_intersection

        _register_materials(1)
        add_plane((0.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        assert query_intersection((0.0, 1.0, 0.0), (0.0, -1.0, 0.0)).front_face is True
        assert query_intersection((0.0, -1.0, 0.0), (0.0, 1.0, 0.0)).front_face is False

    def test_intersection_carries_incident_ray(self):
        """The kernel-side record keeps the unit incident ray."""
        from pathtracer.core.ray import AIR, BLACK, make_ray, vec3
        from pathtracer.scene.intersection import add_sphere, intersect_scene

        _register_materials(1)
        add_sphere((0.0, 0.0, -2.0), 0.5)
        direction = ti.Vector.field(3, dtype=float, shape=())
        medium = ti.field(dtype=float, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -3.0), BLACK, AIR)
            isect = intersect_scene(ray, 1e-5, 1e10)
            direction[None] = isect.incident.direction
            medium[None] = isect.incident.medium

        test_kernel()
        assert abs(direction[None][2] + 1.0) < 1e-6
        assert abs(medium[None] - 1.0) < 1e-6


class TestPrimitiveTable:
    """Tests for adding primitives."""

    def test_count_and_clear(self):
        from pathtracer.scene.intersection import (
            add_plane,
            add_sphere,
            clear_scene,
            get_primitive_count,
        )

        _register_materials(1)
        assert add_sphere((0.0, 0.0, -1.0), 0.5) == 0
        assert add_plane((0.0, -0.5, 0.0), (0.0, 1.0, 0.0)) == 1
        assert get_primitive_count() == 2
        clear_scene()
        assert get_primitive_count() == 0

    def test_plane_normal_is_normalized(self):
        from pathtracer.scene.intersection import add_plane, primitive_normals

        _register_materials(1)
        idx = add_plane((0.0, 0.0, 0.0), (0.0, 5.0, 0.0))
        assert abs(primitive_normals[idx][1] - 1.0) < 1e-6

    @pytest.mark.parametrize("radius", [0.0, -1.0])
    def test_invalid_radius(self, radius):
        from pathtracer.scene.intersection import add_sphere

        _register_materials(1)
        with pytest.raises(ValueError, match="radius"):
            add_sphere((0.0, 0.0, 0.0), radius)

    def test_zero_plane_normal(self):
        from pathtracer.scene.intersection import add_plane

        _register_materials(1)
        with pytest.raises(ValueError, match="normal"):
            add_plane((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))

    def test_unknown_material(self):
        from pathtracer.scene.intersection import add_sphere

        _register_materials(1)
        with pytest.raises(ValueError, match="Unknown material"):
            add_sphere((0.0, 0.0, 0.0), 1.0, material_id=3)

    def test_zero_query_direction(self):
        from pathtracer.scene.intersection import query_intersection

        with pytest.raises(ValueError, match="non-zero"):
            query_intersection((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))
