"""Scene module for scene management and ray-scene queries.

Components:
    intersection: Tagged primitive table (spheres, planes), the
        ``Intersection`` record and nearest-hit queries
    manager: ``Scene`` builder coordinating primitives, materials and the
        background, with dict/JSON serialization
    presets: Ready-made scenes used by the render script

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for primitive parameters
    - One kind tag per primitive, dispatched in the intersection loop
    - Contiguous material id arrays
"""

from .intersection import (
    MAX_PRIMITIVES,
    Intersection,
    IntersectionInfo,
    PrimitiveKind,
    add_plane,
    add_sphere,
    clear_scene,
    get_primitive_count,
    intersect_scene,
    query_intersection,
)
from .manager import PrimitiveInfo, Scene, SceneConfig
from .presets import PRESETS, build_preset, mirror_scene, single_sphere_scene, ten_sphere_scene

__all__ = [
    # Intersection module
    "Intersection",
    "IntersectionInfo",
    "PrimitiveKind",
    "add_sphere",
    "add_plane",
    "clear_scene",
    "get_primitive_count",
    "intersect_scene",
    "query_intersection",
    "MAX_PRIMITIVES",
    # Manager module
    "Scene",
    "SceneConfig",
    "PrimitiveInfo",
    # Presets
    "PRESETS",
    "build_preset",
    "single_sphere_scene",
    "ten_sphere_scene",
    "mirror_scene",
]
