"""Camera module for view and ray generation.

Components:
    camera: Look-at camera with optional aperture (depth of field)

Ray generation uses normalized image coordinates:
    u in [0, 1]: left to right across image
    v in [0, 1]: bottom to top across image

Coordinates outside that range produce no ray.
"""

from .camera import (
    Camera,
    CameraRay,
    cast_ray,
    get_camera_info,
    get_ray,
    setup_camera,
    viewport_contains,
)

__all__ = [
    "Camera",
    "CameraRay",
    "setup_camera",
    "get_ray",
    "viewport_contains",
    "cast_ray",
    "get_camera_info",
]
