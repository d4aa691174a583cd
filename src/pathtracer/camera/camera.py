"""Look-at camera with optional depth of field.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from the target toward the eye (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits one unit in front of the eye. Normalized image
coordinates ``(u, v)`` in [0, 1] x [0, 1] map linearly onto it, ``(0, 0)``
being the lower-left corner; anything outside that square produces no ray.

With a non-zero aperture the ray origin is displaced along u and v by two
standard-normal draws scaled by the aperture, while the ray still aims at
the same viewport point. Geometry at unit distance stays sharp and the rest
blurs.

Example:
    >>> from pathtracer.scalar import init_taichi
    >>> init_taichi()
    >>> from pathtracer.camera.camera import Camera, setup_camera, cast_ray
    >>> camera = Camera.look_at((0.5, -0.3, 0.0), (0.1, -0.1, -1.0), 80.0)
    >>> setup_camera(camera)
    >>> cast_ray(0.5, 0.5).direction
    >>> cast_ray(1.5, 0.5) is None
    True
"""

import logging
import math
from dataclasses import dataclass, replace

import numpy as np
import taichi as ti

from pathtracer.core.ray import AIR, BLACK, Ray, make_ray, vec3

logger = logging.getLogger(__name__)

Vector3 = tuple[float, float, float]


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Configuration for a look-at camera.

    Attributes:
        eye: Camera position in world space.
        target: Point the camera looks at.
        vertical_fov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        up: Up direction used to orient the camera.
        aperture: Standard deviation of the lens offset; 0 is a pinhole.
    """

    eye: Vector3 = (0.0, 0.0, 0.0)
    target: Vector3 = (0.0, 0.0, -1.0)
    vertical_fov: float = 90.0
    aspect_ratio: float = 16.0 / 9.0
    up: Vector3 = (0.0, 1.0, 0.0)
    aperture: float = 0.0

    def __post_init__(self) -> None:
        # Raises ValueError on any degenerate configuration
        self.basis()

    @classmethod
    def look_at(
        cls,
        eye,
        target,
        vertical_fov: float,
        aspect_ratio: float = 16.0 / 9.0,
        up=(0.0, 1.0, 0.0),
    ) -> "Camera":
        """Create a camera at ``eye`` looking toward ``target``."""
        return cls(
            eye=tuple(float(c) for c in eye),
            target=tuple(float(c) for c in target),
            vertical_fov=float(vertical_fov),
            aspect_ratio=float(aspect_ratio),
            up=tuple(float(c) for c in up),
        )

    @classmethod
    def default(cls, aspect_ratio: float = 16.0 / 9.0) -> "Camera":
        """Camera at the origin looking down -z with a 90 degree field of view.

        The viewport is 2 units tall at unit distance.
        """
        return cls(aspect_ratio=float(aspect_ratio))

    def with_aperture(self, aperture: float) -> "Camera":
        """Return a copy of this camera with a different aperture."""
        return replace(self, aperture=float(aperture))

    def basis(self) -> dict[str, np.ndarray]:
        """Compute the camera frame and viewport.

        Returns:
            Dictionary with origin, u, v, w, horizontal, vertical and
            lower_left as float64 arrays.

        Raises:
            ValueError: If the configuration is degenerate.
        """
        values = (*self.eye, *self.target, *self.up, self.vertical_fov, self.aspect_ratio, self.aperture)
        if not all(math.isfinite(x) for x in values):
            raise ValueError("Camera parameters must be finite")
        if not 0.0 < self.vertical_fov < 180.0:
            raise ValueError(f"Vertical field of view must be in (0, 180), got {self.vertical_fov}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"Aspect ratio must be positive, got {self.aspect_ratio}")
        if self.aperture < 0.0:
            raise ValueError(f"Aperture must be non-negative, got {self.aperture}")

        eye = np.array(self.eye, dtype=np.float64)
        target = np.array(self.target, dtype=np.float64)
        up = np.array(self.up, dtype=np.float64)

        # w points from target toward eye (backward)
        w = eye - target
        w_length = np.linalg.norm(w)
        if w_length == 0.0:
            raise ValueError("Camera eye and target must differ")
        w = w / w_length

        # u points right (perpendicular to w and up)
        u = np.cross(up, w)
        u_length = np.linalg.norm(u)
        if u_length < 1e-12:
            raise ValueError("Camera up vector must not be parallel to the view direction")
        u = u / u_length

        v = np.cross(w, u)
        v = v / np.linalg.norm(v)

        h = math.tan(math.radians(self.vertical_fov) / 2.0)
        viewport_height = 2.0 * h
        viewport_width = self.aspect_ratio * viewport_height

        horizontal = viewport_width * u
        vertical = viewport_height * v
        lower_left = eye - horizontal / 2.0 - vertical / 2.0 - w

        return {
            "origin": eye,
            "u": u,
            "v": v,
            "w": w,
            "horizontal": horizontal,
            "vertical": vertical,
            "lower_left": lower_left,
        }


@dataclass(frozen=True)
class CameraRay:
    """A camera ray as seen from Python."""

    origin: Vector3
    direction: Vector3


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=float, shape=())
_camera_u = ti.Vector.field(3, dtype=float, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=float, shape=())  # Up
_viewport_horizontal = ti.Vector.field(3, dtype=float, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=float, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=float, shape=())
_aperture = ti.field(dtype=float, shape=())


def setup_camera(camera: Camera) -> None:
    """Upload a camera to the GPU-side camera state.

    Must be called before rendering and after any camera change.

    Args:
        camera: The camera configuration.
    """
    frame = camera.basis()
    _camera_origin[None] = frame["origin"].tolist()
    _camera_u[None] = frame["u"].tolist()
    _camera_v[None] = frame["v"].tolist()
    _viewport_horizontal[None] = frame["horizontal"].tolist()
    _viewport_vertical[None] = frame["vertical"].tolist()
    _lower_left_corner[None] = frame["lower_left"].tolist()
    _aperture[None] = camera.aperture
    logger.debug("Camera set up: %s", camera)


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def viewport_contains(u: float, v: float) -> ti.i32:
    """1 if ``(u, v)`` lies in [0, 1] x [0, 1], 0 otherwise."""
    inside = 0
    if u >= 0.0 and u <= 1.0 and v >= 0.0 and v <= 1.0:
        inside = 1
    return inside


@ti.func
def get_ray(u: float, v: float) -> Ray:
    """Generate a camera ray through normalized image coordinates ``(u, v)``.

    Callers must check ``viewport_contains(u, v)`` first; coordinates outside
    the viewport have no ray.

    Args:
        u: Horizontal coordinate in [0, 1] (left to right).
        v: Vertical coordinate in [0, 1] (bottom to top).

    Returns:
        A ray with no attenuation, travelling through air.
    """
    target = _lower_left_corner[None] + u * _viewport_horizontal[None] + v * _viewport_vertical[None]
    origin = _camera_origin[None]
    if _aperture[None] > 0.0:
        origin += _aperture[None] * (ti.randn() * _camera_u[None] + ti.randn() * _camera_v[None])
    return make_ray(origin, target - origin, BLACK, AIR)


_cast_valid = ti.field(dtype=ti.i32, shape=())
_cast_ray = Ray.field(shape=())


@ti.kernel
def _cast_ray_kernel(u: float, v: float):
    _cast_valid[None] = viewport_contains(u, v)
    if _cast_valid[None] == 1:
        _cast_ray[None] = get_ray(u, v)


def cast_ray(u: float, v: float) -> CameraRay | None:
    """Generate a camera ray from Python.

    Returns:
        The ray, or None if ``(u, v)`` lies outside the viewport.
    """
    _cast_ray_kernel(u, v)
    if _cast_valid[None] == 0:
        return None
    ray = _cast_ray[None]
    return CameraRay(
        origin=(float(ray.origin[0]), float(ray.origin[1]), float(ray.origin[2])),
        direction=(float(ray.direction[0]), float(ray.direction[1]), float(ray.direction[2])),
    )


def get_camera_info() -> dict[str, Vector3]:
    """Get current GPU-side camera state for debugging."""
    fields = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info = {}
    for name, f in fields.items():
        value = f[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    return info
