"""Scalar precision selection for the path tracer.

Every Taichi field, struct and function in this package is declared with the
generic ``float`` type. Taichi resolves ``float`` to the ``default_fp`` chosen
at ``ti.init`` time, so the same source compiles to a single- or
double-precision renderer. This module owns that choice and the handful of
scalar helpers shared by the Python side of the renderer.

Example:
    >>> from pathtracer.scalar import Precision, init_taichi
    >>> init_taichi(Precision.DOUBLE, arch="cpu", seed=7)
    >>> # Import modules that declare Taichi fields only after this point.
"""

from __future__ import annotations

import logging
import math
from enum import Enum

import numpy as np
import numpy.typing as npt
import taichi as ti

logger = logging.getLogger(__name__)

ZERO = 0.0
ONE = 1.0
HALF = 0.5
TWO = 2.0
INFINITY = math.inf


class Precision(str, Enum):
    """Floating point precision of the renderer."""

    SINGLE = "single"
    DOUBLE = "double"

    @property
    def taichi_dtype(self):
        """The Taichi primitive type used as ``default_fp``."""
        return ti.f64 if self is Precision.DOUBLE else ti.f32

    @property
    def numpy_dtype(self) -> type[np.floating]:
        """The matching NumPy dtype for Python-side arrays."""
        return np.float64 if self is Precision.DOUBLE else np.float32


_ARCHES = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
    "metal": ti.metal,
}

_active_precision = Precision.SINGLE


def init_taichi(
    precision: Precision | str = Precision.SINGLE,
    arch: str = "cpu",
    seed: int | None = None,
    **kwargs,
) -> Precision:
    """Initialize the Taichi runtime with the requested precision.

    Must be called once, before importing any module that declares Taichi
    fields (camera, scene, materials, integrator).

    Args:
        precision: Scalar precision, either a Precision or its string value.
        arch: Backend name ("cpu", "gpu", "cuda", "vulkan", "metal").
        seed: Seed for Taichi's per-thread random generators.
        **kwargs: Extra keyword arguments forwarded to ``ti.init``.

    Returns:
        The active Precision.

    Raises:
        ValueError: If the precision or arch name is unknown.
    """
    global _active_precision

    precision = Precision(precision)
    if arch not in _ARCHES:
        raise ValueError(f"Unknown Taichi arch: {arch!r} (expected one of {sorted(_ARCHES)})")

    init_kwargs = dict(kwargs)
    if seed is not None:
        init_kwargs["random_seed"] = seed

    ti.init(arch=_ARCHES[arch], default_fp=precision.taichi_dtype, **init_kwargs)
    _active_precision = precision
    logger.debug("Taichi initialized: arch=%s precision=%s seed=%s", arch, precision.value, seed)
    return precision


def active_precision() -> Precision:
    """Return the precision selected by the last ``init_taichi`` call."""
    return _active_precision


def from_float(value: float) -> np.floating:
    """Convert a Python float into the active scalar type."""
    return _active_precision.numpy_dtype(value)


def scale_to_u8(values: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    """Map channel values in [0, 1] onto 0..255, clamping out-of-range input.

    The conversion truncates, so 1.0 maps to 255 and 0.999 maps to 254.
    """
    clamped = np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0)
    return (clamped * 255.0).astype(np.uint8)
