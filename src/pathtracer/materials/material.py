"""Material model and the GPU-side material registry.

A single material type describes every surface in the renderer. Instead of
separate Lambertian/metal/glass classes, a material carries probabilities
that decide, per scatter event, whether light refracts, reflects
specularly or scatters diffusely:

    albedo       = colour * (1 - absorptivity)
    coherency    = specularity / (specularity + diffusivity)   (0 if specularity <= 0)
    transmissibility = probability of a refraction attempt

``Material`` is an immutable Python value. ``register_material`` copies the
derived quantities (albedo, coherency, ...) into Taichi fields so the
scattering kernel reads them by material id.

Example:
    >>> from pathtracer.materials.material import Material, RefractiveIndex
    >>> glass = Material.glass()
    >>> glass.coherency
    0.8
    >>> Material(colour=(1.0, 1.0, 1.0), refractive_index=RefractiveIndex.WATER)
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, replace
from typing import Any

import taichi as ti

from pathtracer.core.ray import vec3

logger = logging.getLogger(__name__)

Colour = tuple[float, float, float]

RED: Colour = (1.0, 0.0, 0.0)
GREEN: Colour = (0.0, 1.0, 0.0)
BLUE: Colour = (0.0, 0.0, 1.0)
WHITE: Colour = (1.0, 1.0, 1.0)
BLACK: Colour = (0.0, 0.0, 0.0)
GREY: Colour = (0.5, 0.5, 0.5)
YELLOW: Colour = (1.0, 1.0, 0.0)
BRIGHT_RED: Colour = (1.0, 0.1, 0.1)
BRIGHT_GREEN: Colour = (0.1, 1.0, 0.1)
BRIGHT_BLUE: Colour = (0.1, 0.1, 1.0)
LIGHT_PINK: Colour = (1.0, 0.5, 0.5)
BRIGHT_ORANGE: Colour = (1.0, 0.4, 0.1)
BRIGHT_PURPLE: Colour = (0.45, 0.05, 0.99)
LIGHT_GREEN: Colour = (0.5, 1.0, 0.5)
LIGHT_BLUE: Colour = (0.5, 0.7, 1.0)


class RefractiveIndex:
    """Refractive indices of common media."""

    AIR = 1.0
    WATER = 4.0 / 3.0
    GLASS = 1.5
    DIAMOND = 2.4
    MAGIC = 100.0


# Albedo multiplier applied to the dark tiles of a checkerboard surface
CHECKERBOARD_DARKENING = 0.1


@dataclass(frozen=True)
class Material:
    """Surface scattering properties.

    Attributes:
        colour: Base colour (R, G, B), each channel in [0, 1].
        absorptivity: Fraction of light absorbed on every bounce, in [0, 1].
        specularity: Relative weight of specular reflection (>= 0).
        diffusivity: Relative weight of diffuse reflection (>= 0).
        transmissibility: Probability of a refraction attempt, in [0, 1].
        refractive_index: Refractive index of the material's volume (>= 1).
        checkerboard: Darken alternating unit tiles in the x/z plane.
    """

    colour: Colour = RED
    absorptivity: float = 0.2
    specularity: float = 0.0
    diffusivity: float = 1.0
    transmissibility: float = 0.0
    refractive_index: float = RefractiveIndex.AIR
    checkerboard: bool = False

    def __post_init__(self) -> None:
        if len(self.colour) != 3:
            raise ValueError(f"Colour must have 3 channels, got {len(self.colour)}")
        for i, component in enumerate(self.colour):
            if not 0.0 <= component <= 1.0:
                raise ValueError(
                    f"Colour component {i} = {component} is outside [0, 1]. "
                    "This would violate energy conservation."
                )
        if not 0.0 <= self.absorptivity <= 1.0:
            raise ValueError(f"Absorptivity = {self.absorptivity} is outside [0, 1]")
        if not 0.0 <= self.transmissibility <= 1.0:
            raise ValueError(f"Transmissibility = {self.transmissibility} is outside [0, 1]")
        if not (0.0 <= self.specularity < math.inf and 0.0 <= self.diffusivity < math.inf):
            raise ValueError(
                f"Specularity ({self.specularity}) and diffusivity ({self.diffusivity}) "
                "must be finite and non-negative"
            )
        if not 1.0 <= self.refractive_index < math.inf:
            raise ValueError(
                f"Index of refraction = {self.refractive_index} is not a finite value >= 1.0. "
                "IOR must be >= 1.0 for physically meaningful materials."
            )

    # =========================================================================
    # Presets
    # =========================================================================

    @classmethod
    def simple_diffuse(cls, colour: Colour) -> Material:
        """Fully diffuse material of the given colour."""
        return cls(colour=tuple(colour), diffusivity=1.0)

    @classmethod
    def mirror(cls) -> Material:
        """Mostly specular white material."""
        return cls(colour=WHITE, absorptivity=0.05, specularity=0.95, diffusivity=0.05)

    @classmethod
    def checkerboard_pattern(cls) -> Material:
        """White, slightly glossy material with a procedural checkerboard."""
        return cls(colour=WHITE, checkerboard=True, specularity=0.3, diffusivity=0.7)

    @classmethod
    def glass(cls) -> Material:
        """Clear glass: always attempts refraction."""
        return cls(
            colour=WHITE,
            absorptivity=0.0,
            specularity=0.8,
            diffusivity=0.2,
            transmissibility=1.0,
            refractive_index=RefractiveIndex.GLASS,
        )

    # =========================================================================
    # Derived quantities
    # =========================================================================

    @property
    def albedo(self) -> Colour:
        """Fraction of reflected light for each colour channel."""
        scale = 1.0 - self.absorptivity
        return (self.colour[0] * scale, self.colour[1] * scale, self.colour[2] * scale)

    @property
    def attenuation(self) -> Colour:
        """Fraction of absorbed light for each colour channel."""
        albedo = self.albedo
        return (1.0 - albedo[0], 1.0 - albedo[1], 1.0 - albedo[2])

    @property
    def coherency(self) -> float:
        """Probability of a specular (rather than diffuse) reflection."""
        if self.specularity <= 0.0:
            return 0.0
        return self.specularity / (self.specularity + self.diffusivity)

    def with_colour(self, colour: Colour) -> Material:
        """Return a copy of this material with a different colour."""
        return replace(self, colour=tuple(colour))

    def to_dict(self) -> dict[str, Any]:
        """Export the material parameters (for JSON serialization)."""
        data = asdict(self)
        data["colour"] = list(self.colour)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Material:
        """Build a material from ``to_dict`` output; missing keys use defaults."""
        params = dict(data)
        if "colour" in params:
            colour = params["colour"]
            params["colour"] = (colour[0], colour[1], colour[2])
        unknown = set(params) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown material parameters: {sorted(unknown)}")
        return cls(**params)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

MAX_MATERIALS = 1024

material_albedos = ti.Vector.field(3, dtype=float, shape=MAX_MATERIALS)
material_coherencies = ti.field(dtype=float, shape=MAX_MATERIALS)
material_transmissibilities = ti.field(dtype=float, shape=MAX_MATERIALS)
material_refractive_indices = ti.field(dtype=float, shape=MAX_MATERIALS)
material_checkerboards = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all registered materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def register_material(material: Material) -> int:
    """Copy a material into the GPU-side registry.

    Args:
        material: The material to register.

    Returns:
        The material id used by primitives and the scattering kernel.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    albedo = material.albedo
    material_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    material_coherencies[idx] = material.coherency
    material_transmissibilities[idx] = material.transmissibility
    material_refractive_indices[idx] = material.refractive_index
    material_checkerboards[idx] = int(material.checkerboard)
    num_materials[None] = idx + 1
    logger.debug("Registered material %d: %s", idx, material)
    return idx


def get_material_count() -> int:
    """Get the number of registered materials."""
    return int(num_materials[None])
