"""Materials module.

Components:
    material: Immutable ``Material`` value, presets, refractive indices and
        the GPU-side material registry
    scatter: The two-stage scattering model (refraction, specular, diffuse)

A single material type covers diffuse, glossy, mirror and glass surfaces;
the probabilities stored in the registry decide which scatter branch a hit
takes.
"""

from .material import (
    CHECKERBOARD_DARKENING,
    MAX_MATERIALS,
    Material,
    RefractiveIndex,
    clear_materials,
    get_material_count,
    register_material,
)

# Note: scatter is NOT imported here because it depends on the scene
# intersection record. Import it from pathtracer.materials.scatter.

__all__ = [
    "Material",
    "RefractiveIndex",
    "CHECKERBOARD_DARKENING",
    "MAX_MATERIALS",
    "register_material",
    "clear_materials",
    "get_material_count",
]
