"""Taichi-based Monte Carlo path tracer.

Renders static scenes of spheres and infinite planes by following randomly
scattered light paths:
- A single probabilistic material model (diffuse, specular, refractive)
- Look-at camera with optional depth of field
- Fixed bounce budget, background-lit scenes
- Single or double precision selected at Taichi initialization

Subpackages:
    core: Ray structure, path integrator and render driver
    geometry: Sphere and plane intersection
    materials: Material model, registry and scattering
    scene: Primitive table, scene manager and preset scenes
    camera: Camera model with ray generation
    image: Aspect ratios and the pixel buffer
    preview: Image export and matplotlib preview

Call ``pathtracer.scalar.init_taichi`` before importing any subpackage other
than ``scalar`` and ``image``: they declare Taichi fields at import time.
"""

__version__ = "0.1.0"
