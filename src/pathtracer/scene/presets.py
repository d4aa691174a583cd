"""Ready-made scenes.

Each builder clears the live registries and returns a populated ``Scene``.
``PRESETS`` maps the names accepted by the command-line script to the
builders.

Example:
    >>> from pathtracer.scalar import init_taichi
    >>> init_taichi()
    >>> from pathtracer.scene.presets import ten_sphere_scene
    >>> scene = ten_sphere_scene()
    >>> len(scene)
    11
"""

import logging
from typing import Callable

from pathtracer.materials.material import (
    BLUE,
    BRIGHT_BLUE,
    BRIGHT_GREEN,
    BRIGHT_ORANGE,
    BRIGHT_PURPLE,
    BRIGHT_RED,
    GREEN,
    LIGHT_PINK,
    WHITE,
    YELLOW,
    Material,
    RefractiveIndex,
)
from pathtracer.scene.manager import Scene

logger = logging.getLogger(__name__)


def single_sphere_scene() -> Scene:
    """The default red diffuse sphere at (0, 0, -1), radius 0.5, on its own."""
    scene = Scene()
    scene.add_sphere_with_material()
    return scene


def ten_sphere_scene() -> Scene:
    """Ten spheres of mixed materials resting on a checkerboard floor.

    The floor is the plane y = -0.5. A glass and a mirror sphere sit in the
    middle row, flanked by diffuse and glossy coloured spheres; a small
    diamond and a small water sphere sit in front.
    """
    scene = Scene()
    scene.add_plane_with_material()

    glossy = Material(absorptivity=0.1, specularity=0.4, diffusivity=0.6)
    spheres = [
        ((0.0, 0.0, -1.0), 0.5, Material.glass()),
        ((1.1, 0.0, -1.2), 0.5, Material.mirror()),
        ((-1.1, 0.0, -1.2), 0.5, Material.simple_diffuse(BRIGHT_RED)),
        ((-0.6, -0.3, -0.4), 0.2, glossy.with_colour(BRIGHT_BLUE)),
        ((0.6, -0.3, -0.4), 0.2, glossy.with_colour(BRIGHT_GREEN)),
        ((-2.2, 0.2, -2.0), 0.7, Material.simple_diffuse(BRIGHT_PURPLE)),
        ((2.2, 0.2, -2.2), 0.7, glossy.with_colour(BRIGHT_ORANGE)),
        ((0.0, 0.5, -3.0), 1.0, Material.simple_diffuse(LIGHT_PINK)),
        (
            (0.15, -0.4, -0.3),
            0.1,
            Material(
                colour=WHITE,
                absorptivity=0.0,
                specularity=0.9,
                diffusivity=0.1,
                transmissibility=1.0,
                refractive_index=RefractiveIndex.DIAMOND,
            ),
        ),
        (
            (-0.2, -0.42, -0.25),
            0.08,
            Material(
                colour=(0.8, 0.9, 1.0),
                absorptivity=0.0,
                specularity=0.8,
                diffusivity=0.2,
                transmissibility=0.9,
                refractive_index=RefractiveIndex.WATER,
            ),
        ),
    ]
    for center, radius, material in spheres:
        scene.add_sphere_with_material(center, radius, material)

    logger.debug("Built ten-sphere scene with %d primitives", len(scene))
    return scene


def mirror_scene() -> Scene:
    """A mirror sphere flanked by diffuse green and blue spheres, with a yellow one behind the camera."""
    scene = Scene()
    scene.add_plane_with_material()
    scene.add_sphere_with_material((0.0, 0.0, -1.0), 0.5, Material.mirror())
    scene.add_sphere_with_material((-1.0, 0.0, -1.0), 0.5, Material.simple_diffuse(GREEN))
    scene.add_sphere_with_material((1.0, 0.0, -1.0), 0.5, Material.simple_diffuse(BLUE))
    scene.add_sphere_with_material((0.0, 0.0, 1.5), 0.5, Material.simple_diffuse(YELLOW))
    return scene


PRESETS: dict[str, Callable[[], Scene]] = {
    "single_sphere": single_sphere_scene,
    "ten_spheres": ten_sphere_scene,
    "mirror": mirror_scene,
}


def build_preset(name: str) -> Scene:
    """Build a preset scene by name.

    Raises:
        ValueError: If the name is not one of ``PRESETS``.
    """
    try:
        builder = PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown scene preset '{name}'. Valid options: {sorted(PRESETS)}") from None
    return builder()
