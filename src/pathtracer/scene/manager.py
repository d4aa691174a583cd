"""Scene builder coordinating primitives, materials and the background.

``Scene`` is the Python-side owner of the GPU scene registries. It registers
materials, inserts primitives into the tagged primitive table, sets the
background palette and mirrors everything in plain Python records so a scene
can be inspected and round-tripped through dicts/JSON.

The registries are module-level Taichi fields, so only one scene is live at
a time: creating or clearing a ``Scene`` resets them.

Example:
    >>> from pathtracer.scalar import init_taichi
    >>> init_taichi()
    >>> from pathtracer.materials import Material
    >>> from pathtracer.scene.manager import Scene
    >>> scene = Scene()
    >>> red = scene.add_material(Material())
    >>> scene.add_sphere((0.0, 0.0, -1.0), 0.5, red)
    >>> scene.add_plane_with_material((0.0, -0.5, 0.0), (0.0, 1.0, 0.0))
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pathtracer.core.ray import (
    DEFAULT_BACKGROUND_BOTTOM,
    DEFAULT_BACKGROUND_TOP,
    set_background_palette,
)
from pathtracer.materials.material import (
    MAX_MATERIALS,
    Material,
    clear_materials,
    register_material,
)
from pathtracer.scene.intersection import (
    MAX_PRIMITIVES,
    PrimitiveKind,
    add_plane,
    add_sphere,
    clear_scene,
    get_primitive_count,
)

logger = logging.getLogger(__name__)

Vector3 = tuple[float, float, float]


def _as_vector3(values, name: str) -> Vector3:
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


@dataclass
class PrimitiveInfo:
    """Information about a primitive in the scene.

    Attributes:
        index: Row of the primitive table.
        kind: Sphere or plane.
        position: Sphere center or a point on the plane.
        material_id: The material assigned to the primitive.
        radius: Sphere radius (None for planes).
        normal: Unit plane normal (None for spheres).
    """

    index: int
    kind: PrimitiveKind
    position: Vector3
    material_id: int
    radius: float | None = None
    normal: Vector3 | None = None


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of material parameter dicts (see ``Material.to_dict``).
        spheres: List of ``{center, radius, material_id}`` dicts.
        planes: List of ``{origin, normal, material_id}`` dicts.
        background: ``{bottom, top}`` colours of the sky gradient.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)
    planes: list[dict[str, Any]] = field(default_factory=list)
    background: dict[str, list[float]] = field(
        default_factory=lambda: {
            "bottom": list(DEFAULT_BACKGROUND_BOTTOM),
            "top": list(DEFAULT_BACKGROUND_TOP),
        }
    )


class Scene:
    """Scene manager coordinating primitives and materials.

    Attributes:
        materials: Registered materials, indexed by material id.
        primitives: Primitives in insertion order.
        background: The (bottom, top) sky colours.

    Example:
        >>> scene = Scene()
        >>> glass = scene.add_material(Material.glass())
        >>> scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
        >>> scene.add_sphere_with_material((1.0, 0.0, -1.0), 0.5, Material.mirror())
    """

    # The scene whose data currently fills the GPU registries
    _live: "Scene | None" = None

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[Material] = []
        self.primitives: list[PrimitiveInfo] = []
        self.background: tuple[Vector3, Vector3] = (
            DEFAULT_BACKGROUND_BOTTOM,
            DEFAULT_BACKGROUND_TOP,
        )
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_materials()
        Scene._live = self
        self.materials.clear()
        self.primitives.clear()
        self.set_background(DEFAULT_BACKGROUND_BOTTOM, DEFAULT_BACKGROUND_TOP)

    @property
    def is_live(self) -> bool:
        """Whether this scene's data is the one loaded in the GPU registries.

        Creating or clearing another Scene replaces the registry contents.
        """
        return Scene._live is self

    def _require_live(self) -> None:
        if not self.is_live:
            raise RuntimeError("Scene is not loaded; another Scene has replaced its data")

    def clear(self) -> None:
        """Clear the entire scene (primitives, materials and background)."""
        self._clear_all()

    def __len__(self) -> int:
        return len(self.primitives)

    # =========================================================================
    # Materials and background
    # =========================================================================

    def add_material(self, material: Material) -> int:
        """Register a material.

        Args:
            material: The material to register.

        Returns:
            The material id to pass to ``add_sphere``/``add_plane``.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded or
                another Scene has replaced this one.
        """
        self._require_live()
        material_id = register_material(material)
        self.materials.append(material)
        return material_id

    def get_material(self, material_id: int) -> Material | None:
        """Get a registered material, or None if the id is unknown."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_count(self) -> int:
        """Get the number of registered materials."""
        return len(self.materials)

    def set_background(self, bottom, top) -> None:
        """Set the colours of the vertical background gradient.

        Args:
            bottom: Colour seen looking straight down.
            top: Colour seen looking straight up.

        Raises:
            ValueError: If a colour does not have 3 channels in [0, 1].
            RuntimeError: If another Scene has replaced this one.
        """
        self._require_live()
        bottom = _as_vector3(bottom, "bottom")
        top = _as_vector3(top, "top")
        for channel in (*bottom, *top):
            if not 0.0 <= channel <= 1.0:
                raise ValueError(f"Background colour channel {channel} is outside [0, 1]")
        set_background_palette(bottom, top)
        self.background = (bottom, top)

    # =========================================================================
    # Primitives
    # =========================================================================

    def add_sphere(self, center, radius: float, material_id: int) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere, must be positive.
            material_id: A registered material id.

        Returns:
            The index of the added primitive.

        Raises:
            RuntimeError: If the maximum number of primitives is exceeded or
                another Scene has replaced this one.
            ValueError: If the radius or material_id is invalid.
        """
        self._require_live()
        center = _as_vector3(center, "center")
        index = add_sphere(center, radius, material_id)
        self.primitives.append(
            PrimitiveInfo(
                index=index,
                kind=PrimitiveKind.SPHERE,
                position=center,
                material_id=material_id,
                radius=float(radius),
            )
        )
        return index

    def add_plane(self, origin, normal, material_id: int) -> int:
        """Add an infinite plane to the scene.

        Args:
            origin: Any point on the plane as (x, y, z).
            normal: Plane normal; stored normalized.
            material_id: A registered material id.

        Returns:
            The index of the added primitive.

        Raises:
            RuntimeError: If the maximum number of primitives is exceeded or
                another Scene has replaced this one.
            ValueError: If the normal is zero or material_id is invalid.
        """
        self._require_live()
        origin = _as_vector3(origin, "origin")
        normal = _as_vector3(normal, "normal")
        index = add_plane(origin, normal, material_id)
        length = sum(c * c for c in normal) ** 0.5
        self.primitives.append(
            PrimitiveInfo(
                index=index,
                kind=PrimitiveKind.PLANE,
                position=origin,
                material_id=material_id,
                normal=(normal[0] / length, normal[1] / length, normal[2] / length),
            )
        )
        return index

    def add_sphere_with_material(
        self,
        center=(0.0, 0.0, -1.0),
        radius: float = 0.5,
        material: Material | None = None,
    ) -> int:
        """Register a material and add a sphere using it in one call.

        The defaults give the standard sphere: radius 0.5 at (0, 0, -1) with
        the default red diffuse material.
        """
        self._require_live()
        material_id = self.add_material(material if material is not None else Material())
        return self.add_sphere(center, radius, material_id)

    def add_plane_with_material(
        self,
        origin=(0.0, -0.5, 0.0),
        normal=(0.0, 1.0, 0.0),
        material: Material | None = None,
    ) -> int:
        """Register a material and add a plane using it in one call.

        The defaults give the standard floor: the plane y = -0.5 with a
        checkerboard material.
        """
        self._require_live()
        if material is None:
            material = Material.checkerboard_pattern()
        material_id = self.add_material(material)
        return self.add_plane(origin, normal, material_id)

    def get_primitive_count(self) -> int:
        """Get the number of primitives in the GPU table."""
        return get_primitive_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig(
            background={
                "bottom": list(self.background[0]),
                "top": list(self.background[1]),
            }
        )
        config.materials = [material.to_dict() for material in self.materials]

        for prim in self.primitives:
            if prim.kind == PrimitiveKind.SPHERE:
                config.spheres.append(
                    {
                        "center": list(prim.position),
                        "radius": prim.radius,
                        "material_id": prim.material_id,
                    }
                )
            else:
                config.planes.append(
                    {
                        "origin": list(prim.position),
                        "normal": list(prim.normal),
                        "material_id": prim.material_id,
                    }
                )
        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration. Spheres are
        inserted before planes.

        Args:
            config: The scene configuration to load.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        background = config.background
        self.set_background(
            background.get("bottom", DEFAULT_BACKGROUND_BOTTOM),
            background.get("top", DEFAULT_BACKGROUND_TOP),
        )

        # Load materials first (needed for primitives)
        for mat_config in config.materials:
            self.add_material(Material.from_dict(mat_config))

        for sphere_config in config.spheres:
            self.add_sphere(
                sphere_config.get("center", [0.0, 0.0, -1.0]),
                sphere_config.get("radius", 0.5),
                sphere_config.get("material_id", 0),
            )

        for plane_config in config.planes:
            self.add_plane(
                plane_config.get("origin", [0.0, -0.5, 0.0]),
                plane_config.get("normal", [0.0, 1.0, 0.0]),
                plane_config.get("material_id", 0),
            )

        logger.debug(
            "Loaded scene: %d materials, %d primitives",
            len(self.materials),
            len(self.primitives),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "spheres": config.spheres,
            "planes": config.planes,
            "background": config.background,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with 'materials', 'spheres', 'planes' and
                optionally 'background' keys.
        """
        config = SceneConfig(
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
            planes=data.get("planes", []),
        )
        if "background" in data:
            config.background = data["background"]
        self.from_config(config)

    def save_json(self, filepath: str | Path) -> None:
        """Write the scene to a JSON file, creating parent directories."""
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.write_text(json.dumps(self.to_dict(), indent=2))

    @classmethod
    def load_json(cls, filepath: str | Path) -> "Scene":
        """Build a scene from a JSON file written by ``save_json``."""
        data = json.loads(Path(filepath).read_text())
        scene = cls()
        scene.from_dict(data)
        return scene

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_primitives() -> int:
        """Get the maximum number of primitives supported."""
        return MAX_PRIMITIVES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
