"""Unified scene manager for coordinating objects and materials.

This module provides a high-level scene building API on top of the scene
object table and the material registry. Materials are registered either as
raw effect lists or through the presets, objects are added with a material
id that is checked against the registry, and the whole scene can be exported
to and rebuilt from a plain dictionary.

The SceneManager maintains:
- The materials registered through it, with their effects and parameters
- The objects added through it, in insertion order
- The background radiance returned for escaping rays

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lucent.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> light = scene.add_emissive_material(radiance=(4.0, 4.0, 4.0))
    >>> red = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
    >>> scene.add_sphere((0, 2, -3), 0.5, light)
    >>> scene.add_plane((0, 1, 0), -1.0, red)
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from lucent.materials.dielectric import dielectric_effects
from lucent.materials.effects import (
    MAX_MATERIALS,
    Effect,
    add_material,
    clear_materials,
    get_material_count,
)
from lucent.materials.emissive import blackbody_effects, glowing_effects
from lucent.materials.lambertian import lambertian_effects
from lucent.materials.metal import metal_effects
from lucent.materials.phong import phong_effects
from lucent.materials.translucent import translucent_effects
from lucent.scene.intersection import (
    MAX_OBJECTS,
    ShapeKind,
    add_cube,
    add_disc,
    add_plane,
    add_quad,
    add_sphere,
    clear_scene,
    get_background,
    get_object_count,
    set_background,
)

logger = logging.getLogger(__name__)

Vec3 = tuple[float, float, float]

# Constructor arguments of each serialized shape, in add_* order
_SHAPE_KEYS = {
    "sphere": ("center", "radius"),
    "plane": ("normal", "distance"),
    "disc": ("center", "normal", "radius"),
    "quad": ("corner", "edge_u", "edge_v"),
    "cube": ("center", "size"),
}


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The material id used by objects and kernels.
        name: A label for the material (the preset name by default).
        effects: The effects the material was registered with.
        params: The preset parameters as provided during creation.
    """

    material_id: int
    name: str
    effects: tuple[Effect, ...]
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class ObjectInfo:
    """Information about an object in the scene.

    Attributes:
        object_id: The object's insertion index.
        shape: The kind of shape.
        params: The shape parameters as provided during creation.
        material_id: The material id assigned to the object.
    """

    object_id: int
    shape: ShapeKind
    params: dict[str, Any]
    material_id: int


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        background: Background radiance.
        materials: List of material configurations.
        objects: List of object configurations.
    """

    background: list[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    materials: list[dict[str, Any]] = field(default_factory=list)
    objects: list[dict[str, Any]] = field(default_factory=list)


def _as_list(value: Sequence[float]) -> list[float]:
    return [float(value[0]), float(value[1]), float(value[2])]


class SceneManager:
    """Scene builder coordinating objects and materials.

    The scene data lives in module-level Taichi fields, so one SceneManager
    owns the scene at a time; creating a manager or calling clear() resets
    it.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        objects: List of ObjectInfo for all objects in the scene.

    Example:
        >>> scene = SceneManager()
        >>> red_diffuse = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold_metal = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), roughness=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, red_diffuse)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold_metal)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.objects: list[ObjectInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_materials()
        self.materials.clear()
        self.objects.clear()

    def clear(self) -> None:
        """Clear the entire scene (objects, materials and background)."""
        self._clear_all()
        logger.debug("Scene cleared")

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(
        self,
        effects: Iterable[Effect],
        name: str = "custom",
        params: dict[str, Any] | None = None,
    ) -> int:
        """Register a material from a list of effects.

        Args:
            effects: The material's effects.
            name: A label stored with the material.
            params: Preset parameters to remember for this material.

        Returns:
            The material id for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
        """
        effects = tuple(effects)
        material_id = add_material(effects)
        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                name=name,
                effects=effects,
                params=dict(params or {}),
            )
        )
        logger.debug("Added material %d (%s) with %d effects", material_id, name, len(effects))
        return material_id

    def add_lambertian_material(self, albedo: Sequence[float]) -> int:
        """Add a Lambertian (diffuse) material.

        Raises:
            ValueError: If any albedo component is outside [0, 1].
        """
        return self.add_material(
            lambertian_effects(albedo), "lambertian", {"albedo": _as_list(albedo)}
        )

    def add_metal_material(self, albedo: Sequence[float], roughness: float = 0.0) -> int:
        """Add a metal (specular reflective) material.

        Raises:
            ValueError: If any albedo component or roughness is outside [0, 1].
        """
        return self.add_material(
            metal_effects(albedo, roughness),
            "metal",
            {"albedo": _as_list(albedo), "roughness": float(roughness)},
        )

    def add_dielectric_material(
        self,
        ior: float = 1.5,
        tint: Sequence[float] = (1.0, 1.0, 1.0),
        outside_ior: float = 1.0,
    ) -> int:
        """Add a dielectric (glass/water) material.

        Raises:
            ValueError: If an index of refraction is not positive.
        """
        return self.add_material(
            dielectric_effects(ior, tint, outside_ior),
            "dielectric",
            {"ior": float(ior), "tint": _as_list(tint), "outside_ior": float(outside_ior)},
        )

    def add_emissive_material(self, radiance: Sequence[float], intensity: float = 1.0) -> int:
        """Add a pure emitter.

        Raises:
            ValueError: If radiance or intensity is negative.
        """
        return self.add_material(
            blackbody_effects(radiance, intensity),
            "emissive",
            {"radiance": _as_list(radiance), "intensity": float(intensity)},
        )

    def add_glowing_material(
        self,
        albedo: Sequence[float],
        glow_color: Sequence[float],
        glow_intensity: float,
    ) -> int:
        """Add a material that both glows and reflects diffusely.

        Raises:
            ValueError: If albedo is outside [0, 1] or the glow is negative.
        """
        return self.add_material(
            glowing_effects(albedo, glow_color, glow_intensity),
            "glowing",
            {
                "albedo": _as_list(albedo),
                "glow_color": _as_list(glow_color),
                "glow_intensity": float(glow_intensity),
            },
        )

    def add_phong_material(
        self,
        emission: Sequence[float] = (0.0, 0.0, 0.0),
        diffuse: Sequence[float] = (0.0, 0.0, 0.0),
        specular: Sequence[float] = (0.0, 0.0, 0.0),
        shininess: float = 0.0,
    ) -> int:
        """Add a Phong material (emission, diffuse and glossy specular)."""
        return self.add_material(
            phong_effects(emission, diffuse, specular, shininess),
            "phong",
            {
                "emission": _as_list(emission),
                "diffuse": _as_list(diffuse),
                "specular": _as_list(specular),
                "shininess": float(shininess),
            },
        )

    def add_translucent_material(
        self,
        transmittance: Sequence[float],
        reflectance: Sequence[float] = (0.0, 0.0, 0.0),
    ) -> int:
        """Add a translucent (diffuse transmission) material."""
        return self.add_material(
            translucent_effects(transmittance, reflectance),
            "translucent",
            {"transmittance": _as_list(transmittance), "reflectance": _as_list(reflectance)},
        )

    def get_material_count(self) -> int:
        """Get the number of materials in the scene."""
        return get_material_count()

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material.

        Returns:
            MaterialInfo for the material, or None if the id is invalid.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def _check_material(self, material_id: int) -> None:
        if not 0 <= material_id < get_material_count():
            raise ValueError(f"Invalid material_id: {material_id}")

    # =========================================================================
    # Object Management
    # =========================================================================

    def _track(
        self,
        object_id: int,
        shape: ShapeKind,
        params: dict[str, Any],
        material_id: int,
        transform=None,
    ) -> int:
        if transform is not None:
            params["transform"] = np.asarray(transform, dtype=np.float64).tolist()
        self.objects.append(
            ObjectInfo(object_id=object_id, shape=shape, params=params, material_id=material_id)
        )
        logger.debug(
            "Added %s object %d with material %d", shape.name.lower(), object_id, material_id
        )
        return object_id

    def add_sphere(
        self, center: Sequence[float], radius: float, material_id: int, transform=None
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center of the sphere as (x, y, z).
            radius: The radius of the sphere.
            material_id: The material id to assign.
            transform: Optional 4x4 affine object-to-world matrix (see
                lucent.core.transform); a non-uniform scale makes an ellipsoid.

        Returns:
            The object id of the sphere.

        Raises:
            ValueError: If material_id is invalid, radius is not positive or
                transform is not an invertible affine matrix.
            RuntimeError: If the scene capacity is exceeded.
        """
        self._check_material(material_id)
        object_id = add_sphere(center, radius, material_id, transform)
        return self._track(
            object_id,
            ShapeKind.SPHERE,
            {"center": _as_list(center), "radius": float(radius)},
            material_id,
            transform,
        )

    def add_plane(
        self, normal: Sequence[float], distance: float, material_id: int, transform=None
    ) -> int:
        """Add an infinite plane dot(normal, p) == distance.

        Raises:
            ValueError: If material_id is invalid or normal is zero.
        """
        self._check_material(material_id)
        object_id = add_plane(normal, distance, material_id, transform)
        return self._track(
            object_id,
            ShapeKind.PLANE,
            {"normal": _as_list(normal), "distance": float(distance)},
            material_id,
            transform,
        )

    def add_disc(
        self,
        center: Sequence[float],
        normal: Sequence[float],
        radius: float,
        material_id: int,
        transform=None,
    ) -> int:
        """Add a flat disc.

        Raises:
            ValueError: If material_id is invalid, normal is zero or radius
                is not positive.
        """
        self._check_material(material_id)
        object_id = add_disc(center, normal, radius, material_id, transform)
        return self._track(
            object_id,
            ShapeKind.DISC,
            {"center": _as_list(center), "normal": _as_list(normal), "radius": float(radius)},
            material_id,
            transform,
        )

    def add_quad(
        self,
        corner: Sequence[float],
        edge_u: Sequence[float],
        edge_v: Sequence[float],
        material_id: int,
        transform=None,
    ) -> int:
        """Add a quad (parallelogram) to the scene.

        Args:
            corner: The corner point (Q) of the quad.
            edge_u: First edge vector from corner.
            edge_v: Second edge vector from corner.
            material_id: The material id to assign.
            transform: Optional 4x4 affine object-to-world matrix.

        Returns:
            The object id of the quad.

        Raises:
            ValueError: If material_id is invalid or the edges are parallel.
        """
        self._check_material(material_id)
        object_id = add_quad(corner, edge_u, edge_v, material_id, transform)
        return self._track(
            object_id,
            ShapeKind.QUAD,
            {"corner": _as_list(corner), "edge_u": _as_list(edge_u), "edge_v": _as_list(edge_v)},
            material_id,
            transform,
        )

    def add_cube(
        self, center: Sequence[float], size: Sequence[float], material_id: int, transform=None
    ) -> int:
        """Add a cube with full edge lengths size, axis-aligned unless transformed.

        Raises:
            ValueError: If material_id is invalid or a size component is not positive.
        """
        self._check_material(material_id)
        object_id = add_cube(center, size, material_id, transform)
        return self._track(
            object_id,
            ShapeKind.CUBE,
            {"center": _as_list(center), "size": _as_list(size)},
            material_id,
            transform,
        )

    def get_object_count(self) -> int:
        """Get the number of objects in the scene."""
        return get_object_count()

    def get_object_info(self, object_id: int) -> ObjectInfo | None:
        if 0 <= object_id < len(self.objects):
            return self.objects[object_id]
        return None

    # =========================================================================
    # Background
    # =========================================================================

    def set_background(self, radiance: Sequence[float]) -> None:
        """Set the radiance returned for rays that escape the scene.

        Raises:
            ValueError: If any component is negative.
        """
        set_background(radiance)

    def get_background(self) -> Vec3:
        return get_background()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig(background=list(self.get_background()))

        for mat in self.materials:
            config.materials.append(
                {
                    "name": mat.name,
                    "effects": [effect.to_dict() for effect in mat.effects],
                }
            )

        for obj in self.objects:
            config.objects.append(
                {
                    "shape": obj.shape.name.lower(),
                    **obj.params,
                    "material_id": obj.material_id,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Replaces the current scene. If any entry is invalid the previous
        scene is restored before the error propagates.

        Raises:
            ValueError: If the configuration contains invalid data.
            RuntimeError: If the configuration exceeds scene capacity.
        """
        previous = self.to_config()
        previous_materials = list(self.materials)
        try:
            self._load_config(config)
        except Exception:
            self._load_config(previous)
            self.materials = previous_materials
            raise

        logger.debug(
            "Loaded scene with %d materials and %d objects",
            len(self.materials),
            len(self.objects),
        )

    def _load_config(self, config: SceneConfig) -> None:
        self.clear()
        self.set_background(config.background)

        # Materials first, objects refer to them by id
        for mat_config in config.materials:
            effects = [Effect.from_dict(e) for e in mat_config.get("effects", [])]
            self.add_material(effects, mat_config.get("name", "custom"))

        for obj_config in config.objects:
            shape = str(obj_config.get("shape", "")).lower()
            if shape not in _SHAPE_KEYS:
                raise ValueError(f"Unknown shape type: {shape}")
            for key in _SHAPE_KEYS[shape] + ("material_id",):
                if key not in obj_config:
                    raise ValueError(f"Object of shape '{shape}' is missing '{key}'")
            add_object = getattr(self, f"add_{shape}")
            add_object(
                *(obj_config[key] for key in _SHAPE_KEYS[shape]),
                int(obj_config["material_id"]),
                transform=obj_config.get("transform"),
            )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "background": config.background,
            "materials": config.materials,
            "objects": config.objects,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with 'background', 'materials' and 'objects' keys.
        """
        config = SceneConfig(
            background=data.get("background", [0.0, 0.0, 0.0]),
            materials=data.get("materials", []),
            objects=data.get("objects", []),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_objects() -> int:
        """Get the maximum number of objects supported."""
        return MAX_OBJECTS

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
