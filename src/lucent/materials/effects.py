"""Effects and the material registry.

A material is an ordered list of effects, each describing one way a surface
responds to light:

    EMISSION             adds radiance regardless of incoming light
    DIFFUSE_REFLECTION   scatters back around the surface normal
    SPECULAR_REFLECTION  scatters around the mirror direction
    DIFFUSE_REFRACTION   transmits around the negated normal
    SPECULAR_REFRACTION  transmits around the Snell direction, falling back
                         to the mirror direction past the critical angle

Every effect carries a Distribution (the lobe shape around its axis) and a
color: radiance for emission, albedo for the scattering effects. Specular
refraction also carries the indices of refraction inside and outside the
surface.

Effects are described on the host by the frozen Effect dataclass and stored
for kernels in a flat table. Each registered material owns a contiguous run
of that table, located by material_first_effect and material_effect_count.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from lucent.core.distribution import Distribution
from lucent.core.spectrum import (
    Color,
    validate_albedo,
    validate_ior,
    validate_radiance,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3


class EffectKind(IntEnum):
    """Enumeration of surface effects."""

    EMISSION = 0
    DIFFUSE_REFLECTION = 1
    SPECULAR_REFLECTION = 2
    DIFFUSE_REFRACTION = 3
    SPECULAR_REFRACTION = 4


@dataclass(frozen=True)
class Effect:
    """Host-side description of one surface effect.

    Attributes:
        kind: Which effect this is.
        color: Radiance for EMISSION, albedo for every other kind.
        distribution: Lobe shape around the effect's axis.
        ior: Index of refraction inside the surface (SPECULAR_REFRACTION).
        outside_ior: Index of refraction outside the surface.
    """

    kind: EffectKind
    color: Color
    distribution: Distribution = field(default_factory=Distribution.cosine)
    ior: float = 1.0
    outside_ior: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", EffectKind(self.kind))
        if self.kind == EffectKind.EMISSION:
            color = validate_radiance(self.color)
        else:
            color = validate_albedo(self.color)
        object.__setattr__(self, "color", color)
        object.__setattr__(self, "ior", validate_ior(self.ior))
        outside_ior = validate_ior(self.outside_ior, "Outside index of refraction")
        object.__setattr__(self, "outside_ior", outside_ior)

    @classmethod
    def emission(
        cls, radiance: Sequence[float], distribution: Distribution | None = None
    ) -> "Effect":
        """Emit radiance, as a Lambertian emitter unless told otherwise."""
        return cls(EffectKind.EMISSION, radiance, distribution or Distribution.cosine())

    @classmethod
    def diffuse_reflection(
        cls, albedo: Sequence[float], distribution: Distribution | None = None
    ) -> "Effect":
        return cls(EffectKind.DIFFUSE_REFLECTION, albedo, distribution or Distribution.cosine())

    @classmethod
    def specular_reflection(
        cls, albedo: Sequence[float], distribution: Distribution | None = None
    ) -> "Effect":
        return cls(EffectKind.SPECULAR_REFLECTION, albedo, distribution or Distribution.dirac())

    @classmethod
    def diffuse_refraction(
        cls, albedo: Sequence[float], distribution: Distribution | None = None
    ) -> "Effect":
        return cls(EffectKind.DIFFUSE_REFRACTION, albedo, distribution or Distribution.cosine())

    @classmethod
    def specular_refraction(
        cls,
        albedo: Sequence[float],
        ior: float,
        outside_ior: float = 1.0,
        distribution: Distribution | None = None,
    ) -> "Effect":
        return cls(
            EffectKind.SPECULAR_REFRACTION,
            albedo,
            distribution or Distribution.dirac(),
            ior=ior,
            outside_ior=outside_ior,
        )

    @property
    def is_emission(self) -> bool:
        return self.kind == EffectKind.EMISSION

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "kind": self.kind.name.lower(),
            "color": list(self.color),
            "distribution": self.distribution.to_dict(),
        }
        if self.kind == EffectKind.SPECULAR_REFRACTION:
            data["ior"] = self.ior
            data["outside_ior"] = self.outside_ior
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Effect":
        """Rebuild an Effect from to_dict output.

        Raises:
            ValueError: If the effect kind is unknown or a value is invalid.
        """
        name = str(data.get("kind", "")).upper()
        if name not in EffectKind.__members__:
            raise ValueError(f"Unknown effect kind: {data.get('kind')}")
        if "color" not in data:
            raise ValueError(f"Effect {data['kind']!r} is missing 'color'")
        return cls(
            EffectKind[name],
            tuple(data["color"]),
            Distribution.from_dict(data.get("distribution", {})),
            ior=float(data.get("ior", 1.0)),
            outside_ior=float(data.get("outside_ior", 1.0)),
        )


# =============================================================================
# Effect and material field storage
# =============================================================================

# Capacity limits
MAX_EFFECTS = 4096
MAX_MATERIALS = 1024

# Flat effect table
effect_kinds = ti.field(dtype=ti.i32, shape=MAX_EFFECTS)
effect_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_EFFECTS)
effect_distribution_kinds = ti.field(dtype=ti.i32, shape=MAX_EFFECTS)
effect_exponents = ti.field(dtype=ti.f32, shape=MAX_EFFECTS)
effect_iors = ti.field(dtype=ti.f32, shape=MAX_EFFECTS)
effect_outside_iors = ti.field(dtype=ti.f32, shape=MAX_EFFECTS)
num_effects = ti.field(dtype=ti.i32, shape=())

# material_first_effect[m] .. + material_effect_count[m] is material m's run
material_first_effect = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_effect_count = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())

# Host mirror of registered effects, indexed by material id
_registered: list[tuple[Effect, ...]] = []


def clear_materials() -> None:
    """Clear all materials and their effects.

    Resets the counts to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_effects[None] = 0
    num_materials[None] = 0
    _registered.clear()


def add_material(effects: Iterable[Effect]) -> int:
    """Register a material made of the given effects.

    An empty effect list is allowed and describes a black, non-emitting
    absorber.

    Args:
        effects: The material's effects, in order.

    Returns:
        The id of the new material.

    Raises:
        TypeError: If an entry is not an Effect.
        RuntimeError: If the material or effect capacity is exceeded.
    """
    effects = tuple(effects)
    for effect in effects:
        if not isinstance(effect, Effect):
            raise TypeError(f"Expected Effect, got {type(effect).__name__}")

    material_id = num_materials[None]
    if material_id >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")
    first = num_effects[None]
    if first + len(effects) > MAX_EFFECTS:
        raise RuntimeError(f"Maximum number of effects ({MAX_EFFECTS}) exceeded")

    for offset, effect in enumerate(effects):
        idx = first + offset
        effect_kinds[idx] = int(effect.kind)
        effect_colors[idx] = vec3(*effect.color)
        effect_distribution_kinds[idx] = int(effect.distribution.kind)
        effect_exponents[idx] = effect.distribution.exponent
        effect_iors[idx] = effect.ior
        effect_outside_iors[idx] = effect.outside_ior

    material_first_effect[material_id] = first
    material_effect_count[material_id] = len(effects)
    num_effects[None] = first + len(effects)
    num_materials[None] = material_id + 1
    _registered.append(effects)

    logger.debug(
        "Registered material %d with effects %s",
        material_id,
        [effect.kind.name for effect in effects],
    )
    return material_id


def get_material_count() -> int:
    """Get the number of registered materials."""
    return int(num_materials[None])


def get_effect_count() -> int:
    """Get the total number of effects across all materials."""
    return int(num_effects[None])


def get_material_effects(material_id: int) -> tuple[Effect, ...]:
    """Get the effects a material was registered with.

    Raises:
        IndexError: If material_id is not a registered material.
    """
    if not 0 <= material_id < len(_registered):
        raise IndexError(f"Invalid material_id: {material_id}")
    return _registered[material_id]


def is_valid_material(material_id: int) -> bool:
    return 0 <= material_id < get_material_count()


@ti.func
def material_is_registered(material_id: ti.i32) -> ti.i32:
    """Check a material id against the registry inside a kernel."""
    return 1 if 0 <= material_id < num_materials[None] else 0
