"""Translucent material preset.

Frosted glass, paper and thin fabric let light through but scatter it. A
translucent surface is a cosine-weighted DIFFUSE_REFRACTION effect: light is
transmitted into the hemisphere on the far side of the surface, optionally
alongside a diffuse reflection on the near side.
"""

from collections.abc import Sequence

from lucent.core.distribution import Distribution
from lucent.core.spectrum import validate_albedo
from lucent.materials.effects import Effect, add_material


def translucent_effects(
    transmittance: Sequence[float],
    reflectance: Sequence[float] = (0.0, 0.0, 0.0),
) -> list[Effect]:
    """Effects of a translucent surface.

    Args:
        transmittance: Albedo of the light passing through.
        reflectance: Albedo of the light scattered back. Omitted when black.

    Raises:
        ValueError: If either albedo is outside [0, 1].
    """
    transmittance = validate_albedo(transmittance)
    reflectance = validate_albedo(reflectance)
    effects = [Effect.diffuse_refraction(transmittance, Distribution.cosine())]
    if any(c > 0.0 for c in reflectance):
        effects.append(Effect.diffuse_reflection(reflectance, Distribution.cosine()))
    return effects


def add_translucent_material(
    transmittance: Sequence[float],
    reflectance: Sequence[float] = (0.0, 0.0, 0.0),
) -> int:
    """Register a translucent material and return its material id."""
    return add_material(translucent_effects(transmittance, reflectance))
