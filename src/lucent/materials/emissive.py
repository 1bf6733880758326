"""Emissive material presets.

A blackbody is a pure emitter: one cosine-profile EMISSION effect (constant
radiance from every viewing angle) and no scattering, so paths end at it.

A glowing surface adds a diffuse reflection underneath the emission, like a
phosphorescent paint that both glows and reflects light falling on it.
"""

from collections.abc import Sequence

from lucent.core.distribution import Distribution
from lucent.core.spectrum import validate_albedo, validate_radiance
from lucent.materials.effects import Effect, add_material


def blackbody_effects(radiance: Sequence[float], intensity: float = 1.0) -> list[Effect]:
    """Effects of a pure emitter.

    Args:
        radiance: The emitted color as (R, G, B). Values can exceed 1.0.
        intensity: Scale applied to radiance. Must be non-negative.

    Raises:
        ValueError: If radiance has a negative component or intensity is negative.
    """
    if intensity < 0.0:
        raise ValueError(f"Emission intensity = {intensity} is negative.")
    radiance = validate_radiance(radiance)
    scaled = tuple(c * intensity for c in radiance)
    return [Effect.emission(scaled, Distribution.cosine())]


def glowing_effects(
    albedo: Sequence[float],
    glow_color: Sequence[float],
    glow_intensity: float,
) -> list[Effect]:
    """Effects of a surface that emits and also reflects diffusely.

    Raises:
        ValueError: If any albedo component is outside [0, 1].
        ValueError: If glow_color has a negative component or glow_intensity
            is negative.
    """
    albedo = validate_albedo(albedo)
    return blackbody_effects(glow_color, glow_intensity) + [
        Effect.diffuse_reflection(albedo, Distribution.cosine())
    ]


def add_emissive_material(radiance: Sequence[float], intensity: float = 1.0) -> int:
    """Register a blackbody emitter and return its material id."""
    return add_material(blackbody_effects(radiance, intensity))


def add_glowing_material(
    albedo: Sequence[float],
    glow_color: Sequence[float],
    glow_intensity: float,
) -> int:
    """Register a glowing diffuse material and return its material id."""
    return add_material(glowing_effects(albedo, glow_color, glow_intensity))
