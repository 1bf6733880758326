"""Phong material preset: emission, diffuse and glossy specular combined.

Each component that is not black becomes one effect:

    emission  -> EMISSION (cosine profile)
    diffuse   -> DIFFUSE_REFLECTION (cosine lobe around the normal)
    specular  -> SPECULAR_REFLECTION (cos^shininess lobe around the mirror
                 direction)

The diffuse and specular albedos are chosen between per bounce, so their sum
should stay at or below 1 per channel for a surface that does not gain
energy.
"""

from collections.abc import Sequence

from lucent.core.distribution import Distribution
from lucent.core.spectrum import validate_albedo, validate_radiance
from lucent.materials.effects import Effect, add_material

_BLACK = (0.0, 0.0, 0.0)


def phong_effects(
    emission: Sequence[float] = _BLACK,
    diffuse: Sequence[float] = _BLACK,
    specular: Sequence[float] = _BLACK,
    shininess: float = 0.0,
) -> list[Effect]:
    """Effects of a Phong surface; black components are omitted.

    Raises:
        ValueError: If a color is invalid or shininess is negative.
    """
    emission = validate_radiance(emission)
    diffuse = validate_albedo(diffuse)
    specular = validate_albedo(specular)
    if shininess < 0.0:
        raise ValueError(f"Shininess = {shininess} is negative.")

    effects = []
    if emission != _BLACK:
        effects.append(Effect.emission(emission, Distribution.cosine()))
    if diffuse != _BLACK:
        effects.append(Effect.diffuse_reflection(diffuse, Distribution.cosine()))
    if specular != _BLACK:
        effects.append(
            Effect.specular_reflection(specular, Distribution.cosine_exp(shininess))
        )
    return effects


def add_phong_material(
    emission: Sequence[float] = _BLACK,
    diffuse: Sequence[float] = _BLACK,
    specular: Sequence[float] = _BLACK,
    shininess: float = 0.0,
) -> int:
    """Register a Phong material and return its material id."""
    return add_material(phong_effects(emission, diffuse, specular, shininess))
