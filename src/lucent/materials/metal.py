"""Metal (specular reflective) material preset.

Metals reflect light around the mirror direction

    R = I - 2(I . N)N

tinted by their albedo. A roughness of 0 is a perfect mirror (a DIRAC lobe,
so the reflection is exact and noise-free). Rougher metals widen the lobe
into a Phong cosine power around R, with the exponent derived from roughness
the usual way:

    exponent = 2 / roughness^2 - 2

which is very sharp for small roughness and falls to 0 (uniform over the
hemisphere around R) at roughness 1.
"""

from collections.abc import Sequence

from lucent.core.distribution import Distribution
from lucent.core.spectrum import validate_albedo
from lucent.materials.effects import Effect, add_material


def roughness_to_exponent(roughness: float) -> float:
    """Phong exponent of the lobe for a roughness in (0, 1]."""
    return 2.0 / (roughness * roughness) - 2.0


def metal_effects(albedo: Sequence[float], roughness: float = 0.0) -> list[Effect]:
    """Effects of a metal surface.

    Args:
        albedo: The reflective color as (R, G, B). Each component must be in [0, 1].
        roughness: The surface roughness in [0, 1]. Default is 0 (perfect mirror).

    Raises:
        ValueError: If any albedo component is outside [0, 1].
        ValueError: If roughness is outside [0, 1].
    """
    albedo = validate_albedo(albedo)
    roughness = float(roughness)
    if not 0.0 <= roughness <= 1.0:
        raise ValueError(
            f"Roughness = {roughness} is outside [0, 1]. "
            "Roughness must be between 0 (perfect mirror) and 1 (maximum fuzz)."
        )

    if roughness == 0.0:
        distribution = Distribution.dirac()
    else:
        distribution = Distribution.cosine_exp(roughness_to_exponent(roughness))
    return [Effect.specular_reflection(albedo, distribution)]


def add_metal_material(albedo: Sequence[float], roughness: float = 0.0) -> int:
    """Register a metal material and return its material id."""
    return add_material(metal_effects(albedo, roughness))
