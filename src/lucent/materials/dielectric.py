"""Dielectric (glass/water) material preset.

Dielectrics both reflect and refract. The preset splits the surface into two
effects:

    SPECULAR_REFLECTION  albedo = tint * R0
    SPECULAR_REFRACTION  albedo = tint * (1 - R0)

where R0 is Schlick's reflectance at normal incidence,

    R0 = ((n_outside - n) / (n_outside + n))^2

Effect selection picks between them in proportion to those albedos, so a
clear glass sphere reflects about 4% of the paths that hit it and refracts
the rest. Snell's law and total internal reflection are handled by the
SPECULAR_REFRACTION effect itself.

Common indices of refraction: Air 1.0, Water 1.33, Glass 1.5, Diamond 2.4.
"""

from collections.abc import Sequence

from lucent.core.distribution import Distribution
from lucent.core.spectrum import validate_albedo, validate_ior
from lucent.materials.effects import Effect, add_material


def schlick_r0(ior: float, outside_ior: float = 1.0) -> float:
    """Fresnel reflectance at normal incidence between two media."""
    r0 = (outside_ior - ior) / (outside_ior + ior)
    return r0 * r0


def dielectric_effects(
    ior: float = 1.5,
    tint: Sequence[float] = (1.0, 1.0, 1.0),
    outside_ior: float = 1.0,
) -> list[Effect]:
    """Effects of a smooth dielectric interface.

    Args:
        ior: Index of refraction inside the surface. Default is 1.5 (glass).
        tint: Color filter applied to both reflected and transmitted light.
        outside_ior: Index of refraction outside the surface.

    Raises:
        ValueError: If an index of refraction is not positive or the tint
            is outside [0, 1].
    """
    ior = validate_ior(ior)
    outside_ior = validate_ior(outside_ior, "Outside index of refraction")
    tint = validate_albedo(tint)

    r0 = schlick_r0(ior, outside_ior)
    reflected = tuple(c * r0 for c in tint)
    transmitted = tuple(c * (1.0 - r0) for c in tint)

    return [
        Effect.specular_reflection(reflected, Distribution.dirac()),
        Effect.specular_refraction(transmitted, ior, outside_ior, Distribution.dirac()),
    ]


def add_dielectric_material(
    ior: float = 1.5,
    tint: Sequence[float] = (1.0, 1.0, 1.0),
    outside_ior: float = 1.0,
) -> int:
    """Register a dielectric material and return its material id."""
    return add_material(dielectric_effects(ior, tint, outside_ior))
