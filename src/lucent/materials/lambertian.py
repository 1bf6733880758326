"""Lambertian (ideal diffuse) material preset.

A Lambertian surface scatters incoming light equally in all directions
(perceived brightness is independent of viewing angle). It is a single
cosine-weighted DIFFUSE_REFLECTION effect:

    f(wi, wo) = albedo / pi
    pdf(wo) = cos(theta) / pi

so each sampled bounce carries exactly the albedo.

Example:
    >>> mat_id = add_lambertian_material((0.8, 0.3, 0.3))
"""

from collections.abc import Sequence

from lucent.core.distribution import Distribution
from lucent.core.spectrum import validate_albedo
from lucent.materials.effects import Effect, add_material


def lambertian_effects(albedo: Sequence[float]) -> list[Effect]:
    """Effects of a Lambertian surface.

    Args:
        albedo: The diffuse reflectance color as (R, G, B).
            Each component must be in [0, 1] for energy conservation.

    Raises:
        ValueError: If any albedo component is outside [0, 1].
    """
    return [Effect.diffuse_reflection(validate_albedo(albedo), Distribution.cosine())]


def add_lambertian_material(albedo: Sequence[float]) -> int:
    """Register a Lambertian material and return its material id."""
    return add_material(lambertian_effects(albedo))
