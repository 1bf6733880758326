"""Surface response evaluation for a single intersection.

shade() turns a material id and an intersection into a Bsdf: a view onto the
material's run of the effect table plus the local facts (normal, side of the
surface) that scattering depends on. A Bsdf is built fresh for every
intersection and never cached.

The path tracer uses a Bsdf in two steps:

1. emitted_radiance() sums every EMISSION effect. Emission is always added
   in full and is never chosen for continuation.
2. select_effect() picks one scattering effect with probability proportional
   to the largest channel of its albedo, and scatter_effect() samples a
   direction from that effect's lobe. The sampled direction carries weight
   albedo / probability, so the expected contribution equals the sum over
   all scattering effects.

Lobe axes:
    DIFFUSE_REFLECTION   the normal on the incident side
    SPECULAR_REFLECTION  reflect(incident, normal)
    DIFFUSE_REFRACTION   the normal on the far side
    SPECULAR_REFRACTION  the Snell refraction of incident, or the mirror
                         direction under total internal reflection

A sample that lands on the wrong side of the surface for its effect (for
example a wide glossy lobe dipping below the horizon) is invalid and carries
no light.
"""

import taichi as ti
import taichi.math as tm

from lucent.core.distribution import emission_profile, pdf_around, sample_around
from lucent.core.ray import Intersection, reflect, refract
from lucent.core.rng import next_float
from lucent.core.spectrum import max_component
from lucent.materials.effects import (
    EffectKind,
    effect_colors,
    effect_distribution_kinds,
    effect_exponents,
    effect_iors,
    effect_kinds,
    effect_outside_iors,
    material_effect_count,
    material_first_effect,
    material_is_registered,
)

vec3 = tm.vec3

# Selection probabilities at or below this end the path
MIN_SELECTION_PROBABILITY = 1e-6


@ti.dataclass
class Bsdf:
    """Surface response at one intersection.

    Attributes:
        first_effect: Index of the material's first effect in the effect table.
        num_effects: Number of effects the material has (0 for an absorber).
        entering: 1 if the incident ray arrived from outside the surface.
        normal: Unit normal facing the side the incident ray came from.
    """

    first_effect: ti.i32
    num_effects: ti.i32
    entering: ti.i32
    normal: vec3


@ti.func
def shade(material_id: ti.i32, isect: Intersection) -> Bsdf:
    """Build the Bsdf of a material at an intersection.

    Unknown material ids shade as a black absorber.
    """
    first = 0
    count = 0
    if material_is_registered(material_id) == 1:
        first = material_first_effect[material_id]
        count = material_effect_count[material_id]
    return Bsdf(first_effect=first, num_effects=count, entering=isect.entering, normal=isect.normal)


@ti.func
def is_transmissive(kind: ti.i32) -> ti.i32:
    """Whether an effect sends light through the surface."""
    result = 0
    if kind == int(EffectKind.DIFFUSE_REFRACTION) or kind == int(EffectKind.SPECULAR_REFRACTION):
        result = 1
    return result


@ti.func
def emitted_radiance(bsdf: Bsdf, cos_view: ti.f32) -> vec3:
    """Total radiance emitted toward a viewer.

    Args:
        bsdf: The surface response.
        cos_view: Cosine between the normal and the direction to the viewer.

    Returns:
        The sum of every EMISSION effect scaled by its emission profile.
    """
    total = vec3(0.0, 0.0, 0.0)
    for k in range(bsdf.num_effects):
        idx = bsdf.first_effect + k
        if effect_kinds[idx] == int(EffectKind.EMISSION):
            profile = emission_profile(
                effect_distribution_kinds[idx], effect_exponents[idx], cos_view
            )
            total += effect_colors[idx] * profile
    return total


@ti.func
def select_effect(bsdf: Bsdf, state: ti.u32):
    """Choose one scattering effect to continue the path with.

    Effects are weighted by the largest channel of their albedo; emission
    and black effects are never chosen.

    Returns:
        A tuple of (effect_index, probability, state). effect_index is -1
        and probability 0 when the surface does not scatter.
    """
    total = 0.0
    for k in range(bsdf.num_effects):
        idx = bsdf.first_effect + k
        if effect_kinds[idx] != int(EffectKind.EMISSION):
            total += max_component(effect_colors[idx])

    chosen = -1
    probability = 0.0

    if total > 0.0:
        u, state = next_float(state)
        target = u * total
        running = 0.0
        last = -1
        last_weight = 0.0
        for k in range(bsdf.num_effects):
            idx = bsdf.first_effect + k
            if effect_kinds[idx] != int(EffectKind.EMISSION):
                weight = max_component(effect_colors[idx])
                if weight > 0.0:
                    running += weight
                    last = idx
                    last_weight = weight
                    if chosen == -1 and target < running:
                        chosen = idx
                        probability = weight / total
        # Rounding can leave target just above the final running sum
        if chosen == -1:
            chosen = last
            probability = last_weight / total

    return chosen, probability, state


@ti.func
def effect_axis(effect_idx: ti.i32, incident: vec3, bsdf: Bsdf):
    """Center of an effect's lobe and the side of the surface it serves.

    Args:
        effect_idx: Index into the effect table.
        incident: The incoming ray direction (normalized).
        bsdf: The surface response.

    Returns:
        A tuple of (axis, transmits) where transmits is 1 when outgoing
        directions must lie on the far side of the surface.
    """
    kind = effect_kinds[effect_idx]
    n = bsdf.normal
    axis = n
    transmits = 0

    if kind == int(EffectKind.SPECULAR_REFLECTION):
        axis = reflect(incident, n)
    elif kind == int(EffectKind.DIFFUSE_REFRACTION):
        axis = -n
        transmits = 1
    elif kind == int(EffectKind.SPECULAR_REFRACTION):
        # eta = n_from / n_to
        eta = effect_outside_iors[effect_idx] / effect_iors[effect_idx]
        if bsdf.entering == 0:
            eta = effect_iors[effect_idx] / effect_outside_iors[effect_idx]
        refracted, tir = refract(incident, n, eta)
        if tir == 1:
            axis = tm.normalize(reflect(incident, n))
        else:
            axis = refracted
            transmits = 1

    return axis, transmits


@ti.func
def scatter_effect(effect_idx: ti.i32, incident: vec3, bsdf: Bsdf, state: ti.u32):
    """Sample an outgoing direction from one effect's lobe.

    Args:
        effect_idx: Index into the effect table, as returned by select_effect.
        incident: The incoming ray direction (normalized).
        bsdf: The surface response.
        state: The path's RNG state.

    Returns:
        A tuple of (direction, albedo, valid, state). valid is 0 when the
        sample fell on the wrong side of the surface for the effect.
    """
    axis, transmits = effect_axis(effect_idx, incident, bsdf)
    direction, pdf, state = sample_around(
        axis, effect_distribution_kinds[effect_idx], effect_exponents[effect_idx], state
    )

    side = tm.dot(direction, bsdf.normal)
    valid = 0
    if pdf > 0.0:
        if transmits == 1 and side < 0.0:
            valid = 1
        elif transmits == 0 and side > 0.0:
            valid = 1

    return direction, effect_colors[effect_idx], valid, state


@ti.func
def effect_pdf(effect_idx: ti.i32, incident: vec3, bsdf: Bsdf, direction: vec3) -> ti.f32:
    """Density with which scatter_effect would produce a given direction.

    Delta lobes report 0, since no finite density describes them.
    """
    axis, transmits = effect_axis(effect_idx, incident, bsdf)
    pdf = pdf_around(
        axis, effect_distribution_kinds[effect_idx], effect_exponents[effect_idx], direction
    )
    side = tm.dot(direction, bsdf.normal)
    if (transmits == 1 and side >= 0.0) or (transmits == 0 and side <= 0.0):
        pdf = 0.0
    return pdf
