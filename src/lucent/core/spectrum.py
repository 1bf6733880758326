"""Radiance and albedo helpers.

Radiance and albedo are both RGB triples stored in a vec3. Radiance channels
are non-negative and unbounded; albedo channels are reflectance factors in
[0, 1], so multiplying radiance by an albedo never amplifies or negates it.

Device-side helpers are Taichi functions; the validators run on the host
when materials and scenes are built.
"""

import math
from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

Color = tuple[float, float, float]


@ti.func
def max_component(c: vec3) -> ti.f32:
    """Largest channel of an RGB triple."""
    return ti.max(c.x, c.y, c.z)


@ti.func
def luminance(c: vec3) -> ti.f32:
    """Rec. 709 luminance of an RGB triple."""
    return 0.2126 * c.x + 0.7152 * c.y + 0.0722 * c.z


@ti.func
def is_finite(c: vec3) -> ti.i32:
    """Check that no channel is NaN or infinite.

    Returns:
        1 if every channel is finite, 0 otherwise.
    """
    finite = 1
    for i in ti.static(range(3)):
        if tm.isnan(c[i]) or tm.isinf(c[i]):
            finite = 0
    return finite


@ti.func
def sanitize_radiance(c: vec3) -> vec3:
    """Clamp negative channels to zero and replace non-finite channels with zero."""
    result = tm.max(c, vec3(0.0, 0.0, 0.0))
    for i in ti.static(range(3)):
        if tm.isnan(result[i]) or tm.isinf(result[i]):
            result[i] = 0.0
    return result


# =============================================================================
# Host-side validation
# =============================================================================


def as_color(value: Sequence[float], name: str = "color") -> Color:
    """Convert a 3-sequence to a float RGB tuple.

    Raises:
        ValueError: If value does not have exactly three finite components.
    """
    if len(value) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(value)}")
    color = (float(value[0]), float(value[1]), float(value[2]))
    for i, component in enumerate(color):
        if not math.isfinite(component):
            raise ValueError(f"{name} component {i} = {component} is not finite.")
    return color


def validate_albedo(albedo: Sequence[float]) -> Color:
    """Validate an albedo, returning it as a float tuple.

    Raises:
        ValueError: If any component is outside [0, 1].
    """
    color = as_color(albedo, "Albedo")
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    return color


def validate_radiance(radiance: Sequence[float]) -> Color:
    """Validate a radiance, returning it as a float tuple.

    Raises:
        ValueError: If any component is negative.
    """
    color = as_color(radiance, "Radiance")
    for i, component in enumerate(color):
        if component < 0.0:
            raise ValueError(f"Radiance component {i} = {component} is negative.")
    return color


def validate_ior(ior: float, name: str = "Index of refraction") -> float:
    """Validate an index of refraction.

    Raises:
        ValueError: If ior is not a positive finite number.
    """
    ior = float(ior)
    if not math.isfinite(ior) or ior <= 0.0:
        raise ValueError(f"{name} = {ior} must be a positive finite number.")
    return ior
