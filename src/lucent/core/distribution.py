"""Hemisphere distributions for emission and scattering lobes.

A distribution describes how light leaves a surface around an axis (the
normal, the mirror direction, the refracted direction, ...), isotropically
in the angle theta to that axis:

    DIRAC       all light exactly along the axis (perfect mirror or glass)
    UNIFORM     uniform over the hemisphere, pdf = 1 / (2 pi)
    COSINE      cosine-weighted, pdf = cos(theta) / pi (ideal diffuse)
    COSINE_EXP  Phong lobe, pdf = (e + 1) cos(theta)^e / (2 pi)

Scattering lobes are energy normalized: the distribution is both the shape
of the lobe and the density it is sampled from, so a sampled direction
carries weight equal to the effect's albedo. DIRAC samples return the axis
exactly with a nominal pdf of 1, following the convention for delta lobes.

Sampling functions take and return the per-path RNG state (see core.rng).
"""

from dataclasses import dataclass
from enum import IntEnum

import taichi as ti
import taichi.math as tm

from lucent.core.ray import build_onb_from_normal, local_to_world
from lucent.core.rng import next_float

vec3 = tm.vec3

# Below this cosine, emission profiles that diverge at grazing angles are capped
MIN_EMISSION_COSINE = 1e-3


class DistributionKind(IntEnum):
    """Enumeration of supported hemisphere distributions."""

    DIRAC = 0
    UNIFORM = 1
    COSINE = 2
    COSINE_EXP = 3


@dataclass(frozen=True)
class Distribution:
    """Host-side description of a hemisphere distribution.

    Attributes:
        kind: The distribution family.
        exponent: Phong exponent, only meaningful for COSINE_EXP.
    """

    kind: DistributionKind
    exponent: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", DistributionKind(self.kind))
        if self.exponent < 0.0:
            raise ValueError(f"Distribution exponent = {self.exponent} is negative.")

    @classmethod
    def dirac(cls) -> "Distribution":
        return cls(DistributionKind.DIRAC)

    @classmethod
    def uniform(cls) -> "Distribution":
        return cls(DistributionKind.UNIFORM)

    @classmethod
    def cosine(cls) -> "Distribution":
        return cls(DistributionKind.COSINE)

    @classmethod
    def cosine_exp(cls, exponent: float) -> "Distribution":
        """Phong lobe; exponent 0 equals UNIFORM and exponent 1 equals COSINE."""
        return cls(DistributionKind.COSINE_EXP, float(exponent))

    def to_dict(self) -> dict:
        data = {"kind": self.kind.name.lower()}
        if self.kind == DistributionKind.COSINE_EXP:
            data["exponent"] = self.exponent
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Distribution":
        name = str(data.get("kind", "cosine")).upper()
        if name not in DistributionKind.__members__:
            raise ValueError(f"Unknown distribution kind: {data.get('kind')}")
        return cls(DistributionKind[name], float(data.get("exponent", 0.0)))


@ti.func
def sample_local(kind: ti.i32, exponent: ti.f32, state: ti.u32):
    """Sample a unit direction in the hemisphere around +z.

    Args:
        kind: The DistributionKind as an integer.
        exponent: Phong exponent for COSINE_EXP.
        state: The path's RNG state.

    Returns:
        A tuple of (direction, pdf, state) where direction is in the local
        frame and pdf is the solid-angle density of the sample (1.0 for DIRAC).
    """
    u1, state = next_float(state)
    u2, state = next_float(state)

    phi = 2.0 * tm.pi * u1
    cos_theta = 1.0
    pdf = 1.0

    if kind == int(DistributionKind.UNIFORM):
        cos_theta = 1.0 - u2
        pdf = 0.5 / tm.pi
    elif kind == int(DistributionKind.COSINE):
        cos_theta = ti.sqrt(1.0 - u2)
        pdf = cos_theta / tm.pi
    elif kind == int(DistributionKind.COSINE_EXP):
        cos_theta = (1.0 - u2) ** (1.0 / (exponent + 1.0))
        pdf = (exponent + 1.0) * cos_theta**exponent * 0.5 / tm.pi

    sin_theta = ti.sqrt(tm.max(0.0, 1.0 - cos_theta * cos_theta))
    direction = vec3(sin_theta * ti.cos(phi), sin_theta * ti.sin(phi), cos_theta)
    return direction, pdf, state


@ti.func
def sample_around(axis: vec3, kind: ti.i32, exponent: ti.f32, state: ti.u32):
    """Sample a unit direction in the hemisphere around an arbitrary axis.

    Args:
        axis: The lobe's center direction (normalized).
        kind: The DistributionKind as an integer.
        exponent: Phong exponent for COSINE_EXP.
        state: The path's RNG state.

    Returns:
        A tuple of (direction, pdf, state) in world space. DIRAC returns the
        axis itself.
    """
    local_dir, pdf, state = sample_local(kind, exponent, state)
    direction = axis
    if kind != int(DistributionKind.DIRAC):
        tangent, bitangent, n = build_onb_from_normal(axis)
        direction = tm.normalize(local_to_world(local_dir, tangent, bitangent, n))
    return direction, pdf, state


@ti.func
def distribution_pdf(kind: ti.i32, exponent: ti.f32, cos_theta: ti.f32) -> ti.f32:
    """Solid-angle density of a direction at angle theta to the axis.

    DIRAC has no density away from the axis and reports 0. Directions
    outside the hemisphere have density 0.
    """
    pdf = 0.0
    if cos_theta > 0.0:
        if kind == int(DistributionKind.UNIFORM):
            pdf = 0.5 / tm.pi
        elif kind == int(DistributionKind.COSINE):
            pdf = cos_theta / tm.pi
        elif kind == int(DistributionKind.COSINE_EXP):
            pdf = (exponent + 1.0) * cos_theta**exponent * 0.5 / tm.pi
    return pdf


@ti.func
def pdf_around(axis: vec3, kind: ti.i32, exponent: ti.f32, direction: vec3) -> ti.f32:
    """Density of sampling direction from the lobe centered on axis."""
    return distribution_pdf(kind, exponent, tm.dot(axis, direction))


@ti.func
def emission_profile(kind: ti.i32, exponent: ti.f32, cos_theta: ti.f32) -> ti.f32:
    """Relative emitted radiance seen at angle theta from the surface normal.

    COSINE is a Lambertian emitter (constant radiance). UNIFORM spreads
    intensity evenly, so radiance grows as 1 / cos(theta); COSINE_EXP falls
    off as cos(theta)^(e - 1). Both are capped at grazing angles so the
    profile stays finite. DIRAC only emits along the normal.
    """
    value = 0.0
    if cos_theta > 0.0:
        cos_capped = tm.max(cos_theta, MIN_EMISSION_COSINE)
        if kind == int(DistributionKind.COSINE):
            value = 1.0
        elif kind == int(DistributionKind.UNIFORM):
            value = 1.0 / cos_capped
        elif kind == int(DistributionKind.COSINE_EXP):
            value = cos_capped ** (exponent - 1.0)
        elif cos_theta >= 1.0 - 1e-6:
            value = 1.0
    return value
