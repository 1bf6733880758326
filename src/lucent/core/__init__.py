"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    ray: Ray and intersection structures plus vector utilities
    rng: Explicit per-path random number streams
    spectrum: Radiance and albedo helpers and validators
    distribution: Hemisphere distributions for sampling and emission
    transform: Affine object-to-world matrices (host side)
    integrator: Monte Carlo path tracer and batched tracing API

All compute-intensive operations use Taichi kernels for GPU acceleration.
"""

from .distribution import (
    Distribution,
    DistributionKind,
    distribution_pdf,
    emission_profile,
    pdf_around,
    sample_around,
    sample_local,
)
from .ray import (
    RAY_EPSILON,
    T_MAX,
    T_MIN,
    Intersection,
    Ray,
    build_onb_from_normal,
    clamp_max_distance,
    cross,
    dot,
    length,
    length_squared,
    local_to_world,
    make_intersection,
    make_ray,
    no_intersection,
    normalize,
    offset_ray_origin,
    ray_at,
    ray_between,
    reflect,
    refract,
    transform_normal,
    transform_point,
    transform_ray,
    transform_vector,
    vec3,
)
from .rng import next_float, normalize_seed, pcg_hash, seed_state
from .spectrum import (
    is_finite,
    luminance,
    max_component,
    sanitize_radiance,
    validate_albedo,
    validate_ior,
    validate_radiance,
)
from .transform import as_affine, compose, identity, rotation, scaling, translation

# Note: integrator is NOT imported here to avoid circular imports.
# Import it directly from lucent.core.integrator.

__all__ = [
    "Ray",
    "Intersection",
    "T_MIN",
    "T_MAX",
    "RAY_EPSILON",
    "vec3",
    "ray_at",
    "make_ray",
    "no_intersection",
    "make_intersection",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "build_onb_from_normal",
    "local_to_world",
    "offset_ray_origin",
    "clamp_max_distance",
    "ray_between",
    "transform_point",
    "transform_vector",
    "transform_normal",
    "transform_ray",
    "identity",
    "translation",
    "scaling",
    "rotation",
    "compose",
    "as_affine",
    "pcg_hash",
    "seed_state",
    "next_float",
    "normalize_seed",
    "max_component",
    "luminance",
    "is_finite",
    "sanitize_radiance",
    "validate_albedo",
    "validate_radiance",
    "validate_ior",
    "Distribution",
    "DistributionKind",
    "sample_local",
    "sample_around",
    "distribution_pdf",
    "pdf_around",
    "emission_profile",
]
