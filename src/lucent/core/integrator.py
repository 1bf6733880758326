"""Path tracing integrator for Monte Carlo light transport.

This module estimates the radiance arriving along a ray by following one
random photon path backwards through the scene. Each call of trace() returns
one sample of a random variable whose expectation is the true radiance; the
caller averages independent samples to reduce variance.

Per bounce the path tracer:
    1. finds the nearest intersection; a miss adds the background and ends
    2. shades the hit material into a Bsdf
    3. adds the surface's emission, unconditionally
    4. stops once the bounce limit is reached
    5. picks one scattering effect and samples a direction from it; the
       path weight is albedo / selection probability
    6. from rr_start_depth on, plays Russian roulette with survival
       probability min(max channel of the weight, max_survival_probability)
       and divides surviving weights by it
    7. continues from the intersection, offset to avoid self-intersection

Paths are independent: every kernel thread owns a PCG stream derived from
(seed, index), so renders are reproducible per seed.

Example:
    >>> import numpy as np
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lucent.core.integrator import trace_rays
    >>> from lucent.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> light = scene.add_emissive_material((1.0, 1.0, 1.0))
    >>> scene.add_sphere((0.0, 0.0, 0.0), 1.0, light)
    >>> origins = np.array([[0.0, 0.0, 5.0]], dtype=np.float32)
    >>> directions = np.array([[0.0, 0.0, -1.0]], dtype=np.float32)
    >>> trace_rays(origins, directions)
    array([[1., 1., 1.]], dtype=float32)
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import asdict, dataclass, fields

import numpy as np
import taichi as ti
import taichi.math as tm

from lucent.core.ray import T_MAX, Intersection, Ray, clamp_max_distance, offset_ray_origin
from lucent.core.rng import next_float, normalize_seed, seed_state
from lucent.core.spectrum import luminance, max_component, sanitize_radiance
from lucent.materials.bsdf import (
    MIN_SELECTION_PROBABILITY,
    emitted_radiance,
    scatter_effect,
    select_effect,
    shade,
)
from lucent.scene.intersection import background_radiance, intersect_scene

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# =============================================================================
# Integrator Configuration
# =============================================================================


@dataclass(frozen=True)
class IntegratorConfig:
    """Path termination settings.

    Attributes:
        max_depth: Bounce index at which paths stop after adding emission.
        rr_start_depth: First bounce at which Russian roulette may end a path.
        max_survival_probability: Cap on the Russian roulette survival
            probability, in (0, 1].
        contribution_limit: Paths whose throughput luminance falls below
            this are cut off. 0 disables the cut-off, which keeps the
            estimator unbiased.
    """

    max_depth: int = 16
    rr_start_depth: int = 3
    max_survival_probability: float = 0.95
    contribution_limit: float = 0.0

    def __post_init__(self) -> None:
        for name in ("max_depth", "rr_start_depth"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} = {value!r} must be an int.")
        if self.max_depth < 0:
            raise ValueError(f"max_depth = {self.max_depth} must be non-negative.")
        if self.rr_start_depth < 0:
            raise ValueError(f"rr_start_depth = {self.rr_start_depth} must be non-negative.")
        if not 0.0 < self.max_survival_probability <= 1.0:
            raise ValueError(
                f"max_survival_probability = {self.max_survival_probability} "
                "is outside (0, 1]."
            )
        if self.contribution_limit < 0.0:
            raise ValueError(f"contribution_limit = {self.contribution_limit} is negative.")


_max_depth = ti.field(dtype=ti.i32, shape=())
_rr_start_depth = ti.field(dtype=ti.i32, shape=())
_max_survival = ti.field(dtype=ti.f32, shape=())
_contribution_limit = ti.field(dtype=ti.f32, shape=())

_config = IntegratorConfig()


def configure_integrator(config: IntegratorConfig | None = None, **overrides) -> IntegratorConfig:
    """Set the path termination settings used by every subsequent trace.

    Args:
        config: A complete configuration. Defaults to the current one.
        **overrides: Individual IntegratorConfig fields to replace.

    Returns:
        The configuration now in effect.

    Raises:
        ValueError: If the resulting configuration is invalid
            or an override names an unknown setting.
    """
    global _config

    unknown = sorted(set(overrides) - {f.name for f in fields(IntegratorConfig)})
    if unknown:
        raise ValueError(f"Unknown integrator setting(s): {', '.join(unknown)}")

    base = config if config is not None else _config
    new_config = IntegratorConfig(**{**asdict(base), **overrides})

    _max_depth[None] = new_config.max_depth
    _rr_start_depth[None] = new_config.rr_start_depth
    _max_survival[None] = new_config.max_survival_probability
    _contribution_limit[None] = new_config.contribution_limit
    _config = new_config

    logger.info("Integrator configured: %s", new_config)
    return new_config


def get_integrator_config() -> IntegratorConfig:
    """Get the configuration currently in effect."""
    return _config


def reset_integrator() -> IntegratorConfig:
    """Restore the default path termination settings."""
    return configure_integrator(IntegratorConfig())


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace(ray: Ray, depth: ti.i32, state: ti.u32):
    """Trace one path and return its radiance estimate.

    Args:
        ray: The ray to estimate incoming radiance along.
        depth: Bounce index of the ray (0 for a camera ray). Paths started
            deeper reach max_depth sooner.
        state: The path's RNG state.

    Returns:
        A tuple of (radiance, state). radiance is finite and non-negative.
    """
    radiance = vec3(0.0, 0.0, 0.0)

    # Throughput (product of albedo / probability terms along the path)
    throughput = vec3(1.0, 1.0, 1.0)

    origin = ray.origin
    direction = ray.direction
    max_distance = ray.max_distance

    # Active flag for path continuation (no break inside ti.func loops)
    active = 1

    max_depth = ti.max(_max_depth[None], depth)
    for bounce in range(depth, max_depth + 1):
        if active == 1:
            segment = Ray(origin=origin, direction=direction, max_distance=max_distance)
            rec = intersect_scene(segment)

            if rec.hit == 0:
                radiance += throughput * background_radiance()
                active = 0
            else:
                isect = Intersection(
                    hit=1,
                    point=rec.point,
                    normal=rec.normal,
                    distance=rec.distance,
                    entering=rec.entering,
                )
                bsdf = shade(rec.material_id, isect)

                cos_view = -tm.dot(direction, rec.normal)
                radiance += throughput * emitted_radiance(bsdf, cos_view)

                if bounce >= max_depth:
                    active = 0
                else:
                    effect_idx, probability, state = select_effect(bsdf, state)
                    if effect_idx < 0 or probability <= MIN_SELECTION_PROBABILITY:
                        # Nothing to scatter into: pure emitter or black surface
                        active = 0
                    else:
                        new_direction, albedo, valid, state = scatter_effect(
                            effect_idx, direction, bsdf, state
                        )
                        weight = albedo / probability

                        if valid == 0:
                            active = 0
                        elif bounce >= _rr_start_depth[None]:
                            survival = tm.min(max_component(weight), _max_survival[None])
                            u, state = next_float(state)
                            if survival <= 0.0 or u >= survival:
                                active = 0
                            else:
                                weight = weight / survival

                        if active == 1:
                            throughput *= weight
                            if luminance(throughput) < _contribution_limit[None]:
                                active = 0

                        if active == 1:
                            origin = offset_ray_origin(rec.point, rec.normal, new_direction)
                            direction = new_direction
                            max_distance = T_MAX

    return sanitize_radiance(radiance), state


# =============================================================================
# Kernels
# =============================================================================


@ti.kernel
def _trace_rays_kernel(
    origins: ti.types.ndarray(),
    directions: ti.types.ndarray(),
    max_distances: ti.types.ndarray(),
    out: ti.types.ndarray(),
    depth: ti.i32,
    seed: ti.u32,
):
    """Trace one path per input ray, in parallel."""
    for i in range(origins.shape[0]):
        origin = vec3(origins[i, 0], origins[i, 1], origins[i, 2])
        direction = tm.normalize(vec3(directions[i, 0], directions[i, 1], directions[i, 2]))
        ray = Ray(origin=origin, direction=direction, max_distance=max_distances[i])
        state = seed_state(seed, ti.cast(i, ti.u32))
        radiance, state = trace(ray, depth, state)
        for c in ti.static(range(3)):
            out[i, c] = radiance[c]


@ti.kernel
def _sample_ray_kernel(
    origin: vec3,
    direction: vec3,
    max_distance: ti.f32,
    out: ti.types.ndarray(),
    depth: ti.i32,
    seed: ti.u32,
):
    """Trace independent paths along one ray, one per output row."""
    for i in range(out.shape[0]):
        ray = Ray(origin=origin, direction=direction, max_distance=max_distance)
        state = seed_state(seed, ti.cast(i, ti.u32))
        radiance, state = trace(ray, depth, state)
        for c in ti.static(range(3)):
            out[i, c] = radiance[c]


# =============================================================================
# Public Tracing API
# =============================================================================


def _as_ray_array(values, name: str) -> np.ndarray:
    array = np.ascontiguousarray(values, dtype=np.float32)
    if array.ndim != 2 or array.shape[1] != 3:
        raise ValueError(f"{name} must have shape (N, 3), got {array.shape}")
    return array


def _check_depth(depth: int) -> int:
    if depth < 0:
        raise ValueError(f"depth = {depth} must be non-negative.")
    return int(depth)


def trace_rays(
    origins,
    directions,
    max_distances=None,
    depth: int = 0,
    seed: int = 0,
) -> np.ndarray:
    """Trace one path per ray and return the radiance samples.

    Args:
        origins: Array-like of shape (N, 3) with ray origins.
        directions: Array-like of shape (N, 3) with ray directions (normalized here).
        max_distances: Optional array-like of shape (N,); inf means unbounded.
        depth: Bounce index the rays start at.
        seed: Render seed; the same seed and inputs give the same output.

    Returns:
        NumPy array of shape (N, 3) with float32 radiance samples.

    Raises:
        ValueError: If shapes mismatch, a direction is zero, a max distance
            is not positive, or depth or seed is negative.
    """
    origins = _as_ray_array(origins, "origins")
    directions = _as_ray_array(directions, "directions")
    if origins.shape != directions.shape:
        raise ValueError(
            f"origins and directions must match, got {origins.shape} and {directions.shape}"
        )
    if np.any(np.linalg.norm(directions, axis=1) <= 0.0):
        raise ValueError("Ray directions must be non-zero")

    n = origins.shape[0]
    if max_distances is None:
        limits = np.full(n, T_MAX, dtype=np.float32)
    else:
        limits = np.asarray(max_distances, dtype=np.float64).reshape(-1)
        if limits.shape[0] != n:
            raise ValueError(f"max_distances must have {n} entries, got {limits.shape[0]}")
        if np.any(np.isnan(limits)) or np.any(limits <= 0.0):
            raise ValueError("max_distances must be positive")
        limits = np.minimum(limits, T_MAX).astype(np.float32)

    out = np.zeros((n, 3), dtype=np.float32)
    if n > 0:
        _trace_rays_kernel(
            origins, directions, limits, out, _check_depth(depth), normalize_seed(seed)
        )
    return out


def _unit_direction(direction: Sequence[float]) -> tuple[float, float, float]:
    x, y, z = (float(direction[i]) for i in range(3))
    norm = math.sqrt(x * x + y * y + z * z)
    if norm <= 0.0:
        raise ValueError("Ray direction must be non-zero")
    return (x / norm, y / norm, z / norm)


def sample_radiance(
    origin: Sequence[float],
    direction: Sequence[float],
    num_samples: int,
    max_distance: float = math.inf,
    depth: int = 0,
    seed: int = 0,
) -> np.ndarray:
    """Trace independent paths along a single ray.

    Returns:
        NumPy array of shape (num_samples, 3) with one radiance sample per row.

    Raises:
        ValueError: If num_samples is not positive or the ray is invalid.
    """
    if num_samples <= 0:
        raise ValueError(f"num_samples = {num_samples} must be positive.")
    unit = _unit_direction(direction)
    out = np.zeros((int(num_samples), 3), dtype=np.float32)
    _sample_ray_kernel(
        vec3(float(origin[0]), float(origin[1]), float(origin[2])),
        vec3(*unit),
        clamp_max_distance(max_distance),
        out,
        _check_depth(depth),
        normalize_seed(seed),
    )
    return out


def trace_ray(
    origin: Sequence[float],
    direction: Sequence[float],
    max_distance: float = math.inf,
    depth: int = 0,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Trace a single path and return its radiance as an (R, G, B) tuple."""
    sample = sample_radiance(origin, direction, 1, max_distance, depth, seed)[0]
    return (float(sample[0]), float(sample[1]), float(sample[2]))


def estimate_radiance(
    origin: Sequence[float],
    direction: Sequence[float],
    num_samples: int,
    max_distance: float = math.inf,
    depth: int = 0,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Average num_samples independent paths along a ray.

    Returns:
        The mean radiance as an (R, G, B) tuple.
    """
    samples = sample_radiance(origin, direction, num_samples, max_distance, depth, seed)
    mean = samples.astype(np.float64).mean(axis=0)
    return (float(mean[0]), float(mean[1]), float(mean[2]))


# Mirror the default configuration into the fields
reset_integrator()
