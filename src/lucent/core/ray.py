"""Ray and intersection data structures with vector utilities.

This module provides the spatial value types shared by every other part of
the renderer: the Ray a photon travels along, the Intersection produced when
it meets a surface, and the vector helpers (reflection, refraction, local
frames) used by the sampling code. All device-side operations are Taichi
functions usable inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction, max_distance=T_MAX)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import math

import taichi as ti
import taichi.math as tm

# Points and vectors share Taichi's 3-component float vector
vec3 = tm.vec3

# Valid intersection distances lie strictly inside (T_MIN, max_distance)
T_MIN = 1e-4

# Stand-in for an unbounded ray; larger distances are clamped to this
T_MAX = 1e10

# Distance secondary rays are pushed off a surface
RAY_EPSILON = 1e-4


@ti.dataclass
class Ray:
    """A ray with an origin point, a unit direction and a maximum length.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3, unit length).
        max_distance: Distance beyond which the ray is considered blocked.
            T_MAX represents an unbounded ray.
    """

    origin: vec3
    direction: vec3
    max_distance: ti.f32


@ti.dataclass
class Intersection:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        point: The 3D point where the ray intersected the surface.
        normal: The unit surface normal, facing the side the ray came from.
        distance: Distance along the ray to the intersection point.
        entering: 1 if the ray approached from outside the surface (against
            the outward normal), 0 if it hit the surface from inside.
    """

    hit: ti.i32
    point: vec3
    normal: vec3
    distance: ti.f32
    entering: ti.i32


@ti.func
def no_intersection() -> Intersection:
    """Create an Intersection record indicating a miss."""
    return Intersection(
        hit=0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        distance=0.0,
        entering=0,
    )


@ti.func
def make_intersection(point: vec3, outward_normal: vec3, distance: ti.f32, direction: vec3):
    """Build a hit record, orienting the normal toward the incoming ray.

    Args:
        point: The intersection point.
        outward_normal: The geometric normal pointing out of the surface.
        distance: Distance along the ray to the point.
        direction: The direction of the incoming ray.

    Returns:
        An Intersection with ``entering`` set from the side the ray arrived on.
    """
    entering = 1
    normal = outward_normal
    if tm.dot(direction, outward_normal) > 0.0:
        entering = 0
        normal = -outward_normal
    return Intersection(
        hit=1,
        point=point,
        normal=normal,
        distance=distance,
        entering=entering,
    )


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create an unbounded ray, normalizing its direction."""
    return Ray(origin=origin, direction=tm.normalize(direction), max_distance=T_MAX)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the length (magnitude) of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length."""
    return tm.normalize(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product of two vectors."""
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction, incident - 2 * (incident . normal) * normal.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32):
    """Refract an incident vector through a surface using Snell's law.

    Args:
        incident: The incoming direction vector (should be normalized).
        normal: The surface normal facing the incident side (normalized).
        eta: The ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        A tuple of (direction, total_internal_reflection) where:
        - direction: The refracted unit direction, or the zero vector when
          total internal reflection occurs.
        - total_internal_reflection: 1 if sin(theta_t) would exceed 1.
    """
    cos_i = tm.min(-tm.dot(incident, normal), 1.0)
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    result = vec3(0.0, 0.0, 0.0)
    tir = 1
    if sin2_t <= 1.0:
        cos_t = ti.sqrt(1.0 - sin2_t)
        result = tm.normalize(eta * incident + (eta * cos_i - cos_t) * normal)
        tir = 0
    return result, tir


@ti.func
def build_onb_from_normal(normal: vec3):
    """Build an orthonormal basis from a normal vector.

    Creates a local coordinate frame where the normal is the z-axis.

    Args:
        normal: The surface normal (should be normalized).

    Returns:
        A tuple (tangent, bitangent, normal) forming an orthonormal basis.
    """
    # Choose a vector not parallel to normal
    a = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = normalize(cross(a, normal))
    bitangent = cross(normal, tangent)
    return tangent, bitangent, normal


@ti.func
def local_to_world(local_dir: vec3, tangent: vec3, bitangent: vec3, normal: vec3) -> vec3:
    """Transform a direction from a local z-up frame to world coordinates."""
    return local_dir.x * tangent + local_dir.y * bitangent + local_dir.z * normal


@ti.func
def offset_ray_origin(point: vec3, normal: vec3, direction: vec3) -> vec3:
    """Offset a secondary ray origin to avoid self-intersection.

    Pushes the point along the normal toward the side the new ray travels
    (above the surface for reflection, below it for refraction).

    Args:
        point: The intersection point.
        normal: The surface normal at the intersection.
        direction: The direction of the secondary ray.

    Returns:
        The offset origin point.
    """
    offset_dir = normal
    if tm.dot(direction, normal) < 0.0:
        offset_dir = -normal
    return point + RAY_EPSILON * offset_dir


# =============================================================================
# Affine transforms
# =============================================================================


@ti.func
def transform_point(m: tm.mat4, p: vec3) -> vec3:
    h = m @ tm.vec4(p.x, p.y, p.z, 1.0)
    return vec3(h[0], h[1], h[2])


@ti.func
def transform_vector(m: tm.mat4, v: vec3) -> vec3:
    """Apply the linear part of m, ignoring translation."""
    h = m @ tm.vec4(v.x, v.y, v.z, 0.0)
    return vec3(h[0], h[1], h[2])


@ti.func
def transform_normal(inverse: tm.mat4, n: vec3) -> vec3:
    """Map a normal through the inverse transpose, given the inverse matrix."""
    return tm.normalize(transform_vector(inverse.transpose(), n))


@ti.func
def transform_ray(m: tm.mat4, ray: Ray):
    """Carry a ray through m, renormalizing its direction.

    Distances along the new ray are the old ones times scale.

    Returns:
        Tuple of (ray, scale).
    """
    direction = transform_vector(m, ray.direction)
    scale = tm.length(direction)
    moved = Ray(
        origin=transform_point(m, ray.origin),
        direction=direction / scale,
        max_distance=ray.max_distance * scale,
    )
    return moved, scale


# =============================================================================
# Host-side helpers
# =============================================================================


def clamp_max_distance(max_distance: float) -> float:
    """Map a host-side ray length (possibly math.inf) into the device range.

    Raises:
        ValueError: If max_distance is NaN or not positive.
    """
    if math.isnan(max_distance) or max_distance <= 0.0:
        raise ValueError(f"Ray max_distance must be positive, got {max_distance}")
    return min(float(max_distance), T_MAX)


def ray_between(
    origin: tuple[float, float, float],
    target: tuple[float, float, float],
) -> tuple[tuple[float, float, float], tuple[float, float, float], float]:
    """Build a finite ray segment from origin to target.

    Args:
        origin: The start point.
        target: The end point.

    Returns:
        Tuple of (origin, unit direction, distance to target).

    Raises:
        ValueError: If origin and target coincide.
    """
    delta = [t - o for o, t in zip(origin, target)]
    distance = math.sqrt(sum(c * c for c in delta))
    if distance <= 0.0:
        raise ValueError("Cannot build a ray between two identical points")
    direction = (delta[0] / distance, delta[1] / distance, delta[2] / distance)
    return tuple(float(c) for c in origin), direction, distance
