"""Infinite plane and bounded disc primitives.

A plane is the set of points p with dot(normal, p) == distance; its outside
is the half-space the normal points into. A disc is the part of a plane
within a radius of a center point.

Ray-plane intersection is linear in the ray parameter:
    t = (distance - dot(normal, origin)) / dot(normal, direction)
"""

import taichi as ti
import taichi.math as tm

from lucent.core.ray import Intersection, Ray, make_intersection, no_intersection

vec3 = tm.vec3

# Rays more parallel to the plane than this never hit it
_PARALLEL_EPSILON = 1e-8


@ti.dataclass
class Plane:
    """An infinite plane.

    Attributes:
        normal: The unit outward normal (vec3).
        distance: Signed distance of the plane from the origin along normal.
    """

    normal: vec3
    distance: ti.f32


@ti.dataclass
class Disc:
    """A flat circular disc.

    Attributes:
        center: The disc's center point (vec3).
        normal: The unit outward normal (vec3).
        radius: The disc's radius.
    """

    center: vec3
    normal: vec3
    radius: ti.f32


@ti.func
def hit_plane(ray: Ray, plane: Plane, t_min: ti.f32, t_max: ti.f32) -> Intersection:
    """Test for ray-plane intersection.

    Args:
        ray: The ray to test.
        plane: The plane to test intersection against.
        t_min: Minimum distance to consider a valid hit.
        t_max: Maximum distance to consider a valid hit.

    Returns:
        An Intersection; rays parallel to the plane never hit.
    """
    result = no_intersection()
    denom = tm.dot(plane.normal, ray.direction)

    if ti.abs(denom) > _PARALLEL_EPSILON:
        t = (plane.distance - tm.dot(plane.normal, ray.origin)) / denom
        if t > t_min and t < t_max:
            hit_point = ray.origin + t * ray.direction
            result = make_intersection(hit_point, plane.normal, t, ray.direction)

    return result


@ti.func
def hit_disc(ray: Ray, disc: Disc, t_min: ti.f32, t_max: ti.f32) -> Intersection:
    """Test for ray-disc intersection.

    Intersects the disc's supporting plane, then rejects points farther than
    the radius from the center.
    """
    plane = Plane(normal=disc.normal, distance=tm.dot(disc.normal, disc.center))
    result = hit_plane(ray, plane, t_min, t_max)

    if result.hit == 1:
        offset = result.point - disc.center
        if tm.dot(offset, offset) > disc.radius * disc.radius:
            result = no_intersection()

    return result


@ti.func
def make_plane(normal: vec3, distance: ti.f32) -> Plane:
    """Create a plane, normalizing its normal."""
    return Plane(normal=tm.normalize(normal), distance=distance)


@ti.func
def make_disc(center: vec3, normal: vec3, radius: ti.f32) -> Disc:
    """Create a disc, normalizing its normal."""
    return Disc(center=center, normal=tm.normalize(normal), radius=radius)
