"""Sphere primitive.

Intersection solves |o + t*d - c|^2 = r^2, i.e. a*t^2 + 2*b*t + cc = 0 with
a = d.d, b = d.(o - c) and cc = |o - c|^2 - r^2, using two precision fixes
from Ray Tracing Gems, chapter 7:

- the discriminant is measured from the ray's closest approach to the
  center, so far-away spheres do not lose it to cancellation;
- the smaller-magnitude root comes from Vieta's formula (t0 * t1 = cc / a)
  instead of the difference of two nearly equal numbers.
"""

import taichi as ti
import taichi.math as tm

from lucent.core.ray import Intersection, Ray, make_intersection, no_intersection

vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere.

    Attributes:
        center: The center point (vec3).
        radius: The radius (positive).
    """

    center: vec3
    radius: ti.f32


@ti.func
def _sphere_roots(oc: vec3, d: vec3, radius: ti.f32):
    """Both ray parameters where the ray meets the sphere surface.

    Returns:
        Tuple of (found, t_near, t_far); found is 0 when the ray misses.
    """
    a = tm.dot(d, d)
    b = tm.dot(oc, d)
    cc = tm.dot(oc, oc) - radius * radius

    closest = oc - (b / a) * d
    discriminant = a * (radius * radius - tm.dot(closest, closest))

    found = 0
    t_near = 0.0
    t_far = 0.0

    if discriminant >= 0.0:
        found = 1
        sqrt_d = ti.sqrt(discriminant)
        q = -(b + ti.select(b < 0.0, -1.0, 1.0) * sqrt_d)

        if ti.abs(q) < 1e-10:
            # Tangent at the ray origin, where Vieta would divide by zero
            t_near = (-b - sqrt_d) / a
            t_far = (-b + sqrt_d) / a
        else:
            t_near = ti.min(q / a, cc / q)
            t_far = ti.max(q / a, cc / q)

    return found, t_near, t_far


@ti.func
def _pick_root(t_near: ti.f32, t_far: ti.f32, t_min: ti.f32, t_max: ti.f32):
    """The nearest root inside (t_min, t_max), as (valid, t)."""
    valid = 0
    t = t_near
    if t_near > t_min and t_near < t_max:
        valid = 1
    elif t_far > t_min and t_far < t_max:
        valid = 1
        t = t_far
    return valid, t


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f32, t_max: ti.f32) -> Intersection:
    """Test for ray-sphere intersection.

    A ray starting inside the sphere reports the exit point, with the normal
    flipped toward it and entering == 0.

    Args:
        ray: The ray to test.
        sphere: The sphere to test intersection against.
        t_min: Minimum distance to consider a valid hit (avoids self-intersection).
        t_max: Maximum distance to consider a valid hit.

    Returns:
        An Intersection; check its hit field to see if one occurred.
    """
    result = no_intersection()
    oc = ray.origin - sphere.center

    found, t_near, t_far = _sphere_roots(oc, ray.direction, sphere.radius)
    if found == 1:
        valid, t = _pick_root(t_near, t_far, t_min, t_max)
        if valid == 1:
            point = ray.origin + t * ray.direction
            outward = (point - sphere.center) / sphere.radius
            result = make_intersection(point, outward, t, ray.direction)

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    return Sphere(center=center, radius=radius)
