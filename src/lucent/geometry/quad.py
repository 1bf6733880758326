"""Parallelogram (quad) primitive.

A quad is the set of points Q + a*u + b*v with a and b in [0, 1]. Its outward
normal is normalize(cross(u, v)), so the order of the edges picks the outside.

A ray is intersected with the quad's supporting plane first; the hit is kept
only when its edge coordinates (a, b) both fall inside the unit square.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lucent.geometry.quad import Quad, hit_quad
    >>> # Ceiling light at y=2 facing down, 1 unit on a side
    >>> light = Quad(
    ...     Q=ti.math.vec3(-0.5, 2.0, -0.5),
    ...     u=ti.math.vec3(0, 0, 1),
    ...     v=ti.math.vec3(1, 0, 0)
    ... )
"""

import taichi as ti
import taichi.math as tm

from lucent.core.ray import Intersection, Ray, no_intersection
from lucent.geometry.plane import Plane, hit_plane

vec3 = tm.vec3

# Squared |u x v| below this spans no surface
_MIN_AREA_SQUARED = 1e-10


@ti.dataclass
class Quad:
    """A parallelogram spanned by two edges leaving one corner.

    Attributes:
        Q: The corner point (vec3).
        u: First edge from Q (vec3).
        v: Second edge from Q (vec3).
    """

    Q: vec3
    u: vec3
    v: vec3


@ti.func
def _edge_coordinates(quad: Quad, n: vec3, point: vec3):
    """Solve point = Q + a*u + b*v for an in-plane point.

    n is the unnormalized cross(u, v).
    """
    rel = point - quad.Q
    inv_n2 = 1.0 / tm.dot(n, n)
    a = tm.dot(tm.cross(rel, quad.v), n) * inv_n2
    b = tm.dot(tm.cross(quad.u, rel), n) * inv_n2
    return a, b


@ti.func
def hit_quad(ray: Ray, quad: Quad, t_min: ti.f32, t_max: ti.f32) -> Intersection:
    """Test for ray-quad intersection.

    Edges count as inside. A quad with parallel edges never hits.

    Args:
        ray: The ray to test.
        quad: The quad to test intersection against.
        t_min: Minimum distance to consider a valid hit.
        t_max: Maximum distance to consider a valid hit.

    Returns:
        An Intersection; check its hit field to see if one occurred.
    """
    result = no_intersection()

    n = tm.cross(quad.u, quad.v)
    area_squared = tm.dot(n, n)

    if area_squared > _MIN_AREA_SQUARED:
        normal = n / ti.sqrt(area_squared)
        plane = Plane(normal=normal, distance=tm.dot(normal, quad.Q))
        rec = hit_plane(ray, plane, t_min, t_max)

        if rec.hit == 1:
            a, b = _edge_coordinates(quad, n, rec.point)
            if a >= 0.0 and a <= 1.0 and b >= 0.0 and b <= 1.0:
                result = rec

    return result


@ti.func
def make_quad(q: vec3, u: vec3, v: vec3) -> Quad:
    return Quad(Q=q, u=u, v=v)


@ti.func
def quad_area(quad: Quad) -> ti.f32:
    """Area of the parallelogram, |u x v|."""
    return tm.length(tm.cross(quad.u, quad.v))
