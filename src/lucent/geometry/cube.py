"""Axis-aligned cube (box) primitive.

The cube spans center - half_extent to center + half_extent on each axis and
is intersected with the slab method: the ray is clipped against the three
pairs of axis-aligned planes, entering at the largest near distance and
leaving at the smallest far distance.
"""

import taichi as ti
import taichi.math as tm

from lucent.core.ray import Intersection, Ray, make_intersection, no_intersection

vec3 = tm.vec3

# Direction components smaller than this are nudged to avoid 0 * inf
_MIN_DIRECTION_COMPONENT = 1e-12


@ti.dataclass
class Cube:
    """An axis-aligned box.

    Attributes:
        center: The box's center point (vec3).
        half_extent: Half the box's size along each axis (vec3, positive).
    """

    center: vec3
    half_extent: vec3


@ti.func
def _safe_inverse(d: ti.f32) -> ti.f32:
    safe = d
    if ti.abs(d) < _MIN_DIRECTION_COMPONENT:
        safe = ti.select(d < 0.0, -_MIN_DIRECTION_COMPONENT, _MIN_DIRECTION_COMPONENT)
    return 1.0 / safe


@ti.func
def cube_normal(cube: Cube, point: vec3) -> vec3:
    """Outward normal of the face nearest to a point on the cube's surface."""
    local = (point - cube.center) / cube.half_extent
    ax = ti.abs(local.x)
    ay = ti.abs(local.y)
    az = ti.abs(local.z)
    normal = vec3(0.0, 0.0, ti.select(local.z < 0.0, -1.0, 1.0))
    if ax >= ay and ax >= az:
        normal = vec3(ti.select(local.x < 0.0, -1.0, 1.0), 0.0, 0.0)
    elif ay >= az:
        normal = vec3(0.0, ti.select(local.y < 0.0, -1.0, 1.0), 0.0)
    return normal


@ti.func
def hit_cube(ray: Ray, cube: Cube, t_min: ti.f32, t_max: ti.f32) -> Intersection:
    """Test for ray-cube intersection.

    Reports the entry point when it lies in (t_min, t_max), otherwise the
    exit point (a ray starting inside the cube), with entering set
    accordingly.
    """
    inv_dir = vec3(
        _safe_inverse(ray.direction.x),
        _safe_inverse(ray.direction.y),
        _safe_inverse(ray.direction.z),
    )
    t0 = (cube.center - cube.half_extent - ray.origin) * inv_dir
    t1 = (cube.center + cube.half_extent - ray.origin) * inv_dir
    t_near = tm.min(t0, t1)
    t_far = tm.max(t0, t1)

    t_enter = ti.max(t_near.x, t_near.y, t_near.z)
    t_exit = ti.min(t_far.x, t_far.y, t_far.z)

    result = no_intersection()

    if t_enter <= t_exit:
        t = t_enter
        valid = (t > t_min) and (t < t_max)
        if not valid:
            t = t_exit
            valid = (t > t_min) and (t < t_max)

        if valid:
            hit_point = ray.origin + t * ray.direction
            outward_normal = cube_normal(cube, hit_point)
            result = make_intersection(hit_point, outward_normal, t, ray.direction)

    return result


@ti.func
def make_cube(center: vec3, size: vec3) -> Cube:
    """Create a cube centered on center with full edge lengths size."""
    return Cube(center=center, half_extent=0.5 * size)
