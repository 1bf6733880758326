"""Scene-level ray intersection across every primitive type.

The scene is an ordered table of objects. Each object names a shape kind, an
index into that kind's storage and a material id. Shapes live in Taichi
fields laid out as structures of arrays; the object table records insertion
order so the nearest-hit query can break distance ties deterministically in
favor of the object added first.

Any object may carry an affine object-to-world matrix. Its shape is then
stored in object space and intersected there, which is how rotated cubes,
ellipsoids and skewed quads are built.

The scene is immutable while kernels run: hosts build it with the add_*
functions (or a SceneManager) and then launch rendering kernels that only
read it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lucent.scene.intersection import add_sphere, clear_scene
    >>> clear_scene()
    >>> add_sphere((0.0, 0.0, -1.0), 0.5, material_id=0)
    >>> # Use intersect_scene(ray) within a Taichi kernel
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum

import taichi as ti
import taichi.math as tm

from lucent.core.ray import (
    T_MIN,
    Intersection,
    Ray,
    clamp_max_distance,
    no_intersection,
    ray_between,
    transform_normal,
    transform_point,
    transform_ray,
)
from lucent.core.transform import as_affine
from lucent.geometry.cube import Cube, hit_cube
from lucent.geometry.plane import Disc, Plane, hit_disc, hit_plane
from lucent.geometry.quad import Quad, hit_quad
from lucent.geometry.sphere import Sphere, hit_sphere

logger = logging.getLogger(__name__)

vec3 = tm.vec3

Vec3Like = Sequence[float]


class ShapeKind(IntEnum):
    """Enumeration of supported shape kinds."""

    SPHERE = 0
    PLANE = 1
    DISC = 2
    QUAD = 3
    CUBE = 4


@ti.dataclass
class SceneHit:
    """Record of a ray-scene intersection.

    Attributes:
        hit: 1 if any object was hit, 0 on a miss.
        point: The intersection point.
        normal: Unit normal facing the side the ray came from.
        distance: Distance along the ray to the intersection.
        entering: 1 if the ray arrived from outside the surface.
        material_id: Material of the hit object, -1 on a miss.
        object_id: Insertion index of the hit object, -1 on a miss.
    """

    hit: ti.i32
    point: vec3
    normal: vec3
    distance: ti.f32
    entering: ti.i32
    material_id: ti.i32
    object_id: ti.i32


@dataclass
class SceneHitInfo:
    """Host-side copy of a SceneHit returned by nearest_intersection."""

    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    distance: float
    entering: bool
    material_id: int
    object_id: int


# Capacity limits
MAX_OBJECTS = 4096
MAX_SHAPES_PER_KIND = 1024

# Object table: one row per object in insertion order
object_shape_kinds = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_shape_indices = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_material_ids = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
# Optional object-to-world placement; identity objects skip the transform
object_has_transform = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_transforms = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_OBJECTS)
object_inverse_transforms = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_OBJECTS)
num_objects = ti.field(dtype=ti.i32, shape=())

# Sphere storage
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES_PER_KIND)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SHAPES_PER_KIND)

# Plane storage: dot(normal, p) == distance
plane_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES_PER_KIND)
plane_distances = ti.field(dtype=ti.f32, shape=MAX_SHAPES_PER_KIND)

# Disc storage
disc_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES_PER_KIND)
disc_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES_PER_KIND)
disc_radii = ti.field(dtype=ti.f32, shape=MAX_SHAPES_PER_KIND)

# Quad storage: corner Q plus edge vectors u and v
quad_corners = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES_PER_KIND)
quad_edge_u = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES_PER_KIND)
quad_edge_v = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES_PER_KIND)

# Cube storage
cube_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES_PER_KIND)
cube_half_extents = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES_PER_KIND)

# Per-kind shape counts, indexed by ShapeKind
shape_counts = ti.field(dtype=ti.i32, shape=len(ShapeKind))

# Radiance arriving along rays that escape the scene
scene_background = ti.Vector.field(3, dtype=ti.f32, shape=())


# =============================================================================
# Host-side scene construction
# =============================================================================


def _as_vec3(value: Vec3Like, name: str) -> tuple[float, float, float]:
    """Convert a 3-sequence (tuple, list or Taichi vector) to a float tuple."""
    components = tuple(float(value[i]) for i in range(3))
    for i, component in enumerate(components):
        if not math.isfinite(component):
            raise ValueError(f"{name} component {i} = {component} is not finite.")
    return components


def _normalized(value: Vec3Like, name: str) -> tuple[float, float, float]:
    x, y, z = _as_vec3(value, name)
    norm = math.sqrt(x * x + y * y + z * z)
    if norm <= 1e-12:
        raise ValueError(f"{name} must be a non-zero vector")
    return (x / norm, y / norm, z / norm)


def _reserve(kind: ShapeKind, material_id: int, transform=None) -> int:
    """Reserve storage for one shape and append it to the object table.

    Returns:
        The shape's index within its kind's storage.

    Raises:
        ValueError: If transform is not an invertible affine 4x4 matrix.
        RuntimeError: If the object table or the kind's storage is full.
    """
    placement = None if transform is None else as_affine(transform)

    obj = num_objects[None]
    if obj >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    idx = shape_counts[int(kind)]
    if idx >= MAX_SHAPES_PER_KIND:
        raise RuntimeError(
            f"Maximum number of {kind.name.lower()} shapes ({MAX_SHAPES_PER_KIND}) exceeded"
        )
    object_shape_kinds[obj] = int(kind)
    object_shape_indices[obj] = idx
    object_material_ids[obj] = int(material_id)
    if placement is None:
        object_has_transform[obj] = 0
    else:
        object_has_transform[obj] = 1
        object_transforms[obj] = placement[0].tolist()
        object_inverse_transforms[obj] = placement[1].tolist()
    shape_counts[int(kind)] = idx + 1
    num_objects[None] = obj + 1
    return idx


def clear_scene() -> None:
    """Remove all objects and reset the background to black.

    The field data is not cleared but will be overwritten when new objects
    are added.
    """
    num_objects[None] = 0
    for kind in ShapeKind:
        shape_counts[int(kind)] = 0
    scene_background[None] = vec3(0.0, 0.0, 0.0)


def add_sphere(
    center: Vec3Like, radius: float, material_id: int = 0, transform=None
) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere.
        material_id: The material ID to associate with this sphere.
        transform: Optional 4x4 affine object-to-world matrix; the sphere
            is defined in object space (a scaled sphere is an ellipsoid).

    Returns:
        The object index of the added sphere.

    Raises:
        ValueError: If radius is not positive.
        RuntimeError: If the scene capacity is exceeded.
    """
    center = _as_vec3(center, "Sphere center")
    radius = float(radius)
    if not radius > 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")
    idx = _reserve(ShapeKind.SPHERE, material_id, transform)
    sphere_centers[idx] = vec3(*center)
    sphere_radii[idx] = radius
    return num_objects[None] - 1


def add_plane(
    normal: Vec3Like, distance: float, material_id: int = 0, transform=None
) -> int:
    """Add an infinite plane dot(normal, p) == distance to the scene.

    The normal is normalized (distance is measured along the unit normal) and
    points to the plane's outside. A transform, if given, places it from
    object space.

    Raises:
        ValueError: If normal is the zero vector.
        RuntimeError: If the scene capacity is exceeded.
    """
    normal = _normalized(normal, "Plane normal")
    idx = _reserve(ShapeKind.PLANE, material_id, transform)
    plane_normals[idx] = vec3(*normal)
    plane_distances[idx] = float(distance)
    return num_objects[None] - 1


def add_disc(
    center: Vec3Like,
    normal: Vec3Like,
    radius: float,
    material_id: int = 0,
    transform=None,
) -> int:
    """Add a flat disc to the scene.

    A transform, if given, places the disc from object space.

    Raises:
        ValueError: If normal is the zero vector or radius is not positive.
        RuntimeError: If the scene capacity is exceeded.
    """
    center = _as_vec3(center, "Disc center")
    normal = _normalized(normal, "Disc normal")
    radius = float(radius)
    if not radius > 0.0:
        raise ValueError(f"Disc radius must be positive, got {radius}")
    idx = _reserve(ShapeKind.DISC, material_id, transform)
    disc_centers[idx] = vec3(*center)
    disc_normals[idx] = vec3(*normal)
    disc_radii[idx] = radius
    return num_objects[None] - 1


def add_quad(
    q: Vec3Like, u: Vec3Like, v: Vec3Like, material_id: int = 0, transform=None
) -> int:
    """Add a quad to the scene.

    The quad represents a parallelogram with vertices at Q, Q+u, Q+v, Q+u+v;
    its outward normal is cross(u, v).

    Args:
        q: The corner point of the quad.
        u: Edge vector from q to adjacent corner.
        v: Edge vector from q to other adjacent corner.
        material_id: The material ID to associate with this quad.
        transform: Optional 4x4 affine object-to-world matrix.

    Returns:
        The object index of the added quad.

    Raises:
        ValueError: If u and v are parallel.
        RuntimeError: If the scene capacity is exceeded.
    """
    q = _as_vec3(q, "Quad corner")
    u = _as_vec3(u, "Quad edge u")
    v = _as_vec3(v, "Quad edge v")
    _normalized(
        (u[1] * v[2] - u[2] * v[1], u[2] * v[0] - u[0] * v[2], u[0] * v[1] - u[1] * v[0]),
        "Quad normal (u x v)",
    )
    idx = _reserve(ShapeKind.QUAD, material_id, transform)
    quad_corners[idx] = vec3(*q)
    quad_edge_u[idx] = vec3(*u)
    quad_edge_v[idx] = vec3(*v)
    return num_objects[None] - 1


def add_cube(
    center: Vec3Like, size: Vec3Like, material_id: int = 0, transform=None
) -> int:
    """Add a cube with full edge lengths size to the scene.

    The cube is axis-aligned in object space; pass a transform to rotate
    or shear it.

    Raises:
        ValueError: If any edge length is not positive.
        RuntimeError: If the scene capacity is exceeded.
    """
    center = _as_vec3(center, "Cube center")
    size = _as_vec3(size, "Cube size")
    if min(size) <= 0.0:
        raise ValueError(f"Cube size components must be positive, got {size}")
    idx = _reserve(ShapeKind.CUBE, material_id, transform)
    cube_centers[idx] = vec3(*center)
    cube_half_extents[idx] = vec3(0.5 * size[0], 0.5 * size[1], 0.5 * size[2])
    return num_objects[None] - 1


def get_object_count() -> int:
    """Get the number of objects in the scene."""
    return int(num_objects[None])


def get_shape_count(kind: ShapeKind) -> int:
    """Get the number of shapes of one kind in the scene."""
    return int(shape_counts[int(ShapeKind(kind))])


def get_object_material(object_id: int) -> int:
    """Get the material id of an object.

    Raises:
        IndexError: If object_id is not a valid object index.
    """
    if not 0 <= object_id < get_object_count():
        raise IndexError(f"Invalid object_id: {object_id}")
    return int(object_material_ids[object_id])


def set_background(radiance: Vec3Like) -> None:
    """Set the radiance returned for rays that escape the scene.

    Raises:
        ValueError: If any component is negative.
    """
    background = _as_vec3(radiance, "Background radiance")
    if min(background) < 0.0:
        raise ValueError(f"Background radiance must be non-negative, got {background}")
    scene_background[None] = vec3(*background)
    logger.debug("Scene background set to %s", background)


def get_background() -> tuple[float, float, float]:
    """Get the background radiance."""
    background = scene_background[None]
    return (float(background[0]), float(background[1]), float(background[2]))


# =============================================================================
# Device-side queries
# =============================================================================


@ti.func
def _make_miss_record() -> SceneHit:
    """Create a SceneHit indicating no intersection."""
    return SceneHit(
        hit=0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        distance=0.0,
        entering=0,
        material_id=-1,
        object_id=-1,
    )


@ti.func
def _to_scene_hit(rec: Intersection, material_id: ti.i32, object_id: ti.i32) -> SceneHit:
    return SceneHit(
        hit=rec.hit,
        point=rec.point,
        normal=rec.normal,
        distance=rec.distance,
        entering=rec.entering,
        material_id=material_id,
        object_id=object_id,
    )


@ti.func
def _intersect_shape(ray: Ray, kind: ti.i32, i: ti.i32, t_min: ti.f32, t_max: ti.f32):
    """Dispatch an intersection test to one stored shape."""
    rec = no_intersection()

    if kind == int(ShapeKind.SPHERE):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray, sphere, t_min, t_max)
    elif kind == int(ShapeKind.PLANE):
        plane = Plane(normal=plane_normals[i], distance=plane_distances[i])
        rec = hit_plane(ray, plane, t_min, t_max)
    elif kind == int(ShapeKind.DISC):
        disc = Disc(center=disc_centers[i], normal=disc_normals[i], radius=disc_radii[i])
        rec = hit_disc(ray, disc, t_min, t_max)
    elif kind == int(ShapeKind.QUAD):
        quad = Quad(Q=quad_corners[i], u=quad_edge_u[i], v=quad_edge_v[i])
        rec = hit_quad(ray, quad, t_min, t_max)
    elif kind == int(ShapeKind.CUBE):
        cube = Cube(center=cube_centers[i], half_extent=cube_half_extents[i])
        rec = hit_cube(ray, cube, t_min, t_max)

    return rec


@ti.func
def _intersect_object(ray: Ray, obj: ti.i32, t_min: ti.f32, t_max: ti.f32) -> Intersection:
    """Intersect one object, through its transform when it has one.

    Transformed shapes are tested in object space with the distance window
    scaled to match; the hit comes back as a world-space record.
    """
    kind = object_shape_kinds[obj]
    i = object_shape_indices[obj]
    rec = no_intersection()

    if object_has_transform[obj] == 0:
        rec = _intersect_shape(ray, kind, i, t_min, t_max)
    else:
        inverse = object_inverse_transforms[obj]
        local_ray, scale = transform_ray(inverse, ray)
        local = _intersect_shape(local_ray, kind, i, t_min * scale, t_max * scale)
        if local.hit == 1:
            # The inverse transpose keeps the normal on the ray's side
            rec = Intersection(
                hit=1,
                point=transform_point(object_transforms[obj], local.point),
                normal=transform_normal(inverse, local.normal),
                distance=local.distance / scale,
                entering=local.entering,
            )

    return rec


@ti.func
def intersect_scene(ray: Ray) -> SceneHit:
    """Find the nearest intersection of a ray with the scene.

    Objects are tested in insertion order and a later hit only replaces the
    current one when strictly closer, so equal distances resolve to the
    object added first. Only hits with T_MIN < distance < ray.max_distance
    count.

    Args:
        ray: The ray to trace.

    Returns:
        A SceneHit for the closest intersection, or a miss record.
    """
    closest = ray.max_distance
    result = _make_miss_record()

    for obj in range(num_objects[None]):
        rec = _intersect_object(ray, obj, T_MIN, closest)
        if rec.hit == 1:
            closest = rec.distance
            result = _to_scene_hit(rec, object_material_ids[obj], obj)

    return result


@ti.func
def intersect_scene_any(ray: Ray) -> ti.i32:
    """Test if anything blocks a ray before its max_distance (shadow query).

    Returns:
        1 if any object was hit, 0 otherwise.
    """
    hit_any = 0

    for obj in range(num_objects[None]):
        if hit_any == 0:
            rec = _intersect_object(ray, obj, T_MIN, ray.max_distance)
            if rec.hit == 1:
                hit_any = 1

    return hit_any


@ti.func
def background_radiance() -> vec3:
    """Radiance carried by rays that escape the scene."""
    return scene_background[None]


# =============================================================================
# Host-side queries
# =============================================================================

_query_hit = ti.field(dtype=ti.i32, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_distance = ti.field(dtype=ti.f32, shape=())
_query_entering = ti.field(dtype=ti.i32, shape=())
_query_material_id = ti.field(dtype=ti.i32, shape=())
_query_object_id = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _nearest_intersection_kernel(origin: vec3, direction: vec3, max_distance: ti.f32):
    rec = intersect_scene(Ray(origin=origin, direction=direction, max_distance=max_distance))
    _query_hit[None] = rec.hit
    _query_point[None] = rec.point
    _query_normal[None] = rec.normal
    _query_distance[None] = rec.distance
    _query_entering[None] = rec.entering
    _query_material_id[None] = rec.material_id
    _query_object_id[None] = rec.object_id


@ti.kernel
def _occluded_kernel(origin: vec3, direction: vec3, max_distance: ti.f32) -> ti.i32:
    return intersect_scene_any(Ray(origin=origin, direction=direction, max_distance=max_distance))


def _field_vec3(field) -> tuple[float, float, float]:
    value = field[None]
    return (float(value[0]), float(value[1]), float(value[2]))


def nearest_intersection(
    origin: Vec3Like,
    direction: Vec3Like,
    max_distance: float = math.inf,
) -> SceneHitInfo | None:
    """Find the nearest intersection of a ray with the scene from the host.

    Args:
        origin: The ray origin.
        direction: The ray direction (normalized here).
        max_distance: Hits at or beyond this distance are ignored.

    Returns:
        A SceneHitInfo for the closest hit, or None if the ray misses.

    Raises:
        ValueError: If direction is zero or max_distance is not positive.
    """
    origin = _as_vec3(origin, "Ray origin")
    direction = _normalized(direction, "Ray direction")
    _nearest_intersection_kernel(vec3(*origin), vec3(*direction), clamp_max_distance(max_distance))

    if _query_hit[None] == 0:
        return None
    return SceneHitInfo(
        point=_field_vec3(_query_point),
        normal=_field_vec3(_query_normal),
        distance=float(_query_distance[None]),
        entering=bool(_query_entering[None]),
        material_id=int(_query_material_id[None]),
        object_id=int(_query_object_id[None]),
    )


def is_occluded(origin: Vec3Like, target: Vec3Like) -> bool:
    """Check whether anything lies strictly between two points."""
    start, direction, distance = ray_between(_as_vec3(origin, "Origin"), _as_vec3(target, "Target"))
    # Stop short of the target so a surface at the target does not occlude itself
    return bool(_occluded_kernel(vec3(*start), vec3(*direction), distance - T_MIN))
