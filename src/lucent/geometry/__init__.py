"""Geometry module for shape primitives.

This module provides geometric primitives and their intersection algorithms:

Components:
    sphere: Sphere primitive with robust ray-sphere intersection
    plane: Infinite plane and bounded disc primitives
    quad: Parallelogram primitive
    cube: Axis-aligned box primitive

Every primitive follows the same pattern, implemented as Taichi functions:
    record = hit_shape(ray, shape, t_min, t_max)

where record is an Intersection that only reports hits with distance in
(t_min, t_max). A miss is a record with hit == 0, never an error.
"""

from .cube import Cube, cube_normal, hit_cube, make_cube
from .plane import Disc, Plane, hit_disc, hit_plane, make_disc, make_plane
from .quad import Quad, hit_quad, make_quad, quad_area
from .sphere import Sphere, hit_sphere, make_sphere

__all__ = [
    "Sphere",
    "hit_sphere",
    "make_sphere",
    "Plane",
    "hit_plane",
    "make_plane",
    "Disc",
    "hit_disc",
    "make_disc",
    "Quad",
    "hit_quad",
    "make_quad",
    "quad_area",
    "Cube",
    "cube_normal",
    "hit_cube",
    "make_cube",
]
