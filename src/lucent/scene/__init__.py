"""Scene module for scene storage and ray-scene queries.

This module handles scene representation and ray-scene queries:

Components:
    intersection: Object table, shape storage and nearest-hit queries
    manager: Unified scene manager coordinating objects and materials

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for geometric data
    - An insertion-ordered object table mapping objects to shapes and materials
"""

from .intersection import (
    MAX_OBJECTS,
    SceneHit,
    SceneHitInfo,
    ShapeKind,
    add_cube,
    add_disc,
    add_plane,
    add_quad,
    add_sphere,
    clear_scene,
    get_background,
    get_object_count,
    get_shape_count,
    intersect_scene,
    intersect_scene_any,
    is_occluded,
    nearest_intersection,
    set_background,
)
from .manager import MaterialInfo, ObjectInfo, SceneConfig, SceneManager

__all__ = [
    # Intersection module
    "SceneHit",
    "SceneHitInfo",
    "ShapeKind",
    "add_sphere",
    "add_plane",
    "add_disc",
    "add_quad",
    "add_cube",
    "clear_scene",
    "get_object_count",
    "get_shape_count",
    "set_background",
    "get_background",
    "intersect_scene",
    "intersect_scene_any",
    "nearest_intersection",
    "is_occluded",
    "MAX_OBJECTS",
    # Manager module
    "SceneManager",
    "MaterialInfo",
    "ObjectInfo",
    "SceneConfig",
]
