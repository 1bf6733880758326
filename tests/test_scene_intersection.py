"""Unit tests for scene-level intersection.

Tests cover:
- Miss records
- Single primitive intersection for every shape kind
- Multiple primitives with closest hit selection and insertion-order ties
- Ray max_distance
- Shadow ray queries (any hit)
- Scene clearing, counts, background and validation
- Objects placed through affine transforms
"""

import math

import pytest
import taichi as ti


class TestSceneHitBasics:
    """Tests for the SceneHit dataclass."""

    def test_miss_record_has_negative_ids(self):
        """Test that miss records have material_id = object_id = -1."""
        from lucent.scene.intersection import _make_miss_record

        result_hit = ti.field(dtype=ti.i32, shape=())
        result_material_id = ti.field(dtype=ti.i32, shape=())
        result_object_id = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            rec = _make_miss_record()
            result_hit[None] = rec.hit
            result_material_id[None] = rec.material_id
            result_object_id[None] = rec.object_id

        test_kernel()
        assert result_hit[None] == 0
        assert result_material_id[None] == -1
        assert result_object_id[None] == -1

    def test_intersect_empty_scene_misses(self):
        """Test intersect_scene inside a kernel with no objects."""
        from lucent.core.ray import make_ray, vec3
        from lucent.scene.intersection import intersect_scene

        result_hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))
            result_hit[None] = intersect_scene(ray).hit

        test_kernel()
        assert result_hit[None] == 0


class TestSingleShapes:
    """Tests for nearest_intersection against one shape of each kind."""

    def test_sphere(self):
        from lucent.scene.intersection import add_sphere, nearest_intersection

        add_sphere((0.0, 0.0, -5.0), 1.0, material_id=3)
        hit = nearest_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit is not None
        assert hit.distance == pytest.approx(4.0, abs=1e-5)
        assert hit.normal == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)
        assert hit.entering
        assert hit.material_id == 3
        assert hit.object_id == 0

    def test_plane(self):
        from lucent.scene.intersection import add_plane, nearest_intersection

        add_plane((0.0, 2.0, 0.0), -1.0, material_id=1)
        hit = nearest_intersection((0.0, 3.0, 0.0), (0.0, -1.0, 0.0))
        assert hit is not None
        assert hit.distance == pytest.approx(4.0, abs=1e-5)
        assert hit.point[1] == pytest.approx(-1.0, abs=1e-5)

    def test_disc(self):
        from lucent.scene.intersection import add_disc, nearest_intersection

        add_disc((0.0, 0.0, -2.0), (0.0, 0.0, 1.0), 0.5)
        assert nearest_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)) is not None
        assert nearest_intersection((0.0, 0.6, 0.0), (0.0, 0.0, -1.0)) is None

    def test_quad(self):
        from lucent.scene.intersection import add_quad, nearest_intersection

        add_quad((-1.0, -1.0, -3.0), (2.0, 0.0, 0.0), (0.0, 2.0, 0.0), material_id=2)
        hit = nearest_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit is not None
        assert hit.distance == pytest.approx(3.0, abs=1e-5)
        assert hit.material_id == 2

    def test_cube(self):
        from lucent.scene.intersection import add_cube, nearest_intersection

        add_cube((0.0, 0.0, -5.0), (2.0, 2.0, 2.0))
        hit = nearest_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit is not None
        assert hit.distance == pytest.approx(4.0, abs=1e-5)
        assert hit.normal == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)

    def test_miss_returns_none(self):
        from lucent.scene.intersection import add_sphere, nearest_intersection

        add_sphere((0.0, 0.0, -5.0), 1.0)
        assert nearest_intersection((0.0, 0.0, 0.0), (0.0, 1.0, 0.0)) is None

    def test_direction_is_normalized(self):
        from lucent.scene.intersection import add_sphere, nearest_intersection

        add_sphere((0.0, 0.0, -5.0), 1.0)
        hit = nearest_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -10.0))
        assert hit.distance == pytest.approx(4.0, abs=1e-5)


class TestClosestHit:
    """Tests for closest-hit selection among many objects."""

    def test_nearest_of_several(self):
        from lucent.scene.intersection import add_cube, add_sphere, nearest_intersection

        add_sphere((0.0, 0.0, -10.0), 1.0, material_id=0)
        add_cube((0.0, 0.0, -4.0), (1.0, 1.0, 1.0), material_id=1)
        add_sphere((0.0, 0.0, -7.0), 1.0, material_id=2)

        hit = nearest_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit.material_id == 1
        assert hit.object_id == 1
        assert hit.distance == pytest.approx(3.5, abs=1e-5)

    def test_equal_distance_prefers_first_added(self):
        from lucent.scene.intersection import add_quad, add_sphere, nearest_intersection

        add_sphere((0.0, 0.0, -5.0), 1.0, material_id=4)
        add_sphere((0.0, 0.0, -5.0), 1.0, material_id=5)
        # A quad through the same front point
        add_quad((-1.0, -1.0, -4.0), (2.0, 0.0, 0.0), (0.0, 2.0, 0.0), material_id=6)

        hit = nearest_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit.object_id == 0
        assert hit.material_id == 4

    def test_max_distance_excludes_far_hits(self):
        from lucent.scene.intersection import add_sphere, nearest_intersection

        add_sphere((0.0, 0.0, -5.0), 1.0)
        assert nearest_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_distance=3.0) is None
        assert nearest_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_distance=4.5) is not None

    def test_hit_behind_origin_ignored(self):
        from lucent.scene.intersection import add_sphere, nearest_intersection

        add_sphere((0.0, 0.0, 5.0), 1.0, material_id=0)
        add_sphere((0.0, 0.0, -8.0), 1.0, material_id=1)
        hit = nearest_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit.material_id == 1

    def test_invalid_queries_rejected(self):
        from lucent.scene.intersection import nearest_intersection

        with pytest.raises(ValueError, match="non-zero"):
            nearest_intersection((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))
        with pytest.raises(ValueError):
            nearest_intersection((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), max_distance=-1.0)


class TestOcclusion:
    """Tests for shadow queries."""

    def test_blocker_between_points(self):
        from lucent.scene.intersection import add_sphere, is_occluded

        add_sphere((0.0, 0.0, -5.0), 1.0)
        assert is_occluded((0.0, 0.0, 0.0), (0.0, 0.0, -10.0))

    def test_blocker_beyond_target(self):
        from lucent.scene.intersection import add_sphere, is_occluded

        add_sphere((0.0, 0.0, -5.0), 1.0)
        assert not is_occluded((0.0, 0.0, 0.0), (0.0, 0.0, -3.0))

    def test_surface_at_target_does_not_occlude(self):
        from lucent.scene.intersection import add_sphere, is_occluded

        add_sphere((0.0, 0.0, -5.0), 1.0)
        assert not is_occluded((0.0, 0.0, 0.0), (0.0, 0.0, -4.0))

    def test_empty_scene(self):
        from lucent.scene.intersection import is_occluded

        assert not is_occluded((0.0, 0.0, 0.0), (1.0, 2.0, 3.0))


class TestSceneStorage:
    """Tests for scene storage, counts and validation."""

    def test_counts_and_clear(self):
        from lucent.scene.intersection import (
            ShapeKind,
            add_plane,
            add_sphere,
            clear_scene,
            get_object_count,
            get_shape_count,
        )

        add_sphere((0.0, 0.0, 0.0), 1.0)
        add_sphere((3.0, 0.0, 0.0), 1.0)
        add_plane((0.0, 1.0, 0.0), 0.0)
        assert get_object_count() == 3
        assert get_shape_count(ShapeKind.SPHERE) == 2
        assert get_shape_count(ShapeKind.PLANE) == 1
        assert get_shape_count(ShapeKind.CUBE) == 0

        clear_scene()
        assert get_object_count() == 0
        assert get_shape_count(ShapeKind.SPHERE) == 0

    def test_object_indices_and_materials(self):
        from lucent.scene.intersection import add_cube, add_sphere, get_object_material

        first = add_sphere((0.0, 0.0, 0.0), 1.0, material_id=7)
        second = add_cube((3.0, 0.0, 0.0), (1.0, 1.0, 1.0), material_id=9)
        assert (first, second) == (0, 1)
        assert get_object_material(1) == 9
        with pytest.raises(IndexError):
            get_object_material(2)

    def test_background(self):
        from lucent.scene.intersection import clear_scene, get_background, set_background

        assert get_background() == (0.0, 0.0, 0.0)
        set_background((0.5, 0.7, 1.0))
        assert get_background() == pytest.approx((0.5, 0.7, 1.0))
        with pytest.raises(ValueError, match="non-negative"):
            set_background((0.0, -1.0, 0.0))
        clear_scene()
        assert get_background() == (0.0, 0.0, 0.0)

    @pytest.mark.parametrize("radius", [0.0, -1.0])
    def test_invalid_radius(self, radius):
        from lucent.scene.intersection import add_disc, add_sphere

        with pytest.raises(ValueError, match="radius"):
            add_sphere((0.0, 0.0, 0.0), radius)
        with pytest.raises(ValueError, match="radius"):
            add_disc((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), radius)

    def test_invalid_geometry(self):
        from lucent.scene.intersection import add_cube, add_plane, add_quad, get_object_count

        with pytest.raises(ValueError, match="non-zero"):
            add_plane((0.0, 0.0, 0.0), 1.0)
        with pytest.raises(ValueError, match="non-zero"):
            add_quad((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 0.0, 0.0))
        with pytest.raises(ValueError, match="positive"):
            add_cube((0.0, 0.0, 0.0), (1.0, 0.0, 1.0))
        with pytest.raises(ValueError, match="not finite"):
            add_plane((0.0, math.nan, 1.0), 1.0)
        assert get_object_count() == 0

    def test_shape_capacity(self):
        from lucent.scene.intersection import MAX_SHAPES_PER_KIND, add_sphere

        for i in range(MAX_SHAPES_PER_KIND):
            add_sphere((float(i), 0.0, 0.0), 0.25)
        with pytest.raises(RuntimeError, match="Maximum number of sphere"):
            add_sphere((0.0, 0.0, 0.0), 0.25)


class TestTransformedObjects:
    """Tests for objects placed through an object-to-world matrix."""

    def test_translated_sphere(self):
        from lucent.core.transform import translation
        from lucent.scene.intersection import add_sphere, nearest_intersection

        add_sphere((0.0, 0.0, 0.0), 1.0, material_id=2, transform=translation(0.0, 0.0, -5.0))
        hit = nearest_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit is not None
        assert hit.distance == pytest.approx(4.0, abs=1e-4)
        assert hit.point == pytest.approx((0.0, 0.0, -4.0), abs=1e-4)
        assert hit.normal == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)
        assert hit.material_id == 2

    def test_rotated_cube(self):
        """A cube turned 45 degrees about y presents a diagonal face."""
        from lucent.core.transform import rotation
        from lucent.scene.intersection import add_cube, nearest_intersection

        add_cube((0.0, 0.0, 0.0), (2.0, 2.0, 2.0), transform=rotation((0.0, 1.0, 0.0), 45.0))
        hit = nearest_intersection((5.0, 0.0, 0.2), (-1.0, 0.0, 0.0))
        assert hit is not None
        edge = math.sqrt(2.0) - 0.2
        assert hit.distance == pytest.approx(5.0 - edge, abs=1e-4)
        assert hit.point == pytest.approx((edge, 0.0, 0.2), abs=1e-4)
        half = math.sqrt(0.5)
        assert hit.normal == pytest.approx((half, 0.0, half), abs=1e-4)
        assert hit.entering

    def test_rotated_cube_corner_is_reachable(self):
        """The rotated corner sticks out past the untransformed cube."""
        from lucent.core.transform import rotation
        from lucent.scene.intersection import add_cube, nearest_intersection

        add_cube((0.0, 0.0, 0.0), (2.0, 2.0, 2.0), transform=rotation((0.0, 1.0, 0.0), 45.0))
        hit = nearest_intersection((0.0, 1.2, 5.0), (0.0, 0.0, -1.0))
        assert hit is None
        hit = nearest_intersection((1.3, 0.0, 5.0), (0.0, 0.0, -1.0))
        assert hit is not None
        assert hit.point[0] == pytest.approx(1.3, abs=1e-4)

    def test_scaled_sphere_distance(self):
        from lucent.core.transform import scaling
        from lucent.scene.intersection import add_sphere, nearest_intersection

        add_sphere((0.0, 0.0, 0.0), 1.0, transform=scaling(2.0, 1.0, 1.0))
        hit = nearest_intersection((5.0, 0.0, 0.0), (-1.0, 0.0, 0.0))
        assert hit is not None
        assert hit.distance == pytest.approx(3.0, abs=1e-4)
        assert hit.normal == pytest.approx((1.0, 0.0, 0.0), abs=1e-5)

    def test_ellipsoid_normal_uses_inverse_transpose(self):
        from lucent.core.transform import scaling
        from lucent.scene.intersection import add_sphere, nearest_intersection

        add_sphere((0.0, 0.0, 0.0), 1.0, transform=scaling(2.0, 1.0, 1.0))
        x = math.sqrt(2.0)
        hit = nearest_intersection((x, 5.0, 0.0), (0.0, -1.0, 0.0))
        assert hit is not None
        y = math.sqrt(0.5)
        assert hit.distance == pytest.approx(5.0 - y, abs=1e-4)
        # Gradient of x^2 / 4 + y^2 at the hit point
        gx, gy = x / 4.0, y
        norm = math.hypot(gx, gy)
        assert hit.normal == pytest.approx((gx / norm, gy / norm, 0.0), abs=1e-4)

    def test_exit_from_inside_scaled_sphere(self):
        from lucent.core.transform import scaling
        from lucent.scene.intersection import add_sphere, nearest_intersection

        add_sphere((0.0, 0.0, 0.0), 1.0, transform=scaling(2.0, 1.0, 1.0))
        hit = nearest_intersection((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        assert hit is not None
        assert hit.distance == pytest.approx(2.0, abs=1e-4)
        assert hit.normal == pytest.approx((-1.0, 0.0, 0.0), abs=1e-5)
        assert not hit.entering

    def test_max_distance_is_in_world_units(self):
        from lucent.core.transform import scaling
        from lucent.scene.intersection import add_sphere, nearest_intersection

        add_sphere((0.0, 0.0, 0.0), 1.0, transform=scaling(2.0, 2.0, 2.0))
        assert nearest_intersection((5.0, 0.0, 0.0), (-1.0, 0.0, 0.0), max_distance=2.5) is None
        assert nearest_intersection((5.0, 0.0, 0.0), (-1.0, 0.0, 0.0), max_distance=3.5) is not None

    def test_transformed_object_occludes(self):
        from lucent.core.transform import compose, rotation, translation
        from lucent.scene.intersection import add_quad, is_occluded

        # Unit quad in the xy plane, laid flat and moved up to y = 1
        placement = compose(translation(-0.5, 1.0, 0.5), rotation((1.0, 0.0, 0.0), -90.0))
        add_quad((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), transform=placement)
        assert is_occluded((0.0, 0.0, 0.0), (0.0, 3.0, 0.0))
        assert not is_occluded((2.0, 0.0, 0.0), (2.0, 3.0, 0.0))

    def test_untransformed_objects_unaffected(self):
        from lucent.core.transform import translation
        from lucent.scene.intersection import add_sphere, nearest_intersection

        add_sphere((0.0, 0.0, 0.0), 1.0, transform=translation(10.0, 0.0, 0.0))
        add_sphere((0.0, 0.0, -5.0), 1.0)
        hit = nearest_intersection((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit.object_id == 1
        assert hit.distance == pytest.approx(4.0, abs=1e-5)

    @pytest.mark.parametrize(
        "transform",
        [
            [[1.0, 0.0], [0.0, 1.0]],
            [[1.0, 0.0, 0.0, 0.0]] * 4,
            [[1, 0, 0, 0], [0, 0, 0, 0], [0, 0, 1, 0], [0, 0, 0, 1]],
        ],
    )
    def test_invalid_transform_leaves_scene_unchanged(self, transform):
        from lucent.scene.intersection import (
            ShapeKind,
            add_sphere,
            get_object_count,
            get_shape_count,
        )

        add_sphere((0.0, 0.0, 0.0), 1.0)
        with pytest.raises(ValueError, match="Transform"):
            add_sphere((0.0, 0.0, 0.0), 1.0, transform=transform)
        assert get_object_count() == 1
        assert get_shape_count(ShapeKind.SPHERE) == 1
