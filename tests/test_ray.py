"""Unit tests for ray structures and vector utilities.

Tests cover:
- Ray evaluation and construction
- Intersection records and normal orientation
- Reflection and Snell refraction, including total internal reflection
- Orthonormal bases and secondary ray offsets
- Host-side ray helpers
"""

import math

import pytest
import taichi as ti


class TestRayBasics:
    """Tests for the Ray dataclass."""

    def test_ray_at(self):
        """Test evaluating a point along a ray."""
        from lucent.core.ray import T_MAX, Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(
                origin=vec3(1.0, 2.0, 3.0),
                direction=vec3(0.0, 0.0, -1.0),
                max_distance=T_MAX,
            )
            result[None] = ray_at(ray, 5.0)

        test_kernel()
        p = result[None]
        assert abs(p[0] - 1.0) < 1e-6
        assert abs(p[1] - 2.0) < 1e-6
        assert abs(p[2] + 2.0) < 1e-6

    def test_make_ray_normalizes_direction(self):
        """Test that make_ray produces a unit direction and unbounded length."""
        from lucent.core.ray import T_MAX, make_ray, vec3

        direction = ti.field(dtype=ti.math.vec3, shape=())
        max_distance = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(3.0, 0.0, 4.0))
            direction[None] = ray.direction
            max_distance[None] = ray.max_distance

        test_kernel()
        d = direction[None]
        assert abs(d[0] - 0.6) < 1e-6
        assert abs(d[2] - 0.8) < 1e-6
        assert max_distance[None] == pytest.approx(T_MAX, rel=1e-6)


class TestIntersectionRecord:
    """Tests for intersection record construction."""

    def test_no_intersection(self):
        """Test that the miss record has hit == 0."""
        from lucent.core.ray import no_intersection

        hit = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            hit[None] = no_intersection().hit

        test_kernel()
        assert hit[None] == 0

    def test_make_intersection_from_outside(self):
        """Test a ray arriving against the outward normal is entering."""
        from lucent.core.ray import make_intersection, vec3

        normal = ti.field(dtype=ti.math.vec3, shape=())
        entering = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            rec = make_intersection(
                vec3(0.0, 0.0, 1.0), vec3(0.0, 0.0, 1.0), 4.0, vec3(0.0, 0.0, -1.0)
            )
            normal[None] = rec.normal
            entering[None] = rec.entering

        test_kernel()
        assert entering[None] == 1
        assert abs(normal[None][2] - 1.0) < 1e-6

    def test_make_intersection_from_inside_flips_normal(self):
        """Test a ray arriving along the outward normal gets a flipped normal."""
        from lucent.core.ray import make_intersection, vec3

        normal = ti.field(dtype=ti.math.vec3, shape=())
        entering = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            rec = make_intersection(
                vec3(0.0, 0.0, 1.0), vec3(0.0, 0.0, 1.0), 1.0, vec3(0.0, 0.0, 1.0)
            )
            normal[None] = rec.normal
            entering[None] = rec.entering

        test_kernel()
        assert entering[None] == 0
        assert abs(normal[None][2] + 1.0) < 1e-6


class TestReflectRefract:
    """Tests for reflection and refraction."""

    def test_reflect_formula(self):
        """Test reflect matches incident - 2 (incident . n) n."""
        from lucent.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            incident = ti.math.normalize(vec3(1.0, -1.0, 0.0))
            result[None] = reflect(incident, vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        s = 1.0 / math.sqrt(2.0)
        assert abs(r[0] - s) < 1e-6
        assert abs(r[1] - s) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_refract_normal_incidence_passes_straight(self):
        """Test a ray at normal incidence is not bent."""
        from lucent.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())
        tir = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            d, t = refract(vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.0 / 1.5)
            result[None] = d
            tir[None] = t

        test_kernel()
        assert tir[None] == 0
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1] + 1.0) < 1e-6

    def test_refract_obeys_snell(self):
        """Test n1 sin(theta_i) == n2 sin(theta_t) for an oblique ray."""
        from lucent.core.ray import refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        theta_i = math.radians(45.0)
        sin_i = math.sin(theta_i)
        cos_i = math.cos(theta_i)

        @ti.kernel
        def test_kernel():
            incident = vec3(sin_i, -cos_i, 0.0)
            d, _ = refract(incident, vec3(0.0, 1.0, 0.0), 1.0 / 1.5)
            result[None] = d

        test_kernel()
        r = result[None]
        sin_t = r[0]
        assert abs(math.sqrt(r[0] ** 2 + r[1] ** 2 + r[2] ** 2) - 1.0) < 1e-5
        assert abs(1.0 * math.sin(theta_i) - 1.5 * sin_t) < 1e-5
        # Transmitted ray continues below the surface
        assert r[1] < 0.0

    def test_refract_total_internal_reflection(self):
        """Test refraction reports TIR beyond the critical angle."""
        from lucent.core.ray import refract, vec3

        tir = ti.field(dtype=ti.i32, shape=())

        # Critical angle for 1.5 -> 1.0 is about 41.8 degrees
        sin_i = math.sin(math.radians(60.0))
        cos_i = math.cos(math.radians(60.0))

        @ti.kernel
        def test_kernel():
            incident = vec3(sin_i, -cos_i, 0.0)
            _, t = refract(incident, vec3(0.0, 1.0, 0.0), 1.5)
            tir[None] = t

        test_kernel()
        assert tir[None] == 1


class TestFrames:
    """Tests for local frames and ray offsets."""

    @pytest.mark.parametrize(
        "normal",
        [(0.0, 0.0, 1.0), (1.0, 0.0, 0.0), (0.0, -1.0, 0.0), (0.577, 0.577, 0.577)],
    )
    def test_build_onb_is_orthonormal(self, normal):
        """Test the basis vectors are unit length and mutually orthogonal."""
        from lucent.core.ray import build_onb_from_normal, vec3

        t_out = ti.field(dtype=ti.math.vec3, shape=())
        b_out = ti.field(dtype=ti.math.vec3, shape=())
        n_out = ti.field(dtype=ti.math.vec3, shape=())

        nx, ny, nz = normal

        @ti.kernel
        def test_kernel():
            t, b, n = build_onb_from_normal(ti.math.normalize(vec3(nx, ny, nz)))
            t_out[None] = t
            b_out[None] = b
            n_out[None] = n

        test_kernel()
        t = t_out[None].to_numpy()
        b = b_out[None].to_numpy()
        n = n_out[None].to_numpy()
        for v in (t, b, n):
            assert abs((v**2).sum() - 1.0) < 1e-5
        assert abs((t * b).sum()) < 1e-5
        assert abs((t * n).sum()) < 1e-5
        assert abs((b * n).sum()) < 1e-5

    def test_offset_ray_origin_follows_direction(self):
        """Test offsets go above the surface for reflection, below for refraction."""
        from lucent.core.ray import RAY_EPSILON, offset_ray_origin, vec3

        above = ti.field(dtype=ti.math.vec3, shape=())
        below = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            p = vec3(0.0, 0.0, 0.0)
            n = vec3(0.0, 1.0, 0.0)
            above[None] = offset_ray_origin(p, n, vec3(0.0, 1.0, 0.0))
            below[None] = offset_ray_origin(p, n, vec3(0.0, -1.0, 0.0))

        test_kernel()
        assert above[None][1] == pytest.approx(RAY_EPSILON, rel=1e-4)
        assert below[None][1] == pytest.approx(-RAY_EPSILON, rel=1e-4)


class TestHostHelpers:
    """Tests for host-side ray helpers."""

    def test_clamp_max_distance_maps_infinity(self):
        from lucent.core.ray import T_MAX, clamp_max_distance

        assert clamp_max_distance(math.inf) == T_MAX
        assert clamp_max_distance(2.5) == 2.5

    @pytest.mark.parametrize("value", [0.0, -1.0, math.nan])
    def test_clamp_max_distance_rejects_invalid(self, value):
        from lucent.core.ray import clamp_max_distance

        with pytest.raises(ValueError):
            clamp_max_distance(value)

    def test_ray_between(self):
        """Test building a segment between two points."""
        from lucent.core.ray import ray_between

        origin, direction, distance = ray_between((0.0, 0.0, 0.0), (0.0, 3.0, 4.0))
        assert origin == (0.0, 0.0, 0.0)
        assert direction == pytest.approx((0.0, 0.6, 0.8))
        assert distance == pytest.approx(5.0)

    def test_ray_between_identical_points(self):
        from lucent.core.ray import ray_between

        with pytest.raises(ValueError, match="identical"):
            ray_between((1.0, 1.0, 1.0), (1.0, 1.0, 1.0))
