"""Unit tests for radiance and albedo helpers.

Tests cover:
- max_component and luminance
- Sanitizing negative and non-finite radiance
- Albedo never amplifies or negates radiance
- Host-side validators
"""

import math

import numpy as np
import pytest
import taichi as ti


class TestDeviceHelpers:
    """Tests for Taichi-side color helpers."""

    def test_max_component_and_luminance(self):
        from lucent.core.spectrum import luminance, max_component, vec3

        m = ti.field(dtype=ti.f32, shape=())
        y = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            c = vec3(0.2, 0.9, 0.4)
            m[None] = max_component(c)
            y[None] = luminance(vec3(1.0, 1.0, 1.0))

        test_kernel()
        assert m[None] == pytest.approx(0.9)
        assert y[None] == pytest.approx(1.0, abs=1e-6)

    def test_sanitize_radiance(self):
        """Test negative, NaN and infinite channels become zero."""
        from lucent.core.spectrum import is_finite, sanitize_radiance, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())
        finite_before = ti.field(dtype=ti.i32, shape=())
        finite_after = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(bad: ti.f32):
            c = vec3(-1.0, bad, 2.0)
            finite_before[None] = is_finite(c)
            s = sanitize_radiance(c)
            finite_after[None] = is_finite(s)
            result[None] = s

        test_kernel(math.inf)
        r = result[None]
        assert finite_before[None] == 0
        assert finite_after[None] == 1
        assert r[0] == 0.0
        assert r[1] == 0.0
        assert r[2] == pytest.approx(2.0)

    def test_albedo_times_radiance_is_bounded(self):
        """Test a * r lies in [0, r] channel-wise for random valid inputs."""
        from lucent.core.spectrum import vec3

        n = 256
        rng = np.random.default_rng(0)
        albedos = rng.uniform(0.0, 1.0, size=(n, 3)).astype(np.float32)
        radiances = rng.uniform(0.0, 50.0, size=(n, 3)).astype(np.float32)

        a_field = ti.Vector.field(3, dtype=ti.f32, shape=n)
        r_field = ti.Vector.field(3, dtype=ti.f32, shape=n)
        out = ti.Vector.field(3, dtype=ti.f32, shape=n)
        a_field.from_numpy(albedos)
        r_field.from_numpy(radiances)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                out[i] = a_field[i] * r_field[i] + vec3(0.0, 0.0, 0.0)

        test_kernel()
        product = out.to_numpy()
        assert np.all(product >= 0.0)
        assert np.all(product <= radiances + 1e-4)


class TestValidators:
    """Tests for host-side validation."""

    def test_validate_albedo_accepts_unit_range(self):
        from lucent.core.spectrum import validate_albedo

        assert validate_albedo([0.0, 0.5, 1.0]) == (0.0, 0.5, 1.0)

    @pytest.mark.parametrize("albedo", [(1.1, 0.5, 0.5), (0.5, -0.1, 0.5)])
    def test_validate_albedo_rejects_out_of_range(self, albedo):
        from lucent.core.spectrum import validate_albedo

        with pytest.raises(ValueError, match="energy conservation"):
            validate_albedo(albedo)

    def test_validate_albedo_rejects_wrong_length(self):
        from lucent.core.spectrum import validate_albedo

        with pytest.raises(ValueError, match="3 components"):
            validate_albedo((0.5, 0.5))

    def test_validate_radiance(self):
        from lucent.core.spectrum import validate_radiance

        assert validate_radiance((10.0, 0.0, 3.0)) == (10.0, 0.0, 3.0)
        with pytest.raises(ValueError, match="negative"):
            validate_radiance((1.0, -0.5, 1.0))
        with pytest.raises(ValueError, match="not finite"):
            validate_radiance((1.0, math.nan, 1.0))

    @pytest.mark.parametrize("ior", [0.0, -1.5, math.inf])
    def test_validate_ior_rejects_invalid(self, ior):
        from lucent.core.spectrum import validate_ior

        with pytest.raises(ValueError):
            validate_ior(ior)
