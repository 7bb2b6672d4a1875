"""
Tests for the error norm and the step-size controller.
"""

import math

import pytest
import torch

from odesteppers.controller import (ControllerOptions, error_norm, initial_step,
                                    propose_step, rms_norm, scaled)


class TestControllerOptions:
    """Test validation of controller constants."""

    def test_defaults(self):
        opts = ControllerOptions()
        assert (opts.safety, opts.min_factor, opts.max_factor, opts.beta) == (0.9, 0.2, 10.0, 0.0)

    @pytest.mark.parametrize("kwargs", [
        dict(safety=1.0), dict(safety=0.0), dict(min_factor=1.0),
        dict(min_factor=0.0), dict(max_factor=1.0), dict(beta=-0.1),
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            ControllerOptions(**kwargs)

    def test_beta_too_large_for_order(self):
        with pytest.raises(ValueError, match="too large"):
            ControllerOptions(beta=0.5).exponents(5)

    def test_exponents(self):
        alpha, beta = ControllerOptions(beta=0.04).exponents(5)
        assert alpha == pytest.approx(0.2 - 0.03)
        assert beta == 0.04


class TestErrorNorm:
    """Test the mixed absolute/relative RMS norm."""

    def test_rms(self):
        assert rms_norm(torch.tensor([3.0, 4.0])) == pytest.approx((12.5) ** 0.5)

    def test_absolute_only(self):
        z = torch.zeros(2, dtype=torch.float64)
        err = error_norm(torch.tensor([1.0, 1.0], dtype=torch.float64), z, z,
                         torch.ones(2, dtype=torch.float64), torch.zeros(2, dtype=torch.float64))
        assert err == pytest.approx(1.0)

    def test_scale_uses_larger_magnitude(self):
        yerr = torch.tensor([1e-6], dtype=torch.float64)
        y = torch.tensor([1.0], dtype=torch.float64)
        y_new = torch.tensor([-3.0], dtype=torch.float64)
        atol = torch.zeros(1, dtype=torch.float64)
        rtol = torch.full((1,), 1e-6, dtype=torch.float64)
        assert error_norm(yerr, y, y_new, atol, rtol) == pytest.approx(1.0 / 3.0)

    def test_zero_component_without_absolute_tolerance(self):
        z = torch.zeros(2, dtype=torch.float64)
        y = torch.tensor([1.0, 0.0], dtype=torch.float64)
        yerr = torch.tensor([1e-6, 0.0], dtype=torch.float64)
        rtol = torch.full((2,), 1e-6, dtype=torch.float64)
        assert error_norm(yerr, y, y, z, rtol) == pytest.approx(0.5 ** 0.5)

    def test_scaled_unbounded_where_scale_vanishes(self):
        sk = torch.tensor([2.0, 0.0, 0.0], dtype=torch.float64)
        out = scaled(torch.tensor([1.0, 0.0, 3.0], dtype=torch.float64), sk)
        assert out[0].item() == 0.5
        assert out[1].item() == 0.0
        assert out[2].item() == float("inf")


class TestProposeStep:
    """Test accept/reject decisions and proposed step sizes."""

    opts = ControllerOptions()

    def test_accept_grows(self):
        accept, h = propose_step(0.1, 0.01, 1e-4, False, 5, self.opts)
        assert accept
        assert h == pytest.approx(0.1 * 0.9 * 0.01 ** -0.2)

    def test_zero_error_uses_max_factor(self):
        accept, h = propose_step(0.1, 0.0, 1e-4, False, 5, self.opts)
        assert accept and h == pytest.approx(1.0)

    def test_growth_capped_after_reject(self):
        accept, h = propose_step(0.1, 1e-6, 1e-4, True, 5, self.opts)
        assert accept and h == pytest.approx(0.1)

    def test_reject_shrinks(self):
        accept, h = propose_step(0.1, 2.0, 1e-4, False, 5, self.opts)
        assert not accept
        assert h == pytest.approx(0.1 * 0.9 * 2.0 ** -0.2)

    def test_huge_error_uses_min_factor(self):
        accept, h = propose_step(0.1, 1e12, 1e-4, False, 5, self.opts)
        assert not accept and h == pytest.approx(0.02)

    def test_nan_error_rejects(self):
        accept, h = propose_step(0.1, float("nan"), 1e-4, False, 5, self.opts)
        assert not accept and h == pytest.approx(0.02)

    @pytest.mark.parametrize("err", [0.0, 1e-12, 0.5, 1.0, 1.5, 1e3, float("inf")])
    def test_never_non_positive(self, err):
        _, h = propose_step(1e-3, err, 0.3, False, 3, ControllerOptions(beta=0.08))
        assert h > 0


class TestInitialStep:
    """Test the automatic starting step."""

    def test_bounded_by_h_max(self):
        y0 = torch.tensor([1.0], dtype=torch.float64)
        rhs = lambda t, y: -y
        tol = torch.full((1,), 1e-6, dtype=torch.float64)
        h = initial_step(rhs, 0.0, y0, rhs(0.0, y0), 5, tol, tol, 1e-3)
        assert 0 < h <= 1e-3

    def test_scales_with_tolerance(self):
        y0 = torch.tensor([1.0], dtype=torch.float64)
        rhs = lambda t, y: -y
        loose = torch.full((1,), 1e-3, dtype=torch.float64)
        tight = torch.full((1,), 1e-10, dtype=torch.float64)
        h_loose = initial_step(rhs, 0.0, y0, rhs(0.0, y0), 5, loose, loose, 10.0)
        h_tight = initial_step(rhs, 0.0, y0, rhs(0.0, y0), 5, tight, tight, 10.0)
        assert h_tight < h_loose

    @pytest.mark.parametrize("f1", [0.0, 1.0])
    def test_finite_with_zero_component_and_no_atol(self, f1):
        y0 = torch.tensor([1.0, 0.0], dtype=torch.float64)
        rhs = lambda t, y: torch.stack((-y[0], torch.full_like(y[1], f1)))
        atol = torch.zeros(2, dtype=torch.float64)
        rtol = torch.full((2,), 1e-6, dtype=torch.float64)
        h = initial_step(rhs, 0.0, y0, rhs(0.0, y0), 5, atol, rtol, 1.0)
        assert math.isfinite(h) and 0 < h <= 1.0
