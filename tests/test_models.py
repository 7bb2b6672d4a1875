"""
Tests for the tutorial models: conserved quantities and known behavior.
"""

import math

import pytest
import torch

from odesteppers import integrate
from odesteppers import models


class TestPendulum:
    """Simple and double pendulum."""

    def test_energy_conserved(self):
        p = models.PendulumParams()
        sol = integrate(models.pendulum, [math.pi / 2, 0.0], (0.0, 10.0), p, tol=1e-10)
        energy = models.pendulum_energy(sol.y, p)
        assert (energy - energy[0]).abs().max().item() < 1e-5

    def test_rest_state_is_fixed_point(self):
        p = models.PendulumParams()
        du = models.pendulum(0.0, torch.zeros(2, dtype=torch.float64), p)
        assert torch.equal(du, torch.zeros(2, dtype=torch.float64))

    def test_double_pendulum_energy_conserved(self):
        p = models.DoublePendulumParams(m1=1.0, m2=0.5, L1=1.0, L2=0.7)
        sol = integrate(models.double_pendulum, [math.pi / 2, 0.0, math.pi, 0.0],
                        (0.0, 5.0), p, tol=1e-10)
        energy = models.double_pendulum_energy(sol.y, p)
        assert (energy - energy[0]).abs().max().item() < 1e-4

    def test_hanging_state_is_static(self):
        """Both arms hanging at rest stay at rest."""
        p = models.DoublePendulumParams()
        du = torch.empty(4, dtype=torch.float64)
        models.double_pendulum(du, 0.0, torch.zeros(4, dtype=torch.float64), p)
        assert torch.allclose(du, torch.zeros(4, dtype=torch.float64))

    def test_cartesian(self):
        p = models.DoublePendulumParams(L1=1.0, L2=2.0)
        u = torch.tensor([math.pi / 2, 0.0, 0.0, 0.0], dtype=torch.float64)
        x1, y1, x2, y2 = models.double_pendulum_cartesian(u, p)
        assert x1.item() == pytest.approx(1.0)
        assert y1.item() == pytest.approx(0.0, abs=1e-12)
        assert x2.item() == pytest.approx(1.0)
        assert y2.item() == pytest.approx(-2.0)


class TestHenonHeiles:
    """Hamiltonian test problem."""

    def test_energy_conserved(self):
        sol = integrate(models.henon_heiles, [0.0, 0.1, 0.5, 0.0], (0.0, 100.0), tol=1e-10)
        energy = models.henon_heiles_energy(sol.y)
        assert (energy - energy[0]).abs().max().item() < 1e-6

    def test_energy_value(self):
        u = torch.tensor([0.0, 0.1, 0.5, 0.0], dtype=torch.float64)
        assert models.henon_heiles_energy(u).item() == pytest.approx(0.125 + 0.005 - 0.001 / 3)

    def test_uncoupled_limit(self):
        du = torch.empty(4, dtype=torch.float64)
        u = torch.tensor([0.3, 0.2, 0.0, 0.0], dtype=torch.float64)
        models.henon_heiles(du, 0.0, u, 0.0)
        assert torch.allclose(du, torch.tensor([0.0, 0.0, -0.3, -0.2], dtype=torch.float64))


class TestOtherModels:
    """Linear, population and relaxation oscillators."""

    def test_exponential(self):
        sol = integrate(models.exponential, [2.0], (0.0, 1.0), 0.5, tol=1e-10)
        assert sol.y[-1, 0].item() == pytest.approx(2.0 * math.exp(0.5), rel=1e-8)

    def test_harmonic_frequency(self):
        sol = integrate(models.harmonic_oscillator, [1.0, 0.0], (0.0, 1.0), 2.0, tol=1e-10)
        assert sol.y[-1, 0].item() == pytest.approx(math.cos(2.0), abs=1e-8)

    def test_lotka_volterra_invariant(self):
        a, b, c, d = 1.5, 1.0, 3.0, 1.0
        sol = integrate(models.lotka_volterra, [1.0, 1.0], (0.0, 10.0), (a, b, c, d), tol=1e-10)
        x, y = sol.y[:, 0], sol.y[:, 1]
        v = d * x - c * torch.log(x) + b * y - a * torch.log(y)
        assert (v - v[0]).abs().max().item() < 1e-5

    def test_van_der_pol_limit_cycle(self):
        sol = integrate(models.van_der_pol, [0.1, 0.0], (0.0, 40.0), 1.0, tol=1e-8)
        late = sol.y[sol.t > 30.0, 0]
        assert late.abs().max().item() == pytest.approx(2.0, abs=0.05)

    def test_lorenz_forms_agree(self):
        p = (10.0, 28.0, 8 / 3)
        u = torch.tensor([1.0, 2.0, 3.0], dtype=torch.float64)
        du = torch.empty(3, dtype=torch.float64)
        models.lorenz_inplace(du, 0.0, u, p)
        assert torch.allclose(du, models.lorenz(0.0, u, p))
