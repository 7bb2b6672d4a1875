"""
Tests for the matplotlib collaborators (Agg backend, see conftest).
"""

import math

import pytest
from matplotlib import animation

from odesteppers import integrate, models
from odesteppers.convergence import convergence_study, work_precision
from odesteppers.plotting import (animate_pendulum, plot_convergence, plot_phase,
                                  plot_solution, plot_work_precision)


@pytest.fixture
def pendulum_solution():
    p = models.PendulumParams()
    return integrate(models.pendulum, [math.pi / 3, 0.0], (0.0, 2.0), p, tol=1e-8), p


class TestStaticPlots:
    """Line plots from trajectories and studies."""

    def test_plot_solution_step_points(self, pendulum_solution):
        sol, _ = pendulum_solution
        ax = plot_solution(sol, markers=True)
        assert len(ax.lines) == 2
        assert len(ax.lines[0].get_xdata()) == len(sol)

    def test_plot_solution_dense(self, pendulum_solution):
        sol, _ = pendulum_solution
        ax = plot_solution(sol, components=[0], labels=["theta"], dense=500)
        assert len(ax.lines) == 1
        assert len(ax.lines[0].get_xdata()) == 500

    def test_plot_phase(self, pendulum_solution):
        sol, _ = pendulum_solution
        ax = plot_phase(sol, 0, 1, dense=200)
        assert len(ax.lines[0].get_xdata()) == 200

    def test_plot_convergence(self):
        res = convergence_study(lambda t, y: -y, [1.0], (0.0, 1.0),
                                lambda t: [math.exp(-t)], method="rk4")
        ax = plot_convergence([res])
        assert ax.get_xscale() == "log"
        assert "rk4" in ax.get_legend().get_texts()[0].get_text()

    def test_plot_work_precision(self):
        pts = work_precision(lambda t, y: -y, [1.0], (0.0, 1.0), [math.exp(-1.0)],
                             methods=("bs3", "dopri5"), tols=(1e-4, 1e-6))
        ax = plot_work_precision(pts)
        assert len(ax.lines) == 2


class TestAnimation:
    """Pendulum animations sample the dense output."""

    def test_single_pendulum(self, pendulum_solution):
        sol, p = pendulum_solution
        fig, anim = animate_pendulum(sol, p, fps=10)
        assert isinstance(anim, animation.FuncAnimation)
        fig.canvas.draw()

    def test_double_pendulum(self):
        p = models.DoublePendulumParams()
        sol = integrate(models.double_pendulum, [math.pi / 2, 0.0, math.pi / 2, 0.0],
                        (0.0, 1.0), p, tol=1e-8)
        fig, anim = animate_pendulum(sol, p, fps=10)
        assert isinstance(anim, animation.FuncAnimation)

    def test_unknown_parameters(self, pendulum_solution):
        sol, _ = pendulum_solution
        with pytest.raises(TypeError):
            animate_pendulum(sol, (9.81, 1.0))
