# models.py
"""Right-hand sides of the classical-mechanics tutorial models.

Physical constants always travel through the parameter argument ``p``.
Out-of-place models return a new tensor, in-place ones write into ``du``.
"""
from typing import NamedTuple

import torch


class PendulumParams(NamedTuple):
    g: float = 9.81      # gravitational acceleration [m/s^2]
    L: float = 1.0       # rod length [m]


class DoublePendulumParams(NamedTuple):
    m1: float = 1.0
    m2: float = 1.0
    L1: float = 1.0
    L2: float = 1.0
    g:  float = 9.81


# ---- linear test problems -------------------------------------------------
def exponential(t, y, a):
    """dy/dt = a*y, exact solution y0*exp(a*t)."""
    return a * y


def harmonic_oscillator(t, y, omega=None):
    """y = [x, v]; x'' = -omega^2 x (omega defaults to 1)."""
    w2 = 1.0 if omega is None else omega ** 2
    return torch.stack((y[1], -w2 * y[0]))


# ---- pendulums -------------------------------------------------------------
def pendulum(t, u, p: PendulumParams):
    """Simple pendulum, u = [theta, omega]."""
    theta, omega = u[0], u[1]
    return torch.stack((omega, -(p.g / p.L) * torch.sin(theta)))


def pendulum_energy(u, p: PendulumParams):
    """Energy per unit mass; works on a single state or a (m, 2) trajectory."""
    theta, omega = u[..., 0], u[..., 1]
    return 0.5 * p.L ** 2 * omega ** 2 - p.g * p.L * torch.cos(theta)


def double_pendulum(du, t, u, p: DoublePendulumParams):
    """Double pendulum, u = [theta1, omega1, theta2, omega2] (in-place)."""
    m1, m2, L1, L2, g = p
    th1, w1, th2, w2 = u[0], u[1], u[2], u[3]
    delta = th2 - th1
    sd, cd = torch.sin(delta), torch.cos(delta)

    den1 = (m1 + m2) * L1 - m2 * L1 * cd * cd
    den2 = (L2 / L1) * den1

    du[0] = w1
    du[1] = (m2 * L1 * w1 * w1 * sd * cd
             + m2 * g * torch.sin(th2) * cd
             + m2 * L2 * w2 * w2 * sd
             - (m1 + m2) * g * torch.sin(th1)) / den1
    du[2] = w2
    du[3] = (-m2 * L2 * w2 * w2 * sd * cd
             + (m1 + m2) * (g * torch.sin(th1) * cd
                            - L1 * w1 * w1 * sd
                            - g * torch.sin(th2))) / den2


def double_pendulum_energy(u, p: DoublePendulumParams):
    m1, m2, L1, L2, g = p
    th1, w1, th2, w2 = u[..., 0], u[..., 1], u[..., 2], u[..., 3]
    kin = (0.5 * m1 * L1 ** 2 * w1 ** 2
           + 0.5 * m2 * (L1 ** 2 * w1 ** 2 + L2 ** 2 * w2 ** 2
                         + 2 * L1 * L2 * w1 * w2 * torch.cos(th1 - th2)))
    pot = -(m1 + m2) * g * L1 * torch.cos(th1) - m2 * g * L2 * torch.cos(th2)
    return kin + pot


def double_pendulum_cartesian(u, p: DoublePendulumParams):
    """Bob positions (x1, y1, x2, y2) for a state or trajectory."""
    th1, th2 = u[..., 0], u[..., 2]
    x1 = p.L1 * torch.sin(th1)
    y1 = -p.L1 * torch.cos(th1)
    x2 = x1 + p.L2 * torch.sin(th2)
    y2 = y1 - p.L2 * torch.cos(th2)
    return x1, y1, x2, y2


# ---- Henon-Heiles ----------------------------------------------------------
def henon_heiles(du, t, u, lam=None):
    """u = [x, y, px, py]; lam scales the cubic coupling (1 by default)."""
    lam = 1.0 if lam is None else lam
    x, y, px, py = u[0], u[1], u[2], u[3]
    du[0] = px
    du[1] = py
    du[2] = -x - 2 * lam * x * y
    du[3] = -y - lam * (x * x - y * y)


def henon_heiles_energy(u, lam=None):
    lam = 1.0 if lam is None else lam
    x, y, px, py = u[..., 0], u[..., 1], u[..., 2], u[..., 3]
    return (0.5 * (px ** 2 + py ** 2) + 0.5 * (x ** 2 + y ** 2)
            + lam * (x ** 2 * y - y ** 3 / 3))


# ---- population and relaxation oscillators ---------------------------------
def lotka_volterra(t, u, p):
    a, b, c, d = p
    prey, pred = u[0], u[1]
    return torch.stack((a * prey - b * prey * pred,
                        -c * pred + d * prey * pred))


def van_der_pol(t, y, mu):
    return torch.stack((y[1], mu * (1 - y[0] ** 2) * y[1] - y[0]))


# ---- Lorenz, in both calling conventions -----------------------------------
def lorenz(t, u, p):
    sigma, rho, beta = p
    x, y, z = u[0], u[1], u[2]
    return torch.stack((sigma * (y - x), x * (rho - z) - y, x * y - beta * z))


def lorenz_inplace(du, t, u, p):
    sigma, rho, beta = p
    du[0] = sigma * (u[1] - u[0])
    du[1] = u[0] * (rho - u[2]) - u[1]
    du[2] = u[0] * u[1] - beta * u[2]
