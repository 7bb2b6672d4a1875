#!/usr/bin/env python3
"""
Simple pendulum integrated with the adaptive Dormand-Prince pair.

Gravity and rod length are passed through the parameter argument, the
solution is plotted from the dense output and the energy drift reported.
"""
import argparse
import math

import matplotlib.pyplot as plt

from odesteppers import integrate
from odesteppers.models import PendulumParams, pendulum, pendulum_energy
from odesteppers.plotting import animate_pendulum, plot_phase, plot_solution


if __name__ == "__main__":
    ap = argparse.ArgumentParser()
    ap.add_argument("--theta0", type=float, default=math.pi / 2)
    ap.add_argument("--tf", type=float, default=6.3)
    ap.add_argument("--tol", type=float, default=1e-8)
    ap.add_argument("--method", default="dopri5")
    ap.add_argument("--animate", action="store_true")
    args = ap.parse_args()

    p = PendulumParams(g=9.81, L=1.0)
    sol = integrate(pendulum, [args.theta0, 0.0], (0.0, args.tf), p,
                    tol=args.tol, method=args.method)

    e = pendulum_energy(sol.y, p)
    print(f"{sol}")
    print(f"energy drift : {(e - e[0]).abs().max().item():.3e}")

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 4))
    plot_solution(sol, labels=[r"$\theta$", r"$\omega$"], ax=ax1, dense=1000)
    plot_phase(sol, 0, 1, ax=ax2, dense=1000)
    if args.animate:
        _, anim = animate_pendulum(sol, p)
    plt.show()
