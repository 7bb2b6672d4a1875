#!/usr/bin/env python3
"""
Work-precision comparison on the Lorenz system, with the in-place and the
out-of-place right-hand side timed side by side.
"""
import time

import matplotlib.pyplot as plt
from scipy.integrate import solve_ivp

from odesteppers import integrate
from odesteppers.convergence import work_precision
from odesteppers.models import lorenz, lorenz_inplace
from odesteppers.plotting import plot_work_precision


def lorenz_np(t, u, sigma, rho, beta):
    x, y, z = u
    return [sigma * (y - x), x * (rho - z) - y, x * y - beta * z]


if __name__ == "__main__":
    p = (10.0, 28.0, 8.0 / 3.0)
    u0 = [1.0, 0.0, 0.0]
    tspan = (0.0, 5.0)

    ref = solve_ivp(lorenz_np, tspan, u0, args=p, method="DOP853", rtol=1e-13, atol=1e-13)
    points = work_precision(lorenz, u0, tspan, ref.y[:, -1], p,
                            methods=("heun_euler", "bs3", "cash_karp", "dopri5"),
                            tols=(1e-3, 1e-5, 1e-7, 1e-9))
    for pt in points:
        print(f"{pt.method:>10s} tol={pt.tol:.0e} err={pt.error:.3e} "
              f"nfev={pt.nfev:7d} time={pt.elapsed * 1e3:8.2f} ms")

    for f in (lorenz, lorenz_inplace):
        start = time.perf_counter()
        integrate(f, u0, tspan, p, tol=1e-9)
        print(f"{f.__name__:>15s}: {(time.perf_counter() - start) * 1e3:.2f} ms")

    plot_work_precision(points)
    plt.show()
