#!/usr/bin/env python3
"""
Verify the convergence order of every tableau with fixed-step runs on
y' = -2 t y^2 (exact solution 1/(1+t^2)).
"""
import matplotlib.pyplot as plt
import torch

from odesteppers import METHODS
from odesteppers.convergence import convergence_study
from odesteppers.plotting import plot_convergence


def riccati(t, y):
    return -2.0 * t * y * y


def exact(t):
    return torch.tensor([1.0 / (1.0 + t * t)], dtype=torch.float64)


if __name__ == "__main__":
    dts = [0.2, 0.1, 0.05, 0.025, 0.0125]
    results = []
    for name, tab in METHODS.items():
        res = convergence_study(riccati, [1.0], (0.0, 1.0), exact, method=name, dts=dts)
        results.append(res)
        print(f"{name:>10s}: tableau order {tab.order}, observed {res.estimated_order:.2f}")
    plot_convergence(results)
    plt.show()
