# plotting.py
"""matplotlib helpers for trajectories, phase portraits and convergence."""
from typing import Iterable, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import torch
from matplotlib import animation

from .models import DoublePendulumParams, PendulumParams, double_pendulum_cartesian


def _axes(ax):
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 4))
    return ax


def plot_solution(sol, components: Optional[Sequence[int]] = None, labels=None,
                  ax=None, dense: int = 0, markers: bool = False):
    """Components of y against t.

    With ``dense > 0`` the curve is drawn from that many dense-output points,
    otherwise from the (non-uniform) step points.
    """
    ax = _axes(ax)
    t, y = sol.to_numpy()
    if dense > 0:
        t = np.linspace(t[0], t[-1], dense)
        y = sol(torch.as_tensor(t)).numpy()
    components = range(y.shape[1]) if components is None else components
    for j, i in enumerate(components):
        label = labels[j] if labels is not None else f"$y_{{{i}}}$"
        ax.plot(t, y[:, i], "o-" if markers else "-", ms=3, label=label)
    ax.set_xlabel("t")
    ax.set_title(f"{sol.method}: {sol.stats['naccept']} steps, "
                 f"{sol.stats['nreject']} rejected")
    ax.legend()
    ax.grid(True)
    return ax


def plot_phase(sol, i: int = 0, j: int = 1, ax=None, dense: int = 0, **kwargs):
    ax = _axes(ax)
    if dense > 0:
        tq = torch.linspace(sol.t0, sol.t_last, dense, dtype=torch.float64)
        y = sol(tq).numpy()
    else:
        _, y = sol.to_numpy()
    ax.plot(y[:, i], y[:, j], **kwargs)
    ax.set_xlabel(f"$y_{{{i}}}$")
    ax.set_ylabel(f"$y_{{{j}}}$")
    ax.grid(True)
    return ax


def plot_convergence(results: Iterable, ax=None):
    """Log-log endpoint error against dt, one line per ConvergenceResult."""
    ax = _axes(ax)
    for res in results:
        ax.loglog(res.dts, res.errors, "o-",
                  label=f"{res.method} (p≈{res.estimated_order:.2f})")
    ax.set_xlabel("dt")
    ax.set_ylabel("endpoint error")
    ax.legend()
    ax.grid(True, which="both")
    return ax


def plot_work_precision(points: Iterable, ax=None):
    """Error against number of RHS evaluations, grouped by method."""
    ax = _axes(ax)
    by_method = {}
    for pt in points:
        by_method.setdefault(pt.method, []).append(pt)
    for method, pts in by_method.items():
        ax.loglog([pt.error for pt in pts], [pt.nfev for pt in pts], "o-", label=method)
    ax.set_xlabel("endpoint error")
    ax.set_ylabel("rhs evaluations")
    ax.legend()
    ax.grid(True, which="both")
    return ax


def animate_pendulum(sol, p, fps: int = 30, trace: int = 50):
    """FuncAnimation of a single (PendulumParams) or double pendulum.

    Frames are taken from the dense output at uniform times, since the
    accepted steps are not evenly spaced.
    """
    nframes = max(2, int(round((sol.t_last - sol.t0) * fps)) + 1)
    tq = torch.linspace(sol.t0, sol.t_last, nframes, dtype=torch.float64)
    u = sol(tq)

    if isinstance(p, DoublePendulumParams):
        x1, y1, x2, y2 = (c.numpy() for c in double_pendulum_cartesian(u, p))
        reach = p.L1 + p.L2
    elif isinstance(p, PendulumParams):
        x1 = p.L * torch.sin(u[:, 0]).numpy()
        y1 = -p.L * torch.cos(u[:, 0]).numpy()
        x2 = y2 = None
        reach = p.L
    else:
        raise TypeError(f"unsupported pendulum parameters {p!r}")

    fig, ax = plt.subplots(figsize=(5, 5))
    ax.set_xlim(-1.1 * reach, 1.1 * reach)
    ax.set_ylim(-1.1 * reach, 1.1 * reach)
    ax.set_aspect("equal")
    ax.grid(True)
    line, = ax.plot([], [], "o-", lw=2)
    path, = ax.plot([], [], "-", lw=1, alpha=0.5)
    stamp = ax.text(0.05, 0.92, "", transform=ax.transAxes)

    def draw(k):
        if x2 is None:
            line.set_data([0.0, x1[k]], [0.0, y1[k]])
            tip_x, tip_y = x1, y1
        else:
            line.set_data([0.0, x1[k], x2[k]], [0.0, y1[k], y2[k]])
            tip_x, tip_y = x2, y2
        lo = max(0, k - trace)
        path.set_data(tip_x[lo:k + 1], tip_y[lo:k + 1])
        stamp.set_text(f"t = {tq[k].item():.2f}")
        return line, path, stamp

    anim = animation.FuncAnimation(fig, draw, frames=nframes,
                                   interval=1000.0 / fps, blit=True)
    return fig, anim
