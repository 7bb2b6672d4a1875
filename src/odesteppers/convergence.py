# convergence.py
"""Order verification and work-precision measurements."""
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

import numpy as np
import torch

from .integrator import integrate
from .tableaus import ButcherTableau, get_tableau

logger = logging.getLogger(__name__)


@dataclass
class ConvergenceResult:
    method:          str
    dts:             np.ndarray
    errors:          np.ndarray
    orders:          np.ndarray      # pairwise log2-ratio between successive dts
    estimated_order: float           # least-squares slope of log(err) vs log(dt)


@dataclass
class WorkPrecisionPoint:
    method:  str
    tol:     float
    error:   float
    nfev:    int
    naccept: int
    elapsed: float


def _final_error(y_end: torch.Tensor, exact: torch.Tensor) -> float:
    return torch.linalg.norm(y_end - exact, ord=float("inf")).item()


def convergence_study(f: Callable, y0, t_span: Sequence[float],
                      exact: Union[Callable, torch.Tensor], p=None, *,
                      method: Union[str, ButcherTableau] = "dopri5",
                      dts: Optional[Sequence[float]] = None) -> ConvergenceResult:
    """Run fixed-step integrations for every dt and measure endpoint error.

    ``exact`` is either the exact final state or a callable ``exact(t)``.
    The default dts halve the span length 3..6 times.
    """
    tab = get_tableau(method)
    t0, t1 = float(t_span[0]), float(t_span[1])
    if dts is None:
        dts = [(t1 - t0) / 2 ** k for k in range(3, 7)]
    dts = np.asarray(sorted(dts, reverse=True), dtype=float)
    if len(dts) < 2:
        raise ValueError("need at least two step sizes")
    y_ref = exact(t1) if callable(exact) else exact
    y_ref = torch.as_tensor(y_ref, dtype=torch.float64)

    errors = []
    for dt in dts:
        sol = integrate(f, y0, (t0, t1), p, method=tab, adaptive=False, dt=float(dt),
                        max_steps=int(np.ceil((t1 - t0) / dt)) + 10)
        _, y_end = sol.final()
        errors.append(_final_error(y_end.to(torch.float64), y_ref))
    errors = np.asarray(errors)

    with np.errstate(divide="ignore", invalid="ignore"):
        orders = np.log(errors[:-1] / errors[1:]) / np.log(dts[:-1] / dts[1:])
        slope, _ = np.polyfit(np.log(dts), np.log(errors), 1)
    logger.info("%s: estimated order %.3f (tableau order %d)", tab.name, slope, tab.order)
    return ConvergenceResult(tab.name, dts, errors, orders, float(slope))


def work_precision(f: Callable, y0, t_span: Sequence[float],
                   reference: torch.Tensor, p=None, *,
                   methods: Sequence[Union[str, ButcherTableau]] = ("bs3", "dopri5"),
                   tols: Sequence[float] = (1e-3, 1e-5, 1e-7, 1e-9)) -> List[WorkPrecisionPoint]:
    """Endpoint error against cost for each (method, tolerance) pair."""
    reference = torch.as_tensor(reference, dtype=torch.float64)
    points = []
    for method in methods:
        tab = get_tableau(method)
        for tol in tols:
            start = time.perf_counter()
            sol = integrate(f, y0, t_span, p, tol=tol, method=tab)
            elapsed = time.perf_counter() - start
            _, y_end = sol.final()
            points.append(WorkPrecisionPoint(tab.name, float(tol),
                                             _final_error(y_end.to(torch.float64), reference),
                                             sol.stats["nfev"], sol.stats["naccept"],
                                             elapsed))
            logger.debug("%s tol=%.1e err=%.3e nfev=%d", tab.name, tol,
                         points[-1].error, points[-1].nfev)
    return points
