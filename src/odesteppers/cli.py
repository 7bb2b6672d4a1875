# cli.py
"""python -m odesteppers: integrate one of the tutorial models."""
import argparse
import logging
import math
import sys

from . import models
from .errors import IntegrationError
from .integrator import integrate
from .tableaus import METHODS

logger = logging.getLogger(__name__)


def _problems():
    pend = models.PendulumParams()
    dpend = models.DoublePendulumParams()
    return {
        "pendulum":        (models.pendulum, [math.pi / 2, 0.0], pend,
                            lambda u: models.pendulum_energy(u, pend)),
        "double_pendulum": (models.double_pendulum, [math.pi / 2, 0.0, math.pi, 0.0], dpend,
                            lambda u: models.double_pendulum_energy(u, dpend)),
        "henon_heiles":    (models.henon_heiles, [0.0, 0.1, 0.5, 0.0], None,
                            models.henon_heiles_energy),
        "vdp":             (models.van_der_pol, [2.0, 0.0], 1.0, None),
    }


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="odesteppers",
                                 description="Integrate a tutorial ODE model.")
    ap.add_argument("model", choices=sorted(_problems()))
    ap.add_argument("--method", default="dopri5",
                    choices=sorted(n for n, t in METHODS.items() if t.adaptive))
    ap.add_argument("--tol", type=float, default=1e-8)
    ap.add_argument("--tf", type=float, default=10.0, help="final time")
    ap.add_argument("--max-steps", type=int, default=100000)
    ap.add_argument("--plot", metavar="FILE", help="save a figure of the solution")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    f, y0, p, energy = _problems()[args.model]
    try:
        sol = integrate(f, y0, (0.0, args.tf), p, tol=args.tol,
                        method=args.method, max_steps=args.max_steps)
    except IntegrationError as exc:
        logger.error("integration failed at t=%s: %s", exc.t, exc)
        return 1

    t_end, y_end = sol.final()
    logger.info("y(%g) = %s", t_end, y_end.tolist())
    logger.info("stats: %s", sol.stats)
    if energy is not None:
        e = energy(sol.y)
        logger.info("energy drift: %.3e", (e - e[0]).abs().max().item())

    if args.plot:
        import matplotlib
        matplotlib.use("Agg")
        from .plotting import plot_solution
        ax = plot_solution(sol, dense=2000)
        ax.figure.savefig(args.plot, dpi=120)
        logger.info("figure written to %s", args.plot)
    return 0


if __name__ == "__main__":
    sys.exit(main())
