# integrator.py
import inspect
import logging
import math
from typing import Callable, Optional, Sequence, Union

import torch

from .controller import ControllerOptions, error_norm, initial_step, propose_step
from .errors import (DimensionMismatch, IntegrationError, InvalidSpan,
                     MaxStepsExceeded, StepSizeUnderflow)
from .solution import OutputBuffer, Solution
from .stepcontext import StepContext, StepState
from .tableaus import ButcherTableau, get_tableau

logger = logging.getLogger(__name__)

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY,
               inspect.Parameter.POSITIONAL_OR_KEYWORD)


def positional_arity(f: Callable) -> int:
    """Number of positional parameters of a right-hand-side callable."""
    code = getattr(f, "__code__", None)
    if code is not None:
        n = code.co_argcount
        return n - 1 if inspect.ismethod(f) else n
    sig = inspect.signature(f)
    return sum(1 for prm in sig.parameters.values() if prm.kind in _POSITIONAL)


def make_rhs(f: Callable, p, y0: torch.Tensor, stats: dict,
             inplace: Optional[bool] = None) -> Callable:
    """Wrap f into a uniform out-of-place adapter ``rhs(t, y) -> dy``.

    Accepted forms are ``f(t, y)``, ``f(t, y, p)`` and the in-place
    ``f(dy_out, t, y, p)``. The form is decided here, once per run.
    """
    n = y0.numel()
    if inplace is None:
        arity = positional_arity(f)
        if arity not in (2, 3, 4):
            raise ValueError(f"cannot infer calling convention of {f!r} "
                             f"with {arity} positional arguments; pass inplace=")
        inplace = arity == 4
    else:
        arity = 4 if inplace else 3

    if inplace:
        def rhs(t, y):
            stats["fcall"] += 1
            dy = torch.empty_like(y)
            try:
                f(dy, t, y, p)
            except IntegrationError:
                raise
            except (RuntimeError, IndexError) as exc:
                raise DimensionMismatch(
                    f"in-place right-hand side does not fit a state of length {n}: {exc}",
                    t=t) from exc
            return dy
        return rhs

    def rhs(t, y):
        stats["fcall"] += 1
        dy = f(t, y) if arity == 2 else f(t, y, p)
        dy = torch.as_tensor(dy, dtype=y.dtype, device=y.device)
        if dy.shape != y.shape:
            # a bare scalar is accepted for a one-component state
            if not (dy.ndim == 0 and n == 1):
                raise DimensionMismatch(
                    f"right-hand side returned shape {tuple(dy.shape)}, "
                    f"state has shape {tuple(y.shape)}", t=t)
            dy = dy.reshape(1)
        return dy
    return rhs


def _as_state(y0) -> torch.Tensor:
    if not isinstance(y0, torch.Tensor):
        y0 = torch.as_tensor(y0, dtype=torch.float64)
    if not torch.is_floating_point(y0):
        y0 = y0.to(torch.float64)
    if y0.ndim != 1:
        raise ValueError(f"initial state must be one-dimensional, got shape {tuple(y0.shape)}")
    if y0.numel() == 0:
        raise ValueError("initial state is empty")
    return y0.clone()


def _as_tolerance(value, y0: torch.Tensor, name: str) -> torch.Tensor:
    tol = torch.as_tensor(value, dtype=y0.dtype, device=y0.device)
    try:
        tol = tol.expand_as(y0).clone()
    except RuntimeError:
        raise ValueError(f"{name} of shape {tuple(tol.shape)} does not match "
                         f"state of length {y0.numel()}") from None
    if (tol < 0).any() or not torch.isfinite(tol).all():
        raise ValueError(f"{name} must be finite and non-negative")
    return tol


# ---------------------------------------------------------------------------

class ExplicitRKIntegrator:
    """Adaptive explicit Runge-Kutta integrator over a fixed tableau."""

    # ---- construction -----------------------------------------------------
    def __init__(self, f: Callable, y0, t_span: Sequence[float], p=None,
                 tol: Union[float, torch.Tensor] = 1e-6,
                 h_init: Optional[float] = None, *,
                 method: Union[str, ButcherTableau] = "dopri5",
                 atol=None, rtol=None,
                 adaptive: bool = True, dt: Optional[float] = None,
                 max_steps: int = 100000,
                 h_min: Optional[float] = None, h_max: Optional[float] = None,
                 controller: Optional[ControllerOptions] = None,
                 inplace: Optional[bool] = None):

        self.state = StepState.INITIALIZING

        t0, t1 = (float(v) for v in t_span)
        if not (math.isfinite(t0) and math.isfinite(t1)) or t1 <= t0:
            raise InvalidSpan(f"t_span must satisfy t0 < t1, got ({t0}, {t1})", t=t0)
        span = t1 - t0

        self.tableau    = get_tableau(method)
        self.adaptive   = adaptive
        self.controller = ControllerOptions() if controller is None else controller
        if adaptive and not self.tableau.adaptive:
            raise ValueError(f"{self.tableau.name} has no embedded pair; "
                             "use adaptive=False with dt")
        if not adaptive:
            if dt is None or not dt > 0:
                raise ValueError("fixed-step integration needs dt > 0")
            self.dt = float(dt)
        else:
            self.dt = None
            self.controller.exponents(self.tableau.order)
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")

        y0 = _as_state(y0)
        atol = _as_tolerance(tol if atol is None else atol, y0, "atol")
        rtol = _as_tolerance(tol if rtol is None else rtol, y0, "rtol")
        if adaptive and not ((atol > 0) | (rtol > 0)).all():
            raise ValueError("tolerance must be positive in every component")

        h_min = 1e-14 * span if h_min is None else float(h_min)
        h_max = span if h_max is None else min(float(h_max), span)
        if not 0 < h_min < h_max:
            raise ValueError(f"need 0 < h_min < h_max, got h_min={h_min}, h_max={h_max}")
        if h_init is not None and not h_init > 0:
            raise ValueError(f"h_init must be positive, got {h_init}")

        stats = dict(step=0, rej=0, attempt=0, fcall=0)
        rhs   = make_rhs(f, p, y0, stats, inplace)
        self.ctx = StepContext(y=y0, t=t0, h=h_max, tfinal=t1,
                               rhs=rhs, rtol=rtol, atol=atol,
                               h_min=h_min, h_max=h_max, max_it=max_steps,
                               stats=stats)
        self.outbuf = OutputBuffer()

        # stage coefficients as tensors once, so the loop only does matmuls
        dtype, device = y0.dtype, y0.device
        s = self.tableau.stages
        A = torch.zeros((s, s), dtype=dtype, device=device)
        for i, row in enumerate(self.tableau.a):
            if row:
                A[i, :i] = torch.tensor(row, dtype=dtype, device=device)
        self._A = A
        _, self._b, self._e = self.tableau.as_tensors(dtype, device)
        self._K = torch.empty((s, y0.numel()), dtype=dtype, device=device)

        try:
            self.ctx.f0 = rhs(t0, y0)
            if not self.adaptive:
                self.ctx.h = self.dt
            elif h_init is not None:
                self.ctx.h = min(float(h_init), h_max)
            else:
                self.ctx.h = initial_step(rhs, t0, y0, self.ctx.f0,
                                          self.tableau.order, atol, rtol, h_max)
        except IntegrationError as exc:
            self._fail(exc)
            raise
        self.ctx.h = max(self.ctx.h, h_min)
        self.outbuf.append(t0, y0, self.ctx.f0)
        logger.debug("%s: t_span=(%g, %g) n=%d h0=%.3e",
                     self.tableau.name, t0, t1, y0.numel(), self.ctx.h)

    # ---- one Runge-Kutta trial step ---------------------------------------
    def _trial(self, h: float):
        """Stages for step h from (t, y); returns (y_high, yerr, f_last)."""
        ctx, K = self.ctx, self._K
        t, y = ctx.t, ctx.y
        K[0] = ctx.f0
        y_stage = y
        for i in range(1, self.tableau.stages):
            y_stage = y + h * (self._A[i, :i] @ K[:i])
            K[i] = ctx.rhs(t + self.tableau.c[i] * h, y_stage)

        if self.tableau.fsal:
            y_high = y_stage
            f_last = K[-1].clone()
        else:
            y_high = y + h * (self._b @ K)
            f_last = None
        yerr = None if self._e is None else h * (self._e @ K)
        return y_high, yerr, f_last

    # ---- accept/reject cycle ----------------------------------------------
    def _attempt(self) -> bool:
        """Do one accept/reject cycle; return True if the step was accepted."""
        ctx = self.ctx
        if ctx.stats["attempt"] >= ctx.max_it:
            raise MaxStepsExceeded(f"reached max_steps={ctx.max_it} at t={ctx.t}",
                                   t=ctx.t, h=ctx.h)
        self.state = StepState.STEPPING

        h = min(ctx.h, ctx.h_max)
        remaining = ctx.tfinal - ctx.t
        last = h >= remaining or remaining - h < ctx.h_min
        if last:
            h = remaining

        ctx.stats["attempt"] += 1
        y_new, yerr, f_last = self._trial(h)

        if self.adaptive:
            err = error_norm(yerr, ctx.y, y_new, ctx.atol, ctx.rtol)
            accept, h_next = propose_step(h, err, ctx.err_old, ctx.rejected,
                                          self.tableau.order, self.controller)
        else:
            err, accept, h_next = 0.0, True, self.dt

        if not accept:
            ctx.stats["rej"] += 1
            ctx.rejected = True
            self.state = StepState.REJECTED
            logger.debug("reject t=%.6e h=%.3e err=%.3e -> h=%.3e", ctx.t, h, err, h_next)
            if h_next < ctx.h_min:
                raise StepSizeUnderflow(
                    f"step size {h_next:.3e} below h_min={ctx.h_min:.3e} at t={ctx.t}; "
                    "problem is likely stiff", t=ctx.t, h=h_next)
            ctx.h = h_next
            return False

        t_new = ctx.tfinal if last else ctx.t + h
        if not t_new > ctx.t:
            raise StepSizeUnderflow(f"step h={h:.3e} does not advance t={ctx.t}",
                                    t=ctx.t, h=h)
        ctx.t, ctx.y = t_new, y_new
        ctx.f0 = f_last if f_last is not None else ctx.rhs(t_new, y_new)
        ctx.err_old  = max(err, 1e-4)
        ctx.rejected = False
        if not last:
            ctx.h = max(min(h_next, ctx.h_max), ctx.h_min)
        ctx.stats["step"] += 1
        self.outbuf.append(t_new, y_new, ctx.f0)
        self.state = StepState.ACCEPTED
        return True

    def _fail(self, exc: IntegrationError):
        self.state = StepState.FAILED
        if exc.solution is None:
            exc.solution = self.solution(status=type(exc).__name__, message=str(exc))
        if exc.t is None:
            exc.t = self.ctx.t if hasattr(self, "ctx") else None
        logger.warning("%s failed: %s", self.tableau.name, exc)

    def solution(self, status: str = "success", message: str = "") -> Solution:
        stats = self.ctx.stats if hasattr(self, "ctx") else {}
        return Solution(self.outbuf, stats, self.tableau.name, status, message)

    # ---- drivers ----------------------------------------------------------
    @property
    def finished(self) -> bool:
        return self.ctx.t >= self.ctx.tfinal

    def step(self):
        """Advance exactly one accepted step and return (t, y)."""
        if self.finished:
            raise RuntimeError("integration already reached t1")
        try:
            while not self._attempt():
                pass
        except IntegrationError as exc:
            self._fail(exc)
            raise
        if self.finished:
            self.state = StepState.FINISHED
        return self.ctx.t, self.ctx.y.clone()

    def run(self) -> Solution:
        try:
            while not self.finished:
                self._attempt()
        except IntegrationError as exc:
            self._fail(exc)
            raise
        self.state = StepState.FINISHED
        st = self.ctx.stats
        logger.info("%s finished at t=%g: %d accepted, %d rejected, %d rhs calls",
                    self.tableau.name, self.ctx.t, st["step"], st["rej"], st["fcall"])
        return self.solution()


def integrate(f: Callable, y0, t_span: Sequence[float], p=None,
              tol: Union[float, torch.Tensor] = 1e-6,
              h_init: Optional[float] = None, **options) -> Solution:
    """Integrate dy/dt = f(t, y, p) over t_span and return the trajectory.

    ``f`` may be out-of-place ``f(t, y, p) -> dy`` (or ``f(t, y)``) or
    in-place ``f(dy_out, t, y, p)``. ``tol`` sets both the absolute and the
    relative tolerance unless ``atol``/``rtol`` are passed. Remaining keyword
    options are those of :class:`ExplicitRKIntegrator`.

    Raises InvalidSpan, DimensionMismatch, StepSizeUnderflow or
    MaxStepsExceeded; the latter three carry the partial solution.
    """
    return ExplicitRKIntegrator(f, y0, t_span, p, tol, h_init, **options).run()
