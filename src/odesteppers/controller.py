# controller.py
"""Error norm and step-size control for embedded Runge-Kutta pairs."""
import logging
import math
from dataclasses import dataclass
from typing import Callable, Tuple

import torch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControllerOptions:
    """Constants of the (PI) step-size controller.

    With ``beta == 0`` this is the classical controller

        h_new = h * clamp(safety * err**(-1/order), min_factor, max_factor)

    A positive ``beta`` adds the proportional term ``err_old**beta`` and
    lowers the integral exponent to ``1/order - 0.75*beta``.
    """
    safety:     float = 0.9
    min_factor: float = 0.2
    max_factor: float = 10.0
    beta:       float = 0.0

    def __post_init__(self):
        if not 0.0 < self.safety < 1.0:
            raise ValueError(f"safety must lie in (0, 1), got {self.safety}")
        if not 0.0 < self.min_factor < 1.0:
            raise ValueError(f"min_factor must lie in (0, 1), got {self.min_factor}")
        if not self.max_factor > 1.0:
            raise ValueError(f"max_factor must exceed 1, got {self.max_factor}")
        if self.beta < 0.0:
            raise ValueError(f"beta must be non-negative, got {self.beta}")

    def exponents(self, order: int) -> Tuple[float, float]:
        alpha = 1.0 / order - 0.75 * self.beta
        if alpha <= 0.0:
            raise ValueError(f"beta={self.beta} too large for order {order}")
        return alpha, self.beta


def rms_norm(x: torch.Tensor) -> float:
    return torch.sqrt(torch.mean(x * x)).item()


def scaled(x: torch.Tensor, sk: torch.Tensor) -> torch.Tensor:
    """x / sk, with 0 where both vanish (pure relative tolerance on a zero component)."""
    return torch.where(sk > 0, x / torch.where(sk > 0, sk, torch.ones_like(sk)),
                       torch.where(x == 0, torch.zeros_like(x), torch.full_like(x, math.inf)))


def error_norm(yerr: torch.Tensor, y: torch.Tensor, y_new: torch.Tensor,
               atol: torch.Tensor, rtol: torch.Tensor) -> float:
    """RMS of yerr scaled by atol + rtol*max(|y|, |y_new|)."""
    sk = atol + rtol * torch.maximum(torch.abs(y), torch.abs(y_new))
    return rms_norm(scaled(yerr, sk))


def propose_step(h: float, err: float, err_old: float, rejected: bool,
                 order: int, opts: ControllerOptions) -> Tuple[bool, float]:
    """Decide acceptance of a trial step and propose the next step size.

    Returns (accept, h_new). h_new is always positive for positive h.
    """
    alpha, beta = opts.exponents(order)
    if err <= 1.0:
        if err == 0.0:
            scale = opts.max_factor
        else:
            scale = opts.safety * err ** (-alpha) * err_old ** beta
            scale = min(opts.max_factor, max(opts.min_factor, scale))
        if rejected:
            # no growth straight after a rejection
            scale = min(scale, 1.0)
        return True, h * scale
    if not math.isfinite(err):
        return False, h * opts.min_factor
    scale = max(opts.min_factor, opts.safety * err ** (-alpha))
    return False, h * scale


def initial_step(rhs: Callable, t0: float, y0: torch.Tensor, f0: torch.Tensor,
                 order: int, atol: torch.Tensor, rtol: torch.Tensor,
                 h_max: float) -> float:
    """Hairer-Norsett-Wanner starting step (Solving ODEs I, II.4).

    Uses one extra right-hand-side evaluation.
    """
    sk = atol + rtol * torch.abs(y0)
    d0 = rms_norm(scaled(y0, sk))
    d1 = rms_norm(scaled(f0, sk))
    if d0 < 1e-5 or d1 < 1e-5 or not math.isfinite(d1):
        h0 = 1e-6
    else:
        h0 = 0.01 * d0 / d1
    h0 = min(h0, h_max)

    y1 = y0 + h0 * f0
    f1 = rhs(t0 + h0, y1)
    d2 = rms_norm(scaled(f1 - f0, sk)) / h0

    if max(d1, d2) <= 1e-15:
        h1 = max(1e-6, h0 * 1e-3)
    else:
        h1 = (0.01 / max(d1, d2)) ** (1.0 / order)

    h = min(100.0 * h0, h1, h_max)
    if not (math.isfinite(h) and h > 0.0):
        # a zero component under atol=0 that starts moving has no finite scale
        h = min(h0, h_max)
    logger.debug("initial step: d0=%.3e d1=%.3e d2=%.3e -> h=%.3e", d0, d1, d2, h)
    return h
