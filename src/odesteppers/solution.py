# solution.py
from dataclasses import dataclass, field
from typing import List, Optional, Union

import numpy as np
import torch


@dataclass
class OutputBuffer:
    t:    List[float]         = field(default_factory=list)
    y:    List[torch.Tensor]  = field(default_factory=list)
    dydt: List[torch.Tensor]  = field(default_factory=list)

    def append(self, t: float, y: torch.Tensor, dydt: torch.Tensor):
        if self.t and not t > self.t[-1]:
            raise RuntimeError(f"non-increasing sample time {t} after {self.t[-1]}")
        self.t.append(t)
        self.y.append(y.clone())
        self.dydt.append(dydt.clone())


class Solution:
    """Trajectory (t_i, y_i) of one integration run.

    Samples sit at the accepted steps, so spacing is in general not uniform.
    Calling the solution evaluates a cubic Hermite interpolant built from the
    stored states and derivatives.
    """

    def __init__(self, buf: OutputBuffer, stats: dict, method: str,
                 status: str = "success", message: str = ""):
        self.t       = torch.tensor(buf.t, dtype=torch.float64)
        self.y       = torch.stack(buf.y) if buf.y else torch.empty(0)
        self.dydt    = torch.stack(buf.dydt) if buf.dydt else torch.empty(0)
        self._times  = tuple(buf.t)
        self.stats   = dict(naccept=stats.get("step", 0),
                            nreject=stats.get("rej", 0),
                            nfev=stats.get("fcall", 0))
        self.method  = method
        self.status  = status
        self.message = message

    def __len__(self):
        return len(self._times)

    def __repr__(self):
        return (f"Solution(method={self.method!r}, status={self.status!r}, "
                f"samples={len(self)}, t=[{self.t0}, {self.t_last}], stats={self.stats})")

    @property
    def success(self) -> bool:
        return self.status == "success"

    @property
    def t0(self) -> Optional[float]:
        return self._times[0] if self._times else None

    @property
    def t_last(self) -> Optional[float]:
        return self._times[-1] if self._times else None

    def final(self):
        """Last sample (t, y)."""
        if not self._times:
            raise ValueError("empty solution")
        return self._times[-1], self.y[-1].clone()

    def to_numpy(self):
        return self.t.numpy().copy(), self.y.numpy().copy()

    # ---- dense output ----------------------------------------------------
    def interpolate(self, tq: Union[float, torch.Tensor, np.ndarray, list]) -> torch.Tensor:
        """Cubic Hermite interpolation of y at tq.

        A scalar query returns shape (n,), a 1-D query of length m returns
        (m, n). Queries must lie inside [t0, t_last].
        """
        if len(self) == 0:
            raise ValueError("empty solution")
        scalar = np.ndim(tq) == 0
        tq = torch.atleast_1d(torch.as_tensor(tq, dtype=torch.float64))
        lo, hi = self._times[0], self._times[-1]
        if (tq < lo).any() or (tq > hi).any():
            raise ValueError(f"query outside solution interval [{lo}, {hi}]")
        if len(self) == 1:
            out = self.y[:1].expand(len(tq), -1).clone()
            return out[0] if scalar else out

        idx = torch.searchsorted(self.t, tq, right=True) - 1
        idx = idx.clamp(0, len(self) - 2)
        t0, t1 = self.t[idx], self.t[idx + 1]
        h  = (t1 - t0).unsqueeze(1)
        s  = ((tq - t0) / (t1 - t0)).unsqueeze(1)
        y0, y1 = self.y[idx], self.y[idx + 1]
        f0, f1 = self.dydt[idx], self.dydt[idx + 1]

        h00 = (1 + 2 * s) * (1 - s) ** 2
        h10 = s * (1 - s) ** 2
        h01 = s ** 2 * (3 - 2 * s)
        h11 = s ** 2 * (s - 1)
        out = h00 * y0 + h10 * h * f0 + h01 * y1 + h11 * h * f1
        return out[0] if scalar else out

    __call__ = interpolate
