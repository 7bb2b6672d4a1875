# tableaus.py
"""Butcher tableaus of the explicit Runge-Kutta methods.

Every method is an immutable constant table selected by name when an
integrator is built; there is no per-method class.
"""
import math
import torch
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Union


Row = Tuple[float, ...]


@dataclass(frozen=True)
class ButcherTableau:
    name:           str
    c:              Row                  # stage abscissae (s,)
    a:              Tuple[Row, ...]      # strictly lower rows, a[i] has i entries
    b:              Row                  # propagating weights, order `order`
    b_hat:          Optional[Row]        # embedded weights, None => fixed step only
    order:          int
    embedded_order: Optional[int] = None
    fsal:           bool          = False
    description:    str           = field(default="", compare=False)

    def __post_init__(self):
        s = len(self.c)
        if s == 0:
            raise ValueError(f"{self.name}: empty tableau")
        if len(self.a) != s or len(self.b) != s:
            raise ValueError(f"{self.name}: inconsistent stage count")
        if self.c[0] != 0.0:
            raise ValueError(f"{self.name}: explicit methods need c[0] == 0")
        for i, row in enumerate(self.a):
            if len(row) != i:
                raise ValueError(f"{self.name}: row {i} of A must have {i} entries")
            if not math.isclose(sum(row), self.c[i], abs_tol=1e-12):
                raise ValueError(f"{self.name}: row sum of A[{i}] != c[{i}]")
        if not math.isclose(sum(self.b), 1.0, abs_tol=1e-12):
            raise ValueError(f"{self.name}: weights b do not sum to 1")
        if self.b_hat is not None:
            if len(self.b_hat) != s:
                raise ValueError(f"{self.name}: b_hat has wrong length")
            if not math.isclose(sum(self.b_hat), 1.0, abs_tol=1e-12):
                raise ValueError(f"{self.name}: weights b_hat do not sum to 1")
            if self.embedded_order is None:
                raise ValueError(f"{self.name}: embedded pair needs embedded_order")
        if self.fsal:
            # last stage must be evaluated at (t+h, y_high)
            same = all(math.isclose(x, y, abs_tol=1e-15)
                       for x, y in zip(self.a[-1], self.b[:-1]))
            if not (same and self.c[-1] == 1.0 and self.b[-1] == 0.0):
                raise ValueError(f"{self.name}: FSAL tableau must have a[-1] == b")

    @property
    def stages(self) -> int:
        return len(self.c)

    @property
    def adaptive(self) -> bool:
        return self.b_hat is not None

    def error_weights(self) -> Row:
        """b - b_hat, so that y_high - y_low = h * sum(e_i k_i)."""
        if self.b_hat is None:
            raise ValueError(f"{self.name} has no embedded error estimator")
        return tuple(bi - bh for bi, bh in zip(self.b, self.b_hat))

    def as_tensors(self, dtype=torch.float64, device="cpu"):
        """Return (c, b, e) tensors; e is None for fixed-step methods."""
        c = torch.tensor(self.c, dtype=dtype, device=device)
        b = torch.tensor(self.b, dtype=dtype, device=device)
        e = None
        if self.b_hat is not None:
            e = torch.tensor(self.error_weights(), dtype=dtype, device=device)
        return c, b, e


# --------------------------------------------------------------------------- #
HEUN_EULER = ButcherTableau(
    name="heun_euler",
    c=(0.0, 1.0),
    a=((),
       (1.0,)),
    b=(1/2, 1/2),
    b_hat=(1.0, 0.0),
    order=2, embedded_order=1,
    description="Heun 2(1) with explicit Euler as embedded method")


BS3 = ButcherTableau(
    name="bs3",
    c=(0.0, 1/2, 3/4, 1.0),
    a=((),
       (1/2,),
       (0.0, 3/4),
       (2/9, 1/3, 4/9)),
    b=(2/9, 1/3, 4/9, 0.0),
    b_hat=(7/24, 1/4, 1/3, 1/8),
    order=3, embedded_order=2, fsal=True,
    description="Bogacki-Shampine 3(2)")


RKF45 = ButcherTableau(
    name="rkf45",
    c=(0.0, 1/4, 3/8, 12/13, 1.0, 1/2),
    a=((),
       (1/4,),
       (3/32, 9/32),
       (1932/2197, -7200/2197, 7296/2197),
       (439/216, -8.0, 3680/513, -845/4104),
       (-8/27, 2.0, -3544/2565, 1859/4104, -11/40)),
    b=(16/135, 0.0, 6656/12825, 28561/56430, -9/50, 2/55),
    b_hat=(25/216, 0.0, 1408/2565, 2197/4104, -1/5, 0.0),
    order=5, embedded_order=4,
    description="Runge-Kutta-Fehlberg 5(4), local extrapolation")


CASH_KARP = ButcherTableau(
    name="cash_karp",
    c=(0.0, 1/5, 3/10, 3/5, 1.0, 7/8),
    a=((),
       (1/5,),
       (3/40, 9/40),
       (3/10, -9/10, 6/5),
       (-11/54, 5/2, -70/27, 35/27),
       (1631/55296, 175/512, 575/13824, 44275/110592, 253/4096)),
    b=(37/378, 0.0, 250/621, 125/594, 0.0, 512/1771),
    b_hat=(2825/27648, 0.0, 18575/48384, 13525/55296, 277/14336, 1/4),
    order=5, embedded_order=4,
    description="Cash-Karp 5(4)")


DOPRI5 = ButcherTableau(
    name="dopri5",
    c=(0.0, 1/5, 3/10, 4/5, 8/9, 1.0, 1.0),
    a=((),
       (1/5,),
       (3/40, 9/40),
       (44/45, -56/15, 32/9),
       (19372/6561, -25360/2187, 64448/6561, -212/729),
       (9017/3168, -355/33, 46732/5247, 49/176, -5103/18656),
       (35/384, 0.0, 500/1113, 125/192, -2187/6784, 11/84)),
    b=(35/384, 0.0, 500/1113, 125/192, -2187/6784, 11/84, 0.0),
    b_hat=(5179/57600, 0.0, 7571/16695, 393/640, -92097/339200, 187/2100, 1/40),
    order=5, embedded_order=4, fsal=True,
    description="Dormand-Prince 5(4)")


RK4 = ButcherTableau(
    name="rk4",
    c=(0.0, 1/2, 1/2, 1.0),
    a=((),
       (1/2,),
       (0.0, 1/2),
       (0.0, 0.0, 1.0)),
    b=(1/6, 1/3, 1/3, 1/6),
    b_hat=None,
    order=4,
    description="classic Runge-Kutta, fixed step only")


METHODS: Dict[str, ButcherTableau] = {
    t.name: t for t in (HEUN_EULER, BS3, RKF45, CASH_KARP, DOPRI5, RK4)
}


def get_tableau(method: Union[str, ButcherTableau]) -> ButcherTableau:
    if isinstance(method, ButcherTableau):
        return method
    key = str(method).lower()
    try:
        return METHODS[key]
    except KeyError:
        raise ValueError(f"unknown method {method!r}; "
                         f"choose one of {sorted(METHODS)}") from None
