# errors.py
from typing import Optional


class IntegrationError(RuntimeError):
    """Terminal failure of one integration run.

    Carries the partial trajectory computed so far (``solution``, may be
    ``None`` when nothing was sampled yet) together with the time ``t`` and
    step size ``h`` at which the run gave up.
    """

    def __init__(self, message: str, *, solution=None,
                 t: Optional[float] = None, h: Optional[float] = None):
        super().__init__(message)
        self.solution = solution
        self.t        = t
        self.h        = h


class InvalidSpan(IntegrationError, ValueError):
    """t_span is not an increasing pair of finite times."""


class DimensionMismatch(IntegrationError):
    """The right-hand side returned a vector of the wrong length."""


class StepSizeUnderflow(IntegrationError):
    """Step size fell below h_min without meeting the tolerance."""


class MaxStepsExceeded(IntegrationError):
    """The step-attempt ceiling was reached before t1."""
