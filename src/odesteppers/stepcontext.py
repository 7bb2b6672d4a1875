# stepcontext.py -----------------------------------------------------------
import enum
from dataclasses import dataclass, field
from typing import Callable, Optional

import torch


class StepState(enum.Enum):
    INITIALIZING = "initializing"
    STEPPING     = "stepping"
    ACCEPTED     = "accepted"
    REJECTED     = "rejected"
    FINISHED     = "finished"
    FAILED       = "failed"


@dataclass
class StepContext:
    # user-visible state
    y:       torch.Tensor
    t:       float
    h:       float
    tfinal:  float

    # solver options
    rhs:     Callable                    # uniform out-of-place adapter f(t, y)
    rtol:    torch.Tensor
    atol:    torch.Tensor
    h_min:   float
    h_max:   float
    max_it:  int

    # stage derivative at (t, y), carried over by FSAL tableaus
    f0:      Optional[torch.Tensor] = None

    # controller memory
    err_old:  float = 1.0e-4
    rejected: bool  = False

    stats:   dict = field(default_factory=lambda: dict(
                    step=0, rej=0, attempt=0, fcall=0))
