"""Adaptive explicit Runge-Kutta integration with embedded error control."""
import logging

from .controller import ControllerOptions
from .errors import (DimensionMismatch, IntegrationError, InvalidSpan,
                     MaxStepsExceeded, StepSizeUnderflow)
from .integrator import ExplicitRKIntegrator, integrate
from .solution import Solution
from .stepcontext import StepState
from .tableaus import METHODS, ButcherTableau, get_tableau

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "integrate", "ExplicitRKIntegrator", "Solution", "StepState",
    "ControllerOptions", "ButcherTableau", "METHODS", "get_tableau",
    "IntegrationError", "InvalidSpan", "DimensionMismatch",
    "StepSizeUnderflow", "MaxStepsExceeded",
]
