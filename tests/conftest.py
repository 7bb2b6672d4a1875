"""
Shared fixtures for the odesteppers test suite.
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pytest
import torch


@pytest.fixture
def decay():
    """dy/dt = -y, out-of-place with parameter slot."""
    return lambda t, y, p: -y


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


@pytest.fixture
def oscillator_y0():
    return torch.tensor([1.0, 0.0], dtype=torch.float64)
