"""
Shared test fixtures and helpers.

Puts src/ on the import path, keeps matplotlib off-screen and provides small
hand-built grids for scenario tests.
"""

import os
import sys

import matplotlib
import pytest

matplotlib.use("Agg")

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from sir_grid import BehaviorMix, SIRGrid, SIRState  # noqa: E402

S = SIRState.SUSCEPTIBLE
I = SIRState.INFECTIOUS  # noqa: E741
R = SIRState.RECOVERED


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: slower end-to-end runs"
    )


class FixedDraws:
    """Stand-in generator returning a scripted sequence of uniform draws."""

    def __init__(self, *values):
        self.values = list(values)
        self.calls = 0

    def random(self):
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        return value


@pytest.fixture
def fixed_draws():
    return FixedDraws


@pytest.fixture
def center_outbreak_grid():
    """3x3 grid with an always-infectious, never-recovering center cell."""
    states = [
        [S, S, S],
        [S, I, S],
        [S, S, S],
    ]
    return SIRGrid.from_layout(states, infection_rate=1.0, recovery_rate=0.0, rng=0)


@pytest.fixture
def mixed_grid():
    """Populated 20x20 grid using every behavior."""
    grid = SIRGrid(20, rng=7)
    grid.populate(
        0.05,
        infection_rate=0.3,
        recovery_rate=0.1,
        mix=BehaviorMix(
            contact_tracing=0.2, quarantine=0.2, masked=0.2, introvert=0.2
        ),
    )
    return grid
