"""
Day-by-day driver for SIR grid simulations.

The driver seeds the grid, ticks it until no cell is infectious or the day
limit is passed, and hands every committed day to the optional writer and
visualizer collaborators.
"""

import logging
from numbers import Integral
from typing import Any, Dict, List, Optional, Protocol

import pandas as pd

from utils.logging import log_call
from .behavior import BehaviorMix
from .errors import ConfigurationError, require_positive_int, require_probability
from .grid import Demographics, SIRGrid
from .rng import SeedLike

# Seeding schedule used when no initial infected fraction is given
SEED_START_FRACTION = 0.001
SEED_FRACTION_STEP = 0.005

HISTORY_COLUMNS = [
    "day",
    "susceptible",
    "infectious",
    "recovered",
    "susceptible_frac",
    "infectious_frac",
    "recovered_frac",
]


class DemographicsSink(Protocol):
    def open(self, max_days: int, infection_rate: float,
             recovery_rate: float, size: int) -> Any: ...

    def update(self, day: int, demographics: Demographics,
               fractions: tuple) -> None: ...

    def close(self) -> Any: ...


class FrameSink(Protocol):
    def update(self, day: int, grid: SIRGrid) -> None: ...

    def close(self) -> None: ...


class SIRSimulation:
    """
    Runs one SIR epidemic on a square grid.

    Parameters
    ----------
    size : int
        Cells along each side of the grid
    infection_rate : float
        Per-neighbor transmission probability per day
    recovery_rate : float
        Daily recovery probability of infectious cells
    max_days : int, default=90
        Last day index that may still be simulated
    mix : BehaviorMix, optional
        Behavior fractions; everyone is baseline when omitted
    initial_infected_fraction : float, optional
        Chance each cell starts infectious. When omitted the grid is
        re-seeded with a growing fraction until at least one cell is
        infectious.
    random_seed : int or Generator, optional
    n_partitions, n_workers : int, default=1
        Phase-1 partitioning, see `SIRGrid`
    writer : DemographicsSink, optional
        Receives daily demographics (e.g. `DemographicsWriter`)
    visualizer : FrameSink, optional
        Receives the grid after every day (e.g. `GridVisualizer`)

    Attributes
    ----------
    grid : SIRGrid
    day : int
        Number of days simulated so far in the current run
    history : list of dict
        One record per simulated day
    """

    def __init__(
        self,
        size: int,
        infection_rate: float,
        recovery_rate: float,
        max_days: int = 90,
        mix: Optional[BehaviorMix] = None,
        initial_infected_fraction: Optional[float] = None,
        random_seed: SeedLike = None,
        n_partitions: int = 1,
        n_workers: int = 1,
        writer: Optional[DemographicsSink] = None,
        visualizer: Optional[FrameSink] = None
    ):
        if isinstance(max_days, bool) or not isinstance(max_days, Integral) or max_days < 0:
            raise ConfigurationError(f"max_days must be a non-negative integer, got {max_days!r}")
        self.size = require_positive_int("size", size)
        self.infection_rate = require_probability("infection_rate", infection_rate)
        self.recovery_rate = require_probability("recovery_rate", recovery_rate)
        if initial_infected_fraction is not None:
            initial_infected_fraction = require_probability(
                "initial_infected_fraction", initial_infected_fraction
            )
        self.initial_infected_fraction = initial_infected_fraction
        self.max_days = int(max_days)
        self.mix = mix if mix is not None else BehaviorMix()
        self.grid = SIRGrid(
            size, rng=random_seed, n_partitions=n_partitions, n_workers=n_workers
        )
        self.writer = writer
        self.visualizer = visualizer
        self.day = 0
        self.history: List[Dict[str, Any]] = []
        self.seeded_fraction: Optional[float] = None
        self._writer_open = False

    @log_call
    def initialize(self) -> SIRGrid:
        """Populate the grid, guaranteeing an outbreak when no fraction is fixed."""
        starved = self.mix.starved()
        if starved:
            logging.warning(
                "Behavior fractions fill 100%% or more; priority is contact tracing, "
                "quarantine, masked, introvert. No cells will be: %s",
                ", ".join(behavior.value for behavior in starved),
            )

        if self.initial_infected_fraction is not None:
            self.seeded_fraction = self.initial_infected_fraction
            self._populate(self.seeded_fraction)
        else:
            fraction = SEED_START_FRACTION
            self._populate(fraction)
            while self.grid.infectious_count() < 1:
                fraction = min(1.0, fraction + SEED_FRACTION_STEP)
                self._populate(fraction)
            self.seeded_fraction = fraction

        logging.info(
            "Seeded %dx%d grid with initial infected fraction %.3f: %s",
            self.size, self.size, self.seeded_fraction, self.grid.demographics(),
        )
        self.day = 0
        self.history = []
        return self.grid

    def _populate(self, fraction: float) -> None:
        self.grid.populate(fraction, self.infection_rate, self.recovery_rate, self.mix)

    def _open_writer(self) -> None:
        self.writer.open(
            self.max_days, self.infection_rate, self.recovery_rate, self.size
        )
        self._writer_open = True

    @log_call
    def step(self) -> Demographics:
        """Simulate one day and report it to the collaborators."""
        if not self.grid.populated:
            self.initialize()
        if self.writer is not None and not self._writer_open:
            self._open_writer()
        self.grid.tick()
        if self.visualizer is not None:
            self.visualizer.update(self.day, self.grid)

        demographics = self.grid.demographics()
        fractions = demographics.fractions()
        if self.writer is not None:
            self.writer.update(self.day, demographics, fractions)

        self.history.append(dict(zip(
            HISTORY_COLUMNS,
            (self.day, *demographics, *fractions),
        )))
        self.day += 1
        return demographics

    @log_call
    def should_continue(self) -> bool:
        return self.grid.infectious_count() > 0 and self.day <= self.max_days

    @log_call
    def run(self) -> pd.DataFrame:
        """
        Simulate until no cell is infectious or `max_days` is passed.

        Returns
        -------
        history : pd.DataFrame
            One row per simulated day with counts and fractions
        """
        if not self.grid.populated:
            self.initialize()
        if self.writer is not None:
            self._open_writer()

        self.day = 0
        self.history = []
        try:
            while self.should_continue():
                self.step()
        finally:
            if self.writer is not None:
                self.writer.close()
                self._writer_open = False
            if self.visualizer is not None:
                self.visualizer.close()

        logging.info(
            "Simulation stopped after %d days with %d infectious cells",
            self.day, self.grid.infectious_count(),
        )
        return self.history_frame()

    @log_call
    def history_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.history, columns=HISTORY_COLUMNS)
