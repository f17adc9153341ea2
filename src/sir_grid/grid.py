"""
Population grid for the SIR cellular automaton.

`SIRGrid` owns every cell of a square population, builds the neighbor
topology once, and advances the whole population one synchronous tick at a
time with a two-phase protocol: every cell computes its next state from the
same committed snapshot, then every cell commits.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

from utils.logging import log_call
from .behavior import BehaviorMix, BehaviorPolicy, make_policies, DEFAULT_AVOIDANCE_RATE
from .cells import Cell, NeighborView
from .errors import (
    ConfigurationError,
    InvariantViolation,
    SimulationError,
    require_positive_int,
    require_probability,
)
from .rng import SeedLike, make_rng, spawn_streams
from .states import Behavior, SIRState
from .topology import build_topology, moore_neighborhood

RateLike = Union[float, Sequence[Sequence[float]], np.ndarray]


class Demographics(NamedTuple):
    """Population counts per SIR state at one instant."""

    susceptible: int
    infectious: int
    recovered: int

    @property
    def total(self) -> int:
        return self.susceptible + self.infectious + self.recovered

    @log_call
    def fractions(self) -> Tuple[float, float, float]:
        """Counts normalized by the population size."""
        total = self.total
        if total == 0:
            return (0.0, 0.0, 0.0)
        return (
            self.susceptible / total,
            self.infectious / total,
            self.recovered / total,
        )


class SIRGrid:
    """
    Square population of SIR cells with synchronous updates.

    Parameters
    ----------
    size : int
        Number of cells along each side; the population is ``size ** 2``
    rng : int, Generator or None, optional
        Seed or generator used for population generation, topology and
        (through spawned child streams) ticking
    n_partitions : int, default=1
        Number of row-major bands phase 1 is split into. Each band has its
        own random stream, so results depend on the seed and this number.
    n_workers : int, default=1
        Threads used to run the phase-1 bands. Does not affect results.

    Attributes
    ----------
    ticks : int
        Number of ticks applied since the last `populate`
    """

    def __init__(
        self,
        size: int,
        rng: SeedLike = None,
        n_partitions: int = 1,
        n_workers: int = 1
    ):
        self._size = require_positive_int("size", size)
        self.n_partitions = require_positive_int("n_partitions", n_partitions)
        self.n_workers = require_positive_int("n_workers", n_workers)
        if self.n_partitions > self._size * self._size:
            raise ConfigurationError(
                f"n_partitions ({n_partitions}) exceeds the population size"
            )
        self.rng = make_rng(rng)
        self.ticks = 0
        self._cells: List[Cell] = []
        self._streams: List[np.random.Generator] = []
        self._bands: List[range] = []

    def __repr__(self) -> str:
        return f"SIRGrid(size={self._size}, populated={self.populated})"

    @property
    def size(self) -> int:
        return self._size

    @property
    def population_size(self) -> int:
        return self._size * self._size

    @property
    def populated(self) -> bool:
        return bool(self._cells)

    @log_call
    def populate(
        self,
        initial_infected_fraction: float,
        infection_rate: float,
        recovery_rate: float,
        mix: Optional[BehaviorMix] = None
    ) -> None:
        """
        Generate a fresh population and its topology.

        Every cell, in row-major order, draws whether it starts infectious
        and then which behavior it follows. Any previous population is
        replaced. All arguments are validated before anything changes.

        Parameters
        ----------
        initial_infected_fraction : float
            Chance each cell starts infectious
        infection_rate : float
            Base per-neighbor transmission probability per tick
        recovery_rate : float
            Per-tick recovery probability of infectious cells
        mix : BehaviorMix, optional
            Behavior fractions; everyone is baseline when omitted
        """
        initial_infected_fraction = require_probability(
            "initial_infected_fraction", initial_infected_fraction
        )
        infection_rate = require_probability("infection_rate", infection_rate)
        recovery_rate = require_probability("recovery_rate", recovery_rate)
        mix = mix if mix is not None else BehaviorMix()
        policies = make_policies(mix.avoidance_rate)

        cells = []
        for _ in range(self.population_size):
            if self.rng.random() < initial_infected_fraction:
                state = SIRState.INFECTIOUS
            else:
                state = SIRState.SUSCEPTIBLE
            behavior = mix.choose(self.rng.random())
            cells.append(
                Cell(state, infection_rate, recovery_rate, behavior, policies[behavior])
            )

        self._install(cells)
        logging.debug(
            "Populated %dx%d grid: %s", self._size, self._size, self.demographics()
        )

    @classmethod
    @log_call
    def from_layout(
        cls,
        states: Sequence[Sequence[SIRState]],
        behaviors: Optional[Sequence[Sequence[Behavior]]] = None,
        infection_rate: RateLike = 0.0,
        recovery_rate: RateLike = 0.0,
        avoidance_rate: float = DEFAULT_AVOIDANCE_RATE,
        rng: SeedLike = None,
        n_partitions: int = 1,
        n_workers: int = 1
    ) -> "SIRGrid":
        """
        Build a grid from an explicit square layout of states.

        Parameters
        ----------
        states : 2-D sequence of SIRState
            Initial state of every cell, one inner sequence per row
        behaviors : 2-D sequence of Behavior, optional
            Behavior of every cell; all baseline when omitted
        infection_rate, recovery_rate : float or 2-D array-like
            Scalars apply to every cell, arrays give per-cell rates
        avoidance_rate : float, default=0.5
            Neighbor avoidance chance for introvert cells

        Returns
        -------
        grid : SIRGrid
        """
        size = len(states)
        if size == 0 or any(len(row) != size for row in states):
            raise ConfigurationError("layout must be a non-empty square")
        if behaviors is None:
            behaviors = [[Behavior.BASELINE] * size for _ in range(size)]
        elif len(behaviors) != size or any(len(row) != size for row in behaviors):
            raise ConfigurationError("behavior layout must match the state layout")

        infection = _broadcast_rates("infection_rate", infection_rate, size)
        recovery = _broadcast_rates("recovery_rate", recovery_rate, size)
        policies = make_policies(avoidance_rate)

        grid = cls(size, rng=rng, n_partitions=n_partitions, n_workers=n_workers)
        cells = [
            Cell(
                states[row][col],
                float(infection[row, col]),
                float(recovery[row, col]),
                behaviors[row][col],
                policies[behaviors[row][col]],
            )
            for row in range(size)
            for col in range(size)
        ]
        grid._install(cells)
        return grid

    def _install(self, cells: List[Cell]) -> None:
        build_topology(cells, self._size, self.rng)
        self._cells = cells
        self._streams = spawn_streams(self.rng, self.n_partitions)
        self._bands = [
            range(int(chunk[0]), int(chunk[-1]) + 1)
            for chunk in np.array_split(np.arange(len(cells)), self.n_partitions)
        ]
        self.ticks = 0

    def _require_populated(self) -> None:
        if not self._cells:
            raise SimulationError("grid has not been populated")

    def _compute_band(
        self,
        band: range,
        view: NeighborView,
        rng: np.random.Generator
    ) -> None:
        cells = self._cells
        for index in band:
            cells[index].compute_next_state(view, rng)

    @log_call
    def tick(self) -> None:
        """
        Advance the population by one synchronous step.

        Phase 1 computes every next state from one committed snapshot; all
        phase-1 work is joined before phase 2 commits every cell.
        """
        self._require_populated()
        view = NeighborView.from_cells(self._cells)

        if self.n_workers > 1 and len(self._bands) > 1:
            with ThreadPoolExecutor(max_workers=self.n_workers) as pool:
                futures = [
                    pool.submit(self._compute_band, band, view, stream)
                    for band, stream in zip(self._bands, self._streams)
                ]
                for future in futures:
                    future.result()
        else:
            for band, stream in zip(self._bands, self._streams):
                self._compute_band(band, view, stream)

        for cell in self._cells:
            cell.commit()
        self.ticks += 1

    @log_call
    def infectious_count(self) -> int:
        """Number of currently infectious cells."""
        self._require_populated()
        return sum(1 for cell in self._cells if cell.state is SIRState.INFECTIOUS)

    @log_call
    def demographics(self) -> Demographics:
        """Committed counts of susceptible, infectious and recovered cells."""
        self._require_populated()
        counts = {state: 0 for state in SIRState}
        for cell in self._cells:
            counts[cell.state] += 1
        demographics = Demographics(
            counts[SIRState.SUSCEPTIBLE],
            counts[SIRState.INFECTIOUS],
            counts[SIRState.RECOVERED],
        )
        if demographics.total != self.population_size:
            raise InvariantViolation(
                f"demographics total {demographics.total} != {self.population_size}"
            )
        return demographics

    # Read-only snapshots; cells themselves never leave the grid

    @log_call
    def state_codes(self) -> np.ndarray:
        """``size x size`` int8 array of committed state codes."""
        self._require_populated()
        codes = np.fromiter(
            (cell.state.code for cell in self._cells),
            dtype=np.int8,
            count=len(self._cells),
        )
        return codes.reshape(self._size, self._size)

    @log_call
    def quarantine_mask(self) -> np.ndarray:
        """``size x size`` boolean array of committed quarantine flags."""
        self._require_populated()
        mask = np.fromiter(
            (cell.quarantined for cell in self._cells),
            dtype=bool,
            count=len(self._cells),
        )
        return mask.reshape(self._size, self._size)

    @log_call
    def behavior_grid(self) -> np.ndarray:
        """``size x size`` object array of each cell's `Behavior`."""
        self._require_populated()
        behaviors = np.empty(len(self._cells), dtype=object)
        behaviors[:] = [cell.behavior for cell in self._cells]
        return behaviors.reshape(self._size, self._size)

    def _cell_at(self, row: int, col: int) -> Cell:
        self._require_populated()
        if not (0 <= row < self._size and 0 <= col < self._size):
            raise IndexError(f"position ({row}, {col}) is outside the grid")
        return self._cells[row * self._size + col]

    @log_call
    def state_at(self, row: int, col: int) -> SIRState:
        return self._cell_at(row, col).state

    @log_call
    def is_quarantined(self, row: int, col: int) -> bool:
        return self._cell_at(row, col).quarantined

    @log_call
    def behavior_at(self, row: int, col: int) -> Behavior:
        return self._cell_at(row, col).behavior

    @log_call
    def transmission_rate_at(self, row: int, col: int) -> float:
        """Rate the cell at (row, col) currently advertises to neighbors."""
        return self._cell_at(row, col).transmission_rate()

    @log_call
    def neighbor_positions(self, row: int, col: int) -> List[Tuple[int, int]]:
        """Positions the cell at (row, col) can see, in neighbor order."""
        return [divmod(index, self._size) for index in self._cell_at(row, col).neighbors]

    @log_call
    def moore_positions(self, row: int, col: int) -> List[Tuple[int, int]]:
        """Full bounded Moore neighborhood of (row, col), before any filtering."""
        return moore_neighborhood(row, col, self._size)


def _broadcast_rates(name: str, rates: RateLike, size: int) -> np.ndarray:
    try:
        array = np.asarray(rates, dtype=float)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a scalar or a {size}x{size} array") from exc
    if array.ndim != 0 and array.shape != (size, size):
        raise ConfigurationError(
            f"{name} must be a scalar or a {size}x{size} array, got shape {array.shape}"
        )
    if np.isnan(array).any() or (array < 0).any() or (array > 1).any():
        raise ConfigurationError(f"{name} values must be between 0 and 1")
    return np.broadcast_to(array, (size, size))
