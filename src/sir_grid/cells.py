"""
Cells (agents) of the SIR grid and the read-only view they decide from.

A `Cell` holds its SIR state, fixed rates, behavior policy and the flat grid
indices of its neighbors. Each tick it first computes its next state from a
`NeighborView` of everybody's pre-tick state (phase 1) and only later
commits it (phase 2), so no cell ever observes a half-updated grid.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .behavior import BehaviorPolicy, make_policies
from .errors import InvariantViolation, require_probability
from .states import Behavior, SIRState

NEIGHBORHOOD_SIZE = 8

_DEFAULT_POLICIES = make_policies()


class NeighborView:
    """
    Immutable snapshot of committed cell states and advertised rates.

    Indexed by flat (row-major) grid index. Built once per tick before
    phase 1 and shared read-only by every cell and worker.

    Parameters
    ----------
    states : sequence of SIRState
        Current state of every cell
    rates : sequence of float
        Transmission rate every cell currently advertises
    """

    __slots__ = ("_states", "_rates")

    def __init__(self, states: Iterable[SIRState], rates: Iterable[float]):
        self._states: Tuple[SIRState, ...] = tuple(states)
        self._rates: Tuple[float, ...] = tuple(rates)
        if len(self._states) != len(self._rates):
            raise InvariantViolation(
                f"view has {len(self._states)} states but {len(self._rates)} rates"
            )

    def __len__(self) -> int:
        return len(self._states)

    def state(self, index: int) -> SIRState:
        return self._states[index]

    def rate(self, index: int) -> float:
        return self._rates[index]

    def is_infectious(self, index: int) -> bool:
        return self._states[index] is SIRState.INFECTIOUS

    @classmethod
    def from_cells(cls, cells: Sequence["Cell"]) -> "NeighborView":
        return cls(
            (cell.state for cell in cells),
            (cell.transmission_rate() for cell in cells),
        )


class Cell:
    """
    A single individual in the SIR grid.

    Parameters
    ----------
    state : SIRState
        Initial state
    infection_rate : float
        Chance this cell infects each susceptible neighbor per tick while
        infectious
    recovery_rate : float
        Chance this cell recovers per tick while infectious
    behavior : Behavior, default=Behavior.BASELINE
    policy : BehaviorPolicy, optional
        Shared policy object for `behavior`. Defaults to the module-level
        instance (introverts then use the default avoidance rate).

    Attributes
    ----------
    next_state : SIRState
        State computed in phase 1, applied by `commit`
    neighbors : tuple of int
        Flat grid indices this cell can see, fixed once connected
    quarantined : bool
        Committed quarantine flag
    """

    __slots__ = (
        "state",
        "next_state",
        "infection_rate",
        "recovery_rate",
        "behavior",
        "policy",
        "quarantined",
        "next_quarantined",
        "_neighbors",
        "_connected",
    )

    def __init__(
        self,
        state: SIRState,
        infection_rate: float,
        recovery_rate: float,
        behavior: Behavior = Behavior.BASELINE,
        policy: Optional[BehaviorPolicy] = None
    ):
        self.state = state
        self.next_state = state
        self.infection_rate = require_probability("infection_rate", infection_rate)
        self.recovery_rate = require_probability("recovery_rate", recovery_rate)
        self.behavior = behavior
        self.policy = policy if policy is not None else _DEFAULT_POLICIES[behavior]
        if self.policy.behavior is not behavior:
            raise InvariantViolation(
                f"{type(self.policy).__name__} cannot drive a {behavior.value} cell"
            )
        self.quarantined = False
        self.next_quarantined = False
        self._neighbors: List[int] = []
        self._connected = False

    def __repr__(self) -> str:
        text = f"Cell({self.state.name}, {self.behavior.value}"
        if self.quarantined:
            text += ", quarantined"
        return text + ")"

    @property
    def neighbors(self) -> Tuple[int, ...]:
        return tuple(self._neighbors)

    def add_neighbor(self, index: int) -> None:
        """Append one neighbor index; overflowing the neighborhood is a defect."""
        if len(self._neighbors) >= NEIGHBORHOOD_SIZE:
            raise InvariantViolation(
                f"neighborhood already holds {NEIGHBORHOOD_SIZE} cells, "
                f"cannot add index {index}"
            )
        self._neighbors.append(index)

    def connect(self, candidates: Sequence[int], rng: np.random.Generator) -> None:
        """
        Fix this cell's neighborhood from its candidate Moore neighbors.

        The behavior policy may drop candidates (introverts); the decision is
        made once and only affects this cell's own view.
        """
        if self._connected:
            raise InvariantViolation("cell neighborhood is already built")
        for index in self.policy.filter_neighbors(self, candidates, rng):
            self.add_neighbor(index)
        self._connected = True

    def transmission_rate(self) -> float:
        """Rate neighbors use when this cell tries to infect them."""
        return self.policy.transmission_rate(self)

    def reception_multiplier(self) -> float:
        """Factor applied to a neighbor's advertised rate before the roll."""
        return self.policy.reception_multiplier(self)

    def compute_next_state(self, view: NeighborView, rng: np.random.Generator) -> None:
        """Phase 1: decide `next_state` and the planned quarantine flag."""
        next_state = self.state

        if self.state is SIRState.SUSCEPTIBLE:
            multiplier = self.reception_multiplier()
            # Every infectious neighbor gets its own roll, in neighbor order
            for index in self._neighbors:
                if view.is_infectious(index):
                    if rng.random() < view.rate(index) * multiplier:
                        next_state = SIRState.INFECTIOUS

        elif self.state is SIRState.INFECTIOUS:
            if rng.random() < self.recovery_rate:
                next_state = SIRState.RECOVERED

        self.next_state = next_state
        if self.policy.quarantine_capable:
            self.next_quarantined = self.policy.plan_quarantine(self, view)

    def commit(self) -> None:
        """Phase 2: make the computed state current."""
        self.state = self.next_state
        self.quarantined = self.next_quarantined
