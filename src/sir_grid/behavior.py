"""
Behavior policies for SIR grid cells.

Each `Behavior` is handled by a stateless policy object exposing the same
capability set: the transmission rate a cell advertises to its neighbors,
the multiplier it applies to rates it receives, how it plans its quarantine
flag for the next tick, and how it filters its candidate neighbors when the
topology is built. All per-cell state lives on the `Cell`; policies only
read it.

`BehaviorMix` turns population fractions into a per-cell behavior draw.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Sequence, Tuple

import numpy as np

from utils.logging import log_call
from .errors import require_probability
from .states import Behavior, SIRState

if TYPE_CHECKING:
    from .cells import Cell, NeighborView

# Mask effect on outbound spread (70% decrease) and inbound risk (20% decrease)
MASK_SPREAD_COEFFICIENT = 0.3
MASK_CONTRACT_COEFFICIENT = 0.8

DEFAULT_AVOIDANCE_RATE = 0.5


class BehaviorPolicy:
    """Baseline policy: full rates, never quarantines, keeps every neighbor."""

    behavior = Behavior.BASELINE
    # Cells only consult plan_quarantine when this is set
    quarantine_capable = False

    def transmission_rate(self, cell: "Cell") -> float:
        return cell.infection_rate

    def reception_multiplier(self, cell: "Cell") -> float:
        return 1.0

    def plan_quarantine(self, cell: "Cell", view: "NeighborView") -> bool:
        """Quarantine flag the cell will carry after the next commit."""
        return False

    def filter_neighbors(
        self,
        cell: "Cell",
        candidates: Sequence[int],
        rng: np.random.Generator
    ) -> List[int]:
        return list(candidates)


class MaskedPolicy(BehaviorPolicy):
    """Spreads at 30% of the base rate and contracts at 80%."""

    behavior = Behavior.MASKED

    def transmission_rate(self, cell: "Cell") -> float:
        return cell.infection_rate * MASK_SPREAD_COEFFICIENT

    def reception_multiplier(self, cell: "Cell") -> float:
        return MASK_CONTRACT_COEFFICIENT


class QuarantinePolicy(BehaviorPolicy):
    """Isolates while infectious; stops spreading once quarantined."""

    behavior = Behavior.QUARANTINE
    quarantine_capable = True

    def transmission_rate(self, cell: "Cell") -> float:
        if cell.quarantined:
            return 0.0
        return cell.infection_rate

    def plan_quarantine(self, cell: "Cell", view: "NeighborView") -> bool:
        return cell.next_state is SIRState.INFECTIOUS


class ContactTracingPolicy(QuarantinePolicy):
    """
    Isolates while infectious or while any neighbor is infectious.

    Neighbors are judged on their pre-tick state, so a cell reacts one tick
    after a neighbor turns infectious. A quarantined cell is released only
    when it is no longer infectious (it may have just recovered) and no
    neighbor is infectious.
    """

    behavior = Behavior.CONTACT_TRACING

    def plan_quarantine(self, cell: "Cell", view: "NeighborView") -> bool:
        exposed = any(view.is_infectious(i) for i in cell.neighbors)
        if cell.quarantined:
            return exposed or cell.next_state is SIRState.INFECTIOUS
        return exposed or cell.state is SIRState.INFECTIOUS


class IntrovertPolicy(BehaviorPolicy):
    """Permanently ignores each Moore neighbor with probability `avoidance_rate`."""

    behavior = Behavior.INTROVERT

    def __init__(self, avoidance_rate: float = DEFAULT_AVOIDANCE_RATE):
        self.avoidance_rate = require_probability("avoidance_rate", avoidance_rate)

    def filter_neighbors(
        self,
        cell: "Cell",
        candidates: Sequence[int],
        rng: np.random.Generator
    ) -> List[int]:
        # One draw per candidate, in candidate order
        return [index for index in candidates if rng.random() > self.avoidance_rate]


@log_call
def make_policies(
    avoidance_rate: float = DEFAULT_AVOIDANCE_RATE
) -> Dict[Behavior, BehaviorPolicy]:
    """One shared policy instance per behavior."""
    return {
        Behavior.BASELINE: BehaviorPolicy(),
        Behavior.MASKED: MaskedPolicy(),
        Behavior.QUARANTINE: QuarantinePolicy(),
        Behavior.CONTACT_TRACING: ContactTracingPolicy(),
        Behavior.INTROVERT: IntrovertPolicy(avoidance_rate),
    }


@dataclass(frozen=True)
class BehaviorMix:
    """
    Fractions of the population following each non-baseline behavior.

    The unit interval is partitioned in the fixed priority order
    contact-tracing, quarantine, masked, introvert; the remainder is
    baseline. When the fractions add up to more than 1.0 the categories late
    in the order are starved.

    Parameters
    ----------
    contact_tracing : float, default=0.0
    quarantine : float, default=0.0
    masked : float, default=0.0
    introvert : float, default=0.0
    avoidance_rate : float, default=0.5
        Chance an introvert drops each of its Moore neighbors
    """

    contact_tracing: float = 0.0
    quarantine: float = 0.0
    masked: float = 0.0
    introvert: float = 0.0
    avoidance_rate: float = DEFAULT_AVOIDANCE_RATE

    def __post_init__(self) -> None:
        for name in ("contact_tracing", "quarantine", "masked", "introvert"):
            require_probability(f"{name} fraction", getattr(self, name))
        require_probability("avoidance_rate", self.avoidance_rate)

    def cutoffs(self) -> Tuple[Tuple[Behavior, float], ...]:
        """Cumulative upper bounds of each behavior's partition."""
        bounds = []
        total = 0.0
        for behavior, fraction in (
            (Behavior.CONTACT_TRACING, self.contact_tracing),
            (Behavior.QUARANTINE, self.quarantine),
            (Behavior.MASKED, self.masked),
            (Behavior.INTROVERT, self.introvert),
        ):
            total += fraction
            bounds.append((behavior, total))
        return tuple(bounds)

    def choose(self, draw: float) -> Behavior:
        """Behavior of the first partition whose cutoff exceeds `draw`."""
        for behavior, cutoff in self.cutoffs():
            if draw < cutoff:
                return behavior
        return Behavior.BASELINE

    def starved(self) -> List[Behavior]:
        """Behaviors that cannot be assigned because earlier ones fill [0, 1)."""
        starved = []
        previous = 0.0
        for behavior, cutoff in self.cutoffs():
            if previous >= 1.0:
                starved.append(behavior)
            previous = cutoff
        if previous >= 1.0:
            starved.append(Behavior.BASELINE)
        return starved
