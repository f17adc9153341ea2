"""Synchronous SIR cellular automaton with behavior-driven agents."""

from typing import List

from .states import SIRState, Behavior
from .errors import (
    SimulationError,
    ConfigurationError,
    InvariantViolation,
    require_probability,
    require_positive_int
)
from .rng import make_rng, spawn_streams
from .behavior import (
    BehaviorMix,
    BehaviorPolicy,
    MaskedPolicy,
    QuarantinePolicy,
    ContactTracingPolicy,
    IntrovertPolicy,
    make_policies,
    MASK_SPREAD_COEFFICIENT,
    MASK_CONTRACT_COEFFICIENT,
    DEFAULT_AVOIDANCE_RATE
)
from .cells import Cell, NeighborView, NEIGHBORHOOD_SIZE
from .topology import moore_neighborhood, build_topology, asymmetric_links
from .grid import SIRGrid, Demographics
from .simulation import SIRSimulation, HISTORY_COLUMNS
from .writer import DemographicsWriter, default_file_name
from .analysis import summarize_history, normalize_history

__all__: List[str] = [
    # States
    "SIRState",
    "Behavior",
    # Errors
    "SimulationError",
    "ConfigurationError",
    "InvariantViolation",
    "require_probability",
    "require_positive_int",
    # Random sources
    "make_rng",
    "spawn_streams",
    # Behavior policies
    "BehaviorMix",
    "BehaviorPolicy",
    "MaskedPolicy",
    "QuarantinePolicy",
    "ContactTracingPolicy",
    "IntrovertPolicy",
    "make_policies",
    "MASK_SPREAD_COEFFICIENT",
    "MASK_CONTRACT_COEFFICIENT",
    "DEFAULT_AVOIDANCE_RATE",
    # Cells and topology
    "Cell",
    "NeighborView",
    "NEIGHBORHOOD_SIZE",
    "moore_neighborhood",
    "build_topology",
    "asymmetric_links",
    # Population and driver
    "SIRGrid",
    "Demographics",
    "SIRSimulation",
    "HISTORY_COLUMNS",
    # Output
    "DemographicsWriter",
    "default_file_name",
    "summarize_history",
    "normalize_history",
]
__version__ = "0.1.0"
