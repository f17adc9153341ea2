"""
Random number sources for the simulation.

All randomness flows through explicitly passed `numpy.random.Generator`
objects. Partitioned phase-1 execution gets one child stream per partition so
results only depend on the seed and the number of partitions.
"""

from typing import List, Optional, Union

import numpy as np

from utils.logging import log_call
from .errors import require_positive_int

SeedLike = Optional[Union[int, np.random.SeedSequence, np.random.Generator]]


@log_call
def make_rng(seed: SeedLike = None) -> np.random.Generator:
    """
    Build a generator from a seed, or pass an existing generator through.

    Parameters
    ----------
    seed : int, SeedSequence, Generator or None
        Seed material. ``None`` draws fresh OS entropy.

    Returns
    -------
    rng : np.random.Generator
    """
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


@log_call
def spawn_streams(rng: np.random.Generator, n_streams: int) -> List[np.random.Generator]:
    """Create `n_streams` statistically independent child generators of `rng`."""
    n_streams = require_positive_int("n_streams", n_streams)
    return list(rng.spawn(n_streams))
