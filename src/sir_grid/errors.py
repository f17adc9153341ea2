"""Exception hierarchy and argument checks shared by the simulation."""

import math
from numbers import Integral, Real
from typing import Any

from utils.logging import log_call


class SimulationError(Exception):
    """Base class for all errors raised by the simulation."""


class ConfigurationError(SimulationError, ValueError):
    """A rate, fraction or size is outside its allowed range."""


class InvariantViolation(SimulationError, RuntimeError):
    """Internal bookkeeping is inconsistent. Indicates a defect, not bad input."""


@log_call
def require_probability(name: str, value: Any) -> float:
    """Return `value` as a float, raising if it is not a probability in [0, 1]."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    value = float(value)
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be between 0 and 1, got {value}")
    return value


@log_call
def require_positive_int(name: str, value: Any) -> int:
    """Return `value` as an int, raising unless it is a positive integer."""
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return int(value)
