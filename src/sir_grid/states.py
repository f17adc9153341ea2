"""
State enumerations for the SIR grid simulation.

`SIRState` is the epidemiological state of a cell, `Behavior` is the
behavior policy it follows for the whole run.
"""

from enum import Enum


class SIRState(Enum):
    """Epidemiological state of a single cell."""

    SUSCEPTIBLE = 0
    INFECTIOUS = 1
    RECOVERED = 2

    @property
    def code(self) -> int:
        """Integer code used in array snapshots."""
        return self.value


class Behavior(Enum):
    """
    Behavior policy of a cell.

    Members are listed in population-assignment priority order; `BASELINE`
    takes whatever probability mass is left over.
    """

    CONTACT_TRACING = "contact_tracing"
    QUARANTINE = "quarantine"
    MASKED = "masked"
    INTROVERT = "introvert"
    BASELINE = "baseline"

    @property
    def flag(self) -> str:
        """Single character marking the behavior in text renderings."""
        return _BEHAVIOR_FLAGS[self]


_BEHAVIOR_FLAGS = {
    Behavior.CONTACT_TRACING: "~",
    Behavior.QUARANTINE: "=",
    Behavior.MASKED: "`",
    Behavior.INTROVERT: "\\",
    Behavior.BASELINE: " ",
}

STATE_BY_CODE = {state.code: state for state in SIRState}
