"""
Summary statistics for a finished SIR run.

Works on the history frame returned by `SIRSimulation.run` (or a CSV
written by `DemographicsWriter`, after `normalize_history`).
"""

from typing import Any, Dict

import pandas as pd

from utils.logging import log_call
from .errors import SimulationError


@log_call
def normalize_history(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Bring a demographics CSV frame to the run-history layout.

    Percentage columns (``*_pct``) are converted to ``*_frac`` columns; frames
    that already carry fractions are returned unchanged.
    """
    frame = frame.copy()
    for state in ("susceptible", "infectious", "recovered"):
        pct, frac = f"{state}_pct", f"{state}_frac"
        if frac not in frame.columns:
            if pct in frame.columns:
                frame[frac] = frame[pct] / 100.0
            else:
                total = frame[["susceptible", "infectious", "recovered"]].sum(axis=1)
                frame[frac] = frame[state] / total
    return frame


@log_call
def summarize_history(history: pd.DataFrame) -> Dict[str, Any]:
    """
    Headline numbers of an epidemic.

    Parameters
    ----------
    history : pd.DataFrame
        One row per day with ``day``, count and ``*_frac`` columns

    Returns
    -------
    summary : dict
        ``days_simulated``, ``peak_infectious``, ``peak_day``,
        ``peak_infectious_frac``, ``final_susceptible``,
        ``final_infectious``, ``final_recovered`` (fractions),
        ``attack_rate`` (fraction ever infected) and ``extinct``
    """
    if history.empty:
        raise SimulationError("history has no days to summarize")
    history = normalize_history(history)

    peak_row = history.loc[history["infectious"].idxmax()]
    final = history.iloc[-1]
    return {
        "days_simulated": int(len(history)),
        "peak_infectious": int(peak_row["infectious"]),
        "peak_day": int(peak_row["day"]),
        "peak_infectious_frac": float(peak_row["infectious_frac"]),
        "final_susceptible": float(final["susceptible_frac"]),
        "final_infectious": float(final["infectious_frac"]),
        "final_recovered": float(final["recovered_frac"]),
        "attack_rate": float(1.0 - final["susceptible_frac"]),
        "extinct": bool(final["infectious"] == 0),
    }
