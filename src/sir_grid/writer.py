"""CSV output of daily SIR demographics."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from utils.logging import log_call
from .errors import SimulationError
from .grid import Demographics

CSV_COLUMNS = [
    "day",
    "susceptible",
    "infectious",
    "recovered",
    "susceptible_pct",
    "infectious_pct",
    "recovered_pct",
]


@log_call
def default_file_name(
    infection_rate: float,
    recovery_rate: float,
    max_days: int,
    size: int
) -> str:
    """File name encoding the run parameters, e.g. ``SIR_0.166_0.037_90_500.csv``."""
    return f"SIR_{infection_rate}_{recovery_rate}_{max_days}_{size}.csv"


class DemographicsWriter:
    """
    Buffers one row of demographics per day and writes them as CSV.

    Parameters
    ----------
    out_file_name : str, default=""
        Output file name; an empty name is replaced by `default_file_name`
        when the writer is opened
    output_dir : str or Path, default="."
        Directory the file is written to
    """

    def __init__(self, out_file_name: str = "", output_dir: Union[str, Path] = "."):
        self.out_file_name = out_file_name
        self.output_dir = Path(output_dir)
        self.path: Optional[Path] = None
        self._rows: List[Dict[str, Any]] = []

    @property
    def is_open(self) -> bool:
        return self.path is not None

    @log_call
    def open(
        self,
        max_days: int,
        infection_rate: float,
        recovery_rate: float,
        size: int
    ) -> Path:
        """Choose the output path and start a fresh set of rows."""
        name = self.out_file_name or default_file_name(
            infection_rate, recovery_rate, max_days, size
        )
        if not name.endswith(".csv"):
            name += ".csv"
        self.path = self.output_dir / name
        self._rows = []
        return self.path

    @log_call
    def update(
        self,
        day: int,
        demographics: Demographics,
        fractions: Sequence[float]
    ) -> None:
        """Record the counts and fractions (stored as percentages) of one day."""
        if not self.is_open:
            raise SimulationError("writer must be opened before it is updated")
        self._rows.append(dict(zip(
            CSV_COLUMNS,
            (day, *demographics, *(100.0 * f for f in fractions)),
        )))

    @log_call
    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self._rows, columns=CSV_COLUMNS)

    @log_call
    def close(self) -> Path:
        """Write the buffered rows and return the CSV path."""
        if not self.is_open:
            raise SimulationError("writer was never opened")
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.to_frame().to_csv(self.path, index=False)
        logging.info("Wrote %d days of demographics to %s", len(self._rows), self.path)
        return self.path
