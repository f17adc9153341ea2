"""
Visualization of SIR grids and epidemic curves.

Everything here works on read-only snapshots (`SIRGrid.state_codes`,
`SIRGrid.quarantine_mask`, demographics histories), never on cells.
"""

from pathlib import Path
from typing import List, Optional, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from utils.logging import log_call
from .grid import Demographics, SIRGrid
from .states import SIRState

# RGB per state code: susceptible, infectious, recovered
STATE_PALETTE = np.array([
    [0.93, 0.95, 1.00],
    [0.84, 0.15, 0.16],
    [0.45, 0.45, 0.50],
])
QUARANTINE_SHADE = 0.55

CURVE_COLORS = {
    "susceptible": "#1f77b4",
    "infectious": "#d62728",
    "recovered": "#7f7f7f",
}

_TEXT_SYMBOLS = {
    SIRState.SUSCEPTIBLE: " ",
    SIRState.INFECTIOUS: "I",
    SIRState.RECOVERED: "R",
}


@log_call
def state_image(grid: SIRGrid) -> np.ndarray:
    """``size x size x 3`` RGB image of the grid; quarantined cells are darkened."""
    image = STATE_PALETTE[grid.state_codes()].copy()
    image[grid.quarantine_mask()] *= QUARANTINE_SHADE
    return image


@log_call
def demographics_title(day: int, demographics: Demographics) -> str:
    """Frame title such as ``Day 3  S: 97.00%, I: 2.00%, R: 1.00%``."""
    s, i, r = (100.0 * f for f in demographics.fractions())
    return f"Day {day}  S: {s:.2f}%, I: {i:.2f}%, R: {r:.2f}%"


@log_call
def render_text(grid: SIRGrid) -> str:
    """
    Plain-text picture of the grid.

    Each cell takes three characters, ``" I "``, ``" R "`` or blank, wrapped
    in brackets instead of spaces when the cell is quarantined, followed by
    its behavior flag (see `Behavior.flag`).
    """
    lines = []
    for row in range(grid.size):
        parts = []
        for col in range(grid.size):
            symbol = _TEXT_SYMBOLS[grid.state_at(row, col)]
            if grid.is_quarantined(row, col):
                parts.append(f"[{symbol}]")
            else:
                parts.append(f" {symbol} ")
            parts.append(grid.behavior_at(row, col).flag)
        lines.append("".join(parts))
    return "\n".join(lines) + "\n"


@log_call
def save_snapshot(
    grid: SIRGrid,
    path: Union[str, Path],
    day: Optional[int] = None,
    dpi: int = 150
) -> Path:
    """Save a single image of the grid's committed state."""
    path = Path(path)
    fig, ax = plt.subplots(figsize=(6, 6))
    ax.imshow(state_image(grid), interpolation="nearest")
    ax.set_axis_off()
    if day is not None:
        ax.set_title(demographics_title(day, grid.demographics()))
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return path


@log_call
def plot_demographics(
    history: pd.DataFrame,
    path: Optional[Union[str, Path]] = None,
    ax: Optional[plt.Axes] = None
) -> plt.Figure:
    """
    Plot susceptible, infectious and recovered fractions over days.

    Parameters
    ----------
    history : pd.DataFrame
        Run history with ``day`` and ``*_frac`` columns
    path : str or Path, optional
        When given the figure is saved there and closed
    ax : matplotlib Axes, optional
        Axes to draw on; a new figure is created otherwise

    Returns
    -------
    fig : matplotlib Figure
    """
    long_form = history.melt(
        id_vars="day",
        value_vars=["susceptible_frac", "infectious_frac", "recovered_frac"],
        var_name="state",
        value_name="fraction",
    )
    long_form["state"] = long_form["state"].str.replace("_frac", "", regex=False)

    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 6))
    else:
        fig = ax.figure
    sns.lineplot(
        data=long_form, x="day", y="fraction", hue="state",
        palette=CURVE_COLORS, linewidth=2, ax=ax,
    )
    ax.set_xlabel("Day")
    ax.set_ylabel("Fraction of Population")
    ax.set_ylim(0, 1)
    ax.set_title("SIR Demographics Over Time")
    ax.grid(True, alpha=0.3)

    if path is not None:
        fig.savefig(path, dpi=300, bbox_inches="tight")
        plt.close(fig)
    return fig


class GridVisualizer:
    """
    Draws one frame per simulated day.

    Parameters
    ----------
    output_dir : str or Path, optional
        Where frames go when `save_frames` is set
    frame_duration : int, default=50
        Milliseconds each frame stays on screen when `show` is set
    save_frames : bool, default=False
        Write ``frame_XXXX.png`` for every day
    show : bool, default=False
        Display frames interactively
    """

    def __init__(
        self,
        output_dir: Optional[Union[str, Path]] = None,
        frame_duration: int = 50,
        save_frames: bool = False,
        show: bool = False
    ):
        if save_frames and output_dir is None:
            raise ValueError("output_dir is required to save frames")
        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.frame_duration = frame_duration
        self.save_frames = save_frames
        self.show = show
        self.frames_written: List[Path] = []
        self.frames_drawn = 0
        self._fig = None
        self._ax = None
        self._image = None

    @log_call
    def update(self, day: int, grid: SIRGrid) -> None:
        image = state_image(grid)
        if self._fig is None:
            self._fig, self._ax = plt.subplots(figsize=(6, 6))
            self._ax.set_axis_off()
            self._image = self._ax.imshow(image, interpolation="nearest")
        else:
            self._image.set_data(image)
        self._ax.set_title(demographics_title(day, grid.demographics()))
        self.frames_drawn += 1

        if self.save_frames:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path = self.output_dir / f"frame_{day:04d}.png"
            self._fig.savefig(path, dpi=100)
            self.frames_written.append(path)
        if self.show:
            plt.pause(self.frame_duration / 1000.0)

    @log_call
    def close(self) -> None:
        if self._fig is not None:
            plt.close(self._fig)
        self._fig = self._ax = self._image = None
