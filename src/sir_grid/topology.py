"""
Neighbor topology for the SIR grid.

Cells live in a flat row-major list; a cell at (row, col) has index
``row * size + col``. The topology is built once per population: every cell
is offered its bounded Moore neighborhood (up to 8 in-bounds cells) and its
behavior policy decides which of them it keeps.
"""

from typing import List, Sequence, Tuple

import numpy as np

from utils.logging import log_call
from .cells import Cell
from .errors import InvariantViolation, require_positive_int

MOORE_OFFSETS: Tuple[Tuple[int, int], ...] = tuple(
    (dr, dc)
    for dr in (-1, 0, 1)
    for dc in (-1, 0, 1)
    if dr != 0 or dc != 0
)


def _moore_indices(row: int, col: int, size: int) -> List[int]:
    indices = []
    for dr, dc in MOORE_OFFSETS:
        r, c = row + dr, col + dc
        if 0 <= r < size and 0 <= c < size:
            indices.append(r * size + c)
    return indices


@log_call
def moore_neighborhood(row: int, col: int, size: int) -> List[Tuple[int, int]]:
    """
    In-bounds Moore neighbor positions of (row, col) on a `size` x `size` grid.

    Positions come in offset order: row offset -1, 0, 1 in the outer loop and
    column offset -1, 0, 1 in the inner loop, skipping the cell itself.

    Examples
    --------
    >>> moore_neighborhood(0, 0, 3)
    [(0, 1), (1, 0), (1, 1)]
    """
    size = require_positive_int("size", size)
    if not (0 <= row < size and 0 <= col < size):
        raise IndexError(f"position ({row}, {col}) is outside a {size}x{size} grid")
    return [divmod(index, size) for index in _moore_indices(row, col, size)]


@log_call
def build_topology(
    cells: Sequence[Cell],
    size: int,
    rng: np.random.Generator
) -> None:
    """
    Connect every cell to its Moore neighborhood.

    Cells are visited in row-major order and each one filters its own
    candidates, so introvert draws are consumed in a fixed order. Filtering
    is one-sided: a cell dropping a neighbor does not remove itself from that
    neighbor's list.

    Parameters
    ----------
    cells : sequence of Cell
        Row-major list of ``size * size`` unconnected cells
    size : int
        Side length of the grid
    rng : np.random.Generator
        Source for neighbor filtering draws
    """
    size = require_positive_int("size", size)
    if len(cells) != size * size:
        raise InvariantViolation(
            f"expected {size * size} cells for a {size}x{size} grid, got {len(cells)}"
        )
    for index, cell in enumerate(cells):
        row, col = divmod(index, size)
        cell.connect(_moore_indices(row, col, size), rng)


@log_call
def asymmetric_links(cells: Sequence[Cell]) -> List[Tuple[int, int]]:
    """Pairs ``(a, b)`` where cell `a` lists `b` but `b` does not list `a`."""
    neighbor_sets = [set(cell.neighbors) for cell in cells]
    return [
        (a, b)
        for a, neighbors in enumerate(neighbor_sets)
        for b in sorted(neighbors)
        if a not in neighbor_sets[b]
    ]
