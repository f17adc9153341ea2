import numpy as np
import pytest

from sir_grid import (
    Behavior,
    Cell,
    InvariantViolation,
    SIRGrid,
    SIRState,
    asymmetric_links,
    build_topology,
    moore_neighborhood,
)
from sir_grid.topology import MOORE_OFFSETS

S = SIRState.SUSCEPTIBLE


def introvert_layout(size, avoidance_rate, introverts):
    behaviors = [
        [
            Behavior.INTROVERT if (row, col) in introverts else Behavior.BASELINE
            for col in range(size)
        ]
        for row in range(size)
    ]
    states = [[S] * size for _ in range(size)]
    return SIRGrid.from_layout(
        states, behaviors, avoidance_rate=avoidance_rate, rng=3
    )


class TestMooreNeighborhood:

    @pytest.mark.parametrize(
        "row, col, expected",
        [
            (0, 0, 3),
            (0, 2, 5),
            (2, 0, 5),
            (2, 2, 8),
            (4, 4, 3),
            (4, 1, 5),
        ],
    )
    def test_counts(self, row, col, expected):
        assert len(moore_neighborhood(row, col, 5)) == expected

    def test_offset_order(self):
        assert moore_neighborhood(1, 1, 3) == [
            (0, 0), (0, 1), (0, 2),
            (1, 0), (1, 2),
            (2, 0), (2, 1), (2, 2),
        ]
        assert MOORE_OFFSETS[0] == (-1, -1)
        assert MOORE_OFFSETS[-1] == (1, 1)

    def test_corner_order(self):
        assert moore_neighborhood(0, 0, 3) == [(0, 1), (1, 0), (1, 1)]

    def test_single_cell_grid_has_no_neighbors(self):
        assert moore_neighborhood(0, 0, 1) == []

    def test_out_of_bounds(self):
        with pytest.raises(IndexError):
            moore_neighborhood(3, 0, 3)
        with pytest.raises(IndexError):
            moore_neighborhood(0, -1, 3)


class TestBuildTopology:

    def test_baseline_cells_keep_full_neighborhood(self):
        size = 4
        cells = [Cell(S, 0.1, 0.1) for _ in range(size * size)]
        build_topology(cells, size, np.random.default_rng(0))

        for index, cell in enumerate(cells):
            row, col = divmod(index, size)
            expected = [r * size + c for r, c in moore_neighborhood(row, col, size)]
            assert list(cell.neighbors) == expected
        assert asymmetric_links(cells) == []

    def test_wrong_cell_count(self):
        cells = [Cell(S, 0.1, 0.1) for _ in range(8)]
        with pytest.raises(InvariantViolation):
            build_topology(cells, 3, np.random.default_rng(0))

    def test_grid_neighbor_positions_match_moore(self, center_outbreak_grid):
        grid = center_outbreak_grid
        for row in range(3):
            for col in range(3):
                assert grid.neighbor_positions(row, col) == grid.moore_positions(row, col)


class TestIntrovertFiltering:

    def test_zero_avoidance_keeps_everyone(self):
        grid = introvert_layout(3, 0.0, {(1, 1)})
        assert len(grid.neighbor_positions(1, 1)) == 8

    def test_full_avoidance_keeps_nobody(self):
        grid = introvert_layout(3, 1.0, {(1, 1)})
        assert grid.neighbor_positions(1, 1) == []
        # Filtering is one-sided: the others still see the introvert
        for row, col in grid.moore_positions(1, 1):
            assert (1, 1) in grid.neighbor_positions(row, col)

    def test_asymmetric_links_point_at_introverts(self):
        grid = introvert_layout(3, 1.0, {(1, 1)})
        links = asymmetric_links(grid._cells)
        assert len(links) == 8
        assert all(b == 4 for _, b in links)

    def test_kept_neighbors_are_ordered_subset(self):
        size = 6
        everyone = {(r, c) for r in range(size) for c in range(size)}
        grid = introvert_layout(size, 0.5, everyone)

        for row in range(size):
            for col in range(size):
                kept = grid.neighbor_positions(row, col)
                full = grid.moore_positions(row, col)
                assert set(kept) <= set(full)
                assert kept == [p for p in full if p in kept]

    def test_avoidance_rate_is_respected_on_average(self):
        size = 30
        everyone = {(r, c) for r in range(size) for c in range(size)}
        grid = introvert_layout(size, 0.25, everyone)

        kept = sum(len(grid.neighbor_positions(r, c)) for r, c in everyone)
        offered = sum(len(grid.moore_positions(r, c)) for r, c in everyone)
        assert kept / offered == pytest.approx(0.75, abs=0.03)
