"""
Tests for movement of active neurons.

Tests cover:
- Moves land on an empty cell at Chebyshev distance 1
- Inactive and boxed-in neurons stay put
- Sequential sweep (later movers see earlier moves)
- Lattice rejection vs. torus wraparound of offsets
- Move counters
"""

import pytest

from fluidnn.data_types import BoundaryModel, RunCounters
from fluidnn.grid import Grid
from fluidnn.movement import move_moore, move_all_moore, no_move_possible
from fluidnn.neuron import Neuron
from fluidnn.rng import RandomSource


class ScriptedOffsets:
    """RandomSource double returning a fixed sequence of Moore offsets"""

    def __init__(self, offsets):
        self.offsets = list(offsets)

    def moore_offset(self):
        return self.offsets.pop(0)


def place(grid, row, col, active=True):
    neuron = Neuron(neuron_id=grid.occupied_count(), row=row, col=col, active=active)
    grid.place(neuron, row, col)
    return neuron


def fill_grid(grid, active=False):
    return [place(grid, r, c, active) for r in range(grid.num_rows) for c in range(grid.num_cols)]


@pytest.mark.parametrize("seed", range(20))
def test_move_lands_on_adjacent_empty_cell(seed):
    grid = Grid(5, 5)
    neuron = place(grid, 2, 2)

    moved = move_moore(grid, neuron, BoundaryModel.LATTICE, RandomSource(seed))

    assert moved
    assert max(abs(neuron.row - 2), abs(neuron.col - 2)) == 1
    assert grid.get(neuron.row, neuron.col) is neuron
    assert grid.is_empty(2, 2)


def test_boxed_in_neuron_does_not_move():
    grid = Grid(3, 3)
    neurons = fill_grid(grid)
    center = grid.get(1, 1)
    center.active = True
    counters = RunCounters()

    assert no_move_possible(grid, center, BoundaryModel.LATTICE)
    moves = move_all_moore(grid, neurons, BoundaryModel.LATTICE, RandomSource(0), counters)

    assert moves == 0
    assert center.position == (1, 1)
    assert counters.num_move_opportunities == 9
    assert counters.num_times_active == 1
    assert counters.num_actual_moves == 0


def test_inactive_neuron_stays_put():
    grid = Grid(3, 3)
    neuron = place(grid, 1, 1, active=False)
    counters = RunCounters()

    move_all_moore(grid, [neuron], BoundaryModel.LATTICE, RandomSource(0), counters)

    assert neuron.position == (1, 1)
    assert counters.num_move_opportunities == 1
    assert counters.num_times_active == 0


def test_sweep_is_sequential():
    # Two active neurons share a single empty cell between them
    grid = Grid(1, 3)
    left = place(grid, 0, 0)
    right = place(grid, 0, 2)
    counters = RunCounters()

    moves = move_all_moore(grid, [left, right], BoundaryModel.LATTICE, RandomSource(3), counters)

    assert moves == 1
    assert left.position == (0, 1)
    assert right.position == (0, 2)
    assert counters.num_times_active == 2
    assert counters.num_actual_moves == 1
    assert counters.moves_percent_of_times_active() == pytest.approx(50.0)


def test_lattice_rejects_zero_and_off_grid_offsets():
    grid = Grid(3, 3)
    corner = place(grid, 0, 0)
    rng = ScriptedOffsets([(0, 0), (-1, -1), (0, -1), (1, 1)])

    assert move_moore(grid, corner, BoundaryModel.LATTICE, rng)
    assert corner.position == (1, 1)
    assert rng.offsets == []


def test_torus_wraps_offsets():
    grid = Grid(3, 3)
    corner = place(grid, 0, 0)
    rng = ScriptedOffsets([(-1, -1)])

    assert move_moore(grid, corner, BoundaryModel.TORUS, rng)
    assert corner.position == (2, 2)


def test_occupied_target_is_redrawn():
    grid = Grid(3, 3)
    mover = place(grid, 1, 1)
    place(grid, 0, 0, active=False)
    rng = ScriptedOffsets([(-1, -1), (1, 0)])

    assert move_moore(grid, mover, BoundaryModel.LATTICE, rng)
    assert mover.position == (2, 1)


def test_counter_percentages_handle_empty_counts():
    counters = RunCounters()
    assert counters.active_percent_of_opportunities() == 0.0
    assert counters.moves_percent_of_times_active() == 0.0

    counters.num_move_opportunities = 8
    counters.num_times_active = 2
    counters.num_actual_moves = 1
    assert counters.active_percent_of_opportunities() == pytest.approx(25.0)

    counters.reset()
    assert counters.num_move_opportunities == 0
