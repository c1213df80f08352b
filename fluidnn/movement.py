"""
Movement of active neurons.

Neurons are not moved in parallel: the sweep visits the neuron list in index
order and each move sees the grid as left by earlier moves in the same sweep.
A neuron that could have moved before the sweep started may find itself boxed
in when its turn comes.

An active neuron with at least one empty Moore-adjacent cell always moves, to
a uniformly random empty one. Inactive neurons stay put.
"""

from typing import Sequence

from .data_types import BoundaryModel, RunCounters
from .grid import Grid
from .neighborhood import empty_moore_cells
from .neuron import Neuron


def no_move_possible(grid: Grid, neuron: Neuron, boundary: BoundaryModel) -> bool:
    """True if every Moore-adjacent cell is occupied (or off the lattice)"""
    return not empty_moore_cells(grid, neuron, boundary)


def move_moore(grid: Grid, neuron: Neuron, boundary: BoundaryModel, random_source) -> bool:
    """
    Move a neuron to a random empty cell of its Moore neighborhood.

    Draws row and column offsets from {-1, 0, +1} and redraws while the offset
    is (0, 0), the target is off the lattice, or the target is occupied. Since
    an empty cell is known to exist, the loop terminates, and every empty
    neighbor cell is equally likely.

    Args:
        grid: Grid to move on
        neuron: Neuron to move
        boundary: Lattice (bounds-checked) or torus (wrapped)
        random_source: RandomSource for offset draws

    Returns:
        True if the neuron moved
    """
    if no_move_possible(grid, neuron, boundary):
        return False

    row, col = neuron.row, neuron.col
    while True:
        row_change, col_change = random_source.moore_offset()
        if row_change == 0 and col_change == 0:
            continue

        cell = grid.resolve(row + row_change, col + col_change, boundary)
        if cell is None or not grid.is_empty(*cell):
            continue

        grid.relocate(neuron, *cell)
        return True


def move_all_moore(
    grid: Grid,
    neurons: Sequence[Neuron],
    boundary: BoundaryModel,
    random_source,
    counters: RunCounters
) -> int:
    """
    Sequential movement sweep over the neuron list.

    Every neuron counts as a move opportunity; active neurons additionally
    count toward times-active, and successful moves toward actual moves.

    Returns:
        Number of neurons that moved in this sweep
    """
    moves = 0
    for neuron in neurons:
        counters.num_move_opportunities += 1
        if not neuron.active:
            continue

        counters.num_times_active += 1
        if move_moore(grid, neuron, boundary, random_source):
            counters.num_actual_moves += 1
            moves += 1

    return moves
