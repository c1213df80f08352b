"""
Neighborhood resolution for fluid neural networks.

A neuron's neighborhood is the set of neurons whose activation levels feed
its activation sum. Four topologies are supported:

- MOORE: the 8 surrounding cells plus the cell itself (9 candidates)
- VON_NEUMANN: the cell itself plus N/E/S/W (5 candidates)
- RING: the cell itself plus row-left and row-right (3 candidates); each grid
  row acts as a short ring, which approximates but is not a true 1-D ring
- GBEST: every neuron in the network

All grid-based topologies pass each candidate offset through is_neighbor(),
which applies the self model, boundary model, occupancy and activity filter.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from .data_types import Topology, SelfModel, BoundaryModel, ActivityModel
from .grid import Grid
from .neuron import Neuron


# Offsets in the order candidates are visited
MOORE_OFFSETS: Tuple[Tuple[int, int], ...] = tuple(
    (dr, dc) for dr in (-1, 0, 1) for dc in (-1, 0, 1)
)
VON_NEUMANN_OFFSETS: Tuple[Tuple[int, int], ...] = ((0, 0), (-1, 0), (0, 1), (1, 0), (0, -1))
RING_OFFSETS: Tuple[Tuple[int, int], ...] = ((0, 0), (0, 1), (0, -1))

# Moore-adjacent cells only (no center), used for movement and isolation checks
MOORE_ADJACENT_OFFSETS: Tuple[Tuple[int, int], ...] = tuple(
    offset for offset in MOORE_OFFSETS if offset != (0, 0)
)


def _passes_activity_filter(candidate: Neuron, activity: ActivityModel) -> bool:
    if activity == ActivityModel.ALL_NEURONS:
        return True
    if activity == ActivityModel.ONLY_ACTIVE_NEURONS:
        return candidate.active
    raise ValueError(f"Unknown activity model: {activity!r}")


def is_neighbor(
    grid: Grid,
    neuron: Neuron,
    row_delta: int,
    col_delta: int,
    self_model: SelfModel,
    boundary: BoundaryModel,
    activity: ActivityModel
) -> Optional[Neuron]:
    """
    Return the neuron at the given offset if it belongs to the neighborhood.

    The candidate cell must be inside the grid (lattice) or is wrapped (torus),
    must be occupied, must not be the neuron's own cell unless self is
    included, and must pass the activity filter.

    Args:
        grid: Grid the neuron lives on
        neuron: Neuron whose neighborhood is being built
        row_delta: Row offset from the neuron
        col_delta: Column offset from the neuron
        self_model: Whether the neuron's own cell may count
        boundary: Lattice or torus
        activity: All neurons or active ones only

    Returns:
        Neighbor neuron, or None

    Raises:
        ValueError: Unknown self, boundary or activity model
    """
    if self_model not in (SelfModel.INCLUDE_SELF, SelfModel.NOT_INCLUDE_SELF):
        raise ValueError(f"Unknown self model: {self_model!r}")

    cell = grid.resolve(neuron.row + row_delta, neuron.col + col_delta, boundary)
    if cell is None:
        return None

    neigh_row, neigh_col = cell
    if self_model == SelfModel.NOT_INCLUDE_SELF and (neigh_row, neigh_col) == (neuron.row, neuron.col):
        return None

    candidate = grid.get(neigh_row, neigh_col)
    if candidate is None:
        return None

    if not _passes_activity_filter(candidate, activity):
        return None

    return candidate


class GridNeighborhood:
    """Neighborhood defined by a fixed list of grid offsets"""

    def __init__(self, offsets: Sequence[Tuple[int, int]]):
        self.offsets = tuple(offsets)

    @property
    def max_size(self) -> int:
        return len(self.offsets)

    def neighbors(
        self,
        grid: Grid,
        neurons: Sequence[Neuron],
        neuron: Neuron,
        self_model: SelfModel,
        boundary: BoundaryModel,
        activity: ActivityModel
    ) -> List[Neuron]:
        result = []
        for row_delta, col_delta in self.offsets:
            neighbor = is_neighbor(grid, neuron, row_delta, col_delta, self_model, boundary, activity)
            if neighbor is not None:
                result.append(neighbor)
        return result


class GlobalBestNeighborhood:
    """
    Every neuron in the network is a neighbor.

    The boundary model is irrelevant here; it is accepted so all topologies
    share one call signature.
    """

    max_size = None  # size of the population

    def neighbors(
        self,
        grid: Grid,
        neurons: Sequence[Neuron],
        neuron: Neuron,
        self_model: SelfModel,
        boundary: BoundaryModel,
        activity: ActivityModel
    ) -> List[Neuron]:
        if self_model not in (SelfModel.INCLUDE_SELF, SelfModel.NOT_INCLUDE_SELF):
            raise ValueError(f"Unknown self model: {self_model!r}")

        result = []
        for candidate in neurons:
            if self_model == SelfModel.NOT_INCLUDE_SELF and candidate is neuron:
                continue
            if not _passes_activity_filter(candidate, activity):
                continue
            result.append(candidate)
        return result


NEIGHBORHOODS: Dict[Topology, object] = {
    Topology.GBEST: GlobalBestNeighborhood(),
    Topology.RING: GridNeighborhood(RING_OFFSETS),
    Topology.VON_NEUMANN: GridNeighborhood(VON_NEUMANN_OFFSETS),
    Topology.MOORE: GridNeighborhood(MOORE_OFFSETS),
}


def get_neighborhood(
    grid: Grid,
    neurons: Sequence[Neuron],
    neuron: Neuron,
    topology: Topology,
    self_model: SelfModel,
    boundary: BoundaryModel,
    activity: ActivityModel
) -> List[Neuron]:
    """
    Neighbors of a neuron under the given topology and models.

    Raises:
        ValueError: Unknown topology (or unknown self/boundary/activity model)
    """
    strategy = NEIGHBORHOODS.get(topology)
    if strategy is None:
        raise ValueError(f"Unknown topology: {topology!r}")
    return strategy.neighbors(grid, neurons, neuron, self_model, boundary, activity)


def _moore_adjacent_cells(grid: Grid, neuron: Neuron, boundary: BoundaryModel):
    """Yield resolved Moore-adjacent cells, skipping off-lattice ones and the neuron's own cell"""
    for row_delta, col_delta in MOORE_ADJACENT_OFFSETS:
        cell = grid.resolve(neuron.row + row_delta, neuron.col + col_delta, boundary)
        # Tiny tori can wrap an offset back onto the neuron itself
        if cell is None or cell == (neuron.row, neuron.col):
            continue
        yield cell


def has_neighbors(grid: Grid, neuron: Neuron, boundary: BoundaryModel) -> bool:
    """
    Check whether any Moore-adjacent cell is occupied.

    Used to gate spontaneous activation to isolated neurons.
    """
    for row, col in _moore_adjacent_cells(grid, neuron, boundary):
        if not grid.is_empty(row, col):
            return True
    return False


def empty_moore_cells(grid: Grid, neuron: Neuron, boundary: BoundaryModel) -> List[Tuple[int, int]]:
    """Empty Moore-adjacent cells a neuron could move into"""
    return [
        (row, col)
        for row, col in _moore_adjacent_cells(grid, neuron, boundary)
        if grid.is_empty(row, col)
    ]
