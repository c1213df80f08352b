"""
Grid/lattice that neurons live on.

Each cell holds at most one neuron reference or is empty. The grid does not
own neurons (the network's neuron list does); it is a position index kept in
lockstep with each neuron's row/col.

Boundary handling:
- LATTICE: coordinates outside [0, num_rows) x [0, num_cols) are illegal
- TORUS: coordinates wrap around both edges
"""

import numpy as np
from typing import Callable, Iterator, List, Optional, Tuple

from .data_types import BoundaryModel
from .neuron import Neuron


class OccupiedCellError(Exception):
    """Raised when placing a neuron into a cell that already holds one"""
    pass


class GridCapacityError(Exception):
    """Raised when the grid cannot hold the requested number of neurons"""
    pass


class Grid:
    """
    2-D occupancy grid with exclusive cells.

    Invariant: every neuron on the grid sits in exactly the cell named by its
    row/col, and no two neurons share a cell.
    """

    def __init__(self, num_rows: int, num_cols: int):
        """
        Args:
            num_rows: Number of rows (> 0)
            num_cols: Number of columns (> 0)
        """
        if num_rows <= 0 or num_cols <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {num_rows}x{num_cols}")

        self.num_rows = num_rows
        self.num_cols = num_cols
        self._cells = np.empty((num_rows, num_cols), dtype=object)
        self._occupied = 0

    # ------------------------------------------------------------------
    # Cell queries
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self.num_rows * self.num_cols

    def is_legal(self, row: int, col: int) -> bool:
        """Check whether row/col are inside the lattice bounds"""
        return 0 <= row < self.num_rows and 0 <= col < self.num_cols

    def wrap_row(self, row: int) -> int:
        """Map a row index back into range (torus)"""
        return row % self.num_rows

    def wrap_col(self, col: int) -> int:
        """Map a column index back into range (torus)"""
        return col % self.num_cols

    def resolve(self, row: int, col: int, boundary: BoundaryModel) -> Optional[Tuple[int, int]]:
        """
        Resolve coordinates under a boundary model.

        Returns:
            (row, col) inside the grid, or None if the cell is off a lattice

        Raises:
            ValueError: Unknown boundary model
        """
        if boundary == BoundaryModel.LATTICE:
            if self.is_legal(row, col):
                return row, col
            return None
        if boundary == BoundaryModel.TORUS:
            return self.wrap_row(row), self.wrap_col(col)
        raise ValueError(f"Unknown boundary model: {boundary!r}")

    def get(self, row: int, col: int) -> Optional[Neuron]:
        """Neuron at row/col, or None if empty"""
        return self._cells[row, col]

    def is_empty(self, row: int, col: int) -> bool:
        return self._cells[row, col] is None

    def occupied_count(self) -> int:
        """Number of non-empty cells"""
        return self._occupied

    def is_full(self) -> bool:
        return self._occupied >= self.capacity

    def iter_occupied(self) -> Iterator[Tuple[int, int, Neuron]]:
        """Yield (row, col, neuron) for every occupied cell in row-major order"""
        for r in range(self.num_rows):
            for c in range(self.num_cols):
                neuron = self._cells[r, c]
                if neuron is not None:
                    yield r, c, neuron

    def count_occupied_cells(self) -> int:
        """Recount occupied cells by scanning (invariant checks only)"""
        return sum(1 for _ in self.iter_occupied())

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def place(self, neuron: Neuron, row: int, col: int):
        """
        Put a neuron into an empty cell and set its row/col.

        Raises:
            IndexError: row/col outside the grid
            OccupiedCellError: Cell already holds a neuron
        """
        if not self.is_legal(row, col):
            raise IndexError(f"Cell ({row}, {col}) outside {self.num_rows}x{self.num_cols} grid")
        if self._cells[row, col] is not None:
            raise OccupiedCellError(
                f"Cell ({row}, {col}) already holds neuron {self._cells[row, col].neuron_id}"
            )

        self._cells[row, col] = neuron
        neuron.row = row
        neuron.col = col
        self._occupied += 1

    def remove(self, row: int, col: int) -> Optional[Neuron]:
        """Empty a cell, returning the neuron that was there (if any)"""
        neuron = self._cells[row, col]
        if neuron is not None:
            self._cells[row, col] = None
            self._occupied -= 1
        return neuron

    def relocate(self, neuron: Neuron, row: int, col: int):
        """
        Move a neuron from its current cell to an empty cell.

        Raises:
            OccupiedCellError: Target cell already holds a neuron
        """
        if self._cells[row, col] is not None:
            raise OccupiedCellError(
                f"Cannot move neuron {neuron.neuron_id} into ({row}, {col}): "
                f"occupied by neuron {self._cells[row, col].neuron_id}"
            )

        # Occupy the new cell, then clear the old one
        self._cells[row, col] = neuron
        self._cells[neuron.row, neuron.col] = None
        neuron.row = row
        neuron.col = col

    def random_populate(
        self,
        num_neurons: int,
        random_source,
        make_neuron: Callable[[int, int, int], Neuron]
    ) -> List[Neuron]:
        """
        Scatter neurons into distinct uniformly random cells.

        Uses rejection sampling over the whole grid: draw a random cell,
        redraw while it is occupied.

        Args:
            num_neurons: Number of neurons to place
            random_source: RandomSource for cell draws
            make_neuron: Factory called as make_neuron(neuron_id, row, col)

        Returns:
            Neurons in ID order

        Raises:
            GridCapacityError: Not enough empty cells for num_neurons
        """
        if num_neurons < 0:
            raise ValueError(f"num_neurons must be non-negative, got {num_neurons}")
        if num_neurons > self.capacity - self._occupied:
            raise GridCapacityError(
                f"Grid too small: {num_neurons} neurons requested, "
                f"{self.capacity - self._occupied} empty cells in "
                f"{self.num_rows}x{self.num_cols} grid"
            )

        neurons = []
        for neuron_id in range(num_neurons):
            r = random_source.next_int(self.num_rows)
            c = random_source.next_int(self.num_cols)
            while self._cells[r, c] is not None:
                r = random_source.next_int(self.num_rows)
                c = random_source.next_int(self.num_cols)

            neuron = make_neuron(neuron_id, r, c)
            self.place(neuron, r, c)
            neurons.append(neuron)

        return neurons

    def to_occupancy_array(self) -> np.ndarray:
        """(num_rows, num_cols) int8 array: 1 where a neuron sits, else 0"""
        occupancy = np.zeros((self.num_rows, self.num_cols), dtype=np.int8)
        for r, c, _ in self.iter_occupied():
            occupancy[r, c] = 1
        return occupancy

    def render_active_status(self) -> str:
        """
        Text picture of the grid: '1' active, '0' inactive, '-' empty.
        """
        lines = []
        for r in range(self.num_rows):
            cells = []
            for c in range(self.num_cols):
                neuron = self._cells[r, c]
                if neuron is None:
                    cells.append('-')
                else:
                    cells.append('1' if neuron.active else '0')
            lines.append('  '.join(cells))
        return '\n'.join(lines)
