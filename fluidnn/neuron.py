"""
Neuron runtime representation.

Neurons are placed on the grid at network construction and live for the
whole run. Each neuron has a unique integer ID, a grid position, a continuous
activation level with a binary active/inactive status, and fixed-capacity
histories of both, filled once per collected iteration.
"""

import numpy as np
from dataclasses import dataclass, field


class HistoryOverflowError(Exception):
    """Raised when a neuron records more iterations than its history holds"""
    pass


@dataclass
class Neuron:
    """
    Runtime neuron in a fluid neural network.

    Attributes:
        neuron_id: Unique identifier (index into the network's neuron list)
        row: Grid row (mutated only by movement)
        col: Grid column (mutated only by movement)
        activation_level: Current activation level (tanh output or spontaneous level)
        active: True if level exceeded the threshold or spontaneous activation fired
        history_capacity: Number of collected iterations the histories can hold
        activation_level_history: Recorded levels, one per collected iteration
        active_inactive_history: Recorded status (1 active, 0 inactive)
        history_index: Number of entries written so far
    """
    neuron_id: int
    row: int
    col: int
    activation_level: float = 0.0
    active: bool = False
    history_capacity: int = 0
    activation_level_history: np.ndarray = field(default=None, repr=False)
    active_inactive_history: np.ndarray = field(default=None, repr=False)
    history_index: int = 0

    def __post_init__(self):
        """Allocate history buffers sized to history_capacity"""
        if self.history_capacity < 0:
            raise ValueError(f"history_capacity must be non-negative, got {self.history_capacity}")

        if self.activation_level_history is None:
            self.activation_level_history = np.zeros(self.history_capacity, dtype=np.float64)
        else:
            self.activation_level_history = np.asarray(self.activation_level_history, dtype=np.float64)

        if self.active_inactive_history is None:
            self.active_inactive_history = np.zeros(self.history_capacity, dtype=np.int8)
        else:
            self.active_inactive_history = np.asarray(self.active_inactive_history, dtype=np.int8)

    @property
    def position(self) -> tuple:
        return self.row, self.col

    def record_history(self):
        """
        Append current level and status to the histories.

        Raises:
            HistoryOverflowError: If the histories are already full
        """
        if self.history_index >= self.history_capacity:
            raise HistoryOverflowError(
                f"Neuron {self.neuron_id}: history full ({self.history_capacity} entries)"
            )

        self.activation_level_history[self.history_index] = self.activation_level
        self.active_inactive_history[self.history_index] = 1 if self.active else 0
        self.history_index += 1

    def get_activation_level_history(self) -> np.ndarray:
        """Recorded activation levels (collected iterations only)"""
        return self.activation_level_history[:self.history_index]

    def get_active_inactive_history(self) -> np.ndarray:
        """Recorded active/inactive states (collected iterations only)"""
        return self.active_inactive_history[:self.history_index]

    def to_dict(self) -> dict:
        """
        Serialize neuron to JSON-compatible dict.

        Returns:
            Dict with all neuron fields (histories trimmed to recorded entries)
        """
        return {
            'neuron_id': self.neuron_id,
            'row': self.row,
            'col': self.col,
            'activation_level': float(self.activation_level),
            'active': bool(self.active),
            'history_capacity': self.history_capacity,
            'activation_level_history': self.get_activation_level_history().tolist(),
            'active_inactive_history': self.get_active_inactive_history().tolist(),
        }
