"""
Data types for network configuration and per-run state.

Enums select the neighborhood and boundary models used by a step. The
parameter dataclasses are populated by loader.py from YAML files or built
directly by callers.
"""

from dataclasses import dataclass, field
from typing import Optional
from enum import Enum

from .constants import (
    GAIN_DEFAULT,
    SUM_NEIGHBOR_ACTIVATIONS_THRESHOLD_DEFAULT,
    ACTIVATION_THRESHOLD_DEFAULT,
    SPONTANEOUS_ACTIVATION_LEVEL_DEFAULT,
    SPONTANEOUS_ACTIVATION_PROBABILITY_DEFAULT,
    SPONTANEOUS_REQUIRES_ISOLATION,
    COUPLING_DEFAULT,
    NUM_ITERATIONS_DEFAULT,
    NUM_ITERATIONS_DISCARDED_DEFAULT,
    NUM_RUNS_DEFAULT,
)


# ============================================================================
# Step Models
# ============================================================================

class Topology(Enum):
    """Shape of the neighborhood (Moore in Solé & Miramontes)"""
    GBEST = "gbest"
    RING = "ring"
    VON_NEUMANN = "von_neumann"
    MOORE = "moore"


class SelfModel(Enum):
    """Whether a neuron counts as its own neighbor (included in the paper)"""
    INCLUDE_SELF = "include_self"
    NOT_INCLUDE_SELF = "not_include_self"


class BoundaryModel(Enum):
    """Finite lattice or wraparound torus (lattice in the paper)"""
    LATTICE = "lattice"
    TORUS = "torus"


class ActivityModel(Enum):
    """Whether neighborhoods hold all neurons or only active ones (all in the paper)"""
    ALL_NEURONS = "all_neurons"
    ONLY_ACTIVE_NEURONS = "only_active_neurons"


@dataclass(frozen=True)
class StepModels:
    """Model selection passed to every step of a run"""
    topology: Topology = Topology.MOORE
    self_model: SelfModel = SelfModel.INCLUDE_SELF
    boundary: BoundaryModel = BoundaryModel.LATTICE
    activity: ActivityModel = ActivityModel.ALL_NEURONS


# ============================================================================
# Network Parameters
# ============================================================================

@dataclass(frozen=True)
class CouplingMatrix:
    """
    Coupling constants J, indexed by (neuron active, neighbor active).

    Attributes:
        active_active: lambda_11, both active
        active_inactive: lambda_12, neuron active, neighbor inactive
        inactive_active: lambda_21, neuron inactive, neighbor active
        inactive_inactive: lambda_22, both inactive
    """
    active_active: float = COUPLING_DEFAULT
    active_inactive: float = COUPLING_DEFAULT
    inactive_active: float = COUPLING_DEFAULT
    inactive_inactive: float = COUPLING_DEFAULT

    def value(self, neuron_active: bool, neighbor_active: bool) -> float:
        """Return the J entry for the given activity pair"""
        if neuron_active:
            return self.active_active if neighbor_active else self.active_inactive
        return self.inactive_active if neighbor_active else self.inactive_inactive


@dataclass(frozen=True)
class NetworkParameters:
    """Activation parameters of a network"""
    gain: float = GAIN_DEFAULT
    sum_neighbor_activations_threshold: float = SUM_NEIGHBOR_ACTIVATIONS_THRESHOLD_DEFAULT
    activation_threshold: float = ACTIVATION_THRESHOLD_DEFAULT
    spontaneous_activation_level: float = SPONTANEOUS_ACTIVATION_LEVEL_DEFAULT
    spontaneous_activation_probability: float = SPONTANEOUS_ACTIVATION_PROBABILITY_DEFAULT
    spontaneous_requires_isolation: bool = SPONTANEOUS_REQUIRES_ISOLATION
    coupling: CouplingMatrix = field(default_factory=CouplingMatrix)


@dataclass(frozen=True)
class RunSchedule:
    """
    Iteration schedule of a single run.

    The first num_iterations_discarded iterations let the network settle;
    histories are collected for the remaining ones.
    """
    num_iterations: int = NUM_ITERATIONS_DEFAULT
    num_iterations_discarded: int = NUM_ITERATIONS_DISCARDED_DEFAULT

    def __post_init__(self):
        if self.num_iterations < 0 or self.num_iterations_discarded < 0:
            raise ValueError(f"Iteration counts must be non-negative: {self}")
        if self.num_iterations_discarded >= self.num_iterations:
            raise ValueError(
                f"Discarding {self.num_iterations_discarded} of "
                f"{self.num_iterations} iterations leaves none for data collection"
            )

    @property
    def num_iterations_data_collection(self) -> int:
        """Number of iterations whose state is recorded in neuron histories"""
        return self.num_iterations - self.num_iterations_discarded

    @property
    def first_iteration_data_collection(self) -> int:
        """First (1-based) iteration that is recorded"""
        return self.num_iterations_discarded + 1

    def is_collected(self, iteration: int) -> bool:
        """True if the 1-based iteration falls inside the data collection window"""
        return iteration >= self.first_iteration_data_collection


# ============================================================================
# Per-Run State
# ============================================================================

@dataclass
class RunCounters:
    """Movement statistics accumulated over a run"""
    num_move_opportunities: int = 0  # every neuron, every sweep
    num_times_active: int = 0        # neurons active when their turn came
    num_actual_moves: int = 0        # active neurons that found an empty cell

    def reset(self):
        self.num_move_opportunities = 0
        self.num_times_active = 0
        self.num_actual_moves = 0

    def active_percent_of_opportunities(self) -> float:
        if self.num_move_opportunities == 0:
            return 0.0
        return self.num_times_active * 100.0 / self.num_move_opportunities

    def moves_percent_of_times_active(self) -> float:
        if self.num_times_active == 0:
            return 0.0
        return self.num_actual_moves * 100.0 / self.num_times_active


@dataclass
class RunContext:
    """Mutable state of one run: iteration counter and movement counters"""
    schedule: RunSchedule
    iteration: int = 0  # number of completed steps (1-based while a step runs)
    counters: RunCounters = field(default_factory=RunCounters)

    @property
    def collecting(self) -> bool:
        """True if the current iteration is recorded in neuron histories"""
        return self.schedule.is_collected(self.iteration)


# ============================================================================
# Experiment Definition
# ============================================================================

@dataclass(frozen=True)
class LatticeConfig:
    """Grid dimensions and population size"""
    num_rows: int
    num_cols: int
    num_neurons: int

    @classmethod
    def from_density(cls, lattice_size: int, density: float) -> 'LatticeConfig':
        """Square lattice holding int(size * size * density) neurons"""
        return cls(
            num_rows=lattice_size,
            num_cols=lattice_size,
            num_neurons=int(lattice_size * lattice_size * density)
        )


@dataclass(frozen=True)
class ExperimentConfig:
    """Complete experiment definition"""
    experiment_id: str
    name: str
    lattice: LatticeConfig
    parameters: NetworkParameters
    schedule: RunSchedule
    models: StepModels = field(default_factory=StepModels)
    num_runs: int = NUM_RUNS_DEFAULT
    seed: Optional[int] = None
    description: Optional[str] = None
