"""
Fluid neural network engine.

Implements the fluid neural network of:
    Solé & Miramontes, "Information at the edge of chaos in fluid neural
    networks", Physica D 80 (1995) 171-180
see also:
    Delgado & Solé, "Mean-field theory of fluid neural networks",
    Physical Review E 57(2) (1998) 2204-2211

Owns the grid, the neuron list, the run's RandomSource and the per-run
context (iteration counter, movement counters). Each step updates activation
levels synchronously, then moves active neurons sequentially.
"""

import numpy as np
import os
import time
from typing import List, Optional

from .activation import update_activation_levels
from .data_types import (
    Topology, SelfModel, BoundaryModel, ActivityModel, StepModels,
    NetworkParameters, CouplingMatrix, RunSchedule, RunContext, RunCounters,
    LatticeConfig,
)
from .grid import Grid
from .movement import move_all_moore
from .neuron import Neuron, HistoryOverflowError
from .rng import RandomSource
from .constants import (
    INITIAL_ACTIVATION_LOW_LEVEL,
    INITIAL_ACTIVATION_HIGH_LEVEL,
    SPONTANEOUS_REQUIRES_ISOLATION,
    STEP_TIME_WINDOW,
    STEP_SUMMARY_INTERVAL,
)


class FluidNeuralNetwork:
    """
    Population of mobile neurons on a 2-D grid.

    Neurons are randomly placed at construction. The caller drives the run by
    calling step() once per iteration and reads histories and counters back.
    """

    def __init__(
        self,
        num_rows: int,
        num_cols: int,
        num_neurons: int,
        gain: float,
        sum_neighbor_activations_threshold: float,
        activation_threshold: float,
        spontaneous_activation_level: float,
        spontaneous_activation_probability: float,
        coupling: Optional[CouplingMatrix] = None,
        spontaneous_requires_isolation: bool = SPONTANEOUS_REQUIRES_ISOLATION,
        schedule: Optional[RunSchedule] = None,
        random_source: Optional[RandomSource] = None,
        seed: Optional[int] = None
    ):
        """
        Build a network with num_neurons randomly placed neurons.

        Args:
            num_rows: Grid rows
            num_cols: Grid columns
            num_neurons: Population size (must fit the grid)
            gain: Multiplier applied to the activation sum before tanh
            sum_neighbor_activations_threshold: Subtracted from the activation sum
            activation_threshold: Level a neuron must exceed to be active
            spontaneous_activation_level: Level forced by spontaneous activation
            spontaneous_activation_probability: Per-step spontaneous firing probability
            coupling: Coupling matrix J (all 1.0 if omitted)
            spontaneous_requires_isolation: Only isolated neurons fire spontaneously
            schedule: Iteration schedule (sizes the neuron histories)
            random_source: Shared RandomSource for this run
            seed: Seed for a new RandomSource when random_source is omitted

        Raises:
            GridCapacityError: num_neurons does not fit the grid
        """
        self.params = NetworkParameters(
            gain=gain,
            sum_neighbor_activations_threshold=sum_neighbor_activations_threshold,
            activation_threshold=activation_threshold,
            spontaneous_activation_level=spontaneous_activation_level,
            spontaneous_activation_probability=spontaneous_activation_probability,
            spontaneous_requires_isolation=spontaneous_requires_isolation,
            coupling=coupling if coupling is not None else CouplingMatrix(),
        )
        self.schedule = schedule if schedule is not None else RunSchedule()
        self.random_source = random_source if random_source is not None else RandomSource(seed)
        self.context = RunContext(schedule=self.schedule)

        self.grid = Grid(num_rows, num_cols)
        self.neurons: List[Neuron] = self.grid.random_populate(
            num_neurons, self.random_source, self._make_neuron
        )

        # Active-count histogram over collected iterations (index = number active)
        self._histogram_num_active = np.zeros(num_neurons + 1, dtype=np.int64)

        # Performance metrics
        self._step_times: List[float] = []
        self._step_time_sum: float = 0.0
        self._step_time_window: int = STEP_TIME_WINDOW  # Rolling average window
        self._activation_times: List[float] = []
        self._movement_times: List[float] = []

        print(f"[OK] Network initialized: {num_neurons} neurons on "
              f"{num_rows}x{num_cols} grid, gain={gain}, seed={self.random_source.seed}")

    @classmethod
    def from_config(
        cls,
        lattice: LatticeConfig,
        params: NetworkParameters,
        schedule: Optional[RunSchedule] = None,
        random_source: Optional[RandomSource] = None,
        seed: Optional[int] = None
    ) -> 'FluidNeuralNetwork':
        """Build a network from lattice and parameter dataclasses"""
        return cls(
            num_rows=lattice.num_rows,
            num_cols=lattice.num_cols,
            num_neurons=lattice.num_neurons,
            gain=params.gain,
            sum_neighbor_activations_threshold=params.sum_neighbor_activations_threshold,
            activation_threshold=params.activation_threshold,
            spontaneous_activation_level=params.spontaneous_activation_level,
            spontaneous_activation_probability=params.spontaneous_activation_probability,
            coupling=params.coupling,
            spontaneous_requires_isolation=params.spontaneous_requires_isolation,
            schedule=schedule,
            random_source=random_source,
            seed=seed
        )

    def _make_neuron(self, neuron_id: int, row: int, col: int) -> Neuron:
        """
        New neuron with a random initial level in [LOW, HIGH).

        It starts active right away if that level exceeds the activation threshold.
        """
        level = self.random_source.uniform(INITIAL_ACTIVATION_LOW_LEVEL, INITIAL_ACTIVATION_HIGH_LEVEL)
        return Neuron(
            neuron_id=neuron_id,
            row=row,
            col=col,
            activation_level=level,
            active=level > self.params.activation_threshold,
            history_capacity=self.schedule.num_iterations_data_collection
        )

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def step(
        self,
        topology: Topology = Topology.MOORE,
        self_model: SelfModel = SelfModel.INCLUDE_SELF,
        boundary: BoundaryModel = BoundaryModel.LATTICE,
        activity: ActivityModel = ActivityModel.ALL_NEURONS
    ):
        """
        Advance the network by one iteration.

        TWO-PHASE STEP CONTRACT:

        Phase A: Activation update (synchronous)
            All new levels are computed from the previous iteration's levels,
            then every neuron's level and status are set. Collected
            iterations append to each neuron's histories.

        Phase B: Movement (sequential)
            Active neurons move, in neuron-list order, to a random empty
            Moore-adjacent cell. Movement always uses the Moore neighborhood,
            whatever topology governs activation.

        Args:
            topology: Neighborhood shape for the activation sum
            self_model: Whether a neuron is its own neighbor
            boundary: Lattice or torus, for neighborhoods and movement
            activity: All neurons or only active ones count as neighbors

        Raises:
            HistoryOverflowError: More collected iterations than the schedule allows
            ValueError: Unknown model value
        """
        start_time = time.perf_counter()
        models = StepModels(topology, self_model, boundary, activity)

        # Refuse before mutating anything if a recorded step would overflow
        if self.schedule.is_collected(self.context.iteration + 1):
            full = [n.neuron_id for n in self.neurons if n.history_index >= n.history_capacity]
            if full:
                raise HistoryOverflowError(
                    f"Iteration {self.context.iteration + 1} would overflow the histories of "
                    f"{len(full)} neurons (capacity {self.schedule.num_iterations_data_collection})"
                )

        self.context.iteration += 1
        collecting = self.context.collecting

        # ============================================================
        # PHASE A: ACTIVATION UPDATE
        # ============================================================
        activation_start = time.perf_counter()
        update_activation_levels(
            self.grid, self.neurons, self.params, models, self.random_source, collecting
        )
        if collecting:
            self._histogram_num_active[self.num_active_neurons()] += 1
        self._activation_times.append(time.perf_counter() - activation_start)

        # ============================================================
        # PHASE B: MOVEMENT
        # ============================================================
        movement_start = time.perf_counter()
        move_all_moore(self.grid, self.neurons, boundary, self.random_source, self.context.counters)
        self._movement_times.append(time.perf_counter() - movement_start)

        # Record timing
        elapsed = time.perf_counter() - start_time
        self._record_step_time(elapsed)

        # Debug invariant check (zero perf impact when env var not set)
        if os.getenv('FNN_DEBUG_INVARIANTS') == '1':
            self.check_invariants()

    def step_models(self, models: StepModels):
        """step() with a StepModels bundle"""
        self.step(models.topology, models.self_model, models.boundary, models.activity)

    def run(
        self,
        num_iterations: Optional[int] = None,
        models: Optional[StepModels] = None,
        verbose: bool = False
    ):
        """
        Step repeatedly.

        Args:
            num_iterations: Steps to take (defaults to the schedule's remaining iterations)
            models: Step models (Solé & Miramontes defaults if omitted)
            verbose: Print a step summary every STEP_SUMMARY_INTERVAL iterations
        """
        if models is None:
            models = StepModels()
        if num_iterations is None:
            num_iterations = self.schedule.num_iterations - self.context.iteration

        for _ in range(num_iterations):
            self.step_models(models)
            if verbose and self.context.iteration % STEP_SUMMARY_INTERVAL == 0:
                self.print_step_summary()

    def check_invariants(self):
        """
        Verify exclusive grid occupancy.

        Raises:
            AssertionError: Occupied cell count or any neuron's cell disagrees
        """
        occupied = self.grid.count_occupied_cells()
        assert occupied == self.num_neurons, \
            f"occupied cells ({occupied}) != num_neurons ({self.num_neurons})"
        for neuron in self.neurons:
            assert self.grid.get(neuron.row, neuron.col) is neuron, \
                f"neuron {neuron.neuron_id} not found at ({neuron.row}, {neuron.col})"

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def num_neurons(self) -> int:
        return len(self.neurons)

    @property
    def iteration(self) -> int:
        return self.context.iteration

    @property
    def counters(self) -> RunCounters:
        return self.context.counters

    def reset_counters(self):
        """Zero the movement counters (callers reset them per run)"""
        self.context.counters.reset()

    def get_neurons(self) -> List[Neuron]:
        """Snapshot of the neuron list (neurons themselves are shared)"""
        return list(self.neurons)

    def num_active_neurons(self) -> int:
        return sum(1 for neuron in self.neurons if neuron.active)

    def random_neuron(self) -> Neuron:
        """Uniformly random neuron, drawn from the network's RandomSource"""
        return self.neurons[self.random_source.next_int(len(self.neurons))]

    def active_count_histogram(self) -> np.ndarray:
        """
        Counts of collected iterations by number of active neurons.

        Returns:
            (num_neurons + 1,) int64 array; entry k = iterations with k neurons active
        """
        return self._histogram_num_active.copy()

    def get_activation_level_histories(self) -> np.ndarray:
        """(num_neurons, collected) array of recorded activation levels"""
        return np.array([n.get_activation_level_history() for n in self.neurons])

    def get_active_inactive_histories(self) -> np.ndarray:
        """(num_neurons, collected) array of recorded active/inactive states"""
        return np.array([n.get_active_inactive_history() for n in self.neurons])

    # ------------------------------------------------------------------
    # Monitoring
    # ------------------------------------------------------------------

    def _record_step_time(self, elapsed: float):
        """
        Record step timing for rolling average.

        Args:
            elapsed: Step time in seconds
        """
        self._step_times.append(elapsed)
        self._step_time_sum += elapsed

        # Maintain rolling window
        if len(self._step_times) > self._step_time_window:
            removed = self._step_times.pop(0)
            self._step_time_sum -= removed
            self._activation_times.pop(0)
            self._movement_times.pop(0)

    def get_step_stats(self) -> dict:
        """
        Get current step timing statistics.

        Returns:
            Dict with iteration, avg_step_time_ms, last_step_time_ms and phase averages
        """
        if not self._step_times:
            return {
                'iteration': self.context.iteration,
                'avg_step_time_ms': 0.0,
                'last_step_time_ms': 0.0,
                'avg_activation_ms': 0.0,
                'avg_movement_ms': 0.0
            }

        return {
            'iteration': self.context.iteration,
            'avg_step_time_ms': self._step_time_sum / len(self._step_times) * 1000.0,
            'last_step_time_ms': self._step_times[-1] * 1000.0,
            'avg_activation_ms': float(np.mean(self._activation_times)) * 1000.0,
            'avg_movement_ms': float(np.mean(self._movement_times)) * 1000.0
        }

    def get_snapshot(self) -> dict:
        """
        Get complete network state snapshot.

        Returns:
            Dict with iteration, neurons, counters, timing
        """
        counters = self.context.counters
        return {
            'iteration': self.context.iteration,
            'neuron_count': self.num_neurons,
            'num_active': self.num_active_neurons(),
            'neurons': [n.to_dict() for n in self.neurons],
            'counters': {
                'num_move_opportunities': counters.num_move_opportunities,
                'num_times_active': counters.num_times_active,
                'num_actual_moves': counters.num_actual_moves,
            },
            'timing': self.get_step_stats()
        }

    def print_step_summary(self):
        """Print step summary to console (lightweight monitoring)"""
        stats = self.get_step_stats()
        print(f"Iter {stats['iteration']:6d} | "
              f"Avg: {stats['avg_step_time_ms']:6.3f} ms | "
              f"Last: {stats['last_step_time_ms']:6.3f} ms | "
              f"Active: {self.num_active_neurons()}/{self.num_neurons}")
