"""
Tests for the network engine.

Tests cover:
- Construction (placement, initial levels, capacity errors)
- Exclusive occupancy after many steps (debug invariant hook)
- Single-neuron end-to-end step
- Zero-gain network stays silent and still
- History sizing and overflow past the schedule
- Determinism with a fixed seed
- Monitoring (step stats, snapshot)
"""

import pytest
import numpy as np

from fluidnn.data_types import (
    RunSchedule, StepModels, Topology, SelfModel, BoundaryModel, ActivityModel,
    LatticeConfig, NetworkParameters,
)
from fluidnn.grid import GridCapacityError
from fluidnn.network import FluidNeuralNetwork
from fluidnn.neuron import HistoryOverflowError
from fluidnn.rng import RandomSource


def make_network(num_rows=6, num_cols=6, num_neurons=12, seed=42, **overrides) -> FluidNeuralNetwork:
    """Small seeded network; keyword overrides go to the constructor"""
    kwargs = dict(
        gain=0.3,
        sum_neighbor_activations_threshold=0.0,
        activation_threshold=1e-16,
        spontaneous_activation_level=0.2,
        spontaneous_activation_probability=0.1,
        schedule=RunSchedule(num_iterations=50, num_iterations_discarded=10),
        seed=seed,
    )
    kwargs.update(overrides)
    return FluidNeuralNetwork(num_rows, num_cols, num_neurons, **kwargs)


# ============================================================================
# Construction
# ============================================================================

def test_construction_places_every_neuron():
    network = make_network()

    assert network.num_neurons == 12
    assert network.grid.occupied_count() == 12
    network.check_invariants()


def test_initial_levels_and_status():
    network = make_network(activation_threshold=0.5)

    for neuron in network.neurons:
        assert 0.0 <= neuron.activation_level < 1.0
        assert neuron.active == (neuron.activation_level > 0.5)


def test_too_many_neurons_rejected():
    with pytest.raises(GridCapacityError):
        make_network(num_rows=3, num_cols=3, num_neurons=10)


def test_full_grid_is_allowed():
    network = make_network(num_rows=3, num_cols=3, num_neurons=9)
    assert network.grid.is_full()


def test_from_config_matches_constructor():
    lattice = LatticeConfig.from_density(9, 0.319)
    params = NetworkParameters(gain=0.3, spontaneous_activation_level=0.2,
                               spontaneous_activation_probability=1e-5)

    network = FluidNeuralNetwork.from_config(
        lattice, params, schedule=RunSchedule(20, 5), random_source=RandomSource(3)
    )

    assert lattice.num_neurons == 25
    assert network.num_neurons == 25
    assert network.params == params
    assert network.random_source.seed == 3


# ============================================================================
# Stepping
# ============================================================================

@pytest.mark.parametrize("models", [
    pytest.param(StepModels(), id="paper_models"),
    pytest.param(StepModels(Topology.VON_NEUMANN, SelfModel.NOT_INCLUDE_SELF,
                            BoundaryModel.TORUS, ActivityModel.ONLY_ACTIVE_NEURONS), id="torus_von_neumann"),
    pytest.param(StepModels(Topology.GBEST), id="gbest"),
    pytest.param(StepModels(Topology.RING, boundary=BoundaryModel.TORUS), id="ring_torus"),
])
def test_occupancy_invariant_holds_every_step(models, monkeypatch):
    monkeypatch.setenv('FNN_DEBUG_INVARIANTS', '1')
    network = make_network(num_neurons=20)

    network.run(50, models)

    assert network.iteration == 50
    positions = {n.position for n in network.neurons}
    assert len(positions) == 20


def test_single_neuron_step():
    network = make_network(num_rows=3, num_cols=3, num_neurons=1, gain=0.5,
                           spontaneous_activation_probability=0.0,
                           schedule=RunSchedule(1, 0), seed=8)
    neuron = network.neurons[0]
    initial_level = neuron.activation_level
    initial_position = neuron.position

    network.step()

    # Only neighbor is itself, so the level is tanh(gain * own level)
    assert neuron.activation_level == pytest.approx(np.tanh(0.5 * initial_level))
    assert neuron.active
    row, col = initial_position
    assert max(abs(neuron.row - row), abs(neuron.col - col)) == 1
    assert list(neuron.get_active_inactive_history()) == [1]

    counters = network.counters
    assert counters.num_move_opportunities == 1
    assert counters.num_times_active == 1
    assert counters.num_actual_moves == 1


def test_lone_neuron_fires_spontaneously_and_wanders():
    # Threshold out of reach, so every activation is spontaneous
    network = make_network(num_rows=3, num_cols=3, num_neurons=1,
                           activation_threshold=1e16,
                           spontaneous_activation_level=0.2,
                           spontaneous_activation_probability=1.0,
                           schedule=RunSchedule(30, 5), seed=5)
    neuron = network.neurons[0]

    for _ in range(30):
        previous = neuron.position
        network.step()
        assert neuron.active
        assert neuron.position != previous
        assert max(abs(neuron.row - previous[0]), abs(neuron.col - previous[1])) == 1

    levels = neuron.get_activation_level_history()
    assert len(levels) == 25
    np.testing.assert_array_equal(levels, np.full(25, 0.2))
    assert network.counters.num_actual_moves == 30


def test_zero_gain_network_is_silent_and_still():
    network = make_network(gain=0.0, spontaneous_activation_probability=0.0,
                           schedule=RunSchedule(200, 20))
    positions = [n.position for n in network.neurons]

    network.run()

    assert network.iteration == 200
    assert all(n.activation_level == 0.0 for n in network.neurons)
    assert network.num_active_neurons() == 0
    assert [n.position for n in network.neurons] == positions
    assert network.counters.num_actual_moves == 0
    assert not network.get_active_inactive_histories().any()
    assert network.active_count_histogram()[0] == 180


def test_histories_cover_collected_iterations():
    network = make_network()

    network.run()

    assert network.iteration == 50
    assert network.get_active_inactive_histories().shape == (12, 40)
    assert network.get_activation_level_histories().shape == (12, 40)
    assert network.active_count_histogram().sum() == 40


def test_histogram_matches_histories():
    network = make_network()
    network.run()

    active_per_iteration = network.get_active_inactive_histories().sum(axis=0)
    expected = np.bincount(active_per_iteration, minlength=network.num_neurons + 1)

    np.testing.assert_array_equal(network.active_count_histogram(), expected)


def test_stepping_past_schedule_overflows_history():
    network = make_network(schedule=RunSchedule(5, 2))
    network.run()
    levels = [n.activation_level for n in network.neurons]
    positions = [n.position for n in network.neurons]
    histories = network.get_activation_level_histories()

    with pytest.raises(HistoryOverflowError):
        network.step()

    # The refused step leaves the run untouched
    assert network.iteration == 5
    assert [n.activation_level for n in network.neurons] == levels
    assert [n.position for n in network.neurons] == positions
    np.testing.assert_array_equal(network.get_activation_level_histories(), histories)


def test_discarded_iterations_are_not_recorded():
    network = make_network(schedule=RunSchedule(5, 2))

    network.run(2)
    assert all(n.history_index == 0 for n in network.neurons)
    assert network.active_count_histogram().sum() == 0

    network.step()
    assert all(n.history_index == 1 for n in network.neurons)


def test_seeded_runs_are_identical():
    a = make_network(seed=2024)
    b = make_network(seed=2024)
    a.run()
    b.run()

    np.testing.assert_array_equal(a.get_active_inactive_histories(), b.get_active_inactive_histories())
    np.testing.assert_array_equal(a.get_activation_level_histories(), b.get_activation_level_histories())
    assert [n.position for n in a.neurons] == [n.position for n in b.neurons]


def test_different_seeds_diverge():
    a = make_network(seed=1)
    b = make_network(seed=2)
    a.run()
    b.run()

    assert not np.array_equal(a.get_activation_level_histories(), b.get_activation_level_histories())


def test_reset_counters():
    network = make_network()
    network.run(5)
    assert network.counters.num_move_opportunities == 5 * 12

    network.reset_counters()
    assert network.counters.num_move_opportunities == 0


# ============================================================================
# Monitoring
# ============================================================================

def test_step_stats_and_snapshot():
    network = make_network()
    assert network.get_step_stats()['avg_step_time_ms'] == 0.0

    network.run(5)

    stats = network.get_step_stats()
    assert stats['iteration'] == 5
    assert stats['avg_step_time_ms'] > 0.0

    snapshot = network.get_snapshot()
    assert snapshot['iteration'] == 5
    assert snapshot['neuron_count'] == 12
    assert len(snapshot['neurons']) == 12
    assert snapshot['counters']['num_move_opportunities'] == 60


def test_step_time_window_is_bounded():
    network = make_network(schedule=RunSchedule(150, 0), num_neurons=2)
    network.run()

    assert len(network._step_times) == network._step_time_window
    assert len(network._activation_times) == network._step_time_window
