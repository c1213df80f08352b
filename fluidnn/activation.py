"""
Activation update for fluid neural networks (Solé & Miramontes 1995).

TWO-PHASE UPDATE CONTRACT:

Phase A: Level computation (read-only)
    For every neuron n, sum J(n, m) * level(m) over its neighbors m and squash:
        new_level(n) = tanh(gain * (sum_act(n) - sum_neighbor_activations_threshold))
    All sums read levels and activity from iteration t-1. Nothing is written.

Phase B: Status update (write)
    Each neuron takes its new level. It is active if the level exceeds the
    activation threshold; otherwise it may fire spontaneously (forced to the
    spontaneous level) with a fixed probability, by default only when it has
    no occupied Moore neighbor.

No neuron ever observes a neighbor's already-updated level within an iteration.
"""

import numpy as np
from typing import Sequence

from .data_types import NetworkParameters, StepModels, CouplingMatrix
from .grid import Grid
from .neighborhood import get_neighborhood, has_neighbors
from .neuron import Neuron


def sum_activations(
    grid: Grid,
    neurons: Sequence[Neuron],
    neuron: Neuron,
    coupling: CouplingMatrix,
    models: StepModels
) -> float:
    """
    Coupling-weighted sum of neighbor activation levels.

    With self included, the neuron's own level is weighted by lambda_11 or
    lambda_22 like any other neighbor.
    """
    neighbors = get_neighborhood(
        grid, neurons, neuron,
        models.topology, models.self_model, models.boundary, models.activity
    )

    total = 0.0
    for neighbor in neighbors:
        total += coupling.value(neuron.active, neighbor.active) * neighbor.activation_level
    return total


def compute_new_levels(
    grid: Grid,
    neurons: Sequence[Neuron],
    params: NetworkParameters,
    models: StepModels
) -> np.ndarray:
    """
    Phase A: squashed activation level for every neuron.

    Args:
        grid: Grid at iteration t-1
        neurons: Neuron list (defines output order)
        params: Gain, threshold, coupling
        models: Topology, self, boundary and activity models

    Returns:
        (N,) float64 array of new levels, indexed like neurons
    """
    sums = np.empty(len(neurons), dtype=np.float64)
    for i, neuron in enumerate(neurons):
        sums[i] = sum_activations(grid, neurons, neuron, params.coupling, models)

    return np.tanh(params.gain * (sums - params.sum_neighbor_activations_threshold))


def update_activation_status(
    grid: Grid,
    neuron: Neuron,
    new_level: float,
    params: NetworkParameters,
    models: StepModels,
    random_source
):
    """
    Phase B for one neuron: set level and active status.

    Args:
        grid: Grid (positions are unchanged during phase B)
        neuron: Neuron to update
        new_level: Level from compute_new_levels()
        params: Thresholds and spontaneous activation settings
        models: Boundary model used for the isolation check
        random_source: RandomSource for the spontaneous activation draw
    """
    # Even if it doesn't become active, its level is updated
    neuron.activation_level = float(new_level)
    neuron.active = False

    if new_level > params.activation_threshold:
        neuron.active = True
        return

    # Below threshold: spontaneous activation, gated to isolated neurons by default
    if params.spontaneous_requires_isolation and has_neighbors(grid, neuron, models.boundary):
        return

    if random_source.next_double() < params.spontaneous_activation_probability:
        neuron.activation_level = params.spontaneous_activation_level
        neuron.active = True


def update_activation_levels(
    grid: Grid,
    neurons: Sequence[Neuron],
    params: NetworkParameters,
    models: StepModels,
    random_source,
    collecting: bool
) -> np.ndarray:
    """
    Run both phases over the whole population.

    Args:
        grid: Grid the neurons live on
        neurons: Neuron list, processed in index order in phase B
        params: Network parameters
        models: Step models
        random_source: RandomSource for spontaneous activation
        collecting: If True, append each neuron's new state to its histories

    Returns:
        The phase A levels (before spontaneous activation was applied)
    """
    new_levels = compute_new_levels(grid, neurons, params, models)

    for neuron, new_level in zip(neurons, new_levels):
        update_activation_status(grid, neuron, new_level, params, models, random_source)
        if collecting:
            neuron.record_history()

    return new_levels
