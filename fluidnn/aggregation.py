"""
Cross-run aggregation of neuron histories and run statistics.

Active information storage needs probabilities of whole activity histories,
which a single run cannot provide. The estimate is built in two passes over
independent runs of the same configuration:

1. Collection pass: every neuron's full history, k-past prefix and last state
   are put into three History stores.
2. Evaluation pass: fresh runs are scored against those stores and the
   per-neuron AIS is averaged per run, then across runs.

Every run draws from its own RandomSource derived from the experiment seed,
so runs never share a stream. Store mutation happens only here, one run at
a time.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .data_types import ExperimentConfig, StepModels
from .history import History
from .information import (
    active_information_storage,
    history_keys,
    info_transfer_random_pair,
    shannon_kolmogorov_entropy,
    InfoTransfer,
)
from .network import FluidNeuralNetwork
from .rng import RandomSource
from .stats import RunningStats


@dataclass
class HistoryStores:
    """The three stores an AIS estimate reads from"""
    full: History = field(default_factory=History)
    k_past: History = field(default_factory=History)
    last_state: History = field(default_factory=History)

    def accumulate(self, network: FluidNeuralNetwork):
        """Put every neuron's history keys into the stores"""
        for neuron in network.neurons:
            full_key, k_past_key, last_state_key = history_keys(neuron)
            self.full.put(full_key)
            self.k_past.put(k_past_key)
            self.last_state.put(last_state_key)


@dataclass
class RunSummary:
    """Aggregate results read back from one finished run"""
    entropy: float                    # Shannon-Kolmogorov entropy of active counts
    info_transfer: InfoTransfer       # random pair
    active_percent_of_opportunities: float
    moves_percent_of_times_active: float


@dataclass
class AISResult:
    """Active information storage averaged over neurons, then over runs"""
    per_run: List[float]
    stats: RunningStats

    @property
    def mean(self) -> float:
        return self.stats.mean()

    @property
    def standard_deviation(self) -> float:
        return self.stats.standard_deviation()


def run_source(experiment_seed: Optional[int], pass_name: str, run_index: int) -> RandomSource:
    """
    RandomSource for one run of a batch.

    With no experiment seed every run gets fresh OS entropy.
    """
    if experiment_seed is None:
        return RandomSource()
    return RandomSource(experiment_seed).spawn(pass_name, run_index)


def run_network(
    config: ExperimentConfig,
    random_source: RandomSource,
    models: Optional[StepModels] = None
) -> FluidNeuralNetwork:
    """
    Construct a network for config and drive it through the full schedule.

    Returns:
        The finished network (histories filled)
    """
    network = FluidNeuralNetwork.from_config(
        config.lattice,
        config.parameters,
        schedule=config.schedule,
        random_source=random_source
    )
    network.reset_counters()
    network.run(config.schedule.num_iterations, models if models is not None else config.models)
    return network


def collect_history_stores(
    config: ExperimentConfig,
    num_runs: Optional[int] = None,
    stores: Optional[HistoryStores] = None
) -> HistoryStores:
    """
    Collection pass: accumulate neuron histories from num_runs runs.

    Args:
        config: Experiment configuration
        num_runs: Runs to perform (defaults to config.num_runs)
        stores: Existing stores to extend (new stores if omitted)
    """
    if stores is None:
        stores = HistoryStores()
    if num_runs is None:
        num_runs = config.num_runs

    for run in range(num_runs):
        network = run_network(config, run_source(config.seed, "collect", run))
        stores.accumulate(network)

    return stores


def network_active_information_storage(network: FluidNeuralNetwork, stores: HistoryStores) -> float:
    """Mean local AIS over the neurons of one finished run"""
    if network.num_neurons == 0:
        return 0.0

    total = 0.0
    for neuron in network.neurons:
        total += active_information_storage(neuron, stores.full, stores.k_past, stores.last_state)
    return total / network.num_neurons


def average_active_information_storage(
    config: ExperimentConfig,
    num_runs: Optional[int] = None,
    stores: Optional[HistoryStores] = None
) -> AISResult:
    """
    Two-pass AIS estimate for an experiment configuration.

    Args:
        config: Experiment configuration
        num_runs: Runs per pass (defaults to config.num_runs)
        stores: Pre-filled stores; the collection pass is skipped if given

    Returns:
        Per-run mean AIS and running statistics over runs
    """
    if num_runs is None:
        num_runs = config.num_runs
    if stores is None:
        stores = collect_history_stores(config, num_runs)
        print(f"[OK] Collected histories: {stores.full.sum_of_counts()} neuron histories, "
              f"{len(stores.full)} distinct")

    per_run = []
    stats = RunningStats()
    for run in range(num_runs):
        network = run_network(config, run_source(config.seed, "evaluate", run))
        ais = network_active_information_storage(network, stores)
        per_run.append(ais)
        stats.add(ais)

    return AISResult(per_run=per_run, stats=stats)


def summarize_run(network: FluidNeuralNetwork) -> RunSummary:
    """
    Read aggregate results out of a finished run.

    Uses the network's RandomSource to pick the information-transfer pair.
    """
    counters = network.counters
    return RunSummary(
        entropy=shannon_kolmogorov_entropy(network.active_count_histogram()),
        info_transfer=info_transfer_random_pair(network),
        active_percent_of_opportunities=counters.active_percent_of_opportunities(),
        moves_percent_of_times_active=counters.moves_percent_of_times_active(),
    )


def summarize_runs(config: ExperimentConfig, num_runs: Optional[int] = None) -> dict:
    """
    Run config num_runs times and average the per-run summaries.

    Returns:
        Dict of RunningStats keyed by entropy, info_transfer, p00..p11,
        active_percent_of_opportunities, moves_percent_of_times_active
    """
    if num_runs is None:
        num_runs = config.num_runs

    keys = ['entropy', 'info_transfer', 'p00', 'p01', 'p10', 'p11',
            'active_percent_of_opportunities', 'moves_percent_of_times_active']
    results = {key: RunningStats() for key in keys}

    for run in range(num_runs):
        network = run_network(config, run_source(config.seed, "summary", run))
        summary = summarize_run(network)
        values = [
            summary.entropy,
            summary.info_transfer.transfer,
            *summary.info_transfer.pair_probabilities,
            summary.active_percent_of_opportunities,
            summary.moves_percent_of_times_active,
        ]
        for key, value in zip(keys, values):
            results[key].add(float(value))

    return results
