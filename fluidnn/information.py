"""
Information-theoretic measures over neuron activity histories.

All entropies are in bits. Probabilities of single neurons and neuron pairs
come from frequencies in their collected active/inactive histories; active
information storage (AIS) comes from nearest-match frequencies in History
stores accumulated across many runs.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
from scipy.special import entr

from .history import History, HistoryKey
from .neuron import Neuron


LN_2 = np.log(2.0)


def lg(x: float) -> float:
    """Log base 2"""
    return float(np.log2(x))


def entropy(probabilities: Sequence[float]) -> float:
    """
    Shannon entropy -sum(p * log2(p)) of a probability vector.

    p = 0 contributes 0 (not NaN). The vector is used as given, not normalized.

    Args:
        probabilities: Probability of each outcome

    Returns:
        Entropy in bits
    """
    p = np.asarray(probabilities, dtype=np.float64)
    return float(np.sum(entr(p)) / LN_2)


def shannon_kolmogorov_entropy(histogram_num_active: Sequence[float]) -> float:
    """
    Entropy of the number of simultaneously active neurons over a run.

    Args:
        histogram_num_active: Entry k is the number of collected iterations in
            which exactly k neurons were active

    Returns:
        Entropy in bits of the normalized histogram (0.0 for an empty histogram)
    """
    counts = np.asarray(histogram_num_active, dtype=np.float64)
    total = counts.sum()
    if total == 0:
        return 0.0
    return entropy(counts / total)


def _collected_history(neuron: Neuron) -> np.ndarray:
    history = neuron.get_active_inactive_history()
    if len(history) == 0:
        raise ValueError(f"Neuron {neuron.neuron_id} has no collected activity history")
    return history


def probability_state(neuron: Neuron, state: int) -> float:
    """Fraction of collected iterations in which the neuron was in state (0 or 1)"""
    history = _collected_history(neuron)
    return float(np.count_nonzero(history == state)) / len(history)


def probability_states_joint(n1: Neuron, state1: int, n2: Neuron, state2: int) -> float:
    """Fraction of collected iterations in which n1 was in state1 and n2 in state2"""
    history1 = _collected_history(n1)
    history2 = _collected_history(n2)
    if len(history1) != len(history2):
        raise ValueError(
            f"History lengths differ: neuron {n1.neuron_id} has {len(history1)}, "
            f"neuron {n2.neuron_id} has {len(history2)}"
        )
    joint = np.count_nonzero((history1 == state1) & (history2 == state2))
    return float(joint) / len(history1)


@dataclass(frozen=True)
class InfoTransfer:
    """
    Pairwise information transfer and the joint state probabilities behind it.

    Attributes:
        transfer: H(n1) + H(n2) - H(n1, n2) in bits
        p00, p01, p10, p11: P(n1 = a, n2 = b) for each state pair ab
    """
    transfer: float
    p00: float
    p01: float
    p10: float
    p11: float

    @property
    def pair_probabilities(self) -> Tuple[float, float, float, float]:
        return self.p00, self.p01, self.p10, self.p11


def pairwise_information_transfer(n1: Neuron, n2: Neuron) -> InfoTransfer:
    """
    Information shared between two neurons' activity histories.

    Combines the marginal entropies of each neuron's binary history with the
    joint entropy over the four joint states.
    """
    entropy1 = entropy([probability_state(n1, 0), probability_state(n1, 1)])
    entropy2 = entropy([probability_state(n2, 0), probability_state(n2, 1)])

    joint = [
        probability_states_joint(n1, 0, n2, 0),
        probability_states_joint(n1, 0, n2, 1),
        probability_states_joint(n1, 1, n2, 0),
        probability_states_joint(n1, 1, n2, 1),
    ]
    joint_entropy = entropy(joint)

    return InfoTransfer(entropy1 + entropy2 - joint_entropy, *joint)


def info_transfer_random_pair(network) -> InfoTransfer:
    """
    Information transfer between two distinct randomly chosen neurons.

    Args:
        network: FluidNeuralNetwork with at least two neurons

    Raises:
        ValueError: Fewer than two neurons
    """
    if network.num_neurons < 2:
        raise ValueError(f"Need at least 2 neurons for a pair, network has {network.num_neurons}")

    n1 = network.random_neuron()
    n2 = network.random_neuron()
    while n1 is n2:
        n2 = network.random_neuron()

    return pairwise_information_transfer(n1, n2)


def history_keys(neuron: Neuron) -> Tuple[HistoryKey, HistoryKey, HistoryKey]:
    """
    Split a neuron's activity history into AIS keys.

    Returns:
        (full history, k-past prefix without the last state, last state)
    """
    history = _collected_history(neuron)
    full = HistoryKey.sequence(history)
    k_past = HistoryKey.sequence(history[:-1])
    last_state = HistoryKey.scalar(int(history[-1]))
    return full, k_past, last_state


def active_information_storage(
    neuron: Neuron,
    full_history: History,
    k_past_history: History,
    last_state_history: History
) -> float:
    """
    Local active information storage of a neuron's last state.

    Estimates log2(P(k_past, present) / (P(k_past) * P(present))) from
    nearest-match frequencies in three stores accumulated across runs:
    full histories, k-past prefixes and last states.

    Args:
        neuron: Neuron whose collected activity history is evaluated
        full_history: Store of full activity histories
        k_past_history: Store of histories without their last state
        last_state_history: Store of last states

    Returns:
        AIS in bits; 0.0 when any of the estimates is 0
    """
    full_key, k_past_key, last_state_key = history_keys(neuron)

    joint_k_past_and_present = full_history.probability_closest(full_key)
    probability_k_past = k_past_history.probability_closest(k_past_key)
    probability_current = last_state_history.probability_closest(last_state_key)

    denominator = probability_k_past * probability_current
    if denominator == 0 or joint_k_past_and_present == 0:
        return 0.0

    return lg(joint_k_past_and_present / denominator)
