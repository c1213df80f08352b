"""
Deterministic RNG utilities for fluid neural network simulation.

Uses SHA256 hashing to derive stable seeds from hierarchical components
(experiment_seed, pass_name, run_index, ...). All randomness of a run flows
through one RandomSource backed by numpy.random.Generator(PCG64), so a run is
reproducible from its seed and independent runs never share a stream.
"""

import hashlib
import numpy as np
from typing import Any, Optional


def make_seed(*components: Any) -> int:
    """
    Generate deterministic 64-bit seed from hierarchical components.

    Uses SHA256 to hash components into stable seed value.

    Args:
        *components: Seed components (experiment_seed, pass name, run index, etc.)

    Returns:
        64-bit integer seed for numpy RNG

    Example:
        run_seed = make_seed(experiment_seed, "collect", run_index)
    """
    # Join all components with colon separator
    hash_input = ":".join(str(c) for c in components)

    # SHA256 hash and extract 64-bit integer
    hash_bytes = hashlib.sha256(hash_input.encode('utf-8')).digest()
    seed = int.from_bytes(hash_bytes[:8], byteorder='big')

    return seed


class RandomSource:
    """
    Single pseudorandom stream shared by every stochastic decision of a run.

    Placement, initial activation levels, spontaneous activation, movement
    offsets and random neuron selection all draw from the same Generator.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Args:
            seed: 64-bit seed (from make_seed()); None draws fresh OS entropy
        """
        self.seed = seed
        self._rng = np.random.Generator(np.random.PCG64(seed))

    def next_int(self, bound: int) -> int:
        """Uniform integer in [0, bound)"""
        return int(self._rng.integers(bound))

    def next_double(self) -> float:
        """Uniform float in [0.0, 1.0)"""
        return float(self._rng.random())

    def uniform(self, low: float, high: float) -> float:
        """Uniform float in [low, high)"""
        return float(self._rng.uniform(low, high))

    def moore_offset(self) -> tuple:
        """
        Independent row and column offsets, each uniform over {-1, 0, +1}.

        (0, 0) is a legal draw; callers reject it where it is meaningless.
        """
        row_change, col_change = self._rng.integers(3, size=2) - 1
        return int(row_change), int(col_change)

    def spawn(self, *components: Any) -> 'RandomSource':
        """
        Derive an independent child stream (e.g., one per run in a batch).

        Args:
            *components: Extra seed components appended to this source's seed
        """
        if self.seed is None:
            # Unseeded parent: child seed comes from the parent stream
            return RandomSource(int(self._rng.integers(2**63)))
        return RandomSource(make_seed(self.seed, *components))
