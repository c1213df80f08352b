"""
History keys and approximate frequency tables.

A HistoryKey is an immutable symbol: either a fixed-length sequence of
discrete symbols (a neuron's 0/1 activity history) or a single scalar symbol
(its last state). A History counts how often each key was observed across a
batch of runs and answers exact and nearest-match frequency queries.

Nearest-match lookup is a linear scan over every stored key, with no maximum
distance: the closest key is used however far away it is.
"""

import numpy as np
from typing import Iterable, Iterator, Optional, Tuple, Union


class HistoryKeyShapeError(Exception):
    """Raised when comparing keys of different shape (sequence vs. scalar, or lengths)"""
    pass


class HistoryKey:
    """
    Immutable, hashable history symbol.

    Sequence keys compare by the number of differing positions; scalar keys
    by absolute difference. Keys of different shape have no distance.
    """

    __slots__ = ('_symbols', '_scalar', '_hash')

    def __init__(self, value: Union[float, int, Iterable]):
        """
        Args:
            value: A scalar symbol, or a sequence of symbols
        """
        array = np.asarray(value)
        if array.ndim == 0:
            self._symbols = None
            self._scalar = array.item()
            self._hash = hash(('scalar', self._scalar))
        elif array.ndim == 1:
            symbols = array.copy()
            symbols.setflags(write=False)
            self._symbols = symbols
            self._scalar = None
            self._hash = hash(('sequence', tuple(symbols.tolist())))
        else:
            raise ValueError(f"HistoryKey needs a scalar or 1-D sequence, got shape {array.shape}")

    @classmethod
    def sequence(cls, symbols: Iterable) -> 'HistoryKey':
        array = symbols if isinstance(symbols, np.ndarray) else np.asarray(list(symbols))
        return cls(array.reshape(-1))

    @classmethod
    def scalar(cls, symbol: Union[float, int]) -> 'HistoryKey':
        return cls(symbol)

    @property
    def is_scalar(self) -> bool:
        return self._symbols is None

    @property
    def size(self) -> int:
        """Sequence length, or -1 for a scalar key"""
        return -1 if self._symbols is None else len(self._symbols)

    @property
    def symbols(self) -> np.ndarray:
        """Read-only symbol array (sequence keys only)"""
        if self._symbols is None:
            raise HistoryKeyShapeError("Scalar key has no symbol sequence")
        return self._symbols

    @property
    def value(self):
        """Scalar symbol (scalar keys only)"""
        if self._symbols is not None:
            raise HistoryKeyShapeError("Sequence key has no scalar value")
        return self._scalar

    def same_shape(self, other: 'HistoryKey') -> bool:
        return self.size == other.size

    def distance(self, other: 'HistoryKey') -> float:
        """
        Distance to another key of the same shape.

        Returns:
            Count of differing positions (sequences) or absolute difference (scalars)

        Raises:
            HistoryKeyShapeError: Keys differ in shape
        """
        if not self.same_shape(other):
            raise HistoryKeyShapeError(
                f"Cannot compare keys of size {self.size} and {other.size}"
            )

        if self._symbols is None:
            return abs(other._scalar - self._scalar)
        return int(np.count_nonzero(self._symbols != other._symbols))

    def __eq__(self, other) -> bool:
        if not isinstance(other, HistoryKey):
            return NotImplemented
        return self.same_shape(other) and self.distance(other) == 0

    def __hash__(self) -> int:
        return self._hash

    def __repr__(self) -> str:
        if self._symbols is None:
            return f"HistoryKey({self._scalar!r})"
        return f"HistoryKey({self.render()})"

    def render(self) -> str:
        """Compact text form: the scalar, or the symbols concatenated"""
        if self._symbols is None:
            return str(self._scalar)
        return ''.join(str(s) for s in self._symbols.tolist())


class History:
    """
    Append-only multiset of HistoryKeys with occurrence counts.

    Keys are kept in insertion order; nearest-match ties resolve to the key
    inserted first.
    """

    def __init__(self):
        self._counts = {}  # HistoryKey -> count, insertion ordered
        self._total = 0

    def put(self, key: HistoryKey):
        """Record one occurrence of key"""
        self._counts[key] = self._counts.get(key, 0) + 1
        self._total += 1

    def get(self, key: HistoryKey) -> int:
        """Exact-match count (0 if never seen)"""
        return self._counts.get(key, 0)

    def closest(self, key: HistoryKey) -> Optional[int]:
        """
        Count of the stored key nearest to key.

        Only keys of the same shape are comparable; others are skipped.

        Returns:
            Count for the minimum-distance key (first inserted wins ties),
            or None if no comparable key is stored
        """
        best_count = None
        best_distance = None
        for stored, count in self._counts.items():
            if not stored.same_shape(key):
                continue
            d = stored.distance(key)
            if best_distance is None or d < best_distance:
                best_distance = d
                best_count = count
                if d == 0:
                    break
        return best_count

    def closest_key(self, key: HistoryKey) -> Optional[Tuple[HistoryKey, float]]:
        """Nearest comparable stored key and its distance, or None"""
        best = None
        for stored in self._counts:
            if not stored.same_shape(key):
                continue
            d = stored.distance(key)
            if best is None or d < best[1]:
                best = (stored, d)
        return best

    def count_within(self, key: HistoryKey, radius: float) -> int:
        """Total occurrences of comparable keys strictly closer than radius"""
        total = 0
        for stored, count in self._counts.items():
            if stored.same_shape(key) and stored.distance(key) < radius:
                total += count
        return total

    def probability_closest(self, key: HistoryKey) -> float:
        """
        Nearest-match frequency estimate closest(key) / sum_of_counts().

        Returns:
            Estimated probability, 0.0 when the store holds no comparable key
        """
        count = self.closest(key)
        if count is None:
            return 0.0
        return count / self._total

    def sum_of_counts(self) -> int:
        """Total number of put() calls"""
        return self._total

    def items(self) -> Iterator[Tuple[HistoryKey, int]]:
        return iter(self._counts.items())

    def __len__(self) -> int:
        """Number of distinct keys"""
        return len(self._counts)

    def __contains__(self, key: HistoryKey) -> bool:
        return key in self._counts

    def render(self) -> str:
        """One line per distinct key: '<key> x<count>'"""
        return '\n'.join(f"{key.render()} x{count}" for key, count in self._counts.items())
