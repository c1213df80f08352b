"""
Running summary statistics for per-run results (AIS, transfer, entropy).
"""

import numpy as np


class RunningStats:
    """Running count, mean and population standard deviation of a data stream"""

    def __init__(self):
        self.size = 0
        self.sum = 0.0
        self.sum_square = 0.0

    def add(self, data_point: float):
        self.sum += data_point
        self.sum_square += data_point * data_point
        self.size += 1

    def mean(self) -> float:
        if self.size == 0:
            return 0.0
        return self.sum / self.size

    def standard_deviation(self) -> float:
        if self.size == 0:
            return 0.0
        # abs() absorbs tiny negative variances from rounding
        return float(np.sqrt(abs(self.sum_square / self.size - self.mean() ** 2)))

    def to_dict(self) -> dict:
        return {
            'size': self.size,
            'mean': self.mean(),
            'standard_deviation': self.standard_deviation(),
        }
