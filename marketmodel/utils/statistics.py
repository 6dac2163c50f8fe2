# -*- coding: utf-8 -*-
from dataclasses import dataclass, field
import numpy as np


@dataclass
class SequenceStatistics:
    """
    Weighted running statistics of a sequence of equally sized samples.

    Only sums are stored, so two accumulators built on disjoint sets of samples can be combined with merge()
    in any order; this is the reduction step of the parallel Monte Carlo runs.

    Parameters
    ----------
    dimension : int
        Length of each sample.
    """
    dimension: int

    # Attributes set in __post_init__
    samples: int = field(init=False)
    sum_weights: float = field(init=False)
    weighted_sum: np.ndarray = field(init=False)
    weighted_sum_sq: np.ndarray = field(init=False)  # Σ w x xᵀ, for the covariance

    def __post_init__(self):
        if self.dimension < 1:
            raise ValueError(f"'dimension' must be at least 1. Found: {self.dimension}")
        self.reset()

    def reset(self):
        self.samples = 0
        self.sum_weights = 0.0
        self.weighted_sum = np.zeros(self.dimension)
        self.weighted_sum_sq = np.zeros((self.dimension, self.dimension))

    def add(self, values, weight: float=1.0):
        values = np.asarray(values, dtype=float)
        if values.shape != (self.dimension,):
            raise ValueError(f"Sample of shape {values.shape} does not match dimension {self.dimension}")
        if weight < 0.0:
            raise ValueError(f"negative weight ({weight}) not allowed")

        self.samples += 1
        self.sum_weights += weight
        self.weighted_sum += weight * values
        self.weighted_sum_sq += weight * np.outer(values, values)

    def merge(self, other: 'SequenceStatistics') -> 'SequenceStatistics':
        if other.dimension != self.dimension:
            raise ValueError(f"Cannot merge statistics of dimension {other.dimension} into dimension {self.dimension}")

        merged = SequenceStatistics(dimension=self.dimension)
        merged.samples = self.samples + other.samples
        merged.sum_weights = self.sum_weights + other.sum_weights
        merged.weighted_sum = self.weighted_sum + other.weighted_sum
        merged.weighted_sum_sq = self.weighted_sum_sq + other.weighted_sum_sq
        return merged

    def __add__(self, other):
        return self.merge(other)

    def _check_not_empty(self):
        if self.sum_weights <= 0.0:
            raise ValueError("No samples have been added")

    def mean(self) -> np.ndarray:
        self._check_not_empty()
        return self.weighted_sum / self.sum_weights

    def covariance(self) -> np.ndarray:
        self._check_not_empty()
        if self.samples < 2:
            raise ValueError("At least two samples are required for the covariance")

        mean = self.mean()
        n = self.samples
        return (n / (n - 1.0)) * (self.weighted_sum_sq / self.sum_weights - np.outer(mean, mean))

    def variance(self) -> np.ndarray:
        # Clip round-off so that constant samples give exactly zero
        return np.maximum(np.diag(self.covariance()), 0.0)

    def standard_deviation(self) -> np.ndarray:
        return np.sqrt(self.variance())

    def error_estimate(self) -> np.ndarray:
        return np.sqrt(self.variance() / self.samples)

    def correlation(self) -> np.ndarray:
        cov = self.covariance()
        std = np.sqrt(np.maximum(np.diag(cov), 0.0))
        with np.errstate(divide='ignore', invalid='ignore'):
            corr = cov / np.outer(std, std)
        corr[np.outer(std, std) == 0.0] = np.nan
        np.fill_diagonal(corr, np.where(std > 0.0, 1.0, np.nan))
        return corr
