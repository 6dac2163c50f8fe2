# -*- coding: utf-8 -*-
from dataclasses import dataclass, field

import numpy as np

from marketmodel.pricing_engine.evolution_description import check_increasing_times


@dataclass
class LMMCurveState:
    """
    Snapshot of the simulated forward-rate curve at one evolution step.

    Discount ratios follow single-curve compounding over the rate taus of the grid:
        P(t_{k+1}) / P(t_k) = 1 / (1 + τ_k F_k)
    and are only defined between bonds maturing at or after the first valid rate time.

    Sensitivity convention: discount_ratio_derivatives(i, j)[k] = ∂[P(t_i)/P(t_j)] / ∂F_k.
    For k in [min(i,j), max(i,j)) it equals P(t_i)/P(t_j) * ∓τ_k / (1 + τ_k F_k), with the minus sign when
    i > j (a longer bond in the numerator); for every other k it is exactly zero.
    """
    rate_times: np.ndarray

    # Attributes set in __post_init__
    number_of_rates: int = field(init=False)
    rate_taus: np.ndarray = field(init=False)
    first_valid_index: int = field(init=False)
    forward_rates: np.ndarray = field(init=False)
    discount_ratios: np.ndarray = field(init=False)  # P(t_i) / P(t_first_valid)

    def __post_init__(self):
        self.rate_times = np.array(self.rate_times, dtype=float)
        if self.rate_times.ndim != 1 or self.rate_times.size < 2:
            raise ValueError(f"Rate times must contain at least two values. Found: {self.rate_times}")
        check_increasing_times(self.rate_times, 'rate_times')

        self.number_of_rates = self.rate_times.size - 1
        self.rate_taus = np.diff(self.rate_times)
        self.first_valid_index = self.number_of_rates
        self.forward_rates = np.full(self.number_of_rates, np.nan)
        self.discount_ratios = np.ones(self.number_of_rates + 1)

    def set_on_forward_rates(self, rates, first_valid_index: int=0):
        rates = np.asarray(rates, dtype=float)
        if rates.shape != (self.number_of_rates,):
            raise ValueError(f"Rates mismatch: number of rates ({self.number_of_rates}) "
                             f"and number of given rates ({rates.size})")
        if not 0 <= first_valid_index < self.number_of_rates:
            raise ValueError(f"first valid index must be in [0, {self.number_of_rates}). Found: {first_valid_index}")

        self.first_valid_index = int(first_valid_index)
        self.forward_rates = rates.copy()

        self.discount_ratios = np.ones(self.number_of_rates + 1)
        for i in range(self.first_valid_index, self.number_of_rates):
            self.discount_ratios[i + 1] = self.discount_ratios[i] / (1.0 + self.rate_taus[i] * self.forward_rates[i])

    def _check_rate_index(self, i: int):
        if not self.first_valid_index <= i < self.number_of_rates:
            raise ValueError(f"Rate index {i} is not in the valid range "
                             f"[{self.first_valid_index}, {self.number_of_rates})")

    def _check_bond_index(self, i: int):
        if not self.first_valid_index <= i <= self.number_of_rates:
            raise ValueError(f"Bond index {i} is not in the valid range "
                             f"[{self.first_valid_index}, {self.number_of_rates}]")

    def forward_rate(self, i: int) -> float:
        self._check_rate_index(i)
        return float(self.forward_rates[i])

    def discount_ratio(self, i: int, j: int) -> float:
        """P(t_i) / P(t_j)."""
        self._check_bond_index(i)
        self._check_bond_index(j)
        return float(self.discount_ratios[i] / self.discount_ratios[j])

    def discount_ratio_derivatives(self, i: int, j: int) -> np.ndarray:
        """∂[P(t_i)/P(t_j)] / ∂F_k for every rate k; zero outside the compounding chain between t_i and t_j."""
        ratio = self.discount_ratio(i, j)
        derivatives = np.zeros(self.number_of_rates)
        if i == j:
            return derivatives

        lo, hi = min(i, j), max(i, j)
        taus = self.rate_taus[lo:hi]
        d_ln_bond = -taus / (1.0 + taus * self.forward_rates[lo:hi])  # ∂ ln P(t_m) / ∂F_k for k < m
        sign = 1.0 if i > j else -1.0
        derivatives[lo:hi] = sign * ratio * d_ln_bond
        return derivatives
