# -*- coding: utf-8 -*-
from dataclasses import dataclass, field
from typing import Optional

import numpy as np


def check_increasing_times(times: np.ndarray, name: str='times'):
    if times.ndim != 1 or times.size == 0:
        raise ValueError(f"'{name}' must be a non-empty 1D sequence")
    if times[0] < 0.0:
        raise ValueError(f"first {name} ({times[0]}) must be non negative")
    if np.any(np.diff(times) <= 0.0):
        raise ValueError(f"'{name}' must be strictly increasing. Found: {times}")


@dataclass
class EvolutionDescription:
    """
    Time grid of a market-model simulation.

    'rate_times' are the fixing times t_0 < t_1 < ... < t_n of the n forward rates; forward rate i accrues
    over [t_i, t_{i+1}], so there is one more rate time than there are rates.
    'evolution_times' are the times the simulation steps to. By default the curve is evolved to each
    fixing time, t_0, ..., t_{n-1}, which gives one step per rate.
    """
    rate_times: np.ndarray
    evolution_times: Optional[np.ndarray] = None

    # Attributes set in __post_init__
    number_of_rates: int = field(init=False)
    number_of_steps: int = field(init=False)
    rate_taus: np.ndarray = field(init=False)
    first_alive_rate: np.ndarray = field(init=False)

    def __post_init__(self):
        self.rate_times = np.array(self.rate_times, dtype=float)
        if self.rate_times.ndim != 1 or self.rate_times.size < 2:
            raise ValueError(f"Rate times must contain at least two values. Found: {self.rate_times}")
        check_increasing_times(self.rate_times, 'rate_times')

        self.number_of_rates = self.rate_times.size - 1
        self.rate_taus = np.diff(self.rate_times)

        if self.evolution_times is None:
            self.evolution_times = self.rate_times[:-1].copy()
        else:
            self.evolution_times = np.array(self.evolution_times, dtype=float)
        check_increasing_times(self.evolution_times, 'evolution_times')

        if self.evolution_times[0] <= 0.0:
            raise ValueError(f"first evolution time ({self.evolution_times[0]}) must be positive")
        if self.evolution_times[-1] > self.rate_times[-2]:
            raise ValueError(f"The last evolution time ({self.evolution_times[-1]}) is after the "
                             f"last fixing time ({self.rate_times[-2]})")

        self.number_of_steps = self.evolution_times.size
        assert self.number_of_steps <= self.number_of_rates

        # A rate is alive during a step if it has not fixed by the start of the step
        step_start_times = np.concatenate([[0.0], self.evolution_times[:-1]])
        self.first_alive_rate = np.searchsorted(self.rate_times, step_start_times, side='right')

    def alive_rates(self, step: int) -> np.ndarray:
        """Indices of the rates still alive during 'step'."""
        if not 0 <= step < self.number_of_steps:
            raise ValueError(f"step {step} out of range [0, {self.number_of_steps})")
        return np.arange(self.first_alive_rate[step], self.number_of_rates)


def money_market_measure(evolution: EvolutionDescription) -> np.ndarray:
    """Discretely compounded money market account: at each step, the first bond maturing at or after the step."""
    numeraires = np.searchsorted(evolution.rate_times, evolution.evolution_times, side='left')
    return numeraires.astype(int)


def terminal_measure(evolution: EvolutionDescription) -> np.ndarray:
    """The longest bond is the numeraire at every step."""
    return np.full(evolution.number_of_steps, evolution.number_of_rates, dtype=int)


def is_in_money_market_measure(evolution: EvolutionDescription, numeraires) -> bool:
    return np.array_equal(np.asarray(numeraires), money_market_measure(evolution))
