# -*- coding: utf-8 -*-
import dataclasses
from typing import Optional

import numpy as np

from marketmodel.pricing_engine.brownian_generator import BrownianGeneratorFactory
from marketmodel.pricing_engine.curve_state import LMMCurveState
from marketmodel.pricing_engine.evolution_description import (EvolutionDescription,
                                                              is_in_money_market_measure,
                                                              money_market_measure)

# Log-normal forward rate market model, evolved with a log-Euler scheme under the spot (money market) measure.
#
# dF_k / F_k = μ_k dt + σ_k dW_k,  μ_k = σ_k Σ_{j=alive}^{k} ρ_kj σ_j τ_j F_j / (1 + τ_j F_j)
#
# [1] Damiano Brigo, Fabio Mercurio - Interest Rate Models Theory and Practice (2001, Springer), section 6.3
# [2] Mark Joshi - The Concepts and Practice of Mathematical Finance (2008), chapter 18


def rank_reduced_sqrt(correlation: np.ndarray,
                      number_of_factors: int) -> np.ndarray:
    """
    Pseudo square root A (n x factors) of a correlation matrix, so that A Aᵀ ≈ C.

    Keeps the eigenvectors of the 'number_of_factors' largest eigenvalues and renormalises each row, so the
    implied correlation matrix keeps a unit diagonal. With full rank this is an exact square root of C.

    Parameters
    ----------
    correlation : np.ndarray
        Symmetric correlation matrix.
    number_of_factors : int
        Number of Brownian factors driving the model.

    Returns
    -------
    np.ndarray
        Factor loadings of shape (n, number_of_factors).
    """
    C = np.asarray(correlation, dtype=float)
    assert C.ndim == 2 and C.shape[0] == C.shape[1], C.shape
    if not np.allclose(C, C.T):
        raise ValueError("Correlation matrix must be symmetric")
    if not np.allclose(np.diag(C), 1.0):
        raise ValueError("Correlation matrix must have a unit diagonal")
    if not 1 <= number_of_factors <= C.shape[0]:
        raise ValueError(f"'number_of_factors' must be in [1, {C.shape[0]}]. Found: {number_of_factors}")

    eigenvalues, eigenvectors = np.linalg.eigh(C)
    order = np.argsort(eigenvalues)[::-1][:number_of_factors]
    eigenvalues = np.maximum(eigenvalues[order], 0.0)  # numerical noise on rank deficient matrices
    A = eigenvectors[:, order] * np.sqrt(eigenvalues)

    row_norms = np.sqrt((A ** 2).sum(axis=1))
    if np.any(row_norms == 0.0):
        raise ValueError("Correlation matrix cannot be reduced to the requested number of factors")
    return A / row_norms[:, None]


class LogNormalFwdRateEuler:
    """
    Evolves the forward rates of an EvolutionDescription one step at a time and exposes the resulting curve state.

    After advance_step() has moved to evolution time T_s, the curve state holds the rates that were alive
    during the step, starting from evolution.first_alive_rate[s]. Rates that have already fixed are frozen.

    Parameters
    ----------
    evolution : EvolutionDescription
    initial_forwards : array of length number_of_rates
    volatilities : float or array of length number_of_rates
        Constant log-normal volatility of each forward rate.
    correlation : np.ndarray
        Instantaneous correlation of the forward rates, (number_of_rates x number_of_rates).
    number_of_factors : int
    generator_factory : BrownianGeneratorFactory
    numeraires : optional, only the money market measure is supported
    """

    def __init__(self,
                 evolution: EvolutionDescription,
                 initial_forwards,
                 volatilities,
                 correlation,
                 number_of_factors: int,
                 generator_factory: BrownianGeneratorFactory,
                 numeraires: Optional[np.ndarray]=None):

        self.evolution = evolution
        n = evolution.number_of_rates

        self.initial_forwards = np.array(initial_forwards, dtype=float)
        if self.initial_forwards.shape != (n,):
            raise ValueError(f"{self.initial_forwards.size} initial forwards given for {n} rates")
        if np.any(self.initial_forwards <= 0.0):
            raise ValueError("Log-normal forward rates must be positive")

        if np.ndim(volatilities) == 0:
            self.volatilities = np.full(n, float(volatilities))
        else:
            self.volatilities = np.array(volatilities, dtype=float)
        if self.volatilities.shape != (n,):
            raise ValueError(f"{self.volatilities.size} volatilities given for {n} rates")
        if np.any(self.volatilities < 0.0):
            raise ValueError("Volatilities must be non negative")

        self.number_of_factors = int(number_of_factors)
        self.factor_loadings = rank_reduced_sqrt(correlation, self.number_of_factors)
        self.correlation = self.factor_loadings @ self.factor_loadings.T  # correlation as implied by the factors

        if numeraires is None:
            numeraires = money_market_measure(evolution)
        if not is_in_money_market_measure(evolution, numeraires):
            raise ValueError("Only the money market measure is supported by the log-normal Euler evolver")
        self.numeraires = np.asarray(numeraires, dtype=int)

        self.generator_factory = generator_factory
        self.generator = generator_factory.create(self.number_of_factors, evolution.number_of_steps)

        self.curve_state = LMMCurveState(rate_times=evolution.rate_times)
        self.forwards = self.initial_forwards.copy()
        self.current_step = 0
        self._brownians = np.zeros(self.number_of_factors)

    @property
    def current_state(self) -> LMMCurveState:
        return self.curve_state

    def reseed(self, seed: int):
        """Rebuild the Brownian generator from the same factory with another seed."""
        self.generator_factory = dataclasses.replace(self.generator_factory, seed=seed)
        self.generator = self.generator_factory.create(self.number_of_factors, self.evolution.number_of_steps)

    def start_new_path(self) -> float:
        self.current_step = 0
        self.forwards = self.initial_forwards.copy()
        self.curve_state.set_on_forward_rates(self.forwards)
        return self.generator.next_path()

    def advance_step(self) -> float:
        s = self.current_step
        if s >= self.evolution.number_of_steps:
            raise ValueError(f"All {self.evolution.number_of_steps} steps of the path have been evolved")

        T = self.evolution.evolution_times
        Δt = T[s] - (T[s - 1] if s > 0 else 0.0)
        alive = self.evolution.first_alive_rate[s]

        weight = self.generator.next_step(self._brownians)

        F = self.forwards[alive:]
        σ = self.volatilities[alive:]
        τ = self.evolution.rate_taus[alive:]
        ρ = self.correlation[alive:, alive:]

        # Spot measure drift uses the forwards at the start of the step
        μ = σ * (np.tril(ρ) @ (σ * τ * F / (1.0 + τ * F)))
        shocks = self.factor_loadings[alive:] @ self._brownians

        self.forwards[alive:] = F * np.exp((μ - 0.5 * σ**2) * Δt + σ * np.sqrt(Δt) * shocks)
        self.curve_state.set_on_forward_rates(self.forwards, first_valid_index=alive)

        self.current_step += 1
        return weight
