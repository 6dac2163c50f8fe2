# -*- coding: utf-8 -*-
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np
from scipy.stats import norm, qmc

from marketmodel.enums import BrownianGeneratorType
from marketmodel.utils.settings import DEFAULT_RANDOM_SEED, MAX_SIMULATIONS_PER_LOOP, SOBOL_INITIAL_BLOCK_SIZE


class BrownianGenerator(ABC):
    """
    Source of the standard normal increments that drive one simulated path, step by step.

    The dimensions (number of factors, number of steps) are fixed at construction.
    Each step and each path carries a weight; plain pseudo-random generators return 1.0,
    importance-sampling style generators return likelihood ratios.
    """

    @abstractmethod
    def next_step(self, output: np.ndarray) -> float:
        """Fill 'output' (length number_of_factors) with the next step's increments and return the step weight."""

    @abstractmethod
    def next_path(self) -> float:
        """
        Rewind to the start of a new path and return the path weight.

        The weight must be non-negative: the accounting engine adds it to SequenceStatistics, which rejects
        negative weights, so antithetic schemes return 1.0 for both paths of a pair.
        """

    @abstractmethod
    def number_of_factors(self) -> int:
        pass

    @abstractmethod
    def number_of_steps(self) -> int:
        pass


class BrownianGeneratorFactory(ABC):

    @abstractmethod
    def create(self, factors: int, steps: int) -> BrownianGenerator:
        pass


def _check_dimensions(factors: int, steps: int):
    assert isinstance(factors, (int, np.integer)), type(factors)
    assert isinstance(steps, (int, np.integer)), type(steps)
    if factors < 1:
        raise ValueError(f"'factors' must be at least 1. Found: {factors}")
    if steps < 1:
        raise ValueError(f"'steps' must be at least 1. Found: {steps}")
    if factors * steps > MAX_SIMULATIONS_PER_LOOP:
        raise ValueError("Too many factors & steps for one path; may lead to memory issues")


class _PathBufferGenerator(BrownianGenerator):
    # Draws the whole path at next_path() and hands it out one step at a time.

    def __init__(self, factors: int, steps: int):
        _check_dimensions(factors, steps)
        self._factors = int(factors)
        self._steps = int(steps)
        self._path = np.zeros((self._steps, self._factors))
        self._last_step = self._steps  # next_path() must be called before the first step

    def number_of_factors(self) -> int:
        return self._factors

    def number_of_steps(self) -> int:
        return self._steps

    def next_step(self, output: np.ndarray) -> float:
        if self._last_step >= self._steps:
            raise ValueError(f"Generator exhausted: all {self._steps} steps of the path have been drawn. "
                             "Call next_path() first.")
        output[:] = self._path[self._last_step]
        self._last_step += 1
        return 1.0

    def next_path(self) -> float:
        self._path = self._draw_path()
        self._last_step = 0
        return 1.0

    @abstractmethod
    def _draw_path(self) -> np.ndarray:
        pass


class MTBrownianGenerator(_PathBufferGenerator):
    """
    Pseudo-random normal increments from numpy's Mersenne-Twister bit generator.

    With antithetic variates, every second path reuses the previous path's draws with the opposite sign,
    so paths come in (Z, -Z) pairs. Each generator owns its bit generator, so generators built with
    different seeds can be used from different workers.
    """

    def __init__(self, factors: int, steps: int, seed: int=DEFAULT_RANDOM_SEED, apply_antithetic_variates: bool=False):
        super().__init__(factors, steps)
        assert isinstance(apply_antithetic_variates, bool)
        self.apply_antithetic_variates = apply_antithetic_variates
        self._rng = np.random.Generator(np.random.MT19937(seed))
        self._paths_drawn = 0

    def _draw_path(self) -> np.ndarray:
        if self.apply_antithetic_variates and self._paths_drawn % 2 == 1:
            path = -1 * self._path
        else:
            path = self._rng.standard_normal((self._steps, self._factors))
        self._paths_drawn += 1
        return path


class SobolBrownianGenerator(_PathBufferGenerator):
    """
    Scrambled Sobol points mapped to normal increments by the inverse normal CDF.
    One Sobol point of dimension (steps x factors) is used per path, ordered step-major.
    """

    def __init__(self, factors: int, steps: int, seed: int=DEFAULT_RANDOM_SEED):
        super().__init__(factors, steps)
        self._sobol = qmc.Sobol(d=self._steps * self._factors, scramble=True, seed=seed)
        self._block = np.empty((0, self._steps * self._factors))
        self._block_position = 0

    def _draw_path(self) -> np.ndarray:
        if self._block_position >= self._block.shape[0]:
            # Doubling the block keeps the number of points drawn so far a power of two
            block_size = max(SOBOL_INITIAL_BLOCK_SIZE, self._sobol.num_generated)
            self._block = self._sobol.random(block_size)
            self._block_position = 0

        u = self._block[self._block_position]
        self._block_position += 1
        return norm.ppf(u).reshape(self._steps, self._factors)


@dataclass
class MTBrownianGeneratorFactory(BrownianGeneratorFactory):
    seed: int = DEFAULT_RANDOM_SEED
    apply_antithetic_variates: bool = False

    def create(self, factors: int, steps: int) -> MTBrownianGenerator:
        return MTBrownianGenerator(factors=factors,
                                   steps=steps,
                                   seed=self.seed,
                                   apply_antithetic_variates=self.apply_antithetic_variates)


@dataclass
class SobolBrownianGeneratorFactory(BrownianGeneratorFactory):
    seed: int = DEFAULT_RANDOM_SEED

    def create(self, factors: int, steps: int) -> SobolBrownianGenerator:
        return SobolBrownianGenerator(factors=factors, steps=steps, seed=self.seed)


def make_brownian_generator_factory(generator_type=None,
                                    seed: int=DEFAULT_RANDOM_SEED,
                                    apply_antithetic_variates: bool=False) -> BrownianGeneratorFactory:
    generator_type = BrownianGeneratorType.from_value(generator_type)

    match generator_type:
        case BrownianGeneratorType.MERSENNE_TWISTER:
            return MTBrownianGeneratorFactory(seed=seed, apply_antithetic_variates=apply_antithetic_variates)
        case BrownianGeneratorType.SOBOL:
            if apply_antithetic_variates:
                raise ValueError("Antithetic variates are not supported for Sobol sequences")
            return SobolBrownianGeneratorFactory(seed=seed)
        case _:
            raise ValueError(f"Invalid generator type {generator_type}")
