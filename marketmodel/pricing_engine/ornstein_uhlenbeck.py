# -*- coding: utf-8 -*-
from dataclasses import dataclass, field
from typing import Callable

import numpy as np
from scipy.integrate import quad

from marketmodel.enums import Discretization
from marketmodel.utils.settings import DEFAULT_NB_SIMULATIONS, DEFAULT_RANDOM_SEED, GAUSS_KRONROD_DEFAULT_EPS, \
    MIN_MEAN_REVERSION_SPEED

# dx = a (r - x) dt + σ dW                        (Ornstein-Uhlenbeck)
# dx = a (b(t) - x) dt + σ dW                     (extended Ornstein-Uhlenbeck, time dependent level)
#
# Conditional on x(t0) the process is Gaussian, with
#   E[x(t0+Δt)] = x0 e^{-aΔt} + a e^{-a(t0+Δt)} ∫_{t0}^{t0+Δt} b(s) e^{as} ds
#   Var[x(t0+Δt)] = σ² (1 - e^{-2aΔt}) / (2a)
#
# [1] Damiano Brigo, Fabio Mercurio - Interest Rate Models Theory and Practice (2001, Springer), section 3.2


@dataclass
class OrnsteinUhlenbeckProcess:
    speed: float  # a, speed of mean reversion
    vol: float  # σ
    x0: float=0.0
    level: float=0.0  # long run mean r

    def __post_init__(self):
        if self.speed < 0.0:
            raise ValueError(f"negative speed given: {self.speed}")
        if self.vol < 0.0:
            raise ValueError(f"negative volatility given: {self.vol}")

    def drift(self, t: float, x):
        return self.speed * (self.level - x)

    def diffusion(self, t: float, x):
        return self.vol

    def expectation(self, t0: float, x0, dt: float):
        return self.level + (x0 - self.level) * np.exp(-self.speed * dt)

    def variance(self, t0: float, x0, dt: float) -> float:
        if self.speed < MIN_MEAN_REVERSION_SPEED:
            # Limit a → 0 of the exact variance, a Brownian motion
            return self.vol**2 * dt
        return 0.5 * self.vol**2 / self.speed * (1.0 - np.exp(-2.0 * self.speed * dt))

    def std_deviation(self, t0: float, x0, dt: float) -> float:
        return np.sqrt(self.variance(t0, x0, dt))

    def evolve(self, t0: float, x0, dt: float, dw):
        """Exact step: the conditional mean plus the conditional standard deviation times the normal draw dw."""
        return self.expectation(t0, x0, dt) + self.std_deviation(t0, x0, dt) * dw


@dataclass
class ExtendedOrnsteinUhlenbeckProcess:
    """
    Ornstein-Uhlenbeck process reverting to a time dependent level b(t).

    The drift of the level in the conditional expectation is computed with the chosen discretization:
      MID_POINT                 b(t0 + Δt/2) (1 - e^{-aΔt})
      TRAPEZOIDAL               linear interpolation of b between t0 and t0 + Δt, integrated exactly
      GAUSS_KRONROD_QUADRATURE  adaptive quadrature (scipy.integrate.quad) of b(s) e^{as} to 'int_eps'
    The three agree when b is constant.
    """
    speed: float
    vol: float
    x0: float
    b: Callable[[float], float]
    discretization: Discretization=Discretization.MID_POINT
    int_eps: float=GAUSS_KRONROD_DEFAULT_EPS

    # Attributes set in __post_init__
    ou_process: OrnsteinUhlenbeckProcess=field(init=False)

    def __post_init__(self):
        if self.speed < 0.0:
            raise ValueError(f"negative speed given: {self.speed}")
        if self.vol < 0.0:
            raise ValueError(f"negative volatility given: {self.vol}")
        if not isinstance(self.discretization, Discretization):
            self.discretization = Discretization.from_value(self.discretization)
        self.ou_process = OrnsteinUhlenbeckProcess(speed=self.speed, vol=self.vol, x0=self.x0)

    def drift(self, t: float, x):
        return self.ou_process.drift(t, x) + self.speed * self.b(t)

    def diffusion(self, t: float, x):
        return self.ou_process.diffusion(t, x)

    def variance(self, t0: float, x0, dt: float) -> float:
        return self.ou_process.variance(t0, x0, dt)

    def std_deviation(self, t0: float, x0, dt: float) -> float:
        return self.ou_process.std_deviation(t0, x0, dt)

    def expectation(self, t0: float, x0, dt: float):
        a = self.speed
        ou_expectation = self.ou_process.expectation(t0, x0, dt)

        match self.discretization:
            case Discretization.MID_POINT:
                return ou_expectation + self.b(t0 + 0.5 * dt) * (1.0 - np.exp(-a * dt))

            case Discretization.TRAPEZOIDAL:
                b_start = self.b(t0)
                b_end = self.b(t0 + dt)
                ex = np.exp(-a * dt)
                if a * dt < MIN_MEAN_REVERSION_SPEED:
                    # (1 - e^{-aΔt}) / (aΔt) → 1, the level has no pull
                    return ou_expectation
                return ou_expectation + b_end - ex * b_start - (b_end - b_start) / (a * dt) * (1.0 - ex)

            case Discretization.GAUSS_KRONROD_QUADRATURE:
                integral, _ = quad(lambda s: self.b(s) * np.exp(a * s), t0, t0 + dt, epsabs=self.int_eps)
                return ou_expectation + a * np.exp(-a * (t0 + dt)) * integral

            case _:
                raise ValueError("unknown discretization scheme")

    def evolve(self, t0: float, x0, dt: float, dw):
        return self.expectation(t0, x0, dt) + self.std_deviation(t0, x0, dt) * dw

    def simulate(self,
                 years_grid,
                 nb_simulations: int=DEFAULT_NB_SIMULATIONS,
                 random_seed: int=DEFAULT_RANDOM_SEED) -> np.ndarray:
        """
        Simulate paths on 'years_grid' by exact Gaussian steps.

        Returns
        -------
        np.ndarray
            Array of shape (len(years_grid), nb_simulations); the first row is x0 when years_grid starts at 0.
        """
        years_grid = np.array(years_grid, dtype=float)
        assert years_grid.ndim == 1, years_grid.shape
        if years_grid[0] < 0.0 or np.any(np.diff(years_grid) <= 0.0):
            raise ValueError("'years_grid' must be non negative and strictly increasing")

        rng = np.random.default_rng(random_seed)
        x = np.zeros((years_grid.size, nb_simulations))

        t_prev, x_prev = 0.0, np.full(nb_simulations, float(self.x0))
        for i, t in enumerate(years_grid):
            dt = t - t_prev
            if dt > 0.0:
                x_prev = self.evolve(t_prev, x_prev, dt, rng.standard_normal(nb_simulations))
            x[i] = x_prev
            t_prev = t

        return x
