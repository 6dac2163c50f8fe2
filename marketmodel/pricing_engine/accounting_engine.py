# -*- coding: utf-8 -*-
import copy
import logging
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import reduce

import numpy as np
import pandas as pd
from prettytable import PrettyTable

from marketmodel.pricing_engine.curve_state import LMMCurveState
from marketmodel.pricing_engine.lmm_evolver import LogNormalFwdRateEuler
from marketmodel.utils.settings import DEFAULT_NB_SIMULATIONS, DEFAULT_RANDOM_SEED, NUMBER_OF_CORES
from marketmodel.utils.statistics import SequenceStatistics

logger = logging.getLogger(__name__)


@dataclass
class MarketModelDiscounter:
    """
    Value, in units of a numeraire bond, of a zero coupon bond paying at 'payment_time'.

    Between two rate times the bond is interpolated log-linearly:
        B = (P(t_b)/P(t_num))^w (P(t_{b+1})/P(t_num))^(1-w),  w = 1 - (T - t_b) / τ_b
    """
    payment_time: float
    rate_times: np.ndarray

    # Attributes set in __post_init__
    before_index: int = field(init=False)
    before_weight: float = field(init=False)

    def __post_init__(self):
        self.rate_times = np.array(self.rate_times, dtype=float)
        if not self.rate_times[0] <= self.payment_time <= self.rate_times[-1]:
            raise ValueError(f"Payment time {self.payment_time} is outside the rate times "
                             f"[{self.rate_times[0]}, {self.rate_times[-1]}]")

        n = self.rate_times.size - 1
        self.before_index = min(int(np.searchsorted(self.rate_times, self.payment_time, side='right')) - 1, n - 1)
        τ = self.rate_times[self.before_index + 1] - self.rate_times[self.before_index]
        self.before_weight = 1.0 - (self.payment_time - self.rate_times[self.before_index]) / τ

    def numeraire_bonds(self, curve_state: LMMCurveState, numeraire: int) -> float:
        pre = curve_state.discount_ratio(self.before_index, numeraire)
        if self.before_weight == 1.0:
            return pre
        post = curve_state.discount_ratio(self.before_index + 1, numeraire)
        return pre ** self.before_weight * post ** (1.0 - self.before_weight)

    def numeraire_bonds_derivatives(self, curve_state: LMMCurveState, numeraire: int) -> np.ndarray:
        """∂B/∂F_k for every rate k."""
        bonds = self.numeraire_bonds(curve_state, numeraire)
        pre = curve_state.discount_ratio(self.before_index, numeraire)
        d_ln_bonds = self.before_weight * curve_state.discount_ratio_derivatives(self.before_index, numeraire) / pre
        if self.before_weight != 1.0:
            post = curve_state.discount_ratio(self.before_index + 1, numeraire)
            d_ln_bonds += (1.0 - self.before_weight) \
                          * curve_state.discount_ratio_derivatives(self.before_index + 1, numeraire) / post
        return bonds * d_ln_bonds


@dataclass
class PathwiseResults:
    """Monte Carlo prices and forward rate deltas of each product, with their standard errors."""
    prices: np.ndarray
    price_errors: np.ndarray
    deltas: np.ndarray  # (number_of_products, number_of_rates)
    delta_errors: np.ndarray
    nb_simulations: int

    def to_frame(self) -> pd.DataFrame:
        number_of_products, number_of_rates = self.deltas.shape
        df = pd.DataFrame({'price': self.prices, 'price_error': self.price_errors},
                          index=pd.Index(range(number_of_products), name='product'))
        for k in range(number_of_rates):
            df[f'delta_{k}'] = self.deltas[:, k]
        return df

    def print_results(self):
        print(f'\nPathwise Monte Carlo results ({self.nb_simulations} paths)')
        table = PrettyTable()
        table.add_column('Product', list(range(len(self.prices))))
        table.add_column('Price', np.round(self.prices, 8).tolist())
        table.add_column('Std. error', np.round(self.price_errors, 8).tolist())
        for k in range(self.deltas.shape[1]):
            table.add_column(f'Δ F{k}', np.round(self.deltas[:, k], 6).tolist())
        print(table)


class PathwiseAccountingEngine:
    """
    Prices a pathwise multi-product along the paths of an evolver, and differentiates each path value
    with respect to the forward rates.

    On each path, the cash flows are converted to units of the step's numeraire bond and divided by the
    number of numeraire units held, which starts at 1 and rolls at each step:
        principal_{s+1} = principal_s · P(t_{num_s}) / P(t_{num_{s+1}})
        V = P0 Σ c / principal
    The deltas are obtained by the chain rule through c, the discounters and the rolls, with respect to each
    forward rate as realised on the path. They are exact when the rates do not move between steps
    (zero volatility); otherwise they omit the sensitivity of later rates to earlier ones.
    """

    def __init__(self,
                 evolver: LogNormalFwdRateEuler,
                 product,
                 initial_numeraire_value: float):

        self.evolver = evolver
        self.product = product.clone()
        self.initial_numeraire_value = float(initial_numeraire_value)
        if self.initial_numeraire_value <= 0.0:
            raise ValueError(f"'initial_numeraire_value' must be positive. Found: {initial_numeraire_value}")

        product_evolution = self.product.evolution()
        if not np.array_equal(product_evolution.rate_times, evolver.evolution.rate_times) \
                or not np.array_equal(product_evolution.evolution_times, evolver.evolution.evolution_times):
            raise ValueError("The product and the evolver use different evolutions")
        if not np.array_equal(self.product.suggested_numeraires(), evolver.numeraires):
            raise ValueError("The product's suggested numeraires differ from the evolver's numeraires")

        self.number_of_products = self.product.number_of_products()
        self.number_of_rates = product_evolution.number_of_rates
        self.numeraires = evolver.numeraires
        self.discounters = [MarketModelDiscounter(payment_time=t, rate_times=product_evolution.rate_times)
                            for t in self.product.possible_cash_flow_times()]
        self._number_cash_flows_this_step, self._cash_flows_generated = self.product.allocate_cash_flow_buffers()

    def single_path_values(self):
        """
        Simulate one path.

        Returns
        -------
        values : np.ndarray of length number_of_products
        deltas : np.ndarray of shape (number_of_products, number_of_rates)
        weight : float, product of the path and step weights
        """
        values = np.zeros(self.number_of_products)
        deltas = np.zeros((self.number_of_products, self.number_of_rates))

        principal = 1.0
        d_ln_principal = np.zeros(self.number_of_rates)

        weight = self.evolver.start_new_path()
        self.product.reset()
        already_deflated = self.product.already_deflated()

        done = False
        while not done:
            step = self.evolver.current_step
            weight *= self.evolver.advance_step()
            curve_state = self.evolver.current_state
            numeraire = self.numeraires[step]

            done = self.product.next_time_step(curve_state,
                                               self._number_cash_flows_this_step,
                                               self._cash_flows_generated)

            for p in range(self.number_of_products):
                for cash_flow in self._cash_flows_generated[p][:self._number_cash_flows_this_step[p]]:
                    if already_deflated:
                        c = cash_flow.amount
                        dc = cash_flow.derivatives
                    else:
                        discounter = self.discounters[cash_flow.time_index]
                        bonds = discounter.numeraire_bonds(curve_state, numeraire)
                        c = cash_flow.amount * bonds
                        dc = cash_flow.derivatives * bonds \
                             + cash_flow.amount * discounter.numeraire_bonds_derivatives(curve_state, numeraire)

                    values[p] += c / principal
                    deltas[p] += (dc - c * d_ln_principal) / principal

            if not done:
                next_numeraire = self.numeraires[step + 1]
                ratio = curve_state.discount_ratio(numeraire, next_numeraire)
                principal *= ratio
                d_ln_principal += curve_state.discount_ratio_derivatives(numeraire, next_numeraire) / ratio

        return self.initial_numeraire_value * values, self.initial_numeraire_value * deltas, weight

    def multiple_path_values(self,
                             nb_simulations: int=DEFAULT_NB_SIMULATIONS,
                             statistics: SequenceStatistics=None) -> SequenceStatistics:
        """
        Simulate 'nb_simulations' paths and accumulate, for each path, the vector
        [values, deltas of product 0, deltas of product 1, ...].
        """
        assert isinstance(nb_simulations, (int, np.integer)), type(nb_simulations)
        if nb_simulations < 1:
            raise ValueError(f"'nb_simulations' must be at least 1. Found: {nb_simulations}")

        if statistics is None:
            statistics = SequenceStatistics(dimension=self.number_of_products * (1 + self.number_of_rates))

        for _ in range(nb_simulations):
            values, deltas, weight = self.single_path_values()
            statistics.add(np.concatenate([values, deltas.ravel()]), weight)

        return statistics

    def multiple_path_values_parallel(self,
                                      nb_simulations: int=DEFAULT_NB_SIMULATIONS,
                                      nb_workers: int=NUMBER_OF_CORES,
                                      use_processes: bool=True,
                                      seed: int=None) -> SequenceStatistics:
        """
        Split the paths over 'nb_workers' independent copies of the engine, each with its own product clone,
        curve state and Brownian generator (seeded from 'seed'), and merge their statistics.
        """
        if nb_workers < 1:
            raise ValueError(f"'nb_workers' must be at least 1. Found: {nb_workers}")
        if nb_simulations < nb_workers:
            raise ValueError(f"Fewer simulations ({nb_simulations}) than workers ({nb_workers})")

        if seed is None:
            seed = getattr(self.evolver.generator_factory, 'seed', DEFAULT_RANDOM_SEED)
        worker_seeds = np.random.SeedSequence(seed).generate_state(nb_workers)
        chunks = [len(chunk) for chunk in np.array_split(np.arange(nb_simulations), nb_workers)]

        logger.info(f"Simulating {nb_simulations} paths on {nb_workers} "
                    f"{'processes' if use_processes else 'threads'}")

        executor_class = ProcessPoolExecutor if use_processes else ThreadPoolExecutor
        with executor_class(max_workers=nb_workers) as executor:
            future_results = [executor.submit(_simulate_paths, self, int(nb), int(worker_seed))
                              for nb, worker_seed in zip(chunks, worker_seeds)]
            results = [future.result() for future in future_results]

        return reduce(SequenceStatistics.merge, results)

    def results(self, statistics: SequenceStatistics) -> PathwiseResults:
        P, n = self.number_of_products, self.number_of_rates
        mean = statistics.mean()
        errors = statistics.error_estimate() if statistics.samples > 1 else np.full(statistics.dimension, np.nan)
        return PathwiseResults(prices=mean[:P],
                               price_errors=errors[:P],
                               deltas=mean[P:].reshape(P, n),
                               delta_errors=errors[P:].reshape(P, n),
                               nb_simulations=statistics.samples)

    def calculate(self, nb_simulations: int=DEFAULT_NB_SIMULATIONS, print_results: bool=False) -> PathwiseResults:
        logger.info(f"Simulating {nb_simulations} paths of {self.number_of_products} products")
        results = self.results(self.multiple_path_values(nb_simulations))
        if print_results:
            results.print_results()
        return results


def _simulate_paths(engine: PathwiseAccountingEngine, nb_simulations: int, seed: int) -> SequenceStatistics:
    # Top level so that it can be pickled for the process pool
    engine = copy.deepcopy(engine)
    engine.evolver.reseed(seed)
    return engine.multiple_path_values(nb_simulations)
