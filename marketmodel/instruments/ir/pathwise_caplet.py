# -*- coding: utf-8 -*-
from typing import Sequence, Tuple, Union

import numpy as np

from marketmodel.instruments.ir.pathwise_product import PathwiseMultiProduct
from marketmodel.pricing_engine.curve_state import LMMCurveState
from marketmodel.pricing_engine.evolution_description import EvolutionDescription, money_market_measure


# Pathwise caplets and caps on the forward rates of a market-model grid.
#
# Caplet i fixes at rate_times[i] on forward rate i, pays accruals[i] * max(F_i - K_i, 0) at payment_times[i]
# and is product number i of the multi-product. The simulation steps once per rate (the default evolution
# of the grid), so the caplet is settled on step i.
#
# References:
# [1] Mark Joshi, Chao Yang - Fast delta computations in the swap-rate market model (2009)
# [2] Paul Glasserman, Xiaoliang Zhao - Fast Greeks by simulation in forward LIBOR models (1999)


class _PathwiseMultiCapletBase(PathwiseMultiProduct):

    def __init__(self,
                 rate_times: Sequence[float],
                 accruals: Sequence[float],
                 payment_times: Sequence[float],
                 strikes: Union[float, Sequence[float]]):

        self._evolution = EvolutionDescription(rate_times=rate_times)
        self.rate_times = self._evolution.rate_times
        self.number_of_rates = self._evolution.number_of_rates

        self.accruals = np.array(accruals, dtype=float)
        self.payment_times = np.array(payment_times, dtype=float)
        if np.ndim(strikes) == 0:
            self.strikes = np.full(self.number_of_rates, float(strikes))
        else:
            self.strikes = np.array(strikes, dtype=float)

        for name, values in (('accruals', self.accruals), ('payment_times', self.payment_times), ('strikes', self.strikes)):
            if values.shape != (self.number_of_rates,):
                raise ValueError(f"{values.size} {name} given for {self.number_of_rates} rates "
                                 f"({self.number_of_rates + 1} rate times)")

        self.current_index = 0

    def suggested_numeraires(self) -> np.ndarray:
        return money_market_measure(self._evolution)

    def evolution(self) -> EvolutionDescription:
        return self._evolution

    def possible_cash_flow_times(self) -> np.ndarray:
        return self.payment_times.copy()

    def number_of_products(self) -> int:
        return self.number_of_rates

    def max_number_of_cash_flows_per_product_per_step(self) -> int:
        return 1

    def reset(self):
        self.current_index = 0

    def _payoff(self, curve_state: LMMCurveState, i: int) -> Tuple[float, np.ndarray]:
        """Undeflated payoff of caplet i and its derivatives; the payoff depends pathwise on F_i only."""
        forward_rate = curve_state.forward_rate(i)
        payoff = self.accruals[i] * max(forward_rate - self.strikes[i], 0.0)

        derivatives = np.zeros(self.number_of_rates)
        if forward_rate > self.strikes[i]:
            derivatives[i] = self.accruals[i]

        return payoff, derivatives

    def _emit(self, i, amount, derivatives, number_cash_flows_this_step, cash_flows_generated) -> bool:
        number_cash_flows_this_step[:] = 0
        number_cash_flows_this_step[i] = 1

        cash_flow = cash_flows_generated[i][0]
        cash_flow.time_index = i
        cash_flow.amount = amount
        cash_flow.derivatives[:] = derivatives

        self.current_index += 1
        return self.current_index == self.number_of_rates


class PathwiseMultiCaplet(_PathwiseMultiCapletBase):
    """Undeflated caplets: the amount is the cash paid at the payment time, to be discounted by the engine."""

    def already_deflated(self) -> bool:
        return False

    def next_time_step(self,
                       curve_state: LMMCurveState,
                       number_cash_flows_this_step: np.ndarray,
                       cash_flows_generated: list) -> bool:
        i = self.current_index
        payoff, derivatives = self._payoff(curve_state, i)
        return self._emit(i, payoff, derivatives, number_cash_flows_this_step, cash_flows_generated)


class PathwiseMultiDeflatedCaplet(_PathwiseMultiCapletBase):
    """
    Caplets whose amount is already expressed in units of the step's numeraire bond.

    The payoff paid at the end of the accrual period is divided by N = P(t_i)/P(t_{i+1}) = 1 + τ_i F_i.
    The derivatives follow the quotient rule
        ∂(a/N)/∂F_k = (∂a/∂F_k)/N - a (∂N/∂F_k)/N²
    with ∂N/∂F_k from the curve state; entries for rates outside the compounding chain stay exactly zero.
    N is the numeraire ratio at rate_times[i + 1], so each payment time must be the end of its accrual period.
    """

    def __init__(self,
                 rate_times: Sequence[float],
                 accruals: Sequence[float],
                 payment_times: Sequence[float],
                 strikes: Union[float, Sequence[float]]):
        super().__init__(rate_times=rate_times, accruals=accruals, payment_times=payment_times, strikes=strikes)

        accrual_ends = self.rate_times[1:]
        if not np.allclose(self.payment_times, accrual_ends, rtol=0.0, atol=1e-12):
            raise ValueError(f"Deflated caplets pay at the end of their accrual periods {accrual_ends.tolist()}. "
                             f"Found payment times: {self.payment_times.tolist()}")

    def already_deflated(self) -> bool:
        return True

    def next_time_step(self,
                       curve_state: LMMCurveState,
                       number_cash_flows_this_step: np.ndarray,
                       cash_flows_generated: list) -> bool:
        i = self.current_index
        payoff, payoff_derivatives = self._payoff(curve_state, i)

        numeraire_ratio = curve_state.discount_ratio(i, i + 1)
        numeraire_ratio_derivatives = curve_state.discount_ratio_derivatives(i, i + 1)

        amount = payoff / numeraire_ratio
        derivatives = payoff_derivatives / numeraire_ratio \
                      - payoff * numeraire_ratio_derivatives / numeraire_ratio**2

        return self._emit(i, amount, derivatives, number_cash_flows_this_step, cash_flows_generated)


class PathwiseMultiDeflatedCap(PathwiseMultiProduct):
    """
    Several deflated caps priced together, each a strip of caplets over a range of rate indices.

    'starts_and_ends' holds one (start, end) pair per cap; end is exclusive, so the cap holds the caplets
    on rates start, ..., end - 1. One deflated caplet per rate is shared by all the caps; on step i its
    cash flow is copied unchanged into every cap with start <= i < end, and the other caps generate nothing.
    """

    def __init__(self,
                 rate_times: Sequence[float],
                 accruals: Sequence[float],
                 payment_times: Sequence[float],
                 strike: float,
                 starts_and_ends: Sequence[Tuple[int, int]]):

        self.underlying_caplets = PathwiseMultiDeflatedCaplet(rate_times=rate_times,
                                                              accruals=accruals,
                                                              payment_times=payment_times,
                                                              strikes=strike)
        self.number_of_rates = self.underlying_caplets.number_of_rates

        if len(starts_and_ends) == 0:
            raise ValueError("At least one (start, end) pair must be given")
        self.starts_and_ends = []
        for start, end in starts_and_ends:
            if not 0 <= start < end <= self.number_of_rates:
                raise ValueError(f"Invalid cap range ({start}, {end}): "
                                 f"need 0 <= start < end <= {self.number_of_rates}")
            self.starts_and_ends.append((int(start), int(end)))

        self.current_index = 0
        self._inner_number_cash_flows, self._inner_cash_flows = self.underlying_caplets.allocate_cash_flow_buffers()

    def suggested_numeraires(self) -> np.ndarray:
        return self.underlying_caplets.suggested_numeraires()

    def evolution(self) -> EvolutionDescription:
        return self.underlying_caplets.evolution()

    def possible_cash_flow_times(self) -> np.ndarray:
        return self.underlying_caplets.possible_cash_flow_times()

    def number_of_products(self) -> int:
        return len(self.starts_and_ends)

    def max_number_of_cash_flows_per_product_per_step(self) -> int:
        return 1

    def already_deflated(self) -> bool:
        return True

    def reset(self):
        self.underlying_caplets.reset()
        self.current_index = 0

    def next_time_step(self,
                       curve_state: LMMCurveState,
                       number_cash_flows_this_step: np.ndarray,
                       cash_flows_generated: list) -> bool:
        i = self.current_index
        self.underlying_caplets.next_time_step(curve_state, self._inner_number_cash_flows, self._inner_cash_flows)
        caplet_cash_flow = self._inner_cash_flows[i][0]

        number_cash_flows_this_step[:] = 0
        for k, (start, end) in enumerate(self.starts_and_ends):
            if start <= i < end and self._inner_number_cash_flows[i] > 0:
                number_cash_flows_this_step[k] = 1
                cash_flow = cash_flows_generated[k][0]
                cash_flow.time_index = caplet_cash_flow.time_index
                cash_flow.amount = caplet_cash_flow.amount
                cash_flow.derivatives[:] = caplet_cash_flow.derivatives

        self.current_index += 1
        return self.current_index == self.number_of_rates
