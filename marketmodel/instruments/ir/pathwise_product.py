# -*- coding: utf-8 -*-
import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import numpy as np

from marketmodel.pricing_engine.curve_state import LMMCurveState
from marketmodel.pricing_engine.evolution_description import EvolutionDescription


@dataclass
class CashFlow:
    """
    A cash flow generated during one evolution step, with its pathwise derivatives.

    time_index : index into the product's possible_cash_flow_times().
    amount : cash amount (deflated or not, per the product's already_deflated()).
    derivatives : ∂amount/∂F_k for every forward rate k of the curve state.
    """
    number_of_rates: int
    time_index: int = 0
    amount: float = 0.0
    derivatives: np.ndarray = field(init=False)

    def __post_init__(self):
        self.derivatives = np.zeros(self.number_of_rates)


class PathwiseMultiProduct(ABC):
    """
    A set of products priced together along market-model paths, with pathwise rate sensitivities.

    The product is a state machine over the evolution steps. reset() puts it at the start of a path;
    each next_time_step() consumes the curve state of the current step, writes the cash flows generated
    on that step into preallocated buffers and advances by one step. It returns True when the path is
    finished. Stepping a finished product without a reset() is not supported.

    Output buffers, as returned by allocate_cash_flow_buffers():
      number_cash_flows_this_step : int array of length number_of_products()
      cash_flows_generated : list (per product) of lists of max_number_of_cash_flows_per_product_per_step() CashFlows
    """

    @abstractmethod
    def suggested_numeraires(self) -> np.ndarray:
        pass

    @abstractmethod
    def evolution(self) -> EvolutionDescription:
        pass

    @abstractmethod
    def possible_cash_flow_times(self) -> np.ndarray:
        pass

    @abstractmethod
    def number_of_products(self) -> int:
        pass

    @abstractmethod
    def max_number_of_cash_flows_per_product_per_step(self) -> int:
        pass

    @abstractmethod
    def already_deflated(self) -> bool:
        """Has division by the numeraire already been done?"""

    @abstractmethod
    def reset(self):
        pass

    @abstractmethod
    def next_time_step(self,
                       curve_state: LMMCurveState,
                       number_cash_flows_this_step: np.ndarray,
                       cash_flows_generated: list) -> bool:
        pass

    def clone(self) -> 'PathwiseMultiProduct':
        # Products hold value data only
        return copy.deepcopy(self)

    def allocate_cash_flow_buffers(self):
        number_of_rates = self.evolution().number_of_rates
        number_cash_flows_this_step = np.zeros(self.number_of_products(), dtype=int)
        cash_flows_generated = [[CashFlow(number_of_rates=number_of_rates)
                                 for _ in range(self.max_number_of_cash_flows_per_product_per_step())]
                                for _ in range(self.number_of_products())]
        return number_cash_flows_this_step, cash_flows_generated
