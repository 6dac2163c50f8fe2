# -*- coding: utf-8 -*-
from marketmodel.pricing_engine.brownian_generator import (BrownianGenerator, BrownianGeneratorFactory,
                                                           MTBrownianGenerator, MTBrownianGeneratorFactory,
                                                           SobolBrownianGenerator, SobolBrownianGeneratorFactory,
                                                           make_brownian_generator_factory)
from marketmodel.pricing_engine.evolution_description import (EvolutionDescription, money_market_measure,
                                                              terminal_measure, is_in_money_market_measure)
from marketmodel.pricing_engine.curve_state import LMMCurveState
from marketmodel.pricing_engine.lmm_evolver import LogNormalFwdRateEuler, rank_reduced_sqrt
from marketmodel.pricing_engine.accounting_engine import MarketModelDiscounter, PathwiseAccountingEngine, PathwiseResults
from marketmodel.pricing_engine.ornstein_uhlenbeck import OrnsteinUhlenbeckProcess, ExtendedOrnsteinUhlenbeckProcess
