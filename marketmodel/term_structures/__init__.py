# -*- coding: utf-8 -*-
from marketmodel.term_structures.historical_forward_rates import (HistoricalForwardRatesAnalysis,
                                                                  forward_rates_from_discount_factors)
