# -*- coding: utf-8 -*-
import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from marketmodel.utils.statistics import SequenceStatistics
from marketmodel.utils.tenor import clean_tenor, months_to_tenor, tenor_to_date_offset, tenor_to_months

logger = logging.getLogger(__name__)


def forward_rates_from_discount_factors(pillar_years: np.ndarray,
                                        discount_factors: np.ndarray,
                                        start_years: np.ndarray,
                                        tau: float) -> np.ndarray:
    """
    Simple forward rates over [t, t + τ] for each start time t, with discount factors interpolated linearly on
    the log discount factor between the pillars (the curve is anchored at P(0) = 1). Times beyond the last
    pillar are not extrapolated.
    """
    pillar_years = np.asarray(pillar_years, dtype=float)
    discount_factors = np.asarray(discount_factors, dtype=float)
    start_years = np.asarray(start_years, dtype=float)

    if np.any(discount_factors <= 0.0):
        raise ValueError("Discount factors must be positive")
    if start_years.max() + tau > pillar_years.max():
        raise ValueError(f"Forward rate end ({start_years.max() + tau:.4g}y) is beyond the last pillar "
                         f"({pillar_years.max():.4g}y)")

    xp = np.concatenate([[0.0], pillar_years])
    fp = np.concatenate([[0.0], np.log(discount_factors)])
    df_start = np.exp(np.interp(x=start_years, xp=xp, fp=fp))
    df_end = np.exp(np.interp(x=start_years + tau, xp=xp, fp=fp))
    return (df_start / df_end - 1.0) / tau


@dataclass
class HistoricalForwardRatesAnalysis:
    """
    Statistics of the relative daily (or per 'step') changes of time-to-go forward rates in a history of curves.

    Parameters
    ----------
    discount_factors : pd.DataFrame
        One curve per row. Index: observation dates. Columns: pillar times in years. Values: discount factors.
        A row with a missing value is skipped.
    start_date, end_date : pd.Timestamp
        Observation window. Each scheduled date is rolled forward to the next available observation date.
    step : str
        Tenor between two scheduled observations, e.g. '1d', '1w'.
    index_tenor : str
        Tenor of the forward rates, e.g. '3m'.
    initial_gap : str
        Time to go of the first forward rate.
    horizon : str
        Time to go of the last forward rate. Forwards start at initial_gap, initial_gap + index_tenor, ... <= horizon.

    After construction, 'statistics' holds the relative differences F_t / F_prev - 1 of each forward rate
    between two consecutive successful observations.
    """
    discount_factors: pd.DataFrame
    start_date: pd.Timestamp
    end_date: pd.Timestamp
    step: str='1d'
    index_tenor: str='3m'
    initial_gap: str='3m'
    horizon: str='2y'

    # Attributes set in __post_init__
    fixing_periods: list=field(init=False)
    statistics: SequenceStatistics=field(init=False)
    forward_rates: pd.DataFrame=field(init=False)
    skipped_dates: list=field(init=False)
    skipped_dates_error_message: list=field(init=False)
    failed_dates: list=field(init=False)
    failed_dates_error_message: list=field(init=False)

    def __post_init__(self):
        assert isinstance(self.discount_factors, pd.DataFrame), type(self.discount_factors)
        self.start_date = pd.Timestamp(self.start_date)
        self.end_date = pd.Timestamp(self.end_date)
        if self.start_date > self.end_date:
            raise ValueError(f"'start_date' {self.start_date.date()} is after 'end_date' {self.end_date.date()}")

        self.discount_factors = self.discount_factors.sort_index()
        self.step = clean_tenor(self.step)
        self.index_tenor = clean_tenor(self.index_tenor)
        self.initial_gap = clean_tenor(self.initial_gap)
        self.horizon = clean_tenor(self.horizon)

        self._step_offset = tenor_to_date_offset(self.step)
        if self.start_date + self._step_offset <= self.start_date:
            raise ValueError(f"'step' must move the observation date forward. Found: {self.step}")

        # Forward rates time grid, in months
        index_months = tenor_to_months(self.index_tenor)
        if index_months < 1:
            raise ValueError(f"'index_tenor' must be at least one month. Found: {self.index_tenor}")
        fixing_months = list(range(tenor_to_months(self.initial_gap), tenor_to_months(self.horizon) + 1, index_months))
        if len(fixing_months) == 0:
            raise ValueError(f"'initial_gap' {self.initial_gap} is after 'horizon' {self.horizon}")
        self.fixing_periods = [months_to_tenor(m) for m in fixing_months]
        self._fixing_years = np.array(fixing_months) / 12
        self._tau = index_months / 12

        self.run()

    def run(self):
        self.statistics = SequenceStatistics(dimension=len(self.fixing_periods))
        self.skipped_dates, self.skipped_dates_error_message = [], []
        self.failed_dates, self.failed_dates_error_message = [], []

        pillar_years = self.discount_factors.columns.to_numpy(dtype=float)
        available_dates = self.discount_factors.index

        forward_rates = {}
        prev_fwd_rates = None
        scheduled_date = self.start_date

        while True:
            # Roll to the next available observation
            i = available_dates.searchsorted(scheduled_date, side='left')
            if i >= len(available_dates) or available_dates[i] > self.end_date:
                break
            current_date = available_dates[i]
            scheduled_date = current_date + self._step_offset

            discount_factors = self.discount_factors.iloc[i].to_numpy(dtype=float)
            if np.isnan(discount_factors).any():
                missing = list(self.discount_factors.columns[np.isnan(discount_factors)])
                message = f"missing discount factors for pillars {missing}"
                logger.warning(f"{current_date.date()} skipped: {message}")
                self.skipped_dates.append(current_date)
                self.skipped_dates_error_message.append(message)
                continue

            try:
                fwd_rates = forward_rates_from_discount_factors(pillar_years=pillar_years,
                                                                discount_factors=discount_factors,
                                                                start_years=self._fixing_years,
                                                                tau=self._tau)
            except ValueError as e:
                logger.warning(f"{current_date.date()} failed: {e}")
                self.failed_dates.append(current_date)
                self.failed_dates_error_message.append(str(e))
                continue

            # From the 2nd successful observation onwards, add the relative differences
            if prev_fwd_rates is not None:
                self.statistics.add(fwd_rates / prev_fwd_rates - 1.0)

            forward_rates[current_date] = fwd_rates
            prev_fwd_rates = fwd_rates

        self.forward_rates = pd.DataFrame(list(forward_rates.values()),
                                          index=pd.DatetimeIndex(list(forward_rates.keys()), name='date'),
                                          columns=self.fixing_periods)
        logger.info(f"{len(forward_rates)} curves used, {len(self.skipped_dates)} skipped, "
                    f"{len(self.failed_dates)} failed")
