# -*- coding: utf-8 -*-
import pandas as pd
import pytest

from marketmodel.utils.tenor import clean_tenor, months_to_tenor, tenor_to_date_offset, tenor_to_months


def test_clean_tenor():
    assert clean_tenor('3 Months') == '3m'
    assert clean_tenor('1 Year') == '1y'
    assert clean_tenor('2 weeks') == '2w'
    assert clean_tenor('1Y6M') == '1y6m'
    assert clean_tenor('1 Year 6 Months') == '1y6m'
    assert clean_tenor('2 yrs') == '2y'
    assert clean_tenor('6mon') == '6m'
    assert clean_tenor('07D') == '7d'

    with pytest.raises(TypeError):
        clean_tenor(3)
    for invalid in ['', 'm', '3', '3x', '3m-1d', 'overnight']:
        with pytest.raises(ValueError):
            clean_tenor(invalid)


def test_tenor_to_date_offset():
    assert tenor_to_date_offset('1d') == pd.DateOffset(days=1)
    assert tenor_to_date_offset('30d') == pd.DateOffset(days=30)
    assert tenor_to_date_offset('1w') == pd.DateOffset(weeks=1)
    assert tenor_to_date_offset('3m') == pd.DateOffset(months=3)
    assert tenor_to_date_offset('1y') == pd.DateOffset(months=12)
    assert tenor_to_date_offset('10y6m') == pd.DateOffset(months=(10 * 12 + 6))

    assert pd.Timestamp('2024-01-31') + tenor_to_date_offset('1m') == pd.Timestamp('2024-02-29')

    with pytest.raises(ValueError):
        tenor_to_date_offset('1x')


def test_tenor_to_months():
    assert tenor_to_months('3m') == 3
    assert tenor_to_months('1y') == 12
    assert tenor_to_months('1y6m') == 18
    assert tenor_to_months('18 months') == 18

    with pytest.raises(ValueError):
        tenor_to_months('1w')
    with pytest.raises(ValueError):
        tenor_to_months('90d')


def test_months_to_tenor():
    assert months_to_tenor(3) == '3m'
    assert months_to_tenor(12) == '1y'
    assert months_to_tenor(18) == '18m'
    assert months_to_tenor(24) == '2y'
