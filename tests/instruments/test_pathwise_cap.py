# -*- coding: utf-8 -*-
import numpy as np
import pytest

from marketmodel.instruments.ir import PathwiseMultiDeflatedCap, PathwiseMultiDeflatedCaplet
from marketmodel.pricing_engine import LMMCurveState


RATE_TIMES = [0.5, 1.0, 1.5, 2.0, 2.5]
ACCRUALS = [0.5, 0.5, 0.5, 0.5]
PAYMENT_TIMES = [1.0, 1.5, 2.0, 2.5]
STRIKE = 0.045
FORWARDS = np.array([0.05, 0.04, 0.055, 0.06])
STARTS_AND_ENDS = [(0, 2), (1, 4), (3, 4), (0, 4)]


def test_cap_copies_the_shared_caplets():
    cap = PathwiseMultiDeflatedCap(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=PAYMENT_TIMES,
                                   strike=STRIKE, starts_and_ends=STARTS_AND_ENDS)
    caplets = PathwiseMultiDeflatedCaplet(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=PAYMENT_TIMES,
                                          strikes=STRIKE)
    assert cap.number_of_products() == 4
    assert cap.already_deflated()
    np.testing.assert_array_equal(cap.suggested_numeraires(), caplets.suggested_numeraires())
    np.testing.assert_array_equal(cap.possible_cash_flow_times(), PAYMENT_TIMES)

    curve_state = LMMCurveState(rate_times=RATE_TIMES)
    cap_number_cash_flows, cap_cash_flows = cap.allocate_cash_flow_buffers()
    caplet_number_cash_flows, caplet_cash_flows = caplets.allocate_cash_flow_buffers()

    cap.reset()
    caplets.reset()
    for i in range(4):
        curve_state.set_on_forward_rates(FORWARDS, first_valid_index=i)
        done = cap.next_time_step(curve_state, cap_number_cash_flows, cap_cash_flows)
        caplets.next_time_step(curve_state, caplet_number_cash_flows, caplet_cash_flows)
        assert done == (i == 3)

        caplet_cash_flow = caplet_cash_flows[i][0]
        for k, (start, end) in enumerate(STARTS_AND_ENDS):
            if start <= i < end:
                assert cap_number_cash_flows[k] == 1
                cash_flow = cap_cash_flows[k][0]
                assert cash_flow.time_index == caplet_cash_flow.time_index == i
                assert cash_flow.amount == caplet_cash_flow.amount
                np.testing.assert_array_equal(cash_flow.derivatives, caplet_cash_flow.derivatives)
            else:
                assert cap_number_cash_flows[k] == 0


def test_cap_total_is_sum_of_caplets():
    cap = PathwiseMultiDeflatedCap(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=PAYMENT_TIMES,
                                   strike=STRIKE, starts_and_ends=STARTS_AND_ENDS)
    curve_state = LMMCurveState(rate_times=RATE_TIMES)
    number_cash_flows, cash_flows = cap.allocate_cash_flow_buffers()

    totals = np.zeros(cap.number_of_products())
    cap.reset()
    for i in range(4):
        curve_state.set_on_forward_rates(FORWARDS, first_valid_index=i)
        cap.next_time_step(curve_state, number_cash_flows, cash_flows)
        for k in range(cap.number_of_products()):
            if number_cash_flows[k]:
                totals[k] += cash_flows[k][0].amount

    deflated_caplets = np.maximum(FORWARDS - STRIKE, 0.0) * 0.5 / (1.0 + 0.5 * FORWARDS)
    expected = [deflated_caplets[start:end].sum() for start, end in STARTS_AND_ENDS]
    np.testing.assert_allclose(totals, expected, rtol=1e-12)


def test_cap_reset_and_clone():
    cap = PathwiseMultiDeflatedCap(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=PAYMENT_TIMES,
                                   strike=STRIKE, starts_and_ends=[(1, 3)])
    curve_state = LMMCurveState(rate_times=RATE_TIMES)
    number_cash_flows, cash_flows = cap.allocate_cash_flow_buffers()

    cap.reset()
    curve_state.set_on_forward_rates(FORWARDS, first_valid_index=0)
    cap.next_time_step(curve_state, number_cash_flows, cash_flows)
    assert number_cash_flows[0] == 0

    clone = cap.clone()
    clone.reset()
    assert clone.current_index == 0
    assert clone.underlying_caplets.current_index == 0
    assert cap.current_index == 1
    assert cap.underlying_caplets.current_index == 1


@pytest.mark.parametrize('starts_and_ends', [
    [],
    [(2, 2)],
    [(3, 1)],
    [(-1, 2)],
    [(0, 5)],
    [(0, 2), (1, 5)],
])
def test_invalid_cap_ranges(starts_and_ends):
    with pytest.raises(ValueError):
        PathwiseMultiDeflatedCap(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=PAYMENT_TIMES,
                                 strike=STRIKE, starts_and_ends=starts_and_ends)
