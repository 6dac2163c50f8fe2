# -*- coding: utf-8 -*-
import numpy as np
import pytest

from marketmodel.instruments.ir import PathwiseMultiCaplet, PathwiseMultiDeflatedCap, PathwiseMultiDeflatedCaplet
from marketmodel.pricing_engine import LMMCurveState
from marketmodel.utils.settings import dv01_adjustment

# Four annual forward rates fixing at 1y, 2y, 3y, 4y and paying at 2y, 3y, 4y, 5y
RATE_TIMES = [1.0, 2.0, 3.0, 4.0, 5.0]
ACCRUALS = [1.0, 1.0, 1.0, 1.0]
PAYMENT_TIMES = [2.0, 3.0, 4.0, 5.0]
FORWARDS = np.array([0.04, 0.06, 0.05, 0.07])
STRIKE = 0.05


def run_path(product, forwards):
    """Step 'product' along a path on which the forwards do not move; returns the cash flows of each step."""
    curve_state = LMMCurveState(rate_times=RATE_TIMES)
    number_cash_flows, cash_flows = product.allocate_cash_flow_buffers()

    steps = []
    product.reset()
    for i in range(product.evolution().number_of_steps):
        curve_state.set_on_forward_rates(forwards, first_valid_index=i)
        done = product.next_time_step(curve_state, number_cash_flows, cash_flows)
        steps.append({'done': done,
                      'number_cash_flows': number_cash_flows.copy(),
                      'time_index': cash_flows[i][0].time_index,
                      'amount': cash_flows[i][0].amount,
                      'derivatives': cash_flows[i][0].derivatives.copy(),
                      'numeraire_ratio': curve_state.discount_ratio(i, i + 1)})
    return steps


def test_caplet_path():
    caplets = PathwiseMultiCaplet(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=PAYMENT_TIMES, strikes=STRIKE)
    steps = run_path(caplets, FORWARDS)

    amounts = [step['amount'] for step in steps]
    assert np.allclose(amounts, [0.0, 0.01, 0.0, 0.02], atol=1e-15)

    for i, step in enumerate(steps):
        assert step['time_index'] == i
        np.testing.assert_array_equal(step['number_cash_flows'], np.eye(4, dtype=int)[i])

        expected_derivatives = np.zeros(4)
        if FORWARDS[i] > STRIKE:
            expected_derivatives[i] = 1.0
        np.testing.assert_array_equal(step['derivatives'], expected_derivatives)

    assert not caplets.already_deflated()
    assert caplets.number_of_products() == 4
    assert caplets.max_number_of_cash_flows_per_product_per_step() == 1
    np.testing.assert_array_equal(caplets.possible_cash_flow_times(), PAYMENT_TIMES)
    np.testing.assert_array_equal(caplets.suggested_numeraires(), [0, 1, 2, 3])


def test_caplet_accruals_and_strikes():
    accruals = [0.5, 0.25, 1.0, 2.0]
    strikes = [0.03, 0.07, 0.04, 0.08]
    caplets = PathwiseMultiCaplet(rate_times=RATE_TIMES, accruals=accruals, payment_times=PAYMENT_TIMES, strikes=strikes)
    steps = run_path(caplets, FORWARDS)

    for i, step in enumerate(steps):
        assert np.isclose(step['amount'], accruals[i] * max(FORWARDS[i] - strikes[i], 0.0), atol=1e-15)
        assert step['derivatives'][i] == (accruals[i] if FORWARDS[i] > strikes[i] else 0.0)
        assert np.all(np.delete(step['derivatives'], i) == 0.0)


def test_caplet_done_exactly_once():
    caplets = PathwiseMultiCaplet(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=PAYMENT_TIMES, strikes=STRIKE)

    for _ in range(3):
        steps = run_path(caplets, FORWARDS)
        assert [step['done'] for step in steps] == [False, False, False, True]
        assert sum(step['number_cash_flows'].sum() for step in steps) <= caplets.number_of_rates
        assert caplets.current_index == caplets.number_of_rates

    caplets.reset()
    assert caplets.current_index == 0


def test_deflated_caplet_is_caplet_over_numeraire_ratio():
    caplets = PathwiseMultiCaplet(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=PAYMENT_TIMES, strikes=STRIKE)
    deflated = PathwiseMultiDeflatedCaplet(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=PAYMENT_TIMES,
                                           strikes=STRIKE)
    assert deflated.already_deflated()

    for step, deflated_step in zip(run_path(caplets, FORWARDS), run_path(deflated, FORWARDS)):
        assert np.isclose(deflated_step['amount'], step['amount'] / deflated_step['numeraire_ratio'], rtol=1e-12)
        assert deflated_step['time_index'] == step['time_index']


def test_deflated_caplet_derivatives_vs_finite_differences():
    deflated = PathwiseMultiDeflatedCaplet(rate_times=RATE_TIMES, accruals=[0.5, 1.0, 1.5, 1.0],
                                           payment_times=PAYMENT_TIMES, strikes=[0.03, 0.05, 0.04, 0.05])
    steps = run_path(deflated, FORWARDS)

    h = dv01_adjustment
    for k in range(4):
        bump = np.zeros(4)
        bump[k] = h
        steps_up = run_path(deflated.clone(), FORWARDS + bump)
        steps_down = run_path(deflated.clone(), FORWARDS - bump)

        for i, step in enumerate(steps):
            fd = (steps_up[i]['amount'] - steps_down[i]['amount']) / (2 * h)
            assert np.isclose(step['derivatives'][k], fd, atol=1e-7), (i, k)


def test_deflated_caplet_derivatives_quotient_rule():
    deflated = PathwiseMultiDeflatedCaplet(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=PAYMENT_TIMES,
                                           strikes=STRIKE)
    steps = run_path(deflated, FORWARDS)

    for i, step in enumerate(steps):
        τ = RATE_TIMES[i + 1] - RATE_TIMES[i]
        N = 1.0 + τ * FORWARDS[i]
        payoff = ACCRUALS[i] * max(FORWARDS[i] - STRIKE, 0.0)
        d_payoff = ACCRUALS[i] if FORWARDS[i] > STRIKE else 0.0

        expected = np.zeros(4)
        expected[i] = d_payoff / N - payoff * τ / N**2
        np.testing.assert_allclose(step['derivatives'], expected, rtol=1e-12, atol=0.0)
        # Only the rate of the caplet enters its numeraire ratio
        assert np.all(np.delete(step['derivatives'], i) == 0.0)


def test_clone_is_independent():
    caplets = PathwiseMultiDeflatedCaplet(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=PAYMENT_TIMES,
                                          strikes=STRIKE)
    curve_state = LMMCurveState(rate_times=RATE_TIMES)
    number_cash_flows, cash_flows = caplets.allocate_cash_flow_buffers()

    caplets.reset()
    for i in range(2):
        curve_state.set_on_forward_rates(FORWARDS, first_valid_index=i)
        caplets.next_time_step(curve_state, number_cash_flows, cash_flows)

    clone = caplets.clone()
    clone_number_cash_flows, clone_cash_flows = clone.allocate_cash_flow_buffers()
    assert clone.current_index == caplets.current_index == 2

    for i in range(2, 4):
        curve_state.set_on_forward_rates(FORWARDS, first_valid_index=i)
        done = caplets.next_time_step(curve_state, number_cash_flows, cash_flows)
        clone_done = clone.next_time_step(curve_state, clone_number_cash_flows, clone_cash_flows)

        assert done == clone_done
        assert cash_flows[i][0].amount == clone_cash_flows[i][0].amount
        np.testing.assert_array_equal(cash_flows[i][0].derivatives, clone_cash_flows[i][0].derivatives)

    clone.reset()
    assert clone.current_index == 0
    assert caplets.current_index == 4


def test_invalid_caplets():
    with pytest.raises(ValueError):
        PathwiseMultiCaplet(rate_times=[1.0], accruals=[], payment_times=[], strikes=STRIKE)
    with pytest.raises(ValueError):
        PathwiseMultiCaplet(rate_times=[1.0, 3.0, 2.0], accruals=[1.0, 1.0], payment_times=[3.0, 2.0], strikes=STRIKE)
    with pytest.raises(ValueError, match="accruals"):
        PathwiseMultiCaplet(rate_times=RATE_TIMES, accruals=[1.0, 1.0, 1.0], payment_times=PAYMENT_TIMES, strikes=STRIKE)
    with pytest.raises(ValueError, match="payment_times"):
        PathwiseMultiCaplet(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=[2.0, 3.0], strikes=STRIKE)
    with pytest.raises(ValueError, match="strikes"):
        PathwiseMultiDeflatedCaplet(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=PAYMENT_TIMES,
                                    strikes=[0.05, 0.05])


def test_deflated_products_pay_at_accrual_end():
    mid_period_payment_times = [1.5, 2.5, 3.5, 4.5]

    # The undeflated caplet leaves the discounting to the engine, which interpolates at any payment time
    caplets = PathwiseMultiCaplet(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=mid_period_payment_times,
                                  strikes=STRIKE)
    np.testing.assert_array_equal(caplets.possible_cash_flow_times(), mid_period_payment_times)

    with pytest.raises(ValueError, match="end of their accrual periods"):
        PathwiseMultiDeflatedCaplet(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=mid_period_payment_times,
                                    strikes=STRIKE)
    with pytest.raises(ValueError, match="end of their accrual periods"):
        PathwiseMultiDeflatedCaplet(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=[2.0, 3.0, 4.0, 4.5],
                                    strikes=STRIKE)
    with pytest.raises(ValueError, match="end of their accrual periods"):
        PathwiseMultiDeflatedCap(rate_times=RATE_TIMES, accruals=ACCRUALS, payment_times=mid_period_payment_times,
                                 strike=STRIKE, starts_and_ends=[(0, 4)])
