# tests/unit/test_irr.py
import time
from datetime import date

import pytest

from src.core.finance.errors import (
    ArithmeticDegenerateError,
    InvalidParametersError,
    NonConvergenceError,
)
from src.core.finance.irr import irr, npv
from tests.utils import SAMPLE_CASH_FLOWS


def test_irr_single_period_round_trip():
    assert irr([-100, 110]) == pytest.approx(10.0)


def test_irr_multi_period():
    rate = irr(SAMPLE_CASH_FLOWS)
    assert rate == pytest.approx(8.90, abs=0.01)
    # discounting at the solved rate brings NPV back to ~0
    assert npv(rate, SAMPLE_CASH_FLOWS) == pytest.approx(0.0, abs=1.0)


def test_irr_negative_rate():
    # lose 10% over one period
    assert irr([-100, 90]) == pytest.approx(-10.0)


def test_irr_other_guess_reaches_same_simple_root():
    assert irr(SAMPLE_CASH_FLOWS, guess=0.5) == pytest.approx(irr(SAMPLE_CASH_FLOWS), abs=0.01)


@pytest.mark.parametrize(
    "flows",
    [
        [],
        [100.0, 200.0],
        [-1.0, -2.0],
    ],
)
def test_irr_requires_mixed_signs(flows):
    with pytest.raises(InvalidParametersError):
        irr(flows)


def test_irr_rejects_non_finite_amounts():
    with pytest.raises(InvalidParametersError):
        irr([-100.0, float("inf")])


def test_irr_rejects_bad_budget():
    with pytest.raises(InvalidParametersError):
        irr(SAMPLE_CASH_FLOWS, max_iter=0)
    with pytest.raises(InvalidParametersError):
        irr(SAMPLE_CASH_FLOWS, tol=0.0)


def test_irr_zero_derivative_is_degenerate():
    # only the t=0 flow is non-zero → NPV is flat in the rate
    with pytest.raises(ArithmeticDegenerateError):
        irr([-100.0, 0.0])


def test_irr_iteration_budget_exhausted():
    with pytest.raises(NonConvergenceError):
        irr(SAMPLE_CASH_FLOWS, max_iter=1)


def test_irr_deadline_exceeded(monkeypatch):
    ticks = iter(range(0, 1000, 10))
    monkeypatch.setattr(time, "monotonic", lambda: float(next(ticks)))
    with pytest.raises(NonConvergenceError):
        irr(SAMPLE_CASH_FLOWS, deadline=5.0)


def test_irr_errors_share_a_base():
    with pytest.raises(ValueError):
        irr(SAMPLE_CASH_FLOWS, max_iter=1)


# -------- Dated flows --------


def test_irr_dated_flows_one_year_apart():
    rate = irr([(-1000.0, date(2023, 1, 1)), (1100.0, date(2024, 1, 1))])
    assert rate == pytest.approx(10.0, abs=0.01)


def test_irr_numeric_year_offsets():
    assert irr([(-100.0, 0.0), (110.0, 1.0)]) == pytest.approx(10.0)


def test_irr_half_year_offset():
    # 5% over half a year ≈ 10.25% annualized
    assert irr([(-100.0, 0.0), (105.0, 0.5)]) == pytest.approx(10.25, abs=0.01)


def test_irr_mixed_time_markers_rejected():
    with pytest.raises(InvalidParametersError):
        irr([(-100.0, date(2024, 1, 1)), (110.0, 1.0)])


# -------- NPV --------


def test_npv_at_zero_is_plain_sum():
    assert npv(0.0, SAMPLE_CASH_FLOWS) == pytest.approx(200.0)


def test_npv_decreases_with_rate_for_conventional_flows():
    values = [npv(r, SAMPLE_CASH_FLOWS) for r in (0.0, 5.0, 10.0, 15.0)]
    assert all(a > b for a, b in zip(values, values[1:]))


def test_npv_first_flow_is_undiscounted():
    assert npv(50.0, [-250.0]) == pytest.approx(-250.0)


def test_npv_rejects_empty_and_bad_rate():
    with pytest.raises(InvalidParametersError):
        npv(5.0, [])
    with pytest.raises(InvalidParametersError):
        npv(-100.0, SAMPLE_CASH_FLOWS)


def test_npv_overflowing_discount_factor_is_typed():
    with pytest.raises(InvalidParametersError):
        npv(1e300, [-100.0, 50.0, 50.0])
