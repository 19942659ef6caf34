# src/core/finance/amortization.py

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from src.schemas.models import (
    BreakEven,
    ExtraPaymentResult,
    LoanTerms,
    MortgageCapacity,
    PaymentRecord,
    RefinanceImpact,
)

from .errors import ArithmeticDegenerateError, InvalidParametersError, coerce_model
from .rates import MONTHS_PER_YEAR, growth_factor, periodic_rate, present_value, round_currency

logger = logging.getLogger(__name__)

_BALANCE_EPS = 0.01  # one cent: anything smaller is cleared by the final payment

FRONT_END_RATIO = 0.28  # housing payment share of gross monthly income
BACK_END_RATIO = 0.36  # all debt payments share of gross monthly income


def _require_finite(*values: float) -> None:
    if not all(math.isfinite(v) for v in values):
        raise InvalidParametersError("Invalid input parameters: values must be finite")


def _validate_loan(principal: float, annual_rate_percent: float, term_years: float) -> None:
    _require_finite(principal, annual_rate_percent, term_years)
    if principal <= 0 or annual_rate_percent < 0 or term_years <= 0:
        raise InvalidParametersError(
            f"Invalid input parameters: principal={principal}, annual_rate_percent={annual_rate_percent}, term_years={term_years}"
        )


def _payment_for_periods(principal: float, r: float, n: float) -> float:
    """Level payment amortizing `principal` over `n` periods at periodic fraction `r`."""
    if r == 0:
        return principal / n
    growth = growth_factor(r, n)
    return principal * r * growth / (growth - 1.0)


def _schedule_periods(term_years: float) -> int:
    return max(1, math.ceil(term_years * MONTHS_PER_YEAR - 1e-9))


def _run_schedule(
    principal: float,
    r: float,
    payment: float,
    max_periods: int,
    *,
    report_actual_payment: bool,
) -> tuple[list[PaymentRecord], float]:
    """
    Core balance-reconciliation loop.

    Each period: interest on the opening balance, the rest of `payment` goes to
    principal. When the remainder would fall under one cent the whole balance is
    paid instead, so the schedule always ends at exactly 0. Stops as soon as the
    balance is 0, so the length is the actual payoff month count.

    Returns (records, total interest at full precision).
    """
    balance = principal
    total_interest = 0.0
    records: list[PaymentRecord] = []

    for i in range(1, max_periods + 1):
        interest = balance * r
        principal_portion = payment - interest

        if balance - principal_portion < _BALANCE_EPS:
            principal_portion = balance

        balance -= principal_portion
        total_interest += interest
        if balance < 0:
            balance = 0.0

        paid = interest + principal_portion if report_actual_payment else payment
        records.append(
            PaymentRecord(
                payment_number=i,
                payment=round_currency(paid),
                principal_portion=round_currency(principal_portion),
                interest_portion=round_currency(interest),
                ending_balance=round_currency(balance),
            )
        )

        if balance == 0:
            break

    logger.debug("schedule: %d of max %d periods, residual balance %.6f", len(records), max_periods, balance)
    return records, total_interest


# =========================
# Public API
# =========================


def monthly_payment(principal: float, annual_rate_percent: float, term_years: float) -> float:
    """
    Constant monthly payment for a fully amortizing fixed-rate loan (full precision).

        M = P * r * (1 + r)^n / ((1 + r)^n - 1),  r = annual/100/12, n = years*12
        M = P / n                                   when the rate is 0

    Raises InvalidParametersError for principal <= 0, rate < 0 or term <= 0.
    """
    _validate_loan(principal, annual_rate_percent, term_years)
    return _payment_for_periods(principal, periodic_rate(annual_rate_percent), term_years * MONTHS_PER_YEAR)


def amortization_schedule(
    principal: float,
    annual_rate_percent: float,
    term_years: float,
    *,
    extra_payment: float = 0.0,
) -> list[PaymentRecord]:
    """
    Monthly payment-by-payment schedule.

    Without extra payments the reported payment is the level payment on every
    row and the schedule runs for at most term_years * 12 months. With an extra
    monthly amount the loan pays off early; each row then reports what was
    actually paid (the last payment is smaller).
    """
    _validate_loan(principal, annual_rate_percent, term_years)
    _require_finite(extra_payment)
    if extra_payment < 0:
        raise InvalidParametersError(f"Invalid input parameters: extra_payment={extra_payment}")

    pmt = monthly_payment(principal, annual_rate_percent, term_years)
    r = periodic_rate(annual_rate_percent)
    n = _schedule_periods(term_years)

    if extra_payment > 0:
        records, _ = _run_schedule(principal, r, pmt + extra_payment, 2 * n, report_actual_payment=True)
    else:
        records, _ = _run_schedule(principal, r, pmt, n, report_actual_payment=False)
    return records


def extra_payment_schedule(
    principal: float,
    annual_rate_percent: float,
    term_years: float,
    extra_payment: float,
) -> ExtraPaymentResult:
    """Accelerated schedule plus months-to-payoff and interest saved versus the regular schedule."""
    _validate_loan(principal, annual_rate_percent, term_years)
    _require_finite(extra_payment)
    if extra_payment < 0:
        raise InvalidParametersError(f"Invalid input parameters: extra_payment={extra_payment}")

    regular = monthly_payment(principal, annual_rate_percent, term_years)
    r = periodic_rate(annual_rate_percent)
    n = _schedule_periods(term_years)

    # Safety cap: the accelerated loan can never take longer than twice the nominal term
    accelerated, accelerated_interest = _run_schedule(
        principal, r, regular + extra_payment, 2 * n, report_actual_payment=True
    )

    original, original_interest = _run_schedule(principal, r, regular, n, report_actual_payment=False)

    logger.debug("extra payment %.2f: %d -> %d months", extra_payment, len(original), len(accelerated))
    return ExtraPaymentResult(
        schedule=accelerated,
        new_term_months=len(accelerated),
        interest_saved=round_currency(original_interest - accelerated_interest),
    )


def _amortized_principal(principal: float, annual_rate_percent: float, term_years: float, balloon_amount: float) -> float:
    """Principal left to amortize once the present value of the balloon is set aside."""
    r = periodic_rate(annual_rate_percent)
    return principal - present_value(balloon_amount, r, term_years * MONTHS_PER_YEAR)


def balloon_payment(principal: float, annual_rate_percent: float, term_years: float, balloon_amount: float) -> float:
    """
    Monthly payment for a loan with a lump sum due at term end.

    Only principal - PV(balloon) is amortized. If the balloon's present value
    covers the whole principal no monthly payment is needed and 0.0 is returned.
    """
    _validate_loan(principal, annual_rate_percent, term_years)
    _require_finite(balloon_amount)
    if balloon_amount < 0:
        raise InvalidParametersError(f"Invalid input parameters: balloon_amount={balloon_amount}")

    amortized = _amortized_principal(principal, annual_rate_percent, term_years, balloon_amount)
    if amortized <= 0:
        return 0.0
    return round_currency(monthly_payment(amortized, annual_rate_percent, term_years))


def balloon_schedule(terms: LoanTerms | Mapping[str, Any]) -> list[PaymentRecord]:
    """
    Schedule over principal - PV(balloon); the balloon itself is settled
    outside the schedule at term end. Empty when the balloon covers the loan.
    """
    terms = coerce_model(LoanTerms, terms, "Invalid loan terms")
    principal = _amortized_principal(terms.principal, terms.annual_rate_percent, terms.term_years, terms.balloon_amount)
    if principal <= 0:
        return []
    return amortization_schedule(
        principal,
        terms.annual_rate_percent,
        terms.term_years,
        extra_payment=terms.extra_payment,
    )


def schedule_for_terms(terms: LoanTerms | Mapping[str, Any]) -> list[PaymentRecord]:
    """
    Schedule for a LoanTerms bundle, honoring its extra payment and balloon.

    A plain mapping is validated first; bad fields raise InvalidParametersError.
    """
    terms = coerce_model(LoanTerms, terms, "Invalid loan terms")
    if terms.balloon_amount > 0:
        return balloon_schedule(terms)
    return amortization_schedule(
        terms.principal,
        terms.annual_rate_percent,
        terms.term_years,
        extra_payment=terms.extra_payment,
    )


def refinance_impact(
    current_principal: float,
    current_rate_percent: float,
    current_remaining_months: int,
    new_rate_percent: float,
    new_term_years: float,
    closing_costs: float,
) -> RefinanceImpact:
    """
    Compare the current loan (re-amortized over its remaining months) with a new loan.

    Break-even is ceil(closing_costs / monthly_savings) months when the new
    payment is lower; otherwise the outcome is BreakEven.never().
    """
    _require_finite(
        current_principal, current_rate_percent, current_remaining_months, new_rate_percent, new_term_years, closing_costs
    )
    if (
        current_principal <= 0
        or current_rate_percent < 0
        or current_remaining_months <= 0
        or new_rate_percent < 0
        or new_term_years <= 0
        or closing_costs < 0
    ):
        raise InvalidParametersError("Invalid input parameters")

    current_payment = _payment_for_periods(
        current_principal, periodic_rate(current_rate_percent), current_remaining_months
    )
    total_current_cost = current_payment * current_remaining_months

    new_payment = monthly_payment(current_principal, new_rate_percent, new_term_years)
    total_new_cost = new_payment * new_term_years * MONTHS_PER_YEAR + closing_costs

    monthly_savings = current_payment - new_payment
    if monthly_savings > 0:
        break_even = BreakEven.after(math.ceil(closing_costs / monthly_savings))
    else:
        break_even = BreakEven.never()

    return RefinanceImpact(
        current_monthly_payment=round_currency(current_payment),
        new_monthly_payment=round_currency(new_payment),
        monthly_savings=round_currency(monthly_savings),
        total_savings=round_currency(total_current_cost - total_new_cost),
        break_even=break_even,
    )


def payoff_months(balance: float, annual_rate_percent: float, payment: float) -> int:
    """
    Months to clear a revolving balance with a fixed monthly payment.

        N = -ln(1 - r*B/P) / ln(1 + r), rounded up

    Raises ArithmeticDegenerateError when the payment does not exceed the
    first month's interest (the balance would never shrink).
    """
    _require_finite(balance, annual_rate_percent, payment)
    if balance <= 0:
        return 0
    if annual_rate_percent < 0 or payment <= 0:
        raise InvalidParametersError("Invalid input parameters")

    r = periodic_rate(annual_rate_percent)
    if r == 0:
        return math.ceil(balance / payment)
    if balance * r >= payment:
        raise ArithmeticDegenerateError("Monthly payment is too low to cover interest")

    months = -math.log(1.0 - r * balance / payment) / math.log(1.0 + r)
    return math.ceil(months)


def interest_charges(balance: float, annual_rate_percent: float, months: int) -> float:
    """Interest accrued on a revolving balance left unpaid for `months`, compounded monthly."""
    _require_finite(balance, annual_rate_percent, months)
    if balance < 0 or annual_rate_percent < 0 or months < 0:
        raise InvalidParametersError("Invalid input parameters")
    growth = growth_factor(periodic_rate(annual_rate_percent), months)
    return round_currency(balance * growth - balance)


def max_affordable_mortgage(
    annual_income: float,
    monthly_debts: float,
    annual_rate_percent: float,
    term_years: float,
) -> MortgageCapacity:
    """
    Largest loan whose payment fits the 28/36 qualifying ratios.

    The housing payment may take FRONT_END_RATIO of gross monthly income, and
    housing plus existing debts may take BACK_END_RATIO. The tighter limit is
    turned into a principal by inverting the level-payment formula.
    """
    _require_finite(annual_income, monthly_debts, annual_rate_percent, term_years)
    if annual_income < 0 or monthly_debts < 0 or annual_rate_percent < 0 or term_years <= 0:
        raise InvalidParametersError(
            f"Invalid input parameters: annual_income={annual_income}, monthly_debts={monthly_debts}, "
            f"annual_rate_percent={annual_rate_percent}, term_years={term_years}"
        )

    monthly_income = annual_income / MONTHS_PER_YEAR
    front_end = monthly_income * FRONT_END_RATIO
    back_end = monthly_income * BACK_END_RATIO - monthly_debts
    max_payment = min(front_end, back_end)

    if max_payment <= 0:
        return MortgageCapacity(max_mortgage=0.0, max_monthly_payment=0.0, limiting_factor="Debt-to-Income Ratio")

    r = periodic_rate(annual_rate_percent)
    n = term_years * MONTHS_PER_YEAR
    if r == 0:
        principal = max_payment * n
    else:
        growth = growth_factor(r, n)
        principal = max_payment * (growth - 1.0) / (r * growth)

    limiting = "Front-End Ratio (28%)" if front_end < back_end else "Back-End Ratio (36%)"
    logger.debug("mortgage capacity: payment %.2f limited by %s", max_payment, limiting)
    return MortgageCapacity(
        max_mortgage=round_currency(principal),
        max_monthly_payment=round_currency(max_payment),
        limiting_factor=limiting,
    )
