# src/core/finance/engine.py
from __future__ import annotations

import logging

import numpy as np

from src.schemas.models import (
    LoanSummary,
    LoanTerms,
    ReturnSummary,
    ScenarioInputs,
    ScenarioReport,
    TaxScenario,
    TaxSummary,
)

from .amortization import balloon_payment, extra_payment_schedule, monthly_payment, refinance_impact, schedule_for_terms
from .errors import ArithmeticDegenerateError, NonConvergenceError
from .irr import irr, npv
from .monte_carlo import assess_retirement_readiness, run_monte_carlo_simulation
from .rates import round_currency
from .tax import calculate_effective_tax_rate, calculate_income_tax, estimate_tax_liability

logger = logging.getLogger(__name__)


def _loan_summary(terms: LoanTerms) -> LoanSummary:
    schedule = schedule_for_terms(terms)

    if terms.balloon_amount > 0:
        payment = balloon_payment(terms.principal, terms.annual_rate_percent, terms.term_years, terms.balloon_amount)
    else:
        payment = round_currency(monthly_payment(terms.principal, terms.annual_rate_percent, terms.term_years))

    interest_saved: float | None = None
    if terms.extra_payment > 0 and terms.balloon_amount == 0:
        interest_saved = extra_payment_schedule(
            terms.principal, terms.annual_rate_percent, terms.term_years, terms.extra_payment
        ).interest_saved

    return LoanSummary(
        monthly_payment=payment,
        payments=len(schedule),
        total_interest=round_currency(sum(p.interest_portion for p in schedule)),
        interest_saved=interest_saved,
        schedule=schedule,
    )


def _tax_summary(t: TaxScenario) -> TaxSummary:
    if t.brackets is not None:
        tax = calculate_income_tax(t.income, t.brackets)
    else:
        tax = estimate_tax_liability(t.income, t.filing_status, t.itemized_deductions)
    return TaxSummary(tax=tax, effective_rate_percent=calculate_effective_tax_rate(t.income, tax))


def run_scenario(
    inputs: ScenarioInputs,
    *,
    rng: np.random.Generator | None = None,
    workers: int = 1,
) -> ScenarioReport:
    """
    Evaluate every section present in `inputs`.

    Invalid inputs raise immediately. An IRR that cannot be solved from the given
    guess is reported as a warning with irr_percent=None so the other sections
    still render.
    """
    report = ScenarioReport()
    warnings: list[str] = []

    if inputs.loan is not None:
        report.loan = _loan_summary(inputs.loan)

    if inputs.refinance is not None:
        ref = inputs.refinance
        report.refinance = refinance_impact(
            ref.current_principal,
            ref.current_rate_percent,
            ref.current_remaining_months,
            ref.new_rate_percent,
            ref.new_term_years,
            ref.closing_costs,
        )

    if inputs.cash_flows is not None:
        cf = inputs.cash_flows
        returns = ReturnSummary()
        try:
            returns.irr_percent = irr(cf.cash_flows, cf.guess)
        except (NonConvergenceError, ArithmeticDegenerateError) as e:
            logger.warning("IRR not solved: %s", e)
            warnings.append(f"IRR not solved from guess {cf.guess}: {e}")
        if cf.discount_rate_percent is not None:
            returns.npv = npv(cf.discount_rate_percent, cf.cash_flows)
        report.returns = returns

    if inputs.simulation is not None or inputs.retirement is not None:
        rng = rng if rng is not None else np.random.default_rng()
        if inputs.simulation is not None:
            report.simulation = run_monte_carlo_simulation(inputs.simulation, rng=rng, workers=workers)
        if inputs.retirement is not None:
            report.retirement = assess_retirement_readiness(inputs.retirement, rng=rng)

    if inputs.tax is not None:
        report.tax = _tax_summary(inputs.tax)

    report.warnings = warnings
    return report
