# src/core/finance/__init__.py

from .amortization import (
    amortization_schedule,
    balloon_payment,
    balloon_schedule,
    extra_payment_schedule,
    interest_charges,
    max_affordable_mortgage,
    monthly_payment,
    payoff_months,
    refinance_impact,
    schedule_for_terms,
)
from .engine import run_scenario
from .errors import (
    FINANCE_ERRORS,
    ArithmeticDegenerateError,
    FinanceError,
    InvalidParametersError,
    NonConvergenceError,
    coerce_model,
    validation_guard,
)
from .irr import irr, npv
from .monte_carlo import (
    assess_retirement_readiness,
    retirement_readiness,
    run_monte_carlo_simulation,
    simulate_portfolio,
)
from .rates import (
    compound_interest,
    forecast_portfolio_growth,
    growth_factor,
    inflation_adjusted_value,
    periodic_rate,
    project_401k,
)
from .tax import (
    calculate_effective_tax_rate,
    calculate_income_tax,
    estimate_tax_liability,
)

__all__ = [
    "run_scenario",
    "monthly_payment",
    "amortization_schedule",
    "extra_payment_schedule",
    "balloon_payment",
    "balloon_schedule",
    "schedule_for_terms",
    "refinance_impact",
    "payoff_months",
    "interest_charges",
    "max_affordable_mortgage",
    "npv",
    "irr",
    "run_monte_carlo_simulation",
    "simulate_portfolio",
    "assess_retirement_readiness",
    "retirement_readiness",
    "periodic_rate",
    "compound_interest",
    "forecast_portfolio_growth",
    "inflation_adjusted_value",
    "growth_factor",
    "project_401k",
    "calculate_income_tax",
    "calculate_effective_tax_rate",
    "estimate_tax_liability",
    "FinanceError",
    "InvalidParametersError",
    "ArithmeticDegenerateError",
    "NonConvergenceError",
    "FINANCE_ERRORS",
    "validation_guard",
    "coerce_model",
]
