# src/core/finance/rates.py
"""
Rate conversion and closed-form growth helpers shared by every engine module.

Rates enter the public API as annual PERCENTAGES (5.0 = 5%). They are turned into
periodic fractions here and kept at full precision; rounding happens only when a
value leaves the API (round_currency / round_fraction).

Every compounding step goes through growth_factor(), which turns float overflow
(very long terms, very high rates) into InvalidParametersError.
"""

from __future__ import annotations

import math

from src.schemas.models import ContributionProjection, ProjectionYear

from .errors import InvalidParametersError

MONTHS_PER_YEAR = 12
CURRENCY_DP = 2
FRACTION_DP = 4


def _finite(x: float) -> float:
    x = float(x)
    if not math.isfinite(x):
        raise InvalidParametersError(f"Result is not a finite number ({x}); inputs are out of range")
    return x


def round_currency(x: float) -> float:
    """Round a currency amount to cents (API boundary only)."""
    return round(_finite(x), CURRENCY_DP)


def round_fraction(x: float) -> float:
    """Round a fractional multiplier to 4 decimals (API boundary only)."""
    return round(_finite(x), FRACTION_DP)


def growth_factor(rate: float, periods: float) -> float:
    """
    (1 + rate) ** periods at full precision.

    Raises InvalidParametersError when the factor overflows or collapses to 0,
    both of which make every formula built on it meaningless.
    """
    try:
        g = (1.0 + rate) ** periods
    except (OverflowError, ZeroDivisionError) as e:
        raise InvalidParametersError(f"Growth factor out of range: (1 + {rate}) ** {periods}") from e
    if isinstance(g, complex) or not math.isfinite(g) or g == 0:
        raise InvalidParametersError(f"Growth factor out of range: (1 + {rate}) ** {periods}")
    return g


def periodic_rate(annual_rate_percent: float, periods_per_year: int = MONTHS_PER_YEAR) -> float:
    """Annual percent -> periodic fraction, e.g. 6.0 with 12 periods -> 0.005."""
    if periods_per_year <= 0:
        raise InvalidParametersError(f"periods_per_year must be > 0, got {periods_per_year}")
    return annual_rate_percent / 100.0 / periods_per_year


def present_value(amount: float, rate: float, periods: float) -> float:
    """Discount a single future amount back `periods` periods at periodic fraction `rate` (no rounding)."""
    return amount / growth_factor(rate, periods)


def compound_interest(principal: float, annual_rate_percent: float, years: float, frequency: int) -> float:
    """
    Future value of a lump sum compounded `frequency` times per year.

        FV = P * (1 + r/n) ** (n * t)
    """
    if principal < 0 or annual_rate_percent < 0 or years < 0 or frequency <= 0:
        raise InvalidParametersError("Invalid input parameters")

    r = annual_rate_percent / 100.0
    amount = principal * growth_factor(r / frequency, frequency * years)
    return round_currency(amount)


def forecast_portfolio_growth(
    initial_investment: float,
    monthly_contribution: float,
    annual_rate_percent: float,
    years: float,
) -> float:
    """
    Deterministic portfolio value after `years` with end-of-month contributions.

    Lump sum grows at the monthly rate; contributions use the future value of an
    ordinary annuity, C * ((1 + r)^n - 1) / r, which reduces to C * n at r = 0.
    """
    if initial_investment < 0 or monthly_contribution < 0 or annual_rate_percent < 0 or years < 0:
        raise InvalidParametersError("Invalid input parameters")

    r = periodic_rate(annual_rate_percent)
    n = years * MONTHS_PER_YEAR
    growth = growth_factor(r, n)

    future_value = initial_investment * growth
    if r > 0:
        future_value += monthly_contribution * (growth - 1.0) / r
    else:
        future_value += monthly_contribution * n

    return round_currency(future_value)


def inflation_adjusted_value(future_value: float, inflation_rate_percent: float, years: float) -> float:
    """Purchasing power today of a nominal future amount: FV / (1 + i)^years."""
    if years < 0 or inflation_rate_percent <= -100:
        raise InvalidParametersError("Invalid input parameters")
    return round_currency(present_value(future_value, inflation_rate_percent / 100.0, years))


def project_401k(
    current_balance: float,
    annual_contribution: float,
    employer_match_percent: float,
    annual_return_percent: float,
    years: int,
    salary: float,
    salary_growth_percent: float,
) -> ContributionProjection:
    """
    Year-by-year workplace retirement account projection.

    Each year the employer adds employer_match_percent of the current salary on
    top of the employee contribution. The opening balance earns a full year of
    return, the year's contributions half a year (mid-year convention). Salary
    grows after each year.
    """
    if not all(
        math.isfinite(v)
        for v in (current_balance, annual_contribution, employer_match_percent, annual_return_percent, salary, salary_growth_percent)
    ):
        raise InvalidParametersError("Invalid input parameters: values must be finite")
    if current_balance < 0 or annual_contribution < 0 or years < 0 or salary < 0:
        raise InvalidParametersError("Invalid input parameters")

    r = annual_return_percent / 100.0
    g = salary_growth_percent / 100.0
    match_rate = employer_match_percent / 100.0

    balance = float(current_balance)
    current_salary = float(salary)
    breakdown: list[ProjectionYear] = []

    for year in range(1, int(years) + 1):
        contribution = annual_contribution + current_salary * match_rate
        balance += contribution + balance * r + contribution * (r / 2.0)
        breakdown.append(
            ProjectionYear(
                year=year,
                salary=round_currency(current_salary),
                contribution=round_currency(contribution),
                balance=round_currency(balance),
            )
        )
        current_salary *= 1.0 + g

    return ContributionProjection(final_balance=round_currency(balance), breakdown=breakdown)
