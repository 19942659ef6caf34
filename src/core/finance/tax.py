# src/core/finance/tax.py
"""
Progressive (marginal-rate) bracket calculations.

Bracket tables must be exhaustive: strictly ascending upper bounds and an
unbounded final bracket. A table whose last bound is finite is rejected rather
than silently leaving the excess income untaxed.

Example
-------

>>> table = [
...     {"marginal_rate": 0.10, "upper_bound": 10_000},
...     {"marginal_rate": 0.15, "upper_bound": 30_000},
...     {"marginal_rate": 0.25, "upper_bound": float("inf")},
... ]
>>> calculate_income_tax(50_000, table)
9000.0
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any

from src.schemas.models import BracketSchedule, TaxBracket

from .errors import InvalidParametersError, validation_guard
from .rates import round_currency

logger = logging.getLogger(__name__)

BracketsLike = BracketSchedule | Sequence[TaxBracket | Mapping[str, Any]]

# Single-filer ordinary income brackets (tax year 2022)
DEFAULT_BRACKETS = BracketSchedule(
    brackets=[
        TaxBracket(marginal_rate=0.10, upper_bound=10_275),
        TaxBracket(marginal_rate=0.12, upper_bound=41_775),
        TaxBracket(marginal_rate=0.22, upper_bound=89_075),
        TaxBracket(marginal_rate=0.24, upper_bound=170_050),
        TaxBracket(marginal_rate=0.32, upper_bound=215_950),
        TaxBracket(marginal_rate=0.35, upper_bound=539_900),
        TaxBracket(marginal_rate=0.37, upper_bound=math.inf),
    ]
)

STANDARD_DEDUCTIONS: dict[str, float] = {
    "single": 12_950.0,
    "married": 25_900.0,
    "head": 19_400.0,
}


def as_bracket_schedule(brackets: BracketsLike) -> BracketSchedule:
    """Validate a bracket table given as a BracketSchedule, TaxBracket list or list of dicts."""
    if isinstance(brackets, BracketSchedule):
        return brackets
    if brackets is None or len(brackets) == 0:
        raise InvalidParametersError("Invalid tax brackets: table is empty")
    with validation_guard("Invalid tax brackets"):
        return BracketSchedule.model_validate({"brackets": list(brackets)})


def _tax_at_full_precision(income: float, schedule: BracketSchedule) -> float:
    tax = 0.0
    remaining = income
    previous_upper = 0.0

    for bracket in schedule.brackets:
        slice_width = bracket.upper_bound - previous_upper
        taxable = min(remaining, slice_width)
        if taxable > 0:
            tax += taxable * bracket.marginal_rate
            remaining -= taxable
        previous_upper = bracket.upper_bound
        if remaining <= 0:
            break

    return tax


def calculate_income_tax(income: float, brackets: BracketsLike) -> float:
    """Total tax on `income`, each slice taxed at its bracket's marginal rate. Rounded to cents."""
    if not math.isfinite(income) or income < 0:
        raise InvalidParametersError(f"Income must be a non-negative finite number, got {income}")
    schedule = as_bracket_schedule(brackets)
    return round_currency(_tax_at_full_precision(income, schedule))


def calculate_effective_tax_rate(income: float, tax: float) -> float:
    """tax / income as a percentage (2 dp); 0.0 for zero income."""
    if income < 0 or tax < 0:
        raise InvalidParametersError("Invalid input parameters")
    if income == 0:
        return 0.0
    return round_currency(tax / income * 100.0)


def brackets_for_status(filing_status: str) -> BracketSchedule:
    """Default table for a filing status; married filers get doubled (finite) bounds."""
    if filing_status not in STANDARD_DEDUCTIONS:
        raise InvalidParametersError(
            f"Unknown filing status {filing_status!r}; expected one of {sorted(STANDARD_DEDUCTIONS)}"
        )
    if filing_status != "married":
        return DEFAULT_BRACKETS
    return BracketSchedule(
        brackets=[
            b.model_copy(update={"upper_bound": b.upper_bound * 2}) if math.isfinite(b.upper_bound) else b
            for b in DEFAULT_BRACKETS.brackets
        ]
    )


def estimate_tax_liability(income: float, filing_status: str = "single", itemized_deductions: float = 0.0) -> float:
    """
    Tax after the larger of the standard or itemized deduction, on the default table.
    """
    if income < 0 or itemized_deductions < 0:
        raise InvalidParametersError("Invalid input parameters")

    schedule = brackets_for_status(filing_status)
    deduction = max(STANDARD_DEDUCTIONS[filing_status], itemized_deductions)
    taxable = max(0.0, income - deduction)
    logger.debug("tax estimate: status=%s deduction=%.2f taxable=%.2f", filing_status, deduction, taxable)
    return calculate_income_tax(taxable, schedule)
