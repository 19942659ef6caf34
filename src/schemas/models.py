# src/schemas/models.py
"""
Pydantic models for engine inputs and results.

Building a model directly reports range violations as pydantic
`ValidationError` (a `ValueError`). The engine entry points also accept plain
mappings for their config models and validate them under `validation_guard`, so
those failures surface as `InvalidParametersError`.
"""

from __future__ import annotations

import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# =========================
# Loan inputs
# =========================


class LoanTerms(BaseModel):
    """
    Fixed-rate, fully amortizing loan. Rates are annual percentages (5.0 = 5%), payments are monthly.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    principal: float = Field(..., gt=0, description="Amount borrowed (currency units).")
    annual_rate_percent: float = Field(..., ge=0, description="Nominal annual interest rate in percent (e.g., 4.5 = 4.5%).")
    term_years: float = Field(..., gt=0, description="Loan term in years. Monthly periods = term_years * 12.")
    extra_payment: float = Field(0.0, ge=0, description="Extra principal paid every month on top of the scheduled payment.")
    balloon_amount: float = Field(0.0, ge=0, description="Lump sum due at the end of the term (0 for a fully amortizing loan).")

    @property
    def periods(self) -> int:
        """Number of monthly periods in the nominal term (partial months count as a full period)."""
        return max(1, math.ceil(self.term_years * 12 - 1e-9))


# =========================
# Loan outputs
# =========================


class PaymentRecord(BaseModel):
    """One monthly row of an amortization schedule. Monetary fields are rounded to cents."""

    model_config = ConfigDict(frozen=True)

    payment_number: int = Field(..., ge=1, description="1-based period index.")
    payment: float = Field(..., description="Total paid this period (principal + interest).")
    principal_portion: float = Field(..., description="Part of the payment that reduces the balance.")
    interest_portion: float = Field(..., description="Interest accrued on the opening balance this period.")
    ending_balance: float = Field(..., ge=0, description="Outstanding balance after this period's payment.")


class ExtraPaymentResult(BaseModel):
    """Accelerated schedule produced by paying extra principal each month."""

    schedule: list[PaymentRecord] = Field(default_factory=list, description="Payment-by-payment accelerated schedule.")
    new_term_months: int = Field(..., ge=0, description="Actual number of months until the loan is paid off.")
    interest_saved: float = Field(..., description="Interest avoided compared with the regular schedule.")


class BreakEven(BaseModel):
    """
    Refinance break-even outcome.

    Either the number of months of savings needed to recover closing costs, or
    `never` when the new payment is not lower than the current one.
    """

    model_config = ConfigDict(frozen=True)

    outcome: Literal["months", "never"] = Field(..., description="'months' when break-even is reachable, else 'never'.")
    months: int | None = Field(None, ge=0, description="Months until break-even (None for 'never').")

    @model_validator(mode="after")
    def _check_consistency(self) -> BreakEven:
        if self.outcome == "months" and self.months is None:
            raise ValueError("months is required when outcome='months'")
        if self.outcome == "never" and self.months is not None:
            raise ValueError("months must be None when outcome='never'")
        return self

    @classmethod
    def after(cls, months: int) -> BreakEven:
        return cls(outcome="months", months=months)

    @classmethod
    def never(cls) -> BreakEven:
        return cls(outcome="never", months=None)

    @property
    def is_never(self) -> bool:
        return self.outcome == "never"


class RefinanceImpact(BaseModel):
    """Comparison of keeping the current loan versus refinancing the remaining balance."""

    current_monthly_payment: float = Field(..., description="Payment that amortizes the current balance over the remaining months.")
    new_monthly_payment: float = Field(..., description="Payment on the new loan over its full term.")
    monthly_savings: float = Field(..., description="current_monthly_payment - new_monthly_payment (may be negative).")
    total_savings: float = Field(..., description="Total remaining cost of the current loan minus total cost of the new loan incl. closing costs.")
    break_even: BreakEven = Field(..., description="Months to recover closing costs, or 'never'.")


class MortgageCapacity(BaseModel):
    """Largest loan whose payment fits the front-end (28%) and back-end (36%) income ratios."""

    max_mortgage: float = Field(..., ge=0, description="Present value of max_monthly_payment over the term.")
    max_monthly_payment: float = Field(..., ge=0, description="Largest affordable monthly payment.")
    limiting_factor: Literal["Front-End Ratio (28%)", "Back-End Ratio (36%)", "Debt-to-Income Ratio"] = Field(
        ..., description="Which ratio caps the payment; 'Debt-to-Income Ratio' when existing debts leave no room."
    )


# =========================
# Stochastic projection
# =========================


class SimulationConfig(BaseModel):
    """
    Monte Carlo accumulation inputs. Returns are PERIODIC percentages (per period, not annual).
    Use SimulationConfig.from_annual() to derive monthly parameters from annual assumptions.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    initial_value: float = Field(..., ge=0, description="Starting balance.")
    periodic_contribution: float = Field(0.0, ge=0, description="Deposit added at the end of every period.")
    periods: int = Field(..., ge=0, description="Number of compounding periods per trial.")
    mean_return_percent: float = Field(..., description="Mean periodic return in percent.")
    std_dev_return_percent: float = Field(..., ge=0, description="Standard deviation of the periodic return in percent.")
    trials: int = Field(1000, gt=0, description="Number of independent trajectories.")

    @classmethod
    def from_annual(
        cls,
        *,
        initial_value: float,
        monthly_contribution: float,
        years: float,
        annual_mean_percent: float,
        annual_std_dev_percent: float,
        trials: int = 1000,
    ) -> SimulationConfig:
        """
        Monthly config from annual assumptions: mean/12 and volatility/sqrt(12).

        A partial final month counts as a full period (ceil(years * 12)).
        """
        months: float = years * 12
        return cls(
            initial_value=initial_value,
            periodic_contribution=monthly_contribution,
            periods=math.ceil(months) if math.isfinite(months) else months,
            mean_return_percent=annual_mean_percent / 12.0,
            std_dev_return_percent=annual_std_dev_percent / math.sqrt(12.0),
            trials=trials,
        )


class SimulationResult(BaseModel):
    """Summary statistics of the terminal-balance distribution across trials."""

    min: float = Field(..., description="Lowest terminal balance.")
    max: float = Field(..., description="Highest terminal balance.")
    median: float = Field(..., description="Middle terminal balance (lower middle for even trial counts).")
    p10: float = Field(..., description="10th percentile terminal balance (nearest-rank, floor index).")
    p90: float = Field(..., description="90th percentile terminal balance (nearest-rank, floor index).")
    trials: int = Field(..., gt=0, description="Number of trials summarized.")


class RetirementConfig(BaseModel):
    """Retirement readiness inputs. Returns are ANNUAL percentages; one period = one year."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    current_savings: float = Field(..., ge=0, description="Savings today.")
    annual_savings: float = Field(0.0, ge=0, description="Amount saved at the end of each year before retirement.")
    annual_expenses: float = Field(..., ge=0, description="Amount withdrawn at the end of each retirement year.")
    years_to_retirement: int = Field(..., ge=0, description="Accumulation years.")
    years_in_retirement: int = Field(..., ge=0, description="Decumulation years.")
    expected_return_percent: float = Field(..., description="Mean annual return in percent (real, inflation-adjusted).")
    std_dev_percent: float = Field(..., ge=0, description="Standard deviation of the annual return in percent.")
    trials: int = Field(1000, gt=0, description="Number of independent trajectories.")


class RetirementReadiness(BaseModel):
    success_probability: float = Field(..., ge=0, le=100, description="Percent of trials that never ran out of money.")
    recommendation: Literal["On Track", "At Risk", "Critical Action Needed"]


class ProjectionYear(BaseModel):
    """One year of a contribution projection (rounded to cents)."""

    year: int = Field(..., ge=1, description="1-based year index.")
    salary: float = Field(..., description="Salary during this year.")
    contribution: float = Field(..., description="Employee contribution plus employer match.")
    balance: float = Field(..., description="Balance at year end.")


class ContributionProjection(BaseModel):
    final_balance: float = Field(..., description="Balance after the last projected year.")
    breakdown: list[ProjectionYear] = Field(default_factory=list, description="Year-by-year detail.")


# =========================
# Progressive brackets
# =========================


class TaxBracket(BaseModel):
    """One marginal-rate slice. upper_bound may be float('inf') for the top bracket."""

    model_config = ConfigDict(frozen=True)

    marginal_rate: float = Field(..., ge=0, le=1, description="Rate applied to income inside this bracket (0.22 = 22%).")
    upper_bound: float = Field(..., gt=0, description="Inclusive upper income bound of the bracket; inf for unbounded.")

    @field_validator("upper_bound")
    @classmethod
    def _no_nan(cls, v: float) -> float:
        if math.isnan(v):
            raise ValueError("upper_bound must not be NaN")
        return v


class BracketSchedule(BaseModel):
    """
    Ordered, exhaustive bracket table.

    Upper bounds must be strictly ascending and the final bracket must be
    unbounded, so every unit of income falls into exactly one bracket.
    """

    model_config = ConfigDict(frozen=True)

    brackets: list[TaxBracket] = Field(..., min_length=1, description="Brackets in ascending order of upper_bound.")

    @field_validator("brackets")
    @classmethod
    def _ascending_and_exhaustive(cls, v: list[TaxBracket]) -> list[TaxBracket]:
        for prev, cur in zip(v, v[1:], strict=False):
            if cur.upper_bound <= prev.upper_bound:
                raise ValueError(f"upper bounds must be strictly ascending ({prev.upper_bound} then {cur.upper_bound})")
        if not math.isinf(v[-1].upper_bound):
            raise ValueError(f"final bracket must be unbounded (upper_bound=inf), got {v[-1].upper_bound}")
        return v


# =========================
# Scenario bundle (config-driven runs)
# =========================


class RefinanceScenario(BaseModel):
    """Inputs for a refinance comparison. Rates are annual percentages."""

    current_principal: float = Field(..., gt=0, description="Remaining balance on the current loan.")
    current_rate_percent: float = Field(..., ge=0, description="Current loan rate in percent.")
    current_remaining_months: int = Field(..., gt=0, description="Months left on the current loan.")
    new_rate_percent: float = Field(..., ge=0, description="New loan rate in percent.")
    new_term_years: float = Field(..., gt=0, description="Full term of the new loan in years.")
    closing_costs: float = Field(0.0, ge=0, description="One-time cost of refinancing.")


class CashFlowScenario(BaseModel):
    """Periodic cash flows for NPV / IRR. Index 0 is the initial outlay."""

    cash_flows: list[float] = Field(..., min_length=1, description="Net flow per period, period 0 first.")
    guess: float = Field(0.10, description="Starting rate for the IRR iteration as a fraction (0.10 = 10%).")
    discount_rate_percent: float | None = Field(None, description="If set, also report NPV at this rate (percent).")


class TaxScenario(BaseModel):
    """Income tax inputs. Without explicit brackets the default table for the filing status is used."""

    income: float = Field(..., ge=0, description="Gross annual income.")
    filing_status: Literal["single", "married", "head"] = Field("single", description="Filing status for deductions/brackets.")
    itemized_deductions: float = Field(0.0, ge=0, description="Itemized deductions; the larger of this and the standard deduction applies.")
    brackets: list[TaxBracket] | None = Field(None, description="Custom bracket table applied to gross income (no deductions).")


class ScenarioInputs(BaseModel):
    """Top-level input bundle consumed by run_scenario(). Every section is optional."""

    loan: LoanTerms | None = Field(None, description="Loan to amortize (extra payment and balloon honored).")
    refinance: RefinanceScenario | None = Field(None, description="Refinance comparison.")
    cash_flows: CashFlowScenario | None = Field(None, description="Cash flows for NPV/IRR.")
    simulation: SimulationConfig | None = Field(None, description="Monte Carlo accumulation projection.")
    retirement: RetirementConfig | None = Field(None, description="Retirement readiness simulation.")
    tax: TaxScenario | None = Field(None, description="Income tax estimate.")


class LoanSummary(BaseModel):
    monthly_payment: float = Field(..., description="Scheduled monthly payment (balloon-adjusted when a balloon is set).")
    payments: int = Field(..., ge=0, description="Actual number of payments until payoff.")
    total_interest: float = Field(..., description="Sum of the interest column of the schedule.")
    interest_saved: float | None = Field(None, description="Interest avoided by the extra payment, if any.")
    schedule: list[PaymentRecord] = Field(default_factory=list, description="Full payment-by-payment schedule.")


class ReturnSummary(BaseModel):
    irr_percent: float | None = Field(None, description="IRR in percent; None when the solver failed (see warnings).")
    npv: float | None = Field(None, description="NPV at discount_rate_percent, if requested.")


class TaxSummary(BaseModel):
    tax: float = Field(..., description="Total tax owed.")
    effective_rate_percent: float = Field(..., description="Tax as a percentage of gross income.")


class ScenarioReport(BaseModel):
    """Results of every section present in the ScenarioInputs."""

    loan: LoanSummary | None = None
    refinance: RefinanceImpact | None = None
    returns: ReturnSummary | None = None
    simulation: SimulationResult | None = None
    retirement: RetirementReadiness | None = None
    tax: TaxSummary | None = None
    warnings: list[str] = Field(default_factory=list, description="Non-fatal issues (e.g., IRR did not converge).")
