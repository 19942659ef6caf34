# src/reports/generator.py
from __future__ import annotations

from pathlib import Path

from src.schemas.models import (
    LoanSummary,
    PaymentRecord,
    RefinanceImpact,
    RetirementReadiness,
    ReturnSummary,
    ScenarioReport,
    SimulationResult,
    TaxSummary,
)

SCHEDULE_PREVIEW_ROWS = 12


def _fmt_amount(x: float) -> str:
    """
    Plain amount with thousands separators and two decimals (no currency symbol).

    Example:
        123456.789 -> 123,456.79
        -2000 -> -2,000.00
    """
    return f"{x:,.2f}"


def _fmt_pct(x: float) -> str:
    """Format a value that is already a percentage, e.g. 6.5 -> 6.50%."""
    return f"{x:.2f}%"


def _section(title: str) -> str:
    """
    Render a level-2 heading for Markdown sections.
    """
    return f"\n## {title}\n"


# -----------------------
# Sections
# -----------------------


def _render_schedule_rows(rows: list[PaymentRecord]) -> list[str]:
    return [
        f"| {p.payment_number} "
        f"| {_fmt_amount(p.payment)} "
        f"| {_fmt_amount(p.principal_portion)} "
        f"| {_fmt_amount(p.interest_portion)} "
        f"| {_fmt_amount(p.ending_balance)} |"
        for p in rows
    ]


def _render_loan(loan: LoanSummary) -> str:
    """
    Loan card plus the first and last rows of the schedule.
    """
    lines = [
        _section("Loan Amortization"),
        f"- **Monthly Payment:** {_fmt_amount(loan.monthly_payment)}",
        f"- **Payments Until Payoff:** {loan.payments}",
        f"- **Total Interest:** {_fmt_amount(loan.total_interest)}",
    ]
    if loan.interest_saved is not None:
        lines.append(f"- **Interest Saved by Extra Payments:** {_fmt_amount(loan.interest_saved)}")

    if loan.schedule:
        lines += [
            "",
            "| # | Payment | Principal | Interest | Balance |",
            "| ---: | ---: | ---: | ---: | ---: |",
        ]
        sched = loan.schedule
        if len(sched) <= 2 * SCHEDULE_PREVIEW_ROWS:
            lines += _render_schedule_rows(sched)
        else:
            lines += _render_schedule_rows(sched[:SCHEDULE_PREVIEW_ROWS])
            lines.append("| … | | | | |")
            lines += _render_schedule_rows(sched[-SCHEDULE_PREVIEW_ROWS:])
    return "\n".join(lines) + "\n"


def _render_refinance(ref: RefinanceImpact) -> str:
    break_even = "never" if ref.break_even.is_never else f"{ref.break_even.months} months"
    lines = [
        _section("Refinance Impact"),
        f"- **Current Payment:** {_fmt_amount(ref.current_monthly_payment)}",
        f"- **New Payment:** {_fmt_amount(ref.new_monthly_payment)}",
        f"- **Monthly Savings:** {_fmt_amount(ref.monthly_savings)}",
        f"- **Total Savings:** {_fmt_amount(ref.total_savings)}",
        f"- **Break-Even:** {break_even}",
    ]
    return "\n".join(lines) + "\n"


def _render_returns(ret: ReturnSummary) -> str:
    irr_txt = _fmt_pct(ret.irr_percent) if ret.irr_percent is not None else "not solved"
    lines = [_section("Rate of Return"), f"- **IRR:** {irr_txt}"]
    if ret.npv is not None:
        lines.append(f"- **NPV:** {_fmt_amount(ret.npv)}")
    return "\n".join(lines) + "\n"


def _render_simulation(sim: SimulationResult) -> str:
    lines = [
        _section(f"Monte Carlo Projection ({sim.trials} trials)"),
        "| Min | P10 | Median | P90 | Max |",
        "| ---: | ---: | ---: | ---: | ---: |",
        f"| {_fmt_amount(sim.min)} | {_fmt_amount(sim.p10)} | {_fmt_amount(sim.median)} "
        f"| {_fmt_amount(sim.p90)} | {_fmt_amount(sim.max)} |",
    ]
    return "\n".join(lines) + "\n"


def _render_retirement(ret: RetirementReadiness) -> str:
    lines = [
        _section("Retirement Readiness"),
        f"- **Success Probability:** {_fmt_pct(ret.success_probability)}",
        f"- **Recommendation:** {ret.recommendation}",
    ]
    return "\n".join(lines) + "\n"


def _render_tax(tax: TaxSummary) -> str:
    lines = [
        _section("Income Tax"),
        f"- **Tax:** {_fmt_amount(tax.tax)}",
        f"- **Effective Rate:** {_fmt_pct(tax.effective_rate_percent)}",
    ]
    return "\n".join(lines) + "\n"


def _render_warnings(warnings: list[str]) -> str:
    """
    Render non-fatal warnings, if any.
    """
    if not warnings:
        return ""
    lines = [_section("Warnings")] + [f"- {w}" for w in warnings]
    return "\n".join(lines) + "\n"


# -----------------------
# Public API
# -----------------------


def render_report(report: ScenarioReport, title: str = "Time-Value-of-Money Analysis") -> str:
    """Assemble the Markdown document; sections without results are omitted."""
    parts = [f"# {title}\n"]
    if report.loan is not None:
        parts.append(_render_loan(report.loan))
    if report.refinance is not None:
        parts.append(_render_refinance(report.refinance))
    if report.returns is not None:
        parts.append(_render_returns(report.returns))
    if report.simulation is not None:
        parts.append(_render_simulation(report.simulation))
    if report.retirement is not None:
        parts.append(_render_retirement(report.retirement))
    if report.tax is not None:
        parts.append(_render_tax(report.tax))
    parts.append(_render_warnings(report.warnings))
    return "".join(parts)


def write_report(path: str | Path, report: ScenarioReport) -> Path:
    """Write the rendered report to `path`, creating parent directories."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(render_report(report), encoding="utf-8")
    return out
