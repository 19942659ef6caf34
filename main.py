# main.py
"""
Entry Point: Time-Value-of-Money Engine

Purpose
-------
Evaluate a scenario end-to-end and emit a Markdown report:
  1) Load scenario inputs (built-in sample or --config JSON).
  2) Run every configured section through the finance engine:
       - Loan amortization (extra payments, balloon)
       - Refinance impact
       - NPV / IRR
       - Monte Carlo portfolio projection and retirement readiness
       - Income tax
  3) Generate a Markdown report.

Design
------
- CLI-friendly; pure Python. Numerical work is delegated to src.core.finance.
- Randomness is explicit: --seed (or run.seed / TVM_SEED) seeds one numpy
  Generator for the whole run.
- Logging is configured here only; library modules just use module loggers.

Usage
-----
    python main.py
    python main.py --config data/sample/scenario.json --out report.md \
                   --seed 42 --workers 4 --log-level INFO --log-file logs/tvm.log
"""

from __future__ import annotations

import argparse
import logging
import os
from logging.handlers import RotatingFileHandler

import numpy as np

from src.core.finance import FINANCE_ERRORS, run_scenario
from src.inputs.inputs import AppInputs, InputsLoader
from src.reports.generator import write_report
from src.schemas.models import (
    CashFlowScenario,
    LoanTerms,
    RefinanceScenario,
    RetirementConfig,
    ScenarioInputs,
    SimulationConfig,
    TaxScenario,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_sample_inputs() -> ScenarioInputs:
    """Return a demo scenario that exercises every engine section."""
    return ScenarioInputs(
        loan=LoanTerms(
            principal=300_000.0,
            annual_rate_percent=6.5,
            term_years=30,
            extra_payment=200.0,
        ),
        refinance=RefinanceScenario(
            current_principal=250_000.0,
            current_rate_percent=7.0,
            current_remaining_months=300,
            new_rate_percent=5.5,
            new_term_years=25,
            closing_costs=4_000.0,
        ),
        cash_flows=CashFlowScenario(
            cash_flows=[-10_000.0, 3_000.0, 4_200.0, 6_800.0],
            discount_rate_percent=8.0,
        ),
        simulation=SimulationConfig.from_annual(
            initial_value=25_000.0,
            monthly_contribution=500.0,
            years=20,
            annual_mean_percent=7.0,
            annual_std_dev_percent=15.0,
            trials=2_000,
        ),
        retirement=RetirementConfig(
            current_savings=150_000.0,
            annual_savings=15_000.0,
            annual_expenses=60_000.0,
            years_to_retirement=20,
            years_in_retirement=30,
            expected_return_percent=5.0,
            std_dev_percent=12.0,
        ),
        tax=TaxScenario(income=85_000.0, filing_status="single"),
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for configurable runs."""
    p = argparse.ArgumentParser(description="Time-Value-of-Money Engine")
    p.add_argument("--config", type=str, default=None, help="Path to JSON config (ScenarioInputs or AppInputs).")
    p.add_argument("--out", type=str, default=None, help="Output Markdown path (overrides config).")
    p.add_argument("--seed", type=int, default=None, help="Seed for the Monte Carlo random stream (overrides config).")
    p.add_argument("--workers", type=int, default=None, help="Thread-pool workers for Monte Carlo trials (overrides config).")
    p.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Root logging level (overrides config).",
    )
    p.add_argument("--log-file", type=str, default=None, help="Also log to this file (rotating, 1 MB x 3).")
    return p.parse_args(argv)


def configure_logging(level: str, log_file: str | None = None) -> logging.Handler | None:
    """
    Configure the root logger for a CLI run.

    Returns the file handler (if one was added) so the caller can close it.
    """
    logging.basicConfig(format=LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)

    if not log_file:
        return None

    parent = os.path.dirname(log_file)
    if parent:
        os.makedirs(parent, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    return handler


def main(argv: list[str] | None = None) -> int:
    """Run the scenario and write tvm_report.md (or chosen output)."""
    args = parse_args(argv)
    loader = InputsLoader()

    if args.config:
        cfg: AppInputs = loader.load(args.config)
    else:
        # No config file → demo scenario; env overrides still apply
        cfg = loader.from_inputs(build_sample_inputs())

    cfg = loader.with_overrides(
        cfg,
        out=args.out,
        seed=args.seed,
        workers=args.workers,
        log_level=args.log_level,
    )

    file_handler = configure_logging(cfg.run.log_level, args.log_file)
    log = logging.getLogger("tvm")
    try:
        log.info("running scenario (seed=%s, workers=%d)", cfg.run.seed, cfg.run.workers)
        rng = np.random.default_rng(cfg.run.seed)
        try:
            report = run_scenario(cfg.inputs, rng=rng, workers=cfg.run.workers)
        except FINANCE_ERRORS as e:
            print(f"Error during scenario evaluation: {e}")
            raise

        out = write_report(cfg.run.out, report)
        print(f"Report written to {out}")
        for w in report.warnings:
            print(f"Warning: {w}")
        return 0
    finally:
        if file_handler is not None:
            logging.getLogger().removeHandler(file_handler)
            file_handler.close()


if __name__ == "__main__":
    raise SystemExit(main())
