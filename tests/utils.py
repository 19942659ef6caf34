# tests/utils.py
"""
Single source of truth for test data, factories, and canonical payloads.
Update values here to cascade across the test suite.
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any

import numpy as np

# Project models
from src.schemas.models import (
    CashFlowScenario,
    LoanTerms,
    RetirementConfig,
    ScenarioInputs,
    SimulationConfig,
    TaxBracket,
    TaxScenario,
)

# -----------------------------
# Global defaults (edit once)
# -----------------------------

DEFAULT_SEED = 1337

DEFAULT_PRINCIPAL = 200_000.0
DEFAULT_RATE_PERCENT = 6.0
DEFAULT_TERM_YEARS = 30

# -1000 then 300/400/500 → IRR ≈ 8.90%
SAMPLE_CASH_FLOWS: list[float] = [-1000.0, 300.0, 400.0, 500.0]

# 10% to 10k, 15% to 30k, 25% above
SIMPLE_BRACKETS: list[dict[str, float]] = [
    {"marginal_rate": 0.10, "upper_bound": 10_000.0},
    {"marginal_rate": 0.15, "upper_bound": 30_000.0},
    {"marginal_rate": 0.25, "upper_bound": math.inf},
]


# -----------------------------
# Factories
# -----------------------------


def make_rng(seed: int = DEFAULT_SEED) -> np.random.Generator:
    return np.random.default_rng(seed)


def make_loan_terms(**overrides: Any) -> LoanTerms:
    base: dict[str, Any] = {
        "principal": DEFAULT_PRINCIPAL,
        "annual_rate_percent": DEFAULT_RATE_PERCENT,
        "term_years": DEFAULT_TERM_YEARS,
    }
    base.update(overrides)
    return LoanTerms(**base)


def make_simulation_config(**overrides: Any) -> SimulationConfig:
    base: dict[str, Any] = {
        "initial_value": 10_000.0,
        "periodic_contribution": 250.0,
        "periods": 120,
        "mean_return_percent": 0.5,
        "std_dev_return_percent": 4.0,
        "trials": 500,
    }
    base.update(overrides)
    return SimulationConfig(**base)


def make_retirement_config(**overrides: Any) -> RetirementConfig:
    base: dict[str, Any] = {
        "current_savings": 500_000.0,
        "annual_savings": 10_000.0,
        "annual_expenses": 40_000.0,
        "years_to_retirement": 10,
        "years_in_retirement": 25,
        "expected_return_percent": 5.0,
        "std_dev_percent": 10.0,
        "trials": 400,
    }
    base.update(overrides)
    return RetirementConfig(**base)


def make_brackets() -> list[TaxBracket]:
    return [TaxBracket(**b) for b in SIMPLE_BRACKETS]


def make_scenario_inputs(*, with_simulation: bool = True) -> ScenarioInputs:
    """Small scenario touching every section; kept light so smoke tests stay fast."""
    return ScenarioInputs(
        loan=make_loan_terms(term_years=5, principal=20_000.0),
        cash_flows=CashFlowScenario(cash_flows=SAMPLE_CASH_FLOWS, discount_rate_percent=5.0),
        simulation=make_simulation_config(trials=100, periods=24) if with_simulation else None,
        retirement=make_retirement_config(trials=100) if with_simulation else None,
        tax=TaxScenario(income=60_000.0),
    )


# -----------------------------
# Canonical JSON payloads
# -----------------------------


def scenario_payload() -> dict[str, Any]:
    """Bare ScenarioInputs JSON shape (no run options)."""
    return {
        "loan": {"principal": 20_000, "annual_rate_percent": 6, "term_years": 5},
        "cash_flows": {"cash_flows": SAMPLE_CASH_FLOWS, "discount_rate_percent": 5},
        "simulation": {
            "initial_value": 1_000,
            "periodic_contribution": 100,
            "periods": 24,
            "mean_return_percent": 0.5,
            "std_dev_return_percent": 3.0,
            "trials": 50,
        },
        "tax": {"income": 60_000, "filing_status": "married"},
    }


def app_payload(**run: Any) -> dict[str, Any]:
    """Structured AppInputs JSON shape."""
    return {"inputs": scenario_payload(), "run": {"seed": 42, **run}}


def write_json(path: Path, payload: dict[str, Any]) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path
