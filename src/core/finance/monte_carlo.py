# src/core/finance/monte_carlo.py
"""
Monte Carlo projection of portfolio and retirement balances.

Randomness
----------
Periodic returns are normal, drawn with the Box-Muller transform from uniforms
supplied by an explicit numpy Generator. Pass a seeded generator
(np.random.default_rng(seed)) for reproducible runs. When `rng` is omitted a
fresh unseeded generator is used, so repeated calls agree statistically but not
bit for bit.

Trials are vectorized with numpy: one array slot per trial, one loop step per
period. With workers > 1 the trials are split into chunks that run on a thread
pool, each chunk drawing from its own child stream (Generator.spawn), so no
random state is shared between workers.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Literal

import numpy as np
from numpy.typing import NDArray

from src.schemas.models import (
    RetirementConfig,
    RetirementReadiness,
    SimulationConfig,
    SimulationResult,
)

from .errors import InvalidParametersError, coerce_model, validation_guard
from .rates import round_currency

logger = logging.getLogger(__name__)

ON_TRACK_THRESHOLD = 85.0
AT_RISK_THRESHOLD = 50.0

Recommendation = Literal["On Track", "At Risk", "Critical Action Needed"]


def normal_draws(rng: np.random.Generator, mean: float, std_dev: float, size: int) -> NDArray[np.float64]:
    """
    `size` normal samples via Box-Muller:
        z = sqrt(-2 ln u1) * cos(2 pi u2),  sample = mean + z * std_dev
    u1 is taken from (0, 1] so the log is always finite.
    """
    u1 = 1.0 - rng.random(size)
    u2 = rng.random(size)
    z = np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)
    return mean + z * std_dev


def _terminal_balances(config: SimulationConfig, trials: int, rng: np.random.Generator) -> NDArray[np.float64]:
    mean = config.mean_return_percent / 100.0
    sd = config.std_dev_return_percent / 100.0

    balances = np.full(trials, float(config.initial_value))
    for _ in range(config.periods):
        # growth first, then the end-of-period deposit
        balances = balances * (1.0 + normal_draws(rng, mean, sd, trials)) + config.periodic_contribution
    return balances


def _chunk_sizes(trials: int, workers: int) -> list[int]:
    base, extra = divmod(trials, workers)
    sizes = [base + (1 if i < extra else 0) for i in range(workers)]
    return [s for s in sizes if s > 0]


def summarize_distribution(values: NDArray[np.float64] | list[float]) -> SimulationResult:
    """
    Reduce terminal balances to min / p10 / median / p90 / max (rounded to cents).

    Nearest-rank on the ascending sort: median = lower middle element,
    p10 = sorted[floor(n * 0.1)], p90 = sorted[floor(n * 0.9)].
    """
    ordered = np.sort(np.asarray(values, dtype=float))
    n = int(ordered.size)
    if n == 0:
        raise InvalidParametersError("Cannot summarize an empty distribution")

    return SimulationResult(
        min=round_currency(ordered[0]),
        max=round_currency(ordered[-1]),
        median=round_currency(ordered[(n - 1) // 2]),
        p10=round_currency(ordered[math.floor(n * 0.1)]),
        p90=round_currency(ordered[math.floor(n * 0.9)]),
        trials=n,
    )


def run_monte_carlo_simulation(
    config: SimulationConfig | Mapping[str, Any],
    *,
    rng: np.random.Generator | None = None,
    workers: int = 1,
) -> SimulationResult:
    """
    Simulate `config.trials` independent trajectories and summarize the terminal balances.

    `config` may be a SimulationConfig or a plain mapping of its fields; a mapping
    that fails validation raises InvalidParametersError before any trial runs.
    """
    config = coerce_model(SimulationConfig, config, "Invalid simulation config")
    if workers < 1:
        raise InvalidParametersError(f"workers must be >= 1, got {workers}")
    rng = rng if rng is not None else np.random.default_rng()

    if workers == 1:
        terminal = _terminal_balances(config, config.trials, rng)
    else:
        sizes = _chunk_sizes(config.trials, workers)
        streams = rng.spawn(len(sizes))
        with ThreadPoolExecutor(max_workers=len(sizes)) as pool:
            chunks = list(pool.map(lambda job: _terminal_balances(config, job[0], job[1]), zip(sizes, streams, strict=True)))
        terminal = np.concatenate(chunks)

    logger.debug("monte carlo: %d trials x %d periods on %d worker(s)", config.trials, config.periods, workers)
    return summarize_distribution(terminal)


def simulate_portfolio(
    initial_investment: float,
    monthly_contribution: float,
    years: float,
    mean_return_percent: float,
    std_dev_percent: float,
    simulations: int = 1000,
    *,
    rng: np.random.Generator | None = None,
) -> SimulationResult:
    """
    Monthly Monte Carlo from ANNUAL assumptions (mean/12, volatility/sqrt(12)).

    Raises InvalidParametersError before any trial runs if an input is out of range.
    """
    with validation_guard():
        config = SimulationConfig.from_annual(
            initial_value=initial_investment,
            monthly_contribution=monthly_contribution,
            years=years,
            annual_mean_percent=mean_return_percent,
            annual_std_dev_percent=std_dev_percent,
            trials=simulations,
        )
    return run_monte_carlo_simulation(config, rng=rng)


def _recommendation(probability: float) -> Recommendation:
    if probability > ON_TRACK_THRESHOLD:
        return "On Track"
    if probability > AT_RISK_THRESHOLD:
        return "At Risk"
    return "Critical Action Needed"


def assess_retirement_readiness(
    config: RetirementConfig | Mapping[str, Any],
    *,
    rng: np.random.Generator | None = None,
) -> RetirementReadiness:
    """
    Probability that savings last through retirement.

    Accumulation: balance * (1 + r) + annual_savings each year.
    Decumulation: balance * (1 + r) - annual_expenses each year; a trial fails
    the first year its balance goes negative and is not simulated further.
    """
    config = coerce_model(RetirementConfig, config, "Invalid retirement config")
    rng = rng if rng is not None else np.random.default_rng()
    mean = config.expected_return_percent / 100.0
    sd = config.std_dev_percent / 100.0
    trials = config.trials

    balances = np.full(trials, float(config.current_savings))
    for _ in range(config.years_to_retirement):
        balances = balances * (1.0 + normal_draws(rng, mean, sd, trials)) + config.annual_savings

    failed = np.zeros(trials, dtype=bool)
    for _ in range(config.years_in_retirement):
        active = ~failed
        n_active = int(active.sum())
        if n_active == 0:
            break
        balances[active] = balances[active] * (1.0 + normal_draws(rng, mean, sd, n_active)) - config.annual_expenses
        failed |= balances < 0

    successes = trials - int(failed.sum())
    probability = successes / trials * 100.0
    logger.debug("retirement readiness: %d/%d trials succeeded", successes, trials)

    return RetirementReadiness(
        success_probability=round_currency(probability),
        recommendation=_recommendation(probability),
    )


def retirement_readiness(
    current_savings: float,
    annual_savings: float,
    annual_expenses: float,
    years_to_retirement: int,
    years_in_retirement: int,
    expected_return_percent: float,
    std_dev_percent: float,
    trials: int = 1000,
    *,
    rng: np.random.Generator | None = None,
) -> RetirementReadiness:
    """Positional convenience wrapper; validates before simulating."""
    with validation_guard():
        config = RetirementConfig(
            current_savings=current_savings,
            annual_savings=annual_savings,
            annual_expenses=annual_expenses,
            years_to_retirement=years_to_retirement,
            years_in_retirement=years_in_retirement,
            expected_return_percent=expected_return_percent,
            std_dev_percent=std_dev_percent,
            trials=trials,
        )
    return assess_retirement_readiness(config, rng=rng)
