# src/core/finance/irr.py
from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from typing import cast

from .errors import ArithmeticDegenerateError, InvalidParametersError, NonConvergenceError
from .rates import round_currency

logger = logging.getLogger(__name__)

CashFlowItem = float | tuple[float, date | datetime | float]
CashFlows = Iterable[CashFlowItem]

DEFAULT_GUESS = 0.10
MAX_ITERATIONS = 1000
TOLERANCE = 1e-6


def _to_years(t0: date | datetime | float, t: date | datetime | float) -> float:
    """Convert two time markers into a year fraction."""
    # numeric → already a year offset
    if isinstance(t0, int | float) and isinstance(t, int | float):
        return float(t) - float(t0)

    # date/datetime → day count / 365.0
    if isinstance(t0, datetime):
        base = t0
    elif isinstance(t0, date):
        base = datetime(t0.year, t0.month, t0.day)
    else:
        raise InvalidParametersError(f"Unsupported time marker: {t0!r}")

    if isinstance(t, datetime):
        other = t
    elif isinstance(t, date):
        other = datetime(t.year, t.month, t.day)
    else:
        raise InvalidParametersError(f"Cannot mix dated and numeric time markers: {t!r}")

    return (other - base).days / 365.0


def _normalize(cash_flows: CashFlows) -> tuple[list[float], list[float]]:
    """Split input into (amounts, times). Plain sequences use integer periods 0..n."""
    try:
        raw: list[CashFlowItem] = list(cash_flows)
    except TypeError as e:
        raise InvalidParametersError("Invalid cash flows") from e

    if not raw:
        raise InvalidParametersError("Invalid cash flows: series is empty")

    is_tuple = isinstance(raw[0], tuple | list) and len(raw[0]) == 2
    if is_tuple:
        # Dated cash flows: align times to the first timestamp
        amounts: list[float] = []
        times: list[float] = []
        t0 = cast(tuple[float, date | datetime | float], raw[0])[1]
        for item in raw:
            amt, current_t = cast(tuple[float, date | datetime | float], item)
            amounts.append(float(amt))
            times.append(_to_years(t0, current_t))
    else:
        amounts = [float(cast(float, x)) for x in raw]
        times = [float(i) for i in range(len(amounts))]

    if not all(math.isfinite(a) for a in amounts):
        raise InvalidParametersError("Invalid cash flows: amounts must be finite")
    return amounts, times


def _npv(rate: float, amounts: Sequence[float], times: Sequence[float]) -> float:
    return sum(a / ((1.0 + rate) ** t) for a, t in zip(amounts, times, strict=True))


def _dnpv(rate: float, amounts: Sequence[float], times: Sequence[float]) -> float:
    # derivative of NPV w.r.t. rate
    return sum(-t * a / ((1.0 + rate) ** (t + 1.0)) for a, t in zip(amounts, times, strict=True) if t != 0.0)


def npv(rate_percent: float, cash_flows: CashFlows) -> float:
    """
    Net present value of a cash-flow series at `rate_percent` (5.0 = 5% per period).
    Index 0 is undiscounted. Rounded to cents.
    """
    if not math.isfinite(rate_percent) or rate_percent <= -100:
        raise InvalidParametersError(f"Invalid discount rate: {rate_percent}")
    amounts, times = _normalize(cash_flows)
    try:
        value = _npv(rate_percent / 100.0, amounts, times)
    except (OverflowError, ZeroDivisionError) as e:
        raise InvalidParametersError(f"Discount factor out of range at rate {rate_percent}%") from e
    return round_currency(value)


def irr(
    cash_flows: CashFlows,
    guess: float = DEFAULT_GUESS,
    *,
    max_iter: int = MAX_ITERATIONS,
    tol: float = TOLERANCE,
    deadline: float | None = None,
) -> float:
    """
    Internal rate of return via Newton-Raphson, as a percentage rounded to 2 decimals.

    Accepts either:
      - An iterable of cash amounts at integer periods, e.g. [-1000, 200, 200, ...]
      - An iterable of (amount, time) where time is a date/datetime or a numeric
        year offset, e.g. [(-1000, date(2024,1,1)), (1100, date(2025,1,1))]

    Convergence is accepted on either criterion, whichever comes first:
      - value:  |NPV(r)| < tol          → returns r
      - step:   |r_next - r| < tol      → returns r_next

    The solver returns the first root reached from `guess`; series with several
    sign changes may have other roots. There is no retry or bracketing fallback,
    callers wanting another root pass a different guess.

    Raises:
      InvalidParametersError    empty series, or no (non-negative, negative) pair of flows
      ArithmeticDegenerateError NPV derivative is exactly zero at an iterate
      NonConvergenceError       budget (max_iter or `deadline` seconds) exhausted
    """
    amounts, times = _normalize(cash_flows)

    # Must have a sign change to have a real IRR
    has_non_negative = any(a >= 0 for a in amounts)
    has_negative = any(a < 0 for a in amounts)
    if not (has_non_negative and has_negative):
        raise InvalidParametersError("Cash flows must contain at least one non-negative and one negative value")
    if max_iter <= 0 or tol <= 0:
        raise InvalidParametersError(f"max_iter and tol must be positive (got {max_iter}, {tol})")

    started = time.monotonic()
    r = float(guess)
    for i in range(max_iter):
        if deadline is not None and time.monotonic() - started > deadline:
            raise NonConvergenceError(f"IRR calculation exceeded deadline of {deadline}s after {i} iterations")
        if 1.0 + r <= 0:
            raise NonConvergenceError(f"IRR iteration left the valid domain (rate <= -100%) at r={r}")

        try:
            f = _npv(r, amounts, times)
            df = _dnpv(r, amounts, times)
        except (OverflowError, ZeroDivisionError) as e:
            raise NonConvergenceError(f"IRR iteration left the valid domain at r={r}") from e

        if not (math.isfinite(f) and math.isfinite(df)):
            raise NonConvergenceError(f"IRR iteration diverged at r={r}")

        if abs(f) < tol:
            logger.debug("irr converged on value after %d iterations: r=%.10f", i, r)
            return round(r * 100.0, 2)

        if df == 0:
            raise ArithmeticDegenerateError(f"IRR calculation failed: derivative is zero at r={r}")

        new_r = r - f / df
        if abs(new_r - r) < tol:
            logger.debug("irr converged on step after %d iterations: r=%.10f", i + 1, new_r)
            return round(new_r * 100.0, 2)
        r = new_r

    raise NonConvergenceError(f"IRR calculation did not converge within {max_iter} iterations")
