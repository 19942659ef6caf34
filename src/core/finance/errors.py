# src/core/finance/errors.py
"""
Typed errors for the numerical finance engine.

Exports
-------
- FinanceError, InvalidParametersError, ArithmeticDegenerateError,
  NonConvergenceError
- FINANCE_ERRORS
- validation_guard(), coerce_model()

Every failure is raised synchronously to the caller. None of the engine
functions return NaN/Infinity as a stand-in for an error.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

M = TypeVar("M", bound=BaseModel)

# =========================
# Exception types
# =========================


class FinanceError(ValueError):
    """Base class for finance engine failures."""


class InvalidParametersError(FinanceError):
    """A numeric input is out of range (raised before any computation)."""


class ArithmeticDegenerateError(FinanceError):
    """The computation reached an undefined step (zero derivative, infinite payoff horizon)."""


class NonConvergenceError(FinanceError):
    """An iterative solver exhausted its budget without meeting a convergence criterion."""


# Selector tuple for grouped exception handling
FINANCE_ERRORS = (
    InvalidParametersError,
    ArithmeticDegenerateError,
    NonConvergenceError,
)


@contextmanager
def validation_guard(context: str = "Invalid input parameters") -> Iterator[None]:
    """Re-raise pydantic validation failures as InvalidParametersError."""
    try:
        yield
    except ValidationError as exc:
        raise InvalidParametersError(f"{context}: {exc.error_count()} validation error(s)\n{exc}") from exc


def coerce_model(model: type[M], data: M | Mapping[str, Any], context: str = "Invalid input parameters") -> M:
    """Return `data` unchanged if it is already a `model`, else validate it under validation_guard()."""
    if isinstance(data, model):
        return data
    with validation_guard(context):
        return model.model_validate(data)


__all__ = [
    "FinanceError",
    "InvalidParametersError",
    "ArithmeticDegenerateError",
    "NonConvergenceError",
    "FINANCE_ERRORS",
    "validation_guard",
    "coerce_model",
]
