# tests/conftest.py
from __future__ import annotations

import os

import pytest

from tests.utils import (
    DEFAULT_SEED,
    make_brackets,
    make_loan_terms,
    make_retirement_config,
    make_rng,
    make_scenario_inputs,
    make_simulation_config,
)

_TVM_ENV_VARS = ("TVM_SEED", "TVM_WORKERS", "TVM_OUT", "TVM_LOG_LEVEL")


# -------- Global deterministic seed --------
@pytest.fixture(autouse=True, scope="session")
def _seed_session():
    os.environ.setdefault("PYTHONHASHSEED", "0")
    yield


# -------- Isolate from developer env --------
@pytest.fixture(autouse=True)
def _clean_tvm_env(monkeypatch):
    for name in _TVM_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# -------- Random streams --------
@pytest.fixture
def rng():
    """Fresh seeded generator per test."""
    return make_rng(DEFAULT_SEED)


@pytest.fixture
def rng_factory():
    """Factory for independent seeded generators: rng_factory(seed)."""

    def _factory(seed: int = DEFAULT_SEED):
        return make_rng(seed)

    return _factory


# -------- Model fixtures --------
@pytest.fixture
def loan_terms():
    """Factory for canonical LoanTerms (overridable)."""

    def _factory(**overrides):
        return make_loan_terms(**overrides)

    return _factory


@pytest.fixture
def simulation_config():
    def _factory(**overrides):
        return make_simulation_config(**overrides)

    return _factory


@pytest.fixture
def retirement_config():
    def _factory(**overrides):
        return make_retirement_config(**overrides)

    return _factory


@pytest.fixture
def bracket_table():
    return make_brackets()


@pytest.fixture
def scenario_inputs():
    return make_scenario_inputs()


# -------- Pytest markers --------
def pytest_configure(config):
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks integration tests")
