# tests/__init__.py
"""
Expose common test utilities so tests can import directly:
    from tests import make_loan_terms, make_rng
"""

from .utils import make_loan_terms, make_retirement_config, make_rng, make_simulation_config

__all__ = ["make_loan_terms", "make_rng", "make_simulation_config", "make_retirement_config"]
