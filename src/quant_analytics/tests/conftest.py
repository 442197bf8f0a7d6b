"""Shared pytest fixtures for quant_analytics tests."""

import pytest

from quant_analytics.enums import OptionType
from quant_analytics.valuation import OptionContract

from quant_analytics.tests.helpers import make_contract


# ---------------------------------------------------------------------------
# Scalar constants
# ---------------------------------------------------------------------------

SPOT = 100.0
STRIKE = 100.0
RATE = 0.05
VOL = 0.20
T = 1.0


@pytest.fixture()
def spot() -> float:
    return SPOT


@pytest.fixture()
def strike() -> float:
    return STRIKE


@pytest.fixture()
def risk_free_rate() -> float:
    return RATE


@pytest.fixture()
def vol() -> float:
    return VOL


# ---------------------------------------------------------------------------
# Option contracts
# ---------------------------------------------------------------------------


@pytest.fixture()
def atm_call() -> OptionContract:
    """One-year ATM European call, no dividends."""
    return make_contract(OptionType.CALL)


@pytest.fixture()
def atm_put() -> OptionContract:
    """One-year ATM European put, no dividends."""
    return make_contract(OptionType.PUT)
