"""Approximate barrier, Asian and lookback option pricing.

All three reduce to Black-Scholes evaluations:

Barrier
    Knock-out probability is a step heuristic: 1.0 when spot already sits
    on the far side of the barrier (``S >= H`` for up barriers, ``S <= H``
    for down barriers), otherwise 0.3. Knock-out options pay
    ``vanilla * (1 - p)``, knock-in options ``vanilla * p``.

Asian
    Geometric average-price uses the continuous-averaging adjustment
    ``sigma_G = sigma / sqrt(3)`` with rate ``0.5 (r + q + sigma^2 / 6)``.
    Arithmetic average-price is the geometric price times 1.05, and the
    average-strike variants are the vanilla price times 0.95.

Lookback
    Expected running extremes ``S exp(-/+ 0.5826 sigma sqrt(T))``; the price
    is the vanilla price times 1.3.

These are approximations, not the Rubinstein-Reiner or Kemna-Vorst exact
formulas.
"""

from __future__ import annotations

import logging
import math

from ..enums import AsianAveraging, BarrierType, OptionCategory
from ..exceptions import UnsupportedFeatureError, ValidationError
from .bsm import bsm_price
from .params import OptionContract
from .results import BarrierResult, LookbackResult

__all__ = [
    "barrier_price",
    "knockout_probability",
    "asian_price",
    "lookback_price",
    "exotic_price",
    "KNOCKOUT_PROBABILITY",
    "ARITHMETIC_ASIAN_PREMIUM",
    "AVERAGE_STRIKE_DISCOUNT",
    "LOOKBACK_PREMIUM",
    "LOOKBACK_EXTREME_FACTOR",
]

logger = logging.getLogger(__name__)

KNOCKOUT_PROBABILITY = 0.3
ARITHMETIC_ASIAN_PREMIUM = 1.05
AVERAGE_STRIKE_DISCOUNT = 0.95
LOOKBACK_PREMIUM = 1.3
LOOKBACK_EXTREME_FACTOR = 0.5826


def _vanilla(contract: OptionContract, *, rate: float | None = None, vol: float | None = None):
    return bsm_price(
        contract.option_type,
        contract.spot,
        contract.strike,
        contract.time_to_expiry,
        contract.risk_free_rate if rate is None else rate,
        contract.volatility if vol is None else vol,
        contract.dividend_yield,
    )


def knockout_probability(spot: float, barrier_type: BarrierType, barrier_level: float) -> float:
    """Step-heuristic probability that the barrier is (or will be) touched."""
    if barrier_type.is_up:
        breached = spot >= barrier_level
    else:
        breached = spot <= barrier_level
    return 1.0 if breached else KNOCKOUT_PROBABILITY


def barrier_price(contract: OptionContract) -> BarrierResult:
    """Approximate barrier option price and knock-out probability."""
    if contract.barrier_type is None or contract.barrier_level is None:
        raise ValidationError("barrier_price requires barrier_type and barrier_level")

    p = knockout_probability(contract.spot, contract.barrier_type, contract.barrier_level)
    vanilla = _vanilla(contract)
    price = vanilla * (1.0 - p) if contract.barrier_type.is_knock_out else vanilla * p
    logger.debug(
        "Barrier %s level=%.4f knockout_p=%.2f price=%.6f",
        contract.barrier_type.value,
        contract.barrier_level,
        p,
        price,
    )
    return BarrierResult(price=float(price), knockout_probability=p)


def asian_price(contract: OptionContract, averaging: AsianAveraging | None = None) -> float:
    """Approximate Asian option price.

    Parameters
    ----------
    contract
        Option contract; ``contract.asian_averaging`` is used unless
        ``averaging`` is given.
    averaging
        Override for the averaging type.
    """
    averaging = contract.asian_averaging if averaging is None else averaging
    if averaging is None:
        raise ValidationError("asian_price requires an averaging type")

    if averaging is AsianAveraging.GEOMETRIC:
        sigma = contract.volatility
        adjusted_vol = sigma / math.sqrt(3.0)
        adjusted_rate = 0.5 * (contract.risk_free_rate + contract.dividend_yield + sigma**2 / 6)
        price = _vanilla(contract, rate=adjusted_rate, vol=adjusted_vol)
    elif averaging is AsianAveraging.ARITHMETIC:
        price = asian_price(contract, AsianAveraging.GEOMETRIC) * ARITHMETIC_ASIAN_PREMIUM
    else:
        # Average-strike variants
        price = _vanilla(contract) * AVERAGE_STRIKE_DISCOUNT

    logger.debug("Asian %s price=%.6f", averaging.value, price)
    return float(price)


def lookback_price(contract: OptionContract) -> LookbackResult:
    """Approximate lookback price with expected running minimum and maximum."""
    spread = LOOKBACK_EXTREME_FACTOR * contract.volatility * math.sqrt(contract.time_to_expiry)
    expected_min = contract.spot * math.exp(-spread)
    expected_max = contract.spot * math.exp(spread)
    price = _vanilla(contract) * LOOKBACK_PREMIUM
    logger.debug(
        "Lookback min=%.4f max=%.4f price=%.6f", expected_min, expected_max, price
    )
    return LookbackResult(price=float(price), expected_min=expected_min, expected_max=expected_max)


def exotic_price(contract: OptionContract) -> BarrierResult | LookbackResult | float:
    """Dispatch on ``contract.category`` to the matching exotic pricer."""
    if contract.category is OptionCategory.BARRIER:
        return barrier_price(contract)
    if contract.category is OptionCategory.ASIAN:
        return asian_price(contract)
    if contract.category is OptionCategory.LOOKBACK:
        return lookback_price(contract)
    raise UnsupportedFeatureError(f"No exotic pricer for category {contract.category.value}")
