"""Helper functions shared across pricing, fixed income and cash-flow modules."""

from __future__ import annotations

from contextlib import contextmanager
import datetime as dt
from collections.abc import Iterator
import time
import numpy as np

from .enums import DayCountConvention, OptionType
from .exceptions import ValidationError

__all__ = [
    "log_timing",
    "calculate_year_fraction",
    "intrinsic_value",
    "forward_price",
    "put_call_parity_gap",
]

SECONDS_IN_DAY = 86400

# Actual-day conventions differ only in the length of the year
_ACTUAL_DAY_BASIS = {
    DayCountConvention.ACT_360: 360.0,
    DayCountConvention.ACT_365F: 365.0,
    DayCountConvention.ACT_365_25: 365.25,
}


@contextmanager
def log_timing(logger, label: str, enabled: bool) -> Iterator[None]:
    """Log the wall-clock duration of a block at DEBUG level when enabled."""
    if not enabled:
        yield
        return
    start = time.perf_counter()
    try:
        yield
    finally:
        logger.debug("Timing %s: %.6fs", label, time.perf_counter() - start)


def _thirty_360_us(start: dt.date, end: dt.date) -> float:
    d1 = min(start.day, 30)
    d2 = 30 if end.day == 31 and d1 == 30 else end.day
    days = 360 * (end.year - start.year) + 30 * (end.month - start.month) + (d2 - d1)
    return days / 360.0


def calculate_year_fraction(
    start_date: dt.date,
    end_date: dt.date,
    day_count_convention: DayCountConvention = DayCountConvention.ACT_365F,
) -> float:
    """Year fraction between two dates under a day-count convention.

    Parameters
    ==========
    start_date, end_date:
        ``date`` or ``datetime`` objects; a negative fraction is returned
        when ``end_date`` precedes ``start_date``.
    day_count_convention:
        ACT/365F (default), ACT/360, ACT/365.25 or 30/360 US.

    Returns
    =======
    float
    """
    if day_count_convention is DayCountConvention.THIRTY_360_US:
        return _thirty_360_us(start_date, end_date)
    basis = _ACTUAL_DAY_BASIS.get(day_count_convention)
    if basis is None:
        raise ValidationError(f"Unsupported day_count_convention: {day_count_convention}")
    days = (end_date - start_date).total_seconds() / SECONDS_IN_DAY
    return days / basis


def intrinsic_value(option_type: OptionType, spot, strike: float):
    """Exercise value ``max(S - K, 0)`` (call) or ``max(K - S, 0)`` (put).

    Scalar in, float out; array in, array out.
    """
    spot_arr = np.asarray(spot, dtype=float)
    if option_type is OptionType.CALL:
        value = np.maximum(spot_arr - strike, 0.0)
    else:
        value = np.maximum(strike - spot_arr, 0.0)
    return float(value) if value.ndim == 0 else value


def forward_price(
    *,
    spot: float,
    time_to_expiry: float,
    risk_free_rate: float,
    dividend_yield: float = 0.0,
) -> float:
    """``S e^{(r - q)T}`` under continuous compounding."""
    if time_to_expiry < 0:
        raise ValidationError("time_to_expiry must be non-negative")
    return float(spot * np.exp((risk_free_rate - dividend_yield) * time_to_expiry))


def put_call_parity_gap(
    *,
    call_price: float,
    put_price: float,
    spot: float,
    strike: float,
    time_to_expiry: float,
    risk_free_rate: float,
    dividend_yield: float = 0.0,
) -> float:
    """Residual ``(C - P) - (S e^{-qT} - K e^{-rT})`` for European prices.

    Zero (to rounding) for any arbitrage-free pair of European prices.
    """
    carry = spot * np.exp(-dividend_yield * time_to_expiry)
    discounted_strike = strike * np.exp(-risk_free_rate * time_to_expiry)
    return float(call_price - put_price - (carry - discounted_strike))
