"""Fixed-rate bond pricing, duration, convexity and yield to maturity.

All rates are decimal annual rates compounded ``payments_per_year`` times a
year. Cash flows fall at periods ``t = 1..N`` with ``N = years * ppy``; each
period pays ``face * coupon_rate / ppy`` and the face value is repaid with
the final coupon.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import numbers

import numpy as np
import pandas as pd

from .exceptions import ConfigurationError, ConvergenceError, ValidationError
from .root_finding import bisection

__all__ = [
    "BondSpec",
    "BondAnalytics",
    "bond_price",
    "macaulay_duration",
    "modified_duration",
    "convexity",
    "yield_to_maturity",
    "current_yield",
    "price_change_estimate",
    "cash_flow_schedule",
    "bond_analytics",
]

logger = logging.getLogger(__name__)

VALID_PAYMENT_FREQUENCIES = (1, 2, 4, 12)


@dataclass(frozen=True, slots=True)
class BondSpec:
    """Plain fixed-coupon bullet bond.

    Attributes
    ==========
    face_value:
        Principal repaid at maturity (> 0).
    coupon_rate:
        Annual coupon rate as a decimal (>= 0).
    years_to_maturity:
        Remaining life in years (> 0). ``years * payments_per_year`` must be
        a whole number of periods.
    payments_per_year:
        Coupon frequency: 1, 2, 4 or 12.
    market_rate:
        Optional annual market yield used when no rate is passed explicitly.
    """

    face_value: float
    coupon_rate: float
    years_to_maturity: float
    payments_per_year: int = 2
    market_rate: float | None = None

    def __post_init__(self) -> None:
        for name in ("face_value", "coupon_rate", "years_to_maturity"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise ConfigurationError(f"BondSpec.{name} must be numeric")
            if not math.isfinite(value):
                raise ValidationError(f"BondSpec.{name} must be finite")

        if self.face_value <= 0:
            raise ValidationError(f"face_value must be positive, got {self.face_value}")
        if self.coupon_rate < 0:
            raise ValidationError(f"coupon_rate must be >= 0, got {self.coupon_rate}")
        if self.years_to_maturity <= 0:
            raise ValidationError(
                f"years_to_maturity must be positive, got {self.years_to_maturity}"
            )
        if self.payments_per_year not in VALID_PAYMENT_FREQUENCIES:
            raise ValidationError(
                f"payments_per_year must be one of {VALID_PAYMENT_FREQUENCIES}, "
                f"got {self.payments_per_year}"
            )
        periods = self.years_to_maturity * self.payments_per_year
        if not math.isclose(periods, round(periods), abs_tol=1e-9):
            raise ValidationError(
                "years_to_maturity * payments_per_year must be a whole number of periods, "
                f"got {periods}"
            )
        if self.market_rate is not None and not self.market_rate > 0:
            raise ValidationError(f"market_rate must be positive, got {self.market_rate}")

    @property
    def periods(self) -> int:
        return int(round(self.years_to_maturity * self.payments_per_year))

    @property
    def periodic_coupon(self) -> float:
        return self.face_value * self.coupon_rate / self.payments_per_year

    @property
    def annual_coupon(self) -> float:
        return self.face_value * self.coupon_rate


@dataclass(frozen=True, slots=True)
class BondAnalytics:
    """Summary record produced by :func:`bond_analytics`."""

    price: float
    macaulay_duration: float
    modified_duration: float
    convexity: float
    current_yield: float
    annual_coupon: float
    total_coupon_payments: float
    premium_discount: str


def _resolve_rate(spec: BondSpec, market_rate: float | None) -> float:
    rate = spec.market_rate if market_rate is None else market_rate
    if rate is None:
        raise ValidationError("A market rate is required (pass market_rate or set it on BondSpec)")
    if not math.isfinite(rate) or rate <= -spec.payments_per_year:
        raise ValidationError(f"market_rate must be finite and > -{spec.payments_per_year}")
    return float(rate)


def _discounted_cash_flows(spec: BondSpec, rate: float) -> tuple[np.ndarray, np.ndarray]:
    """Period indices ``t = 1..N`` and the PV of each period's cash flow."""
    t = np.arange(1, spec.periods + 1, dtype=float)
    cash_flows = np.full(spec.periods, spec.periodic_coupon)
    cash_flows[-1] += spec.face_value
    pv = cash_flows / (1.0 + rate / spec.payments_per_year) ** t
    return t, pv


def bond_price(spec: BondSpec, market_rate: float | None = None) -> float:
    """Price = PV of the coupon annuity + PV of the face value.

    Parameters
    ----------
    spec
        Bond definition.
    market_rate
        Annual yield; defaults to ``spec.market_rate``.
    """
    rate = _resolve_rate(spec, market_rate)
    i = rate / spec.payments_per_year
    n = spec.periods
    if i == 0:
        coupon_pv = spec.periodic_coupon * n
    else:
        coupon_pv = spec.periodic_coupon * (1 - (1 + i) ** -n) / i
    face_pv = spec.face_value / (1 + i) ** n
    return float(coupon_pv + face_pv)


def macaulay_duration(spec: BondSpec, market_rate: float | None = None) -> float:
    """PV-weighted average time to cash flow, in years."""
    rate = _resolve_rate(spec, market_rate)
    t, pv = _discounted_cash_flows(spec, rate)
    return float(np.dot(pv, t) / pv.sum() / spec.payments_per_year)


def modified_duration(spec: BondSpec, market_rate: float | None = None) -> float:
    """Macaulay duration / (1 + periodic rate)."""
    rate = _resolve_rate(spec, market_rate)
    return macaulay_duration(spec, rate) / (1 + rate / spec.payments_per_year)


def convexity(spec: BondSpec, market_rate: float | None = None) -> float:
    """``sum(PV_t * t (t + 1)) / (P (1 + i)^2 ppy^2)`` with periodic rate ``i``."""
    rate = _resolve_rate(spec, market_rate)
    t, pv = _discounted_cash_flows(spec, rate)
    i = rate / spec.payments_per_year
    price = pv.sum()
    return float(np.dot(pv, t * (t + 1)) / (price * (1 + i) ** 2 * spec.payments_per_year**2))


def yield_to_maturity(
    spec: BondSpec,
    price: float,
    *,
    low: float = 0.00001,
    high: float = 1.0,
    tol: float = 1.0e-8,
    max_iter: int = 100,
) -> float:
    """Solve ``bond_price(spec, y) == price`` for ``y`` by bisection on ``[low, high]``.

    Raises
    ------
    ValidationError
        If ``price`` is not positive.
    ConvergenceError
        If the bracket does not contain the yield (e.g. ``price`` exceeds the
        bond's price at ``low``) or the iteration budget runs out.
    """
    if not price > 0:
        raise ValidationError(f"price must be positive, got {price}")

    def residual(y: float) -> float:
        return bond_price(spec, y) - price

    try:
        result = bisection(residual, low, high, tol=tol, max_iter=max_iter)
    except ConvergenceError:
        logger.warning(
            "Yield to maturity: price %.6f not attainable for yields in [%g, %g]", price, low, high
        )
        raise
    ytm = result.raise_if_failed("Yield to maturity")
    logger.debug("YTM price=%.6f ytm=%.10f iterations=%d", price, ytm, result.iterations)
    return ytm


def current_yield(spec: BondSpec, price: float | None = None) -> float:
    """Annual coupon / clean price (priced at ``spec.market_rate`` when omitted)."""
    price = bond_price(spec) if price is None else price
    if not price > 0:
        raise ValidationError(f"price must be positive, got {price}")
    return spec.annual_coupon / price


def price_change_estimate(
    spec: BondSpec, yield_shift: float, market_rate: float | None = None
) -> float:
    """Relative price change ``-D_mod * dy + 0.5 * C * dy^2`` for a yield shift ``dy``."""
    rate = _resolve_rate(spec, market_rate)
    return float(
        -modified_duration(spec, rate) * yield_shift
        + 0.5 * convexity(spec, rate) * yield_shift**2
    )


def cash_flow_schedule(spec: BondSpec, market_rate: float | None = None) -> pd.DataFrame:
    """Per-period cash flows with discount factors and present values.

    Returns
    -------
    pd.DataFrame
        Columns ``period``, ``time`` (years), ``cash_flow``,
        ``discount_factor`` and ``present_value``.
    """
    rate = _resolve_rate(spec, market_rate)
    t, pv = _discounted_cash_flows(spec, rate)
    discount = (1.0 + rate / spec.payments_per_year) ** -t
    return pd.DataFrame(
        {
            "period": t.astype(int),
            "time": t / spec.payments_per_year,
            "cash_flow": pv / discount,
            "discount_factor": discount,
            "present_value": pv,
        }
    )


def bond_analytics(spec: BondSpec, market_rate: float | None = None) -> BondAnalytics:
    """Price, durations, convexity and coupon summary at one yield."""
    rate = _resolve_rate(spec, market_rate)
    price = bond_price(spec, rate)
    if math.isclose(price, spec.face_value, rel_tol=1e-9):
        label = "par"
    elif price > spec.face_value:
        label = "premium"
    else:
        label = "discount"

    return BondAnalytics(
        price=price,
        macaulay_duration=macaulay_duration(spec, rate),
        modified_duration=modified_duration(spec, rate),
        convexity=convexity(spec, rate),
        current_yield=current_yield(spec, price),
        annual_coupon=spec.annual_coupon,
        total_coupon_payments=spec.periodic_coupon * spec.periods,
        premium_discount=label,
    )
