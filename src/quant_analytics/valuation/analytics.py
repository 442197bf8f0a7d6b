"""Risk metrics, scenario grids and probability analysis for a priced option.

Everything here is built on the Black-Scholes kernel: scenarios reprice the
contract with a shocked spot, volatility or time to expiry, and probabilities
use the risk-neutral log-normal distribution of the terminal spot
``ln(S_T / S) ~ N((r - q - sigma^2/2) T, sigma^2 T)``.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from ..enums import OptionType
from ..special_functions import norm_cdf
from ..utils import forward_price, intrinsic_value
from .bsm import BlackScholesModel
from .params import OptionContract
from .results import GreeksSet, RiskMetrics, ScenarioPoint, ThetaDecayPoint

__all__ = [
    "risk_metrics",
    "spot_scenarios",
    "vol_scenarios",
    "theta_decay",
    "breakeven",
    "probability_of_profit",
    "probability_density",
    "max_profit_loss",
    "SPOT_SHOCKS",
    "VOL_SHOCKS",
]

logger = logging.getLogger(__name__)

TRADING_DAYS = 252
VAR_Z_99 = 2.33
EXPECTED_SHORTFALL_MULTIPLIER = 1.3
DRAWDOWN_FRACTION = 0.2

SPOT_SHOCKS = (-0.20, -0.10, -0.05, 0.0, 0.05, 0.10, 0.20)
VOL_SHOCKS = (-0.50, -0.25, -0.10, 0.0, 0.10, 0.25, 0.50)
MIN_SHOCKED_VOL = 0.01

DENSITY_POINTS = 101
DENSITY_RANGE = (0.5, 1.5)


# ── Risk metrics ────────────────────────────────────────────────────────


def risk_metrics(
    *,
    price: float,
    greeks: GreeksSet,
    spot: float,
    volatility: float,
    time_to_expiry: float,
) -> RiskMetrics:
    """Parametric delta-normal risk summary.

    1-day 99% VaR is ``|delta * S * sigma_daily * 2.33|`` with
    ``sigma_daily = sigma / sqrt(252)``; expected shortfall is 1.3 x VaR and
    the scenario drawdown is 20% of the position value. The decomposition
    terms use the scaled Greeks (vega per vol point, theta per day, rho and
    epsilon per 1%).
    """
    daily_vol = volatility / np.sqrt(TRADING_DAYS)
    var = abs(greeks.delta * spot * daily_vol * VAR_Z_99)
    return RiskMetrics(
        value_at_risk=float(var),
        expected_shortfall=float(var * EXPECTED_SHORTFALL_MULTIPLIER),
        max_drawdown=float(price * DRAWDOWN_FRACTION),
        directional_risk=float(abs(greeks.delta * spot * volatility)),
        volatility_risk=float(abs(greeks.vega * volatility)),
        time_decay_risk=float(abs(greeks.theta * time_to_expiry)),
        interest_rate_risk=float(abs(greeks.rho * 0.01)),
        dividend_risk=float(abs(greeks.epsilon * 0.01)),
    )


# ── Scenario grids ──────────────────────────────────────────────────────


def _scenario_point(label: str, shift: float, contract: OptionContract) -> ScenarioPoint:
    model = BlackScholesModel(contract)
    return ScenarioPoint(
        label=label,
        shift=shift,
        price=model.present_value(),
        delta=float(model.delta()),
        gamma=float(model.gamma()),
        theta=float(model.theta()),
        vega=float(model.vega()),
        rho=float(model.rho()),
    )


def _shock_label(prefix: str, shift: float) -> str:
    sign = "+" if shift >= 0 else "-"
    return f"{prefix} {sign}{abs(round(shift * 100)):d}%"


def spot_scenarios(
    contract: OptionContract, shocks: tuple[float, ...] = SPOT_SHOCKS
) -> tuple[ScenarioPoint, ...]:
    """Reprice under relative spot shocks ``S * (1 + shift)``."""
    return tuple(
        _scenario_point(
            _shock_label("Spot", shift), shift, contract.replace(spot=contract.spot * (1 + shift))
        )
        for shift in shocks
    )


def vol_scenarios(
    contract: OptionContract, shocks: tuple[float, ...] = VOL_SHOCKS
) -> tuple[ScenarioPoint, ...]:
    """Reprice under relative volatility shocks, floored at 1% volatility."""
    return tuple(
        _scenario_point(
            _shock_label("Vol", shift),
            shift,
            contract.replace(volatility=max(MIN_SHOCKED_VOL, contract.volatility * (1 + shift))),
        )
        for shift in shocks
    )


def theta_decay(contract: OptionContract) -> tuple[ThetaDecayPoint, ...]:
    """Price, theta and time value from ``int(T * 365)`` days down to 1 day.

    Points are spaced ``max(1, days // 50)`` days apart, so a curve never
    holds more than about fifty points.
    """
    total_days = int(contract.time_to_expiry * 365)
    if total_days < 1:
        return ()
    step = max(1, total_days // 50)
    intrinsic = intrinsic_value(contract.option_type, contract.spot, contract.strike)

    points = []
    for days in range(total_days, 0, -step):
        model = BlackScholesModel(contract.replace(time_to_expiry=days / 365.0))
        price = model.present_value()
        points.append(
            ThetaDecayPoint(
                days_to_expiry=days,
                price=price,
                theta=float(model.theta()),
                time_value=price - intrinsic,
            )
        )
    return tuple(points)


# ── Probability analysis ────────────────────────────────────────────────


def breakeven(option_type: OptionType, strike: float, premium: float) -> float:
    """Terminal spot at which a long option recovers its premium."""
    if option_type is OptionType.CALL:
        return strike + premium
    return strike - premium


def probability_of_profit(contract: OptionContract, premium: float) -> float:
    """Risk-neutral probability that a long position finishes beyond breakeven.

    ``z = (ln(B / S) - (r - q - sigma^2/2) T) / (sigma sqrt(T))``; a call
    profits with probability ``1 - N(z)``, a put with ``N(z)``.
    """
    b = breakeven(contract.option_type, contract.strike, premium)
    is_call = contract.option_type is OptionType.CALL

    if b <= 0:
        # Put premium at or above the strike: S_T cannot end below zero.
        return 0.0

    if contract.is_degenerate:
        fwd = forward_price(
            spot=contract.spot,
            time_to_expiry=contract.time_to_expiry,
            risk_free_rate=contract.risk_free_rate,
            dividend_yield=contract.dividend_yield,
        )
        profitable = fwd > b if is_call else fwd < b
        return 1.0 if profitable else 0.0

    drift = contract.risk_free_rate - contract.dividend_yield - 0.5 * contract.volatility**2
    diffusion = contract.volatility * math.sqrt(contract.time_to_expiry)
    z = (math.log(b / contract.spot) - drift * contract.time_to_expiry) / diffusion
    return float(1.0 - norm_cdf(z)) if is_call else float(norm_cdf(z))


def probability_density(contract: OptionContract) -> tuple[tuple[float, float], ...]:
    """Risk-neutral log-normal density of ``S_T`` on 101 points over [0.5 S, 1.5 S].

    Degenerate contracts (no time or no volatility) have no density and
    return zeros on the same grid.
    """
    spots = np.linspace(
        DENSITY_RANGE[0] * contract.spot, DENSITY_RANGE[1] * contract.spot, DENSITY_POINTS
    )
    if contract.is_degenerate:
        return tuple((float(s), 0.0) for s in spots)

    t = contract.time_to_expiry
    drift = contract.risk_free_rate - contract.dividend_yield - 0.5 * contract.volatility**2
    diffusion = contract.volatility * np.sqrt(t)
    z = (np.log(spots / contract.spot) - drift * t) / diffusion
    density = np.exp(-0.5 * z * z) / (spots * diffusion * np.sqrt(2.0 * np.pi))
    return tuple(zip(spots.tolist(), density.tolist()))


def max_profit_loss(option_type: OptionType, strike: float, premium: float) -> tuple[float, float]:
    """``(max_profit, max_loss)`` at expiry for a long single option."""
    max_profit = math.inf if option_type is OptionType.CALL else strike - premium
    return max_profit, -premium
