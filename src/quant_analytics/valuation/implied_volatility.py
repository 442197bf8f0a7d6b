"""Implied volatility solver for European options under Black-Scholes-Merton."""

from __future__ import annotations

from dataclasses import dataclass
import logging

import numpy as np

from ..enums import ExerciseType, OptionCategory, OptionType, RootFindingMethod
from ..exceptions import ConfigurationError, UnsupportedFeatureError, ValidationError
from ..root_finding import RootResult, bisection, brent, newton_raphson
from ..utils import log_timing
from .bsm import BlackScholesModel, bsm_price
from .params import OptionContract

__all__ = ["ImpliedVolResult", "implied_volatility"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImpliedVolResult:
    """Result container for implied volatility calculation."""

    implied_vol: float
    iterations: int
    converged: bool


def _price_bounds(contract: OptionContract) -> tuple[float, float]:
    """No-arbitrage bounds for a European option price.

    Parameters
    ----------
    contract
        Contract whose volatility is ignored.

    Returns
    -------
    tuple[float, float]
        ``(lower_bound, upper_bound)``.
    """
    t = contract.time_to_expiry
    df_r = float(np.exp(-contract.risk_free_rate * t))
    df_q = float(np.exp(-contract.dividend_yield * t))
    forward_spot = contract.spot * df_q
    pv_strike = contract.strike * df_r

    if contract.option_type is OptionType.CALL:
        return max(forward_spot - pv_strike, 0.0), forward_spot
    return max(pv_strike - forward_spot, 0.0), pv_strike


def _to_result(root: RootResult) -> ImpliedVolResult:
    return ImpliedVolResult(
        implied_vol=float(root.root), iterations=root.iterations, converged=root.converged
    )


def implied_volatility(
    target_price: float,
    contract: OptionContract,
    method: RootFindingMethod = RootFindingMethod.NEWTON_RAPHSON,
    *,
    initial_vol: float | None = None,
    vol_bounds: tuple[float, float] = (1.0e-6, 5.0),
    tol: float = 1.0e-8,
    max_iter: int = 100,
    log_timings: bool = False,
) -> ImpliedVolResult:
    """Solve for the Black-Scholes volatility that reproduces ``target_price``.

    Parameters
    ----------
    target_price
        Observed option price per unit.
    contract
        European vanilla contract; its ``volatility`` is only used as the
        default starting guess.
    method
        Root-finding method. Newton-Raphson uses analytic vega and falls
        back to bisection on ``vol_bounds`` when it fails to converge or
        leaves the bounds.
    initial_vol
        Optional starting guess for Newton-Raphson.
    vol_bounds
        Lower/upper bounds for the volatility search interval.
    tol
        Absolute tolerance for the pricing residual.
    max_iter
        Maximum number of iterations.
    log_timings
        When ``True``, emit timing logs for the solver section.

    Notes
    -----
    Vega is reported per 1% volatility; the solver rescales it to a per-1.0
    volatility derivative for the Newton updates.

    Returns
    -------
    ImpliedVolResult
        Solver output including implied volatility, iteration count, and
        convergence status.
    """
    if not isinstance(method, RootFindingMethod):
        raise ConfigurationError(
            f"method must be RootFindingMethod enum, got {type(method).__name__}"
        )
    if contract.exercise_type is not ExerciseType.EUROPEAN:
        raise UnsupportedFeatureError("Implied volatility supports European options only.")
    if contract.category is not OptionCategory.VANILLA:
        raise UnsupportedFeatureError("Implied volatility supports vanilla options only.")
    if contract.time_to_expiry <= 0:
        raise ValidationError("Implied volatility requires time_to_expiry > 0")

    if not np.isfinite(target_price):
        raise ValidationError("target_price must be finite")
    if target_price < 0:
        raise ValidationError("target_price must be non-negative")

    low, high = vol_bounds
    if low <= 0 or high <= 0 or low >= high:
        raise ValidationError("vol_bounds must be positive and satisfy low < high")

    min_price, max_price = _price_bounds(contract)
    if target_price < min_price - tol or target_price > max_price + tol:
        raise ValidationError("target_price is outside no-arbitrage bounds for the provided inputs")

    def f(vol: float) -> float:
        return (
            bsm_price(
                contract.option_type,
                contract.spot,
                contract.strike,
                contract.time_to_expiry,
                contract.risk_free_rate,
                vol,
                contract.dividend_yield,
            )
            - target_price
        )

    def vega_at(vol: float) -> float:
        model = BlackScholesModel(contract.replace(volatility=vol))
        return model.vega() * 100.0  # convert from per-1% to per-1.0 volatility

    if initial_vol is not None:
        initial = float(initial_vol)
    else:
        initial = contract.volatility if contract.volatility > 0 else 0.2
    initial = max(low, min(high, initial))

    with log_timing(logger, "Implied vol solver", log_timings):
        if method is RootFindingMethod.NEWTON_RAPHSON:
            root = newton_raphson(
                f,
                initial,
                fprime=vega_at,
                tol=tol,
                max_iter=max_iter,
                lower_clamp=low,
                clamp_value=max(low, 0.01),
            )
            if not root.converged or not low <= root.root <= high:
                logger.debug("Newton implied vol failed at %.6g; falling back to bisection", root.root)
                root = bisection(f, low, high, tol=tol, max_iter=max_iter)
        elif method is RootFindingMethod.BISECTION:
            root = bisection(f, low, high, tol=tol, max_iter=max_iter)
        else:
            root = brent(f, low, high, tol=tol, max_iter=max_iter)

    result = _to_result(root)
    logger.debug(
        "Implied vol method=%s vol=%.8f iterations=%d converged=%s",
        method.value,
        result.implied_vol,
        result.iterations,
        result.converged,
    )
    return result
