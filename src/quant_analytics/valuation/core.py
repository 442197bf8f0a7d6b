"""Single entry points for pricing an option contract or a multi-leg strategy.

``price_option`` always computes the Black-Scholes baseline with the full
Greek set and the derived analytics, then adds whatever the request asks
for: a CRR lattice price for early exercise, a Monte Carlo estimate when
simulation parameters are given, a stochastic-model price for the supplied
``ModelParameters`` variant and an exotic price for barrier, Asian and
lookback contracts.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
import math

import numpy as np

from ..enums import ExerciseType, OptionCategory
from ..exceptions import ConfigurationError
from ..strategies.legs import StrategySpec
from ..utils import intrinsic_value, log_timing
from .analytics import (
    breakeven,
    max_profit_loss,
    probability_density,
    probability_of_profit,
    risk_metrics,
    spot_scenarios,
    theta_decay,
    vol_scenarios,
)
from .binomial import binomial_price
from .bsm import BlackScholesModel, bsm_price
from .exotics import exotic_price
from .monte_carlo import monte_carlo_price
from .params import (
    BinomialParams,
    BlackScholesParams,
    HestonParams,
    JumpDiffusionParams,
    ModelParameters,
    MonteCarloParams,
    OptionContract,
    SABRParams,
)
from .results import BarrierResult, GreeksSet, LookbackResult, PricingResult, StrategyResult
from .stochastic import heston_price, jump_diffusion_price, sabr_price

__all__ = ["price_option", "price_strategy"]

logger = logging.getLogger(__name__)


def _black_scholes_model_price(contract: OptionContract, _params: BlackScholesParams) -> float:
    return bsm_price(
        contract.option_type,
        contract.spot,
        contract.strike,
        contract.time_to_expiry,
        contract.risk_free_rate,
        contract.volatility,
        contract.dividend_yield,
    )


# ── Implementation registry ─────────────────────────────────────────
# Maps ModelParameters variant → pricer.
_MODEL_REGISTRY: dict[type, Callable[[OptionContract, ModelParameters], float]] = {
    BlackScholesParams: _black_scholes_model_price,
    HestonParams: heston_price,
    SABRParams: sabr_price,
    JumpDiffusionParams: jump_diffusion_price,
}


def _european_vanilla(contract: OptionContract) -> OptionContract:
    """The European vanilla contract underlying ``contract``."""
    if (
        contract.exercise_type is ExerciseType.EUROPEAN
        and contract.category is OptionCategory.VANILLA
    ):
        return contract
    return contract.replace(
        exercise_type=ExerciseType.EUROPEAN,
        category=OptionCategory.VANILLA,
        bermudan_exercise_times=(),
    )


def _model_price(
    contract: OptionContract, model: ModelParameters
) -> tuple[str | None, float | None]:
    pricer = _MODEL_REGISTRY.get(type(model))
    if pricer is None:
        raise ConfigurationError(
            f"model must be one of {[cls.__name__ for cls in _MODEL_REGISTRY]}, "
            f"got {type(model).__name__}"
        )
    if not model.is_valid():
        logger.info("Skipping %s model: invalid parameters %s", model.name, model)
        return None, None
    return model.name, float(pricer(contract, model))


def price_option(
    contract: OptionContract,
    *,
    model: ModelParameters | None = None,
    monte_carlo: MonteCarloParams | None = None,
    binomial: BinomialParams | None = None,
    rng: np.random.Generator | None = None,
    log_timings: bool = False,
) -> PricingResult:
    """Price ``contract`` and derive its full analytics.

    Parameters
    ----------
    contract
        Option to price.
    model
        Optional stochastic-model parameter set. Invalid parameters are
        skipped (logged at INFO) and leave ``model_price`` empty.
    monte_carlo
        When given, a Monte Carlo estimate is added to the result.
    binomial
        Lattice configuration. The lattice runs for American and Bermudan
        exercise, or for any contract when ``binomial`` is given.
    rng
        Random generator for the Monte Carlo run.
    log_timings
        When ``True``, emit timing logs for each pricing stage.

    Returns
    -------
    PricingResult
        ``price`` is the Black-Scholes value of the European vanilla
        contract; every other price is reported alongside it.
    """
    european = _european_vanilla(contract)

    with log_timing(logger, "Black-Scholes baseline", log_timings):
        model_bs = BlackScholesModel(european)
        price = model_bs.present_value()
        greeks = model_bs.greeks()

    intrinsic = intrinsic_value(contract.option_type, contract.spot, contract.strike)

    lattice_price = None
    if binomial is not None or contract.exercise_type is not ExerciseType.EUROPEAN:
        lattice_price = binomial_price(contract, binomial, log_timings=log_timings)

    mc_result = None
    if monte_carlo is not None:
        mc_result = monte_carlo_price(european, monte_carlo, rng=rng, log_timings=log_timings)

    model_name = model_value = None
    if model is not None:
        model_name, model_value = _model_price(european, model)

    exotic_value = barrier_p = extremes = None
    if contract.category is not OptionCategory.VANILLA:
        exotic = exotic_price(contract)
        if isinstance(exotic, BarrierResult):
            exotic_value, barrier_p = exotic.price, exotic.knockout_probability
        elif isinstance(exotic, LookbackResult):
            exotic_value, extremes = exotic.price, (exotic.expected_min, exotic.expected_max)
        else:
            exotic_value = exotic

    with log_timing(logger, "Scenario analytics", log_timings):
        metrics = risk_metrics(
            price=price,
            greeks=greeks,
            spot=contract.spot,
            volatility=contract.volatility,
            time_to_expiry=contract.time_to_expiry,
        )
        spot_grid = spot_scenarios(european)
        vol_grid = vol_scenarios(european)
        decay = theta_decay(european)
        pop = probability_of_profit(european, price)
        density = probability_density(european)

    max_profit, max_loss = max_profit_loss(contract.option_type, contract.strike, price)

    logger.debug(
        "Priced %s %s %s: bs=%.6f binomial=%s mc=%s model=%s exotic=%s",
        contract.exercise_type.value,
        contract.category.value,
        contract.option_type.value,
        price,
        lattice_price,
        None if mc_result is None else mc_result.price,
        model_value,
        exotic_value,
    )
    return PricingResult(
        price=price,
        intrinsic_value=intrinsic,
        time_value=price - intrinsic,
        greeks=greeks,
        risk_metrics=metrics,
        breakeven_points=(breakeven(contract.option_type, contract.strike, price),),
        probability_of_profit=pop,
        probability_density=density,
        spot_scenarios=spot_grid,
        vol_scenarios=vol_grid,
        theta_decay=decay,
        max_profit=max_profit,
        max_loss=max_loss,
        binomial_price=lattice_price,
        monte_carlo=mc_result,
        model_name=model_name,
        model_price=model_value,
        exotic_price=exotic_value,
        barrier_probability=barrier_p,
        lookback_min_max=extremes,
    )


# ── Strategies ──────────────────────────────────────────────────────

_EXPIRY_GRID_POINTS = 3001
_EXPIRY_GRID_SPAN = 3.0
_SLOPE_TOL = 1.0e-9


def _expiry_grid(strategy: StrategySpec, spot: float) -> np.ndarray:
    """Terminal spot grid from 0 to 3x the largest of spot and strikes, strikes included."""
    top = _EXPIRY_GRID_SPAN * max(spot, *strategy.strikes)
    return np.union1d(np.linspace(0.0, top, _EXPIRY_GRID_POINTS), np.asarray(strategy.strikes))


def _breakevens(grid: np.ndarray, pnl: np.ndarray) -> tuple[float, ...]:
    """Terminal spots where the piecewise-linear P&L crosses zero."""
    points: list[float] = []
    for i in range(len(grid) - 1):
        a, b = pnl[i], pnl[i + 1]
        if a == 0.0:
            points.append(float(grid[i]))
        elif a * b < 0.0:
            points.append(float(grid[i] - a * (grid[i + 1] - grid[i]) / (b - a)))
    if pnl[-1] == 0.0:
        points.append(float(grid[-1]))

    # Collapse flat zero stretches to their first point
    unique: list[float] = []
    for p in points:
        if not unique or not math.isclose(p, unique[-1], rel_tol=1e-9, abs_tol=1e-9):
            unique.append(p)
    return tuple(unique)


def price_strategy(
    strategy: StrategySpec,
    spot: float,
    risk_free_rate: float,
    volatility: float,
    dividend_yield: float = 0.0,
    *,
    log_timings: bool = False,
) -> StrategyResult:
    """Value a multi-leg strategy as the quantity-weighted sum of its legs.

    Each leg is priced as a European vanilla under Black-Scholes. The
    underlying position contributes ``S * position`` to the value and
    ``position`` to delta. Breakevens and max profit/loss are read off the
    expiry P&L ``payoff(S_T) - (net_premium + position * S)`` on a terminal
    spot grid that contains every strike; max profit (loss) is unbounded
    when the P&L still rises (falls) at the grid's top edge.
    """
    value = 0.0
    net_premium = 0.0
    greeks = GreeksSet.zero()
    leg_values: list[float] = []

    with log_timing(logger, f"Strategy legs ({len(strategy.legs)})", log_timings):
        for leg in strategy.legs:
            contract = OptionContract(
                option_type=leg.option_type,
                spot=spot,
                strike=leg.strike,
                time_to_expiry=leg.time_to_expiry,
                risk_free_rate=risk_free_rate,
                volatility=volatility,
                dividend_yield=dividend_yield,
            )
            model = BlackScholesModel(contract)
            leg_price = model.present_value()
            leg_value = leg_price * leg.quantity
            leg_values.append(leg_value)
            value += leg_value
            greeks = greeks + model.greeks().scaled(leg.quantity)
            premium = leg_price if leg.premium is None else leg.premium
            net_premium += premium * leg.quantity

    if strategy.underlying_position:
        value += spot * strategy.underlying_position
        greeks = greeks + GreeksSet(
            delta=strategy.underlying_position, gamma=0.0, vega=0.0, theta=0.0, rho=0.0
        )

    grid = _expiry_grid(strategy, spot)
    entry_cost = net_premium + strategy.underlying_position * spot
    pnl = strategy.terminal_payoff(grid) - entry_cost
    top_slope = pnl[-1] - pnl[-2]
    max_profit = math.inf if top_slope > _SLOPE_TOL else float(np.max(pnl))
    max_loss = -math.inf if top_slope < -_SLOPE_TOL else float(np.min(pnl))

    metrics = risk_metrics(
        price=value,
        greeks=greeks,
        spot=spot,
        volatility=volatility,
        time_to_expiry=max(leg.time_to_expiry for leg in strategy.legs),
    )
    logger.debug(
        "Strategy %s legs=%d value=%.6f net_premium=%.6f delta=%.6f",
        strategy.name,
        len(strategy.legs),
        value,
        net_premium,
        greeks.delta,
    )
    return StrategyResult(
        value=float(value),
        greeks=greeks,
        risk_metrics=metrics,
        net_premium=float(net_premium),
        breakeven_points=_breakevens(grid, pnl),
        max_profit=max_profit,
        max_loss=max_loss,
        leg_values=tuple(leg_values),
    )
