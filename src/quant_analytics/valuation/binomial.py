"""Valuation of European, American and Bermudan options using the binomial option
pricing model of Cox-Ross-Rubinstein.
"""

from __future__ import annotations

import logging

import numpy as np

from ..enums import ExerciseType
from ..exceptions import ArbitrageViolationError
from ..utils import intrinsic_value, log_timing
from .bsm import bsm_price
from .params import BinomialParams, OptionContract

__all__ = ["binomial_price", "crr_parameters"]

logger = logging.getLogger(__name__)


def crr_parameters(
    contract: OptionContract, num_steps: int
) -> tuple[float, float, float, float, float]:
    """Return ``(delta_t, u, d, p, discount)`` for a CRR tree.

    u = exp(sigma sqrt(dt)), d = 1/u, p = (exp((r - q) dt) - d) / (u - d).

    Raises
    ------
    ArbitrageViolationError
        If ``d < exp((r - q) dt) < u`` does not hold, i.e. ``p`` falls
        outside (0, 1). Increase the step count or check the inputs.
    """
    delta_t = contract.time_to_expiry / num_steps
    u = float(np.exp(contract.volatility * np.sqrt(delta_t)))
    d = 1.0 / u
    growth = float(np.exp((contract.risk_free_rate - contract.dividend_yield) * delta_t))
    if not (d < growth < u):
        raise ArbitrageViolationError(
            "Arbitrage condition violated: d < exp((r-q)*dt) < u "
            f"(d={d:.6g}, growth={growth:.6g}, u={u:.6g})"
        )
    p = (growth - d) / (u - d)
    discount = float(np.exp(-contract.risk_free_rate * delta_t))
    return delta_t, u, d, p, discount


def _exercise_steps(contract: OptionContract, num_steps: int, delta_t: float) -> frozenset[int]:
    """Tree steps (0..num_steps-1) at which early exercise is allowed."""
    if contract.exercise_type is ExerciseType.AMERICAN:
        return frozenset(range(num_steps))
    if contract.exercise_type is ExerciseType.BERMUDAN:
        steps = {int(round(t / delta_t)) for t in contract.bermudan_exercise_times}
        return frozenset(s for s in steps if 0 < s < num_steps)
    return frozenset()


def _deterministic_value(contract: OptionContract, num_steps: int) -> float:
    """Zero-volatility value: best discounted intrinsic along the forward path."""
    if contract.exercise_type is ExerciseType.EUROPEAN or contract.time_to_expiry <= 0:
        return bsm_price(
            contract.option_type,
            contract.spot,
            contract.strike,
            contract.time_to_expiry,
            contract.risk_free_rate,
            contract.volatility,
            contract.dividend_yield,
        )
    delta_t = contract.time_to_expiry / num_steps
    allowed = _exercise_steps(contract, num_steps, delta_t) | {num_steps}
    times = np.array(sorted(allowed), dtype=float) * delta_t
    carry = contract.risk_free_rate - contract.dividend_yield
    path = contract.spot * np.exp(carry * times)
    discounted = np.exp(-contract.risk_free_rate * times) * intrinsic_value(
        contract.option_type, path, contract.strike
    )
    return float(np.max(discounted))


def binomial_price(
    contract: OptionContract,
    params: BinomialParams | None = None,
    *,
    log_timings: bool = False,
) -> float:
    """Price ``contract`` on a recombining CRR lattice.

    Terminal payoffs across ``num_steps + 1`` nodes are rolled back with the
    discounted risk-neutral expectation. At steps where exercise is allowed
    (every step for American, the steps nearest the given exercise times for
    Bermudan) each node takes ``max(intrinsic, continuation)``.

    Parameters
    ----------
    contract
        Option to price. Only vanilla payoffs are supported on the lattice;
        the contract's category is ignored.
    params
        Tree configuration; defaults to ``BinomialParams()``.
    log_timings
        When ``True``, emit timing logs for the backward induction.

    Returns
    -------
    float
        Root-node value.
    """
    params = BinomialParams() if params is None else params
    num_steps = params.num_steps

    if contract.is_degenerate:
        return _deterministic_value(contract, num_steps)

    delta_t, u, _d, p, discount = crr_parameters(contract, num_steps)
    log_u = np.log(u)
    exercise_steps = _exercise_steps(contract, num_steps, delta_t)

    with log_timing(logger, f"CRR backward induction ({num_steps} steps)", log_timings):
        # Node j at step i has j down moves: S * u^(i - 2j).
        j = np.arange(num_steps + 1)
        spots = contract.spot * np.exp(log_u * (num_steps - 2 * j))
        values = intrinsic_value(contract.option_type, spots, contract.strike)

        for i in range(num_steps - 1, -1, -1):
            values = discount * (p * values[:-1] + (1.0 - p) * values[1:])
            if i in exercise_steps:
                node_spots = contract.spot * np.exp(log_u * (i - 2 * np.arange(i + 1)))
                exercise = intrinsic_value(contract.option_type, node_spots, contract.strike)
                values = np.maximum(values, exercise)

    value = float(values[0])
    logger.debug(
        "CRR %s %s steps=%d p=%.6f value=%.6f",
        contract.exercise_type.value,
        contract.option_type.value,
        num_steps,
        p,
        value,
    )
    return value
