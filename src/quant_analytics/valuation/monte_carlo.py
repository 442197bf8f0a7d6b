"""Monte Carlo option valuation under geometric Brownian motion.

Terminal prices are sampled exactly,
``S_T = S exp((r - q - sigma^2/2) T + sigma sqrt(T) Z)``, with standard
normal draws produced by the Box-Muller transform from two independent
uniforms. The random source is always an explicit ``numpy.random.Generator``
(injected, or built from ``MonteCarloParams.random_seed``); nothing reads
global random state.

Paths can be split across worker threads. Each worker gets an independent
child generator spawned from the root generator and returns sufficient
statistics (count, sum, sum of squares), which are reduced at the end.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging

import numpy as np
from scipy.stats import norm

from ..enums import VarianceReduction
from ..utils import intrinsic_value, log_timing
from .bsm import bsm_price
from .params import MonteCarloParams, OptionContract
from .results import MonteCarloResult

__all__ = ["monte_carlo_price", "box_muller"]

logger = logging.getLogger(__name__)

_CONFIDENCE_LEVEL = 0.95


def box_muller(rng: np.random.Generator, size: int) -> np.ndarray:
    """Standard normal draws via the Box-Muller transform.

    ``u1`` is drawn from (0, 1] so that ``log(u1)`` is always finite.
    """
    u1 = 1.0 - rng.random(size)
    u2 = rng.random(size)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)


def _warn_if_high_std_error(
    *,
    std_error: float,
    price: float,
    num_samples: int,
    params: MonteCarloParams,
) -> None:
    """Emit a warning log if MC standard error is high relative to the price estimate."""
    if params.std_error_warn_ratio is None:
        return
    scale = max(abs(price), 1.0e-12)
    ratio = std_error / scale
    logger.debug(
        "MC std_error=%.6g ratio=%.6g samples=%d",
        std_error,
        ratio,
        num_samples,
    )
    if ratio > params.std_error_warn_ratio:
        logger.warning(
            "MC standard error high: std_error=%.6g ratio=%.6g (>%.3g) samples=%d",
            std_error,
            ratio,
            params.std_error_warn_ratio,
            num_samples,
        )


def _chunk_statistics(
    contract: OptionContract,
    num_draws: int,
    antithetic: bool,
    rng: np.random.Generator,
) -> tuple[int, float, float]:
    """Simulate ``num_draws`` normals and return ``(n, sum, sum_sq)`` of the samples.

    With antithetic variates each sample is the average of the discounted
    payoffs driven by ``Z`` and ``-Z``, so the pair counts as one
    independent observation.
    """
    if num_draws <= 0:
        return 0, 0.0, 0.0

    t = contract.time_to_expiry
    drift = (contract.risk_free_rate - contract.dividend_yield - 0.5 * contract.volatility**2) * t
    diffusion = contract.volatility * np.sqrt(t)
    discount = np.exp(-contract.risk_free_rate * t)

    z = box_muller(rng, num_draws)
    samples = discount * intrinsic_value(
        contract.option_type, contract.spot * np.exp(drift + diffusion * z), contract.strike
    )
    if antithetic:
        mirrored = discount * intrinsic_value(
            contract.option_type, contract.spot * np.exp(drift - diffusion * z), contract.strike
        )
        samples = 0.5 * (samples + mirrored)

    return int(samples.size), float(samples.sum()), float(np.dot(samples, samples))


def monte_carlo_price(
    contract: OptionContract,
    params: MonteCarloParams | None = None,
    *,
    rng: np.random.Generator | None = None,
    log_timings: bool = False,
) -> MonteCarloResult:
    """Price a European vanilla payoff by Monte Carlo simulation.

    Parameters
    ----------
    contract
        Option to price (exercise style and category are ignored: the
        terminal vanilla payoff is simulated).
    params
        Simulation configuration; defaults to ``MonteCarloParams()``.
    rng
        Random generator to draw from. When ``None`` a generator is created
        from ``params.random_seed``.
    log_timings
        When ``True``, emit timing logs for the simulation.

    Returns
    -------
    MonteCarloResult
        Sample mean of discounted payoffs, its standard error
        ``stdev / sqrt(N)`` over independent observations, the number of
        terminal prices simulated and a 95% confidence interval.
    """
    params = MonteCarloParams() if params is None else params
    antithetic = params.variance_reduction is VarianceReduction.ANTITHETIC

    if contract.is_degenerate:
        price = bsm_price(
            contract.option_type,
            contract.spot,
            contract.strike,
            contract.time_to_expiry,
            contract.risk_free_rate,
            contract.volatility,
            contract.dividend_yield,
        )
        return MonteCarloResult(
            price=price,
            std_error=0.0,
            num_paths=params.num_paths,
            confidence_interval=(price, price),
        )

    root = np.random.default_rng(params.random_seed) if rng is None else rng
    num_draws = -(-params.num_paths // 2) if antithetic else params.num_paths

    with log_timing(logger, f"MC simulation ({params.num_paths} paths)", log_timings):
        if params.num_workers == 1:
            stats = [_chunk_statistics(contract, num_draws, antithetic, root)]
        else:
            chunk_sizes = [
                len(chunk) for chunk in np.array_split(np.arange(num_draws), params.num_workers)
            ]
            children = root.spawn(params.num_workers)
            with ThreadPoolExecutor(max_workers=params.num_workers) as pool:
                stats = list(
                    pool.map(
                        lambda job: _chunk_statistics(contract, job[0], antithetic, job[1]),
                        zip(chunk_sizes, children),
                    )
                )

    n = sum(s[0] for s in stats)
    total = sum(s[1] for s in stats)
    total_sq = sum(s[2] for s in stats)

    price = total / n
    variance = max(total_sq - n * price * price, 0.0) / (n - 1) if n > 1 else 0.0
    std_error = float(np.sqrt(variance / n))
    half_width = float(norm.ppf(0.5 + _CONFIDENCE_LEVEL / 2)) * std_error
    num_paths = 2 * n if antithetic else n

    _warn_if_high_std_error(std_error=std_error, price=price, num_samples=n, params=params)
    logger.debug(
        "MC %s price=%.6f std_error=%.6g paths=%d workers=%d",
        contract.option_type.value,
        price,
        std_error,
        num_paths,
        params.num_workers,
    )
    return MonteCarloResult(
        price=float(price),
        std_error=std_error,
        num_paths=num_paths,
        confidence_interval=(float(price - half_width), float(price + half_width)),
    )
