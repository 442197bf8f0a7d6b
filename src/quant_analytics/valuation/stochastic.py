"""Approximate Heston, SABR and Merton jump-diffusion pricers.

Each pricer reduces to one or more Black-Scholes evaluations with an
adjusted effective volatility and/or drift:

* Heston: flat volatility ``sqrt(theta)`` (the long-run variance level).
* SABR: Hagan et al. (2002) lognormal implied volatility at the forward
  ``F = S exp((r - q) T)``, fed into Black-Scholes.
* Merton: truncated Poisson mixture of Black-Scholes prices, each with
  variance and drift adjusted for ``n`` jumps.

These are an approximation layer, not characteristic-function or FFT
solvers.

References
----------
Hagan, P. S., Kumar, D., Lesniewski, A. S., & Woodward, D. E. (2002).
Managing smile risk. The Best of Wilmott, 1, 249-296.

Merton, R. C. (1976). Option pricing when underlying stock returns are
discontinuous. Journal of Financial Economics, 3(1-2), 125-144.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from ..exceptions import ValidationError
from ..special_functions import factorial, require_finite
from ..utils import forward_price
from .bsm import bsm_price
from .params import HestonParams, JumpDiffusionParams, OptionContract, SABRParams

__all__ = [
    "heston_price",
    "sabr_implied_vol",
    "sabr_price",
    "jump_diffusion_price",
    "MAX_JUMPS",
]

logger = logging.getLogger(__name__)

MAX_JUMPS = 20


def _require_valid(params, label: str) -> None:
    if not params.is_valid():
        raise ValidationError(f"Invalid {label} parameters: {params}")


def _intrinsic_at_expiry(contract: OptionContract) -> float:
    return bsm_price(
        contract.option_type,
        contract.spot,
        contract.strike,
        0.0,
        contract.risk_free_rate,
        contract.volatility,
        contract.dividend_yield,
    )


def heston_price(contract: OptionContract, params: HestonParams) -> float:
    """Black-Scholes price at the Heston long-run volatility ``sqrt(theta)``."""
    _require_valid(params, "Heston")
    effective_vol = math.sqrt(params.theta)
    price = bsm_price(
        contract.option_type,
        contract.spot,
        contract.strike,
        contract.time_to_expiry,
        contract.risk_free_rate,
        effective_vol,
        contract.dividend_yield,
    )
    logger.debug("Heston effective_vol=%.6f price=%.6f", effective_vol, price)
    return price


def sabr_implied_vol(
    strike: float,
    forward: float,
    expiry: float,
    params: SABRParams,
) -> float:
    """Calculate SABR implied volatility.

    Uses the Hagan et al. (2002) asymptotic expansion formula.

    Parameters
    ----------
    strike : float
        Strike price
    forward : float
        Forward price of the underlying
    expiry : float
        Time to expiry in years
    params : SABRParams
        SABR model parameters

    Returns
    -------
    float
        Implied volatility (annualized)

    Notes
    -----
    The formula is valid for strikes not too far from the forward.
    For very deep OTM options, the expansion may break down.
    """
    if expiry <= 0:
        return 0.0
    if strike <= 0 or forward <= 0:
        raise ValidationError("SABR requires positive strike and forward")

    F = forward
    K = strike
    alpha = params.alpha
    beta = params.beta
    rho = params.rho
    nu = params.nu

    fk_beta = (F * K) ** ((1 - beta) / 2)
    log_fk = np.log(F / K)

    correction = (
        1
        + (
            ((1 - beta) ** 2 / 24) * (alpha**2 / fk_beta**2)
            + (rho * beta * nu * alpha) / (4 * fk_beta)
            + ((2 - 3 * rho**2) / 24) * nu**2
        )
        * expiry
    )

    # Handle ATM case
    if abs(K - F) < 1e-10:
        vol_atm = alpha / (F ** (1 - beta)) * correction
        return max(float(vol_atm), 0.0)

    z = (nu / alpha) * fk_beta * log_fk
    if abs(z) < 1e-12:
        z_over_x = 1.0
    else:
        x = np.log((np.sqrt(1 - 2 * rho * z + z**2) + z - rho) / (1 - rho))
        z_over_x = z / x

    factor1 = alpha / fk_beta
    factor2 = 1 + ((1 - beta) ** 2 / 24) * log_fk**2
    factor3 = 1 + ((1 - beta) ** 4 / 1920) * log_fk**4

    vol = factor1 * z_over_x / (factor2 * factor3) * correction

    # Ensure non-negative
    return max(float(vol), 0.0)


def sabr_price(contract: OptionContract, params: SABRParams) -> float:
    """Black-Scholes price at the SABR implied volatility for the contract's strike."""
    _require_valid(params, "SABR")
    if contract.time_to_expiry <= 0:
        return _intrinsic_at_expiry(contract)

    forward = forward_price(
        spot=contract.spot,
        time_to_expiry=contract.time_to_expiry,
        risk_free_rate=contract.risk_free_rate,
        dividend_yield=contract.dividend_yield,
    )
    implied = sabr_implied_vol(contract.strike, forward, contract.time_to_expiry, params)
    price = bsm_price(
        contract.option_type,
        contract.spot,
        contract.strike,
        contract.time_to_expiry,
        contract.risk_free_rate,
        implied,
        contract.dividend_yield,
    )
    logger.debug("SABR forward=%.6f implied_vol=%.6f price=%.6f", forward, implied, price)
    return price


def jump_diffusion_price(
    contract: OptionContract,
    params: JumpDiffusionParams,
    *,
    max_jumps: int = MAX_JUMPS,
) -> float:
    """Merton jump-diffusion price as a truncated Poisson series.

    For ``n = 0..max_jumps`` jumps the Black-Scholes price is evaluated with

    * ``sigma_n = sqrt(sigma^2 + n sigma_J^2 / T)``
    * ``r_n = r - lambda (exp(m_J + sigma_J^2 / 2) - 1) + n ln(1 + m_J) / T``

    and weighted by the Poisson probability ``exp(-lambda T) (lambda T)^n / n!``.
    """
    _require_valid(params, "jump-diffusion")
    if max_jumps < 0:
        raise ValidationError(f"max_jumps must be >= 0, got {max_jumps}")
    if contract.time_to_expiry <= 0:
        return _intrinsic_at_expiry(contract)

    t = contract.time_to_expiry
    lam_t = params.intensity * t
    compensator = params.intensity * (math.exp(params.mean_jump + 0.5 * params.jump_vol**2) - 1)
    log_jump = math.log1p(params.mean_jump)

    price = 0.0
    total_weight = 0.0
    for n in range(max_jumps + 1):
        weight = math.exp(-lam_t) * lam_t**n / require_finite(factorial(n), "factorial")
        sigma_n = math.sqrt(contract.volatility**2 + n * params.jump_vol**2 / t)
        rate_n = contract.risk_free_rate - compensator + n * log_jump / t
        price += weight * bsm_price(
            contract.option_type,
            contract.spot,
            contract.strike,
            t,
            rate_n,
            sigma_n,
            contract.dividend_yield,
        )
        total_weight += weight

    logger.debug(
        "Jump-diffusion terms=%d captured_probability=%.8f price=%.6f",
        max_jumps + 1,
        total_weight,
        price,
    )
    return float(price)
