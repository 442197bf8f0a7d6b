"""Black-Scholes-Merton option valuation with continuous dividend yield.

Normal probabilities come from :mod:`quant_analytics.special_functions`
(Abramowitz-Stegun error function). All Greeks are closed-form partial
derivatives of the price; see :class:`~quant_analytics.valuation.results.GreeksSet`
for the scaling of each one.

When volatility or time to expiry is zero the price collapses to the
discounted forward intrinsic value, delta to ``±e^{-qT}`` (in the money),
``0`` (out of the money) or half of that at the money, and every other
Greek to zero.
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np

from ..enums import OptionType
from ..special_functions import norm_cdf, norm_pdf
from .params import OptionContract
from .results import GreeksSet

__all__ = ["BlackScholesModel", "bsm_price", "bsm_greeks"]


class _BSMInputs(NamedTuple):
    """Pre-computed inputs shared across all BSM Greek calculations."""

    spot: float
    strike: float
    volatility: float
    time_to_maturity: float
    rate: float
    dividend_yield: float
    df_r: float
    df_q: float
    d1: float
    d2: float

    @property
    def degenerate(self) -> bool:
        return self.time_to_maturity <= 0 or self.volatility <= 0


def _calculate_d_values(
    spot: float,
    strike: float,
    time_to_maturity: float,
    volatility: float,
    df_r: float,
    df_q: float,
) -> tuple[float, float]:
    """Calculate d1 and d2 for BSM model.

    Parameters
    ----------
    spot
        Current spot price.
    strike
        Strike price.
    time_to_maturity
        Time to maturity in years.
    volatility
        Volatility (annualized).
    df_r
        Risk-free discount factor.
    df_q
        Dividend discount factor.

    Returns
    -------
    tuple[float, float]
        Pair ``(d1, d2)``.
    """
    forward = spot * df_q / df_r
    denominator = volatility * np.sqrt(max(time_to_maturity, 0.0))

    if denominator < 1e-300:
        # Deterministic limit.
        # d1 = d2 = +inf when forward > strike  ->  N(d) = 1
        # d1 = d2 = -inf when forward < strike  ->  N(d) = 0
        # d1 = d2 = 0    when forward == strike ->  N(d) = 0.5
        if forward > strike:
            return np.inf, np.inf
        elif forward < strike:
            return -np.inf, -np.inf
        else:
            return 0.0, 0.0

    numerator = np.log(forward / strike) + 0.5 * volatility**2 * time_to_maturity
    d1 = numerator / denominator
    d2 = d1 - denominator

    return float(d1), float(d2)


def _bsm_inputs(
    spot: float,
    strike: float,
    time_to_expiry: float,
    risk_free_rate: float,
    volatility: float,
    dividend_yield: float,
) -> _BSMInputs:
    t = max(float(time_to_expiry), 0.0)
    df_r = float(np.exp(-risk_free_rate * t))
    df_q = float(np.exp(-dividend_yield * t))
    d1, d2 = _calculate_d_values(spot, strike, t, volatility, df_r, df_q)
    return _BSMInputs(
        spot=float(spot),
        strike=float(strike),
        volatility=float(volatility),
        time_to_maturity=t,
        rate=float(risk_free_rate),
        dividend_yield=float(dividend_yield),
        df_r=df_r,
        df_q=df_q,
        d1=d1,
        d2=d2,
    )


def _price(option_type: OptionType, inp: _BSMInputs) -> float:
    if option_type is OptionType.CALL:
        value = inp.spot * inp.df_q * norm_cdf(inp.d1) - inp.strike * inp.df_r * norm_cdf(inp.d2)
    else:  # PUT
        value = inp.strike * inp.df_r * norm_cdf(-inp.d2) - inp.spot * inp.df_q * norm_cdf(-inp.d1)
    # The polynomial erf can leave a tiny negative residue far out of the money.
    return max(float(value), 0.0)


def bsm_price(
    option_type: OptionType,
    spot: float,
    strike: float,
    time_to_expiry: float,
    risk_free_rate: float,
    volatility: float,
    dividend_yield: float = 0.0,
) -> float:
    """Black-Scholes-Merton price from plain market inputs.

    Used by the pricers that reduce to one or more Black-Scholes evaluations
    with adjusted volatility or drift (stochastic extensions, exotics).
    """
    inp = _bsm_inputs(spot, strike, time_to_expiry, risk_free_rate, volatility, dividend_yield)
    return _price(option_type, inp)


class BlackScholesModel:
    """Black-Scholes-Merton valuation of a European :class:`OptionContract`."""

    def __init__(self, contract: OptionContract) -> None:
        self.contract = contract
        self._inp = _bsm_inputs(
            contract.spot,
            contract.strike,
            contract.time_to_expiry,
            contract.risk_free_rate,
            contract.volatility,
            contract.dividend_yield,
        )

    @property
    def _is_call(self) -> bool:
        return self.contract.option_type is OptionType.CALL

    def present_value(self) -> float:
        """Calculate present value using BSM formula."""
        return _price(self.contract.option_type, self._inp)

    def delta(self) -> float:
        """Analytical delta.

        delta = df_q * N(d1) for calls
        delta = -df_q * N(-d1) for puts

        In the degenerate case N(d1) is 1, 0 or 0.5 depending on the
        forward's position relative to the strike.
        """
        inp = self._inp
        if self._is_call:
            return inp.df_q * norm_cdf(inp.d1)
        return -inp.df_q * norm_cdf(-inp.d1)

    def gamma(self) -> float:
        """Analytical gamma: df_q * N'(d1) / (S * sigma * sqrt(T))."""
        inp = self._inp
        if inp.degenerate:
            return 0.0
        sqrt_t = np.sqrt(inp.time_to_maturity)
        return inp.df_q * norm_pdf(inp.d1) / (inp.spot * inp.volatility * sqrt_t)

    def _raw_vega(self) -> float:
        inp = self._inp
        return inp.spot * inp.df_q * norm_pdf(inp.d1) * np.sqrt(inp.time_to_maturity)

    def vega(self) -> float:
        """Analytical vega per 1 volatility point.

        vega = S * df_q * N'(d1) * sqrt(T) / 100
        """
        if self._inp.degenerate:
            return 0.0
        return self._raw_vega() / 100

    def theta(self) -> float:
        """Analytical theta per calendar day.

        For call:
            theta = -(S * N'(d1) * sigma * e^(-qT)) / (2 * sqrt(T))
                    - r * K * e^(-rT) * N(d2)
                    + q * S * e^(-qT) * N(d1)

        For put:
            theta = -(S * N'(d1) * sigma * e^(-qT)) / (2 * sqrt(T))
                    + r * K * e^(-rT) * N(-d2)
                    - q * S * e^(-qT) * N(-d1)
        """
        inp = self._inp
        if inp.degenerate:
            return 0.0

        term1 = -(
            inp.spot
            * inp.df_q
            * norm_pdf(inp.d1)
            * inp.volatility
            / (2 * np.sqrt(inp.time_to_maturity))
        )

        if self._is_call:
            term2 = -inp.rate * inp.strike * inp.df_r * norm_cdf(inp.d2)
            term3 = inp.dividend_yield * inp.spot * inp.df_q * norm_cdf(inp.d1)
        else:  # PUT
            term2 = inp.rate * inp.strike * inp.df_r * norm_cdf(-inp.d2)
            term3 = -inp.dividend_yield * inp.spot * inp.df_q * norm_cdf(-inp.d1)

        return (term1 + term2 + term3) / 365

    def rho(self) -> float:
        """Analytical rho per 1% change in the risk-free rate.

        For call: rho = K * T * e^(-rT) * N(d2) / 100
        For put:  rho = -K * T * e^(-rT) * N(-d2) / 100
        """
        inp = self._inp
        if inp.degenerate:
            return 0.0
        if self._is_call:
            return inp.strike * inp.time_to_maturity * inp.df_r * norm_cdf(inp.d2) / 100
        return -inp.strike * inp.time_to_maturity * inp.df_r * norm_cdf(-inp.d2) / 100

    def epsilon(self) -> float:
        """Sensitivity to the dividend yield per 1% change.

        For call: epsilon = -S * T * e^(-qT) * N(d1) / 100
        For put:  epsilon = S * T * e^(-qT) * N(-d1) / 100
        """
        inp = self._inp
        if inp.degenerate:
            return 0.0
        if self._is_call:
            return -inp.spot * inp.time_to_maturity * inp.df_q * norm_cdf(inp.d1) / 100
        return inp.spot * inp.time_to_maturity * inp.df_q * norm_cdf(-inp.d1) / 100

    def vanna(self) -> float:
        """d(delta)/d(sigma) per volatility point: -df_q * N'(d1) * d2 / sigma / 100."""
        inp = self._inp
        if inp.degenerate:
            return 0.0
        return -inp.df_q * norm_pdf(inp.d1) * inp.d2 / inp.volatility / 100

    def volga(self) -> float:
        """d(vega)/d(sigma) per volatility point squared: vega * d1 * d2 / sigma / 10000."""
        inp = self._inp
        if inp.degenerate:
            return 0.0
        return self._raw_vega() * inp.d1 * inp.d2 / (inp.volatility * 10000)

    def _charm_core(self) -> float:
        inp = self._inp
        sigma_sqrt_t = inp.volatility * np.sqrt(inp.time_to_maturity)
        return (
            inp.df_q
            * norm_pdf(inp.d1)
            * (2 * (inp.rate - inp.dividend_yield) * inp.time_to_maturity - inp.d2 * sigma_sqrt_t)
            / (2 * inp.time_to_maturity * sigma_sqrt_t)
        )

    def charm(self) -> float:
        """Delta decay per calendar day (-d(delta)/dT).

        For call: q * e^(-qT) * N(d1) - core
        For put:  -q * e^(-qT) * N(-d1) - core

        with core = e^(-qT) N'(d1) (2(r-q)T - d2 sigma sqrt(T)) / (2 T sigma sqrt(T)).
        """
        inp = self._inp
        if inp.degenerate:
            return 0.0
        if self._is_call:
            carry = inp.dividend_yield * inp.df_q * norm_cdf(inp.d1)
        else:
            carry = -inp.dividend_yield * inp.df_q * norm_cdf(-inp.d1)
        return (carry - self._charm_core()) / 365

    def color(self) -> float:
        """Gamma decay per calendar day."""
        inp = self._inp
        if inp.degenerate:
            return 0.0
        t = inp.time_to_maturity
        sigma_sqrt_t = inp.volatility * np.sqrt(t)
        bracket = (
            2 * inp.dividend_yield * t
            + 1
            + (2 * (inp.rate - inp.dividend_yield) * t - inp.d2 * sigma_sqrt_t)
            * inp.d1
            / sigma_sqrt_t
        )
        return (
            inp.df_q * norm_pdf(inp.d1) / (2 * inp.spot * t * sigma_sqrt_t) * bracket / 365
        )

    def speed(self) -> float:
        """d(gamma)/dS: -gamma / S * (d1 / (sigma sqrt(T)) + 1)."""
        inp = self._inp
        if inp.degenerate:
            return 0.0
        sigma_sqrt_t = inp.volatility * np.sqrt(inp.time_to_maturity)
        return -self.gamma() / inp.spot * (inp.d1 / sigma_sqrt_t + 1)

    def zomma(self) -> float:
        """d(gamma)/d(sigma): gamma * (d1 d2 - 1) / sigma."""
        inp = self._inp
        if inp.degenerate:
            return 0.0
        return self.gamma() * (inp.d1 * inp.d2 - 1) / inp.volatility

    def ultima(self) -> float:
        """d(volga)/d(sigma) per volatility point cubed.

        ultima = -vega / sigma^2 * (d1 d2 (1 - d1 d2) + d1^2 + d2^2) / 10^6
        """
        inp = self._inp
        if inp.degenerate:
            return 0.0
        d1, d2 = inp.d1, inp.d2
        return (
            -self._raw_vega()
            / inp.volatility**2
            * (d1 * d2 * (1 - d1 * d2) + d1 * d1 + d2 * d2)
            / 1.0e6
        )

    def greeks(self) -> GreeksSet:
        """Full first-, second- and third-order Greek set."""
        return GreeksSet(
            delta=float(self.delta()),
            gamma=float(self.gamma()),
            vega=float(self.vega()),
            theta=float(self.theta()),
            rho=float(self.rho()),
            epsilon=float(self.epsilon()),
            vanna=float(self.vanna()),
            volga=float(self.volga()),
            charm=float(self.charm()),
            color=float(self.color()),
            speed=float(self.speed()),
            zomma=float(self.zomma()),
            ultima=float(self.ultima()),
        )


def bsm_greeks(contract: OptionContract) -> GreeksSet:
    """Convenience wrapper returning ``BlackScholesModel(contract).greeks()``."""
    return BlackScholesModel(contract).greeks()
