"""Option valuation and pricing engines.

This module provides a unified interface for pricing vanilla and exotic options
using Black-Scholes-Merton analytical formulas, a Cox-Ross-Rubinstein binomial
lattice, Monte Carlo simulation and approximate stochastic-volatility and
jump-diffusion models.

Public API
----------
Orchestration:
    price_option: Full pricing request for one contract
    price_strategy: Aggregated value and risk of a multi-leg strategy

Contract and parameter classes:
    OptionContract: Single option contract with flat market inputs
    BlackScholesParams, HestonParams, SABRParams, JumpDiffusionParams:
        ModelParameters variants
    MonteCarloParams: Configuration for Monte Carlo pricing
    BinomialParams: Configuration for Binomial tree pricing

Pricers:
    BlackScholesModel, bsm_price, bsm_greeks
    binomial_price
    monte_carlo_price
    heston_price, sabr_price, sabr_implied_vol, jump_diffusion_price
    barrier_price, asian_price, lookback_price
    implied_volatility
"""

from .core import price_option, price_strategy
from .params import (
    OptionContract,
    BlackScholesParams,
    HestonParams,
    SABRParams,
    JumpDiffusionParams,
    ModelParameters,
    MonteCarloParams,
    BinomialParams,
)
from .results import (
    GreeksSet,
    RiskMetrics,
    ScenarioPoint,
    ThetaDecayPoint,
    MonteCarloResult,
    BarrierResult,
    LookbackResult,
    PricingResult,
    StrategyResult,
)
from .bsm import BlackScholesModel, bsm_price, bsm_greeks
from .binomial import binomial_price
from .monte_carlo import monte_carlo_price
from .stochastic import heston_price, sabr_price, sabr_implied_vol, jump_diffusion_price
from .exotics import barrier_price, asian_price, lookback_price, exotic_price
from .implied_volatility import ImpliedVolResult, implied_volatility

__all__ = [
    # Orchestration
    "price_option",
    "price_strategy",
    # Contract and parameter classes
    "OptionContract",
    "BlackScholesParams",
    "HestonParams",
    "SABRParams",
    "JumpDiffusionParams",
    "ModelParameters",
    "MonteCarloParams",
    "BinomialParams",
    # Results
    "GreeksSet",
    "RiskMetrics",
    "ScenarioPoint",
    "ThetaDecayPoint",
    "MonteCarloResult",
    "BarrierResult",
    "LookbackResult",
    "PricingResult",
    "StrategyResult",
    # Pricers
    "BlackScholesModel",
    "bsm_price",
    "bsm_greeks",
    "binomial_price",
    "monte_carlo_price",
    "heston_price",
    "sabr_price",
    "sabr_implied_vol",
    "jump_diffusion_price",
    "barrier_price",
    "asian_price",
    "lookback_price",
    "exotic_price",
    # Implied volatility
    "ImpliedVolResult",
    "implied_volatility",
]
