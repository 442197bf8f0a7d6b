"""Option strategy specifications.

This package contains lightweight *strategy specs* (spreads, straddles,
condors, covered positions) built from vanilla European legs. Valuation of a
spec lives in :func:`quant_analytics.valuation.price_strategy`.
"""

from .legs import (
    StrategyLeg,
    StrategySpec,
    long_call,
    long_put,
    bull_call_spread,
    bear_put_spread,
    straddle,
    strangle,
    iron_condor,
    covered_call,
    protective_put,
)

__all__ = [
    "StrategyLeg",
    "StrategySpec",
    "long_call",
    "long_put",
    "bull_call_spread",
    "bear_put_spread",
    "straddle",
    "strangle",
    "iron_condor",
    "covered_call",
    "protective_put",
]
