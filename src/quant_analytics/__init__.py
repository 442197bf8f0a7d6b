from .valuation import (
    OptionContract,
    price_option,
    price_strategy,
    implied_volatility,
)
from .bonds import BondSpec, bond_analytics, bond_price, yield_to_maturity
from .tvm import TVMProblem, solve, npv, irr, amortization_schedule


__all__ = [
    "OptionContract",
    "price_option",
    "price_strategy",
    "implied_volatility",
    "BondSpec",
    "bond_analytics",
    "bond_price",
    "yield_to_maturity",
    "TVMProblem",
    "solve",
    "npv",
    "irr",
    "amortization_schedule",
]
