from quant_analytics.enums import OptionType
from quant_analytics.valuation import OptionContract


def make_contract(
    option_type: OptionType = OptionType.CALL,
    *,
    spot: float = 100.0,
    strike: float = 100.0,
    time_to_expiry: float = 1.0,
    rate: float = 0.05,
    vol: float = 0.20,
    dividend_yield: float = 0.0,
    **kwargs,
) -> OptionContract:
    """Build an OptionContract with the suite's default market inputs."""
    return OptionContract(
        option_type=option_type,
        spot=spot,
        strike=strike,
        time_to_expiry=time_to_expiry,
        risk_free_rate=rate,
        volatility=vol,
        dividend_yield=dividend_yield,
        **kwargs,
    )


def bump(f, x: float, h: float) -> float:
    """Central finite difference of ``f`` at ``x``."""
    return (f(x + h) - f(x - h)) / (2.0 * h)
