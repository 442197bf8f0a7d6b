"""Immutable result containers returned by the pricers and the orchestrator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields

import pandas as pd

__all__ = [
    "GreeksSet",
    "RiskMetrics",
    "ScenarioPoint",
    "ThetaDecayPoint",
    "MonteCarloResult",
    "BarrierResult",
    "LookbackResult",
    "PricingResult",
    "StrategyResult",
]


@dataclass(frozen=True, slots=True)
class GreeksSet:
    """Price sensitivities with fixed scaling conventions.

    delta, gamma, speed:
        per 1.0 change in spot.
    vega:
        per 1 volatility point (0.01).
    theta, charm, color:
        per calendar day.
    rho, epsilon:
        per 1% change in the risk-free rate / dividend yield.
    vanna:
        change in delta per 1 volatility point.
    volga:
        change in vega per 1 volatility point.
    zomma:
        change in gamma per 1.0 change in volatility.
    ultima:
        change in volga per 1 volatility point cubed (scaled by 1/10^6).
    """

    delta: float
    gamma: float
    vega: float
    theta: float
    rho: float
    epsilon: float = 0.0
    vanna: float = 0.0
    volga: float = 0.0
    charm: float = 0.0
    color: float = 0.0
    speed: float = 0.0
    zomma: float = 0.0
    ultima: float = 0.0

    @classmethod
    def zero(cls) -> GreeksSet:
        return cls(delta=0.0, gamma=0.0, vega=0.0, theta=0.0, rho=0.0)

    def scaled(self, factor: float) -> GreeksSet:
        """Multiply every sensitivity by ``factor`` (e.g. a signed quantity)."""
        return GreeksSet(**{f.name: getattr(self, f.name) * factor for f in fields(self)})

    def __add__(self, other: GreeksSet) -> GreeksSet:
        if not isinstance(other, GreeksSet):
            return NotImplemented
        return GreeksSet(
            **{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)}
        )

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class RiskMetrics:
    """Parametric risk summary for an option or strategy position."""

    value_at_risk: float
    expected_shortfall: float
    max_drawdown: float
    directional_risk: float
    volatility_risk: float
    time_decay_risk: float
    interest_rate_risk: float
    dividend_risk: float


@dataclass(frozen=True, slots=True)
class ScenarioPoint:
    """Repriced option under a single spot or volatility shock."""

    label: str
    shift: float
    price: float
    delta: float
    gamma: float
    theta: float
    vega: float
    rho: float


@dataclass(frozen=True, slots=True)
class ThetaDecayPoint:
    """Option value at a given number of calendar days before expiry."""

    days_to_expiry: int
    price: float
    theta: float
    time_value: float


@dataclass(frozen=True, slots=True)
class MonteCarloResult:
    """Monte Carlo estimate with its sampling error."""

    price: float
    std_error: float
    num_paths: int
    confidence_interval: tuple[float, float]


@dataclass(frozen=True, slots=True)
class BarrierResult:
    price: float
    knockout_probability: float


@dataclass(frozen=True, slots=True)
class LookbackResult:
    price: float
    expected_min: float
    expected_max: float


@dataclass(frozen=True, slots=True)
class PricingResult:
    """Full output of :func:`quant_analytics.valuation.core.price_option`.

    ``price`` is always the Black-Scholes baseline; model, lattice,
    simulation and exotic prices are reported alongside it when requested.
    """

    price: float
    intrinsic_value: float
    time_value: float
    greeks: GreeksSet
    risk_metrics: RiskMetrics
    breakeven_points: tuple[float, ...]
    probability_of_profit: float
    probability_density: tuple[tuple[float, float], ...]
    spot_scenarios: tuple[ScenarioPoint, ...]
    vol_scenarios: tuple[ScenarioPoint, ...]
    theta_decay: tuple[ThetaDecayPoint, ...]
    max_profit: float
    max_loss: float
    binomial_price: float | None = None
    monte_carlo: MonteCarloResult | None = None
    model_name: str | None = None
    model_price: float | None = None
    exotic_price: float | None = None
    barrier_probability: float | None = None
    lookback_min_max: tuple[float, float] | None = None

    def scenarios_frame(self) -> pd.DataFrame:
        """Spot and volatility scenarios as one DataFrame with a ``kind`` column."""
        rows = [{"kind": "spot", **asdict(p)} for p in self.spot_scenarios]
        rows += [{"kind": "vol", **asdict(p)} for p in self.vol_scenarios]
        return pd.DataFrame(rows)

    def theta_decay_frame(self) -> pd.DataFrame:
        """Theta decay curve indexed by days to expiry."""
        frame = pd.DataFrame([asdict(p) for p in self.theta_decay])
        if frame.empty:
            return frame
        return frame.set_index("days_to_expiry")

    def density_frame(self) -> pd.DataFrame:
        """Risk-neutral terminal density as ``spot`` and ``density`` columns."""
        return pd.DataFrame(list(self.probability_density), columns=["spot", "density"])


@dataclass(frozen=True, slots=True)
class StrategyResult:
    """Aggregated value and risk of a multi-leg position."""

    value: float
    greeks: GreeksSet
    risk_metrics: RiskMetrics
    net_premium: float
    breakeven_points: tuple[float, ...]
    max_profit: float
    max_loss: float
    leg_values: tuple[float, ...]
