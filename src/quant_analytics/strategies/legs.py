"""Multi-leg option strategy specifications and standard strategy builders."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..enums import OptionType, PositionSide
from ..exceptions import ConfigurationError, ValidationError
from ..utils import intrinsic_value

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


def _leg_float(name: str, value) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"StrategyLeg.{name} must be numeric") from exc
    if not np.isfinite(out):
        raise ValidationError(f"StrategyLeg.{name} must be finite")
    return out


@dataclass(frozen=True, slots=True)
class StrategyLeg:
    """One vanilla European option leg.

    Attributes
    ==========
    option_type:
        CALL or PUT.
    strike:
        Strike price (> 0).
    time_to_expiry:
        Time to expiration in years (>= 0).
    quantity:
        Signed number of contracts: positive is long, negative is short.
    premium:
        Price paid (or received) per contract. When None the leg's model
        value at pricing time is used.
    """

    option_type: OptionType
    strike: float
    time_to_expiry: float
    quantity: float = 1.0
    premium: float | None = None

    def __post_init__(self) -> None:
        if isinstance(self.option_type, str):
            object.__setattr__(self, "option_type", OptionType(self.option_type))
        if not isinstance(self.option_type, OptionType):
            raise ConfigurationError(
                f"option_type must be OptionType enum, got {type(self.option_type).__name__}"
            )
        for name in ("strike", "time_to_expiry", "quantity"):
            object.__setattr__(self, name, _leg_float(name, getattr(self, name)))
        if self.premium is not None:
            object.__setattr__(self, "premium", _leg_float("premium", self.premium))

        if self.strike <= 0:
            raise ValidationError(f"StrategyLeg.strike must be positive, got {self.strike}")
        if self.time_to_expiry < 0:
            raise ValidationError("StrategyLeg.time_to_expiry must be >= 0")
        if self.quantity == 0:
            raise ValidationError("StrategyLeg.quantity must be non-zero")
        if self.premium is not None and self.premium < 0:
            raise ValidationError("StrategyLeg.premium must be non-negative")


@dataclass(frozen=True, slots=True)
class StrategySpec:
    """A basket of option legs plus an optional position in the underlying.

    Notes
    -----
    Each leg is its own contract, so the strategy value and Greeks are the
    quantity-weighted sums over the legs. ``underlying_position`` adds
    ``S * position`` to the value and ``position`` to delta.
    """

    legs: tuple[StrategyLeg, ...]
    underlying_position: float = 0.0
    name: str = "custom"

    def __post_init__(self) -> None:
        object.__setattr__(self, "legs", tuple(self.legs))
        if not self.legs:
            raise ValidationError("StrategySpec requires at least one leg")
        if not all(isinstance(leg, StrategyLeg) for leg in self.legs):
            raise ConfigurationError("StrategySpec.legs must contain StrategyLeg instances")

    @property
    def strikes(self) -> tuple[float, ...]:
        return tuple(sorted({leg.strike for leg in self.legs}))

    def terminal_payoff(self, spot: np.ndarray | float) -> np.ndarray:
        """Vectorized value at expiry as a function of terminal spot.

        Every leg is evaluated at its own intrinsic value, i.e. as if all
        legs expired together.
        """
        s = np.asarray(spot, dtype=float)
        payoff = self.underlying_position * s
        for leg in self.legs:
            payoff = payoff + leg.quantity * intrinsic_value(leg.option_type, s, leg.strike)
        return payoff


def _sided(legs: list[StrategyLeg], side: PositionSide) -> tuple[StrategyLeg, ...]:
    if not isinstance(side, PositionSide):
        raise ConfigurationError(f"side must be PositionSide enum, got {type(side).__name__}")
    if side is PositionSide.SHORT:
        return tuple(
            StrategyLeg(leg.option_type, leg.strike, leg.time_to_expiry, -leg.quantity, leg.premium)
            for leg in legs
        )
    return tuple(legs)


def _check_ordered(*strikes: float) -> None:
    if any(a >= b for a, b in zip(strikes, strikes[1:])):
        raise ValidationError(f"Strikes must be strictly increasing, got {strikes}")


def long_call(strike: float, time_to_expiry: float, *, quantity: float = 1.0) -> StrategySpec:
    return StrategySpec(
        legs=(StrategyLeg(OptionType.CALL, strike, time_to_expiry, quantity),), name="long_call"
    )


def long_put(strike: float, time_to_expiry: float, *, quantity: float = 1.0) -> StrategySpec:
    return StrategySpec(
        legs=(StrategyLeg(OptionType.PUT, strike, time_to_expiry, quantity),), name="long_put"
    )


def bull_call_spread(
    low_strike: float, high_strike: float, time_to_expiry: float
) -> StrategySpec:
    """Long call at ``low_strike``, short call at ``high_strike``."""
    _check_ordered(low_strike, high_strike)
    return StrategySpec(
        legs=(
            StrategyLeg(OptionType.CALL, low_strike, time_to_expiry, 1.0),
            StrategyLeg(OptionType.CALL, high_strike, time_to_expiry, -1.0),
        ),
        name="bull_call_spread",
    )


def bear_put_spread(low_strike: float, high_strike: float, time_to_expiry: float) -> StrategySpec:
    """Long put at ``high_strike``, short put at ``low_strike``."""
    _check_ordered(low_strike, high_strike)
    return StrategySpec(
        legs=(
            StrategyLeg(OptionType.PUT, high_strike, time_to_expiry, 1.0),
            StrategyLeg(OptionType.PUT, low_strike, time_to_expiry, -1.0),
        ),
        name="bear_put_spread",
    )


def straddle(
    strike: float, time_to_expiry: float, *, side: PositionSide = PositionSide.LONG
) -> StrategySpec:
    legs = [
        StrategyLeg(OptionType.CALL, strike, time_to_expiry, 1.0),
        StrategyLeg(OptionType.PUT, strike, time_to_expiry, 1.0),
    ]
    return StrategySpec(legs=_sided(legs, side), name="straddle")


def strangle(
    put_strike: float,
    call_strike: float,
    time_to_expiry: float,
    *,
    side: PositionSide = PositionSide.LONG,
) -> StrategySpec:
    """Long OTM put plus long OTM call (``put_strike < call_strike``)."""
    _check_ordered(put_strike, call_strike)
    legs = [
        StrategyLeg(OptionType.PUT, put_strike, time_to_expiry, 1.0),
        StrategyLeg(OptionType.CALL, call_strike, time_to_expiry, 1.0),
    ]
    return StrategySpec(legs=_sided(legs, side), name="strangle")


def iron_condor(
    strikes: tuple[float, float, float, float],
    time_to_expiry: float,
    *,
    side: PositionSide = PositionSide.SHORT,
) -> StrategySpec:
    """Four-leg condor built from a put spread and a call spread.

    Notes
    -----
    With strikes ordered ``K1 < K2 < K3 < K4`` the *long* condor is

    - put spread:   +put(K2) - put(K1)
    - call spread:  +call(K3) - call(K4)

    The default ``side=SHORT`` negates every leg, which is the usual
    credit iron condor (sell the inner strikes, buy the wings).
    """
    k1, k2, k3, k4 = strikes
    _check_ordered(k1, k2, k3, k4)
    legs = [
        StrategyLeg(OptionType.PUT, k1, time_to_expiry, -1.0),
        StrategyLeg(OptionType.PUT, k2, time_to_expiry, +1.0),
        StrategyLeg(OptionType.CALL, k3, time_to_expiry, +1.0),
        StrategyLeg(OptionType.CALL, k4, time_to_expiry, -1.0),
    ]
    return StrategySpec(legs=_sided(legs, side), name="iron_condor")


def covered_call(strike: float, time_to_expiry: float, *, shares: float = 1.0) -> StrategySpec:
    """Long ``shares`` of the underlying, short as many calls."""
    return StrategySpec(
        legs=(StrategyLeg(OptionType.CALL, strike, time_to_expiry, -shares),),
        underlying_position=shares,
        name="covered_call",
    )


def protective_put(strike: float, time_to_expiry: float, *, shares: float = 1.0) -> StrategySpec:
    """Long ``shares`` of the underlying, long as many puts."""
    return StrategySpec(
        legs=(StrategyLeg(OptionType.PUT, strike, time_to_expiry, shares),),
        underlying_position=shares,
        name="protective_put",
    )
