"""Enums for option valuation, fixed income and time-value-of-money solving."""

from enum import Enum

__all__ = [
    "OptionType",
    "ExerciseType",
    "OptionCategory",
    "BarrierType",
    "AsianAveraging",
    "PositionSide",
    "VarianceReduction",
    "RootFindingMethod",
    "PaymentTiming",
    "TVMVariable",
    "DayCountConvention",
]


class OptionType(Enum):
    CALL = "call"
    PUT = "put"


class ExerciseType(Enum):
    EUROPEAN = "european"
    AMERICAN = "american"
    BERMUDAN = "bermudan"


class OptionCategory(Enum):
    VANILLA = "vanilla"
    BARRIER = "barrier"
    ASIAN = "asian"
    LOOKBACK = "lookback"


class BarrierType(Enum):
    UP_AND_OUT = "up_and_out"
    UP_AND_IN = "up_and_in"
    DOWN_AND_OUT = "down_and_out"
    DOWN_AND_IN = "down_and_in"

    @property
    def is_up(self) -> bool:
        return self in (BarrierType.UP_AND_OUT, BarrierType.UP_AND_IN)

    @property
    def is_knock_out(self) -> bool:
        return self in (BarrierType.UP_AND_OUT, BarrierType.DOWN_AND_OUT)


class AsianAveraging(Enum):
    ARITHMETIC = "arithmetic"
    GEOMETRIC = "geometric"
    ARITHMETIC_STRIKE = "arithmetic_strike"
    GEOMETRIC_STRIKE = "geometric_strike"


class PositionSide(Enum):
    LONG = "long"
    SHORT = "short"


class VarianceReduction(Enum):
    NONE = "none"
    ANTITHETIC = "antithetic"


class RootFindingMethod(Enum):
    NEWTON_RAPHSON = "newton_raphson"
    BISECTION = "bisection"
    BRENTQ = "brentq"


class PaymentTiming(Enum):
    END = "end"
    BEGIN = "begin"


class TVMVariable(Enum):
    PRESENT_VALUE = "present_value"
    FUTURE_VALUE = "future_value"
    PAYMENT = "payment"
    RATE = "rate"
    PERIODS = "periods"


class DayCountConvention(Enum):
    ACT_360 = "ACT/360"
    ACT_365F = "ACT/365F"
    ACT_365_25 = "ACT/365.25"
    THIRTY_360_US = "30/360 US"
