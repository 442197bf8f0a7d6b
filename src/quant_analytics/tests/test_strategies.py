"""Tests for strategy specs and multi-leg strategy valuation."""

import math

import numpy as np
import pytest

from quant_analytics.enums import OptionType, PositionSide
from quant_analytics.exceptions import ConfigurationError, ValidationError
from quant_analytics.strategies import (
    StrategyLeg,
    StrategySpec,
    bear_put_spread,
    bull_call_spread,
    covered_call,
    iron_condor,
    long_call,
    protective_put,
    straddle,
    strangle,
)
from quant_analytics.valuation import BlackScholesModel, price_strategy

from quant_analytics.tests.helpers import make_contract

SPOT = 100.0
RATE = 0.05
VOL = 0.2


def _bs(option_type: OptionType, strike: float, t: float = 1.0) -> float:
    return BlackScholesModel(
        make_contract(option_type, strike=strike, time_to_expiry=t)
    ).present_value()


def _price(strategy: StrategySpec):
    return price_strategy(strategy, SPOT, RATE, VOL)


class TestStrategyLegs:
    def test_terminal_payoff_of_condor(self):
        condor = iron_condor((80.0, 90.0, 110.0, 120.0), 1.0)
        payoff = condor.terminal_payoff(np.array([70.0, 85.0, 100.0, 115.0, 130.0]))
        # Short condor: lose the wing width outside, nothing inside
        assert np.allclose(payoff, [-10.0, -5.0, 0.0, -5.0, -10.0])

    def test_long_side_negates_short(self):
        short = iron_condor((80.0, 90.0, 110.0, 120.0), 1.0)
        long_ = iron_condor((80.0, 90.0, 110.0, 120.0), 1.0, side=PositionSide.LONG)
        for a, b in zip(short.legs, long_.legs):
            assert a.quantity == -b.quantity

    def test_strikes_sorted_and_unique(self):
        assert straddle(100.0, 1.0).strikes == (100.0,)
        assert strangle(90.0, 110.0, 1.0).strikes == (90.0, 110.0)

    def test_unordered_strikes_rejected(self):
        with pytest.raises(ValidationError):
            bull_call_spread(105.0, 95.0, 1.0)
        with pytest.raises(ValidationError):
            iron_condor((80.0, 110.0, 90.0, 120.0), 1.0)

    def test_leg_validation(self):
        with pytest.raises(ValidationError):
            StrategyLeg(OptionType.CALL, 100.0, 1.0, quantity=0.0)
        with pytest.raises(ValidationError):
            StrategyLeg(OptionType.CALL, -5.0, 1.0)
        with pytest.raises(ConfigurationError):
            StrategyLeg(3, 100.0, 1.0)

    def test_leg_coerces_numbers(self):
        leg = StrategyLeg(OptionType.PUT, 100, "0.5", quantity=-2, premium=3)
        assert isinstance(leg.strike, float)
        assert leg.time_to_expiry == 0.5
        assert leg.quantity == -2.0
        assert leg.premium == 3.0

    @pytest.mark.parametrize(
        "kwargs",
        [{"strike": float("nan")}, {"quantity": float("inf")}, {"premium": float("nan")}],
    )
    def test_leg_rejects_non_finite(self, kwargs):
        base = {"option_type": OptionType.CALL, "strike": 100.0, "time_to_expiry": 1.0}
        base.update(kwargs)
        with pytest.raises(ValidationError):
            StrategyLeg(**base)

    def test_leg_rejects_non_numeric(self):
        with pytest.raises(ConfigurationError):
            StrategyLeg(OptionType.CALL, "abc", 1.0)
        with pytest.raises(ConfigurationError):
            StrategyLeg(OptionType.CALL, 100.0, 1.0, quantity=None)

    def test_empty_strategy_rejected(self):
        with pytest.raises(ValidationError):
            StrategySpec(legs=())

    def test_side_must_be_enum(self):
        with pytest.raises(ConfigurationError):
            straddle(100.0, 1.0, side="long")


class TestPriceStrategy:
    def test_single_leg_matches_option(self):
        result = _price(long_call(100.0, 1.0))
        assert np.isclose(result.value, _bs(OptionType.CALL, 100.0))
        assert np.isclose(result.net_premium, result.value)
        assert result.max_profit == math.inf
        assert np.isclose(result.max_loss, -result.value)
        assert result.breakeven_points == (pytest.approx(100.0 + result.value),)

    def test_bull_call_spread(self):
        result = _price(bull_call_spread(95.0, 105.0, 1.0))
        debit = _bs(OptionType.CALL, 95.0) - _bs(OptionType.CALL, 105.0)
        assert np.isclose(result.value, debit)
        assert np.isclose(result.max_profit, 10.0 - debit)
        assert np.isclose(result.max_loss, -debit)
        assert result.breakeven_points == (pytest.approx(95.0 + debit),)
        assert 0.0 < result.greeks.delta < 1.0
        assert len(result.leg_values) == 2

    def test_bear_put_spread(self):
        result = _price(bear_put_spread(95.0, 105.0, 1.0))
        debit = _bs(OptionType.PUT, 105.0) - _bs(OptionType.PUT, 95.0)
        assert np.isclose(result.max_profit, 10.0 - debit)
        assert np.isclose(result.max_loss, -debit)
        assert result.greeks.delta < 0.0

    def test_long_straddle(self):
        result = _price(straddle(100.0, 1.0))
        premium = _bs(OptionType.CALL, 100.0) + _bs(OptionType.PUT, 100.0)
        assert np.isclose(result.net_premium, premium)
        lower, upper = result.breakeven_points
        assert np.isclose(lower, 100.0 - premium)
        assert np.isclose(upper, 100.0 + premium)
        assert result.max_profit == math.inf
        assert np.isclose(result.max_loss, -premium)
        assert result.greeks.gamma > 0.0

    def test_short_straddle_has_unbounded_loss(self):
        result = _price(straddle(100.0, 1.0, side=PositionSide.SHORT))
        assert result.max_loss == -math.inf
        assert np.isclose(result.max_profit, -result.net_premium)
        assert result.greeks.gamma < 0.0

    def test_short_iron_condor_is_a_credit(self):
        result = _price(iron_condor((80.0, 90.0, 110.0, 120.0), 1.0))
        credit = -result.net_premium
        assert credit > 0.0
        assert np.isclose(result.max_profit, credit)
        assert np.isclose(result.max_loss, -(10.0 - credit))
        assert len(result.breakeven_points) == 2

    def test_covered_call(self):
        result = _price(covered_call(110.0, 1.0))
        call = _bs(OptionType.CALL, 110.0)
        call_delta = BlackScholesModel(make_contract(OptionType.CALL, strike=110.0)).delta()
        assert np.isclose(result.value, SPOT - call)
        assert np.isclose(result.greeks.delta, 1.0 - call_delta)
        assert np.isclose(result.max_profit, 110.0 - SPOT + call)
        assert np.isclose(result.max_loss, call - SPOT)
        assert result.breakeven_points == (pytest.approx(SPOT - call),)

    def test_protective_put(self):
        result = _price(protective_put(95.0, 1.0))
        put = _bs(OptionType.PUT, 95.0)
        assert result.max_profit == math.inf
        assert np.isclose(result.max_loss, 95.0 - SPOT - put)

    def test_leg_premium_overrides_model_value(self):
        leg = StrategyLeg(OptionType.CALL, 100.0, 1.0, quantity=2.0, premium=8.0)
        result = _price(StrategySpec(legs=(leg,)))
        assert np.isclose(result.net_premium, 16.0)
        assert np.isclose(result.value, 2.0 * _bs(OptionType.CALL, 100.0))
        assert result.breakeven_points == (pytest.approx(108.0),)

    def test_greeks_are_quantity_weighted_sums(self):
        spread = bull_call_spread(95.0, 105.0, 0.5)
        result = _price(spread)
        low = BlackScholesModel(make_contract(strike=95.0, time_to_expiry=0.5)).greeks()
        high = BlackScholesModel(make_contract(strike=105.0, time_to_expiry=0.5)).greeks()
        assert np.isclose(result.greeks.vega, low.vega - high.vega)
        assert np.isclose(result.greeks.theta, low.theta - high.theta)
