"""Tests for the barrier, Asian and lookback approximations."""

import math

import numpy as np
import pytest

from quant_analytics.enums import AsianAveraging, BarrierType, OptionCategory, OptionType
from quant_analytics.exceptions import UnsupportedFeatureError, ValidationError
from quant_analytics.valuation import (
    BarrierResult,
    BlackScholesModel,
    LookbackResult,
    asian_price,
    barrier_price,
    bsm_price,
    exotic_price,
    lookback_price,
)
from quant_analytics.valuation.exotics import knockout_probability

from quant_analytics.tests.helpers import make_contract


def _barrier(barrier_type: BarrierType, level: float, option_type=OptionType.CALL):
    return make_contract(
        option_type,
        category=OptionCategory.BARRIER,
        barrier_type=barrier_type,
        barrier_level=level,
    )


class TestBarrier:
    def setup_method(self):
        self.vanilla = BlackScholesModel(make_contract(OptionType.CALL)).present_value()

    def test_untouched_knock_out_keeps_seventy_percent(self):
        result = barrier_price(_barrier(BarrierType.UP_AND_OUT, 120.0))
        assert result.knockout_probability == 0.3
        assert np.isclose(result.price, 0.7 * self.vanilla)

    def test_in_plus_out_equals_vanilla(self):
        knock_in = barrier_price(_barrier(BarrierType.UP_AND_IN, 120.0)).price
        knock_out = barrier_price(_barrier(BarrierType.UP_AND_OUT, 120.0)).price
        assert np.isclose(knock_in + knock_out, self.vanilla)

    def test_breached_barrier(self):
        knocked_out = barrier_price(_barrier(BarrierType.DOWN_AND_OUT, 105.0))
        knocked_in = barrier_price(_barrier(BarrierType.DOWN_AND_IN, 105.0))
        assert knocked_out.knockout_probability == 1.0
        assert knocked_out.price == 0.0
        assert np.isclose(knocked_in.price, self.vanilla)

    @pytest.mark.parametrize(
        "barrier_type, level, expected",
        [
            (BarrierType.UP_AND_OUT, 100.0, 1.0),
            (BarrierType.UP_AND_IN, 101.0, 0.3),
            (BarrierType.DOWN_AND_OUT, 100.0, 1.0),
            (BarrierType.DOWN_AND_IN, 99.0, 0.3),
        ],
    )
    def test_knockout_probability(self, barrier_type, level, expected):
        assert knockout_probability(100.0, barrier_type, level) == expected

    def test_barrier_fields_required(self):
        with pytest.raises(ValidationError):
            make_contract(category=OptionCategory.BARRIER)


class TestAsian:
    def _asian(self, averaging: AsianAveraging, option_type=OptionType.CALL):
        return make_contract(
            option_type, category=OptionCategory.ASIAN, asian_averaging=averaging
        )

    def test_geometric_adjusted_volatility_and_rate(self):
        contract = self._asian(AsianAveraging.GEOMETRIC)
        sigma = 0.2
        expected = bsm_price(
            OptionType.CALL,
            100.0,
            100.0,
            1.0,
            0.5 * (0.05 + 0.0 + sigma**2 / 6),
            sigma / math.sqrt(3.0),
        )
        assert np.isclose(asian_price(contract), expected)

    def test_averaging_dampens_call_value(self):
        contract = self._asian(AsianAveraging.GEOMETRIC)
        vanilla = BlackScholesModel(make_contract(OptionType.CALL)).present_value()
        assert asian_price(contract) < vanilla

    def test_arithmetic_premium_over_geometric(self):
        geometric = asian_price(self._asian(AsianAveraging.GEOMETRIC))
        arithmetic = asian_price(self._asian(AsianAveraging.ARITHMETIC))
        assert np.isclose(arithmetic, 1.05 * geometric)

    @pytest.mark.parametrize(
        "averaging", [AsianAveraging.ARITHMETIC_STRIKE, AsianAveraging.GEOMETRIC_STRIKE]
    )
    def test_average_strike_discount(self, averaging):
        vanilla = BlackScholesModel(make_contract(OptionType.PUT)).present_value()
        assert np.isclose(asian_price(self._asian(averaging, OptionType.PUT)), 0.95 * vanilla)

    def test_averaging_override(self):
        contract = self._asian(AsianAveraging.GEOMETRIC)
        assert np.isclose(
            asian_price(contract, AsianAveraging.ARITHMETIC),
            asian_price(self._asian(AsianAveraging.ARITHMETIC)),
        )

    def test_averaging_required(self):
        with pytest.raises(ValidationError):
            asian_price(make_contract())


class TestLookback:
    def test_price_and_expected_extremes(self):
        contract = make_contract(OptionType.CALL, category=OptionCategory.LOOKBACK, vol=0.3)
        result = lookback_price(contract)
        spread = 0.5826 * 0.3 * 1.0
        vanilla = BlackScholesModel(contract.replace(category=OptionCategory.VANILLA))
        assert np.isclose(result.price, 1.3 * vanilla.present_value())
        assert np.isclose(result.expected_min, 100.0 * math.exp(-spread))
        assert np.isclose(result.expected_max, 100.0 * math.exp(spread))
        assert result.expected_min < 100.0 < result.expected_max


class TestDispatch:
    def test_exotic_price_dispatches_on_category(self):
        assert isinstance(exotic_price(_barrier(BarrierType.UP_AND_OUT, 120.0)), BarrierResult)
        lookback = make_contract(category=OptionCategory.LOOKBACK)
        assert isinstance(exotic_price(lookback), LookbackResult)
        asian = make_contract(
            category=OptionCategory.ASIAN, asian_averaging=AsianAveraging.GEOMETRIC
        )
        assert isinstance(exotic_price(asian), float)

    def test_vanilla_has_no_exotic_pricer(self, atm_call):
        with pytest.raises(UnsupportedFeatureError):
            exotic_price(atm_call)
