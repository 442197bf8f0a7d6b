"""Tests for Black-Scholes-Merton pricing and Greeks."""

import numpy as np
import pytest

from quant_analytics.enums import OptionType
from quant_analytics.exceptions import ConfigurationError, ValidationError
from quant_analytics.utils import put_call_parity_gap
from quant_analytics.valuation import BlackScholesModel, bsm_greeks, bsm_price

from quant_analytics.tests.helpers import bump, make_contract


class TestBSMPrice:
    """Prices against textbook values and no-arbitrage relations."""

    def test_atm_call_reference_value(self, atm_call):
        pv = BlackScholesModel(atm_call).present_value()
        assert np.isclose(pv, 10.4506, atol=1e-3)

    def test_atm_put_reference_value(self, atm_put):
        pv = BlackScholesModel(atm_put).present_value()
        assert np.isclose(pv, 5.5735, atol=1e-3)

    @pytest.mark.parametrize("strike", [80.0, 100.0, 120.0])
    @pytest.mark.parametrize("dividend_yield", [0.0, 0.03])
    def test_put_call_parity(self, strike, dividend_yield):
        call = make_contract(OptionType.CALL, strike=strike, dividend_yield=dividend_yield)
        put = make_contract(OptionType.PUT, strike=strike, dividend_yield=dividend_yield)
        gap = put_call_parity_gap(
            call_price=BlackScholesModel(call).present_value(),
            put_price=BlackScholesModel(put).present_value(),
            spot=100.0,
            strike=strike,
            time_to_expiry=1.0,
            risk_free_rate=0.05,
            dividend_yield=dividend_yield,
        )
        assert abs(gap) < 1e-5

    def test_dividend_yield_lowers_call(self):
        no_div = bsm_price(OptionType.CALL, 100.0, 100.0, 1.0, 0.05, 0.2)
        with_div = bsm_price(OptionType.CALL, 100.0, 100.0, 1.0, 0.05, 0.2, 0.03)
        assert with_div < no_div

    def test_price_is_never_negative(self):
        assert bsm_price(OptionType.CALL, 50.0, 500.0, 0.1, 0.05, 0.1) >= 0.0

    def test_contract_rejects_bad_inputs(self):
        with pytest.raises(ValidationError):
            make_contract(spot=-1.0)
        with pytest.raises(ValidationError):
            make_contract(vol=-0.2)
        with pytest.raises(ConfigurationError):
            make_contract(option_type=1)


class TestDegenerateInputs:
    def test_expired_call_is_intrinsic(self):
        contract = make_contract(OptionType.CALL, spot=110.0, time_to_expiry=0.0)
        model = BlackScholesModel(contract)
        assert np.isclose(model.present_value(), 10.0)
        assert model.delta() == 1.0
        assert model.gamma() == 0.0
        assert model.vega() == 0.0

    def test_zero_vol_is_discounted_forward_intrinsic(self):
        contract = make_contract(OptionType.CALL, vol=0.0)
        expected = 100.0 - 100.0 * np.exp(-0.05)
        assert np.isclose(BlackScholesModel(contract).present_value(), expected)

    def test_zero_vol_out_of_the_money_put(self):
        contract = make_contract(OptionType.PUT, vol=0.0)
        model = BlackScholesModel(contract)
        assert model.present_value() == 0.0
        assert model.delta() == 0.0

    def test_at_the_money_expiry_delta_is_half(self):
        contract = make_contract(OptionType.CALL, time_to_expiry=0.0)
        assert BlackScholesModel(contract).delta() == 0.5

    def test_higher_order_greeks_are_zero(self):
        greeks = bsm_greeks(make_contract(OptionType.PUT, strike=120.0, vol=0.0))
        assert np.isclose(greeks.delta, -1.0)
        for name in ("gamma", "vega", "theta", "rho", "vanna", "volga", "charm", "ultima"):
            assert getattr(greeks, name) == 0.0


class TestGreeks:
    """Closed-form Greeks against central finite differences of the price."""

    def setup_method(self):
        self.spot = 105.0
        self.strike = 100.0
        self.t = 0.75
        self.rate = 0.04
        self.vol = 0.25
        self.q = 0.02

    def _price(self, option_type, *, spot=None, t=None, rate=None, vol=None, q=None):
        return bsm_price(
            option_type,
            self.spot if spot is None else spot,
            self.strike,
            self.t if t is None else t,
            self.rate if rate is None else rate,
            self.vol if vol is None else vol,
            self.q if q is None else q,
        )

    def _greeks(self, option_type, **overrides):
        params = {
            "spot": self.spot,
            "time_to_expiry": self.t,
            "rate": self.rate,
            "vol": self.vol,
            "dividend_yield": self.q,
        }
        params.update(overrides)
        return bsm_greeks(make_contract(option_type, strike=self.strike, **params))

    @pytest.mark.parametrize("option_type", [OptionType.CALL, OptionType.PUT])
    def test_first_order(self, option_type):
        g = self._greeks(option_type)
        delta = bump(lambda s: self._price(option_type, spot=s), self.spot, 1e-3)
        vega = bump(lambda v: self._price(option_type, vol=v), self.vol, 1e-5) / 100
        theta = -bump(lambda t: self._price(option_type, t=t), self.t, 1e-5) / 365
        rho = bump(lambda r: self._price(option_type, rate=r), self.rate, 1e-5) / 100
        epsilon = bump(lambda q: self._price(option_type, q=q), self.q, 1e-5) / 100

        assert np.isclose(g.delta, delta, atol=1e-5)
        assert np.isclose(g.vega, vega, atol=1e-5)
        assert np.isclose(g.theta, theta, atol=1e-5)
        assert np.isclose(g.rho, rho, atol=1e-5)
        assert np.isclose(g.epsilon, epsilon, atol=1e-5)

    @pytest.mark.parametrize("option_type", [OptionType.CALL, OptionType.PUT])
    def test_second_order(self, option_type):
        g = self._greeks(option_type)
        gamma = bump(lambda s: self._greeks(option_type, spot=s).delta, self.spot, 1e-3)
        vanna = bump(lambda v: self._greeks(option_type, vol=v).delta, self.vol, 1e-5) / 100
        volga = bump(lambda v: self._greeks(option_type, vol=v).vega, self.vol, 1e-5) / 100
        charm = -bump(lambda t: self._greeks(option_type, time_to_expiry=t).delta, self.t, 1e-5) / 365

        assert np.isclose(g.gamma, gamma, atol=1e-6)
        assert np.isclose(g.vanna, vanna, atol=1e-6)
        assert np.isclose(g.volga, volga, atol=1e-6)
        assert np.isclose(g.charm, charm, atol=1e-7)

    def test_third_order(self):
        g = self._greeks(OptionType.CALL)
        speed = bump(lambda s: self._greeks(OptionType.CALL, spot=s).gamma, self.spot, 1e-2)
        zomma = bump(lambda v: self._greeks(OptionType.CALL, vol=v).gamma, self.vol, 1e-4)
        color = -bump(
            lambda t: self._greeks(OptionType.CALL, time_to_expiry=t).gamma, self.t, 1e-4
        ) / 365
        ultima = bump(lambda v: self._greeks(OptionType.CALL, vol=v).volga, self.vol, 1e-4) / 100

        assert np.isclose(g.speed, speed, rtol=1e-3, atol=1e-8)
        assert np.isclose(g.zomma, zomma, rtol=1e-3, atol=1e-8)
        assert np.isclose(g.color, color, rtol=1e-3, atol=1e-9)
        assert np.isclose(g.ultima, ultima, rtol=1e-3, atol=1e-10)

    def test_color_matches_one_day_gamma_change(self):
        # At the money gamma grows as expiry approaches
        today = self._greeks(OptionType.CALL, spot=100.0, time_to_expiry=1.0)
        tomorrow = self._greeks(OptionType.CALL, spot=100.0, time_to_expiry=1.0 - 1 / 365)
        assert today.color > 0.0
        assert np.isclose(today.color, tomorrow.gamma - today.gamma, rtol=1e-2)

    def test_call_and_put_share_gamma_and_vega(self):
        call = self._greeks(OptionType.CALL)
        put = self._greeks(OptionType.PUT)
        assert np.isclose(call.gamma, put.gamma)
        assert np.isclose(call.vega, put.vega)
        assert np.isclose(call.delta - put.delta, np.exp(-self.q * self.t))

    def test_greeks_set_arithmetic(self):
        g = self._greeks(OptionType.CALL)
        doubled = g + g
        assert np.isclose(doubled.delta, 2 * g.delta)
        assert np.isclose(g.scaled(-1.0).vega, -g.vega)
        assert set(g.as_dict()) >= {"delta", "gamma", "ultima"}
