"""Tests for the Heston, SABR and Merton approximation pricers."""

import numpy as np
import pytest

from quant_analytics.enums import OptionType
from quant_analytics.exceptions import ValidationError
from quant_analytics.valuation import (
    BlackScholesModel,
    HestonParams,
    JumpDiffusionParams,
    SABRParams,
    heston_price,
    jump_diffusion_price,
    sabr_implied_vol,
    sabr_price,
)

from quant_analytics.tests.helpers import make_contract


class TestHeston:
    def setup_method(self):
        self.params = HestonParams(v0=0.09, kappa=2.0, theta=0.04, sigma_v=0.3, rho=-0.7)

    def test_prices_at_long_run_volatility(self):
        contract = make_contract(OptionType.CALL, vol=0.35)
        expected = BlackScholesModel(contract.replace(volatility=0.2)).present_value()
        assert np.isclose(heston_price(contract, self.params), expected)

    def test_feller_violation_is_invalid(self):
        params = HestonParams(v0=0.04, kappa=0.5, theta=0.04, sigma_v=1.0, rho=-0.5)
        assert not params.is_valid()
        with pytest.raises(ValidationError):
            heston_price(make_contract(), params)

    @pytest.mark.parametrize("rho", [-1.5, 1.01])
    def test_correlation_bounds(self, rho):
        params = HestonParams(v0=0.04, kappa=2.0, theta=0.04, sigma_v=0.3, rho=rho)
        assert not params.is_valid()


class TestSABR:
    def test_lognormal_without_vol_of_vol_reduces_to_black_scholes(self):
        params = SABRParams(alpha=0.25, beta=1.0, rho=0.0, nu=0.0)
        contract = make_contract(OptionType.PUT, strike=95.0)
        expected = BlackScholesModel(contract.replace(volatility=0.25)).present_value()
        assert np.isclose(sabr_price(contract, params), expected)

    def test_negative_correlation_produces_downward_skew(self):
        params = SABRParams(alpha=0.2, beta=1.0, rho=-0.5, nu=0.6)
        low = sabr_implied_vol(80.0, 100.0, 1.0, params)
        high = sabr_implied_vol(120.0, 100.0, 1.0, params)
        assert low > high

    def test_vol_of_vol_produces_smile_wings(self):
        params = SABRParams(alpha=0.2, beta=1.0, rho=0.0, nu=0.8)
        atm = sabr_implied_vol(100.0, 100.0, 1.0, params)
        assert sabr_implied_vol(70.0, 100.0, 1.0, params) > atm
        assert sabr_implied_vol(130.0, 100.0, 1.0, params) > atm

    def test_at_the_money_branch_is_continuous(self):
        params = SABRParams(alpha=0.4, beta=0.7, rho=-0.3, nu=0.5)
        atm = sabr_implied_vol(100.0, 100.0, 2.0, params)
        near = sabr_implied_vol(100.0 * (1 + 1e-6), 100.0, 2.0, params)
        assert np.isclose(atm, near, rtol=1e-5)

    def test_expired_implied_vol_is_zero(self):
        params = SABRParams(alpha=0.2, beta=0.5, rho=0.0, nu=0.3)
        assert sabr_implied_vol(100.0, 100.0, 0.0, params) == 0.0

    def test_expired_contract_is_intrinsic(self):
        params = SABRParams(alpha=0.2, beta=0.5, rho=0.0, nu=0.3)
        contract = make_contract(OptionType.CALL, spot=104.0, time_to_expiry=0.0)
        assert np.isclose(sabr_price(contract, params), 4.0)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"alpha": 0.0, "beta": 0.5, "rho": 0.0, "nu": 0.3},
            {"alpha": 0.2, "beta": 1.5, "rho": 0.0, "nu": 0.3},
            {"alpha": 0.2, "beta": 0.5, "rho": 1.0, "nu": 0.3},
            {"alpha": 0.2, "beta": 0.5, "rho": 0.0, "nu": -0.1},
        ],
    )
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValidationError):
            sabr_price(make_contract(), SABRParams(**kwargs))


class TestJumpDiffusion:
    def test_zero_intensity_is_black_scholes(self, atm_call):
        params = JumpDiffusionParams(intensity=0.0, mean_jump=-0.1, jump_vol=0.3)
        expected = BlackScholesModel(atm_call).present_value()
        assert np.isclose(jump_diffusion_price(atm_call, params), expected)

    def test_jump_risk_raises_at_the_money_value(self, atm_call):
        params = JumpDiffusionParams(intensity=1.0, mean_jump=0.0, jump_vol=0.3)
        assert jump_diffusion_price(atm_call, params) > BlackScholesModel(atm_call).present_value()

    def test_series_is_converged_at_default_truncation(self, atm_put):
        params = JumpDiffusionParams(intensity=1.0, mean_jump=-0.05, jump_vol=0.2)
        default = jump_diffusion_price(atm_put, params)
        longer = jump_diffusion_price(atm_put, params, max_jumps=40)
        assert np.isclose(default, longer, atol=1e-10)

    def test_negative_truncation(self, atm_call):
        params = JumpDiffusionParams(intensity=1.0, mean_jump=0.0, jump_vol=0.2)
        with pytest.raises(ValidationError):
            jump_diffusion_price(atm_call, params, max_jumps=-1)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"intensity": -1.0, "mean_jump": 0.0, "jump_vol": 0.2},
            {"intensity": 1.0, "mean_jump": -1.0, "jump_vol": 0.2},
            {"intensity": 1.0, "mean_jump": 0.0, "jump_vol": -0.2},
        ],
    )
    def test_invalid_parameters(self, kwargs, atm_call):
        with pytest.raises(ValidationError):
            jump_diffusion_price(atm_call, JumpDiffusionParams(**kwargs))
