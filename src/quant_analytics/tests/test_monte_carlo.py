"""Tests for Monte Carlo valuation."""

import logging

import numpy as np
import pytest

from quant_analytics.enums import OptionType, VarianceReduction
from quant_analytics.exceptions import ConfigurationError, ValidationError
from quant_analytics.valuation import BlackScholesModel, MonteCarloParams, monte_carlo_price
from quant_analytics.valuation.monte_carlo import box_muller

from quant_analytics.tests.helpers import make_contract


class TestMonteCarloPricing:
    @pytest.mark.parametrize("option_type", [OptionType.CALL, OptionType.PUT])
    @pytest.mark.parametrize(
        "variance_reduction", [VarianceReduction.NONE, VarianceReduction.ANTITHETIC]
    )
    def test_within_four_standard_errors_of_black_scholes(self, option_type, variance_reduction):
        contract = make_contract(option_type, strike=105.0, dividend_yield=0.01)
        params = MonteCarloParams(
            num_paths=200_000, random_seed=7, variance_reduction=variance_reduction
        )
        result = monte_carlo_price(contract, params)
        exact = BlackScholesModel(contract).present_value()
        assert abs(result.price - exact) < 4 * result.std_error
        low, high = result.confidence_interval
        assert low < result.price < high

    def test_seed_reproducibility(self, atm_call):
        params = MonteCarloParams(num_paths=10_000, random_seed=123)
        first = monte_carlo_price(atm_call, params)
        second = monte_carlo_price(atm_call, params)
        assert first.price == second.price
        assert first.std_error == second.std_error

    def test_injected_generator_takes_precedence(self, atm_call):
        params = MonteCarloParams(num_paths=10_000, random_seed=1)
        a = monte_carlo_price(atm_call, params, rng=np.random.default_rng(99))
        b = monte_carlo_price(atm_call, params, rng=np.random.default_rng(99))
        c = monte_carlo_price(atm_call, params)
        assert a.price == b.price
        assert a.price != c.price

    def test_antithetic_reduces_standard_error(self, atm_call):
        plain = monte_carlo_price(
            atm_call,
            MonteCarloParams(
                num_paths=50_000, random_seed=3, variance_reduction=VarianceReduction.NONE
            ),
        )
        anti = monte_carlo_price(
            atm_call,
            MonteCarloParams(
                num_paths=50_000, random_seed=3, variance_reduction=VarianceReduction.ANTITHETIC
            ),
        )
        assert anti.std_error < plain.std_error

    def test_antithetic_path_count_rounds_up_to_pairs(self, atm_call):
        params = MonteCarloParams(num_paths=10_001, random_seed=5)
        assert monte_carlo_price(atm_call, params).num_paths == 10_002

    def test_worker_threads_are_reproducible(self, atm_call):
        params = MonteCarloParams(num_paths=40_000, random_seed=11, num_workers=4)
        first = monte_carlo_price(atm_call, params)
        second = monte_carlo_price(atm_call, params)
        assert first.price == second.price
        assert first.num_paths == 40_000
        exact = BlackScholesModel(atm_call).present_value()
        assert abs(first.price - exact) < 4 * first.std_error

    def test_degenerate_contract_is_deterministic(self):
        contract = make_contract(OptionType.CALL, spot=120.0, time_to_expiry=0.0)
        result = monte_carlo_price(contract, MonteCarloParams(num_paths=100, random_seed=1))
        assert result.price == 20.0
        assert result.std_error == 0.0

    def test_high_standard_error_is_logged(self, caplog):
        contract = make_contract(OptionType.CALL, strike=130.0)
        params = MonteCarloParams(num_paths=100, random_seed=2, std_error_warn_ratio=0.01)
        with caplog.at_level(logging.WARNING, logger="quant_analytics.valuation.monte_carlo"):
            monte_carlo_price(contract, params)
        assert "standard error high" in caplog.text


class TestMonteCarloParams:
    def test_string_variance_reduction_is_coerced(self):
        params = MonteCarloParams(variance_reduction="none")
        assert params.variance_reduction is VarianceReduction.NONE

    @pytest.mark.parametrize(
        "kwargs", [{"num_paths": 1}, {"num_workers": 0}, {"std_error_warn_ratio": 0.0}]
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValidationError):
            MonteCarloParams(**kwargs)

    def test_wrong_type(self):
        with pytest.raises(ConfigurationError):
            MonteCarloParams(variance_reduction=1)


def test_box_muller_moments():
    z = box_muller(np.random.default_rng(0), 200_000)
    assert abs(z.mean()) < 0.01
    assert abs(z.std() - 1.0) < 0.01
