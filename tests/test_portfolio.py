import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import portfolio
from portfolio import (
    AllocationVector,
    asset_return,
    asset_volatility,
    average_returns,
    average_volatilities,
    bitcoin_return_schedule,
    correlation_matrix,
    long_term_btc_cagr,
    optimize_for_volatility,
    portfolio_volatility,
    portfolio_yearly_values,
    project_portfolio,
)
from config import ASSETS


def test_long_term_cagr_reaches_target_price():
    cagr = long_term_btc_cagr()
    assert cagr == pytest.approx((21_000_000 / 100_000) ** (1 / 21) - 1)
    assert 100_000 * (1 + cagr) ** 21 == pytest.approx(21_000_000)


@pytest.mark.parametrize(
    "year, expected",
    [(1, 0.42), (5, 0.30), (6, 0.228), (15, 0.21)],
)
def test_bitcoin_return_regime_edges(year, expected):
    assert asset_return("btc", year) == pytest.approx(expected)


def test_bitcoin_return_mature_regime_is_long_term_cagr():
    assert asset_return("btc", 16) == pytest.approx(long_term_btc_cagr())
    assert asset_return("btc", 40) == pytest.approx(long_term_btc_cagr())


@pytest.mark.parametrize(
    "year, expected",
    [(1, 0.50), (5, 0.42), (6, 0.381), (15, 0.21), (16, 0.21), (30, 0.21)],
)
def test_bitcoin_volatility_regime_edges(year, expected):
    assert asset_volatility("btc", year) == pytest.approx(expected)


def test_other_assets_are_constant():
    for year in (1, 6, 16):
        assert asset_return("voo", year) == 0.10
        assert asset_return("hysa", year) == 0.045
        assert asset_volatility("treasury", year) == 0.05
        assert asset_volatility("strc", year) == 0.02


def test_schedule_rejects_year_zero():
    with pytest.raises(ValueError):
        asset_return("btc", 0)
    with pytest.raises(ValueError):
        asset_volatility("btc", 0)


def test_averages_are_arithmetic_means_of_yearly_values():
    schedule = bitcoin_return_schedule(10)
    assert len(schedule) == 10
    assert average_returns(10)["btc"] == pytest.approx(float(np.mean(schedule)))
    assert average_returns(1)["btc"] == pytest.approx(0.42)
    expected_vol = np.mean([asset_volatility("btc", y) for y in range(1, 21)])
    assert average_volatilities(20)["btc"] == pytest.approx(expected_vol)
    assert average_volatilities(20)["voo"] == pytest.approx(0.16)


def test_allocation_must_total_one_hundred():
    AllocationVector(20, 20, 20, 20, 20)
    AllocationVector(20.05, 20, 20, 20, 20)
    with pytest.raises(ValueError):
        AllocationVector(20, 20, 20, 20, 19)
    with pytest.raises(ValueError):
        AllocationVector(-10, 50, 20, 20, 20)


def test_allocation_from_mapping_fills_missing_assets():
    allocation = AllocationVector.from_mapping({"btc": 60, "voo": 40})
    np.testing.assert_allclose(allocation.weights, [0.6, 0.4, 0.0, 0.0, 0.0])


def test_correlation_matrix_is_symmetric_with_unit_diagonal():
    corr = correlation_matrix()
    np.testing.assert_array_equal(corr, corr.T)
    np.testing.assert_array_equal(np.diag(corr), np.ones(len(ASSETS)))
    assert corr[ASSETS.index("btc"), ASSETS.index("strc")] == 0.7


@pytest.mark.parametrize("asset", ASSETS)
def test_single_asset_volatility_is_the_asset_volatility(asset):
    volatilities = average_volatilities(12)
    weights = [1.0 if a == asset else 0.0 for a in ASSETS]
    assert portfolio_volatility(weights, volatilities) == pytest.approx(volatilities[asset])


def test_two_asset_volatility_uses_correlation():
    volatilities = average_volatilities(10)
    weights = [0.5, 0.5, 0.0, 0.0, 0.0]
    s_btc, s_voo = volatilities["btc"], volatilities["voo"]
    expected = np.sqrt(
        0.25 * s_btc**2 + 0.25 * s_voo**2 + 2 * 0.25 * s_btc * s_voo * 0.3
    )
    assert portfolio_volatility(weights, volatilities) == pytest.approx(expected)


def test_optimizer_leaves_allocation_close_to_target_untouched():
    allocation = AllocationVector(20, 20, 20, 20, 20)
    volatilities = average_volatilities(10)
    assert abs(portfolio_volatility(allocation.weights, volatilities) - 0.10) < 0.01
    optimized = optimize_for_volatility(allocation, volatilities)
    assert optimized == pytest.approx(dict(zip(ASSETS, allocation.weights.tolist())))


def test_optimizer_reduces_bitcoin_weight_to_hit_target():
    allocation = AllocationVector(100, 0, 0, 0, 0)
    volatilities = average_volatilities(10)
    optimized = optimize_for_volatility(allocation, volatilities)
    weights = [optimized[a] for a in ASSETS]
    assert abs(portfolio_volatility(weights, volatilities) - 0.10) < 0.005
    assert weights[1:] == [0.0, 0.0, 0.0, 0.0]


def test_optimizer_returns_best_effort_when_iterations_run_out():
    allocation = AllocationVector(100, 0, 0, 0, 0)
    volatilities = average_volatilities(10)
    optimized = optimize_for_volatility(allocation, volatilities, max_iterations=3)
    assert optimized["btc"] == pytest.approx(0.97)


def test_project_portfolio_compounds_weighted_return():
    allocation = AllocationVector(30, 30, 20, 10, 10)
    result = project_portfolio(50_000, allocation, 10)
    returns = average_returns(10)
    expected_return = (
        0.3 * returns["btc"]
        + 0.3 * returns["voo"]
        + 0.2 * returns["treasury"]
        + 0.1 * returns["strc"]
        + 0.1 * returns["hysa"]
    )
    assert result.annual_return == pytest.approx(expected_return)
    assert result.final_value == pytest.approx(50_000 * (1 + expected_return) ** 10)
    assert result.net_gain == pytest.approx(result.final_value - 50_000)
    assert result.total_investment == 50_000
    assert result.actual_volatility == pytest.approx(
        portfolio_volatility(allocation.weights, average_volatilities(10))
    )
    assert result.target_volatility == 0.10


def test_optimized_allocation_does_not_change_projection(monkeypatch):
    allocation = AllocationVector(40, 30, 10, 10, 10)
    baseline = project_portfolio(10_000, allocation, 15)

    monkeypatch.setattr(
        portfolio,
        "optimize_for_volatility",
        lambda *args, **kwargs: {asset: 0.0 for asset in ASSETS},
    )
    patched = project_portfolio(10_000, allocation, 15)
    assert patched.final_value == baseline.final_value
    assert patched.annual_return == baseline.annual_return
    assert patched.optimized_allocation["btc"] == 0.0


@pytest.mark.parametrize("horizon", [0, 1.5])
def test_project_portfolio_rejects_invalid_horizon(horizon):
    with pytest.raises(ValueError):
        project_portfolio(10_000, AllocationVector(20, 20, 20, 20, 20), horizon)


def test_project_portfolio_rejects_non_positive_investment():
    with pytest.raises(ValueError):
        project_portfolio(0, AllocationVector(20, 20, 20, 20, 20), 10)


def test_portfolio_yearly_values():
    result = project_portfolio(87_000, AllocationVector(20, 20, 20, 20, 20), 6)
    values = portfolio_yearly_values(result, 6)
    assert len(values) == 7
    assert values[0] == pytest.approx(87_000)
    assert values[-1] == pytest.approx(result.final_value)


@pytest.mark.parametrize("bad", [float("nan"), float("inf")])
def test_allocation_rejects_non_finite_weights(bad):
    with pytest.raises(ValueError):
        AllocationVector(bad, 25, 25, 25, 25)
    with pytest.raises(ValueError):
        AllocationVector.from_mapping({"btc": 100, "hysa": bad})


@pytest.mark.parametrize("bad", [float("nan"), float("inf")])
def test_project_portfolio_rejects_non_finite_investment(bad):
    with pytest.raises(ValueError):
        project_portfolio(bad, AllocationVector(20, 20, 20, 20, 20), 10)


@pytest.mark.parametrize("horizon", [float("nan"), float("inf")])
def test_project_portfolio_rejects_non_finite_horizon(horizon):
    with pytest.raises(ValueError):
        project_portfolio(10_000, AllocationVector(20, 20, 20, 20, 20), horizon)
