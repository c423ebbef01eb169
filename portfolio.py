"""Multi-asset portfolio projection for the real estate vs Bitcoin calculator."""

import logging
from dataclasses import dataclass, field
from math import isfinite
from typing import Mapping, Sequence

import numpy as np

from config import (
    ALLOCATION_TOLERANCE,
    ALLOCATION_TOTAL,
    ASSET_CORRELATIONS,
    ASSET_RETURNS,
    ASSET_VOLATILITIES,
    ASSETS,
    BTC_REFERENCE_PRICE,
    BTC_RETURN_EARLY,
    BTC_RETURN_MID,
    BTC_TARGET_PRICE,
    BTC_VOLATILITY_EARLY,
    BTC_VOLATILITY_MATURE,
    BTC_VOLATILITY_MID,
    BTC_YEARS_TO_TARGET,
    EARLY_REGIME_END,
    MID_REGIME_END,
    OPT_ACCEPT_TOLERANCE,
    OPT_INITIAL_STEP,
    OPT_MAX_ITERATIONS,
    OPT_TARGET_VOLATILITY,
    OPT_TOLERANCE,
)


def validate_horizon(horizon) -> int:
    """Return ``horizon`` as an int, rejecting anything but whole years >= 1."""
    if isinstance(horizon, bool) or not isfinite(horizon) or int(horizon) != horizon or horizon < 1:
        raise ValueError("time horizon must be a whole number of years of at least 1")
    return int(horizon)


@dataclass(frozen=True)
class AllocationVector:
    """Portfolio weights in percent. They must total 100 (within 0.1)."""

    btc: float
    voo: float
    treasury: float
    strc: float
    hysa: float

    def __post_init__(self):
        values = self.as_percentages()
        invalid = [asset for asset, value in values.items() if not isfinite(value)]
        if invalid:
            raise ValueError(f"Allocations must be finite numbers: {', '.join(invalid)}")
        negative = [asset for asset, value in values.items() if value < 0]
        if negative:
            raise ValueError(f"Allocations cannot be negative: {', '.join(negative)}")
        total = sum(values.values())
        if abs(total - ALLOCATION_TOTAL) > ALLOCATION_TOLERANCE:
            raise ValueError(
                f"Allocations must total {ALLOCATION_TOTAL:.0f}% (got {total:.1f}%)"
            )

    @classmethod
    def from_mapping(cls, percentages: Mapping[str, float]) -> "AllocationVector":
        return cls(**{asset: float(percentages.get(asset, 0.0)) for asset in ASSETS})

    def as_percentages(self) -> dict[str, float]:
        return {asset: getattr(self, asset) for asset in ASSETS}

    @property
    def weights(self) -> np.ndarray:
        """Weights as fractions, in :data:`config.ASSETS` order."""
        return np.array([getattr(self, asset) / 100.0 for asset in ASSETS], dtype=np.float64)


@dataclass
class PortfolioProjection:
    """Results returned from :func:`project_portfolio`."""

    total_investment: float
    final_value: float
    net_gain: float
    annual_return: float
    actual_volatility: float
    target_volatility: float
    allocation: dict = field(default_factory=dict)
    optimized_allocation: dict = field(default_factory=dict)
    expected_returns: dict = field(default_factory=dict)
    volatilities: dict = field(default_factory=dict)


def long_term_btc_cagr() -> float:
    """CAGR that takes Bitcoin from the reference price to the target price."""
    return (BTC_TARGET_PRICE / BTC_REFERENCE_PRICE) ** (1 / BTC_YEARS_TO_TARGET) - 1


def _regime_value(year: int, early, mid, mature: float) -> float:
    if year <= EARLY_REGIME_END:
        start, decline = early
        return start - decline * (year - 1)
    if year <= MID_REGIME_END:
        start, decline = mid
        return start - decline * (year - EARLY_REGIME_END)
    return mature


def asset_return(asset: str, year: int) -> float:
    """Expected annual return of ``asset`` in year ``year`` (1-based).

    Bitcoin tapers linearly through the early (years 1-5) and maturation
    (6-15) regimes, then holds the long-run CAGR. Other assets are constant.
    """
    if year < 1:
        raise ValueError("year must be at least 1")
    if asset == "btc":
        return _regime_value(year, BTC_RETURN_EARLY, BTC_RETURN_MID, long_term_btc_cagr())
    return ASSET_RETURNS[asset]


def asset_volatility(asset: str, year: int) -> float:
    """Annual volatility of ``asset`` in year ``year`` (1-based)."""
    if year < 1:
        raise ValueError("year must be at least 1")
    if asset == "btc":
        return _regime_value(year, BTC_VOLATILITY_EARLY, BTC_VOLATILITY_MID, BTC_VOLATILITY_MATURE)
    return ASSET_VOLATILITIES[asset]


def bitcoin_return_schedule(horizon: int) -> np.ndarray:
    """Bitcoin's expected return for each year ``1..horizon``."""
    horizon = validate_horizon(horizon)
    return np.array([asset_return("btc", year) for year in range(1, horizon + 1)])


def average_returns(horizon: int) -> dict[str, float]:
    """Arithmetic mean of each asset's yearly expected return over the horizon."""
    horizon = validate_horizon(horizon)
    years = range(1, horizon + 1)
    return {asset: float(np.mean([asset_return(asset, y) for y in years])) for asset in ASSETS}


def average_volatilities(horizon: int) -> dict[str, float]:
    """Arithmetic mean of each asset's yearly volatility over the horizon."""
    horizon = validate_horizon(horizon)
    years = range(1, horizon + 1)
    return {asset: float(np.mean([asset_volatility(asset, y) for y in years])) for asset in ASSETS}


def correlation_matrix() -> np.ndarray:
    """Symmetric correlation matrix over :data:`config.ASSETS`."""
    n = len(ASSETS)
    corr = np.eye(n)
    for (a, b), rho in ASSET_CORRELATIONS.items():
        i, j = ASSETS.index(a), ASSETS.index(b)
        corr[i, j] = corr[j, i] = rho
    return corr


def portfolio_volatility(weights: Sequence[float], volatilities: Mapping[str, float]) -> float:
    """Portfolio volatility from the full variance expansion.

    ``sum(w_i^2 s_i^2) + 2 * sum_{i<j}(w_i w_j s_i s_j rho_ij)``, written as
    ``w' C w`` with ``C`` the covariance matrix.
    """
    w = np.asarray(weights, dtype=np.float64)
    sigma = np.array([volatilities[asset] for asset in ASSETS], dtype=np.float64)
    covariance = np.outer(sigma, sigma) * correlation_matrix()
    variance = float(w @ covariance @ w)
    return float(np.sqrt(max(variance, 0.0)))


def optimize_for_volatility(
    allocation: AllocationVector,
    volatilities: Mapping[str, float],
    target_volatility: float = OPT_TARGET_VOLATILITY,
    max_iterations: int = OPT_MAX_ITERATIONS,
    tolerance: float = OPT_TOLERANCE,
) -> dict[str, float]:
    """Adjust the Bitcoin weight so portfolio volatility approaches a target.

    Other weights are held fixed, so the result need not total 100%. The
    Bitcoin weight moves in steps that reverse and halve on each overshoot,
    within ``[0, 1]``. After ``max_iterations`` the closest weight reached is
    returned.
    """
    weights = allocation.weights.copy()
    current = portfolio_volatility(weights, volatilities)
    if abs(current - target_volatility) < OPT_ACCEPT_TOLERANCE:
        return dict(zip(ASSETS, weights.tolist()))

    step = -OPT_INITIAL_STEP if current > target_volatility else OPT_INITIAL_STEP
    best_weight, best_gap = weights[0], abs(current - target_volatility)
    for _ in range(max_iterations):
        vol = portfolio_volatility(weights, volatilities)
        gap = abs(vol - target_volatility)
        if gap < best_gap:
            best_weight, best_gap = weights[0], gap
        if gap < tolerance:
            break
        if (vol > target_volatility and step > 0) or (vol < target_volatility and step < 0):
            step *= -0.5
        weights[0] = min(max(weights[0] + step, 0.0), 1.0)
    else:
        vol = portfolio_volatility(weights, volatilities)
        if abs(vol - target_volatility) < best_gap:
            best_weight, best_gap = weights[0], abs(vol - target_volatility)
        logging.info(
            "Volatility optimizer stopped after %d iterations, %.4f from target",
            max_iterations,
            best_gap,
        )

    weights[0] = best_weight
    return dict(zip(ASSETS, weights.tolist()))


def project_portfolio(
    initial_investment: float,
    allocation: AllocationVector,
    horizon: int,
) -> PortfolioProjection:
    """Project a lump-sum multi-asset portfolio over ``horizon`` years.

    The expected return is linear in the weights; volatility uses the
    correlation matrix. The optimized allocation is informational and does
    not affect the projected value.
    """
    horizon = validate_horizon(horizon)
    if not isfinite(initial_investment) or initial_investment <= 0:
        raise ValueError("initial_investment must be a positive finite amount")

    expected_returns = average_returns(horizon)
    volatilities = average_volatilities(horizon)
    weights = allocation.weights

    annual_return = float(sum(w * expected_returns[asset] for w, asset in zip(weights, ASSETS)))
    actual_volatility = portfolio_volatility(weights, volatilities)
    optimized = optimize_for_volatility(allocation, volatilities)

    final_value = initial_investment * (1 + annual_return) ** horizon
    return PortfolioProjection(
        total_investment=float(initial_investment),
        final_value=float(final_value),
        net_gain=float(final_value - initial_investment),
        annual_return=annual_return,
        actual_volatility=actual_volatility,
        target_volatility=OPT_TARGET_VOLATILITY,
        allocation=dict(zip(ASSETS, weights.tolist())),
        optimized_allocation=optimized,
        expected_returns=expected_returns,
        volatilities=volatilities,
    )


def portfolio_yearly_values(projection: PortfolioProjection, horizon: int) -> list[float]:
    """Portfolio value at the end of each year ``0..horizon``."""
    horizon = validate_horizon(horizon)
    growth = (1 + projection.annual_return) ** np.arange(horizon + 1)
    return (projection.total_investment * growth).tolist()
