import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

import numpy as np

from config import (
    MILESTONES,
    PROBABILITY_HORIZONS,
    SIMULATION_HORIZONS,
    TRADING_DAYS_PER_YEAR,
)


@dataclass(frozen=True)
class SimulationParameters:
    """Inputs for a single geometric Brownian motion price path.

    ``annual_return`` and ``volatility`` are decimal fractions (``0.3`` for
    30%). ``years`` may be fractional.
    """

    start_price: float
    years: float
    annual_return: float
    volatility: float

    def __post_init__(self):
        values = (self.start_price, self.years, self.annual_return, self.volatility)
        if not all(math.isfinite(value) for value in values):
            raise ValueError("simulation parameters must be finite numbers")
        if not self.start_price > 0:
            raise ValueError("start_price must be positive")
        if self.years < 0:
            raise ValueError("years must be non-negative")
        if self.volatility < 0:
            raise ValueError("volatility must be non-negative")

    @property
    def num_steps(self) -> int:
        return int(math.floor(self.years * TRADING_DAYS_PER_YEAR))


@dataclass(frozen=True)
class Statistics:
    """Summary of the terminal prices simulated for one horizon."""

    median: float
    p10: float
    p25: float
    p75: float
    p90: float
    mean: float
    min: float
    max: float


@dataclass
class SimulationResults:
    """Results returned from :meth:`MonteCarloRun.run`."""

    current_price: float
    num_sims: int
    horizons: tuple
    statistics: dict = field(default_factory=dict)
    probabilities: dict = field(default_factory=dict)

    def percentile_series(self) -> dict[str, list[float]]:
        """Return p10..p90 per horizon, in horizon order, for charting."""
        series = {"p10": [], "p25": [], "p50": [], "p75": [], "p90": []}
        for years in self.horizons:
            stats = self.statistics[years]
            series["p10"].append(stats.p10)
            series["p25"].append(stats.p25)
            series["p50"].append(stats.median)
            series["p75"].append(stats.p75)
            series["p90"].append(stats.p90)
        return series


def _nonzero_uniform(rng: np.random.Generator, size: Optional[int]):
    # Generator.random samples [0, 1); zero is redrawn so log(u) stays finite
    if size is None:
        u = rng.random()
        while u == 0.0:
            u = rng.random()
        return u
    u = rng.random(size)
    zeros = u == 0.0
    while np.any(zeros):
        u[zeros] = rng.random(int(np.count_nonzero(zeros)))
        zeros = u == 0.0
    return u


def random_normal(rng: np.random.Generator, size: Optional[int] = None):
    """Draw standard normal samples with the Box-Muller transform.

    Returns a float when ``size`` is ``None``, otherwise an array of length
    ``size``.
    """
    u = _nonzero_uniform(rng, size)
    v = _nonzero_uniform(rng, size)
    return np.sqrt(-2.0 * np.log(u)) * np.cos(2.0 * np.pi * v)


def _step_coefficients(params: SimulationParameters) -> tuple[float, float]:
    dt = 1.0 / TRADING_DAYS_PER_YEAR
    drift = (params.annual_return - 0.5 * params.volatility * params.volatility) * dt
    diffusion = params.volatility * math.sqrt(dt)
    return drift, diffusion


def simulate_price_path(
    params: SimulationParameters,
    rng: Optional[np.random.Generator] = None,
    seed: int | None = None,
) -> float:
    """Simulate one daily-stepped GBM path and return its terminal price.

    Parameters
    ----------
    params:
        Start price, horizon, drift and volatility of the path.
    rng:
        Random generator to draw from. When omitted one is created from
        ``seed`` (unseeded if ``seed`` is ``None``).

    Returns
    -------
    float
        The price after ``floor(years * 252)`` steps, or ``start_price``
        unchanged when there are no steps.
    """
    num_steps = params.num_steps
    if num_steps <= 0:
        return float(params.start_price)
    if rng is None:
        rng = np.random.default_rng(seed)
    drift, diffusion = _step_coefficients(params)
    z = random_normal(rng, num_steps)
    price = float(params.start_price)
    for factor in np.exp(drift + diffusion * z):
        price *= float(factor)
    return price


def simulate_terminal_prices(
    params: SimulationParameters,
    n_sims: int,
    rng: Optional[np.random.Generator] = None,
    seed: int | None = None,
) -> np.ndarray:
    """Simulate ``n_sims`` independent paths and return their terminal prices.

    Paths are advanced together one trading day at a time; each row of the
    running price vector belongs to exactly one path.
    """
    if n_sims < 1:
        raise ValueError("n_sims must be at least 1")
    prices = np.full(n_sims, float(params.start_price), dtype=np.float64)
    num_steps = params.num_steps
    if num_steps <= 0:
        return prices
    if rng is None:
        rng = np.random.default_rng(seed)
    drift, diffusion = _step_coefficients(params)
    for _ in range(num_steps):
        prices *= np.exp(drift + diffusion * random_normal(rng, n_sims))
    return prices


def calculate_stats(prices) -> Statistics:
    """Compute percentiles, mean and range of simulated terminal prices.

    ``prices`` is sorted in place (a list or numpy array). Callers that still
    need the original order must pass a copy.
    """
    if len(prices) == 0:
        raise ValueError("prices must not be empty")
    prices.sort()
    arr = np.asarray(prices, dtype=np.float64)
    n = len(arr)

    def at(q: float) -> float:
        return float(arr[int(math.floor(n * q))])

    return Statistics(
        median=at(0.5),
        p10=at(0.1),
        p25=at(0.25),
        p75=at(0.75),
        p90=at(0.9),
        mean=float(np.sum(arr) / n),
        min=float(arr[0]),
        max=float(arr[-1]),
    )


def calculate_milestone_probabilities(
    simulated_prices: Mapping[float, np.ndarray],
    current_price: float,
    milestones: Iterable[float] = MILESTONES,
    horizons: Iterable[float] = PROBABILITY_HORIZONS,
) -> dict[float, dict[float, float]]:
    """Fraction of paths ending at or above each milestone, per horizon.

    Milestones below ``current_price`` are skipped. Values are fractions in
    ``[0, 1]``; formatting as a percentage is left to the caller.
    """
    horizons = tuple(horizons)
    probabilities = {}
    for milestone in milestones:
        if milestone < current_price:
            continue
        probabilities[milestone] = {}
        for years in horizons:
            prices = np.asarray(simulated_prices[years])
            count = int(np.count_nonzero(prices >= milestone))
            probabilities[milestone][years] = count / len(prices)
    return probabilities


class MonteCarloRun:
    """A single simulator request.

    Owns the per-horizon cache of raw terminal prices for the lifetime of the
    request, so that statistics and milestone probabilities read the same
    paths and no horizon is simulated twice.
    """

    def __init__(
        self,
        current_price: float,
        annual_return: float,
        volatility: float,
        num_sims: int,
        rng: Optional[np.random.Generator] = None,
        seed: int | None = None,
    ):
        if num_sims < 1:
            raise ValueError("num_sims must be at least 1")
        # Validates price and volatility up front
        SimulationParameters(current_price, 0, annual_return, volatility)
        self.current_price = float(current_price)
        self.annual_return = float(annual_return)
        self.volatility = float(volatility)
        self.num_sims = int(num_sims)
        self._rng = rng if rng is not None else np.random.default_rng(seed)
        self._cache: dict[float, np.ndarray] = {}

    def prices_for(self, years: float) -> np.ndarray:
        """Return the cached terminal prices for ``years``, simulating once."""
        if years not in self._cache:
            params = SimulationParameters(
                self.current_price, years, self.annual_return, self.volatility
            )
            prices = simulate_terminal_prices(params, self.num_sims, rng=self._rng)
            prices.flags.writeable = False
            self._cache[years] = prices
        return self._cache[years]

    @property
    def simulated_horizons(self) -> tuple:
        return tuple(self._cache)

    def run(
        self,
        horizons: Iterable[float] = SIMULATION_HORIZONS,
        probability_horizons: Iterable[float] = PROBABILITY_HORIZONS,
        milestones: Iterable[float] = MILESTONES,
    ) -> SimulationResults:
        """Simulate every horizon, then derive statistics and probabilities."""
        horizons = tuple(horizons)
        probability_horizons = tuple(probability_horizons)
        logging.info(
            "Running %d simulations at price %.2f (return %.2f, volatility %.2f)",
            self.num_sims,
            self.current_price,
            self.annual_return,
            self.volatility,
        )
        for years in sorted(set(horizons) | set(probability_horizons)):
            self.prices_for(years)

        # Statistics sort their input, so they get a copy of the cached paths
        statistics = {years: calculate_stats(self._cache[years].copy()) for years in horizons}
        probabilities = calculate_milestone_probabilities(
            self._cache,
            self.current_price,
            milestones=milestones,
            horizons=probability_horizons,
        )
        return SimulationResults(
            current_price=self.current_price,
            num_sims=self.num_sims,
            horizons=horizons,
            statistics=statistics,
            probabilities=probabilities,
        )
