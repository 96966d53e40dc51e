"""
Order statistics and summary metrics over simulated samples.

[T1] Functions taking ``sorted_values`` assume an ascending float array and
do not re-check it. Rank queries use binary search (``np.searchsorted``),
so every query is O(log n) regardless of sample size; only ``mean`` and
``describe`` touch every sample, once.

Design: Immutable dataclasses for results, pure functions for calculations.
"""

import math
from dataclasses import dataclass

import numpy as np
from scipy import stats

from dcf_montecarlo.config.settings import SETTINGS


# =============================================================================
# Result Dataclasses
# =============================================================================


def _normal_interval(center: float, standard_error: float, level: float) -> tuple[float, float]:
    """Two-sided normal-approximation interval around ``center``."""
    if not 0.0 < level < 1.0:
        raise ValueError(f"CRITICAL: confidence level must be in (0, 1), got {level}")
    z = stats.norm.ppf(0.5 + level / 2.0)
    return (center - z * standard_error, center + z * standard_error)


@dataclass(frozen=True)
class DistributionStats:
    """
    Summary of one simulated series.

    Attributes
    ----------
    mean : float
        Arithmetic mean
    median : float
        50th percentile
    p05 : float
        5th percentile
    p95 : float
        95th percentile
    std : float
        Sample standard deviation (ddof=1; 0 for fewer than two samples)
    count : int
        Number of samples
    """

    mean: float
    median: float
    p05: float
    p95: float
    std: float
    count: int

    @property
    def standard_error(self) -> float:
        """Standard error of the mean."""
        if self.count == 0:
            return float("nan")
        return self.std / math.sqrt(self.count)

    def confidence_interval(self, level: float | None = None) -> tuple[float, float]:
        """Normal-approximation confidence interval for the mean."""
        level = SETTINGS.statistics.confidence_level if level is None else level
        return _normal_interval(self.mean, self.standard_error, level)


@dataclass(frozen=True)
class SimulationSummary:
    """
    Decision-ready statistics for a completed forward run.

    Attributes
    ----------
    mean : float
        Mean price per share
    median : float
        Median price per share
    p05 : float
        5th percentile price
    p95 : float
        95th percentile price
    std : float
        Sample standard deviation of prices
    prob_above_current_price : float
        Percent of valid trials strictly above the market price
    current_price_percentile : float
        Percent of valid trials at or below the market price
    mode_scenario_price : float or None
        Price at (g_mode, r_mode); None when r - g <= 0 there
    mode_scenario_percentile : float or None
        Percent of valid trials at or below the mode scenario price
    valid_count : int
        Trials kept in the sample buffer
    trial_count : int
        Trials attempted
    """

    mean: float
    median: float
    p05: float
    p95: float
    std: float
    prob_above_current_price: float
    current_price_percentile: float
    mode_scenario_price: float | None
    mode_scenario_percentile: float | None
    valid_count: int
    trial_count: int

    @property
    def discarded_count(self) -> int:
        """Trials dropped by the r - g or finiteness filter."""
        return self.trial_count - self.valid_count

    @property
    def valid_fraction(self) -> float:
        """Share of trials that produced a valid price."""
        return self.valid_count / self.trial_count

    @property
    def standard_error(self) -> float:
        """Standard error of the mean price."""
        return self.std / math.sqrt(self.valid_count)

    def confidence_interval(self, level: float | None = None) -> tuple[float, float]:
        """Normal-approximation confidence interval for the mean price."""
        level = SETTINGS.statistics.confidence_level if level is None else level
        return _normal_interval(self.mean, self.standard_error, level)


# =============================================================================
# Order Statistics
# =============================================================================


def mean(values: np.ndarray) -> float:
    """
    Arithmetic mean; 0.0 for an empty array.

    Examples
    --------
    >>> mean(np.array([]))
    0.0
    """
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return 0.0
    return float(values.sum() / values.size)


def percentile(sorted_values: np.ndarray, p: float) -> float:
    """
    Linearly interpolated percentile of a sorted array.

    [T1] rank = (n - 1) p; result interpolates between the order statistics
    at floor(rank) and ceil(rank). p = 0 and p = 1 return the extremes
    exactly; nothing is extrapolated past the ends.

    Parameters
    ----------
    sorted_values : np.ndarray
        Ascending samples
    p : float
        Level in [0, 1]

    Returns
    -------
    float
        Percentile value (0.0 for an empty array)

    Examples
    --------
    >>> percentile(np.array([1.0, 2.0, 3.0, 4.0]), 0.5)
    2.5
    """
    if not (0.0 <= p <= 1.0):
        raise ValueError(f"CRITICAL: p must be in [0, 1], got {p}")
    n = len(sorted_values)
    if n == 0:
        return 0.0

    index = (n - 1) * p
    lower = math.floor(index)
    upper = math.ceil(index)
    weight = index - lower

    if upper >= n:
        return float(sorted_values[lower])
    return float(sorted_values[lower] * (1 - weight) + sorted_values[upper] * weight)


def first_greater_index(sorted_values: np.ndarray, value: float) -> int:
    """
    Index of the first element strictly greater than ``value``.

    Equals the number of elements <= ``value``; ``len(sorted_values)`` when
    none is greater. Binary search, O(log n).
    """
    return int(np.searchsorted(sorted_values, value, side="right"))


def probability_above(sorted_values: np.ndarray, threshold: float) -> float:
    """
    Percent of samples strictly greater than ``threshold``.

    Returns
    -------
    float
        Value in [0, 100]; 0.0 for an empty array, NaN for a NaN threshold

    Examples
    --------
    >>> probability_above(np.array([1.0, 2.0, 3.0, 4.0]), 2.0)
    50.0
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    if math.isnan(threshold):
        return float("nan")
    idx = first_greater_index(sorted_values, threshold)
    return (n - idx) / n * 100.0


def percentile_rank(sorted_values: np.ndarray, value: float) -> float:
    """
    Percent of samples at or below ``value``.

    Returns
    -------
    float
        Value in [0, 100]; NaN when the array is empty or ``value`` is not
        finite

    Examples
    --------
    >>> percentile_rank(np.array([1.0, 2.0, 3.0, 4.0]), 3.0)
    75.0
    """
    n = len(sorted_values)
    if n == 0 or value is None or not math.isfinite(value):
        return float("nan")
    return first_greater_index(sorted_values, value) / n * 100.0


# =============================================================================
# Summaries
# =============================================================================


def _sample_std(values: np.ndarray) -> float:
    if len(values) < 2:
        return 0.0
    return float(np.std(values, ddof=1))


def describe(sorted_values: np.ndarray) -> DistributionStats:
    """
    Mean, median, p05, p95 and spread of a sorted series.

    Parameters
    ----------
    sorted_values : np.ndarray
        Ascending samples (may be empty)

    Returns
    -------
    DistributionStats
        Summary statistics
    """
    lo_p, mid_p, hi_p = SETTINGS.statistics.summary_percentiles
    return DistributionStats(
        mean=mean(sorted_values),
        median=percentile(sorted_values, mid_p),
        p05=percentile(sorted_values, lo_p),
        p95=percentile(sorted_values, hi_p),
        std=_sample_std(sorted_values),
        count=len(sorted_values),
    )


def summarize_prices(
    sorted_prices: np.ndarray,
    *,
    current_price: float,
    mode_price: float | None,
    trial_count: int,
) -> SimulationSummary:
    """
    Build the forward-run summary from sorted valid prices.

    Parameters
    ----------
    sorted_prices : np.ndarray
        Ascending valid prices (non-empty)
    current_price : float
        Observed market price per share
    mode_price : float or None
        Price at the most likely (g, r); None when undefined
    trial_count : int
        Trials attempted, including discarded ones

    Returns
    -------
    SimulationSummary
        Summary statistics

    Raises
    ------
    ValueError
        If ``sorted_prices`` is empty
    """
    if len(sorted_prices) == 0:
        raise ValueError("CRITICAL: cannot summarize an empty price sample")

    lo_p, mid_p, hi_p = SETTINGS.statistics.summary_percentiles

    mode_percentile = None
    if mode_price is not None:
        mode_percentile = percentile_rank(sorted_prices, mode_price)

    return SimulationSummary(
        mean=mean(sorted_prices),
        median=percentile(sorted_prices, mid_p),
        p05=percentile(sorted_prices, lo_p),
        p95=percentile(sorted_prices, hi_p),
        std=_sample_std(sorted_prices),
        prob_above_current_price=probability_above(sorted_prices, current_price),
        current_price_percentile=percentile_rank(sorted_prices, current_price),
        mode_scenario_price=mode_price,
        mode_scenario_percentile=mode_percentile,
        valid_count=len(sorted_prices),
        trial_count=trial_count,
    )
