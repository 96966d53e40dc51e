"""
Property-based tests for order statistics and binning.

Uses Hypothesis to verify:
1. Percentiles are monotone in p and bounded by the sample extremes
2. Percentile rank and probability-above partition the sample
3. Histogram counts conserve the sample size
"""

import numpy as np
from hypothesis import given, settings
from hypothesis import strategies as st

from dcf_montecarlo.statistics.binning import density_2d, histogram
from dcf_montecarlo.statistics.descriptive import (
    percentile,
    percentile_rank,
    probability_above,
)

# =============================================================================
# Strategy Definitions
# =============================================================================

value_strategy = st.floats(
    min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False, allow_subnormal=False
)
level_strategy = st.floats(min_value=0.0, max_value=1.0)
sample_strategy = st.lists(value_strategy, min_size=1, max_size=200).map(
    lambda xs: np.sort(np.array(xs, dtype=np.float64))
)
bins_strategy = st.integers(min_value=1, max_value=40)


# =============================================================================
# Percentile Properties
# =============================================================================

class TestPercentileProperties:
    """[T1] Interpolated percentile invariants."""

    @given(values=sample_strategy, p1=level_strategy, p2=level_strategy)
    @settings(max_examples=200)
    def test_monotone_in_p(self, values: np.ndarray, p1: float, p2: float) -> None:
        lo, hi = sorted((p1, p2))
        slack = 1e-9 * (1.0 + np.abs(values).max())
        assert percentile(values, lo) <= percentile(values, hi) + slack

    @given(values=sample_strategy, p=level_strategy)
    @settings(max_examples=200)
    def test_within_extremes(self, values: np.ndarray, p: float) -> None:
        slack = 1e-9 * (1.0 + np.abs(values).max())
        x = percentile(values, p)
        assert values[0] - slack <= x <= values[-1] + slack

    @given(values=sample_strategy)
    @settings(max_examples=100)
    def test_endpoints_exact(self, values: np.ndarray) -> None:
        assert percentile(values, 0.0) == values[0]
        assert percentile(values, 1.0) == values[-1]

    @given(values=sample_strategy, p=level_strategy)
    @settings(max_examples=200)
    def test_matches_numpy_linear(self, values: np.ndarray, p: float) -> None:
        expected = np.percentile(values, p * 100, method="linear")
        assert np.isclose(percentile(values, p), expected, rtol=1e-9, atol=1e-6)


class TestRankProperties:
    """[T1] Rank and exceedance partition the sample."""

    @given(values=sample_strategy, threshold=value_strategy)
    @settings(max_examples=200)
    def test_rank_plus_above_is_100(self, values: np.ndarray, threshold: float) -> None:
        total = percentile_rank(values, threshold) + probability_above(values, threshold)
        assert np.isclose(total, 100.0)

    @given(values=sample_strategy)
    @settings(max_examples=100)
    def test_rank_of_order_statistic(self, values: np.ndarray) -> None:
        """Rank of the k-th order statistic counts every sample <= it."""
        n = len(values)
        for k in range(n):
            expected = np.count_nonzero(values <= values[k]) / n * 100.0
            assert percentile_rank(values, values[k]) == expected

    @given(values=sample_strategy, t1=value_strategy, t2=value_strategy)
    @settings(max_examples=200)
    def test_rank_monotone(self, values: np.ndarray, t1: float, t2: float) -> None:
        lo, hi = sorted((t1, t2))
        assert percentile_rank(values, lo) <= percentile_rank(values, hi)


# =============================================================================
# Binning Properties
# =============================================================================

class TestBinningProperties:
    """Every sample lands in exactly one bin."""

    @given(values=sample_strategy, bins=bins_strategy)
    @settings(max_examples=100)
    def test_histogram_conserves_count(self, values: np.ndarray, bins: int) -> None:
        hist = histogram(values, bins=bins)
        assert hist.counts.sum() == len(values)
        assert len(hist.counts) == bins

    @given(
        pairs=st.lists(st.tuples(value_strategy, value_strategy), min_size=1, max_size=100),
        bins=bins_strategy,
    )
    @settings(max_examples=100)
    def test_density_conserves_count(self, pairs, bins: int) -> None:
        x = np.array([p[0] for p in pairs])
        y = np.array([p[1] for p in pairs])
        density = density_2d(x, y, bins=bins)
        assert density.total == len(pairs)
