"""
Statistics over simulated samples: order statistics, summaries, binning.
"""

from dcf_montecarlo.statistics.binning import Density2D, Histogram, density_2d, histogram
from dcf_montecarlo.statistics.descriptive import (
    DistributionStats,
    SimulationSummary,
    describe,
    first_greater_index,
    mean,
    percentile,
    percentile_rank,
    probability_above,
    summarize_prices,
)

__all__ = [
    # Binning
    "Density2D",
    "Histogram",
    "density_2d",
    "histogram",
    # Descriptive
    "DistributionStats",
    "SimulationSummary",
    "describe",
    "first_greater_index",
    "mean",
    "percentile",
    "percentile_rank",
    "probability_above",
    "summarize_prices",
]
