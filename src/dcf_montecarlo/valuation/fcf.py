"""
Base free cash flow from historical cash-flow data.

[T1] FCF_t = CFO_t - CapEx_t

Two averaging methods:
- Simple mean of the available years
- Linearly weighted mean with weights 1..N (oldest = 1, most recent = N)
"""

from collections.abc import Sequence

import numpy as np

from dcf_montecarlo.config.settings import SETTINGS
from dcf_montecarlo.data.schemas import FcfMethod, HistoricalCashFlow, InputValidationError


def free_cash_flows(history: Sequence[HistoricalCashFlow]) -> np.ndarray:
    """Per-year free cash flows, oldest first."""
    return np.array([year.free_cash_flow for year in history], dtype=np.float64)


def calculate_base_fcf(
    history: Sequence[HistoricalCashFlow],
    method: FcfMethod = FcfMethod.SIMPLE_AVERAGE,
) -> float:
    """
    Average historical free cash flow into a single base FCF.

    Parameters
    ----------
    history : Sequence[HistoricalCashFlow]
        One to ``SETTINGS.valuation.max_history_years`` years, oldest first
    method : FcfMethod, default SIMPLE_AVERAGE
        Averaging method

    Returns
    -------
    float
        Base FCF

    Raises
    ------
    InputValidationError
        If history is empty or longer than the configured maximum

    Examples
    --------
    >>> years = [HistoricalCashFlow(120.0, 20.0), HistoricalCashFlow(150.0, 30.0)]
    >>> calculate_base_fcf(years)
    110.0
    >>> round(calculate_base_fcf(years, FcfMethod.WEIGHTED_AVERAGE), 6)
    113.333333
    """
    if len(history) == 0:
        raise InputValidationError("CRITICAL: at least one historical year is required")
    max_years = SETTINGS.valuation.max_history_years
    if len(history) > max_years:
        raise InputValidationError(
            f"CRITICAL: at most {max_years} historical years are supported, got {len(history)}"
        )

    fcf = free_cash_flows(history)

    if method == FcfMethod.SIMPLE_AVERAGE:
        return float(fcf.sum() / len(fcf))

    # Weighted: 1, 2, ..., N favouring recent years
    weights = np.arange(1, len(fcf) + 1, dtype=np.float64)
    return float((fcf * weights).sum() / weights.sum())
