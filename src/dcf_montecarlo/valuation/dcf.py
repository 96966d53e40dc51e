"""
Discounted cash flow pricing formulas.

Two models, both returning value per share:

Historical (Gordon growth on a base FCF):
    [T1] TV = FCF_0 (1 + g) / (r - g)
    [T1] price = (TV - net_debt) / shares

Forecast (explicit horizon + terminal value anchored on the final year):
    [T1] PV = Σ_{i=1..n} CF_i / (1 + r)^i
    [T1] TV = CF_n (1 + g) / (r - g),  PV(TV) = TV / (1 + r)^n
    [T1] price = (PV + PV(TV) - net_debt) / shares

The formulas are undefined for r - g <= 0. Callers get ``None`` (scalar) or
NaN (vectorised) for such pairs and must skip or flag them; values are never
clamped.

See: Damodaran (2012) "Investment Valuation", Ch. 12
"""

import math
from collections.abc import Sequence

import numpy as np

from dcf_montecarlo.data.schemas import ValuationInputs, ValuationMode


def _check_spread_floor(min_spread: float) -> None:
    if min_spread < 0:
        raise ValueError(f"CRITICAL: min_spread must be >= 0, got {min_spread}")


def price_per_share(
    g: float,
    r: float,
    *,
    mode: ValuationMode,
    net_debt: float,
    shares: float,
    base_fcf: float | None = None,
    forecast_cash_flows: Sequence[float] = (),
    min_spread: float = 0.0,
) -> float | None:
    """
    Value per share for one (g, r) pair.

    Parameters
    ----------
    g : float
        Perpetual growth rate (decimal)
    r : float
        Discount rate (decimal)
    mode : ValuationMode
        HISTORICAL uses ``base_fcf``; FORECAST uses ``forecast_cash_flows``
    net_debt : float
        Debt minus cash
    shares : float
        Shares outstanding (> 0)
    base_fcf : float, optional
        Base free cash flow (historical mode)
    forecast_cash_flows : Sequence[float]
        Explicit forecast, year 1 first, any horizon >= 1 (forecast mode)
    min_spread : float, default 0.0
        Pairs with r - g <= min_spread are undefined

    Returns
    -------
    float or None
        Price per share, or None when undefined or non-finite

    Examples
    --------
    >>> p = price_per_share(0.05, 0.10, mode=ValuationMode.HISTORICAL,
    ...                     net_debt=0.0, shares=100.0, base_fcf=100.0)
    >>> round(p, 10)
    21.0
    """
    _check_spread_floor(min_spread)
    if shares <= 0:
        raise ValueError(f"CRITICAL: shares must be > 0, got {shares}")

    spread = r - g
    if spread <= min_spread:
        return None

    try:
        if mode == ValuationMode.HISTORICAL:
            if base_fcf is None:
                raise ValueError("CRITICAL: historical mode requires base_fcf")
            fcf1 = base_fcf * (1 + g)
            terminal_value = fcf1 / spread
            equity_value = terminal_value - net_debt
        else:
            if len(forecast_cash_flows) == 0:
                raise ValueError("CRITICAL: forecast mode requires forecast_cash_flows")
            horizon = len(forecast_cash_flows)
            sum_pv = 0.0
            for year, cash_flow in enumerate(forecast_cash_flows, start=1):
                sum_pv += cash_flow / (1 + r) ** year
            terminal_value = forecast_cash_flows[-1] * (1 + g) / spread
            terminal_pv = terminal_value / (1 + r) ** horizon
            equity_value = sum_pv + terminal_pv - net_debt
        price = equity_value / shares
    except (OverflowError, ZeroDivisionError):
        return None

    if not math.isfinite(price):
        return None
    return price


def price_per_share_array(
    g: np.ndarray | float,
    r: np.ndarray | float,
    *,
    mode: ValuationMode,
    net_debt: float,
    shares: float,
    base_fcf: float | None = None,
    forecast_cash_flows: Sequence[float] = (),
    min_spread: float = 0.0,
) -> np.ndarray:
    """
    Vectorised ``price_per_share`` over broadcastable g and r arrays.

    Undefined pairs (r - g <= min_spread) and non-finite results come back
    as NaN; filter with ``np.isfinite`` before use.

    Returns
    -------
    np.ndarray
        Prices per share, broadcast shape of g and r
    """
    _check_spread_floor(min_spread)
    if shares <= 0:
        raise ValueError(f"CRITICAL: shares must be > 0, got {shares}")

    g, r = np.broadcast_arrays(
        np.asarray(g, dtype=np.float64), np.asarray(r, dtype=np.float64)
    )
    spread = r - g
    defined = spread > min_spread
    safe_spread = np.where(defined, spread, np.nan)

    with np.errstate(divide="ignore", over="ignore", invalid="ignore"):
        if mode == ValuationMode.HISTORICAL:
            if base_fcf is None:
                raise ValueError("CRITICAL: historical mode requires base_fcf")
            fcf1 = base_fcf * (1 + g)
            terminal_value = fcf1 / safe_spread
            equity_value = terminal_value - net_debt
        else:
            if len(forecast_cash_flows) == 0:
                raise ValueError("CRITICAL: forecast mode requires forecast_cash_flows")
            horizon = len(forecast_cash_flows)
            growth_base = 1 + r
            sum_pv = np.zeros(spread.shape)
            for year, cash_flow in enumerate(forecast_cash_flows, start=1):
                sum_pv = sum_pv + cash_flow / np.power(growth_base, year)
            terminal_value = forecast_cash_flows[-1] * (1 + g) / safe_spread
            terminal_pv = terminal_value / np.power(growth_base, horizon)
            equity_value = sum_pv + terminal_pv - net_debt
        prices = equity_value / shares

    return np.where(np.isfinite(prices), prices, np.nan)


# =============================================================================
# ValuationInputs Bindings
# =============================================================================

def evaluate_price(
    inputs: ValuationInputs, g: float, r: float, min_spread: float = 0.0
) -> float | None:
    """``price_per_share`` with model terms taken from ``inputs``."""
    return price_per_share(
        g,
        r,
        mode=inputs.mode,
        net_debt=inputs.net_debt,
        shares=inputs.shares_outstanding,
        base_fcf=inputs.base_fcf,
        forecast_cash_flows=inputs.forecast_cash_flows,
        min_spread=min_spread,
    )


def evaluate_price_array(
    inputs: ValuationInputs,
    g: np.ndarray | float,
    r: np.ndarray | float,
    min_spread: float = 0.0,
) -> np.ndarray:
    """``price_per_share_array`` with model terms taken from ``inputs``."""
    return price_per_share_array(
        g,
        r,
        mode=inputs.mode,
        net_debt=inputs.net_debt,
        shares=inputs.shares_outstanding,
        base_fcf=inputs.base_fcf,
        forecast_cash_flows=inputs.forecast_cash_flows,
        min_spread=min_spread,
    )


def mode_scenario_price(inputs: ValuationInputs) -> float | None:
    """
    Price at the most likely growth and discount rates.

    Uses ``growth.mode`` and the discount mode (or the fixed rate). Returns
    None when r - g <= 0 at that point.
    """
    return evaluate_price(inputs, inputs.growth.mode, inputs.discount_mode_value)
