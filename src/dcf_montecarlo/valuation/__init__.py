"""
DCF valuation formulas and base free cash flow.
"""

from dcf_montecarlo.valuation.dcf import (
    evaluate_price,
    evaluate_price_array,
    mode_scenario_price,
    price_per_share,
    price_per_share_array,
)
from dcf_montecarlo.valuation.fcf import calculate_base_fcf, free_cash_flows

__all__ = [
    "calculate_base_fcf",
    "evaluate_price",
    "evaluate_price_array",
    "free_cash_flows",
    "mode_scenario_price",
    "price_per_share",
    "price_per_share_array",
]
