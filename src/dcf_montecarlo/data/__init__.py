"""
Input schemas for valuation runs.
"""

from dcf_montecarlo.data.schemas import (
    DiscountRate,
    FcfMethod,
    FixedRate,
    HistoricalCashFlow,
    InputValidationError,
    TriangularParams,
    ValuationInputs,
    ValuationMode,
)

__all__ = [
    "DiscountRate",
    "FcfMethod",
    "FixedRate",
    "HistoricalCashFlow",
    "InputValidationError",
    "TriangularParams",
    "ValuationInputs",
    "ValuationMode",
]
