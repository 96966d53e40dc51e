"""
Pre-run validation gates for valuation inputs.
"""

from dcf_montecarlo.validation.gates import (
    BaseFcfPositiveGate,
    GateResult,
    GateStatus,
    MarketEnterpriseValueGate,
    SpreadOverlapGate,
    TrialCountGate,
    ValidationEngine,
    ValidationGate,
    ValidationReport,
    validate_inputs,
)

__all__ = [
    "BaseFcfPositiveGate",
    "GateResult",
    "GateStatus",
    "MarketEnterpriseValueGate",
    "SpreadOverlapGate",
    "TrialCountGate",
    "ValidationEngine",
    "ValidationGate",
    "ValidationReport",
    "validate_inputs",
]
