"""
Deterministic (g, r) sensitivity: scenario matrix and dense price lattice.
"""

from dcf_montecarlo.sensitivity.grid import (
    PriceLattice,
    PriceScale,
    ScenarioMatrix,
    SensitivityAnalysis,
    build_price_lattice,
    build_scenario_matrix,
    build_sensitivity,
)

__all__ = [
    "PriceLattice",
    "PriceScale",
    "ScenarioMatrix",
    "SensitivityAnalysis",
    "build_price_lattice",
    "build_scenario_matrix",
    "build_sensitivity",
]
