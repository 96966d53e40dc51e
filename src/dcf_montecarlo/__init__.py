"""
dcf-montecarlo: Monte Carlo DCF valuation and implied-expectations analysis.

Quick Start
-----------
>>> from dcf_montecarlo import (
...     ValuationInputs, ValuationMode, TriangularParams, FixedRate,
...     run_forward_simulation,
... )
>>> inputs = ValuationInputs(
...     mode=ValuationMode.HISTORICAL,
...     growth=TriangularParams(0.00, 0.02, 0.04),
...     discount=TriangularParams(0.07, 0.08, 0.10),
...     shares_outstanding=1_000.0,
...     current_price=15.0,
...     trial_count=100_000,
...     base_fcf=1_000.0,
...     seed="AAPL",
... )
>>> result = run_forward_simulation(inputs)
>>> result.summary.median  # doctest: +SKIP

Version: 0.1.0
"""

__version__ = "0.1.0"

# =============================================================================
# Inputs
# =============================================================================
from dcf_montecarlo.data.schemas import (
    FcfMethod,
    FixedRate,
    HistoricalCashFlow,
    InputValidationError,
    TriangularParams,
    ValuationInputs,
    ValuationMode,
)

# =============================================================================
# Valuation
# =============================================================================
from dcf_montecarlo.valuation.dcf import mode_scenario_price, price_per_share
from dcf_montecarlo.valuation.fcf import calculate_base_fcf

# =============================================================================
# Simulation
# =============================================================================
from dcf_montecarlo.simulation.base import (
    ProgressUpdate,
    RunStatus,
    SimulationAbortedError,
)
from dcf_montecarlo.simulation.forward import (
    ForwardResult,
    ForwardSimulation,
    NoValidTrialsError,
    run_forward_simulation,
)
from dcf_montecarlo.simulation.implied import (
    ImpliedResult,
    ImpliedSimulation,
    run_implied_simulation,
)

# =============================================================================
# Statistics
# =============================================================================
from dcf_montecarlo.statistics.descriptive import (
    DistributionStats,
    SimulationSummary,
    percentile,
    percentile_rank,
    probability_above,
)

# =============================================================================
# Sensitivity
# =============================================================================
from dcf_montecarlo.sensitivity.grid import SensitivityAnalysis, build_sensitivity

# =============================================================================
# Validation
# =============================================================================
from dcf_montecarlo.validation.gates import GateStatus, ValidationReport, validate_inputs

# =============================================================================
# Configuration
# =============================================================================
from dcf_montecarlo.config.settings import SETTINGS

__all__ = [
    # Version
    "__version__",
    # Inputs
    "FcfMethod",
    "FixedRate",
    "HistoricalCashFlow",
    "InputValidationError",
    "TriangularParams",
    "ValuationInputs",
    "ValuationMode",
    # Valuation
    "calculate_base_fcf",
    "mode_scenario_price",
    "price_per_share",
    # Simulation
    "ProgressUpdate",
    "RunStatus",
    "SimulationAbortedError",
    "ForwardResult",
    "ForwardSimulation",
    "NoValidTrialsError",
    "run_forward_simulation",
    "ImpliedResult",
    "ImpliedSimulation",
    "run_implied_simulation",
    # Statistics
    "DistributionStats",
    "SimulationSummary",
    "percentile",
    "percentile_rank",
    "probability_above",
    # Sensitivity
    "SensitivityAnalysis",
    "build_sensitivity",
    # Validation
    "GateStatus",
    "ValidationReport",
    "validate_inputs",
    # Config
    "SETTINGS",
]
