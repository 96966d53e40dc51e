"""
Chunked Monte Carlo drivers: forward pricing and implied expectations.
"""

from dcf_montecarlo.simulation.base import (
    ChunkedRun,
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

__all__ = [
    # Base
    "ChunkedRun",
    "ProgressUpdate",
    "RunStatus",
    "SimulationAbortedError",
    # Forward
    "ForwardResult",
    "ForwardSimulation",
    "NoValidTrialsError",
    "run_forward_simulation",
    # Implied
    "ImpliedResult",
    "ImpliedSimulation",
    "run_implied_simulation",
]
