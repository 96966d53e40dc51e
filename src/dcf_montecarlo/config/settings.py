"""
Frozen configuration settings for Monte Carlo DCF valuation.

All configuration is immutable (frozen dataclasses) so a run's behaviour is
fixed once its inputs are built. Chunk sizes may be overridden through
environment variables; everything else is a code-level constant.

See: config/tolerances.py for numeric tolerances.
"""

import os
from dataclasses import dataclass

from dcf_montecarlo.config.tolerances import DISCARD_EPSILON

# =============================================================================
# Environment Overrides
# =============================================================================

CHUNK_SIZE_ENV = "DCF_MC_CHUNK_SIZE"
IMPLIED_CHUNK_SIZE_ENV = "DCF_MC_IMPLIED_CHUNK_SIZE"


def _resolve_chunk_size(env_var: str, default: int) -> int:
    """
    Resolve a chunk size with environment variable override.

    Priority:
    1. ``env_var`` environment variable (if set and a positive integer)
    2. ``default``

    Parameters
    ----------
    env_var : str
        Name of the environment variable to consult
    default : int
        Value used when the variable is unset

    Returns
    -------
    int
        Resolved chunk size

    Raises
    ------
    ValueError
        If the variable is set to something other than a positive integer
    """
    raw = os.environ.get(env_var)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"CRITICAL: {env_var} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"CRITICAL: {env_var} must be > 0, got {value}")
    return value


# =============================================================================
# Simulation Configuration
# =============================================================================

@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable Monte Carlo driver configuration.

    Attributes
    ----------
    chunk_size : int
        Trials per chunk for forward runs. Override with DCF_MC_CHUNK_SIZE.
    implied_chunk_size : int
        Trials per chunk for implied (reverse) runs.
        Override with DCF_MC_IMPLIED_CHUNK_SIZE.
    discard_epsilon : float
        Trials with r - g at or below this spread are discarded
    large_run_threshold : int
        Trial counts above this raise a WARN gate before running
    """

    chunk_size: int = None  # type: ignore[assignment]  # Set in __post_init__
    implied_chunk_size: int = None  # type: ignore[assignment]  # Set in __post_init__
    discard_epsilon: float = DISCARD_EPSILON
    large_run_threshold: int = 200_000

    def __post_init__(self) -> None:
        """Resolve chunk sizes from the environment when not given."""
        # Frozen dataclass workaround: use object.__setattr__
        if self.chunk_size is None:
            object.__setattr__(
                self, "chunk_size", _resolve_chunk_size(CHUNK_SIZE_ENV, 50_000)
            )
        if self.implied_chunk_size is None:
            object.__setattr__(
                self,
                "implied_chunk_size",
                _resolve_chunk_size(IMPLIED_CHUNK_SIZE_ENV, 20_000),
            )


# =============================================================================
# Valuation Configuration
# =============================================================================

@dataclass(frozen=True)
class ValuationConfig:
    """
    Immutable valuation model configuration.

    Attributes
    ----------
    max_history_years : int
        Maximum number of historical (CFO, CapEx) years used for base FCF
    """

    max_history_years: int = 5


# =============================================================================
# Statistics Configuration
# =============================================================================

@dataclass(frozen=True)
class StatisticsConfig:
    """
    Immutable statistics and binning configuration.

    Attributes
    ----------
    histogram_bins : int
        Bins for the price (and implied series) histograms
    density_bins : int
        Bins per axis for the implied g vs. implied FCF density
    summary_percentiles : tuple[float, ...]
        Percentile levels reported in summaries (p05, median, p95)
    confidence_level : float
        Default level for the mean's confidence interval
    """

    histogram_bins: int = 30
    density_bins: int = 20
    summary_percentiles: tuple[float, ...] = (0.05, 0.50, 0.95)
    confidence_level: float = 0.95


# =============================================================================
# Sensitivity Configuration
# =============================================================================

@dataclass(frozen=True)
class SensitivityConfig:
    """
    Immutable sensitivity grid configuration.

    Attributes
    ----------
    lattice_steps : int
        Resolution of the dense g x r lattice (steps x steps cells)
    """

    lattice_steps: int = 50


# =============================================================================
# Master Configuration
# =============================================================================

@dataclass(frozen=True)
class Settings:
    """
    Master frozen configuration combining all sub-configs.

    Usage
    -----
    >>> from dcf_montecarlo.config.settings import SETTINGS
    >>> SETTINGS.simulation.chunk_size
    50000
    """

    simulation: SimulationConfig = SimulationConfig()
    valuation: ValuationConfig = ValuationConfig()
    statistics: StatisticsConfig = StatisticsConfig()
    sensitivity: SensitivityConfig = SensitivityConfig()


# Singleton instance - import this
SETTINGS = Settings()
