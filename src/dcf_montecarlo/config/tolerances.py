"""
Centralized tolerance framework for Monte Carlo DCF valuation.

Tolerance Tiers:
    Tier 1 (Analytical): Deterministic formula evaluations
    Tier 2 (Stochastic): CLT-derived bounds for sampled statistics
    Domain: Thresholds that change simulation behaviour (discard rule)

References:
    [T1] Higham (2002) "Accuracy and Stability of Numerical Algorithms"
    [T1] Glasserman (2003) Ch. 3-4 - Monte Carlo error bounds
"""

from typing import Final

import numpy as np

# =============================================================================
# Domain Thresholds
# =============================================================================

#: Minimum spread r - g for a simulated trial to be kept.
#: Below this the Gordon growth denominator is near-singular.
DISCARD_EPSILON: Final[float] = 1e-4


# =============================================================================
# Tier 1: Analytical Tolerances (Deterministic)
# =============================================================================

#: Closed-form DCF evaluations (round trips, known answers)
ANALYTICAL_TOLERANCE: Final[float] = 1e-9


# =============================================================================
# Tier 2: Stochastic Tolerances (CLT-Derived)
# =============================================================================


def mc_tolerance(n_samples: int, sigma: float, confidence: float = 4.0) -> float:
    """
    Calculate CLT-derived tolerance for a sample mean.

    [T1] Standard error of the mean is sigma / sqrt(N).

    Parameters
    ----------
    n_samples : int
        Number of samples
    sigma : float
        Standard deviation of a single sample
    confidence : float
        Number of standard errors (default 4)

    Returns
    -------
    float
        Absolute tolerance for |sample mean - true mean|

    Examples
    --------
    >>> round(mc_tolerance(100_000, sigma=0.02), 6)
    0.000253
    """
    if n_samples <= 0:
        raise ValueError(f"CRITICAL: n_samples must be > 0, got {n_samples}")
    return confidence * sigma / np.sqrt(n_samples)


def triangular_std(minimum: float, mode: float, maximum: float) -> float:
    """
    Standard deviation of a triangular distribution.

    [T1] Var = (a² + b² + c² - ab - ac - bc) / 18
    """
    a, c, b = minimum, mode, maximum
    variance = (a * a + b * b + c * c - a * b - a * c - b * c) / 18.0
    return float(np.sqrt(max(variance, 0.0)))


# =============================================================================
# Tolerance Registry (For Dynamic Access)
# =============================================================================

TOLERANCE_REGISTRY: dict[str, float] = {
    "discard_epsilon": DISCARD_EPSILON,
    "analytical": ANALYTICAL_TOLERANCE,
}


def get_tolerance(name: str) -> float:
    """
    Get tolerance by name from registry.

    Raises
    ------
    KeyError
        If tolerance name not found
    """
    if name not in TOLERANCE_REGISTRY:
        available = ", ".join(sorted(TOLERANCE_REGISTRY.keys()))
        raise KeyError(f"Unknown tolerance '{name}'. Available: {available}")
    return TOLERANCE_REGISTRY[name]
