"""
Random-variate generation for Monte Carlo valuation.

Provides:
- Seeded (Mulberry32) and entropy-backed uniform sources
- Inverse-CDF triangular sampling, scalar and vectorised
"""

from dcf_montecarlo.sampling.rng import (
    EntropySource,
    Mulberry32,
    UniformSource,
    create_uniform_source,
    hash_seed,
)
from dcf_montecarlo.sampling.triangular import (
    sample_triangular,
    sample_triangular_block,
    triangular_inverse_cdf,
)

__all__ = [
    # RNG
    "EntropySource",
    "Mulberry32",
    "UniformSource",
    "create_uniform_source",
    "hash_seed",
    # Triangular
    "sample_triangular",
    "sample_triangular_block",
    "triangular_inverse_cdf",
]
