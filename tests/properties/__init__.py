"""
Property-based testing using Hypothesis.

This package contains property tests that verify mathematical invariants
hold across randomly generated inputs. These tests are more comprehensive
than parameterized tests because they explore the full input space.

Modules:
    test_sampling_properties: Uniform stream and triangular sampler invariants
    test_statistics_properties: Percentile ordering and rank invariants
    test_valuation_properties: DCF price monotonicity and discard invariants
"""
