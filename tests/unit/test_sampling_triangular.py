"""
Tests for triangular inverse-CDF sampling - sampling/triangular.py.
"""

import numpy as np
import pytest

from dcf_montecarlo.data.schemas import TriangularParams
from dcf_montecarlo.sampling.rng import Mulberry32
from dcf_montecarlo.sampling.triangular import (
    sample_triangular,
    sample_triangular_block,
    triangular_inverse_cdf,
)


class TestSampleTriangular:
    """Tests for the scalar inverse CDF."""

    @pytest.fixture
    def params(self) -> TriangularParams:
        return TriangularParams(minimum=0.0, mode=0.25, maximum=1.0)

    def test_u_zero_gives_minimum(self, params):
        assert sample_triangular(params, 0.0) == 0.0

    def test_u_at_c_gives_mode(self, params):
        """u == c takes the upper branch and lands exactly on the mode."""
        assert sample_triangular(params, 0.25) == pytest.approx(0.25, abs=1e-12)

    def test_lower_branch_known_value(self, params):
        """u = 0.16 < c: x = sqrt(0.16 * 1 * 0.25) = 0.2."""
        assert sample_triangular(params, 0.16) == pytest.approx(0.2, abs=1e-12)

    def test_upper_branch_known_value(self, params):
        """u = 0.88 >= c: x = 1 - sqrt(0.12 * 1 * 0.75) = 0.7."""
        assert sample_triangular(params, 0.88) == pytest.approx(0.7, abs=1e-12)

    def test_degenerate_returns_constant(self):
        """min == mode == max returns the constant, never NaN."""
        params = TriangularParams(5.0, 5.0, 5.0)
        for u in (0.0, 0.3, 0.999999):
            assert sample_triangular(params, u) == 5.0

    def test_mode_at_minimum(self):
        """c = 0: every draw uses the upper branch."""
        params = TriangularParams(0.0, 0.0, 1.0)
        assert sample_triangular(params, 0.0) == 0.0
        assert sample_triangular(params, 0.75) == pytest.approx(0.5)

    def test_mode_at_maximum(self):
        """c = 1: every u < 1 uses the lower branch."""
        params = TriangularParams(0.0, 1.0, 1.0)
        assert sample_triangular(params, 0.25) == pytest.approx(0.5)

    def test_params_sample_consumes_one_draw(self):
        params = TriangularParams(0.01, 0.02, 0.04)
        rng = Mulberry32(9)
        value = params.sample(rng)
        assert params.minimum <= value <= params.maximum
        assert rng.state == (9 + 0x6D2B79F5) & 0xFFFFFFFF


class TestTriangularInverseCdf:
    """Tests for the vectorised inverse CDF."""

    def test_matches_scalar(self):
        """Vectorised and scalar paths must agree exactly."""
        params = TriangularParams(-0.02, 0.01, 0.05)
        u = Mulberry32(3).random_block(2_000)

        vectorised = triangular_inverse_cdf(params, u)
        scalar = np.array([sample_triangular(params, x) for x in u])

        np.testing.assert_array_equal(vectorised, scalar)

    def test_degenerate_fills_constant(self):
        params = TriangularParams(0.08, 0.08, 0.08)
        out = triangular_inverse_cdf(params, np.array([0.1, 0.5, 0.9]))
        np.testing.assert_array_equal(out, [0.08, 0.08, 0.08])

    def test_no_nan_on_edges(self):
        """Mode at either bound must not produce NaN."""
        u = np.linspace(0.0, 0.999999, 101)
        for params in (TriangularParams(0.0, 0.0, 1.0), TriangularParams(0.0, 1.0, 1.0)):
            assert np.all(np.isfinite(triangular_inverse_cdf(params, u)))

    def test_preserves_shape(self):
        params = TriangularParams(0.0, 0.5, 1.0)
        u = np.full((4, 5), 0.5)
        assert triangular_inverse_cdf(params, u).shape == (4, 5)


class TestSampleTriangularBlock:
    """Tests for block sampling from a source."""

    def test_consumes_n_draws(self):
        params = TriangularParams(0.0, 0.5, 1.0)
        a = Mulberry32(11)
        b = Mulberry32(11)

        samples = sample_triangular_block(params, a, 250)

        assert samples.shape == (250,)
        np.testing.assert_array_equal(samples, triangular_inverse_cdf(params, b.random_block(250)))
        assert a.state == b.state
