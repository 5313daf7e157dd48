"""Tests for normal and bivariate normal distribution functions."""

import numpy as np
import pytest

from engine.normal import cbnd, cnd, npdf


class TestUnivariateNormal:
    """Tests for N(x) and n(x)."""

    def test_cnd_at_zero(self):
        """N(0) is exactly one half."""
        assert cnd(0.0) == 0.5

    def test_cnd_known_values(self):
        """Test against tabulated values."""
        assert np.isclose(cnd(1.0), 0.841345, atol=1e-6)
        assert np.isclose(cnd(-1.96), 0.024998, atol=1e-6)

    def test_cnd_symmetry(self):
        """N(x) + N(-x) = 1."""
        for x in [0.1, 0.5, 1.3, 2.7, 5.0]:
            assert np.isclose(cnd(x) + cnd(-x), 1.0)

    def test_cnd_tails(self):
        """Far tails saturate at 0 and 1."""
        assert cnd(-40.0) == 0.0
        assert cnd(40.0) == 1.0

    def test_npdf_peak(self):
        """n(0) = 1/sqrt(2π)."""
        assert np.isclose(npdf(0.0), 1.0 / np.sqrt(2.0 * np.pi))
        assert np.isclose(npdf(1.5), npdf(-1.5))


class TestBivariateNormal:
    """Tests for the Drezner bivariate CDF."""

    # (a, b, rho, expected)
    TABLE = [
        (0.0, 0.0, 0.0, 0.250000),
        (0.0, 0.0, -0.5, 0.166667),
        (0.0, 0.0, 0.5, 0.333333),
        (0.0, -0.5, 0.0, 0.154269),
        (0.0, -0.5, -0.5, 0.081660),
        (0.0, -0.5, 0.5, 0.226878),
        (0.0, 0.5, 0.0, 0.345731),
        (0.0, 0.5, -0.5, 0.273122),
        (0.0, 0.5, 0.5, 0.418340),
        (-0.5, 0.0, 0.0, 0.154269),
        (-0.5, 0.0, -0.5, 0.081660),
        (-0.5, 0.0, 0.5, 0.226878),
        (-0.5, -0.5, 0.0, 0.095195),
        (-0.5, -0.5, -0.5, 0.036298),
        (-0.5, -0.5, 0.5, 0.163319),
        (-0.5, 0.5, 0.0, 0.213342),
        (-0.5, 0.5, -0.5, 0.145218),
        (-0.5, 0.5, 0.5, 0.272239),
        (0.5, 0.0, 0.0, 0.345731),
        (0.5, 0.0, -0.5, 0.273122),
        (0.5, 0.0, 0.5, 0.418340),
        (0.5, -0.5, 0.0, 0.213342),
        (0.5, -0.5, -0.5, 0.145218),
        (0.5, -0.5, 0.5, 0.272239),
        (0.5, 0.5, 0.0, 0.478120),
        (0.5, 0.5, -0.5, 0.419223),
        (0.5, 0.5, 0.5, 0.546244),
    ]

    @pytest.mark.parametrize("a,b,rho,expected", TABLE)
    def test_reference_table(self, a, b, rho, expected):
        """Match the published table to six decimals."""
        assert np.isclose(cbnd(a, b, rho), expected, atol=1e-6)

    def test_symmetric_in_arguments(self):
        """M(a, b; ρ) = M(b, a; ρ)."""
        for a, b, rho in [(0.3, -1.2, 0.4), (-0.7, 0.9, -0.6), (1.1, 0.2, 0.8)]:
            assert np.isclose(cbnd(a, b, rho), cbnd(b, a, rho), atol=1e-6)

    def test_independent_factorizes(self):
        """With ρ = 0 the CDF is N(a)·N(b)."""
        for a, b in [(-1.0, 0.5), (0.8, 1.7), (-0.2, -2.0)]:
            assert np.isclose(cbnd(a, b, 0.0), cnd(a) * cnd(b), atol=1e-6)

    def test_infinite_upper_limit(self):
        """An infinite second limit reduces to the univariate CDF."""
        assert np.isclose(cbnd(0.3, float("inf"), 0.0), cnd(0.3), atol=1e-6)

    def test_nan_input_raises(self):
        """NaN falls through every reduction case."""
        with pytest.raises(ValueError, match="Invalid bivariate normal input"):
            cbnd(float("nan"), 0.5, 0.5)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
